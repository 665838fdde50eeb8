# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Deterministic stand-ins for the neural sessions, for tests and smoke runs."""
from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional

import numpy as np

from .interfaces import NeuralSession, SessionFactory
from .models import ModelKind
from .vocabulary import Vocabulary

__all__ = [
    "CallbackRecognitionSession",
    "DarknessDetectionSession",
    "FailingSession",
    "MockSessionFactory",
    "one_hot_sequence",
]


class DarknessDetectionSession(NeuralSession):
    """Score each pixel by how dark it is: ``1 - mean(rgb)``."""

    def __init__(self) -> None:
        self.calls = 0
        self.closed = False
        self._lock = threading.Lock()

    def run(self, tensor: np.ndarray) -> np.ndarray:
        with self._lock:
            self.calls += 1
        arr = np.asarray(tensor, dtype=np.float32)
        return 1.0 - arr.mean(axis=1, keepdims=True)

    def close(self) -> None:
        self.closed = True


def one_hot_sequence(
    text: str,
    vocabulary: Vocabulary,
    length: int,
    *,
    confidence: float = 0.9,
) -> np.ndarray:
    """``[length][V + 2]`` grid spelling ``text`` with blanks between repeats.

    Spaces map to the separator class ``V + 1``; remaining positions are
    blank.
    """

    classes = len(vocabulary) + 2
    grid = np.zeros((length, classes), dtype=np.float32)
    rest = (1.0 - confidence) / (classes - 1)
    position = 0
    previous = None
    for char in text:
        index = len(vocabulary) + 1 if char == " " else vocabulary.class_for_token(char)
        if index == previous and position < length:
            grid[position, :] = rest
            grid[position, 0] = confidence
            position += 1
        if position >= length:
            break
        grid[position, :] = rest
        grid[position, index] = confidence
        previous = index
        position += 1
    for p in range(position, length):
        grid[p, :] = rest
        grid[p, 0] = confidence
    return grid


class CallbackRecognitionSession(NeuralSession):
    """Answer each batch item with ``text_fn(item)`` encoded as one-hot rows."""

    def __init__(
        self,
        vocabulary: Vocabulary,
        text_fn: Callable[[np.ndarray], str],
        *,
        sequence_length: int = 40,
        confidence: float = 0.9,
    ) -> None:
        self.vocabulary = vocabulary
        self.text_fn = text_fn
        self.sequence_length = sequence_length
        self.confidence = confidence
        self.batch_sizes: List[int] = []
        self.closed = False
        self._lock = threading.Lock()

    def run(self, tensor: np.ndarray) -> np.ndarray:
        batch = np.asarray(tensor, dtype=np.float32)
        with self._lock:
            self.batch_sizes.append(batch.shape[0])
        return np.stack(
            [
                one_hot_sequence(
                    self.text_fn(item),
                    self.vocabulary,
                    self.sequence_length,
                    confidence=self.confidence,
                )
                for item in batch
            ]
        )

    def close(self) -> None:
        self.closed = True


class FailingSession(NeuralSession):
    def __init__(self, message: str = "inference failed") -> None:
        self.message = message
        self.closed = False

    def run(self, tensor: np.ndarray) -> np.ndarray:
        raise RuntimeError(self.message)

    def close(self) -> None:
        self.closed = True


class MockSessionFactory(SessionFactory):
    """Hand out pre-built sessions per model kind and record every open."""

    def __init__(
        self,
        detection: Optional[Callable[[], NeuralSession]] = None,
        recognition: Optional[Callable[[], NeuralSession]] = None,
    ) -> None:
        self._builders: Dict[ModelKind, Optional[Callable[[], NeuralSession]]] = {
            ModelKind.DETECTION: detection or DarknessDetectionSession,
            ModelKind.RECOGNITION: recognition,
        }
        self.opened: List[ModelKind] = []
        self.sessions: List[NeuralSession] = []

    def __call__(self, kind: ModelKind) -> NeuralSession:
        builder = self._builders[ModelKind(kind)]
        if builder is None:
            raise RuntimeError(f"no mock session configured for {kind}")
        session = builder()
        self.opened.append(ModelKind(kind))
        self.sessions.append(session)
        return session
