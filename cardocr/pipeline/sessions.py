# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""onnxruntime-backed neural sessions.

A session lives for exactly one pipeline phase: :func:`open_session` opens
it from the factory and guarantees ``close`` on exit. The factory itself
only keeps the read-only model bytes, so no inference state outlives a call.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import numpy as np
import onnxruntime as ort

from .config import RuntimeSettings
from .interfaces import NeuralSession, SessionFactory
from .models import ModelKind

ModelSource = Union[str, Path, bytes]

__all__ = [
    "OnnxSession",
    "OnnxSessionFactory",
    "build_session_options",
    "describe_model",
    "open_session",
]


def build_session_options(intra_op_threads: int = 4) -> "ort.SessionOptions":
    """Options that allow several threads to call ``run`` at once."""

    options = ort.SessionOptions()
    options.execution_mode = ort.ExecutionMode.ORT_PARALLEL
    options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_EXTENDED
    options.intra_op_num_threads = max(1, int(intra_op_threads))
    return options


def _read_model(source: ModelSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    return Path(source).read_bytes()


class OnnxSession(NeuralSession):
    """Wrap an ``InferenceSession`` with a single input and output.

    Args:
        model: ONNX model bytes or a path to an ``.onnx`` file.
        options: Session options; defaults to :func:`build_session_options`.
        providers: Execution providers, CPU only by default.
        serialize: Guard ``run`` with a lock for engines whose sessions are
            not safe to call from several threads.
    """

    def __init__(
        self,
        model: ModelSource,
        *,
        options: Optional["ort.SessionOptions"] = None,
        providers: Optional[List[str]] = None,
        serialize: bool = False,
    ) -> None:
        self._session: Optional[ort.InferenceSession] = ort.InferenceSession(
            _read_model(model),
            sess_options=options or build_session_options(),
            providers=providers or ["CPUExecutionProvider"],
        )
        self._input_name = self._session.get_inputs()[0].name
        self._lock = threading.Lock() if serialize else None

    @property
    def closed(self) -> bool:
        return self._session is None

    def run(self, tensor: np.ndarray) -> np.ndarray:
        session = self._session
        if session is None:
            raise RuntimeError("session is closed")
        feed = {self._input_name: np.ascontiguousarray(tensor, dtype=np.float32)}
        if self._lock is None:
            outputs = session.run(None, feed)
        else:
            with self._lock:
                outputs = session.run(None, feed)
        return np.asarray(outputs[0])

    def close(self) -> None:
        # onnxruntime frees native resources once the session is unreferenced.
        self._session = None


class OnnxSessionFactory(SessionFactory):
    """Open a fresh :class:`OnnxSession` per call from cached model bytes."""

    def __init__(
        self,
        detection_model: ModelSource,
        recognition_model: ModelSource,
        *,
        settings: Optional[RuntimeSettings] = None,
        providers: Optional[List[str]] = None,
    ) -> None:
        self.settings = settings or RuntimeSettings.from_env()
        self.providers = providers
        self._models: Dict[ModelKind, bytes] = {
            ModelKind.DETECTION: _read_model(detection_model),
            ModelKind.RECOGNITION: _read_model(recognition_model),
        }

    def __call__(self, kind: ModelKind) -> OnnxSession:
        return OnnxSession(
            self._models[ModelKind(kind)],
            options=build_session_options(self.settings.intra_op_threads),
            providers=self.providers,
            serialize=self.settings.serialize_inference,
        )


@contextmanager
def open_session(factory: SessionFactory, kind: ModelKind) -> Iterator[NeuralSession]:
    session = factory(kind)
    try:
        yield session
    finally:
        session.close()


def _describe_args(args) -> List[Dict[str, Any]]:
    return [{"name": arg.name, "shape": list(arg.shape), "type": arg.type} for arg in args]


def describe_model(model: ModelSource) -> Dict[str, Any]:
    """Return input/output names, shapes and element types of a model."""

    session = ort.InferenceSession(_read_model(model), providers=["CPUExecutionProvider"])
    return {
        "inputs": _describe_args(session.get_inputs()),
        "outputs": _describe_args(session.get_outputs()),
    }
