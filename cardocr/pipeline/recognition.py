# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Batched text recognition and confidence-gated greedy decoding.

Crops are resized to the recognizer's fixed height, grouped into chunks,
zero-padded per chunk to a common width and pushed through the session in
parallel. Every output row is decoded on its own:

* class ``0`` is the CTC blank and emits nothing;
* classes ``1..V`` emit ``vocabulary[i - 1]`` when their probability beats
  the confidence threshold (a whitespace token acts as a separator);
* classes above ``V`` emit a single separator, and only when the last
  emission was not already one.

Sequences that trim down to nothing or to a single character are noise and
are dropped, so fewer strings than crops may come back.
"""
from __future__ import annotations

import math
import os
import time
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from ..errors import ContractViolation
from ..imaging.transforms import to_pil_rgb
from ..utils.log import get_logger, log_event
from .interfaces import NeuralSession
from .models import RecognitionResult
from .scheduling import run_parallel
from .vocabulary import Vocabulary

__all__ = [
    "RECOGNITION_HEIGHT",
    "SEPARATOR",
    "BatchRecognizer",
    "decode_batch",
    "decode_sequence",
    "pad_batch",
    "prepare_crop",
    "split_chunks",
]

RECOGNITION_HEIGHT = 48
SEPARATOR = " "

logger = get_logger("recognition")


def prepare_crop(
    crop: np.ndarray,
    *,
    height: int = RECOGNITION_HEIGHT,
    max_width: Optional[int] = None,
) -> np.ndarray:
    """Resize to ``height`` keeping the aspect ratio; return ``float32[3][h][w]``."""

    pil = to_pil_rgb(crop)
    src_w, src_h = pil.size
    if src_w <= 0 or src_h <= 0:
        raise ContractViolation(f"empty crop of size {src_w}x{src_h}")
    width = max(1, int(round(height * src_w / src_h)))
    if max_width is not None and width > max_width:
        width = max_width
    resized = pil.resize((width, height), Image.BILINEAR)
    arr = np.asarray(resized, dtype=np.float32) / 255.0
    return np.ascontiguousarray(arr.transpose(2, 0, 1))


def pad_batch(arrays: Sequence[np.ndarray]) -> np.ndarray:
    """Stack ``[3][h][w_i]`` arrays, zero-filling to the widest one."""

    channels, height = arrays[0].shape[:2]
    max_w = max(a.shape[2] for a in arrays)
    batch = np.zeros((len(arrays), channels, height, max_w), dtype=np.float32)
    for i, arr in enumerate(arrays):
        batch[i, :, :, : arr.shape[2]] = arr
    return batch


def split_chunks(count: int, chunks: int) -> List[Tuple[int, int]]:
    """Consecutive ``[start, stop)`` ranges; never more ranges than items."""

    if count <= 0:
        return []
    chunks = max(1, min(int(chunks), count))
    size = math.ceil(count / chunks)
    return [(start, min(start + size, count)) for start in range(0, count, size)]


def decode_sequence(
    probs: np.ndarray,
    vocabulary: Vocabulary,
    confidence_threshold: float,
) -> Optional[str]:
    """Greedy-decode one ``[S][C]`` probability grid, or ``None`` for noise."""

    vocab_size = len(vocabulary)
    out: List[str] = []
    best = np.argmax(probs, axis=1)
    for position, index in enumerate(best):
        index = int(index)
        if index == 0:
            continue
        if index > vocab_size:
            if out and out[-1] != SEPARATOR:
                out.append(SEPARATOR)
            continue
        if float(probs[position, index]) <= confidence_threshold:
            continue
        token = vocabulary[index - 1]
        if not token.strip():
            if out and out[-1] != SEPARATOR:
                out.append(SEPARATOR)
            continue
        out.append(token)

    text = "".join(out).strip(SEPARATOR)
    if len(text) <= 1:
        return None
    return text


def decode_batch(
    output: np.ndarray,
    vocabulary: Vocabulary,
    confidence_threshold: float,
) -> List[Optional[str]]:
    arr = np.asarray(output, dtype=np.float32)
    if arr.ndim != 3:
        raise ContractViolation(f"expected [batch][sequence][classes] output, got {arr.shape}")
    if arr.shape[2] < len(vocabulary) + 1:
        raise ContractViolation(
            f"output has {arr.shape[2]} classes for a vocabulary of {len(vocabulary)}"
        )
    return [decode_sequence(row, vocabulary, confidence_threshold) for row in arr]


class BatchRecognizer:
    """Recognize a list of crops with one shared session.

    Args:
        confidence_threshold: Minimum probability for a character to be
            emitted. Tuned per card profile.
        chunks: Number of parallel batches; defaults to the CPU count.
        max_workers: Thread pool size for the chunk phase.
        max_crop_width: Widest tensor a single crop may occupy.
    """

    def __init__(
        self,
        confidence_threshold: float = 0.25,
        chunks: Optional[int] = None,
        max_workers: Optional[int] = None,
        max_crop_width: Optional[int] = 1600,
    ) -> None:
        if not 0.0 <= confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be within [0.0, 1.0]")
        self.confidence_threshold = confidence_threshold
        self.chunks = chunks
        self.max_workers = max_workers
        self.max_crop_width = max_crop_width

    def _chunk_count(self) -> int:
        if self.chunks:
            return self.chunks
        return os.cpu_count() or 1

    def recognize(
        self,
        crops: Sequence[np.ndarray],
        session: NeuralSession,
        vocabulary: Vocabulary,
    ) -> RecognitionResult:
        if not crops:
            return RecognitionResult(strings=[], box_indices=[], duration_ms=0.0)

        arrays = [prepare_crop(c, max_width=self.max_crop_width) for c in crops]
        ranges = split_chunks(len(arrays), self._chunk_count())

        def _infer(span: Tuple[int, int]) -> List[Optional[str]]:
            start, stop = span
            batch = pad_batch(arrays[start:stop])
            decoded = decode_batch(session.run(batch), vocabulary, self.confidence_threshold)
            if len(decoded) != stop - start:
                raise ContractViolation(
                    f"session returned {len(decoded)} sequences for {stop - start} crops"
                )
            return decoded

        started = time.perf_counter()
        per_chunk = run_parallel(_infer, ranges, max_workers=self.max_workers, phase="recognition")
        duration_ms = (time.perf_counter() - started) * 1000.0

        strings: List[str] = []
        indices: List[int] = []
        for (start, _stop), decoded in zip(ranges, per_chunk):
            for offset, text in enumerate(decoded):
                if text is not None:
                    strings.append(text)
                    indices.append(start + offset)

        log_event(
            logger,
            "recognize.done",
            {
                "crops": len(crops),
                "chunks": len(ranges),
                "strings": len(strings),
                "elapsed_ms": round(duration_ms, 3),
            },
            level="debug",
        )
        return RecognitionResult(strings=strings, box_indices=indices, duration_ms=duration_ms)
