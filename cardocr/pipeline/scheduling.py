# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Bulk-synchronous fan-out/fan-in over a thread pool.

Both inference phases use the same shape: submit one task per item in index
order, block until every task has finished, then assemble results by index.
The first failure cancels whatever has not started and is re-raised as
:class:`InferenceTaskError`; no partial results escape.
"""
from __future__ import annotations

import concurrent.futures
from typing import Callable, List, Optional, Sequence, TypeVar

import numpy as np

from ..errors import ContractViolation, InferenceTaskError

T = TypeVar("T")
R = TypeVar("R")

__all__ = ["run_parallel", "run_tiled", "split_strips"]


def run_parallel(
    fn: Callable[[T], R],
    items: Sequence[T],
    *,
    max_workers: Optional[int] = None,
    phase: str = "inference",
) -> List[R]:
    if not items:
        return []
    workers = max(1, min(len(items), max_workers or len(items)))
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix=f"cardocr-{phase}"
    ) as pool:
        futures = [pool.submit(fn, item) for item in items]
        concurrent.futures.wait(futures, return_when=concurrent.futures.FIRST_EXCEPTION)
        for index, future in enumerate(futures):
            if future.done() and not future.cancelled() and future.exception() is not None:
                for pending in futures:
                    pending.cancel()
                exc = future.exception()
                raise InferenceTaskError(
                    f"{phase} task {index} failed: {exc}", task_index=index
                ) from exc
        return [future.result() for future in futures]


def split_strips(image: np.ndarray, tile_count: int) -> List[np.ndarray]:
    """Cut ``image`` into ``tile_count`` equal-width vertical strips."""

    if tile_count < 1:
        raise ContractViolation(f"tile_count must be >= 1, got {tile_count}")
    width = image.shape[1]
    if width % tile_count:
        raise ContractViolation(
            f"image width {width} is not divisible by tile_count {tile_count}"
        )
    step = width // tile_count
    return [image[:, i * step : (i + 1) * step] for i in range(tile_count)]


def run_tiled(
    image: np.ndarray,
    tile_count: int,
    infer_fn: Callable[[np.ndarray], R],
    *,
    max_workers: Optional[int] = None,
) -> List[R]:
    """Run ``infer_fn`` on every strip concurrently; results in strip order."""

    strips = split_strips(image, tile_count)
    return run_parallel(infer_fn, strips, max_workers=max_workers, phase="detection")
