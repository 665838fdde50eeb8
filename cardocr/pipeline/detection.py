# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Detection path: tiled inference, stitching, extraction and filtering.

The detector is fed width-major tensors, ``float32[1][3][W][H]`` with values
in ``[0, 1]``, and answers with ``[1][1][W][H]`` scores. Both are transposed
here so the rest of the pipeline works on ordinary ``H x W`` arrays.
"""
from __future__ import annotations

import time
from typing import Optional

import numpy as np

from ..errors import ContractViolation
from ..imaging.transforms import draw_boxes, grayscale_blur
from ..utils.log import get_logger, log_event
from .config import ProfileConfig
from .interfaces import NeuralSession
from .layout import filter_boxes
from .models import DetectionResult, LayoutProfile
from .regions import extract
from .scheduling import run_tiled
from .stitching import scores_to_mask, stitch

__all__ = ["detect", "detection_output_to_mask", "to_detection_tensor"]

logger = get_logger("detection")


def to_detection_tensor(strip: np.ndarray) -> np.ndarray:
    """``H x W x 3`` uint8 strip to ``float32[1][3][W][H]`` in ``[0, 1]``."""

    arr = np.asarray(strip)
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ContractViolation(f"expected an H x W x 3 strip, got {arr.shape}")
    chw = arr.astype(np.float32).transpose(2, 1, 0) / 255.0
    return np.ascontiguousarray(chw[None, ...])


def detection_output_to_mask(output: np.ndarray, expected_hw: Optional[tuple] = None) -> np.ndarray:
    """``[1][1][W][H]`` scores to an ``H x W`` uint8 mask."""

    arr = np.asarray(output)
    if arr.ndim != 4 or arr.shape[0] != 1 or arr.shape[1] != 1:
        raise ContractViolation(f"expected [1][1][W][H] detector output, got {arr.shape}")
    mask = scores_to_mask(arr[0, 0].T)
    if expected_hw is not None and mask.shape != tuple(expected_hw):
        raise ContractViolation(
            f"detector output {mask.shape} does not match strip {tuple(expected_hw)}"
        )
    return mask


def detect(
    image: np.ndarray,
    session: NeuralSession,
    profile: LayoutProfile,
    config: ProfileConfig,
    *,
    max_workers: Optional[int] = None,
) -> DetectionResult:
    """Run the full detection path on a working-resolution RGB array."""

    started = time.perf_counter()
    prepared = grayscale_blur(image, config.detection_blur_radius)

    def _infer(strip: np.ndarray) -> np.ndarray:
        output = session.run(to_detection_tensor(strip))
        return detection_output_to_mask(output, expected_hw=strip.shape[:2])

    tiles = run_tiled(prepared, config.tile_count, _infer, max_workers=max_workers)
    mask = stitch(
        tiles,
        threshold=config.mask_threshold,
        seam_fraction=config.seam_fraction,
        opening_kernel=config.opening_kernel,
    )
    candidates = extract(
        mask,
        threshold=0,
        pad_x=config.pad_x,
        pad_y=config.pad_y,
        extra=config.extra,
        min_box_width=config.min_box_width,
        dilate_kernel=config.dilate_kernel,
    )
    boxes = filter_boxes(candidates, profile, config)
    preview = draw_boxes(image, boxes)
    duration_ms = (time.perf_counter() - started) * 1000.0

    log_event(
        logger,
        "detect.done",
        {
            "profile": profile,
            "tiles": config.tile_count,
            "candidates": len(candidates),
            "boxes": len(boxes),
            "elapsed_ms": round(duration_ms, 3),
        },
        level="debug",
    )
    return DetectionResult(mask=mask, preview=preview, boxes=boxes, duration_ms=duration_ms)
