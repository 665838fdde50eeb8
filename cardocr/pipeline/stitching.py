# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Reassemble per-strip detector masks into one full-width mask.

Each strip is inferred independently, so a word crossing a strip boundary
tends to lose a few columns of score on both sides of the seam and falls
apart into two components. Seam repair fills every row that has foreground
within ``D`` columns of an inner strip edge from that pixel to the edge, so
the two halves meet again before labeling.
"""
from __future__ import annotations

from typing import List, Sequence

import numpy as np

from ..errors import ContractViolation
from ..imaging.morphology import open_rect

__all__ = ["repair_seams", "scores_to_mask", "stitch"]

FOREGROUND = 255


def scores_to_mask(scores: np.ndarray) -> np.ndarray:
    """Map detector scores (higher means text) to a ``uint8`` image."""

    arr = np.asarray(scores, dtype=np.float32)
    return (np.clip(arr, 0.0, 1.0) * 255.0).astype(np.uint8)


def _fill_left(tile: np.ndarray, fg: np.ndarray, band: int) -> None:
    region = fg[:, :band]
    rows = region.any(axis=1)
    if not rows.any():
        return
    first = region.argmax(axis=1)
    cols = np.arange(band)
    fill = rows[:, None] & (cols[None, :] <= first[:, None])
    tile[:, :band][fill] = FOREGROUND


def _fill_right(tile: np.ndarray, fg: np.ndarray, band: int) -> None:
    width = fg.shape[1]
    region = fg[:, width - band :]
    rows = region.any(axis=1)
    if not rows.any():
        return
    last = band - 1 - region[:, ::-1].argmax(axis=1)
    cols = np.arange(band)
    fill = rows[:, None] & (cols[None, :] >= last[:, None])
    tile[:, width - band :][fill] = FOREGROUND


def repair_seams(
    tile_masks: Sequence[np.ndarray],
    *,
    threshold: float,
    seam_fraction: float = 0.25,
) -> List[np.ndarray]:
    """Return binarized copies of ``tile_masks`` with inner edges extended."""

    if not tile_masks:
        raise ContractViolation("at least one tile mask is required")
    heights = {np.asarray(t).shape[0] for t in tile_masks}
    if len(heights) != 1:
        raise ContractViolation(f"tile masks differ in height: {sorted(heights)}")

    last = len(tile_masks) - 1
    repaired: List[np.ndarray] = []
    for index, raw in enumerate(tile_masks):
        arr = np.asarray(raw)
        if arr.ndim != 2:
            raise ContractViolation(f"tile {index} is not a 2-D mask: {arr.shape}")
        fg = arr > threshold
        tile = np.where(fg, FOREGROUND, 0).astype(np.uint8)
        band = min(arr.shape[1], max(1, int(arr.shape[1] * seam_fraction)))
        if index > 0:
            _fill_left(tile, fg, band)
        if index < last:
            _fill_right(tile, fg, band)
        repaired.append(tile)
    return repaired


def stitch(
    tile_masks: Sequence[np.ndarray],
    *,
    threshold: float = 0,
    seam_fraction: float = 0.25,
    opening_kernel: int = 3,
) -> np.ndarray:
    """Seam-repair, concatenate left to right and open the result."""

    tiles = repair_seams(tile_masks, threshold=threshold, seam_fraction=seam_fraction)
    full = np.concatenate(tiles, axis=1)
    opened = open_rect(full > 0, opening_kernel, opening_kernel)
    return (opened * FOREGROUND).astype(np.uint8)
