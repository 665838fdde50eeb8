# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Connected-component region extraction from a stitched detector mask."""
from __future__ import annotations

from typing import Dict, List, Tuple

import numpy as np

from ..imaging.morphology import binarize, dilate_rect
from .models import BoundingBox

__all__ = ["component_extents", "extract", "pad_and_clamp"]

Extent = Tuple[int, int, int, int]


def component_extents(binary: np.ndarray) -> List[Extent]:
    """Return ``(min_x, min_y, max_x, max_y)`` of each 4-connected component.

    Seeds are taken in raster order and every component is grown with an
    explicit stack, so large blobs never hit the recursion limit.
    """

    fg = np.asarray(binary) > 0
    H, W = fg.shape
    visited = np.zeros((H, W), dtype=bool)
    extents: List[Extent] = []
    for seed in np.flatnonzero(fg):
        sy, sx = divmod(int(seed), W)
        if visited[sy, sx]:
            continue
        visited[sy, sx] = True
        stack = [(sy, sx)]
        min_x = max_x = sx
        min_y = max_y = sy
        while stack:
            y, x = stack.pop()
            if x < min_x:
                min_x = x
            elif x > max_x:
                max_x = x
            if y < min_y:
                min_y = y
            elif y > max_y:
                max_y = y
            for ny, nx in ((y - 1, x), (y + 1, x), (y, x - 1), (y, x + 1)):
                if 0 <= ny < H and 0 <= nx < W and fg[ny, nx] and not visited[ny, nx]:
                    visited[ny, nx] = True
                    stack.append((ny, nx))
        extents.append((min_x, min_y, max_x, max_y))
    return extents


def pad_and_clamp(
    extent: Extent,
    *,
    image_size: Tuple[int, int],
    pad_x: int,
    pad_y: int,
    extra: int,
) -> Tuple[int, int, int, int]:
    min_x, min_y, max_x, max_y = extent
    width, height = image_size
    x = min_x - pad_x
    y = min_y - pad_y
    w = (max_x - min_x) + 2 * pad_x + extra
    h = (max_y - min_y) + 2 * pad_y + extra
    x0 = max(0, x)
    y0 = max(0, y)
    x1 = min(width, x + w)
    y1 = min(height, y + h)
    return x0, y0, x1 - x0, y1 - y0


def extract(
    mask: np.ndarray,
    *,
    threshold: float = 0,
    pad_x: int = 10,
    pad_y: int = 10,
    extra: int = 20,
    min_box_width: int = 50,
    dilate_kernel: int = 0,
) -> List[BoundingBox]:
    """Turn a mask into padded candidate boxes in discovery order.

    Boxes narrower than ``min_box_width`` after padding and clamping are
    noise. Identical boxes are reported once.
    """

    binary = binarize(mask, threshold)
    if dilate_kernel > 1:
        binary = dilate_rect(binary, dilate_kernel, dilate_kernel)
    H, W = binary.shape

    seen: Dict[Tuple[int, int, int, int], BoundingBox] = {}
    for extent in component_extents(binary):
        x, y, w, h = pad_and_clamp(
            extent, image_size=(W, H), pad_x=pad_x, pad_y=pad_y, extra=extra
        )
        if w <= 0 or h <= 0 or w < min_box_width:
            continue
        key = (x, y, w, h)
        if key not in seen:
            seen[key] = BoundingBox(x=x, y=y, width=w, height=h)
    return list(seen.values())
