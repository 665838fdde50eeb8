# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Binary morphology on rectangular windows using running sums."""
from __future__ import annotations

import numpy as np

__all__ = ["binarize", "dilate_rect", "erode_rect", "open_rect"]


def binarize(mask: np.ndarray, threshold: float) -> np.ndarray:
    """Return a ``uint8`` 0/1 array of pixels strictly above ``threshold``."""

    arr = np.asarray(mask)
    if arr.ndim != 2:
        raise ValueError(f"expected a 2-D mask, got shape {arr.shape}")
    return (arr > threshold).astype(np.uint8)


def dilate_rect(bw: np.ndarray, wx: int, wy: int) -> np.ndarray:
    """Dilate a 0/1 image with a ``wx`` by ``wy`` rectangle (odd sizes)."""

    bw = (np.asarray(bw) > 0).astype(np.uint8)
    H, W = bw.shape
    wx = max(1, int(wx))
    r = wx // 2
    k = 2 * r + 1
    s = np.pad(bw, ((0, 0), (r, r)), mode="constant")
    s2 = np.pad(s, ((0, 0), (1, 0)), mode="constant")
    csum = s2.cumsum(axis=1, dtype=np.int64)
    right = np.arange(W) + k
    left = np.arange(W)
    win = csum[:, right] - csum[:, left]
    h = (win > 0).astype(np.uint8)

    wy = max(1, int(wy))
    r = wy // 2
    k = 2 * r + 1
    s = np.pad(h, ((r, r), (0, 0)), mode="constant")
    s2 = np.pad(s, ((1, 0), (0, 0)), mode="constant")
    csum = s2.cumsum(axis=0, dtype=np.int64)
    bottom = np.arange(H) + k
    top = np.arange(H)
    win = csum[bottom, :] - csum[top, :]
    return (win > 0).astype(np.uint8)


def erode_rect(bw: np.ndarray, wx: int, wy: int) -> np.ndarray:
    # Pixels outside the image count as foreground, so borders do not erode.
    bw = (np.asarray(bw) > 0).astype(np.uint8)
    return (1 - dilate_rect(1 - bw, wx, wy)).astype(np.uint8)


def open_rect(bw: np.ndarray, wx: int, wy: int) -> np.ndarray:
    """Erode then dilate: removes specks smaller than the window."""

    if wx <= 1 and wy <= 1:
        return (np.asarray(bw) > 0).astype(np.uint8)
    return dilate_rect(erode_rect(bw, wx, wy), wx, wy)
