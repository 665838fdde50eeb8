# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Pillow/numpy image adapters used around the neural sessions.

Images travel through the pipeline as ``H x W x 3`` ``uint8`` RGB arrays.
Pillow handles resampling, grayscale conversion and blurring; numpy handles
slicing and crops.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Sequence, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFilter, ImageOps

from ..errors import ContractViolation
from .morphology import binarize, open_rect

if TYPE_CHECKING:
    from ..pipeline.models import BoundingBox

ImageLike = Union[Image.Image, np.ndarray]

__all__ = [
    "ImageLike",
    "to_pil_rgb",
    "to_rgb_array",
    "fit_within",
    "resize_to",
    "grayscale_blur",
    "clean_crop",
    "crop_regions",
    "draw_boxes",
]


def to_pil_rgb(image: ImageLike) -> Image.Image:
    if isinstance(image, Image.Image):
        return image if image.mode == "RGB" else image.convert("RGB")
    arr = np.asarray(image)
    if arr.dtype != np.uint8:
        raise TypeError(f"expected a uint8 image array, got {arr.dtype}")
    if arr.ndim == 2:
        return Image.fromarray(arr).convert("RGB")
    if arr.ndim == 3 and arr.shape[2] in (3, 4):
        return Image.fromarray(np.ascontiguousarray(arr[:, :, :3]))
    raise ValueError(f"unsupported image array shape {arr.shape}")


def to_rgb_array(image: ImageLike) -> np.ndarray:
    return np.asarray(to_pil_rgb(image), dtype=np.uint8)


def fit_within(
    image: Image.Image,
    max_width: int,
    max_height: int,
    *,
    max_steps: int = 8,
) -> Image.Image:
    """Halve ``image`` until it fits ``max_width`` x ``max_height``.

    Stops after ``max_steps`` halvings or as soon as a step fails to shrink
    the image, whichever comes first.
    """

    current = image
    for _ in range(max(0, int(max_steps))):
        width, height = current.size
        if width <= max_width and height <= max_height:
            break
        if width < 2 or height < 2:
            break
        reduced = current.reduce(2)
        if reduced.size[0] >= width and reduced.size[1] >= height:
            break
        current = reduced
    return current


def resize_to(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    if image.size == tuple(size):
        return image
    return image.resize(tuple(size), Image.BILINEAR)


def grayscale_blur(image: np.ndarray, radius: float) -> np.ndarray:
    """Grayscale + Gaussian blur, returned as three identical channels."""

    pil = to_pil_rgb(image).convert("L")
    if radius > 0:
        pil = pil.filter(ImageFilter.GaussianBlur(radius=radius))
    return np.asarray(pil.convert("RGB"), dtype=np.uint8)


def clean_crop(
    crop: np.ndarray,
    *,
    opening_kernel: int = 3,
    stroke_threshold: int = 127,
    blur_radius: float = 1.0,
) -> np.ndarray:
    """Prepare one text crop for the recognizer.

    The crop is contrast-stretched and inverted so strokes are bright on a
    dark ground, median-smoothed (edge preserving), stripped of bright specks
    that do not survive an ``opening_kernel`` opening, and blurred once more.
    Returns an ``H x W x 3`` ``uint8`` array of the same size.
    """

    gray = ImageOps.autocontrast(to_pil_rgb(crop).convert("L"))
    inverted = ImageOps.invert(gray).filter(ImageFilter.MedianFilter(5))
    arr = np.array(inverted, dtype=np.uint8)
    if opening_kernel > 1:
        strokes = binarize(arr, stroke_threshold)
        kept = open_rect(strokes, opening_kernel, opening_kernel)
        arr[(strokes > 0) & (kept == 0)] = 0
    smoothed = Image.fromarray(arr)
    if blur_radius > 0:
        smoothed = smoothed.filter(ImageFilter.GaussianBlur(radius=blur_radius))
    return np.asarray(smoothed.convert("RGB"), dtype=np.uint8)


def crop_regions(image: np.ndarray, boxes: Sequence[BoundingBox]) -> List[np.ndarray]:
    """Slice ``image`` to every box; boxes must already lie inside it."""

    H, W = image.shape[:2]
    crops: List[np.ndarray] = []
    for box in boxes:
        if box.x < 0 or box.y < 0 or box.right > W or box.bottom > H:
            raise ContractViolation(
                f"box {box.x},{box.y},{box.width}x{box.height} exceeds image {W}x{H}"
            )
        crops.append(image[box.y : box.bottom, box.x : box.right].copy())
    return crops


def draw_boxes(
    image: np.ndarray,
    boxes: Iterable[BoundingBox],
    *,
    color: Tuple[int, int, int] = (255, 0, 0),
    width: int = 2,
) -> np.ndarray:
    pil = to_pil_rgb(image).copy()
    draw = ImageDraw.Draw(pil)
    for box in boxes:
        draw.rectangle(
            [box.x, box.y, box.right - 1, box.bottom - 1],
            outline=color,
            width=width,
        )
    return np.asarray(pil, dtype=np.uint8)
