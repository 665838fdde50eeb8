# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Image operators used around the detector and recognizer."""

from .morphology import binarize, dilate_rect, erode_rect, open_rect
from .transforms import (
    ImageLike,
    clean_crop,
    crop_regions,
    draw_boxes,
    fit_within,
    grayscale_blur,
    resize_to,
    to_pil_rgb,
    to_rgb_array,
)

__all__ = [
    "ImageLike",
    "binarize",
    "clean_crop",
    "crop_regions",
    "dilate_rect",
    "draw_boxes",
    "erode_rect",
    "fit_within",
    "grayscale_blur",
    "open_rect",
    "resize_to",
    "to_pil_rgb",
    "to_rgb_array",
]
