# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

import numpy as np

from cardocr.pipeline import BoundingBox, extract
from cardocr.pipeline.regions import component_extents, pad_and_clamp


def _two_blob_mask():
    mask = np.zeros((400, 800), dtype=np.uint8)
    mask[10:30, 10:70] = 255
    mask[10:30, 200:260] = 255
    return mask


def test_two_disjoint_blobs_yield_two_padded_boxes():
    boxes = extract(_two_blob_mask())

    assert len(boxes) == 2
    assert all(box.width >= 60 for box in boxes)
    assert boxes[0] == BoundingBox(x=0, y=0, width=99, height=59)
    assert boxes[1] == BoundingBox(x=190, y=0, width=99, height=59)


def test_extract_is_deterministic():
    rng = np.random.RandomState(7)
    mask = (rng.rand(120, 160) > 0.8).astype(np.uint8) * 255

    first = extract(mask, min_box_width=1)
    second = extract(mask, min_box_width=1)

    assert set(first) == set(second)
    assert len(first) == len(set(first))


def test_extract_drops_narrow_components():
    mask = np.zeros((50, 200), dtype=np.uint8)
    mask[10:20, 10:15] = 255
    mask[10:20, 100:180] = 255

    boxes = extract(mask, pad_x=0, pad_y=0, extra=0, min_box_width=50)

    assert boxes == [BoundingBox(x=100, y=10, width=79, height=9)]


def test_extract_reports_identical_boxes_once():
    mask = np.zeros((20, 20), dtype=np.uint8)
    mask[2, 2] = 255
    mask[17, 17] = 255

    boxes = extract(mask, pad_x=50, pad_y=50, extra=0, min_box_width=1)

    assert boxes == [BoundingBox(x=0, y=0, width=20, height=20)]


def test_dilation_merges_nearby_fragments():
    mask = np.zeros((30, 60), dtype=np.uint8)
    mask[10:20, 10:20] = 255
    mask[10:20, 21:31] = 255

    plain = extract(mask, pad_x=0, pad_y=0, extra=0, min_box_width=1)
    dilated = extract(mask, pad_x=0, pad_y=0, extra=0, min_box_width=1, dilate_kernel=3)

    assert len(plain) == 2
    assert len(dilated) == 1


def test_component_extents_handles_large_blobs_in_raster_order():
    mask = np.zeros((600, 600), dtype=np.uint8)
    mask[300:600, :] = 1
    mask[5:8, 500:510] = 1

    extents = component_extents(mask)

    assert extents == [(500, 5, 509, 7), (0, 300, 599, 599)]


def test_pad_and_clamp_stays_inside_image():
    assert pad_and_clamp((0, 0, 9, 9), image_size=(15, 15), pad_x=5, pad_y=5, extra=10) == (
        0,
        0,
        15,
        15,
    )
