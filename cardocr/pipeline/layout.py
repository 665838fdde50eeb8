# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Layout-specific filtering of candidate boxes.

The rules are tuned to fixed physical card layouts rather than being a
general reading-order model. Each profile maps to one rule function in
``_RULES``; a candidate list that does not look like the expected card
yields an empty result instead of a best guess.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from .config import LayoutRules, ProfileConfig, profile_config
from .models import BoundingBox, LayoutProfile

__all__ = ["filter_boxes", "filter_single_block", "filter_two_column", "reading_order"]


def reading_order(boxes: Sequence[BoundingBox]) -> List[BoundingBox]:
    return sorted(boxes, key=lambda b: (b.y, b.x))


def _drop_label_boxes(column: List[BoundingBox]) -> List[BoundingBox]:
    """Remove central-column boxes that hug the box below them.

    A field label sits closer to its value underneath than to the value
    above it. Boxes wider than both neighbours are dropped as well. The
    first and last box lack a neighbour pair and always survive.
    """

    kept: List[BoundingBox] = []
    for i, box in enumerate(column):
        if 0 < i < len(column) - 1:
            prev_box, next_box = column[i - 1], column[i + 1]
            gap_prev = box.y - prev_box.y
            gap_next = next_box.y - box.y
            if gap_prev > gap_next:
                continue
            if box.width > prev_box.width and box.width > next_box.width:
                continue
        kept.append(box)
    return kept


def _drop_truncated_box(column: List[BoundingBox], start: int) -> List[BoundingBox]:
    # At most one box goes; a second removal would start eating short fields.
    for i in range(max(0, start), len(column) - 1):
        if column[i].area < column[i + 1].area:
            return column[:i] + column[i + 1 :]
    return list(column)


def filter_two_column(boxes: Sequence[BoundingBox], rules: LayoutRules) -> List[BoundingBox]:
    if len(boxes) < rules.min_boxes:
        return []
    by_x = sorted(boxes, key=lambda b: (b.x, b.y))
    min_x = by_x[0].x
    mid_x = by_x[rules.min_boxes - 1].x

    left: List[BoundingBox] = []
    center: List[BoundingBox] = []
    # A box inside both windows belongs to the central column, which midX anchors.
    for box in reading_order(boxes):
        if abs(box.x - mid_x) < rules.center_tolerance:
            center.append(box)
        elif box.x < min_x + rules.left_column_width:
            left.append(box)

    center = _drop_label_boxes(center)
    left = _drop_truncated_box(left, rules.left_scan_start)
    return reading_order(left + center)


def filter_single_block(boxes: Sequence[BoundingBox], rules: LayoutRules) -> List[BoundingBox]:
    if not boxes:
        return []
    by_x = sorted(boxes, key=lambda b: (b.x, b.y))
    by_y = reading_order(boxes)
    x_quarter = by_x[len(by_x) // 4].x
    y_median = by_y[len(by_y) // 2].y
    return [box for box in by_y if box.x > x_quarter and box.y > y_median]


_RULES: Dict[LayoutProfile, Callable[[Sequence[BoundingBox], LayoutRules], List[BoundingBox]]] = {
    LayoutProfile.PROFILE_A: filter_two_column,
    LayoutProfile.PROFILE_B: filter_single_block,
}


def filter_boxes(
    boxes: Sequence[BoundingBox],
    profile: LayoutProfile,
    config: Optional[ProfileConfig] = None,
) -> List[BoundingBox]:
    """Keep the genuine field boxes for ``profile`` in top-to-bottom order."""

    profile = LayoutProfile(profile)
    cfg = config or profile_config(profile)
    return _RULES[profile](list(boxes), cfg.rules)
