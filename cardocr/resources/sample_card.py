# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Synthetic two-column ID card used to warm up the inference engine.

Dark bars stand in for printed text: a title strip, a label column, a value
column and a grey photo block, laid out like the two-column card profile.
"""
from __future__ import annotations

from typing import Tuple

from PIL import Image, ImageDraw

__all__ = ["SAMPLE_CARD_SIZE", "render_sample_card"]

SAMPLE_CARD_SIZE = (1280, 960)

_ROWS = 7
_ROW_TOP = 200
_ROW_PITCH = 100
_BAR_HEIGHT = 18


def render_sample_card(size: Tuple[int, int] = SAMPLE_CARD_SIZE) -> Image.Image:
    width, height = size
    sx = width / SAMPLE_CARD_SIZE[0]
    sy = height / SAMPLE_CARD_SIZE[1]

    def rect(x: int, y: int, w: int, h: int) -> list:
        return [round(x * sx), round(y * sy), round((x + w) * sx) - 1, round((y + h) * sy) - 1]

    card = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(card)
    draw.rectangle(rect(300, 60, 680, 30), fill=(20, 20, 20))
    for row in range(_ROWS):
        top = _ROW_TOP + row * _ROW_PITCH
        draw.rectangle(rect(60, top, 200, _BAR_HEIGHT), fill=(30, 30, 30))
        draw.rectangle(rect(560, top, 300, _BAR_HEIGHT), fill=(10, 10, 10))
    draw.rectangle(rect(1000, 200, 200, 250), fill=(150, 150, 150))
    return card
