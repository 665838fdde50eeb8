# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Bundled resources."""

from .sample_card import SAMPLE_CARD_SIZE, render_sample_card

__all__ = ["SAMPLE_CARD_SIZE", "render_sample_card"]
