# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Utility helpers shared across the CardOCR package."""

from .json_utils import json_ready
from .log import configure_logging, get_logger, log_event

__all__ = ["configure_logging", "get_logger", "json_ready", "log_event"]
