# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Structured logging helpers shared by the pipeline stages."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .json_utils import json_ready

ROOT_LOGGER = "cardocr"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _log_format() -> str:
    return (os.environ.get("CARDOCR_LOG_FORMAT") or "json").strip().lower()


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stdout handler to the package logger once and set its level."""

    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    raw = level or os.environ.get("CARDOCR_LOG_LEVEL") or "INFO"
    logger.setLevel(getattr(logging, raw.strip().upper(), logging.INFO))
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_event(
    logger: logging.Logger,
    event: str,
    payload: Optional[Dict[str, Any]] = None,
    *,
    level: str = "info",
    exc_info: bool = False,
) -> None:
    record = {"ts": _utc_now_iso(), "event": event, **(payload or {})}
    if _log_format() == "json":
        msg = json.dumps(json_ready(record), ensure_ascii=False)
    else:
        msg = f"{record['ts']} {event} {json_ready(payload or {})}"
    fn = getattr(logger, level, logger.info)
    fn(msg, exc_info=exc_info)


__all__ = ["ROOT_LOGGER", "configure_logging", "get_logger", "log_event"]
