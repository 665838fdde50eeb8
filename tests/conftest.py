# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Pytest configuration shared across the suite."""

from __future__ import annotations

import os
import string
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cardocr.pipeline import Vocabulary  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("CARDOCR_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def vocabulary() -> Vocabulary:
    return Vocabulary(string.ascii_uppercase + string.ascii_lowercase + string.digits + "-")
