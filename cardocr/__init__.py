# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""CardOCR public package surface."""

from __future__ import annotations

from ._version import __version__
from .pipeline import (
    BoundingBox,
    DetectionResult,
    LayoutProfile,
    PipelineOrchestrator,
    PipelineResult,
    RecognitionResult,
    Vocabulary,
)

__all__ = [
    "__version__",
    "BoundingBox",
    "DetectionResult",
    "LayoutProfile",
    "PipelineOrchestrator",
    "PipelineResult",
    "RecognitionResult",
    "Vocabulary",
]
