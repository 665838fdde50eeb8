# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Data models exchanged between the pipeline stages.

Boxes are validated pydantic models so a stage can never hand the next one a
box with a negative origin or an empty extent. Image payloads (masks,
previews) are plain numpy arrays carried as opaque objects.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LayoutProfile(str, Enum):
    """Physical card layouts the pipeline knows how to read.

    ``PROFILE_A`` is the two-column card: a label column on the left and a
    value column in the middle. ``PROFILE_B`` is the single-block card whose
    upper-left quadrant holds a photo or seal rather than text.
    """

    PROFILE_A = "two_column"
    PROFILE_B = "single_block"


class ModelKind(str, Enum):
    DETECTION = "detection"
    RECOGNITION = "recognition"


class BoundingBox(BaseModel):
    """Axis-aligned box in working-image pixel coordinates."""

    model_config = ConfigDict(frozen=True)

    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height


class DetectionResult(BaseModel):
    """Output of one detection pass over a working image."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    mask: object
    preview: object
    boxes: List[BoundingBox]
    duration_ms: float = Field(..., ge=0.0)


class RecognitionResult(BaseModel):
    """Decoded strings in crop order.

    Degenerate sequences are dropped, so ``box_indices[i]`` records which
    detection box produced ``strings[i]``.
    """

    strings: List[str]
    box_indices: List[int]
    duration_ms: float = Field(..., ge=0.0)


class PipelineResult(BaseModel):
    """Detection plus, when the sanity gate passed, recognition."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    profile: LayoutProfile
    detection: DetectionResult
    recognition: Optional[RecognitionResult] = None

    @property
    def accepted(self) -> bool:
        return self.recognition is not None
