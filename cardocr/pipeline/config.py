# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Profile-scoped constants and process-wide runtime settings.

Every tuned number in the pipeline lives here. Different card layouts were
tuned independently, so padding, minimum widths and the sanity-gate range
are per profile rather than global.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple

from .models import LayoutProfile

__all__ = [
    "DEFAULT_PROFILES",
    "LayoutRules",
    "ProfileConfig",
    "RuntimeSettings",
    "profile_config",
]


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    raw = raw.strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_truthy(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class LayoutRules:
    """Geometry thresholds consumed by the layout filter."""

    min_boxes: int = 11
    left_column_width: int = 75
    center_tolerance: int = 10
    left_scan_start: int = 1


@dataclass(frozen=True)
class ProfileConfig:
    working_size: Tuple[int, int]
    tile_count: int = 4
    seam_fraction: float = 0.25
    mask_threshold: int = 77
    opening_kernel: int = 3
    dilate_kernel: int = 3
    pad_x: int = 10
    pad_y: int = 10
    extra: int = 20
    min_box_width: int = 50
    box_count_range: Tuple[int, int] = (6, 25)
    confidence_threshold: float = 0.25
    detection_blur_radius: float = 1.0
    clean_crops: bool = True
    crop_opening_kernel: int = 3
    rules: LayoutRules = field(default_factory=LayoutRules)

    def __post_init__(self) -> None:
        width, height = self.working_size
        if width <= 0 or height <= 0:
            raise ValueError("working_size must be positive")
        if self.tile_count < 1:
            raise ValueError("tile_count must be >= 1")
        if width % self.tile_count:
            raise ValueError(
                f"working width {width} is not divisible by tile_count {self.tile_count}"
            )
        if not 0.0 < self.seam_fraction <= 1.0:
            raise ValueError("seam_fraction must be within (0, 1]")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be within [0.0, 1.0]")
        low, high = self.box_count_range
        if low < 0 or high < low:
            raise ValueError("box_count_range must be an ordered non-negative pair")

    @property
    def tile_width(self) -> int:
        return self.working_size[0] // self.tile_count

    def accepts_box_count(self, count: int) -> bool:
        low, high = self.box_count_range
        return low <= count <= high

    def with_overrides(self, **changes) -> "ProfileConfig":
        return replace(self, **changes)


DEFAULT_PROFILES: Dict[LayoutProfile, ProfileConfig] = {
    LayoutProfile.PROFILE_A: ProfileConfig(
        working_size=(1280, 960),
        pad_x=10,
        pad_y=10,
        extra=20,
        min_box_width=50,
        box_count_range=(6, 25),
    ),
    LayoutProfile.PROFILE_B: ProfileConfig(
        working_size=(1280, 800),
        pad_x=15,
        pad_y=10,
        extra=35,
        min_box_width=80,
        box_count_range=(2, 25),
    ),
}


def profile_config(
    profile: LayoutProfile,
    profiles: Optional[Mapping[LayoutProfile, ProfileConfig]] = None,
) -> ProfileConfig:
    table = profiles if profiles is not None else DEFAULT_PROFILES
    try:
        cfg = table[LayoutProfile(profile)]
    except KeyError as exc:
        raise ValueError(f"no configuration for layout profile {profile!r}") from exc
    threshold = _env_float("CARDOCR_CONFIDENCE_THRESHOLD", None)
    if threshold is not None and 0.0 <= threshold <= 1.0:
        cfg = cfg.with_overrides(confidence_threshold=threshold)
    return cfg


@dataclass(frozen=True)
class RuntimeSettings:
    """Process-wide knobs for worker pools and the inference engine."""

    max_workers: Optional[int] = None
    recognition_chunks: Optional[int] = None
    intra_op_threads: int = 4
    serialize_inference: bool = False
    warmup_cycles: int = 3

    @classmethod
    def from_env(cls) -> "RuntimeSettings":
        max_workers = _env_int("CARDOCR_MAX_WORKERS", None)
        chunks = _env_int("CARDOCR_RECOGNITION_CHUNKS", None)
        return cls(
            max_workers=max_workers if max_workers and max_workers > 0 else None,
            recognition_chunks=chunks if chunks and chunks > 0 else None,
            intra_op_threads=max(1, _env_int("CARDOCR_INTRA_OP_THREADS", 4) or 4),
            serialize_inference=_env_truthy("CARDOCR_SERIALIZE_INFERENCE", False),
            warmup_cycles=max(0, _env_int("CARDOCR_WARMUP_CYCLES", 3) or 0),
        )

    def chunk_count(self) -> int:
        if self.recognition_chunks:
            return self.recognition_chunks
        return os.cpu_count() or 1
