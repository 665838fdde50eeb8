# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""End-to-end card reading: detect, sanity-gate, crop, recognize."""
from __future__ import annotations

import time
from typing import Mapping, Optional

import numpy as np

from ..imaging.transforms import (
    ImageLike,
    clean_crop,
    crop_regions,
    fit_within,
    resize_to,
    to_pil_rgb,
)
from ..resources.sample_card import render_sample_card
from ..utils.log import get_logger, log_event
from .config import ProfileConfig, RuntimeSettings, profile_config
from .detection import detect
from .interfaces import SessionFactory
from .models import LayoutProfile, ModelKind, PipelineResult
from .recognition import BatchRecognizer
from .sessions import open_session
from .vocabulary import Vocabulary

__all__ = ["PipelineOrchestrator", "prepare_working_image"]

logger = get_logger("orchestrator")


def prepare_working_image(image: ImageLike, working_size) -> np.ndarray:
    """Rescale ``image`` to the working size as an RGB array.

    Large photos are halved first so the final resample never has to
    shrink by more than a factor of two.
    """

    width, height = working_size
    pil = to_pil_rgb(image)
    pil = fit_within(pil, 2 * width, 2 * height)
    return np.asarray(resize_to(pil, (width, height)), dtype=np.uint8)


class PipelineOrchestrator:
    """Run the full pipeline for one image at a time.

    Sessions are opened from ``session_factory`` at the start of each phase
    and closed when it ends; nothing is cached between calls besides the
    vocabulary and configuration.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        vocabulary: Vocabulary,
        *,
        profiles: Optional[Mapping[LayoutProfile, ProfileConfig]] = None,
        settings: Optional[RuntimeSettings] = None,
    ) -> None:
        self.session_factory = session_factory
        self.vocabulary = vocabulary
        self.profiles = profiles
        self.settings = settings or RuntimeSettings.from_env()

    def config_for(self, profile: LayoutProfile) -> ProfileConfig:
        return profile_config(profile, self.profiles)

    def process_image(self, image: ImageLike, profile: LayoutProfile) -> PipelineResult:
        profile = LayoutProfile(profile)
        cfg = self.config_for(profile)
        started = time.perf_counter()
        working = prepare_working_image(image, cfg.working_size)

        with open_session(self.session_factory, ModelKind.DETECTION) as session:
            detection = detect(
                working, session, profile, cfg, max_workers=self.settings.max_workers
            )

        box_count = len(detection.boxes)
        if not cfg.accepts_box_count(box_count):
            log_event(
                logger,
                "layout_mismatch",
                {
                    "profile": profile,
                    "boxes": box_count,
                    "expected": list(cfg.box_count_range),
                },
                level="warning",
            )
            return PipelineResult(profile=profile, detection=detection, recognition=None)

        crops = crop_regions(working, detection.boxes)
        if cfg.clean_crops:
            crops = [clean_crop(c, opening_kernel=cfg.crop_opening_kernel) for c in crops]
        recognizer = BatchRecognizer(
            confidence_threshold=cfg.confidence_threshold,
            chunks=self.settings.chunk_count(),
            max_workers=self.settings.max_workers,
        )
        with open_session(self.session_factory, ModelKind.RECOGNITION) as session:
            recognition = recognizer.recognize(crops, session, self.vocabulary)

        log_event(
            logger,
            "pipeline.done",
            {
                "profile": profile,
                "boxes": box_count,
                "strings": len(recognition.strings),
                "detect_ms": round(detection.duration_ms, 3),
                "recognize_ms": round(recognition.duration_ms, 3),
                "elapsed_ms": round((time.perf_counter() - started) * 1000.0, 3),
            },
        )
        return PipelineResult(profile=profile, detection=detection, recognition=recognition)

    def warmup(
        self,
        cycles: Optional[int] = None,
        *,
        profile: LayoutProfile = LayoutProfile.PROFILE_A,
        image: Optional[ImageLike] = None,
    ) -> int:
        """Run the pipeline ``cycles`` times on a sample card; never raises.

        Returns the number of cycles that completed.
        """

        total = self.settings.warmup_cycles if cycles is None else max(0, int(cycles))
        sample = image if image is not None else render_sample_card()
        log_event(logger, "warmup.start", {"cycles": total, "profile": LayoutProfile(profile)})
        completed = 0
        for cycle in range(total):
            try:
                self.process_image(sample, profile)
            except Exception as exc:
                log_event(
                    logger,
                    "warmup.failed",
                    {"cycle": cycle, "error": f"{type(exc).__name__}: {exc}"},
                    level="error",
                    exc_info=True,
                )
                continue
            completed += 1
        log_event(logger, "warmup.done", {"cycles": total, "completed": completed})
        return completed
