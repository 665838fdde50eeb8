# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

import numpy as np
import pytest
from PIL import Image, ImageDraw

from cardocr.errors import InferenceTaskError
from cardocr.pipeline import (
    DEFAULT_PROFILES,
    CallbackRecognitionSession,
    FailingSession,
    LayoutProfile,
    LayoutRules,
    MockSessionFactory,
    ModelKind,
    PipelineOrchestrator,
    RuntimeSettings,
)
from cardocr.resources import render_sample_card


def _factory(vocabulary, text="SAMPLE FIELD", **overrides):
    kwargs = {"recognition": lambda: CallbackRecognitionSession(vocabulary, lambda _item: text)}
    kwargs.update(overrides)
    return MockSessionFactory(**kwargs)


def _orchestrator(factory, vocabulary, **kwargs):
    settings = kwargs.pop("settings", RuntimeSettings(recognition_chunks=4, warmup_cycles=1))
    return PipelineOrchestrator(factory, vocabulary, settings=settings, **kwargs)


def _three_bar_card():
    card = Image.new("RGB", (1280, 960), "white")
    draw = ImageDraw.Draw(card)
    for top in (200, 400, 600):
        draw.rectangle([100, top, 399, top + 19], fill=(0, 0, 0))
    return card


def test_sample_card_reads_label_and_value_columns(vocabulary):
    factory = _factory(vocabulary)
    orchestrator = _orchestrator(factory, vocabulary)

    result = orchestrator.process_image(render_sample_card(), LayoutProfile.PROFILE_A)

    assert result.accepted
    assert len(result.detection.boxes) == 14
    assert result.recognition.strings == ["SAMPLE FIELD"] * 14
    assert result.recognition.box_indices == list(range(14))
    assert result.detection.mask.shape == (960, 1280)
    assert result.detection.preview.shape == (960, 1280, 3)
    assert factory.opened == [ModelKind.DETECTION, ModelKind.RECOGNITION]
    assert all(session.closed for session in factory.sessions)


def _tone(item):
    columns = item[0].max(axis=0) > 0
    return "BRIGHT" if item[:, :, columns].mean() > 0.5 else "DARK"


def test_crops_are_cleaned_unless_profile_opts_out(vocabulary):
    def run(clean):
        cfg = DEFAULT_PROFILES[LayoutProfile.PROFILE_A].with_overrides(clean_crops=clean)
        factory = MockSessionFactory(
            recognition=lambda: CallbackRecognitionSession(vocabulary, _tone)
        )
        orchestrator = _orchestrator(
            factory, vocabulary, profiles={LayoutProfile.PROFILE_A: cfg}
        )
        return orchestrator.process_image(render_sample_card(), LayoutProfile.PROFILE_A)

    assert set(run(True).recognition.strings) == {"DARK"}
    assert set(run(False).recognition.strings) == {"BRIGHT"}


def test_box_count_outside_gate_skips_recognition(vocabulary):
    profile_a = DEFAULT_PROFILES[LayoutProfile.PROFILE_A].with_overrides(
        rules=LayoutRules(min_boxes=3)
    )
    factory = _factory(vocabulary)
    orchestrator = _orchestrator(
        factory, vocabulary, profiles={LayoutProfile.PROFILE_A: profile_a}
    )

    result = orchestrator.process_image(_three_bar_card(), LayoutProfile.PROFILE_A)

    assert len(result.detection.boxes) == 3
    assert result.recognition is None
    assert not result.accepted
    assert factory.opened == [ModelKind.DETECTION]
    assert factory.sessions[0].closed


def test_blank_card_is_a_layout_mismatch(vocabulary):
    factory = _factory(vocabulary)
    blank = np.full((960, 1280, 3), 255, dtype=np.uint8)

    result = _orchestrator(factory, vocabulary).process_image(blank, "two_column")

    assert result.detection.boxes == []
    assert result.recognition is None


def test_detection_failure_propagates_and_closes_session(vocabulary):
    factory = _factory(vocabulary, detection=FailingSession)

    with pytest.raises(InferenceTaskError):
        _orchestrator(factory, vocabulary).process_image(
            render_sample_card(), LayoutProfile.PROFILE_A
        )

    assert factory.sessions[0].closed


def test_recognition_failure_yields_no_partial_result(vocabulary):
    factory = _factory(vocabulary, recognition=FailingSession)

    with pytest.raises(InferenceTaskError):
        _orchestrator(factory, vocabulary).process_image(
            render_sample_card(), LayoutProfile.PROFILE_A
        )

    assert factory.opened == [ModelKind.DETECTION, ModelKind.RECOGNITION]
    assert all(session.closed for session in factory.sessions)


def test_warmup_swallows_failures(vocabulary):
    factory = _factory(vocabulary, detection=FailingSession)

    assert _orchestrator(factory, vocabulary).warmup(2) == 0
    assert len(factory.sessions) == 2


def test_warmup_uses_configured_cycles(vocabulary):
    factory = _factory(vocabulary)

    assert _orchestrator(factory, vocabulary).warmup() == 1
    assert factory.opened == [ModelKind.DETECTION, ModelKind.RECOGNITION]
