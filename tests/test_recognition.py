# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

import numpy as np
import pytest

from cardocr.errors import ContractViolation, InferenceTaskError
from cardocr.pipeline import (
    BatchRecognizer,
    CallbackRecognitionSession,
    FailingSession,
    Vocabulary,
    decode_batch,
    decode_sequence,
)
from cardocr.pipeline.recognition import pad_batch, prepare_crop, split_chunks


def _grid(classes, num_classes, confidence=0.9):
    grid = np.full((len(classes), num_classes), (1.0 - confidence) / (num_classes - 1), dtype=np.float32)
    for position, index in enumerate(classes):
        grid[position, index] = confidence
    return grid


ABC = Vocabulary(["A", "B", "C"])


def test_blank_between_repeats_is_dropped():
    assert decode_sequence(_grid([0, 1, 1, 0, 2], 4), ABC, 0.25) == "AAB"


def test_separator_class_is_collapsed_and_trimmed():
    sep = 4
    assert decode_sequence(_grid([1, sep, sep, 2], 5), ABC, 0.25) == "A B"
    assert decode_sequence(_grid([sep, 1, 2, sep], 5), ABC, 0.25) == "AB"


def test_whitespace_token_acts_as_separator():
    vocabulary = Vocabulary(["A", " ", "B"])
    assert decode_sequence(_grid([1, 2, 2, 0, 2, 3], 4), vocabulary, 0.25) == "A B"


def test_low_confidence_tokens_are_skipped():
    grid = _grid([1, 2, 3], 4)
    grid[1] = [0.1, 0.15, 0.2, 0.15]
    assert decode_sequence(grid, ABC, 0.25) == "AC"
    assert decode_sequence(grid, ABC, 0.0) == "ABC"


def test_single_character_and_empty_sequences_are_noise():
    assert decode_sequence(_grid([0, 1, 0], 4), ABC, 0.25) is None
    assert decode_sequence(_grid([0, 0, 0], 4), ABC, 0.25) is None
    assert decode_sequence(_grid([4, 1, 4], 5), ABC, 0.25) is None


def test_decoded_text_never_has_double_separators():
    rng = np.random.RandomState(3)
    vocabulary = Vocabulary(["A", " ", "B", "C"])
    output = rng.dirichlet(np.ones(7), size=(64, 30)).astype(np.float32)

    for text in decode_batch(output, vocabulary, 0.1):
        if text is not None:
            assert "  " not in text
            assert text == text.strip(" ")


def test_decode_batch_validates_shape():
    with pytest.raises(ContractViolation):
        decode_batch(np.zeros((3, 4)), ABC, 0.25)
    with pytest.raises(ContractViolation):
        decode_batch(np.zeros((1, 5, 3)), ABC, 0.25)


def test_split_chunks_never_exceeds_item_count():
    assert split_chunks(10, 3) == [(0, 4), (4, 8), (8, 10)]
    assert split_chunks(2, 8) == [(0, 1), (1, 2)]
    assert split_chunks(0, 4) == []


def test_prepare_crop_keeps_aspect_ratio():
    crop = np.full((20, 100, 3), 255, dtype=np.uint8)

    tensor = prepare_crop(crop)
    squashed = prepare_crop(crop, max_width=100)

    assert tensor.shape == (3, 48, 240)
    assert tensor.dtype == np.float32
    assert float(tensor.max()) == pytest.approx(1.0)
    assert squashed.shape == (3, 48, 100)


def test_pad_batch_zero_fills_to_widest():
    batch = pad_batch([np.ones((3, 48, 5), np.float32), np.ones((3, 48, 9), np.float32)])

    assert batch.shape == (2, 3, 48, 9)
    assert not batch[0, :, :, 5:].any()
    assert batch[1].all()


def _content_width(item):
    return int(np.count_nonzero(item[0].max(axis=0) > 0))


def _crops(widths):
    return [np.full((48, w, 3), 200, dtype=np.uint8) for w in widths]


def test_recognize_preserves_crop_order_across_chunks(vocabulary):
    widths = [60, 70, 80, 90, 100, 110, 120]
    session = CallbackRecognitionSession(vocabulary, lambda item: f"W{_content_width(item)}")

    result = BatchRecognizer(chunks=3).recognize(_crops(widths), session, vocabulary)

    assert result.strings == [f"W{w}" for w in widths]
    assert result.box_indices == list(range(len(widths)))
    assert sorted(session.batch_sizes) == [1, 3, 3]
    assert result.duration_ms >= 0.0


def test_recognize_drops_noise_and_tracks_box_indices(vocabulary):
    widths = [60, 70, 80]
    texts = {60: "AB12", 70: "X", 80: "CD34"}
    session = CallbackRecognitionSession(vocabulary, lambda item: texts[_content_width(item)])

    result = BatchRecognizer(chunks=2).recognize(_crops(widths), session, vocabulary)

    assert result.strings == ["AB12", "CD34"]
    assert result.box_indices == [0, 2]
    assert len(result.strings) <= len(widths)


def test_recognize_empty_input_skips_session(vocabulary):
    session = CallbackRecognitionSession(vocabulary, lambda item: "never")

    result = BatchRecognizer().recognize([], session, vocabulary)

    assert result.strings == []
    assert session.batch_sizes == []


def test_recognize_propagates_chunk_failure(vocabulary):
    with pytest.raises(InferenceTaskError):
        BatchRecognizer(chunks=2).recognize(_crops([60, 70]), FailingSession(), vocabulary)


def test_recognizer_rejects_out_of_range_threshold():
    with pytest.raises(ValueError):
        BatchRecognizer(confidence_threshold=1.5)
