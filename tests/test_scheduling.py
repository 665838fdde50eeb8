# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

import threading
import time

import numpy as np
import pytest

from cardocr.errors import ContractViolation, InferenceTaskError
from cardocr.pipeline import run_parallel, run_tiled, split_strips


def test_run_parallel_assembles_results_by_index():
    def slow_square(n):
        # Later items finish first.
        time.sleep(0.01 * (5 - n))
        return n * n

    assert run_parallel(slow_square, [0, 1, 2, 3, 4]) == [0, 1, 4, 9, 16]


def test_run_parallel_empty_input_returns_empty_list():
    assert run_parallel(lambda item: item, []) == []


def test_run_parallel_failure_is_fatal_and_chained():
    def maybe_fail(n):
        if n == 2:
            raise RuntimeError("tile exploded")
        return n

    with pytest.raises(InferenceTaskError) as info:
        run_parallel(maybe_fail, [0, 1, 2, 3], phase="detection")

    assert info.value.task_index == 2
    assert isinstance(info.value.__cause__, RuntimeError)
    assert "detection task 2" in str(info.value)


def test_run_parallel_caps_worker_count():
    active = []
    peak = []
    lock = threading.Lock()

    def track(n):
        with lock:
            active.append(n)
            peak.append(len(active))
        time.sleep(0.02)
        with lock:
            active.remove(n)
        return n

    assert run_parallel(track, list(range(6)), max_workers=2) == list(range(6))
    assert max(peak) <= 2


def test_split_strips_requires_divisible_width():
    image = np.zeros((10, 10, 3), dtype=np.uint8)
    with pytest.raises(ContractViolation):
        split_strips(image, 4)
    # Contract violations are value errors for callers that only know builtins.
    with pytest.raises(ValueError):
        split_strips(image, 0)


def test_run_tiled_returns_strips_left_to_right():
    image = np.zeros((4, 12, 3), dtype=np.uint8)
    for index in range(4):
        image[:, index * 3 : (index + 1) * 3] = index

    seen = run_tiled(image, 4, lambda strip: (strip.shape, int(strip[0, 0, 0])))

    assert [value for _shape, value in seen] == [0, 1, 2, 3]
    assert all(shape == (4, 3, 3) for shape, _value in seen)
