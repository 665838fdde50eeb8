# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""JSON serialization helpers."""

from __future__ import annotations

import dataclasses
import enum
import numbers
from pathlib import PurePath
from typing import Any

import numpy as np
from pydantic import BaseModel


def json_ready(obj: Any):
    """Return a JSON-serializable representation of ``obj``.

    Pydantic models, dataclasses, enums, paths, numpy arrays and scalars are
    converted recursively. Large image arrays are summarised by shape and
    dtype instead of being expanded into nested lists.
    """

    if obj is None or isinstance(obj, (bool, int, float, str)):
        if isinstance(obj, enum.Enum):
            return obj.value
        return obj

    if isinstance(obj, enum.Enum):
        return json_ready(obj.value)

    if isinstance(obj, BaseModel):
        return json_ready(obj.model_dump())

    if isinstance(obj, dict):
        return {str(k): json_ready(v) for k, v in obj.items()}

    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return json_ready(dataclasses.asdict(obj))

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [json_ready(v) for v in obj]

    if isinstance(obj, PurePath):
        return obj.as_posix()

    if isinstance(obj, np.generic):
        return obj.item()

    if isinstance(obj, np.ndarray):
        if obj.ndim >= 2:
            return {"shape": list(obj.shape), "dtype": str(obj.dtype)}
        return obj.tolist()

    if isinstance(obj, numbers.Number):
        return float(obj)

    if isinstance(obj, (bytes, bytearray)):
        return obj.decode("utf-8", errors="replace")

    return str(obj)


__all__ = ["json_ready"]
