# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Pattern-based typing of recognized card strings."""
from __future__ import annotations

import re
from enum import Enum
from typing import List, Sequence

__all__ = ["FieldType", "classify_field", "classify_fields"]


class FieldType(str, Enum):
    IDENTITY_NUMBER = "identity_number"
    DATE_OF_BIRTH = "date_of_birth"
    UNKNOWN = "unknown"


_IDENTITY_NUMBER_RE = re.compile(r"^[0-9]{4}-[0-9]{4}-[0-9]{4}$")
_DATE_OF_BIRTH_RE = re.compile(r"^[A-Z][a-z]{3,8}-[0-9]{1,2}-[0-9]{4}$")


def classify_field(text: str) -> FieldType:
    """Identity numbers look like ``1234-5678-9012``; dates like ``March-05-1990``."""

    value = text.strip()
    if _IDENTITY_NUMBER_RE.match(value):
        return FieldType.IDENTITY_NUMBER
    if _DATE_OF_BIRTH_RE.match(value):
        return FieldType.DATE_OF_BIRTH
    return FieldType.UNKNOWN


def classify_fields(strings: Sequence[str]) -> List[FieldType]:
    return [classify_field(s) for s in strings]
