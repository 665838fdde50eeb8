# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Exception hierarchy for the extraction pipeline."""
from __future__ import annotations

from typing import Optional

__all__ = ["CardOcrError", "ContractViolation", "InferenceTaskError"]


class CardOcrError(Exception):
    """Base class for errors raised by CardOCR."""


class ContractViolation(CardOcrError, ValueError):
    """A caller broke a shape or bounds precondition.

    Raised for image widths that do not divide into the requested tile count,
    crop boxes outside the image, tiles of unequal height and similar misuse.
    Nothing is corrected silently.
    """


class InferenceTaskError(CardOcrError, RuntimeError):
    """A task inside a parallel inference phase failed."""

    def __init__(self, message: str, *, task_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.task_index = task_index
