# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Interfaces for the neural-network collaborators."""
from __future__ import annotations

from typing import Protocol

import numpy as np

from .models import ModelKind


class NeuralSession(Protocol):
    """A loaded model: one float tensor in, one float tensor out."""

    def run(self, tensor: np.ndarray) -> np.ndarray:
        ...

    def close(self) -> None:
        ...


class SessionFactory(Protocol):
    def __call__(self, kind: ModelKind) -> NeuralSession:
        ...
