# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Recognition vocabulary (character dictionary)."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from ..errors import ContractViolation

__all__ = ["Vocabulary"]


class Vocabulary:
    """Ordered tokens indexed from 1; class 0 is the CTC blank.

    Lines are kept verbatim apart from the line terminator, so a line holding
    a single space is the space token.
    """

    def __init__(self, tokens: Iterable[str]) -> None:
        self._tokens: List[str] = list(tokens)
        if not self._tokens:
            raise ContractViolation("vocabulary is empty")

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Vocabulary":
        r"""Load one token per line; line ``i`` becomes class ``i + 1``.

        Only ``\n`` separates lines (a trailing ``\r`` is dropped), so form
        feeds and other exotic line breaks stay inside their token. Empty
        interior lines keep their slot; only the empty tail after a final
        newline is discarded.
        """

        text = Path(path).read_bytes().decode("utf-8")
        lines = [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]
        if lines and lines[-1] == "":
            lines.pop()
        return cls(lines)

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __getitem__(self, index: int) -> str:
        return self._tokens[index]

    def token_for_class(self, class_index: int) -> Optional[str]:
        """Token for a raw model class, or ``None`` for blank/separator classes."""

        if 1 <= class_index <= len(self._tokens):
            return self._tokens[class_index - 1]
        return None

    def class_for_token(self, token: str) -> int:
        return self._tokens.index(token) + 1
