# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Print the input/output signature of ONNX models."""
from __future__ import annotations

import argparse
import json
from typing import Sequence

from .sessions import describe_model


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Describe ONNX model inputs and outputs")
    parser.add_argument(
        "--model",
        dest="models",
        action="append",
        required=True,
        help=".onnx file to describe (repeatable)",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    report = {path: describe_model(path) for path in args.models}
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
