# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Unified CLI entry point for CardOCR.

``python -m cardocr`` with no arguments shows the ``extract`` usage; options
given without a command are handed to ``extract``.
"""
from __future__ import annotations

import importlib
import sys
from typing import Dict, Sequence, Tuple

from ._version import __version__

_COMMANDS: Dict[str, Tuple[str, str]] = {
    "extract": ("cardocr.pipeline.cli", "Read the fields of one card photo (default)"),
    "inspect": ("cardocr.pipeline.model_info", "Print input/output signatures of ONNX models"),
}

_DEFAULT_COMMAND = "extract"


def _print_help() -> None:
    lines = [f"cardocr {__version__}", "", "Usage:", "  python -m cardocr <command> [args...]", ""]
    lines.append("Commands:")
    for name, (_module, summary) in _COMMANDS.items():
        lines.append(f"  {name:<10}{summary}")
    lines.append(f"  {'version':<10}Print the package version")
    lines.append("")
    lines.append("Run `python -m cardocr <command> --help` for command options.")
    print("\n".join(lines))


def _dispatch(command: str, argv: Sequence[str]) -> int:
    module = importlib.import_module(_COMMANDS[command][0])
    return int(module.main(list(argv)))


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        return _dispatch(_DEFAULT_COMMAND, ["--help"])
    cmd, rest = args[0], args[1:]
    if cmd in {"-h", "--help", "help"}:
        _print_help()
        return 0
    if cmd in {"version", "--version"}:
        print(__version__)
        return 0
    if cmd.startswith("-"):
        cmd, rest = _DEFAULT_COMMAND, args
    if cmd not in _COMMANDS:
        print(f"cardocr: unknown command {cmd!r}", file=sys.stderr)
        _print_help()
        return 2
    return _dispatch(cmd, rest)


if __name__ == "__main__":
    raise SystemExit(main())
