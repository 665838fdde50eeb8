# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Command-line entry for reading a single card photo.

Wires the ONNX detector and recognizer (or deterministic mocks) into a
:class:`PipelineOrchestrator` and prints the extracted fields as JSON.
"""
from __future__ import annotations

import argparse
import json
import string
from pathlib import Path
from typing import Any, Dict, Sequence

from PIL import Image

from ..utils.json_utils import json_ready
from ..utils.log import configure_logging
from .config import RuntimeSettings
from .fields import classify_fields
from .mocks import CallbackRecognitionSession, DarknessDetectionSession, MockSessionFactory
from .models import LayoutProfile, PipelineResult
from .orchestrator import PipelineOrchestrator
from .sessions import OnnxSessionFactory
from .vocabulary import Vocabulary

MOCK_TEXT = "SAMPLE FIELD"


def build_orchestrator(
    *,
    use_mocks: bool = False,
    det_model: str | None = None,
    rec_model: str | None = None,
    vocab: str | None = None,
    settings: RuntimeSettings | None = None,
) -> PipelineOrchestrator:
    settings = settings or RuntimeSettings.from_env()
    if use_mocks:
        vocabulary = (
            Vocabulary.from_file(vocab)
            if vocab
            else Vocabulary(string.ascii_uppercase + string.ascii_lowercase + string.digits)
        )
        factory = MockSessionFactory(
            detection=DarknessDetectionSession,
            recognition=lambda: CallbackRecognitionSession(vocabulary, lambda _item: MOCK_TEXT),
        )
        return PipelineOrchestrator(factory, vocabulary, settings=settings)

    if not (det_model and rec_model and vocab):
        raise SystemExit("Provide --det-model, --rec-model and --vocab (or --use-mocks)")
    vocabulary = Vocabulary.from_file(vocab)
    factory = OnnxSessionFactory(det_model, rec_model, settings=settings)
    return PipelineOrchestrator(factory, vocabulary, settings=settings)


def result_payload(result: PipelineResult) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "profile": result.profile,
        "accepted": result.accepted,
        "boxes": result.detection.boxes,
        "detect_ms": result.detection.duration_ms,
        "fields": None,
    }
    if result.recognition is not None:
        payload["recognize_ms"] = result.recognition.duration_ms
        payload["fields"] = [
            {"box_index": index, "text": text, "type": kind}
            for index, text, kind in zip(
                result.recognition.box_indices,
                result.recognition.strings,
                classify_fields(result.recognition.strings),
            )
        ]
    return json_ready(payload)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Extract text fields from an ID card photo")
    parser.add_argument("--image", required=True, help="Card photo to read")
    parser.add_argument("--det-model", help="ONNX text detection model")
    parser.add_argument("--rec-model", help="ONNX text recognition model")
    parser.add_argument("--vocab", help="Recognition dictionary, one token per line")
    parser.add_argument(
        "--profile",
        default=LayoutProfile.PROFILE_A.value,
        choices=[p.value for p in LayoutProfile],
        help="Card layout profile",
    )
    parser.add_argument(
        "--warmup",
        type=int,
        default=None,
        help="Warm-up cycles before reading (default: CARDOCR_WARMUP_CYCLES)",
    )
    parser.add_argument("--out", default="-", help="Output file path or '-' for stdout")
    parser.add_argument("--log-level", default=None, help="Override CARDOCR_LOG_LEVEL")
    parser.add_argument(
        "--use-mocks",
        action="store_true",
        help="Use deterministic mock sessions instead of ONNX models",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(args.log_level)

    orchestrator = build_orchestrator(
        use_mocks=args.use_mocks,
        det_model=args.det_model,
        rec_model=args.rec_model,
        vocab=args.vocab,
    )
    orchestrator.warmup(args.warmup, profile=LayoutProfile(args.profile))

    with Image.open(Path(args.image).as_posix()) as image:
        result = orchestrator.process_image(image, LayoutProfile(args.profile))

    text = json.dumps(result_payload(result), ensure_ascii=False, indent=2)
    if args.out == "-":
        print(text)
    else:
        Path(args.out).write_text(text, encoding="utf-8")
    return 0 if result.accepted else 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
