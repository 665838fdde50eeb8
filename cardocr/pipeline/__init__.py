# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2024 CardOCR contributors

"""Card text extraction pipeline."""

from ..errors import CardOcrError, ContractViolation, InferenceTaskError
from .config import DEFAULT_PROFILES, LayoutRules, ProfileConfig, RuntimeSettings, profile_config
from .detection import detect, detection_output_to_mask, to_detection_tensor
from .fields import FieldType, classify_field, classify_fields
from .interfaces import NeuralSession, SessionFactory
from .layout import filter_boxes, filter_single_block, filter_two_column, reading_order
from .mocks import (
    CallbackRecognitionSession,
    DarknessDetectionSession,
    FailingSession,
    MockSessionFactory,
    one_hot_sequence,
)
from .models import (
    BoundingBox,
    DetectionResult,
    LayoutProfile,
    ModelKind,
    PipelineResult,
    RecognitionResult,
)
from .orchestrator import PipelineOrchestrator, prepare_working_image
from .recognition import BatchRecognizer, decode_batch, decode_sequence
from .regions import extract
from .scheduling import run_parallel, run_tiled, split_strips
from .sessions import OnnxSession, OnnxSessionFactory, describe_model, open_session
from .stitching import repair_seams, stitch
from .vocabulary import Vocabulary

__all__ = [
    "BatchRecognizer",
    "BoundingBox",
    "CallbackRecognitionSession",
    "CardOcrError",
    "ContractViolation",
    "DEFAULT_PROFILES",
    "DarknessDetectionSession",
    "DetectionResult",
    "FailingSession",
    "FieldType",
    "InferenceTaskError",
    "LayoutProfile",
    "LayoutRules",
    "MockSessionFactory",
    "ModelKind",
    "NeuralSession",
    "OnnxSession",
    "OnnxSessionFactory",
    "PipelineOrchestrator",
    "PipelineResult",
    "ProfileConfig",
    "RecognitionResult",
    "RuntimeSettings",
    "SessionFactory",
    "Vocabulary",
    "classify_field",
    "classify_fields",
    "decode_batch",
    "decode_sequence",
    "describe_model",
    "detect",
    "detection_output_to_mask",
    "extract",
    "filter_boxes",
    "filter_single_block",
    "filter_two_column",
    "one_hot_sequence",
    "open_session",
    "prepare_working_image",
    "profile_config",
    "reading_order",
    "repair_seams",
    "run_parallel",
    "run_tiled",
    "split_strips",
    "stitch",
    "to_detection_tensor",
]
