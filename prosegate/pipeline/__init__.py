"""Pipeline controller, correction merger and fallback prose."""

from prosegate.pipeline.merger import (
    RejectedCorrection,
    MergeOutcome,
    coerce_value,
    apply_corrections,
    missing_tokens,
    merge_corrections,
)
from prosegate.pipeline.fallback import build_fallback_bundle
from prosegate.pipeline.controller import PipelineController

__all__ = [
    "RejectedCorrection",
    "MergeOutcome",
    "coerce_value",
    "apply_corrections",
    "missing_tokens",
    "merge_corrections",
    "build_fallback_bundle",
    "PipelineController",
]
