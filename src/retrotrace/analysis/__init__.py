"""Commit classification and confidence scoring."""

from retrotrace.analysis.classifier import (
    DEFAULT_RULES,
    ClassificationRule,
    CommitClassifier,
    CommitSignals,
    is_config_file,
    is_doc_file,
    is_test_file,
)
from retrotrace.analysis.confidence import (
    CONFIDENCE_CEILING,
    CONFIDENCE_FLOOR,
    ConfidenceEstimator,
    ConfidenceFactors,
    clamp_confidence,
)
from retrotrace.analysis.temporal import TemporalWeighter, months_between

__all__ = [
    "CommitClassifier",
    "ClassificationRule",
    "CommitSignals",
    "DEFAULT_RULES",
    "is_config_file",
    "is_test_file",
    "is_doc_file",
    "ConfidenceEstimator",
    "ConfidenceFactors",
    "clamp_confidence",
    "CONFIDENCE_FLOOR",
    "CONFIDENCE_CEILING",
    "TemporalWeighter",
    "months_between",
]
