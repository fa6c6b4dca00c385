"""Data models for retroactive history reconstruction."""

from retrotrace.models.commit import CategoryType, Commit, CommitCategory, DiffMetadata, FileBuckets
from retrotrace.models.config import ReconstructionConfig, ScanConfig
from retrotrace.models.events import (
    EventMetadata,
    EventType,
    PatternCategory,
    ReconstructionResult,
    RetroactivePattern,
    SyntheticEvent,
)

__all__ = [
    "CategoryType",
    "Commit",
    "CommitCategory",
    "DiffMetadata",
    "FileBuckets",
    "EventMetadata",
    "EventType",
    "PatternCategory",
    "SyntheticEvent",
    "RetroactivePattern",
    "ReconstructionResult",
    "ReconstructionConfig",
    "ScanConfig",
]
