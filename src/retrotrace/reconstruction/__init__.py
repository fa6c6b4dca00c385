"""End-to-end reconstruction and persistence."""

from retrotrace.reconstruction.orchestrator import ReconstructionOrchestrator, average_confidence, build_summary
from retrotrace.reconstruction.store import CorruptBucketError, PatternStoreDocument, TraceStore

__all__ = [
    "ReconstructionOrchestrator",
    "average_confidence",
    "build_summary",
    "TraceStore",
    "PatternStoreDocument",
    "CorruptBucketError",
]
