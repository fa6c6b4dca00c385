"""Data models for synthetic events, inferred patterns and run results."""

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

EventType = Literal["file_change", "decision_context", "config_update"]
PatternCategory = Literal["structural", "contextual", "temporal"]


class EventMetadata(BaseModel):
    """Metadata attached to a reconstructed event."""

    category: str = Field(..., description="Commit category the event was derived from")
    files: int = Field(0, description="Number of files changed by the source commit")
    lines_changed: int = Field(0, description="Lines changed by the source commit")
    author: str = Field(..., description="Author of the source commit")
    confidence: float = Field(..., ge=0.5, le=0.95, description="Plausibility score")
    synthetic: bool = Field(True, description="Always true for reconstructed events")
    commit_hash: str = Field(..., description="Full hash of the source commit")
    reasoning: str = Field("", description="Why the commit was classified this way")


class SyntheticEvent(BaseModel):
    """An activity record reconstructed from a commit rather than observed."""

    id: str = Field(..., description="Deterministic id: retro-<epoch ms>-<hash prefix>")
    timestamp: datetime = Field(..., description="Timestamp of the source commit")
    type: EventType = Field(..., description="Coarse event type derived from the category")
    source: str = Field(..., description="commit:<hash>")
    metadata: EventMetadata

    class Config:
        """Pydantic config."""
        json_schema_extra = {
            "example": {
                "id": "retro-1761602044000-3f2a9c1",
                "timestamp": "2025-10-27T21:54:04Z",
                "type": "decision_context",
                "source": "commit:3f2a9c1d7e8b4a6f0c5d2e1b9a8f7c6d5e4b3a21",
                "metadata": {
                    "category": "feature",
                    "files": 8,
                    "lines_changed": 310,
                    "author": "Jane Doe",
                    "confidence": 0.71,
                    "synthetic": True,
                    "commit_hash": "3f2a9c1d7e8b4a6f0c5d2e1b9a8f7c6d5e4b3a21",
                    "reasoning": "Feature-related keywords detected",
                },
            }
        }


class RetroactivePattern(BaseModel):
    """A recurring behaviour promoted from a group of synthetic events.

    Attributes use snake_case; the persisted pattern store uses the
    camelCase keys ``firstSeen``, ``lastSeen`` and ``evidenceIds``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Pattern id embedding its generation time")
    pattern: str = Field(..., description="Human-readable pattern label")
    frequency: int = Field(..., ge=2, description="Occurrence or window count")
    confidence: float = Field(..., description="Fixed confidence of the pattern template")
    first_seen: datetime = Field(..., alias="firstSeen", description="Earliest evidence timestamp")
    last_seen: datetime = Field(..., alias="lastSeen", description="Latest evidence timestamp")
    evidence_ids: List[str] = Field(default_factory=list, alias="evidenceIds", description="Supporting event ids")
    category: PatternCategory = Field(..., description="structural, contextual or temporal")
    impact: str = Field(..., description="Impact label")


class ReconstructionResult(BaseModel):
    """Summary of one reconstruction run."""

    commits_analyzed: int = Field(0, description="Commits returned by the scanner")
    events_generated: int = Field(0, description="Synthetic events produced")
    patterns_detected: int = Field(0, description="Patterns inferred")
    average_confidence: float = Field(0.0, description="Mean event confidence, 0.0 without events")
    summary: str = Field("", description="Human-readable summary")
    warnings: List[str] = Field(default_factory=list, description="Stages that degraded during the run")
