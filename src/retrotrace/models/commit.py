"""Data models for commits and their derived diff classification."""

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field

CategoryType = Literal["feature", "refactor", "fix", "config", "test", "docs", "unknown"]


class Commit(BaseModel):
    """A single commit read from the version-control log."""

    hash: str = Field(..., description="Full commit SHA hash")
    author: str = Field("unknown", description="Author name")
    timestamp: datetime = Field(..., description="Author timestamp, normalised to UTC")
    message: str = Field("", description="Commit subject line")
    files: List[str] = Field(default_factory=list, description="Changed file paths, in stat order")
    insertions: int = Field(0, ge=0, description="Number of lines added")
    deletions: int = Field(0, ge=0, description="Number of lines deleted")

    @property
    def short_hash(self) -> str:
        """Short commit SHA hash (7 chars)."""
        return self.hash[:7]

    @property
    def lines_changed(self) -> int:
        return self.insertions + self.deletions

    class Config:
        """Pydantic config."""
        json_schema_extra = {
            "example": {
                "hash": "3f2a9c1d7e8b4a6f0c5d2e1b9a8f7c6d5e4b3a21",
                "author": "Jane Doe",
                "timestamp": "2025-10-27T21:54:04Z",
                "message": "feat: add auth",
                "files": ["src/auth/login.py", "src/auth/session.py"],
                "insertions": 300,
                "deletions": 10,
            }
        }


class CommitCategory(BaseModel):
    """Semantic category inferred for one commit."""

    type: CategoryType = Field(..., description="Inferred category")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence of the classification")
    reasoning: str = Field(..., description="Short human-readable justification")


class FileBuckets(BaseModel):
    """Disjoint path buckets of a commit's changed files."""

    config: List[str] = Field(default_factory=list, description="Manifests, env and build config files")
    tests: List[str] = Field(default_factory=list, description="Test sources")
    code: List[str] = Field(default_factory=list, description="Everything not matched by another bucket")
    docs: List[str] = Field(default_factory=list, description="Documentation files")


class DiffMetadata(BaseModel):
    """Structural summary of a commit's diff."""

    total_files: int = Field(0, description="Number of changed files")
    total_lines_changed: int = Field(0, description="Insertions plus deletions")
    insertions: int = Field(0, description="Number of lines added")
    deletions: int = Field(0, description="Number of lines deleted")
    categories: FileBuckets = Field(default_factory=FileBuckets, description="Files grouped by kind")

    @property
    def has_config(self) -> bool:
        return bool(self.categories.config)

    @property
    def has_tests(self) -> bool:
        return bool(self.categories.tests)
