"""Shared fixtures for retrotrace tests."""

import hashlib
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import git
import pytest

from retrotrace.models import Commit, EventMetadata, SyntheticEvent

NOW = datetime(2025, 11, 1, 12, 0, 0, tzinfo=timezone.utc)


def _fake_hash(seed: str) -> str:
    return hashlib.sha1(seed.encode()).hexdigest()


@pytest.fixture
def now() -> datetime:
    """Fixed reference time used as the clock in tests."""
    return NOW


@pytest.fixture
def make_commit():
    """Factory for Commit models dated relative to NOW."""

    def _make(
        message: str,
        files: List[str],
        insertions: int = 0,
        deletions: int = 0,
        days_ago: float = 10,
        commit_hash: Optional[str] = None,
        author: str = "Test User",
    ) -> Commit:
        return Commit(
            hash=commit_hash or _fake_hash(f"{message}-{days_ago}-{len(files)}"),
            author=author,
            timestamp=NOW - timedelta(days=days_ago),
            message=message,
            files=files,
            insertions=insertions,
            deletions=deletions,
        )

    return _make


@pytest.fixture
def make_event():
    """Factory for SyntheticEvent models dated relative to NOW."""

    def _make(category: str, days_ago: float, confidence: float = 0.7) -> SyntheticEvent:
        commit_hash = _fake_hash(f"{category}-{days_ago}")
        timestamp = NOW - timedelta(days=days_ago)
        return SyntheticEvent(
            id=f"retro-{int(timestamp.timestamp() * 1000)}-{commit_hash[:7]}",
            timestamp=timestamp,
            type="decision_context",
            source=f"commit:{commit_hash}",
            metadata=EventMetadata(
                category=category,
                files=6,
                lines_changed=80,
                author="Test User",
                confidence=confidence,
                synthetic=True,
                commit_hash=commit_hash,
                reasoning="test fixture",
            ),
        )

    return _make


@pytest.fixture
def test_repo(tmp_path):
    """Create a temporary Git repository with three commits."""
    repo_path = Path(tmp_path) / "repo"
    repo_path.mkdir()
    repo = git.Repo.init(repo_path)

    # Configure git
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    # Create initial commit
    (repo_path / "README.md").write_text("# Test Project\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Create second commit
    (repo_path / "main.py").write_text("def hello():\n    print('Hello, World!')\n")
    repo.index.add(["main.py"])
    repo.index.commit("Add main.py")

    # Create third commit
    (repo_path / "main.py").write_text("def hello():\n    print('Hello, retrotrace!')\n")
    repo.index.add(["main.py"])
    repo.index.commit("Fix: Update hello message")

    yield repo_path
