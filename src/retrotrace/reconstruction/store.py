"""Persistence for reconstructed events and patterns.

Events live in one JSON array per UTC day under ``<reasoning_dir>/traces/``;
patterns live in ``<reasoning_dir>/patterns.json``. Both stores are merged
into, never truncated.
"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog
from pydantic import BaseModel, Field

from retrotrace.models import RetroactivePattern, SyntheticEvent

logger = structlog.get_logger(__name__)


class PatternStoreDocument(BaseModel):
    """Root document of the pattern store."""

    patterns: List[Dict[str, Any]] = Field(default_factory=list, description="All stored patterns")
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Time of the last write",
    )
    version: str = Field("1.0", description="Pattern store format version")
    synthetic: bool = Field(False, description="Whether the last write added synthetic patterns")


class CorruptBucketError(ValueError):
    """Raised when an existing store file is not valid JSON of the expected shape."""


def _is_synthetic(record: Any) -> bool:
    if not isinstance(record, dict):
        return False
    metadata = record.get("metadata")
    return isinstance(metadata, dict) and metadata.get("synthetic") is True


class TraceStore:
    """File-based event and pattern store."""

    def __init__(self, reasoning_dir: Path) -> None:
        """Initialize the store.

        Args:
            reasoning_dir: Root directory holding ``traces/`` and ``patterns.json``
        """
        self.reasoning_dir = Path(reasoning_dir)
        self.traces_dir = self.reasoning_dir / "traces"
        self.patterns_file = self.reasoning_dir / "patterns.json"

    def day_file(self, date_key: str) -> Path:
        return self.traces_dir / f"{date_key}.json"

    def list_day_files(self) -> List[Path]:
        if not self.traces_dir.is_dir():
            return []
        return sorted(self.traces_dir.glob("*.json"))

    def load_day(self, date_key: str) -> List[Any]:
        """Load one day bucket; a missing bucket is empty.

        Raises:
            CorruptBucketError: If the file exists but is not a JSON array
        """
        return self._load_array(self.day_file(date_key))

    def has_observed_events(self) -> bool:
        """True if any day bucket holds at least one non-synthetic event.

        Unreadable buckets are ignored.
        """
        for path in self.list_day_files():
            try:
                records = self._load_array(path)
            except (CorruptBucketError, OSError) as e:
                logger.warning("trace_bucket_unreadable", path=str(path), error=str(e))
                continue
            if any(not _is_synthetic(record) for record in records):
                return True
        return False

    def merge_events(self, events_by_date: Mapping[str, Sequence[SyntheticEvent]]) -> int:
        """Prepend synthetic events to their day buckets.

        Events whose commit already has a synthetic event in the bucket are
        not written again. Corrupt buckets are left untouched.

        Returns:
            Number of events written

        Raises:
            OSError: If any day bucket could not be read or written; the
                remaining buckets are still merged first
        """
        written = 0
        first_error: Optional[OSError] = None
        for key, events in events_by_date.items():
            path = self.day_file(key)
            try:
                written += self._merge_day(path, events)
            except CorruptBucketError as e:
                logger.warning("trace_bucket_skipped", path=str(path), error=str(e))
            except OSError as e:
                logger.warning("trace_bucket_write_failed", path=str(path), error=str(e))
                if first_error is None:
                    first_error = e

        logger.info("events_persisted", written=written, days=len(events_by_date))
        if first_error is not None:
            raise first_error
        return written

    def _merge_day(self, path: Path, events: Sequence[SyntheticEvent]) -> int:
        existing = self._load_array(path)
        known_commits = {
            record["metadata"].get("commit_hash") for record in existing if _is_synthetic(record)
        }
        fresh = [
            event.model_dump(mode="json")
            for event in events
            if event.metadata.commit_hash not in known_commits
        ]
        if not fresh:
            return 0

        self._write_json(path, fresh + existing)
        return len(fresh)

    def load_patterns(self) -> PatternStoreDocument:
        """Load the pattern store, or an empty document if there is none.

        Raises:
            CorruptBucketError: If the file exists but cannot be parsed
        """
        if not self.patterns_file.exists():
            return PatternStoreDocument()
        try:
            with open(self.patterns_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            return PatternStoreDocument(**data)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise CorruptBucketError(f"Unreadable pattern store {self.patterns_file}: {e}") from e

    def merge_patterns(self, patterns: Sequence[RetroactivePattern]) -> int:
        """Append patterns to the store, keeping every existing one.

        Returns:
            Total number of stored patterns

        Raises:
            CorruptBucketError: If the existing store cannot be parsed
            OSError: If the store cannot be written
        """
        document = self.load_patterns()
        document.patterns.extend(p.model_dump(mode="json", by_alias=True) for p in patterns)
        document.generated_at = datetime.now(timezone.utc)
        document.synthetic = len(patterns) > 0

        self._write_json(self.patterns_file, document.model_dump(mode="json"))
        logger.info("patterns_persisted", added=len(patterns), total=len(document.patterns))
        return len(document.patterns)

    def _load_array(self, path: Path) -> List[Any]:
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptBucketError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, list):
            raise CorruptBucketError(f"Expected a JSON array in {path}")
        return data

    def _write_json(self, path: Path, payload: Any) -> None:
        """Write JSON using a temporary file and rename."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".json.tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
