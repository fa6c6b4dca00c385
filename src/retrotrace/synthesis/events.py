"""Synthetic event generation from commits."""

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from retrotrace.analysis import (
    CommitClassifier,
    ConfidenceEstimator,
    TemporalWeighter,
    clamp_confidence,
    months_between,
)
from retrotrace.models import Commit, CommitCategory, DiffMetadata, EventMetadata, EventType, SyntheticEvent

logger = structlog.get_logger(__name__)

Occurrences = Mapping[str, int]

EVENT_TYPES: Dict[str, EventType] = {
    "config": "config_update",
    "feature": "decision_context",
    "refactor": "decision_context",
    "fix": "decision_context",
}


def event_type_for(category: str) -> EventType:
    return EVENT_TYPES.get(category, "file_change")


def pattern_key(category: CommitCategory, file_count: int) -> str:
    return f"{category.type}-{file_count}"


def date_key(timestamp: datetime) -> str:
    """UTC day key (``YYYY-MM-DD``) used for day-partitioned storage."""
    return timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventSynthesizer:
    """Turns commits into confidence-scored synthetic events."""

    def __init__(
        self,
        classifier: Optional[CommitClassifier] = None,
        estimator: Optional[ConfidenceEstimator] = None,
        weighter: Optional[TemporalWeighter] = None,
        max_age_months: float = 24,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the synthesizer.

        Args:
            classifier: Commit classifier (default: CommitClassifier())
            estimator: Confidence estimator (default: ConfidenceEstimator())
            weighter: Temporal weighter (default: decay rate 0.02)
            max_age_months: Commits older than this produce no event
            clock: Returns the reference "now" for age computations
        """
        self.classifier = classifier or CommitClassifier()
        self.estimator = estimator or ConfidenceEstimator()
        self.weighter = weighter or TemporalWeighter(0.02)
        self.max_age_months = max_age_months
        self.clock = clock

    def synthesize_events(self, commits: Sequence[Commit]) -> List[SyntheticEvent]:
        """Generate events for commits, in the order given.

        Too-old and insignificant commits are skipped. Repeated pattern keys
        raise confidence through a per-call occurrence counter.
        """
        reference = self.clock()
        occurrences: Occurrences = {}
        events: List[SyntheticEvent] = []

        for commit in commits:
            occurrences, event = self.synthesize_event(commit, occurrences, reference)
            if event is not None:
                events.append(event)

        logger.info("events_synthesized", commits=len(commits), events=len(events))
        return events

    def synthesize_event(
        self,
        commit: Commit,
        occurrences: Occurrences,
        reference: datetime,
    ) -> Tuple[Occurrences, Optional[SyntheticEvent]]:
        """One fold step: returns the updated counter and the event, if any.

        ``occurrences`` is never mutated.
        """
        if self.weighter.is_too_old(commit.timestamp, self.max_age_months, reference):
            logger.debug("commit_too_old", commit_hash=commit.short_hash)
            return occurrences, None

        category = self.classifier.classify(commit.message, commit.files, commit.lines_changed)
        metadata = self.classifier.extract_metadata(commit.files, commit.insertions, commit.deletions)
        if not self.classifier.is_significant(metadata):
            logger.debug("commit_not_significant", commit_hash=commit.short_hash, category=category.type)
            return occurrences, None

        key = pattern_key(category, len(commit.files))
        seen = occurrences.get(key, 0)
        months = max(0.0, months_between(commit.timestamp, reference))

        confidence = self.estimator.estimate(metadata, seen, months)
        confidence = self.estimator.adjust_for_category(confidence, metadata.has_config, metadata.has_tests)
        weight = self.weighter.calculate_weight(commit.timestamp, reference)
        confidence = clamp_confidence(self.weighter.adjust_confidence(confidence, weight))

        updated = dict(occurrences)
        updated[key] = seen + 1
        return updated, self.create_event(commit, category, metadata, confidence)

    def create_event(
        self,
        commit: Commit,
        category: CommitCategory,
        metadata: DiffMetadata,
        confidence: float,
    ) -> SyntheticEvent:
        epoch_ms = int(commit.timestamp.timestamp() * 1000)
        return SyntheticEvent(
            id=f"retro-{epoch_ms}-{commit.short_hash}",
            timestamp=commit.timestamp,
            type=event_type_for(category.type),
            source=f"commit:{commit.hash}",
            metadata=EventMetadata(
                category=category.type,
                files=metadata.total_files,
                lines_changed=metadata.total_lines_changed,
                author=commit.author,
                confidence=confidence,
                synthetic=True,
                commit_hash=commit.hash,
                reasoning=category.reasoning,
            ),
        )

    def group_events_by_date(self, events: Sequence[SyntheticEvent]) -> Dict[str, List[SyntheticEvent]]:
        """Group events by UTC day, keeping their relative order."""
        groups: Dict[str, List[SyntheticEvent]] = OrderedDict()
        for event in events:
            groups.setdefault(date_key(event.timestamp), []).append(event)
        return groups
