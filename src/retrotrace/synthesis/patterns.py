"""Recurring-pattern inference over synthetic events."""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

import structlog

from retrotrace.models import PatternCategory, RetroactivePattern, SyntheticEvent

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PatternTemplate:
    """Fixed description of a pattern that can be promoted."""

    slug: str
    label: str
    confidence: float
    category: PatternCategory
    impact: str
    min_occurrences: int


CATEGORY_TEMPLATES: Dict[str, PatternTemplate] = {
    "feature": PatternTemplate(
        slug="feature-refactor",
        label="Feature addition → Refactor cycle",
        confidence=0.75,
        category="structural",
        impact="Maintainability",
        min_occurrences=3,
    ),
    "config": PatternTemplate(
        slug="config-fix",
        label="Configuration updates → Stability fixes",
        confidence=0.78,
        category="contextual",
        impact="Stability",
        min_occurrences=3,
    ),
    "fix": PatternTemplate(
        slug="fix-test",
        label="Bug fixes → Test additions",
        confidence=0.72,
        category="structural",
        impact="Quality",
        min_occurrences=3,
    ),
}

SEQUENCE_TEMPLATE = PatternTemplate(
    slug="feature-fix-test",
    label="Feature/Refactor → Fix → Test cycle",
    confidence=0.80,
    category="temporal",
    impact="Quality",
    min_occurrences=2,
)

# Window of three consecutive events: start, then fix, then test.
SEQUENCE_STEPS: Sequence[FrozenSet[str]] = (
    frozenset({"feature", "refactor"}),
    frozenset({"fix"}),
    frozenset({"test"}),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def chronological(events: Sequence[SyntheticEvent]) -> List[SyntheticEvent]:
    """Stable sort of events by timestamp, oldest first."""
    return sorted(events, key=lambda event: event.timestamp)


class PatternInferencer:
    """Mines synthetic events for category and sequence patterns."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self.clock = clock

    def infer_patterns(self, events: Sequence[SyntheticEvent]) -> List[RetroactivePattern]:
        """Infer patterns from a run's events.

        Returns:
            Category patterns (in first-seen category order) followed by the
            cross-category sequence pattern, if any
        """
        ordered = chronological(events)
        generated_at = self.clock()
        patterns: List[RetroactivePattern] = []

        for category, category_events in self.group_by_category(ordered).items():
            pattern = self.detect_category_pattern(category, category_events, generated_at)
            if pattern is not None:
                patterns.append(pattern)

        sequence = self.detect_sequence_pattern(ordered, generated_at)
        if sequence is not None:
            patterns.append(sequence)

        logger.info("patterns_inferred", events=len(ordered), patterns=len(patterns))
        return patterns

    def group_by_category(self, events: Sequence[SyntheticEvent]) -> Dict[str, List[SyntheticEvent]]:
        groups: Dict[str, List[SyntheticEvent]] = OrderedDict()
        for event in events:
            groups.setdefault(event.metadata.category, []).append(event)
        return groups

    def detect_category_pattern(
        self,
        category: str,
        events: Sequence[SyntheticEvent],
        generated_at: datetime,
    ) -> Optional[RetroactivePattern]:
        template = CATEGORY_TEMPLATES.get(category)
        if template is None or len(events) < template.min_occurrences:
            return None
        return self._build(template, len(events), events, generated_at)

    def find_sequence_windows(self, events: Sequence[SyntheticEvent]) -> List[List[SyntheticEvent]]:
        """All windows of three consecutive events matching the sequence steps."""
        width = len(SEQUENCE_STEPS)
        windows = []
        for start in range(len(events) - width + 1):
            window = list(events[start:start + width])
            if all(event.metadata.category in step for event, step in zip(window, SEQUENCE_STEPS)):
                windows.append(window)
        return windows

    def detect_sequence_pattern(
        self,
        events: Sequence[SyntheticEvent],
        generated_at: datetime,
    ) -> Optional[RetroactivePattern]:
        windows = self.find_sequence_windows(events)
        if len(windows) < SEQUENCE_TEMPLATE.min_occurrences:
            return None

        evidence: List[SyntheticEvent] = []
        seen = set()
        for window in windows:
            for event in window:
                if event.id not in seen:
                    seen.add(event.id)
                    evidence.append(event)
        return self._build(SEQUENCE_TEMPLATE, len(windows), evidence, generated_at)

    def _build(
        self,
        template: PatternTemplate,
        frequency: int,
        evidence: Sequence[SyntheticEvent],
        generated_at: datetime,
    ) -> RetroactivePattern:
        return RetroactivePattern(
            id=f"pat-retro-{template.slug}-{int(generated_at.timestamp() * 1000)}",
            pattern=template.label,
            frequency=frequency,
            confidence=template.confidence,
            first_seen=min(event.timestamp for event in evidence),
            last_seen=max(event.timestamp for event in evidence),
            evidence_ids=[event.id for event in evidence],
            category=template.category,
            impact=template.impact,
        )
