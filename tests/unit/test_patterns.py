"""Unit tests for pattern inference."""

import pytest

from retrotrace.synthesis import PatternInferencer


@pytest.fixture
def inferencer(now):
    return PatternInferencer(clock=lambda: now)


def sequence(make_event, categories, start_days_ago=60, step_days=2):
    """Events for the given categories, oldest first."""
    return [
        make_event(category, days_ago=start_days_ago - i * step_days)
        for i, category in enumerate(categories)
    ]


class TestCategoryPatterns:
    """Tests for per-category pattern promotion."""

    def test_three_feature_events(self, inferencer, make_event):
        events = [make_event("feature", days_ago=d) for d in (30, 20, 10)]

        patterns = inferencer.infer_patterns(events)

        assert len(patterns) == 1
        pattern = patterns[0]
        assert "Feature addition" in pattern.pattern
        assert pattern.category == "structural"
        assert pattern.frequency == 3
        assert pattern.confidence == 0.75
        assert pattern.impact == "Maintainability"
        assert pattern.evidence_ids == [e.id for e in events]
        assert pattern.first_seen == events[0].timestamp
        assert pattern.last_seen == events[-1].timestamp

    def test_two_feature_events_are_not_enough(self, inferencer, make_event):
        events = [make_event("feature", days_ago=d) for d in (20, 10)]

        assert inferencer.infer_patterns(events) == []

    def test_config_pattern(self, inferencer, make_event):
        events = [make_event("config", days_ago=d) for d in (9, 6, 3)]

        patterns = inferencer.infer_patterns(events)

        assert len(patterns) == 1
        assert patterns[0].pattern == "Configuration updates → Stability fixes"
        assert patterns[0].category == "contextual"
        assert patterns[0].confidence == 0.78

    def test_fix_pattern(self, inferencer, make_event):
        events = [make_event("fix", days_ago=d) for d in (9, 6, 3, 1)]

        patterns = inferencer.infer_patterns(events)

        assert len(patterns) == 1
        assert patterns[0].pattern == "Bug fixes → Test additions"
        assert patterns[0].category == "structural"
        assert patterns[0].confidence == 0.72
        assert patterns[0].frequency == 4

    @pytest.mark.parametrize("category", ["refactor", "test", "docs", "unknown"])
    def test_categories_without_template_are_skipped(self, inferencer, make_event, category):
        events = [make_event(category, days_ago=d) for d in (9, 6, 3)]

        assert inferencer.infer_patterns(events) == []

    def test_unsorted_input_is_bounded_chronologically(self, inferencer, make_event):
        events = [make_event("feature", days_ago=d) for d in (10, 30, 20)]

        pattern = inferencer.infer_patterns(events)[0]

        assert pattern.first_seen == min(e.timestamp for e in events)
        assert pattern.last_seen == max(e.timestamp for e in events)


class TestSequencePattern:
    """Tests for the feature/refactor → fix → test sequence."""

    def test_two_triplets(self, inferencer, make_event):
        events = sequence(make_event, ["feature", "fix", "test", "feature", "fix", "test"])

        patterns = inferencer.infer_patterns(events)

        assert len(patterns) == 1
        pattern = patterns[0]
        assert pattern.pattern == "Feature/Refactor → Fix → Test cycle"
        assert pattern.category == "temporal"
        assert pattern.frequency == 2
        assert pattern.confidence == 0.80
        assert sorted(pattern.evidence_ids) == sorted(e.id for e in events)
        assert pattern.first_seen == events[0].timestamp
        assert pattern.last_seen == events[-1].timestamp

    def test_single_triplet_is_not_enough(self, inferencer, make_event):
        events = sequence(make_event, ["feature", "fix", "test", "docs"])

        assert inferencer.infer_patterns(events) == []

    def test_refactor_can_start_the_sequence(self, inferencer, make_event):
        events = sequence(make_event, ["refactor", "fix", "test", "docs", "feature", "fix", "test"])

        patterns = inferencer.infer_patterns(events)

        temporal = [p for p in patterns if p.category == "temporal"]
        assert len(temporal) == 1
        assert temporal[0].frequency == 2
        assert len(temporal[0].evidence_ids) == 6

    def test_interrupted_sequence_does_not_match(self, inferencer, make_event):
        events = sequence(make_event, ["feature", "docs", "fix", "test", "feature", "fix", "docs", "test"])

        assert inferencer.find_sequence_windows(events) == []

    def test_sequence_uses_chronological_order(self, inferencer, make_event):
        """Events given newest first are still scanned oldest first."""
        events = sequence(make_event, ["feature", "fix", "test", "refactor", "fix", "test"])

        patterns = inferencer.infer_patterns(list(reversed(events)))

        assert [p.category for p in patterns] == ["temporal"]


class TestPatternIntegrity:
    """Cross-cutting properties of emitted patterns."""

    def test_evidence_ids_reference_input_events(self, inferencer, make_event):
        categories = ["feature", "fix", "test"] * 3 + ["config"] * 3
        events = sequence(make_event, categories)
        event_ids = {e.id for e in events}

        patterns = inferencer.infer_patterns(events)

        assert patterns
        for pattern in patterns:
            assert set(pattern.evidence_ids) <= event_ids
            assert pattern.frequency >= 2

    def test_pattern_id_embeds_generation_time(self, inferencer, make_event, now):
        events = [make_event("feature", days_ago=d) for d in (30, 20, 10)]

        pattern = inferencer.infer_patterns(events)[0]

        assert pattern.id == f"pat-retro-feature-refactor-{int(now.timestamp() * 1000)}"

    def test_empty_input(self, inferencer):
        assert inferencer.infer_patterns([]) == []

    def test_serialises_with_store_keys(self, inferencer, make_event):
        events = [make_event("feature", days_ago=d) for d in (30, 20, 10)]

        data = inferencer.infer_patterns(events)[0].model_dump(mode="json", by_alias=True)

        assert {"firstSeen", "lastSeen", "evidenceIds"} <= set(data)
