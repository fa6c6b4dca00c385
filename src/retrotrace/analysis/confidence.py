"""Confidence estimation for reconstructed events."""

from typing import NamedTuple

from retrotrace.models import DiffMetadata

CONFIDENCE_FLOOR = 0.5
CONFIDENCE_CEILING = 0.95

BASE_CONFIDENCE = 0.5
NOVELTY_PENALTY = 0.1
REPETITION_STEP = 0.04
REPETITION_CAP = 0.2
MAX_AGE_PENALTY = 0.05
AGE_PENALTY_MONTHS = 90


def clamp_confidence(value: float) -> float:
    """Clamp a score into [0.5, 0.95]."""
    return max(CONFIDENCE_FLOOR, min(CONFIDENCE_CEILING, value))


class ConfidenceFactors(NamedTuple):
    """Individual contributions to an estimate."""

    pattern_repetition: float  # -0.1 to +0.2
    modification_size: float  # -0.05 to +0.1
    age_penalty: float  # -0.05 to 0


def size_factor(lines_changed: int, files_changed: int) -> float:
    """Larger modifications are stronger signals."""
    if files_changed > 20 or lines_changed > 500:
        return 0.1
    if files_changed > 10 or lines_changed > 200:
        return 0.05
    if files_changed > 5 or lines_changed > 50:
        return 0.0
    return -0.05


class ConfidenceEstimator:
    """Scores how plausible a reconstructed fact is."""

    def factors(self, metadata: DiffMetadata, pattern_occurrences: int, months_since_event: float) -> ConfidenceFactors:
        if pattern_occurrences > 0:
            repetition = min(REPETITION_CAP, pattern_occurrences * REPETITION_STEP)
        else:
            repetition = -NOVELTY_PENALTY

        return ConfidenceFactors(
            pattern_repetition=repetition,
            modification_size=size_factor(metadata.total_lines_changed, metadata.total_files),
            age_penalty=max(-MAX_AGE_PENALTY, -(months_since_event / AGE_PENALTY_MONTHS) * MAX_AGE_PENALTY),
        )

    def estimate(self, metadata: DiffMetadata, pattern_occurrences: int, months_since_event: float) -> float:
        """Estimate confidence for a synthetic event.

        Args:
            metadata: Diff metadata of the source commit
            pattern_occurrences: Times the same pattern key was already seen this run
            months_since_event: Age of the commit in 30-day months

        Returns:
            Confidence in [0.5, 0.95]
        """
        factors = self.factors(metadata, pattern_occurrences, months_since_event)
        return clamp_confidence(BASE_CONFIDENCE + sum(factors))

    def adjust_for_category(self, confidence: float, has_config: bool, has_tests: bool) -> float:
        """Raise confidence for config (+0.05) and test (+0.02) changes."""
        adjustment = 0.0
        if has_config:
            adjustment += 0.05
        if has_tests:
            adjustment += 0.02
        return min(CONFIDENCE_CEILING, confidence + adjustment)
