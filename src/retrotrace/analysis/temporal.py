"""Temporal decay for historical events."""

import math
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_MONTH = 30 * 24 * 60 * 60
MIN_WEIGHT = 0.3


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def months_between(earlier: datetime, later: datetime) -> float:
    """Elapsed time in 30-day months (negative if ``earlier`` is after ``later``)."""
    return (_as_utc(later) - _as_utc(earlier)).total_seconds() / SECONDS_PER_MONTH


class TemporalWeighter:
    """Applies exponential decay to event confidence by age."""

    def __init__(self, decay_rate: float = 0.02) -> None:
        if decay_rate < 0:
            raise ValueError(f"decay_rate must not be negative, got {decay_rate}")
        self.decay_rate = decay_rate

    def calculate_weight(self, event_timestamp: datetime, reference_timestamp: Optional[datetime] = None) -> float:
        """Weight an event by its age: exp(-rate * months), never below 0.3.

        Events dated after the reference count as age 0.
        """
        reference = reference_timestamp or datetime.now(timezone.utc)
        months = max(0.0, months_between(event_timestamp, reference))
        return max(math.exp(-self.decay_rate * months), MIN_WEIGHT)

    def adjust_confidence(self, base_confidence: float, weight: float) -> float:
        return base_confidence * 0.7 + weight * 0.3

    def is_too_old(
        self,
        timestamp: datetime,
        max_months: float = 24,
        reference_timestamp: Optional[datetime] = None,
    ) -> bool:
        """True iff the event is strictly older than ``max_months``."""
        reference = reference_timestamp or datetime.now(timezone.utc)
        return months_between(timestamp, reference) > max_months
