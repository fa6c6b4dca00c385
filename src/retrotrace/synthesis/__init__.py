"""Synthetic event generation and pattern inference."""

from retrotrace.synthesis.events import EventSynthesizer, date_key, event_type_for, pattern_key
from retrotrace.synthesis.patterns import (
    CATEGORY_TEMPLATES,
    SEQUENCE_TEMPLATE,
    PatternInferencer,
    PatternTemplate,
    chronological,
)

__all__ = [
    "EventSynthesizer",
    "date_key",
    "event_type_for",
    "pattern_key",
    "PatternInferencer",
    "PatternTemplate",
    "CATEGORY_TEMPLATES",
    "SEQUENCE_TEMPLATE",
    "chronological",
]
