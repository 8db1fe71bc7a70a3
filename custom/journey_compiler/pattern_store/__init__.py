"""
Pattern Store Module

Persistent lessons and components with confidence scoring, decay, rate
limiting and duplicate suppression.
"""

from .models import (
    Lesson,
    Component,
    LessonCategory,
    ComponentCategory,
    LESSON_TO_COMPONENT_CATEGORY,
    RecordState,
    RecordKind,
    Provenance,
    HistoryEvent,
    HistoryEventKind,
    RecordResult,
)
from .history import HistoryLog
from .rate_limiter import ExtractionRateLimiter
from .matcher import StoreSnapshot, StoreMatch
from .store import PatternStore, LifecycleReport

__all__ = [
    "Lesson",
    "Component",
    "LessonCategory",
    "ComponentCategory",
    "LESSON_TO_COMPONENT_CATEGORY",
    "RecordState",
    "RecordKind",
    "Provenance",
    "HistoryEvent",
    "HistoryEventKind",
    "RecordResult",
    "HistoryLog",
    "ExtractionRateLimiter",
    "StoreSnapshot",
    "StoreMatch",
    "PatternStore",
    "LifecycleReport",
]
