"""
Pattern Store data models

Lessons record a fix for a step the compiler could not handle. Components
record reusable code extracted from generated tests. Both share the same
lifecycle fields (occurrences, success rate, confidence history, state).

Lesson and component categories are different taxonomies. Aggregating
across them goes through LESSON_TO_COMPONENT_CATEGORY only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


STORE_SCHEMA_VERSION = "1.0.0"


# ============================================================================
# Enums
# ============================================================================

class LessonCategory(str, Enum):
    SELECTOR = "selector"
    TIMING = "timing"
    QUIRK = "quirk"
    AUTH = "auth"
    DATA = "data"
    ASSERTION = "assertion"
    NAVIGATION = "navigation"


class ComponentCategory(str, Enum):
    SELECTOR = "selector"
    AUTH = "auth"
    DATA = "data"
    ASSERTION = "assertion"
    NAVIGATION = "navigation"
    UI_INTERACTION = "ui-interaction"


# timing and quirk have no component analogue
LESSON_TO_COMPONENT_CATEGORY: Dict[LessonCategory, Optional[ComponentCategory]] = {
    LessonCategory.SELECTOR: ComponentCategory.SELECTOR,
    LessonCategory.TIMING: None,
    LessonCategory.QUIRK: None,
    LessonCategory.AUTH: ComponentCategory.AUTH,
    LessonCategory.DATA: ComponentCategory.DATA,
    LessonCategory.ASSERTION: ComponentCategory.ASSERTION,
    LessonCategory.NAVIGATION: ComponentCategory.NAVIGATION,
}


class RecordState(str, Enum):
    NEW = "new"
    ACTIVE = "active"
    REINFORCED = "reinforced"
    DECAYING = "decaying"
    STALE = "stale"
    ARCHIVED = "archived"


class Provenance(str, Enum):
    STATIC_ANALYSIS = "static-analysis"
    MINED = "mined"
    MANUAL = "manual"


class RecordKind(str, Enum):
    LESSON = "lesson"
    COMPONENT = "component"


class HistoryEventKind(str, Enum):
    LESSON_RECORDED = "lesson_recorded"
    LESSON_APPLIED = "lesson_applied"
    COMPONENT_EXTRACTED = "component_extracted"
    COMPONENT_USED = "component_used"
    EXTRACTION_SKIPPED = "extraction_skipped"
    RECORD_ARCHIVED = "record_archived"
    STORE_QUARANTINED = "store_quarantined"


# Events that count against extraction rate limits
EXTRACTION_EVENTS = frozenset({HistoryEventKind.LESSON_RECORDED, HistoryEventKind.COMPONENT_EXTRACTED})


def format_timestamp(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


# ============================================================================
# Data Models
# ============================================================================

@dataclass
class ConfidenceEntry:
    timestamp: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfidenceEntry':
        return cls(timestamp=data["timestamp"], value=float(data["value"]))


@dataclass
class StoreRecord:
    """Lifecycle fields shared by lessons and components"""
    id: str
    occurrences: int = 1
    success_rate: float = 1.0
    confidence: float = 0.0
    confidence_history: List[ConfidenceEntry] = field(default_factory=list)
    first_seen: str = ""
    last_applied: Optional[str] = None
    last_success: Optional[str] = None
    state: RecordState = RecordState.NEW
    human_reviewed: bool = False
    archived: bool = False

    def _lifecycle_dict(self) -> Dict[str, Any]:
        return {
            "occurrences": self.occurrences,
            "successRate": self.success_rate,
            "confidence": self.confidence,
            "confidenceHistory": [entry.to_dict() for entry in self.confidence_history],
            "firstSeen": self.first_seen,
            "lastApplied": self.last_applied,
            "lastSuccess": self.last_success,
            "state": self.state.value,
            "humanReviewed": self.human_reviewed,
            "archived": self.archived,
        }

    @staticmethod
    def _lifecycle_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "occurrences": int(data.get("occurrences", 1)),
            "success_rate": float(data.get("successRate", 1.0)),
            "confidence": float(data.get("confidence", 0.0)),
            "confidence_history": [ConfidenceEntry.from_dict(e) for e in data.get("confidenceHistory", [])],
            "first_seen": data.get("firstSeen", ""),
            "last_applied": data.get("lastApplied"),
            "last_success": data.get("lastSuccess"),
            "state": RecordState(data.get("state", RecordState.NEW.value)),
            "human_reviewed": bool(data.get("humanReviewed", False)),
            "archived": bool(data.get("archived", False)),
        }

    def validate(self) -> List[str]:
        """
        Check the store invariants

        Returns:
            List of error messages (empty if valid)
        """
        errors: List[str] = []
        if not self.id:
            errors.append("id is required")
        if self.occurrences < 1:
            errors.append(f"{self.id}: occurrences must be >= 1, got {self.occurrences}")
        if not 0.0 <= self.confidence <= 1.0:
            errors.append(f"{self.id}: confidence must be in [0, 1], got {self.confidence}")
        if not 0.0 <= self.success_rate <= 1.0:
            errors.append(f"{self.id}: successRate must be in [0, 1], got {self.success_rate}")
        if not self.first_seen:
            errors.append(f"{self.id}: firstSeen is required")
        return errors


@dataclass
class Lesson(StoreRecord):
    """
    A learned fix: the step text that triggered it and, when the fix is a
    step mapping, the action it maps to (``pattern``, an Action dict)
    """
    category: LessonCategory = LessonCategory.SELECTOR
    description: str = ""
    trigger: str = ""
    pattern: Optional[Dict[str, Any]] = None
    journey_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "category": self.category.value,
            "description": self.description,
            "trigger": self.trigger,
            "pattern": self.pattern,
            "journeyIds": list(self.journey_ids),
        }
        data.update(self._lifecycle_dict())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Lesson':
        return cls(
            id=data["id"],
            category=LessonCategory(data["category"]),
            description=data.get("description", ""),
            trigger=data.get("trigger", ""),
            pattern=data.get("pattern"),
            journey_ids=list(data.get("journeyIds", [])),
            **cls._lifecycle_kwargs(data),
        )

    def validate(self) -> List[str]:
        errors = super().validate()
        if not self.trigger:
            errors.append(f"{self.id}: trigger is required")
        return errors


@dataclass
class Component(StoreRecord):
    """A reusable code snippet mined from generated tests"""
    name: str = ""
    category: ComponentCategory = ComponentCategory.UI_INTERACTION
    snippet: str = ""
    description: str = ""
    provenance: Provenance = Provenance.MANUAL
    source_journey: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "snippet": self.snippet,
            "description": self.description,
            "provenance": self.provenance.value,
            "sourceJourney": self.source_journey,
        }
        data.update(self._lifecycle_dict())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Component':
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            category=ComponentCategory(data["category"]),
            snippet=data.get("snippet", ""),
            description=data.get("description", ""),
            provenance=Provenance(data.get("provenance", Provenance.MANUAL.value)),
            source_journey=data.get("sourceJourney"),
            **cls._lifecycle_kwargs(data),
        )

    def validate(self) -> List[str]:
        errors = super().validate()
        if not self.name:
            errors.append(f"{self.id}: name is required")
        return errors


@dataclass
class HistoryEvent:
    """One line of ``history/YYYY-MM-DD.jsonl``"""
    event: HistoryEventKind
    timestamp: str
    journey_id: Optional[str] = None
    extraction_type: Optional[str] = None
    record_id: Optional[str] = None
    success: Optional[bool] = None
    prompt: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "event": self.event.value,
            "journeyId": self.journey_id,
            "extractionType": self.extraction_type,
            "recordId": self.record_id,
            "success": self.success,
            "prompt": self.prompt,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HistoryEvent':
        return cls(
            event=HistoryEventKind(data["event"]),
            timestamp=data["timestamp"],
            journey_id=data.get("journeyId"),
            extraction_type=data.get("extractionType"),
            record_id=data.get("recordId"),
            success=data.get("success"),
            prompt=data.get("prompt"),
        )


@dataclass
class RecordResult:
    """
    Outcome of a store write

    status is one of: created, updated, duplicate, rate_limited
    """
    status: str
    record_id: Optional[str] = None
    reason: Optional[str] = None
    similar_to: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in ("created", "updated")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "recordId": self.record_id,
            "reason": self.reason,
            "similarTo": self.similar_to,
        }


__all__ = [
    "STORE_SCHEMA_VERSION",
    "LessonCategory",
    "ComponentCategory",
    "LESSON_TO_COMPONENT_CATEGORY",
    "RecordState",
    "Provenance",
    "RecordKind",
    "HistoryEventKind",
    "EXTRACTION_EVENTS",
    "format_timestamp",
    "parse_timestamp",
    "ConfidenceEntry",
    "StoreRecord",
    "Lesson",
    "Component",
    "HistoryEvent",
    "RecordResult",
]
