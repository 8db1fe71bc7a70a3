"""
Learned-pattern lookup over an immutable store snapshot

Used by the IR builder only after every built-in pattern has failed.
Lookup order:

1. Exact match on the normalized trigger
2. Best token-set similarity at or above the threshold

Stale and archived lessons, lessons without a mapped action, and lessons
below the minimum confidence are never used. Ties go to the higher
confidence, then the lower id, so the same snapshot always answers the
same way.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from journey_compiler.ir.types import Action
from journey_compiler.mapping.normalizer import normalize_for_matching
from journey_compiler.pattern_store.lifecycle import USABLE_STATES
from journey_compiler.pattern_store.models import Lesson
from journey_compiler.pattern_store.similarity import jaccard_similarity, step_tokens


@dataclass(frozen=True)
class _IndexedLesson:
    lesson_id: str
    confidence: float
    trigger_key: str
    tokens: FrozenSet[str]
    action: Action


@dataclass(frozen=True)
class StoreMatch:
    record_id: str
    action: Action
    confidence: float
    similarity: float
    exact: bool


@dataclass(frozen=True)
class StoreSnapshot:
    """
    Read-only view of the usable lessons at one point in time

    Build with ``StoreSnapshot.from_lessons`` (or ``PatternStore.snapshot()``).
    """
    entries: Tuple[_IndexedLesson, ...] = ()
    similarity_threshold: float = 0.8
    min_confidence: float = 0.7
    taken_at: Optional[str] = None

    @classmethod
    def empty(cls) -> 'StoreSnapshot':
        return cls()

    @classmethod
    def from_lessons(cls,
                     lessons: Iterable[Lesson],
                     similarity_threshold: float = 0.8,
                     min_confidence: float = 0.7,
                     taken_at: Optional[str] = None) -> 'StoreSnapshot':
        entries = []
        for lesson in lessons:
            if lesson.archived or lesson.state not in USABLE_STATES:
                continue
            if not lesson.pattern or lesson.confidence < min_confidence:
                continue
            entries.append(_IndexedLesson(
                lesson_id=lesson.id,
                confidence=lesson.confidence,
                trigger_key=normalize_for_matching(lesson.trigger),
                tokens=step_tokens(lesson.trigger),
                action=Action.from_dict(lesson.pattern),
            ))
        entries.sort(key=lambda e: (-e.confidence, e.lesson_id))
        return cls(tuple(entries), similarity_threshold, min_confidence, taken_at)

    def __len__(self) -> int:
        return len(self.entries)

    def find(self, text: str) -> Optional[StoreMatch]:
        if not self.entries:
            return None

        key = normalize_for_matching(text)
        for entry in self.entries:
            if entry.trigger_key == key:
                return StoreMatch(entry.lesson_id, entry.action, entry.confidence, 1.0, True)

        tokens = step_tokens(text)
        best: Optional[StoreMatch] = None
        for entry in self.entries:
            score = jaccard_similarity(tokens, entry.tokens)
            if score < self.similarity_threshold:
                continue
            if best is None or score > best.similarity:
                best = StoreMatch(entry.lesson_id, entry.action, entry.confidence, score, False)
        return best

    def match(self, text: str) -> Optional[Tuple[str, Action]]:
        """(lesson id, action) for ``text``; shaped for the step mapper's fallback hook"""
        found = self.find(text)
        return (found.record_id, found.action) if found else None

    def stats(self) -> Dict[str, float]:
        return {
            "lessons": len(self.entries),
            "similarity_threshold": self.similarity_threshold,
            "min_confidence": self.min_confidence,
        }


__all__ = ["StoreSnapshot", "StoreMatch"]
