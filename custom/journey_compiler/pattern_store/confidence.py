"""
Confidence scoring for store records

raw = min(occurrences / 10, 1) * recency * sqrt(success_rate) [* 1.2 if human reviewed]

Recency falls from 1.0 to 0.7 over 90 days since the last success; a
record that never succeeded falls from 1.0 to 0.5 over 30 days since it was
first seen. The stored value blends the raw score with a recency-weighted
mean of the rolling confidence history so one outlier cannot swing it.
Every result is clamped to [0, 1] and rounded to two decimals.
"""

import math
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from journey_compiler.pattern_store.models import (
    ConfidenceEntry,
    StoreRecord,
    format_timestamp,
    parse_timestamp,
)


OCCURRENCE_SATURATION = 10
SUCCESS_RECENCY_DAYS = 90
SUCCESS_RECENCY_FLOOR = 0.7
UNPROVEN_RECENCY_DAYS = 30
UNPROVEN_RECENCY_FLOOR = 0.5
HUMAN_REVIEW_BOOST = 1.2
HISTORY_BLEND = 0.25
DECLINE_RATIO = 0.8
DECLINE_WINDOW = 30
TREND_THRESHOLD = 0.1


def clamp_confidence(value: float) -> float:
    return round(min(max(value, 0.0), 1.0), 2)


def _days_since(timestamp: Optional[str], now: datetime) -> Optional[float]:
    moment = parse_timestamp(timestamp)
    if moment is None:
        return None
    return max((now - moment).total_seconds() / 86400, 0.0)


def recency_factor(record: StoreRecord, now: datetime) -> float:
    since_success = _days_since(record.last_success, now)
    if since_success is not None:
        return max(1.0 - (since_success / SUCCESS_RECENCY_DAYS) * (1.0 - SUCCESS_RECENCY_FLOOR),
                   SUCCESS_RECENCY_FLOOR)

    since_first_seen = _days_since(record.first_seen, now) or 0.0
    return max(1.0 - (since_first_seen / UNPROVEN_RECENCY_DAYS) * (1.0 - UNPROVEN_RECENCY_FLOOR),
               UNPROVEN_RECENCY_FLOOR)


def calculate_raw_confidence(record: StoreRecord, now: datetime) -> float:
    """
    Confidence from the record's own counters, ignoring history

    Examples:
        >>> from journey_compiler.pattern_store.models import Lesson
        >>> lesson = Lesson(id="L0001", trigger="x", occurrences=10, success_rate=1.0,
        ...                 first_seen="2026-01-01T00:00:00", last_success="2026-01-01T00:00:00")
        >>> calculate_raw_confidence(lesson, datetime(2026, 1, 1))
        1.0
    """
    base = min(record.occurrences / OCCURRENCE_SATURATION, 1.0)
    score = base * recency_factor(record, now) * math.sqrt(max(record.success_rate, 0.0))
    if record.human_reviewed:
        score *= HUMAN_REVIEW_BOOST
    return clamp_confidence(score)


def weighted_history_mean(history: Sequence[ConfidenceEntry]) -> Optional[float]:
    """Mean of the history with linearly increasing weight toward recent entries"""
    if not history:
        return None
    weights = range(1, len(history) + 1)
    total = sum(weight * entry.value for weight, entry in zip(weights, history))
    return total / sum(weights)


def calculate_confidence(record: StoreRecord, now: datetime) -> float:
    raw = calculate_raw_confidence(record, now)
    history_mean = weighted_history_mean(record.confidence_history)
    if history_mean is None:
        return raw
    return clamp_confidence((1.0 - HISTORY_BLEND) * raw + HISTORY_BLEND * history_mean)


def update_confidence_history(history: Sequence[ConfidenceEntry],
                              value: float,
                              now: datetime,
                              window: int = 90,
                              retention_days: int = 90) -> List[ConfidenceEntry]:
    """
    Append ``value`` and trim the history

    Entries older than ``retention_days`` are dropped, then only the last
    ``window`` entries are kept.
    """
    cutoff = now - timedelta(days=retention_days)
    kept = [
        entry for entry in history
        if (parse_timestamp(entry.timestamp) or now) >= cutoff
    ]
    kept.append(ConfidenceEntry(timestamp=format_timestamp(now), value=clamp_confidence(value)))
    return kept[-window:]


def update_success_rate(success_rate: float, occurrences: int, success: bool) -> float:
    """
    Example:
        >>> update_success_rate(1.0, 3, False)
        0.75
    """
    return round((success_rate * occurrences + (1 if success else 0)) / (occurrences + 1), 2)


# ============================================================================
# Analytics
# ============================================================================

def detect_declining_confidence(record: StoreRecord) -> bool:
    """True when the current value is below 80% of the recent average"""
    recent = record.confidence_history[-DECLINE_WINDOW:]
    if len(recent) < 2:
        return False
    average = sum(entry.value for entry in recent) / len(recent)
    return record.confidence < DECLINE_RATIO * average


def get_confidence_trend(history: Sequence[ConfidenceEntry]) -> str:
    """
    increasing, decreasing, stable or unknown (fewer than three entries)

    Compares the mean of the oldest third with the mean of the newest third.
    """
    if len(history) < 3:
        return "unknown"

    third = max(len(history) // 3, 1)
    older = sum(entry.value for entry in history[:third]) / third
    newer = sum(entry.value for entry in history[-third:]) / third

    if older == 0:
        return "increasing" if newer > 0 else "stable"
    change = (newer - older) / older
    if change > TREND_THRESHOLD:
        return "increasing"
    if change < -TREND_THRESHOLD:
        return "decreasing"
    return "stable"


def needs_review(record: StoreRecord, threshold: float = 0.4) -> bool:
    return not record.archived and record.confidence < threshold


def summarize_confidence(records: Sequence[StoreRecord], threshold: float = 0.4) -> Dict[str, float]:
    """Aggregate confidence figures for a set of records"""
    active = [r for r in records if not r.archived]
    if not active:
        return {"count": 0, "average": 0.0, "min": 0.0, "max": 0.0, "needs_review": 0, "declining": 0}
    values = [r.confidence for r in active]
    return {
        "count": len(active),
        "average": round(sum(values) / len(values), 2),
        "min": min(values),
        "max": max(values),
        "needs_review": sum(1 for r in active if needs_review(r, threshold)),
        "declining": sum(1 for r in active if detect_declining_confidence(r)),
    }


__all__ = [
    "clamp_confidence",
    "recency_factor",
    "calculate_raw_confidence",
    "weighted_history_mean",
    "calculate_confidence",
    "update_confidence_history",
    "update_success_rate",
    "detect_declining_confidence",
    "get_confidence_trend",
    "needs_review",
    "summarize_confidence",
]
