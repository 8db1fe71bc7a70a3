"""
Extraction rate limiting

Counts come from the history log every time, so a restarted process sees
the same limits as the one that recorded the events.
"""

from datetime import datetime
from typing import Optional

from journey_compiler.pattern_store.history import HistoryLog
from journey_compiler.pattern_store.models import EXTRACTION_EVENTS


class ExtractionRateLimiter:
    """Caps new records per calendar day and per journey per day"""

    def __init__(self, history: HistoryLog, max_per_day: int = 5, max_per_journey: int = 2):
        self.history = history
        self.max_per_day = max_per_day
        self.max_per_journey = max_per_journey

    def check(self, journey_id: Optional[str], now: Optional[datetime] = None) -> Optional[str]:
        """
        Reason the next extraction would exceed a limit, or None if allowed
        """
        now = now or datetime.now()
        today = self.history.count_today_events(EXTRACTION_EVENTS, now=now)
        if today >= self.max_per_day:
            return f"Daily extraction limit reached ({today}/{self.max_per_day})"

        if journey_id:
            for_journey = self.history.count_today_events(EXTRACTION_EVENTS, journey_id=journey_id, now=now)
            if for_journey >= self.max_per_journey:
                return (f"Extraction limit for {journey_id} reached "
                        f"({for_journey}/{self.max_per_journey})")
        return None

    def remaining(self, journey_id: Optional[str] = None, now: Optional[datetime] = None) -> int:
        now = now or datetime.now()
        left = self.max_per_day - self.history.count_today_events(EXTRACTION_EVENTS, now=now)
        if journey_id:
            used = self.history.count_today_events(EXTRACTION_EVENTS, journey_id=journey_id, now=now)
            left = min(left, self.max_per_journey - used)
        return max(left, 0)


__all__ = ["ExtractionRateLimiter"]
