"""
Append-only history log

One JSON-lines file per calendar day under ``<root>/history/``. The log is
the only source for rate-limit counters, so limits hold across process
restarts.
"""

import re
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional, Union

from journey_compiler.pattern_store.models import HistoryEvent, HistoryEventKind, format_timestamp
from journey_compiler.utils.file_utils import append_jsonl, iter_jsonl
from journey_compiler.utils.logger import get_logger


logger = get_logger("pattern_store.history")

HISTORY_DIRNAME = "history"
_HISTORY_FILE_REGEX = re.compile(r"^(\d{4}-\d{2}-\d{2})\.jsonl$")


class HistoryLog:
    """Daily JSON-lines event files"""

    def __init__(self,
                 root: Union[str, Path],
                 lock_timeout: float = 5.0,
                 retry_interval: float = 0.05):
        self.directory = Path(root) / HISTORY_DIRNAME
        self.lock_timeout = lock_timeout
        self.retry_interval = retry_interval

    def path_for(self, day: date) -> Path:
        return self.directory / f"{day.isoformat()}.jsonl"

    def append(self, event: HistoryEvent) -> None:
        day = datetime.fromisoformat(event.timestamp).date()
        append_jsonl(self.path_for(day), event.to_dict(),
                     timeout=self.lock_timeout, retry_interval=self.retry_interval)

    def record(self,
               kind: HistoryEventKind,
               now: Optional[datetime] = None,
               journey_id: Optional[str] = None,
               extraction_type: Optional[str] = None,
               record_id: Optional[str] = None,
               success: Optional[bool] = None,
               prompt: Optional[str] = None) -> HistoryEvent:
        event = HistoryEvent(
            event=kind,
            timestamp=format_timestamp(now or datetime.now()),
            journey_id=journey_id,
            extraction_type=extraction_type,
            record_id=record_id,
            success=success,
            prompt=prompt,
        )
        self.append(event)
        return event

    def read_history(self, day: Optional[date] = None) -> List[HistoryEvent]:
        """Events of one day (today by default), in append order"""
        target = self.path_for(day or date.today())
        events: List[HistoryEvent] = []
        for data in iter_jsonl(target):
            try:
                events.append(HistoryEvent.from_dict(data))
            except (KeyError, ValueError):
                logger.warning(f"⚠️  Skipping unrecognized history event in {target}")
        return events

    def count_today_events(self,
                           kinds: Optional[Iterable[HistoryEventKind]] = None,
                           journey_id: Optional[str] = None,
                           now: Optional[datetime] = None) -> int:
        wanted = set(kinds) if kinds is not None else None
        count = 0
        for event in self.read_history((now or datetime.now()).date()):
            if wanted is not None and event.event not in wanted:
                continue
            if journey_id is not None and event.journey_id != journey_id:
                continue
            count += 1
        return count

    def list_days(self) -> List[date]:
        if not self.directory.exists():
            return []
        days = []
        for path in self.directory.iterdir():
            match = _HISTORY_FILE_REGEX.match(path.name)
            if match:
                days.append(date.fromisoformat(match.group(1)))
        return sorted(days)

    def cleanup_old_history_files(self, retention_days: int = 365, now: Optional[datetime] = None) -> int:
        """Delete day files older than ``retention_days``"""
        cutoff = (now or datetime.now()).date() - timedelta(days=retention_days)
        removed = 0
        for day in self.list_days():
            if day < cutoff:
                self.path_for(day).unlink()
                removed += 1
        if removed:
            logger.info(f"✓ Removed {removed} history files older than {retention_days} days")
        return removed


__all__ = ["HistoryLog", "HISTORY_DIRNAME"]
