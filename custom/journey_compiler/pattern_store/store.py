"""
Pattern Store - file-backed lessons, components and history

Layout under the store root:

    lessons.json              {version, lastUpdated, lessons: [...]}
    components.json           {version, lastUpdated, components: [...]}
    history/YYYY-MM-DD.jsonl  one event per line
    quarantine/               corrupted files moved aside

Every mutation is a read-modify-write under an exclusive FileLock on the
data file, finished by an atomic rename. Readers never see a partial file
and only take the lock to quarantine a file that is still corrupted on a
second read. New-record extraction additionally holds the store-wide
extraction lock so the rate-limit check and the history append happen
together.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar, Union

from journey_compiler.config import PatternStoreConfig
from journey_compiler.ir.types import Action, ActionKind
from journey_compiler.mapping.normalizer import normalize_for_matching
from journey_compiler.pattern_store import confidence as scoring
from journey_compiler.pattern_store.history import HistoryLog
from journey_compiler.pattern_store.lifecycle import (
    INITIAL_STATE,
    get_transition_description,
    state_after_application,
    state_for_age,
    transition_path,
)
from journey_compiler.pattern_store.matcher import StoreSnapshot
from journey_compiler.pattern_store.models import (
    LESSON_TO_COMPONENT_CATEGORY,
    STORE_SCHEMA_VERSION,
    Component,
    ComponentCategory,
    HistoryEventKind,
    Lesson,
    LessonCategory,
    Provenance,
    RecordKind,
    RecordResult,
    RecordState,
    StoreRecord,
    format_timestamp,
)
from journey_compiler.pattern_store.rate_limiter import ExtractionRateLimiter
from journey_compiler.pattern_store.similarity import find_most_similar
from journey_compiler.utils.errors import (
    LockTimeoutError,
    PatternStoreError,
    StoreCorruptionError,
    handle_errors,
    retry_with_backoff,
    safe_execute,
)
from journey_compiler.utils.file_utils import (
    FileLock,
    atomic_write_json,
    cleanup_temp_files,
    quarantine_file,
    read_json,
)
from journey_compiler.utils.logger import get_logger


logger = get_logger("pattern_store")

R = TypeVar("R", bound=StoreRecord)

LESSONS_FILE = "lessons.json"
COMPONENTS_FILE = "components.json"
QUARANTINE_DIRNAME = "quarantine"
EXTRACTION_LOCK_NAME = "extractions"


@dataclass(frozen=True)
class _RecordFile:
    kind: RecordKind
    filename: str
    key: str
    record_type: Type[StoreRecord]
    id_prefix: str


_FILES: Dict[RecordKind, _RecordFile] = {
    RecordKind.LESSON: _RecordFile(RecordKind.LESSON, LESSONS_FILE, "lessons", Lesson, "L"),
    RecordKind.COMPONENT: _RecordFile(RecordKind.COMPONENT, COMPONENTS_FILE, "components", Component, "C"),
}


@dataclass
class LifecycleReport:
    """Transitions applied by ``refresh_lifecycle``"""
    transitions: List[Tuple[str, str, str]] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return len({record_id for record_id, _, _ in self.transitions})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changed": self.changed,
            "transitions": [
                {"recordId": record_id, "from": old, "to": new}
                for record_id, old, new in self.transitions
            ],
        }


def lesson_category_for_action(action: Action) -> LessonCategory:
    """Lesson category implied by a resolved action"""
    if action.kind == ActionKind.CALL_MODULE and action.module == "auth":
        return LessonCategory.AUTH
    if action.is_assertion:
        return LessonCategory.ASSERTION
    if action.kind in (ActionKind.NAVIGATE, ActionKind.RELOAD, ActionKind.GO_BACK, ActionKind.GO_FORWARD):
        return LessonCategory.NAVIGATION
    if action.kind.value.startswith("waitFor"):
        return LessonCategory.TIMING
    return LessonCategory.SELECTOR


class PatternStore:
    """
    Persistent learning store

    Args:
        root: Store directory (overrides ``config.root``)
        config: Tunables; defaults to PatternStoreConfig()
        strict: Raise StoreCorruptionError instead of quarantining
        write_delay: Seconds between write and rename (tests only)
        clock: Returns "now"; injectable for lifecycle tests
    """

    def __init__(self,
                 root: Optional[Union[str, Path]] = None,
                 config: Optional[PatternStoreConfig] = None,
                 strict: bool = False,
                 write_delay: float = 0.0,
                 clock: Optional[Callable[[], datetime]] = None):
        self.config = config or PatternStoreConfig()
        self.root = Path(root if root is not None else self.config.root)
        self.strict = strict
        self.write_delay = write_delay
        self.clock = clock or datetime.now

        self.root.mkdir(parents=True, exist_ok=True)
        self.history = HistoryLog(self.root, self.config.lock_timeout_seconds,
                                  self.config.lock_retry_interval_seconds)
        self.rate_limiter = ExtractionRateLimiter(self.history,
                                                  self.config.max_extractions_per_day,
                                                  self.config.max_extractions_per_journey)
        safe_execute(lambda: cleanup_temp_files(self.root), component="pattern_store", default_return=0)

    # ------------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------------

    def _path(self, kind: RecordKind) -> Path:
        return self.root / _FILES[kind].filename

    def _lock(self, path: Path) -> FileLock:
        return FileLock(path,
                        timeout=self.config.lock_timeout_seconds,
                        retry_interval=self.config.lock_retry_interval_seconds)

    def _corrupt(self, kind: RecordKind, path: Path, problem: str) -> None:
        """Quarantine a bad file (or raise in strict mode); the caller holds the file lock"""
        if self.strict:
            raise StoreCorruptionError(f"Corrupted {path.name}: {problem}", file_path=str(path))

        destination = quarantine_file(path, self.root / QUARANTINE_DIRNAME)
        logger.warning(f"⚠️  {path.name} is corrupted ({problem}); starting with an empty {kind.value} set")
        self.history.record(
            HistoryEventKind.STORE_QUARANTINED,
            now=self.clock(),
            extraction_type=kind.value,
            success=False,
            prompt=f"{problem} -> {destination.name}",
        )

    def _parse(self, kind: RecordKind) -> Tuple[List[StoreRecord], Optional[str]]:
        """Records in the data file, or the problem that makes it unusable"""
        spec = _FILES[kind]
        path = self._path(kind)
        try:
            data = read_json(path)
        except FileNotFoundError:
            return [], None
        except json.JSONDecodeError as e:
            return [], f"invalid JSON: {e.msg} at line {e.lineno}"

        if not isinstance(data, dict) or not isinstance(data.get(spec.key), list):
            return [], f"missing '{spec.key}' list"
        if data.get("version") != STORE_SCHEMA_VERSION:
            return [], f"unsupported version {data.get('version')!r}"

        records: List[StoreRecord] = []
        try:
            for item in data[spec.key]:
                record = spec.record_type.from_dict(item)
                errors = record.validate()
                if errors:
                    raise ValueError("; ".join(errors))
                records.append(record)
        except (KeyError, TypeError, ValueError) as e:
            return [], f"invalid record: {e}"

        return records, None

    def _load(self, kind: RecordKind, locked: bool = False) -> List[StoreRecord]:
        """
        Read one record file

        A corrupted file is only quarantined under its lock, after a second
        read confirms it is still corrupted. Lock-free readers that cannot
        get the lock leave the file alone and see an empty set.
        """
        path = self._path(kind)
        records, problem = self._parse(kind)
        if problem is None:
            return records
        if locked or self.strict:
            self._corrupt(kind, path, problem)
            return []

        try:
            with self._lock(path):
                records, problem = self._parse(kind)
                if problem is None:
                    return records
                self._corrupt(kind, path, problem)
        except LockTimeoutError:
            logger.warning(f"⚠️  {path.name} looks corrupted ({problem}); left in place while it is locked")
        return []

    def _save(self, kind: RecordKind, records: List[StoreRecord]) -> None:
        spec = _FILES[kind]
        document = {
            "version": STORE_SCHEMA_VERSION,
            "lastUpdated": format_timestamp(self.clock()),
            spec.key: [record.to_dict() for record in records],
        }
        atomic_write_json(self._path(kind), document, write_delay=self.write_delay)

    def _next_id(self, kind: RecordKind, records: List[StoreRecord]) -> str:
        prefix = _FILES[kind].id_prefix
        numbers = [int(r.id[len(prefix):]) for r in records
                   if r.id.startswith(prefix) and r.id[len(prefix):].isdigit()]
        return f"{prefix}{(max(numbers) if numbers else 0) + 1:04d}"

    def _score(self, record: StoreRecord, now: datetime) -> None:
        value = scoring.calculate_confidence(record, now)
        record.confidence = value
        record.confidence_history = scoring.update_confidence_history(
            record.confidence_history, value, now,
            window=self.config.confidence_window,
            retention_days=self.config.confidence_retention_days,
        )

    # ------------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------------

    def load_lessons(self) -> List[Lesson]:
        return self._load(RecordKind.LESSON)  # type: ignore[return-value]

    def load_components(self) -> List[Component]:
        return self._load(RecordKind.COMPONENT)  # type: ignore[return-value]

    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        return next((l for l in self.load_lessons() if l.id == lesson_id), None)

    def get_component(self, component_id: str) -> Optional[Component]:
        return next((c for c in self.load_components() if c.id == component_id), None)

    def query_by_category(self,
                          category: str,
                          kind: Union[RecordKind, str] = RecordKind.LESSON,
                          include_archived: bool = False) -> List[StoreRecord]:
        """
        Records of one category, highest confidence first

        ``kind`` is "lesson", "component" or "all". With "all" the category
        is a lesson category and components are matched through
        LESSON_TO_COMPONENT_CATEGORY.
        """
        kind_value = kind.value if isinstance(kind, RecordKind) else kind
        results: List[StoreRecord] = []

        if kind_value in ("lesson", "all"):
            lesson_category = LessonCategory(category)
            results.extend(l for l in self.load_lessons() if l.category == lesson_category)

        if kind_value == "component":
            component_category: Optional[ComponentCategory] = ComponentCategory(category)
            results.extend(c for c in self.load_components() if c.category == component_category)
        elif kind_value == "all":
            component_category = LESSON_TO_COMPONENT_CATEGORY[LessonCategory(category)]
            if component_category is not None:
                results.extend(c for c in self.load_components() if c.category == component_category)
        elif kind_value != "lesson":
            raise ValueError(f"Unknown record kind: {kind_value}")

        if not include_archived:
            results = [r for r in results if not r.archived]
        return sorted(results, key=lambda r: (-r.confidence, r.id))

    def _decayed_state(self, record: StoreRecord, now: datetime) -> RecordState:
        return state_for_age(record.state, record.last_success or record.first_seen, now,
                             self.config.decay_horizon_days)

    def snapshot(self) -> StoreSnapshot:
        """
        Immutable view of usable lessons for compiles

        Decay is applied to the loaded copies as of now, whether or not
        ``refresh_lifecycle`` has run; nothing is written back.
        """
        now = self.clock()
        lessons = self.load_lessons()
        for lesson in lessons:
            if lesson.archived:
                continue
            lesson.state = self._decayed_state(lesson, now)
            # Idle time can only lower confidence
            lesson.confidence = min(lesson.confidence, scoring.calculate_confidence(lesson, now))

        return StoreSnapshot.from_lessons(
            lessons,
            similarity_threshold=self.config.similarity_threshold,
            min_confidence=self.config.min_match_confidence,
            taken_at=format_timestamp(now),
        )

    # ------------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------------

    def append_history(self,
                       kind: Union[HistoryEventKind, str],
                       journey_id: Optional[str] = None,
                       extraction_type: Optional[str] = None,
                       record_id: Optional[str] = None,
                       success: Optional[bool] = None,
                       prompt: Optional[str] = None) -> None:
        self.history.record(HistoryEventKind(kind), now=self.clock(), journey_id=journey_id,
                            extraction_type=extraction_type, record_id=record_id,
                            success=success, prompt=prompt)

    def cleanup_history(self) -> int:
        return self.history.cleanup_old_history_files(self.config.history_retention_days, now=self.clock())

    # ------------------------------------------------------------------------
    # New records
    # ------------------------------------------------------------------------

    def _skip(self, status: str, reason: str, journey_id: Optional[str], kind: RecordKind,
              similar_to: Optional[str] = None) -> RecordResult:
        self.history.record(HistoryEventKind.EXTRACTION_SKIPPED, now=self.clock(), journey_id=journey_id,
                            extraction_type=kind.value, record_id=similar_to, success=False, prompt=reason)
        logger.info(f"Skipped {kind.value} extraction: {reason}")
        return RecordResult(status=status, reason=reason, similar_to=similar_to)

    @handle_errors(component="pattern_store", reraise=True)
    def record_lesson(self,
                      category: Union[LessonCategory, str],
                      description: str,
                      trigger: str,
                      journey_id: Optional[str] = None,
                      pattern: Optional[Dict[str, Any]] = None,
                      human_reviewed: bool = False) -> RecordResult:
        """
        Record a fix

        A lesson whose normalized trigger matches an existing one in the same
        category reinforces that lesson instead ("updated"). Otherwise a new
        lesson is created, subject to the extraction rate limits.
        """
        category = LessonCategory(category)
        if not trigger.strip():
            raise PatternStoreError("Lesson trigger must not be empty", component="pattern_store")

        with self._lock(self.root / EXTRACTION_LOCK_NAME):
            now = self.clock()
            trigger_key = normalize_for_matching(trigger)

            with self._lock(self._path(RecordKind.LESSON)):
                lessons = self._load(RecordKind.LESSON, locked=True)
                existing = next(
                    (l for l in lessons
                     if l.category == category and not l.archived
                     and normalize_for_matching(l.trigger) == trigger_key),
                    None,
                )
                if existing is not None:
                    # Re-recording a fix counts as a successful reapplication
                    existing.success_rate = scoring.update_success_rate(
                        existing.success_rate, existing.occurrences, True)
                    existing.occurrences += 1
                    existing.last_applied = existing.last_success = format_timestamp(now)
                    old_state = existing.state
                    existing.state = state_after_application(existing.state, True)
                    if journey_id and journey_id not in existing.journey_ids:
                        existing.journey_ids.append(journey_id)
                    if pattern is not None:
                        existing.pattern = pattern
                    existing.human_reviewed = existing.human_reviewed or human_reviewed
                    self._score(existing, now)
                    self._save(RecordKind.LESSON, lessons)

                    if old_state != existing.state:
                        logger.info(f"{existing.id}: {old_state.value} → {existing.state.value}")
                    self.history.record(HistoryEventKind.LESSON_APPLIED, now=now, journey_id=journey_id,
                                        extraction_type=RecordKind.LESSON.value, record_id=existing.id,
                                        success=True, prompt=trigger.strip())
                    return RecordResult(status="updated", record_id=existing.id)

                limited = self.rate_limiter.check(journey_id, now=now)
                if limited:
                    return self._skip("rate_limited", limited, journey_id, RecordKind.LESSON)

                lesson = Lesson(
                    id=self._next_id(RecordKind.LESSON, lessons),
                    category=category,
                    description=description,
                    trigger=trigger.strip(),
                    pattern=pattern,
                    journey_ids=[journey_id] if journey_id else [],
                    first_seen=format_timestamp(now),
                    state=INITIAL_STATE,
                    human_reviewed=human_reviewed,
                )
                self._score(lesson, now)
                lessons.append(lesson)
                self._save(RecordKind.LESSON, lessons)

            self.history.record(HistoryEventKind.LESSON_RECORDED, now=now, journey_id=journey_id,
                                extraction_type=category.value, record_id=lesson.id, success=True,
                                prompt=trigger.strip())

        logger.info(f"✓ Recorded lesson {lesson.id} ({category.value}): {trigger.strip()}")
        return RecordResult(status="created", record_id=lesson.id)

    @handle_errors(component="pattern_store", reraise=True)
    def record_component(self,
                         name: str,
                         category: Union[ComponentCategory, str],
                         snippet: str,
                         description: str = "",
                         journey_id: Optional[str] = None,
                         provenance: Union[Provenance, str] = Provenance.MANUAL) -> RecordResult:
        """
        Record a reusable component

        A candidate whose snippet is at least ``similarity_threshold`` similar
        to an existing same-category component is rejected as a duplicate.
        """
        category = ComponentCategory(category)
        provenance = Provenance(provenance)

        with self._lock(self.root / EXTRACTION_LOCK_NAME):
            now = self.clock()

            with self._lock(self._path(RecordKind.COMPONENT)):
                components = self._load(RecordKind.COMPONENT, locked=True)
                similar = find_most_similar(
                    snippet,
                    [(c.id, c.snippet) for c in components if c.category == category and not c.archived],
                    self.config.similarity_threshold,
                )
                if similar is not None:
                    similar_id, score = similar
                    return self._skip("duplicate", f"{score:.2f} similar to {similar_id}",
                                      journey_id, RecordKind.COMPONENT, similar_to=similar_id)

                limited = self.rate_limiter.check(journey_id, now=now)
                if limited:
                    return self._skip("rate_limited", limited, journey_id, RecordKind.COMPONENT)

                component = Component(
                    id=self._next_id(RecordKind.COMPONENT, components),
                    name=name,
                    category=category,
                    snippet=snippet,
                    description=description,
                    provenance=provenance,
                    source_journey=journey_id,
                    first_seen=format_timestamp(now),
                    state=INITIAL_STATE,
                )
                self._score(component, now)
                components.append(component)
                self._save(RecordKind.COMPONENT, components)

            self.history.record(HistoryEventKind.COMPONENT_EXTRACTED, now=now, journey_id=journey_id,
                                extraction_type=category.value, record_id=component.id, success=True,
                                prompt=name)

        logger.info(f"✓ Recorded component {component.id} ({category.value}): {name}")
        return RecordResult(status="created", record_id=component.id)

    def record_resolution(self,
                          step_text: str,
                          action: Action,
                          journey_id: Optional[str] = None,
                          category: Optional[Union[LessonCategory, str]] = None,
                          description: Optional[str] = None,
                          human_reviewed: bool = True) -> RecordResult:
        """
        Store the action a human (or assisted repair) chose for a blocked step

        The lesson becomes a learned pattern once its confidence reaches the
        store's minimum match confidence.
        """
        if action.is_blocked:
            raise PatternStoreError("A resolution must map to a non-blocked action",
                                    component="pattern_store", context={"step": step_text})
        pattern = action.to_dict()
        pattern.pop("source_text", None)
        pattern.pop("matched_by", None)
        return self.record_lesson(
            category=category or lesson_category_for_action(action),
            description=description or f"Resolved blocked step: {step_text}",
            trigger=step_text,
            journey_id=journey_id,
            pattern=pattern,
            human_reviewed=human_reviewed,
        )

    # ------------------------------------------------------------------------
    # Reapplication
    # ------------------------------------------------------------------------

    def _apply(self, kind: RecordKind, record_id: str, success: bool,
               journey_id: Optional[str]) -> StoreRecord:
        with self._lock(self._path(kind)):
            now = self.clock()
            records = self._load(kind, locked=True)
            record = next((r for r in records if r.id == record_id), None)
            if record is None:
                raise PatternStoreError(f"Unknown {kind.value}: {record_id}", component="pattern_store",
                                        context={"record_id": record_id})
            if record.archived:
                raise PatternStoreError(f"{kind.value} {record_id} is archived", component="pattern_store",
                                        context={"record_id": record_id})

            record.success_rate = scoring.update_success_rate(record.success_rate, record.occurrences, success)
            record.occurrences += 1
            record.last_applied = format_timestamp(now)
            if success:
                record.last_success = format_timestamp(now)
            if isinstance(record, Lesson) and journey_id and journey_id not in record.journey_ids:
                record.journey_ids.append(journey_id)

            old_state = record.state
            record.state = state_after_application(record.state, success)
            self._score(record, now)
            self._save(kind, records)

        if old_state != record.state:
            logger.info(f"{record_id}: {old_state.value} → {record.state.value}")

        event = HistoryEventKind.LESSON_APPLIED if kind == RecordKind.LESSON else HistoryEventKind.COMPONENT_USED
        self.history.record(event, now=now, journey_id=journey_id, extraction_type=kind.value,
                            record_id=record_id, success=success)
        return record

    def record_lesson_application(self, lesson_id: str, success: bool,
                                  journey_id: Optional[str] = None) -> Lesson:
        return retry_with_backoff(  # type: ignore[return-value]
            lambda: self._apply(RecordKind.LESSON, lesson_id, success, journey_id)
        )

    def record_component_use(self, component_id: str, success: bool,
                             journey_id: Optional[str] = None) -> Component:
        return retry_with_backoff(  # type: ignore[return-value]
            lambda: self._apply(RecordKind.COMPONENT, component_id, success, journey_id)
        )

    # ------------------------------------------------------------------------
    # Curation
    # ------------------------------------------------------------------------

    def refresh_lifecycle(self, now: Optional[datetime] = None) -> LifecycleReport:
        """Apply time-based decay to every record and persist the result"""
        now = now or self.clock()
        report = LifecycleReport()

        for kind in (RecordKind.LESSON, RecordKind.COMPONENT):
            with self._lock(self._path(kind)):
                records = self._load(kind, locked=True)
                changed = False
                for record in records:
                    if record.archived:
                        continue
                    target = self._decayed_state(record, now)
                    if target == record.state:
                        continue
                    previous = record.state
                    for step in transition_path(record.state, target):
                        report.transitions.append((record.id, previous.value, step.value))
                        logger.debug(f"{record.id}: {previous.value} → {step.value} "
                                     f"({get_transition_description(previous.value, step.value)})")
                        previous = step
                    record.state = target
                    record.confidence = scoring.calculate_confidence(record, now)
                    changed = True
                if changed:
                    self._save(kind, records)

        if report.transitions:
            logger.info(f"✓ Lifecycle refresh: {report.changed} records changed state")
        return report

    def archive(self, kind: Union[RecordKind, str], record_id: str, reason: Optional[str] = None) -> StoreRecord:
        """Explicit curation; archived records are kept but never used"""
        kind = RecordKind(kind)
        with self._lock(self._path(kind)):
            records = self._load(kind, locked=True)
            record = next((r for r in records if r.id == record_id), None)
            if record is None:
                raise PatternStoreError(f"Unknown {kind.value}: {record_id}", component="pattern_store",
                                        context={"record_id": record_id})
            record.archived = True
            record.state = RecordState.ARCHIVED
            self._save(kind, records)

        self.history.record(HistoryEventKind.RECORD_ARCHIVED, now=self.clock(), extraction_type=kind.value,
                            record_id=record_id, success=True, prompt=reason)
        logger.info(f"✓ Archived {kind.value} {record_id}")
        return record

    # ------------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------------

    def get_declining_records(self) -> List[StoreRecord]:
        records = self.load_lessons() + self.load_components()  # type: ignore[operator]
        return [r for r in records if not r.archived and scoring.detect_declining_confidence(r)]

    def get_records_needing_review(self) -> List[StoreRecord]:
        records = self.load_lessons() + self.load_components()  # type: ignore[operator]
        flagged = [r for r in records if scoring.needs_review(r, self.config.review_threshold)]
        return sorted(flagged, key=lambda r: (r.confidence, r.id))

    def get_stats(self) -> Dict[str, Any]:
        """
        Store-wide figures

        ``by_component_category`` folds lessons into component categories
        through LESSON_TO_COMPONENT_CATEGORY; lessons without an analogue are
        counted under ``unmapped_lessons``.
        """
        lessons = self.load_lessons()
        components = self.load_components()

        lessons_by_category: Dict[str, int] = {}
        for lesson in lessons:
            lessons_by_category[lesson.category.value] = lessons_by_category.get(lesson.category.value, 0) + 1

        components_by_category: Dict[str, int] = {}
        for component in components:
            key = component.category.value
            components_by_category[key] = components_by_category.get(key, 0) + 1

        combined: Dict[str, int] = dict(components_by_category)
        unmapped = 0
        for lesson in lessons:
            target = LESSON_TO_COMPONENT_CATEGORY[lesson.category]
            if target is None:
                unmapped += 1
            else:
                combined[target.value] = combined.get(target.value, 0) + 1

        states: Dict[str, int] = {}
        for record in list(lessons) + list(components):
            states[record.state.value] = states.get(record.state.value, 0) + 1

        return {
            "lessons": scoring.summarize_confidence(lessons, self.config.review_threshold),
            "components": scoring.summarize_confidence(components, self.config.review_threshold),
            "lessons_by_category": dict(sorted(lessons_by_category.items())),
            "components_by_category": dict(sorted(components_by_category.items())),
            "by_component_category": dict(sorted(combined.items())),
            "unmapped_lessons": unmapped,
            "states": dict(sorted(states.items())),
            "trends": {
                record.id: scoring.get_confidence_trend(record.confidence_history)
                for record in list(lessons) + list(components) if not record.archived
            },
            "extractions_today": self.history.count_today_events(
                [HistoryEventKind.LESSON_RECORDED, HistoryEventKind.COMPONENT_EXTRACTED], now=self.clock()
            ),
            "extractions_remaining_today": self.rate_limiter.remaining(now=self.clock()),
        }


__all__ = [
    "PatternStore",
    "LifecycleReport",
    "lesson_category_for_action",
    "LESSONS_FILE",
    "COMPONENTS_FILE",
    "QUARANTINE_DIRNAME",
]
