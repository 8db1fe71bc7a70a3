"""
Concurrency tests for the pattern store: locking, atomic writes and
simultaneous writers from threads and processes
"""

import json
import multiprocessing
import threading
import time

import pytest

from journey_compiler.config import PatternStoreConfig
from journey_compiler.pattern_store.store import PatternStore
from journey_compiler.utils.errors import LockTimeoutError
from journey_compiler.utils.file_utils import (
    FileLock,
    append_jsonl,
    atomic_write_json,
    cleanup_temp_files,
    read_json,
    read_jsonl,
)


def _roomy_config(root):
    return PatternStoreConfig(
        root=str(root),
        max_extractions_per_day=1000,
        max_extractions_per_journey=1000,
        lock_timeout_seconds=30.0,
        lock_retry_interval_seconds=0.01,
    )


def _record_from_process(root, worker, count):
    store = PatternStore(root, config=_roomy_config(root), write_delay=0.005)
    for index in range(count):
        store.record_lesson("quirk", "concurrent", f"Process {worker} lesson {index}",
                            journey_id=f"JRN-{worker:04d}")


def _hold_lock(path, acquired, release):
    with FileLock(path, timeout=5.0):
        acquired.set()
        release.wait(10)


class TestFileLock:
    """Test exclusive locking"""

    def test_same_process_contention_times_out(self, tmp_path):
        """Test: a second holder in the same process gives up after the timeout."""
        target = tmp_path / "lessons.json"
        with FileLock(target, timeout=1.0):
            started = time.monotonic()
            with pytest.raises(LockTimeoutError) as exc_info:
                with FileLock(target, timeout=0.1):
                    pass
            assert time.monotonic() - started < 1.0
        assert exc_info.value.retryable
        assert exc_info.value.lock_path.endswith("lessons.json.lock")

    def test_other_thread_times_out(self, tmp_path):
        """Test: a thread waiting on a held lock raises LockTimeoutError."""
        target = tmp_path / "lessons.json"
        errors = []

        def contender():
            try:
                with FileLock(target, timeout=0.1, retry_interval=0.01):
                    pass
            except LockTimeoutError as e:
                errors.append(e)

        with FileLock(target):
            thread = threading.Thread(target=contender)
            thread.start()
            thread.join()
        assert len(errors) == 1

    def test_other_process_times_out(self, tmp_path):
        """Test: flock excludes a holder in another process."""
        target = tmp_path / "lessons.json"
        context = multiprocessing.get_context("spawn")
        acquired = context.Event()
        release = context.Event()
        holder = context.Process(target=_hold_lock, args=(str(target), acquired, release))
        holder.start()
        try:
            assert acquired.wait(30)
            with pytest.raises(LockTimeoutError):
                FileLock(target, timeout=0.2, retry_interval=0.02).acquire()
        finally:
            release.set()
            holder.join(30)
        assert holder.exitcode == 0

        with FileLock(target, timeout=1.0) as lock:
            assert lock.is_held
        assert not lock.is_held

    def test_released_on_exception(self, tmp_path):
        """Test: leaving the block through an error frees the lock."""
        target = tmp_path / "lessons.json"
        with pytest.raises(RuntimeError):
            with FileLock(target):
                raise RuntimeError("boom")
        with FileLock(target, timeout=0.1):
            pass


class TestAtomicWrites:
    """Test write helpers"""

    def test_no_temp_files_left(self, tmp_path):
        """Test: the temp file is promoted, never left behind."""
        target = tmp_path / "components.json"
        atomic_write_json(target, {"version": "1.0.0", "components": []})
        atomic_write_json(target, {"version": "1.0.0", "components": [1]})
        assert read_json(target)["components"] == [1]
        assert list(tmp_path.glob("*.tmp.*")) == []

    def test_failed_write_keeps_old_file(self, tmp_path):
        """Test: an unserializable document leaves the previous version intact."""
        target = tmp_path / "components.json"
        atomic_write_json(target, {"ok": True})
        with pytest.raises(TypeError):
            atomic_write_json(target, {"bad": object()})
        assert read_json(target) == {"ok": True}
        assert list(tmp_path.glob("*.tmp.*")) == []

    def test_readers_never_see_partial_file(self, tmp_path):
        """Test: a reader polling during slow writes always parses a full document."""
        target = tmp_path / "lessons.json"
        atomic_write_json(target, {"n": 0})
        stop = threading.Event()
        failures = []

        def reader():
            while not stop.is_set():
                try:
                    read_json(target)
                except json.JSONDecodeError as e:
                    failures.append(e)

        thread = threading.Thread(target=reader)
        thread.start()
        for n in range(1, 6):
            atomic_write_json(target, {"n": n, "padding": "x" * 5000}, write_delay=0.01)
        stop.set()
        thread.join()
        assert failures == []
        assert read_json(target)["n"] == 5

    def test_append_jsonl_lines_intact(self, tmp_path):
        """Test: concurrent appenders never interleave inside a line."""
        target = tmp_path / "history" / "2026-03-01.jsonl"

        def appender(worker):
            for index in range(25):
                append_jsonl(target, {"worker": worker, "index": index, "text": "y" * 200})

        threads = [threading.Thread(target=appender, args=(w,)) for w in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        records = read_jsonl(target)
        assert len(records) == 100
        assert {(r["worker"], r["index"]) for r in records} == {(w, i) for w in range(4) for i in range(25)}

    def test_cleanup_only_removes_old_temp_files(self, tmp_path):
        """Test: fresh temp files may belong to a live writer and are kept."""
        (tmp_path / "lessons.json.tmp.abc").write_text("{}", encoding="utf-8")
        assert cleanup_temp_files(tmp_path) == 0
        assert cleanup_temp_files(tmp_path, max_age_seconds=-1) == 1
        assert list(tmp_path.glob("*.tmp.*")) == []


class TestConcurrentStoreWriters:
    """Test simultaneous writers sharing one store"""

    def test_threads_with_separate_instances(self, tmp_path):
        """Test: N writers appending distinct components leave exactly N records."""
        root = tmp_path / "store"
        stores = [PatternStore(root, config=_roomy_config(root), write_delay=0.005) for _ in range(4)]
        results = []

        def writer(worker):
            for index in range(5):
                results.append(stores[worker].record_component(
                    f"Widget {worker}-{index}",
                    "ui-interaction",
                    f"await page.getByTestId('w{worker}i{index}').click();",
                    journey_id=f"JRN-{worker:04d}",
                ))

        threads = [threading.Thread(target=writer, args=(w,)) for w in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert {r.status for r in results} == {"created"}
        components = stores[0].load_components()
        assert len(components) == 20
        assert len({c.id for c in components}) == 20
        assert stores[0].get_stats()["extractions_today"] == 20

    def test_processes(self, tmp_path):
        """Test: writers in separate processes keep every lesson."""
        root = tmp_path / "store"
        PatternStore(root, config=_roomy_config(root))
        context = multiprocessing.get_context("spawn")
        workers = [
            context.Process(target=_record_from_process, args=(str(root), worker, 4))
            for worker in range(3)
        ]
        for process in workers:
            process.start()
        for process in workers:
            process.join(120)
        assert [p.exitcode for p in workers] == [0, 0, 0]

        lessons = PatternStore(root, config=_roomy_config(root)).load_lessons()
        assert len(lessons) == 12
        assert len({l.id for l in lessons}) == 12
        assert {l.trigger for l in lessons} == {
            f"Process {w} lesson {i}" for w in range(3) for i in range(4)
        }

    def test_rate_limit_holds_under_contention(self, tmp_path):
        """Test: concurrent writers for one journey cannot exceed its limit."""
        root = tmp_path / "store"
        config = PatternStoreConfig(root=str(root), lock_timeout_seconds=30.0)
        stores = [PatternStore(root, config=config) for _ in range(4)]
        results = []

        def writer(worker):
            results.append(stores[worker].record_lesson("quirk", "d", f"Contended lesson {worker}",
                                                        journey_id="JRN-0001"))

        threads = [threading.Thread(target=writer, args=(w,)) for w in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(r.status for r in results) == ["created", "created", "rate_limited", "rate_limited"]
        assert len(stores[0].load_lessons()) == 2
