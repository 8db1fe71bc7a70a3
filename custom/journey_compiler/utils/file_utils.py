"""
File utilities for the pattern store

- FileLock: advisory fcntl lock on a sidecar ``.lock`` file with bounded wait
- atomic_write_json: temp file + fsync + os.replace
- append_jsonl: serialized append of one JSON line
- quarantine_file: move a corrupted file aside
"""

import fcntl
import json
import os
import secrets
import shutil
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from journey_compiler.utils.errors import LockTimeoutError
from journey_compiler.utils.logger import get_logger


PathLike = Union[str, Path]

DEFAULT_LOCK_TIMEOUT = 5.0
DEFAULT_RETRY_INTERVAL = 0.05

logger = get_logger("file_utils")


# ============================================================================
# Locking
# ============================================================================

# flock locks belong to the open file description, so two threads of one
# process opening the lock file separately still exclude each other. The
# per-path thread lock keeps same-process waiters from spinning on flock.
_thread_locks: Dict[str, threading.Lock] = {}
_thread_locks_guard = threading.Lock()


def _thread_lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _thread_locks_guard:
        lock = _thread_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _thread_locks[key] = lock
        return lock


class FileLock:
    """
    Exclusive advisory lock guarding a data file

    Usage:
        with FileLock(store_dir / "lessons.json", timeout=5.0):
            data = read_json(...)
            atomic_write_json(...)

    The lock lives in ``<path>.lock``. Acquisition polls a non-blocking
    ``fcntl.flock`` every ``retry_interval`` seconds and raises
    ``LockTimeoutError`` once ``timeout`` elapses.
    """

    def __init__(self,
                 path: PathLike,
                 timeout: float = DEFAULT_LOCK_TIMEOUT,
                 retry_interval: float = DEFAULT_RETRY_INTERVAL):
        self.target_path = Path(path)
        self.lock_path = self.target_path.with_name(self.target_path.name + ".lock")
        self.timeout = timeout
        self.retry_interval = retry_interval
        self._fd: Optional[int] = None
        self._thread_lock = _thread_lock_for(self.lock_path)

    @property
    def is_held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """
        Acquire the lock or raise LockTimeoutError

        Raises:
            LockTimeoutError: If the lock is still held elsewhere after ``timeout``
        """
        deadline = time.monotonic() + self.timeout

        if not self._thread_lock.acquire(timeout=max(self.timeout, 0)):
            raise LockTimeoutError(str(self.lock_path), self.timeout)

        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(self.lock_path), os.O_RDWR | os.O_CREAT, 0o644)
        except OSError:
            self._thread_lock.release()
            raise

        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    os.close(fd)
                    self._thread_lock.release()
                    logger.warning(f"⚠️  Lock wait timed out: {self.lock_path}")
                    raise LockTimeoutError(str(self.lock_path), self.timeout)
                time.sleep(self.retry_interval)

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()} {datetime.now().isoformat()}\n".encode("utf-8"))
        self._fd = fd

    def release(self) -> None:
        """Release the lock if held"""
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
            self._thread_lock.release()

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False


# ============================================================================
# Reading / Writing
# ============================================================================

def read_json(path: PathLike) -> Any:
    """
    Load a JSON document

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the content is not valid JSON
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def atomic_write_json(path: PathLike, data: Any, write_delay: float = 0.0) -> None:
    """
    Write JSON so readers only ever see the old or the new complete file

    The document is written to ``<path>.tmp.<random>``, flushed and fsynced,
    then promoted with ``os.replace``.

    Args:
        path: Destination path
        data: JSON-serializable document
        write_delay: Seconds to sleep between write and promote (tests only)
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path = target.with_name(f"{target.name}.tmp.{secrets.token_hex(6)}")

    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        if write_delay:
            time.sleep(write_delay)
        os.replace(temp_path, target)
    except BaseException:
        if temp_path.exists():
            temp_path.unlink()
        raise


def append_jsonl(path: PathLike,
                 record: Dict[str, Any],
                 timeout: float = DEFAULT_LOCK_TIMEOUT,
                 retry_interval: float = DEFAULT_RETRY_INTERVAL) -> None:
    """
    Append one JSON line under the file's lock

    A single ``write`` of a complete line keeps concurrent readers from ever
    seeing a partial record.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    line = json.dumps(record, ensure_ascii=False, sort_keys=True) + "\n"

    with FileLock(target, timeout=timeout, retry_interval=retry_interval):
        with open(target, "a", encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())


def iter_jsonl(path: PathLike) -> Iterator[Dict[str, Any]]:
    """
    Yield records from a JSON-lines file

    Lines that fail to decode are skipped with a warning.
    """
    target = Path(path)
    if not target.exists():
        return

    with open(target, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                logger.warning(f"⚠️  Skipping malformed line {line_number} in {target}")
                continue
            if isinstance(record, dict):
                yield record


def read_jsonl(path: PathLike) -> List[Dict[str, Any]]:
    return list(iter_jsonl(path))


def quarantine_file(path: PathLike, quarantine_dir: PathLike) -> Path:
    """
    Move a corrupted file into ``quarantine_dir`` with a timestamp suffix

    Callers hold the file's lock so a concurrent writer's fresh file is never
    moved instead.

    Returns:
        Path of the quarantined copy
    """
    source = Path(path)
    destination_dir = Path(quarantine_dir)
    destination_dir.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    destination = destination_dir / f"{source.name}.{stamp}.corrupt"
    shutil.move(str(source), str(destination))

    logger.warning(f"⚠️  Quarantined {source} -> {destination}")
    return destination


def cleanup_temp_files(directory: PathLike, max_age_seconds: float = 300.0) -> int:
    """
    Remove leftover ``*.tmp.*`` files from interrupted writes

    Only files older than ``max_age_seconds`` are removed; younger ones may
    belong to a write still in progress in another process.
    """
    cutoff = time.time() - max_age_seconds
    removed = 0
    for temp_file in Path(directory).glob("*.tmp.*"):
        try:
            if temp_file.stat().st_mtime > cutoff:
                continue
            temp_file.unlink()
            removed += 1
        except FileNotFoundError:
            continue
    if removed:
        logger.info(f"Removed {removed} leftover temp files from {directory}")
    return removed


__all__ = [
    "FileLock",
    "read_json",
    "atomic_write_json",
    "append_jsonl",
    "iter_jsonl",
    "read_jsonl",
    "quarantine_file",
    "cleanup_temp_files",
    "DEFAULT_LOCK_TIMEOUT",
    "DEFAULT_RETRY_INTERVAL",
]
