"""
Journey Compiler Error Handling Framework

Provides:
- Custom exception classes for the compiler and the pattern store
- Error context tracking
- Counting and logging through a process-wide ErrorHandler
- Retry helper for transient store failures
"""

import random
import time
import traceback
import logging
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar


T = TypeVar("T")


# ============================================================================
# Custom Exception Classes
# ============================================================================

class JourneyCompilerError(Exception):
    """Base exception for all journey compiler errors"""

    retryable = False

    def __init__(self,
                 message: str,
                 component: str = "unknown",
                 context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.component = component
        self.context = context or {}
        self.timestamp = datetime.now()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "component": self.component,
            "context": self.context,
            "retryable": self.retryable,
            "timestamp": self.timestamp.isoformat(),
        }


class JourneyParseError(JourneyCompilerError):
    """Malformed journey document. Fatal to that journey only."""

    def __init__(self,
                 message: str,
                 source_path: Optional[str] = None,
                 issues: Optional[List[str]] = None,
                 context: Optional[Dict[str, Any]] = None):
        self.source_path = source_path
        self.issues = issues or []
        merged = dict(context or {})
        if source_path:
            merged.setdefault("source_path", source_path)
        if self.issues:
            merged.setdefault("issues", self.issues)
        super().__init__(message, component="journey_extractor", context=merged)


class CodeGenerationError(JourneyCompilerError):
    """Errors while rendering IR into source text"""
    pass


class PatternStoreError(JourneyCompilerError):
    """Errors in pattern store operations"""
    pass


class StoreCorruptionError(PatternStoreError):
    """A store file failed schema or version validation on load"""

    def __init__(self,
                 message: str,
                 file_path: Optional[str] = None,
                 quarantined_to: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        self.file_path = file_path
        self.quarantined_to = quarantined_to
        merged = dict(context or {})
        if file_path:
            merged.setdefault("file_path", file_path)
        if quarantined_to:
            merged.setdefault("quarantined_to", quarantined_to)
        super().__init__(message, component="pattern_store", context=merged)


class LockTimeoutError(PatternStoreError):
    """Exclusive store lock could not be acquired within the bounded wait"""

    retryable = True

    def __init__(self, lock_path: str, timeout: float):
        self.lock_path = lock_path
        self.timeout = timeout
        super().__init__(
            f"Could not acquire lock {lock_path} within {timeout:.2f}s",
            component="pattern_store",
            context={"lock_path": lock_path, "timeout_seconds": timeout},
        )


class ConfigurationError(JourneyCompilerError):
    """Errors in configuration"""
    pass


class ValidationError(ConfigurationError):
    """
    Configuration validation error

    Carries every problem found so they can be fixed in one pass.
    """

    def __init__(self, errors: List[str]):
        self.errors = errors
        message = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        super().__init__(message, component="config", context={"errors": errors})


# ============================================================================
# Global Error Handler
# ============================================================================

class ErrorHandler:
    """Tracks and logs errors raised by compiler components"""

    MAX_RECENT_ERRORS = 100

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("journey_compiler.error_handler")
        self.error_counts: Dict[str, int] = {}
        self.recent_errors: List[Dict[str, Any]] = []

    def handle_exception(self,
                         exc: Exception,
                         context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Log ``exc``, count it per (type, component) and keep it in the recent ring

        Compiler errors bring their own component and context; for other
        exceptions the caller-supplied ``context`` is used.

        Returns:
            error_type, error_message, stack_trace, timestamp and, when known,
            component and context
        """
        error_info: Dict[str, Any] = {
            "error_type": type(exc).__name__,
            "error_message": str(exc),
            "stack_trace": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            "timestamp": datetime.now().isoformat(),
        }

        if isinstance(exc, JourneyCompilerError):
            error_info["component"] = exc.component
            error_info["context"] = exc.context
            error_info["original_message"] = exc.message
        elif context:
            error_info["component"] = context.get("component", "unknown")
            error_info["context"] = context

        self.logger.error(
            f"Exception in {error_info.get('component', 'unknown')}: "
            f"{error_info['error_message']}"
        )

        error_key = f"{error_info['error_type']}:{error_info.get('component', 'unknown')}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        self.recent_errors.append(error_info)
        if len(self.recent_errors) > self.MAX_RECENT_ERRORS:
            self.recent_errors.pop(0)

        return error_info

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of errors encountered"""
        return {
            "total_errors": sum(self.error_counts.values()),
            "error_counts": dict(self.error_counts),
            "recent_error_count": len(self.recent_errors),
        }


_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance"""
    global _global_error_handler
    if _global_error_handler is None:
        from journey_compiler.utils.logger import get_logger
        _global_error_handler = ErrorHandler(get_logger("error_handler"))
    return _global_error_handler


# ============================================================================
# Exception Handling Decorators
# ============================================================================

def _wrap(func: Callable, component: str, reraise: bool, default_return: Any) -> Callable:
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            context = {
                "component": component,
                "function": func.__name__,
                "args": str(args)[:200],
                "kwargs": str(kwargs)[:200],
            }
            get_error_handler().handle_exception(e, context)
            if reraise:
                raise
            return default_return

    return wrapper


def handle_errors(*decorator_args, component: str = "unknown", reraise: bool = False, default_return: Any = None):
    """
    Report exceptions from the wrapped function to the global ErrorHandler

    Usable bare (@handle_errors) or configured:

        @handle_errors(component="pattern_store", reraise=True)
        def record_lesson(...): ...

    Without ``reraise`` the function returns ``default_return`` after a failure.
    """
    if decorator_args and callable(decorator_args[0]):
        return _wrap(decorator_args[0], component, reraise, default_return)

    def decorator(func):
        return _wrap(func, component, reraise, default_return)

    return decorator


def safe_execute(func: Callable[[], T],
                 component: str = "unknown",
                 default_return: Any = None,
                 log_errors: bool = True) -> Any:
    """Run a best-effort step; failures are reported and replaced by ``default_return``"""
    try:
        return func()
    except Exception as e:
        if log_errors:
            get_error_handler().handle_exception(e, {"component": component})
        return default_return


def retry_with_backoff(func: Callable[[], T],
                       attempts: int = 3,
                       base_delay: float = 0.05,
                       max_delay: float = 1.0,
                       retry_on: Tuple[Type[BaseException], ...] = (LockTimeoutError,)) -> T:
    """
    Call ``func`` and retry transient failures with exponential backoff

    Only exceptions listed in ``retry_on`` are retried; the last one is
    re-raised once attempts are exhausted.

    Args:
        func: Zero-argument callable
        attempts: Total number of calls
        base_delay: First delay in seconds
        max_delay: Ceiling for a single delay
        retry_on: Exception types that are considered transient

    Returns:
        Whatever ``func`` returns
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    for attempt in range(1, attempts + 1):
        try:
            return func()
        except retry_on as e:
            if attempt == attempts:
                raise
            delay = min(max_delay, base_delay * (2 ** (attempt - 1)))
            delay += random.uniform(0, delay / 2)
            get_error_handler().logger.warning(
                f"⚠️  Transient failure ({type(e).__name__}), retry {attempt}/{attempts - 1} in {delay:.2f}s"
            )
            time.sleep(delay)

    raise RuntimeError("unreachable")  # pragma: no cover


# ============================================================================
# Exception Context Manager
# ============================================================================

class ErrorContext:
    """
    Report an exception raised inside the block, tagged with ``component``

    The handler output is kept on ``error_info``. With ``reraise=False`` the
    exception is suppressed, which lets batch compiles carry on.
    """

    def __init__(self,
                 component: str,
                 context: Optional[Dict[str, Any]] = None,
                 reraise: bool = True):
        self.component = component
        self.context = context or {}
        self.reraise = reraise
        self.error_info: Optional[Dict[str, Any]] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None or not issubclass(exc_type, Exception):
            return False

        if isinstance(exc_val, JourneyCompilerError):
            exc_val.context.update(self.context)

        full_context = {"component": self.component, **self.context}
        self.error_info = get_error_handler().handle_exception(exc_val, full_context)
        return not self.reraise


__all__ = [
    "JourneyCompilerError",
    "JourneyParseError",
    "CodeGenerationError",
    "PatternStoreError",
    "StoreCorruptionError",
    "LockTimeoutError",
    "ConfigurationError",
    "ValidationError",
    "ErrorHandler",
    "get_error_handler",
    "handle_errors",
    "safe_execute",
    "retry_with_backoff",
    "ErrorContext",
]
