"""
Shared utilities: logging, error handling and store file primitives.
"""

from .logger import JourneyCompilerLogger, get_logger
from .errors import (
    JourneyCompilerError,
    JourneyParseError,
    CodeGenerationError,
    PatternStoreError,
    StoreCorruptionError,
    LockTimeoutError,
    ConfigurationError,
    ValidationError,
    handle_errors,
    retry_with_backoff,
)

__all__ = [
    "JourneyCompilerLogger",
    "get_logger",
    "JourneyCompilerError",
    "JourneyParseError",
    "CodeGenerationError",
    "PatternStoreError",
    "StoreCorruptionError",
    "LockTimeoutError",
    "ConfigurationError",
    "ValidationError",
    "handle_errors",
    "retry_with_backoff",
]
