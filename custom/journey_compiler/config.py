"""
Journey Compiler - Configuration Management

Loads tunables for the compiler, the code generator and the pattern store
from a YAML file. Every value has a default, so a missing file is valid.

Example ``journey-compiler.yaml``:

    compiler:
      accepted_statuses: [clarified, implemented]
      max_workers: 4
    generator:
      output_directory: tests/journeys
      emit_support_module: true
    pattern_store:
      root: .pattern-store
      decay_horizon_days: 30
      similarity_threshold: 0.8
      confidence_window: 90
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from journey_compiler.utils.errors import ValidationError


VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _check_number(errors: List[str], name: str, value: Any, minimum: float,
                  maximum: Optional[float] = None, integer: bool = False) -> None:
    expected = int if integer else (int, float)
    if isinstance(value, bool) or not isinstance(value, expected):
        kind = "an integer" if integer else "a number"
        errors.append(f"{name} must be {kind}, got: {type(value).__name__}")
        return
    if value < minimum:
        errors.append(f"{name} must be >= {minimum}, got: {value}")
    if maximum is not None and value > maximum:
        errors.append(f"{name} must be <= {maximum}, got: {value}")


@dataclass
class PatternStoreConfig:
    """Pattern store tunables"""
    root: str = ".pattern-store"

    # Lifecycle
    decay_horizon_days: int = 30
    confidence_window: int = 90
    confidence_retention_days: int = 90
    review_threshold: float = 0.4

    # Matching and dedupe
    similarity_threshold: float = 0.8
    min_match_confidence: float = 0.7

    # Extraction rate limits (counted from the history log)
    max_extractions_per_day: int = 5
    max_extractions_per_journey: int = 2

    # Locking
    lock_timeout_seconds: float = 5.0
    lock_retry_interval_seconds: float = 0.05

    history_retention_days: int = 365

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PatternStoreConfig':
        defaults = cls()
        return cls(
            root=data.get("root", defaults.root),
            decay_horizon_days=data.get("decay_horizon_days", defaults.decay_horizon_days),
            confidence_window=data.get("confidence_window", defaults.confidence_window),
            confidence_retention_days=data.get("confidence_retention_days", defaults.confidence_retention_days),
            review_threshold=data.get("review_threshold", defaults.review_threshold),
            similarity_threshold=data.get("similarity_threshold", defaults.similarity_threshold),
            min_match_confidence=data.get("min_match_confidence", defaults.min_match_confidence),
            max_extractions_per_day=data.get("max_extractions_per_day", defaults.max_extractions_per_day),
            max_extractions_per_journey=data.get("max_extractions_per_journey", defaults.max_extractions_per_journey),
            lock_timeout_seconds=data.get("lock_timeout_seconds", defaults.lock_timeout_seconds),
            lock_retry_interval_seconds=data.get("lock_retry_interval_seconds", defaults.lock_retry_interval_seconds),
            history_retention_days=data.get("history_retention_days", defaults.history_retention_days),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root,
            "decay_horizon_days": self.decay_horizon_days,
            "confidence_window": self.confidence_window,
            "confidence_retention_days": self.confidence_retention_days,
            "review_threshold": self.review_threshold,
            "similarity_threshold": self.similarity_threshold,
            "min_match_confidence": self.min_match_confidence,
            "max_extractions_per_day": self.max_extractions_per_day,
            "max_extractions_per_journey": self.max_extractions_per_journey,
            "lock_timeout_seconds": self.lock_timeout_seconds,
            "lock_retry_interval_seconds": self.lock_retry_interval_seconds,
            "history_retention_days": self.history_retention_days,
        }

    def validate(self) -> List[str]:
        """
        Validate pattern store configuration

        Returns:
            List of error messages (empty if valid)
        """
        errors: List[str] = []

        if not self.root or not isinstance(self.root, str):
            errors.append(f"root must be a non-empty string, got: {self.root!r}")

        _check_number(errors, "decay_horizon_days", self.decay_horizon_days, 1, integer=True)
        _check_number(errors, "confidence_window", self.confidence_window, 1, integer=True)
        _check_number(errors, "confidence_retention_days", self.confidence_retention_days, 1, integer=True)
        _check_number(errors, "review_threshold", self.review_threshold, 0.0, 1.0)
        _check_number(errors, "similarity_threshold", self.similarity_threshold, 0.0, 1.0)
        _check_number(errors, "min_match_confidence", self.min_match_confidence, 0.0, 1.0)
        _check_number(errors, "max_extractions_per_day", self.max_extractions_per_day, 0, integer=True)
        _check_number(errors, "max_extractions_per_journey", self.max_extractions_per_journey, 0, integer=True)
        _check_number(errors, "lock_timeout_seconds", self.lock_timeout_seconds, 0.0)
        _check_number(errors, "lock_retry_interval_seconds", self.lock_retry_interval_seconds, 0.001)
        _check_number(errors, "history_retention_days", self.history_retention_days, 1, integer=True)

        return errors


@dataclass
class GeneratorConfig:
    """Code generation settings"""
    output_directory: str = "tests/journeys"
    modules_directory: str = "tests/modules"
    base_url: str = "http://localhost:3000"
    test_timeout_ms: int = 30000
    emit_support_module: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GeneratorConfig':
        defaults = cls()
        return cls(
            output_directory=data.get("output_directory", defaults.output_directory),
            modules_directory=data.get("modules_directory", defaults.modules_directory),
            base_url=data.get("base_url", defaults.base_url),
            test_timeout_ms=data.get("test_timeout_ms", defaults.test_timeout_ms),
            emit_support_module=data.get("emit_support_module", defaults.emit_support_module),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_directory": self.output_directory,
            "modules_directory": self.modules_directory,
            "base_url": self.base_url,
            "test_timeout_ms": self.test_timeout_ms,
            "emit_support_module": self.emit_support_module,
        }

    def validate(self) -> List[str]:
        errors: List[str] = []
        if not self.output_directory:
            errors.append("generator.output_directory must be a non-empty string")
        if not self.modules_directory:
            errors.append("generator.modules_directory must be a non-empty string")
        if not isinstance(self.base_url, str) or not self.base_url.startswith(("http://", "https://")):
            errors.append(f"generator.base_url must start with http:// or https://, got: {self.base_url!r}")
        _check_number(errors, "generator.test_timeout_ms", self.test_timeout_ms, 1, integer=True)
        if not isinstance(self.emit_support_module, bool):
            errors.append(
                f"generator.emit_support_module must be boolean, got: {type(self.emit_support_module).__name__}"
            )
        return errors


@dataclass
class CompilerConfig:
    """
    Main journey compiler configuration

    Holds the nested generator and pattern store sections.
    """
    accepted_statuses: List[str] = field(default_factory=lambda: ["clarified", "implemented"])
    max_workers: int = 4
    log_level: str = "INFO"
    log_file: Optional[str] = None

    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    pattern_store: PatternStoreConfig = field(default_factory=PatternStoreConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'CompilerConfig':
        """Create CompilerConfig from dictionary"""
        data = data or {}
        compiler_data = data.get("compiler", {}) or {}
        defaults = cls()

        return cls(
            accepted_statuses=list(compiler_data.get("accepted_statuses", defaults.accepted_statuses)),
            max_workers=compiler_data.get("max_workers", defaults.max_workers),
            log_level=compiler_data.get("log_level", defaults.log_level),
            log_file=compiler_data.get("log_file", defaults.log_file),
            generator=GeneratorConfig.from_dict(data.get("generator", {}) or {}),
            pattern_store=PatternStoreConfig.from_dict(data.get("pattern_store", {}) or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "compiler": {
                "accepted_statuses": list(self.accepted_statuses),
                "max_workers": self.max_workers,
                "log_level": self.log_level,
                "log_file": self.log_file,
            },
            "generator": self.generator.to_dict(),
            "pattern_store": self.pattern_store.to_dict(),
        }

    def validate(self) -> List[str]:
        """
        Validate entire configuration

        Returns:
            List of error messages (empty if valid)
        """
        from journey_compiler.journey_extractor.journey_parser import JourneyStatus

        errors: List[str] = []

        valid_statuses = {status.value for status in JourneyStatus}
        if not self.accepted_statuses:
            errors.append("At least one accepted status must be configured")
        for status in self.accepted_statuses:
            if status not in valid_statuses:
                errors.append(
                    f"Invalid accepted status: '{status}'. "
                    f"Valid options: {', '.join(sorted(valid_statuses))}"
                )

        _check_number(errors, "max_workers", self.max_workers, 1, integer=True)

        if not isinstance(self.log_level, str) or self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of {VALID_LOG_LEVELS}, got: {self.log_level!r}")

        errors.extend(self.generator.validate())
        errors.extend(f"pattern_store.{error}" for error in self.pattern_store.validate())

        return errors


def load_config(path: Optional[Union[str, Path]] = None, validate: bool = True) -> CompilerConfig:
    """
    Load configuration from a YAML file

    Args:
        path: Path to the YAML file; None or a missing file yields defaults
        validate: If True, validate configuration after loading

    Raises:
        yaml.YAMLError: If the file has invalid YAML syntax
        ValidationError: If configuration validation fails
    """
    data: Dict[str, Any] = {}
    if path is not None and Path(path).exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValidationError([f"Top level of {path} must be a mapping"])

    config = CompilerConfig.from_dict(data)

    if validate:
        errors = config.validate()
        if errors:
            raise ValidationError(errors)

    return config


def save_config(config: CompilerConfig, path: Union[str, Path]) -> None:
    """Write configuration back to YAML"""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


__all__ = [
    "PatternStoreConfig",
    "GeneratorConfig",
    "CompilerConfig",
    "load_config",
    "save_config",
]
