"""
Journey Compiler Logging System

Every component logs through a child of the ``journey_compiler`` logger.
Console output goes through rich on stderr; an optional plain-text file
handler mirrors it for batch runs.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from rich.console import Console
from rich.logging import RichHandler


# Plain format for log files
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "journey_compiler"


class JourneyCompilerLogger:
    """Centralized logger for journey compiler components"""

    _loggers: Dict[str, logging.Logger] = {}
    _configured = False

    @classmethod
    def configure(cls,
                  level: str = "INFO",
                  log_file: Optional[str] = None,
                  use_rich: bool = True) -> None:
        """
        Configure the logging system

        Only the ``journey_compiler`` logger tree is touched, so embedding
        applications keep control of the root logger.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Optional path to log file
            use_rich: Use rich console formatting
        """
        if cls._configured:
            return

        numeric_level = getattr(logging, level.upper(), logging.INFO)

        package_logger = logging.getLogger(ROOT_LOGGER_NAME)
        package_logger.setLevel(numeric_level)
        package_logger.handlers.clear()

        if use_rich:
            console_handler: logging.Handler = RichHandler(
                console=Console(stderr=True),
                show_time=True,
                show_path=False,
                rich_tracebacks=True,
                markup=False,
            )
            console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        else:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

        console_handler.setLevel(numeric_level)
        package_logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            file_handler.setLevel(numeric_level)
            package_logger.addHandler(file_handler)

        cls._configured = True

        logger = cls.get_logger("logging")
        logger.debug(f"Logging system configured at {level} level")
        if log_file:
            logger.info(f"Logging to file: {log_file}")

    @classmethod
    def reset(cls) -> None:
        """Drop handlers and cached loggers so configure() can run again"""
        logging.getLogger(ROOT_LOGGER_NAME).handlers.clear()
        cls._loggers.clear()
        cls._configured = False

    @classmethod
    def get_logger(cls, component: str) -> logging.Logger:
        """
        Get or create a logger for a specific component

        Args:
            component: Component name (e.g., "pattern_store", "ir_builder")

        Returns:
            Logger instance for the component
        """
        if component in cls._loggers:
            return cls._loggers[component]

        if not cls._configured:
            cls.configure()

        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
        logger.setLevel(logging.DEBUG)  # handlers filter
        logger.propagate = True

        cls._loggers[component] = logger
        return logger


def get_logger(component: str) -> logging.Logger:
    """
    Convenience function to get a logger for a component

    Args:
        component: Component name

    Returns:
        Logger instance
    """
    return JourneyCompilerLogger.get_logger(component)


__all__ = [
    "JourneyCompilerLogger",
    "get_logger",
    "LOG_FORMAT",
    "DATE_FORMAT",
]
