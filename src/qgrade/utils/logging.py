"""
Logging Utilities for QGRADE.

Console output goes through rich; log files get a plain, column-aligned
format. Records emitted while an exercise is being graded carry the
exercise name so interleaved output from a parallel suite stays readable.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


ROOT_LOGGER = "qgrade"

# Custom log levels
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_context = threading.local()


class ExerciseContextFilter(logging.Filter):
    """Attach the exercise currently graded on this thread to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.exercise = getattr(_context, "exercise", "-")
        return True


class QGradeFormatter(logging.Formatter):
    """Plain formatter for QGRADE log files."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        module = record.name[-20:] if len(record.name) > 20 else record.name
        exercise = getattr(record, "exercise", "-")
        message = record.getMessage()
        if record.exc_info:
            message += '\n' + self.formatException(record.exc_info)
        return f"{timestamp} | {record.levelname:8} | {module:20} | {exercise:16} | {message}"


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger below the ``qgrade`` hierarchy.

    Args:
        name: Logger name (usually module name)
        level: Optional log level override
    """
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def _level_number(level: str) -> int:
    if level.upper() == "TRACE":
        return TRACE
    return getattr(logging, level.upper(), logging.INFO)


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Configure the ``qgrade`` logger hierarchy.

    Args:
        level: Log level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file receiving every record at DEBUG and above
        console: Rich console for terminal output (stderr by default)
    """
    log_level = _level_number(level)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(min(log_level, logging.DEBUG) if log_file else log_level)
    root.handlers.clear()
    root.propagate = False

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(log_level)
    handler.addFilter(ExerciseContextFilter())
    root.addHandler(handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(QGradeFormatter())
        file_handler.addFilter(ExerciseContextFilter())
        root.addHandler(file_handler)


class LogContext:
    """
    Context manager scoping log output to one grading run.

    Tags records from the current thread with ``exercise`` and optionally
    changes the ``qgrade`` level for the duration of the block.

    Example:
        >>> with LogContext(exercise="flip_qubit", level="DEBUG"):
        ...     harness.grade(exercise)
    """

    def __init__(
        self,
        exercise: Optional[str] = None,
        level: Optional[str] = None,
        logger_name: str = ROOT_LOGGER,
    ) -> None:
        self.exercise = exercise
        self.level = level
        self.logger_name = logger_name
        self._previous_level: Optional[int] = None
        self._previous_exercise: Optional[str] = None

    def __enter__(self) -> 'LogContext':
        self._previous_exercise = getattr(_context, "exercise", None)
        if self.exercise is not None:
            _context.exercise = self.exercise
        if self.level:
            logger = logging.getLogger(self.logger_name)
            self._previous_level = logger.level
            logger.setLevel(_level_number(self.level))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._previous_exercise is None:
            _context.__dict__.pop("exercise", None)
        else:
            _context.exercise = self._previous_exercise
        if self._previous_level is not None:
            logging.getLogger(self.logger_name).setLevel(self._previous_level)


def current_exercise() -> Optional[str]:
    """Exercise being graded on this thread, if any."""
    return getattr(_context, "exercise", None)
