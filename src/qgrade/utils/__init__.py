"""
Utilities module for QGRADE.

This module provides logging helpers and submission loading used throughout
the grader.
"""

from qgrade.utils.logging import (
    TRACE,
    QGradeFormatter,
    ExerciseContextFilter,
    get_logger,
    configure_logging,
    LogContext,
    current_exercise,
)
from qgrade.utils.loading import (
    load_module,
    load_object,
)

__all__ = [
    # Logging
    "TRACE",
    "QGradeFormatter",
    "ExerciseContextFilter",
    "get_logger",
    "configure_logging",
    "LogContext",
    "current_exercise",
    # Loading
    "load_module",
    "load_object",
]
