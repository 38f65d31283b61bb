"""
Harness module for QGRADE.

This module provides the exercise model, the grading harness, reporters and
the parallel suite runner.
"""

from qgrade.harness.exercise import Exercise, ExerciseCatalog, GradeResult
from qgrade.harness.registry import OperationRegistry
from qgrade.harness.reporter import (
    Reporter,
    NullReporter,
    CollectingReporter,
    TextReporter,
    RichReporter,
)
from qgrade.harness.harness import GradingHarness
from qgrade.harness.suite import SuiteResults, SuiteRunner

__all__ = [
    "Exercise",
    "ExerciseCatalog",
    "GradeResult",
    "OperationRegistry",
    "Reporter",
    "NullReporter",
    "CollectingReporter",
    "TextReporter",
    "RichReporter",
    "GradingHarness",
    "SuiteResults",
    "SuiteRunner",
]
