"""
Grading harness.

Orchestrates one grading run: resolve the learner's operation, check its
signature, run the equivalence checker, collect a diagnostic on failure and
hand the result to the reporter.
"""

from __future__ import annotations

import logging
import sys
import time
from typing import Callable, Optional, TextIO, Union

from qgrade.config import GraderConfig
from qgrade.core.errors import UnknownOperationError
from qgrade.core.operation import Operation
from qgrade.core.register import QubitArena
from qgrade.core.types import Verdict, VerdictStatus
from qgrade.harness.exercise import Exercise, GradeResult
from qgrade.harness.registry import OperationRegistry
from qgrade.harness.reporter import NullReporter, Reporter, TextReporter
from qgrade.utils.logging import LogContext
from qgrade.verification.diagnostics import DiagnosticRunner
from qgrade.verification.equivalence import EquivalenceChecker


logger = logging.getLogger(__name__)

Candidate = Union[Operation, str, None]


class GradingHarness:
    """
    Grades submissions against exercises.

    Example:
        >>> harness = GradingHarness(registry=OperationRegistry.from_source("alice.py"))
        >>> harness.grade(catalog.get("flip_qubit")).passed
        True

    Args:
        config: Grader configuration
        registry: Where candidate operations are resolved by name
        arena: Register arena; sized from ``config.max_qubits`` if omitted
    """

    def __init__(
        self,
        config: Optional[GraderConfig] = None,
        registry: Optional[OperationRegistry] = None,
        arena: Optional[QubitArena] = None,
    ) -> None:
        self.config = config or GraderConfig()
        self.registry = registry or OperationRegistry()
        self.arena = arena or QubitArena(self.config.max_qubits)
        self.profile = self.config.profile
        self.diagnostics = DiagnosticRunner(
            arena=self.arena,
            profile=self.profile,
            tolerance=self.config.tolerance,
            max_counterexample_qubits=self.config.counterexample_max_qubits,
            seed=self.config.seed,
        )

    def checker_for(self, exercise: Exercise) -> EquivalenceChecker:
        return EquivalenceChecker(
            tolerance=self.config.tolerance,
            mode=exercise.mode,
            profile=self.profile,
            arena=self.arena,
            seed=self.config.seed,
        )

    def grade(
        self,
        exercise: Exercise,
        candidate: Candidate = None,
        reporter: Optional[Reporter] = None,
    ) -> GradeResult:
        """
        Grade one submission.

        Args:
            exercise: The exercise to grade against
            candidate: The learner's operation, or the name to resolve it by
                (``exercise.candidate_name`` when omitted)
            reporter: Receives the result; discarded output when omitted

        Returns:
            GradeResult; errors outside the checked operations become an
            ABORTED verdict
        """
        reporter = reporter or NullReporter()
        with LogContext(exercise=exercise.name):
            reporter.begin(exercise)
            try:
                start_time = time.time()
                try:
                    result = self._grade(exercise, candidate)
                except Exception as e:
                    # Programming and capability errors, and anything raised
                    # outside the checked operations.
                    logger.error(f"Grading '{exercise.name}' aborted: {e}", exc_info=True)
                    result = GradeResult(
                        exercise=exercise.name,
                        candidate=_candidate_label(exercise, candidate),
                        verdict=Verdict(
                            status=VerdictStatus.ABORTED,
                            mode=exercise.mode,
                            message=str(e),
                            time_seconds=time.time() - start_time,
                            error=type(e).__name__,
                        ),
                    )
                logger.info(
                    f"{exercise.name}: {result.status.name} ({result.verdict.time_seconds:.3f}s)"
                )
                reporter.report(result, exercise)
            finally:
                reporter.finish()
        return result

    def _grade(self, exercise: Exercise, candidate: Candidate) -> GradeResult:
        label = _candidate_label(exercise, candidate)

        if candidate is None or isinstance(candidate, str):
            try:
                candidate = self.registry.resolve(label)
            except UnknownOperationError as e:
                return self._execution_error(exercise, label, str(e), "missing operation")
        if not isinstance(candidate, Operation):
            return self._execution_error(
                exercise, label, f"'{label}' is a {type(candidate).__name__}, not an operation",
                "not an operation",
            )
        if candidate.num_qubits != exercise.num_qubits:
            return self._execution_error(
                exercise,
                label,
                f"Operation '{label}' acts on {candidate.num_qubits} qubit(s), "
                f"exercise '{exercise.name}' expects {exercise.num_qubits}",
                "signature mismatch",
            )

        verdict = self.checker_for(exercise).check(
            candidate, exercise.reference, exercise.num_qubits, exercise.preparer
        )
        result = GradeResult(exercise=exercise.name, candidate=label, verdict=verdict)

        if verdict.status is VerdictStatus.INCORRECT and self.config.diagnostics:
            result.diagnostic = self.diagnostics.diagnose(
                candidate, exercise.reference, exercise.num_qubits, exercise.preparer
            )
        return result

    def _execution_error(
        self, exercise: Exercise, label: str, message: str, error: str
    ) -> GradeResult:
        logger.info(f"{exercise.name}: {message}")
        return GradeResult(
            exercise=exercise.name,
            candidate=label,
            verdict=Verdict(
                status=VerdictStatus.EXECUTION_ERROR,
                mode=exercise.mode,
                message=message,
                error=error,
            ),
        )

    def entry_point(
        self,
        exercise: Exercise,
        candidate: Candidate = None,
        sink: Optional[TextIO] = None,
    ) -> Callable[[], bool]:
        """
        Zero-argument callable for an external test runner.

        The callable grades the submission, writes "Correct." or "Incorrect."
        (plus hint) to ``sink`` and returns whether it passed.
        """
        def run() -> bool:
            reporter = TextReporter(sink if sink is not None else sys.stdout)
            return self.grade(exercise, candidate, reporter).passed

        run.__name__ = f"check_{exercise.name}"
        run.__doc__ = exercise.description or f"Grade exercise '{exercise.name}'."
        return run


def _candidate_label(exercise: Exercise, candidate: Candidate) -> str:
    if isinstance(candidate, Operation):
        return candidate.name
    if isinstance(candidate, str):
        return candidate
    return exercise.candidate_name
