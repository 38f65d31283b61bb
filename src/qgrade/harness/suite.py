"""
Parallel grading of many exercises.

Grading runs are independent and each owns its registers, so a suite fans
them out over a thread pool. The wall-clock timeout is imposed here, by the
host, and a run that exceeds it is reported as an execution error.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional

from qgrade.core.operation import Operation
from qgrade.core.types import Verdict, VerdictStatus
from qgrade.harness.exercise import Exercise, GradeResult
from qgrade.harness.harness import GradingHarness
from qgrade.harness.reporter import Reporter


logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.05


@dataclass
class SuiteResults:
    """Aggregated results of a suite run."""

    results: list[GradeResult]
    total_time_seconds: float

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def pass_rate(self) -> float:
        """Fraction of exercises graded correct."""
        if not self.results:
            return 0.0
        return self.passed / len(self.results)

    def counts(self) -> dict[str, int]:
        counts = {status.name: 0 for status in VerdictStatus}
        for result in self.results:
            counts[result.status.name] += 1
        return counts

    def get(self, exercise: str) -> Optional[GradeResult]:
        for result in self.results:
            if result.exercise == exercise:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "pass_rate": self.pass_rate,
            "counts": self.counts(),
            "total_time_seconds": self.total_time_seconds,
            "results": [r.to_dict() for r in self.results],
        }

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)


class SuiteRunner:
    """
    Grades a collection of exercises concurrently.

    Args:
        harness: Harness used for every run
        max_workers: Thread pool size (``harness.config.max_workers`` if omitted)
        timeout: Per-run wall-clock limit in seconds
            (``harness.config.timeout_seconds`` if omitted)
    """

    def __init__(
        self,
        harness: GradingHarness,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.harness = harness
        self.max_workers = max_workers or harness.config.max_workers
        self.timeout = timeout if timeout is not None else harness.config.timeout_seconds

    def run(
        self,
        exercises: Iterable[Exercise],
        submissions: Optional[Mapping[str, Operation]] = None,
        reporter_factory: Optional[Callable[[], Reporter]] = None,
    ) -> SuiteResults:
        """
        Grade every exercise.

        Args:
            exercises: Exercises to grade
            submissions: Explicit candidate per exercise name; others are
                resolved through the harness registry
            reporter_factory: Builds a fresh reporter for each run

        Returns:
            SuiteResults in the order the exercises were given
        """
        exercises = list(exercises)
        submissions = submissions or {}
        start_time = time.time()
        started: dict[str, float] = {}
        lock = threading.Lock()

        def job(exercise: Exercise) -> GradeResult:
            with lock:
                started[exercise.name] = time.time()
            reporter = reporter_factory() if reporter_factory else None
            return self.harness.grade(exercise, submissions.get(exercise.name), reporter)

        results: dict[str, GradeResult] = {}
        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures: dict[Future, Exercise] = {
                executor.submit(job, exercise): exercise for exercise in exercises
            }
            pending = set(futures)
            while pending:
                done, pending = wait(pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
                for future in done:
                    exercise = futures[future]
                    results[exercise.name] = self._collect(future, exercise)
                now = time.time()
                for future in list(pending):
                    exercise = futures[future]
                    with lock:
                        began = started.get(exercise.name)
                    if began is not None and now - began > self.timeout:
                        logger.warning(f"{exercise.name}: timed out after {self.timeout:.1f}s")
                        results[exercise.name] = self._timeout_result(exercise, now - began)
                        pending.discard(future)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        ordered = [results[e.name] for e in exercises]
        suite = SuiteResults(results=ordered, total_time_seconds=time.time() - start_time)
        logger.info(f"Suite finished: {suite.passed}/{suite.total} correct")
        return suite

    def _collect(self, future: Future, exercise: Exercise) -> GradeResult:
        try:
            return future.result()
        except Exception as e:
            # The harness already contains checker failures; this is a bug in
            # the harness itself or in a reporter.
            logger.error(f"{exercise.name}: grading crashed: {e}", exc_info=True)
            return GradeResult(
                exercise=exercise.name,
                candidate=exercise.candidate_name,
                verdict=Verdict(
                    status=VerdictStatus.ABORTED,
                    mode=exercise.mode,
                    message=str(e),
                    error=type(e).__name__,
                ),
            )

    def _timeout_result(self, exercise: Exercise, elapsed: float) -> GradeResult:
        return GradeResult(
            exercise=exercise.name,
            candidate=exercise.candidate_name,
            verdict=Verdict(
                status=VerdictStatus.EXECUTION_ERROR,
                mode=exercise.mode,
                message=f"Timed out after {self.timeout:.1f}s",
                time_seconds=elapsed,
                error="timeout",
            ),
        )
