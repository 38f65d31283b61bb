"""Unit tests for the parallel suite runner."""

import json
import time

from qgrade.config import GraderConfig
from qgrade.core.library import CCNOT, H, I, X
from qgrade.core.operation import operation
from qgrade.core.types import VerdictStatus
from qgrade.harness import (
    CollectingReporter,
    Exercise,
    GradingHarness,
    OperationRegistry,
    SuiteRunner,
)


@operation(num_qubits=1)
def slow_flip(engine, qubits):
    time.sleep(1.0)
    engine.x(qubits[0])


@operation(num_qubits=3)
def slow_toffoli(engine, qubits):
    time.sleep(0.3)
    engine.ccnot(*qubits)


EXERCISES = [
    Exercise("flip", 1, X),
    Exercise("hadamard", 1, H),
    Exercise("toffoli", 3, CCNOT),
]


class TestSuiteRunner:
    """Tests for SuiteRunner."""

    def test_results_in_order(self, arena):
        """Test results keep the exercise order and count statuses."""
        registry = OperationRegistry({"flip": X, "hadamard": I})
        harness = GradingHarness(registry=registry, arena=arena)
        results = SuiteRunner(harness, max_workers=3).run(EXERCISES)

        assert [r.exercise for r in results.results] == ["flip", "hadamard", "toffoli"]
        assert results.passed == 1
        assert results.total == 3
        counts = results.counts()
        assert counts["CORRECT"] == 1
        assert counts["INCORRECT"] == 1
        assert counts["EXECUTION_ERROR"] == 1
        assert results.get("toffoli").verdict.error == "missing operation"
        assert arena.live_registers == 0

    def test_explicit_submissions(self, arena):
        """Test explicit candidates override the registry."""
        harness = GradingHarness(arena=arena)
        submissions = {"flip": X, "hadamard": H, "toffoli": CCNOT}
        results = SuiteRunner(harness).run(EXERCISES, submissions)
        assert results.pass_rate == 1.0

    def test_timeout(self, arena):
        """Test a run exceeding the wall-clock limit is an execution error."""
        harness = GradingHarness(config=GraderConfig(timeout_seconds=0.2), arena=arena)
        start = time.time()
        results = SuiteRunner(harness, max_workers=2).run(
            EXERCISES[:2], {"flip": slow_flip, "hadamard": H}
        )
        assert time.time() - start < 0.9
        flip = results.get("flip")
        assert flip.status is VerdictStatus.EXECUTION_ERROR
        assert flip.verdict.error == "timeout"
        assert results.get("hadamard").passed

    def test_overlapping_runs_share_arena(self):
        """Test concurrent runs never exhaust the shared arena."""
        harness = GradingHarness(config=GraderConfig(max_workers=4))
        exercises = [Exercise(f"t{i}", 3, CCNOT) for i in range(4)]
        submissions = {e.name: slow_toffoli for e in exercises}
        results = SuiteRunner(harness).run(exercises, submissions)

        assert [r.status for r in results.results] == [VerdictStatus.CORRECT] * 4
        assert harness.arena.live_registers == 0

    def test_reporter_factory(self, arena):
        """Test each run gets its own reporter."""
        reporters = []

        def factory():
            reporter = CollectingReporter()
            reporters.append(reporter)
            return reporter

        harness = GradingHarness(registry=OperationRegistry({"flip": X}), arena=arena)
        SuiteRunner(harness, max_workers=2).run(EXERCISES[:1], reporter_factory=factory)
        assert len(reporters) == 1
        assert reporters[0].results[0].passed

    def test_save(self, arena, tmp_path):
        """Test saving results as JSON."""
        harness = GradingHarness(registry=OperationRegistry({"flip": X}), arena=arena)
        results = SuiteRunner(harness).run(EXERCISES[:1])
        path = tmp_path / "out" / "results.json"
        results.save(path)
        data = json.loads(path.read_text())
        assert data["passed"] == 1
        assert data["results"][0]["verdict"]["status"] == "CORRECT"

    def test_empty(self, arena):
        """Test an empty suite."""
        results = SuiteRunner(GradingHarness(arena=arena)).run([])
        assert results.total == 0
        assert results.pass_rate == 0.0
