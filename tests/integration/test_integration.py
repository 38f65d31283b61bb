"""
Integration tests for QGRADE.
"""

import io

import numpy as np
import pytest


class TestBuiltinExercises:
    """Grading the built-in catalog end to end."""

    def test_references_pass(self, catalog, harness):
        """Test every exercise accepts its own reference."""
        for exercise in catalog:
            result = harness.grade(exercise, exercise.reference)
            assert result.passed, exercise.name

    def test_submission_file(self, catalog, submission_file):
        """Test grading a submission file with the suite runner."""
        from qgrade.config import GraderConfig
        from qgrade.harness import GradingHarness, OperationRegistry, SuiteRunner

        harness = GradingHarness(
            config=GraderConfig(seed=1),
            registry=OperationRegistry.from_source(submission_file),
        )
        results = SuiteRunner(harness, max_workers=2).run(catalog)

        failed = [r.exercise for r in results.results if not r.passed]
        assert failed == ["amplitude_change"]
        diagnostic = results.get("amplitude_change").diagnostic
        assert diagnostic.counterexample is not None
        assert harness.arena.live_registers == 0

    def test_entry_points(self, catalog, submission_file):
        """Test per-exercise entry points as an external runner would call them."""
        from qgrade.harness import GradingHarness, OperationRegistry

        harness = GradingHarness(registry=OperationRegistry.from_source(submission_file))
        sink = io.StringIO()
        checks = [harness.entry_point(e, sink=sink) for e in catalog.filter("controlled")]
        assert [c.__name__ for c in checks] == [
            "check_two_qubit_gate_reversed", "check_toffoli", "check_fredkin",
        ]
        assert all(check() for check in checks)
        assert sink.getvalue() == "Correct.\n" * 3

    def test_state_mode_accepts_different_operator(self, catalog, harness):
        """Test preparation exercises only constrain the prepared state."""
        from qgrade.core.operation import operation

        @operation(num_qubits=2)
        def bell_via_ry(engine, qubits):
            engine.ry(np.pi / 2, qubits[0])
            engine.cnot(qubits[0], qubits[1])

        bell = catalog.get("bell_state")
        result = harness.grade(bell, bell_via_ry)
        assert result.passed
        assert result.verdict.mode.value == "state"

        # The same operation is not an H-based Bell circuit as an operator.
        from qgrade.verification.equivalence import EquivalenceChecker
        verdict = EquivalenceChecker().check(bell_via_ry, bell.reference, 2)
        assert not verdict.equivalent


class TestPublicAPI:
    """Using the package from its top-level imports."""

    def test_docstring_example(self):
        """Test the package-level usage example."""
        from qgrade import Exercise, GradingHarness, X, operation

        @operation(num_qubits=1)
        def flip_qubit(engine, qubits):
            engine.x(qubits[0])

        exercise = Exercise(name="flip_qubit", num_qubits=1, reference=X)
        assert GradingHarness().grade(exercise, flip_qubit).passed

    def test_version(self):
        """Test the package version."""
        import qgrade
        assert qgrade.__version__ == "0.1.0"

    @pytest.mark.parametrize("theta", [0.0, 0.5, np.pi])
    def test_phase_reported(self, theta):
        """Test the detected global phase is reported on the verdict."""
        from qgrade import CNOT, EquivalenceChecker
        from qgrade.core.operation import PhaseShifted

        verdict = EquivalenceChecker().check(PhaseShifted(CNOT, theta), CNOT, 2)
        assert verdict.equivalent
        assert np.cos(verdict.global_phase) == pytest.approx(np.cos(theta))


class TestBatchScript:
    """The batch grading script in scripts/."""

    def test_grade_directory(self, submission_file, tmp_path, monkeypatch, capsys):
        """Test grading a directory of submissions and saving results."""
        from pathlib import Path

        from qgrade.utils.loading import load_module

        script = Path(__file__).resolve().parents[2] / "scripts" / "grade_submissions.py"
        module = load_module(script)
        output = tmp_path / "results"
        monkeypatch.setattr(
            "sys.argv",
            ["grade_submissions.py", str(submission_file.parent), "--tag", "basics",
             "--output", str(output)],
        )
        assert module.main() == 0
        assert "learner" in capsys.readouterr().out
        assert (output / "learner.json").exists()
        assert list(output.glob("summary_*.json"))

    def test_empty_directory(self, tmp_path, monkeypatch):
        """Test a directory without submissions."""
        from pathlib import Path

        from qgrade.utils.loading import load_module

        script = Path(__file__).resolve().parents[2] / "scripts" / "grade_submissions.py"
        module = load_module(script)
        monkeypatch.setattr("sys.argv", ["grade_submissions.py", str(tmp_path)])
        assert module.main() == 1
