"""
Diagnostic state comparison for failed submissions.

Everything here is observational: it runs candidate and reference on fresh
registers to show the learner what went wrong, and is only invoked after a
verdict has been reached. Failures are logged and swallowed into an empty
diagnostic so they can never alter a grade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from qgrade.core.engine import ApplicationEngine
from qgrade.core.library import X
from qgrade.core.operation import Operation
from qgrade.core.profiles import TargetProfile
from qgrade.core.register import QubitArena
from qgrade.core.statevector import DEFAULT_TOLERANCE, state_fidelity, states_equal_up_to_phase
from qgrade.core.types import CounterExample, QuantumState


logger = logging.getLogger(__name__)


@dataclass
class StateComparison:
    """Expected and actual output states for one input."""

    input_state: QuantumState
    expected: QuantumState
    actual: QuantumState
    tolerance: float = DEFAULT_TOLERANCE

    @property
    def num_qubits(self) -> int:
        return self.expected.num_qubits

    @property
    def fidelity(self) -> float:
        return state_fidelity(self.expected.amplitudes, self.actual.amplitudes)

    @property
    def matches(self) -> bool:
        return states_equal_up_to_phase(
            self.expected.amplitudes, self.actual.amplitudes, self.tolerance
        )

    def qubit_rows(self) -> list[tuple[int, float, float]]:
        """``(qubit, expected P(|1⟩), actual P(|1⟩))`` per qubit."""
        expected = self.expected.qubit_probabilities()
        actual = self.actual.qubit_probabilities()
        return [(q, expected[q], actual[q]) for q in range(self.num_qubits)]

    def amplitude_rows(self, threshold: float = 1e-6) -> list[tuple[str, complex, complex]]:
        """Basis states where either state has non-negligible amplitude."""
        rows = []
        for index in range(len(self.expected.amplitudes)):
            e = complex(self.expected.amplitudes[index])
            a = complex(self.actual.amplitudes[index])
            if abs(e) > threshold or abs(a) > threshold:
                rows.append((self.expected.label(index), e, a))
        return rows

    def describe(self) -> str:
        lines = [f"State fidelity: {self.fidelity:.4f}"]
        for label, e, a in self.amplitude_rows():
            lines.append(f"  {label}: expected {_fmt(e)}, actual {_fmt(a)}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "input_state": self.input_state.to_dict(),
            "expected": self.expected.to_dict(),
            "actual": self.actual.to_dict(),
            "fidelity": self.fidelity,
            "matches": self.matches,
        }


@dataclass
class Diagnostic:
    """Everything gathered to explain a failed grade."""

    comparison: Optional[StateComparison] = None
    counterexample: Optional[CounterExample] = None
    notes: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.comparison is None and self.counterexample is None and not self.notes

    def to_dict(self) -> dict[str, Any]:
        return {
            "comparison": self.comparison.to_dict() if self.comparison else None,
            "counterexample": self.counterexample.to_dict() if self.counterexample else None,
            "notes": self.notes,
        }


def _fmt(z: complex) -> str:
    return f"{z.real:+.4f}{z.imag:+.4f}i"


@dataclass
class DiagnosticRunner:
    """
    Runs candidate and reference independently on fresh registers.

    Args:
        arena: Register arena shared with the checker
        profile: Target profile the candidate is restricted to
        tolerance: Tolerance for state comparison
        max_counterexample_qubits: Basis-input search is skipped above this size
    """

    arena: QubitArena = field(default_factory=QubitArena)
    profile: TargetProfile = TargetProfile.UNRESTRICTED
    tolerance: float = DEFAULT_TOLERANCE
    max_counterexample_qubits: int = 6
    seed: Optional[int] = None

    def run_on(
        self,
        op: Operation,
        num_qubits: int,
        preparer: Optional[Operation] = None,
        basis_index: int = 0,
        profile: TargetProfile = TargetProfile.UNRESTRICTED,
    ) -> tuple[QuantumState, QuantumState]:
        """Return (input, output) states of ``op`` on a fresh register."""
        with self.arena.scoped(num_qubits) as register:
            engine = ApplicationEngine(register.state, rng=np.random.default_rng(self.seed))
            for q in range(num_qubits):
                if (basis_index >> q) & 1:
                    engine.apply(X, [q])
            if preparer is not None:
                engine.apply(preparer, register.qubits)
            input_state = register.state.snapshot()
            with engine.restricted_to(profile):
                engine.apply(op, register.qubits)
            return input_state, register.state.snapshot()

    def compare(
        self,
        candidate: Operation,
        reference: Operation,
        num_qubits: int,
        preparer: Optional[Operation] = None,
    ) -> StateComparison:
        input_state, expected = self.run_on(reference, num_qubits, preparer)
        _, actual = self.run_on(candidate, num_qubits, preparer, profile=self.profile)
        return StateComparison(input_state, expected, actual, self.tolerance)

    def find_counterexample(
        self,
        candidate: Operation,
        reference: Operation,
        num_qubits: int,
    ) -> Optional[CounterExample]:
        """
        First computational basis input on which the outputs differ.

        Returns None when every basis input agrees, which happens when the
        operations differ only by relative phases between basis inputs.
        """
        if num_qubits > self.max_counterexample_qubits:
            return None
        for index in range(2**num_qubits):
            input_state, expected = self.run_on(reference, num_qubits, basis_index=index)
            _, actual = self.run_on(
                candidate, num_qubits, basis_index=index, profile=self.profile
            )
            if not states_equal_up_to_phase(expected.amplitudes, actual.amplitudes, self.tolerance):
                return CounterExample(
                    input_state=input_state,
                    expected_state=expected,
                    actual_state=actual,
                    description=f"basis input {input_state.label(index)}",
                )
        return None

    def diagnose(
        self,
        candidate: Operation,
        reference: Operation,
        num_qubits: int,
        preparer: Optional[Operation] = None,
    ) -> Diagnostic:
        """Collect a diagnostic; never raises."""
        diagnostic = Diagnostic()
        try:
            diagnostic.comparison = self.compare(candidate, reference, num_qubits, preparer)
        except Exception as e:
            logger.warning(f"State comparison failed: {e}")
            diagnostic.notes.append(f"State comparison unavailable: {e}")
        if preparer is None:
            try:
                diagnostic.counterexample = self.find_counterexample(
                    candidate, reference, num_qubits
                )
            except Exception as e:
                logger.warning(f"Counterexample search failed: {e}")
                diagnostic.notes.append(f"Counterexample search unavailable: {e}")
            searched = num_qubits <= self.max_counterexample_qubits and not diagnostic.notes
            if searched and diagnostic.counterexample is None:
                diagnostic.notes.append(
                    "Outputs agree on every basis input; the difference is a relative phase "
                    "between inputs, visible on superpositions."
                )
        return diagnostic
