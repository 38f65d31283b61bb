"""Core type definitions for QGRADE."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional

import numpy as np


class VerdictStatus(Enum):
    """Outcome of grading one submission."""

    CORRECT = auto()
    INCORRECT = auto()
    EXECUTION_ERROR = auto()
    ABORTED = auto()


class EquivalenceMode(Enum):
    """Which guarantee an equivalence check provides."""

    OPERATOR = "operator"
    """Equal as operators, up to global phase, on every input."""

    STATE = "state"
    """Equal, up to global phase, on the prepared input state only."""

    @classmethod
    def from_string(cls, value: str) -> "EquivalenceMode":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown equivalence mode '{value}', expected one of "
                f"{[m.value for m in cls]}"
            ) from None


@dataclass
class QuantumState:
    """Snapshot of a register's amplitudes, little-endian basis order."""

    num_qubits: int
    amplitudes: np.ndarray
    basis_labels: Optional[List[str]] = None

    def __post_init__(self):
        """Validate state dimensions."""
        expected_dim = 2 ** self.num_qubits
        if len(self.amplitudes) != expected_dim:
            raise ValueError(
                f"Expected {expected_dim} amplitudes for {self.num_qubits} qubits, "
                f"got {len(self.amplitudes)}"
            )

    @classmethod
    def zero_state(cls, num_qubits: int) -> "QuantumState":
        return cls.basis_state(num_qubits, 0)

    @classmethod
    def basis_state(cls, num_qubits: int, index: int) -> "QuantumState":
        """Create the computational basis state with the given index."""
        amplitudes = np.zeros(2**num_qubits, dtype=complex)
        amplitudes[index] = 1.0
        return cls(num_qubits=num_qubits, amplitudes=amplitudes)

    def probability(self, outcome: int) -> float:
        """Get probability of measuring a specific outcome."""
        return float(abs(self.amplitudes[outcome]) ** 2)

    def qubit_probabilities(self) -> List[float]:
        """Probability of reading |1⟩ on each qubit."""
        probs = np.abs(self.amplitudes) ** 2
        indices = np.arange(len(probs))
        return [float(probs[(indices >> q) & 1 == 1].sum()) for q in range(self.num_qubits)]

    def is_normalized(self, tolerance: float = 1e-10) -> bool:
        """Check if state is normalized."""
        norm = np.sum(np.abs(self.amplitudes) ** 2)
        return abs(norm - 1.0) < tolerance

    def label(self, index: int) -> str:
        """Basis label with qubit 0 as the rightmost character."""
        if self.basis_labels:
            return self.basis_labels[index]
        return f"|{format(index, f'0{self.num_qubits}b')}⟩" if self.num_qubits else "|⟩"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "num_qubits": self.num_qubits,
            "amplitudes_real": self.amplitudes.real.tolist(),
            "amplitudes_imag": self.amplitudes.imag.tolist(),
            "basis_labels": self.basis_labels,
        }


@dataclass
class CounterExample:
    """A basis input on which candidate and reference disagree."""

    input_state: QuantumState
    expected_state: QuantumState
    actual_state: QuantumState
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "input_state": self.input_state.to_dict(),
            "expected_state": self.expected_state.to_dict(),
            "actual_state": self.actual_state.to_dict(),
            "description": self.description,
        }


@dataclass
class Verdict:
    """Result of an equivalence check."""

    status: VerdictStatus
    mode: EquivalenceMode = EquivalenceMode.OPERATOR
    message: str = ""
    global_phase: Optional[float] = None
    time_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def equivalent(self) -> bool:
        return self.status == VerdictStatus.CORRECT

    def is_correct(self) -> bool:
        """Check if the candidate matched the reference."""
        return self.status == VerdictStatus.CORRECT

    def is_execution_error(self) -> bool:
        """Check if an operation failed while being applied."""
        return self.status == VerdictStatus.EXECUTION_ERROR

    def __bool__(self) -> bool:
        return self.equivalent

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "status": self.status.name,
            "mode": self.mode.value,
            "message": self.message,
            "global_phase": self.global_phase,
            "time_seconds": self.time_seconds,
            "error": self.error,
        }
