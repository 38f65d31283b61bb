"""
Gate definitions for QGRADE.

A ``Gate`` is an immutable description of a primitive instruction: a name,
the number of qubits it acts on and its real parameters. Every gate knows its
matrix and its closed-form adjoint, so the engine never has to invert a
matrix for the standard gate set. Custom gates carry an explicit matrix and
fall back to ``numpy.linalg.inv`` for their adjoint.

Matrix convention: for a k-qubit matrix applied to targets ``[t0, ..., tk-1]``,
``t0`` is the most significant bit of the local ``2^k`` index.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

import numpy as np
from numpy.typing import NDArray

from qgrade.core.errors import DimensionMismatchError, NonUnitaryError


SQRT2_INV = 1 / np.sqrt(2)

IDENTITY = np.eye(2, dtype=complex)
PAULI_X = np.array([[0, 1], [1, 0]], dtype=complex)
PAULI_Y = np.array([[0, -1j], [1j, 0]], dtype=complex)
PAULI_Z = np.array([[1, 0], [0, -1]], dtype=complex)
HADAMARD = np.array([[1, 1], [1, -1]], dtype=complex) * SQRT2_INV
PHASE_S = np.array([[1, 0], [0, 1j]], dtype=complex)
PHASE_T = np.array([[1, 0], [0, np.exp(1j * np.pi / 4)]], dtype=complex)
SQRT_X = 0.5 * np.array([[1 + 1j, 1 - 1j], [1 - 1j, 1 + 1j]], dtype=complex)
SWAP = np.array(
    [[1, 0, 0, 0], [0, 0, 1, 0], [0, 1, 0, 0], [0, 0, 0, 1]], dtype=complex
)


class GateKind(Enum):
    """Instruction family a gate belongs to."""

    STANDARD = "standard"
    CUSTOM = "custom"
    PHASE = "phase"


def _rx(theta: float) -> NDArray[np.complex128]:
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -1j * s], [-1j * s, c]], dtype=complex)


def _ry(theta: float) -> NDArray[np.complex128]:
    c, s = np.cos(theta / 2), np.sin(theta / 2)
    return np.array([[c, -s], [s, c]], dtype=complex)


def _rz(theta: float) -> NDArray[np.complex128]:
    return np.array(
        [[np.exp(-0.5j * theta), 0], [0, np.exp(0.5j * theta)]], dtype=complex
    )


def _r1(theta: float) -> NDArray[np.complex128]:
    return np.array([[1, 0], [0, np.exp(1j * theta)]], dtype=complex)


# name -> (num_qubits, matrix, adjoint name)
_FIXED_GATES: dict[str, tuple[int, NDArray[np.complex128], str]] = {
    "I": (1, IDENTITY, "I"),
    "X": (1, PAULI_X, "X"),
    "Y": (1, PAULI_Y, "Y"),
    "Z": (1, PAULI_Z, "Z"),
    "H": (1, HADAMARD, "H"),
    "S": (1, PHASE_S, "SDG"),
    "SDG": (1, PHASE_S.conj().T, "S"),
    "T": (1, PHASE_T, "TDG"),
    "TDG": (1, PHASE_T.conj().T, "T"),
    "SX": (1, SQRT_X, "SXDG"),
    "SXDG": (1, SQRT_X.conj().T, "SX"),
    "SWAP": (2, SWAP, "SWAP"),
}

# Adjoint of a rotation negates its angle.
_ROTATION_GATES: dict[str, Callable[[float], NDArray[np.complex128]]] = {
    "RX": _rx,
    "RY": _ry,
    "RZ": _rz,
    "R1": _r1,
}


@dataclass(frozen=True)
class Gate:
    """
    An immutable primitive instruction.

    Example:
        >>> Gate.named("RZ", 0.5).adjoint()
        Gate(name='RZ', num_qubits=1, params=(-0.5,), kind=<GateKind.STANDARD: 'standard'>)
    """

    name: str
    num_qubits: int
    params: tuple[float, ...] = ()
    kind: GateKind = GateKind.STANDARD
    custom_matrix: Optional[NDArray[np.complex128]] = field(
        default=None, compare=False, repr=False
    )

    @classmethod
    def named(cls, name: str, *params: float) -> "Gate":
        """Build a standard gate by name."""
        key = name.upper()
        if key in _FIXED_GATES:
            if params:
                raise ValueError(f"Gate {key} takes no parameters")
            return cls(name=key, num_qubits=_FIXED_GATES[key][0])
        if key in _ROTATION_GATES:
            if len(params) != 1:
                raise ValueError(f"Gate {key} takes exactly one angle")
            return cls(name=key, num_qubits=1, params=(float(params[0]),))
        if key == "GPHASE":
            if len(params) != 1:
                raise ValueError("GPHASE takes exactly one angle")
            return cls.global_phase(params[0])
        raise ValueError(f"Unknown gate: {name}")

    @classmethod
    def global_phase(cls, theta: float) -> "Gate":
        """Zero-qubit gate multiplying the state by ``exp(i*theta)``."""
        return cls(name="GPHASE", num_qubits=0, params=(float(theta),), kind=GateKind.PHASE)

    @classmethod
    def custom(
        cls,
        matrix: NDArray[np.complex128],
        name: str = "U",
        tolerance: float = 1e-9,
    ) -> "Gate":
        """
        Build a gate from an explicit unitary matrix.

        Raises:
            DimensionMismatchError: if the matrix is not square of size 2^k
            NonUnitaryError: if the matrix is not unitary within tolerance
        """
        matrix = np.asarray(matrix, dtype=complex)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise DimensionMismatchError(f"Gate matrix must be square, got shape {matrix.shape}")
        dim = matrix.shape[0]
        num_qubits = dim.bit_length() - 1
        if dim < 2 or 1 << num_qubits != dim:
            raise DimensionMismatchError(f"Gate matrix size must be a power of two, got {dim}")
        if not np.allclose(matrix.conj().T @ matrix, np.eye(dim), atol=tolerance * 1e3):
            raise NonUnitaryError(f"Matrix for gate '{name}' is not unitary")
        matrix = matrix.copy()
        matrix.setflags(write=False)
        return cls(name=name, num_qubits=num_qubits, kind=GateKind.CUSTOM, custom_matrix=matrix)

    @property
    def is_self_adjoint(self) -> bool:
        return self.name in _FIXED_GATES and _FIXED_GATES[self.name][2] == self.name

    def matrix(self) -> NDArray[np.complex128]:
        """Return the gate's unitary matrix (1x1 for a global phase)."""
        if self.kind is GateKind.CUSTOM:
            return self.custom_matrix
        if self.kind is GateKind.PHASE:
            return np.array([[np.exp(1j * self.params[0])]], dtype=complex)
        if self.name in _FIXED_GATES:
            return _FIXED_GATES[self.name][1]
        return _ROTATION_GATES[self.name](self.params[0])

    def adjoint(self) -> "Gate":
        """Return the conjugate-transpose gate."""
        if self.kind is GateKind.CUSTOM:
            inverse = np.linalg.inv(self.custom_matrix)
            inverse.setflags(write=False)
            name = self.name[:-4] if self.name.endswith("_adj") else f"{self.name}_adj"
            return Gate(name=name, num_qubits=self.num_qubits, kind=GateKind.CUSTOM,
                        custom_matrix=inverse)
        if self.kind is GateKind.PHASE or self.name in _ROTATION_GATES:
            return Gate(name=self.name, num_qubits=self.num_qubits,
                        params=tuple(-p for p in self.params), kind=self.kind)
        if self.is_self_adjoint:
            return self
        return Gate.named(_FIXED_GATES[self.name][2])

    def __str__(self) -> str:
        params_str = f"({', '.join(f'{p:.4g}' for p in self.params)})" if self.params else ""
        return f"{self.name}{params_str}"


def standard_gate_names() -> list[str]:
    """Names accepted by ``Gate.named``."""
    return sorted([*_FIXED_GATES, *_ROTATION_GATES, "GPHASE"])
