"""
Dense state vector for QGRADE.

The amplitude array of an n-qubit register, little-endian: qubit ``q`` is bit
``q`` of the basis index. Gates are applied by gathering only the ``2^k``
amplitudes each k-qubit gate touches, for every assignment of the untouched
qubits, and writing the transformed values back. Amplitudes outside the
satisfied control partition are never read or written.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from qgrade.core.errors import (
    DimensionMismatchError,
    QubitIndexError,
    ReleasedRegisterError,
)
from qgrade.core.types import QuantumState


logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-9


class StateVector:
    """
    Amplitudes of an n-qubit register.

    Example:
        >>> sv = StateVector(2)
        >>> sv.apply_matrix(HADAMARD, [0])
        >>> sv.apply_matrix(PAULI_X, [1], controls=[0])
        >>> sv.probabilities()
        array([0.5, 0. , 0. , 0.5])
    """

    def __init__(self, num_qubits: int) -> None:
        if num_qubits < 0:
            raise DimensionMismatchError(f"Register size must be non-negative, got {num_qubits}")
        self._num_qubits = num_qubits
        self._amplitudes: Optional[NDArray[np.complex128]] = np.zeros(2**num_qubits, dtype=complex)
        self._amplitudes[0] = 1.0
        self._indices = np.arange(2**num_qubits)

    @classmethod
    def from_amplitudes(cls, amplitudes: Sequence[complex]) -> "StateVector":
        """Build a state vector from an explicit amplitude array."""
        amplitudes = np.asarray(amplitudes, dtype=complex)
        num_qubits = len(amplitudes).bit_length() - 1
        if len(amplitudes) == 0 or 1 << num_qubits != len(amplitudes):
            raise DimensionMismatchError(
                f"Amplitude count must be a power of two, got {len(amplitudes)}"
            )
        sv = cls(num_qubits)
        sv._amplitudes[:] = amplitudes
        return sv

    @property
    def num_qubits(self) -> int:
        return self._num_qubits

    @property
    def released(self) -> bool:
        return self._amplitudes is None

    @property
    def amplitudes(self) -> NDArray[np.complex128]:
        """Read-only view of the amplitudes."""
        view = self._live().view()
        view.setflags(write=False)
        return view

    def _live(self) -> NDArray[np.complex128]:
        if self._amplitudes is None:
            raise ReleasedRegisterError("State vector has already been released")
        return self._amplitudes

    def _check_qubits(self, qubits: Sequence[int], what: str = "qubit") -> None:
        seen = set()
        for q in qubits:
            if not isinstance(q, (int, np.integer)) or not 0 <= q < self._num_qubits:
                raise QubitIndexError(
                    f"{what.capitalize()} index {q!r} out of range for {self._num_qubits}-qubit register"
                )
            if q in seen:
                raise QubitIndexError(f"{what.capitalize()} index {q} used more than once")
            seen.add(q)

    def _control_mask(self, controls: Sequence[int]) -> int:
        mask = 0
        for c in controls:
            mask |= 1 << c
        return mask

    def apply_matrix(
        self,
        matrix: NDArray[np.complex128],
        targets: Sequence[int],
        controls: Sequence[int] = (),
    ) -> None:
        """
        Apply a ``2^k x 2^k`` matrix to ``targets``, within the subspace where
        every qubit in ``controls`` reads |1⟩.

        Args:
            matrix: Local matrix; ``targets[0]`` is its most significant bit
            targets: Target qubit indices
            controls: Control qubit indices, disjoint from targets

        Raises:
            QubitIndexError: if an index is out of range or repeated
            DimensionMismatchError: if the matrix size does not match targets
        """
        amps = self._live()
        targets = list(targets)
        controls = list(controls)
        self._check_qubits(targets + controls)
        k = len(targets)
        dim = 1 << k
        if matrix.shape != (dim, dim):
            raise DimensionMismatchError(
                f"Matrix of shape {matrix.shape} cannot act on {k} target qubit(s)"
            )
        if k == 0:
            self.apply_phase(np.angle(matrix[0, 0]), controls)
            return

        target_mask = 0
        for t in targets:
            target_mask |= 1 << t
        control_mask = self._control_mask(controls)

        # Offset of each local basis state; targets[0] is the high bit.
        offsets = np.zeros(dim, dtype=np.int64)
        for local in range(dim):
            for i, t in enumerate(targets):
                if (local >> (k - 1 - i)) & 1:
                    offsets[local] |= 1 << t

        idx = self._indices
        bases = idx[((idx & target_mask) == 0) & ((idx & control_mask) == control_mask)]
        if bases.size == 0:
            return
        groups = bases[:, None] + offsets[None, :]
        amps[groups] = amps[groups] @ matrix.T

    def apply_phase(self, theta: float, controls: Sequence[int] = ()) -> None:
        """Multiply by ``exp(i*theta)`` the part of the state where all controls are |1⟩."""
        amps = self._live()
        controls = list(controls)
        self._check_qubits(controls, "control")
        factor = np.exp(1j * theta)
        if not controls:
            amps *= factor
            return
        mask = self._control_mask(controls)
        amps[(self._indices & mask) == mask] *= factor

    def probabilities(self) -> NDArray[np.float64]:
        """Probability of each computational basis state."""
        return np.abs(self._live()) ** 2

    def qubit_probabilities(self) -> list[float]:
        """Probability of reading |1⟩ on each qubit."""
        probs = self.probabilities()
        return [
            float(probs[(self._indices >> q) & 1 == 1].sum())
            for q in range(self._num_qubits)
        ]

    def probability_of_one(self, qubit: int) -> float:
        self._check_qubits([qubit])
        probs = self.probabilities()
        return float(probs[(self._indices >> qubit) & 1 == 1].sum())

    def amplitude(self, index: int) -> complex:
        amps = self._live()
        if not 0 <= index < len(amps):
            raise QubitIndexError(f"Basis index {index} out of range")
        return complex(amps[index])

    def norm(self) -> float:
        amps = self._live()
        return float(np.vdot(amps, amps).real)

    def is_normalized(self, tolerance: float = DEFAULT_TOLERANCE) -> bool:
        return abs(self.norm() - 1.0) <= tolerance

    def is_zero(
        self,
        qubits: Optional[Sequence[int]] = None,
        tolerance: float = DEFAULT_TOLERANCE,
    ) -> bool:
        """
        Check that ``qubits`` are deterministically |0...0⟩.

        The probability mass on basis states where any listed qubit reads |1⟩
        must not exceed ``tolerance``. No sampling is involved.
        """
        if qubits is None:
            qubits = range(self._num_qubits)
        qubits = list(qubits)
        self._check_qubits(qubits)
        mask = self._control_mask(qubits)
        probs = self.probabilities()
        leaked = float(probs[(self._indices & mask) != 0].sum())
        return leaked <= tolerance

    def measure(
        self,
        qubits: Sequence[int],
        rng: Optional[np.random.Generator] = None,
    ) -> list[int]:
        """
        Measure ``qubits`` in the computational basis and collapse.

        Returns:
            One bit per measured qubit, in the order given
        """
        amps = self._live()
        qubits = list(qubits)
        self._check_qubits(qubits)
        rng = rng if rng is not None else np.random.default_rng()

        probs = self.probabilities()
        outcome_index = int(rng.choice(len(probs), p=probs / probs.sum()))
        bits = [(outcome_index >> q) & 1 for q in qubits]

        mask = self._control_mask(qubits)
        pattern = 0
        for q, b in zip(qubits, bits):
            pattern |= b << q
        keep = (self._indices & mask) == pattern
        amps[~keep] = 0.0
        amps /= np.sqrt(np.vdot(amps, amps).real)
        logger.debug(f"Measured qubits {qubits} -> {bits}")
        return bits

    def reset(self, qubit: int, rng: Optional[np.random.Generator] = None) -> None:
        """Measure ``qubit`` and flip it back to |0⟩ if it read |1⟩."""
        (bit,) = self.measure([qubit], rng)
        if bit:
            self.apply_matrix(np.array([[0, 1], [1, 0]], dtype=complex), [qubit])

    def snapshot(self) -> QuantumState:
        """Copy of the current amplitudes."""
        return QuantumState(num_qubits=self._num_qubits, amplitudes=self._live().copy())

    def release(self) -> None:
        """Zero and discard the amplitudes. Any later use is an error."""
        amps = self._live()
        amps[:] = 0.0
        self._amplitudes = None

    def __repr__(self) -> str:
        if self.released:
            return f"StateVector(num_qubits={self._num_qubits}, released)"
        return f"StateVector(num_qubits={self._num_qubits})"


def states_equal_up_to_phase(
    a: NDArray[np.complex128],
    b: NDArray[np.complex128],
    tolerance: float = DEFAULT_TOLERANCE,
) -> bool:
    """Whether two normalized states differ only by a unit-magnitude factor."""
    a = np.asarray(a, dtype=complex)
    b = np.asarray(b, dtype=complex)
    if a.shape != b.shape:
        raise DimensionMismatchError(f"Cannot compare states of shapes {a.shape} and {b.shape}")
    overlap = abs(np.vdot(a, b))
    norms = np.sqrt(np.vdot(a, a).real * np.vdot(b, b).real)
    return bool(norms - overlap <= tolerance)


def state_fidelity(a: NDArray[np.complex128], b: NDArray[np.complex128]) -> float:
    """``|<a|b>|^2`` for normalized states."""
    return float(abs(np.vdot(a, b)) ** 2)
