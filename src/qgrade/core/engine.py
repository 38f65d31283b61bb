"""
Operation application engine.

Operation bodies never touch amplitudes directly: they issue primitive
instructions through an ``ApplicationEngine``. The engine carries a stack of
active control qubits, so a body written once runs unchanged as its
controlled variant, and a recording tape, so a body written once can be
replayed in reverse as its adjoint.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

import numpy as np

from qgrade.core.errors import DimensionMismatchError, ExecutionError, ProfileViolationError
from qgrade.core.gates import Gate, GateKind
from qgrade.core.profiles import Instruction, TargetProfile
from qgrade.core.statevector import StateVector

if TYPE_CHECKING:
    from qgrade.core.operation import Operation


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TapeEntry:
    """A recorded gate with the controls added while recording."""

    gate: Gate
    targets: tuple[int, ...]
    controls: tuple[int, ...] = ()


class ApplicationEngine:
    """
    Applies operations and primitive gates to a ``StateVector``.

    Example:
        >>> engine = ApplicationEngine(StateVector(2))
        >>> engine.h(0)
        >>> engine.cnot(0, 1)
        >>> engine.apply_adjoint(BELL_PREP, [0, 1])
    """

    def __init__(
        self,
        state: StateVector,
        profile: TargetProfile = TargetProfile.UNRESTRICTED,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.state = state
        self.profile = profile
        self.rng = rng if rng is not None else np.random.default_rng()
        self._controls: list[int] = []
        self._tapes: list[tuple[list[TapeEntry], int]] = []

    @property
    def controls(self) -> tuple[int, ...]:
        return tuple(self._controls)

    @property
    def recording(self) -> bool:
        return bool(self._tapes)

    # ------------------------------------------------------------------
    # Operation-level application
    # ------------------------------------------------------------------

    def apply(self, op: "Operation", qubits: Sequence[int]) -> None:
        """Apply ``op`` to ``qubits``."""
        qubits = list(qubits)
        if len(qubits) != op.num_qubits:
            raise DimensionMismatchError(
                f"Operation '{op.name}' acts on {op.num_qubits} qubit(s), got {len(qubits)}"
            )
        op.body(self, qubits)

    def apply_adjoint(self, op: "Operation", qubits: Sequence[int]) -> None:
        self.apply(op.adjoint(), qubits)

    def apply_controlled(
        self,
        op: "Operation",
        controls: Sequence[int],
        qubits: Sequence[int],
    ) -> None:
        controls = list(controls)
        self.apply(op.controlled(len(controls)), [*controls, *qubits])

    def apply_controlled_adjoint(
        self,
        op: "Operation",
        controls: Sequence[int],
        qubits: Sequence[int],
    ) -> None:
        controls = list(controls)
        self.apply(op.adjoint().controlled(len(controls)), [*controls, *qubits])

    @contextmanager
    def controlled_by(self, controls: Sequence[int]) -> Iterator[None]:
        """Every primitive issued inside the block is conditioned on ``controls``."""
        controls = list(controls)
        depth = len(self._controls)
        self._controls.extend(controls)
        try:
            yield
        finally:
            del self._controls[depth:]

    @contextmanager
    def record(self) -> Iterator[list[TapeEntry]]:
        """Capture primitives issued inside the block instead of applying them."""
        tape: list[TapeEntry] = []
        self._tapes.append((tape, len(self._controls)))
        try:
            yield tape
        finally:
            self._tapes.pop()

    @contextmanager
    def restricted_to(self, profile: TargetProfile) -> Iterator[None]:
        """Check every primitive issued inside the block against ``profile``."""
        previous = self.profile
        self.profile = profile
        try:
            yield
        finally:
            self.profile = previous

    def replay_adjoint(self, tape: Sequence[TapeEntry]) -> None:
        """Apply the inverse of a recorded tape."""
        for entry in reversed(tape):
            with self.controlled_by(entry.controls):
                self.gate(entry.gate.adjoint(), entry.targets)

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def _require(self, instruction: Instruction, name: str) -> None:
        if not self.profile.allows(instruction):
            raise ProfileViolationError(name, self.profile.value)

    def gate(self, gate: Gate, targets: Sequence[int]) -> None:
        """Apply a primitive gate under the active controls."""
        targets = tuple(targets)
        if len(targets) != gate.num_qubits:
            raise DimensionMismatchError(
                f"Gate {gate} acts on {gate.num_qubits} qubit(s), got {len(targets)}"
            )
        if gate.kind is GateKind.CUSTOM:
            self._require(Instruction.CUSTOM_UNITARY, gate.name)
        elif gate.kind is GateKind.PHASE:
            self._require(Instruction.GLOBAL_PHASE, gate.name)
        else:
            self._require(Instruction.GATE, gate.name)

        if self._tapes:
            tape, depth = self._tapes[-1]
            tape.append(TapeEntry(gate, targets, tuple(self._controls[depth:])))
            return

        if gate.kind is GateKind.PHASE:
            self.state.apply_phase(gate.params[0], self._controls)
        else:
            self.state.apply_matrix(gate.matrix(), targets, self._controls)

    def measure(self, qubit: int) -> int:
        """Measure one qubit in the computational basis."""
        self._require(Instruction.MEASURE, "M")
        self._check_irreversible("measurement")
        return self.state.measure([qubit], self.rng)[0]

    def reset(self, qubit: int) -> None:
        """Return one qubit to |0⟩."""
        self._require(Instruction.RESET, "Reset")
        self._check_irreversible("reset")
        self.state.reset(qubit, self.rng)

    def _check_irreversible(self, what: str) -> None:
        if self._controls:
            raise ExecutionError(f"Cannot apply {what} inside a controlled operation")
        if self._tapes:
            raise ExecutionError(f"Cannot apply {what} inside an adjoint operation")

    # Convenience wrappers used by operation bodies.

    def phase(self, theta: float) -> None:
        self.gate(Gate.global_phase(theta), ())

    def x(self, qubit: int) -> None:
        self.gate(Gate.named("X"), [qubit])

    def y(self, qubit: int) -> None:
        self.gate(Gate.named("Y"), [qubit])

    def z(self, qubit: int) -> None:
        self.gate(Gate.named("Z"), [qubit])

    def h(self, qubit: int) -> None:
        self.gate(Gate.named("H"), [qubit])

    def s(self, qubit: int) -> None:
        self.gate(Gate.named("S"), [qubit])

    def t(self, qubit: int) -> None:
        self.gate(Gate.named("T"), [qubit])

    def rx(self, theta: float, qubit: int) -> None:
        self.gate(Gate.named("RX", theta), [qubit])

    def ry(self, theta: float, qubit: int) -> None:
        self.gate(Gate.named("RY", theta), [qubit])

    def rz(self, theta: float, qubit: int) -> None:
        self.gate(Gate.named("RZ", theta), [qubit])

    def r1(self, theta: float, qubit: int) -> None:
        self.gate(Gate.named("R1", theta), [qubit])

    def swap(self, a: int, b: int) -> None:
        self.gate(Gate.named("SWAP"), [a, b])

    def cnot(self, control: int, target: int) -> None:
        with self.controlled_by([control]):
            self.x(target)

    def cz(self, control: int, target: int) -> None:
        with self.controlled_by([control]):
            self.z(target)

    def ccnot(self, control1: int, control2: int, target: int) -> None:
        with self.controlled_by([control1, control2]):
            self.x(target)

    def unitary(self, matrix: np.ndarray, targets: Sequence[int], name: str = "U") -> None:
        self.gate(Gate.custom(matrix, name=name), targets)
