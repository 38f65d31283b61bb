"""
Operation equivalence checking by control indirection.

Given a candidate ``U`` and a reference ``V`` on ``m`` qubits, the checker
puts a probe qubit into superposition and applies ``U`` controlled on the
probe followed by ``V†`` controlled on the probe. When ``U = e^{iφ} V``, the
target register returns to its input in both probe branches and the only
residue is the relative phase ``φ`` on the probe. Any other difference leaves
the target entangled with the probe.

Two guarantees are available and every verdict records which one was used:

- ``EquivalenceMode.OPERATOR`` (default): the target register starts
  maximally entangled with an ancilla register. Returning to that state
  certifies ``U`` and ``V`` are the same operator up to global phase.
- ``EquivalenceMode.STATE``: the target starts in the state produced by the
  preparer (|0...0⟩ without one). Certifies equality on that input only.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from qgrade.core.engine import ApplicationEngine
from qgrade.core.errors import DimensionMismatchError, ProgrammingError
from qgrade.core.library import H, R1, CNOT
from qgrade.core.operation import Operation
from qgrade.core.profiles import TargetProfile
from qgrade.core.register import QubitArena
from qgrade.core.statevector import DEFAULT_TOLERANCE
from qgrade.core.types import EquivalenceMode, Verdict, VerdictStatus


logger = logging.getLogger(__name__)


class _OperationFailure(Exception):
    """Internal marker wrapping an exception raised by a checked operation."""

    def __init__(self, role: str, op: Operation, cause: BaseException) -> None:
        super().__init__(f"{role} operation '{op.name}' failed: {type(cause).__name__}: {cause}")
        self.role = role
        self.cause = cause


@dataclass
class EquivalenceChecker:
    """
    Decides whether two operations are observationally equivalent.

    Example:
        >>> checker = EquivalenceChecker()
        >>> checker.check(candidate=X, reference=X, num_qubits=1).equivalent
        True

    Args:
        tolerance: Probability mass allowed to leak out of |0...0⟩
        mode: Guarantee to certify
        profile: Target profile the candidate is restricted to
        arena: Register arena; a private one is created if omitted
        seed: Seed for measurements issued by operation bodies
    """

    tolerance: float = DEFAULT_TOLERANCE
    mode: EquivalenceMode = EquivalenceMode.OPERATOR
    profile: TargetProfile = TargetProfile.UNRESTRICTED
    arena: QubitArena = field(default_factory=QubitArena)
    seed: Optional[int] = None

    def check(
        self,
        candidate: Operation,
        reference: Operation,
        num_qubits: int,
        preparer: Optional[Operation] = None,
    ) -> Verdict:
        """
        Run the control-indirection test.

        Args:
            candidate: Operation under test
            reference: Authoritative operation
            num_qubits: Size of the target register
            preparer: Input state preparation (state mode only)

        Returns:
            Verdict with status CORRECT, INCORRECT or EXECUTION_ERROR

        Raises:
            CapabilityError: if a required adjoint/controlled variant is missing
                from the reference or preparer
            ProgrammingError: on engine or harness bugs
        """
        start_time = time.time()

        if reference.num_qubits != num_qubits:
            raise DimensionMismatchError(
                f"Reference '{reference.name}' acts on {reference.num_qubits} qubit(s), "
                f"exercise declares {num_qubits}"
            )
        if candidate.num_qubits != num_qubits:
            return self._verdict(
                VerdictStatus.EXECUTION_ERROR,
                start_time,
                message=(
                    f"Operation '{candidate.name}' acts on {candidate.num_qubits} qubit(s), "
                    f"expected {num_qubits}"
                ),
                error="signature mismatch",
            )
        if preparer is not None and self.mode is EquivalenceMode.OPERATOR:
            raise ProgrammingError("A preparer can only be used in state mode")
        if preparer is not None and preparer.num_qubits != num_qubits:
            raise DimensionMismatchError(
                f"Preparer '{preparer.name}' acts on {preparer.num_qubits} qubit(s), "
                f"expected {num_qubits}"
            )

        # Build every variant up front so a missing capability on the
        # reference side fails before any register is allocated.
        reference_inverse = reference.adjoint().controlled(1)
        unprepare = preparer.adjoint() if preparer is not None else None
        try:
            controlled_candidate = candidate.controlled(1)
        except Exception as e:
            return self._verdict(
                VerdictStatus.EXECUTION_ERROR,
                start_time,
                message=f"Operation '{candidate.name}' cannot be controlled: {e}",
                error=type(e).__name__,
            )

        m = num_qubits
        ancillas = m if self.mode is EquivalenceMode.OPERATOR else 0
        logger.debug(
            f"Checking '{candidate.name}' against '{reference.name}' "
            f"({m} qubits, {self.mode.value} mode)"
        )

        with self.arena.scoped(1 + m + ancillas) as register:
            probe, target, ancilla = register.split(1, m, ancillas)
            # Only the candidate is held to the target profile. The reference,
            # the preparer and the checker's own gates run unrestricted.
            engine = ApplicationEngine(register.state, rng=np.random.default_rng(self.seed))
            state = register.state

            try:
                self._prepare(engine, target, ancilla, preparer)
                engine.apply(H, probe)
                self._run(
                    "candidate", candidate, engine, [*probe, *target], controlled_candidate,
                    profile=self.profile,
                )
                self._run("reference", reference, engine, [*probe, *target], reference_inverse)

                if not state.is_normalized(self.tolerance * 1e3):
                    return self._verdict(
                        VerdictStatus.EXECUTION_ERROR,
                        start_time,
                        message=f"Operation '{candidate.name}' did not preserve the state norm",
                        error="non-unitary",
                    )

                self._unprepare(engine, target, ancilla, preparer, unprepare)
            except _OperationFailure as failure:
                logger.info(str(failure))
                return self._verdict(
                    VerdictStatus.EXECUTION_ERROR,
                    start_time,
                    message=str(failure),
                    error=type(failure.cause).__name__,
                )

            phase = self._align_probe_phase(engine, probe[0])
            engine.apply(H, probe)
            equivalent = state.is_zero(tolerance=self.tolerance)

        if equivalent:
            return self._verdict(
                VerdictStatus.CORRECT,
                start_time,
                message="Operations are equivalent",
                global_phase=phase,
            )
        return self._verdict(
            VerdictStatus.INCORRECT,
            start_time,
            message=f"'{candidate.name}' does not match '{reference.name}'",
        )

    def _prepare(
        self,
        engine: ApplicationEngine,
        target: list[int],
        ancilla: list[int],
        preparer: Optional[Operation],
    ) -> None:
        if self.mode is EquivalenceMode.OPERATOR:
            for t, a in zip(target, ancilla):
                engine.apply(H, [a])
                engine.apply(CNOT, [a, t])
        elif preparer is not None:
            self._run("preparer", preparer, engine, target, preparer)

    def _unprepare(
        self,
        engine: ApplicationEngine,
        target: list[int],
        ancilla: list[int],
        preparer: Optional[Operation],
        unprepare: Optional[Operation],
    ) -> None:
        if self.mode is EquivalenceMode.OPERATOR:
            for t, a in zip(target, ancilla):
                engine.apply(CNOT, [a, t])
                engine.apply(H, [a])
        elif unprepare is not None:
            self._run("preparer", preparer, engine, target, unprepare)

    @staticmethod
    def _run(
        role: str,
        original: Operation,
        engine: ApplicationEngine,
        qubits: list[int],
        variant: Operation,
        profile: TargetProfile = TargetProfile.UNRESTRICTED,
    ) -> None:
        try:
            with engine.restricted_to(profile):
                engine.apply(variant, qubits)
        except ProgrammingError as e:
            if role != "candidate":
                raise
            # Still fatal, but name the operation that tripped it.
            raise type(e)(f"{role} operation '{original.name}': {e}") from e
        except Exception as e:
            raise _OperationFailure(role, original, e) from e

    def _align_probe_phase(self, engine: ApplicationEngine, probe: int) -> Optional[float]:
        """
        Undo the relative phase between the probe branches.

        The phase is read from the |0...0⟩ and |probe=1, rest 0⟩ amplitudes,
        which are equal in magnitude exactly when the operations agree.
        """
        state = engine.state
        a0 = state.amplitude(0)
        a1 = state.amplitude(1 << probe)
        if abs(a0) <= np.sqrt(self.tolerance) or abs(a1) <= np.sqrt(self.tolerance):
            return None
        phase = float(np.angle(a1 / a0))
        if abs(phase) > 0.0:
            engine.apply(R1(-phase), [probe])
        return phase

    def _verdict(
        self,
        status: VerdictStatus,
        start_time: float,
        message: str = "",
        global_phase: Optional[float] = None,
        error: Optional[str] = None,
    ) -> Verdict:
        return Verdict(
            status=status,
            mode=self.mode,
            message=message,
            global_phase=global_phase,
            time_seconds=time.time() - start_time,
            error=error,
        )


def operations_equivalent(
    candidate: Operation,
    reference: Operation,
    num_qubits: Optional[int] = None,
    preparer: Optional[Operation] = None,
    tolerance: float = DEFAULT_TOLERANCE,
) -> bool:
    """
    Convenience wrapper returning a plain boolean.

    Uses state mode when a preparer is given and operator mode otherwise.
    """
    mode = EquivalenceMode.STATE if preparer is not None else EquivalenceMode.OPERATOR
    checker = EquivalenceChecker(tolerance=tolerance, mode=mode)
    n = num_qubits if num_qubits is not None else reference.num_qubits
    return checker.check(candidate, reference, n, preparer).equivalent
