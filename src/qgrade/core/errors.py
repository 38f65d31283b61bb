"""
Exception taxonomy for QGRADE.

Three families of failure are kept apart:

- ``ProgrammingError``: a harness or engine bug (bad qubit index, released
  register, dimension mismatch). Fatal for the current test run.
- ``ExecutionError``: a submitted operation misbehaved while being applied
  (unavailable instruction, non-unitary matrix, measurement under control).
  Reported to the learner distinctly from an incorrect answer.
- ``CapabilityError``: an adjoint or controlled variant was requested from an
  operation that does not declare it. Raised when the variant is built.
"""

from __future__ import annotations


class QGradeError(Exception):
    """Base class for all QGRADE errors."""


class ProgrammingError(QGradeError):
    """An internal invariant was violated."""


class QubitIndexError(ProgrammingError, IndexError):
    """Qubit index out of range or repeated."""


class ReleasedRegisterError(ProgrammingError):
    """A released register was used or released again."""


class DimensionMismatchError(ProgrammingError, ValueError):
    """Operation, matrix or register sizes do not agree."""


class ArenaExhaustedError(ProgrammingError):
    """The arena cannot provide the requested number of qubits."""


class ExecutionError(QGradeError):
    """An operation failed while being applied."""


class ProfileViolationError(ExecutionError):
    """An instruction is not available under the active target profile."""

    def __init__(self, instruction: str, profile: str) -> None:
        super().__init__(
            f"Instruction '{instruction}' is not available in the '{profile}' target profile"
        )
        self.instruction = instruction
        self.profile = profile


class NonUnitaryError(ExecutionError, ValueError):
    """A custom gate matrix is not unitary."""


class CapabilityError(QGradeError, TypeError):
    """A requested operation variant is not supported."""


class ConfigurationError(QGradeError, ValueError):
    """Invalid grader configuration."""


class UnknownOperationError(QGradeError, KeyError):
    """An operation could not be resolved by name."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown operation"
