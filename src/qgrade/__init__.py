"""
QGRADE: Equivalence-Based Grading of Quantum Programming Exercises
==================================================================

QGRADE decides whether a learner's implementation of a quantum operation is
observationally identical to a reference implementation, up to global phase,
by simulating both on a dense state vector.

Key Components:
    - StateVector / ApplicationEngine: amplitude simulation with controlled
      and adjoint application
    - EquivalenceChecker: control-indirection equivalence test
    - GradingHarness: resolves submissions, grades and reports

Basic Usage:
    >>> from qgrade import operation, Exercise, GradingHarness, X
    >>> @operation(num_qubits=1)
    ... def flip_qubit(engine, qubits):
    ...     engine.x(qubits[0])
    >>> exercise = Exercise(name="flip_qubit", num_qubits=1, reference=X)
    >>> GradingHarness().grade(exercise, flip_qubit).passed
    True
"""

from __future__ import annotations

__version__ = "0.1.0"

from qgrade.core.types import (
    EquivalenceMode,
    QuantumState,
    Verdict,
    VerdictStatus,
)
from qgrade.core.errors import (
    QGradeError,
    ProgrammingError,
    ExecutionError,
    CapabilityError,
)
from qgrade.core.statevector import StateVector
from qgrade.core.register import QubitArena
from qgrade.core.profiles import TargetProfile
from qgrade.core.engine import ApplicationEngine
from qgrade.core.operation import (
    Capability,
    Operation,
    Circuit,
    operation,
)
from qgrade.core.library import (
    I, X, Y, Z, H, S, T, SWAP, CNOT, CZ, CCNOT, RX, RY, RZ, R1, unitary,
)
from qgrade.config import GraderConfig
from qgrade.verification.equivalence import EquivalenceChecker, operations_equivalent
from qgrade.harness import (
    Exercise,
    ExerciseCatalog,
    GradeResult,
    GradingHarness,
    OperationRegistry,
    SuiteRunner,
    TextReporter,
    RichReporter,
)

__all__ = [
    # Version info
    "__version__",
    # Types
    "EquivalenceMode",
    "QuantumState",
    "Verdict",
    "VerdictStatus",
    # Errors
    "QGradeError",
    "ProgrammingError",
    "ExecutionError",
    "CapabilityError",
    # Simulation
    "StateVector",
    "QubitArena",
    "TargetProfile",
    "ApplicationEngine",
    # Operations
    "Capability",
    "Operation",
    "Circuit",
    "operation",
    "I", "X", "Y", "Z", "H", "S", "T", "SWAP", "CNOT", "CZ", "CCNOT",
    "RX", "RY", "RZ", "R1", "unitary",
    # Verification
    "EquivalenceChecker",
    "operations_equivalent",
    # Harness
    "GraderConfig",
    "Exercise",
    "ExerciseCatalog",
    "GradeResult",
    "GradingHarness",
    "OperationRegistry",
    "SuiteRunner",
    "TextReporter",
    "RichReporter",
]
