"""
Core module for QGRADE.

This module provides the state vector simulator, the operation model and the
supporting types used throughout the grader.
"""

from qgrade.core.errors import (
    QGradeError,
    ProgrammingError,
    QubitIndexError,
    ReleasedRegisterError,
    DimensionMismatchError,
    ArenaExhaustedError,
    ExecutionError,
    ProfileViolationError,
    NonUnitaryError,
    CapabilityError,
    ConfigurationError,
    UnknownOperationError,
)
from qgrade.core.types import (
    VerdictStatus,
    EquivalenceMode,
    QuantumState,
    CounterExample,
    Verdict,
)
from qgrade.core.gates import Gate, GateKind
from qgrade.core.statevector import (
    StateVector,
    states_equal_up_to_phase,
    state_fidelity,
)
from qgrade.core.register import QubitArena, Register
from qgrade.core.profiles import Instruction, TargetProfile
from qgrade.core.engine import ApplicationEngine
from qgrade.core.operation import (
    Capability,
    Operation,
    GateOperation,
    AdjointOperation,
    ControlledOperation,
    PhaseShifted,
    Circuit,
    CallableOperation,
    operation,
)

__all__ = [
    # Errors
    "QGradeError",
    "ProgrammingError",
    "QubitIndexError",
    "ReleasedRegisterError",
    "DimensionMismatchError",
    "ArenaExhaustedError",
    "ExecutionError",
    "ProfileViolationError",
    "NonUnitaryError",
    "CapabilityError",
    "ConfigurationError",
    "UnknownOperationError",
    # Types
    "VerdictStatus",
    "EquivalenceMode",
    "QuantumState",
    "CounterExample",
    "Verdict",
    # Simulation
    "Gate",
    "GateKind",
    "StateVector",
    "states_equal_up_to_phase",
    "state_fidelity",
    "QubitArena",
    "Register",
    "Instruction",
    "TargetProfile",
    "ApplicationEngine",
    # Operations
    "Capability",
    "Operation",
    "GateOperation",
    "AdjointOperation",
    "ControlledOperation",
    "PhaseShifted",
    "Circuit",
    "CallableOperation",
    "operation",
]
