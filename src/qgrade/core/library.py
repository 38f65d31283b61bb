"""Standard operations available to exercises and submissions."""

from __future__ import annotations

import numpy as np

from qgrade.core.gates import Gate
from qgrade.core.operation import Circuit, ControlledOperation, GateOperation, Operation


I = GateOperation(Gate.named("I"))
X = GateOperation(Gate.named("X"))
Y = GateOperation(Gate.named("Y"))
Z = GateOperation(Gate.named("Z"))
H = GateOperation(Gate.named("H"))
S = GateOperation(Gate.named("S"))
T = GateOperation(Gate.named("T"))
SX = GateOperation(Gate.named("SX"))
SWAP = GateOperation(Gate.named("SWAP"))

CNOT = ControlledOperation(X, 1, name="CNOT")
CZ = ControlledOperation(Z, 1, name="CZ")
CCNOT = ControlledOperation(X, 2, name="CCNOT")


def RX(theta: float) -> Operation:
    return GateOperation(Gate.named("RX", theta))


def RY(theta: float) -> Operation:
    return GateOperation(Gate.named("RY", theta))


def RZ(theta: float) -> Operation:
    return GateOperation(Gate.named("RZ", theta))


def R1(theta: float) -> Operation:
    return GateOperation(Gate.named("R1", theta))


def unitary(matrix: np.ndarray, name: str = "U") -> Operation:
    """Operation applying an explicit unitary matrix."""
    return GateOperation(Gate.custom(matrix, name=name), name=name)


def identity(num_qubits: int) -> Operation:
    """The do-nothing operation on ``num_qubits`` qubits."""
    circuit = Circuit(num_qubits, f"I[{num_qubits}]")
    for q in range(num_qubits):
        circuit.add(I, q)
    return circuit


def bell_pair() -> Operation:
    """Prepares (|00⟩ + |11⟩)/√2 from |00⟩."""
    return Circuit(2, "bell_pair").add(H, 0).add(CNOT, 0, 1)

