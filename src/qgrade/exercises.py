"""
Built-in sample exercises.

A small catalog of katas covering single-qubit gates, state preparation and
multi-qubit controlled gates. Each exercise expects the learner to submit an
operation named after the exercise.
"""

from __future__ import annotations

import numpy as np

from qgrade.core.library import CCNOT, CNOT, H, RY, SWAP, X, Z, bell_pair
from qgrade.core.operation import Circuit
from qgrade.core.types import EquivalenceMode
from qgrade.harness.exercise import Exercise, ExerciseCatalog


def _ghz_state() -> Circuit:
    return Circuit(3, "ghz_state").add(H, 0).add(CNOT, 0, 1).add(CNOT, 1, 2)


def _plus_state() -> Circuit:
    return Circuit(1, "prepare_plus").add(H, 0)


def get_builtin_exercises() -> list[Exercise]:
    """Return the built-in exercises."""
    return [
        Exercise(
            name="flip_qubit",
            num_qubits=1,
            reference=X,
            description="Change |0⟩ to |1⟩ and |1⟩ to |0⟩.",
            hint="A single Pauli gate does this.",
            tags=["single-qubit", "basics"],
        ),
        Exercise(
            name="basis_change",
            num_qubits=1,
            reference=H,
            description="Map |0⟩ to |+⟩ and |1⟩ to |−⟩.",
            hint="Think of the Hadamard gate.",
            tags=["single-qubit", "basics"],
        ),
        Exercise(
            name="sign_flip",
            num_qubits=1,
            reference=Z,
            preparer=_plus_state(),
            mode=EquivalenceMode.STATE,
            description="Change |+⟩ to |−⟩.",
            hint="Only the relative sign of |1⟩ changes.",
            tags=["single-qubit", "phase"],
        ),
        Exercise(
            name="amplitude_change",
            num_qubits=1,
            reference=RY(2 * np.pi / 3),
            description="Rotate |0⟩ to cos(π/3)|0⟩ + sin(π/3)|1⟩ and |1⟩ accordingly.",
            hint="Use a Y rotation; remember rotation gates take twice the angle.",
            tags=["single-qubit", "rotation"],
        ),
        Exercise(
            name="bell_state",
            num_qubits=2,
            reference=bell_pair(),
            mode=EquivalenceMode.STATE,
            description="Prepare (|00⟩ + |11⟩)/√2 from |00⟩.",
            hint="Create a superposition on one qubit, then entangle.",
            tags=["multi-qubit", "preparation"],
        ),
        Exercise(
            name="two_qubit_gate_reversed",
            num_qubits=2,
            reference=Circuit(2, "reversed_cnot").add(CNOT, 1, 0),
            description="Flip the first qubit when the second qubit is |1⟩.",
            hint="The control and target are swapped compared to the usual CNOT.",
            tags=["multi-qubit", "controlled"],
        ),
        Exercise(
            name="ghz_state",
            num_qubits=3,
            reference=_ghz_state(),
            mode=EquivalenceMode.STATE,
            description="Prepare (|000⟩ + |111⟩)/√2 from |000⟩.",
            hint="Extend the Bell state preparation by one more qubit.",
            tags=["multi-qubit", "preparation"],
        ),
        Exercise(
            name="toffoli",
            num_qubits=3,
            reference=CCNOT,
            description="Flip the third qubit when the first two are both |1⟩.",
            tags=["multi-qubit", "controlled"],
        ),
        Exercise(
            name="fredkin",
            num_qubits=3,
            reference=SWAP.controlled(1),
            description="Swap the last two qubits when the first is |1⟩.",
            hint="A controlled SWAP can be built from three Toffoli gates.",
            tags=["multi-qubit", "controlled"],
        ),
    ]


def default_catalog() -> ExerciseCatalog:
    """Catalog of the built-in exercises."""
    return ExerciseCatalog(get_builtin_exercises())
