"""
Pytest configuration and fixtures for QGRADE tests.
"""

import logging
import textwrap

import numpy as np
import pytest


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging so caplog sees qgrade records."""
    yield
    logger = logging.getLogger("qgrade")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def arena():
    """Private register arena."""
    from qgrade.core.register import QubitArena
    return QubitArena(max_qubits=16)


@pytest.fixture
def checker(arena):
    """Operator-mode checker sharing the test arena."""
    from qgrade.verification.equivalence import EquivalenceChecker
    return EquivalenceChecker(arena=arena, seed=7)


@pytest.fixture
def state_checker(arena):
    """State-mode checker sharing the test arena."""
    from qgrade.core.types import EquivalenceMode
    from qgrade.verification.equivalence import EquivalenceChecker
    return EquivalenceChecker(arena=arena, mode=EquivalenceMode.STATE, seed=7)


@pytest.fixture
def engine():
    """Engine over a fresh 3-qubit state vector."""
    from qgrade.core.engine import ApplicationEngine
    from qgrade.core.statevector import StateVector
    return ApplicationEngine(StateVector(3), rng=np.random.default_rng(0))


@pytest.fixture
def random_state():
    """Normalized random 3-qubit state."""
    from qgrade.core.statevector import StateVector
    rng = np.random.default_rng(42)
    amps = rng.normal(size=8) + 1j * rng.normal(size=8)
    return StateVector.from_amplitudes(amps / np.linalg.norm(amps))


@pytest.fixture
def catalog():
    """Built-in exercise catalog."""
    from qgrade.exercises import default_catalog
    return default_catalog()


@pytest.fixture
def harness(arena):
    """Harness with diagnostics enabled and an empty registry."""
    from qgrade.config import GraderConfig
    from qgrade.harness import GradingHarness
    return GradingHarness(config=GraderConfig(seed=7), arena=arena)


SUBMISSION_SOURCE = '''
"""Sample learner submission."""

from qgrade import CCNOT, CNOT, H, X, operation
from qgrade.core.operation import Circuit


@operation(num_qubits=1)
def flip_qubit(engine, qubits):
    engine.x(qubits[0])


@operation(num_qubits=1)
def basis_change(engine, qubits):
    engine.h(qubits[0])


@operation(num_qubits=1)
def sign_flip(engine, qubits):
    engine.z(qubits[0])


@operation(num_qubits=1)
def amplitude_change(engine, qubits):
    # Wrong axis: same probabilities from |0>, different operator.
    engine.rx(2 * 3.141592653589793 / 3, qubits[0])


bell_state = Circuit(2, "bell_state").add(H, 0).add(CNOT, 0, 1)


@operation(num_qubits=2)
def two_qubit_gate_reversed(engine, qubits):
    engine.cnot(qubits[1], qubits[0])


@operation(num_qubits=3)
def ghz_state(engine, qubits):
    engine.h(qubits[0])
    engine.cnot(qubits[0], qubits[1])
    engine.cnot(qubits[0], qubits[2])


toffoli = CCNOT


@operation(num_qubits=3)
def fredkin(engine, qubits):
    c, a, b = qubits
    engine.ccnot(c, b, a)
    engine.ccnot(c, a, b)
    engine.ccnot(c, b, a)
'''


@pytest.fixture
def submission_file(tmp_path):
    """Submission file solving every built-in exercise except amplitude_change."""
    path = tmp_path / "learner.py"
    path.write_text(textwrap.dedent(SUBMISSION_SOURCE))
    return path


@pytest.fixture
def config_file(tmp_path):
    """YAML configuration file."""
    path = tmp_path / "grader.yaml"
    path.write_text(
        "qgrade:\n"
        "  target_profile: base\n"
        "  tolerance: 1.0e-8\n"
        "  max_workers: 2\n"
        "  diagnostics: false\n"
    )
    return path
