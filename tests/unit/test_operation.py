"""Unit tests for operations and the application engine."""

import numpy as np
import pytest

from qgrade.core.engine import ApplicationEngine
from qgrade.core.errors import (
    CapabilityError,
    DimensionMismatchError,
    ExecutionError,
    ProfileViolationError,
    QubitIndexError,
)
from qgrade.core.library import (
    CCNOT, CNOT, H, RY, RZ, S, SWAP, T, X, identity, unitary,
)
from qgrade.core.operation import (
    AdjointOperation,
    Capability,
    Circuit,
    ControlledOperation,
    PhaseShifted,
    operation,
)
from qgrade.core.profiles import TargetProfile
from qgrade.core.statevector import StateVector


@operation(num_qubits=2)
def entangle_rotate(engine, qubits):
    a, b = qubits
    engine.h(a)
    engine.t(a)
    engine.cnot(a, b)
    engine.ry(0.3, b)
    engine.s(b)


@operation(num_qubits=1, adjoint=False)
def no_adjoint(engine, qubits):
    engine.t(qubits[0])


@operation(num_qubits=1, controlled=False)
def no_controlled(engine, qubits):
    engine.t(qubits[0])


@operation(num_qubits=1)
def measuring(engine, qubits):
    engine.measure(qubits[0])


class TestCapabilities:
    """Tests for capability flags."""

    def test_default_capabilities(self):
        """Test decorated operations support everything by default."""
        assert entangle_rotate.capabilities == Capability.ALL

    def test_missing_adjoint(self):
        """Test a missing adjoint is raised when the variant is built."""
        assert not no_adjoint.supports(Capability.ADJOINT)
        with pytest.raises(CapabilityError):
            no_adjoint.adjoint()

    def test_missing_controlled(self):
        """Test a missing controlled variant is raised when built."""
        with pytest.raises(CapabilityError):
            no_controlled.controlled()

    def test_circuit_intersects_capabilities(self):
        """Test a circuit supports only what all its steps support."""
        circuit = Circuit(1).add(H, 0).add(no_adjoint, 0)
        assert not circuit.supports(Capability.ADJOINT)
        assert circuit.supports(Capability.CONTROLLED)
        with pytest.raises(CapabilityError):
            circuit.adjoint()

    def test_zero_controls(self):
        """Test at least one control is required."""
        with pytest.raises(ValueError):
            X.controlled(0)


class TestAdjoint:
    """Tests for adjoint variants."""

    def test_involution(self):
        """Test adjoint of adjoint is the original operation."""
        assert entangle_rotate.adjoint().adjoint() is entangle_rotate
        assert S.adjoint().adjoint() is S
        assert H.adjoint() is H

    def test_tape_adjoint_type(self):
        """Test function bodies are inverted by replay."""
        assert isinstance(entangle_rotate.adjoint(), AdjointOperation)

    @pytest.mark.parametrize("op, qubits", [
        (entangle_rotate, [0, 2]),
        (CCNOT, [2, 0, 1]),
        (RZ(1.1), [1]),
        (T.controlled(2), [0, 1, 2]),
        (Circuit(3).add(H, 0).add(CNOT, 0, 2).add(S, 1).add(SWAP, 1, 2), [0, 1, 2]),
        (entangle_rotate.controlled(1), [1, 0, 2]),
        (PhaseShifted(entangle_rotate, 0.4), [2, 1]),
    ])
    def test_adjoint_restores_state(self, random_state, op, qubits):
        """Test op followed by its adjoint is the identity."""
        engine = ApplicationEngine(random_state)
        before = random_state.amplitudes.copy()
        engine.apply(op, qubits)
        assert not np.allclose(before, random_state.amplitudes)
        engine.apply_adjoint(op, qubits)
        assert np.allclose(before, random_state.amplitudes, atol=1e-12)

    def test_adjoint_of_controlled_body(self, random_state):
        """Test controls added inside a recorded body survive replay."""
        @operation(num_qubits=3)
        def nested(engine, qubits):
            engine.h(qubits[0])
            with engine.controlled_by([qubits[0]]):
                engine.ry(0.7, qubits[1])
                engine.s(qubits[2])

        engine = ApplicationEngine(random_state)
        before = random_state.amplitudes.copy()
        engine.apply(nested, [0, 1, 2])
        engine.apply_adjoint(nested, [0, 1, 2])
        assert np.allclose(before, random_state.amplitudes, atol=1e-12)

    def test_define_adjoint(self):
        """Test a hand-written adjoint body is used."""
        @operation(num_qubits=1)
        def rotate(engine, qubits):
            engine.rz(0.5, qubits[0])

        @rotate.define_adjoint
        def rotate_adj(engine, qubits):
            engine.rz(-0.5, qubits[0])

        inverse = rotate.adjoint()
        assert inverse.fn is rotate_adj
        assert inverse.adjoint() is rotate

    def test_custom_unitary_adjoint(self, random_state):
        """Test custom matrices invert through their matrix inverse."""
        rng = np.random.default_rng(9)
        q, _ = np.linalg.qr(rng.normal(size=(4, 4)) + 1j * rng.normal(size=(4, 4)))
        op = unitary(q, name="Q")
        engine = ApplicationEngine(random_state)
        before = random_state.amplitudes.copy()
        engine.apply(op, [2, 0])
        engine.apply_adjoint(op, [2, 0])
        assert np.allclose(before, random_state.amplitudes, atol=1e-10)


class TestControlled:
    """Tests for controlled variants."""

    def test_naming(self):
        """Test controlled variant names."""
        assert X.controlled().name == "Controlled X"
        assert X.controlled(2).name == "Controlled[2] X"
        assert X.controlled(1).controlled(1).num_qubits == 3

    def test_merges_controls(self):
        """Test controlling a controlled operation adds controls."""
        op = CNOT.controlled(1)
        assert isinstance(op, ControlledOperation)
        assert op.num_controls == 2

    def test_controlled_on_zero_is_noop(self):
        """Test a controlled body leaves the state exactly unchanged when the control is |0⟩."""
        rng = np.random.default_rng(11)
        amps = np.zeros(8, dtype=complex)
        amps[::2] = rng.normal(size=4) + 1j * rng.normal(size=4)
        sv = StateVector.from_amplitudes(amps / np.linalg.norm(amps))
        engine = ApplicationEngine(sv)
        before = sv.amplitudes.copy()
        engine.apply_controlled(entangle_rotate, [0], [1, 2])
        engine.apply_controlled_adjoint(PhaseShifted(entangle_rotate, 1.0), [0], [2, 1])
        assert np.array_equal(before, sv.amplitudes)

    def test_controlled_global_phase_is_relative(self):
        """Test a global phase becomes a relative phase under control."""
        sv = StateVector(2)
        engine = ApplicationEngine(sv)
        engine.h(0)
        engine.apply_controlled(PhaseShifted(identity(1), np.pi), [0], [1])
        engine.h(0)
        assert sv.amplitude(1) == pytest.approx(1.0)

    def test_toffoli(self):
        """Test CCNOT on every basis input."""
        for index in range(8):
            amps = np.zeros(8, dtype=complex)
            amps[index] = 1.0
            sv = StateVector.from_amplitudes(amps)
            ApplicationEngine(sv).apply(CCNOT, [0, 1, 2])
            expected = index ^ 0b100 if index & 0b011 == 0b011 else index
            assert sv.amplitude(expected) == pytest.approx(1.0)


class TestEngine:
    """Tests for engine-level checks."""

    def test_arity_mismatch(self, engine):
        """Test applying an operation to the wrong number of qubits."""
        with pytest.raises(DimensionMismatchError):
            engine.apply(CNOT, [0])

    def test_bad_index(self, engine):
        """Test out-of-range qubits reach the state vector check."""
        with pytest.raises(QubitIndexError):
            engine.apply(X, [5])

    def test_circuit_validation(self):
        """Test circuits check arity and indices when built."""
        with pytest.raises(DimensionMismatchError):
            Circuit(2).add(CNOT, 0)
        with pytest.raises(QubitIndexError):
            Circuit(2).add(CNOT, 0, 0)
        with pytest.raises(QubitIndexError):
            Circuit(2).add(X, 2)

    def test_measure_under_control(self, engine):
        """Test measurement is refused inside a controlled operation."""
        with pytest.raises(ExecutionError):
            engine.apply_controlled(measuring, [0], [1])

    def test_measure_under_adjoint(self, engine):
        """Test measurement is refused inside an adjoint operation."""
        with pytest.raises(ExecutionError):
            engine.apply_adjoint(measuring, [1])

    def test_measure(self, engine):
        """Test measurement outside control and adjoint."""
        engine.x(2)
        assert engine.measure(2) == 1

    def test_recording_does_not_apply(self, engine):
        """Test primitives issued while recording are captured only."""
        with engine.record() as tape:
            engine.x(0)
            engine.cnot(0, 1)
        assert engine.state.is_zero()
        assert [entry.gate.name for entry in tape] == ["X", "X"]
        assert tape[1].controls == (0,)
        assert not engine.recording


class TestProfiles:
    """Tests for target profile enforcement in the engine."""

    def test_base_rejects_reset(self):
        """Test reset is unavailable in the base profile."""
        engine = ApplicationEngine(StateVector(1), profile=TargetProfile.BASE)
        with pytest.raises(ProfileViolationError) as exc_info:
            engine.reset(0)
        assert exc_info.value.instruction == "Reset"

    def test_adaptive_allows_reset(self):
        """Test reset is available in the adaptive profile."""
        engine = ApplicationEngine(StateVector(1), profile=TargetProfile.ADAPTIVE)
        engine.x(0)
        engine.reset(0)
        assert engine.state.is_zero()

    def test_custom_unitary_unrestricted_only(self):
        """Test explicit matrices need the unrestricted profile."""
        engine = ApplicationEngine(StateVector(1), profile=TargetProfile.ADAPTIVE)
        with pytest.raises(ProfileViolationError):
            engine.apply(unitary(np.eye(2)), [0])
        ApplicationEngine(StateVector(1)).apply(unitary(np.eye(2)), [0])

    def test_base_allows_gates(self):
        """Test the base profile allows gates and global phase."""
        engine = ApplicationEngine(StateVector(2), profile=TargetProfile.BASE)
        engine.apply(PhaseShifted(RY(0.2), 0.1), [1])
        engine.apply(CNOT, [1, 0])

    def test_restricted_to(self):
        """Test a profile applies only inside the restricted block."""
        engine = ApplicationEngine(StateVector(1))
        with engine.restricted_to(TargetProfile.BASE):
            with pytest.raises(ProfileViolationError):
                engine.apply(unitary(np.eye(2)), [0])
        assert engine.profile is TargetProfile.UNRESTRICTED
        engine.apply(unitary(np.eye(2)), [0])
