"""Unit tests for the dense state vector."""

import numpy as np
import pytest

from qgrade.core.errors import (
    DimensionMismatchError,
    ProgrammingError,
    QubitIndexError,
    ReleasedRegisterError,
)
from qgrade.core.gates import HADAMARD, PAULI_X, PAULI_Z, SWAP
from qgrade.core.statevector import StateVector, state_fidelity, states_equal_up_to_phase


class TestStateVector:
    """Tests for StateVector basics."""

    def test_initial_state(self):
        """Test a new register is |0...0⟩."""
        sv = StateVector(3)
        assert sv.num_qubits == 3
        assert sv.amplitude(0) == 1.0
        assert sv.norm() == pytest.approx(1.0)
        assert sv.is_zero()

    def test_from_amplitudes(self):
        """Test building from an explicit array."""
        sv = StateVector.from_amplitudes([0, 1, 0, 0])
        assert sv.num_qubits == 2
        assert sv.amplitude(1) == 1.0

    def test_from_amplitudes_bad_length(self):
        """Test non power-of-two arrays are rejected."""
        with pytest.raises(DimensionMismatchError):
            StateVector.from_amplitudes([1, 0, 0])

    def test_amplitudes_read_only(self):
        """Test the public amplitude view cannot be written."""
        sv = StateVector(1)
        with pytest.raises(ValueError):
            sv.amplitudes[0] = 0.5

    def test_little_endian(self):
        """Test qubit q is bit q of the basis index."""
        sv = StateVector(3)
        sv.apply_matrix(PAULI_X, [1])
        assert sv.amplitude(0b010) == 1.0
        assert sv.qubit_probabilities() == pytest.approx([0.0, 1.0, 0.0])


class TestApplyMatrix:
    """Tests for local gate application."""

    def test_hadamard(self):
        """Test H on one qubit."""
        sv = StateVector(1)
        sv.apply_matrix(HADAMARD, [0])
        assert sv.probabilities() == pytest.approx([0.5, 0.5])

    def test_controlled_x(self):
        """Test X on qubit 1 controlled by qubit 0 builds a Bell state."""
        sv = StateVector(2)
        sv.apply_matrix(HADAMARD, [0])
        sv.apply_matrix(PAULI_X, [1], controls=[0])
        assert sv.probabilities() == pytest.approx([0.5, 0, 0, 0.5])

    def test_target_order(self):
        """Test targets[0] is the high bit of the local matrix index."""
        # |01⟩ -> |11⟩ under CNOT with control = targets[0]
        cnot = np.array(
            [[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 0, 1], [0, 0, 1, 0]], dtype=complex
        )
        sv = StateVector(2)
        sv.apply_matrix(PAULI_X, [1])
        sv.apply_matrix(cnot, [1, 0])
        assert sv.amplitude(0b11) == pytest.approx(1.0)

    def test_swap(self):
        """Test the SWAP matrix exchanges qubits."""
        sv = StateVector(3)
        sv.apply_matrix(PAULI_X, [0])
        sv.apply_matrix(SWAP, [0, 2])
        assert sv.amplitude(0b100) == pytest.approx(1.0)

    def test_off_branch_untouched(self, random_state):
        """Test amplitudes where a control reads |0⟩ are bit-exactly preserved."""
        before = random_state.amplitudes.copy()
        random_state.apply_matrix(HADAMARD, [1], controls=[0])
        after = random_state.amplitudes
        even = np.arange(8) % 2 == 0
        assert np.array_equal(before[even], after[even])
        assert not np.allclose(before[~even], after[~even])

    def test_control_fixed_at_zero(self):
        """Test a controlled gate is an exact no-op when its control is |0⟩."""
        rng = np.random.default_rng(3)
        amps = np.zeros(8, dtype=complex)
        amps[::2] = rng.normal(size=4) + 1j * rng.normal(size=4)
        sv = StateVector.from_amplitudes(amps / np.linalg.norm(amps))
        before = sv.amplitudes.copy()
        sv.apply_matrix(HADAMARD, [1], controls=[0])
        sv.apply_matrix(SWAP, [1, 2], controls=[0])
        assert np.array_equal(before, sv.amplitudes)

    def test_wrong_matrix_size(self):
        """Test a matrix must match the target count."""
        sv = StateVector(2)
        with pytest.raises(DimensionMismatchError):
            sv.apply_matrix(SWAP, [0])

    def test_qubit_out_of_range(self):
        """Test bad indices are programming errors."""
        sv = StateVector(2)
        with pytest.raises(QubitIndexError):
            sv.apply_matrix(PAULI_X, [2])
        with pytest.raises(ProgrammingError):
            sv.apply_matrix(PAULI_X, [-1])

    def test_repeated_qubit(self):
        """Test a control may not coincide with a target."""
        sv = StateVector(2)
        with pytest.raises(QubitIndexError):
            sv.apply_matrix(PAULI_X, [0], controls=[0])

    def test_controlled_phase(self):
        """Test a phase applied under control is a relative phase."""
        sv = StateVector(2)
        sv.apply_matrix(HADAMARD, [0])
        sv.apply_phase(np.pi, controls=[0])
        sv.apply_matrix(HADAMARD, [0])
        assert sv.amplitude(1) == pytest.approx(1.0)


class TestObservation:
    """Tests for measurement and zero checks."""

    def test_is_zero_subset(self):
        """Test is_zero on selected qubits only."""
        sv = StateVector(2)
        sv.apply_matrix(PAULI_X, [1])
        assert sv.is_zero([0])
        assert not sv.is_zero([1])
        assert not sv.is_zero()

    def test_is_zero_tolerance(self):
        """Test leaked mass below tolerance is accepted."""
        sv = StateVector.from_amplitudes([np.sqrt(1 - 1e-12), np.sqrt(1e-12)])
        assert sv.is_zero(tolerance=1e-9)
        assert not sv.is_zero(tolerance=1e-15)

    def test_measure_collapses(self):
        """Test measurement collapses entangled qubits together."""
        sv = StateVector(2)
        sv.apply_matrix(HADAMARD, [0])
        sv.apply_matrix(PAULI_X, [1], controls=[0])
        bits = sv.measure([0], np.random.default_rng(1))
        assert sv.probability_of_one(1) == pytest.approx(float(bits[0]))
        assert sv.is_normalized()

    def test_reset(self):
        """Test reset returns a qubit to |0⟩."""
        sv = StateVector(1)
        sv.apply_matrix(HADAMARD, [0])
        sv.reset(0, np.random.default_rng(5))
        assert sv.is_zero()

    def test_snapshot_is_copy(self):
        """Test snapshots do not alias the live buffer."""
        sv = StateVector(1)
        snap = sv.snapshot()
        sv.apply_matrix(PAULI_X, [0])
        assert snap.probability(0) == 1.0


class TestRelease:
    """Tests for released registers."""

    def test_use_after_release(self):
        """Test any access after release is an error."""
        sv = StateVector(1)
        sv.release()
        assert sv.released
        with pytest.raises(ReleasedRegisterError):
            sv.apply_matrix(PAULI_Z, [0])
        with pytest.raises(ReleasedRegisterError):
            sv.norm()

    def test_release_zeroes_buffer(self):
        """Test release zeroes the amplitudes before dropping them."""
        sv = StateVector(1)
        buffer = sv._amplitudes
        sv.release()
        assert not buffer.any()


class TestStateComparison:
    """Tests for the module-level comparison helpers."""

    def test_equal_up_to_phase(self):
        """Test global phase is ignored."""
        a = np.array([1, 1j]) / np.sqrt(2)
        assert states_equal_up_to_phase(a, np.exp(0.7j) * a)

    def test_relative_phase_differs(self):
        """Test relative phase is detected."""
        a = np.array([1, 1]) / np.sqrt(2)
        b = np.array([1, -1]) / np.sqrt(2)
        assert not states_equal_up_to_phase(a, b)
        assert state_fidelity(a, b) == pytest.approx(0.0)

    def test_shape_mismatch(self):
        """Test states of different sizes cannot be compared."""
        with pytest.raises(DimensionMismatchError):
            states_equal_up_to_phase(np.ones(2), np.ones(4))
