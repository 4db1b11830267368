# This code is part of Qiskit.
#
# (C) Copyright IBM 2022.
#
# This code is licensed under the Apache License, Version 2.0. You may
# obtain a copy of this license in the LICENSE.txt file in the root directory
# of this source tree or at http://www.apache.org/licenses/LICENSE-2.0.
#
# Any modifications or derivative works of this code must retain this
# copyright notice, and modified files need to carry a notice indicating
# that they have been altered from the originals.

""" Test the overlap circuits of the numerator """

import unittest

import numpy as np
from ddt import data, ddt
from qiskit import QuantumCircuit
from qiskit.quantum_info import Pauli, Statevector

from pauli_vqls.utils.backend import StatevectorBackend
from pauli_vqls.vqls.ansatz import HardwareEfficientAnsatz
from pauli_vqls.vqls.overlap_test import SurrogateOverlapTest, SwapTest, uniform_superposition
from pauli_vqls.vqls.pauli_operator import PauliOperator

REFERENCE_TERMS = [(1.0, "IZZI"), (2.0, "ZZZZ"), (-0.5, "IIIZ")]
MIXED_TERMS = [(0.8, "XIZY"), (-1.3, "IYYI"), (0.5, "ZXXZ"), (0.2, "IIII")]


def _random_state(num_qubits, seed):
    ansatz = HardwareEfficientAnsatz(num_qubits, 3)
    rng = np.random.default_rng(seed)
    return ansatz.build(rng.uniform(-np.pi, np.pi, ansatz.num_parameters))


def _rhs_circuit():
    qc = QuantumCircuit(4, global_phase=0.25)
    qc.h(0)
    qc.ry(0.3, 1)
    qc.cx(0, 2)
    qc.x(3)
    return qc


@ddt
class TestSurrogateOverlapTest(unittest.TestCase):
    """Test the simplified overlap circuits"""

    def setUp(self):
        super().setUp()
        self.backend = StatevectorBackend()

    @data(0, 1, 2)
    def test_term_values(self, seed):
        """Every circuit reads Re<b|P|psi>"""
        operator = PauliOperator(MIXED_TERMS)
        ansatz = _random_state(4, seed)
        rhs = _rhs_circuit() if seed % 2 else uniform_superposition(4)

        psi = Statevector(ansatz).data
        b = Statevector(rhs).data

        surrogate = SurrogateOverlapTest(operator, ansatz, rhs)
        self.assertEqual(len(surrogate), len(operator))
        self.assertEqual(surrogate.num_qubits, 5)

        for circuit, term in zip(surrogate, operator):
            expected = np.real(np.vdot(b, Pauli(term.label[::-1]).to_matrix() @ psi))
            self.assertAlmostEqual(self.backend.execute(circuit), expected, places=10)

    @data(3, 4, 5, 6)
    def test_numerator_bound(self, seed):
        """The surrogate numerator never exceeds the sum of absolute coefficients"""
        operator = PauliOperator(REFERENCE_TERMS)
        surrogate = SurrogateOverlapTest(operator, _random_state(4, seed), uniform_superposition(4))
        values = [self.backend.execute(circuit) for circuit in surrogate]
        numer = surrogate.aggregate(values).real
        self.assertLessEqual(abs(numer), operator.coefficient_bound)

    def test_size_mismatch(self):
        """The right hand side must act on the operator qubits"""
        operator = PauliOperator(REFERENCE_TERMS)
        with self.assertRaises(ValueError):
            SurrogateOverlapTest(operator, _random_state(4, 0), uniform_superposition(3))


@ddt
class TestSwapTest(unittest.TestCase):
    """Test the swap test circuits"""

    def test_structure(self):
        """The circuit holds the system, the reference register and the ancilla"""
        operator = PauliOperator(REFERENCE_TERMS)
        swap = SwapTest(operator, _random_state(4, 0), uniform_superposition(4))

        self.assertEqual(len(swap), 3)
        self.assertEqual(swap.num_qubits, 9)
        self.assertEqual(swap.ancilla, 8)
        self.assertEqual(swap.system, [0, 1, 2, 3])
        self.assertEqual(swap.reference, [4, 5, 6, 7])
        self.assertEqual(
            swap.labels, ["swap_test[0]:IZZI", "swap_test[1]:ZZZZ", "swap_test[2]:IIIZ"]
        )
        for circuit in swap:
            self.assertEqual(circuit.readout, 8)
            self.assertEqual(circuit.protocol, "swap_test")
            self.assertEqual(circuit.circuit.count_ops()["cswap"], 4)

    def test_identity_terms_are_measured(self):
        """Identity strings still need the swap network"""
        operator = PauliOperator([(1.0, "II"), (0.5, "XZ")])
        swap = SwapTest(operator, _random_state(2, 0), uniform_superposition(2))
        self.assertEqual(len(swap), 2)
        self.assertEqual(swap.constant_coefficients, [])

    def test_term_value(self):
        """The readout is mapped linearly onto [0, 1]"""
        swap = SwapTest(PauliOperator([(1.0, "Z")]), QuantumCircuit(1), uniform_superposition(1))
        self.assertEqual(swap.term_value(1.0), 1.0)
        self.assertEqual(swap.term_value(-1.0), 0.0)
        self.assertEqual(swap.term_value(0.0), 0.5)

    @data(0, 1)
    def test_readout(self, seed):
        """The ancilla reads Re(<psi|b><b|P|psi>)"""
        operator = PauliOperator(MIXED_TERMS)
        ansatz = _random_state(4, seed)
        rhs = _rhs_circuit()

        psi = Statevector(ansatz).data
        b = Statevector(rhs).data
        backend = StatevectorBackend()

        for circuit, term in zip(SwapTest(operator, ansatz, rhs), operator):
            projected = np.vdot(b, Pauli(term.label[::-1]).to_matrix() @ psi)
            expected = np.real(np.vdot(psi, b) * projected)
            self.assertAlmostEqual(backend.execute(circuit), expected, places=10)


if __name__ == "__main__":
    unittest.main()
