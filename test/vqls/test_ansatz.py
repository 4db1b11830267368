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

""" Test the hardware efficient ansatz """

import unittest

import numpy as np
from ddt import data, ddt, unpack
from qiskit import QuantumCircuit
from qiskit.quantum_info import Statevector

from pauli_vqls.exceptions import ParameterCountError
from pauli_vqls.vqls.ansatz import (
    AnsatzVariant,
    HardwareEfficientAnsatz,
    build_ansatz,
    num_ansatz_parameters,
)


def _gates(circuit):
    """Return the (name, qubits) pairs of the circuit instructions."""
    return [
        (instruction.operation.name, tuple(circuit.find_bit(q).index for q in instruction.qubits))
        for instruction in circuit.data
    ]


@ddt
class TestAnsatz(unittest.TestCase):
    """Test the hardware efficient ansatz"""

    @data(
        ("R", 4, 8, 32),
        ("R", 3, 2, 6),
        ("R", 1, 5, 5),
        ("P", 4, 8, 32),
        ("P", 3, 2, 4),
        ("P", 1, 3, 0),
        ("D", 4, 8, 64),
        ("D", 3, 2, 12),
        ("D", 1, 3, 6),
    )
    @unpack
    def test_num_parameters(self, variant, num_qubits, num_layers, expected):
        """Parameter counts of every variant"""
        ansatz = HardwareEfficientAnsatz(num_qubits, num_layers, variant)
        self.assertEqual(ansatz.num_parameters, expected)
        self.assertEqual(num_ansatz_parameters(num_qubits, num_layers, variant), expected)
        self.assertEqual(ansatz.zero_point().shape, (expected,))

    @data((AnsatzVariant.ROTATION, 31), (AnsatzVariant.ROTATION, 33), (AnsatzVariant.PAIRED, 16))
    @unpack
    def test_parameter_count_error(self, variant, size):
        """Wrong parameter vectors are rejected before building anything"""
        with self.assertRaises(ParameterCountError) as ctx:
            build_ansatz(np.zeros(size), 4, 8, variant)
        self.assertEqual(ctx.exception.expected, 32)
        self.assertEqual(ctx.exception.actual, size)

    @data((0, 1), (2, 0))
    @unpack
    def test_invalid_configuration(self, num_qubits, num_layers):
        """Empty ansatz configurations are rejected"""
        with self.assertRaises(ValueError):
            HardwareEfficientAnsatz(num_qubits, num_layers)

    def test_rotation_layers(self):
        """Variant R alternates the entangled pairs between layers"""
        theta = np.arange(8) * 0.1
        circuit = build_ansatz(theta, 4, 2, AnsatzVariant.ROTATION)
        self.assertEqual(
            _gates(circuit),
            [
                ("ry", (0,)),
                ("ry", (1,)),
                ("ry", (2,)),
                ("ry", (3,)),
                ("cx", (0, 1)),
                ("cx", (2, 3)),
                ("ry", (0,)),
                ("ry", (1,)),
                ("ry", (2,)),
                ("ry", (3,)),
                ("cx", (1, 2)),
            ],
        )
        angles = [instruction.operation.params[0] for instruction in circuit.data
                  if instruction.operation.name == "ry"]
        np.testing.assert_allclose(angles, theta)

    def test_paired_layers(self):
        """Variant P rotates and entangles the pairs (j, j+1) with j even"""
        circuit = build_ansatz(np.arange(4) * 0.1, 4, 1, AnsatzVariant.PAIRED)
        self.assertEqual(
            _gates(circuit),
            [
                ("ry", (0,)),
                ("ry", (1,)),
                ("cx", (1, 0)),
                ("ry", (2,)),
                ("ry", (3,)),
                ("cx", (3, 2)),
            ],
        )

    def test_double_rotation_layers(self):
        """Variant D applies Ry then Rx to each qubit and entangles it with the next"""
        theta = np.arange(12) * 0.1
        circuit = build_ansatz(theta, 3, 2, AnsatzVariant.DOUBLE_ROTATION)
        layer = [
            ("ry", (0,)),
            ("rx", (0,)),
            ("cx", (1, 0)),
            ("ry", (1,)),
            ("rx", (1,)),
            ("cx", (2, 1)),
            ("ry", (2,)),
            ("rx", (2,)),
        ]
        self.assertEqual(_gates(circuit), layer * 2)
        angles = [
            instruction.operation.params[0]
            for instruction in circuit.data
            if instruction.operation.name in ("ry", "rx")
        ]
        np.testing.assert_allclose(angles, theta)

    def test_double_rotation_state(self):
        """A single qubit layer prepares Rx(b) Ry(a)|0>"""
        circuit = build_ansatz([0.4, 1.1], 1, 1, "D")
        expected = QuantumCircuit(1)
        expected.ry(0.4, 0)
        expected.rx(1.1, 0)
        self.assertTrue(Statevector(circuit).equiv(Statevector(expected)))

    @data(AnsatzVariant.ROTATION, AnsatzVariant.PAIRED, AnsatzVariant.DOUBLE_ROTATION)
    def test_no_wraparound(self, variant):
        """No entangler connects the last qubit with the first one"""
        ansatz = HardwareEfficientAnsatz(5, 4, variant)
        circuit = ansatz.build(np.ones(ansatz.num_parameters))
        for name, qubits in _gates(circuit):
            if name == "cx":
                self.assertEqual(abs(qubits[0] - qubits[1]), 1)

    @data("R", "P", "D")
    def test_zero_point_prepares_zero_state(self, variant):
        """All angles at zero leave the register in |0>"""
        ansatz = HardwareEfficientAnsatz(4, 3, variant)
        state = Statevector(ansatz.build(ansatz.zero_point()))
        self.assertTrue(state.equiv(Statevector.from_label("0000")))

    def test_apply_on_qubit_subset(self):
        """The ansatz can be appended on arbitrary qubits of a larger circuit"""
        ansatz = HardwareEfficientAnsatz(2, 1)
        circuit = QuantumCircuit(3)
        ansatz.apply(circuit, [0.2, 0.3], [2, 1])
        self.assertEqual(_gates(circuit)[-3:], [("ry", (2,)), ("ry", (1,)), ("cx", (2, 1))])


if __name__ == "__main__":
    unittest.main()
