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

"""Hardware efficient ansatz circuits.

Three layering policies are available:

* :attr:`AnsatzVariant.ROTATION` applies one ``Ry`` per qubit and layer, followed
  by ``CX(j, j+1)`` entanglers on the adjacent pairs for which ``layer + j`` is even.
  It consumes ``num_qubits * num_layers`` parameters.
* :attr:`AnsatzVariant.PAIRED` walks over the pairs ``(j, j+1)`` with ``j`` even,
  applies ``Ry`` to both qubits of the pair and then ``CX(j+1, j)``.
  It consumes ``2 * (num_qubits // 2) * num_layers`` parameters.
* :attr:`AnsatzVariant.DOUBLE_ROTATION` walks over the qubits, applying ``Ry`` then ``Rx``
  to qubit ``j`` and then ``CX(j+1, j)`` before moving to the next qubit.
  It consumes ``2 * num_qubits * num_layers`` parameters, laid out as
  ``theta[2 * (layer * num_qubits + j)]`` for ``Ry`` and the next entry for ``Rx``.

No entangler wraps around the last qubit.
"""

from enum import Enum
from typing import Sequence

import numpy as np
from qiskit import QuantumCircuit

from pauli_vqls.exceptions import ParameterCountError


class AnsatzVariant(Enum):
    """Layering policy of the hardware efficient ansatz."""

    ROTATION = "R"
    PAIRED = "P"
    DOUBLE_ROTATION = "D"


def num_ansatz_parameters(num_qubits: int, num_layers: int, variant: AnsatzVariant) -> int:
    """Number of rotation angles consumed by an ansatz configuration."""
    variant = AnsatzVariant(variant)
    if variant is AnsatzVariant.ROTATION:
        return num_qubits * num_layers
    if variant is AnsatzVariant.DOUBLE_ROTATION:
        return 2 * num_qubits * num_layers
    return 2 * (num_qubits // 2) * num_layers


class HardwareEfficientAnsatz:
    """Layered rotation + ``CX`` ansatz preparing :math:`V(\\theta)|0\\rangle`.

    Args:
        num_qubits: number of qubits of the prepared state.
        num_layers: number of layers.
        variant: layering policy, see :class:`AnsatzVariant`.
    """

    def __init__(
        self,
        num_qubits: int,
        num_layers: int,
        variant: AnsatzVariant = AnsatzVariant.ROTATION,
    ) -> None:
        if num_qubits < 1:
            raise ValueError(f"The ansatz needs at least one qubit, got {num_qubits}")
        if num_layers < 1:
            raise ValueError(f"The ansatz needs at least one layer, got {num_layers}")
        self._num_qubits = num_qubits
        self._num_layers = num_layers
        self._variant = AnsatzVariant(variant)

    @property
    def num_qubits(self) -> int:
        """return the number of qubits"""
        return self._num_qubits

    @property
    def num_layers(self) -> int:
        """return the number of layers"""
        return self._num_layers

    @property
    def variant(self) -> AnsatzVariant:
        """return the layering policy"""
        return self._variant

    @property
    def num_parameters(self) -> int:
        """return the number of parameters"""
        return num_ansatz_parameters(self._num_qubits, self._num_layers, self._variant)

    def zero_point(self) -> np.ndarray:
        """Return the all zero parameter vector."""
        return np.zeros(self.num_parameters)

    def validate_parameters(self, theta: Sequence[float]) -> np.ndarray:
        """Check the length of ``theta`` and return it as a float array.

        Raises:
            ParameterCountError: if ``theta`` does not have ``num_parameters`` entries.
        """
        theta = np.asarray(theta, dtype=float).ravel()
        if theta.shape[0] != self.num_parameters:
            raise ParameterCountError(
                self.num_parameters,
                theta.shape[0],
                f"variant {self._variant.value}, {self._num_qubits} qubits, "
                f"{self._num_layers} layers",
            )
        return theta

    def build(self, theta: Sequence[float]) -> QuantumCircuit:
        """Return the ansatz circuit with the angles ``theta`` bound."""
        circuit = QuantumCircuit(self._num_qubits, name="V")
        self.apply(circuit, theta, list(range(self._num_qubits)))
        return circuit

    def apply(
        self,
        circuit: QuantumCircuit,
        theta: Sequence[float],
        qubits: Sequence[int],
    ) -> QuantumCircuit:
        """Append the ansatz gates to ``circuit``.

        Args:
            circuit: circuit to extend in place.
            theta: rotation angles.
            qubits: the circuit qubits playing the role of ansatz qubits ``0..n-1``.

        Returns:
            QuantumCircuit: the extended circuit.
        """
        theta = self.validate_parameters(theta)
        if len(qubits) != self._num_qubits:
            raise ValueError(
                f"The ansatz acts on {self._num_qubits} qubits, {len(qubits)} were given"
            )

        if self._variant is AnsatzVariant.ROTATION:
            self._apply_rotation_layers(circuit, theta, qubits)
        elif self._variant is AnsatzVariant.DOUBLE_ROTATION:
            self._apply_double_rotation_layers(circuit, theta, qubits)
        else:
            self._apply_paired_layers(circuit, theta, qubits)
        return circuit

    def _apply_rotation_layers(self, circuit, theta, qubits):
        nqbit = self._num_qubits
        for layer in range(self._num_layers):
            for j in range(nqbit):
                circuit.ry(theta[layer * nqbit + j], qubits[j])
            for j in range(nqbit - 1):
                if (layer + j) % 2 == 0:
                    circuit.cx(qubits[j], qubits[j + 1])

    def _apply_double_rotation_layers(self, circuit, theta, qubits):
        nqbit = self._num_qubits
        for layer in range(self._num_layers):
            for j in range(nqbit):
                idx = 2 * (layer * nqbit + j)
                circuit.ry(theta[idx], qubits[j])
                circuit.rx(theta[idx + 1], qubits[j])
                if j < nqbit - 1:
                    circuit.cx(qubits[j + 1], qubits[j])

    def _apply_paired_layers(self, circuit, theta, qubits):
        idx = 0
        for _ in range(self._num_layers):
            for j in range(0, self._num_qubits - 1, 2):
                circuit.ry(theta[idx], qubits[j])
                circuit.ry(theta[idx + 1], qubits[j + 1])
                circuit.cx(qubits[j + 1], qubits[j])
                idx += 2

    def __repr__(self) -> str:
        return (
            f"HardwareEfficientAnsatz(num_qubits={self._num_qubits}, "
            f"num_layers={self._num_layers}, variant={self._variant})"
        )


def build_ansatz(
    theta: Sequence[float],
    num_qubits: int,
    num_layers: int,
    variant: AnsatzVariant = AnsatzVariant.ROTATION,
) -> QuantumCircuit:
    """Build the ansatz circuit for ``theta``.

    Raises:
        ParameterCountError: if ``theta`` has the wrong length for the configuration.
    """
    return HardwareEfficientAnsatz(num_qubits, num_layers, variant).build(theta)
