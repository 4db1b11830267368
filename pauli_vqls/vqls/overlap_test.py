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

"""Circuits estimating the overlap between :math:`A|\\psi\\rangle` and :math:`|b\\rangle`."""

from qiskit import QuantumCircuit
from qiskit.circuit.library import SwapGate

from pauli_vqls.vqls.hadamard_test import append_controlled_circuit, append_controlled_pauli
from pauli_vqls.vqls.measurement import MeasurementCircuit, TermCircuits
from pauli_vqls.vqls.pauli_operator import PauliOperator, PauliTerm

# swap unitary lifted to a gate controlled by the ancilla
CONTROLLED_SWAP = SwapGate().control(1)


def uniform_superposition(num_qubits: int) -> QuantumCircuit:
    """Return the circuit preparing :math:`|b\\rangle = H^{\\otimes n}|0\\rangle`."""
    qc = QuantumCircuit(num_qubits, name="Ub")
    qc.h(range(num_qubits))
    return qc


def _check_sizes(operator: PauliOperator, ansatz: QuantumCircuit, rhs: QuantumCircuit):
    if ansatz.num_qubits != operator.num_qubits:
        raise ValueError(
            "The operator and the initial state circuits have different numbers of qubits"
        )
    if rhs.num_qubits != operator.num_qubits:
        raise ValueError("Matrix and vector circuits have different numbers of qubits.")


class SwapTest(TermCircuits):
    r"""Overlap test with a controlled swap network.

    The register holds the ansatz qubits ``0..n-1``, the reference qubits ``n..2n-1``
    prepared in :math:`|b\rangle` and the ancilla ``2n``. Controlled by the ancilla,
    the circuit applies the Pauli string of the term on the ansatz qubits followed by
    a swap of every ansatz qubit with its reference qubit. The readout is linearised
    as :math:`0.5 + \langle Z \rangle / 2`, the weighted sum of these values is the
    overlap estimate and its square is the numerator of the cost.
    """

    protocol = "swap_test"

    def __init__(
        self,
        operator: PauliOperator,
        ansatz: QuantumCircuit,
        rhs: QuantumCircuit,
        use_barrier: bool = False,
    ) -> None:
        """Create the swap test circuits of every term of ``operator``.

        Args:
            operator: the operator :math:`A`.
            ansatz: bound circuit preparing :math:`|\\psi\\rangle`.
            rhs: circuit preparing :math:`|b\\rangle`.
            use_barrier: introduce barriers in the circuits.
        """
        super().__init__()
        _check_sizes(operator, ansatz, rhs)

        nqbit = operator.num_qubits
        self.num_qubits = 2 * nqbit + 1
        self.ancilla = 2 * nqbit
        self.system = list(range(nqbit))
        self.reference = list(range(nqbit, 2 * nqbit))

        for index, term in enumerate(operator):
            self.coefficients.append(term.coeff)
            self.circuits.append(self._build_circuit(index, term, ansatz, rhs, use_barrier))

        self.ncircuits = len(self.circuits)

    def term_value(self, expectation: float) -> float:
        return 0.5 + 0.5 * expectation

    def _build_circuit(
        self,
        index: int,
        term: PauliTerm,
        ansatz: QuantumCircuit,
        rhs: QuantumCircuit,
        use_barrier: bool,
    ) -> MeasurementCircuit:
        qc = QuantumCircuit(self.num_qubits, name=f"swap_{term.label}")
        qc.compose(ansatz, self.system, inplace=True)
        qc.compose(rhs, self.reference, inplace=True)

        if use_barrier:
            qc.barrier()

        qc.h(self.ancilla)
        append_controlled_pauli(qc, self.ancilla, term.decompose(), self.system)
        for qubit, ref in zip(self.system, self.reference):
            qc.append(CONTROLLED_SWAP, [self.ancilla, qubit, ref])

        if use_barrier:
            qc.barrier()

        qc.h(self.ancilla)

        return MeasurementCircuit(
            circuit=qc,
            readout=self.ancilla,
            label=f"{self.protocol}[{index}]:{term.label}",
            term=term.label,
            protocol=self.protocol,
        )


class SurrogateOverlapTest(TermCircuits):
    r"""Direct estimate of :math:`\mathrm{Re}\langle b|A|\psi\rangle`, without swap network.

    For every term the whole product :math:`U_b^\dagger P_k V(\theta)` is controlled
    by the ancilla qubit ``n`` of a Hadamard test started from :math:`|0\rangle`,
    so that

    .. math::

        \langle Z_{anc} \rangle = \mathrm{Re}\langle 0|U_b^\dagger P_k V|0\rangle
                                = \mathrm{Re}\langle b|P_k|\psi\rangle

    The weighted sum over the terms is used unsquared as the numerator of the cost.
    """

    protocol = "surrogate"

    def __init__(
        self,
        operator: PauliOperator,
        ansatz: QuantumCircuit,
        rhs: QuantumCircuit,
        use_barrier: bool = False,
    ) -> None:
        """Create the surrogate circuits of every term of ``operator``.

        Args:
            operator: the operator :math:`A`.
            ansatz: bound circuit preparing :math:`|\\psi\\rangle`.
            rhs: circuit preparing :math:`|b\\rangle`.
            use_barrier: introduce barriers in the circuits.
        """
        super().__init__()
        _check_sizes(operator, ansatz, rhs)

        self.num_qubits = operator.num_qubits + 1
        self.ancilla = operator.num_qubits
        self.system = list(range(operator.num_qubits))

        for index, term in enumerate(operator):
            self.coefficients.append(term.coeff)
            self.circuits.append(self._build_circuit(index, term, ansatz, rhs, use_barrier))

        self.ncircuits = len(self.circuits)

    def _build_circuit(
        self,
        index: int,
        term: PauliTerm,
        ansatz: QuantumCircuit,
        rhs: QuantumCircuit,
        use_barrier: bool,
    ) -> MeasurementCircuit:
        qc = QuantumCircuit(self.num_qubits, name=f"surrogate_{term.label}")
        qc.h(self.ancilla)

        if use_barrier:
            qc.barrier()

        append_controlled_circuit(qc, ansatz, self.ancilla, self.system)
        append_controlled_pauli(qc, self.ancilla, term.decompose(), self.system)
        append_controlled_circuit(qc, rhs, self.ancilla, self.system, inverse=True)

        if use_barrier:
            qc.barrier()

        qc.h(self.ancilla)

        return MeasurementCircuit(
            circuit=qc,
            readout=self.ancilla,
            label=f"{self.protocol}[{index}]:{term.label}",
            term=term.label,
            protocol=self.protocol,
        )
