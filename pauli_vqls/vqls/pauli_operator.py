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

"""Linear operators expressed as weighted sums of Pauli strings."""

from dataclasses import dataclass
from numbers import Number
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple, Union

import numpy as np
from qiskit.quantum_info import Pauli, SparsePauliOp

from pauli_vqls.exceptions import InvalidOperatorError

PAULI_ALPHABET = frozenset("IXYZ")

# phase prefixes produced by Pauli.to_label()
_LABEL_PHASES = {"": 1.0, "-i": -1.0j, "-": -1.0, "i": 1.0j}


@dataclass(frozen=True)
class PauliTerm:
    """A single weighted Pauli string.

    The character ``label[k]`` acts on qubit ``k``.
    """

    coeff: complex
    label: str

    def __post_init__(self):
        if not isinstance(self.label, str) or not self.label:
            raise InvalidOperatorError(f"Invalid Pauli string {self.label!r}")
        invalid = sorted(set(self.label) - PAULI_ALPHABET)
        if invalid:
            raise InvalidOperatorError(
                f"Pauli string {self.label!r} contains symbols {invalid} "
                "outside of the alphabet {I, X, Y, Z}"
            )
        if isinstance(self.coeff, bool) or not isinstance(self.coeff, Number):
            raise InvalidOperatorError(
                f"Coefficient {self.coeff!r} of {self.label!r} is not a number"
            )
        object.__setattr__(self, "coeff", complex(self.coeff))

    @property
    def num_qubits(self) -> int:
        """Number of qubits the term acts on."""
        return len(self.label)

    @property
    def is_identity(self) -> bool:
        """True if every symbol of the string is ``I``."""
        return not self.decompose()

    def decompose(self) -> List[Tuple[int, str]]:
        """Return the ``(qubit, symbol)`` pairs of the non identity symbols."""
        return [(qubit, symbol) for qubit, symbol in enumerate(self.label) if symbol != "I"]

    def to_pauli(self) -> Pauli:
        """Return the string as a qiskit ``Pauli`` (little endian label)."""
        return Pauli(self.label[::-1])

    def __mul__(self, other: "PauliTerm") -> "PauliTerm":
        """Product of two terms with the phase folded into the coefficient."""
        if not isinstance(other, PauliTerm):
            return NotImplemented
        if other.num_qubits != self.num_qubits:
            raise InvalidOperatorError(
                f"Cannot multiply {self.label!r} and {other.label!r} of different lengths"
            )
        product = self.to_pauli().dot(other.to_pauli())
        phase, label = _split_phase(product.to_label())
        return PauliTerm(self.coeff * other.coeff * phase, label[::-1])


def _split_phase(label: str) -> Tuple[complex, str]:
    for prefix in ("-i", "i", "-"):
        if label.startswith(prefix):
            return _LABEL_PHASES[prefix], label[len(prefix):]
    return _LABEL_PHASES[""], label


class PauliOperator:
    r"""Operator :math:`A = \sum_k c_k P_k` stored as an ordered list of terms.

    Args:
        terms: the Pauli terms, either :class:`PauliTerm` instances or
            ``(coefficient, label)`` pairs. All labels must have the same length.

    Raises:
        InvalidOperatorError: if the operator is empty, contains a symbol outside
            of ``{I, X, Y, Z}`` or mixes Pauli strings of different lengths.
    """

    def __init__(self, terms: Iterable[Union[PauliTerm, Tuple[complex, str]]]):
        self._terms = tuple(self._to_term(term) for term in terms)
        if not self._terms:
            raise InvalidOperatorError("A Pauli operator needs at least one term")

        self._num_qubits = self._terms[0].num_qubits
        for term in self._terms:
            if term.num_qubits != self._num_qubits:
                raise InvalidOperatorError(
                    f"Pauli string {term.label!r} has length {term.num_qubits}, "
                    f"expected {self._num_qubits}"
                )

    @staticmethod
    def _to_term(term) -> PauliTerm:
        if isinstance(term, PauliTerm):
            return term
        try:
            coeff, label = term
        except (TypeError, ValueError) as err:
            raise InvalidOperatorError(
                f"Expected a (coefficient, Pauli string) pair, got {term!r}"
            ) from err
        return PauliTerm(coeff, label)

    @classmethod
    def from_list(cls, terms: Sequence[Tuple[complex, str]]) -> "PauliOperator":
        """Build the operator from ``(coefficient, label)`` pairs."""
        return cls(terms)

    @classmethod
    def from_text(cls, text: str) -> "PauliOperator":
        """Parse the line oriented ``coefficient label`` format.

        Blank lines and lines starting with ``#`` are ignored.
        """
        terms = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            line = line.split("#", 1)[0].strip()
            if not line:
                continue
            fields = line.split()
            if len(fields) != 2:
                raise InvalidOperatorError(
                    f"Line {lineno}: expected 'coefficient label', got {line!r}"
                )
            try:
                coeff = complex(fields[0])
            except ValueError as err:
                raise InvalidOperatorError(
                    f"Line {lineno}: invalid coefficient {fields[0]!r}"
                ) from err
            if coeff.imag == 0:
                coeff = coeff.real
            terms.append((coeff, fields[1]))
        return cls(terms)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PauliOperator":
        """Read an operator written in the :meth:`from_text` format."""
        return cls.from_text(Path(path).read_text(encoding="utf-8"))

    def to_text(self) -> str:
        """Serialize the operator to the :meth:`from_text` format."""
        lines = []
        for term in self._terms:
            coeff = term.coeff.real if term.coeff.imag == 0 else term.coeff
            lines.append(f"{coeff!r} {term.label}")
        return "\n".join(lines) + "\n"

    @property
    def num_qubits(self) -> int:
        """return the number of qubits"""
        return self._num_qubits

    @property
    def terms(self) -> Tuple[PauliTerm, ...]:
        """return the terms of the operator"""
        return self._terms

    @property
    def coefficients(self) -> List[complex]:
        """return the coefficients of the terms"""
        return [term.coeff for term in self._terms]

    @property
    def labels(self) -> List[str]:
        """return the Pauli strings of the terms"""
        return [term.label for term in self._terms]

    @property
    def coefficient_bound(self) -> float:
        r"""Return :math:`\sum_k |c_k|`, a bound on any expectation of the operator."""
        return float(sum(abs(term.coeff) for term in self._terms))

    def decompose(self) -> List[List[Tuple[int, str]]]:
        """Return, for every term, the ``(qubit, symbol)`` pairs to apply."""
        return [term.decompose() for term in self._terms]

    def compose(self, other: "PauliOperator") -> "PauliOperator":
        """Return the product ``self . other`` term by term.

        The product of every left term with every right term is kept, with the
        phases of mixed products such as ``X.Y = iZ`` folded into the
        coefficients. No conjugate transpose is taken.
        """
        if other.num_qubits != self.num_qubits:
            raise InvalidOperatorError(
                f"Cannot compose operators on {self.num_qubits} and {other.num_qubits} qubits"
            )
        return PauliOperator([left * right for left in self._terms for right in other.terms])

    def simplify(self, atol: float = 1e-12) -> "PauliOperator":
        """Merge equal Pauli strings and drop vanishing coefficients.

        The order of first appearance is kept. If every coefficient cancels,
        a single zero weighted identity term is returned.
        """
        merged: Dict[str, complex] = {}
        for term in self._terms:
            merged[term.label] = merged.get(term.label, 0.0) + term.coeff
        terms = [(coeff, label) for label, coeff in merged.items() if abs(coeff) > atol]
        if not terms:
            terms = [(0.0, "I" * self._num_qubits)]
        return PauliOperator(terms)

    def to_sparse_pauli_op(self) -> SparsePauliOp:
        """Return the equivalent qiskit ``SparsePauliOp``."""
        return SparsePauliOp.from_list([(term.label[::-1], term.coeff) for term in self._terms])

    def to_matrix(self) -> np.ndarray:
        """Return the dense matrix in qiskit's little endian basis ordering."""
        return self.to_sparse_pauli_op().to_matrix()

    def __add__(self, other: "PauliOperator") -> "PauliOperator":
        if not isinstance(other, PauliOperator):
            return NotImplemented
        if other.num_qubits != self.num_qubits:
            raise InvalidOperatorError(
                f"Cannot add operators on {self.num_qubits} and {other.num_qubits} qubits"
            )
        return PauliOperator(self._terms + other.terms)

    def __mul__(self, scalar: complex) -> "PauliOperator":
        if isinstance(scalar, bool) or not isinstance(scalar, Number):
            return NotImplemented
        return PauliOperator(
            [PauliTerm(scalar * term.coeff, term.label) for term in self._terms]
        )

    __rmul__ = __mul__

    def __matmul__(self, other: "PauliOperator") -> "PauliOperator":
        if not isinstance(other, PauliOperator):
            return NotImplemented
        return self.compose(other)

    def __iter__(self) -> Iterator[PauliTerm]:
        return iter(self._terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __getitem__(self, index) -> PauliTerm:
        return self._terms[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, PauliOperator):
            return NotImplemented
        return self._terms == other.terms

    def __hash__(self):
        return hash(self._terms)

    def __repr__(self) -> str:
        terms = ", ".join(f"({term.coeff!r}, {term.label!r})" for term in self._terms)
        return f"PauliOperator([{terms}])"
