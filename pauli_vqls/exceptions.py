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

"""Exceptions raised by the variational linear solver."""

from typing import Optional

from qiskit.exceptions import QiskitError


class VQLSError(QiskitError):
    """Base class for errors raised by the solver."""


class InvalidOperatorError(VQLSError):
    """The Pauli operator is malformed.

    Raised for symbols outside ``{I, X, Y, Z}``, Pauli strings of different
    lengths within one operator, empty operators and non numeric coefficients.
    """


class ParameterCountError(VQLSError):
    """The parameter vector does not match the ansatz configuration."""

    def __init__(self, expected: int, actual: int, context: str = "") -> None:
        self.expected = expected
        self.actual = actual
        message = f"Expected {expected} parameters but got {actual}"
        if context:
            message += f" ({context})"
        super().__init__(message)


class MeasurementFailedError(VQLSError):
    """A measurement circuit could not be executed by the backend.

    Attributes:
        label: identity of the circuit that failed.
        term: Pauli string of the term the circuit measures.
        protocol: name of the measurement protocol.
        iteration: optimizer iteration during which the failure happened,
            ``None`` when the circuit was evaluated outside of an optimization.
    """

    def __init__(
        self,
        label: str,
        term: str,
        protocol: str,
        reason: str = "",
        iteration: Optional[int] = None,
    ) -> None:
        self.label = label
        self.term = term
        self.protocol = protocol
        self.reason = reason
        self.iteration = iteration
        super().__init__(self._compose_message())

    def _compose_message(self) -> str:
        message = (
            f"Execution of circuit '{self.label}' failed "
            f"(protocol={self.protocol}, term={self.term})"
        )
        if self.iteration is not None:
            message += f" at iteration {self.iteration}"
        if self.reason:
            message += f": {self.reason}"
        return message

    def set_iteration(self, iteration: int) -> None:
        """Attach the optimizer iteration to the error."""
        self.iteration = iteration
        self.message = self._compose_message()
        self.args = (self.message,)

    def __str__(self) -> str:
        return self._compose_message()


class OptimizationStopped(VQLSError):
    """The optimization was stopped before the iteration budget was used."""
