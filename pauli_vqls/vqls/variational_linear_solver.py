# This code is part of Qiskit.
#
# (C) Copyright IBM 2020, 2021.
#
# This code is licensed under the Apache License, Version 2.0. You may
# obtain a copy of this license in the LICENSE.txt file in the root directory
# of this source tree or at http://www.apache.org/licenses/LICENSE-2.0.
#
# Any modifications or derivative works of this code must retain this
# copyright notice, and modified files need to carry a notice indicating
# that they have been altered from the originals.

"""An abstract class for variational linear systems solvers."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from qiskit import QuantumCircuit
from scipy.optimize import OptimizeResult

from pauli_vqls.vqls.pauli_operator import PauliOperator


class VariationalLinearSolverResult:
    """A base class for linear systems results using variational methods

    The linear systems variational algorithms return an object of the type
    ``VariationalLinearSolverResult`` with the information about the solution obtained.
    """

    def __init__(self) -> None:
        self._optimal_point = None
        self._optimal_value = None
        self._cost_history = []
        self._cost_function_evals = None
        self._iterations = None
        self._state = None
        self._optimizer_result = None

    @property
    def optimal_point(self) -> Optional[np.ndarray]:
        """Returns the final parameter vector"""
        return self._optimal_point

    @optimal_point.setter
    def optimal_point(self, value: np.ndarray) -> None:
        """Sets the final parameter vector"""
        self._optimal_point = value

    @property
    def optimal_value(self) -> Optional[float]:
        """Returns the cost at the final parameter vector"""
        return self._optimal_value

    @optimal_value.setter
    def optimal_value(self, value: float) -> None:
        """Sets the cost at the final parameter vector"""
        self._optimal_value = value

    @property
    def cost_history(self) -> List[float]:
        """Returns the cost recorded after every optimizer iteration"""
        return self._cost_history

    @cost_history.setter
    def cost_history(self, value: List[float]) -> None:
        """Sets the cost history"""
        self._cost_history = value

    @property
    def cost_function_evals(self) -> Optional[int]:
        """Returns number of cost optimizer evaluations"""
        return self._cost_function_evals

    @cost_function_evals.setter
    def cost_function_evals(self, value: int) -> None:
        """Sets number of cost function evaluations"""
        self._cost_function_evals = value

    @property
    def iterations(self) -> Optional[int]:
        """Returns the number of optimizer iterations"""
        return self._iterations

    @iterations.setter
    def iterations(self, value: int) -> None:
        """Sets the number of optimizer iterations"""
        self._iterations = value

    @property
    def state(self) -> Union[QuantumCircuit, np.ndarray]:
        """return either the circuit that prepares the solution or the solution as a vector"""
        return self._state

    @state.setter
    def state(self, state: Union[QuantumCircuit, np.ndarray]) -> None:
        """Set the solution state as either the circuit that prepares it or as a vector.

        Args:
            state: The new solution state.
        """
        self._state = state

    @property
    def optimizer_result(self) -> Optional[OptimizeResult]:
        """Returns the raw result of the optimizer"""
        return self._optimizer_result

    @optimizer_result.setter
    def optimizer_result(self, value: OptimizeResult) -> None:
        """Sets the raw result of the optimizer"""
        self._optimizer_result = value

    def __repr__(self) -> str:
        return (
            f"VariationalLinearSolverResult(optimal_value={self._optimal_value}, "
            f"iterations={self._iterations}, cost_function_evals={self._cost_function_evals})"
        )


class VariationalLinearSolver(ABC):
    """An abstract class for linear system solvers."""

    @abstractmethod
    def solve(
        self,
        operator: Union[PauliOperator, Sequence[Tuple[complex, str]]],
        rhs: Optional[QuantumCircuit] = None,
    ) -> VariationalLinearSolverResult:
        """Solve the system

        Args:
            operator: The operator specifying the system, i.e. A in Ax=b, as a weighted
                sum of Pauli strings.
            rhs: Optional circuit preparing the right hand side b of Ax=b from |0>.
                Default is the uniform superposition.

        Returns:
            The result of the linear system.
        """
        raise NotImplementedError
