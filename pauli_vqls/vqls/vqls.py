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

"""Variational Quantum Linear Solver

See https://arxiv.org/abs/1909.05820
"""

import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

import numpy as np
from qiskit import QuantumCircuit

from pauli_vqls.exceptions import MeasurementFailedError
from pauli_vqls.utils.backend import QuantumBackend, StatevectorBackend, get_backend
from pauli_vqls.vqls.ansatz import AnsatzVariant, HardwareEfficientAnsatz
from pauli_vqls.vqls.gradients import FiniteDifferenceGradient
from pauli_vqls.vqls.hadamard_test import HadamardTest
from pauli_vqls.vqls.measurement import MeasurementEngine, TermCircuits
from pauli_vqls.vqls.optimizer import GradientDescent
from pauli_vqls.vqls.overlap_test import SurrogateOverlapTest, SwapTest, uniform_superposition
from pauli_vqls.vqls.pauli_operator import PauliOperator
from pauli_vqls.vqls.variational_linear_solver import (
    VariationalLinearSolver,
    VariationalLinearSolverResult,
)

logger = logging.getLogger(__name__)

# coefficients with a smaller imaginary part are considered real
IMAG_ATOL = 1e-9


class NumeratorMode(Enum):
    """Estimation mode of the numerator of the cost."""

    # squared overlap from the controlled swap network
    SWAP_TEST = "swap"
    # unsquared Re<b|A|psi> from a fully controlled Hadamard test
    SURROGATE = "surrogate"


_NUMERATOR_PROTOCOLS = {
    NumeratorMode.SWAP_TEST: SwapTest,
    NumeratorMode.SURROGATE: SurrogateOverlapTest,
}


@dataclass(frozen=True)
class CostEstimate:
    r"""The two estimated quantities of the cost.

    Attributes:
        denom: estimate of :math:`\langle\psi|A A|\psi\rangle`.
        numer: estimate of :math:`|\langle b|A|\psi\rangle|^2` in swap test mode, of
            :math:`\mathrm{Re}\langle b|A|\psi\rangle` in surrogate mode.
    """

    denom: float
    numer: float

    @property
    def cost(self) -> float:
        """Return ``denom - 2 numer + 1``."""
        return self.denom - 2.0 * self.numer + 1.0

    @property
    def normalized_cost(self) -> float:
        """Return ``1 - numer / denom``, the normalized global cost.

        Only meaningful in swap test mode, where ``numer`` is the squared overlap.
        ``nan`` is returned when ``denom`` is zero, that is when A annihilates the state.
        """
        if self.denom == 0.0:
            return math.nan
        return 1.0 - self.numer / self.denom


class VQLS(VariationalLinearSolver):
    r"""Systems of linear equations arise naturally in many real-life applications in a wide range
    of areas, such as in the solution of Partial Differential Equations, the calibration of
    financial models, fluid simulation or numerical field calculation. The problem can be defined
    as, given an operator :math:`A = \sum_k c_k P_k` written as a weighted sum of Pauli strings
    and a state :math:`|b\rangle`, find :math:`\theta` such that :math:`A V(\theta)|0\rangle`
    is proportional to :math:`|b\rangle`.

    The cost minimized by the optimizer is

    .. math::

        C(\theta) = \langle\psi|A A|\psi\rangle - 2 N(\theta) + 1

    where the first term is estimated with Hadamard tests over the terms of :math:`A A`
    and :math:`N(\theta)` with the selected :class:`NumeratorMode`. The product
    :math:`A A` is used as is, no conjugate transpose is taken, which matches
    :math:`A^\dagger A` for real coefficients.

    Examples:

        .. code-block:: python

            from pauli_vqls import VQLS, PauliOperator

            operator = PauliOperator([(1.0, "IZZI"), (2.0, "ZZZZ"), (-0.5, "IIIZ")])
            vqls = VQLS(num_layers=8)
            solution = vqls.solve(operator)
            print(solution.cost_history[-1], solution.optimal_point)

    References:

        [1] Carlos Bravo-Prieto, Ryan LaRose, M. Cerezo, Yigit Subasi, Lukasz Cincio, Patrick J. Coles
        Variational Quantum Linear Solver
        `arXiv:1909.05820 <https://arxiv.org/abs/1909.05820>`
    """

    def __init__(
        self,
        num_layers: int = 8,
        ansatz_variant: Union[AnsatzVariant, str] = AnsatzVariant.ROTATION,
        numerator_mode: Union[NumeratorMode, str] = NumeratorMode.SURROGATE,
        optimizer: Optional[Union[GradientDescent, Callable]] = None,
        gradient: Optional[Callable] = None,
        initial_point: Optional[np.ndarray] = None,
        backend: Optional[Union[QuantumBackend, str]] = None,
        shots: Optional[int] = None,
        max_workers: int = 1,
        callback: Optional[Callable[[int, float, np.ndarray], None]] = None,
        use_barrier: bool = False,
    ) -> None:
        r"""
        Args:
            num_layers: number of layers of the hardware efficient ansatz.
            ansatz_variant: layering policy of the ansatz, see :class:`AnsatzVariant`.
            numerator_mode: estimation mode of the numerator, see :class:`NumeratorMode`.
            optimizer: A classical optimizer. Can either be a :class:`GradientDescent` or a
                callable ``optimizer(fun=, x0=, jac=)`` returning an object with ``x`` and
                ``fun`` attributes, such as a partially applied ``scipy.optimize.minimize``.
                Defaults to :class:`GradientDescent` with 50 iterations and step 0.1.
            gradient: gradient estimator ``gradient(cost_fn, theta)``. Defaults to a central
                finite difference.
            initial_point: initial parameters, the zero vector if ``None``.
            backend: backend executing the circuits, or the name of one known by
                :func:`~pauli_vqls.utils.backend.get_backend`. Defaults to exact statevector
                simulation.
            shots: number of shots per circuit, ``None`` for exact expectation values.
            max_workers: number of circuits executed concurrently.
            callback: a callback that can access the intermediate data during the optimization.
                Three parameter values are passed to the callback after every evaluation of
                the cost: the evaluation count, the cost and the parameters.
            use_barrier: introduce barriers in the measurement circuits.
        """
        super().__init__()

        self._num_layers = None
        self.num_layers = num_layers

        self._ansatz_variant = None
        self.ansatz_variant = ansatz_variant

        self._numerator_mode = None
        self.numerator_mode = numerator_mode

        self._optimizer = None
        self.optimizer = optimizer

        self._gradient = None
        self.gradient = gradient

        self._initial_point = None
        self.initial_point = initial_point

        self._backend = None
        self.backend = backend

        self._shots = None
        self.shots = shots

        self._max_workers = None
        self.max_workers = max_workers

        self._callback = None
        self.callback = callback

        self._use_barrier = use_barrier

        self._eval_count = 0
        self._stop_event = threading.Event()
        self._squared_operators: Dict[PauliOperator, PauliOperator] = {}

    @property
    def num_layers(self) -> int:
        """Returns the number of ansatz layers"""
        return self._num_layers

    @num_layers.setter
    def num_layers(self, num_layers: int) -> None:
        """Sets the number of ansatz layers"""
        if num_layers < 1:
            raise ValueError(f"num_layers must be at least 1, got {num_layers}")
        self._num_layers = num_layers

    @property
    def ansatz_variant(self) -> AnsatzVariant:
        """Returns the layering policy of the ansatz"""
        return self._ansatz_variant

    @ansatz_variant.setter
    def ansatz_variant(self, variant: Union[AnsatzVariant, str]) -> None:
        """Sets the layering policy of the ansatz"""
        self._ansatz_variant = AnsatzVariant(variant)

    @property
    def numerator_mode(self) -> NumeratorMode:
        """Returns the estimation mode of the numerator"""
        return self._numerator_mode

    @numerator_mode.setter
    def numerator_mode(self, mode: Union[NumeratorMode, str]) -> None:
        """Sets the estimation mode of the numerator"""
        self._numerator_mode = NumeratorMode(mode)

    @property
    def optimizer(self) -> Union[GradientDescent, Callable]:
        """Returns optimizer"""
        return self._optimizer

    @optimizer.setter
    def optimizer(self, optimizer: Optional[Union[GradientDescent, Callable]]) -> None:
        """Sets the optimizer attribute.

        Args:
            optimizer: The optimizer to be used. If None is passed, GradientDescent is used.
        """
        if optimizer is None:
            optimizer = GradientDescent()
        if not isinstance(optimizer, GradientDescent) and not callable(optimizer):
            raise TypeError(f"Unsupported optimizer {optimizer!r}")
        self._optimizer = optimizer

    @property
    def gradient(self) -> Callable:
        """Returns the gradient estimator"""
        return self._gradient

    @gradient.setter
    def gradient(self, gradient: Optional[Callable]) -> None:
        """Sets the gradient estimator"""
        if gradient is None:
            gradient = FiniteDifferenceGradient()
        self._gradient = gradient

    @property
    def initial_point(self) -> Optional[np.ndarray]:
        """Returns initial point"""
        return self._initial_point

    @initial_point.setter
    def initial_point(self, initial_point: Optional[np.ndarray]) -> None:
        """Sets initial point"""
        self._initial_point = initial_point

    @property
    def backend(self) -> QuantumBackend:
        """Returns the backend"""
        return self._backend

    @backend.setter
    def backend(self, backend: Optional[Union[QuantumBackend, str]]) -> None:
        """Sets the backend"""
        if backend is None:
            backend = StatevectorBackend()
        elif isinstance(backend, str):
            backend = get_backend(backend)
        if not isinstance(backend, QuantumBackend):
            raise TypeError(f"{backend!r} does not provide an execute(circuit, shots) method")
        self._backend = backend

    @property
    def shots(self) -> Optional[int]:
        """Returns the number of shots"""
        return self._shots

    @shots.setter
    def shots(self, shots: Optional[int]) -> None:
        """Sets the number of shots"""
        if shots is not None and shots < 1:
            raise ValueError(f"shots must be positive, got {shots}")
        self._shots = shots

    @property
    def max_workers(self) -> int:
        """Returns the number of concurrent circuit executions"""
        return self._max_workers

    @max_workers.setter
    def max_workers(self, max_workers: int) -> None:
        """Sets the number of concurrent circuit executions"""
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self._max_workers = max_workers

    @property
    def callback(self) -> Optional[Callable[[int, float, np.ndarray], None]]:
        """Returns callback"""
        return self._callback

    @callback.setter
    def callback(self, callback: Optional[Callable[[int, float, np.ndarray], None]]) -> None:
        """Sets callback"""
        self._callback = callback

    def stop(self) -> None:
        """Stop a running :meth:`solve`, keeping the last fully updated parameters."""
        self._stop_event.set()

    def construct_ansatz(self, num_qubits: int) -> HardwareEfficientAnsatz:
        """Return the ansatz for a system of ``num_qubits`` qubits."""
        return HardwareEfficientAnsatz(num_qubits, self._num_layers, self._ansatz_variant)

    def squared_operator(self, operator: PauliOperator) -> PauliOperator:
        """Return the simplified product ``A A`` measured by the Hadamard tests.

        The product is cached per operator.
        """
        if operator not in self._squared_operators:
            squared = operator.compose(operator).simplify()
            _warn_imaginary(squared, "A.A")
            self._squared_operators[operator] = squared
        return self._squared_operators[operator]

    def construct_circuits(
        self,
        operator: Union[PauliOperator, Sequence[Tuple[complex, str]]],
        parameters: Sequence[float],
        rhs: Optional[QuantumCircuit] = None,
    ) -> Tuple[HadamardTest, TermCircuits]:
        """Returns the circuits required to compute the cost at ``parameters``

        Args:
            operator: the operator A of the linear system.
            parameters: the ansatz parameters.
            rhs: circuit preparing b, the uniform superposition if ``None``.

        Raises:
            InvalidOperatorError: if the operator is malformed.
            ParameterCountError: if ``parameters`` does not match the ansatz.

        Returns:
            Tuple[HadamardTest, TermCircuits]: the denominator and numerator circuits
        """
        operator = _as_operator(operator)
        ansatz = self.construct_ansatz(operator.num_qubits)
        rhs = self._validate_rhs(rhs, operator.num_qubits)
        state = ansatz.build(parameters)
        return self._build_protocols(operator, state, rhs)

    def _build_protocols(
        self, operator: PauliOperator, state: QuantumCircuit, rhs: QuantumCircuit
    ) -> Tuple[HadamardTest, TermCircuits]:
        hadamard = HadamardTest(self.squared_operator(operator), state, self._use_barrier)
        protocol = _NUMERATOR_PROTOCOLS[self._numerator_mode]
        numerator = protocol(operator, state, rhs, self._use_barrier)
        return hadamard, numerator

    def _build_engine(self, stop_event: Optional[threading.Event] = None) -> MeasurementEngine:
        return MeasurementEngine(
            self._backend,
            shots=self._shots,
            max_workers=self._max_workers,
            stop_event=stop_event,
        )

    def estimate(
        self,
        operator: Union[PauliOperator, Sequence[Tuple[complex, str]]],
        parameters: Sequence[float],
        rhs: Optional[QuantumCircuit] = None,
    ) -> CostEstimate:
        """Estimate the denominator and the numerator of the cost at ``parameters``."""
        operator = _as_operator(operator)
        _warn_imaginary(operator, "A")
        ansatz = self.construct_ansatz(operator.num_qubits)
        rhs = self._validate_rhs(rhs, operator.num_qubits)
        with self._build_engine() as engine:
            return self._estimate(operator, ansatz, rhs, engine, parameters)

    def cost(
        self,
        operator: Union[PauliOperator, Sequence[Tuple[complex, str]]],
        parameters: Sequence[float],
        rhs: Optional[QuantumCircuit] = None,
    ) -> float:
        """Return the cost ``denom - 2 numer + 1`` at ``parameters``."""
        return self.estimate(operator, parameters, rhs).cost

    def _estimate(
        self,
        operator: PauliOperator,
        ansatz: HardwareEfficientAnsatz,
        rhs: QuantumCircuit,
        engine: MeasurementEngine,
        parameters: Sequence[float],
    ) -> CostEstimate:
        state = ansatz.build(parameters)
        hadamard, numerator = self._build_protocols(operator, state, rhs)

        # every term is executed before any reduction
        values = engine.evaluate(list(hadamard) + list(numerator))
        denom = hadamard.aggregate(values[: len(hadamard)]).real
        overlap = numerator.aggregate(values[len(hadamard) :]).real

        if self._numerator_mode is NumeratorMode.SWAP_TEST:
            numer = overlap**2
        else:
            numer = overlap
        return CostEstimate(denom=float(denom), numer=float(numer))

    def get_cost_evaluation_function(
        self,
        operator: Union[PauliOperator, Sequence[Tuple[complex, str]]],
        rhs: Optional[QuantumCircuit] = None,
    ) -> Callable[[np.ndarray], float]:
        """Generate the cost function of the minimization process

        Args:
            operator: the operator A of the linear system.
            rhs: circuit preparing b, the uniform superposition if ``None``.

        Raises:
            RuntimeError: If the ansatz is not parametrizable

        Returns:
            Callable[[np.ndarray], float]: the cost function
        """
        return self._cost_evaluation_function(operator, rhs, self._build_engine())

    def _cost_evaluation_function(
        self,
        operator: Union[PauliOperator, Sequence[Tuple[complex, str]]],
        rhs: Optional[QuantumCircuit],
        engine: MeasurementEngine,
    ) -> Callable[[np.ndarray], float]:
        operator = _as_operator(operator)
        _warn_imaginary(operator, "A")
        ansatz = self.construct_ansatz(operator.num_qubits)
        if ansatz.num_parameters == 0:
            raise RuntimeError("The ansatz must be parameterized, but has 0 free parameters.")
        rhs = self._validate_rhs(rhs, operator.num_qubits)
        self.squared_operator(operator)

        def cost_evaluation(parameters):
            estimate = self._estimate(operator, ansatz, rhs, engine, parameters)
            cost = estimate.cost
            self._eval_count += 1
            logger.debug("Cost function %f", cost)

            # get the intermediate results if required
            if self._callback is not None:
                self._callback(self._eval_count, cost, np.asarray(parameters, dtype=float))
            return cost

        return cost_evaluation

    def _validate_initial_point(self, ansatz: HardwareEfficientAnsatz) -> np.ndarray:
        if self._initial_point is None:
            return ansatz.zero_point()
        return ansatz.validate_parameters(self._initial_point)

    @staticmethod
    def _validate_rhs(rhs: Optional[QuantumCircuit], num_qubits: int) -> QuantumCircuit:
        if rhs is None:
            return uniform_superposition(num_qubits)
        if rhs.num_qubits != num_qubits:
            raise ValueError("Matrix and vector circuits have different numbers of qubits.")
        return rhs

    def solve(
        self,
        operator: Union[PauliOperator, Sequence[Tuple[complex, str]]],
        rhs: Optional[QuantumCircuit] = None,
    ) -> VariationalLinearSolverResult:
        """Solve the linear system

        Args:
            operator: the operator A of the linear system as a weighted sum of Pauli strings.
            rhs: circuit preparing b, the uniform superposition if ``None``.

        Raises:
            InvalidOperatorError: if the operator is malformed.
            ParameterCountError: if the initial point does not match the ansatz.
            MeasurementFailedError: if a circuit fails during the optimization.

        Returns:
            VariationalLinearSolverResult: Result of the optimization and solution of the linear system
        """
        operator = _as_operator(operator)
        ansatz = self.construct_ansatz(operator.num_qubits)
        initial_point = self._validate_initial_point(ansatz)

        self._eval_count = 0
        self._stop_event.clear()

        # only the engine of this run observes the stop event
        engine = self._build_engine(self._stop_event)
        try:
            opt_result = self._minimize(operator, ansatz, rhs, engine, initial_point)
        finally:
            engine.close()
            self._stop_event.clear()

        # create the solution
        solution = VariationalLinearSolverResult()

        # optimization data
        solution.optimal_point = np.asarray(opt_result.x, dtype=float)
        solution.optimal_value = opt_result.fun
        solution.cost_history = list(getattr(opt_result, "cost_history", []))
        solution.iterations = getattr(opt_result, "nit", None)
        solution.cost_function_evals = self._eval_count
        solution.optimizer_result = opt_result

        # final ansatz
        solution.state = ansatz.build(solution.optimal_point)

        return solution

    def _minimize(self, operator, ansatz, rhs, engine, initial_point):
        cost_evaluation = self._cost_evaluation_function(operator, rhs, engine)
        gradient = self._gradient

        def jac(parameters):
            return gradient(cost_evaluation, parameters)

        try:
            if isinstance(self._optimizer, GradientDescent):
                return self._optimizer.minimize(
                    fun=cost_evaluation, x0=initial_point, jac=jac, stop_event=self._stop_event
                )
            return self._optimizer(fun=cost_evaluation, x0=initial_point, jac=jac)
        except MeasurementFailedError as err:
            logger.error(
                "VQLS failed at iteration %s for %r with %r: %s",
                err.iteration,
                operator,
                ansatz,
                err,
            )
            raise


def _as_operator(operator: Union[PauliOperator, Sequence[Tuple[complex, str]]]) -> PauliOperator:
    if isinstance(operator, PauliOperator):
        return operator
    return PauliOperator(operator)


def _warn_imaginary(operator: PauliOperator, name: str) -> None:
    imag = max(abs(coeff.imag) for coeff in operator.coefficients)
    if imag > IMAG_ATOL:
        logger.warning(
            "Imaginary parts of the coefficients of %s (up to %g) are ignored, "
            "only real expectation values are estimated",
            name,
            imag,
        )
