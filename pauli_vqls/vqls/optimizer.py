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

"""Plain gradient descent with a fixed iteration budget."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np
from scipy.optimize import OptimizeResult

from pauli_vqls.exceptions import MeasurementFailedError, OptimizationStopped
from pauli_vqls.vqls.gradients import FiniteDifferenceGradient

logger = logging.getLogger(__name__)

DEFAULT_MAXITER = 50
DEFAULT_LEARNING_RATE = 0.1


@dataclass
class OptimizerState:
    """State carried across the iterations of :class:`GradientDescent`."""

    theta: np.ndarray
    iteration: int = 0
    cost_history: List[float] = field(default_factory=list)


class GradientDescent:
    r"""Gradient descent :math:`\theta \leftarrow \theta - \alpha \nabla C(\theta)`.

    The loop runs exactly ``maxiter`` iterations, there is no convergence test.
    The cost is recorded after every update.

    Args:
        maxiter: number of iterations.
        learning_rate: the step size :math:`\alpha`.
        callback: called after every update as ``callback(iteration, theta, cost)``.
    """

    def __init__(
        self,
        maxiter: int = DEFAULT_MAXITER,
        learning_rate: float = DEFAULT_LEARNING_RATE,
        callback: Optional[Callable[[int, np.ndarray, float], None]] = None,
    ) -> None:
        if maxiter < 0:
            raise ValueError(f"maxiter must be non negative, got {maxiter}")
        if not learning_rate > 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")
        self.maxiter = maxiter
        self.learning_rate = learning_rate
        self.callback = callback
        self.state: Optional[OptimizerState] = None

    def minimize(
        self,
        fun: Callable[[np.ndarray], float],
        x0: np.ndarray,
        jac: Optional[Callable[[np.ndarray], np.ndarray]] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> OptimizeResult:
        """Minimize ``fun`` starting from ``x0``.

        Args:
            fun: the cost function.
            x0: the initial point, copied before being updated.
            jac: gradient of ``fun``. Defaults to a central finite difference.
            stop_event: when set, the loop ends before the next update.

        Returns:
            OptimizeResult: with the final point ``x``, its cost ``fun`` and the
            ``cost_history`` of every iteration.

        Raises:
            MeasurementFailedError: if a circuit fails, annotated with the iteration.
        """
        if jac is None:
            finite_diff = FiniteDifferenceGradient()

            def jac(theta):
                return finite_diff(fun, theta)

        self.state = OptimizerState(theta=np.array(x0, dtype=float, copy=True))
        state = self.state
        nfev, njev = 0, 0
        message = "Maximum number of iterations reached."
        success = True

        while state.iteration < self.maxiter:
            if stop_event is not None and stop_event.is_set():
                success, message = False, "Optimization stopped."
                break
            try:
                grad = np.asarray(jac(state.theta), dtype=float)
                njev += 1
                theta = state.theta - self.learning_rate * grad
                cost = float(fun(theta))
                nfev += 1
            except OptimizationStopped:
                success, message = False, "Optimization stopped."
                break
            except MeasurementFailedError as err:
                err.set_iteration(state.iteration + 1)
                logger.error("Optimization aborted at iteration %d: %s", err.iteration, err)
                raise

            # theta is only replaced once the update and its cost are complete
            state.theta = theta
            state.cost_history.append(cost)
            state.iteration += 1
            logger.info("Iteration %d: cost %f", state.iteration, cost)
            if self.callback is not None:
                self.callback(state.iteration, state.theta.copy(), cost)

        result = OptimizeResult(
            x=state.theta.copy(),
            fun=state.cost_history[-1] if state.cost_history else None,
            nit=state.iteration,
            nfev=nfev,
            njev=njev,
            cost_history=list(state.cost_history),
            success=success,
            message=message,
        )
        return result
