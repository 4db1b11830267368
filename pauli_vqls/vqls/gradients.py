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

"""Gradient estimators built on repeated cost function evaluations.

A gradient estimator is a callable ``gradient(cost_fn, theta) -> np.ndarray`` that
only depends on the cost function and the point where it is evaluated.
"""

import math
from typing import Callable, Sequence

import numpy as np

CostFunction = Callable[[np.ndarray], float]


class FiniteDifferenceGradient:
    """Finite difference gradient.

    Args:
        epsilon: step of the finite difference.
        method: ``"central"`` (two evaluations per parameter) or ``"forward"``
            (one evaluation per parameter plus one at ``theta``).
    """

    def __init__(self, epsilon: float = 1e-3, method: str = "central") -> None:
        if not epsilon > 0:
            raise ValueError(f"epsilon must be positive, got {epsilon}")
        if method not in ("central", "forward"):
            raise ValueError(f"Unknown finite difference method {method!r}")
        self.epsilon = epsilon
        self.method = method

    def __call__(self, cost_fn: CostFunction, theta: Sequence[float]) -> np.ndarray:
        theta = np.asarray(theta, dtype=float)
        grad = np.zeros_like(theta)
        f_theta = cost_fn(theta) if self.method == "forward" else None
        for i in range(theta.size):
            shift = np.zeros_like(theta)
            shift[i] = self.epsilon
            if self.method == "central":
                grad[i] = (cost_fn(theta + shift) - cost_fn(theta - shift)) / (2.0 * self.epsilon)
            else:
                grad[i] = (cost_fn(theta + shift) - f_theta) / self.epsilon
        return grad

    def __repr__(self) -> str:
        return f"FiniteDifferenceGradient(epsilon={self.epsilon}, method={self.method!r})"


class ParameterShiftGradient:
    r"""Parameter shift gradient.

    .. math::

        \partial_i f = p \left[ f(\theta + s e_i) - f(\theta - s e_i) \right]

    The default ``s = pi/2`` and ``p = 1/2`` are exact for expectation values of
    circuits made of ``Ry`` rotations. Cost functions that are not quadratic in the
    state, such as the unsquared surrogate numerator, are only approximated.

    Args:
        shift: the shift ``s``.
        prefactor: the prefactor ``p``.
    """

    def __init__(self, shift: float = math.pi / 2, prefactor: float = 0.5) -> None:
        if not math.isfinite(shift) or shift == 0:
            raise ValueError(f"shift must be finite and non zero, got {shift}")
        if not math.isfinite(prefactor):
            raise ValueError(f"prefactor must be finite, got {prefactor}")
        self.shift = shift
        self.prefactor = prefactor

    def __call__(self, cost_fn: CostFunction, theta: Sequence[float]) -> np.ndarray:
        theta = np.asarray(theta, dtype=float)
        grad = np.zeros_like(theta)
        for i in range(theta.size):
            shift = np.zeros_like(theta)
            shift[i] = self.shift
            grad[i] = self.prefactor * (cost_fn(theta + shift) - cost_fn(theta - shift))
        return grad

    def __repr__(self) -> str:
        return f"ParameterShiftGradient(shift={self.shift}, prefactor={self.prefactor})"
