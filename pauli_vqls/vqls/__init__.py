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

"""
=======================================
Variational Quantum Linear Solver
=======================================
"""

from pauli_vqls.vqls.ansatz import AnsatzVariant, HardwareEfficientAnsatz, build_ansatz
from pauli_vqls.vqls.gradients import FiniteDifferenceGradient, ParameterShiftGradient
from pauli_vqls.vqls.hadamard_test import HadamardTest
from pauli_vqls.vqls.measurement import MeasurementCircuit, MeasurementEngine
from pauli_vqls.vqls.optimizer import GradientDescent, OptimizerState
from pauli_vqls.vqls.overlap_test import SurrogateOverlapTest, SwapTest, uniform_superposition
from pauli_vqls.vqls.pauli_operator import PauliOperator, PauliTerm
from pauli_vqls.vqls.variational_linear_solver import (
    VariationalLinearSolver,
    VariationalLinearSolverResult,
)
from pauli_vqls.vqls.vqls import VQLS, CostEstimate, NumeratorMode

__all__ = [
    "VQLS",
    "AnsatzVariant",
    "CostEstimate",
    "FiniteDifferenceGradient",
    "GradientDescent",
    "HadamardTest",
    "HardwareEfficientAnsatz",
    "MeasurementCircuit",
    "MeasurementEngine",
    "NumeratorMode",
    "OptimizerState",
    "ParameterShiftGradient",
    "PauliOperator",
    "PauliTerm",
    "SurrogateOverlapTest",
    "SwapTest",
    "VariationalLinearSolver",
    "VariationalLinearSolverResult",
    "build_ansatz",
    "uniform_superposition",
]
