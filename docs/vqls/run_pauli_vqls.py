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

"""Solve the reference system A = IZZI + 2 ZZZZ - 0.5 IIIZ with b = H|0000>."""

import argparse
import logging

import numpy as np
from qiskit.quantum_info import Statevector

from pauli_vqls import VQLS, PauliOperator
from pauli_vqls.vqls import GradientDescent

logger = logging.getLogger(__name__)


def classical_solution(operator):
    """Return the normalized least squares solution of A x = H|0>, or None if it vanishes.

    Singular operators give the minimum norm solution.
    """
    matrix = operator.to_matrix()
    b = np.full(matrix.shape[0], 1 / np.sqrt(matrix.shape[0]))
    solution = np.linalg.lstsq(matrix, b, rcond=None)[0]
    norm = np.linalg.norm(solution)
    if norm == 0:
        return None
    return solution / norm


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--operator", help="operator file, one 'coefficient label' per line")
    parser.add_argument("--layers", type=int, default=8)
    parser.add_argument("--variant", choices=["R", "P", "D"], default="R")
    parser.add_argument("--numerator", choices=["swap", "surrogate"], default="surrogate")
    parser.add_argument("--backend", default="statevector")
    parser.add_argument("--shots", type=int, default=None)
    parser.add_argument("--maxiter", type=int, default=50)
    parser.add_argument("--learning-rate", type=float, default=0.1)
    parser.add_argument("--workers", type=int, default=1)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")

    # define the system
    if args.operator:
        operator = PauliOperator.from_file(args.operator)
    else:
        operator = PauliOperator([(1.0, "IZZI"), (2.0, "ZZZZ"), (-0.5, "IIIZ")])

    vqls = VQLS(
        num_layers=args.layers,
        ansatz_variant=args.variant,
        numerator_mode=args.numerator,
        optimizer=GradientDescent(maxiter=args.maxiter, learning_rate=args.learning_rate),
        backend=args.backend,
        shots=args.shots,
        max_workers=args.workers,
    )

    # run the optimization
    res = vqls.solve(operator)

    logger.info("Final cost %s after %s iterations", res.optimal_value, res.iterations)

    # compare with the classical solution
    ref_solution = classical_solution(operator)
    if ref_solution is None:
        logger.warning("The classical solution vanishes, no fidelity to report")
    else:
        fidelity = abs(np.vdot(ref_solution, Statevector(res.state).data)) ** 2
        logger.info("Fidelity with the classical solution %f", fidelity)
    print(np.array2string(res.optimal_point, precision=6, separator=", "))


if __name__ == "__main__":
    main()
