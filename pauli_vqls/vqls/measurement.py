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

"""Execution of measurement circuits and reduction of their outcomes."""

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from qiskit import ClassicalRegister, QuantumCircuit
from qiskit.result import sampled_expectation_value

from pauli_vqls.exceptions import MeasurementFailedError, OptimizationStopped
from pauli_vqls.utils.backend import READOUT_REGISTER, QuantumBackend

logger = logging.getLogger(__name__)

# tolerance on <Z> values reported slightly outside of [-1, 1]
EXPECTATION_ATOL = 1e-9

# seconds between two checks of the stop event while a job is pending
POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class MeasurementCircuit:
    """A circuit whose observable is the ``<Z>`` value of a single readout qubit.

    Attributes:
        circuit: the gates to apply, without measurement.
        readout: index of the ancilla qubit to measure.
        label: identity of the circuit, used in error reports.
        term: Pauli string measured by the circuit.
        protocol: name of the measurement protocol that built the circuit.
    """

    circuit: QuantumCircuit
    readout: int
    label: str
    term: str
    protocol: str

    @property
    def num_qubits(self) -> int:
        """return the number of qubits"""
        return self.circuit.num_qubits

    def measured(self) -> QuantumCircuit:
        """Return a copy of the circuit with the readout qubit measured."""
        qc = self.circuit.copy()
        creg = ClassicalRegister(1, READOUT_REGISTER)
        qc.add_register(creg)
        qc.measure(self.readout, creg[0])
        return qc


def expectation_from_counts(counts: Mapping[str, int]) -> float:
    """Return ``P(0) - P(1)`` of a single bit measurement."""
    return float(sampled_expectation_value(counts, "Z"))


def weighted_sum(coefficients: Sequence[complex], values: Sequence[float]) -> complex:
    r"""Return :math:`\sum_k c_k v_k` independently of the order of the terms.

    The real and imaginary parts are accumulated with :func:`math.fsum`, whose
    correctly rounded result does not depend on the summation order.
    """
    if len(coefficients) != len(values):
        raise ValueError(
            f"Got {len(coefficients)} coefficients for {len(values)} values"
        )
    products = [complex(c) * v for c, v in zip(coefficients, values)]
    return complex(
        math.fsum(p.real for p in products), math.fsum(p.imag for p in products)
    )


class TermCircuits:
    """Measurement circuits of the terms of a Pauli operator.

    Subclasses build one :class:`MeasurementCircuit` per term that needs to be
    executed, and may fold terms with a known expectation into a constant.
    The instance behaves as a sequence of circuits.
    """

    protocol = "measurement"

    def __init__(self) -> None:
        self.circuits: List[MeasurementCircuit] = []
        self.coefficients: List[complex] = []
        self.constant_coefficients: List[complex] = []

    def __iter__(self):
        return iter(self.circuits)

    def __len__(self):
        return len(self.circuits)

    def __getitem__(self, index):
        return self.circuits[index]

    @property
    def labels(self) -> List[str]:
        """return the labels of the circuits"""
        return [circuit.label for circuit in self.circuits]

    def term_value(self, expectation: float) -> float:
        """Map the readout ``<Z>`` of a circuit to the value of its term."""
        return expectation

    def aggregate(self, expectations: Sequence[float]) -> complex:
        r"""Return :math:`\sum_k c_k v_k` over the circuits plus the constant terms.

        Args:
            expectations: readout ``<Z>`` of the circuits, in circuit order.
        """
        if len(expectations) != len(self.circuits):
            raise ValueError(
                f"Expected {len(self.circuits)} values for the {self.protocol}, "
                f"got {len(expectations)}"
            )
        values = [self.term_value(value) for value in expectations]
        return weighted_sum(
            list(self.coefficients) + list(self.constant_coefficients),
            values + [1.0] * len(self.constant_coefficients),
        )


class MeasurementEngine:
    """Execute measurement circuits on a backend.

    Args:
        backend: the backend executing the circuits.
        shots: number of shots per circuit, ``None`` for exact expectations when the
            backend supports them.
        max_workers: number of circuits executed concurrently. The worker threads are
            started on the first concurrent evaluation and kept until :meth:`close`.
        stop_event: when set, pending executions are abandoned, deferred jobs are
            cancelled and :class:`OptimizationStopped` is raised.
    """

    def __init__(
        self,
        backend: QuantumBackend,
        shots: Optional[int] = None,
        max_workers: int = 1,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        if not isinstance(backend, QuantumBackend):
            raise TypeError(f"{backend!r} does not provide an execute(circuit, shots) method")
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self._backend = backend
        self._shots = shots
        self._max_workers = max_workers
        self._stop_event = stop_event
        self._num_executions = 0
        self._count_lock = threading.Lock()
        self._executor = None
        self._executor_lock = threading.Lock()

    @property
    def backend(self) -> QuantumBackend:
        """return the backend"""
        return self._backend

    @property
    def shots(self) -> Optional[int]:
        """return the number of shots"""
        return self._shots

    @property
    def max_workers(self) -> int:
        """return the number of concurrent executions"""
        return self._max_workers

    @property
    def num_executions(self) -> int:
        """return the number of circuits executed so far"""
        return self._num_executions

    def evaluate(self, circuits: Sequence[MeasurementCircuit]) -> List[float]:
        """Return the readout ``<Z>`` of every circuit, in input order.

        Raises:
            MeasurementFailedError: if the backend fails on one of the circuits.
            OptimizationStopped: if the stop event is set.
        """
        self._check_stop()
        if self._max_workers == 1 or len(circuits) < 2:
            return [self.run(circuit) for circuit in circuits]

        executor = self._get_executor()
        futures = [executor.submit(self.run, circuit) for circuit in circuits]
        try:
            return [future.result() for future in futures]
        except BaseException:
            for future in futures:
                future.cancel()
            raise

    def run(self, circuit: MeasurementCircuit) -> float:
        """Execute a single circuit and return the ``<Z>`` value of its readout qubit."""
        self._check_stop()
        try:
            outcome = self._backend.execute(circuit, self._shots)
            if hasattr(outcome, "result"):
                outcome = self._await(outcome)
            if isinstance(outcome, Mapping):
                value = expectation_from_counts(outcome)
            else:
                value = float(outcome)
        except (MeasurementFailedError, OptimizationStopped):
            raise
        except Exception as err:
            raise MeasurementFailedError(
                circuit.label, circuit.term, circuit.protocol, reason=str(err)
            ) from err

        with self._count_lock:
            self._num_executions += 1

        if not math.isfinite(value) or abs(value) > 1.0 + EXPECTATION_ATOL:
            raise MeasurementFailedError(
                circuit.label,
                circuit.term,
                circuit.protocol,
                reason=f"expectation value {value} outside of [-1, 1]",
            )
        logger.debug("%s: <Z> = %f", circuit.label, value)
        return min(1.0, max(-1.0, value))

    def close(self) -> None:
        """Shut down the worker threads, dropping executions not started yet."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> "MeasurementEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="measurement"
                )
            return self._executor

    def _await(self, outcome):
        """Wait for a deferred outcome, cancelling it if the stop event is set."""
        done = getattr(outcome, "done", None)
        if self._stop_event is not None and done is not None:
            while not done():
                if self._stop_event.wait(POLL_INTERVAL):
                    cancel = getattr(outcome, "cancel", None)
                    if cancel is not None:
                        cancel()
                    logger.debug("Pending execution cancelled")
                    raise OptimizationStopped(
                        "Evaluation abandoned, the optimization was stopped"
                    )
        return outcome.result()

    def _check_stop(self) -> None:
        if self._stop_event is not None and self._stop_event.is_set():
            raise OptimizationStopped("Evaluation abandoned, the optimization was stopped")
