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

"""Utilities for dealing with backends.

A backend is anything exposing ``execute(circuit, shots)`` where ``circuit`` is a
:class:`~pauli_vqls.vqls.measurement.MeasurementCircuit`. The returned value is one of

* a float, the ``<Z>`` expectation of the readout qubit,
* a mapping of measured bitstrings to counts,
* a deferred object whose ``result()`` method returns one of the above.
"""

import threading
from typing import TYPE_CHECKING, Mapping, Optional, Protocol, Union, runtime_checkable

import numpy as np
from qiskit.primitives import BackendSamplerV2, BaseSamplerV2, StatevectorSampler
from qiskit.providers import BackendV2
from qiskit.quantum_info import Statevector
from qiskit.transpiler import PassManager
from qiskit.transpiler.preset_passmanagers import generate_preset_pass_manager
from qiskit_aer import AerSimulator

if TYPE_CHECKING:
    from pauli_vqls.vqls.measurement import MeasurementCircuit

READOUT_REGISTER = "readout"

ExecutionOutcome = Union[float, Mapping[str, int], "DeferredCounts"]


@runtime_checkable
class QuantumBackend(Protocol):
    """Capability required from anything that executes measurement circuits."""

    def execute(
        self, circuit: "MeasurementCircuit", shots: Optional[int] = None
    ) -> ExecutionOutcome:
        """Run ``circuit`` and report the statistics of its readout qubit."""


class StatevectorBackend:
    """Exact simulation with :class:`~qiskit.quantum_info.Statevector`.

    Without shots the exact ``<Z>`` of the readout qubit is returned. With shots the
    readout qubit is sampled and the counts are returned.

    Args:
        seed: seed of the sampling random number generator.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

    def execute(
        self, circuit: "MeasurementCircuit", shots: Optional[int] = None
    ) -> Union[float, Mapping[str, int]]:
        state = Statevector(circuit.circuit)
        if shots is None:
            prob_zero, prob_one = state.probabilities([circuit.readout])
            return float(prob_zero - prob_one)

        if shots < 1:
            raise ValueError(f"The number of shots must be positive, got {shots}")
        with self._lock:
            state.seed(int(self._rng.integers(2**31)))
        return state.sample_counts(shots, qargs=[circuit.readout])


class DeferredCounts:
    """Pending sampler job returning the counts of the readout register."""

    def __init__(self, job, register: str = READOUT_REGISTER) -> None:
        self._job = job
        self._register = register

    def result(self) -> Mapping[str, int]:
        """Block until the job is done and return its counts."""
        pub_result = self._job.result()[0]
        return getattr(pub_result.data, self._register).get_counts()

    def done(self) -> bool:
        """Return whether the job has finished. Jobs without status count as done."""
        done = getattr(self._job, "done", None)
        return True if done is None else bool(done())

    def cancel(self) -> None:
        """Cancel the underlying job if it supports it."""
        cancel = getattr(self._job, "cancel", None)
        if cancel is not None:
            cancel()


class SamplerBackend:
    """Execute measurement circuits through a qiskit ``SamplerV2`` primitive.

    Args:
        sampler: the sampler primitive. Defaults to :class:`StatevectorSampler`.
        pass_manager: optional pass manager used to map circuits on the device the
            sampler runs on.
    """

    def __init__(
        self,
        sampler: Optional[BaseSamplerV2] = None,
        pass_manager: Optional[PassManager] = None,
    ) -> None:
        if sampler is None:
            sampler = StatevectorSampler()
        self._sampler = sampler
        self._pass_manager = pass_manager

    @classmethod
    def from_backend(cls, backend: BackendV2, optimization_level: int = 1) -> "SamplerBackend":
        """Wrap a qiskit ``BackendV2`` together with a preset pass manager."""
        pass_manager = generate_preset_pass_manager(
            optimization_level=optimization_level, backend=backend
        )
        return cls(BackendSamplerV2(backend=backend), pass_manager)

    @property
    def sampler(self) -> BaseSamplerV2:
        """return the sampler primitive"""
        return self._sampler

    def execute(self, circuit: "MeasurementCircuit", shots: Optional[int] = None) -> DeferredCounts:
        qc = circuit.measured()
        if self._pass_manager is not None:
            qc = self._pass_manager.run(qc)
        job = self._sampler.run([qc], shots=shots)
        return DeferredCounts(job)


def get_backend(name: str, seed_simulator: Optional[int] = None) -> QuantumBackend:
    """Retrieve a backend."""
    if name == "statevector":
        return StatevectorBackend(seed=seed_simulator)
    if name == "statevector_sampler":
        return SamplerBackend(StatevectorSampler(seed=seed_simulator))
    if name == "aer_simulator":
        return SamplerBackend.from_backend(AerSimulator(seed_simulator=seed_simulator))
    raise ValueError("The given name does not match any supported backends.")
