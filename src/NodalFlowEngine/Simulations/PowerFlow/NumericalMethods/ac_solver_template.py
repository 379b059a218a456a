# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import time
from typing import Tuple, Union, List, TYPE_CHECKING
import numpy as np

from NodalFlowEngine.basic_structures import Logger, CxVec, Vec
from NodalFlowEngine.enumerations import SolverType, SolverState, BusMode
from NodalFlowEngine.exceptions import ModelChangedError
from NodalFlowEngine.Topology.simulation_indices import SimulationIndices, initialize_ac_power_flow
from NodalFlowEngine.Simulations.PowerFlow.power_flow_results import NumericPowerFlowResults
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.common_functions import (polar_to_rect,
                                                                                     compute_power,
                                                                                     compute_mismatch_norms)

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


class AcSolverTemplate:
    """
    Common machinery of the iterative AC power flow methods.

    The life cycle is Initialized -> Iterating -> {Converged | MaxIterationsExceeded}.
    Each iteration evaluates the mismatch with :meth:`mismatch` and, if not converged,
    advances the voltage with :meth:`step`, implemented by every method.
    """

    method: SolverType = None

    def __init__(self, network: "PowerNetwork", V0: Union[CxVec, None] = None, logger: Union[Logger, None] = None):
        """

        :param network: PowerNetwork
        :param V0: optional starting voltage (warm start), otherwise the network initial voltage is used
        :param logger: Logger
        """
        self.network = network
        self.logger = logger if logger is not None else Logger()

        Vm, Va = initialize_ac_power_flow(network)

        self.model = network.get_ac_model()
        self.revision = self.model.revision
        self.Ybus = self.model.Ybus

        self.indices = SimulationIndices(bus_types=network.bus_data.bus_types)
        self.Sbus: CxVec = network.bus_data.Sbus

        if V0 is not None:
            if len(V0) != network.nbus:
                raise ValueError(f"The starting voltage has {len(V0)} values, expected {network.nbus}")
            # the controlled buses keep their set points, the angles come from the warm start
            Va = np.angle(V0)
            controlled = network.bus_data.bus_types != BusMode.PQ_tpe.value
            Vm = np.where(controlled, Vm, np.abs(V0))

        self.Vm: Vec = Vm.astype(float)
        self.Va: Vec = Va.astype(float)
        self.V: CxVec = polar_to_rect(self.Vm, self.Va)
        self.Scalc: CxVec = compute_power(self.Ybus, self.V)

        self.iterations = 0
        self.state = SolverState.Initialized
        self.stop_p = np.inf
        self.stop_q = np.inf
        self.error_evolution: List[float] = list()

    @property
    def voltage(self) -> CxVec:
        return self.V

    @property
    def pq(self):
        return self.indices.pq

    @property
    def pv(self):
        return self.indices.pv

    @property
    def pqpv(self):
        return self.indices.pqpv

    def check_model(self) -> None:
        """
        The admittance model must not change while the solver is in use
        """
        if (not self.network.has_ac_model()
                or self.network.get_ac_model() is not self.model
                or self.model.revision != self.revision):
            raise ModelChangedError()

    def update_voltage_from_polar(self) -> None:
        """
        Refresh the complex voltage after Vm or Va changed
        """
        self.V = polar_to_rect(self.Vm, self.Va)

    def update_polar_from_voltage(self) -> None:
        """
        Refresh Vm and Va after the complex voltage changed
        """
        self.Vm = np.abs(self.V)
        self.Va = np.angle(self.V)

    def mismatch(self) -> Tuple[float, float]:
        """
        Compute the power injections and the maximum mismatches
        :return: max |dP| (pv and pq buses), max |dQ| (pq buses)
        """
        self.Scalc = compute_power(self.Ybus, self.V)
        self.stop_p, self.stop_q = compute_mismatch_norms(self.Scalc, self.Sbus, self.pqpv, self.pq)
        return self.stop_p, self.stop_q

    def step(self) -> None:
        """
        Advance the voltage one iteration, raises ModelChangedError if the admittance model was modified
        """
        raise NotImplementedError()

    def solve(self, tolerance: float = 1e-8, max_iter: int = 20) -> NumericPowerFlowResults:
        """
        Iterate until the mismatches are below the tolerance or the iteration limit is reached.
        Reaching the limit is not an error, the partial solution is returned flagged as not converged.
        :param tolerance: mismatch tolerance (p.u.)
        :param max_iter: maximum number of iterations
        :return: NumericPowerFlowResults
        """
        start = time.time()
        self.state = SolverState.Iterating

        while True:
            stop_p, stop_q = self.mismatch()
            self.error_evolution.append(max(stop_p, stop_q))

            if stop_p < tolerance and stop_q < tolerance:
                self.state = SolverState.Converged
                break

            if self.iterations >= max_iter:
                self.state = SolverState.MaxIterationsExceeded
                break

            self.step()
            self.iterations += 1

        end = time.time()

        return NumericPowerFlowResults(V=self.V.copy(),
                                       Scalc=self.Scalc.copy(),
                                       norm_f=max(self.stop_p, self.stop_q),
                                       converged=self.state == SolverState.Converged,
                                       iterations=self.iterations,
                                       elapsed=end - start,
                                       method=self.method,
                                       state=self.state,
                                       error_evolution=np.array(self.error_evolution))
