# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from __future__ import annotations
import time
import numpy as np
from typing import Union, TYPE_CHECKING
from NodalFlowEngine.basic_structures import Logger
from NodalFlowEngine.Simulations.PowerFlow.power_flow_options import PowerFlowOptions
from NodalFlowEngine.Simulations.PowerFlow.power_flow_worker import solve
from NodalFlowEngine.Simulations.PowerFlow.power_flow_results import AcPowerFlowResults, DcPowerFlowResults

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


class PowerFlowDriver:
    name = 'Power Flow'

    """
    Power flow driver
    """

    def __init__(self, network: "PowerNetwork",
                 options: Union[PowerFlowOptions, None] = None,
                 logger: Union[Logger, None] = None):
        """
        PowerFlowDriver class constructor
        :param network: PowerNetwork instance
        :param options: PowerFlowOptions instance (optional)
        :param logger: Logger (optional)
        """
        self.network = network

        # Options to use
        self.options: PowerFlowOptions = PowerFlowOptions() if options is None else options

        self.logger: Logger = Logger() if logger is None else logger

        self.results: Union[AcPowerFlowResults, DcPowerFlowResults, None] = None

        self.elapsed: float = 0.0

    def add_report(self) -> None:
        """
        Add the voltage and reactive power bound violations to the logger
        """
        if self.results is None or not self.results.has_reactive_power:
            return

        bus = self.network.bus_data
        vm = np.abs(self.results.voltage)
        for i in range(bus.nbus):
            if vm[i] > bus.Vmax[i]:
                self.logger.add_warning("Overvoltage",
                                        device=bus.names[i],
                                        value=vm[i],
                                        expected_value=bus.Vmax[i],
                                        device_class="Bus")
            elif vm[i] < bus.Vmin[i]:
                self.logger.add_warning("Undervoltage",
                                        device=bus.names[i],
                                        value=vm[i],
                                        expected_value=bus.Vmin[i],
                                        device_class="Bus")

        gen = self.network.generator_data
        tol = 1e-9
        for i in range(gen.nelm):
            if gen.active[i] and not (gen.Qmin[i] - tol <= self.results.gen_q[i] <= gen.Qmax[i] + tol):
                self.logger.add_warning("Generator Q out of bounds",
                                        device=gen.names[i],
                                        value=self.results.gen_q[i],
                                        expected_value=f"[{gen.Qmin[i]}, {gen.Qmax[i]}]",
                                        device_class="Generator")

    def run(self) -> Union[AcPowerFlowResults, DcPowerFlowResults]:
        """
        Run the power flow
        :return: the results, also stored in self.results
        """
        tic = time.time()
        self.results = solve(network=self.network, options=self.options, logger=self.logger)
        self.add_report()
        self.elapsed = time.time() - tic
        return self.results
