# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Tuple, TYPE_CHECKING
import numpy as np
from NodalFlowEngine.enumerations import BusMode
from NodalFlowEngine.basic_structures import Vec, IntVec
from NodalFlowEngine.exceptions import SlackBusError

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


def compile_types(types: IntVec) -> Tuple[IntVec, IntVec, IntVec, IntVec]:
    """
    Compile the types.
    :param types: array of node types
    :return: ref, pq, pv, pqpv
    """
    pq = np.where(types == BusMode.PQ_tpe.value)[0]
    pv = np.where(types == BusMode.PV_tpe.value)[0]
    ref = np.where(types == BusMode.Slack_tpe.value)[0]

    pqpv = np.concatenate((pv, pq))
    pqpv.sort()

    return ref, pq, pv, pqpv


class SimulationIndices:
    """
    Class to handle the simulation indices
    """

    def __init__(self, bus_types: IntVec):
        """

        :param bus_types: Array of bus types
        """
        # master array of bus types (nbus)
        self.bus_types = bus_types.copy()

        self.vd, self.pq, self.pv, self.pqpv = compile_types(types=self.bus_types)


def change_slack_bus(network: "PowerNetwork") -> int:
    """
    Move the slack role to the first PV bus that has an in-service generator
    :param network: PowerNetwork
    :return: new slack bus index
    """
    old_slack = network.slack
    for i in range(network.nbus):
        if network.bus_data.bus_types[i] == BusMode.PV_tpe.value and len(network.bus_data.generators[i]) > 0:
            network.set_slack(i)
            network.logger.add_info("The slack bus did not have an in-service generator, "
                                    "the first generator bus with an in-service generator is the new slack bus",
                                    device=network.bus_data.names[i],
                                    value=network.bus_data.names[i],
                                    expected_value=network.bus_data.names[old_slack],
                                    device_class="Bus")
            return i

    raise SlackBusError()


def initialize_ac_power_flow(network: "PowerNetwork") -> Tuple[Vec, Vec]:
    """
    Classify the buses before an AC power flow and compute the initial voltage:
    PV buses without in-service generators become PQ, the generator buses take the
    set point of their first in-service generator and the slack is moved if it has
    no in-service generator.
    :param network: PowerNetwork
    :return: voltage magnitudes, voltage angles
    """
    network.ensure_slack()

    Vm = network.bus_data.Vm0.copy()
    Va = network.bus_data.Va0.copy()
    types = network.bus_data.bus_types
    gens = network.bus_data.generators

    for i in range(network.nbus):
        if types[i] == BusMode.PV_tpe.value and len(gens[i]) == 0:
            types[i] = BusMode.PQ_tpe.value

        if len(gens[i]) > 0 and types[i] != BusMode.PQ_tpe.value:
            Vm[i] = network.generator_data.Vset[gens[i][0]]

    if len(gens[network.slack]) == 0:
        change_slack_bus(network)

    return Vm, Va
