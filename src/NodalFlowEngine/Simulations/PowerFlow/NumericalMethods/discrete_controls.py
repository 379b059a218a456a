# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
Reactive power limits of the generators and the slack bus reassignment
"""
from __future__ import annotations

from typing import Tuple, Union, TYPE_CHECKING
import numpy as np
from NodalFlowEngine.basic_structures import Logger, Vec, CxVec, IntVec
from NodalFlowEngine.enumerations import BusMode, ReactiveLimitViolation
from NodalFlowEngine.exceptions import SlackBusError
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.common_functions import compute_power

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


def compute_generator_power(network: "PowerNetwork", Scalc: CxVec) -> Tuple[Vec, Vec]:
    """
    Share the power injections of every bus among its in-service generators.

    The reactive power of a bus (injection plus demand) is split proportionally to the
    [Qmin, Qmax] span of each generator. Infinite limits are replaced by the surrogate
    |Qbus| + |sum of finite Qmin| + |sum of finite Qmax| with the sign of the limit;
    all the surrogates of a bus are computed from the finite sums before being added up.
    When the aggregated span vanishes the remainder is split equally.

    The active power is the generator set point, but the first generator of the slack
    bus takes the bus balance.

    :param network: PowerNetwork
    :param Scalc: calculated power injections
    :return: P, Q per generator (zero for the out of service ones)
    """
    gen = network.generator_data
    bus = network.bus_data

    Pgen = np.zeros(gen.nelm)
    Qgen = np.zeros(gen.nelm)

    for i in range(bus.nbus):
        gens = np.array(bus.generators[i], dtype=int)
        if len(gens) == 0:
            continue

        Qbus = Scalc[i].imag + bus.Qd[i]

        Qmin = gen.Qmin[gens]
        Qmax = gen.Qmax[gens]
        inf_min = np.isinf(Qmin)
        inf_max = np.isinf(Qmax)

        Qmin_total = Qmin[~inf_min].sum()
        Qmax_total = Qmax[~inf_max].sum()

        surrogate = abs(Qbus) + abs(Qmin_total) + abs(Qmax_total)
        Qmin_new = np.where(inf_min, np.sign(Qmin) * surrogate, Qmin)
        Qmax_new = np.where(inf_max, np.sign(Qmax) * surrogate, Qmax)

        Qmin_total += Qmin_new[inf_min].sum()
        Qmax_total += Qmax_new[inf_max].sum()

        span = Qmax_total - Qmin_total
        if abs(span) > 10.0 * np.finfo(float).eps:
            Qgen[gens] = Qmin_new + (Qbus - Qmin_total) / span * (Qmax_new - Qmin_new)
        else:
            Qgen[gens] = Qmin_new + (Qbus - Qmin_total) / len(gens)

        Pgen[gens] = gen.P[gens]
        if i == network.slack:
            Pgen[gens[0]] = Scalc[i].real + bus.Pd[i] - gen.P[gens[1:]].sum()

    return Pgen, Qgen


def check_reactive_limits(network: "PowerNetwork", V: CxVec, logger: Union[Logger, None] = None) -> IntVec:
    """
    Clamp the generators that violate their reactive power limits and turn their buses into PQ.
    If the slack bus is converted, the first PV bus becomes the slack bus.
    The generators' outputs, the bus supply and the bus types of the network are modified.
    :param network: PowerNetwork
    :param V: converged complex voltage
    :param logger: Logger
    :return: violation code per generator (-1 Qmin, 1 Qmax, 0 none)
    """
    logger = logger if logger is not None else network.logger
    gen = network.generator_data
    bus = network.bus_data

    Scalc = compute_power(network.get_ac_model().Ybus, V)
    Pgen, Qgen = compute_generator_power(network, Scalc)

    types = bus.bus_types.copy()
    active = np.where(gen.active == 1)[0]
    controlled = active[types[gen.bus_idx[active]] != BusMode.PQ_tpe.value]

    gen.P[active] = Pgen[active]
    gen.Q[controlled] = Qgen[controlled]

    codes = np.zeros(gen.nelm, dtype=int)
    converted = list()
    for g in controlled:
        if not gen.Qmin[g] < gen.Qmax[g]:
            continue

        if Qgen[g] < gen.Qmin[g]:
            codes[g] = ReactiveLimitViolation.Min.value
            gen.Q[g] = gen.Qmin[g]
        elif Qgen[g] > gen.Qmax[g]:
            codes[g] = ReactiveLimitViolation.Max.value
            gen.Q[g] = gen.Qmax[g]
        else:
            continue

        logger.add_warning("Generator reactive power limit reached",
                           device=gen.names[g],
                           value=Qgen[g],
                           expected_value=gen.Q[g],
                           device_class="Generator")

        i = gen.bus_idx[g]
        if i not in converted:
            converted.append(i)

    network.update_all_bus_supply()
    for i in converted:
        # the slack is converted when it is reassigned below
        if i != network.slack:
            network.set_bus_type(i, BusMode.PQ_tpe)

    if network.slack in converted:
        old_slack = network.slack
        candidates = np.where(bus.bus_types == BusMode.PV_tpe.value)[0]
        if len(candidates) == 0:
            logger.add_error("The slack bus reached a reactive power limit and there is no PV bus to replace it",
                             device=bus.names[old_slack], device_class="Bus")
            raise SlackBusError()

        network.set_slack(candidates[0])
        logger.add_info(f"Bus {bus.names[candidates[0]]} is the new slack bus",
                        device=bus.names[candidates[0]],
                        value=bus.names[candidates[0]],
                        expected_value=bus.names[old_slack],
                        device_class="Bus")

    return codes


def adjust_angles(network: "PowerNetwork", V: CxVec, original_slack: int) -> CxVec:
    """
    Rotate the voltage angles so that the original slack bus recovers its initial angle
    :param network: PowerNetwork
    :param V: complex voltage
    :param original_slack: index of the slack bus before any reassignment
    :return: rotated complex voltage
    """
    dVa = network.bus_data.Va0[original_slack] - np.angle(V[original_slack])
    return V * np.exp(1j * dVa)


class ControlsSnapshot:
    """
    Copy of the network values modified by the reactive power limits check
    """

    def __init__(self, network: "PowerNetwork"):
        """

        :param network: PowerNetwork
        """
        self.bus_types = network.bus_data.bus_types.copy()
        self.Pg = network.bus_data.Pg.copy()
        self.Qg = network.bus_data.Qg.copy()
        self.gen_P = network.generator_data.P.copy()
        self.gen_Q = network.generator_data.Q.copy()
        self.slack = network.slack

    def restore(self, network: "PowerNetwork") -> None:
        """
        Put the saved values back
        :param network: PowerNetwork
        """
        network.bus_data.bus_types[:] = self.bus_types
        network.bus_data.Pg[:] = self.Pg
        network.bus_data.Qg[:] = self.Qg
        network.generator_data.P[:] = self.gen_P
        network.generator_data.Q[:] = self.gen_Q
        network.slack = self.slack
