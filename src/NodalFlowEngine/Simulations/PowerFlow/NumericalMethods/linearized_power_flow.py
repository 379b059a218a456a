# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import time
from typing import Union, TYPE_CHECKING
import numpy as np
from NodalFlowEngine.basic_structures import Logger, Vec
from NodalFlowEngine.enumerations import SolverType
from NodalFlowEngine.exceptions import SingularMatrixError
from NodalFlowEngine.Topology.topology import find_islands
from NodalFlowEngine.Utils.NumericalMethods.common import max_abs
from NodalFlowEngine.Simulations.PowerFlow.power_flow_results import DcPowerFlowResults

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


def dc_generator_power(network: "PowerNetwork", Pinj: Vec) -> Vec:
    """
    Active power of the generators: the set points, except for the first
    in-service generator of the slack bus, which takes the balance
    :param network: PowerNetwork
    :param Pinj: active power injections
    :return: active power per generator
    """
    gen = network.generator_data
    bus = network.bus_data
    slack = network.slack

    gen_p = gen.P * gen.active
    gens = bus.generators[slack]
    if len(gens):
        others = gen.P[gens[1:]].sum()
        gen_p[gens[0]] = Pinj[slack] + bus.Pd[slack] + bus.Gs[slack] - others

    return gen_p


class DcPowerFlowSolver:
    """
    Linear DC power flow:

        Bbus x Va = Pg - Pd - Gs - Pshift

    solved once with the slack angle fixed.
    """

    method = SolverType.DC

    def __init__(self, network: "PowerNetwork", logger: Union[Logger, None] = None):
        """

        :param network: PowerNetwork
        :param logger: Logger
        """
        self.network = network
        self.logger = logger if logger is not None else Logger()

    def solve(self) -> DcPowerFlowResults:
        """
        Solve the angles and compute the branch flows
        :return: DcPowerFlowResults
        """
        start = time.time()

        nc = self.network
        slack = nc.ensure_slack()
        model = nc.get_dc_model()
        bus = nc.bus_data
        br = nc.branch_data

        islands = find_islands(nbus=nc.nbus, F=br.F, T=br.T, active=br.active)
        if len(islands) > 1:
            self.logger.add_error("The DC power flow cannot be solved for an islanded grid",
                                  value=len(islands), expected_value=1)
            raise SingularMatrixError(matrix_name="Bbus")

        lu = model.factorize_reduced(slack)

        Pspec = bus.Pg - bus.Pd - bus.Gs - model.Pshift
        P = Pspec.copy()
        P[slack] = 0.0

        Va = lu.solve(P)
        if not np.all(np.isfinite(Va)):
            raise SingularMatrixError(matrix_name="Bbus")
        Va[slack] = 0.0
        Va += bus.Va0[slack]

        # the rows of Bbus add up to zero, the angle offset does not change the injections
        Pinj = model.Bbus @ Va + model.Pshift
        Pf = br.active * model.b * (Va[br.F] - Va[br.T] - br.tap_angle)
        Pgen = Pinj + bus.Pd + bus.Gs

        no_slack = np.r_[0:slack, slack + 1:nc.nbus]
        error = max_abs((Pinj - (bus.Pg - bus.Pd - bus.Gs))[no_slack])

        results = DcPowerFlowResults(bus_names=bus.names.copy(),
                                     branch_names=br.names.copy(),
                                     gen_names=nc.generator_data.names.copy(),
                                     bus_types=bus.bus_types.copy(),
                                     Va=Va,
                                     Pbus=Pinj,
                                     Pgen=Pgen,
                                     Pf=Pf,
                                     gen_p=dc_generator_power(nc, Pinj),
                                     slack=slack)

        end = time.time()
        results.convergence_reports.add(method=self.method,
                                        converged=True,
                                        error=error,
                                        elapsed=end - start,
                                        iterations=1)
        return results
