# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Union, TYPE_CHECKING
from NodalFlowEngine.basic_structures import Logger, CxVec
from NodalFlowEngine.enumerations import SolverType
from NodalFlowEngine.exceptions import SingularMatrixError
from NodalFlowEngine.Simulations.Derivatives.ac_jacobian import AC_jacobian
from NodalFlowEngine.Utils.NumericalMethods.sparse_solve import super_lu_linsolver
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.common_functions import compute_fx
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.ac_solver_template import AcSolverTemplate

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


class NewtonRaphsonSolver(AcSolverTemplate):
    """
    Full Newton-Raphson power flow in polar coordinates.

    The unknowns are the angles of the pv and pq buses and the magnitudes of the pq buses:

        J x dx = f(x)   ->   x = x - dx

    where f = [dP(pvpq), dQ(pq)] and J is the power flow Jacobian.
    """

    method = SolverType.NR

    def __init__(self, network: "PowerNetwork", V0: Union[CxVec, None] = None, logger: Union[Logger, None] = None):
        """

        :param network: PowerNetwork
        :param V0: optional starting voltage
        :param logger: Logger
        """
        AcSolverTemplate.__init__(self, network=network, V0=V0, logger=logger)

    def step(self) -> None:
        """
        One Newton-Raphson iteration, the power injections are those of the last mismatch evaluation
        """
        self.check_model()

        J = AC_jacobian(self.Ybus, self.V, self.pqpv, self.pq)
        f = compute_fx(self.Scalc, self.Sbus, self.pqpv, self.pq)

        try:
            dx = super_lu_linsolver(J, f, matrix_name="Jacobian")
        except SingularMatrixError:
            self.logger.add_error(f"Newton-Raphson's Jacobian is singular @iter {self.iterations}")
            raise

        npvpq = len(self.pqpv)
        self.Va[self.pqpv] -= dx[:npvpq]
        self.Vm[self.pq] -= dx[npvpq:]
        self.update_voltage_from_polar()
