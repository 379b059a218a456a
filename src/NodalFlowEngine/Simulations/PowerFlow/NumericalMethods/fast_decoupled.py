# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Union, TYPE_CHECKING
from scipy.sparse.linalg import SuperLU
from NodalFlowEngine.basic_structures import Logger, CxVec, CscMat
from NodalFlowEngine.enumerations import SolverType, FastDecoupledVariant
from NodalFlowEngine.Topology.admittance_matrices import build_fast_decoupled_matrices
from NodalFlowEngine.Utils.NumericalMethods.sparse_solve import factorize
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.common_functions import compute_power
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.ac_solver_template import AcSolverTemplate

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


class FastDecoupledSolver(AcSolverTemplate):
    """
    Fast decoupled power flow.

    B1 (pvpq x pvpq) and B2 (pq x pq) are built and factorized once, when the solver is created.
    Every iteration is a half step on the angles followed by a half step on the magnitudes:

        Va[pvpq] += B1^-1 dP / Vm
        Vm[pq] += B2^-1 dQ / Vm
    """

    def __init__(self, network: "PowerNetwork",
                 variant: FastDecoupledVariant = FastDecoupledVariant.XB,
                 V0: Union[CxVec, None] = None,
                 logger: Union[Logger, None] = None):
        """

        :param network: PowerNetwork
        :param variant: FastDecoupledVariant (XB or BX)
        :param V0: optional starting voltage
        :param logger: Logger
        """
        AcSolverTemplate.__init__(self, network=network, V0=V0, logger=logger)

        self.variant = variant
        self.method = SolverType.FASTDECOUPLED_XB if variant == FastDecoupledVariant.XB else SolverType.FASTDECOUPLED_BX

        B1, B2 = build_fast_decoupled_matrices(network, variant)

        self.B1: CscMat = B1.tocsr()[self.pqpv, :][:, self.pqpv].tocsc()
        self.B2: CscMat = B2.tocsr()[self.pq, :][:, self.pq].tocsc()

        self.B1_factor: Union[SuperLU, None] = factorize(self.B1, matrix_name="B1") if len(self.pqpv) else None
        self.B2_factor: Union[SuperLU, None] = factorize(self.B2, matrix_name="B2") if len(self.pq) else None

    def step(self) -> None:
        """
        One fast decoupled iteration
        """
        self.check_model()

        if self.B1_factor is not None:
            dP = (self.Scalc - self.Sbus)[self.pqpv].real
            self.Va[self.pqpv] += self.B1_factor.solve(dP / self.Vm[self.pqpv])
            self.update_voltage_from_polar()

        if self.B2_factor is not None:
            Scalc = compute_power(self.Ybus, self.V)
            dQ = (Scalc - self.Sbus)[self.pq].imag
            self.Vm[self.pq] += self.B2_factor.solve(dQ / self.Vm[self.pq])
            self.update_voltage_from_polar()
