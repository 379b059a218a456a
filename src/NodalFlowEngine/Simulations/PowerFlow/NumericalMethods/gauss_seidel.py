# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Union, TYPE_CHECKING
import numpy as np
import numba as nb
from NodalFlowEngine.basic_structures import Logger, CxVec, Vec, IntVec
from NodalFlowEngine.enumerations import SolverType
from NodalFlowEngine.exceptions import SingularMatrixError
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.ac_solver_template import AcSolverTemplate

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


@nb.njit(cache=True)
def gauss_seidel_sweep(Yp: IntVec, Yj: IntVec, Yx: CxVec, Ydiag: CxVec,
                       V: CxVec, S: CxVec, pq: IntVec, pv: IntVec, Vset: Vec) -> None:
    """
    One Gauss-Seidel sweep, the voltage is updated in place bus by bus
    :param Yp: CSR row pointers of Ybus
    :param Yj: CSR column indices of Ybus
    :param Yx: CSR values of Ybus
    :param Ydiag: diagonal of Ybus
    :param V: complex voltage (modified)
    :param S: specified power injections
    :param pq: pq bus indices
    :param pv: pv bus indices
    :param Vset: voltage magnitude set points (indexed by bus)
    """
    for i in pq:
        I = 0j
        for k in range(Yp[i], Yp[i + 1]):
            I += Yx[k] * V[Yj[k]]
        V[i] += (np.conj(S[i] / V[i]) - I) / Ydiag[i]

    for i in pv:
        I = 0j
        for k in range(Yp[i], Yp[i + 1]):
            I += Yx[k] * V[Yj[k]]
        Si = S[i].real + 1j * (V[i] * np.conj(I)).imag
        V[i] += (np.conj(Si / V[i]) - I) / Ydiag[i]

    for i in pv:
        V[i] = Vset[i] * V[i] / np.abs(V[i])


class GaussSeidelSolver(AcSolverTemplate):
    """
    Gauss-Seidel power flow, it needs many more iterations than Newton-Raphson
    """

    method = SolverType.GAUSS

    def __init__(self, network: "PowerNetwork", V0: Union[CxVec, None] = None, logger: Union[Logger, None] = None):
        """

        :param network: PowerNetwork
        :param V0: optional starting voltage
        :param logger: Logger
        """
        AcSolverTemplate.__init__(self, network=network, V0=V0, logger=logger)

        Ycsr = self.Ybus.tocsr()
        Ycsr.sort_indices()
        self.Yp: IntVec = Ycsr.indptr
        self.Yj: IntVec = Ycsr.indices
        self.Yx: CxVec = Ycsr.data.astype(complex)
        self.Ydiag: CxVec = Ycsr.diagonal().astype(complex)

        if np.any(self.Ydiag[self.pqpv] == 0.0):
            self.logger.add_error("Gauss-Seidel requires non-zero diagonal admittances")
            raise SingularMatrixError(matrix_name="Ybus")

        # magnitude set points of the controlled buses
        self.Vset: Vec = self.Vm.copy()

    def step(self) -> None:
        """
        One Gauss-Seidel sweep over the pq buses and then the pv buses
        """
        self.check_model()

        V = self.V.astype(complex)
        gauss_seidel_sweep(self.Yp, self.Yj, self.Yx, self.Ydiag,
                           V, self.Sbus.astype(complex), self.pq, self.pv, self.Vset)
        self.V = V
        self.update_polar_from_voltage()
