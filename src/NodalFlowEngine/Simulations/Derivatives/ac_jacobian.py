# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import Tuple
import numpy as np
import scipy.sparse as sp
from NodalFlowEngine.basic_structures import CxVec, IntVec, CscMat


def dSbus_dV_matpower(Ybus: CscMat, V: CxVec) -> Tuple[CscMat, CscMat]:
    """
    Derivatives of the power injections w.r.t the voltage
    :param Ybus: Admittance matrix
    :param V: complex voltage arrays
    :return: dSbus_dVa, dSbus_dVm
    """
    diagV = sp.diags(V)
    diagE = sp.diags(V / np.abs(V))
    Ibus = Ybus @ V
    diagIbus = sp.diags(Ibus)

    dSbus_dVa = 1j * diagV @ (diagIbus - Ybus @ diagV).conj()  # dSbus / dVa
    dSbus_dVm = diagV @ (Ybus @ diagE).conj() + diagIbus.conj() @ diagE  # dSbus / dVm

    return dSbus_dVa.tocsc(), dSbus_dVm.tocsc()


def AC_jacobian(Ybus: CscMat, V: CxVec, pvpq: IntVec, pq: IntVec) -> CscMat:
    """
    Power flow Jacobian in polar coordinates

        | dP/dVa[pvpq, pvpq]  dP/dVm[pvpq, pq] |
    J = |                                      |
        | dQ/dVa[pq, pvpq]    dQ/dVm[pq, pq]   |

    :param Ybus: Admittance matrix
    :param V: complex voltage arrays
    :param pvpq: array of the pv and pq bus indices (sorted)
    :param pq: array of the pq bus indices
    :return: Jacobian matrix (CSC)
    """
    dS_dVa, dS_dVm = dSbus_dV_matpower(Ybus, V)

    dS_dVa = dS_dVa.tocsr()
    dS_dVm = dS_dVm.tocsr()

    J11 = dS_dVa[pvpq, :][:, pvpq].real
    J12 = dS_dVm[pvpq, :][:, pq].real
    J21 = dS_dVa[pq, :][:, pvpq].imag
    J22 = dS_dVm[pq, :][:, pq].imag

    J = sp.vstack([sp.hstack([J11, J12]),
                   sp.hstack([J21, J22])], format="csc")

    return J
