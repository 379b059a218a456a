# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from typing import Tuple, TYPE_CHECKING
import numpy as np
from NodalFlowEngine.basic_structures import Vec, CxVec, IntVec, CscMat
from NodalFlowEngine.Utils.NumericalMethods.common import max_abs

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork
    from NodalFlowEngine.Topology.admittance_matrices import AcAdmittanceModel


def polar_to_rect(Vm: Vec, Va: Vec) -> CxVec:
    """
    Polar to rectangular voltage
    :param Vm: voltage magnitudes
    :param Va: voltage angles (rad)
    :return: complex voltage
    """
    return Vm * np.exp(1.0j * Va)


def compute_power(Ybus: CscMat, V: CxVec) -> CxVec:
    """
    Compute the power injections from the voltage: S = V x conj(Ybus x V)
    :param Ybus: Admittance matrix
    :param V: Voltage vector
    :return: Calculated power injections
    """
    return V * np.conj(Ybus @ V)


def compute_fx(Scalc: CxVec, Sbus: CxVec, pvpq: IntVec, pq: IntVec) -> Vec:
    """
    Compute the power flow function: f = [dP(pvpq), dQ(pq)]
    :param Scalc: Calculated power injections
    :param Sbus: Specified power injections
    :param pvpq: Array of pv and pq bus indices
    :param pq: Array of pq bus indices
    :return: mismatch vector
    """
    dS = Scalc - Sbus
    return np.r_[dS[pvpq].real, dS[pq].imag]


def compute_mismatch_norms(Scalc: CxVec, Sbus: CxVec, pvpq: IntVec, pq: IntVec) -> Tuple[float, float]:
    """
    Maximum absolute active (pv and pq buses) and reactive (pq buses) mismatches
    :param Scalc: Calculated power injections
    :param Sbus: Specified power injections
    :param pvpq: Array of pv and pq bus indices
    :param pq: Array of pq bus indices
    :return: max |dP|, max |dQ|
    """
    dS = Scalc - Sbus
    if not np.all(np.isfinite(dS)):
        return np.inf, np.inf
    return max_abs(dS[pvpq].real), max_abs(dS[pq].imag)


def power_flow_post_process(network: "PowerNetwork",
                            model: "AcAdmittanceModel",
                            V: CxVec) -> Tuple[CxVec, CxVec, CxVec, CxVec, CxVec, CxVec, Vec]:
    """
    Compute the branch magnitudes from the cached primitives
    :param network: PowerNetwork
    :param model: AcAdmittanceModel of the network
    :param V: complex bus voltages
    :return: Sf, St, If, It, Is (series current), losses, charging
    """
    br = network.branch_data
    Vf = V[br.F]
    Vt = V[br.T]

    Yf, Yt = model.get_Yf_Yt(network)
    If = Yf @ V
    It = Yt @ V
    Sf = Vf * np.conj(If)
    St = Vt * np.conj(It)

    # series current behind the ideal transformer
    tau = br.get_effective_tap_module()
    tap = tau * np.exp(1j * br.tap_angle)
    zs = br.R + 1j * br.X
    Is = br.active * (Vf / tap - Vt) / zs
    losses = np.power(np.abs(Is), 2) * zs

    charging = br.active * 0.5 * br.B * (np.power(np.abs(Vf) / tau, 2) + np.power(np.abs(Vt), 2))

    return Sf, St, If, It, Is, losses, charging


def bus_post_process(network: "PowerNetwork",
                     model: "AcAdmittanceModel",
                     V: CxVec,
                     Sbus: CxVec) -> Tuple[CxVec, CxVec, CxVec]:
    """
    Compute the bus magnitudes of a solved state
    :param network: PowerNetwork
    :param model: AcAdmittanceModel of the network
    :param V: complex bus voltages
    :param Sbus: power injections
    :return: Sgen (supply: injection plus demand), Sshunt (consumed by the shunts), Ibus (current injections)
    """
    bus = network.bus_data
    Sgen = Sbus + (bus.Pd + 1j * bus.Qd)
    Sshunt = V * np.conj((bus.Gs + 1j * bus.Bs) * V)
    Ibus = model.Ybus @ V
    return Sgen, Sshunt, Ibus
