# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from pathlib import Path
from typing import Tuple
import numpy as np
import pytest

from NodalFlowEngine import PowerNetwork, BusMode

ROOT_PATH = Path(__file__).parent

# reference operating point of the 4-bus grid
VM_REF = np.array([1.0, 1.02, 0.98, 0.97])
VA_REF = np.array([0.0, -0.02, -0.05, -0.07])

# reference angles of the 4-bus DC grid (rad)
THETA_REF = np.array([0.0, -0.03, -0.08, -0.06])


@pytest.fixture
def root_path():
    """

    :return:
    """
    return ROOT_PATH


def dense_admittance(network: PowerNetwork) -> np.ndarray:
    """
    Dense Ybus computed branch by branch, independent of the incremental builder
    :param network: PowerNetwork
    :return: nbus x nbus complex array
    """
    br = network.branch_data
    Y = np.diag(network.bus_data.Gs + 1j * network.bus_data.Bs).astype(complex)

    for k in range(network.nbr):
        if not br.active[k]:
            continue
        f, t = br.F[k], br.T[k]
        ys = 1.0 / (br.R[k] + 1j * br.X[k])
        tau = br.tap_module[k] if br.tap_module[k] != 0 else 1.0
        tap = tau * np.exp(1j * br.tap_angle[k])
        ytt = ys + 0.5 * (br.G[k] + 1j * br.B[k])
        Y[f, f] += ytt / (tau * tau)
        Y[f, t] += -ys / np.conj(tap)
        Y[t, f] += -ys / tap
        Y[t, t] += ytt

    return Y


def dense_susceptance(network: PowerNetwork) -> Tuple[np.ndarray, np.ndarray]:
    """
    Dense Bbus and phase shift injections computed branch by branch
    :param network: PowerNetwork
    :return: Bbus, Pshift
    """
    br = network.branch_data
    n = network.nbus
    B = np.zeros((n, n))
    Pshift = np.zeros(n)

    for k in range(network.nbr):
        if not br.active[k]:
            continue
        f, t = br.F[k], br.T[k]
        tau = br.tap_module[k] if br.tap_module[k] != 0 else 1.0
        b = 1.0 / (tau * br.X[k])
        B[f, f] += b
        B[t, t] += b
        B[f, t] -= b
        B[t, f] -= b
        Pshift[f] -= br.tap_angle[k] * b
        Pshift[t] += br.tap_angle[k] * b

    return B, Pshift


def add_four_bus_branches(grid: PowerNetwork, resistance: bool = True, shift: float = 0.02) -> None:
    """
    Branches shared by the 4-bus grids
    :param grid: PowerNetwork with the buses "B1" to "B4"
    :param resistance: use the resistances and the charging, otherwise the branches are lossless
    :param shift: phase shift of the transformer T24 (rad)
    """
    r = 1.0 if resistance else 0.0
    grid.add_branch("L12", "B1", "B2", R=0.01 * r, X=0.05, B=0.02 * r)
    grid.add_branch("L13", "B1", "B3", R=0.02 * r, X=0.08, B=0.03 * r)
    grid.add_branch("L23", "B2", "B3", R=0.015 * r, X=0.06, B=0.02 * r)
    grid.add_branch("L34", "B3", "B4", R=0.01 * r, X=0.04, B=0.01 * r)
    grid.add_branch("T24", "B2", "B4", R=0.0, X=0.1, tap_module=0.98, tap_angle=shift)


def build_four_bus_grid() -> PowerNetwork:
    """
    4-bus grid (slack, PV and two PQ buses) whose injections are derived from
    the reference voltage VM_REF, VA_REF, so that this voltage is the solution.
    :return: PowerNetwork
    """
    grid = PowerNetwork()
    grid.add_bus("B1", bus_type=BusMode.Slack_tpe)
    grid.add_bus("B2", bus_type=BusMode.PV_tpe)
    grid.add_bus("B3")
    grid.add_bus("B4", Bs=0.05)
    add_four_bus_branches(grid)

    V = VM_REF * np.exp(1j * VA_REF)
    S = V * np.conj(dense_admittance(grid) @ V)

    grid.add_generator("G1", "B1", P=S[0].real, Vset=VM_REF[0])
    grid.add_generator("G2", "B2", P=S[1].real, Vset=VM_REF[1])
    grid.set_bus_demand("B3", Pd=-S[2].real, Qd=-S[2].imag)
    grid.set_bus_demand("B4", Pd=-S[3].real, Qd=-S[3].imag)
    return grid


def build_four_bus_dc_grid() -> PowerNetwork:
    """
    Lossless 4-bus grid whose injections are derived from the reference angles THETA_REF
    :return: PowerNetwork
    """
    grid = PowerNetwork()
    grid.add_bus("B1", bus_type=BusMode.Slack_tpe)
    grid.add_bus("B2", bus_type=BusMode.PV_tpe)
    grid.add_bus("B3")
    grid.add_bus("B4")
    add_four_bus_branches(grid, resistance=False, shift=0.03)

    B, Pshift = dense_susceptance(grid)
    P = B @ THETA_REF + Pshift

    grid.add_generator("G1", "B1", P=P[0])
    grid.add_generator("G2", "B2", P=P[1])
    grid.set_bus_demand("B3", Pd=-P[2])
    grid.set_bus_demand("B4", Pd=-P[3])
    return grid


def build_three_bus_dc_grid() -> PowerNetwork:
    """
    Triangle of 0.1 p.u. reactances with a 1 p.u. load at the third bus
    :return: PowerNetwork
    """
    grid = PowerNetwork()
    grid.add_bus("N1", bus_type=BusMode.Slack_tpe)
    grid.add_bus("N2")
    grid.add_bus("N3", Pd=1.0)
    grid.add_branch("N1-N2", "N1", "N2", X=0.1)
    grid.add_branch("N2-N3", "N2", "N3", X=0.1)
    grid.add_branch("N1-N3", "N1", "N3", X=0.1)
    grid.add_generator("G1", "N1")
    return grid


@pytest.fixture
def four_bus_grid() -> PowerNetwork:
    return build_four_bus_grid()


@pytest.fixture
def four_bus_dc_grid() -> PowerNetwork:
    return build_four_bus_dc_grid()


@pytest.fixture
def three_bus_dc_grid() -> PowerNetwork:
    return build_three_bus_dc_grid()
