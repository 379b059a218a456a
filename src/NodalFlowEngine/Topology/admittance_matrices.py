# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
Nodal admittance models.

The matrices are built once and then kept up to date one branch (or bus) at a time.
Every touched matrix cell is re-accumulated from the cached per-branch primitives of
the branches incident to its buses, in ascending branch order, which is the same
order used by the full build. Hence an incrementally updated matrix is identical to
a freshly built one and taking a branch out and back in restores the exact values.
The primitives of an out of service branch stay cached, its status only decides
whether they are accumulated.
"""
from __future__ import annotations

import warnings
from typing import Tuple, Union, TYPE_CHECKING
import numpy as np
import numba as nb
import scipy.sparse as sp
from scipy.sparse import csc_matrix, SparseEfficiencyWarning
from scipy.sparse.linalg import SuperLU

from NodalFlowEngine.basic_structures import Vec, CxVec, IntVec, CscMat
from NodalFlowEngine.enumerations import FastDecoupledVariant
from NodalFlowEngine.exceptions import BranchImpedanceError
from NodalFlowEngine.Utils.NumericalMethods.common import csc_position
from NodalFlowEngine.Utils.NumericalMethods.sparse_solve import factorize

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


@nb.njit(cache=True)
def ac_branch_primitives(R: float, X: float, G: float, B: float,
                         tap_module: float, tap_angle: float) -> Tuple[complex, complex, complex, complex]:
    """
    Unified pi-model admittance primitives of one branch, regardless of its status
    :param R: series resistance (p.u.)
    :param X: series reactance (p.u.)
    :param G: total charging conductance (p.u.)
    :param B: total charging susceptance (p.u.)
    :param tap_module: turns ratio, 0 is treated as 1
    :param tap_angle: phase shift (rad)
    :return: yff, yft, ytf, ytt
    """
    ys = 1.0 / complex(R, X)
    tau = tap_module if tap_module != 0.0 else 1.0
    tap = tau * np.exp(1j * tap_angle)

    ytt = ys + 0.5 * complex(G, B)
    yff = ytt / (tau * tau)
    yft = -ys / np.conj(tap)
    ytf = -ys / tap

    return yff, yft, ytf, ytt


@nb.njit(cache=True)
def dc_branch_primitive(X: float, tap_module: float) -> float:
    """
    Susceptance of one branch in the DC approximation
    :param X: series reactance (p.u.)
    :param tap_module: turns ratio, 0 is treated as 1
    :return: b, 0 for a purely resistive branch
    """
    if X == 0.0:
        return 0.0
    tau = tap_module if tap_module != 0.0 else 1.0
    return 1.0 / (tau * X)


def check_branch_impedance(name: str, R: float, X: float) -> None:
    """
    Reject impedances that cannot be inverted
    :param name: branch label
    :param R: resistance
    :param X: reactance
    """
    if R == 0.0 and X == 0.0:
        raise BranchImpedanceError(label=name)


class NodalMatrixModel:
    """
    Sparse nodal matrix owned by the admittance model builder.
    Solvers only read :attr:`matrix`, the cells are written exclusively through
    the builder functions of this module.
    """

    dtype = complex

    def __init__(self, nbus: int):
        """

        :param nbus: number of buses
        """
        self.nbus = nbus

        self.matrix: CscMat = csc_matrix((nbus, nbus), dtype=self.dtype)

        # increases on every modification, solvers use it to detect stale factorizations
        self.revision: int = 0

    def diagonal_value(self, network: "PowerNetwork", i: int):
        """
        Accumulated value of the diagonal cell i
        :param network: PowerNetwork
        :param i: bus index
        """
        raise NotImplementedError()

    def off_diagonal_value(self, network: "PowerNetwork", i: int, j: int):
        """
        Accumulated value of the cell (i, j), i != j
        :param network: PowerNetwork
        :param i: row bus index
        :param j: column bus index
        """
        raise NotImplementedError()

    def _set_cell(self, i: int, j: int, value) -> None:
        """
        Write a single cell, inserting it in the sparsity pattern if needed
        :param i: row
        :param j: column
        :param value: value
        """
        pos = csc_position(self.matrix.indptr, self.matrix.indices, i, j)
        if pos >= 0:
            self.matrix.data[pos] = value
        else:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", SparseEfficiencyWarning)
                self.matrix[i, j] = value

    def _fill_pattern(self, network: "PowerNetwork") -> None:
        """
        Compute every stored cell from the cached primitives
        :param network: PowerNetwork
        """
        indptr = self.matrix.indptr
        indices = self.matrix.indices
        data = self.matrix.data
        for j in range(self.nbus):
            for pos in range(indptr[j], indptr[j + 1]):
                i = indices[pos]
                if i == j:
                    data[pos] = self.diagonal_value(network, i)
                else:
                    data[pos] = self.off_diagonal_value(network, i, j)

    def _build_pattern(self, F: IntVec, T: IntVec) -> None:
        """
        Create the sparsity pattern: the diagonal plus the from-to and to-from cells
        of every branch (in service or not)
        :param F: branches' from bus indices
        :param T: branches' to bus indices
        """
        diag = np.arange(self.nbus, dtype=int)
        rows = np.r_[diag, F, T]
        cols = np.r_[diag, T, F]
        data = np.ones(len(rows), dtype=self.dtype)
        self.matrix = csc_matrix((data, (rows, cols)), shape=(self.nbus, self.nbus))
        self.matrix.sum_duplicates()

    def refresh_buses(self, network: "PowerNetwork", f: int, t: int) -> None:
        """
        Re-accumulate the four cells shared by the buses f and t
        :param network: PowerNetwork
        :param f: from bus index
        :param t: to bus index
        """
        self._set_cell(f, f, self.diagonal_value(network, f))
        self._set_cell(t, t, self.diagonal_value(network, t))
        self._set_cell(f, t, self.off_diagonal_value(network, f, t))
        self._set_cell(t, f, self.off_diagonal_value(network, t, f))
        self.revision += 1

    def refresh_bus(self, network: "PowerNetwork", i: int) -> None:
        """
        Re-accumulate the diagonal cell of a bus
        :param network: PowerNetwork
        :param i: bus index
        """
        self._set_cell(i, i, self.diagonal_value(network, i))
        self.revision += 1


class AcAdmittanceModel(NodalMatrixModel):
    """
    AC nodal admittance matrix (Ybus) with the branch primitives cached
    """

    dtype = complex

    def __init__(self, nbus: int, nbr: int):
        """

        :param nbus: number of buses
        :param nbr: number of branches
        """
        NodalMatrixModel.__init__(self, nbus=nbus)

        self.yff: CxVec = np.zeros(nbr, dtype=complex)
        self.yft: CxVec = np.zeros(nbr, dtype=complex)
        self.ytf: CxVec = np.zeros(nbr, dtype=complex)
        self.ytt: CxVec = np.zeros(nbr, dtype=complex)

    @property
    def Ybus(self) -> CscMat:
        """
        Nodal admittance matrix
        """
        return self.matrix

    def set_branch_primitives(self, network: "PowerNetwork", k: int) -> None:
        """
        Compute and cache the primitives of a branch from the network values.
        They are kept while the branch is out of service.
        :param network: PowerNetwork
        :param k: branch index
        """
        br = network.branch_data
        check_branch_impedance(br.names[k], br.R[k], br.X[k])

        (self.yff[k],
         self.yft[k],
         self.ytf[k],
         self.ytt[k]) = ac_branch_primitives(br.R[k], br.X[k], br.G[k], br.B[k],
                                             br.tap_module[k], br.tap_angle[k])

    def append_branch(self) -> None:
        """
        Make room for one more branch in the cached primitives
        """
        self.yff = np.append(self.yff, 0j)
        self.yft = np.append(self.yft, 0j)
        self.ytf = np.append(self.ytf, 0j)
        self.ytt = np.append(self.ytt, 0j)

    def diagonal_value(self, network: "PowerNetwork", i: int) -> complex:
        """
        Ybus[i, i] = shunt + sum of the yff / ytt of the incident in-service branches
        :param network: PowerNetwork
        :param i: bus index
        :return: complex value
        """
        F = network.branch_data.F
        active = network.branch_data.active
        val = complex(network.bus_data.Gs[i], network.bus_data.Bs[i])
        for k in network.bus_data.branches[i]:
            if not active[k]:
                continue
            if F[k] == i:
                val += self.yff[k]
            else:
                val += self.ytt[k]
        return val

    def off_diagonal_value(self, network: "PowerNetwork", i: int, j: int) -> complex:
        """
        Ybus[i, j] = sum of the yft (i->j branches) and ytf (j->i branches)
        :param network: PowerNetwork
        :param i: row bus index
        :param j: column bus index
        :return: complex value
        """
        F = network.branch_data.F
        T = network.branch_data.T
        active = network.branch_data.active
        val = 0j
        for k in network.bus_data.branches[i]:
            if not active[k]:
                continue
            if F[k] == i and T[k] == j:
                val += self.yft[k]
            elif F[k] == j and T[k] == i:
                val += self.ytf[k]
        return val

    def get_Yf_Yt(self, network: "PowerNetwork") -> Tuple[CscMat, CscMat]:
        """
        Branch-bus admittance matrices such that If = Yf V and It = Yt V.
        The rows of the out of service branches are zero.
        :param network: PowerNetwork
        :return: Yf, Yt
        """
        nbr = network.branch_data.nelm
        F = network.branch_data.F
        T = network.branch_data.T
        active = network.branch_data.active
        yff = self.yff * active
        yft = self.yft * active
        ytf = self.ytf * active
        ytt = self.ytt * active
        br_idx = np.arange(nbr, dtype=int)
        shape = (nbr, self.nbus)
        Yf = csc_matrix((np.r_[yff, yft], (np.r_[br_idx, br_idx], np.r_[F, T])), shape=shape)
        Yt = csc_matrix((np.r_[ytf, ytt], (np.r_[br_idx, br_idx], np.r_[F, T])), shape=shape)
        return Yf, Yt


class DcAdmittanceModel(NodalMatrixModel):
    """
    DC susceptance matrix (Bbus) plus the phase shift power injections
    """

    dtype = float

    def __init__(self, nbus: int, nbr: int):
        """

        :param nbus: number of buses
        :param nbr: number of branches
        """
        NodalMatrixModel.__init__(self, nbus=nbus)

        # branch susceptances
        self.b: Vec = np.zeros(nbr, dtype=float)

        # active power injection due to the phase shifters
        self.Pshift: Vec = np.zeros(nbus, dtype=float)

    @property
    def Bbus(self) -> CscMat:
        """
        Nodal susceptance matrix
        """
        return self.matrix

    def set_branch_primitives(self, network: "PowerNetwork", k: int) -> None:
        """
        Compute and cache the DC susceptance of a branch, kept while it is out of service
        :param network: PowerNetwork
        :param k: branch index
        """
        br = network.branch_data
        if br.active[k] and br.X[k] == 0.0:
            raise BranchImpedanceError(label=br.names[k],
                                       message="The DC model requires a non-zero branch reactance")

        self.b[k] = dc_branch_primitive(br.X[k], br.tap_module[k])

    def append_branch(self) -> None:
        """
        Make room for one more branch
        """
        self.b = np.append(self.b, 0.0)

    def diagonal_value(self, network: "PowerNetwork", i: int) -> float:
        """
        Bbus[i, i] = sum of the incident in-service branch susceptances
        :param network: PowerNetwork
        :param i: bus index
        :return: value
        """
        active = network.branch_data.active
        val = 0.0
        for k in network.bus_data.branches[i]:
            if active[k]:
                val += self.b[k]
        return val

    def off_diagonal_value(self, network: "PowerNetwork", i: int, j: int) -> float:
        """
        Bbus[i, j] = -sum of the susceptances of the branches joining i and j
        :param network: PowerNetwork
        :param i: row bus index
        :param j: column bus index
        :return: value
        """
        F = network.branch_data.F
        T = network.branch_data.T
        active = network.branch_data.active
        val = 0.0
        for k in network.bus_data.branches[i]:
            if not active[k]:
                continue
            if (F[k] == i and T[k] == j) or (F[k] == j and T[k] == i):
                val -= self.b[k]
        return val

    def shift_value(self, network: "PowerNetwork", i: int) -> float:
        """
        Phase shift injection at a bus: withdrawn at the from side, injected at the to side
        :param network: PowerNetwork
        :param i: bus index
        :return: value
        """
        F = network.branch_data.F
        active = network.branch_data.active
        tap_angle = network.branch_data.tap_angle
        val = 0.0
        for k in network.bus_data.branches[i]:
            if not active[k]:
                continue
            if F[k] == i:
                val -= tap_angle[k] * self.b[k]
            else:
                val += tap_angle[k] * self.b[k]
        return val

    def refresh_buses(self, network: "PowerNetwork", f: int, t: int) -> None:
        """
        Re-accumulate the cells and the phase shift injections of buses f and t
        :param network: PowerNetwork
        :param f: from bus index
        :param t: to bus index
        """
        self.Pshift[f] = self.shift_value(network, f)
        self.Pshift[t] = self.shift_value(network, t)
        NodalMatrixModel.refresh_buses(self, network, f, t)

    def factorize_reduced(self, slack: int) -> SuperLU:
        """
        Factorize Bbus with the slack row and column replaced by the identity.
        The dimension is kept and the stored entries are put back afterwards.
        :param slack: slack bus index
        :return: SuperLU factorization
        """
        indptr = self.matrix.indptr
        indices = self.matrix.indices
        data = self.matrix.data

        pos = np.r_[np.arange(indptr[slack], indptr[slack + 1]), np.where(indices == slack)[0]]
        pos = np.unique(pos)
        saved = data[pos].copy()

        try:
            data[pos] = 0.0
            diag_pos = csc_position(indptr, indices, slack, slack)
            data[diag_pos] = 1.0
            return factorize(self.matrix, matrix_name="Bbus")
        finally:
            data[pos] = saved


AdmittanceModel = Union[AcAdmittanceModel, DcAdmittanceModel]


def _build(model: AdmittanceModel,
           network: "PowerNetwork") -> AdmittanceModel:
    """
    Full pass over the branches
    :param model: empty model
    :param network: PowerNetwork
    :return: the model, filled
    """
    for k in range(network.branch_data.nelm):
        model.set_branch_primitives(network, k)

    model._build_pattern(F=network.branch_data.F, T=network.branch_data.T)
    model._fill_pattern(network)

    if isinstance(model, DcAdmittanceModel):
        for i in range(network.bus_data.nbus):
            model.Pshift[i] = model.shift_value(network, i)

    return model


def build_ac_model(network: "PowerNetwork") -> AcAdmittanceModel:
    """
    Build the AC admittance model from scratch
    :param network: PowerNetwork
    :return: AcAdmittanceModel
    """
    model = AcAdmittanceModel(nbus=network.bus_data.nbus, nbr=network.branch_data.nelm)
    return _build(model, network)


def build_dc_model(network: "PowerNetwork") -> DcAdmittanceModel:
    """
    Build the DC admittance model from scratch
    :param network: PowerNetwork
    :return: DcAdmittanceModel
    """
    model = DcAdmittanceModel(nbus=network.bus_data.nbus, nbr=network.branch_data.nelm)
    return _build(model, network)


def on_branch_added(model: AdmittanceModel, network: "PowerNetwork", k: int) -> None:
    """
    Account for a branch appended to the network
    :param model: admittance model
    :param network: PowerNetwork (the branch is already stored)
    :param k: branch index
    """
    model.append_branch()
    model.set_branch_primitives(network, k)
    model.refresh_buses(network, network.branch_data.F[k], network.branch_data.T[k])


def on_branch_status_changed(model: AdmittanceModel, network: "PowerNetwork", k: int) -> None:
    """
    Account for a branch switching in or out of service.
    The cached primitives are not touched, only the cells of its buses are re-accumulated.
    :param model: admittance model
    :param network: PowerNetwork (the new status is already stored)
    :param k: branch index
    """
    model.refresh_buses(network, network.branch_data.F[k], network.branch_data.T[k])


def on_branch_parameters_changed(model: AdmittanceModel,
                                 network: "PowerNetwork", k: int) -> None:
    """
    Account for a change of impedance, charging or tap of a branch
    :param model: admittance model
    :param network: PowerNetwork (the new parameters are already stored)
    :param k: branch index
    """
    model.set_branch_primitives(network, k)
    model.refresh_buses(network, network.branch_data.F[k], network.branch_data.T[k])


def on_shunt_changed(model: AdmittanceModel, network: "PowerNetwork", i: int) -> None:
    """
    Account for a change of the shunt admittance of a bus.
    The DC model does not hold shunts, the conductance goes to the injections instead.
    :param model: admittance model
    :param network: PowerNetwork (the new shunt is already stored)
    :param i: bus index
    """
    if isinstance(model, AcAdmittanceModel):
        model.refresh_bus(network, i)


def build_fast_decoupled_matrices(network: "PowerNetwork",
                                  variant: FastDecoupledVariant) -> Tuple[CscMat, CscMat]:
    """
    Build the full (nbus x nbus) fast decoupled matrices.

    BX: B1 keeps the resistance and the phase shift; B2 uses -1/x.
    XB: B1 uses -1/x; B2 keeps the resistance.
    Neither B1 includes the taps, charging or shunts; both B2 include the tap module,
    the charging and the bus shunt susceptance.

    :param network: PowerNetwork
    :param variant: FastDecoupledVariant
    :return: B1, B2
    """
    nbus = network.bus_data.nbus
    br = network.branch_data
    idx = np.where(br.active == 1)[0]

    F = br.F[idx]
    T = br.T[idx]
    R = br.R[idx]
    X = br.X[idx]
    Bc = br.B[idx]
    tau = br.get_effective_tap_module()[idx]
    shift_cos = np.cos(br.tap_angle[idx])
    shift_sin = np.sin(br.tap_angle[idx])
    z2 = R * R + X * X

    if variant == FastDecoupledVariant.BX:
        g1 = R / z2
        b1 = -X / z2
        b2 = -1.0 / X
    elif variant == FastDecoupledVariant.XB:
        g1 = np.zeros(len(idx))
        b1 = -1.0 / X
        b2 = -X / z2
    else:
        raise ValueError(f"Unknown fast decoupled variant {variant}")

    # B1
    rows = np.r_[F, T, F, T]
    cols = np.r_[T, F, F, T]
    data = np.r_[-g1 * shift_sin - b1 * shift_cos,
                 g1 * shift_sin - b1 * shift_cos,
                 b1,
                 b1]
    B1 = csc_matrix((data, (rows, cols)), shape=(nbus, nbus))

    # B2
    data = np.r_[-b2 / tau,
                 -b2 / tau,
                 (b2 + 0.5 * Bc) / (tau * tau),
                 b2 + 0.5 * Bc]
    B2 = csc_matrix((data, (rows, cols)), shape=(nbus, nbus)) + sp.diags(network.bus_data.Bs, format='csc')

    return B1.tocsc(), B2.tocsc()
