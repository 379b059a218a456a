# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from typing import List
import numpy as np
from NodalFlowEngine.basic_structures import CxVec, Vec, IntVec, StrVec
from NodalFlowEngine.enumerations import BusMode


class BusData:
    """
    BusData
    """

    def __init__(self, nbus: int = 0):
        """
        Bus data arrays
        :param nbus: number of buses
        """
        self.nbus: int = nbus
        self.names: StrVec = np.empty(nbus, dtype=object)
        self.bus_types: IntVec = np.full(nbus, fill_value=BusMode.PQ_tpe.value, dtype=int)

        # demand
        self.Pd: Vec = np.zeros(nbus, dtype=float)
        self.Qd: Vec = np.zeros(nbus, dtype=float)

        # shunt
        self.Gs: Vec = np.zeros(nbus, dtype=float)
        self.Bs: Vec = np.zeros(nbus, dtype=float)

        # initial voltage guess
        self.Vm0: Vec = np.ones(nbus, dtype=float)
        self.Va0: Vec = np.zeros(nbus, dtype=float)
        self.Vmin: Vec = np.full(nbus, fill_value=0.9, dtype=float)
        self.Vmax: Vec = np.full(nbus, fill_value=1.1, dtype=float)

        # supply: sum of the in-service generators output
        self.Pg: Vec = np.zeros(nbus, dtype=float)
        self.Qg: Vec = np.zeros(nbus, dtype=float)

        # in-service generator indices per bus (sorted)
        self.generators: List[List[int]] = [list() for _ in range(nbus)]

        # branch indices connected per bus (sorted)
        self.branches: List[List[int]] = [list() for _ in range(nbus)]

    def append(self, name: str, bus_type: int, Pd: float, Qd: float, Gs: float, Bs: float,
               Vm0: float, Va0: float, Vmin: float, Vmax: float) -> int:
        """
        Add one bus at the end of the arrays
        :param name: label
        :param bus_type: BusMode value
        :param Pd: active power demand (p.u.)
        :param Qd: reactive power demand (p.u.)
        :param Gs: shunt conductance (p.u.)
        :param Bs: shunt susceptance (p.u.)
        :param Vm0: initial voltage magnitude (p.u.)
        :param Va0: initial voltage angle (rad)
        :param Vmin: minimum voltage magnitude (p.u.)
        :param Vmax: maximum voltage magnitude (p.u.)
        :return: index of the new bus
        """
        idx = self.nbus
        self.names = np.append(self.names, np.array([name], dtype=object))
        self.bus_types = np.append(self.bus_types, int(bus_type))
        self.Pd = np.append(self.Pd, Pd)
        self.Qd = np.append(self.Qd, Qd)
        self.Gs = np.append(self.Gs, Gs)
        self.Bs = np.append(self.Bs, Bs)
        self.Vm0 = np.append(self.Vm0, Vm0)
        self.Va0 = np.append(self.Va0, Va0)
        self.Vmin = np.append(self.Vmin, Vmin)
        self.Vmax = np.append(self.Vmax, Vmax)
        self.Pg = np.append(self.Pg, 0.0)
        self.Qg = np.append(self.Qg, 0.0)
        self.generators.append(list())
        self.branches.append(list())
        self.nbus += 1
        return idx

    def size(self) -> int:
        """
        Get size of the structure
        :return:
        """
        return self.nbus

    @property
    def Sbus(self) -> CxVec:
        """
        Specified power injection per bus (supply - demand)
        :return: complex array
        """
        return (self.Pg - self.Pd) + 1j * (self.Qg - self.Qd)

    def copy(self) -> "BusData":
        """
        Deep copy of this structure
        :return: instance of BusData
        """
        data = BusData(nbus=self.nbus)

        data.names = self.names.copy()
        data.bus_types = self.bus_types.copy()
        data.Pd = self.Pd.copy()
        data.Qd = self.Qd.copy()
        data.Gs = self.Gs.copy()
        data.Bs = self.Bs.copy()
        data.Vm0 = self.Vm0.copy()
        data.Va0 = self.Va0.copy()
        data.Vmin = self.Vmin.copy()
        data.Vmax = self.Vmax.copy()
        data.Pg = self.Pg.copy()
        data.Qg = self.Qg.copy()
        data.generators = [list(g) for g in self.generators]
        data.branches = [list(b) for b in self.branches]

        return data
