# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
from NodalFlowEngine.basic_structures import Vec, IntVec, StrVec
from NodalFlowEngine.Topology.topology import sum_per_bus


class GeneratorData:
    """
    GeneratorData
    """

    def __init__(self, nelm: int = 0):
        """
        Generator data arrays
        :param nelm: number of generators
        """
        self.nelm: int = nelm
        self.names: StrVec = np.empty(nelm, dtype=object)
        self.active: IntVec = np.ones(nelm, dtype=int)
        self.bus_idx: IntVec = np.zeros(nelm, dtype=int)

        self.P: Vec = np.zeros(nelm, dtype=float)
        self.Q: Vec = np.zeros(nelm, dtype=float)
        self.Vset: Vec = np.ones(nelm, dtype=float)

        self.Pmin: Vec = np.zeros(nelm, dtype=float)
        self.Pmax: Vec = np.zeros(nelm, dtype=float)
        self.Qmin: Vec = np.full(nelm, fill_value=-np.inf, dtype=float)
        self.Qmax: Vec = np.full(nelm, fill_value=np.inf, dtype=float)

    def append(self, name: str, bus_idx: int, P: float, Q: float, Vset: float,
               Pmin: float, Pmax: float, Qmin: float, Qmax: float, active: int) -> int:
        """
        Add one generator at the end of the arrays
        :param name: label
        :param bus_idx: host bus index
        :param P: active power output (p.u.)
        :param Q: reactive power output (p.u.)
        :param Vset: voltage magnitude set point (p.u.)
        :param Pmin: minimum active power (p.u.)
        :param Pmax: maximum active power (p.u.)
        :param Qmin: minimum reactive power (p.u.), may be -inf
        :param Qmax: maximum reactive power (p.u.), may be inf
        :param active: 1 in service, 0 out of service
        :return: index of the new generator
        """
        idx = self.nelm
        self.names = np.append(self.names, np.array([name], dtype=object))
        self.active = np.append(self.active, int(active))
        self.bus_idx = np.append(self.bus_idx, int(bus_idx))
        self.P = np.append(self.P, P)
        self.Q = np.append(self.Q, Q)
        self.Vset = np.append(self.Vset, Vset)
        self.Pmin = np.append(self.Pmin, Pmin)
        self.Pmax = np.append(self.Pmax, Pmax)
        self.Qmin = np.append(self.Qmin, Qmin)
        self.Qmax = np.append(self.Qmax, Qmax)
        self.nelm += 1
        return idx

    def size(self) -> int:
        """
        Get size of the structure
        :return:
        """
        return self.nelm

    def get_injections_per_bus(self, nbus: int):
        """
        Sum of the in-service generation per bus
        :param nbus: number of buses
        :return: P per bus, Q per bus
        """
        Pbus = sum_per_bus(nbus, self.bus_idx, self.P * self.active)
        Qbus = sum_per_bus(nbus, self.bus_idx, self.Q * self.active)
        return Pbus, Qbus

    def copy(self) -> "GeneratorData":
        """
        Deep copy of this structure
        :return: instance of GeneratorData
        """
        data = GeneratorData(nelm=self.nelm)

        data.names = self.names.copy()
        data.active = self.active.copy()
        data.bus_idx = self.bus_idx.copy()
        data.P = self.P.copy()
        data.Q = self.Q.copy()
        data.Vset = self.Vset.copy()
        data.Pmin = self.Pmin.copy()
        data.Pmax = self.Pmax.copy()
        data.Qmin = self.Qmin.copy()
        data.Qmax = self.Qmax.copy()

        return data
