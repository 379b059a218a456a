# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
from NodalFlowEngine.basic_structures import Vec, IntVec, StrVec


class BranchData:
    """
    Unified pi-model branch data (lines and transformers)
    """

    def __init__(self, nelm: int = 0):
        """
        Branch data arrays
        :param nelm: number of branches
        """
        self.nelm: int = nelm
        self.names: StrVec = np.empty(nelm, dtype=object)
        self.active: IntVec = np.ones(nelm, dtype=int)

        self.F: IntVec = np.zeros(nelm, dtype=int)
        self.T: IntVec = np.zeros(nelm, dtype=int)

        self.R: Vec = np.zeros(nelm, dtype=float)
        self.X: Vec = np.zeros(nelm, dtype=float)
        self.G: Vec = np.zeros(nelm, dtype=float)
        self.B: Vec = np.zeros(nelm, dtype=float)

        # tap_module = 0 means "not set", it is treated as 1
        self.tap_module: Vec = np.zeros(nelm, dtype=float)
        self.tap_angle: Vec = np.zeros(nelm, dtype=float)

        self.angle_min: Vec = np.full(nelm, fill_value=-2.0 * np.pi, dtype=float)
        self.angle_max: Vec = np.full(nelm, fill_value=2.0 * np.pi, dtype=float)

    def append(self, name: str, f: int, t: int, R: float, X: float, G: float, B: float,
               tap_module: float, tap_angle: float, active: int,
               angle_min: float, angle_max: float) -> int:
        """
        Add one branch at the end of the arrays
        :param name: label
        :param f: from bus index
        :param t: to bus index
        :param R: series resistance (p.u.)
        :param X: series reactance (p.u.)
        :param G: total charging conductance (p.u.)
        :param B: total charging susceptance (p.u.)
        :param tap_module: off-nominal turns ratio (0 means unset)
        :param tap_angle: phase shift (rad)
        :param active: 1 in service, 0 out of service
        :param angle_min: minimum voltage angle difference (rad)
        :param angle_max: maximum voltage angle difference (rad)
        :return: index of the new branch
        """
        idx = self.nelm
        self.names = np.append(self.names, np.array([name], dtype=object))
        self.active = np.append(self.active, int(active))
        self.F = np.append(self.F, int(f))
        self.T = np.append(self.T, int(t))
        self.R = np.append(self.R, R)
        self.X = np.append(self.X, X)
        self.G = np.append(self.G, G)
        self.B = np.append(self.B, B)
        self.tap_module = np.append(self.tap_module, tap_module)
        self.tap_angle = np.append(self.tap_angle, tap_angle)
        self.angle_min = np.append(self.angle_min, angle_min)
        self.angle_max = np.append(self.angle_max, angle_max)
        self.nelm += 1
        return idx

    def size(self) -> int:
        """
        Get size of the structure
        :return:
        """
        return self.nelm

    def get_effective_tap_module(self) -> Vec:
        """
        Turns ratio with the unset values replaced by 1
        :return: array
        """
        return np.where(self.tap_module == 0.0, 1.0, self.tap_module)

    def copy(self) -> "BranchData":
        """
        Deep copy of this structure
        :return: instance of BranchData
        """
        data = BranchData(nelm=self.nelm)

        data.names = self.names.copy()
        data.active = self.active.copy()
        data.F = self.F.copy()
        data.T = self.T.copy()
        data.R = self.R.copy()
        data.X = self.X.copy()
        data.G = self.G.copy()
        data.B = self.B.copy()
        data.tap_module = self.tap_module.copy()
        data.tap_angle = self.tap_angle.copy()
        data.angle_min = self.angle_min.copy()
        data.angle_max = self.angle_max.copy()

        return data
