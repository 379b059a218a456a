# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from enum import Enum


class BusMode(Enum):
    """
    Bus modes
    """
    PQ_tpe = 1  # control P, Q
    PV_tpe = 2  # Control P, Vm
    Slack_tpe = 3  # Control Vm, Va (slack)

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return BusMode[s]
        except KeyError:
            return s

    @staticmethod
    def as_str(val: int) -> str:
        """
        Get the string representation of the numeric value
        :param val:
        :return:
        """
        if val == 1:
            return "PQ"
        elif val == 2:
            return "PV"
        elif val == 3:
            return "Slack"
        else:
            return ""


class SolverType(Enum):
    """
    Power flow methods available in the engine
    """

    NR = 'Newton Raphson'
    FASTDECOUPLED_XB = 'Fast decoupled XB'
    FASTDECOUPLED_BX = 'Fast decoupled BX'
    GAUSS = 'Gauss-Seidel'
    DC = 'Linear DC'

    def __str__(self) -> str:
        """

        :return:
        """
        return str(self.value)

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return SolverType[s]
        except KeyError:
            return s


class FastDecoupledVariant(Enum):
    """
    Approximations used to build the fast decoupled B1 and B2 matrices
    """
    XB = 'XB'
    BX = 'BX'

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self):
        return str(self)


class SolverState(Enum):
    """
    Life cycle of an iterative power flow solver
    """
    Initialized = 'Initialized'
    Iterating = 'Iterating'
    Converged = 'Converged'
    MaxIterationsExceeded = 'Max iterations exceeded'

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self):
        return str(self)


class PowerFlowResultType(Enum):
    """
    Kind of solved state held by a results object
    """
    AC = 'AC'
    DC = 'DC'

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self):
        return str(self)


class ReactiveLimitViolation(Enum):
    """
    Reactive power limit violation codes reported per generator
    """
    Min = -1
    NoViolation = 0
    Max = 1

    def __str__(self) -> str:
        return self.name

    def __repr__(self):
        return str(self)


class LogSeverity(Enum):
    """
    Severity of a log entry
    """
    Error = 'Error'
    Warning = 'Warning'
    Information = 'Information'
    Divergence = 'Divergence'

    def __str__(self) -> str:
        return self.value

    def __repr__(self):
        return str(self)

    @staticmethod
    def argparse(s):
        """

        :param s:
        :return:
        """
        try:
            return LogSeverity[s]
        except KeyError:
            return s
