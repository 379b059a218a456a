# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

import numpy as np
import pandas as pd
from typing import Union
from NodalFlowEngine.basic_structures import IntVec, Vec, StrVec, CxVec, ConvergenceReport
from NodalFlowEngine.enumerations import PowerFlowResultType, SolverType, SolverState, BusMode


class NumericPowerFlowResults:
    """
    NumericPowerFlowResults, used to return values from the numerical methods
    """

    def __init__(self,
                 V: CxVec,
                 Scalc: CxVec,
                 norm_f: float,
                 converged: bool,
                 iterations: int,
                 elapsed: float,
                 method: Union[SolverType, None] = None,
                 state: Union[SolverState, None] = None,
                 error_evolution: Union[Vec, None] = None):
        """
        Object to store the results returned by a numeric power flow routine
        :param V: Voltage vector
        :param Scalc: Calculated power vector
        :param norm_f: error
        :param converged: converged?
        :param iterations: number of iterations
        :param elapsed: time elapsed
        :param method: SolverType
        :param state: final SolverState
        :param error_evolution: mismatch error at every iteration
        """
        self.V = V
        self.Scalc = Scalc

        # convergence metrics
        self.converged = converged
        self.norm_f = norm_f
        self.iterations = iterations
        self.elapsed = elapsed
        self.method = method
        self.state = state
        self.error_evolution = error_evolution if error_evolution is not None else np.zeros(0)


class PowerFlowResultsTemplate:
    """
    Members shared by the AC and the DC results.
    Consumers dispatch on :attr:`tpe`, :attr:`has_reactive_power` tells if Q values exist.
    """

    tpe: PowerFlowResultType = None
    has_reactive_power: bool = False

    def __init__(self, bus_names: StrVec, branch_names: StrVec, gen_names: StrVec, bus_types: IntVec):
        """

        :param bus_names: array of bus names
        :param branch_names: array of branch names
        :param gen_names: array of generator names
        :param bus_types: bus types at the end of the simulation
        """
        self.bus_names = bus_names
        self.branch_names = branch_names
        self.gen_names = gen_names
        self.bus_types = bus_types

        self.convergence_reports = ConvergenceReport()

    @property
    def converged(self) -> bool:
        return self.convergence_reports.converged()

    @property
    def error(self) -> float:
        return self.convergence_reports.error()

    @property
    def elapsed(self) -> float:
        return self.convergence_reports.elapsed()

    @property
    def iterations(self) -> int:
        return self.convergence_reports.iterations()

    def get_report_dataframe(self) -> pd.DataFrame:
        """
        Get a DataFrame containing the convergence report.
        :return: DataFrame
        """
        return self.convergence_reports.to_dataframe()

    def get_bus_df(self) -> pd.DataFrame:
        raise NotImplementedError()

    def get_branch_df(self) -> pd.DataFrame:
        raise NotImplementedError()

    def get_generator_df(self) -> pd.DataFrame:
        raise NotImplementedError()


class AcPowerFlowResults(PowerFlowResultsTemplate):
    """
    Solved state of an AC power flow
    """

    tpe = PowerFlowResultType.AC
    has_reactive_power = True

    def __init__(self,
                 bus_names: StrVec,
                 branch_names: StrVec,
                 gen_names: StrVec,
                 bus_types: IntVec,
                 voltage: CxVec,
                 Sbus: CxVec,
                 Sgen: CxVec,
                 Sshunt: CxVec,
                 Ibus: CxVec,
                 Sf: CxVec,
                 St: CxVec,
                 If: CxVec,
                 It: CxVec,
                 Is: CxVec,
                 losses: CxVec,
                 charging: Vec,
                 gen_p: Vec,
                 gen_q: Vec,
                 q_violations: IntVec,
                 slack: int,
                 state: SolverState,
                 error_evolution: Vec):
        """

        :param bus_names: array of bus names
        :param branch_names: array of branch names
        :param gen_names: array of generator names
        :param bus_types: bus types at the end of the simulation
        :param voltage: complex bus voltages
        :param Sbus: calculated power injections
        :param Sgen: power supplied at every bus (injection plus demand)
        :param Sshunt: power consumed by the shunt of every bus
        :param Ibus: current injections
        :param Sf: from power of every branch
        :param St: to power of every branch
        :param If: from current of every branch
        :param It: to current of every branch
        :param Is: series current of every branch
        :param losses: series losses of every branch
        :param charging: reactive power generated by the charging of every branch
        :param gen_p: active power of every generator
        :param gen_q: reactive power of every generator
        :param q_violations: reactive limit violation code of every generator
        :param slack: final slack bus index
        :param state: SolverState of the last run
        :param error_evolution: mismatch error of every iteration of the last run
        """
        PowerFlowResultsTemplate.__init__(self,
                                          bus_names=bus_names,
                                          branch_names=branch_names,
                                          gen_names=gen_names,
                                          bus_types=bus_types)
        self.voltage = voltage
        self.Sbus = Sbus
        self.Sgen = Sgen
        self.Sshunt = Sshunt
        self.Ibus = Ibus

        self.Sf = Sf
        self.St = St
        self.If = If
        self.It = It
        self.Is = Is
        self.losses = losses
        self.charging = charging

        self.gen_p = gen_p
        self.gen_q = gen_q
        self.q_violations = q_violations

        self.slack = slack
        self.state = state
        self.error_evolution = error_evolution

    @property
    def Vm(self) -> Vec:
        return np.abs(self.voltage)

    @property
    def Va(self) -> Vec:
        return np.angle(self.voltage)

    def get_bus_df(self) -> pd.DataFrame:
        """
        Get a DataFrame with the buses results
        :return: DataFrame
        """
        return pd.DataFrame(data={'Vm': np.abs(self.voltage),
                                  'Va': np.angle(self.voltage, deg=True),
                                  'P': self.Sbus.real,
                                  'Q': self.Sbus.imag,
                                  'Pgen': self.Sgen.real,
                                  'Qgen': self.Sgen.imag,
                                  'Pshunt': self.Sshunt.real,
                                  'Qshunt': self.Sshunt.imag,
                                  'I': np.abs(self.Ibus),
                                  'I angle': np.angle(self.Ibus, deg=True),
                                  'Type': [BusMode.as_str(t) for t in self.bus_types]},
                            index=self.bus_names)

    def get_branch_df(self) -> pd.DataFrame:
        """
        Get a DataFrame with the branches results
        :return: DataFrame
        """
        return pd.DataFrame(data={'Pf': self.Sf.real,
                                  'Qf': self.Sf.imag,
                                  'Pt': self.St.real,
                                  'Qt': self.St.imag,
                                  'If': np.abs(self.If),
                                  'It': np.abs(self.It),
                                  'Is': np.abs(self.Is),
                                  "Ploss": self.losses.real,
                                  "Qloss": self.losses.imag,
                                  "Qcharging": self.charging},
                            index=self.branch_names)

    def get_generator_df(self) -> pd.DataFrame:
        """
        Get a DataFrame with the generators results
        :return: DataFrame
        """
        return pd.DataFrame(data={'P': self.gen_p,
                                  'Q': self.gen_q,
                                  'Q limit': self.q_violations},
                            index=self.gen_names)


class DcPowerFlowResults(PowerFlowResultsTemplate):
    """
    Solved state of a DC power flow, there is no voltage magnitude nor reactive power
    """

    tpe = PowerFlowResultType.DC
    has_reactive_power = False

    def __init__(self,
                 bus_names: StrVec,
                 branch_names: StrVec,
                 gen_names: StrVec,
                 bus_types: IntVec,
                 Va: Vec,
                 Pbus: Vec,
                 Pgen: Vec,
                 Pf: Vec,
                 gen_p: Vec,
                 slack: int):
        """

        :param bus_names: array of bus names
        :param branch_names: array of branch names
        :param gen_names: array of generator names
        :param bus_types: bus types
        :param Va: bus voltage angles (rad)
        :param Pbus: active power injections
        :param Pgen: active power supplied at every bus (injection plus demand and shunt conductance)
        :param Pf: from active power of every branch
        :param gen_p: active power of every generator
        :param slack: slack bus index
        """
        PowerFlowResultsTemplate.__init__(self,
                                          bus_names=bus_names,
                                          branch_names=branch_names,
                                          gen_names=gen_names,
                                          bus_types=bus_types)
        self.Va = Va
        self.Pbus = Pbus
        self.Pgen = Pgen
        self.Pf = Pf
        self.gen_p = gen_p
        self.slack = slack

    @property
    def Pt(self) -> Vec:
        return -self.Pf

    @property
    def voltage(self) -> CxVec:
        """
        Unit magnitude voltage with the DC angles
        """
        return np.exp(1j * self.Va)

    def get_bus_df(self) -> pd.DataFrame:
        """
        Get a DataFrame with the buses results
        :return: DataFrame
        """
        return pd.DataFrame(data={'Va': np.rad2deg(self.Va),
                                  'P': self.Pbus,
                                  'Pgen': self.Pgen},
                            index=self.bus_names)

    def get_branch_df(self) -> pd.DataFrame:
        """
        Get a DataFrame with the branches results
        :return: DataFrame
        """
        return pd.DataFrame(data={'Pf': self.Pf,
                                  'Pt': self.Pt},
                            index=self.branch_names)

    def get_generator_df(self) -> pd.DataFrame:
        """
        Get a DataFrame with the generators results
        :return: DataFrame
        """
        return pd.DataFrame(data={'P': self.gen_p},
                            index=self.gen_names)
