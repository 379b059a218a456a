# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

from bisect import insort
from typing import Dict, Hashable, Union, Optional
import numpy as np

from NodalFlowEngine.basic_structures import Logger
from NodalFlowEngine.enumerations import BusMode
from NodalFlowEngine.exceptions import (DuplicateLabelError, UndefinedLabelError, SelfLoopBranchError,
                                        InvalidStatusError, BusTypeError, BranchImpedanceError)
from NodalFlowEngine.DataStructures.bus_data import BusData
from NodalFlowEngine.DataStructures.branch_data import BranchData
from NodalFlowEngine.DataStructures.generator_data import GeneratorData
from NodalFlowEngine.DataStructures.network_defaults import NetworkDefaults
from NodalFlowEngine.DataStructures.patches import BusPatch, BranchPatch, GeneratorPatch
import NodalFlowEngine.Topology.admittance_matrices as adm

Label = Hashable


def check_status(status: int) -> int:
    """
    Validate a status value
    :param status: 0 or 1
    :return: status as int
    """
    if status not in (0, 1):
        raise InvalidStatusError(status=status)
    return int(status)


def _pick(value, default):
    return default if value is None else value


class PowerNetwork:
    """
    Buses, branches and generators stored in dense arrays, addressed by label.

    The admittance models are built on demand and, once built, every mutation that
    affects them is forwarded to the incremental update functions of
    :mod:`NodalFlowEngine.Topology.admittance_matrices`.
    """

    def __init__(self, defaults: NetworkDefaults = NetworkDefaults(), logger: Union[Logger, None] = None):
        """

        :param defaults: NetworkDefaults used when a value is not given
        :param logger: Logger to record the policy conditions
        """
        self.defaults: NetworkDefaults = defaults
        self.logger: Logger = logger if logger is not None else Logger()

        self.bus_data = BusData()
        self.branch_data = BranchData()
        self.generator_data = GeneratorData()

        # label -> index
        self.bus_dict: Dict[Label, int] = dict()
        self.branch_dict: Dict[Label, int] = dict()
        self.generator_dict: Dict[Label, int] = dict()

        # index of the slack bus, -1 while there is none
        self.slack: int = -1

        self._ac_model: Union[adm.AcAdmittanceModel, None] = None
        self._dc_model: Union[adm.DcAdmittanceModel, None] = None

    @property
    def nbus(self) -> int:
        return self.bus_data.nbus

    @property
    def nbr(self) -> int:
        return self.branch_data.nelm

    @property
    def ngen(self) -> int:
        return self.generator_data.nelm

    # ------------------------------------------------------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------------------------------------------------------

    def get_bus_index(self, label: Label) -> int:
        """
        Index of a bus
        :param label: bus label
        :return: integer index
        """
        try:
            return self.bus_dict[label]
        except KeyError:
            raise UndefinedLabelError(label=label, device_class="Bus")

    def get_branch_index(self, label: Label) -> int:
        """
        Index of a branch
        :param label: branch label
        :return: integer index
        """
        try:
            return self.branch_dict[label]
        except KeyError:
            raise UndefinedLabelError(label=label, device_class="Branch")

    def get_generator_index(self, label: Label) -> int:
        """
        Index of a generator
        :param label: generator label
        :return: integer index
        """
        try:
            return self.generator_dict[label]
        except KeyError:
            raise UndefinedLabelError(label=label, device_class="Generator")

    # ------------------------------------------------------------------------------------------------------------------
    # Admittance models
    # ------------------------------------------------------------------------------------------------------------------

    def get_ac_model(self) -> adm.AcAdmittanceModel:
        """
        AC admittance model, built on first use
        :return: AcAdmittanceModel
        """
        if self._ac_model is None:
            self._ac_model = adm.build_ac_model(self)
        return self._ac_model

    def get_dc_model(self) -> adm.DcAdmittanceModel:
        """
        DC admittance model, built on first use
        :return: DcAdmittanceModel
        """
        if self._dc_model is None:
            self._dc_model = adm.build_dc_model(self)
        return self._dc_model

    def has_ac_model(self) -> bool:
        return self._ac_model is not None

    def has_dc_model(self) -> bool:
        return self._dc_model is not None

    def _built_models(self):
        return [m for m in (self._ac_model, self._dc_model) if m is not None]

    def invalidate_models(self) -> None:
        """
        Drop the built admittance models, they are rebuilt on the next request
        """
        self._ac_model = None
        self._dc_model = None

    def _check_branch_values(self, name: Label, R: float, X: float, active: int) -> None:
        adm.check_branch_impedance(name, R, X)
        if active and X == 0.0 and self._dc_model is not None:
            raise BranchImpedanceError(label=name, message="The DC model requires a non-zero branch reactance")

    # ------------------------------------------------------------------------------------------------------------------
    # Buses
    # ------------------------------------------------------------------------------------------------------------------

    def add_bus(self, label: Label,
                bus_type: Union[BusMode, int] = BusMode.PQ_tpe,
                Pd: float = 0.0,
                Qd: float = 0.0,
                Gs: float = 0.0,
                Bs: float = 0.0,
                Vm0: Optional[float] = None,
                Va0: Optional[float] = None,
                Vmin: Optional[float] = None,
                Vmax: Optional[float] = None) -> int:
        """
        Add a bus
        :param label: unique label
        :param bus_type: BusMode (or its integer value)
        :param Pd: active power demand (p.u.)
        :param Qd: reactive power demand (p.u.)
        :param Gs: shunt conductance (p.u.)
        :param Bs: shunt susceptance (p.u.)
        :param Vm0: initial voltage magnitude (p.u.)
        :param Va0: initial voltage angle (rad)
        :param Vmin: minimum voltage magnitude (p.u.)
        :param Vmax: maximum voltage magnitude (p.u.)
        :return: bus index
        """
        if label in self.bus_dict:
            raise DuplicateLabelError(label=label, device_class="Bus")

        tpe = bus_type.value if isinstance(bus_type, BusMode) else int(bus_type)
        if tpe not in (BusMode.PQ_tpe.value, BusMode.PV_tpe.value, BusMode.Slack_tpe.value):
            raise BusTypeError(label=label, bus_type=bus_type)

        if tpe == BusMode.Slack_tpe.value and self.slack >= 0:
            raise BusTypeError(label=label, bus_type=bus_type,
                               message=f"The slack bus is already {self.bus_data.names[self.slack]}")

        d = self.defaults
        idx = self.bus_data.append(name=label, bus_type=tpe, Pd=Pd, Qd=Qd, Gs=Gs, Bs=Bs,
                                   Vm0=_pick(Vm0, d.Vm0), Va0=_pick(Va0, d.Va0),
                                   Vmin=_pick(Vmin, d.Vmin), Vmax=_pick(Vmax, d.Vmax))
        self.bus_dict[label] = idx

        if tpe == BusMode.Slack_tpe.value:
            self.slack = idx

        if len(self._built_models()):
            self.invalidate_models()
            self.logger.add_info("The admittance models were discarded because a bus was added",
                                 device=label, device_class="Bus")

        return idx

    def set_bus_shunt(self, label: Label, Gs: Optional[float] = None, Bs: Optional[float] = None) -> None:
        """
        Modify the shunt admittance of a bus
        :param label: bus label
        :param Gs: shunt conductance (p.u.), None to keep it
        :param Bs: shunt susceptance (p.u.), None to keep it
        """
        self.set_bus_parameters(label, BusPatch(Gs=Gs, Bs=Bs))

    def set_bus_demand(self, label: Label, Pd: Optional[float] = None, Qd: Optional[float] = None) -> None:
        """
        Modify the demand of a bus
        :param label: bus label
        :param Pd: active power demand (p.u.), None to keep it
        :param Qd: reactive power demand (p.u.), None to keep it
        """
        self.set_bus_parameters(label, BusPatch(Pd=Pd, Qd=Qd))

    def set_bus_parameters(self, label: Label, patch: BusPatch) -> None:
        """
        Apply a BusPatch
        :param label: bus label
        :param patch: BusPatch
        """
        i = self.get_bus_index(label)

        for name, value in patch.present().items():
            getattr(self.bus_data, name)[i] = value

        if patch.Gs is not None or patch.Bs is not None:
            for model in self._built_models():
                adm.on_shunt_changed(model, self, i)

    def set_bus_type(self, i: int, bus_type: BusMode) -> None:
        """
        Change a bus between PV and PQ, the slack is handled with :meth:`set_slack`
        :param i: bus index
        :param bus_type: BusMode
        """
        if bus_type == BusMode.Slack_tpe:
            raise BusTypeError(label=self.bus_data.names[i], bus_type=bus_type,
                               message="Use set_slack to designate the slack bus")
        if i == self.slack:
            raise BusTypeError(label=self.bus_data.names[i], bus_type=bus_type,
                               message="The slack bus type changes only through set_slack")
        self.bus_data.bus_types[i] = bus_type.value

    def set_slack(self, i: int) -> None:
        """
        Move the slack role to a bus, the former slack becomes PQ
        :param i: bus index
        """
        if self.slack >= 0 and self.slack != i:
            self.bus_data.bus_types[self.slack] = BusMode.PQ_tpe.value
        self.slack = i
        self.bus_data.bus_types[i] = BusMode.Slack_tpe.value

    def ensure_slack(self) -> int:
        """
        Make sure there is a slack bus, the first bus is used if none was designated
        :return: slack bus index
        """
        if self.slack < 0 and self.nbus > 0:
            self.set_slack(0)
            self.logger.add_warning("No slack bus was designated, the first bus is used",
                                    device=self.bus_data.names[0], device_class="Bus")
        return self.slack

    # ------------------------------------------------------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------------------------------------------------------

    def add_branch(self, label: Label,
                   bus_from: Label,
                   bus_to: Label,
                   R: float = 0.0,
                   X: float = 0.0,
                   G: float = 0.0,
                   B: float = 0.0,
                   tap_module: Optional[float] = None,
                   tap_angle: Optional[float] = None,
                   active: Optional[int] = None,
                   angle_min: Optional[float] = None,
                   angle_max: Optional[float] = None) -> int:
        """
        Add a branch (line or transformer)
        :param label: unique label
        :param bus_from: from bus label
        :param bus_to: to bus label
        :param R: series resistance (p.u.)
        :param X: series reactance (p.u.)
        :param G: total charging conductance (p.u.)
        :param B: total charging susceptance (p.u.)
        :param tap_module: off-nominal turns ratio
        :param tap_angle: phase shift angle (rad)
        :param active: status
        :param angle_min: minimum angle difference (rad)
        :param angle_max: maximum angle difference (rad)
        :return: branch index
        """
        if label in self.branch_dict:
            raise DuplicateLabelError(label=label, device_class="Branch")

        f = self.get_bus_index(bus_from)
        t = self.get_bus_index(bus_to)
        if f == t:
            raise SelfLoopBranchError(label=label, bus_label=bus_from)

        d = self.defaults
        status = check_status(_pick(active, d.branch_active))
        self._check_branch_values(label, R, X, status)

        k = self.branch_data.append(name=label, f=f, t=t, R=R, X=X, G=G, B=B,
                                    tap_module=_pick(tap_module, d.tap_module),
                                    tap_angle=_pick(tap_angle, d.tap_angle),
                                    active=status,
                                    angle_min=_pick(angle_min, d.angle_min),
                                    angle_max=_pick(angle_max, d.angle_max))
        self.branch_dict[label] = k
        self.bus_data.branches[f].append(k)
        self.bus_data.branches[t].append(k)

        for model in self._built_models():
            adm.on_branch_added(model, self, k)

        return k

    def set_branch_status(self, label: Label, status: int) -> None:
        """
        Switch a branch in or out of service
        :param label: branch label
        :param status: 1 in service, 0 out of service
        """
        k = self.get_branch_index(label)
        status = check_status(status)

        if self.branch_data.active[k] == status:
            return

        if status:
            self._check_branch_values(label, self.branch_data.R[k], self.branch_data.X[k], status)

        self.branch_data.active[k] = status

        for model in self._built_models():
            adm.on_branch_status_changed(model, self, k)

    def set_branch_parameters(self, label: Label, patch: BranchPatch) -> None:
        """
        Apply a BranchPatch
        :param label: branch label
        :param patch: BranchPatch
        """
        k = self.get_branch_index(label)
        br = self.branch_data

        R = _pick(patch.R, br.R[k])
        X = _pick(patch.X, br.X[k])
        self._check_branch_values(label, R, X, br.active[k])

        for name, value in patch.present().items():
            getattr(br, name)[k] = value

        if patch.touches_admittance():
            for model in self._built_models():
                adm.on_branch_parameters_changed(model, self, k)

    # ------------------------------------------------------------------------------------------------------------------
    # Generators
    # ------------------------------------------------------------------------------------------------------------------

    def update_bus_supply(self, i: int, reclassify: bool = True) -> None:
        """
        Re-accumulate the supply of a bus from its in-service generators and reclassify it
        :param i: bus index
        :param reclassify: set the bus type from the generator count (the slack is kept)
        """
        gen = self.generator_data
        self.bus_data.Pg[i] = 0.0
        self.bus_data.Qg[i] = 0.0
        for g in self.bus_data.generators[i]:
            self.bus_data.Pg[i] += gen.P[g]
            self.bus_data.Qg[i] += gen.Q[g]

        if reclassify and self.bus_data.bus_types[i] != BusMode.Slack_tpe.value:
            if len(self.bus_data.generators[i]) > 0:
                self.bus_data.bus_types[i] = BusMode.PV_tpe.value
            else:
                self.bus_data.bus_types[i] = BusMode.PQ_tpe.value

    def update_all_bus_supply(self) -> None:
        """
        Re-accumulate the supply of every bus, the bus types are not changed
        """
        Pg, Qg = self.generator_data.get_injections_per_bus(self.nbus)
        self.bus_data.Pg[:] = Pg
        self.bus_data.Qg[:] = Qg

    def add_generator(self, label: Label,
                      bus: Label,
                      P: float = 0.0,
                      Q: float = 0.0,
                      Vset: Optional[float] = None,
                      Pmin: Optional[float] = None,
                      Pmax: Optional[float] = None,
                      Qmin: Optional[float] = None,
                      Qmax: Optional[float] = None,
                      active: Optional[int] = None) -> int:
        """
        Add a generator
        :param label: unique label
        :param bus: host bus label
        :param P: active power (p.u.)
        :param Q: reactive power (p.u.)
        :param Vset: voltage magnitude set point (p.u.)
        :param Pmin: minimum active power (p.u.)
        :param Pmax: maximum active power (p.u.)
        :param Qmin: minimum reactive power (p.u.)
        :param Qmax: maximum reactive power (p.u.)
        :param active: status
        :return: generator index
        """
        if label in self.generator_dict:
            raise DuplicateLabelError(label=label, device_class="Generator")

        i = self.get_bus_index(bus)
        d = self.defaults
        status = check_status(_pick(active, d.generator_active))

        g = self.generator_data.append(name=label, bus_idx=i, P=P, Q=Q,
                                       Vset=_pick(Vset, d.Vset),
                                       Pmin=_pick(Pmin, d.Pmin), Pmax=_pick(Pmax, d.Pmax),
                                       Qmin=_pick(Qmin, d.Qmin), Qmax=_pick(Qmax, d.Qmax),
                                       active=status)
        self.generator_dict[label] = g

        if status:
            insort(self.bus_data.generators[i], g)
            self.update_bus_supply(i)

        return g

    def set_generator_output(self, label: Label, patch: GeneratorPatch) -> None:
        """
        Apply a GeneratorPatch
        :param label: generator label
        :param patch: GeneratorPatch
        """
        g = self.get_generator_index(label)
        gen = self.generator_data

        for name, value in patch.present().items():
            getattr(gen, name)[g] = value

        if gen.active[g] and (patch.P is not None or patch.Q is not None):
            self.update_bus_supply(gen.bus_idx[g])

    def set_generator_status(self, label: Label, status: int) -> None:
        """
        Switch a generator in or out of service
        :param label: generator label
        :param status: 1 in service, 0 out of service
        """
        g = self.get_generator_index(label)
        status = check_status(status)
        gen = self.generator_data

        if gen.active[g] == status:
            return

        gen.active[g] = status
        i = gen.bus_idx[g]
        if status:
            insort(self.bus_data.generators[i], g)
        else:
            self.bus_data.generators[i].remove(g)
        self.update_bus_supply(i)

    def get_voltage_set_points(self) -> np.ndarray:
        """
        Magnitude set point per bus, taken from the first in-service generator, NaN where there is none
        :return: array
        """
        vset = np.full(self.nbus, np.nan)
        for i, gens in enumerate(self.bus_data.generators):
            if len(gens):
                vset[i] = self.generator_data.Vset[gens[0]]
        return vset

    # ------------------------------------------------------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------------------------------------------------------

    def copy(self) -> "PowerNetwork":
        """
        Deep copy of the network data, the admittance models are not copied
        :return: PowerNetwork
        """
        cpy = PowerNetwork(defaults=self.defaults, logger=Logger())
        cpy.bus_data = self.bus_data.copy()
        cpy.branch_data = self.branch_data.copy()
        cpy.generator_data = self.generator_data.copy()
        cpy.bus_dict = dict(self.bus_dict)
        cpy.branch_dict = dict(self.branch_dict)
        cpy.generator_dict = dict(self.generator_dict)
        cpy.slack = self.slack
        return cpy

    def __str__(self):
        return f"PowerNetwork ({self.nbus} buses, {self.nbr} branches, {self.ngen} generators)"
