# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
"""
Partial updates of the network elements.
A field set to None is left untouched when the patch is applied.
"""
from dataclasses import dataclass, fields
from typing import Optional, Dict, Any


@dataclass(frozen=True)
class _Patch:

    def present(self) -> Dict[str, Any]:
        """
        Fields that carry a value
        :return: {field name: value}
        """
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def is_empty(self) -> bool:
        """
        Does this patch change anything?
        :return: bool
        """
        return len(self.present()) == 0


@dataclass(frozen=True)
class BusPatch(_Patch):
    """
    Bus changes
    """
    Pd: Optional[float] = None
    Qd: Optional[float] = None
    Gs: Optional[float] = None
    Bs: Optional[float] = None
    Vm0: Optional[float] = None
    Va0: Optional[float] = None
    Vmin: Optional[float] = None
    Vmax: Optional[float] = None


@dataclass(frozen=True)
class BranchPatch(_Patch):
    """
    Branch changes
    """
    R: Optional[float] = None
    X: Optional[float] = None
    G: Optional[float] = None
    B: Optional[float] = None
    tap_module: Optional[float] = None
    tap_angle: Optional[float] = None
    angle_min: Optional[float] = None
    angle_max: Optional[float] = None

    def touches_admittance(self) -> bool:
        """
        Does the patch modify any value used by the admittance matrices?
        :return: bool
        """
        return any(getattr(self, name) is not None for name in ('R', 'X', 'G', 'B', 'tap_module', 'tap_angle'))


@dataclass(frozen=True)
class GeneratorPatch(_Patch):
    """
    Generator changes
    """
    P: Optional[float] = None
    Q: Optional[float] = None
    Vset: Optional[float] = None
    Pmin: Optional[float] = None
    Pmax: Optional[float] = None
    Qmin: Optional[float] = None
    Qmax: Optional[float] = None
