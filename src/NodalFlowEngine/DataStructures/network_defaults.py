# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class NetworkDefaults:
    """
    Values used when an element is added without specifying them.
    All values are in per-unit and radians.
    """
    # bus
    Vm0: float = 1.0
    Va0: float = 0.0
    Vmin: float = 0.9
    Vmax: float = 1.1

    # branch
    tap_module: float = 0.0  # 0 means "not set" and is treated as 1
    tap_angle: float = 0.0
    branch_active: int = 1
    angle_min: float = -2.0 * np.pi
    angle_max: float = 2.0 * np.pi

    # generator
    Vset: float = 1.0
    Pmin: float = 0.0
    Pmax: float = np.inf
    Qmin: float = -np.inf
    Qmax: float = np.inf
    generator_active: int = 1
