# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from dataclasses import dataclass, asdict
from typing import Dict, Any
from NodalFlowEngine.enumerations import SolverType


@dataclass(frozen=True)
class PowerFlowOptions:
    """
    Power flow options

    :param solver_type: SolverType (NR, FASTDECOUPLED_XB, FASTDECOUPLED_BX, GAUSS or DC)
    :param tolerance: mismatch tolerance (p.u.)
    :param max_iter: maximum number of iterations of the numerical method
    :param control_q: enforce the generators' reactive power limits
    :param max_outer_loop_iter: maximum number of re-solves due to reactive power limits
    """
    solver_type: SolverType = SolverType.NR
    tolerance: float = 1e-8
    max_iter: int = 20
    control_q: bool = False
    max_outer_loop_iter: int = 10

    def __post_init__(self):
        if not isinstance(self.solver_type, SolverType):
            raise ValueError(f"Unknown solver type {self.solver_type}")
        if self.tolerance <= 0:
            raise ValueError(f"The tolerance must be positive, got {self.tolerance}")
        if self.max_iter < 0 or self.max_outer_loop_iter < 0:
            raise ValueError("The iteration limits cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        """
        Options as a dictionary
        :return: dict
        """
        d = asdict(self)
        d['solver_type'] = str(self.solver_type)
        return d
