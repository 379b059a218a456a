# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.newton_raphson import NewtonRaphsonSolver
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.fast_decoupled import FastDecoupledSolver
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.gauss_seidel import GaussSeidelSolver
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.linearized_power_flow import DcPowerFlowSolver
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.discrete_controls import (check_reactive_limits,
                                                                                      compute_generator_power,
                                                                                      adjust_angles)
