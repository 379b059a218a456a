# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from NodalFlowEngine.Simulations.PowerFlow.power_flow_options import PowerFlowOptions
from NodalFlowEngine.Simulations.PowerFlow.power_flow_worker import solve, solve_ac, get_ac_solver
from NodalFlowEngine.Simulations.PowerFlow.power_flow_driver import PowerFlowDriver
from NodalFlowEngine.Simulations.PowerFlow.power_flow_results import (AcPowerFlowResults, DcPowerFlowResults,
                                                                      NumericPowerFlowResults)
