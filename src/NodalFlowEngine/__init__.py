# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from NodalFlowEngine.__version__ import __NodalFlowEngine_VERSION__
from NodalFlowEngine.enumerations import *
from NodalFlowEngine.exceptions import *
from NodalFlowEngine.basic_structures import Logger, ConvergenceReport
from NodalFlowEngine.DataStructures.network_defaults import NetworkDefaults
from NodalFlowEngine.DataStructures.patches import BusPatch, BranchPatch, GeneratorPatch
from NodalFlowEngine.DataStructures.power_network import PowerNetwork
from NodalFlowEngine.Simulations.PowerFlow import *
