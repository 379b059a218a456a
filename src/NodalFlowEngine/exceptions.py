# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0


class NetworkConfigurationError(Exception):
    """Base class for the errors raised while building or mutating a network."""
    pass


class DuplicateLabelError(NetworkConfigurationError):
    """Exception raised when an element label is already in use."""
    def __init__(self, label, device_class="", message="The label is already in use"):
        self.label = label
        self.device_class = device_class
        self.message = f"{message}: {device_class} {label}"
        super().__init__(self.message)


class UndefinedLabelError(NetworkConfigurationError, KeyError):
    """Exception raised when a label does not refer to any element."""
    def __init__(self, label, device_class="", message="The label does not exist"):
        self.label = label
        self.device_class = device_class
        self.message = f"{message}: {device_class} {label}"
        super().__init__(self.message)

    def __str__(self):
        return self.message


class BranchImpedanceError(NetworkConfigurationError):
    """Exception raised for a branch whose impedance cannot be inverted."""
    def __init__(self, label, message="The branch resistance and reactance cannot be both zero"):
        self.label = label
        self.message = f"{message}: Branch {label}"
        super().__init__(self.message)


class SelfLoopBranchError(NetworkConfigurationError):
    """Exception raised for a branch connecting a bus to itself."""
    def __init__(self, label, bus_label, message="The branch from and to buses must differ"):
        self.label = label
        self.bus_label = bus_label
        self.message = f"{message}: Branch {label} at bus {bus_label}"
        super().__init__(self.message)


class InvalidStatusError(NetworkConfigurationError):
    """Exception raised for a status value other than 0 or 1."""
    def __init__(self, status, message="The status must be 0 (out of service) or 1 (in service)"):
        self.status = status
        self.message = f"{message}, got {status}"
        super().__init__(self.message)


class PowerFlowStructuralError(Exception):
    """Base class for the errors that make a power flow unsolvable."""
    pass


class SingularMatrixError(PowerFlowStructuralError):
    """Exception raised when the matrix to factorize is singular (i.e. islanded grid)."""
    def __init__(self, matrix_name="", message="The matrix is singular, the grid may be islanded"):
        self.matrix_name = matrix_name
        self.message = f"{message}: {matrix_name}" if matrix_name else message
        super().__init__(self.message)


class SlackBusError(PowerFlowStructuralError):
    """Exception raised when no bus can take the slack role."""
    def __init__(self, message="No bus with an in-service generator is available to become the slack bus"):
        self.message = message
        super().__init__(self.message)


class ModelChangedError(PowerFlowStructuralError):
    """Exception raised when a solver is reused after the admittance model was modified."""
    def __init__(self, message="The admittance model changed after the solver was initialized, "
                               "create a new solver instance"):
        self.message = message
        super().__init__(self.message)


class BusTypeError(NetworkConfigurationError):
    """Exception raised for an invalid bus type or a second slack bus."""
    def __init__(self, label, bus_type, message="Invalid bus type"):
        self.label = label
        self.bus_type = bus_type
        self.message = f"{message}: Bus {label} type {bus_type}"
        super().__init__(self.message)
