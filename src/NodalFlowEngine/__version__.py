# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import datetime
_current_year_ = datetime.datetime.now().year

# do not forget to keep a three-number version!!!
__NodalFlowEngine_VERSION__ = "1.0.0"

about_msg = "NodalFlowEngine v" + str(__NodalFlowEngine_VERSION__) + '\n\n'

about_msg += """
Incremental nodal admittance models and power flow solvers
(Newton-Raphson, fast decoupled, Gauss-Seidel and DC).\n"""

about_msg += """
This program is free software; you can redistribute it and/or
modify it subject to the terms of the Mozilla Public License, v. 2.0.
If a copy of the MPL was not distributed with this file,
You can obtain one at https://mozilla.org/MPL/2.0/.
"""
