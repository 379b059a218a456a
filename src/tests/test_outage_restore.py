# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import pytest

from NodalFlowEngine import PowerFlowOptions, SolverType, solve


@pytest.mark.parametrize("solver_type", [SolverType.NR,
                                         SolverType.FASTDECOUPLED_XB,
                                         SolverType.FASTDECOUPLED_BX,
                                         SolverType.GAUSS,
                                         SolverType.DC])
def test_outage_then_restore_reproduces_the_solution(four_bus_grid, solver_type):
    """
    Solving, taking a branch out, solving, putting it back and solving again
    must give exactly the first solution
    """
    options = PowerFlowOptions(solver_type=solver_type, tolerance=1e-9, max_iter=5000)

    before = solve(four_bus_grid, options)

    four_bus_grid.set_branch_status("L23", 0)
    during = solve(four_bus_grid, options)

    four_bus_grid.set_branch_status("L23", 1)
    after = solve(four_bus_grid, options)

    assert before.converged and during.converged and after.converged
    assert not np.allclose(before.voltage, during.voltage)
    assert np.array_equal(before.voltage, after.voltage)
    assert before.iterations == after.iterations


def test_contingency_loop(four_bus_grid):
    """
    Every single branch outage is solved on the same network object
    """
    options = PowerFlowOptions(tolerance=1e-9)
    base = solve(four_bus_grid, options)
    model = four_bus_grid.get_ac_model()

    flows = dict()
    for label in four_bus_grid.branch_dict.keys():
        four_bus_grid.set_branch_status(label, 0)
        results = solve(four_bus_grid, options)
        four_bus_grid.set_branch_status(label, 1)

        k = four_bus_grid.get_branch_index(label)
        assert results.converged
        assert results.Sf[k] == 0
        flows[label] = results.Sf

    assert four_bus_grid.get_ac_model() is model
    assert len(flows) == four_bus_grid.nbr
    assert np.array_equal(solve(four_bus_grid, options).voltage, base.voltage)
