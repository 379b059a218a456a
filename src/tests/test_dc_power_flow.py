# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import pytest

from NodalFlowEngine import (PowerNetwork, PowerFlowOptions, SolverType, BusPatch, SingularMatrixError, Logger,
                             DcPowerFlowResults, LogSeverity, solve)
from conftest import THETA_REF, build_three_bus_dc_grid


def test_three_bus_hand_calculation(three_bus_dc_grid):
    """
    Reduced system [[20, -10], [-10, 20]] x [Va2, Va3] = [0, -1]
    gives Va2 = -1/30 and Va3 = -2/30
    """
    results = solve(three_bus_dc_grid, PowerFlowOptions(solver_type=SolverType.DC))

    assert isinstance(results, DcPowerFlowResults)
    assert not results.has_reactive_power
    assert results.converged
    assert results.iterations == 1

    assert np.allclose(results.Va, [0.0, -1.0 / 30.0, -2.0 / 30.0])
    assert np.allclose(results.Pf, [1.0 / 3.0, 1.0 / 3.0, 2.0 / 3.0])
    assert np.allclose(results.Pt, -results.Pf)
    assert np.allclose(results.Pbus, [1.0, 0.0, -1.0])
    assert np.allclose(results.gen_p, [1.0])
    assert results.error < 1e-12


def test_four_bus_reference_angles(four_bus_dc_grid):
    """
    The DC solution reproduces the reference angles, with a phase shifting transformer
    """
    results = solve(four_bus_dc_grid, PowerFlowOptions(solver_type=SolverType.DC))

    print(results.get_bus_df())

    assert np.allclose(results.Va, THETA_REF, atol=1e-4)

    # flow of the phase shifter
    k = four_bus_dc_grid.get_branch_index("T24")
    b = 1.0 / (0.98 * 0.1)
    assert np.isclose(results.Pf[k], b * (THETA_REF[1] - THETA_REF[3] - 0.03), atol=1e-4)

    # the pv generator keeps its set point, the slack one takes the balance
    gen = four_bus_dc_grid.generator_data
    assert results.gen_p[1] == gen.P[1]
    assert np.isclose(results.gen_p.sum(), four_bus_dc_grid.bus_data.Pd.sum())


def test_slack_angle_offset(three_bus_dc_grid):
    """
    The slack angle shifts every angle and leaves the flows unchanged
    """
    base = solve(three_bus_dc_grid, PowerFlowOptions(solver_type=SolverType.DC))

    three_bus_dc_grid.set_bus_parameters("N1", BusPatch(Va0=0.1))
    shifted = solve(three_bus_dc_grid, PowerFlowOptions(solver_type=SolverType.DC))

    assert np.allclose(shifted.Va, base.Va + 0.1)
    assert np.allclose(shifted.Pf, base.Pf)


def test_shunt_conductance_is_a_load(three_bus_dc_grid):
    """
    The shunt conductance consumes active power at 1 p.u. voltage
    """
    base = solve(three_bus_dc_grid, PowerFlowOptions(solver_type=SolverType.DC))
    three_bus_dc_grid.set_bus_shunt("N2", Gs=0.5)
    results = solve(three_bus_dc_grid, PowerFlowOptions(solver_type=SolverType.DC))

    assert np.isclose(results.gen_p[0], base.gen_p[0] + 0.5)


def test_islanded_grid():
    """
    An island makes the reduced Bbus singular, this must be an error and not NaNs
    """
    grid = build_three_bus_dc_grid()
    grid.set_branch_status("N1-N2", 0)
    grid.set_branch_status("N2-N3", 0)
    logger = Logger()

    with pytest.raises(SingularMatrixError):
        solve(grid, PowerFlowOptions(solver_type=SolverType.DC), logger=logger)

    assert logger.error_count() == 1

    # back in service it solves again
    grid.set_branch_status("N2-N3", 1)
    results = solve(grid, PowerFlowOptions(solver_type=SolverType.DC))
    assert np.all(np.isfinite(results.Va))


def test_missing_slack():
    """
    Without a designated slack the first bus is used, with a warning
    """
    grid = PowerNetwork()
    grid.add_bus("A")
    grid.add_bus("B", Pd=0.2)
    grid.add_branch("AB", "A", "B", X=0.2)

    results = solve(grid, PowerFlowOptions(solver_type=SolverType.DC))

    assert results.slack == 0
    assert np.allclose(results.Va, [0.0, -0.04])
    assert grid.logger.count_type(LogSeverity.Warning) == 1


def test_lossless_ac_matches_dc():
    """
    With no resistance and small angles the AC solution approaches the DC one
    """
    grid = build_three_bus_dc_grid()
    grid.set_bus_demand("N3", Pd=0.05)

    dc = solve(grid, PowerFlowOptions(solver_type=SolverType.DC))
    ac = solve(grid, PowerFlowOptions(solver_type=SolverType.NR))

    assert ac.converged
    assert np.allclose(ac.Va, dc.Va, atol=1e-5)
    assert np.allclose(ac.Sf.real, dc.Pf, atol=1e-5)
    assert np.allclose(ac.Sbus.real, dc.Pbus, atol=1e-5)
