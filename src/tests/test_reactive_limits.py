# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import pytest

from NodalFlowEngine import (PowerNetwork, PowerFlowOptions, PowerFlowDriver, SolverType, BusMode, Logger,
                             ReactiveLimitViolation, SlackBusError, solve)
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods import compute_generator_power


def limited_pv_grid(Qmax: float = 0.1) -> PowerNetwork:
    """
    The PV bus holds 1.05 p.u. next to a 1.0 p.u. slack, which takes far more than Qmax
    :param Qmax: reactive power limit of the PV generator
    :return: PowerNetwork
    """
    grid = PowerNetwork()
    grid.add_bus("S", bus_type=BusMode.Slack_tpe)
    grid.add_bus("P", bus_type=BusMode.PV_tpe)
    grid.add_bus("L", Pd=1.0, Qd=0.5)
    grid.add_branch("S-P", "S", "P", R=0.01, X=0.1)
    grid.add_branch("P-L", "P", "L", R=0.01, X=0.1)
    grid.add_branch("S-L", "S", "L", R=0.01, X=0.1)
    grid.add_generator("GS", "S", Vset=1.0)
    grid.add_generator("GP", "P", P=0.5, Vset=1.05, Qmin=-0.1, Qmax=Qmax)
    return grid


def saturated_slack_grid() -> PowerNetwork:
    """
    The slack holds 1.05 p.u. with a small reactive power capability
    :return: PowerNetwork
    """
    grid = PowerNetwork()
    grid.add_bus("S", bus_type=BusMode.Slack_tpe)
    grid.add_bus("P", bus_type=BusMode.PV_tpe)
    grid.add_bus("L", Pd=1.0, Qd=0.2)
    grid.add_branch("S-P", "S", "P", R=0.01, X=0.1)
    grid.add_branch("P-L", "P", "L", R=0.01, X=0.1)
    grid.add_branch("S-L", "S", "L", R=0.01, X=0.1)
    grid.add_generator("GS", "S", Vset=1.05, Qmin=-0.05, Qmax=0.05)
    grid.add_generator("GP", "P", P=0.4, Vset=1.0)
    return grid


@pytest.mark.parametrize("solver_type", [SolverType.NR, SolverType.FASTDECOUPLED_XB])
def test_reactive_power_is_clamped(solver_type):
    """
    The generator is reported exactly at Qmax and its bus is solved as PQ
    """
    grid = limited_pv_grid()
    options = PowerFlowOptions(solver_type=solver_type, control_q=True, max_iter=100)
    results = solve(grid, options)

    g = grid.get_generator_index("GP")
    i = grid.get_bus_index("P")

    assert results.converged
    assert results.gen_q[g] == 0.1
    assert results.q_violations[g] == ReactiveLimitViolation.Max.value
    assert results.bus_types[i] == BusMode.PQ_tpe.value
    assert results.Vm[i] < 1.05
    assert np.isclose(results.Sbus.imag[i], 0.1, atol=1e-6)
    assert len(results.convergence_reports.methods_) == 2

    # the network is left as it was
    assert grid.bus_data.bus_types[i] == BusMode.PV_tpe.value
    assert grid.generator_data.Q[g] == 0.0
    assert grid.bus_data.Qg[i] == 0.0
    assert grid.generator_data.P[grid.get_generator_index("GS")] == 0.0


def test_without_control_the_limit_is_exceeded():
    grid = limited_pv_grid()
    driver = PowerFlowDriver(grid, PowerFlowOptions(control_q=False))
    results = driver.run()

    g = grid.get_generator_index("GP")
    assert results.converged
    assert results.gen_q[g] > 0.1
    assert np.isclose(results.Vm[1], 1.05)
    assert results.q_violations[g] == 0
    assert driver.logger.warning_count() == 1


def test_wide_limits_are_not_touched():
    grid = limited_pv_grid(Qmax=10.0)
    results = solve(grid, PowerFlowOptions(control_q=True))

    assert results.converged
    assert np.all(results.q_violations == 0)
    assert len(results.convergence_reports.methods_) == 1
    assert results.bus_types[1] == BusMode.PV_tpe.value


def test_slack_reassignment():
    """
    When the slack generator saturates the first pv bus takes the slack role and
    the angles are referred back to the original slack
    """
    grid = saturated_slack_grid()
    logger = Logger()
    results = solve(grid, PowerFlowOptions(control_q=True), logger=logger)

    s = grid.get_bus_index("S")
    p = grid.get_bus_index("P")
    gs = grid.get_generator_index("GS")

    assert results.converged
    assert results.slack == p
    assert results.bus_types[s] == BusMode.PQ_tpe.value
    assert results.bus_types[p] == BusMode.Slack_tpe.value
    assert results.gen_q[gs] == 0.05
    assert np.isclose(results.Va[s], 0.0, atol=1e-12)
    assert logger.info_count() == 1

    # the former slack keeps the active power it produced at the first solve
    assert np.isclose(results.Sbus.real[s], results.gen_p[gs])

    # the network keeps its original slack
    assert grid.slack == s
    assert grid.bus_data.bus_types[s] == BusMode.Slack_tpe.value
    assert grid.bus_data.bus_types[p] == BusMode.PV_tpe.value


def test_no_replacement_for_the_slack():
    """
    A saturated slack without any pv bus to replace it is a structural error
    """
    grid = saturated_slack_grid()
    grid.set_generator_status("GP", 0)
    logger = Logger()

    with pytest.raises(SlackBusError):
        solve(grid, PowerFlowOptions(control_q=True), logger=logger)

    assert logger.error_count() == 1
    assert grid.slack == 0
    assert grid.bus_data.bus_types[0] == BusMode.Slack_tpe.value


def q_sharing_grid(limits) -> PowerNetwork:
    grid = PowerNetwork()
    grid.add_bus("S", bus_type=BusMode.Slack_tpe)
    grid.add_bus("B")
    grid.add_branch("S-B", "S", "B", X=0.1)
    grid.add_generator("GS", "S")
    for k, (qmin, qmax) in enumerate(limits):
        grid.add_generator(f"G{k}", "B", P=0.1, Qmin=qmin, Qmax=qmax)
    return grid


def test_q_sharing_proportional_to_the_span():
    grid = q_sharing_grid([(-1.0, 1.0), (-3.0, 3.0)])
    _, Q = compute_generator_power(grid, np.array([0.0, 0.2 + 2.0j]))

    assert np.allclose(Q[1:], [0.5, 1.5])


def test_q_sharing_with_infinite_limits():
    """
    The infinite limits are replaced by finite surrogates
    """
    grid = q_sharing_grid([(-np.inf, np.inf), (-1.0, 1.0)])
    P, Q = compute_generator_power(grid, np.array([0.0, 0.2 + 3.0j]))

    assert np.all(np.isfinite(Q))
    assert np.allclose(Q[1:], [2.5, 0.5])
    assert np.isclose(Q[1:].sum(), 3.0)
    assert np.allclose(P[1:], [0.1, 0.1])

    # the result does not depend on the generators' order
    grid = q_sharing_grid([(-1.0, 1.0), (-np.inf, np.inf)])
    _, Q = compute_generator_power(grid, np.array([0.0, 0.2 + 3.0j]))
    assert np.allclose(Q[1:], [0.5, 2.5])


def test_q_sharing_with_opposite_infinities():
    """
    Generators with only infinite limits share equally
    """
    grid = q_sharing_grid([(-np.inf, np.inf), (-np.inf, np.inf)])
    _, Q = compute_generator_power(grid, np.array([0.0, 0.2 + 1.0j]))

    assert np.allclose(Q[1:], [0.5, 0.5])


def test_q_sharing_without_span():
    grid = q_sharing_grid([(0.0, 0.0), (0.0, 0.0)])
    _, Q = compute_generator_power(grid, np.array([0.0, 0.2 + 0.3j]))

    assert np.allclose(Q[1:], [0.15, 0.15])


def test_slack_generators_share_the_active_power():
    """
    The first slack generator takes the balance, the rest keep their set points
    """
    grid = q_sharing_grid([])
    grid.add_generator("GS2", "S", P=0.3)
    P, _ = compute_generator_power(grid, np.array([1.0 + 0.0j, -1.0 + 0.0j]))

    assert np.allclose(P, [0.7, 0.3])
