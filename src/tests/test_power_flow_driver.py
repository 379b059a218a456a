# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import pytest

from NodalFlowEngine import (PowerFlowOptions, PowerFlowDriver, SolverType, BusPatch, AcPowerFlowResults,
                             DcPowerFlowResults, PowerFlowResultType, get_ac_solver, solve)
from conftest import dense_admittance


def test_driver_ac(four_bus_grid):
    driver = PowerFlowDriver(four_bus_grid)
    results = driver.run()

    assert results is driver.results
    assert isinstance(results, AcPowerFlowResults)
    assert results.tpe == PowerFlowResultType.AC
    assert results.has_reactive_power
    assert driver.elapsed >= 0.0
    assert not driver.logger.has_logs()

    bus_df = results.get_bus_df()
    assert list(bus_df.index) == ["B1", "B2", "B3", "B4"]
    assert list(bus_df.columns) == ['Vm', 'Va', 'P', 'Q', 'Pgen', 'Qgen', 'Pshunt', 'Qshunt', 'I', 'I angle', 'Type']
    assert list(bus_df['Type']) == ["Slack", "PV", "PQ", "PQ"]
    assert np.allclose(bus_df['Va'].values, np.rad2deg(results.Va))

    branch_df = results.get_branch_df()
    assert branch_df.shape == (5, 10)
    assert list(branch_df.index) == ["L12", "L13", "L23", "L34", "T24"]

    gen_df = results.get_generator_df()
    assert list(gen_df.index) == ["G1", "G2"]
    assert list(gen_df.columns) == ['P', 'Q', 'Q limit']

    report = results.get_report_dataframe()
    assert report.shape[0] == 1
    assert report['Converged?'].values[0]


def test_driver_dc(four_bus_dc_grid):
    driver = PowerFlowDriver(four_bus_dc_grid, PowerFlowOptions(solver_type=SolverType.DC))
    results = driver.run()

    assert isinstance(results, DcPowerFlowResults)
    assert results.tpe == PowerFlowResultType.DC
    assert list(results.get_bus_df().columns) == ['Va', 'P', 'Pgen']
    assert list(results.get_branch_df().columns) == ['Pf', 'Pt']
    assert list(results.get_generator_df().columns) == ['P']
    assert np.allclose(np.abs(results.voltage), 1.0)


def test_voltage_violations_are_reported(four_bus_grid):
    four_bus_grid.set_bus_parameters("B2", BusPatch(Vmax=1.01))
    four_bus_grid.set_bus_parameters("B4", BusPatch(Vmin=0.975))

    driver = PowerFlowDriver(four_bus_grid)
    driver.run()

    df = driver.logger.to_df()
    assert driver.logger.warning_count() == 2
    assert list(df['Device']) == ["B2", "B4"]
    assert list(df['Message']) == ["Overvoltage", "Undervoltage"]


def test_options_validation():
    with pytest.raises(ValueError):
        PowerFlowOptions(tolerance=0.0)

    with pytest.raises(ValueError):
        PowerFlowOptions(max_iter=-1)

    with pytest.raises(ValueError):
        PowerFlowOptions(max_outer_loop_iter=-2)

    with pytest.raises(ValueError):
        PowerFlowOptions(solver_type="NR")

    options = PowerFlowOptions(solver_type=SolverType.GAUSS, control_q=True)
    d = options.to_dict()
    assert d['solver_type'] == str(SolverType.GAUSS)
    assert d['control_q']
    assert d['max_iter'] == 20


def test_dc_is_not_an_ac_solver(four_bus_grid):
    with pytest.raises(ValueError):
        get_ac_solver(four_bus_grid, SolverType.DC)


def test_bus_supply_shunt_and_current_injections(four_bus_grid):
    """
    The supply minus the demand and the shunt consumption is what the branches take away
    """
    results = solve(four_bus_grid, PowerFlowOptions(tolerance=1e-10))
    bus = four_bus_grid.bus_data
    V = results.voltage
    Sd = bus.Pd + 1j * bus.Qd

    # admittance without the bus shunts
    Ybranches = dense_admittance(four_bus_grid) - np.diag(bus.Gs + 1j * bus.Bs)

    assert np.allclose(results.Sgen - Sd - results.Sshunt, V * np.conj(Ybranches @ V), atol=1e-9)
    assert np.allclose(results.Ibus, dense_admittance(four_bus_grid) @ V)
    assert np.allclose(results.Sbus, V * np.conj(results.Ibus))

    # B4 holds a 0.05 p.u. capacitor
    assert np.isclose(results.Sshunt[3], -0.05j * abs(V[3]) ** 2)
    assert np.allclose(results.Sshunt[:3], 0.0)

    # only the generator buses supply power
    assert np.allclose(results.Sgen[2:], 0.0, atol=1e-9)
    assert np.isclose(results.Sgen[1].real, four_bus_grid.generator_data.P[1])

    df = results.get_bus_df()
    assert np.allclose(df['Pgen'].values, results.Sgen.real)
    assert np.allclose(df['Qshunt'].values, results.Sshunt.imag)
    assert np.allclose(df['I'].values, np.abs(results.Ibus))


def test_branch_series_current(four_bus_grid):
    """
    The series current of a line is the current that produces its series losses
    """
    four_bus_grid.set_branch_status("L23", 0)
    results = solve(four_bus_grid, PowerFlowOptions(tolerance=1e-10))
    V = results.voltage
    br = four_bus_grid.branch_data

    k = four_bus_grid.get_branch_index("L12")
    Is = (V[br.F[k]] - V[br.T[k]]) / (br.R[k] + 1j * br.X[k])
    assert np.isclose(results.Is[k], Is)
    assert np.isclose(results.losses[k], abs(Is) ** 2 * (br.R[k] + 1j * br.X[k]))

    # the series current of an out of service branch is zero
    assert results.Is[four_bus_grid.get_branch_index("L23")] == 0
    assert np.allclose(results.get_branch_df()['Is'].values, np.abs(results.Is))


def test_dc_bus_supply(four_bus_dc_grid):
    """
    The DC supply is the injection plus the demand and the shunt conductance
    """
    four_bus_dc_grid.set_bus_shunt("B3", Gs=0.02)
    results = solve(four_bus_dc_grid, PowerFlowOptions(solver_type=SolverType.DC))
    bus = four_bus_dc_grid.bus_data

    assert np.allclose(results.Pgen, results.Pbus + bus.Pd + bus.Gs)
    assert np.allclose(results.Pgen[1:], bus.Pg[1:], atol=1e-9)
    assert np.isclose(results.Pgen.sum(), (bus.Pd + bus.Gs).sum())
    assert np.allclose(results.get_bus_df()['Pgen'].values, results.Pgen)
