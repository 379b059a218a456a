# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import pytest

from NodalFlowEngine import PowerFlowOptions, SolverType, SingularMatrixError, Logger, solve
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods import GaussSeidelSolver, NewtonRaphsonSolver
from conftest import VM_REF, VA_REF, build_four_bus_grid


def test_reference_solution(four_bus_grid):
    """
    Gauss-Seidel reaches the reference voltage, with many more iterations than Newton-Raphson
    """
    options = PowerFlowOptions(solver_type=SolverType.GAUSS, tolerance=1e-10, max_iter=5000)
    results = solve(four_bus_grid, options)

    nr = NewtonRaphsonSolver(four_bus_grid).solve(tolerance=1e-10)

    assert results.converged
    assert np.allclose(results.Vm, VM_REF, atol=1e-6)
    assert np.allclose(results.Va, VA_REF, atol=1e-6)
    assert results.iterations > nr.iterations


def test_pv_magnitude_is_held(four_bus_grid):
    """
    The pv buses keep their set point along the iterations
    """
    solver = GaussSeidelSolver(four_bus_grid)
    solution = solver.solve(tolerance=1e-6, max_iter=3)

    assert not solution.converged
    assert np.isclose(np.abs(solution.V[1]), VM_REF[1], atol=1e-12)
    assert np.isclose(np.abs(solution.V[0]), VM_REF[0], atol=1e-12)
    assert np.angle(solution.V[0]) == 0.0


def test_zero_diagonal():
    """
    A bus without any admittance cannot be updated
    """
    grid = build_four_bus_grid()
    grid.add_bus("B5", Pd=0.1)
    logger = Logger()

    with pytest.raises(SingularMatrixError):
        GaussSeidelSolver(grid, logger=logger)

    assert logger.error_count() == 1
