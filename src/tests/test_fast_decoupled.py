# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
import numpy as np
import pytest

from NodalFlowEngine import (PowerFlowOptions, SolverType, FastDecoupledVariant, ModelChangedError, BranchPatch,
                             solve)
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods import FastDecoupledSolver
from conftest import VM_REF, VA_REF


@pytest.mark.parametrize("solver_type", [SolverType.FASTDECOUPLED_XB, SolverType.FASTDECOUPLED_BX])
def test_reference_solution(four_bus_grid, solver_type):
    """
    Both variants converge to the same voltage as Newton-Raphson
    """
    options = PowerFlowOptions(solver_type=solver_type, tolerance=1e-10, max_iter=100)
    results = solve(four_bus_grid, options)

    assert results.converged
    assert results.convergence_reports.methods_[0] == solver_type
    assert np.allclose(results.Vm, VM_REF, atol=1e-6)
    assert np.allclose(results.Va, VA_REF, atol=1e-6)


@pytest.mark.parametrize("variant", [FastDecoupledVariant.XB, FastDecoupledVariant.BX])
def test_factorizations_are_reused(four_bus_grid, variant):
    """
    B1 and B2 are factorized once and stay the same along the iterations
    """
    solver = FastDecoupledSolver(four_bus_grid, variant=variant)

    B1 = solver.B1.copy()
    B2 = solver.B2.copy()
    lu1 = solver.B1_factor
    lu2 = solver.B2_factor

    solution = solver.solve(tolerance=1e-8, max_iter=100)

    assert solution.converged
    assert solution.iterations > 1
    assert solver.B1_factor is lu1
    assert solver.B2_factor is lu2
    assert np.array_equal(solver.B1.toarray(), B1.toarray())
    assert np.array_equal(solver.B2.toarray(), B2.toarray())

    # B1 spans the pv and pq buses, B2 the pq buses
    assert B1.shape == (3, 3)
    assert B2.shape == (2, 2)


def test_topology_change_invalidates_the_solver(four_bus_grid):
    solver = FastDecoupledSolver(four_bus_grid, variant=FastDecoupledVariant.XB)
    four_bus_grid.set_branch_parameters("L12", BranchPatch(X=0.06))

    with pytest.raises(ModelChangedError):
        solver.solve(max_iter=100)

    # a new solver takes the change into account
    solver = FastDecoupledSolver(four_bus_grid, variant=FastDecoupledVariant.XB)
    assert solver.solve(tolerance=1e-8, max_iter=100).converged


def test_warm_start_from_newton_raphson(four_bus_grid):
    """
    A solution transferred from another method is already converged
    """
    nr = solve(four_bus_grid, PowerFlowOptions(solver_type=SolverType.NR, tolerance=1e-10))
    solver = FastDecoupledSolver(four_bus_grid, variant=FastDecoupledVariant.BX, V0=nr.voltage)
    solution = solver.solve(tolerance=1e-8)

    assert solution.converged
    assert solution.iterations == 0
