# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations
import numpy as np
from typing import Union, TYPE_CHECKING

from NodalFlowEngine.enumerations import SolverType, FastDecoupledVariant
from NodalFlowEngine.basic_structures import Logger, ConvergenceReport, CxVec
from NodalFlowEngine.Simulations.PowerFlow.power_flow_options import PowerFlowOptions
from NodalFlowEngine.Simulations.PowerFlow.power_flow_results import (AcPowerFlowResults, DcPowerFlowResults,
                                                                      NumericPowerFlowResults)
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.ac_solver_template import AcSolverTemplate
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.newton_raphson import NewtonRaphsonSolver
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.fast_decoupled import FastDecoupledSolver
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.gauss_seidel import GaussSeidelSolver
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.linearized_power_flow import DcPowerFlowSolver
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.common_functions import (power_flow_post_process,
                                                                                     bus_post_process)
from NodalFlowEngine.Simulations.PowerFlow.NumericalMethods.discrete_controls import (check_reactive_limits,
                                                                                      compute_generator_power,
                                                                                      adjust_angles,
                                                                                      ControlsSnapshot)

if TYPE_CHECKING:  # Only imports the below statements during type checking
    from NodalFlowEngine.DataStructures.power_network import PowerNetwork


def get_ac_solver(network: "PowerNetwork",
                  solver_type: SolverType,
                  V0: Union[CxVec, None] = None,
                  logger: Union[Logger, None] = None) -> AcSolverTemplate:
    """
    Create the AC solver object of the given type
    :param network: PowerNetwork
    :param solver_type: SolverType
    :param V0: optional starting voltage
    :param logger: Logger
    :return: AcSolverTemplate instance
    """
    if solver_type == SolverType.NR:
        return NewtonRaphsonSolver(network=network, V0=V0, logger=logger)

    elif solver_type == SolverType.FASTDECOUPLED_XB:
        return FastDecoupledSolver(network=network, variant=FastDecoupledVariant.XB, V0=V0, logger=logger)

    elif solver_type == SolverType.FASTDECOUPLED_BX:
        return FastDecoupledSolver(network=network, variant=FastDecoupledVariant.BX, V0=V0, logger=logger)

    elif solver_type == SolverType.GAUSS:
        return GaussSeidelSolver(network=network, V0=V0, logger=logger)

    else:
        raise ValueError(f"{solver_type} is not an AC power flow method")


def __add_report(report: ConvergenceReport, solution: NumericPowerFlowResults) -> None:
    report.add(method=solution.method,
               converged=solution.converged,
               error=solution.norm_f,
               elapsed=solution.elapsed,
               iterations=solution.iterations)


def solve_ac(network: "PowerNetwork",
             options: PowerFlowOptions,
             V0: Union[CxVec, None] = None,
             logger: Union[Logger, None] = None) -> AcPowerFlowResults:
    """
    Run an AC power flow, with the reactive power limits outer loop if requested.
    The bus types and generator outputs modified by the outer loop are restored in the network
    at the end; the results hold the final state.
    :param network: PowerNetwork
    :param options: PowerFlowOptions
    :param V0: optional starting voltage
    :param logger: Logger
    :return: AcPowerFlowResults
    """
    logger = logger if logger is not None else Logger()
    report = ConvergenceReport()

    solver = get_ac_solver(network=network, solver_type=options.solver_type, V0=V0, logger=logger)
    solution = solver.solve(tolerance=options.tolerance, max_iter=options.max_iter)
    __add_report(report, solution)

    # the slack could have been moved while initializing, this is the reference from now on
    original_slack = network.slack
    snapshot = ControlsSnapshot(network)

    try:
        q_violations = np.zeros(network.ngen, dtype=int)
        limited = np.zeros(network.ngen, dtype=bool)

        if options.control_q:
            outer_it = 0
            while solution.converged and outer_it < options.max_outer_loop_iter:

                codes = check_reactive_limits(network=network, V=solution.V, logger=logger)
                violated = codes != 0
                if not np.any(violated):
                    break

                q_violations[violated] = codes[violated]
                limited |= violated

                # warm start from the last solution
                solver = get_ac_solver(network=network, solver_type=options.solver_type,
                                       V0=solution.V, logger=logger)
                solution = solver.solve(tolerance=options.tolerance, max_iter=options.max_iter)
                __add_report(report, solution)
                outer_it += 1

            if outer_it == options.max_outer_loop_iter and outer_it > 0:
                logger.add_warning("The reactive power limits loop reached its maximum number of iterations",
                                   value=outer_it, expected_value=options.max_outer_loop_iter)

        V = solution.V
        if network.slack != original_slack:
            V = adjust_angles(network=network, V=V, original_slack=original_slack)

        model = network.get_ac_model()
        Sf, St, If, It, Is, losses, charging = power_flow_post_process(network=network, model=model, V=V)
        Sgen, Sshunt, Ibus = bus_post_process(network=network, model=model, V=V, Sbus=solution.Scalc)
        gen_p, gen_q = compute_generator_power(network=network, Scalc=solution.Scalc)

        # the clamped generators report their limit
        gen_q[limited] = network.generator_data.Q[limited]

        results = AcPowerFlowResults(bus_names=network.bus_data.names.copy(),
                                     branch_names=network.branch_data.names.copy(),
                                     gen_names=network.generator_data.names.copy(),
                                     bus_types=network.bus_data.bus_types.copy(),
                                     voltage=V,
                                     Sbus=solution.Scalc,
                                     Sgen=Sgen,
                                     Sshunt=Sshunt,
                                     Ibus=Ibus,
                                     Sf=Sf,
                                     St=St,
                                     If=If,
                                     It=It,
                                     Is=Is,
                                     losses=losses,
                                     charging=charging,
                                     gen_p=gen_p,
                                     gen_q=gen_q,
                                     q_violations=q_violations,
                                     slack=network.slack,
                                     state=solution.state,
                                     error_evolution=solution.error_evolution)
        results.convergence_reports = report

    finally:
        snapshot.restore(network)

    if not results.converged:
        logger.add_divergence(f"The power flow did not converge after {solution.iterations} iterations",
                              value=solution.norm_f, expected_value=options.tolerance, tol=0.0)

    return results


def solve(network: "PowerNetwork",
          options: Union[PowerFlowOptions, None] = None,
          V0: Union[CxVec, None] = None,
          logger: Union[Logger, None] = None) -> Union[AcPowerFlowResults, DcPowerFlowResults]:
    """
    Power flow entry point
    :param network: PowerNetwork
    :param options: PowerFlowOptions, the defaults are used if None
    :param V0: optional starting voltage (ignored by the DC power flow)
    :param logger: Logger
    :return: AcPowerFlowResults or DcPowerFlowResults depending on the solver type
    """
    options = options if options is not None else PowerFlowOptions()
    logger = logger if logger is not None else Logger()

    if options.solver_type == SolverType.DC:
        return DcPowerFlowSolver(network=network, logger=logger).solve()
    else:
        return solve_ac(network=network, options=options, V0=V0, logger=logger)
