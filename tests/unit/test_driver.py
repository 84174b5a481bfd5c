# File: tests/unit/test_driver.py
"""
Tests of the optimization driver and the command line entry point

Runs are kept short (few iterations or evaluations); convergence of the
full design problem is not checked here.
"""

import pytest
import sys
from multiprocessing import Pool
from pathlib import Path
from unittest.mock import Mock, patch

import numpy as np
import pandas as pd
import yaml

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from axial_turbine.core import FixedParameters
from axial_turbine.analysis import ConstraintSet, ConstraintSpec
from axial_turbine.optimization import (
    ExitStatus,
    OptimizationProblem,
    OptimizationResult,
    OptimizerSettings,
    constraint_violation,
    solve,
)
from axial_turbine.components.turbine import InfeasibleResult
from axial_turbine.config import DATA_DIR
from axial_turbine.optimization.driver import (
    _evaluate_point,
    _slsqp_status,
    _trust_constr_status,
    finite_difference_jacobians,
)
from axial_turbine.run import main


@pytest.fixture(scope="module")
def params():
    return FixedParameters.create(
        'HEOS::R125', p0_in=36.18e5, p_out=15.69e5, T0_in=428.15, isentropic_power=250e3,
    )


def _problem(params, **settings):
    cs = ConstraintSet({
        'reaction': ConstraintSpec(min=0.1, max=0.9),
        'r_ht': ConstraintSpec(min=0.6, max=0.9),
    })
    return OptimizationProblem.create(params, constraint_set=cs, settings=OptimizerSettings(**settings))


class TestExitStatus:

    def test_success_flags(self):
        assert ExitStatus.FIRST_ORDER_OPTIMAL.success
        assert ExitStatus.SMALL_STEP.success
        assert not ExitStatus.ITERATION_LIMIT.success
        assert not ExitStatus.INFEASIBLE.success

    @pytest.mark.parametrize("status, feasible, expected", [
        (0, True, ExitStatus.FIRST_ORDER_OPTIMAL),
        (0, False, ExitStatus.INFEASIBLE),
        (9, True, ExitStatus.ITERATION_LIMIT),
        (8, True, ExitStatus.SMALL_STEP),
        (4, True, ExitStatus.INFEASIBLE),
    ])
    def test_slsqp_mapping(self, status, feasible, expected):
        assert _slsqp_status(status, feasible) is expected

    @pytest.mark.parametrize("status, feasible, expected", [
        (0, True, ExitStatus.ITERATION_LIMIT),
        (1, True, ExitStatus.FIRST_ORDER_OPTIMAL),
        (2, True, ExitStatus.SMALL_STEP),
        (1, False, ExitStatus.INFEASIBLE),
        (3, True, ExitStatus.ABORTED),
    ])
    def test_trust_constr_mapping(self, status, feasible, expected):
        assert _trust_constr_status(status, feasible) is expected


class TestSolve:

    def test_evaluation_limit(self, params):
        problem = _problem(params, max_function_evals=3)
        result = solve(problem)
        assert isinstance(result, OptimizationResult)
        assert result.exit_status is ExitStatus.ITERATION_LIMIT
        assert result.diagnostics['evaluations'] == 3
        np.testing.assert_array_equal(result.x_opt, problem.x0)
        assert not result.success

    def test_callback_abort(self, params):
        problem = _problem(params, max_iterations=20)
        calls = []

        def stop(iteration, x, f):
            calls.append(iteration)
            return True

        result = solve(problem, callback=stop)
        assert result.exit_status is ExitStatus.ABORTED
        assert calls == [1]
        assert result.diagnostics['iterations'] == 1

    def test_short_run(self, params, capsys):
        problem = _problem(params, max_iterations=2)
        result = solve(problem, verbose=True)
        assert isinstance(result.exit_status, ExitStatus)
        assert result.diagnostics['iterations'] <= 2
        assert result.diagnostics['algorithm'] == 'sqp'
        assert np.all(result.x_opt >= problem.lower_bounds - 1e-9)
        assert np.all(result.x_opt <= problem.upper_bounds + 1e-9)
        assert np.isfinite(result.f_opt)
        assert "Iteration" in capsys.readouterr().out

    def test_constraint_violation(self, params):
        problem = _problem(params)
        violation = constraint_violation(problem, problem.x0)
        assert np.isfinite(violation)
        assert violation >= 0


    def test_interior_point_keeps_iterating_while_infeasible(self, params):
        problem = _problem(params, algorithm='interior-point', max_iterations=3,
                           optimality_tolerance=1.0)
        result = solve(problem)
        assert result.exit_status is ExitStatus.ITERATION_LIMIT
        assert "gtol" not in str(result.diagnostics['message'])
        assert result.diagnostics['algorithm'] == 'interior-point'

    @patch('axial_turbine.optimization.driver.minimize')
    def test_interior_point_tolerance(self, mock_minimize, params):
        problem = _problem(params, algorithm='interior-point', optimality_tolerance=1.0,
                           constraint_tolerance=1e-5)
        mock_minimize.return_value = Mock(x=problem.x0, status=1, message="done")
        solve(problem)
        options = mock_minimize.call_args.kwargs['options']
        assert options['gtol'] == 1e-5


class TestParallelGradients:

    @pytest.fixture(scope="class")
    def problem(self, params):
        return _problem(params)

    @pytest.fixture(scope="class")
    def values(self, problem):
        return _evaluate_point((problem.x0, problem.params, problem.constraint_set))

    def test_parallel_matches_serial(self, problem, values):
        serial = finite_difference_jacobians(problem, problem.x0, values)
        with Pool(2) as pool:
            parallel = finite_difference_jacobians(problem, problem.x0, values, pool)
        for a, b in zip(serial, parallel):
            np.testing.assert_array_equal(a, b)

    def test_shapes(self, problem, values):
        grad, jac_g, jac_h = finite_difference_jacobians(problem, problem.x0, values)
        n = problem.n_variables
        assert grad.shape == (n,)
        assert jac_g.shape == (values[1].size, n)
        assert jac_h.shape == (values[2].size, n)
        assert np.all(np.isfinite(grad))

    @patch('axial_turbine.optimization.driver._evaluate_point')
    def test_steps_stay_within_bounds(self, mock_point, problem, values):
        mock_point.return_value = values
        x = problem.upper_bounds.copy()
        finite_difference_jacobians(problem, x, values)
        for call in mock_point.call_args_list:
            point = call.args[0][0]
            assert np.all(point <= problem.upper_bounds)

    def test_solve_with_pool(self, params):
        problem = _problem(params, use_parallel=True, n_workers=2, max_iterations=1)
        result = solve(problem)
        assert isinstance(result, OptimizationResult)
        # one gradient costs one evaluation per variable
        assert result.diagnostics['evaluations'] >= problem.n_variables + 1
        assert np.isfinite(result.f_opt)


@pytest.fixture
def case_file(tmp_path):
    """Bundled case with the isentropic diffuser"""
    with open(Path(DATA_DIR) / "ex2_R125.yml") as f:
        data = yaml.safe_load(f)
    data['fixed']['diffuser_model'] = 'isentropic'
    path = tmp_path / "case.yml"
    with open(path, "w") as f:
        yaml.safe_dump(data, f)
    return str(path)


class TestCommandLine:

    def test_evaluate_only(self, case_file, capsys):
        code = main([case_file, '--evaluate-only'])
        out = capsys.readouterr().out
        assert code == 0
        assert "INITIAL GUESS" in out
        assert "HEOS::R125" in out
        assert "Total-to-static" in out

    def test_csv_export(self, case_file, tmp_path, capsys):
        target = tmp_path / "cascades.csv"
        code = main([case_file, '--evaluate-only', '--csv', str(target)])
        assert code == 0
        table = pd.read_csv(target)
        assert list(table['kind']) == ['stator', 'rotor']
        assert "Results saved" in capsys.readouterr().out

    @patch('axial_turbine.run.evaluate')
    def test_infeasible_initial_guess(self, mock_evaluate, case_file, tmp_path, capsys):
        mock_evaluate.return_value = InfeasibleResult(
            reason="HS flash failed", component="cascade 1", penalty=18.0)
        target = tmp_path / "cascades.csv"
        code = main([case_file, '--evaluate-only', '--csv', str(target)])
        assert code == 1
        assert "Infeasible at cascade 1" in capsys.readouterr().out
        assert not target.exists()
