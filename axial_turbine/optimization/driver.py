# File: axial_turbine/optimization/driver.py
"""
Optimization driver

Solves an OptimizationProblem with scipy.optimize.minimize:
- 'sqp' and 'active-set': SLSQP
- 'interior-point': trust-constr

Objective, inequality and equality constraints come from one turbine
evaluation per design point; the last point is memoized within one solve()
call so that the three callbacks share it. With use_parallel the
finite-difference gradients are evaluated on a multiprocessing pool.
Non-convergence is reported in the result, never raised.
"""

import math
import os
from dataclasses import dataclass, field
from enum import Enum
from multiprocessing import Pool
from typing import Callable, Dict, Optional

import numpy as np
from scipy.optimize import BFGS, Bounds, NonlinearConstraint, minimize

from axial_turbine.analysis.constraints import constraint_count, constraints
from axial_turbine.analysis.objective import equality_constraints, objective
from axial_turbine.components.turbine import evaluate
from axial_turbine.losses.calculator import LossCalculator
from .problem import OptimizationProblem

# Relative step of the forward differences (scipy's 2-point rule)
FD_STEP = np.finfo(float).eps ** 0.5


class ExitStatus(Enum):
    FIRST_ORDER_OPTIMAL = "success-first-order-optimal"
    SMALL_STEP = "success-small-step"
    ITERATION_LIMIT = "iteration-limit"
    ABORTED = "aborted"
    INFEASIBLE = "infeasible"

    @property
    def success(self) -> bool:
        return self in (ExitStatus.FIRST_ORDER_OPTIMAL, ExitStatus.SMALL_STEP)


@dataclass
class OptimizationResult:
    """
    Outcome of solve()

    Attributes:
        x_opt: Final design vector
        f_opt: Objective at x_opt
        exit_status: Termination reason
        diagnostics: Iterations, evaluations, constraint violation, message
        solution: Turbine evaluation at x_opt (TurbineSolution or InfeasibleResult)
    """
    x_opt: np.ndarray
    f_opt: float
    exit_status: ExitStatus
    diagnostics: Dict[str, object] = field(default_factory=dict)
    solution: object = None

    @property
    def success(self) -> bool:
        return self.exit_status.success


class _EvaluationLimit(Exception):
    pass


class _Aborted(Exception):
    pass


def _evaluate_point(args):
    """Objective, inequality and equality values at one point (pool worker)"""
    x, params, constraint_set = args
    result = evaluate(x, params)
    return (
        objective(result, params),
        constraints(result, constraint_set, params.n_stages),
        equality_constraints(result, params),
    )


def finite_difference_jacobians(problem: OptimizationProblem, x, values, pool=None):
    """
    Forward-difference gradient of the objective and Jacobians of the
    inequality and equality constraints

    Args:
        problem: Optimization problem
        x: Design vector
        values: (f, g, h) already evaluated at x
        pool: multiprocessing pool; points are evaluated serially when None

    Returns:
        (grad_f, jac_g, jac_h)

    Steps leaving the upper bound are taken backwards.
    """
    x = np.asarray(x, dtype=float)
    f0, g0, h0 = values
    steps = FD_STEP * np.maximum(1.0, np.abs(x))
    steps = np.where(x + steps > problem.upper_bounds, -steps, steps)
    steps = (x + steps) - x

    points = []
    for i in range(x.size):
        point = x.copy()
        point[i] += steps[i]
        points.append((point, problem.params, problem.constraint_set))
    if pool is None:
        results = [_evaluate_point(p) for p in points]
    else:
        results = pool.map(_evaluate_point, points)

    grad = np.empty(x.size)
    jac_g = np.empty((np.size(g0), x.size))
    jac_h = np.empty((np.size(h0), x.size))
    for i, (f, g, h) in enumerate(results):
        grad[i] = (f - f0) / steps[i]
        jac_g[:, i] = (g - g0) / steps[i]
        jac_h[:, i] = (h - h0) / steps[i]
    return grad, jac_g, jac_h


class _Evaluator:
    """Memoized evaluation of the last design point"""

    def __init__(self, problem: OptimizationProblem, pool=None):
        self.problem = problem
        self.params = problem.params
        self.pool = pool
        self.calculator = LossCalculator(self.params.loss_system)
        self.n_inequality = constraint_count(problem.constraint_set, self.params.n_stages)
        self.n_evaluations = 0
        self._x = None
        self._values = None
        self._jac_x = None
        self._jacobians = None

    def _count(self, n: int):
        if self.n_evaluations + n > self.problem.settings.max_function_evals:
            raise _EvaluationLimit()
        self.n_evaluations += n

    def __call__(self, x):
        x = np.asarray(x, dtype=float)
        if self._x is not None and np.array_equal(x, self._x):
            return self._values

        self._count(1)
        result = evaluate(x, self.params, self.calculator)
        values = (
            objective(result, self.params),
            constraints(result, self.problem.constraint_set, self.params.n_stages),
            equality_constraints(result, self.params),
            result,
        )
        self._x = x.copy()
        self._values = values
        return values

    def jacobians(self, x):
        x = np.asarray(x, dtype=float)
        if self._jac_x is not None and np.array_equal(x, self._jac_x):
            return self._jacobians
        values = self(x)[:3]
        self._count(x.size)
        self._jacobians = finite_difference_jacobians(self.problem, x, values, self.pool)
        self._jac_x = x.copy()
        return self._jacobians

    def f(self, x):
        return self(x)[0]

    def c_ineq(self, x):
        return self(x)[1]

    def c_eq(self, x):
        return self(x)[2]

    def grad_f(self, x):
        return self.jacobians(x)[0]

    def jac_ineq(self, x):
        return self.jacobians(x)[1]

    def jac_eq(self, x):
        return self.jacobians(x)[2]


def constraint_violation(problem: OptimizationProblem, x) -> float:
    """Largest violation of the inequality and equality constraints at x"""
    result = evaluate(x, problem.params)
    g = constraints(result, problem.constraint_set, problem.params.n_stages)
    h = equality_constraints(result, problem.params)
    violation = 0.0
    if g.size:
        violation = max(violation, float(np.max(g)))
    if h.size:
        violation = max(violation, float(np.max(np.abs(h))))
    return violation


def _slsqp_status(status: int, feasible: bool) -> ExitStatus:
    if status == 0:
        return ExitStatus.FIRST_ORDER_OPTIMAL if feasible else ExitStatus.INFEASIBLE
    if status in (3, 9):
        return ExitStatus.ITERATION_LIMIT
    if status == 8 and feasible:
        return ExitStatus.SMALL_STEP
    return ExitStatus.INFEASIBLE


def _trust_constr_status(status: int, feasible: bool) -> ExitStatus:
    if status == 0:
        return ExitStatus.ITERATION_LIMIT
    if status == 3:
        return ExitStatus.ABORTED
    if not feasible:
        return ExitStatus.INFEASIBLE
    if status == 1:
        return ExitStatus.FIRST_ORDER_OPTIMAL
    return ExitStatus.SMALL_STEP


def solve(problem: OptimizationProblem,
          callback: Optional[Callable] = None,
          verbose: bool = False) -> OptimizationResult:
    """
    Solve the design optimization problem

    Args:
        problem: Optimization problem
        callback: Called as callback(iteration, x, f) after every iteration;
            returning True aborts the optimization
        verbose: Print the iteration history

    Returns:
        OptimizationResult
    """
    settings = problem.settings
    pool = None
    if settings.use_parallel:
        pool = Pool(settings.n_workers or os.cpu_count())
    try:
        return _solve(problem, callback, verbose, pool)
    finally:
        if pool is not None:
            pool.terminate()
            pool.join()


def _solve(problem, callback, verbose, pool) -> OptimizationResult:
    settings = problem.settings
    evaluator = _Evaluator(problem, pool)
    history = {'iteration': 0, 'x': problem.x0.copy()}

    def on_iteration(xk, *args):
        history['iteration'] += 1
        history['x'] = np.array(xk, dtype=float)
        f = evaluator.f(history['x'])
        if verbose:
            print(f"  Iteration {history['iteration']:4d}: objective = {f:.6f}, "
                  f"evaluations = {evaluator.n_evaluations}")
        if callback is not None and callback(history['iteration'], history['x'], f):
            raise _Aborted()

    parallel = pool is not None
    status = None
    message = ""
    x_opt = None
    try:
        if settings.algorithm == 'interior-point':
            nonlinear = []
            if evaluator.n_inequality:
                nonlinear.append(NonlinearConstraint(
                    evaluator.c_ineq, -np.inf, 0.0,
                    jac=evaluator.jac_ineq if parallel else '2-point',
                ))
            nonlinear.append(NonlinearConstraint(
                evaluator.c_eq, 0.0, 0.0,
                jac=evaluator.jac_eq if parallel else '2-point',
            ))
            sol = minimize(
                evaluator.f,
                problem.x0,
                method='trust-constr',
                jac=evaluator.grad_f if parallel else '2-point',
                hess=BFGS(),
                bounds=Bounds(problem.lower_bounds, problem.upper_bounds),
                constraints=nonlinear,
                callback=lambda xk, state: on_iteration(xk),
                options={
                    'maxiter': settings.max_iterations,
                    'xtol': settings.step_tolerance,
                    # gtol also bounds the constraint violation at termination
                    'gtol': min(settings.optimality_tolerance, settings.constraint_tolerance),
                },
            )
        else:
            # scipy inequality constraints are fun(x) >= 0
            nonlinear = [{'type': 'eq', 'fun': evaluator.c_eq}]
            if parallel:
                nonlinear[0]['jac'] = evaluator.jac_eq
            if evaluator.n_inequality:
                inequality = {'type': 'ineq', 'fun': lambda x: -evaluator.c_ineq(x)}
                if parallel:
                    inequality['jac'] = lambda x: -evaluator.jac_ineq(x)
                nonlinear.append(inequality)
            sol = minimize(
                evaluator.f,
                problem.x0,
                method='SLSQP',
                jac=evaluator.grad_f if parallel else None,
                bounds=problem.bounds(),
                constraints=nonlinear,
                callback=on_iteration,
                options={
                    'maxiter': settings.max_iterations,
                    'ftol': settings.function_tolerance,
                },
            )
        x_opt = np.asarray(sol.x, dtype=float)
        status = sol.status
        message = sol.message
    except _EvaluationLimit:
        message = "Maximum number of function evaluations reached"
        exit_status = ExitStatus.ITERATION_LIMIT
    except _Aborted:
        message = "Stopped by the callback"
        exit_status = ExitStatus.ABORTED

    if x_opt is None:
        x_opt = history['x']

    violation = constraint_violation(problem, x_opt)
    feasible = math.isfinite(violation) and violation <= settings.constraint_tolerance

    if status is not None:
        if settings.algorithm == 'interior-point':
            exit_status = _trust_constr_status(status, feasible)
        else:
            exit_status = _slsqp_status(status, feasible)

    result = evaluate(x_opt, problem.params)
    return OptimizationResult(
        x_opt=x_opt,
        f_opt=objective(result, problem.params),
        exit_status=exit_status,
        diagnostics={
            'algorithm': settings.algorithm,
            'iterations': history['iteration'],
            'evaluations': evaluator.n_evaluations,
            'constraint_violation': violation,
            'message': message,
        },
        solution=result,
    )
