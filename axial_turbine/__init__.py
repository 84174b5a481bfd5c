"""
Axial turbine mean-line design optimization

Usage:
    from axial_turbine import load_case, evaluate, solve

    problem = load_case('ex2_R125')
    solution = evaluate(problem.x0, problem.params)
    result = solve(problem)
"""

__version__ = "0.1.0"

from axial_turbine.core import (
    ConfigurationError,
    ModelDomainError,
    PropertyEvaluationError,
    FixedParameters,
    DesignVariables,
    DiffuserGeometry,
)
from axial_turbine.components import TurbineSolution, InfeasibleResult, evaluate
from axial_turbine.analysis import ConstraintSet, ConstraintSpec, objective, constraints
from axial_turbine.optimization import OptimizationProblem, OptimizerSettings, solve
from axial_turbine.config import load_case

__all__ = [
    'ConfigurationError',
    'ModelDomainError',
    'PropertyEvaluationError',
    'FixedParameters',
    'DesignVariables',
    'DiffuserGeometry',
    'TurbineSolution',
    'InfeasibleResult',
    'evaluate',
    'ConstraintSet',
    'ConstraintSpec',
    'objective',
    'constraints',
    'OptimizationProblem',
    'OptimizerSettings',
    'solve',
    'load_case',
]
