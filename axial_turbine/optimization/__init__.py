"""
Design optimization

Includes:
- Problem definition (bounds, initial guess, settings)
- scipy based driver
"""

from .problem import (
    OptimizationProblem,
    OptimizerSettings,
    ALGORITHMS,
    default_bounds,
    default_initial_guess,
)
from .driver import (
    ExitStatus,
    OptimizationResult,
    constraint_violation,
    solve,
)

__all__ = [
    'OptimizationProblem',
    'OptimizerSettings',
    'ALGORITHMS',
    'default_bounds',
    'default_initial_guess',
    'ExitStatus',
    'OptimizationResult',
    'constraint_violation',
    'solve',
]
