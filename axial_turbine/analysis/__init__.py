"""
Objective and constraint evaluation of the design problem

Includes:
- Objective function (negated efficiency, penalty for infeasible points)
- Equality constraints (loss consistency, exit pressure)
- Named inequality constraints
"""

from .objective import objective, equality_constraints, equality_count
from .constraints import (
    ConstraintSpec,
    ConstraintSet,
    KNOWN_CONSTRAINTS,
    constraint_values,
    constraint_count,
    constraints,
)

__all__ = [
    'objective',
    'equality_constraints',
    'equality_count',
    'ConstraintSpec',
    'ConstraintSet',
    'KNOWN_CONSTRAINTS',
    'constraint_values',
    'constraint_count',
    'constraints',
]
