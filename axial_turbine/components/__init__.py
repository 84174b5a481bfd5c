"""
Turbine components

Includes:
- Cascade solver (velocity triangles, continuity, rothalpy)
- Exhaust diffuser models
- Turbine evaluation pipeline
"""

from .cascade import (
    FlowStation,
    CascadeState,
    make_station,
    reframe,
    inlet_station,
    solve_cascade,
)
from .diffuser import DiffuserResult, compute_diffuser, diffuser_length
from .turbine import (
    TurbineSolution,
    StagePerformance,
    InfeasibleResult,
    evaluate,
)

__all__ = [
    'FlowStation',
    'CascadeState',
    'make_station',
    'reframe',
    'inlet_station',
    'solve_cascade',
    'DiffuserResult',
    'compute_diffuser',
    'diffuser_length',
    'TurbineSolution',
    'StagePerformance',
    'InfeasibleResult',
    'evaluate',
]
