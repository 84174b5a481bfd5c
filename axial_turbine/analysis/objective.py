# File: axial_turbine/analysis/objective.py
"""
Objective function and equality constraints of the design problem
"""

import numpy as np

from axial_turbine.core.parameters import FixedParameters
from .constraints import replace_non_finite


def objective(result, params: FixedParameters) -> float:
    """
    Negated efficiency (minimization convention)

    Returns the penalty of an InfeasibleResult so that the optimizer always
    receives a finite value, larger for earlier failures.
    """
    if not result.feasible:
        return result.penalty
    return -result.efficiency(params.objective)


def equality_count(params: FixedParameters) -> int:
    """One loss residual per cascade plus the exit pressure residual"""
    return params.n_cascades + 1


def equality_constraints(result, params: FixedParameters) -> np.ndarray:
    """
    Equality residuals (zero when satisfied)

    1. Loss coefficient consistency per cascade: Y(states) - Y(correlation)
    2. Exit static pressure: (p_exit - p_out) / p_out, with p_exit at the
       diffuser outlet (last cascade outlet when the diffuser is disabled)
    """
    if not result.feasible:
        return np.full(equality_count(params), result.penalty)
    pressure = (result.exit_state.P - params.p_out) / params.p_out
    return replace_non_finite(np.array([*result.loss_residuals, pressure]), "equality constraints")
