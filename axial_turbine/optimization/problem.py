# File: axial_turbine/optimization/problem.py
"""
Optimization problem definition

Collects the fixed parameters, the constraint set, the bounds and the
initial guess of the design variables, and the optimizer settings.
Bounds of per-cascade variables may be given as one value for every
cascade or as an array of 2*n_stages values. Angles are in radians.
"""

import math
import warnings
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

import numpy as np

from axial_turbine.core.exceptions import ConfigurationError
from axial_turbine.core.parameters import (
    CASCADE_VARIABLES,
    SCALAR_VARIABLES,
    DesignVariables,
    FixedParameters,
    rpm_to_omega,
)
from axial_turbine.analysis.constraints import ConstraintSet


ALGORITHMS = ('sqp', 'interior-point', 'active-set')

# Reference efficiency of the default exit entropy distribution
REFERENCE_EFFICIENCY = 0.80


@dataclass(frozen=True)
class OptimizerSettings:
    """
    Termination criteria and algorithm choice

    Attributes:
        algorithm: 'sqp', 'interior-point' or 'active-set'
        max_iterations: Iteration limit
        max_function_evals: Limit on design point evaluations
        step_tolerance: Termination tolerance on the step size
        function_tolerance: Termination tolerance on the objective
        constraint_tolerance: Tolerance on the constraint violation
        optimality_tolerance: Termination tolerance on first-order optimality
        use_parallel: Evaluate finite-difference gradients on a process pool
        n_workers: Pool size (os.cpu_count() when None)
    """
    algorithm: str = 'sqp'
    max_iterations: int = 1000
    max_function_evals: int = 10000
    step_tolerance: float = 1e-8
    function_tolerance: float = 1e-5
    constraint_tolerance: float = 1e-5
    optimality_tolerance: float = 1.0
    use_parallel: bool = False
    n_workers: Optional[int] = None

    def __post_init__(self):
        algorithm = str(self.algorithm).strip().lower()
        if algorithm not in ALGORITHMS:
            raise ConfigurationError(
                f"Unknown algorithm '{self.algorithm}'. Choose from: {', '.join(ALGORITHMS)}"
            )
        object.__setattr__(self, 'algorithm', algorithm)
        if self.max_iterations < 1 or self.max_function_evals < 1:
            raise ConfigurationError("Iteration and evaluation limits must be positive")
        for name in ('step_tolerance', 'function_tolerance', 'constraint_tolerance', 'optimality_tolerance'):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if self.n_workers is not None and self.n_workers < 1:
            raise ConfigurationError(f"n_workers must be positive, got {self.n_workers}")


# ============================================================================
# DEFAULTS
# ============================================================================

def default_bounds(n_stages: int) -> Dict[str, Tuple[np.ndarray, np.ndarray]]:
    """Bounds covering the validity range of the loss correlations"""
    n = 2 * n_stages
    stator = np.arange(n) % 2 == 0
    angle_min = np.where(stator, math.radians(40), math.radians(-80))
    angle_max = np.where(stator, math.radians(80), math.radians(-40))
    return {
        'specific_speed': (0.01, 10.0),
        'specific_diameter': (0.01, 10.0),
        'inlet_reduced_velocity': (0.001, 0.5),
        'outlet_reduced_velocity': (np.full(n, 0.05), np.full(n, 1.25)),
        'outlet_relative_angle': (angle_min, angle_max),
        'aspect_ratio': (np.full(n, 1.0), np.full(n, 2.0)),
        'pitch_to_chord': (np.full(n, 0.30), np.full(n, 1.10)),
        'exit_entropy_ratio': (np.full(n, 1.0), np.full(n, 2.0)),
    }


def default_initial_guess(params: FixedParameters, specific_speed: float = 1.0) -> DesignVariables:
    """
    Initial guess of the design variables

    Exit entropies follow a linear distribution from the inlet entropy to
    the exit entropy of an expansion with the reference efficiency.
    """
    n = params.n_cascades
    h0_in = params.inlet_total.H
    h_out = h0_in - REFERENCE_EFFICIENCY * params.dh_is
    s_in = params.inlet_total.S
    s_ref = params.fluid.thermo_prop('PH', params.p_out, h_out).S
    entropy_ratio = np.linspace(1.0, s_ref / s_in, n + 1)[1:]

    angle = math.radians(70)
    return DesignVariables(
        specific_speed=specific_speed,
        specific_diameter=2 / math.sqrt(params.n_stages) / specific_speed,
        inlet_reduced_velocity=0.20,
        outlet_reduced_velocity=np.full(n, 1 / math.sqrt(n)),
        outlet_relative_angle=np.where(np.arange(n) % 2 == 0, angle, -angle),
        aspect_ratio=np.full(n, 1.25),
        pitch_to_chord=np.full(n, 0.75),
        exit_entropy_ratio=entropy_ratio,
    )


def _expand(name: str, value, n: int) -> np.ndarray:
    values = np.atleast_1d(np.asarray(value, dtype=float))
    if name in SCALAR_VARIABLES:
        if values.size != 1:
            raise ConfigurationError(f"Bound of '{name}' must be a scalar, got {values.size} values")
        return values
    if values.size == 1:
        return np.full(n, values[0])
    if values.size != n:
        raise ConfigurationError(f"Bound of '{name}' must have 1 or {n} values, got {values.size}")
    return values


# ============================================================================
# PROBLEM
# ============================================================================

@dataclass(frozen=True)
class OptimizationProblem:
    """
    Complete definition of one design optimization

    Attributes:
        params: Fixed parameters
        constraint_set: Inequality constraints
        lower_bounds, upper_bounds: Flat bound vectors
        x0: Initial guess (flat design vector)
        settings: Optimizer settings
    """
    params: FixedParameters
    constraint_set: ConstraintSet
    lower_bounds: np.ndarray = field(repr=False)
    upper_bounds: np.ndarray = field(repr=False)
    x0: np.ndarray = field(repr=False)
    settings: OptimizerSettings = field(default_factory=OptimizerSettings)

    @property
    def n_variables(self) -> int:
        return self.x0.size

    def bounds(self):
        """Bounds as (lower, upper) pairs for scipy"""
        return list(zip(self.lower_bounds, self.upper_bounds))

    @classmethod
    def create(cls,
               params: FixedParameters,
               constraint_set: Optional[ConstraintSet] = None,
               bounds: Optional[Mapping[str, Tuple]] = None,
               x0: Optional[DesignVariables] = None,
               settings: Optional[OptimizerSettings] = None) -> "OptimizationProblem":
        """
        Build the problem, filling in default bounds and initial guess

        Args:
            params: Fixed parameters
            constraint_set: Constraints (none if not given)
            bounds: Mapping variable name -> (min, max) overriding the defaults
            x0: Initial guess (default_initial_guess if not given)
            settings: Optimizer settings

        Raises:
            ConfigurationError: Unknown variable, wrong bound size or
                inconsistent bounds
        """
        constraint_set = constraint_set if constraint_set is not None else ConstraintSet()
        settings = settings if settings is not None else OptimizerSettings()
        n = params.n_cascades

        merged = default_bounds(params.n_stages)
        for name, pair in (bounds or {}).items():
            if name not in merged:
                raise ConfigurationError(
                    f"Unknown design variable '{name}'. "
                    f"Choose from: {', '.join(SCALAR_VARIABLES + CASCADE_VARIABLES)}"
                )
            try:
                low, high = pair
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Bounds of '{name}' must be a (min, max) pair") from e
            default_low, default_high = merged[name]
            merged[name] = (default_low if low is None else low,
                            default_high if high is None else high)

        # RPM constraint becomes bounds on the specific speed
        if 'RPM' in constraint_set and constraint_set['RPM'].applied:
            rpm = constraint_set['RPM']
            low, high = merged['specific_speed']
            if rpm.min is not None:
                low = max(low, params.specific_speed(rpm_to_omega(rpm.min)))
            if rpm.max is not None:
                high = min(high, params.specific_speed(rpm_to_omega(rpm.max)))
            merged['specific_speed'] = (low, high)

        order = SCALAR_VARIABLES + CASCADE_VARIABLES
        lower = np.concatenate([_expand(name, merged[name][0], n) for name in order])
        upper = np.concatenate([_expand(name, merged[name][1], n) for name in order])
        if np.any(lower > upper):
            bad = [i for i in range(lower.size) if lower[i] > upper[i]]
            raise ConfigurationError(f"Lower bounds exceed upper bounds at entries {bad}")

        if x0 is None:
            guess = default_initial_guess(params)
            if 'RPM' in constraint_set and constraint_set['RPM'].applied:
                specific_speed = float(np.clip(guess.specific_speed, lower[0], upper[0]))
                guess = default_initial_guess(params, specific_speed)
            x0 = guess
        if not isinstance(x0, DesignVariables):
            x0 = DesignVariables.from_vector(x0, params.n_stages)
        if x0.n_stages != params.n_stages:
            raise ConfigurationError(
                f"Initial guess describes {x0.n_stages} stage(s), fixed parameters {params.n_stages}"
            )

        x = x0.to_vector()
        clipped = np.clip(x, lower, upper)
        if not np.array_equal(clipped, x):
            warnings.warn("Initial guess outside the bounds, clipped to the nearest bound")

        return cls(
            params=params,
            constraint_set=constraint_set,
            lower_bounds=lower,
            upper_bounds=upper,
            x0=clipped,
            settings=settings,
        )
