# File: axial_turbine/analysis/constraints.py
"""
Constraint definitions and evaluation

A constraint maps a quantity of the turbine solution (one value per
cascade, station or stage) to scaled inequality residuals:

    (value - max) / ref <= 0
    (min - value) / ref <= 0

A bound set to None contributes no residual. Angles are in degrees.
"""

import math
import warnings
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import numpy as np

from axial_turbine.core.exceptions import ConfigurationError
from axial_turbine.core.geometry import CascadeKind
from axial_turbine.components.turbine import PENALTY


# ============================================================================
# CONSTRAINT SET
# ============================================================================

@dataclass(frozen=True)
class ConstraintSpec:
    """
    One named constraint

    Attributes:
        min: Lower bound (None to skip)
        max: Upper bound (None to skip)
        applied: Whether the constraint is enforced
        ref: Scale of the residuals
    """
    min: Optional[float] = None
    max: Optional[float] = None
    applied: bool = True
    ref: float = 1.0

    def __post_init__(self):
        if not (math.isfinite(self.ref) and self.ref > 0):
            raise ConfigurationError(f"Constraint reference value must be positive, got {self.ref}")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ConfigurationError(f"Constraint min {self.min} exceeds max {self.max}")

    @property
    def n_bounds(self) -> int:
        """Residuals contributed per value"""
        if not self.applied:
            return 0
        return (self.min is not None) + (self.max is not None)

    def residuals(self, values) -> np.ndarray:
        """Scaled residuals, max bound first then min bound for each value"""
        values = np.atleast_1d(np.asarray(values, dtype=float))
        out = []
        if self.max is not None:
            out.append((values - self.max) / self.ref)
        if self.min is not None:
            out.append((self.min - values) / self.ref)
        if not self.applied or not out:
            return np.zeros(0)
        return np.concatenate(out)


def _values_per_cascade(n_stages: int) -> int:
    return 2 * n_stages


# Number of values per constraint as a function of the number of stages
CONSTRAINT_SIZES = {
    'flare_angle': _values_per_cascade,
    'r_ht': lambda n: 2 * n + 1,
    'reaction': lambda n: n,
    'Ma_rel': _values_per_cascade,
    'Ma_diffuser': lambda n: 1,
    'beta_in_stator': lambda n: n,
    'beta_in_rotor': lambda n: n,
    'height': _values_per_cascade,
    'chord': _values_per_cascade,
    'RPM': lambda n: 0,
}

KNOWN_CONSTRAINTS = tuple(CONSTRAINT_SIZES)


class ConstraintSet:
    """
    Mapping from constraint name to ConstraintSpec

    Example:
        >>> cs = ConstraintSet({'reaction': ConstraintSpec(min=0.1, max=0.9)})
        >>> cs['reaction'].max
        0.9
    """

    def __init__(self, specs: Optional[Mapping[str, ConstraintSpec]] = None):
        specs = dict(specs or {})
        unknown = set(specs) - set(KNOWN_CONSTRAINTS)
        if unknown:
            raise ConfigurationError(
                f"Unknown constraint(s) {sorted(unknown)}. Choose from: {', '.join(KNOWN_CONSTRAINTS)}"
            )
        for name, spec in specs.items():
            if not isinstance(spec, ConstraintSpec):
                raise ConfigurationError(f"Constraint '{name}' must be a ConstraintSpec")
        # Evaluation order is the order of KNOWN_CONSTRAINTS
        self._specs = {name: specs[name] for name in KNOWN_CONSTRAINTS if name in specs}

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping]) -> "ConstraintSet":
        """Build from plain dictionaries (YAML)"""
        specs = {}
        for name, entry in (data or {}).items():
            entry = dict(entry or {})
            applied = entry.pop('applied', True)
            if isinstance(applied, str):
                applied = applied.strip().lower() in ('yes', 'true', 'on')
            try:
                specs[name] = ConstraintSpec(applied=bool(applied), **entry)
            except TypeError as e:
                raise ConfigurationError(f"Invalid entry for constraint '{name}': {e}") from e
        return cls(specs)

    def __getitem__(self, name: str) -> ConstraintSpec:
        return self._specs[name]

    def __contains__(self, name) -> bool:
        return name in self._specs

    def __iter__(self):
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def items(self):
        return self._specs.items()

    def applied(self) -> Dict[str, ConstraintSpec]:
        return {name: spec for name, spec in self._specs.items() if spec.applied}

    def __repr__(self):
        return f"ConstraintSet({self._specs!r})"


# ============================================================================
# CONSTRAINED QUANTITIES
# ============================================================================

def constraint_values(solution, name: str) -> np.ndarray:
    """Quantity of the solution bounded by the named constraint"""
    cascades = solution.cascades
    if name == 'flare_angle':
        return np.array([c.geometry.flare_angle for c in cascades])
    if name == 'r_ht':
        return np.array([s.r_ht for s in solution.stations])
    if name == 'reaction':
        return np.array([s.reaction for s in solution.stages])
    if name == 'Ma_rel':
        return np.array([c.outlet.Ma_rel for c in cascades])
    if name == 'Ma_diffuser':
        return np.array([solution.diffuser.Ma_inlet])
    if name == 'beta_in_stator':
        return np.array([c.inlet.beta for c in cascades if c.kind is CascadeKind.STATOR])
    if name == 'beta_in_rotor':
        return np.array([c.inlet.beta for c in cascades if c.kind is CascadeKind.ROTOR])
    if name == 'height':
        return np.array([c.geometry.height for c in cascades])
    if name == 'chord':
        return np.array([c.geometry.chord for c in cascades])
    if name == 'RPM':
        return np.zeros(0)
    raise ConfigurationError(f"Unknown constraint '{name}'")


def constraint_count(constraint_set: ConstraintSet, n_stages: int) -> int:
    """Length of the inequality residual vector"""
    return sum(
        spec.n_bounds * CONSTRAINT_SIZES[name](n_stages)
        for name, spec in constraint_set.items()
    )


def constraints(result, constraint_set: ConstraintSet, n_stages: Optional[int] = None) -> np.ndarray:
    """
    Scaled inequality residuals (<= 0 when satisfied)

    Args:
        result: TurbineSolution or InfeasibleResult
        constraint_set: Constraint definitions
        n_stages: Needed for infeasible results

    Returns:
        np.ndarray of fixed length constraint_count(constraint_set, n_stages);
        infeasible results give a vector filled with the penalty
    """
    if not result.feasible:
        if n_stages is None:
            raise ConfigurationError("n_stages is required to size the constraints of an infeasible result")
        return np.full(constraint_count(constraint_set, n_stages), result.penalty)

    parts = [
        spec.residuals(constraint_values(result, name))
        for name, spec in constraint_set.items()
        if name != 'RPM'
    ]
    if not parts:
        return np.zeros(0)
    return replace_non_finite(np.concatenate(parts), "inequality constraints")


def replace_non_finite(values: np.ndarray, label: str) -> np.ndarray:
    """Penalty in place of NaN or infinite residuals of a feasible solution"""
    finite = np.isfinite(values)
    if finite.all():
        return values
    warnings.warn(f"{int((~finite).sum())} non-finite {label} replaced by the penalty {PENALTY}")
    return np.where(finite, values, PENALTY)
