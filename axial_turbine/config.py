# File: axial_turbine/config.py
"""
YAML case files

A case file has the sections:

    name:         case name (optional)
    fixed:        fluid, boundary conditions, options (see FixedParameters.create)
    diffuser:     phi, div, area_ratio, Cf
    variables:    per design variable {min, max, x0}
    constraints:  per constraint {min, max, applied, ref}
    optimizer:    OptimizerSettings fields

Angles are in degrees (inlet angle, relative outlet angles and angle
constraints). A missing bound is null.
"""

import math
import os
from typing import Any, Dict, Mapping

import numpy as np
import yaml

from axial_turbine.core.exceptions import ConfigurationError
from axial_turbine.core.parameters import (
    CASCADE_VARIABLES,
    SCALAR_VARIABLES,
    DesignVariables,
    DiffuserGeometry,
    FixedParameters,
)
from axial_turbine.analysis.constraints import ConstraintSet
from axial_turbine.optimization.problem import (
    OptimizationProblem,
    OptimizerSettings,
    default_initial_guess,
)


DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")

FIXED_KEYS = {
    'fluid', 'p0_in', 'p_out', 'T0_in', 'h0_in', 'mass_flow', 'isentropic_power',
    'tip_clearance', 'angle_in', 'n_stages', 'loss_system', 'loss_coefficient',
    'diffuser_model', 'objective', 't_max_c', 't_te_min', 't_te_o',
}

# Variables given in degrees in case files
ANGLE_VARIABLES = {'outlet_relative_angle'}


def _to_float(value):
    """Convert YAML numbers (including strings such as '36.18e5') to float"""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [_to_float(v) for v in value]
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Expected a number, got {value!r}") from e


def _section(data: Mapping, name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Section '{name}' must be a mapping")
    return dict(section)


def build_fixed_parameters(fixed: Mapping, diffuser: Mapping = None) -> FixedParameters:
    """FixedParameters from the 'fixed' and 'diffuser' sections"""
    fixed = dict(fixed)
    unknown = set(fixed) - FIXED_KEYS
    if unknown:
        raise ConfigurationError(f"Unknown fixed parameter(s): {sorted(unknown)}")
    if 'fluid' not in fixed:
        raise ConfigurationError("The fluid must be specified")

    kwargs = {}
    for key in ('p0_in', 'p_out', 'T0_in', 'h0_in', 'mass_flow', 'isentropic_power',
                'tip_clearance', 'angle_in', 't_max_c', 't_te_min', 't_te_o'):
        if fixed.get(key) is not None:
            kwargs[key] = _to_float(fixed[key])
    for key in ('loss_system', 'loss_coefficient', 'diffuser_model', 'objective'):
        if key in fixed:
            # YAML reads a bare `no` as false
            kwargs[key] = 'no' if fixed[key] is False else str(fixed[key])
    if 'n_stages' in fixed:
        kwargs['n_stages'] = fixed['n_stages']

    if diffuser:
        try:
            kwargs['diffuser'] = DiffuserGeometry(**{k: _to_float(v) for k, v in diffuser.items()})
        except TypeError as e:
            raise ConfigurationError(f"Invalid diffuser section: {e}") from e

    missing = {'p0_in', 'p_out'} - set(kwargs)
    if missing:
        raise ConfigurationError(f"Missing fixed parameter(s): {sorted(missing)}")

    return FixedParameters.create(str(fixed['fluid']), **kwargs)


def _convert_angle(name: str, value):
    if value is None or name not in ANGLE_VARIABLES:
        return value
    return np.radians(value)


def _constraint_entries(constraints: Mapping) -> Dict[str, Any]:
    """Constraint entries as plain dicts with numeric bounds"""
    out = {}
    for name, entry in (constraints or {}).items():
        entry = dict(entry or {})
        for key in ('min', 'max', 'ref'):
            if key in entry:
                entry[key] = _to_float(entry[key])
        out[name] = entry
    return out


def build_problem(data: Mapping) -> OptimizationProblem:
    """OptimizationProblem from a parsed case file"""
    params = build_fixed_parameters(_section(data, 'fixed'), _section(data, 'diffuser'))
    constraint_set = ConstraintSet.from_dict(_constraint_entries(_section(data, 'constraints')))

    variables = _section(data, 'variables')
    unknown = set(variables) - set(SCALAR_VARIABLES + CASCADE_VARIABLES)
    if unknown:
        raise ConfigurationError(f"Unknown design variable(s): {sorted(unknown)}")

    bounds = {}
    guess = default_initial_guess(params)
    x0 = {name: getattr(guess, name) for name in SCALAR_VARIABLES + CASCADE_VARIABLES}
    for name, entry in variables.items():
        entry = dict(entry or {})
        low = _convert_angle(name, _to_float(entry.get('min')))
        high = _convert_angle(name, _to_float(entry.get('max')))
        bounds[name] = (low, high)
        if entry.get('x0') is not None:
            value = _convert_angle(name, _to_float(entry['x0']))
            if name in CASCADE_VARIABLES:
                value = np.atleast_1d(np.asarray(value, dtype=float))
                if value.size not in (1, params.n_cascades):
                    raise ConfigurationError(
                        f"Initial guess of '{name}' must have 1 or {params.n_cascades} values"
                    )
                value = np.resize(value, params.n_cascades)
            x0[name] = value

    # Default specific diameter follows a user specific speed
    diameter_entry = variables.get('specific_diameter') or {}
    if 'specific_speed' in variables and diameter_entry.get('x0') is None:
        x0['specific_diameter'] = 2 / math.sqrt(params.n_stages) / x0['specific_speed']

    initial = DesignVariables(**x0)

    try:
        settings = OptimizerSettings(**_section(data, 'optimizer'))
    except TypeError as e:
        raise ConfigurationError(f"Invalid optimizer section: {e}") from e

    return OptimizationProblem.create(
        params,
        constraint_set=constraint_set,
        bounds=bounds,
        x0=initial,
        settings=settings,
    )


def load_case(path: str) -> OptimizationProblem:
    """
    Load a YAML case file

    Args:
        path: File path, or the name of a case shipped in axial_turbine/data

    Raises:
        FileNotFoundError: Case file not found
        ConfigurationError: Invalid case definition
    """
    if not os.path.exists(path):
        candidate = os.path.join(DATA_DIR, path if path.endswith(('.yml', '.yaml')) else f"{path}.yml")
        if not os.path.exists(candidate):
            raise FileNotFoundError(f"Case file not found: {path}")
        path = candidate

    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Case file {path} must contain a mapping")
    return build_problem(data)
