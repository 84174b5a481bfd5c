# File: axial_turbine/core/__init__.py

"""
Core utilities for axial turbine mean-line calculations

Contents:
- CoolProp property oracle and immutable fluid states
- Degree-based trigonometry helpers
- Cascade geometry
- Fixed parameters, design variables and option enumerations
- Reynolds number and compressibility correlations

Usage:
    from axial_turbine.core import Fluid, FixedParameters, DesignVariables

    params = FixedParameters.create('HEOS::R125', p0_in=36.18e5, p_out=15.69e5,
                                    T0_in=428.15, isentropic_power=250e3)
    state = params.fluid.thermo_prop('PT', 36.18e5, 428.15)
"""

# ============================================================================
# Exceptions
# ============================================================================
from .exceptions import ModelDomainError, ConfigurationError
from .thermodynamics import PropertyEvaluationError

# ============================================================================
# Trigonometric functions (degrees)
# ============================================================================
from .geometry import cosd, sind, tand

# ============================================================================
# Cascade geometry
# ============================================================================
from .geometry import (
    CascadeKind,
    CascadeGeometry,
    compute_cascade_geometry,
    annulus_radii,
    stagger_angle,
)

# ============================================================================
# Thermodynamics
# ============================================================================
from .thermodynamics import (
    Fluid,
    FluidState,
    query,
    static_from_total,
    total_from_static,
)

# ============================================================================
# Problem definition
# ============================================================================
from .parameters import (
    LossSystem,
    LossCoefficient,
    DiffuserModel,
    ObjectiveFunction,
    DiffuserGeometry,
    FixedParameters,
    DesignVariables,
    CASCADE_VARIABLES,
    SCALAR_VARIABLES,
    design_vector_length,
    rpm_to_omega,
    omega_to_rpm,
)

# ============================================================================
# Correlations
# ============================================================================
from .correlations import (
    reynolds_number,
    ainley_reynolds_correction,
    kacker_okapuu_reynolds_correction,
    stagnation_pressure_ratio,
)

__all__ = [
    # Exceptions
    'ModelDomainError',
    'ConfigurationError',
    'PropertyEvaluationError',

    # Trigonometry
    'cosd',
    'sind',
    'tand',

    # Geometry
    'CascadeKind',
    'CascadeGeometry',
    'compute_cascade_geometry',
    'annulus_radii',
    'stagger_angle',

    # Thermodynamics
    'Fluid',
    'FluidState',
    'query',
    'static_from_total',
    'total_from_static',

    # Problem definition
    'LossSystem',
    'LossCoefficient',
    'DiffuserModel',
    'ObjectiveFunction',
    'DiffuserGeometry',
    'FixedParameters',
    'DesignVariables',
    'CASCADE_VARIABLES',
    'SCALAR_VARIABLES',
    'design_vector_length',
    'rpm_to_omega',
    'omega_to_rpm',

    # Correlations
    'reynolds_number',
    'ainley_reynolds_correction',
    'kacker_okapuu_reynolds_correction',
    'stagnation_pressure_ratio',
]
