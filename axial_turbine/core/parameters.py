# File: axial_turbine/core/parameters.py
"""
Fixed parameters and design variables of the turbine design problem

FixedParameters replaces any notion of a shared workspace: it is built once
per run, frozen, and passed explicitly to every evaluation.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import numpy as np

from .exceptions import ConfigurationError
from .thermodynamics import Fluid, FluidState, PropertyEvaluationError


# ============================================================================
# ENUMERATIONS
# ============================================================================

class _ChoiceEnum(Enum):
    """Enumeration built from configuration strings"""

    @classmethod
    def from_string(cls, value):
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        for member in cls:
            if key.lower() == member.value.lower() or key.lower() in member.aliases():
                return member
        options = ', '.join(m.value for m in cls)
        raise ConfigurationError(f"Unknown {cls.__name__} '{value}'. Choose from: {options}")

    def aliases(self) -> tuple:
        return ()


class LossSystem(_ChoiceEnum):
    """Empirical loss correlation set"""
    AINLEY_MATHIESON = "AM"
    DUNHAM_CAME = "DC"
    KACKER_OKAPUU = "KO"


class LossCoefficient(_ChoiceEnum):
    """Definition of the cascade loss coefficient"""
    STAGNATION_PRESSURE = "p0"
    ENTHALPY = "h"
    ENTROPY = "s"


class DiffuserModel(_ChoiceEnum):
    """Exhaust diffuser model"""
    ONE_DIMENSIONAL = "1D"
    ISENTROPIC = "isentropic"
    NONE = "no"

    def aliases(self) -> tuple:
        if self is DiffuserModel.NONE:
            return ("none", "off")
        return ()


class ObjectiveFunction(_ChoiceEnum):
    """Efficiency definition maximized by the optimizer"""
    TOTAL_TO_STATIC = "total-to-static"
    TOTAL_TO_TOTAL = "total-to-total"

    def aliases(self) -> tuple:
        return ("ts",) if self is ObjectiveFunction.TOTAL_TO_STATIC else ("tt",)


def rpm_to_omega(rpm: float) -> float:
    """Rotational speed in rad/s"""
    return rpm * 2 * math.pi / 60


def omega_to_rpm(omega: float) -> float:
    """Rotational speed in RPM"""
    return omega * 60 / (2 * math.pi)


# ============================================================================
# DIFFUSER GEOMETRY
# ============================================================================

@dataclass(frozen=True)
class DiffuserGeometry:
    """
    Annular diffuser design parameters

    Attributes:
        phi: Mean cant angle (degrees)
        div: Divergence semi-angle (degrees)
        area_ratio: Outlet to inlet area ratio
        Cf: Skin friction coefficient (only used by the 1D model)
    """
    phi: float = 30.0
    div: float = 5.0
    area_ratio: float = 2.0
    Cf: float = 0.010

    def __post_init__(self):
        if self.area_ratio < 1.0:
            raise ConfigurationError(f"Diffuser area ratio must be >= 1, got {self.area_ratio}")
        if not 0.0 <= self.phi < 90.0:
            raise ConfigurationError(f"Diffuser cant angle must be in [0, 90) deg, got {self.phi}")
        if not 0.0 <= self.div < 45.0:
            raise ConfigurationError(f"Diffuser divergence angle must be in [0, 45) deg, got {self.div}")
        if self.Cf < 0.0:
            raise ConfigurationError(f"Skin friction coefficient must be non-negative, got {self.Cf}")


# ============================================================================
# FIXED PARAMETERS
# ============================================================================

@dataclass(frozen=True)
class FixedParameters:
    """
    Immutable configuration of one design run

    Use FixedParameters.create() to build an instance: it evaluates the
    inlet and isentropic exit states and the derived reference quantities.

    Attributes:
        fluid_name: CoolProp fluid identifier
        p0_in: Inlet stagnation pressure (Pa)
        p_out: Outlet static pressure (Pa)
        mass_flow: Mass flow rate (kg/s)
        tip_clearance: Rotor tip clearance gap (m)
        angle_in: First stator inlet flow angle (degrees)
        n_stages: Number of stages
        loss_system: Loss correlation set
        loss_coefficient: Loss coefficient definition
        diffuser_model: Exhaust diffuser model
        diffuser: Diffuser geometry
        objective: Efficiency definition to maximize
        t_max_c: Blade maximum thickness to chord ratio
        t_te_min: Minimum trailing edge thickness (m)
        t_te_o: Trailing edge thickness to opening ratio

    Derived attributes:
        fluid: Fluid property calculator
        inlet_total: Inlet stagnation state
        exit_isentropic: Static state at p_out with the inlet entropy
        dh_is: Isentropic total-to-static enthalpy drop (J/kg)
        v0: Spouting velocity sqrt(2*dh_is) (m/s)
        flow_isentropic: Volumetric flow at the isentropic exit (m³/s)
    """
    fluid_name: str
    p0_in: float
    p_out: float
    mass_flow: float
    tip_clearance: float
    angle_in: float
    n_stages: int
    loss_system: LossSystem
    loss_coefficient: LossCoefficient
    diffuser_model: DiffuserModel
    diffuser: DiffuserGeometry
    objective: ObjectiveFunction
    t_max_c: float
    t_te_min: float
    t_te_o: float

    fluid: Fluid = field(repr=False, compare=False)
    inlet_total: FluidState = field(repr=False, compare=False)
    exit_isentropic: FluidState = field(repr=False, compare=False)
    dh_is: float = field(repr=False)
    v0: float = field(repr=False)
    flow_isentropic: float = field(repr=False)

    @property
    def n_cascades(self) -> int:
        return 2 * self.n_stages

    @property
    def isentropic_power(self) -> float:
        """Isentropic total-to-static power (W)"""
        return self.mass_flow * self.dh_is

    def angular_speed(self, specific_speed: float) -> float:
        """Angular speed (rad/s) from the specific speed"""
        return specific_speed * self.dh_is**0.75 / self.flow_isentropic**0.5

    def specific_speed(self, omega: float) -> float:
        """Specific speed from the angular speed (rad/s)"""
        return omega * self.flow_isentropic**0.5 / self.dh_is**0.75

    def mean_diameter(self, specific_diameter: float) -> float:
        """Mean diameter (m) from the specific diameter"""
        return specific_diameter * self.flow_isentropic**0.5 / self.dh_is**0.25

    @classmethod
    def create(cls,
               fluid_name: str,
               p0_in: float,
               p_out: float,
               T0_in: Optional[float] = None,
               h0_in: Optional[float] = None,
               mass_flow: Optional[float] = None,
               isentropic_power: Optional[float] = None,
               tip_clearance: float = 5e-4,
               angle_in: float = 0.0,
               n_stages: int = 1,
               loss_system='KO',
               loss_coefficient='p0',
               diffuser_model='isentropic',
               diffuser: Optional[DiffuserGeometry] = None,
               objective='total-to-static',
               t_max_c: float = 0.20,
               t_te_min: float = 5e-4,
               t_te_o: float = 0.05) -> "FixedParameters":
        """
        Build the fixed parameters and the derived reference states

        Give either T0_in or h0_in (the latter when the expansion starts in
        the two-phase region), and either mass_flow or isentropic_power.

        Raises:
            ConfigurationError: Inconsistent or incomplete inputs
        """
        if (T0_in is None) == (h0_in is None):
            raise ConfigurationError("Specify exactly one of T0_in or h0_in")
        if (mass_flow is None) == (isentropic_power is None):
            raise ConfigurationError("Specify exactly one of mass_flow or isentropic_power")
        if not isinstance(n_stages, (int, np.integer)) or isinstance(n_stages, bool) or n_stages < 1:
            raise ConfigurationError(f"n_stages must be a positive integer, got {n_stages!r}")
        if p_out <= 0 or p0_in <= p_out:
            raise ConfigurationError(
                f"Outlet pressure must be positive and below the inlet pressure "
                f"(p0_in={p0_in}, p_out={p_out})"
            )
        if tip_clearance < 0:
            raise ConfigurationError(f"Tip clearance must be non-negative, got {tip_clearance}")

        try:
            fluid = Fluid(fluid_name)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        try:
            if T0_in is not None:
                inlet_total = fluid.thermo_prop('PT', p0_in, T0_in)
            else:
                inlet_total = fluid.thermo_prop('PH', p0_in, h0_in)
            exit_isentropic = fluid.thermo_prop('PS', p_out, inlet_total.S)
        except PropertyEvaluationError as e:
            raise ConfigurationError(f"Boundary conditions cannot be evaluated: {e.reason}") from e

        # Exit entropies are design variables scaled by the inlet entropy
        if inlet_total.S <= 0:
            raise ConfigurationError(
                f"Inlet entropy must be positive in the reference state of {fluid_name}, "
                f"got {inlet_total.S:.4g} J/kg-K"
            )

        dh_is = inlet_total.H - exit_isentropic.H
        if isentropic_power is not None:
            mass_flow = isentropic_power / dh_is
        if mass_flow <= 0:
            raise ConfigurationError(f"Mass flow must be positive, got {mass_flow}")

        return cls(
            fluid_name=fluid_name,
            p0_in=p0_in,
            p_out=p_out,
            mass_flow=mass_flow,
            tip_clearance=tip_clearance,
            angle_in=angle_in,
            n_stages=int(n_stages),
            loss_system=LossSystem.from_string(loss_system),
            loss_coefficient=LossCoefficient.from_string(loss_coefficient),
            diffuser_model=DiffuserModel.from_string(diffuser_model),
            diffuser=diffuser if diffuser is not None else DiffuserGeometry(),
            objective=ObjectiveFunction.from_string(objective),
            t_max_c=t_max_c,
            t_te_min=t_te_min,
            t_te_o=t_te_o,
            fluid=fluid,
            inlet_total=inlet_total,
            exit_isentropic=exit_isentropic,
            dh_is=dh_is,
            v0=math.sqrt(2 * dh_is),
            flow_isentropic=mass_flow / exit_isentropic.D,
        )


# ============================================================================
# DESIGN VARIABLES
# ============================================================================

# Order of the per-cascade blocks in the design vector
CASCADE_VARIABLES = (
    'outlet_reduced_velocity',
    'outlet_relative_angle',
    'aspect_ratio',
    'pitch_to_chord',
    'exit_entropy_ratio',
)

SCALAR_VARIABLES = (
    'specific_speed',
    'specific_diameter',
    'inlet_reduced_velocity',
)


def design_vector_length(n_stages: int) -> int:
    """Number of entries of the design vector"""
    return len(SCALAR_VARIABLES) + len(CASCADE_VARIABLES) * 2 * n_stages


@dataclass(frozen=True)
class DesignVariables:
    """
    Independent variables of the optimization problem

    Velocities are reduced by the spouting velocity, exit entropies by the
    inlet entropy. Angles are in radians (stators positive, rotors negative).
    """
    specific_speed: float
    specific_diameter: float
    inlet_reduced_velocity: float
    outlet_reduced_velocity: np.ndarray
    outlet_relative_angle: np.ndarray
    aspect_ratio: np.ndarray
    pitch_to_chord: np.ndarray
    exit_entropy_ratio: np.ndarray

    def __post_init__(self):
        sizes = {name: np.size(getattr(self, name)) for name in CASCADE_VARIABLES}
        if len(set(sizes.values())) != 1 or sizes['outlet_reduced_velocity'] % 2:
            raise ConfigurationError(f"Per-cascade arrays must share an even length, got {sizes}")
        for name in CASCADE_VARIABLES:
            object.__setattr__(self, name, np.array(getattr(self, name), dtype=float).ravel())

    @property
    def n_cascades(self) -> int:
        return self.outlet_reduced_velocity.size

    @property
    def n_stages(self) -> int:
        return self.n_cascades // 2

    @classmethod
    def from_vector(cls, x, n_stages: int) -> "DesignVariables":
        """Unpack a flat design vector"""
        x = np.asarray(x, dtype=float).ravel()
        expected = design_vector_length(n_stages)
        if x.size != expected:
            raise ConfigurationError(
                f"Design vector for {n_stages} stage(s) must have {expected} entries, got {x.size}"
            )
        n = 2 * n_stages
        blocks = x[3:].reshape(len(CASCADE_VARIABLES), n)
        return cls(float(x[0]), float(x[1]), float(x[2]), *blocks)

    def to_vector(self) -> np.ndarray:
        """Pack into a flat design vector"""
        return np.concatenate([
            [self.specific_speed, self.specific_diameter, self.inlet_reduced_velocity],
            *(getattr(self, name) for name in CASCADE_VARIABLES),
        ])
