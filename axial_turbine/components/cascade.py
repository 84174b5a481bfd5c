# File: axial_turbine/components/cascade.py
"""
Cascade - Velocity triangles and thermodynamic closure of one blade row

The outlet state of a cascade is fixed by the design variables:
    w_out = reduced velocity * spouting velocity
    beta_out = relative flow angle
    s_out = entropy ratio * turbine inlet entropy
    h_out = rothalpy - w_out²/2 (constant mean radius)

Continuity gives the annulus height at every station. The loss model is
evaluated afterwards as a consistency residual.

Sign convention: stator exit angles positive, rotor exit angles negative,
blade speed positive in the tangential direction.
"""

import math
from dataclasses import dataclass
from typing import Optional

from axial_turbine.core.exceptions import ConfigurationError, ModelDomainError
from axial_turbine.core.geometry import (
    CascadeKind,
    CascadeGeometry,
    annulus_radii,
    compute_cascade_geometry,
    cosd,
    sind,
)
from axial_turbine.core.parameters import FixedParameters
from axial_turbine.core.thermodynamics import FluidState, total_from_static, static_from_total
from axial_turbine.losses.calculator import LossBreakdown, LossCalculator


# ============================================================================ #
# FLOW STATION
# ============================================================================ #
@dataclass(frozen=True)
class FlowStation:
    """
    Flow conditions at a cascade inlet or outlet

    Attributes:
        static: Static state
        total: Stagnation state (absolute frame)
        relative_total: Stagnation state in the frame of the blade row
        v, v_m, v_t: Absolute velocity and its meridional/tangential components
        w, w_t: Relative velocity and its tangential component
        u: Blade speed of the frame (zero for stators)
        alpha: Absolute flow angle (degrees)
        beta: Relative flow angle (degrees)
        Ma, Ma_rel: Absolute and relative Mach numbers
        height: Annulus height from continuity
        radius: Mean radius
        r_hub, r_tip: Hub and tip radii
    """
    static: FluidState
    total: FluidState
    relative_total: FluidState
    v: float
    v_m: float
    v_t: float
    w: float
    w_t: float
    u: float
    alpha: float
    beta: float
    Ma: float
    Ma_rel: float
    height: float
    radius: float
    r_hub: float
    r_tip: float

    @property
    def r_ht(self) -> float:
        """Hub-to-tip ratio"""
        return self.r_hub / self.r_tip

    @property
    def area(self) -> float:
        """Annulus flow area"""
        return 2 * math.pi * self.radius * self.height


def make_station(static: FluidState, v_m: float, w_t: float, u: float,
                 height: float, radius: float) -> FlowStation:
    """
    Build a flow station from the static state and the velocity triangle

    Raises:
        ModelDomainError: Annulus height larger than the mean diameter, or
            no speed of sound at the static state
        PropertyEvaluationError: Stagnation states cannot be evaluated
    """
    if not static.A > 0:
        raise ModelDomainError(
            f"No speed of sound at P={static.P:.6g} Pa, H={static.H:.6g} J/kg ({static.phase})"
        )
    r_hub, r_tip = annulus_radii(radius, height)
    v_t = w_t + u
    v = math.hypot(v_m, v_t)
    w = math.hypot(v_m, w_t)
    return FlowStation(
        static=static,
        total=total_from_static(static, v),
        relative_total=total_from_static(static, w),
        v=v,
        v_m=v_m,
        v_t=v_t,
        w=w,
        w_t=w_t,
        u=u,
        alpha=math.degrees(math.atan2(v_t, v_m)),
        beta=math.degrees(math.atan2(w_t, v_m)),
        Ma=v / static.A,
        Ma_rel=w / static.A,
        height=height,
        radius=radius,
        r_hub=r_hub,
        r_tip=r_tip,
    )


def reframe(station: FlowStation, u: float) -> FlowStation:
    """Express a station in a frame moving at blade speed u (w_t = v_t - u)"""
    if station.u == u:
        return station
    return make_station(station.static, station.v_m, station.v_t - u, u,
                        station.height, station.radius)


def continuity_height(mass_flow: float, density: float, v_m: float, radius: float) -> float:
    """Annulus height H = m / (rho * v_m * 2*pi*r)"""
    if v_m <= 0:
        raise ModelDomainError(f"Meridional velocity must be positive, got {v_m:.4g} m/s")
    return mass_flow / (density * v_m * 2 * math.pi * radius)


def inlet_station(params: FixedParameters, reduced_velocity: float, radius: float) -> FlowStation:
    """
    First stator inlet from the turbine inlet stagnation state

    Args:
        params: Fixed parameters
        reduced_velocity: Inlet velocity over the spouting velocity
        radius: Mean radius (m)
    """
    if not math.isfinite(reduced_velocity) or reduced_velocity <= 0:
        raise ConfigurationError(f"Inlet reduced velocity must be positive, got {reduced_velocity}")

    v = reduced_velocity * params.v0
    static = static_from_total(params.inlet_total, v)
    v_m = v * cosd(params.angle_in)
    v_t = v * sind(params.angle_in)
    height = continuity_height(params.mass_flow, static.D, v_m, radius)
    return make_station(static, v_m, v_t, 0.0, height, radius)


# ============================================================================ #
# CASCADE STATE
# ============================================================================ #
@dataclass(frozen=True)
class CascadeState:
    """
    Solved blade row

    Attributes:
        index: Position in flow order (0-based)
        kind: Stator or rotor
        inlet: Inlet station in the frame of the row
        outlet: Outlet station in the frame of the row
        geometry: Blade row geometry
        loss: Loss breakdown and consistency residual
    """
    index: int
    kind: CascadeKind
    inlet: FlowStation
    outlet: FlowStation
    geometry: CascadeGeometry
    loss: LossBreakdown

    @property
    def is_rotor(self) -> bool:
        return self.kind is CascadeKind.ROTOR

    @property
    def entropy_generation(self) -> float:
        """Entropy rise across the row (J/kg-K)"""
        return self.outlet.static.S - self.inlet.static.S

    @property
    def deflection(self) -> float:
        """Relative flow turning (degrees)"""
        return abs(self.outlet.beta - self.inlet.beta)


def solve_cascade(inlet: FlowStation,
                  reduced_velocity: float,
                  relative_angle: float,
                  aspect_ratio: float,
                  pitch_to_chord: float,
                  entropy_ratio: float,
                  index: int,
                  omega: float,
                  params: FixedParameters,
                  calculator: Optional[LossCalculator] = None) -> CascadeState:
    """
    Solve one blade row

    Args:
        inlet: Outlet station of the previous row (or the turbine inlet)
        reduced_velocity: Exit relative velocity over the spouting velocity
        relative_angle: Exit relative flow angle (rad)
        aspect_ratio: Height to chord ratio
        pitch_to_chord: Spacing to chord ratio
        entropy_ratio: Exit entropy over the turbine inlet entropy
        index: Position in flow order (even: stator, odd: rotor)
        omega: Angular speed (rad/s)
        params: Fixed parameters
        calculator: Loss calculator (built from params if not given)

    Returns:
        CascadeState

    Raises:
        ConfigurationError: Non-positive or non-finite reduced velocity
        ModelDomainError: Non-physical annulus or loss evaluation
        PropertyEvaluationError: Outlet state cannot be evaluated
    """
    if not math.isfinite(reduced_velocity) or reduced_velocity <= 0:
        raise ConfigurationError(
            f"Reduced velocity of cascade {index + 1} must be positive, got {reduced_velocity}"
        )
    if calculator is None:
        calculator = LossCalculator(params.loss_system)

    kind = CascadeKind.from_index(index)
    radius = inlet.radius
    u = omega * radius if kind is CascadeKind.ROTOR else 0.0

    # Inlet in the frame of this row
    inlet = reframe(inlet, u)

    # Outlet velocity triangle
    beta_out = math.degrees(relative_angle)
    w_out = reduced_velocity * params.v0
    v_m = w_out * cosd(beta_out)
    w_t = w_out * sind(beta_out)

    # Rothalpy conservation and prescribed entropy
    h_out = inlet.static.H + 0.5 * inlet.w**2 - 0.5 * w_out**2
    s_out = entropy_ratio * params.inlet_total.S
    static = params.fluid.thermo_prop('HS', h_out, s_out)

    height = continuity_height(params.mass_flow, static.D, v_m, radius)
    outlet = make_station(static, v_m, w_t, u, height, radius)

    geometry = compute_cascade_geometry(
        kind,
        radius,
        inlet.height,
        outlet.height,
        theta_in=inlet.beta,
        theta_out=outlet.beta,
        aspect_ratio=aspect_ratio,
        pitch_to_chord=pitch_to_chord,
        tip_clearance=params.tip_clearance,
        t_max_c=params.t_max_c,
        t_te_min=params.t_te_min,
        t_te_o=params.t_te_o,
    )

    loss = calculator.compute_cascade_loss(geometry, inlet, outlet, params.loss_coefficient)

    return CascadeState(
        index=index,
        kind=kind,
        inlet=inlet,
        outlet=outlet,
        geometry=geometry,
        loss=loss,
    )
