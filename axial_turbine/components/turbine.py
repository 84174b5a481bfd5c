# File: axial_turbine/components/turbine.py
"""
Turbine - Mean-line evaluation of a multi-stage axial turbine

Chains the cascades in flow order (stator, rotor, stator, ...) and the
exhaust diffuser, then computes the overall performance:

    design vector -> inlet station -> cascade 1 ... cascade 2n -> diffuser

Any property or model domain failure ends the evaluation early and yields
an InfeasibleResult whose penalty grows the earlier the failure happens.
"""

import math
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
import pandas as pd

from axial_turbine.core.exceptions import ConfigurationError, ModelDomainError
from axial_turbine.core.parameters import DesignVariables, FixedParameters, ObjectiveFunction, omega_to_rpm
from axial_turbine.core.thermodynamics import PropertyEvaluationError
from axial_turbine.components.cascade import CascadeState, FlowStation, inlet_station, solve_cascade
from axial_turbine.components.diffuser import DiffuserResult, compute_diffuser
from axial_turbine.losses.calculator import LossCalculator


# Objective value of infeasible points before the position weighting
PENALTY = 10.0

# Entropy decrease tolerated as round-off (relative to the inlet entropy)
ENTROPY_TOLERANCE = 1e-12


# ============================================================================ #
# RESULT CLASSES
# ============================================================================ #
@dataclass(frozen=True)
class StagePerformance:
    """
    Stage metrics

    Attributes:
        index: Stage number (0-based)
        reaction: Degree of reaction based on static enthalpies
        work: Specific work h0_in - h0_out (J/kg)
        loading: Work over blade speed squared
        flow_coefficient: Rotor exit meridional velocity over blade speed
    """
    index: int
    reaction: float
    work: float
    loading: float
    flow_coefficient: float


@dataclass(frozen=True)
class InfeasibleResult:
    """
    Failed evaluation

    Attributes:
        reason: Error message of the failure
        component: Where the evaluation stopped ('inlet', 'cascade 3', ...)
        penalty: Objective value handed to the optimizer
    """
    reason: str
    component: str
    penalty: float

    @property
    def feasible(self) -> bool:
        return False


@dataclass(frozen=True)
class TurbineSolution:
    """
    Complete mean-line solution

    Attributes:
        cascades: Blade rows in flow order
        stages: Stage metrics
        diffuser: Diffuser result (passthrough when disabled)
        radius: Mean radius (m)
        omega: Angular speed (rad/s)
        rpm: Rotational speed (rpm)
        mass_flow: Mass flow rate (kg/s)
        specific_speed, specific_diameter: Design point similarity parameters
        eta_ts: Total-to-static efficiency
        eta_tt: Total-to-total efficiency (last cascade exit)
        power: Shaft power (W)
        loss_residuals: Loss coefficient consistency residual per cascade
    """
    cascades: Tuple[CascadeState, ...]
    stages: Tuple[StagePerformance, ...]
    diffuser: DiffuserResult
    radius: float
    omega: float
    rpm: float
    mass_flow: float
    specific_speed: float
    specific_diameter: float
    eta_ts: float
    eta_tt: float
    power: float
    loss_residuals: Tuple[float, ...]

    @property
    def feasible(self) -> bool:
        return True

    @property
    def n_stages(self) -> int:
        return len(self.stages)

    @property
    def stations(self) -> Tuple[FlowStation, ...]:
        """First cascade inlet followed by every cascade outlet"""
        return (self.cascades[0].inlet,) + tuple(c.outlet for c in self.cascades)

    @property
    def exit_state(self):
        """Static state at the turbine exit (diffuser outlet)"""
        return self.diffuser.exit_state

    def efficiency(self, objective) -> float:
        """Efficiency for an ObjectiveFunction member or its string"""
        if ObjectiveFunction.from_string(objective) is ObjectiveFunction.TOTAL_TO_TOTAL:
            return self.eta_tt
        return self.eta_ts

    def to_dataframe(self) -> pd.DataFrame:
        """One row per cascade with geometry, flow and loss data"""
        rows = []
        for c in self.cascades:
            g = c.geometry
            rows.append({
                'cascade': c.index + 1,
                'kind': c.kind.value,
                'radius': g.radius,
                'H_in': g.H_in,
                'H_out': g.H_out,
                'chord': g.chord,
                'pitch': g.pitch,
                'axial_chord': g.axial_chord,
                'stagger': g.stagger,
                'n_blades': g.n_blades,
                'opening': g.opening,
                't_te': g.t_te,
                'tip_clearance': g.tip_clearance,
                'flare_angle': g.flare_angle,
                'r_ht_in': g.r_ht_in,
                'r_ht_out': g.r_ht_out,
                'beta_in': c.inlet.beta,
                'beta_out': c.outlet.beta,
                'alpha_out': c.outlet.alpha,
                'w_out': c.outlet.w,
                'v_out': c.outlet.v,
                'u': c.outlet.u,
                'Ma_rel_out': c.outlet.Ma_rel,
                'p_out': c.outlet.static.P,
                'T_out': c.outlet.static.T,
                's_out': c.outlet.static.S,
                'Y_profile': c.loss.profile,
                'Y_secondary': c.loss.secondary,
                'Y_trailing_edge': c.loss.trailing_edge,
                'Y_clearance': c.loss.clearance,
                'Y_shock': c.loss.shock,
                'Y_total': c.loss.correlation,
                'Y_computed': c.loss.computed,
            })
        return pd.DataFrame(rows)

    def summary(self) -> str:
        """Plain-text report of the performance and the cascade geometry"""
        lines = [
            "=" * 70,
            "AXIAL TURBINE MEAN-LINE SOLUTION",
            "=" * 70,
            f"  Stages:                   {self.n_stages}",
            f"  Mass flow:                {self.mass_flow:.4f} kg/s",
            f"  Rotational speed:         {self.rpm:.1f} rpm",
            f"  Mean diameter:            {2 * self.radius:.4f} m",
            f"  Specific speed:           {self.specific_speed:.4f}",
            f"  Specific diameter:        {self.specific_diameter:.4f}",
            f"  Power:                    {self.power / 1e3:.2f} kW",
            f"  Total-to-static eff.:     {self.eta_ts * 100:.2f} %",
            f"  Total-to-total eff.:      {self.eta_tt * 100:.2f} %",
            f"  Diffuser ({self.diffuser.model.value}): Ma_in = {self.diffuser.Ma_inlet:.3f}, "
            f"Cp = {self.diffuser.pressure_recovery:.3f}",
            "-" * 70,
        ]
        for stage in self.stages:
            lines.append(f"  Stage {stage.index + 1}: reaction = {stage.reaction:.3f}, "
                         f"work = {stage.work / 1e3:.2f} kJ/kg, loading = {stage.loading:.3f}")
        lines.append("-" * 70)

        table = self.to_dataframe()[[
            'cascade', 'kind', 'H_out', 'chord', 'pitch', 'n_blades',
            'beta_in', 'beta_out', 'Ma_rel_out', 'Y_total',
        ]]
        lines.append(table.to_string(index=False, float_format=lambda x: f"{x:.4g}"))
        lines.append("=" * 70)
        return "\n".join(lines)


# ============================================================================ #
# PERFORMANCE
# ============================================================================ #
def _stage_performance(stator: CascadeState, rotor: CascadeState, index: int) -> StagePerformance:
    h_in = stator.inlet.static.H
    h_mid = rotor.inlet.static.H
    h_out = rotor.outlet.static.H
    u = rotor.outlet.u
    work = stator.inlet.total.H - rotor.outlet.total.H
    if not h_in - h_out > 0:
        raise ModelDomainError(
            f"Stage {index + 1} has no static enthalpy drop (dh = {h_in - h_out:.4g} J/kg)"
        )
    return StagePerformance(
        index=index,
        reaction=(h_mid - h_out) / (h_in - h_out),
        work=work,
        loading=work / u**2,
        flow_coefficient=rotor.outlet.v_m / u,
    )


def _check_design_values(dv: DesignVariables) -> Optional[str]:
    """Reason why a design point is not physical, or None"""
    scalars = (dv.specific_speed, dv.specific_diameter, dv.inlet_reduced_velocity)
    if not all(math.isfinite(x) and x > 0 for x in scalars):
        return f"Non-physical scalar design variables {scalars}"
    for name in ('outlet_reduced_velocity', 'aspect_ratio', 'pitch_to_chord', 'exit_entropy_ratio'):
        values = getattr(dv, name)
        if not (np.all(np.isfinite(values)) and np.all(values > 0)):
            return f"Non-physical {name} {values}"
    if not np.all(np.abs(dv.outlet_relative_angle) < math.pi / 2):
        return f"Relative angles must be within +/-90 deg, got {dv.outlet_relative_angle}"
    return None


def evaluate(design_vars: Union[DesignVariables, np.ndarray, list],
             params: FixedParameters,
             calculator: Optional[LossCalculator] = None) -> Union[TurbineSolution, InfeasibleResult]:
    """
    Evaluate the turbine for one design point

    Args:
        design_vars: DesignVariables or flat design vector
        params: Fixed parameters
        calculator: Loss calculator (built from params if not given)

    Returns:
        TurbineSolution, or InfeasibleResult when the design point cannot be
        evaluated

    Raises:
        ConfigurationError: Design vector length does not match n_stages
    """
    if not isinstance(design_vars, DesignVariables):
        design_vars = DesignVariables.from_vector(design_vars, params.n_stages)
    if design_vars.n_stages != params.n_stages:
        raise ConfigurationError(
            f"Design variables describe {design_vars.n_stages} stage(s), "
            f"fixed parameters {params.n_stages}"
        )
    if calculator is None:
        calculator = LossCalculator(params.loss_system)

    # Inlet, every cascade, diffuser and performance
    total_steps = params.n_cascades + 3

    reason = _check_design_values(design_vars)
    if reason is not None:
        return InfeasibleResult(reason=reason, component='design variables', penalty=2 * PENALTY)

    step = 0
    component = 'inlet'
    try:
        omega = params.angular_speed(design_vars.specific_speed)
        radius = params.mean_diameter(design_vars.specific_diameter) / 2

        station = inlet_station(params, design_vars.inlet_reduced_velocity, radius)
        step += 1

        cascades = []
        for i in range(params.n_cascades):
            component = f'cascade {i + 1}'
            cascade = solve_cascade(
                station,
                reduced_velocity=design_vars.outlet_reduced_velocity[i],
                relative_angle=design_vars.outlet_relative_angle[i],
                aspect_ratio=design_vars.aspect_ratio[i],
                pitch_to_chord=design_vars.pitch_to_chord[i],
                entropy_ratio=design_vars.exit_entropy_ratio[i],
                index=i,
                omega=omega,
                params=params,
                calculator=calculator,
            )
            tolerance = ENTROPY_TOLERANCE * abs(params.inlet_total.S)
            if cascade.entropy_generation < -tolerance:
                raise ModelDomainError(
                    f"Entropy decreases across cascade {i + 1} "
                    f"({cascade.entropy_generation:.4g} J/kg-K)"
                )
            cascades.append(cascade)
            station = cascade.outlet
            step += 1

        component = 'diffuser'
        diffuser = compute_diffuser(station, params.diffuser, params.diffuser_model)
        step += 1

        component = 'performance'
        h0_in = params.inlet_total.H
        h0_out = station.total.H
        s_in = params.inlet_total.S
        work = h0_in - h0_out
        h_out_tt = params.fluid.thermo_prop('PS', station.total.P, s_in).H
        eta_ts = work / params.dh_is
        eta_tt = work / (h0_in - h_out_tt)

        stages = tuple(
            _stage_performance(cascades[2 * k], cascades[2 * k + 1], k)
            for k in range(params.n_stages)
        )

    except (PropertyEvaluationError, ModelDomainError) as e:
        if isinstance(e, ModelDomainError):
            warnings.warn(f"Design point failed in {component}: {e}")
        remaining = total_steps - step
        return InfeasibleResult(
            reason=str(e),
            component=component,
            penalty=PENALTY * (1 + remaining / total_steps),
        )

    return TurbineSolution(
        cascades=tuple(cascades),
        stages=stages,
        diffuser=diffuser,
        radius=radius,
        omega=omega,
        rpm=omega_to_rpm(omega),
        mass_flow=params.mass_flow,
        specific_speed=design_vars.specific_speed,
        specific_diameter=design_vars.specific_diameter,
        eta_ts=eta_ts,
        eta_tt=eta_tt,
        power=params.mass_flow * work,
        loss_residuals=tuple(c.loss.residual for c in cascades),
    )
