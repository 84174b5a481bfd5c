# File: axial_turbine/components/diffuser.py
"""
Exhaust diffuser - Kinetic energy recovery after the last cascade

Available models:
- none: passthrough, zero recovery
- isentropic: v_out = v_in / AR, stagnation enthalpy and entropy conserved
- 1D: swirling compressible flow with wall friction in an annular channel
  of constant cant angle and divergence, integrated along the meridional
  coordinate. Not valid for two-phase inlet states.

Reference: Agromayor & Nord (2019), Japikse & Baines (1994)
"""

import math
from dataclasses import dataclass

import numpy as np
from scipy.integrate import solve_ivp

from axial_turbine.core.exceptions import ModelDomainError
from axial_turbine.core.geometry import sind, tand
from axial_turbine.core.parameters import DiffuserGeometry, DiffuserModel
from axial_turbine.core.thermodynamics import FluidState, static_from_total, total_from_static


# Meridional Mach number treated as choked
CHOKE_MACH = 0.99


@dataclass(frozen=True)
class DiffuserResult:
    """
    Diffuser inlet/outlet summary

    Attributes:
        model: Diffuser model used
        exit_state: Static state at the diffuser outlet
        exit_total: Stagnation state at the diffuser outlet
        v_in, v_out: Absolute velocity at inlet and outlet (m/s)
        kinetic_energy_recovered: (v_in² - v_out²)/2 (J/kg)
        Ma_inlet: Absolute Mach number at inlet
        pressure_recovery: Cp = (p_out - p_in) / (p0_in - p_in)
        length: Meridional length of the channel (m)
    """
    model: DiffuserModel
    exit_state: FluidState
    exit_total: FluidState
    v_in: float
    v_out: float
    kinetic_energy_recovered: float
    Ma_inlet: float
    pressure_recovery: float
    length: float


def diffuser_length(radius: float, height: float, geometry: DiffuserGeometry) -> float:
    """
    Meridional length that gives the prescribed area ratio

    Solves (r + L*sin(phi)) * (b + 2*L*tan(div)) = AR * r * b for L.
    """
    a = 2 * sind(geometry.phi) * tand(geometry.div)
    b = 2 * radius * tand(geometry.div) + height * sind(geometry.phi)
    c = radius * height * (1 - geometry.area_ratio)

    if c == 0:
        return 0.0
    if a == 0:
        if b == 0:
            raise ModelDomainError("Diffuser with zero cant and divergence angles cannot expand")
        return -c / b
    return (-b + math.sqrt(b**2 - 4 * a * c)) / (2 * a)


def _pressure_recovery(inlet, exit_state: FluidState) -> float:
    dynamic = inlet.total.P - inlet.static.P
    if dynamic <= 0:
        return 0.0
    return (exit_state.P - inlet.static.P) / dynamic


def _result(model, inlet, exit_state, exit_total, v_out, length):
    return DiffuserResult(
        model=model,
        exit_state=exit_state,
        exit_total=exit_total,
        v_in=inlet.v,
        v_out=v_out,
        kinetic_energy_recovered=0.5 * (inlet.v**2 - v_out**2),
        Ma_inlet=inlet.Ma,
        pressure_recovery=_pressure_recovery(inlet, exit_state),
        length=length,
    )


# ============================================================================ #
# MODELS
# ============================================================================ #
def _no_diffuser(inlet) -> DiffuserResult:
    return _result(DiffuserModel.NONE, inlet, inlet.static, inlet.total, inlet.v, 0.0)


def _isentropic_diffuser(inlet, geometry: DiffuserGeometry) -> DiffuserResult:
    v_out = inlet.v / geometry.area_ratio
    exit_state = static_from_total(inlet.total, v_out)
    length = diffuser_length(inlet.radius, inlet.height, geometry)
    return _result(DiffuserModel.ISENTROPIC, inlet, exit_state, inlet.total, v_out, length)


def _one_dimensional_diffuser(inlet, geometry: DiffuserGeometry) -> DiffuserResult:
    if inlet.static.is_two_phase():
        raise ModelDomainError(
            "The 1D diffuser model is not valid for two-phase inlet states, "
            "use the isentropic model or disable the diffuser"
        )

    fluid = inlet.static.fluid
    r_in = inlet.radius
    b_in = inlet.height
    sin_phi = sind(geometry.phi)
    tan_div = tand(geometry.div)
    Cf = geometry.Cf
    length = diffuser_length(r_in, b_in, geometry)

    if length == 0:
        return _result(DiffuserModel.ONE_DIMENSIONAL, inlet, inlet.static, inlet.total, inlet.v, 0.0)

    def rhs(m, y):
        v_m, v_t, rho, p = y
        state = fluid.thermo_prop('PD', p, rho)
        a = state.A
        G = fluid.gruneisen(state)

        r = r_in + m * sin_phi
        b = b_in + 2 * m * tan_div
        dA_A = sin_phi / r + 2 * tan_div / b
        v = math.hypot(v_m, v_t)

        # Viscous dissipation per unit mass and length
        D = Cf * v**3 / (b * v_m)

        dv_t = -v_t * sin_phi / r - Cf * v * v_t / (b * v_m)
        dv_m = v_m * (a**2 * dA_A - G * D + v_t**2 * sin_phi / r - Cf * v * v_m / b) / (v_m**2 - a**2)
        drho = -rho * (dv_m / v_m + dA_A)
        dp = a**2 * drho + rho * G * D
        return [dv_m, dv_t, drho, dp]

    def choke(m, y):
        v_m, _, rho, p = y
        return v_m / fluid.thermo_prop('PD', p, rho).A - CHOKE_MACH
    choke.terminal = True

    if inlet.v_m / inlet.static.A >= CHOKE_MACH:
        raise ModelDomainError(f"Diffuser inlet is choked (Ma_m = {inlet.v_m / inlet.static.A:.3f})")

    y0 = np.array([inlet.v_m, inlet.v_t, inlet.static.D, inlet.static.P])
    sol = solve_ivp(rhs, (0.0, length), y0, method='RK45', events=choke,
                    rtol=1e-6, atol=1e-9 * np.abs(y0) + 1e-12)

    if not sol.success:
        raise ModelDomainError(f"Diffuser integration failed: {sol.message}")
    if sol.status == 1:
        raise ModelDomainError(f"Diffuser chokes at m = {sol.t_events[0][0]:.4g} m")

    v_m, v_t, rho, p = sol.y[:, -1]
    exit_state = fluid.thermo_prop('PD', p, rho)
    v_out = math.hypot(v_m, v_t)
    exit_total = total_from_static(exit_state, v_out)
    return _result(DiffuserModel.ONE_DIMENSIONAL, inlet, exit_state, exit_total, v_out, length)


def compute_diffuser(inlet, geometry: DiffuserGeometry, model) -> DiffuserResult:
    """
    Evaluate the exhaust diffuser

    Args:
        inlet: Outlet station of the last cascade (absolute frame quantities,
            mean radius and annulus height are taken from it)
        geometry: Diffuser geometry
        model: DiffuserModel or its string value ('1D', 'isentropic', 'no')

    Returns:
        DiffuserResult

    Raises:
        ModelDomainError: 1D model with two-phase inlet, choking or
            integration failure
        PropertyEvaluationError: State evaluation failure
    """
    model = DiffuserModel.from_string(model)
    if model is DiffuserModel.NONE:
        return _no_diffuser(inlet)
    if model is DiffuserModel.ISENTROPIC:
        return _isentropic_diffuser(inlet, geometry)
    return _one_dimensional_diffuser(inlet, geometry)
