# File: axial_turbine/core/thermodynamics.py
"""
Thermodynamic property calculations

Thin wrapper around CoolProp acting as the property oracle of the
mean-line model. Every call is stateless so that independent evaluations
can run concurrently.
"""

import math
from dataclasses import dataclass, field
import CoolProp.CoolProp as CP


class PropertyEvaluationError(Exception):
    """Raised when the property back-end cannot resolve a thermodynamic state"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


# CoolProp input keys for each supported property pair
_MODES = {
    "PT": ("P", "T"),
    "PH": ("P", "H"),
    "PS": ("P", "S"),
    "PD": ("P", "D"),
    "HS": ("H", "S"),
    "DT": ("D", "T"),
}

_NEWTON_ITERATIONS = 4


def _abstract_state(fluid_name: str):
    """CoolProp AbstractState for a "BACKEND::fluid" or plain fluid name"""
    backend, _, name = fluid_name.rpartition("::")
    return CP.AbstractState(backend or "HEOS", name)


def query(output: str, input1: str, value1: float,
          input2: str, value2: float, fluid: str) -> float:
    """
    Evaluate a single property with CoolProp

    Args:
        output: CoolProp output key (e.g. 'H', 'D', 'Cpmass')
        input1, value1: First known property
        input2, value2: Second known property
        fluid: CoolProp fluid identifier (e.g. 'HEOS::R125', 'Air')

    Returns:
        Property value in SI units

    Raises:
        PropertyEvaluationError: CoolProp failed or returned a non-finite value
    """
    if not (math.isfinite(value1) and math.isfinite(value2)):
        raise PropertyEvaluationError(
            f"Non-finite input for {output}({input1}={value1}, {input2}={value2})"
        )
    try:
        value = CP.PropsSI(output, input1, value1, input2, value2, fluid)
    except ValueError as e:
        raise PropertyEvaluationError(
            f"{output}({input1}={value1}, {input2}={value2}) failed for {fluid}: {e}"
        ) from e

    if not math.isfinite(value):
        raise PropertyEvaluationError(
            f"{output}({input1}={value1}, {input2}={value2}) is not finite for {fluid}"
        )
    return value


@dataclass(frozen=True)
class FluidState:
    """
    Immutable thermodynamic state of the working fluid

    Unresolved properties stay NaN. Instances are shared between cascade
    stations and solutions.
    """
    P: float = math.nan      # Pa
    T: float = math.nan      # K
    D: float = math.nan      # kg/m³
    H: float = math.nan      # J/kg
    S: float = math.nan      # J/kg/K
    A: float = math.nan      # m/s, NaN inside the dome
    V: float = math.nan      # Pa.s, NaN inside the dome
    cp: float = math.nan     # J/kg/K
    cv: float = math.nan     # J/kg/K
    phase: str = ""          # CoolProp PhaseSI string
    fluid: 'Fluid' = field(default=None, repr=False, compare=False)

    @property
    def is_valid(self) -> bool:
        return not math.isnan(self.P)

    @property
    def gamma(self) -> float:
        """cp/cv"""
        return self.cp / self.cv

    def is_two_phase(self) -> bool:
        return self.phase.lower() == 'twophase'


class Fluid:
    """Named CoolProp fluid producing full FluidState objects"""

    def __init__(self, fluid_name: str = "Air"):
        """
        Args:
            fluid_name: CoolProp identifier, backend prefix allowed
                (e.g. "HEOS::R125", "CO2")

        Raises:
            ValueError: CoolProp does not know the fluid
        """
        self.name = fluid_name

        try:
            CP.PropsSI('M', fluid_name)
        except ValueError:
            raise ValueError(f"Unknown CoolProp fluid '{fluid_name}'")

    def __eq__(self, other) -> bool:
        return isinstance(other, Fluid) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Fluid('{self.name}')"

    def thermo_prop(self, mode: str, val1: float, val2: float) -> FluidState:
        """
        Resolve the full state from one of the property pairs in _MODES

        Single-phase HS states are polished by Newton iterations on
        (T, rho) so that the returned state reproduces h and s to round-off.

        Example:
            >>> Fluid("HEOS::R125").thermo_prop("PT", 36.18e5, 428.15)

        Raises:
            ValueError: Unsupported pair
            PropertyEvaluationError: CoolProp could not resolve the state
        """
        if mode not in _MODES:
            raise ValueError(f"Unknown mode: {mode}. Supported pairs: {', '.join(_MODES)}")

        state = self._flash(mode, val1, val2)
        if mode != "HS" or state.is_two_phase():
            return state
        T, D = self._refine_hs(val1, val2, state.T, state.D)
        return self._flash("DT", D, T)

    def _flash(self, mode: str, val1: float, val2: float) -> FluidState:
        key1, key2 = _MODES[mode]
        known = {key1: val1, key2: val2}

        def prop(name: str) -> float:
            if name in known:
                return known[name]
            return query(name, key1, val1, key2, val2, self.name)

        try:
            phase = CP.PhaseSI(key1, val1, key2, val2, self.name)
        except ValueError as e:
            raise PropertyEvaluationError(f"Phase calculation failed for {mode}({val1}, {val2}): {e}") from e

        two_phase = phase.lower() == 'twophase'

        def optional(name: str) -> float:
            # Transport properties, heat capacities and speed of sound are
            # not defined inside the dome for most back-ends
            try:
                return prop(name)
            except PropertyEvaluationError:
                if not two_phase:
                    raise
                return math.nan

        P = prop('P')
        S = prop('S')
        A = optional('A')
        if two_phase and math.isnan(A):
            A = self.equilibrium_sound_speed(P, S)

        return FluidState(
            P=P,
            T=prop('T'),
            D=prop('D'),
            H=prop('H'),
            S=S,
            A=A,
            V=optional('V'),
            cp=optional('Cpmass'),
            cv=optional('Cvmass'),
            phase=phase,
            fluid=self
        )

    def _refine_hs(self, h: float, s: float, T: float, D: float):
        """Newton iterations on h(T, rho) = h, s(T, rho) = s"""
        try:
            state = _abstract_state(self.name)
            for _ in range(_NEWTON_ITERATIONS):
                state.update(CP.DmassT_INPUTS, D, T)
                dh = state.hmass() - h
                ds = state.smass() - s
                h_T = state.first_partial_deriv(CP.iHmass, CP.iT, CP.iDmass)
                h_D = state.first_partial_deriv(CP.iHmass, CP.iDmass, CP.iT)
                s_T = state.first_partial_deriv(CP.iSmass, CP.iT, CP.iDmass)
                s_D = state.first_partial_deriv(CP.iSmass, CP.iDmass, CP.iT)
                det = h_T * s_D - h_D * s_T
                dT = (dh * s_D - h_D * ds) / det
                dD = (h_T * ds - s_T * dh) / det
                T -= dT
                D -= dD
                if abs(dT) <= 1e-14 * T and abs(dD) <= 1e-14 * D:
                    break
        except (ValueError, ZeroDivisionError) as e:
            raise PropertyEvaluationError(f"HS refinement failed for {self.name} at h={h}, s={s}: {e}") from e

        if not (math.isfinite(T) and math.isfinite(D) and T > 0 and D > 0):
            raise PropertyEvaluationError(f"HS refinement diverged for {self.name} at h={h}, s={s}")
        return T, D

    def equilibrium_sound_speed(self, P: float, S: float) -> float:
        """
        Homogeneous equilibrium speed of sound a² = (dP/drho)_s

        Central difference along the isentrope, used inside the two-phase
        dome where the back-end does not define a speed of sound.
        """
        dp = 1e-4 * P
        d_plus = query('D', 'P', P + dp, 'S', S, self.name)
        d_minus = query('D', 'P', P - dp, 'S', S, self.name)
        if not d_plus > d_minus:
            raise PropertyEvaluationError(
                f"Density does not increase with pressure at P={P}, S={S} for {self.name}"
            )
        return math.sqrt(2 * dp / (d_plus - d_minus))

    def gruneisen(self, state: FluidState) -> float:
        """
        Grüneisen parameter G = (1/rho) (dP/de)_rho

        Used by the one-dimensional diffuser to account for the pressure
        rise caused by entropy generation at constant density.
        """
        dp_de = query('d(P)/d(Umass)|Dmass', 'D', state.D, 'P', state.P, self.name)
        return dp_de / state.D


def _shift_enthalpy(state: FluidState, dh: float) -> FluidState:
    # Isentropic move between static and stagnation conditions
    if not state.is_valid:
        raise PropertyEvaluationError(f"Cannot shift an unresolved state {state}")
    if state.fluid is None:
        raise PropertyEvaluationError("FluidState has no fluid reference")
    return state.fluid.thermo_prop("HS", state.H + dh, state.S)


def static_from_total(total: FluidState, velocity: float) -> FluidState:
    """Static state at h = h0 - v²/2 and the stagnation entropy"""
    return _shift_enthalpy(total, -0.5 * velocity**2)


def total_from_static(static: FluidState, velocity: float) -> FluidState:
    """Stagnation state at h0 = h + v²/2 and the static entropy"""
    return _shift_enthalpy(static, 0.5 * velocity**2)
