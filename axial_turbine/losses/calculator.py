# File: axial_turbine/losses/calculator.py

"""
Loss calculator

Evaluates the selected loss system for one cascade and relates the
correlation value to the thermodynamic states through the loss coefficient
definition (stagnation pressure, enthalpy or entropy based).

Definitions (relative frame, exit static conditions):
    Y_p0 = (p0r_in - p0r_out) / (p0r_out - p_out)
    Y_h  = (h_out - h_out,s) / (w_out²/2)
    Y_s  = T_out * (s_out - s_in) / (w_out²/2)

The exit states compared by the conversions share rothalpy and the exit
relative velocity, so they share the exit static enthalpy and differ only
in entropy.
"""

import math
from dataclasses import dataclass
from typing import Dict

from scipy.optimize import brentq

from ..core.exceptions import ModelDomainError
from ..core.parameters import LossCoefficient, LossSystem
from .models import get_model, AVAILABLE_MODELS, LOSS_COMPONENTS


@dataclass(frozen=True)
class LossBreakdown:
    """
    Loss coefficients of one cascade

    The components add up to the correlation total. `computed` is the
    coefficient obtained from the cascade states under `definition`; its
    difference with the correlation is the consistency residual enforced by
    the optimizer.
    """
    profile: float
    secondary: float
    trailing_edge: float
    clearance: float
    shock: float
    correlation: float
    computed: float
    definition: LossCoefficient

    @property
    def total(self) -> float:
        return self.correlation

    @property
    def residual(self) -> float:
        return self.computed - self.correlation

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in LOSS_COMPONENTS}

    def fractions(self) -> Dict[str, float]:
        """Share of each component in the total loss"""
        if self.correlation == 0:
            return {name: 0.0 for name in LOSS_COMPONENTS}
        return {name: value / self.correlation for name, value in self.as_dict().items()}


# ============================================================================
# LOSS COEFFICIENT DEFINITIONS
# ============================================================================

def _coefficient(definition: LossCoefficient, p0r_in: float, s_in: float,
                 static, p0r_out: float, w_out: float) -> float:
    """Loss coefficient of an exit state under the given definition"""
    kinetic = 0.5 * w_out**2
    if definition is LossCoefficient.STAGNATION_PRESSURE:
        return (p0r_in - p0r_out) / (p0r_out - static.P)
    if definition is LossCoefficient.ENTHALPY:
        h_out_s = static.fluid.thermo_prop('PS', static.P, s_in).H
        return (static.H - h_out_s) / kinetic
    if definition is LossCoefficient.ENTROPY:
        return static.T * (static.S - s_in) / kinetic
    raise ValueError(f"Unknown loss coefficient definition: {definition}")


def loss_coefficient_from_states(inlet, outlet, definition) -> float:
    """
    Loss coefficient of a cascade from its inlet and outlet stations

    Args:
        inlet, outlet: Flow stations in the frame of the blade row
        definition: LossCoefficient or its string value ('p0', 'h', 's')
    """
    definition = LossCoefficient.from_string(definition)
    return _coefficient(
        definition,
        inlet.relative_total.P,
        inlet.static.S,
        outlet.static,
        outlet.relative_total.P,
        outlet.w,
    )


def _exit_state(outlet, entropy: float):
    """Exit static state and relative stagnation pressure at another entropy"""
    fluid = outlet.static.fluid
    static = fluid.thermo_prop('HS', outlet.static.H, entropy)
    p0r = fluid.thermo_prop('HS', outlet.static.H + 0.5 * outlet.w**2, entropy).P
    return static, p0r


def entropy_from_loss_coefficient(Y: float, definition, inlet, outlet) -> float:
    """
    Exit entropy that reproduces a loss coefficient

    Solves Y_def(s_out) = Y over exit states with the outlet static
    enthalpy and relative velocity (bracketed root find).

    Args:
        Y: Loss coefficient
        definition: Definition under which Y is expressed
        inlet, outlet: Flow stations in the frame of the blade row

    Returns:
        float: Exit entropy (J/kg-K)

    Raises:
        ModelDomainError: Negative or non-finite coefficient, or no bracket found
    """
    definition = LossCoefficient.from_string(definition)
    if not math.isfinite(Y) or Y < 0:
        raise ModelDomainError(f"Loss coefficient must be finite and non-negative, got {Y}")

    s_in = inlet.static.S
    if Y == 0:
        return s_in

    p0r_in = inlet.relative_total.P

    def residual(s):
        static, p0r = _exit_state(outlet, s)
        return _coefficient(definition, p0r_in, s_in, static, p0r, outlet.w) - Y

    # Entropy rise of the same coefficient read as an entropy loss
    kinetic = 0.5 * outlet.w**2
    step = max(Y * kinetic / outlet.static.T, 1e-6 * abs(s_in))
    s_high = s_in + step
    for _ in range(60):
        if residual(s_high) > 0:
            break
        step *= 2
        s_high = s_in + step
    else:
        raise ModelDomainError(f"No exit entropy reproduces the loss coefficient {Y:.4g}")

    return brentq(residual, s_in, s_high, xtol=1e-12, rtol=1e-14)


def convert_loss_coefficient(Y: float, from_definition, to_definition, inlet, outlet) -> float:
    """
    Express a loss coefficient under another definition

    Example:
        >>> Y_s = convert_loss_coefficient(0.08, 'p0', 's', inlet, outlet)
    """
    from_definition = LossCoefficient.from_string(from_definition)
    to_definition = LossCoefficient.from_string(to_definition)
    if from_definition is to_definition:
        return Y

    entropy = entropy_from_loss_coefficient(Y, from_definition, inlet, outlet)
    static, p0r = _exit_state(outlet, entropy)
    return _coefficient(
        to_definition, inlet.relative_total.P, inlet.static.S, static, p0r, outlet.w
    )


# ============================================================================
# CALCULATOR
# ============================================================================

class LossCalculator:
    """
    Loss calculator for one loss system

    Example:
        >>> calc = LossCalculator('KO')
        >>> loss = calc.compute_cascade_loss(geom, inlet, outlet, 'p0')
        >>> loss.residual
    """

    def __init__(self, model_name='KO'):
        """Initialize with a loss system name or LossSystem member"""
        model_name = LossSystem.from_string(model_name).value
        self.model = get_model(model_name)
        self.model_name = model_name

    def compute_losses(self, geom, inlet, outlet) -> Dict[str, float]:
        """
        Loss coefficients by component

        Raises:
            ModelDomainError: Non-finite or negative total loss
        """
        losses = self.model.compute_cascade_losses(geom, inlet, outlet)
        total = self.get_total_loss(losses)
        if not math.isfinite(total):
            raise ModelDomainError(f"{self.model_name} loss is not finite: {losses}")
        if total < 0:
            raise ModelDomainError(f"{self.model_name} loss is negative: {total:.4g}")
        return losses

    def compute_cascade_loss(self, geom, inlet, outlet, definition) -> LossBreakdown:
        """Loss breakdown with the consistency residual of the cascade"""
        definition = LossCoefficient.from_string(definition)
        losses = self.compute_losses(geom, inlet, outlet)
        return LossBreakdown(
            correlation=self.get_total_loss(losses),
            computed=loss_coefficient_from_states(inlet, outlet, definition),
            definition=definition,
            **losses,
        )

    def get_total_loss(self, loss_dict: Dict[str, float]) -> float:
        """Sum all loss components"""
        return sum(loss_dict.values())

    def __repr__(self):
        return f"LossCalculator(model='{self.model_name}')"


def compute_loss(geom, inlet, outlet, correlation, coefficient_kind):
    """
    Loss coefficient and entropy generation of a cascade

    Args:
        geom: CascadeGeometry
        inlet, outlet: Flow stations in the frame of the blade row
        correlation: Loss system ('AM', 'DC', 'KO')
        coefficient_kind: Loss coefficient definition ('p0', 'h', 's')

    Returns:
        tuple: (loss coefficient, entropy generated in J/kg-K)
    """
    calc = LossCalculator(correlation)
    Y = calc.get_total_loss(calc.compute_losses(geom, inlet, outlet))
    entropy = entropy_from_loss_coefficient(Y, coefficient_kind, inlet, outlet)
    return Y, entropy - inlet.static.S


def available_models() -> list:
    """List models"""
    return list(AVAILABLE_MODELS.keys())
