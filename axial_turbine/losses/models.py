# File: axial_turbine/losses/models.py

"""
Loss model definitions

Each loss system combines the components of components.py with its own
weighting rules. Models receive the cascade geometry and the inlet and
outlet flow stations (expressed in the frame of the blade row) and return
the loss breakdown as stagnation pressure loss coefficients.
"""

import math
from typing import Dict

from ..core.correlations import (
    reynolds_number,
    ainley_reynolds_correction,
    kacker_okapuu_reynolds_correction,
)
from ..core.geometry import CascadeKind, cosd
from .components import (
    loading_parameter,
    ProfileLoss,
    SecondaryLoss,
    TipClearanceLoss,
    TrailingEdgeLoss,
    ShockLoss,
)


LOSS_COMPONENTS = ('profile', 'secondary', 'trailing_edge', 'clearance', 'shock')


def cascade_angles(inlet, outlet):
    """
    Flow angles in the Ainley-Mathieson cascade convention

    The exit angle is taken positive; the inlet angle is positive when the
    flow enters on the opposite side of the exit direction.

    Args:
        inlet, outlet: Flow stations in the frame of the blade row

    Returns:
        tuple: (beta1, alpha2) in degrees
    """
    alpha2 = abs(outlet.beta)
    beta1 = -inlet.beta * math.copysign(1.0, outlet.beta)
    return beta1, alpha2


def exit_reynolds_number(geom, outlet) -> float:
    """Reynolds number based on the chord and the exit relative velocity"""
    static = outlet.static
    return reynolds_number(static.D, outlet.w, geom.chord, static.V)


# ============================================================================
# BASE MODEL CLASS
# ============================================================================

class BaseLossModel:
    """Base class for all loss models"""

    def __init__(self, name: str):
        self.name = name

    def compute_cascade_losses(self, geom, inlet, outlet) -> Dict[str, float]:
        """Override in subclasses - returns loss coefficients by component"""
        raise NotImplementedError(f"{self.name} model must implement compute_cascade_losses")


# ============================================================================
# AINLEY-MATHIESON MODEL (1951)
# ============================================================================

class AinleyMathiesonLossModel(BaseLossModel):
    """
    Ainley and Mathieson (1951) loss model

    Y = (Y_p + Y_s + Y_cl) * f_te

    1. Profile: nozzle/impulse interpolation, (Re/2e5)^-0.2 correction
    2. Secondary: lambda(A2/A1, r_ht) * Z
    3. Clearance: 0.5 * k/H * Z
    4. Trailing edge: f_te = 1 + 7*(t_te/s - 0.02) multiplies the sum
    """

    def __init__(self):
        super().__init__("AM")

    def compute_cascade_losses(self, geom, inlet, outlet):
        beta1, alpha2 = cascade_angles(inlet, outlet)
        Z, _, _ = loading_parameter(beta1, alpha2)

        f_Re = ainley_reynolds_correction(exit_reynolds_number(geom, outlet))
        Y_p = ProfileLoss.ainley_mathieson(
            geom.pitch_to_chord, beta1, alpha2, geom.t_max / geom.chord
        ) * f_Re

        # Ratio of flow areas normal to the flow directions
        A_ratio = (geom.H_out * cosd(alpha2)) / (geom.H_in * cosd(beta1))
        Y_s = SecondaryLoss.ainley_mathieson(Z, A_ratio, geom.r_ht)
        Y_cl = TipClearanceLoss.ainley_mathieson(Z, geom.tip_clearance, geom.height)

        f_te = TrailingEdgeLoss.ainley_mathieson_factor(geom.t_te, geom.pitch)

        return {
            'profile': Y_p,
            'secondary': Y_s,
            'clearance': Y_cl,
            'trailing_edge': (f_te - 1) * (Y_p + Y_s + Y_cl),
            'shock': 0.0,
        }


# ============================================================================
# DUNHAM-CAME MODEL (1970)
# ============================================================================

class DunhamCameLossModel(BaseLossModel):
    """
    Dunham and Came (1970) loss model

    Y = (Y_p + Y_s) * f_te + Y_cl

    1. Profile: Ainley-Mathieson with Reynolds and supersonic exit corrections
    2. Secondary: 0.0334 * (c/H) * (cos(alpha2)/cos(beta1)) * Z
    3. Clearance: 0.47 * (c/H) * (k/c)^0.78 * Z
    """

    def __init__(self):
        super().__init__("DC")

    def compute_cascade_losses(self, geom, inlet, outlet):
        beta1, alpha2 = cascade_angles(inlet, outlet)
        Z, _, _ = loading_parameter(beta1, alpha2)

        f_Re = ainley_reynolds_correction(exit_reynolds_number(geom, outlet))
        f_Ma = ProfileLoss.dunham_came_mach_correction(outlet.Ma_rel)
        Y_p = ProfileLoss.ainley_mathieson(
            geom.pitch_to_chord, beta1, alpha2, geom.t_max / geom.chord
        ) * f_Re * f_Ma

        Y_s = SecondaryLoss.dunham_came(Z, geom.aspect_ratio, beta1, alpha2)
        Y_cl = TipClearanceLoss.dunham_came(Z, geom.tip_clearance, geom.chord, geom.height)

        f_te = TrailingEdgeLoss.ainley_mathieson_factor(geom.t_te, geom.pitch)

        return {
            'profile': Y_p,
            'secondary': Y_s,
            'clearance': Y_cl,
            'trailing_edge': (f_te - 1) * (Y_p + Y_s),
            'shock': 0.0,
        }


# ============================================================================
# KACKER-OKAPUU MODEL (1982)
# ============================================================================

class KackerOkapuuLossModel(BaseLossModel):
    """
    Kacker and Okapuu (1982) loss model

    Y = f_Re * Y_p + Y_s + Y_te + Y_cl
    Y_p = 0.914 * (2/3 * Y_p,AM * K_p + Y_shock)

    1. Profile: revised interpolation, compressibility factor K_p
    2. Shock: hub leading edge shock loss
    3. Secondary: aspect ratio function and K_s factor
    4. Trailing edge: kinetic energy loss curves
    5. Clearance: 0.37 * (c/H) * (k/c)^0.78 * Z
    """

    def __init__(self):
        super().__init__("KO")

    def compute_cascade_losses(self, geom, inlet, outlet):
        beta1, alpha2 = cascade_angles(inlet, outlet)
        Z, _, _ = loading_parameter(beta1, alpha2)

        M1 = inlet.Ma_rel
        M2 = outlet.Ma_rel
        gamma = outlet.static.gamma

        Y_p_am = ProfileLoss.kacker_okapuu(
            geom.pitch_to_chord, beta1, alpha2, geom.t_max / geom.chord
        )
        K_p = ProfileLoss.kacker_okapuu_compressibility(M1, M2)
        Y_shock = ShockLoss.kacker_okapuu(
            M1, M2, inlet.static.P, outlet.static.P, geom.r_ht_in, gamma,
            is_rotor=geom.kind is CascadeKind.ROTOR,
        )
        f_Re = kacker_okapuu_reynolds_correction(exit_reynolds_number(geom, outlet))

        Y_s = SecondaryLoss.kacker_okapuu(
            Z, geom.aspect_ratio, beta1, alpha2, K_p, geom.axial_chord / geom.height
        )
        Y_te = TrailingEdgeLoss.kacker_okapuu(geom.t_te, geom.opening, beta1, alpha2, M2, gamma)
        Y_cl = TipClearanceLoss.kacker_okapuu(Z, geom.tip_clearance, geom.chord, geom.height)

        return {
            'profile': f_Re * 0.914 * 2 / 3 * Y_p_am * K_p,
            'shock': f_Re * 0.914 * Y_shock,
            'secondary': Y_s,
            'trailing_edge': Y_te,
            'clearance': Y_cl,
        }


# ============================================================================
# MODEL REGISTRY
# ============================================================================

AVAILABLE_MODELS = {
    'AM': AinleyMathiesonLossModel,
    'DC': DunhamCameLossModel,
    'KO': KackerOkapuuLossModel,
}


def get_model(model_name: str) -> BaseLossModel:
    """
    Instantiate the loss system registered under `model_name`

    Raises:
        ValueError: Unregistered name
    """
    try:
        model_cls = AVAILABLE_MODELS[model_name]
    except KeyError:
        raise ValueError(
            f"Model '{model_name}' not available, expected one of {sorted(AVAILABLE_MODELS)}"
        ) from None
    return model_cls()
