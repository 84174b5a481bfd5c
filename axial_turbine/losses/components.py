# File: axial_turbine/losses/components.py
"""
Loss correlations for axial turbine cascades

All correlations return stagnation pressure loss coefficients and work
with angles in degrees, following the cascade convention of Ainley and
Mathieson: the exit angle alpha2 is positive and the inlet angle beta1 is
positive when the flow enters against the exit direction (impulse side).
"""

import math
import warnings

from ..core import ModelDomainError, cosd, tand
from ..core.correlations import stagnation_pressure_ratio


def _clip(value: float, low: float, high: float, name: str) -> float:
    """Clip a correlation input to its fitted range"""
    if value < low or value > high:
        clipped = min(max(value, low), high)
        warnings.warn(
            f"{name}={value:.4g} outside the correlation range [{low}, {high}], using {clipped:.4g}"
        )
        return clipped
    return value


def loading_parameter(beta1: float, alpha2: float):
    """
    Blade loading parameter of the secondary and tip clearance losses

    Formula:
        tan(alpha_m) = (tan(alpha2) - tan(beta1)) / 2
        C_L/(s/c) = 2 * (tan(beta1) + tan(alpha2)) * cos(alpha_m)
        Z = (C_L/(s/c))² * cos²(alpha2) / cos³(alpha_m)

    Args:
        beta1: Inlet angle (degrees, cascade convention)
        alpha2: Exit angle (degrees, positive)

    Returns:
        tuple: (Z, C_L/(s/c), alpha_m in degrees)
    """
    alpha_m = math.degrees(math.atan(0.5 * (tand(alpha2) - tand(beta1))))
    lift = 2 * (tand(beta1) + tand(alpha2)) * cosd(alpha_m)
    Z = lift**2 * cosd(alpha2)**2 / cosd(alpha_m)**3
    return Z, lift, alpha_m


# ============================================================================
# SECTION 1: PROFILE LOSSES
# ============================================================================

class ProfileLoss:
    """
    Profile losses due to blade surface boundary layers

    Available methods:
    - aungier_nozzle / aungier_impulse: Curve fits of the Ainley-Mathieson
      charts for nozzle (beta1 = 0) and impulse (beta1 = alpha2) blades
    - ainley_mathieson: Interpolation between both charts (1951 method)
    - kacker_okapuu: Interpolation revised for negative inlet angles
    """

    @staticmethod
    def aungier_nozzle(s_c: float, alpha2: float) -> float:
        """
        Profile loss of nozzle blades, beta1 = 0 (Aungier fit)

        Args:
            s_c: Pitch to chord ratio
            alpha2: Exit angle (degrees)

        Returns:
            float: Y_p1
        """
        if alpha2 <= 30:
            s_c_min = 0.46 + alpha2 / 77
        else:
            s_c_min = 0.614 + alpha2 / 130
        X = s_c - s_c_min

        if alpha2 <= 27:
            A = 0.025 + (27 - alpha2) / 530
        else:
            A = 0.025 + (27 - alpha2) / 3085
        B = 0.1583 - alpha2 / 1640
        C = 0.08 * ((alpha2 / 30)**2 - 1)
        n = 1 + alpha2 / 30

        if alpha2 <= 30:
            return A + B * X**2 - C * X**3
        return A + B * abs(X)**n

    @staticmethod
    def aungier_impulse(s_c: float, alpha2: float) -> float:
        """
        Profile loss of impulse blades, beta1 = alpha2 (Aungier fit)

        Args:
            s_c: Pitch to chord ratio
            alpha2: Exit angle (degrees)

        Returns:
            float: Y_p2
        """
        s_c_min = 0.224 + 1.575 * (alpha2 / 90) - (alpha2 / 90)**2
        X = s_c - s_c_min

        A = 0.242 - alpha2 / 151 + (alpha2 / 127)**2
        if alpha2 <= 30:
            B = 0.3 + (30 - alpha2) / 50
        else:
            B = 0.3 + (30 - alpha2) / 275
        C = 0.88 - alpha2 / 42.4 + (alpha2 / 72.8)**2

        return A + B * X**2 - C * X**3

    @staticmethod
    def ainley_mathieson(s_c: float, beta1: float, alpha2: float, t_max_c: float) -> float:
        """
        Ainley-Mathieson profile loss

        Formula:
            Y_p = [Y_p1 + (beta1/alpha2)² * (Y_p2 - Y_p1)] * (t_max/c / 0.2)^(beta1/alpha2)

        Reference: Ainley & Mathieson (1951)
        """
        alpha2 = _clip(alpha2, 40.0, 80.0, "alpha2")
        s_c = _clip(s_c, 0.30, 1.10, "s/c")
        ratio = beta1 / alpha2
        Y1 = ProfileLoss.aungier_nozzle(s_c, alpha2)
        Y2 = ProfileLoss.aungier_impulse(s_c, alpha2)
        return (Y1 + ratio**2 * (Y2 - Y1)) * (t_max_c / 0.2) ** ratio

    @staticmethod
    def kacker_okapuu(s_c: float, beta1: float, alpha2: float, t_max_c: float) -> float:
        """
        Kacker-Okapuu modification of the Ainley-Mathieson profile loss

        Formula:
            Y_p,AM = [Y_p1 + |beta1/alpha2|*(beta1/alpha2) * (Y_p2 - Y_p1)]
                     * (t_max/c / 0.2)^(beta1/alpha2)

        The signed interpolation reduces the loss of blades with negative
        inlet angles instead of increasing it.

        Reference: Kacker & Okapuu (1982)
        """
        alpha2 = _clip(alpha2, 40.0, 80.0, "alpha2")
        s_c = _clip(s_c, 0.30, 1.10, "s/c")
        ratio = beta1 / alpha2
        Y1 = ProfileLoss.aungier_nozzle(s_c, alpha2)
        Y2 = ProfileLoss.aungier_impulse(s_c, alpha2)
        return (Y1 + abs(ratio) * ratio * (Y2 - Y1)) * (t_max_c / 0.2) ** ratio

    @staticmethod
    def dunham_came_mach_correction(M2: float) -> float:
        """Profile loss multiplier for supersonic exit: 1 + 60*(M2-1)²"""
        if M2 <= 1.0:
            return 1.0
        return 1 + 60 * (M2 - 1)**2

    @staticmethod
    def kacker_okapuu_compressibility(M1: float, M2: float) -> float:
        """
        Kacker-Okapuu compressibility factor K_p

        Formula:
            K1 = 1                        for M2 <= 0.2
            K1 = 1 - 1.25*(M2 - 0.2)      for M2 > 0.2
            K2 = (M1/M2)²
            K_p = 1 - K2*(1 - K1)
        """
        K1 = 1.0 if M2 <= 0.2 else 1 - 1.25 * (M2 - 0.2)
        K2 = (M1 / M2)**2
        return 1 - K2 * (1 - K1)


class ShockLoss:
    """Shock loss at the hub leading edge"""

    @staticmethod
    def hub_mach_ratio(r_ht: float, is_rotor: bool) -> float:
        """
        Ratio of hub to mean inlet Mach number (Kacker-Okapuu chart fit)

        Args:
            r_ht: Hub-to-tip ratio at inlet
            is_rotor: True for rotor rows (relative Mach number)
        """
        r_ht = _clip(r_ht, 0.5, 1.0, "r_ht")
        a = 1.0 if is_rotor else 0.4
        return 1 + a * (1 / r_ht - 1)**2.2

    @staticmethod
    def kacker_okapuu(M1: float, M2: float, p1: float, p2: float,
                      r_ht: float, gamma: float, is_rotor: bool) -> float:
        """
        Kacker-Okapuu leading edge shock loss

        Formula:
            Y_hub = 0.75*(M1_hub - 0.4)^1.75         for M1_hub > 0.4
            Y_shock = Y_hub * r_ht * (p1/p2) * (1 - (p0/p)_1) / (1 - (p0/p)_2)

        Args:
            M1, M2: Inlet and exit Mach numbers (relative for rotors)
            p1, p2: Inlet and exit static pressures (Pa)
            r_ht: Hub-to-tip ratio at inlet
            gamma: Ratio of specific heats
            is_rotor: True for rotor rows

        Returns:
            float: Y_shock
        """
        M1_hub = M1 * ShockLoss.hub_mach_ratio(r_ht, is_rotor)
        if M1_hub <= 0.4:
            return 0.0
        Y_hub = 0.75 * (M1_hub - 0.4)**1.75
        ratio = ((1 - stagnation_pressure_ratio(M1, gamma)) /
                 (1 - stagnation_pressure_ratio(M2, gamma)))
        return Y_hub * r_ht * (p1 / p2) * ratio


# ============================================================================
# SECTION 2: SECONDARY LOSSES
# ============================================================================

class SecondaryLoss:
    """
    Secondary flow losses

    Available methods:
    - ainley_mathieson: lambda chart of the annulus area ratio
    - dunham_came: aspect ratio based
    - kacker_okapuu: Dunham-Came with aspect ratio and compressibility factors
    """

    @staticmethod
    def ainley_mathieson(Z: float, A_ratio: float, r_ht: float) -> float:
        """
        Ainley-Mathieson secondary loss

        Formula:
            X = (A2/A1)² / (1 + r_ht)
            lambda = 0.004 + 0.032*X
            Y_s = lambda * Z

        Args:
            Z: Loading parameter
            A_ratio: Ratio of flow areas normal to the flow, exit to inlet
            r_ht: Hub-to-tip ratio

        Reference: Ainley & Mathieson (1951)
        """
        X = _clip(A_ratio**2 / (1 + r_ht), 0.0, 0.6, "(A2/A1)²/(1+r_ht)")
        lam = 0.004 + 0.032 * X
        return lam * Z

    @staticmethod
    def dunham_came(Z: float, aspect_ratio: float, beta1: float, alpha2: float) -> float:
        """
        Dunham-Came secondary loss

        Formula:
            Y_s = 0.0334 * (c/H) * (cos(alpha2)/cos(beta1)) * Z

        Reference: Dunham & Came (1970)
        """
        return 0.0334 / aspect_ratio * cosd(alpha2) / cosd(beta1) * Z

    @staticmethod
    def aspect_ratio_factor(aspect_ratio: float) -> float:
        """Kacker-Okapuu aspect ratio function f_AR"""
        if aspect_ratio <= 2:
            return (1 - 0.25 * math.sqrt(2 - aspect_ratio)) / aspect_ratio
        return 1 / aspect_ratio

    @staticmethod
    def kacker_okapuu(Z: float, aspect_ratio: float, beta1: float, alpha2: float,
                      K_p: float, axial_chord_height: float) -> float:
        """
        Kacker-Okapuu secondary loss

        Formula:
            Y_s,AMDC = 0.0334 * f_AR * (cos(alpha2)/cos(beta1)) * Z
            K3 = (b_x/H)²
            K_s = 1 - K3*(1 - K_p)
            Y_s = 1.2 * Y_s,AMDC * K_s

        Reference: Kacker & Okapuu (1982)
        """
        f_AR = SecondaryLoss.aspect_ratio_factor(aspect_ratio)
        Y_amdc = 0.0334 * f_AR * cosd(alpha2) / cosd(beta1) * Z
        K3 = axial_chord_height**2
        K_s = 1 - K3 * (1 - K_p)
        return 1.2 * Y_amdc * K_s


# ============================================================================
# SECTION 3: TIP CLEARANCE LOSSES
# ============================================================================

class TipClearanceLoss:
    """Tip leakage losses (rotors only, zero for stators)"""

    @staticmethod
    def ainley_mathieson(Z: float, clearance: float, height: float, B: float = 0.5) -> float:
        """
        Ainley-Mathieson tip clearance loss

        Formula:
            Y_cl = B * (k/H) * Z
        """
        return B * clearance / height * Z

    @staticmethod
    def dunham_came(Z: float, clearance: float, chord: float, height: float, B: float = 0.47) -> float:
        """
        Dunham-Came tip clearance loss

        Formula:
            Y_cl = B * (c/H) * (k/c)^0.78 * Z
        """
        if clearance <= 0:
            return 0.0
        return B * chord / height * (clearance / chord)**0.78 * Z

    @staticmethod
    def kacker_okapuu(Z: float, clearance: float, chord: float, height: float) -> float:
        """Kacker-Okapuu tip clearance loss: Dunham-Came form with B = 0.37"""
        return TipClearanceLoss.dunham_came(Z, clearance, chord, height, B=0.37)


# ============================================================================
# SECTION 4: TRAILING EDGE LOSSES
# ============================================================================

class TrailingEdgeLoss:
    """
    Trailing edge thickness losses

    Available methods:
    - ainley_mathieson_factor: multiplier of the total loss
    - kacker_okapuu: kinetic energy loss coefficient converted to Y
    """

    @staticmethod
    def ainley_mathieson_factor(t_te: float, pitch: float) -> float:
        """
        Trailing edge correction factor, unity at t_te/s = 0.02

        Formula:
            f_te = 1 + 7*(t_te/s - 0.02)
        """
        return 1 + 7 * (t_te / pitch - 0.02)

    @staticmethod
    def energy_coefficient_nozzle(t_o: float) -> float:
        """Kinetic energy loss coefficient of nozzle blades vs t_te/o"""
        return max(0.59563 * t_o**2 + 0.12264 * t_o - 2.0038e-3, 0.0)

    @staticmethod
    def energy_coefficient_impulse(t_o: float) -> float:
        """Kinetic energy loss coefficient of impulse blades vs t_te/o"""
        return max(0.31203 * t_o**2 + 0.15214 * t_o + 8.4e-3, 0.0)

    @staticmethod
    def kacker_okapuu(t_te: float, opening: float, beta1: float, alpha2: float,
                      M2: float, gamma: float) -> float:
        """
        Kacker-Okapuu trailing edge loss

        Formula:
            dphi² = dphi²_0 + |beta1/alpha2|*(beta1/alpha2)*(dphi²_imp - dphi²_0)
            Y_te = [(1 - (g-1)/2*M2²*(1/(1-dphi²) - 1))^(-g/(g-1)) - 1]
                   / [1 - (1 + (g-1)/2*M2²)^(-g/(g-1))]

        For M2 -> 0 the loss tends to dphi²/(1 - dphi²).

        Reference: Kacker & Okapuu (1982)
        """
        t_o = _clip(t_te / opening, 0.0, 0.4, "t_te/o")
        ratio = beta1 / alpha2
        d0 = TrailingEdgeLoss.energy_coefficient_nozzle(t_o)
        d1 = TrailingEdgeLoss.energy_coefficient_impulse(t_o)
        dphi2 = d0 + abs(ratio) * ratio * (d1 - d0)
        dphi2 = min(max(dphi2, 0.0), 0.5)

        if M2 < 1e-6:
            return dphi2 / (1 - dphi2)

        k = gamma / (gamma - 1)
        base = 1 - (gamma - 1) / 2 * M2**2 * (1 / (1 - dphi2) - 1)
        if not base > 0:
            raise ModelDomainError(
                f"Trailing edge loss undefined at M2={M2:.4g}, dphi2={dphi2:.4g}"
            )
        num = base ** (-k) - 1
        den = 1 - (1 + (gamma - 1) / 2 * M2**2) ** (-k)
        return num / den
