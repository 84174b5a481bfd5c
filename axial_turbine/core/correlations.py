# File: axial_turbine/core/correlations.py
"""
General correlations shared by the loss systems
"""

import math


def reynolds_number(density: float, velocity: float, length: float, viscosity: float) -> float:
    """
    Reynolds number rho*v*L/mu

    Returns NaN when the viscosity is not available (two-phase states)
    """
    if not math.isfinite(viscosity) or viscosity <= 0:
        return math.nan
    return density * velocity * length / viscosity


def ainley_reynolds_correction(Re: float, Re_ref: float = 2e5) -> float:
    """
    Ainley-Mathieson / Dunham-Came Reynolds number correction

    Multiplies the profile loss: (Re/2e5)^-0.2

    Args:
        Re: Reynolds number based on chord and exit conditions
        Re_ref: Reference Reynolds number

    Returns:
        float: Correction factor (1.0 if Re is not available)
    """
    if not math.isfinite(Re):
        return 1.0
    if Re <= 0:
        raise ValueError(f"Reynolds number must be positive, got {Re}")
    return (Re / Re_ref) ** -0.2


def kacker_okapuu_reynolds_correction(Re: float) -> float:
    """
    Kacker-Okapuu Reynolds number correction

        f_Re = (Re/2e5)^-0.4   for Re < 2e5
        f_Re = 1.0             for 2e5 <= Re <= 1e6
        f_Re = (Re/1e6)^-0.2   for Re > 1e6

    Returns:
        float: Correction factor (1.0 if Re is not available)
    """
    if not math.isfinite(Re):
        return 1.0
    if Re <= 0:
        raise ValueError(f"Reynolds number must be positive, got {Re}")
    if Re < 2e5:
        return (Re / 2e5) ** -0.4
    if Re > 1e6:
        return (Re / 1e6) ** -0.2
    return 1.0


def stagnation_pressure_ratio(mach: float, gamma: float) -> float:
    """Isentropic p0/p of a perfect gas at the given Mach number"""
    return (1 + (gamma - 1) / 2 * mach**2) ** (gamma / (gamma - 1))
