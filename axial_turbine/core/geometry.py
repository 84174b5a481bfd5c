# File: axial_turbine/core/geometry.py
"""
Blade cascade geometry

The mean-line model assumes a constant mean radius through the machine.
Blade heights follow from continuity at every station, chords and pitches
from the aspect ratio and pitch-to-chord design variables.
"""

import math
from dataclasses import dataclass
from enum import Enum

from .exceptions import ModelDomainError


def cosd(degrees: float) -> float:
    """Cosine of angle in degrees"""
    return math.cos(math.radians(degrees))


def sind(degrees: float) -> float:
    """Sine of angle in degrees"""
    return math.sin(math.radians(degrees))


def tand(degrees: float) -> float:
    """Tangent of angle in degrees"""
    return math.tan(math.radians(degrees))


class CascadeKind(Enum):
    STATOR = "stator"
    ROTOR = "rotor"

    @classmethod
    def from_index(cls, index: int) -> "CascadeKind":
        """Cascades alternate stator/rotor in flow order starting with a stator"""
        return cls.STATOR if index % 2 == 0 else cls.ROTOR


def stagger_angle(theta_in: float, theta_out: float) -> float:
    """
    Blade stagger angle (degrees) from the metal angles

    Mean-tangent estimate, signed like the exit metal angle
    """
    return math.degrees(math.atan(0.5 * (tand(theta_in) + tand(theta_out))))


def annulus_radii(radius: float, height: float):
    """Hub and tip radius of an annulus of given mean radius and height"""
    r_hub = radius - height / 2
    r_tip = radius + height / 2
    if r_hub <= 0:
        raise ModelDomainError(
            f"Blade height {height:.4g} m exceeds the mean diameter {2 * radius:.4g} m"
        )
    return r_hub, r_tip


@dataclass(frozen=True)
class CascadeGeometry:
    """
    Geometry of one blade row

    Angles in degrees, lengths in meters.

    Attributes:
        kind: Stator or rotor
        radius: Mean radius
        H_in, H_out: Annulus height at inlet and outlet
        height: Mean blade height
        chord: Blade chord
        pitch: Blade spacing
        axial_chord: Chord projected on the axis
        stagger: Stagger angle
        n_blades: Number of blades (not rounded)
        opening: Throat opening (cosine rule)
        t_max: Maximum blade thickness
        t_te: Trailing edge thickness
        tip_clearance: Tip clearance gap (zero for stators)
        theta_in, theta_out: Metal angles at inlet and outlet
        flare_angle: Annulus flaring angle
    """
    kind: CascadeKind
    radius: float
    H_in: float
    H_out: float
    height: float
    chord: float
    pitch: float
    axial_chord: float
    stagger: float
    n_blades: float
    opening: float
    t_max: float
    t_te: float
    tip_clearance: float
    theta_in: float
    theta_out: float
    flare_angle: float

    @property
    def aspect_ratio(self) -> float:
        """Blade height to chord ratio"""
        return self.height / self.chord

    @property
    def pitch_to_chord(self) -> float:
        return self.pitch / self.chord

    @property
    def r_hub_in(self) -> float:
        return self.radius - self.H_in / 2

    @property
    def r_tip_in(self) -> float:
        return self.radius + self.H_in / 2

    @property
    def r_hub_out(self) -> float:
        return self.radius - self.H_out / 2

    @property
    def r_tip_out(self) -> float:
        return self.radius + self.H_out / 2

    @property
    def r_ht_in(self) -> float:
        """Hub-to-tip ratio at inlet"""
        return self.r_hub_in / self.r_tip_in

    @property
    def r_ht_out(self) -> float:
        """Hub-to-tip ratio at outlet"""
        return self.r_hub_out / self.r_tip_out

    @property
    def r_ht(self) -> float:
        """Hub-to-tip ratio at mid-chord"""
        return (self.radius - self.height / 2) / (self.radius + self.height / 2)


def compute_cascade_geometry(kind: CascadeKind,
                             radius: float,
                             H_in: float,
                             H_out: float,
                             theta_in: float,
                             theta_out: float,
                             aspect_ratio: float,
                             pitch_to_chord: float,
                             tip_clearance: float,
                             t_max_c: float = 0.20,
                             t_te_min: float = 5e-4,
                             t_te_o: float = 0.05) -> CascadeGeometry:
    """
    Derive the blade row geometry from the annulus and the design variables

    Args:
        kind: Stator or rotor
        radius: Mean radius (m)
        H_in, H_out: Annulus heights from continuity (m)
        theta_in, theta_out: Metal angles (degrees), equal to the flow
            angles (zero incidence, zero deviation)
        aspect_ratio: Height to chord ratio
        pitch_to_chord: Spacing to chord ratio
        tip_clearance: Rotor tip clearance (m), ignored for stators
        t_max_c: Maximum thickness to chord ratio
        t_te_min: Minimum trailing edge thickness (m)
        t_te_o: Trailing edge thickness to opening ratio

    Returns:
        CascadeGeometry
    """
    annulus_radii(radius, H_in)
    annulus_radii(radius, H_out)

    height = 0.5 * (H_in + H_out)
    chord = height / aspect_ratio
    pitch = pitch_to_chord * chord
    stagger = stagger_angle(theta_in, theta_out)
    axial_chord = chord * cosd(stagger)
    opening = pitch * cosd(theta_out)

    # Flaring angle over the axial extent of the row
    flare_angle = math.degrees(math.atan((H_out - H_in) / 2 / axial_chord))

    return CascadeGeometry(
        kind=kind,
        radius=radius,
        H_in=H_in,
        H_out=H_out,
        height=height,
        chord=chord,
        pitch=pitch,
        axial_chord=axial_chord,
        stagger=stagger,
        n_blades=2 * math.pi * radius / pitch,
        opening=opening,
        t_max=t_max_c * chord,
        t_te=max(t_te_min, t_te_o * opening),
        tip_clearance=tip_clearance if kind is CascadeKind.ROTOR else 0.0,
        theta_in=theta_in,
        theta_out=theta_out,
        flare_angle=flare_angle,
    )
