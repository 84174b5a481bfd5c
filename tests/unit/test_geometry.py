# File: tests/unit/test_geometry.py
"""
Unit tests for cascade geometry
"""

import pytest
import math
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from axial_turbine.core.exceptions import ModelDomainError
from axial_turbine.core.geometry import (
    CascadeKind,
    annulus_radii,
    compute_cascade_geometry,
    cosd,
    sind,
    stagger_angle,
    tand,
)


class TestTrigonometry:

    def test_degree_functions(self):
        assert cosd(60) == pytest.approx(0.5)
        assert sind(30) == pytest.approx(0.5)
        assert tand(45) == pytest.approx(1.0)


class TestCascadeKind:

    def test_alternating_rows(self):
        kinds = [CascadeKind.from_index(i) for i in range(4)]
        assert kinds == [CascadeKind.STATOR, CascadeKind.ROTOR, CascadeKind.STATOR, CascadeKind.ROTOR]


class TestStagger:

    def test_axial_inlet(self):
        expected = math.degrees(math.atan(0.5 * math.tan(math.radians(60))))
        assert stagger_angle(0, 60) == pytest.approx(expected)

    def test_sign_follows_exit_angle(self):
        assert stagger_angle(10, -70) < 0
        assert stagger_angle(-10, 70) > 0


class TestAnnulus:

    def test_radii(self):
        r_hub, r_tip = annulus_radii(0.1, 0.02)
        assert r_hub == pytest.approx(0.09)
        assert r_tip == pytest.approx(0.11)

    def test_height_exceeds_diameter(self):
        with pytest.raises(ModelDomainError, match="exceeds the mean diameter"):
            annulus_radii(0.01, 0.03)


class TestCascadeGeometry:
    """Blade row geometry from the annulus and the design variables"""

    @pytest.fixture
    def stator(self):
        return compute_cascade_geometry(
            CascadeKind.STATOR, radius=0.1, H_in=0.010, H_out=0.012,
            theta_in=0.0, theta_out=70.0, aspect_ratio=1.25, pitch_to_chord=0.75,
            tip_clearance=5e-4,
        )

    def test_chord_and_pitch(self, stator):
        assert stator.height == pytest.approx(0.011)
        assert stator.chord == pytest.approx(0.011 / 1.25)
        assert stator.pitch == pytest.approx(0.75 * 0.011 / 1.25)
        assert stator.aspect_ratio == pytest.approx(1.25)
        assert stator.pitch_to_chord == pytest.approx(0.75)

    def test_opening_cosine_rule(self, stator):
        assert stator.opening == pytest.approx(stator.pitch * cosd(70))

    def test_blade_count(self, stator):
        assert stator.n_blades == pytest.approx(2 * math.pi * 0.1 / stator.pitch)

    def test_thickness(self, stator):
        assert stator.t_max == pytest.approx(0.2 * stator.chord)
        # Opening-based value is below the manufacturing minimum
        assert stator.t_te == pytest.approx(5e-4)

    def test_stator_has_no_clearance(self, stator):
        assert stator.tip_clearance == 0.0

    def test_flare_angle(self, stator):
        expected = math.degrees(math.atan(0.001 / stator.axial_chord))
        assert stator.flare_angle == pytest.approx(expected)
        assert stator.axial_chord == pytest.approx(stator.chord * cosd(stator.stagger))

    def test_hub_to_tip_ratios(self, stator):
        assert stator.r_ht_in == pytest.approx(0.095 / 0.105)
        assert stator.r_ht_out == pytest.approx(0.094 / 0.106)
        assert stator.r_ht_out < stator.r_ht < stator.r_ht_in

    def test_rotor_keeps_clearance(self):
        rotor = compute_cascade_geometry(
            CascadeKind.ROTOR, radius=0.1, H_in=0.012, H_out=0.014,
            theta_in=-10.0, theta_out=-70.0, aspect_ratio=1.25, pitch_to_chord=0.75,
            tip_clearance=5e-4,
        )
        assert rotor.tip_clearance == 5e-4
        assert rotor.stagger < 0

    def test_non_physical_annulus(self):
        with pytest.raises(ModelDomainError):
            compute_cascade_geometry(
                CascadeKind.STATOR, radius=0.01, H_in=0.05, H_out=0.05,
                theta_in=0.0, theta_out=70.0, aspect_ratio=1.25, pitch_to_chord=0.75,
                tip_clearance=0.0,
            )
