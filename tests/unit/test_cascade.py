# File: tests/unit/test_cascade.py
"""
Unit tests for the cascade solver: velocity triangles, rothalpy,
continuity and sign conventions
"""

import pytest
import dataclasses
import math
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from axial_turbine.core import ConfigurationError, FixedParameters, ModelDomainError
from axial_turbine.components.cascade import (
    continuity_height,
    inlet_station,
    make_station,
    reframe,
    solve_cascade,
)
from axial_turbine.optimization.problem import default_initial_guess


@pytest.fixture(scope="module")
def params():
    return FixedParameters.create(
        'HEOS::R125', p0_in=36.18e5, p_out=15.69e5, T0_in=428.15, isentropic_power=250e3,
    )


@pytest.fixture(scope="module")
def guess(params):
    return default_initial_guess(params)


@pytest.fixture(scope="module")
def radius(params, guess):
    return params.mean_diameter(guess.specific_diameter) / 2


@pytest.fixture(scope="module")
def omega(params, guess):
    return params.angular_speed(guess.specific_speed)


@pytest.fixture(scope="module")
def inlet(params, guess, radius):
    return inlet_station(params, guess.inlet_reduced_velocity, radius)


def _solve(index, station, guess, omega, params):
    return solve_cascade(
        station,
        reduced_velocity=guess.outlet_reduced_velocity[index],
        relative_angle=guess.outlet_relative_angle[index],
        aspect_ratio=guess.aspect_ratio[index],
        pitch_to_chord=guess.pitch_to_chord[index],
        entropy_ratio=guess.exit_entropy_ratio[index],
        index=index,
        omega=omega,
        params=params,
    )


@pytest.fixture(scope="module")
def stator(inlet, guess, omega, params):
    return _solve(0, inlet, guess, omega, params)


@pytest.fixture(scope="module")
def rotor(stator, guess, omega, params):
    return _solve(1, stator.outlet, guess, omega, params)


class TestInletStation:

    def test_velocity(self, inlet, params, guess):
        assert inlet.v == pytest.approx(guess.inlet_reduced_velocity * params.v0)
        assert inlet.total.H == pytest.approx(params.inlet_total.H, rel=1e-9)

    def test_axial_inflow(self, inlet):
        assert inlet.alpha == pytest.approx(0.0)
        assert inlet.u == 0.0

    def test_non_positive_velocity(self, params, radius):
        with pytest.raises(ConfigurationError):
            inlet_station(params, 0.0, radius)


class TestContinuity:

    def test_height(self):
        assert continuity_height(1.0, 10.0, 50.0, 0.1) == pytest.approx(1 / (10 * 50 * 2 * math.pi * 0.1))

    def test_reverse_flow(self):
        with pytest.raises(ModelDomainError, match="Meridional velocity"):
            continuity_height(1.0, 10.0, 0.0, 0.1)

    @pytest.mark.parametrize("which", ['stator', 'rotor'])
    def test_mass_is_conserved(self, which, request, params):
        outlet = request.getfixturevalue(which).outlet
        assert outlet.static.D * outlet.v_m * outlet.area == pytest.approx(params.mass_flow, rel=1e-9)


class TestStator:

    def test_exit_state(self, stator, guess, params):
        assert stator.is_rotor is False
        assert stator.outlet.u == 0.0
        assert stator.outlet.w == pytest.approx(guess.outlet_reduced_velocity[0] * params.v0)
        assert stator.outlet.beta == pytest.approx(math.degrees(guess.outlet_relative_angle[0]))
        assert stator.outlet.static.S == pytest.approx(guess.exit_entropy_ratio[0] * params.inlet_total.S)

    def test_stagnation_enthalpy_conserved(self, stator):
        assert stator.outlet.total.H == pytest.approx(stator.inlet.total.H, rel=1e-9)

    def test_metal_angles(self, stator):
        assert stator.geometry.theta_in == pytest.approx(stator.inlet.beta)
        assert stator.geometry.theta_out == pytest.approx(stator.outlet.beta)

    def test_entropy_generation(self, stator):
        assert stator.entropy_generation > 0


class TestRotor:

    def test_blade_speed(self, rotor, omega, radius):
        assert rotor.is_rotor
        assert rotor.outlet.u == pytest.approx(omega * radius)
        assert rotor.inlet.u == pytest.approx(omega * radius)

    def test_sign_convention(self, rotor):
        assert rotor.outlet.beta < 0
        assert rotor.outlet.v_t == pytest.approx(rotor.outlet.w_t + rotor.outlet.u)

    def test_rothalpy_conserved(self, rotor):
        I_in = rotor.inlet.static.H + 0.5 * rotor.inlet.w**2
        I_out = rotor.outlet.static.H + 0.5 * rotor.outlet.w**2
        assert I_out == pytest.approx(I_in, rel=1e-9)

    def test_work_extracted(self, rotor):
        assert rotor.outlet.total.H < rotor.inlet.total.H

    def test_constant_mean_radius(self, rotor, stator):
        assert rotor.outlet.radius == stator.outlet.radius

    def test_non_positive_velocity(self, stator, guess, omega, params):
        with pytest.raises(ConfigurationError, match="cascade 2"):
            solve_cascade(stator.outlet, -0.1, guess.outlet_relative_angle[1], 1.25, 0.75,
                          guess.exit_entropy_ratio[1], 1, omega, params)


class TestReframe:

    def test_same_frame(self, inlet):
        assert reframe(inlet, 0.0) is inlet

    def test_relative_velocity(self, inlet):
        moving = reframe(inlet, 100.0)
        assert moving.w_t == pytest.approx(inlet.v_t - 100.0)
        assert moving.v == pytest.approx(inlet.v)
        assert moving.relative_total.H > moving.total.H


class TestStationSoundSpeed:

    def test_missing_speed_of_sound(self, inlet):
        static = dataclasses.replace(inlet.static, A=math.nan)
        with pytest.raises(ModelDomainError, match="speed of sound"):
            make_station(static, inlet.v_m, inlet.w_t, 0.0, inlet.height, inlet.radius)

    def test_mach_numbers(self, inlet):
        station = make_station(inlet.static, inlet.v_m, inlet.w_t, 0.0, inlet.height, inlet.radius)
        assert station.Ma == pytest.approx(station.v / inlet.static.A)
        assert station.Ma_rel == pytest.approx(station.w / inlet.static.A)
