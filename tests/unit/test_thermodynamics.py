# File: tests/unit/test_thermodynamics.py
"""
Unit tests for the CoolProp property layer
Validates the CoolProp wrapper used as property oracle
"""

import pytest
import math
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from axial_turbine.core.thermodynamics import (
    FluidState,
    Fluid,
    PropertyEvaluationError,
    query,
    static_from_total,
    total_from_static,
)


class TestFluidState:
    """Default and frozen behaviour of FluidState"""

    def test_default_initialization(self):
        """Unresolved properties are NaN"""
        state = FluidState()

        assert math.isnan(state.P)
        assert math.isnan(state.T)
        assert math.isnan(state.H)
        assert math.isnan(state.S)
        assert state.phase == ""
        assert state.fluid is None
        assert not state.is_valid

    def test_immutability(self):
        """States cannot be mutated after creation"""
        state = FluidState(P=101325, T=300)

        with pytest.raises(Exception):
            state.P = 200000

    def test_gamma(self):
        state = FluidState(cp=1004.5, cv=717.5)
        assert state.gamma == pytest.approx(1.4, rel=1e-3)

    def test_two_phase_flag(self):
        assert FluidState(phase='twophase').is_two_phase()
        assert not FluidState(phase='supercritical_gas').is_two_phase()


class TestQuery:
    """Test the single-property oracle"""

    def test_density_of_air(self):
        D = query('D', 'P', 101325, 'T', 288.15, 'Air')
        assert D == pytest.approx(1.225, rel=0.01)

    def test_non_finite_input(self):
        with pytest.raises(PropertyEvaluationError, match="Non-finite"):
            query('D', 'P', math.nan, 'T', 300, 'Air')

    def test_backend_failure(self):
        """Negative temperature cannot be resolved"""
        with pytest.raises(PropertyEvaluationError) as exc:
            query('D', 'P', 101325, 'T', -10, 'Air')
        assert exc.value.reason


class TestFluid:
    """Test Fluid class"""

    def test_initialization(self):
        fluid = Fluid("HEOS::R125")
        assert fluid.name == "HEOS::R125"

    def test_initialization_invalid_fluid(self):
        with pytest.raises(ValueError, match="Unknown CoolProp fluid"):
            Fluid("InvalidFluid123")

    def test_equality(self):
        assert Fluid("Air") == Fluid("Air")
        assert hash(Fluid("Air")) == hash(Fluid("Air"))
        assert Fluid("Air") != Fluid("Water")

    def test_invalid_mode(self):
        with pytest.raises(ValueError, match="Unknown mode"):
            Fluid("Air").thermo_prop("XX", 101325, 300)


class TestThermoPropModes:
    """Every supported property pair resolves the same state"""

    @pytest.fixture
    def air(self):
        return Fluid("Air")

    @pytest.fixture
    def ref(self, air):
        return air.thermo_prop("PT", 101325, 300)

    def test_pt_mode(self, air, ref):
        assert ref.P == pytest.approx(101325, rel=1e-10)
        assert ref.T == pytest.approx(300, rel=1e-10)
        assert ref.A == pytest.approx(347, rel=0.01)
        assert ref.fluid == air
        assert not math.isnan(ref.V)

    def test_ph_mode(self, air, ref):
        state = air.thermo_prop("PH", ref.P, ref.H)
        assert state.T == pytest.approx(300, rel=1e-4)

    def test_ps_mode(self, air, ref):
        state = air.thermo_prop("PS", 2 * ref.P, ref.S)
        assert state.S == pytest.approx(ref.S, rel=1e-6)
        assert state.T == pytest.approx(300 * 2**(0.4 / 1.4), rel=0.01)

    def test_pd_mode(self, air, ref):
        state = air.thermo_prop("PD", ref.P, ref.D)
        assert state.T == pytest.approx(300, rel=1e-4)

    def test_hs_mode(self, air, ref):
        """HS mode closes every cascade exit state"""
        state = air.thermo_prop("HS", ref.H, ref.S)
        assert state.T == pytest.approx(300, rel=1e-4)
        assert state.P == pytest.approx(101325, rel=1e-3)

    def test_dt_mode(self, air, ref):
        state = air.thermo_prop("DT", ref.D, ref.T)
        assert state.P == pytest.approx(ref.P, rel=1e-10)


class TestEnthalpyEntropyStates:
    """HS states reproduce the requested h and s to round-off"""

    @pytest.fixture
    def r125(self):
        return Fluid("HEOS::R125")

    @pytest.mark.parametrize("P, T", [(36.18e5, 428.15), (20e5, 400.0), (15.69e5, 395.0)])
    def test_hs_is_exact(self, r125, P, T):
        ref = r125.thermo_prop("PT", P, T)
        state = r125.thermo_prop("HS", ref.H, ref.S)
        assert state.H == pytest.approx(ref.H, rel=1e-12)
        assert state.S == pytest.approx(ref.S, rel=1e-12)
        assert state.P == pytest.approx(P, rel=1e-9)

    def test_neighbouring_states_are_monotonic(self, r125):
        """Pressure falls smoothly as entropy rises at fixed enthalpy"""
        ref = r125.thermo_prop("PT", 20e5, 400.0)
        pressures = [r125.thermo_prop("HS", ref.H, ref.S + k * 1e-6).P for k in range(6)]
        assert all(b < a for a, b in zip(pressures, pressures[1:]))


class TestTwoPhaseStates:
    """Wet steam inside the dome"""

    @pytest.fixture
    def water(self):
        return Fluid("Water")

    @pytest.fixture
    def wet(self, water):
        h = query('H', 'P', 1e5, 'Q', 0.9, 'Water')
        return water.thermo_prop("PH", 1e5, h)

    def test_phase(self, wet):
        assert wet.is_two_phase()

    def test_equilibrium_sound_speed(self, water, wet):
        """Finite and below the saturated vapour speed of sound"""
        vapour = query('A', 'P', 1e5, 'Q', 1.0, 'Water')
        assert math.isfinite(wet.A)
        assert 0 < wet.A < vapour
        assert wet.A == pytest.approx(water.equilibrium_sound_speed(wet.P, wet.S))


class TestStaticTotalConversions:
    """Isentropic moves between static and stagnation states"""

    @pytest.fixture
    def total(self):
        return Fluid("HEOS::R125").thermo_prop("PT", 36.18e5, 428.15)

    def test_static_from_total(self, total):
        static = static_from_total(total, 100.0)
        assert static.H == pytest.approx(total.H - 5000.0, rel=1e-10)
        assert static.S == pytest.approx(total.S, rel=1e-8)
        assert static.P < total.P

    def test_round_trip(self, total):
        static = static_from_total(total, 80.0)
        back = total_from_static(static, 80.0)
        assert back.P == pytest.approx(total.P, rel=1e-6)
        assert back.T == pytest.approx(total.T, rel=1e-6)

    def test_requires_fluid_reference(self):
        with pytest.raises(PropertyEvaluationError, match="fluid reference"):
            static_from_total(FluidState(P=1e5, H=3e5, S=1e3), 10.0)


class TestGruneisen:
    """Grüneisen parameter used by the 1D diffuser"""

    def test_ideal_gas_limit(self):
        """For an ideal gas G = gamma - 1"""
        air = Fluid("Air")
        state = air.thermo_prop("PT", 1e4, 500)
        assert air.gruneisen(state) == pytest.approx(state.gamma - 1, rel=0.02)
