# File: tests/unit/test_calculator.py
"""
Unit tests for the loss calculator and the loss coefficient definitions

Cascade stations come from the single-stage R125 design point
(428.15 K, 36.18 bar -> 15.69 bar, 250 kW).
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import Mock

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from axial_turbine.core import ConfigurationError, FixedParameters, ModelDomainError
from axial_turbine.components.turbine import evaluate
from axial_turbine.losses import (
    LOSS_COMPONENTS,
    LossCalculator,
    available_models,
    compute_loss,
    convert_loss_coefficient,
    entropy_from_loss_coefficient,
    loss_coefficient_from_states,
)
from axial_turbine.losses.models import get_model
from axial_turbine.optimization.problem import default_initial_guess


@pytest.fixture(scope="module")
def params():
    return FixedParameters.create(
        'HEOS::R125', p0_in=36.18e5, p_out=15.69e5, T0_in=428.15, isentropic_power=250e3,
    )


@pytest.fixture(scope="module")
def solution(params):
    result = evaluate(default_initial_guess(params), params)
    assert result.feasible, getattr(result, 'reason', '')
    return result


@pytest.fixture(scope="module")
def stator(solution):
    return solution.cascades[0]


@pytest.fixture(scope="module")
def rotor(solution):
    return solution.cascades[1]


class TestModelRegistry:

    def test_available_models(self):
        assert available_models() == ['AM', 'DC', 'KO']

    def test_get_model(self):
        assert get_model('DC').name == 'DC'

    def test_unknown_model(self):
        with pytest.raises(ValueError, match="not available"):
            get_model('XX')

    def test_calculator_unknown_system(self):
        with pytest.raises(ConfigurationError):
            LossCalculator('Traupel')

    def test_repr(self):
        assert repr(LossCalculator('AM')) == "LossCalculator(model='AM')"


class TestLossBreakdown:

    @pytest.mark.parametrize("model", ['AM', 'DC', 'KO'])
    def test_components_sum_to_total(self, model, rotor):
        calc = LossCalculator(model)
        loss = calc.compute_cascade_loss(rotor.geometry, rotor.inlet, rotor.outlet, 'p0')
        assert set(loss.as_dict()) == set(LOSS_COMPONENTS)
        assert sum(loss.as_dict().values()) == pytest.approx(loss.total)
        assert sum(loss.fractions().values()) == pytest.approx(1.0)
        assert loss.total > 0

    @pytest.mark.parametrize("model", ['AM', 'DC'])
    def test_no_shock_term(self, model, rotor):
        loss = LossCalculator(model).compute_cascade_loss(rotor.geometry, rotor.inlet, rotor.outlet, 'p0')
        assert loss.shock == 0.0

    def test_stator_has_no_clearance_loss(self, stator):
        loss = LossCalculator('KO').compute_cascade_loss(stator.geometry, stator.inlet, stator.outlet, 'p0')
        assert loss.clearance == 0.0

    def test_rotor_clearance_loss(self, rotor):
        loss = LossCalculator('KO').compute_cascade_loss(rotor.geometry, rotor.inlet, rotor.outlet, 'p0')
        assert loss.clearance > 0

    def test_residual(self, stator):
        loss = stator.loss
        assert loss.residual == pytest.approx(loss.computed - loss.correlation)
        assert loss.computed == pytest.approx(
            loss_coefficient_from_states(stator.inlet, stator.outlet, 'p0')
        )

    def test_negative_total_is_rejected(self, stator):
        calc = LossCalculator('KO')
        calc.model = Mock(
            compute_cascade_losses=lambda g, i, o: {name: -0.01 for name in LOSS_COMPONENTS}
        )
        with pytest.raises(ModelDomainError, match="negative"):
            calc.compute_losses(stator.geometry, stator.inlet, stator.outlet)

    def test_non_finite_total_is_rejected(self, stator):
        calc = LossCalculator('KO')
        calc.model = Mock(
            compute_cascade_losses=lambda g, i, o: {'profile': float('nan')}
        )
        with pytest.raises(ModelDomainError, match="not finite"):
            calc.compute_losses(stator.geometry, stator.inlet, stator.outlet)


class TestLossCoefficientDefinitions:
    """Conversions between the p0, h and s based definitions"""

    def test_zero_loss(self, stator):
        s = entropy_from_loss_coefficient(0.0, 'p0', stator.inlet, stator.outlet)
        assert s == stator.inlet.static.S

    def test_negative_loss(self, stator):
        with pytest.raises(ModelDomainError):
            entropy_from_loss_coefficient(-0.1, 'p0', stator.inlet, stator.outlet)

    @pytest.mark.parametrize("definition", ['p0', 'h', 's'])
    def test_entropy_increases_with_loss(self, definition, rotor):
        s1 = entropy_from_loss_coefficient(0.05, definition, rotor.inlet, rotor.outlet)
        s2 = entropy_from_loss_coefficient(0.10, definition, rotor.inlet, rotor.outlet)
        assert rotor.inlet.static.S < s1 < s2

    def test_identity(self, stator):
        assert convert_loss_coefficient(0.1, 'p0', 'p0', stator.inlet, stator.outlet) == 0.1

    @pytest.mark.parametrize("via", ['h', 's'])
    def test_conversion_is_reversible(self, via, rotor):
        Y = convert_loss_coefficient(0.1, 'p0', via, rotor.inlet, rotor.outlet)
        back = convert_loss_coefficient(Y, via, 'p0', rotor.inlet, rotor.outlet)
        assert back == pytest.approx(0.1, rel=1e-8)

    @pytest.mark.parametrize("index", [0, 1])
    @pytest.mark.parametrize("Y", [0.02, 0.08, 0.3])
    def test_conversion_through_all_definitions(self, index, Y, solution):
        cascade = solution.cascades[index]
        Y_h = convert_loss_coefficient(Y, 'p0', 'h', cascade.inlet, cascade.outlet)
        Y_s = convert_loss_coefficient(Y_h, 'h', 's', cascade.inlet, cascade.outlet)
        back = convert_loss_coefficient(Y_s, 's', 'p0', cascade.inlet, cascade.outlet)
        assert back == pytest.approx(Y, rel=1e-8)

    def test_computed_coefficient_reproduces_exit_entropy(self, stator):
        """The states' own coefficient maps back onto the exit entropy"""
        Y = loss_coefficient_from_states(stator.inlet, stator.outlet, 's')
        s = entropy_from_loss_coefficient(Y, 's', stator.inlet, stator.outlet)
        assert s == pytest.approx(stator.outlet.static.S, rel=1e-9)


class TestComputeLoss:

    def test_loss_and_entropy_rise(self, rotor):
        Y, ds = compute_loss(rotor.geometry, rotor.inlet, rotor.outlet, 'KO', 'p0')
        assert Y == pytest.approx(rotor.loss.correlation)
        assert ds > 0
