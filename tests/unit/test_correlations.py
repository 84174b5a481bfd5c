# File: tests/unit/test_correlations.py
"""
Unit tests for the general correlations
"""

import pytest
import math
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from axial_turbine.core.correlations import (
    reynolds_number,
    ainley_reynolds_correction,
    kacker_okapuu_reynolds_correction,
    stagnation_pressure_ratio,
)


class TestReynoldsNumber:

    def test_value(self):
        assert reynolds_number(1.2, 100.0, 0.05, 1.8e-5) == pytest.approx(1.2 * 100 * 0.05 / 1.8e-5)

    def test_missing_viscosity(self):
        """Two-phase states have no viscosity"""
        assert math.isnan(reynolds_number(1.2, 100.0, 0.05, math.nan))


class TestReynoldsCorrections:

    def test_ainley_reference(self):
        assert ainley_reynolds_correction(2e5) == pytest.approx(1.0)
        assert ainley_reynolds_correction(1e5) > 1.0
        assert ainley_reynolds_correction(2e6) == pytest.approx(10**-0.2)

    @pytest.mark.parametrize("Re, expected", [
        (1e5, 0.5**-0.4),
        (2e5, 1.0),
        (5e5, 1.0),
        (1e6, 1.0),
        (1e7, 10**-0.2),
    ])
    def test_kacker_okapuu_ranges(self, Re, expected):
        assert kacker_okapuu_reynolds_correction(Re) == pytest.approx(expected)

    def test_not_available(self):
        assert ainley_reynolds_correction(math.nan) == 1.0
        assert kacker_okapuu_reynolds_correction(math.nan) == 1.0

    def test_non_positive(self):
        with pytest.raises(ValueError, match="positive"):
            kacker_okapuu_reynolds_correction(-1.0)


class TestStagnationPressureRatio:

    def test_rest(self):
        assert stagnation_pressure_ratio(0.0, 1.4) == pytest.approx(1.0)

    def test_sonic(self):
        assert stagnation_pressure_ratio(1.0, 1.4) == pytest.approx(1.8929, rel=1e-4)
