"""Tests for the annual return model and clamp bands."""

import math
import statistics

import pytest

from wealth_sim.returns import ROI_CLAMPS, annual_return, clamp_return
from wealth_sim.rng import Mulberry32, standard_normal


class TestAnnualReturn:
    def test_zero_volatility_returns_mean(self):
        assert annual_return(0.10, 0.0, 0.0) == pytest.approx(0.10)
        assert annual_return(0.10, 0.0, 3.0) == pytest.approx(0.10)

    def test_zero_shock_is_median(self):
        mu, sigma = 0.10, 0.15
        expected = math.exp(math.log(1 + mu) - 0.5 * sigma**2) - 1
        assert annual_return(mu, sigma, 0.0) == pytest.approx(expected)
        assert annual_return(mu, sigma, 0.0) < mu

    def test_increasing_in_shock(self):
        values = [annual_return(0.07, 0.15, z) for z in (-2, -1, 0, 1, 2)]
        assert values == sorted(values)

    def test_never_total_loss(self):
        assert annual_return(0.07, 0.30, -10.0) > -1.0

    def test_mean_preserved(self):
        """Log-normal mapping keeps the arithmetic mean at mu."""
        rng = Mulberry32(42)
        returns = [annual_return(0.07, 0.15, standard_normal(rng)) for _ in range(20000)]
        assert statistics.mean(returns) == pytest.approx(0.07, abs=0.01)


class TestClampReturn:
    def test_global_band_default(self):
        assert clamp_return(0.50) == 0.35
        assert clamp_return(-0.90) == -0.35
        assert clamp_return(0.10) == 0.10

    def test_named_bands(self):
        assert clamp_return(0.30, "p20") == 0.18
        assert clamp_return(-0.30, "p20") == -0.12
        assert clamp_return(0.30, "p50") == 0.25
        assert clamp_return(-0.30, "p50") == -0.10
        assert clamp_return(0.50, "p80") == 0.35
        assert clamp_return(-0.30, "p80") == -0.05

    def test_unknown_band(self):
        with pytest.raises(KeyError):
            clamp_return(0.1, "p99")

    def test_bands_are_ordered(self):
        for band in ROI_CLAMPS.values():
            assert band.min < 0 < band.max
