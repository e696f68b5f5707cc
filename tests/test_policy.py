"""Tests for the guardrail withdrawal policy."""

import math

import pytest

from wealth_sim.policy import GuardrailConfig, Policy, evaluate_guardrail, funded_years


class TestFundedYears:
    def test_ratio(self):
        assert funded_years(2_000_000, 100_000) == 20

    def test_zero_target_is_infinite(self):
        assert math.isinf(funded_years(100, 0))
        assert math.isinf(funded_years(0, 0))


class TestEvaluateGuardrail:
    """Default thresholds: soft 30y, hard 20y, cut 20%."""

    def setup_method(self):
        self.g = GuardrailConfig()

    def test_normal_at_soft_threshold(self):
        d = evaluate_guardrail(3_000_000, 100_000, 60_000, self.g)
        assert d.policy is Policy.NORMAL
        assert d.allowed == 100_000
        assert d.event_kind is None

    def test_cut_just_below_soft(self):
        d = evaluate_guardrail(2_999_999, 100_000, 60_000, self.g)
        assert d.policy is Policy.CUT
        assert d.allowed == pytest.approx(80_000)

    def test_cut_at_hard_threshold(self):
        d = evaluate_guardrail(2_000_000, 100_000, 60_000, self.g)
        assert d.policy is Policy.CUT
        assert d.event_kind == "cut"

    def test_floor_below_hard(self):
        d = evaluate_guardrail(1_999_999, 100_000, 60_000, self.g)
        assert d.policy is Policy.FLOOR
        assert d.allowed == 60_000
        assert d.event_kind == "floor"
        assert d.funded_years == pytest.approx(19.99999)

    def test_allowed_capped_at_drawable(self):
        d = evaluate_guardrail(50_000, 100_000, 60_000, self.g)
        assert d.policy is Policy.FLOOR
        assert d.allowed == 50_000

    def test_empty_drawable(self):
        d = evaluate_guardrail(0.0, 100_000, 60_000, self.g)
        assert d.policy is Policy.FLOOR
        assert d.allowed == 0.0

    def test_zero_target_is_normal(self):
        d = evaluate_guardrail(10.0, 0.0, 0.0, self.g)
        assert d.policy is Policy.NORMAL
        assert d.allowed == 0.0
        assert math.isinf(d.funded_years)

    def test_disabled_always_targets(self):
        d = evaluate_guardrail(500_000, 100_000, 60_000, GuardrailConfig.disabled())
        assert d.policy is Policy.NORMAL
        assert d.allowed == 100_000

    def test_disabled_still_capped(self):
        d = evaluate_guardrail(100.0, 100_000, 60_000, GuardrailConfig.disabled())
        assert d.allowed == 100.0

    def test_custom_thresholds(self):
        g = GuardrailConfig(soft_years=25, hard_years=10, cut_pct=50)
        d = evaluate_guardrail(2_000_000, 100_000, 60_000, g)
        assert d.policy is Policy.CUT
        assert d.allowed == pytest.approx(50_000)

    def test_memoryless(self):
        first = evaluate_guardrail(1_000_000, 100_000, 60_000, self.g)
        evaluate_guardrail(5_000_000, 100_000, 60_000, self.g)
        again = evaluate_guardrail(1_000_000, 100_000, 60_000, self.g)
        assert first == again
