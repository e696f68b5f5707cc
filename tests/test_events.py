"""Tests for cash events and the black-swan shock schedule."""

import pytest

from wealth_sim.events import BlackSwanConfig, CashEvent, ShockSchedule, cash_by_age


class TestCashByAge:
    def test_split_by_bucket(self):
        events = [
            CashEvent(57, 100_000, "portfolio"),
            CashEvent(57, -20_000, "portfolio"),
            CashEvent(60, 50_000, "super"),
        ]
        portfolio, super_fund = cash_by_age(events)
        assert portfolio == {57: 80_000}
        assert super_fund == {60: 50_000}

    def test_unknown_bucket_goes_to_portfolio(self):
        portfolio, super_fund = cash_by_age([CashEvent(58, 1_000, "savings")])
        assert portfolio == {58: 1_000}
        assert super_fund == {}

    def test_empty(self):
        assert cash_by_age(()) == ({}, {})


class TestShockSchedule:
    def setup_method(self):
        self.shock = ShockSchedule.from_config(BlackSwanConfig(
            age=60, drop_pct=40, super_multiplier=0.5, recovery_years=3,
            recovery_drag_pct=3, extra_haircut_pct=4, extra_haircut_years=4,
        ))

    def test_resolved_to_decimals(self):
        assert self.shock.drop == pytest.approx(0.40)
        assert self.shock.recovery_drag == pytest.approx(0.03)
        assert self.shock.extra_haircut == pytest.approx(0.04)

    def test_none_config_is_neutral(self):
        s = ShockSchedule.from_config(None)
        assert s.age is None
        assert not s.is_shock_year(60)
        assert not s.in_recovery(61)
        assert s.extra_haircut_at(61) == 0.0

    def test_zero_drop_is_neutral(self):
        s = ShockSchedule.from_config(BlackSwanConfig(age=60, drop_pct=0))
        assert s.age is None

    def test_shock_year(self):
        assert self.shock.is_shock_year(60)
        assert not self.shock.is_shock_year(59)
        assert not self.shock.is_shock_year(61)

    def test_recovery_window(self):
        assert [a for a in range(55, 70) if self.shock.in_recovery(a)] == [61, 62, 63]

    def test_extra_haircut_tapers(self):
        taper = [self.shock.extra_haircut_at(a) for a in range(59, 66)]
        assert taper == pytest.approx([0.0, 0.0, 0.03, 0.02, 0.01, 0.0, 0.0])

    def test_apply(self):
        p, s, amount = self.shock.apply(1_000_000, 500_000)
        assert p == pytest.approx(600_000)
        assert s == pytest.approx(400_000)
        assert amount == pytest.approx(-500_000)

    def test_apply_empty_buckets(self):
        assert self.shock.apply(0.0, 0.0) == (0.0, 0.0, 0.0)
