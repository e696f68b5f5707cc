"""Tests for input resolution and birthdate handling."""

from datetime import date

import pytest

from wealth_sim.events import CashEvent
from wealth_sim.params import (
    BucketInputs,
    SimulationInputs,
    age_on,
    current_age,
    parse_birthdate,
    resolve_path_params,
)

AS_OF = date(2026, 1, 1)


class TestParseBirthdate:
    def test_iso(self):
        assert parse_birthdate("1971-03-15") == date(1971, 3, 15)

    def test_day_month_year(self):
        assert parse_birthdate("15/3/1971") == date(1971, 3, 15)
        assert parse_birthdate("15-03-1971") == date(1971, 3, 15)

    def test_surrounding_whitespace(self):
        assert parse_birthdate("  1971-03-15 ") == date(1971, 3, 15)

    @pytest.mark.parametrize("text", ["", "   ", "not a date", "1971-02-30", "31/2/1971", "1971/13/01"])
    def test_invalid(self, text):
        with pytest.raises(ValueError, match="Invalid birthdate"):
            parse_birthdate(text)


class TestAge:
    def test_birthday_boundary(self):
        born = date(1971, 6, 15)
        assert age_on(born, date(2026, 6, 14)) == 54
        assert age_on(born, date(2026, 6, 15)) == 55

    def test_current_age(self):
        assert current_age("1971-01-01", AS_OF) == 55


class TestResolvePathParams:
    def setup_method(self):
        self.inputs = SimulationInputs(
            birthdate="1971-01-01",
            retirement_age=60,
            life_expectancy=85,
            portfolio=BucketInputs(
                balance=100_000, monthly_contribution=1_000, contribution_growth_pct=5,
                expected_return_pct=8, volatility_pct=20, haircut_pct=2,
            ),
            super_fund=BucketInputs(balance=50_000, haircut_pct=1, haircut_age=65),
            inflation_pct=2.5,
            living_expenses=4_000,
            floor_withdrawal=3_000,
            cash_events=(CashEvent(58, 10_000), CashEvent(58, 5_000, "super")),
            correlation_pct=50,
        )
        self.params = resolve_path_params(self.inputs, AS_OF)

    def test_ages(self):
        assert self.params.start_age == 55
        assert self.params.end_age == 85
        assert list(self.params.ages) == list(range(55, 86))

    def test_units(self):
        p = self.params.portfolio
        assert p.contribution == 12_000
        assert p.contribution_growth == pytest.approx(0.05)
        assert p.mu == pytest.approx(0.08)
        assert p.sigma == pytest.approx(0.20)
        assert self.params.inflation == pytest.approx(0.025)
        assert self.params.target_spend == 48_000
        assert self.params.floor_spend == 36_000
        assert self.params.correlation == pytest.approx(0.5)

    def test_super_defaults(self):
        s = self.params.super_fund
        assert s.mu == pytest.approx(0.10)
        assert s.sigma == pytest.approx(0.12)
        assert self.params.super_draw_age == 63

    def test_haircut_age_defaults_to_retirement(self):
        assert self.params.portfolio.haircut_age == 60
        assert self.params.super_fund.haircut_age == 65

    def test_cash_events_resolved(self):
        assert self.params.cash_portfolio == {58: 10_000}
        assert self.params.cash_super == {58: 5_000}

    def test_no_shock_by_default(self):
        assert self.params.shock.age is None

    def test_correlation_clipped(self):
        inputs = SimulationInputs(birthdate="1971-01-01", correlation_pct=100)
        assert resolve_path_params(inputs, AS_OF).correlation == pytest.approx(0.99)
        inputs = SimulationInputs(birthdate="1971-01-01", correlation_pct=-150)
        assert resolve_path_params(inputs, AS_OF).correlation == pytest.approx(-0.99)

    def test_life_expectancy_below_current_age(self):
        inputs = SimulationInputs(birthdate="1971-01-01", life_expectancy=50)
        params = resolve_path_params(inputs, AS_OF)
        assert list(params.ages) == [55]

    def test_negative_balance_floored(self):
        inputs = SimulationInputs(birthdate="1971-01-01", portfolio=BucketInputs(balance=-5))
        assert resolve_path_params(inputs, AS_OF).portfolio.balance == 0.0

    def test_invalid_birthdate(self):
        with pytest.raises(ValueError, match="Invalid birthdate"):
            resolve_path_params(SimulationInputs(birthdate="yesterday"), AS_OF)
