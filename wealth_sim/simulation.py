"""Core single-path simulation engine."""

import math
from dataclasses import dataclass, field
from datetime import date

from wealth_sim.params import (
    MIN_MEAN_RETURN,
    BucketParams,
    EngineSettings,
    PathParams,
    SimulationInputs,
    resolve_path_params,
)
from wealth_sim.policy import Policy, evaluate_guardrail
from wealth_sim.returns import annual_return, clamp_return
from wealth_sim.rng import Mulberry32, standard_normal

SHOCK = "shock"


@dataclass(frozen=True)
class PolicyEvent:
    """Marker for a year that left the normal policy or took a shock."""

    age: int
    kind: str  # "shock" | "cut" | "floor"


@dataclass(frozen=True)
class YearRecord:
    """One simulated year of one path. All amounts are annual."""

    age: int
    begin_portfolio: float
    begin_super: float
    irregular: float
    contrib_portfolio: float
    contrib_super: float
    target_spend: float
    floor_spend: float
    allowed_spend: float
    policy: Policy
    withdraw_portfolio: float
    withdraw_super: float
    shock_amount: float
    r_portfolio: float
    r_super: float
    end_portfolio: float
    end_super: float
    # Diagnostics
    drawable_begin: float = 0.0
    funded_years: float = math.inf
    mu_portfolio: float = 0.0
    mu_super: float = 0.0

    @property
    def actual_spend(self) -> float:
        return self.withdraw_portfolio + self.withdraw_super

    @property
    def contributions(self) -> float:
        return self.contrib_portfolio + self.contrib_super

    @property
    def begin_balance(self) -> float:
        return self.begin_portfolio + self.begin_super

    @property
    def end_balance(self) -> float:
        return self.end_portfolio + self.end_super


@dataclass
class PathResult:
    rows: list[YearRecord] = field(default_factory=list)
    events: list[PolicyEvent] = field(default_factory=list)

    @property
    def wealth(self) -> list[float]:
        """Combined end-of-year wealth per age."""
        return [r.end_portfolio + r.end_super for r in self.rows]


def _mean_return(bucket: BucketParams, params: PathParams, age: int) -> float:
    """Base mean less haircut, tapering post-shock haircut and recovery drag."""
    mu = bucket.mu - params.shock.extra_haircut_at(age)
    if age >= bucket.haircut_age:
        mu -= bucket.haircut
    if params.shock.in_recovery(age):
        mu -= params.shock.recovery_drag
    return max(MIN_MEAN_RETURN, mu)


def simulate_path(
    params: PathParams,
    seed: int,
    regime: float | None = None,
    band: str | None = None,
    settings: EngineSettings | None = None,
    remove_volatility: bool | None = None,
) -> PathResult:
    """Advance one household from start_age to end_age, one year at a time.

    Args:
        params: resolved inputs (see resolve_path_params).
        seed: seed of this path's generator.
        regime: persistent macro shock for the whole run. When None (and
            volatility is on) it is drawn from the path's own generator.
        band: ROI clamp band ("p20", "p50", "p80"); None = global band.
        settings: engine knobs (regime weight).
        remove_volatility: override params.remove_volatility.

    Returns:
        PathResult with one YearRecord per age and the policy events.
    """
    if settings is None:
        settings = EngineSettings()
    no_vol = params.remove_volatility if remove_volatility is None else remove_volatility

    rng = Mulberry32(seed)
    alpha = max(0.0, min(1.0, settings.regime_weight))
    idio_weight = math.sqrt(1 - alpha * alpha)
    rho = params.correlation
    rho_weight = math.sqrt(1 - rho * rho)
    if no_vol:
        regime_z = 0.0
    elif regime is None:
        regime_z = standard_normal(rng)
    else:
        regime_z = regime

    port = params.portfolio
    sup = params.super_fund
    shock = params.shock
    bal_p = port.balance
    bal_s = sup.balance
    contrib_p = port.contribution
    contrib_s = sup.contribution
    spend_base_age = max(params.retirement_age, params.start_age)

    result = PathResult()
    for age in params.ages:
        begin_p, begin_s = bal_p, bal_s

        # 1. One-off cash events
        irr_p = params.cash_portfolio.get(age, 0.0)
        irr_s = params.cash_super.get(age, 0.0)
        bal_p = max(0.0, bal_p + irr_p)
        bal_s = max(0.0, bal_s + irr_s)

        retired = age >= params.retirement_age
        can_draw_super = age >= params.super_draw_age

        # 2. Contributions (stop at retirement unless told otherwise)
        c_p = c_s = 0.0
        if not retired or params.contribute_after_retirement:
            c_p, c_s = contrib_p, contrib_s
            bal_p += c_p
            bal_s += c_s
            contrib_p *= 1 + port.contribution_growth
            contrib_s *= 1 + sup.contribution_growth

        # 3. Spending under the guardrail, portfolio first
        target = floor = allowed = 0.0
        policy = Policy.NORMAL
        funded = math.inf
        drawable = bal_p + bal_s if can_draw_super else bal_p
        w_p = w_s = 0.0
        if retired:
            inflation_factor = (1 + params.inflation) ** (age - spend_base_age)
            target = params.target_spend * inflation_factor
            floor = params.floor_spend * inflation_factor
            decision = evaluate_guardrail(drawable, target, floor, params.guardrail)
            policy = decision.policy
            allowed = decision.allowed
            funded = decision.funded_years
            if decision.event_kind is not None:
                result.events.append(PolicyEvent(age, decision.event_kind))

            w_p = min(allowed, bal_p)
            if can_draw_super:
                w_s = min(allowed - w_p, bal_s)
            bal_p -= w_p
            bal_s -= w_s

        # 4. Black swan drop (before this year's returns)
        shock_amount = 0.0
        if shock.is_shock_year(age):
            bal_p, bal_s, shock_amount = shock.apply(bal_p, bal_s)
            result.events.append(PolicyEvent(age, SHOCK))

        # 5. Mean returns for the year
        mu_p = _mean_return(port, params, age)
        mu_s = _mean_return(sup, params, age)
        sigma_p, sigma_s = port.sigma, sup.sigma
        if shock.in_recovery(age):
            sigma_p *= shock.recovery_vol_multiplier
            sigma_s *= shock.recovery_vol_multiplier

        # 6. Regime-tilted, correlated shocks
        if no_vol:
            z_p = z_s = 0.0
        else:
            eps1 = standard_normal(rng)
            eps2 = standard_normal(rng)
            blended_p = alpha * regime_z + idio_weight * eps1
            blended_s = alpha * regime_z + idio_weight * eps2
            z_p = blended_p
            z_s = rho * blended_p + rho_weight * blended_s

        # 7. Clamped returns, no negative balances
        r_p = clamp_return(annual_return(mu_p, sigma_p, z_p), band)
        r_s = clamp_return(annual_return(mu_s, sigma_s, z_s), band)
        bal_p = max(0.0, bal_p * (1 + r_p))
        bal_s = max(0.0, bal_s * (1 + r_s))

        result.rows.append(YearRecord(
            age=age,
            begin_portfolio=begin_p,
            begin_super=begin_s,
            irregular=irr_p + irr_s,
            contrib_portfolio=c_p,
            contrib_super=c_s,
            target_spend=target,
            floor_spend=floor,
            allowed_spend=allowed,
            policy=policy,
            withdraw_portfolio=w_p,
            withdraw_super=w_s,
            shock_amount=shock_amount,
            r_portfolio=r_p,
            r_super=r_s,
            end_portfolio=bal_p,
            end_super=bal_s,
            drawable_begin=drawable if retired else 0.0,
            funded_years=funded,
            mu_portfolio=mu_p,
            mu_super=mu_s,
        ))

    return result


def simulate_deterministic(
    inputs: SimulationInputs,
    as_of: date | None = None,
    settings: EngineSettings | None = None,
) -> PathResult:
    """Volatility-free path: every shock is zero ("what happens on average")."""
    if settings is None:
        settings = EngineSettings()
    params = resolve_path_params(inputs, as_of)
    return simulate_path(
        params, settings.deterministic_seed, settings=settings, remove_volatility=True,
    )
