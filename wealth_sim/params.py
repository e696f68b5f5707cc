"""Simulation inputs, engine settings and boundary resolution."""

import re
from dataclasses import dataclass, field
from datetime import date, datetime

from wealth_sim.events import BlackSwanConfig, CashEvent, ShockSchedule, cash_by_age
from wealth_sim.policy import GuardrailConfig

MAX_CORRELATION = 0.99
MIN_MEAN_RETURN = -0.99

_DMY_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")


@dataclass(frozen=True)
class BucketInputs:
    """One asset bucket in user units (percent, monthly amounts)."""

    balance: float = 0.0
    monthly_contribution: float = 0.0
    contribution_growth_pct: float = 0.0
    expected_return_pct: float = 12.0
    volatility_pct: float = 15.0
    # Post-retirement mean-return haircut, applied from haircut_age onwards
    # (None = retirement age)
    haircut_pct: float = 0.0
    haircut_age: int | None = None


@dataclass(frozen=True)
class SimulationInputs:
    """Validated household inputs.

    Percentages are whole numbers, contributions and spending are monthly.
    Every optional field carries its documented default here so the engine
    never has to guess.
    """

    birthdate: str
    retirement_age: int = 60
    life_expectancy: int = 90

    portfolio: BucketInputs = field(default_factory=BucketInputs)
    super_fund: BucketInputs = field(
        default_factory=lambda: BucketInputs(expected_return_pct=10.0, volatility_pct=12.0)
    )

    inflation_pct: float = 3.0
    living_expenses: float = 0.0      # target spend ($/month)
    floor_withdrawal: float = 0.0     # floor spend ($/month)
    guardrail: GuardrailConfig = field(default_factory=GuardrailConfig)

    black_swan: BlackSwanConfig | None = None
    cash_events: tuple[CashEvent, ...] = ()

    correlation_pct: float = 0.0
    super_draw_age: int = 63
    remove_volatility: bool = False
    contribute_after_retirement: bool = False


@dataclass(frozen=True)
class EngineSettings:
    """Engine calibration knobs.

    regime_weight and selection_penalty have no documented derivation and
    are kept configurable pending calibration review.
    """

    regime_weight: float = 0.6        # persistence of the per-run macro regime (0..1)
    selection_penalty: float = 4.0    # directional penalty for p20/p80 path selection
    deterministic_seed: int = 42


@dataclass(frozen=True)
class BucketParams:
    """One bucket resolved to decimals and annual amounts."""

    balance: float
    contribution: float
    contribution_growth: float
    mu: float
    sigma: float
    haircut: float
    haircut_age: int


@dataclass(frozen=True)
class PathParams:
    """Everything the per-year loop reads, resolved once."""

    start_age: int
    end_age: int
    retirement_age: int
    super_draw_age: int
    portfolio: BucketParams
    super_fund: BucketParams
    inflation: float
    target_spend: float
    floor_spend: float
    guardrail: GuardrailConfig
    shock: ShockSchedule
    cash_portfolio: dict[int, float]
    cash_super: dict[int, float]
    correlation: float
    contribute_after_retirement: bool
    remove_volatility: bool

    @property
    def ages(self) -> range:
        return range(self.start_age, self.end_age + 1)


def parse_birthdate(s: str) -> date:
    """Parse ISO (YYYY-MM-DD) or D/M/YYYY (D-M-YYYY) into a date.

    Raises ValueError for anything else; never defaults to today.
    """
    text = (s or "").strip()
    if not text:
        raise ValueError(f"Invalid birthdate: {s!r}")
    m = _DMY_RE.match(text)
    try:
        if m:
            return date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Invalid birthdate: {s!r}") from None


def age_on(birthdate: date, as_of: date) -> int:
    """Completed years of age on as_of."""
    age = as_of.year - birthdate.year
    if (as_of.month, as_of.day) < (birthdate.month, birthdate.day):
        age -= 1
    return age


def current_age(birthdate: str, as_of: date | None = None) -> int:
    return age_on(parse_birthdate(birthdate), as_of or date.today())


def _resolve_bucket(b: BucketInputs, retirement_age: int) -> BucketParams:
    return BucketParams(
        balance=max(0.0, b.balance),
        contribution=b.monthly_contribution * 12,
        contribution_growth=b.contribution_growth_pct / 100,
        mu=b.expected_return_pct / 100,
        sigma=b.volatility_pct / 100,
        haircut=b.haircut_pct / 100,
        haircut_age=retirement_age if b.haircut_age is None else int(round(b.haircut_age)),
    )


def resolve_path_params(inputs: SimulationInputs, as_of: date | None = None) -> PathParams:
    """Resolve user-unit inputs into PathParams.

    Start age comes from the birthdate as of ``as_of`` (today when None).
    A life expectancy below the current age collapses to a single year.
    """
    start_age = current_age(inputs.birthdate, as_of)
    end_age = max(start_age, int(round(inputs.life_expectancy)))
    retirement_age = int(round(inputs.retirement_age))
    cash_p, cash_s = cash_by_age(inputs.cash_events)
    rho = inputs.correlation_pct / 100
    return PathParams(
        start_age=start_age,
        end_age=end_age,
        retirement_age=retirement_age,
        super_draw_age=int(round(inputs.super_draw_age)),
        portfolio=_resolve_bucket(inputs.portfolio, retirement_age),
        super_fund=_resolve_bucket(inputs.super_fund, retirement_age),
        inflation=inputs.inflation_pct / 100,
        target_spend=inputs.living_expenses * 12,
        floor_spend=inputs.floor_withdrawal * 12,
        guardrail=inputs.guardrail,
        shock=ShockSchedule.from_config(inputs.black_swan),
        cash_portfolio=cash_p,
        cash_super=cash_s,
        correlation=max(-MAX_CORRELATION, min(MAX_CORRELATION, rho)),
        contribute_after_retirement=inputs.contribute_after_retirement,
        remove_volatility=inputs.remove_volatility,
    )
