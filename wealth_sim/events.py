"""One-off cash events and black-swan shock modeling."""

from dataclasses import dataclass

BUCKETS = ("portfolio", "super")


@dataclass(frozen=True)
class CashEvent:
    """One-off cash injection (or outflow when negative) at a given age."""

    age: int
    amount: float
    bucket: str = "portfolio"
    description: str = ""


@dataclass(frozen=True)
class BlackSwanConfig:
    """Single large drawdown at a configured age plus its aftermath."""

    age: int
    drop_pct: float
    super_multiplier: float = 0.6       # super drop relative to portfolio drop
    recovery_years: int = 3
    recovery_drag_pct: float = 3.0      # mean-return drag inside the recovery window
    recovery_vol_multiplier: float = 1.0
    extra_haircut_pct: float = 0.0      # tapers linearly to 0 across extra_haircut_years
    extra_haircut_years: int = 0


def cash_by_age(events: tuple[CashEvent, ...] | list[CashEvent]) -> tuple[dict[int, float], dict[int, float]]:
    """Sum cash events per age into (portfolio, super) maps.

    Unknown bucket names fall back to the portfolio.
    """
    portfolio: dict[int, float] = {}
    super_fund: dict[int, float] = {}
    for ev in events:
        target = super_fund if ev.bucket == "super" else portfolio
        target[ev.age] = target.get(ev.age, 0.0) + ev.amount
    return portfolio, super_fund


@dataclass(frozen=True)
class ShockSchedule:
    """Black-swan configuration resolved to decimals.

    ``age`` is None when no shock is configured; every query then returns
    the neutral value.
    """

    age: int | None = None
    drop: float = 0.0
    super_multiplier: float = 0.6
    recovery_years: int = 0
    recovery_drag: float = 0.0
    recovery_vol_multiplier: float = 1.0
    extra_haircut: float = 0.0
    extra_haircut_years: int = 0

    @classmethod
    def from_config(cls, config: BlackSwanConfig | None) -> "ShockSchedule":
        if config is None or config.drop_pct <= 0:
            return cls()
        return cls(
            age=int(round(config.age)),
            drop=config.drop_pct / 100,
            super_multiplier=config.super_multiplier,
            recovery_years=max(0, config.recovery_years),
            recovery_drag=config.recovery_drag_pct / 100,
            recovery_vol_multiplier=config.recovery_vol_multiplier,
            extra_haircut=max(0.0, config.extra_haircut_pct) / 100,
            extra_haircut_years=max(0, config.extra_haircut_years),
        )

    def is_shock_year(self, age: int) -> bool:
        return self.age is not None and age == self.age

    def in_recovery(self, age: int) -> bool:
        """True for the recovery_years ages strictly after the shock."""
        if self.age is None:
            return False
        return self.age < age <= self.age + self.recovery_years

    def extra_haircut_at(self, age: int) -> float:
        """Tapering haircut: full size right after the shock, 0 at the window end."""
        if self.age is None or self.extra_haircut_years <= 0 or self.extra_haircut <= 0:
            return 0.0
        dist = age - self.age
        if dist <= 0 or dist > self.extra_haircut_years:
            return 0.0
        return self.extra_haircut * (self.extra_haircut_years - dist) / self.extra_haircut_years

    def apply(self, portfolio: float, super_fund: float) -> tuple[float, float, float]:
        """Apply the drop to both buckets.

        Returns (portfolio, super_fund, signed_shock_amount).
        """
        drop_p = portfolio * self.drop
        drop_s = super_fund * self.drop * self.super_multiplier
        return portfolio - drop_p, super_fund - drop_s, -(drop_p + drop_s)
