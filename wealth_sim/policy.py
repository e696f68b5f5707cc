"""Guardrail withdrawal policy."""

import math
from dataclasses import dataclass
from enum import Enum


class Policy(str, Enum):
    NORMAL = "normal"
    CUT = "cut"
    FLOOR = "floor"


@dataclass(frozen=True)
class GuardrailConfig:
    """Funded-years thresholds for spending cuts.

    soft_years=30 is roughly a 3.33% withdrawal rate, hard_years=20 is 5%.
    """

    enabled: bool = True
    soft_years: float = 30
    hard_years: float = 20
    cut_pct: float = 20

    @classmethod
    def disabled(cls) -> "GuardrailConfig":
        return cls(enabled=False)


@dataclass(frozen=True)
class PolicyDecision:
    policy: Policy
    allowed: float
    funded_years: float

    @property
    def event_kind(self) -> str | None:
        """PolicyEvent kind emitted for this decision (None when normal)."""
        return None if self.policy is Policy.NORMAL else self.policy.value


def funded_years(drawable: float, target_spend: float) -> float:
    """Years the drawable balance covers at the current target spend."""
    if target_spend <= 0:
        return math.inf
    return drawable / target_spend


def evaluate_guardrail(
    drawable: float,
    target_spend: float,
    floor_spend: float,
    guardrail: GuardrailConfig,
) -> PolicyDecision:
    """Decide this year's spending from the current funded ratio.

    Memoryless: last year's state plays no part. The allowed amount is
    capped at the drawable balance.
    """
    funded = funded_years(drawable, target_spend)
    policy = Policy.NORMAL
    allowed = target_spend
    if guardrail.enabled:
        if funded < guardrail.hard_years:
            policy = Policy.FLOOR
            allowed = floor_spend
        elif funded < guardrail.soft_years:
            policy = Policy.CUT
            allowed = target_spend * (1 - guardrail.cut_pct / 100)
    allowed = max(0.0, min(allowed, drawable))
    return PolicyDecision(policy=policy, allowed=allowed, funded_years=funded)
