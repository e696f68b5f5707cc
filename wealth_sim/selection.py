"""Representative path selection and advice rows."""

import math
from dataclasses import dataclass

from wealth_sim.monte_carlo import MC_PERCENTILES, PercentilePoint, RunSnapshot
from wealth_sim.params import EngineSettings, PathParams
from wealth_sim.policy import Policy
from wealth_sim.simulation import PathResult, YearRecord, simulate_path


@dataclass(frozen=True)
class SelectedPath:
    """The simulated run chosen to stand in for one percentile curve."""

    percentile: str
    index: int
    seed: int
    regime: float
    error: float


@dataclass(frozen=True)
class AdviceDetail:
    want: float
    floor: float
    allowed: float
    from_portfolio: float
    from_super: float
    funded_years: float
    wr_wanted: float
    wr_allowed: float
    reason: str
    begin_portfolio: float
    begin_super: float
    end_portfolio: float
    end_super: float
    end_drawable_balance: float


@dataclass(frozen=True)
class AdviceRow:
    age: int
    policy: Policy
    target_spend: float
    actual_spend: float
    end_balance: float
    # Before the super draw age the drawable balance is the portfolio only
    drawable_end_balance: float
    super_end_balance: float
    r_portfolio: float
    r_super: float
    detail: AdviceDetail

    def to_dict(self) -> dict:
        d = self.detail
        return {
            "age": self.age,
            "policy": self.policy.value,
            "targetSpend": self.target_spend,
            "actualSpend": self.actual_spend,
            "endBalance": self.end_balance,
            "drawableEndBalance": self.drawable_end_balance,
            "superEndBalance": self.super_end_balance,
            "rPortfolio": self.r_portfolio,
            "rSuper": self.r_super,
            "detail": {
                "want": d.want,
                "floor": d.floor,
                "allowed": d.allowed,
                "fromPortfolio": d.from_portfolio,
                "fromSuper": d.from_super,
                "fundedYears": d.funded_years,
                "wrWanted": d.wr_wanted,
                "wrAllowed": d.wr_allowed,
                "reason": d.reason,
                "beginPortfolio": d.begin_portfolio,
                "beginSuper": d.begin_super,
                "endPortfolio": d.end_portfolio,
                "endSuper": d.end_super,
                "endDrawableBalance": d.end_drawable_balance,
            },
        }


@dataclass
class RepresentativePath:
    selected: SelectedPath
    path: PathResult
    advice: list[AdviceRow]


def trajectory_error(
    wealth: tuple[float, ...] | list[float],
    curve: list[float],
    which: str,
    penalty: float,
) -> float:
    """Sum of squared deviations from the curve with a directional penalty.

    A p20 candidate that ends above the curve is too lucky to represent the
    unlucky case; a p80 candidate that ends below it is too unlucky.
    """
    err = sum((w - c) ** 2 for w, c in zip(wealth, curve))
    if which == "p20" and wealth[-1] > curve[-1]:
        err *= penalty
    elif which == "p80" and wealth[-1] < curve[-1]:
        err *= penalty
    return err


def select_representative(
    runs: list[RunSnapshot],
    graph: list[PercentilePoint],
    which: str,
    penalty: float = 4.0,
) -> SelectedPath:
    """Pick the run whose whole trajectory best matches one percentile curve.

    Ties keep the lowest run index.
    """
    if which not in MC_PERCENTILES:
        raise ValueError(f"Unknown percentile: {which!r}")
    if not runs:
        raise ValueError("No runs to select from")
    curve = [getattr(pt, which) for pt in graph]
    best: RunSnapshot | None = None
    best_err = math.inf
    for run in sorted(runs, key=lambda r: r.index):
        err = trajectory_error(run.wealth, curve, which, penalty)
        if best is None or err < best_err:
            best, best_err = run, err
    return SelectedPath(
        percentile=which, index=best.index, seed=best.seed, regime=best.regime, error=best_err,
    )


def _ratio(num: float, den: float) -> float:
    if den > 0:
        return num / den
    return math.inf if num > 0 else 0.0


def _reason(row: YearRecord, params: PathParams) -> str:
    if row.age < params.retirement_age:
        return "accumulating"
    g = params.guardrail
    if math.isinf(row.funded_years):
        reason = "no target spend"
    elif row.policy is Policy.FLOOR:
        reason = f"funded {row.funded_years:.1f}y < hard {g.hard_years:g}y: floor spend"
    elif row.policy is Policy.CUT:
        reason = f"funded {row.funded_years:.1f}y < soft {g.soft_years:g}y: cut {g.cut_pct:g}%"
    else:
        reason = f"funded {row.funded_years:.1f}y: target spend"
    if row.allowed_spend > 0 and row.allowed_spend >= row.drawable_begin:
        reason += " (capped at drawable balance)"
    return reason


def advice_row(row: YearRecord, params: PathParams) -> AdviceRow:
    """Flatten one YearRecord into a presentation-friendly advice row."""
    merged = row.age >= params.super_draw_age
    drawable_end = row.end_portfolio + row.end_super if merged else row.end_portfolio
    return AdviceRow(
        age=row.age,
        policy=row.policy,
        target_spend=row.target_spend,
        actual_spend=row.actual_spend,
        end_balance=row.end_balance,
        drawable_end_balance=drawable_end,
        super_end_balance=0.0 if merged else row.end_super,
        r_portfolio=row.r_portfolio,
        r_super=row.r_super,
        detail=AdviceDetail(
            want=row.target_spend,
            floor=row.floor_spend,
            allowed=row.allowed_spend,
            from_portfolio=row.withdraw_portfolio,
            from_super=row.withdraw_super,
            funded_years=row.funded_years,
            wr_wanted=_ratio(row.target_spend, row.drawable_begin),
            wr_allowed=_ratio(row.allowed_spend, row.drawable_begin),
            reason=_reason(row, params),
            begin_portfolio=row.begin_portfolio,
            begin_super=row.begin_super,
            end_portfolio=row.end_portfolio,
            end_super=row.end_super,
            end_drawable_balance=drawable_end,
        ),
    )


def build_representative_paths(
    params: PathParams,
    runs: list[RunSnapshot],
    graph: list[PercentilePoint],
    settings: EngineSettings | None = None,
) -> dict[str, RepresentativePath]:
    """Select one run per percentile and re-simulate it for full detail.

    The winner's (seed, regime) is run again with its percentile's clamp
    band, so every advice row comes from one reproducible path.
    """
    if settings is None:
        settings = EngineSettings()
    reps = {}
    for which in MC_PERCENTILES:
        selected = select_representative(runs, graph, which, settings.selection_penalty)
        path = simulate_path(params, selected.seed, selected.regime, band=which, settings=settings)
        reps[which] = RepresentativePath(
            selected=selected,
            path=path,
            advice=[advice_row(r, params) for r in path.rows],
        )
    return reps
