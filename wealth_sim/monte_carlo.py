"""Monte Carlo simulation engine."""

import math
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from wealth_sim.params import EngineSettings, PathParams, SimulationInputs, resolve_path_params
from wealth_sim.rng import Mulberry32, standard_normal
from wealth_sim.simulation import PolicyEvent, simulate_path

MC_PERCENTILES = {"p20": 0.20, "p50": 0.50, "p80": 0.80}


class SimulationRunError(RuntimeError):
    """A single Monte Carlo run failed; identifies the run that did."""

    def __init__(self, run_index: int, seed: int, regime: float, reason: str):
        super().__init__(run_index, seed, regime, reason)
        self.run_index = run_index
        self.seed = seed
        self.regime = regime
        self.reason = reason

    def __str__(self) -> str:
        return (
            f"Monte Carlo run {self.run_index} (seed={self.seed}, "
            f"regime={self.regime:+.6f}) failed: {self.reason}"
        )


class SimulationCancelled(RuntimeError):
    """Raised between batches when the caller asks the driver to stop."""


@dataclass
class MonteCarloConfig:
    """Configuration for Monte Carlo simulation."""

    n_runs: int = 10000
    seed: int = 1234
    workers: int = 1            # >1 runs batches on a process pool
    batch_size: int = 1000      # unit of progress reporting and cancellation
    progress: Callable[[int, int], None] | None = None
    should_stop: Callable[[], bool] | None = None


@dataclass(frozen=True)
class RunSnapshot:
    """Identity and per-age combined wealth of one simulated run."""

    index: int
    seed: int
    regime: float
    wealth: tuple[float, ...]


@dataclass(frozen=True)
class PercentilePoint:
    age: int
    p20: float
    p50: float
    p80: float


@dataclass(frozen=True)
class BreakdownRow:
    """Percentile balances and the annualised return they imply (%)."""

    age: int
    ret20: float
    ret50: float
    ret80: float
    bal20: float
    bal50: float
    bal80: float


@dataclass
class MonteCarloRuns:
    ages: list[int]
    runs: list[RunSnapshot]
    graph: list[PercentilePoint]


def percentile(sorted_vals: list[float], p: float) -> float:
    """Linear interpolation between the two nearest order statistics."""
    idx = (len(sorted_vals) - 1) * p
    lo = math.floor(idx)
    hi = math.ceil(idx)
    if lo == hi:
        return sorted_vals[lo]
    w = idx - lo
    return sorted_vals[lo] * (1 - w) + sorted_vals[hi] * w


def draw_regimes(seed: int, n_runs: int) -> list[float]:
    """One persistent macro regime per run, from a stream keyed off the base seed."""
    rng = Mulberry32(seed * 97 + 7)
    return [standard_normal(rng) for _ in range(n_runs)]


def _simulate_run(
    params: PathParams, settings: EngineSettings, index: int, seed: int, regime: float,
) -> RunSnapshot:
    try:
        wealth = simulate_path(params, seed, regime, settings=settings).wealth
    except (ArithmeticError, ValueError) as e:
        raise SimulationRunError(index, seed, regime, f"{type(e).__name__}: {e}") from e
    if not all(math.isfinite(w) for w in wealth):
        raise SimulationRunError(index, seed, regime, "non-finite wealth")
    return RunSnapshot(index=index, seed=seed, regime=regime, wealth=tuple(wealth))


def _run_batch(job: tuple[PathParams, EngineSettings, list[tuple[int, int, float]]]) -> list[RunSnapshot]:
    params, settings, batch = job
    return [_simulate_run(params, settings, i, s, z) for i, s, z in batch]


def _split(items: list, n: int) -> list[list]:
    size = max(1, math.ceil(len(items) / n))
    return [items[i:i + size] for i in range(0, len(items), size)]


def percentile_series(ages: list[int], runs: list[RunSnapshot]) -> list[PercentilePoint]:
    """p20/p50/p80 of combined wealth at every age."""
    graph = []
    for i, age in enumerate(ages):
        vals = sorted(r.wealth[i] for r in runs)
        graph.append(PercentilePoint(
            age=age,
            p20=percentile(vals, MC_PERCENTILES["p20"]),
            p50=percentile(vals, MC_PERCENTILES["p50"]),
            p80=percentile(vals, MC_PERCENTILES["p80"]),
        ))
    return graph


def run_monte_carlo(
    params: PathParams,
    config: MonteCarloConfig,
    settings: EngineSettings | None = None,
) -> MonteCarloRuns:
    """Run N independent paths and compute per-age percentiles.

    Run k uses seed ``config.seed + k`` and the k-th regime draw. Regimes are
    drawn up front in run order and results are merged by run index, so the
    output is identical for any worker count.
    """
    if config.n_runs <= 0:
        raise ValueError(f"n_runs must be positive (got {config.n_runs})")
    if config.workers < 1:
        raise ValueError(f"workers must be >= 1 (got {config.workers})")
    if config.batch_size < 1:
        raise ValueError(f"batch_size must be >= 1 (got {config.batch_size})")
    if settings is None:
        settings = EngineSettings()

    n = config.n_runs
    regimes = draw_regimes(config.seed, n)
    jobs = [(k, config.seed + k, regimes[k]) for k in range(n)]

    runs: list[RunSnapshot] = []
    executor = ProcessPoolExecutor(max_workers=config.workers) if config.workers > 1 else None
    try:
        for start in range(0, n, config.batch_size):
            if config.should_stop is not None and config.should_stop():
                raise SimulationCancelled(f"cancelled after {len(runs)}/{n} runs")
            batch = jobs[start:start + config.batch_size]
            if executor is None:
                runs.extend(_run_batch((params, settings, batch)))
            else:
                chunks = [(params, settings, c) for c in _split(batch, config.workers)]
                for part in executor.map(_run_batch, chunks):
                    runs.extend(part)
            if config.progress is not None:
                config.progress(len(runs), n)
    finally:
        if executor is not None:
            executor.shutdown(cancel_futures=True)

    ages = list(params.ages)
    return MonteCarloRuns(ages=ages, runs=runs, graph=percentile_series(ages, runs))


def build_breakdown(graph: list[PercentilePoint], start_balance: float) -> list[BreakdownRow]:
    """Implied annualised return of each percentile balance vs the starting balance."""
    if not graph:
        return []
    first_age = graph[0].age

    def implied(end: float, years: int) -> float:
        return round((math.pow(max(end, 1.0) / max(start_balance, 1.0), 1 / years) - 1) * 100, 2)

    rows = []
    for pt in graph:
        years = max(1, pt.age - first_age)
        rows.append(BreakdownRow(
            age=pt.age,
            ret20=implied(pt.p20, years),
            ret50=implied(pt.p50, years),
            ret80=implied(pt.p80, years),
            bal20=pt.p20,
            bal50=pt.p50,
            bal80=pt.p80,
        ))
    return rows


@dataclass(frozen=True)
class AtEnd:
    p20: float
    p50: float
    p80: float
    end_age: int


@dataclass
class SimulationResult:
    """Aggregate output of one Monte Carlo simulation call."""

    graph: list[PercentilePoint]
    at_end: AtEnd
    events: list[PolicyEvent]
    advice_by_path: dict[str, list] = field(default_factory=dict)
    breakdown: list[BreakdownRow] = field(default_factory=list)
    selected: dict = field(default_factory=dict)  # percentile key -> SelectedPath
    n_runs: int = 0
    seed: int = 0

    def to_dict(self) -> dict:
        """Plain output contract for presentation layers."""
        return {
            "graph": [{"age": p.age, "p20": p.p20, "p50": p.p50, "p80": p.p80} for p in self.graph],
            "atEnd": {
                "p20": self.at_end.p20,
                "p50": self.at_end.p50,
                "p80": self.at_end.p80,
                "endAge": self.at_end.end_age,
            },
            "events": [{"age": e.age, "kind": e.kind} for e in self.events],
            "adviceByPath": {
                key: [row.to_dict() for row in rows] for key, rows in self.advice_by_path.items()
            },
            "breakdown": [
                {
                    "age": b.age,
                    "ret20": b.ret20, "ret50": b.ret50, "ret80": b.ret80,
                    "bal20": b.bal20, "bal50": b.bal50, "bal80": b.bal80,
                }
                for b in self.breakdown
            ],
        }


def simulate(
    inputs: SimulationInputs,
    n_runs: int = 10000,
    seed: int = 1234,
    as_of: date | None = None,
    settings: EngineSettings | None = None,
    workers: int = 1,
    progress: Callable[[int, int], None] | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> SimulationResult:
    """Full Monte Carlo run: percentile graph plus one advice track per band."""
    from wealth_sim.selection import build_representative_paths

    if settings is None:
        settings = EngineSettings()
    params = resolve_path_params(inputs, as_of)
    config = MonteCarloConfig(
        n_runs=n_runs, seed=seed, workers=workers, progress=progress, should_stop=should_stop,
    )
    mc = run_monte_carlo(params, config, settings)
    reps = build_representative_paths(params, mc.runs, mc.graph, settings)

    last = mc.graph[-1]
    start_balance = params.portfolio.balance + params.super_fund.balance
    return SimulationResult(
        graph=mc.graph,
        at_end=AtEnd(p20=last.p20, p50=last.p50, p80=last.p80, end_age=last.age),
        # Markers come from the unlucky path (most conservative)
        events=list(reps["p20"].path.events),
        advice_by_path={key: rep.advice for key, rep in reps.items()},
        breakdown=build_breakdown(mc.graph, start_balance),
        selected={key: rep.selected for key, rep in reps.items()},
        n_runs=n_runs,
        seed=seed,
    )
