"""CLI entry point for Monte Carlo simulation."""

import sys
from pathlib import Path

from wealth_sim.cli import add_as_of_arg
from wealth_sim.config import build_inputs, parse_args
from wealth_sim.monte_carlo import SimulationResult, SimulationRunError, simulate


def _add_args(parser):
    add_as_of_arg(parser)
    parser.add_argument("--runs", type=int, default=10000, help="number of simulations (default: 10000)")
    parser.add_argument("--seed", type=int, default=1234, help="base random seed (default: 1234)")
    parser.add_argument("--workers", type=int, default=1, help="worker processes (default: 1)")
    parser.add_argument("--chart", type=Path, default=None, help="write a fan chart PNG to this directory")
    parser.add_argument("--name", type=str, default="", help="output file name suffix (e.g. 55 → fan-55.png)")


def _progress(done: int, total: int):
    print(f"\r  runs: {done:,}/{total:,}", end="", file=sys.stderr, flush=True)


def _checkpoints(result: SimulationResult, retirement_age: int) -> list[int]:
    first = result.graph[0].age
    end = result.at_end.end_age
    ages = [retirement_age, retirement_age + 5, retirement_age + 10, end]
    return sorted({a for a in ages if first <= a <= end})


def _print_results(result: SimulationResult, retirement_age: int):
    a = result.at_end
    print()
    print(f"[Monte Carlo (N={result.n_runs:,}, seed={result.seed})]")
    print("-" * 72)
    print(f"{'end age':<10}{'P20':>20}{'P50':>20}{'P80':>20}")
    print(f"{a.end_age:<10}{a.p20:>20,.0f}{a.p50:>20,.0f}{a.p80:>20,.0f}")
    print("-" * 72)

    rows = {b.age: b for b in result.breakdown}
    print(f"\n{'age':<6}{'bal20':>16}{'bal50':>16}{'bal80':>16}{'ret20':>8}{'ret50':>8}{'ret80':>8}")
    print("-" * 78)
    for age in _checkpoints(result, retirement_age):
        b = rows[age]
        print(
            f"{age:<6}{b.bal20:>16,.0f}{b.bal50:>16,.0f}{b.bal80:>16,.0f}"
            f"{b.ret20:>7.2f}%{b.ret50:>7.2f}%{b.ret80:>7.2f}%"
        )
    print("-" * 78)

    print("\nRepresentative paths:")
    for key, sel in result.selected.items():
        track = result.advice_by_path[key]
        cuts = sum(1 for row in track if row.policy.value != "normal")
        print(
            f"  {key}: run {sel.index} (seed={sel.seed}, regime={sel.regime:+.3f})"
            f" end {track[-1].end_balance:,.0f}, {cuts} guardrail years"
        )
    if result.events:
        print("Events (p20 path): " + ", ".join(f"{e.age}:{e.kind}" for e in result.events))


def main():
    r, args = parse_args("Monte Carlo wealth projection", _add_args)
    try:
        inputs = build_inputs(r)
        print(f"Monte Carlo simulation (N={args.runs:,}, workers={args.workers})...", file=sys.stderr)
        result = simulate(
            inputs, n_runs=args.runs, seed=args.seed, as_of=args.as_of,
            workers=args.workers, progress=_progress,
        )
        print(file=sys.stderr)
    except (ValueError, SimulationRunError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        raise SystemExit(1)

    _print_results(result, inputs.retirement_age)

    if args.chart is not None:
        from wealth_sim.charts import plot_percentile_fan

        path = plot_percentile_fan(result, args.chart, name=args.name)
        print(f"  → {path}", file=sys.stderr)


if __name__ == "__main__":
    main()
