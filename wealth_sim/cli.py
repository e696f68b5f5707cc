"""CLI entry point for the deterministic (volatility-free) projection."""

import sys
from datetime import date

from wealth_sim.config import build_inputs, parse_args
from wealth_sim.params import SimulationInputs
from wealth_sim.simulation import PathResult, simulate_deterministic


def add_as_of_arg(parser):
    parser.add_argument(
        "--as-of", type=date.fromisoformat, default=None,
        help="date the current age is computed on, YYYY-MM-DD (default: today)",
    )


def _print_header(inputs: SimulationInputs, result: PathResult):
    first, last = result.rows[0].age, result.rows[-1].age
    print("=" * 110)
    print(f"Deterministic projection (age {first}-{last}, {len(result.rows)} years, volatility off)")
    print(
        f"  Portfolio: {inputs.portfolio.balance:,.0f} + {inputs.portfolio.monthly_contribution:,.0f}/mo"
        f" / Super: {inputs.super_fund.balance:,.0f} + {inputs.super_fund.monthly_contribution:,.0f}/mo"
    )
    print(
        f"  Retire at {inputs.retirement_age}, spend {inputs.living_expenses:,.0f}/mo"
        f" (floor {inputs.floor_withdrawal:,.0f}/mo), inflation {inputs.inflation_pct:g}%"
    )
    print("=" * 110)


def _print_table(result: PathResult):
    print(
        f"{'age':>4}{'begin':>14}{'irregular':>12}{'contrib':>12}{'spend':>12}"
        f"{'policy':>8}{'shock':>12}{'rP':>8}{'rS':>8}{'end':>16}"
    )
    print("-" * 110)
    for r in result.rows:
        print(
            f"{r.age:>4}"
            f"{r.begin_balance:>14,.0f}"
            f"{r.irregular:>12,.0f}"
            f"{r.contributions:>12,.0f}"
            f"{r.actual_spend:>12,.0f}"
            f"{r.policy.value:>8}"
            f"{r.shock_amount:>12,.0f}"
            f"{r.r_portfolio:>8.2%}"
            f"{r.r_super:>8.2%}"
            f"{r.end_balance:>16,.0f}"
        )
    print("-" * 110)
    if result.events:
        print("Policy events: " + ", ".join(f"{e.age}:{e.kind}" for e in result.events))
    else:
        print("Policy events: none")


def main():
    r, args = parse_args("Deterministic wealth projection", add_as_of_arg)
    try:
        inputs = build_inputs(r)
        result = simulate_deterministic(inputs, as_of=args.as_of)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    _print_header(inputs, result)
    _print_table(result)


if __name__ == "__main__":
    main()
