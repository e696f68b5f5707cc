"""TOML config loader with CLI > config > default resolution."""

import argparse
import sys
import tomllib
from pathlib import Path
from typing import Callable

from wealth_sim.events import BUCKETS, BlackSwanConfig, CashEvent
from wealth_sim.params import BucketInputs, SimulationInputs
from wealth_sim.policy import GuardrailConfig

DEFAULT_CONFIG_PATH = Path("config.toml")

DEFAULTS = {
    "birthdate": "",
    "retirement_age": 60,
    "life_expectancy": 90,
    # Portfolio (taxable)
    "portfolio_balance": 0.0,
    "monthly_contribution": 0.0,
    "contribution_growth": 0.0,
    "portfolio_expected_return": 12.0,
    "portfolio_sd": 15.0,
    "portfolio_haircut_pct": 0.0,
    "portfolio_haircut_age": None,
    # Super (retirement account)
    "super_balance": 0.0,
    "monthly_super_contribution": 0.0,
    "super_growth": 0.0,
    "super_expected_return": 10.0,
    "super_sd": 12.0,
    "super_haircut_pct": 0.0,
    "super_haircut_age": None,
    "super_draw_age": 63,
    # Spending
    "inflation": 3.0,
    "living_expenses": 0.0,
    "floor_withdrawal": 0.0,
    # Guardrails
    "guardrail": True,
    "guardrail_soft_years": 30.0,
    "guardrail_hard_years": 20.0,
    "guardrail_cut_pct": 20.0,
    # Black swan
    "black_swan_age": None,
    "black_swan_drop_pct": 0.0,
    "black_swan_super_multiplier": 0.6,
    "shock_recovery_years": 3,
    "shock_recovery_drag_pct": 3.0,
    "shock_recovery_vol_multiplier": 1.0,
    "shock_extra_haircut_pct": 0.0,
    "shock_extra_haircut_years": 0,
    # Misc
    "cash_events": "",
    "correlation": 0.0,
    "remove_volatility": False,
    "contribute_after_retirement": False,
}

# TOML table → flat key prefix
_GUARDRAIL_KEYS = {
    "enabled": "guardrail",
    "soft_years": "guardrail_soft_years",
    "hard_years": "guardrail_hard_years",
    "cut_pct": "guardrail_cut_pct",
}
_BLACK_SWAN_KEYS = {
    "age": "black_swan_age",
    "drop_pct": "black_swan_drop_pct",
    "super_multiplier": "black_swan_super_multiplier",
    "recovery_years": "shock_recovery_years",
    "recovery_drag_pct": "shock_recovery_drag_pct",
    "recovery_vol_multiplier": "shock_recovery_vol_multiplier",
    "extra_haircut_pct": "shock_extra_haircut_pct",
    "extra_haircut_years": "shock_extra_haircut_years",
}


def _flatten_table(raw: dict, name: str, mapping: dict[str, str]) -> None:
    table = raw.pop(name)
    if not isinstance(table, dict):
        raw[mapping.get("enabled", name)] = table
        return
    for key, value in table.items():
        if key not in mapping:
            raise ValueError(f"Unknown key in [{name}]: {key}")
        raw[mapping[key]] = value


def normalize_config(raw: dict) -> dict:
    """Turn TOML tables into the flat, CLI-compatible record.

    Supports:
        [guardrail] enabled/soft_years/hard_years/cut_pct (or guardrail = false)
        [black_swan] age/drop_pct/super_multiplier/recovery_*/extra_haircut_*
        [[cash_events]] age/amount/bucket/description, or [[age, amount, bucket?], ...]
    """
    raw = dict(raw)
    if "guardrail" in raw:
        _flatten_table(raw, "guardrail", _GUARDRAIL_KEYS)
    if "black_swan" in raw:
        _flatten_table(raw, "black_swan", _BLACK_SWAN_KEYS)
    if "cash_events" in raw:
        v = raw["cash_events"]
        if isinstance(v, list):
            parts = []
            for item in v:
                if isinstance(item, dict):
                    fields = [item["age"], item["amount"], item.get("bucket", "portfolio")]
                    if item.get("description"):
                        fields.append(item["description"])
                else:
                    fields = list(item)
                parts.append(":".join(str(x) for x in fields))
            raw["cash_events"] = ",".join(parts)
    return raw


def load_config(path: Path | None = None) -> dict:
    """Load TOML config file. Returns empty dict if file doesn't exist."""
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        print(f"Failed to read config file: {path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    return normalize_config(raw)


def create_parser(description: str) -> argparse.ArgumentParser:
    """Create argparse parser with shared simulation flags."""
    d = DEFAULTS
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=Path, default=None, help="config file path (default: config.toml)")
    parser.add_argument("--birthdate", type=str, default=None, help="birthdate, YYYY-MM-DD or D/M/YYYY")
    parser.add_argument("--retirement-age", type=int, default=None, help=f"retirement age (default: {d['retirement_age']})")
    parser.add_argument("--life-expectancy", type=int, default=None, help=f"life expectancy age (default: {d['life_expectancy']})")

    parser.add_argument("--portfolio-balance", type=float, default=None, help="portfolio balance")
    parser.add_argument("--monthly-contribution", type=float, default=None, help="portfolio contribution per month")
    parser.add_argument("--contribution-growth", type=float, default=None, help="portfolio contribution growth %%/yr")
    parser.add_argument("--portfolio-expected-return", type=float, default=None, help=f"portfolio expected return %% (default: {d['portfolio_expected_return']})")
    parser.add_argument("--portfolio-sd", type=float, default=None, help=f"portfolio volatility %% (default: {d['portfolio_sd']})")
    parser.add_argument("--portfolio-haircut-pct", type=float, default=None, help="portfolio post-retirement return haircut %%")
    parser.add_argument("--portfolio-haircut-age", type=int, default=None, help="age the portfolio haircut starts (default: retirement age)")

    parser.add_argument("--super-balance", type=float, default=None, help="super balance")
    parser.add_argument("--monthly-super-contribution", type=float, default=None, help="super contribution per month")
    parser.add_argument("--super-growth", type=float, default=None, help="super contribution growth %%/yr")
    parser.add_argument("--super-expected-return", type=float, default=None, help=f"super expected return %% (default: {d['super_expected_return']})")
    parser.add_argument("--super-sd", type=float, default=None, help=f"super volatility %% (default: {d['super_sd']})")
    parser.add_argument("--super-haircut-pct", type=float, default=None, help="super post-retirement return haircut %%")
    parser.add_argument("--super-haircut-age", type=int, default=None, help="age the super haircut starts (default: retirement age)")
    parser.add_argument("--super-draw-age", type=int, default=None, help=f"age super becomes drawable (default: {d['super_draw_age']})")

    parser.add_argument("--inflation", type=float, default=None, help=f"inflation %%/yr (default: {d['inflation']})")
    parser.add_argument("--living-expenses", type=float, default=None, help="target spend per month")
    parser.add_argument("--floor-withdrawal", type=float, default=None, help="floor spend per month")

    parser.add_argument("--no-guardrail", dest="guardrail", action="store_false", default=None, help="always spend the target")
    parser.add_argument("--guardrail-soft-years", type=float, default=None, help=f"funded years below which spending is cut (default: {d['guardrail_soft_years']:g})")
    parser.add_argument("--guardrail-hard-years", type=float, default=None, help=f"funded years below which spending drops to the floor (default: {d['guardrail_hard_years']:g})")
    parser.add_argument("--guardrail-cut-pct", type=float, default=None, help=f"size of the soft cut %% (default: {d['guardrail_cut_pct']:g})")

    parser.add_argument("--black-swan-age", type=int, default=None, help="age of a one-off market shock")
    parser.add_argument("--black-swan-drop-pct", type=float, default=None, help="portfolio drop %% at the shock age")
    parser.add_argument("--black-swan-super-multiplier", type=float, default=None, help=f"super drop relative to portfolio drop (default: {d['black_swan_super_multiplier']})")
    parser.add_argument("--shock-recovery-years", type=int, default=None, help=f"years of return drag after the shock (default: {d['shock_recovery_years']})")
    parser.add_argument("--shock-recovery-drag-pct", type=float, default=None, help=f"return drag %% during recovery (default: {d['shock_recovery_drag_pct']})")
    parser.add_argument("--shock-recovery-vol-multiplier", type=float, default=None, help=f"volatility multiplier during recovery (default: {d['shock_recovery_vol_multiplier']})")
    parser.add_argument("--shock-extra-haircut-pct", type=float, default=None, help="extra haircut %% tapering to 0 after the shock")
    parser.add_argument("--shock-extra-haircut-years", type=int, default=None, help="years the extra haircut tapers over")

    parser.add_argument("--cash-events", type=str, default=None, help="one-off cash, age:amount[:bucket[:description]] comma separated (e.g. 54:150000:portfolio:inheritance)")
    parser.add_argument("--correlation", type=float, default=None, help="portfolio/super return correlation %% (-100..100)")
    parser.add_argument("--remove-volatility", action="store_true", default=None, help="zero every random shock")
    parser.add_argument("--contribute-after-retirement", action="store_true", default=None, help="keep contributing after retirement")
    return parser


def parse_cash_events(s: str) -> tuple[CashEvent, ...]:
    """Parse "age:amount[:bucket[:description]],..." → CashEvents sorted by age."""
    if not s or not str(s).strip():
        return ()
    events = []
    for item in str(s).split(","):
        item = item.strip()
        if not item:
            continue
        parts = item.split(":", 3)
        if len(parts) < 2:
            raise ValueError(f"Invalid cash event (expected age:amount): {item!r}")
        bucket = parts[2].strip() if len(parts) >= 3 and parts[2].strip() else "portfolio"
        if bucket not in BUCKETS:
            raise ValueError(f"Unknown bucket {bucket!r} in cash event {item!r} (expected one of {BUCKETS})")
        events.append(CashEvent(
            age=int(parts[0].strip()),
            amount=float(parts[1].strip()),
            bucket=bucket,
            description=parts[3].strip() if len(parts) == 4 else "",
        ))
    return tuple(sorted(events, key=lambda e: e.age))


def build_inputs(r: dict) -> SimulationInputs:
    """Build SimulationInputs from a resolved flat record."""
    black_swan = None
    if r["black_swan_age"] is not None and r["black_swan_drop_pct"] > 0:
        black_swan = BlackSwanConfig(
            age=int(r["black_swan_age"]),
            drop_pct=float(r["black_swan_drop_pct"]),
            super_multiplier=float(r["black_swan_super_multiplier"]),
            recovery_years=int(r["shock_recovery_years"]),
            recovery_drag_pct=float(r["shock_recovery_drag_pct"]),
            recovery_vol_multiplier=float(r["shock_recovery_vol_multiplier"]),
            extra_haircut_pct=float(r["shock_extra_haircut_pct"]),
            extra_haircut_years=int(r["shock_extra_haircut_years"]),
        )
    return SimulationInputs(
        birthdate=str(r["birthdate"]),
        retirement_age=int(r["retirement_age"]),
        life_expectancy=int(r["life_expectancy"]),
        portfolio=BucketInputs(
            balance=float(r["portfolio_balance"]),
            monthly_contribution=float(r["monthly_contribution"]),
            contribution_growth_pct=float(r["contribution_growth"]),
            expected_return_pct=float(r["portfolio_expected_return"]),
            volatility_pct=float(r["portfolio_sd"]),
            haircut_pct=float(r["portfolio_haircut_pct"]),
            haircut_age=r["portfolio_haircut_age"],
        ),
        super_fund=BucketInputs(
            balance=float(r["super_balance"]),
            monthly_contribution=float(r["monthly_super_contribution"]),
            contribution_growth_pct=float(r["super_growth"]),
            expected_return_pct=float(r["super_expected_return"]),
            volatility_pct=float(r["super_sd"]),
            haircut_pct=float(r["super_haircut_pct"]),
            haircut_age=r["super_haircut_age"],
        ),
        inflation_pct=float(r["inflation"]),
        living_expenses=float(r["living_expenses"]),
        floor_withdrawal=float(r["floor_withdrawal"]),
        guardrail=GuardrailConfig(
            enabled=bool(r["guardrail"]),
            soft_years=float(r["guardrail_soft_years"]),
            hard_years=float(r["guardrail_hard_years"]),
            cut_pct=float(r["guardrail_cut_pct"]),
        ),
        black_swan=black_swan,
        cash_events=parse_cash_events(r["cash_events"]),
        correlation_pct=float(r["correlation"]),
        super_draw_age=int(r["super_draw_age"]),
        remove_volatility=bool(r["remove_volatility"]),
        contribute_after_retirement=bool(r["contribute_after_retirement"]),
    )


def resolve(args: argparse.Namespace, config: dict) -> dict:
    """Resolve values with priority: CLI flag > config.toml > hardcoded default."""
    resolved = {}
    for key, default in DEFAULTS.items():
        cli_val = getattr(args, key, None)
        resolved[key] = cli_val if cli_val is not None else config.get(key, default)
    return resolved


def parse_args(
    description: str,
    add_args_fn: Callable[[argparse.ArgumentParser], None] | None = None,
) -> tuple[dict, argparse.Namespace]:
    """Parse CLI args, load config, resolve values.

    Returns (resolved_dict, namespace). namespace carries any extra CLI args
    added via add_args_fn.
    """
    parser = create_parser(description)
    if add_args_fn:
        add_args_fn(parser)
    args = parser.parse_args()
    config = load_config(args.config)
    return resolve(args, config), args
