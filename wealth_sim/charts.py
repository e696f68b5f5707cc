"""Chart generation for Monte Carlo results."""

from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from wealth_sim.monte_carlo import SimulationResult

# Percentile track color mapping
TRACK_COLORS = {
    "p20": "#d62728",  # red
    "p50": "#1f77b4",  # blue
    "p80": "#2ca02c",  # green
}

EVENT_COLORS = {
    "shock": "#7f7f7f",
    "cut": "#ff7f0e",
    "floor": "#d62728",
}


def _format_money_axis(ax: plt.Axes):
    """Thousands separators on the left, millions on the right."""
    ax.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x:,.0f}")
    )
    ax_right = ax.secondary_yaxis("right")
    ax_right.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x / 1e6:.1f}M" if x != 0 else "0")
    )
    ax_right.set_ylabel("")


def plot_percentile_fan(
    result: SimulationResult,
    output_path: Path,
    name: str = "",
) -> Path:
    """Generate a fan chart (P20-P80 band) with the representative paths.

    Args:
        result: SimulationResult from simulate().
        output_path: directory to save the PNG.
        name: optional suffix for the output filename (e.g. "55" → "fan-55.png").

    Returns:
        Path to the generated PNG file.
    """
    if not result.graph:
        raise ValueError("SimulationResult has no percentile series")

    fig, ax = plt.subplots(figsize=(14, 8))

    ages = [p.age for p in result.graph]
    ax.fill_between(
        ages, [p.p20 for p in result.graph], [p.p80 for p in result.graph],
        alpha=0.2, color=TRACK_COLORS["p50"], label="P20–P80",
    )
    ax.plot(ages, [p.p50 for p in result.graph], color=TRACK_COLORS["p50"], linewidth=2, label="P50 (median)")

    for key, rows in result.advice_by_path.items():
        ax.plot(
            [row.age for row in rows], [row.end_balance for row in rows],
            color=TRACK_COLORS.get(key, "#7f7f7f"), linewidth=1.2, linestyle="--",
            label=f"{key} representative path",
        )

    # Policy event markers (p20 path)
    drawn: set[tuple[int, str]] = set()
    for evt in result.events:
        if (evt.age, evt.kind) in drawn:
            continue
        drawn.add((evt.age, evt.kind))
        ax.axvline(evt.age, color=EVENT_COLORS.get(evt.kind, "#888888"), linewidth=0.7, linestyle=":", alpha=0.5)

    ax.set_xlabel("Age")
    ax.set_ylabel("Combined wealth")
    ax.set_title(f"Wealth projection fan chart (N={result.n_runs:,})")
    ax.legend(loc="upper left", fontsize=9)
    ax.grid(True, alpha=0.3)
    _format_money_axis(ax)

    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    filepath = output_path / f"fan{suffix}.png"
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath
