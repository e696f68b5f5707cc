"""Tests for chart output."""

from datetime import date

import pytest

from wealth_sim.charts import plot_percentile_fan
from wealth_sim.monte_carlo import AtEnd, SimulationResult, simulate
from wealth_sim.params import BucketInputs, SimulationInputs


def test_fan_chart_written(tmp_path):
    inputs = SimulationInputs(
        birthdate="1971-01-01",
        life_expectancy=70,
        portfolio=BucketInputs(balance=500_000),
        living_expenses=3_000,
        floor_withdrawal=2_000,
    )
    result = simulate(inputs, n_runs=50, as_of=date(2026, 1, 1))
    path = plot_percentile_fan(result, tmp_path / "charts", name="55")
    assert path == tmp_path / "charts" / "fan-55.png"
    assert path.stat().st_size > 0


def test_empty_result_rejected(tmp_path):
    result = SimulationResult(graph=[], at_end=AtEnd(0.0, 0.0, 0.0, 0), events=[])
    with pytest.raises(ValueError, match="no percentile series"):
        plot_percentile_fan(result, tmp_path)
