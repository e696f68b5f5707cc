"""Household Wealth Projection Simulation Package."""

from wealth_sim.params import (
    SimulationInputs,
    BucketInputs,
    EngineSettings,
    PathParams,
    resolve_path_params,
    parse_birthdate,
    current_age,
)
from wealth_sim.events import CashEvent, BlackSwanConfig
from wealth_sim.policy import Policy, GuardrailConfig, evaluate_guardrail
from wealth_sim.rng import Mulberry32, standard_normal
from wealth_sim.returns import ROI_CLAMPS, annual_return, clamp_return
from wealth_sim.simulation import (
    PolicyEvent,
    YearRecord,
    PathResult,
    simulate_path,
    simulate_deterministic,
)
from wealth_sim.monte_carlo import (
    MonteCarloConfig,
    SimulationResult,
    SimulationRunError,
    SimulationCancelled,
    run_monte_carlo,
    simulate,
)
from wealth_sim.selection import AdviceRow, SelectedPath, select_representative

__all__ = [
    "SimulationInputs",
    "BucketInputs",
    "EngineSettings",
    "PathParams",
    "resolve_path_params",
    "parse_birthdate",
    "current_age",
    "CashEvent",
    "BlackSwanConfig",
    "Policy",
    "GuardrailConfig",
    "evaluate_guardrail",
    "Mulberry32",
    "standard_normal",
    "ROI_CLAMPS",
    "annual_return",
    "clamp_return",
    "PolicyEvent",
    "YearRecord",
    "PathResult",
    "simulate_path",
    "simulate_deterministic",
    "MonteCarloConfig",
    "SimulationResult",
    "SimulationRunError",
    "SimulationCancelled",
    "run_monte_carlo",
    "simulate",
    "AdviceRow",
    "SelectedPath",
    "select_representative",
]
