"""Annual return model and scenario-aware sanity clamps."""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class ClampBand:
    """Closed interval a single-year return is restricted to."""

    min: float
    max: float


# Bands derived from long-run history: tighter for the unlucky advice track,
# wider for the lucky one. "global" applies to Monte Carlo runs.
ROI_CLAMPS: dict[str, ClampBand] = {
    "global": ClampBand(-0.35, 0.35),
    "p20": ClampBand(-0.12, 0.18),
    "p50": ClampBand(-0.10, 0.25),
    "p80": ClampBand(-0.05, 0.35),
}


def annual_return(mu: float, sigma: float, z: float) -> float:
    """Convert arithmetic mean/volatility and a N(0,1) shock to a return.

    Log-normal mapping: m = ln(1+mu) - sigma^2/2, r = exp(m + sigma*z) - 1.
    """
    m = math.log(1 + mu) - 0.5 * sigma * sigma
    return math.exp(m + sigma * z) - 1


def clamp_return(raw: float, band: str | None = None) -> float:
    """Clamp a raw return to the named band (global when band is None)."""
    b = ROI_CLAMPS[band] if band else ROI_CLAMPS["global"]
    return max(b.min, min(b.max, raw))
