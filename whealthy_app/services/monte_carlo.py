import logging
import math
from typing import Dict, List, Optional

import numpy as np

from whealthy_app.results import PERCENTILES, MonteCarloResult
from whealthy_app.schemas import AssetReturns, AssetWeights, ScenarioParams
from whealthy_app.services.cashflows import normalize_allocation
from whealthy_app.services.deterministic import simulate_deterministic
from whealthy_app.services.private_commitments import PrivateSchedule, generate_private_schedule


logger = logging.getLogger(__name__)


def box_muller(rng: np.random.Generator) -> float:
    """Standard normal variate from two uniform draws on (0, 1)."""
    u = 0.0
    v = 0.0
    while u == 0.0:
        u = float(rng.random())
    while v == 0.0:
        v = float(rng.random())
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def perturb_returns(params: ScenarioParams, rng: np.random.Generator) -> AssetReturns:
    """Expected return + volatility x N(0, 1), independently per asset class."""
    mean = params.asset_return
    vol = params.asset_vol
    return AssetReturns(
        public=mean.public + vol.public * box_muller(rng),
        private=mean.private + vol.private * box_muller(rng),
        cash=mean.cash + vol.cash * box_muller(rng),
    )


def _pad_trajectory(wealth: List[float], length: int) -> List[float]:
    # Ruined paths stop early; hold the last value out to the horizon
    last = wealth[-1] if wealth else 0.0
    return wealth + [last] * (length - len(wealth))


def percentile_bands(paths: np.ndarray) -> Dict[str, List[float]]:
    """Per-year ``sorted[floor(q/100 * (n-1))]`` across paths, floored at 0."""
    n = paths.shape[0]
    ordered = np.sort(paths, axis=0)
    bands = {}
    for q in PERCENTILES:
        idx = int(math.floor((q / 100.0) * (n - 1)))
        bands[str(q)] = np.maximum(ordered[idx], 0.0).tolist()
    return bands


def ruin_probability(paths: np.ndarray) -> float:
    if paths.shape[0] == 0:
        return 0.0
    return float(np.mean(np.any(paths <= 0, axis=1)))


def simulate_path(
    params: ScenarioParams,
    rng: np.random.Generator,
    allocation: Optional[AssetWeights] = None,
    schedule: Optional[PrivateSchedule] = None,
) -> List[float]:
    """One return-perturbed wealth trajectory of length ``years + 1``."""
    path_params = params.model_copy(update={"asset_return": perturb_returns(params, rng)})
    result = simulate_deterministic(path_params, allocation=allocation, schedule=schedule)
    return _pad_trajectory([row.wealth for row in result.rows], params.years + 1)


def run_monte_carlo(params: ScenarioParams, seed: Optional[int] = None) -> MonteCarloResult:
    """Run ``params.num_paths`` independent paths and aggregate bands and ruin probability.

    Paths share no state; each draws from its own generator seeded off one
    master seed, so a fixed ``seed`` (or ``params.random_seed``) reproduces
    every path exactly.
    """
    n_paths = params.num_paths
    years = params.years
    allocation = normalize_allocation(params.asset_alloc)
    # Schedule does not depend on returns; compute once for all paths
    schedule = generate_private_schedule(params.priv_commit, years)

    if seed is None:
        seed = params.random_seed
    effective_seed = seed if seed is not None else int(np.random.default_rng().integers(0, 2**31))
    seed_rng = np.random.default_rng(effective_seed)
    path_seeds = seed_rng.integers(0, 2**31 - 1, size=n_paths, dtype=np.int64)

    logger.info("Starting Monte Carlo: %d paths over %d years, seed=%d", n_paths, years, effective_seed)

    all_wealth = np.zeros((n_paths, years + 1), dtype=float)
    for i in range(n_paths):
        rng = np.random.default_rng(int(path_seeds[i]))
        all_wealth[i] = simulate_path(params, rng, allocation=allocation, schedule=schedule)

    result = MonteCarloResult(
        paths=all_wealth.tolist(),
        bands=percentile_bands(all_wealth),
        ruin_probability=ruin_probability(all_wealth),
        seed=effective_seed,
    )
    logger.info("Monte Carlo complete: ruin probability %.2f%%", result.ruin_probability * 100)
    return result
