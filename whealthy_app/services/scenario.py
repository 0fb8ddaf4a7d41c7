from dataclasses import asdict
from typing import Optional

from whealthy_app.results import DeterministicResult, MonteCarloResult, ReverseCalculationResult
from whealthy_app.schemas import ScenarioParams
from whealthy_app.services.cashflows import normalize_allocation, weighted_average
from whealthy_app.services.deterministic import simulate_deterministic
from whealthy_app.services.monte_carlo import run_monte_carlo
from whealthy_app.services.reverse import calculate_reverse


def _deterministic_dict(result: DeterministicResult) -> dict:
    return {
        "rows": [asdict(row) for row in result.rows],
        "broke_year": result.broke_year,
    }


def _reverse_dict(result: ReverseCalculationResult) -> dict:
    out = asdict(result)
    out.pop("rows")
    return out


def summarize(
    params: ScenarioParams,
    deterministic: DeterministicResult,
    monte_carlo: Optional[MonteCarloResult] = None,
) -> dict:
    """Key statistics shown next to a run."""
    allocation = normalize_allocation(params.asset_alloc)
    last = deterministic.rows[-1] if deterministic.rows else None
    broke = deterministic.broke_year
    return {
        "currency": params.currency,
        "calculation_mode": params.calculation_mode,
        "horizon_years": params.years,
        "broke_year": broke,
        "ruin_age": params.current_age + broke if broke != -1 else None,
        "terminal_wealth": max(0.0, deterministic.terminal_wealth),
        "liquidity_years": last.liquidity_years if last is not None else None,
        "weighted_return": weighted_average(allocation, params.asset_return),
        "return_basis": "real" if params.real_mode else "nominal",
        "num_paths": params.num_paths if monte_carlo is not None else None,
        "ruin_probability": monte_carlo.ruin_probability if monte_carlo is not None else None,
    }


def run_scenario(params: ScenarioParams) -> dict:
    """Run a scenario the way its calculation mode asks for.

    Reverse mode solves for the starting wealth and reuses the winning rows as
    the deterministic result; Monte Carlo only runs in forward mode.
    """
    params = params.model_copy(update={"asset_alloc": normalize_allocation(params.asset_alloc)})

    reverse = None
    monte_carlo = None
    if params.calculation_mode == "reverse":
        reverse = calculate_reverse(params)
        broke_year = next((i for i, row in enumerate(reverse.rows) if row.wealth <= 0), -1)
        deterministic = DeterministicResult(rows=reverse.rows, broke_year=broke_year)
    else:
        deterministic = simulate_deterministic(params)
        if params.run_monte_carlo:
            monte_carlo = run_monte_carlo(params)

    return {
        "deterministic": _deterministic_dict(deterministic),
        "monte_carlo": asdict(monte_carlo) if monte_carlo is not None else None,
        "reverse": _reverse_dict(reverse) if reverse is not None else None,
        "summary": summarize(params, deterministic, monte_carlo),
    }
