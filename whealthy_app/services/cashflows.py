from typing import Iterable, Tuple

from whealthy_app.schemas import AssetReturns, AssetWeights, CashEvent, ScenarioParams


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def normalize_allocation(alloc: AssetWeights) -> AssetWeights:
    """Rescale weights to sum to 1. An all-zero allocation is returned unchanged."""
    total = alloc.public + alloc.private + alloc.cash
    if total == 0:
        return alloc
    return AssetWeights(
        public=alloc.public / total,
        private=alloc.private / total,
        cash=alloc.cash / total,
    )


def weighted_average(weights: AssetWeights, values: AssetReturns) -> float:
    return weights.public * values.public + weights.private * values.private + weights.cash * values.cash


def _inflation(params: ScenarioParams) -> float:
    # Real mode: amounts are already in today's money
    return 0.0 if params.real_mode else params.expense_inflation


def compute_spending(params: ScenarioParams, wealth: float, year_index: int, last_year_spend: float) -> float:
    """Annual spending under the scenario's spending rule.

    ``wealth`` is the start-of-year value; ``last_year_spend`` only matters for guardrails.
    """
    rule = params.spending_rule
    if rule == "%wealth":
        return params.spend_pct_wealth * wealth
    if rule == "guardrails":
        g = params.guardrails
        inflation = _inflation(params)
        target = g.target_pct_wealth * wealth
        min_spend = last_year_spend * (1 + inflation + g.min_change)
        max_spend = last_year_spend * (1 + inflation + g.max_change)
        return clamp(target, min(min_spend, max_spend), max(min_spend, max_spend))
    return params.annual_expense_now * (1 + _inflation(params)) ** year_index


def compute_philanthropy(params: ScenarioParams, wealth: float, year_index: int) -> float:
    if params.philanthropy_mode == "%wealth":
        return params.philanthropy_percent * wealth
    return params.philanthropy_fixed_now * (1 + _inflation(params)) ** year_index


def sum_one_offs(events: Iterable[CashEvent], year_index: int) -> Tuple[float, float]:
    """Return ``(inflows, outflows)`` for one year; outflows are reported as a positive amount."""
    inflows = 0.0
    outflows = 0.0
    for event in events:
        if event.year != year_index:
            continue
        if event.amount > 0:
            inflows += event.amount
        elif event.amount < 0:
            outflows += abs(event.amount)
    return inflows, outflows
