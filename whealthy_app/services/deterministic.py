import logging
from typing import List, NamedTuple, Optional, Tuple

from whealthy_app.results import DeterministicResult, SimulationRow
from whealthy_app.schemas import AssetWeights, ScenarioParams
from whealthy_app.services.cashflows import (
    clamp,
    compute_philanthropy,
    compute_spending,
    normalize_allocation,
    sum_one_offs,
)
from whealthy_app.services.private_commitments import PrivateSchedule, generate_private_schedule
from whealthy_app.services.tax import compute_full_tax, compute_liquid_tax, income_breakdown


logger = logging.getLogger(__name__)


class YearState(NamedTuple):
    wealth: float
    liquid_wealth: float
    last_year_spend: float


def initial_state(params: ScenarioParams) -> YearState:
    return YearState(
        wealth=params.start_wealth,
        liquid_wealth=params.start_wealth * clamp(params.liquid_share, 0.0, 1.0),
        last_year_spend=params.annual_expense_now,
    )


def step_year(
    params: ScenarioParams,
    allocation: AssetWeights,
    schedule: PrivateSchedule,
    state: YearState,
    year_index: int,
) -> Tuple[YearState, SimulationRow]:
    """Advance one year: ``(state, year) -> (next state, emitted row)``."""
    wealth = state.wealth
    age = params.current_age + year_index

    expense = compute_spending(params, wealth, year_index, state.last_year_spend)
    philanthropy = compute_philanthropy(params, wealth, year_index)
    one_off_in, one_off_out = sum_one_offs(params.one_offs, year_index)
    private_call = float(schedule.calls[year_index]) if year_index < len(schedule.calls) else 0.0
    private_dist = (
        float(schedule.distributions[year_index]) if year_index < len(schedule.distributions) else 0.0
    )

    total_outflows = expense + philanthropy + one_off_out + private_call
    total_inflows = one_off_in + private_dist

    # Mid-year timing: flows during the year earn about half a year's return
    base_for_return = max(0.0, wealth - 0.5 * total_outflows + 0.5 * total_inflows)

    public_return = params.asset_return.public
    private_return = params.asset_return.private
    cash_return = params.asset_return.cash
    div_yield = params.public_div_yield

    public_price_return = max(0.0, public_return - div_yield)
    public_realized = params.public_realization_rate * public_price_return
    private_realized = params.private_realization_rate * max(0.0, private_return)

    gross_return = (
        allocation.public * public_return
        + allocation.private * private_return
        + allocation.cash * cash_return
    )

    income = income_breakdown(
        base_for_return, allocation, div_yield, public_realized, cash_return, private_realized,
    )
    taxes = compute_full_tax(params, income)
    liquid_taxes = compute_liquid_tax(params, income)

    net_return = base_for_return * gross_return - taxes
    next_wealth = wealth + total_inflows + net_return - total_outflows

    public_base = base_for_return * allocation.public
    private_base = base_for_return * allocation.private

    # Liquid ledger: public + cash return only; private calls drain cash,
    # distributions land in cash, the private bucket's own return never does
    liquid_return = base_for_return * (allocation.public * public_return + allocation.cash * cash_return)
    liquid_after = (
        state.liquid_wealth
        + total_inflows
        - private_call
        - expense
        - philanthropy
        - one_off_out
        + liquid_return
        - liquid_taxes
    )
    liquid_wealth = max(0.0, liquid_after)
    liquidity_years = liquid_wealth / max(1.0, expense + philanthropy)

    row = SimulationRow(
        year=year_index,
        age=age,
        wealth=next_wealth,
        liquid_wealth=liquid_wealth,
        expense=expense,
        philanthropy=philanthropy,
        inflows=total_inflows,
        outflows=total_outflows,
        taxes=taxes,
        net_return=net_return,
        liquidity_years=liquidity_years,
        dividend_income=income.dividend_income,
        interest_income=income.interest_income,
        public_realized_gains=income.public_realized_gains,
        public_unrealized_gains=public_base * max(0.0, public_price_return - public_realized),
        private_realized_gains=income.private_realized_gains,
        private_unrealized_gains=private_base * max(0.0, private_return - private_realized),
        gross_return_pct=gross_return if base_for_return > 0 else 0.0,
        net_return_pct=net_return / base_for_return if base_for_return > 0 else 0.0,
    )
    next_state = YearState(wealth=next_wealth, liquid_wealth=liquid_wealth, last_year_spend=expense)
    return next_state, row


def simulate_deterministic(
    params: ScenarioParams,
    allocation: Optional[AssetWeights] = None,
    schedule: Optional[PrivateSchedule] = None,
) -> DeterministicResult:
    """Project wealth year by year from the start year through ``params.years``.

    Stops at the first year wealth is <= 0; that row is the last one emitted.
    ``allocation`` and ``schedule`` may be passed in precomputed by callers that
    run the same scenario many times.
    """
    years = params.years
    if allocation is None:
        allocation = normalize_allocation(params.asset_alloc)
    if schedule is None:
        schedule = generate_private_schedule(params.priv_commit, years)

    state = initial_state(params)
    rows: List[SimulationRow] = []
    broke_year = -1

    for year_index in range(years + 1):
        state, row = step_year(params, allocation, schedule, state, year_index)
        rows.append(row)
        if row.wealth <= 0:
            broke_year = year_index
            logger.debug("Wealth exhausted in year %d (age %d)", year_index, row.age)
            break

    return DeterministicResult(rows=tuple(rows), broke_year=broke_year)
