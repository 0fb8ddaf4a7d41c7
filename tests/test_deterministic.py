"""
Deterministic year-by-year projection.
Run with: python3 -m pytest tests/test_deterministic.py -v
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from whealthy_app.schemas import AssetWeights, ScenarioParams
from whealthy_app.services.cashflows import normalize_allocation
from whealthy_app.services.deterministic import initial_state, simulate_deterministic, step_year
from whealthy_app.services.private_commitments import generate_private_schedule


def make_base_params(**overrides) -> ScenarioParams:
    defaults = dict(
        start_wealth=10_000_000,
        current_age=45,
        death_age=95,
        annual_expense_now=300_000,
        philanthropy_fixed_now=50_000,
    )
    defaults.update(overrides)
    return ScenarioParams(**defaults)


def test_full_horizon_rows_and_ages():
    params = make_base_params()
    result = simulate_deterministic(params)
    assert result.broke_year == -1, "10M at 350k/yr should survive to 95"
    assert len(result.rows) == 51
    assert [r.year for r in result.rows] == list(range(51))
    assert result.rows[0].age == 45
    assert result.rows[-1].age == 95
    assert result.terminal_wealth == result.rows[-1].wealth


def test_minimum_horizon_is_one_year():
    result = simulate_deterministic(make_base_params(current_age=94, death_age=95))
    assert len(result.rows) == 2


def test_stops_at_first_ruined_year():
    result = simulate_deterministic(make_base_params(start_wealth=1_000_000))
    assert result.broke_year != -1, "1M at 350k/yr must run out"
    assert result.broke_year == len(result.rows) - 1
    assert result.rows[-1].wealth <= 0
    assert all(r.wealth > 0 for r in result.rows[:-1]), "Only the final row may be <= 0"
    assert len(result.rows) < 51


def test_no_spending_grows_wealth_every_year():
    params = make_base_params(annual_expense_now=0, philanthropy_fixed_now=0)
    wealth = [r.wealth for r in simulate_deterministic(params).rows]
    assert all(b > a for a, b in zip([params.start_wealth] + wealth, wealth)), (
        "Positive returns with no outflows must grow wealth monotonically"
    )


def test_taxes_reduce_net_return():
    row = simulate_deterministic(make_base_params()).rows[0]
    assert row.taxes > 0
    assert row.net_return_pct < row.gross_return_pct
    assert row.gross_return_pct == pytest.approx(0.6 * 0.06 + 0.3 * 0.09 + 0.1 * 0.02)


def test_zero_tax_rates_give_no_taxes():
    params = make_base_params(tax_interest=0, tax_dividends=0, tax_realized_gains=0)
    rows = simulate_deterministic(params).rows
    assert all(r.taxes == 0 for r in rows)
    assert rows[0].net_return_pct == pytest.approx(rows[0].gross_return_pct)


def test_year_zero_mid_year_base():
    params = make_base_params(tax_interest=0, tax_dividends=0, tax_realized_gains=0)
    row = simulate_deterministic(params).rows[0]
    base = 10_000_000 - 0.5 * 350_000
    assert row.net_return == pytest.approx(base * row.gross_return_pct)
    assert row.wealth == pytest.approx(10_000_000 + row.net_return - 350_000)


def test_return_breakdown_components():
    row = simulate_deterministic(make_base_params()).rows[0]
    base = 10_000_000 - 0.5 * 350_000
    assert row.dividend_income == pytest.approx(base * 0.6 * 0.02)
    assert row.interest_income == pytest.approx(base * 0.1 * 0.02)
    # public price return 4%, 30% realized
    assert row.public_realized_gains == pytest.approx(base * 0.6 * 0.04 * 0.30)
    assert row.public_unrealized_gains == pytest.approx(base * 0.6 * (0.04 - 0.012))
    assert row.private_realized_gains == pytest.approx(base * 0.3 * 0.09 * 0.20)
    assert row.private_unrealized_gains == pytest.approx(base * 0.3 * (0.09 - 0.018))


def test_liquidity_runway():
    rows = simulate_deterministic(make_base_params()).rows
    for r in rows:
        assert r.liquid_wealth >= 0
        assert r.liquidity_years == pytest.approx(r.liquid_wealth / max(1.0, r.expense + r.philanthropy))


def test_liquid_wealth_floored_at_zero():
    params = make_base_params(liquid_share=0.0, start_wealth=5_000_000)
    rows = simulate_deterministic(params).rows
    assert all(r.liquid_wealth >= 0 for r in rows)


def test_private_calls_drain_liquid_wealth():
    without = simulate_deterministic(make_base_params()).rows[0]
    with_calls = simulate_deterministic(
        make_base_params(priv_commit={"enabled": True, "total_commitment": 2_000_000, "call_years": 4})
    ).rows[0]
    assert with_calls.outflows == pytest.approx(without.outflows + 500_000)
    assert with_calls.liquid_wealth < without.liquid_wealth


def test_one_off_events_enter_flows():
    params = make_base_params(one_offs=[
        {"year": 2, "amount": 1_000_000, "label": "inheritance"},
        {"year": 3, "amount": -400_000, "label": "house"},
    ])
    rows = simulate_deterministic(params).rows
    assert rows[2].inflows == pytest.approx(1_000_000)
    assert rows[3].outflows == pytest.approx(rows[3].expense + rows[3].philanthropy + 400_000)
    assert rows[1].inflows == 0


def test_step_year_matches_first_row():
    params = make_base_params()
    allocation = normalize_allocation(params.asset_alloc)
    schedule = generate_private_schedule(params.priv_commit, params.years)
    state, row = step_year(params, allocation, schedule, initial_state(params), 0)
    first = simulate_deterministic(params).rows[0]
    assert row == first
    assert state.wealth == first.wealth
    assert state.last_year_spend == first.expense


def test_unnormalized_allocation_is_normalized():
    a = simulate_deterministic(make_base_params(asset_alloc=AssetWeights(public=6, private=3, cash=1)))
    b = simulate_deterministic(make_base_params())
    assert a.terminal_wealth == pytest.approx(b.terminal_wealth)
