"""
Holding-company tax engine.

Simplified approximation of German and U.S. corporate treatment of a
holding company's investment income; not a certified tax product.

German corporate tax (2024):
- Körperschaftsteuer 15%, Solidaritätszuschlag 5.5% of it
- Gewerbesteuer (trade tax) by municipality, not levied on a
  vermögensverwaltende (pure asset-management) Gesellschaft
- 95% of dividends exempt at >= 10% ownership; trade tax on dividends
  limited to the taxable 5% at >= 15% ownership

U.S.: flat federal corporate rate (no state tax); dividend withholding
30% standard, 5% at >= 10% ownership, 0% at >= 80% ownership.
"""

from dataclasses import dataclass, replace
from typing import Callable, Dict

from whealthy_app.schemas import AssetWeights, ScenarioParams


GERMAN_CORPORATE_TAX_RATE = 0.15
GERMAN_SOLIDARITY_SURCHARGE = 0.055  # of corporate tax
GERMAN_DIVIDEND_EXEMPTION_RATE = 0.95
GERMAN_MIN_OWNERSHIP_FOR_EXEMPTION = 0.10
GERMAN_MIN_OWNERSHIP_FOR_TRADE_TAX_EXEMPTION = 0.15

US_DIVIDEND_WITHHOLDING_STANDARD = 0.30
US_DIVIDEND_WITHHOLDING_TREATY_10PCT = 0.05
US_DIVIDEND_WITHHOLDING_TREATY_80PCT = 0.00
US_MIN_OWNERSHIP_FOR_5PCT = 0.10
US_MIN_OWNERSHIP_FOR_0PCT = 0.80


@dataclass(frozen=True)
class IncomeBreakdown:
    """One year's taxable income, already in currency units."""

    dividend_income: float          # public dividends only
    interest_income: float          # cash bucket
    public_realized_gains: float
    private_realized_gains: float   # private distributions: always capital gains

    def liquid_only(self) -> "IncomeBreakdown":
        return replace(self, private_realized_gains=0.0)


def income_breakdown(
    base_for_return: float,
    allocation: AssetWeights,
    public_div_yield: float,
    public_realized: float,
    cash_return: float,
    private_realized: float,
) -> IncomeBreakdown:
    public_base = base_for_return * allocation.public
    cash_base = base_for_return * allocation.cash
    private_base = base_for_return * allocation.private
    return IncomeBreakdown(
        dividend_income=public_base * public_div_yield,
        interest_income=cash_base * cash_return,
        public_realized_gains=public_base * public_realized,
        private_realized_gains=private_base * private_realized,
    )


def german_corporate_tax_rate(trade_tax_rate: float, is_vermoegensverwaltend: bool = True) -> float:
    """15% + 5.5% Soli on it + trade tax (zero for pure asset managers)."""
    solidarity = GERMAN_CORPORATE_TAX_RATE * GERMAN_SOLIDARITY_SURCHARGE
    trade_tax = 0.0 if is_vermoegensverwaltend else trade_tax_rate
    return GERMAN_CORPORATE_TAX_RATE + solidarity + trade_tax


def us_dividend_withholding_rate(ownership_pct: float) -> float:
    if ownership_pct >= US_MIN_OWNERSHIP_FOR_0PCT:
        return US_DIVIDEND_WITHHOLDING_TREATY_80PCT
    if ownership_pct >= US_MIN_OWNERSHIP_FOR_5PCT:
        return US_DIVIDEND_WITHHOLDING_TREATY_10PCT
    return US_DIVIDEND_WITHHOLDING_STANDARD


def german_dividend_tax(
    dividend_amount: float,
    ownership_pct: float,
    trade_tax_rate: float,
    is_vermoegensverwaltend: bool = True,
) -> float:
    if ownership_pct < GERMAN_MIN_OWNERSHIP_FOR_EXEMPTION:
        return dividend_amount * german_corporate_tax_rate(trade_tax_rate, is_vermoegensverwaltend)

    taxable = dividend_amount * (1 - GERMAN_DIVIDEND_EXEMPTION_RATE)
    corporate_tax = taxable * GERMAN_CORPORATE_TAX_RATE
    solidarity = corporate_tax * GERMAN_SOLIDARITY_SURCHARGE

    trade_tax = 0.0
    if not is_vermoegensverwaltend:
        if ownership_pct >= GERMAN_MIN_OWNERSHIP_FOR_TRADE_TAX_EXEMPTION:
            trade_tax = taxable * trade_tax_rate
        else:
            trade_tax = dividend_amount * trade_tax_rate

    return corporate_tax + solidarity + trade_tax


# ── Jurisdiction strategies: (params, income) -> tax before flooring ──

def _custom_tax(params: ScenarioParams, income: IncomeBreakdown) -> float:
    return (
        income.dividend_income * params.tax_dividends
        + income.public_realized_gains * params.tax_realized_gains
        + income.interest_income * params.tax_interest
        + income.private_realized_gains * params.tax_realized_gains
    )


def _germany_tax(params: ScenarioParams, income: IncomeBreakdown) -> float:
    holding = params.holding_company_structure
    dividend_tax = german_dividend_tax(
        income.dividend_income,
        holding.german_ownership_pct,
        holding.german_trade_tax_rate,
        holding.is_vermoegensverwaltend,
    )
    # Interest and capital gains: no exemption
    rate = german_corporate_tax_rate(holding.german_trade_tax_rate, holding.is_vermoegensverwaltend)
    other_income = income.interest_income + income.public_realized_gains + income.private_realized_gains
    return dividend_tax + other_income * rate


def _germany_us_tax(params: ScenarioParams, income: IncomeBreakdown) -> float:
    holding = params.holding_company_structure
    tax = _germany_tax(params, income)
    # U.S. withholding on top of German tax, only for U.S.-source public dividends
    if holding.public_dividend_source == "us":
        tax += income.dividend_income * us_dividend_withholding_rate(holding.us_ownership_pct)
    return tax


def _us_tax(params: ScenarioParams, income: IncomeBreakdown) -> float:
    all_income = (
        income.dividend_income
        + income.interest_income
        + income.public_realized_gains
        + income.private_realized_gains
    )
    return all_income * params.holding_company_structure.us_corporate_tax_rate


JURISDICTIONS: Dict[str, Callable[[ScenarioParams, IncomeBreakdown], float]] = {
    "custom": _custom_tax,
    "germany": _germany_tax,
    "germany-us": _germany_us_tax,
    "us": _us_tax,
}


def compute_full_tax(params: ScenarioParams, income: IncomeBreakdown) -> float:
    """Tax on public, private and cash income. Never negative."""
    return max(0.0, JURISDICTIONS[params.tax_jurisdiction](params, income))


def compute_liquid_tax(params: ScenarioParams, income: IncomeBreakdown) -> float:
    """Tax on the liquid (public + cash) income only; feeds the liquid-wealth ledger."""
    return max(0.0, JURISDICTIONS[params.tax_jurisdiction](params, income.liquid_only()))
