import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# Hard ceiling on Monte Carlo paths; enforced here, at the boundary
MAX_MONTE_CARLO_PATHS = 2_000
MIN_MONTE_CARLO_PATHS = 100

SpendingRule = Literal["fixed", "%wealth", "guardrails"]
PhilanthropyMode = Literal["fixed", "%wealth"]
CalculationMode = Literal["forward", "reverse"]
TaxJurisdiction = Literal["custom", "germany", "us", "germany-us"]
DividendSource = Literal["germany", "us", "other"]
TaxResidence = Literal["us", "uk", "germany", "france"]


class _Record(BaseModel):
    # camelCase on the wire (persisted scenario format), snake_case in Python; NaN/Infinity rejected
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)


def _check_fraction(v, info):
    if v < 0 or v > 1:
        raise ValueError(f"{info.field_name} must be between 0 and 1")
    return v


def _check_non_negative(v, info):
    if v < 0:
        raise ValueError(f"{info.field_name} must be >= 0")
    return v


class Guardrails(_Record):
    target_pct_wealth: float = 0.04
    min_change: float = -0.10
    max_change: float = 0.10

    @field_validator("target_pct_wealth")
    @classmethod
    def target_range(cls, v, info):
        return _check_fraction(v, info)

    @field_validator("min_change", "max_change")
    @classmethod
    def change_range(cls, v, info):
        # min_change > max_change is tolerated; the spending rule reorders the bounds
        if v < -1 or v > 1:
            raise ValueError(f"{info.field_name} must be between -1 and 1")
        return v


class AssetWeights(_Record):
    """Non-negative public/private/cash triple (allocation weights, volatilities)."""

    public: float
    private: float
    cash: float

    @field_validator("public", "private", "cash")
    @classmethod
    def non_negative(cls, v, info):
        return _check_non_negative(v, info)


class AssetReturns(_Record):
    public: float
    private: float
    cash: float


class HoldingCompanyStructure(_Record):
    # Source tags drive U.S. withholding on dividends
    public_dividend_source: DividendSource = "other"
    private_dividend_source: DividendSource = "other"

    us_ownership_pct: float = 0.10
    german_ownership_pct: float = 0.10

    # Vermögensverwaltende Gesellschaft: pure asset management, no trade tax
    is_vermoegensverwaltend: bool = True
    german_trade_tax_rate: float = 0.14

    us_corporate_tax_rate: float = 0.21

    @field_validator("us_ownership_pct", "german_ownership_pct")
    @classmethod
    def ownership_range(cls, v, info):
        return _check_fraction(v, info)

    @field_validator("german_trade_tax_rate")
    @classmethod
    def trade_tax_range(cls, v):
        if v < 0 or v > 0.2:
            raise ValueError("german_trade_tax_rate must be between 0 and 0.2")
        return v

    @field_validator("us_corporate_tax_rate")
    @classmethod
    def us_rate_range(cls, v):
        if v < 0 or v > 0.5:
            raise ValueError("us_corporate_tax_rate must be between 0 and 0.5")
        return v


class PrivateCommitments(_Record):
    enabled: bool = False
    total_commitment: float = 2_000_000.0
    call_years: int = 4
    dist_lag_years: int = 3
    dist_years: int = 5
    dist_multiple: float = 1.8

    @field_validator("total_commitment", "dist_multiple", "dist_lag_years")
    @classmethod
    def non_negative(cls, v, info):
        return _check_non_negative(v, info)

    @field_validator("call_years", "dist_years")
    @classmethod
    def at_least_one_year(cls, v, info):
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v


class CashEvent(_Record):
    id: Optional[str] = None
    year: int
    amount: float
    label: Optional[str] = None

    @field_validator("year")
    @classmethod
    def year_non_negative(cls, v):
        if v < 0:
            raise ValueError("year must be >= 0")
        return v


class TaxResidenceWeights(_Record):
    us: float = 0.5
    uk: float = 0.0
    germany: float = 0.5
    france: float = 0.0

    @field_validator("us", "uk", "germany", "france")
    @classmethod
    def weight_range(cls, v, info):
        return _check_fraction(v, info)


def make_event_id(taken: set) -> str:
    """Return a short random id that is not in ``taken``."""
    while True:
        candidate = uuid.uuid4().hex[:8]
        if candidate not in taken:
            return candidate


class ScenarioParams(_Record):
    """One simulation scenario. Treated as immutable: use model_copy(update=...)."""

    currency: str = "EUR"
    calculation_mode: CalculationMode = "forward"

    # Wealth
    start_wealth: float = 10_000_000.0
    liquid_share: float = 0.6

    # Horizon
    current_age: int = 45
    death_age: int = Field(default=95, validate_default=True)

    # Spending
    spending_rule: SpendingRule = "fixed"
    annual_expense_now: float = 300_000.0
    expense_inflation: float = 0.02
    spend_pct_wealth: float = 0.035
    guardrails: Guardrails = Field(default_factory=Guardrails)

    # Philanthropy
    philanthropy_mode: PhilanthropyMode = "fixed"
    philanthropy_fixed_now: float = 50_000.0
    philanthropy_percent: float = 0.01

    # Reverse calculation inputs
    desired_terminal_wealth: float = 0.0
    lifetime_spending_total: float = 0.0

    real_mode: bool = False

    # Tax residences (drive derive_tax_setup)
    tax_residences: List[TaxResidence] = Field(default_factory=lambda: ["germany", "us"])
    tax_residence_weights: TaxResidenceWeights = Field(default_factory=TaxResidenceWeights)
    double_tax_relief: float = 0.5

    tax_jurisdiction: TaxJurisdiction = "custom"
    # Flat rates, only used by the custom jurisdiction
    tax_interest: float = 0.25
    tax_dividends: float = 0.25
    tax_realized_gains: float = 0.25
    holding_company_structure: HoldingCompanyStructure = Field(default_factory=HoldingCompanyStructure)

    # Market assumptions
    asset_alloc: AssetWeights = Field(default_factory=lambda: AssetWeights(public=0.6, private=0.3, cash=0.1))
    asset_return: AssetReturns = Field(default_factory=lambda: AssetReturns(public=0.06, private=0.09, cash=0.02))
    asset_vol: AssetWeights = Field(default_factory=lambda: AssetWeights(public=0.16, private=0.22, cash=0.01))
    public_div_yield: float = 0.02
    public_realization_rate: float = 0.30
    private_realization_rate: float = 0.20

    priv_commit: PrivateCommitments = Field(default_factory=PrivateCommitments)

    one_offs: List[CashEvent] = Field(default_factory=list)

    # Monte Carlo controls
    run_monte_carlo: bool = False
    num_paths: int = 500
    random_seed: Optional[int] = None

    @field_validator("currency")
    @classmethod
    def currency_length(cls, v):
        if len(v) < 1 or len(v) > 3:
            raise ValueError("currency must be 1 to 3 characters")
        return v

    @field_validator("current_age")
    @classmethod
    def current_age_range(cls, v):
        if v < 0 or v > 120:
            raise ValueError("current_age must be between 0 and 120")
        return v

    @field_validator("death_age")
    @classmethod
    def death_age_range(cls, v, info):
        if v < 1 or v > 130:
            raise ValueError("death_age must be between 1 and 130")
        current_age = info.data.get("current_age")
        if current_age is not None and v <= current_age:
            raise ValueError(f"death_age ({v}) must be greater than current_age ({current_age})")
        return v

    @field_validator("liquid_share")
    @classmethod
    def liquid_share_range(cls, v):
        if v < 0 or v > 1.5:
            raise ValueError("liquid_share must be between 0 and 1.5")
        return v

    @field_validator(
        "start_wealth",
        "annual_expense_now",
        "philanthropy_fixed_now",
        "desired_terminal_wealth",
        "lifetime_spending_total",
    )
    @classmethod
    def non_negative_amounts(cls, v, info):
        return _check_non_negative(v, info)

    @field_validator(
        "expense_inflation",
        "spend_pct_wealth",
        "philanthropy_percent",
        "double_tax_relief",
        "tax_interest",
        "tax_dividends",
        "tax_realized_gains",
        "public_div_yield",
        "public_realization_rate",
        "private_realization_rate",
    )
    @classmethod
    def fractions(cls, v, info):
        return _check_fraction(v, info)

    @field_validator("tax_residences")
    @classmethod
    def at_least_one_residence(cls, v):
        if not v:
            raise ValueError("tax_residences must contain at least one country")
        return v

    @field_validator("num_paths")
    @classmethod
    def paths_range(cls, v):
        if v < MIN_MONTE_CARLO_PATHS or v > MAX_MONTE_CARLO_PATHS:
            raise ValueError(
                f"num_paths must be between {MIN_MONTE_CARLO_PATHS} and {MAX_MONTE_CARLO_PATHS}"
            )
        return v

    @field_validator("random_seed")
    @classmethod
    def seed_non_negative(cls, v):
        if v is None:
            return v
        if v < 0:
            raise ValueError("random_seed must be >= 0")
        return v

    @field_validator("one_offs")
    @classmethod
    def unique_event_ids(cls, v):
        explicit = [e.id for e in v if e.id]
        if len(explicit) != len(set(explicit)):
            raise ValueError("one_offs ids must be unique")
        taken = set(explicit)
        out = []
        for event in v:
            if not event.id:
                new_id = make_event_id(taken)
                taken.add(new_id)
                event = event.model_copy(update={"id": new_id})
            out.append(event)
        return out

    @property
    def years(self) -> int:
        """Number of simulated years after the starting year."""
        return max(1, self.death_age - self.current_age)


class TaxSetupRequest(_Record):
    residences: List[TaxResidence]
    weights: Optional[TaxResidenceWeights] = None
    double_tax_relief: float = 0.5

    @field_validator("residences")
    @classmethod
    def at_least_one(cls, v):
        if not v:
            raise ValueError("residences must contain at least one country")
        return v

    @field_validator("double_tax_relief")
    @classmethod
    def relief_range(cls, v):
        if v < 0 or v > 1:
            raise ValueError("double_tax_relief must be between 0 and 1")
        return v
