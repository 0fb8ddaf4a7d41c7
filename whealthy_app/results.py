"""Engine output records."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

PERCENTILES = (5, 25, 50, 75, 95)


@dataclass(frozen=True)
class SimulationRow:
    """One simulated year. Rows are emitted in year order and never mutated."""

    year: int
    age: int
    wealth: float
    liquid_wealth: float
    expense: float
    philanthropy: float
    inflows: float
    outflows: float
    taxes: float
    net_return: float
    liquidity_years: float
    # Return breakdown
    dividend_income: float
    interest_income: float
    public_realized_gains: float
    public_unrealized_gains: float
    private_realized_gains: float
    private_unrealized_gains: float
    gross_return_pct: float
    net_return_pct: float


@dataclass(frozen=True)
class DeterministicResult:
    rows: Tuple[SimulationRow, ...]
    # Index of the first row with wealth <= 0, -1 if the horizon was completed
    broke_year: int

    @property
    def terminal_wealth(self) -> float:
        return self.rows[-1].wealth if self.rows else 0.0


@dataclass
class MonteCarloResult:
    paths: List[List[float]]
    # "5" / "25" / "50" / "75" / "95" -> per-year wealth, floored at 0
    bands: Dict[str, List[float]] = field(default_factory=dict)
    ruin_probability: float = 0.0
    seed: Optional[int] = None


@dataclass
class ReverseCalculationResult:
    required_starting_wealth: float
    calculated_terminal_wealth: float
    total_spending: float
    total_philanthropy: float
    total_taxes: float
    total_returns: float
    rows: Tuple[SimulationRow, ...]
    iterations: int = 0
    converged: bool = False
