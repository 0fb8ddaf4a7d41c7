import logging

from whealthy_app.results import ReverseCalculationResult
from whealthy_app.schemas import ScenarioParams
from whealthy_app.services.cashflows import normalize_allocation
from whealthy_app.services.deterministic import simulate_deterministic
from whealthy_app.services.private_commitments import generate_private_schedule


logger = logging.getLogger(__name__)

TOLERANCE = 1_000.0
MAX_ITERATIONS = 50
DEFAULT_UPPER_BOUND = 1_000_000_000.0


def search_bounds(params: ScenarioParams):
    """Initial ``(low, high)`` for the starting-wealth search."""
    low = 0.0
    high = DEFAULT_UPPER_BOUND
    if params.lifetime_spending_total > 0:
        rough_estimate = params.lifetime_spending_total + params.desired_terminal_wealth
        high = max(high, rough_estimate * 2)
        low = max(0.0, rough_estimate * 0.5)
    return low, high


def calculate_reverse(params: ScenarioParams) -> ReverseCalculationResult:
    """Binary-search the starting wealth that ends at ``desired_terminal_wealth``.

    Best effort: terminal wealth is not monotonic near ruin, so after
    MAX_ITERATIONS the last midpoint is returned with ``converged=False``.
    """
    target = params.desired_terminal_wealth
    allocation = normalize_allocation(params.asset_alloc)
    schedule = generate_private_schedule(params.priv_commit, params.years)

    low, high = search_bounds(params)
    guess = (low + high) / 2
    result = None
    converged = False
    iterations = 0

    for iterations in range(1, MAX_ITERATIONS + 1):
        guess = (low + high) / 2
        result = simulate_deterministic(
            params.model_copy(update={"start_wealth": guess}),
            allocation=allocation,
            schedule=schedule,
        )
        diff = result.terminal_wealth - target
        logger.debug("Reverse iteration %d: start=%.2f terminal=%.2f", iterations, guess, result.terminal_wealth)

        if abs(diff) < TOLERANCE:
            converged = True
            break
        if diff > 0:
            high = guess
        else:
            low = guess

    if not converged:
        logger.warning(
            "Reverse solver stopped after %d iterations without reaching tolerance "
            "(target=%.2f, terminal=%.2f)",
            iterations, target, result.terminal_wealth,
        )
    else:
        logger.info("Reverse solver converged in %d iterations: start=%.2f", iterations, guess)

    rows = result.rows
    return ReverseCalculationResult(
        required_starting_wealth=guess,
        calculated_terminal_wealth=result.terminal_wealth,
        total_spending=sum(r.expense for r in rows),
        total_philanthropy=sum(r.philanthropy for r in rows),
        total_taxes=sum(r.taxes for r in rows),
        total_returns=sum(r.net_return for r in rows),
        rows=rows,
        iterations=iterations,
        converged=converged,
    )
