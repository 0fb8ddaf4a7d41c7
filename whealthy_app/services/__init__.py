from whealthy_app.services.deterministic import simulate_deterministic
from whealthy_app.services.monte_carlo import run_monte_carlo
from whealthy_app.services.reverse import calculate_reverse
from whealthy_app.services.scenario import run_scenario

__all__ = ["simulate_deterministic", "run_monte_carlo", "calculate_reverse", "run_scenario"]
