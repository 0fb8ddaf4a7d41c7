from typing import NamedTuple

import numpy as np

from whealthy_app.schemas import PrivateCommitments


class PrivateSchedule(NamedTuple):
    calls: np.ndarray
    distributions: np.ndarray


def generate_private_schedule(commitments: PrivateCommitments, years: int) -> PrivateSchedule:
    """Linear capital-call and distribution pacing over ``years + 1`` simulated years.

    Calls are spread evenly over ``call_years``; distributions pay
    ``called capital x dist_multiple`` evenly over ``dist_years`` after a lag
    of ``dist_lag_years``. No recycling, no carry, no stochastic timing.
    """
    n = years + 1
    calls = np.zeros(n, dtype=float)
    distributions = np.zeros(n, dtype=float)

    if not commitments.enabled or commitments.total_commitment <= 0:
        return PrivateSchedule(calls, distributions)

    effective_call_years = min(commitments.call_years, n)
    call_per_year = commitments.total_commitment / max(effective_call_years, 1)
    calls[:effective_call_years] = call_per_year

    # MOIC applies to called capital, not committed capital
    total_called = call_per_year * effective_call_years
    total_return = total_called * commitments.dist_multiple

    lag = commitments.dist_lag_years
    dist_years = max(1, min(commitments.dist_years, n - lag))
    dist_per_year = total_return / dist_years
    end = min(lag + dist_years, n)
    if lag < end:
        distributions[lag:end] = dist_per_year

    return PrivateSchedule(calls, distributions)
