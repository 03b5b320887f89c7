# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
from __future__ import annotations

import math
import warnings
import numpy as np
from scipy.optimize import brentq, newton

from mortgage_simulator.models import AprcConfig
from mortgage_simulator.payments import monthly_payment, remaining_balance

__version__ = "0.1.0"

NEWTON_TOLERANCE = 1e-12
NEWTON_MAX_ITERATIONS = 200

BISECTION_LOW = 0.01
BISECTION_HIGH = 15.0
BISECTION_TOLERANCE = 0.001
BISECTION_MAX_ITERATIONS = 100


# =============================================================================
# APRC (Annual Percentage Rate of Charge)
# =============================================================================
#
# The APRC is the effective annual rate equating the net amount advanced with
# the discounted repayments:
#
#   (L - valuation fee) = Σ CF_t / (1+m)^t,   t = 1..N
#   APRC = (1+m)^12 - 1
#
# Repayments are the fixed-rate payment for the fixed term, then the payment
# that amortizes the remaining balance at the follow-on rate. The security
# release fee is paid with the last instalment. Amounts are euros.
# =============================================================================

def aprc_cash_flows(
        fixed_rate: float,
        fixed_term_months: int,
        follow_on_rate: float,
        config: AprcConfig
) -> np.ndarray:
    """
    Cash-flow vector for the APRC equation, index 0 = drawdown (negative).

    Payments are rounded to cents. When the fixed term covers the whole
    loan the follow-on rate is not used.

    Args:
        fixed_rate: Fixed rate as percentage
        fixed_term_months: Months at the fixed rate
        follow_on_rate: Variable rate as percentage
        config: AprcConfig

    Returns:
        numpy array of length term_years × 12 + 1
    """
    total_months = config.term_years * 12
    variable_months = total_months - fixed_term_months
    fixed_payment = round(monthly_payment(config.loan_amount, fixed_rate, total_months), 2)

    flows = np.empty(total_months + 1)
    flows[0] = -(config.loan_amount - config.valuation_fee)
    if variable_months <= 0:
        flows[1:] = fixed_payment
    else:
        balance = remaining_balance(config.loan_amount, fixed_rate, total_months, fixed_term_months)
        variable_payment = round(monthly_payment(balance, follow_on_rate, variable_months), 2)
        flows[1:fixed_term_months + 1] = fixed_payment
        flows[fixed_term_months + 1:] = variable_payment
    flows[-1] += config.security_release_fee
    return flows


def round_half_up(value: float, decimals: int = 2) -> float:
    """Round with exact .5 ties going up (0.125 -> 0.13)."""
    scale = 10 ** decimals
    return math.floor(value * scale + 0.5) / scale


def calculate_aprc(
        fixed_rate: float,
        fixed_term_months: int,
        follow_on_rate: float,
        config: AprcConfig
) -> float:
    """
    APRC for a fixed rate reverting to a follow-on variable rate.

    Solves NPV(m) = 0 for the monthly rate m with scipy's Newton-Raphson,
    starting from the fixed rate's monthly rate:

        NPV(m)  = Σ CF_t (1+m)^-t
        NPV'(m) = -Σ t CF_t (1+m)^-(t+1)

    Args:
        fixed_rate: Fixed rate as percentage (e.g., 3.5)
        fixed_term_months: Months at the fixed rate
        follow_on_rate: Variable rate as percentage
        config: AprcConfig (euros)

    Returns:
        APRC as a percentage, rounded half up to 2 decimals

    Raises:
        Warning: If the iteration stops before converging (for example on a
            vanishing derivative); the last estimate is still used

    Example:
        >>> calculate_aprc(4.0, 240, 4.0, AprcConfig(250000, 20))
        4.07
    """
    flows = aprc_cash_flows(fixed_rate, fixed_term_months, follow_on_rate, config)
    t = np.arange(flows.size, dtype=float)

    def npv(m: float) -> float:
        return float(np.sum(flows * np.power(1.0 + m, -t)))

    def npv_prime(m: float) -> float:
        return float(-np.sum(t[1:] * flows[1:] * np.power(1.0 + m, -t[1:] - 1.0)))

    m, result = newton(
        npv,
        x0=fixed_rate / 100 / 12,
        fprime=npv_prime,
        tol=NEWTON_TOLERANCE,
        maxiter=NEWTON_MAX_ITERATIONS,
        full_output=True,
        disp=False,
    )
    if not result.converged:
        warnings.warn(
            f"APRC iteration stopped before converging ({result.flag}) at monthly rate {m:.6g}",
            UserWarning,
        )

    effective_annual = (1.0 + m) ** 12 - 1.0
    return round_half_up(effective_annual * 100)


def infer_follow_on_rate(
        fixed_rate: float,
        fixed_term_years: int,
        observed_aprc: float,
        config: AprcConfig
) -> float:
    """
    Recover the follow-on rate that reproduces a published APRC.

    Brent's method on [BISECTION_LOW, BISECTION_HIGH]; the APRC increases
    with the follow-on rate. An APRC outside the range the bracket can
    produce returns the nearer end of the bracket.

    Returns:
        Follow-on rate as a percentage, rounded half up to 2 decimals
    """
    fixed_term_months = fixed_term_years * 12

    def objective(follow_on_rate: float) -> float:
        return calculate_aprc(fixed_rate, fixed_term_months, follow_on_rate, config) - observed_aprc

    try:
        rate = brentq(
            objective,
            BISECTION_LOW, BISECTION_HIGH,
            xtol=BISECTION_TOLERANCE,
            maxiter=BISECTION_MAX_ITERATIONS,
            disp=False,
        )
    except ValueError:
        # brentq raises ValueError when both ends of the bracket share a sign
        rate = BISECTION_LOW if objective(BISECTION_LOW) > 0 else BISECTION_HIGH
    return round_half_up(rate)
