# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
from __future__ import annotations

import numpy as np

from mortgage_simulator.models import MortgageRate

__version__ = "0.1.0"


# =============================================================================
# Level-Payment Annuity Math
# =============================================================================
#
# All functions here are unit-agnostic: pass cents and get cents back, or
# euros and get euros. Rates are annual percentages (3.5 for 3.5%).
#
#   r   = annual_rate / 1200                 (monthly rate)
#   AF  = r / [1 - (1+r)^-n]                 (annuity factor, 1/n when r = 0)
#   PMT = P × AF
#   BAL(k) = P(1+r)^k - PMT × [(1+r)^k - 1] / r
# =============================================================================

def monthly_payment(
        principal: float,
        annual_rate: float,
        months: int
) -> float:
    """
    Level monthly payment that amortizes `principal` to zero over `months`.

    Formula:
        PMT = P × r × (1+r)^n / [(1+r)^n - 1],   r = annual_rate / 1200

    At a 0% rate the annuity degenerates to straight-line repayment, P / n.

    Args:
        principal: Amount borrowed
        annual_rate: Annual rate as percentage (e.g., 3.5 for 3.5%)
        months: Number of monthly payments

    Returns:
        Monthly payment; 0.0 when months or principal is not positive

    Example:
        >>> round(monthly_payment(300000, 3.5, 360), 2)
        1347.13
    """
    if months <= 0 or principal <= 0:
        return 0.0
    if annual_rate == 0:
        return principal / months
    r = annual_rate / 1200.0
    growth = (1.0 + r) ** months
    return principal * r * growth / (growth - 1.0)


def remaining_balance(
        principal: float,
        annual_rate: float,
        total_months: int,
        paid_months: int
) -> float:
    """
    Outstanding balance after `paid_months` level payments.

    Args:
        principal: Original amount
        annual_rate: Annual rate as percentage
        total_months: Amortization term the level payment was computed over
        paid_months: Payments already made

    Returns:
        Remaining balance; exactly 0 once paid_months >= total_months, and
        principal × (1 - k/n) at a 0% rate
    """
    if paid_months >= total_months:
        return 0.0
    if paid_months <= 0:
        return float(principal)
    if annual_rate == 0:
        return principal * (1.0 - paid_months / total_months)
    r = annual_rate / 1200.0
    payment = monthly_payment(principal, annual_rate, total_months)
    growth = (1.0 + r) ** paid_months
    return max(0.0, principal * growth - payment * (growth - 1.0) / r)


def monthly_follow_on(
        rate: MortgageRate,
        variable_rate: MortgageRate | None,
        principal: float,
        total_term_months: int
) -> float | None:
    """
    Payment due once a fixed rate reverts to its variable follow-on.

    Returns None when the rate is not fixed, has no fixed term, there is no
    variable rate, or nothing of the term is left after the fixed period.
    """
    if not rate.is_fixed or not rate.fixed_term or variable_rate is None:
        return None
    fixed_months = rate.fixed_term * 12
    remaining_months = total_term_months - fixed_months
    if remaining_months <= 0:
        return None
    balance = remaining_balance(principal, rate.rate, total_term_months, fixed_months)
    return monthly_payment(balance, variable_rate.rate, remaining_months)


def total_repayable(
        rate: MortgageRate,
        payment: float,
        follow_on_payment: float | None,
        total_months: int
) -> float:
    """Sum of all scheduled payments (fixed period, then follow-on period)."""
    if rate.is_fixed and rate.fixed_term and follow_on_payment is not None:
        fixed_months = rate.fixed_term * 12
        return payment * fixed_months + follow_on_payment * (total_months - fixed_months)
    return payment * total_months


def follow_on_ltv(
        principal: float,
        annual_rate: float,
        total_months: int,
        fixed_months: int,
        original_ltv: float
) -> float:
    """LTV (%) once the fixed period ends, assuming a constant property value."""
    if principal <= 0:
        return 0.0
    balance = remaining_balance(principal, annual_rate, total_months, fixed_months)
    return balance / principal * original_ltv


def cost_of_credit_percent(total: float | None, principal: float) -> float | None:
    """Interest paid as a percentage of principal; None when total is unknown."""
    if total is None:
        return None
    return (total - principal) / principal * 100


# =============================================================================
# Vectorized Schedule
# =============================================================================

def amortization_arrays(
        principal: float,
        annual_rate: float,
        months: int,
        horizon: int | None = None
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Scheduled amortization path for a level-payment loan, as numpy vectors.

    Vectors are indexed by age (index 0 = drawdown):

        balances[k]  = BAL(k), clipped at zero
        interest[k]  = BAL(k-1) × r          (0 at k = 0)
        principal[k] = BAL(k-1) - BAL(k)     (0 at k = 0)

    Args:
        principal: Amount borrowed
        annual_rate: Annual rate as percentage
        months: Amortization term
        horizon: Number of months to return (default: months)

    Returns:
        Tuple of (periods, balances, interest, principal), each of length horizon+1
    """
    if horizon is None:
        horizon = months
    horizon = max(0, horizon)
    periods = np.arange(horizon + 1, dtype=int)
    if months <= 0 or principal <= 0:
        zeros = np.zeros(horizon + 1)
        return periods, zeros, zeros.copy(), zeros.copy()

    payment = monthly_payment(principal, annual_rate, months)
    if annual_rate == 0:
        balances = principal - payment * periods
    else:
        r = annual_rate / 1200.0
        growth = np.power(1.0 + r, periods)
        balances = principal * growth - payment * (growth - 1.0) / r
    balances = np.clip(np.where(periods >= months, 0.0, balances), 0.0, None)

    interest = np.zeros(horizon + 1)
    interest[1:] = balances[:-1] * annual_rate / 1200.0
    principal_paid = np.zeros(horizon + 1)
    principal_paid[1:] = balances[:-1] - balances[1:]
    return periods, balances, interest, principal_paid
