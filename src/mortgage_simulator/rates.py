# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from mortgage_simulator.models import Lender, MortgageRate, RatePeriod, RateType
from mortgage_simulator.payments import remaining_balance

__version__ = "0.1.0"

# Length of the variable "buffer" inserted between repeated fixed cycles
BUFFER_MONTHS = 1


# =============================================================================
# Labels
# =============================================================================

def rate_label(
        lender_name: str,
        rate: MortgageRate,
        cycle: int | None = None,
        is_buffer: bool = False
) -> str:
    """
    Display label for a rate, e.g. "AIB 3-Year Fixed @ 3.45% (Cycle 2)".

    Variable buffers inside a repeating sequence read
    "AIB Variable @ 4.50% (Variable Buffer, Cycle 2)".
    """
    if rate.is_fixed and rate.fixed_term:
        base = f"{lender_name} {rate.fixed_term}-Year Fixed @ {rate.rate:.2f}%"
    else:
        base = f"{lender_name} Variable @ {rate.rate:.2f}%"
    if is_buffer:
        return f"{base} (Variable Buffer, Cycle {cycle or 1})"
    if cycle is not None:
        return f"{base} (Cycle {cycle})"
    return base


def variable_buffer_label(lender_name: str, rate: MortgageRate) -> str:
    """Label for a trailing until-end variable period."""
    return f"{rate_label(lender_name, rate)} (Variable Buffer)"


def lender_name_for(lenders: list[Lender], lender_id: str) -> str:
    """Lender display name, falling back to the id."""
    for lender in lenders:
        if lender.id == lender_id:
            return lender.name
    return lender_id


# =============================================================================
# Follow-On Matching and Eligibility
# =============================================================================

def is_valid_follow_on_rate(
        fixed_rate: MortgageRate,
        variable_rate: MortgageRate,
        exact_ltv: float | None = None
) -> bool:
    """
    Check whether `variable_rate` can follow `fixed_rate` when its term ends.

    The candidate must be a variable rate from the same lender with the same
    buy-to-let status. With `exact_ltv` (e.g. the LTV projected at the end of
    the fixed term) the candidate's inclusive bracket must contain it;
    without it the two LTV brackets must overlap.

    Args:
        fixed_rate: Fixed rate looking for a follow-on
        variable_rate: Candidate variable rate
        exact_ltv: Optional LTV (%) to point-match

    Returns:
        True if the candidate qualifies
    """
    if variable_rate.type is not RateType.VARIABLE or variable_rate.lender_id != fixed_rate.lender_id:
        return False
    if fixed_rate.is_btl != variable_rate.is_btl:
        return False
    if exact_ltv is not None:
        return variable_rate.min_ltv <= exact_ltv <= variable_rate.max_ltv
    if fixed_rate.max_ltv <= variable_rate.min_ltv or fixed_rate.min_ltv >= variable_rate.max_ltv:
        return False
    return True


def find_variable_rate(
        fixed_rate: MortgageRate,
        candidates: list[MortgageRate],
        ltv: float | None = None,
        ber: str | None = None
) -> MortgageRate | None:
    """
    Find the variable rate a fixed rate reverts to.

    Candidates are filtered with is_valid_follow_on_rate and, when a BER is
    given and the candidate restricts BER, by BER eligibility. Among matches
    the existing-customer rate (new_business is False) wins; otherwise the
    first match is returned.

    Returns:
        The follow-on rate, or None if nothing matches
    """
    matches = [
        r for r in candidates
        if is_valid_follow_on_rate(fixed_rate, r, ltv)
        and not (ber is not None and r.ber_eligible is not None and ber not in r.ber_eligible)
    ]
    if not matches:
        return None
    for r in matches:
        if r.new_business is False:
            return r
    return matches[0]


def can_rate_be_repeated(rate: MortgageRate | None) -> bool:
    """Only fixed rates open to existing customers can be chosen again on renewal."""
    if rate is None:
        return False
    return rate.is_fixed and rate.new_business is not True


def is_rate_eligible_for_balance(
        rate: MortgageRate,
        balance: float,
        property_value: float
) -> bool:
    """
    Check a rate's LTV bracket and minimum loan against a balance.

    Both bounds are inclusive: a balance at exactly min_ltv or max_ltv, or
    exactly min_loan, is eligible.

    Args:
        rate: Rate to check
        balance: Outstanding balance in cents
        property_value: Property value in cents

    Returns:
        True if the balance qualifies for the rate
    """
    if property_value <= 0:
        return False
    ltv = balance / property_value * 100
    if ltv < rate.min_ltv or ltv > rate.max_ltv:
        return False
    if rate.min_loan is not None and balance < rate.min_loan * 100:
        return False
    return True


# =============================================================================
# Repeating Fixed-Rate Cycles
# =============================================================================

@dataclass
class RepeatingPeriodsConfig:
    """Inputs for generate_repeating_rate_periods (amounts in cents)."""
    fixed_rate: MortgageRate
    fixed_lender_id: str
    fixed_rate_id: str
    all_rates: list[MortgageRate]
    mortgage_amount: float
    property_value: float
    mortgage_term_months: int
    period_start_month: int = 1
    fixed_is_custom: bool = False
    lenders: list[Lender] = field(default_factory=list)
    ber: str | None = None
    include_buffers: bool = False


@dataclass
class _CycleState:
    balance: float
    months_elapsed: int
    months_remaining: int
    cycle: int = 1


def _new_id() -> str:
    return str(uuid.uuid4())


def _follow_on_at(config: RepeatingPeriodsConfig, state: _CycleState) -> MortgageRate | None:
    ltv = state.balance / config.property_value * 100 if config.property_value > 0 else None
    return find_variable_rate(config.fixed_rate, config.all_rates, ltv, config.ber)


def _until_end_period(config: RepeatingPeriodsConfig, state: _CycleState) -> RatePeriod | None:
    variable = _follow_on_at(config, state)
    if variable is None:
        return None
    return RatePeriod(
        id=_new_id(),
        lender_id=variable.lender_id,
        rate_id=variable.id,
        is_custom=False,
        duration_months=0,
        label=variable_buffer_label(lender_name_for(config.lenders, variable.lender_id), variable),
    )


def generate_repeating_rate_periods(config: RepeatingPeriodsConfig) -> list[RatePeriod]:
    """
    Project successive renewals of the same fixed rate to the end of the term.

    Each iteration:
        1. Stop if the rate is no longer eligible for the projected balance
           (adding an until-end variable period when include_buffers is set).
        2. Stop if a whole fixed term no longer fits (same fallback).
        3. Emit the fixed period labelled with its cycle number and amortize
           the projected balance through it.
        4. With include_buffers, emit a 1-month variable buffer at the
           follow-on rate and amortize through it; stop if no follow-on
           exists. A buffer that would leave less than a full cycle becomes
           the final until-end period.

    Args:
        config: RepeatingPeriodsConfig

    Returns:
        Generated periods in order; [] when the rate has no fixed term or no
        months remain
    """
    fixed_rate = config.fixed_rate
    if not fixed_rate.fixed_term:
        return []
    total_remaining = config.mortgage_term_months - config.period_start_month + 1
    if total_remaining <= 0:
        return []

    fixed_lender_name = lender_name_for(config.lenders, config.fixed_lender_id)
    fixed_months = fixed_rate.fixed_term * 12
    state = _CycleState(
        balance=config.mortgage_amount,
        months_elapsed=config.period_start_month - 1,
        months_remaining=total_remaining,
    )
    periods: list[RatePeriod] = []

    while state.months_remaining > 0:
        if (not is_rate_eligible_for_balance(fixed_rate, state.balance, config.property_value)
                or state.months_remaining < fixed_months):
            if config.include_buffers:
                final = _until_end_period(config, state)
                if final is not None:
                    periods.append(final)
            break

        periods.append(RatePeriod(
            id=_new_id(),
            lender_id=config.fixed_lender_id,
            rate_id=config.fixed_rate_id,
            is_custom=config.fixed_is_custom,
            duration_months=fixed_months,
            label=rate_label(fixed_lender_name, fixed_rate, cycle=state.cycle),
        ))
        state.balance = remaining_balance(
            state.balance, fixed_rate.rate,
            config.mortgage_term_months - state.months_elapsed, fixed_months,
        )
        state.months_elapsed += fixed_months
        state.months_remaining -= fixed_months
        if state.months_remaining <= 0:
            break

        if config.include_buffers:
            variable = _follow_on_at(config, state)
            if variable is None:
                break
            lender_name = lender_name_for(config.lenders, variable.lender_id)
            if state.months_remaining - BUFFER_MONTHS < fixed_months:
                periods.append(RatePeriod(
                    id=_new_id(),
                    lender_id=variable.lender_id,
                    rate_id=variable.id,
                    duration_months=0,
                    label=variable_buffer_label(lender_name, variable),
                ))
                break
            periods.append(RatePeriod(
                id=_new_id(),
                lender_id=variable.lender_id,
                rate_id=variable.id,
                duration_months=BUFFER_MONTHS,
                label=rate_label(lender_name, variable, cycle=state.cycle, is_buffer=True),
            ))
            state.balance = remaining_balance(
                state.balance, variable.rate,
                config.mortgage_term_months - state.months_elapsed, BUFFER_MONTHS,
            )
            state.months_elapsed += BUFFER_MONTHS
            state.months_remaining -= BUFFER_MONTHS

        state.cycle += 1

    return periods
