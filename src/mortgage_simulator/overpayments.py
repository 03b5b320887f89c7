# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
from __future__ import annotations

import math
from dataclasses import dataclass, field

from mortgage_simulator.dates import calendar_date_for_month, parse_start_date
from mortgage_simulator.models import (
    AllowanceBasis,
    AllowanceType,
    OverpaymentConfig,
    OverpaymentFrequency,
    OverpaymentPolicy,
    OverpaymentType,
    RateType,
    ResolvedRatePeriod,
    TransactionPeriod,
)
from mortgage_simulator.payments import monthly_payment

__version__ = "0.1.0"


# =============================================================================
# Policy Allowances
# =============================================================================
#
# Allowances apply only while the active rate is fixed. All amounts are in
# cents; flat allowance_value and min_amount are quoted in euros.
#
#   percentage/balance   v% of balance per year      (yearly, balance-dependent)
#   percentage/monthly   v% of the monthly payment   (per month, constant)
#   flat                 €v per year                 (yearly, constant)
# =============================================================================

def max_monthly_overpayment_for_year(
        policy: OverpaymentPolicy,
        balance: float,
        payment: float
) -> int:
    """
    Largest fee-free overpayment per month for one allowance year.

    Args:
        policy: Lender policy
        balance: Balance at the start of the allowance year (cents)
        payment: Scheduled monthly payment (cents)

    Returns:
        Whole cents per month, raised to min_amount when the policy has one
    """
    amount = 0
    if policy.allowance_type is AllowanceType.PERCENTAGE:
        if policy.allowance_basis is AllowanceBasis.BALANCE:
            amount = math.floor(balance * policy.allowance_value / 100 / 12)
        elif policy.allowance_basis is AllowanceBasis.MONTHLY:
            amount = math.floor(payment * policy.allowance_value / 100)
    elif policy.allowance_type is AllowanceType.FLAT:
        amount = math.floor(policy.allowance_value * 100 / 12)

    if policy.min_amount is not None and policy.min_amount > 0:
        amount = max(amount, math.floor(policy.min_amount * 100))
    return amount


def is_constant_allowance_policy(policy: OverpaymentPolicy) -> bool:
    """True when the allowance does not shrink with the balance."""
    if policy.allowance_type is AllowanceType.FLAT:
        return True
    return policy.allowance_basis is AllowanceBasis.MONTHLY


def calculate_allowance(
        policy: OverpaymentPolicy | None,
        balance: float,
        payment: float,
        already_paid_this_year: float,
        already_paid_this_month: float = 0.0
) -> float:
    """
    Fee-free allowance still available (cents).

    Yearly policies (balance basis, flat) return what is left of the year's
    allowance after `already_paid_this_year`; monthly-basis policies return
    what is left of the per-month allowance after `already_paid_this_month`.
    No policy means no free allowance.
    """
    if policy is None:
        return 0.0
    if policy.allowance_type is AllowanceType.PERCENTAGE:
        if policy.allowance_basis is AllowanceBasis.BALANCE:
            return max(0.0, balance * policy.allowance_value / 100 - already_paid_this_year)
        allowance = payment * policy.allowance_value / 100
        if policy.min_amount is not None and policy.min_amount > 0:
            allowance = max(allowance, policy.min_amount * 100)
        return max(0.0, allowance - already_paid_this_month)
    return max(0.0, policy.allowance_value * 100 - already_paid_this_year)


def describe_policy(policy: OverpaymentPolicy | None) -> str:
    if policy is None:
        return "No allowance"
    value = f"{policy.allowance_value:g}"
    if policy.allowance_type is AllowanceType.PERCENTAGE:
        if policy.allowance_basis is AllowanceBasis.BALANCE:
            return f"{value}% of balance per year"
        if policy.allowance_basis is AllowanceBasis.MONTHLY:
            return f"{value}% of monthly payment"
    if policy.allowance_type is AllowanceType.FLAT:
        return f"€{policy.allowance_value:,.0f} per year"
    return "No allowance"


# =============================================================================
# Yearly Overpayment Plans
# =============================================================================

@dataclass
class YearlyOverpaymentPlan:
    """Maximum fee-free monthly overpayment over one allowance window."""
    year: int
    start_month: int
    end_month: int
    monthly_amount: int
    estimated_balance: float


@dataclass
class YearBoundary:
    start_month: int
    end_month: int
    year: int      # calendar year, or 1-based window index without a start date


def calendar_year_boundaries(
        start_date: str | None,
        period_start_month: int,
        period_end_month: int
) -> list[YearBoundary]:
    """
    Split mortgage months [period_start_month, period_end_month] into years.

    Without a start date the windows are consecutive 12-month blocks from
    period_start_month. With one they follow calendar years (Jan-Dec), so
    the first and last windows may be partial.
    """
    boundaries: list[YearBoundary] = []
    if not start_date:
        current = period_start_month
        index = 1
        while current <= period_end_month:
            end = min(current + 11, period_end_month)
            boundaries.append(YearBoundary(current, end, index))
            current = end + 1
            index += 1
        return boundaries

    start = parse_start_date(start_date)
    current = period_start_month
    while current <= period_end_month:
        absolute = start.year * 12 + (start.month - 1) + (current - 1)
        calendar_year, calendar_month = divmod(absolute, 12)
        end = min(current + (11 - calendar_month), period_end_month)
        boundaries.append(YearBoundary(current, end, calendar_year))
        current = end + 1
    return boundaries


def yearly_overpayment_plans(
        policy: OverpaymentPolicy,
        period: ResolvedRatePeriod,
        mortgage_amount: float,
        total_months: int,
        start_date: str | None = None,
        construction_end_month: int | None = None
) -> list[YearlyOverpaymentPlan]:
    """
    Plan the largest fee-free overpayments for a fixed-rate period.

    Constant policies (flat, monthly basis) yield a single plan spanning the
    period. Balance-basis policies yield one plan per allowance year, each
    sized from the balance projected at the start of that year, assuming
    the planned overpayments are made; planning stops once the projected
    balance reaches zero.

    For self-build mortgages the first plan starts after construction ends.

    Args:
        policy: Lender policy
        period: Resolved fixed-rate period
        mortgage_amount: Balance at the start of the period (cents)
        total_months: Mortgage term
        start_date: Optional mortgage start date for calendar alignment
        construction_end_month: Final drawdown month for self-build

    Returns:
        List of YearlyOverpaymentPlan
    """
    plans: list[YearlyOverpaymentPlan] = []
    duration = period.duration_months or (total_months - period.start_month + 1)
    period_end = period.start_month + duration - 1

    effective_start = period.start_month
    if construction_end_month and period.start_month <= construction_end_month:
        effective_start = construction_end_month + 1
    if effective_start > period_end:
        return plans

    payment = monthly_payment(
        mortgage_amount / 100, period.rate, total_months - period.start_month + 1
    ) * 100

    if is_constant_allowance_policy(policy):
        amount = max_monthly_overpayment_for_year(policy, mortgage_amount, payment)
        if amount > 0:
            plans.append(YearlyOverpaymentPlan(1, effective_start, period_end, amount, mortgage_amount))
        return plans

    balance = mortgage_amount
    monthly_rate = period.rate / 100 / 12
    for index, boundary in enumerate(calendar_year_boundaries(start_date, effective_start, period_end)):
        amount = max_monthly_overpayment_for_year(policy, balance, payment)
        if amount > 0:
            plans.append(YearlyOverpaymentPlan(
                index + 1, boundary.start_month, boundary.end_month, amount, balance
            ))
        for _ in range(boundary.end_month - boundary.start_month + 1):
            interest = balance * monthly_rate
            balance = max(0.0, balance - (payment - interest) - amount)
        if balance <= 0:
            break
    return plans


# =============================================================================
# Per-Month Application
# =============================================================================

def transaction_period_key(
        rate_period_id: str,
        month: int,
        start_date: str | None,
        period: TransactionPeriod
) -> str:
    """
    Bucket key for counting overpayment transactions.

    fixed_period counts across the whole rate period. Other windows are
    calendar-aligned when a start date is known, else mortgage-relative.
    """
    if period is TransactionPeriod.FIXED_PERIOD:
        return rate_period_id
    if not start_date:
        if period is TransactionPeriod.MONTH:
            return f"{rate_period_id}-m{month}"
        if period is TransactionPeriod.QUARTER:
            return f"{rate_period_id}-q{math.ceil(month / 3)}"
        return f"{rate_period_id}-y{math.ceil(month / 12)}"

    when = calendar_date_for_month(start_date, month)
    if period is TransactionPeriod.MONTH:
        return f"{rate_period_id}-{when.year}-{when.month}"
    if period is TransactionPeriod.QUARTER:
        return f"{rate_period_id}-{when.year}-Q{(when.month - 1) // 3 + 1}"
    return f"{rate_period_id}-{when.year}"


@dataclass
class AppliedOverpayment:
    month: int
    amount: float
    config_id: str
    is_recurring: bool
    within_allowance: bool = True
    excess_amount: float = 0.0


@dataclass
class OverpaymentResult:
    amount: float = 0.0
    applied: list[AppliedOverpayment] = field(default_factory=list)

    @property
    def exceeded_allowance(self) -> bool:
        return any(not a.within_allowance for a in self.applied)

    @property
    def excess_amount(self) -> float:
        return sum(a.excess_amount for a in self.applied)


def config_applies(config: OverpaymentConfig, month: int) -> bool:
    """Whether an overpayment config fires in `month`."""
    if not config.enabled:
        return False
    if config.type is OverpaymentType.ONE_TIME:
        return config.start_month == month
    if month < config.start_month or (config.end_month is not None and month > config.end_month):
        return False
    since_start = month - config.start_month
    if config.frequency is OverpaymentFrequency.QUARTERLY:
        return since_start % 3 == 0
    if config.frequency is OverpaymentFrequency.YEARLY:
        return since_start % 12 == 0
    return True


def overpayment_for_month(
        month: int,
        configs: list[OverpaymentConfig],
        max_amount: float,
        period: ResolvedRatePeriod,
        policy: OverpaymentPolicy | None,
        paid_this_year: float,
        balance: float,
        payment: float,
        year_start_balance: float
) -> OverpaymentResult:
    """
    Collect the overpayments due in `month` and check them against the policy.

    Each config contributes min(amount, headroom) where the headroom is
    `max_amount` less what earlier configs already contributed this month.
    On fixed-rate periods with a policy, balance-basis allowances use the
    balance at the start of the allowance year, others the current balance.

    Args:
        month: Mortgage month
        configs: All overpayment configs
        max_amount: Largest total overpayment the balance allows (cents)
        period: Active resolved rate period
        policy: Policy attached to the period's lender, if any
        paid_this_year: Overpayments already made this allowance year (cents)
        balance: Opening balance for the month (cents)
        payment: Scheduled payment for the month (cents)
        year_start_balance: Balance when the allowance year began (cents)

    Returns:
        OverpaymentResult with the total and each applied overpayment
    """
    result = OverpaymentResult()
    checks_allowance = period.type is RateType.FIXED and period.overpayment_policy_id is not None

    for config in configs:
        if not config_applies(config, month):
            continue
        amount = min(config.amount, max_amount - result.amount)
        if amount <= 0:
            continue

        within = True
        excess = 0.0
        if checks_allowance:
            basis_balance = (year_start_balance
                             if policy is not None and policy.allowance_basis is AllowanceBasis.BALANCE
                             else balance)
            allowance = calculate_allowance(policy, basis_balance, payment,
                                            paid_this_year + result.amount, result.amount)
            if amount > allowance:
                within = False
                excess = amount - allowance

        result.applied.append(AppliedOverpayment(
            month=month,
            amount=amount,
            config_id=config.id,
            is_recurring=config.is_recurring,
            within_allowance=within,
            excess_amount=excess,
        ))
        result.amount += amount
    return result


def overpayment_maps(applied: list[AppliedOverpayment]) -> tuple[dict[int, float], dict[int, float]]:
    """Split applied overpayments into (one_time_by_month, recurring_by_month)."""
    one_time: dict[int, float] = {}
    recurring: dict[int, float] = {}
    for item in applied:
        target = recurring if item.is_recurring else one_time
        target[item.month] = target.get(item.month, 0.0) + item.amount
    return one_time, recurring
