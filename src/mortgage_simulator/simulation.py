# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
"""
Month-by-month amortization simulator.

The loop walks the rate timeline month by month. Each month it:

    1. finds the active rate period (periods are stacked from month 1)
    2. adds any self-build drawdown and determines the phase
    3. recalculates the scheduled payment on a period change, after a
       drawdown, or on leaving interest-only
    4. splits the payment into interest and principal
    5. applies overpayments and checks them against the lender's policy
    6. closes the month and records it

Amounts are cents. Policy breaches are returned as SimulationWarning
records; they never stop the simulation.
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass, field
from enum import Enum

from mortgage_simulator.dates import calendar_year_for_month, date_string_for_month
from mortgage_simulator.models import (
    CustomRate,
    Lender,
    MortgageRate,
    OverpaymentConfig,
    OverpaymentEffect,
    OverpaymentPolicy,
    RatePeriod,
    RateType,
    ResolvedRatePeriod,
    SelfBuildConfig,
    SelfBuildPhase,
    SimulationState,
    TransactionPeriod,
)
from mortgage_simulator.overpayments import (
    AppliedOverpayment,
    overpayment_for_month,
    transaction_period_key,
)
from mortgage_simulator.payments import monthly_payment
from mortgage_simulator.rates import find_variable_rate, rate_label
from mortgage_simulator.self_build import (
    get_construction_end_month,
    get_initial_self_build_balance,
    get_interest_only_end_month,
    interest_only_payment,
    is_self_build_active,
    strategy_for,
    validate_drawdown_total,
)

__version__ = "0.1.0"

# Balances at or below this many cents count as paid off
PAID_OFF_THRESHOLD = 0.01

# Self-build interest differences below this many cents are not reported
SELF_BUILD_INTEREST_THRESHOLD = 100


# =============================================================================
# Rate Timeline Resolution
# =============================================================================

def find_rate_period_for_month(
        periods: list[RatePeriod],
        month: int
) -> tuple[RatePeriod, int] | None:
    """
    Locate the period covering `month` in a stacked timeline.

    Returns:
        (period, start_month), or None when the timeline ends before `month`
    """
    current_start = 1
    for period in periods:
        if period.duration_months == 0:
            if month >= current_start:
                return period, current_start
        elif current_start <= month <= current_start + period.duration_months - 1:
            return period, current_start
        current_start += period.duration_months
    return None


def resolve_rate_period(
        period: RatePeriod,
        start_month: int,
        all_rates: list[MortgageRate],
        custom_rates: list[CustomRate],
        lenders: list[Lender]
) -> ResolvedRatePeriod | None:
    """
    Join a timeline entry with its rate.

    Custom periods look the rate up in `custom_rates` by id; catalog periods
    match on (rate_id, lender_id). The lender's overpayment policy is
    attached only to fixed rates.

    Returns:
        ResolvedRatePeriod, or None when the rate cannot be found
    """
    lender = next((l for l in lenders if l.id == period.lender_id), None)
    if period.is_custom:
        rate = next((r for r in custom_rates if r.id == period.rate_id), None)
        lender_name = (rate.custom_lender_name or "Custom") if rate is not None else "Custom"
    else:
        rate = next(
            (r for r in all_rates if r.id == period.rate_id and r.lender_id == period.lender_id),
            None,
        )
        lender_name = lender.name if lender is not None else "Unknown"

    if rate is None:
        return None

    policy_id = None
    if rate.is_fixed and lender is not None:
        policy_id = lender.overpayment_policy

    return ResolvedRatePeriod(
        id=period.id,
        rate_id=period.rate_id,
        rate=rate.rate,
        type=rate.type,
        lender_id=period.lender_id,
        lender_name=lender_name,
        rate_name=rate.name,
        start_month=start_month,
        duration_months=period.duration_months,
        label=period.label or rate_label(lender_name, rate),
        is_custom=period.is_custom,
        fixed_term=rate.fixed_term,
        overpayment_policy_id=policy_id,
    )


def resolve_rate_periods(
        periods: list[RatePeriod],
        all_rates: list[MortgageRate],
        custom_rates: list[CustomRate],
        lenders: list[Lender]
) -> dict[str, ResolvedRatePeriod]:
    """Resolve every period in stack order, keyed by period id. Unresolvable periods are left out."""
    resolved: dict[str, ResolvedRatePeriod] = {}
    current_start = 1
    for period in periods:
        entry = resolve_rate_period(period, current_start, all_rates, custom_rates, lenders)
        if entry is not None:
            resolved[period.id] = entry
        current_start += period.duration_months
    return resolved


# =============================================================================
# Result Records
# =============================================================================

class WarningType(Enum):
    ALLOWANCE_EXCEEDED = "allowance_exceeded"
    TRANSACTION_LIMIT_EXCEEDED = "transaction_limit_exceeded"
    EARLY_REDEMPTION = "early_redemption"


@dataclass
class SimulationWarning:
    type: WarningType
    month: int
    message: str
    severity: str                       # "warning" or "error"
    config_id: str | None = None
    overpayment_label: str | None = None


@dataclass
class AmortizationMonth:
    month: int
    year: int
    month_of_year: int
    date: str
    opening_balance: float
    closing_balance: float
    scheduled_payment: float
    interest_portion: float
    principal_portion: float
    overpayment: float
    total_payment: float
    rate: float
    rate_period_id: str
    cumulative_interest: float
    cumulative_principal: float         # includes overpayments
    cumulative_overpayments: float
    cumulative_total: float
    # Self-build only
    drawdown_this_month: float | None = None
    cumulative_drawn: float | None = None
    phase: SelfBuildPhase | None = None
    is_interest_only: bool | None = None


@dataclass
class AmortizationResult:
    months: list[AmortizationMonth] = field(default_factory=list)
    applied_overpayments: list[AppliedOverpayment] = field(default_factory=list)
    warnings: list[SimulationWarning] = field(default_factory=list)


# =============================================================================
# Amortization Loop
# =============================================================================

def _transaction_period_label(period: TransactionPeriod) -> str:
    if period is TransactionPeriod.FIXED_PERIOD:
        return "fixed period"
    return period.value


def calculate_amortization(
        state: SimulationState,
        all_rates: list[MortgageRate],
        custom_rates: list[CustomRate],
        lenders: list[Lender],
        policies: list[OverpaymentPolicy]
) -> AmortizationResult:
    """
    Simulate the mortgage month by month.

    The loop runs while the balance exceeds PAID_OFF_THRESHOLD (or a
    self-build still has undrawn stages) and the term has months left.
    Months without an active, resolvable rate period are skipped.

    Scheduled payment:
        Recalculated when the rate period changes, after a drawdown, and on
        entering the self-build repayment phase, over the months left in the
        term. reduce_term overpayments are added back to the balance for the
        recalculation so the payment holds and the term shortens.
        reduce_payment overpayments on variable months rescale the next
        payment by closing / (closing + reduce_payment amount).

    Warnings:
        allowance_exceeded          overpayment above the fixed-rate allowance
        transaction_limit_exceeded  more overpayments than the policy allows
        early_redemption            paid off before a fixed period ends

    Args:
        state: Mortgage input, rate timeline, overpayments and self-build config
        all_rates: Catalog rates
        custom_rates: User-entered rates
        lenders: Catalog lenders
        policies: Overpayment policies

    Returns:
        AmortizationResult; empty when the amount or term is not positive or
        the timeline is empty

    Example:
        >>> result = calculate_amortization(state, rates, [], lenders, policies)
        >>> result.months[-1].closing_balance
        0.0
    """
    inp = state.input
    result = AmortizationResult()
    if inp.mortgage_amount <= 0 or inp.mortgage_term_months <= 0 or not state.rate_periods:
        return result

    strategy = strategy_for(state.self_build_config)
    if strategy.is_self_build:
        validation = validate_drawdown_total(state.self_build_config, inp.mortgage_amount)
        if not validation.is_valid:
            warnings.warn(
                f"Drawdown stages total {validation.total_drawn:.0f} cents, "
                f"{validation.difference:+.0f} cents from the mortgage amount",
                UserWarning,
            )

    resolved_periods = resolve_rate_periods(state.rate_periods, all_rates, custom_rates, lenders)
    policies_by_id = {p.id: p for p in policies}
    configs_by_id = {c.id: c for c in state.overpayment_configs}
    max_months = inp.mortgage_term_months

    balance = strategy.opening_balance(inp.mortgage_amount)
    cumulative_drawn = balance if strategy.is_self_build else 0.0
    cumulative_interest = 0.0
    cumulative_principal = 0.0
    cumulative_overpayments = 0.0
    reduce_term_overpaid = 0.0

    current_payment: float | None = None
    last_period_id: str | None = None
    previous_phase: SelfBuildPhase | None = None

    # Keyed by "{period id}-{year}"
    paid_by_period_year: dict[str, float] = {}
    year_start_balance: dict[str, float] = {}
    # Keyed by transaction_period_key()
    transaction_counts: dict[str, int] = {}

    month = 1
    while ((balance > PAID_OFF_THRESHOLD or strategy.has_undrawn(cumulative_drawn, inp.mortgage_amount))
           and month <= max_months):
        found = find_rate_period_for_month(state.rate_periods, month)
        if found is None or found[0].id not in resolved_periods:
            month += 1
            continue
        period, period_start = found
        resolved = resolved_periods[period.id]
        monthly_rate = resolved.rate / 100 / 12

        # Self-build drawdown and phase
        drawdown = strategy.drawdown(month)
        if drawdown > 0:
            balance += drawdown
            cumulative_drawn += drawdown
        phase = strategy.phase(month)
        is_interest_only = strategy.is_interest_only(month)
        if phase is SelfBuildPhase.REPAYMENT and previous_phase is not SelfBuildPhase.REPAYMENT:
            current_payment = monthly_payment(balance, resolved.rate, max_months - month + 1)
        previous_phase = phase

        # Allowance year bookkeeping
        calendar_year = calendar_year_for_month(inp.start_date, month)
        year_key = str(calendar_year) if calendar_year is not None else str(math.ceil(month / 12))
        period_year = f"{period.id}-{year_key}"
        if period_year not in paid_by_period_year:
            paid_by_period_year[period_year] = 0.0
            year_start_balance[period_year] = balance

        if not is_interest_only and (
                last_period_id != period.id or current_payment is None or drawdown > 0):
            current_payment = monthly_payment(
                balance + reduce_term_overpaid, resolved.rate, max_months - month + 1
            )
            last_period_id = period.id

        if is_interest_only:
            interest = interest_only_payment(balance, resolved.rate)
            principal = 0.0
            payment = interest
        else:
            payment = current_payment
            interest = balance * monthly_rate
            principal = min(payment - interest, balance)

        # Overpayments
        policy = policies_by_id.get(resolved.overpayment_policy_id) if resolved.overpayment_policy_id else None
        overpaid = overpayment_for_month(
            month,
            state.overpayment_configs,
            balance - principal,
            resolved,
            policy,
            paid_by_period_year[period_year],
            balance,
            payment,
            year_start_balance[period_year],
        )
        overpayment = overpaid.amount
        result.applied_overpayments.extend(overpaid.applied)
        paid_by_period_year[period_year] += overpayment

        reduce_payment_amount = 0.0
        for applied in overpaid.applied:
            config = configs_by_id[applied.config_id]
            if config.effect is OverpaymentEffect.REDUCE_TERM:
                reduce_term_overpaid += applied.amount
            else:
                reduce_payment_amount += applied.amount

            if not applied.within_allowance:
                policy_label = policy.label if policy is not None and policy.label else "free allowance"
                result.warnings.append(SimulationWarning(
                    type=WarningType.ALLOWANCE_EXCEEDED,
                    month=month,
                    message=f"Exceeds {policy_label} allowance by €{applied.excess_amount / 100:,.2f}",
                    severity="warning",
                    config_id=applied.config_id,
                    overpayment_label=config.display_label,
                ))

        if (overpaid.applied and policy is not None
                and policy.max_transactions and policy.max_transactions_period is not None):
            key = transaction_period_key(period.id, month, inp.start_date, policy.max_transactions_period)
            for applied in overpaid.applied:
                transaction_counts[key] = transaction_counts.get(key, 0) + 1
                if transaction_counts[key] > policy.max_transactions:
                    result.warnings.append(SimulationWarning(
                        type=WarningType.TRANSACTION_LIMIT_EXCEEDED,
                        month=month,
                        message=(
                            f"Exceeds {policy.max_transactions} overpayments per "
                            f"{_transaction_period_label(policy.max_transactions_period)} limit"
                        ),
                        severity="warning",
                        config_id=applied.config_id,
                        overpayment_label=configs_by_id[applied.config_id].display_label,
                    ))

        closing = max(0.0, balance - principal - overpayment)

        if closing == 0 and resolved.type is RateType.FIXED and period.duration_months > 0:
            period_end = period_start + period.duration_months - 1
            if month < period_end:
                result.warnings.append(SimulationWarning(
                    type=WarningType.EARLY_REDEMPTION,
                    month=month,
                    message=(
                        f"Mortgage paid off {period_end - month} months before fixed period ends. "
                        "Early redemption fees may apply."
                    ),
                    severity="error",
                ))

        cumulative_interest += interest
        cumulative_principal += principal + overpayment
        cumulative_overpayments += overpayment

        record = AmortizationMonth(
            month=month,
            year=math.ceil(month / 12),
            month_of_year=(month - 1) % 12 + 1,
            date=date_string_for_month(inp.start_date, month),
            opening_balance=balance,
            closing_balance=closing,
            scheduled_payment=payment,
            interest_portion=interest,
            principal_portion=principal,
            overpayment=overpayment,
            total_payment=payment + overpayment,
            rate=resolved.rate,
            rate_period_id=period.id,
            cumulative_interest=cumulative_interest,
            cumulative_principal=cumulative_principal,
            cumulative_overpayments=cumulative_overpayments,
            cumulative_total=cumulative_interest + cumulative_principal,
        )
        if strategy.is_self_build:
            record.drawdown_this_month = drawdown
            record.cumulative_drawn = cumulative_drawn
            record.phase = phase
            record.is_interest_only = is_interest_only
        result.months.append(record)

        # Fixed rates keep their contractual payment until the next period boundary
        if reduce_payment_amount > 0 and resolved.type is RateType.VARIABLE:
            if closing + reduce_payment_amount > 0:
                current_payment = payment * (closing / (closing + reduce_payment_amount))

        balance = closing
        month += 1

    return result


def calculate_baseline_interest(
        mortgage_amount: float,
        mortgage_term_months: int,
        rate_periods: list[RatePeriod],
        resolved_periods: dict[str, ResolvedRatePeriod],
        self_build_config: SelfBuildConfig | None = None
) -> float:
    """
    Total interest of the same timeline and self-build schedule with no overpayments.

    Returns:
        Interest in cents; 0 for a non-positive amount or term or an empty timeline
    """
    if mortgage_amount <= 0 or mortgage_term_months <= 0 or not rate_periods:
        return 0.0

    strategy = strategy_for(self_build_config)
    balance = strategy.opening_balance(mortgage_amount)
    cumulative_drawn = balance if strategy.is_self_build else 0.0
    total_interest = 0.0
    current_payment: float | None = None
    last_period_id: str | None = None
    previous_phase: SelfBuildPhase | None = None

    month = 1
    while ((balance > PAID_OFF_THRESHOLD or strategy.has_undrawn(cumulative_drawn, mortgage_amount))
           and month <= mortgage_term_months):
        found = find_rate_period_for_month(rate_periods, month)
        if found is None or found[0].id not in resolved_periods:
            month += 1
            continue
        period = found[0]
        resolved = resolved_periods[period.id]

        drawdown = strategy.drawdown(month)
        if drawdown > 0:
            balance += drawdown
            cumulative_drawn += drawdown
        phase = strategy.phase(month)
        is_interest_only = strategy.is_interest_only(month)
        if phase is SelfBuildPhase.REPAYMENT and previous_phase is not SelfBuildPhase.REPAYMENT:
            current_payment = monthly_payment(balance, resolved.rate, mortgage_term_months - month + 1)
        previous_phase = phase

        if not is_interest_only and (
                last_period_id != period.id or current_payment is None or drawdown > 0):
            current_payment = monthly_payment(balance, resolved.rate, mortgage_term_months - month + 1)
            last_period_id = period.id

        if is_interest_only:
            interest = interest_only_payment(balance, resolved.rate)
            principal = 0.0
        else:
            interest = balance * resolved.rate / 100 / 12
            principal = min(current_payment - interest, balance)

        total_interest += interest
        balance = max(0.0, balance - principal)
        month += 1

    return total_interest


# =============================================================================
# Aggregation and Summary
# =============================================================================

@dataclass
class AmortizationYear:
    year: int
    opening_balance: float
    closing_balance: float
    total_interest: float
    total_principal: float
    total_overpayments: float
    total_payments: float
    cumulative_interest: float
    cumulative_principal: float
    cumulative_total: float
    months: list[AmortizationMonth]
    rate_changes: list[str]
    has_warnings: bool = False


def aggregate_by_year(months: list[AmortizationMonth]) -> list[AmortizationYear]:
    """
    Group months into years.

    Groups by calendar year when the months carry dates, else by mortgage
    year. `rate_changes` lists the rate period ids seen in each year.
    """
    if not months:
        return []
    has_dates = bool(months[0].date)

    grouped: dict[int, list[AmortizationMonth]] = {}
    for m in months:
        key = int(m.date.split("-")[0]) if has_dates else m.year
        grouped.setdefault(key, []).append(m)

    years = []
    for year, year_months in sorted(grouped.items()):
        rate_changes: list[str] = []
        for m in year_months:
            if m.rate_period_id not in rate_changes:
                rate_changes.append(m.rate_period_id)
        first, last = year_months[0], year_months[-1]
        years.append(AmortizationYear(
            year=year,
            opening_balance=first.opening_balance,
            closing_balance=last.closing_balance,
            total_interest=sum(m.interest_portion for m in year_months),
            total_principal=sum(m.principal_portion for m in year_months),
            total_overpayments=sum(m.overpayment for m in year_months),
            total_payments=sum(m.total_payment for m in year_months),
            cumulative_interest=last.cumulative_interest,
            cumulative_principal=last.cumulative_principal,
            cumulative_total=last.cumulative_total,
            months=year_months,
            rate_changes=rate_changes,
        ))
    return years


@dataclass
class SimulationSummary:
    total_interest: float
    total_paid: float
    actual_term_months: int
    interest_saved: float
    months_saved: int
    extra_interest_from_self_build: float | None = None


def calculate_summary(
        months: list[AmortizationMonth],
        baseline_interest: float,
        mortgage_term_months: int,
        interest_and_capital_baseline: float | None = None
) -> SimulationSummary:
    """
    Totals for a simulated schedule, compared against a no-overpayment baseline.

    months_saved is only reported when the schedule reaches payoff. For
    self-build, `interest_and_capital_baseline` is the baseline when capital
    is also repaid during construction; the difference is reported when it
    exceeds SELF_BUILD_INTEREST_THRESHOLD.
    """
    if not months:
        return SimulationSummary(0.0, 0.0, 0, 0.0, 0)

    last = months[-1]
    actual_term = len(months)

    extra_interest = None
    if interest_and_capital_baseline is not None:
        diff = baseline_interest - interest_and_capital_baseline
        if abs(diff) > SELF_BUILD_INTEREST_THRESHOLD:
            extra_interest = diff

    paid_off = last.closing_balance <= PAID_OFF_THRESHOLD
    return SimulationSummary(
        total_interest=last.cumulative_interest,
        total_paid=last.cumulative_total,
        actual_term_months=actual_term,
        interest_saved=max(0.0, baseline_interest - last.cumulative_interest),
        months_saved=mortgage_term_months - actual_term if paid_off else 0,
        extra_interest_from_self_build=extra_interest,
    )


# =============================================================================
# Milestones
# =============================================================================

class MilestoneType(Enum):
    MORTGAGE_START = "mortgage_start"
    CONSTRUCTION_COMPLETE = "construction_complete"
    FULL_PAYMENTS_START = "full_payments_start"
    PRINCIPAL_25_PERCENT = "principal_25_percent"
    PRINCIPAL_50_PERCENT = "principal_50_percent"
    PRINCIPAL_75_PERCENT = "principal_75_percent"
    LTV_80_PERCENT = "ltv_80_percent"
    MORTGAGE_COMPLETE = "mortgage_complete"


MILESTONE_LABELS: dict[MilestoneType, str] = {
    MilestoneType.MORTGAGE_START: "Mortgage Starts",
    MilestoneType.CONSTRUCTION_COMPLETE: "Construction Complete",
    MilestoneType.FULL_PAYMENTS_START: "Full Payments Start",
    MilestoneType.PRINCIPAL_25_PERCENT: "25% Paid Off",
    MilestoneType.PRINCIPAL_50_PERCENT: "50% Paid Off",
    MilestoneType.PRINCIPAL_75_PERCENT: "75% Paid Off",
    MilestoneType.LTV_80_PERCENT: "LTV Below 80%",
    MilestoneType.MORTGAGE_COMPLETE: "Mortgage Complete",
}


@dataclass
class Milestone:
    type: MilestoneType
    month: int
    date: str
    label: str
    value: float            # balance in cents


def calculate_milestones(
        months: list[AmortizationMonth],
        mortgage_amount: float,
        property_value: float,
        start_date: str | None,
        self_build_config: SelfBuildConfig | None = None
) -> list[Milestone]:
    """
    First-crossing events in a schedule.

    Principal milestones fire when the closing balance first drops to 75%,
    50% and 25% of the mortgage amount; LTV below 80% fires only if the
    mortgage started above it. For self-build, construction, repayment and
    payoff milestones need drawdowns that add up to the mortgage amount,
    and principal milestones wait until interest-only payments end.

    Returns:
        Milestones in month order, starting with mortgage_start and ending
        at mortgage_complete if the schedule reaches payoff
    """
    if not months:
        return []

    self_build = is_self_build_active(self_build_config)
    construction_end = get_construction_end_month(self_build_config) if self_build else 0
    interest_only_end = get_interest_only_end_month(self_build_config) if self_build else 0
    drawdown_complete = (not self_build
                         or validate_drawdown_total(self_build_config, mortgage_amount).is_valid)

    def milestone(kind: MilestoneType, m: AmortizationMonth, value: float) -> Milestone:
        return Milestone(kind, m.month, m.date, MILESTONE_LABELS[kind], value)

    milestones = [Milestone(
        MilestoneType.MORTGAGE_START, 1, start_date or "",
        MILESTONE_LABELS[MilestoneType.MORTGAGE_START],
        get_initial_self_build_balance(self_build_config) if self_build else mortgage_amount,
    )]
    reached = {MilestoneType.MORTGAGE_START}

    thresholds = [
        (MilestoneType.PRINCIPAL_25_PERCENT, mortgage_amount * 0.75),
        (MilestoneType.PRINCIPAL_50_PERCENT, mortgage_amount * 0.5),
        (MilestoneType.PRINCIPAL_75_PERCENT, mortgage_amount * 0.25),
    ]
    ltv_80_balance = property_value * 0.8

    for m in months:
        if self_build and drawdown_complete:
            if (MilestoneType.CONSTRUCTION_COMPLETE not in reached
                    and m.month == construction_end):
                milestones.append(milestone(MilestoneType.CONSTRUCTION_COMPLETE, m, m.closing_balance))
                reached.add(MilestoneType.CONSTRUCTION_COMPLETE)
            if (MilestoneType.FULL_PAYMENTS_START not in reached
                    and interest_only_end > construction_end
                    and m.month == interest_only_end + 1):
                milestones.append(milestone(MilestoneType.FULL_PAYMENTS_START, m, m.opening_balance))
                reached.add(MilestoneType.FULL_PAYMENTS_START)

        if not self_build or (drawdown_complete and m.month > interest_only_end):
            for kind, threshold in thresholds:
                if kind not in reached and m.closing_balance <= threshold:
                    milestones.append(milestone(kind, m, m.closing_balance))
                    reached.add(kind)
            if (MilestoneType.LTV_80_PERCENT not in reached
                    and mortgage_amount > ltv_80_balance
                    and m.closing_balance <= ltv_80_balance):
                milestones.append(milestone(MilestoneType.LTV_80_PERCENT, m, m.closing_balance))
                reached.add(MilestoneType.LTV_80_PERCENT)

        if drawdown_complete and m.closing_balance <= PAID_OFF_THRESHOLD:
            milestones.append(milestone(MilestoneType.MORTGAGE_COMPLETE, m, 0.0))
            break

    return milestones


# =============================================================================
# Coverage Diagnostics
# =============================================================================

@dataclass
class SimulationCompleteness:
    is_complete: bool
    remaining_balance: float
    covered_months: int
    total_months: int
    missing_months: int


def calculate_simulation_completeness(
        months: list[AmortizationMonth],
        mortgage_amount: float,
        mortgage_term_months: int
) -> SimulationCompleteness:
    """Whether the schedule reached payoff and how many term months it did not cover."""
    if not months:
        return SimulationCompleteness(False, mortgage_amount, 0, mortgage_term_months, mortgage_term_months)
    remaining = months[-1].closing_balance
    return SimulationCompleteness(
        is_complete=remaining <= PAID_OFF_THRESHOLD,
        remaining_balance=remaining,
        covered_months=len(months),
        total_months=mortgage_term_months,
        missing_months=max(0, mortgage_term_months - len(months)),
    )


@dataclass
class BufferSuggestion:
    """A variable follow-on rate recommended after a fixed period."""
    after_index: int
    fixed_rate: MortgageRate
    suggested_rate: MortgageRate
    ltv_at_end: float
    lender_name: str
    is_trailing: bool = False


def _follow_on_after(
        period: ResolvedRatePeriod,
        state: SimulationState,
        all_rates: list[MortgageRate],
        custom_rates: list[CustomRate],
        schedule: list[AmortizationMonth]
) -> tuple[MortgageRate, MortgageRate, float] | None:
    pool = custom_rates if period.is_custom else all_rates
    fixed_rate = next((r for r in pool if r.id == period.rate_id), None)
    if fixed_rate is None:
        return None
    end_month = period.start_month + period.duration_months - 1
    at_end = next((m for m in schedule if m.month == end_month), None)
    balance = at_end.closing_balance if at_end is not None else state.input.mortgage_amount
    ltv = balance / state.input.property_value * 100
    follow_on = find_variable_rate(fixed_rate, all_rates, ltv, state.input.ber)
    if follow_on is None:
        return None
    return fixed_rate, follow_on, ltv


def calculate_buffer_suggestions(
        state: SimulationState,
        all_rates: list[MortgageRate],
        custom_rates: list[CustomRate],
        resolved_periods: list[ResolvedRatePeriod],
        schedule: list[AmortizationMonth]
) -> list[BufferSuggestion]:
    """
    Recommend variable-rate buffers after fixed periods.

    A suggestion is made after a fixed period whose natural follow-on (at
    the LTV reached when it ends) is not the next configured period, and
    after a final fixed period that does not run to the end of the term.

    Args:
        state: Simulation state
        all_rates: Catalog rates
        custom_rates: User-entered rates
        resolved_periods: Resolved timeline, in order
        schedule: Months from calculate_amortization

    Returns:
        List of BufferSuggestion; empty without periods or property value
    """
    suggestions: list[BufferSuggestion] = []
    if not resolved_periods or state.input.property_value <= 0:
        return suggestions

    for index, (current, following) in enumerate(zip(resolved_periods, resolved_periods[1:])):
        if current.type is not RateType.FIXED:
            continue
        match = _follow_on_after(current, state, all_rates, custom_rates, schedule)
        if match is None:
            continue
        fixed_rate, follow_on, ltv = match
        is_natural = (following.rate_id == follow_on.id
                      and following.lender_id == follow_on.lender_id
                      and not following.is_custom)
        if not is_natural:
            suggestions.append(BufferSuggestion(index, fixed_rate, follow_on, ltv, current.lender_name))

    last = resolved_periods[-1]
    if last.type is RateType.FIXED and last.duration_months > 0:
        match = _follow_on_after(last, state, all_rates, custom_rates, schedule)
        if match is not None:
            fixed_rate, follow_on, ltv = match
            suggestions.append(BufferSuggestion(
                len(resolved_periods) - 1, fixed_rate, follow_on, ltv, last.lender_name,
                is_trailing=True,
            ))

    return suggestions
