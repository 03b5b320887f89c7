# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
"""
Self-build phase manager.

A self-build mortgage is drawn in stages while the house is built. Phases run
in strict order:

    construction   month <= final drawdown month
    interest_only  final drawdown < month <= final drawdown + interest_only_months
    repayment      afterwards

During construction the borrower pays interest only (default) or interest and
capital on what has been drawn; during interest_only they pay interest only.
"""

from __future__ import annotations

from dataclasses import dataclass

from mortgage_simulator.models import (
    ConstructionRepaymentType,
    DrawdownStage,
    SelfBuildConfig,
    SelfBuildPhase,
)

__version__ = "0.1.0"

# Stage totals within this many cents of the mortgage amount are accepted
DRAWDOWN_TOLERANCE = 1


# =============================================================================
# Drawdown Bookkeeping
# =============================================================================

def get_drawdown_for_month(month: int, stages: list[DrawdownStage]) -> float:
    """Total drawn in `month` across every stage falling on it."""
    return sum((s.amount for s in stages if s.month == month), 0.0)


def get_cumulative_drawn(month: int, stages: list[DrawdownStage]) -> float:
    return sum(s.amount for s in stages if s.month <= month)


def get_final_drawdown_month(stages: list[DrawdownStage]) -> int:
    if not stages:
        return 0
    return max(s.month for s in stages)


def get_construction_end_month(config: SelfBuildConfig) -> int:
    return get_final_drawdown_month(config.drawdown_stages)


def get_interest_only_end_month(config: SelfBuildConfig) -> int:
    return get_final_drawdown_month(config.drawdown_stages) + config.interest_only_months


def get_remaining_term_from_repayment(total_term_months: int, interest_only_end_month: int) -> int:
    """Months left for full amortization once interest-only payments stop."""
    return total_term_months - interest_only_end_month


def is_self_build_active(config: SelfBuildConfig | None) -> bool:
    return config is not None and config.enabled and len(config.drawdown_stages) > 0


def get_initial_self_build_balance(config: SelfBuildConfig) -> float:
    """Balance at the start of month 1: whatever is drawn that month, else 0."""
    return get_drawdown_for_month(1, config.drawdown_stages)


@dataclass
class DrawdownValidation:
    is_valid: bool
    total_drawn: float
    difference: float        # mortgage amount - total drawn; positive = under-drawn


def validate_drawdown_total(config: SelfBuildConfig, mortgage_amount: float) -> DrawdownValidation:
    """Compare the sum of stage amounts against the mortgage amount (cents)."""
    total = sum(s.amount for s in config.drawdown_stages)
    difference = mortgage_amount - total
    return DrawdownValidation(
        is_valid=abs(difference) < DRAWDOWN_TOLERANCE,
        total_drawn=total,
        difference=difference,
    )


@dataclass
class ResolvedDrawdownStage:
    id: str
    month: int
    amount: float
    cumulative_drawn: float
    remaining_to_draw: float
    total_approved: float
    label: str | None = None


def drawdown_stages_with_cumulative(stages: list[DrawdownStage]) -> list[ResolvedDrawdownStage]:
    """Stages sorted by month with running totals."""
    ordered = sorted(stages, key=lambda s: s.month)
    total = sum(s.amount for s in ordered)
    resolved = []
    cumulative = 0.0
    for stage in ordered:
        cumulative += stage.amount
        resolved.append(ResolvedDrawdownStage(
            id=stage.id,
            month=stage.month,
            amount=stage.amount,
            cumulative_drawn=cumulative,
            remaining_to_draw=total - cumulative,
            total_approved=total,
            label=stage.label,
        ))
    return resolved


# =============================================================================
# Phase Determination
# =============================================================================

def determine_phase(month: int, config: SelfBuildConfig) -> SelfBuildPhase:
    if month <= get_final_drawdown_month(config.drawdown_stages):
        return SelfBuildPhase.CONSTRUCTION
    if month <= get_interest_only_end_month(config):
        return SelfBuildPhase.INTEREST_ONLY
    return SelfBuildPhase.REPAYMENT


def is_interest_only_month(month: int, config: SelfBuildConfig) -> bool:
    """
    True when no principal is due in `month`.

    With interest_and_capital construction only the explicit interest-only
    phase qualifies; otherwise construction months do too.
    """
    phase = determine_phase(month, config)
    if config.construction_repayment_type is ConstructionRepaymentType.INTEREST_AND_CAPITAL:
        return phase is SelfBuildPhase.INTEREST_ONLY
    return phase in (SelfBuildPhase.CONSTRUCTION, SelfBuildPhase.INTEREST_ONLY)


def interest_only_payment(balance: float, annual_rate: float) -> float:
    return balance * annual_rate / 100 / 12


# =============================================================================
# Loop Strategies
# =============================================================================
#
# The amortization loop is agnostic to self-build. Each month it asks its
# strategy for the drawdown, the phase and whether the month is interest-only.
# =============================================================================

class StandardAmortization:
    """Whole amount drawn at month 1, full amortization throughout."""

    is_self_build = False

    def opening_balance(self, mortgage_amount: float) -> float:
        return mortgage_amount

    def drawdown(self, month: int) -> float:
        return 0.0

    def phase(self, month: int) -> SelfBuildPhase | None:
        return None

    def is_interest_only(self, month: int) -> bool:
        return False

    def has_undrawn(self, cumulative_drawn: float, mortgage_amount: float) -> bool:
        return False


class SelfBuildSchedule:
    """Staged drawdowns with construction / interest-only / repayment phases."""

    is_self_build = True

    def __init__(self, config: SelfBuildConfig) -> None:
        self.config = config

    def opening_balance(self, mortgage_amount: float) -> float:
        return get_initial_self_build_balance(self.config)

    def drawdown(self, month: int) -> float:
        # Month 1's stage is already in the opening balance
        if month <= 1:
            return 0.0
        return get_drawdown_for_month(month, self.config.drawdown_stages)

    def phase(self, month: int) -> SelfBuildPhase | None:
        return determine_phase(month, self.config)

    def is_interest_only(self, month: int) -> bool:
        return is_interest_only_month(month, self.config)

    def has_undrawn(self, cumulative_drawn: float, mortgage_amount: float) -> bool:
        return cumulative_drawn < mortgage_amount


def strategy_for(config: SelfBuildConfig | None) -> StandardAmortization | SelfBuildSchedule:
    if is_self_build_active(config):
        return SelfBuildSchedule(config)
    return StandardAmortization()
