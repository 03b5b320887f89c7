# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
"""
Mortgage Simulator - Input Data Model

Catalog entries (rates, lenders, overpayment policies) and per-simulation
configuration (rate periods, overpayments, self-build drawdowns).

Structure:
  (1) Enums - tags for every variant field
  (2) Catalog - MortgageRate, CustomRate, Lender, OverpaymentPolicy
  (3) Timeline - RatePeriod, ResolvedRatePeriod
  (4) Overpayments - OverpaymentConfig
  (5) Self-build - DrawdownStage, SelfBuildConfig
  (6) Simulation - SimulationInput, SimulationState
  (7) Standalone solver inputs - AprcConfig, CashbackConfig

Units: balances, payments and overpayment amounts are cents. Catalog values
quoted by lenders in euros (min_loan, flat allowance_value, min_amount) stay
in euros and are converted where they are compared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__version__ = "0.1.0"


# =============================================================================
# (1) ENUMS
# =============================================================================

class RateType(Enum):
    """Rate product type."""
    FIXED = "fixed"
    VARIABLE = "variable"


class AllowanceType(Enum):
    """How a lender expresses its fee-free overpayment allowance."""
    PERCENTAGE = "percentage"
    FLAT = "flat"


class AllowanceBasis(Enum):
    """What a percentage allowance is a percentage of."""
    BALANCE = "balance"   # % of balance per year
    MONTHLY = "monthly"   # % of monthly payment per month


class TransactionPeriod(Enum):
    """Window over which max_transactions is counted."""
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    FIXED_PERIOD = "fixed_period"


class OverpaymentType(Enum):
    ONE_TIME = "one_time"
    RECURRING = "recurring"


class OverpaymentFrequency(Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class OverpaymentEffect(Enum):
    REDUCE_TERM = "reduce_term"
    REDUCE_PAYMENT = "reduce_payment"


class ConstructionRepaymentType(Enum):
    """Repayment mode while a self-build is still drawing down."""
    INTEREST_ONLY = "interest_only"
    INTEREST_AND_CAPITAL = "interest_and_capital"


class SelfBuildPhase(Enum):
    """Self-build phases, declared in temporal order."""
    CONSTRUCTION = "construction"
    INTEREST_ONLY = "interest_only"
    REPAYMENT = "repayment"

    @property
    def order(self) -> int:
        return list(SelfBuildPhase).index(self)


class CashbackType(Enum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


class PropertyType(Enum):
    EXISTING = "existing"
    NEW_BUILD = "new-build"
    NEW_APARTMENT = "new-apartment"


# Building Energy Rating values accepted as a rate filter
BER_RATINGS: tuple[str, ...] = (
    "A1", "A2", "A3", "B1", "B2", "B3", "C1", "C2", "C3",
    "D1", "D2", "E1", "E2", "F", "G", "Exempt",
)
DEFAULT_BER = "C1"

# Buyer types that mark a rate as buy-to-let
BTL_BUYER_TYPES: tuple[str, ...] = ("btl", "switcher-btl")


def _coerce(enum_cls: type[Enum], value: object, field_name: str) -> Enum:
    """Return value as a member of enum_cls, accepting the member or its value."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(repr(m.value) for m in enum_cls)
        raise ValueError(f"{field_name} must be one of {allowed}, got {value!r}") from None


# =============================================================================
# (2) CATALOG
# =============================================================================

@dataclass
class MortgageRate:
    """
    Catalog rate entry.

    min_ltv/max_ltv form an inclusive eligibility bracket (percent). A rate
    with new_business=False is the natural follow-on for existing customers;
    a fixed rate with new_business=True cannot be re-selected on renewal.
    """
    id: str
    lender_id: str
    type: RateType | str
    rate: float                         # annual %, e.g. 3.5
    name: str = ""
    fixed_term: int | None = None       # years
    min_ltv: float = 0.0
    max_ltv: float = 100.0
    min_loan: float | None = None       # euros
    buyer_types: list[str] = field(default_factory=list)
    ber_eligible: list[str] | None = None
    new_business: bool | None = None
    perks: list[str] = field(default_factory=list)
    apr: float | None = None
    warning: str | None = None

    def __post_init__(self) -> None:
        self.type = _coerce(RateType, self.type, "type")
        if self.rate < 0:
            raise ValueError(f"rate must be non-negative, got {self.rate}")
        if self.min_ltv > self.max_ltv:
            raise ValueError(
                f"min_ltv ({self.min_ltv}) cannot exceed max_ltv ({self.max_ltv})"
            )
        if self.fixed_term is not None and self.fixed_term <= 0:
            raise ValueError(f"fixed_term must be positive, got {self.fixed_term}")
        if self.min_loan is not None and self.min_loan < 0:
            raise ValueError(f"min_loan must be non-negative, got {self.min_loan}")

    @property
    def is_fixed(self) -> bool:
        return self.type is RateType.FIXED

    @property
    def is_btl(self) -> bool:
        return any(bt in BTL_BUYER_TYPES for bt in self.buyer_types)


@dataclass
class CustomRate(MortgageRate):
    """A user-entered rate; not tied to a catalog lender."""
    custom_lender_name: str | None = None


@dataclass
class Lender:
    id: str
    name: str
    overpayment_policy: str | None = None   # OverpaymentPolicy.id


@dataclass
class OverpaymentPolicy:
    """
    Fee-free overpayment allowance applying during fixed-rate periods.

    Variants (tag = allowance_type, allowance_basis):
        percentage/balance: allowance_value % of balance per year
        percentage/monthly: allowance_value % of the monthly payment per month,
                            raised to min_amount (euros) if set
        flat:               allowance_value euros per year
    """
    id: str
    allowance_type: AllowanceType | str
    allowance_value: float
    label: str = ""
    allowance_basis: AllowanceBasis | str | None = None
    min_amount: float | None = None            # euros
    max_transactions: int | None = None
    max_transactions_period: TransactionPeriod | str | None = None

    def __post_init__(self) -> None:
        self.allowance_type = _coerce(AllowanceType, self.allowance_type, "allowance_type")
        if self.allowance_basis is not None:
            self.allowance_basis = _coerce(AllowanceBasis, self.allowance_basis, "allowance_basis")
        if self.max_transactions_period is not None:
            self.max_transactions_period = _coerce(
                TransactionPeriod, self.max_transactions_period, "max_transactions_period"
            )
        if self.allowance_type is AllowanceType.PERCENTAGE and self.allowance_basis is None:
            raise ValueError("percentage allowance requires allowance_basis")
        if self.allowance_value < 0:
            raise ValueError(f"allowance_value must be non-negative, got {self.allowance_value}")
        if self.max_transactions is not None and self.max_transactions < 0:
            raise ValueError(f"max_transactions must be non-negative, got {self.max_transactions}")


# =============================================================================
# (3) RATE TIMELINE
# =============================================================================

@dataclass
class RatePeriod:
    """
    One entry of the rate timeline. Periods are stacked in order from month 1;
    duration_months = 0 means "until the end of the mortgage".
    """
    id: str
    lender_id: str
    rate_id: str
    is_custom: bool = False
    duration_months: int = 0
    label: str | None = None

    def __post_init__(self) -> None:
        if self.duration_months < 0:
            raise ValueError(f"duration_months must be non-negative, got {self.duration_months}")


@dataclass
class ResolvedRatePeriod:
    """RatePeriod joined with its rate snapshot and stack position. Read-only."""
    id: str
    rate_id: str
    rate: float
    type: RateType
    lender_id: str
    lender_name: str
    rate_name: str
    start_month: int
    duration_months: int
    label: str
    is_custom: bool = False
    fixed_term: int | None = None
    overpayment_policy_id: str | None = None

    @property
    def end_month(self) -> int | None:
        """Last month of the period, None for an until-end period."""
        if self.duration_months == 0:
            return None
        return self.start_month + self.duration_months - 1


# =============================================================================
# (4) OVERPAYMENTS
# =============================================================================

@dataclass
class OverpaymentConfig:
    """
    Planned overpayment. one_time fires at start_month; recurring fires from
    start_month to end_month (open-ended if None) at the given frequency.
    """
    id: str
    rate_period_id: str
    type: OverpaymentType | str
    amount: float                     # cents
    start_month: int
    end_month: int | None = None
    frequency: OverpaymentFrequency | str = OverpaymentFrequency.MONTHLY
    effect: OverpaymentEffect | str = OverpaymentEffect.REDUCE_TERM
    enabled: bool = True
    label: str | None = None

    def __post_init__(self) -> None:
        self.type = _coerce(OverpaymentType, self.type, "type")
        self.frequency = _coerce(OverpaymentFrequency, self.frequency, "frequency")
        self.effect = _coerce(OverpaymentEffect, self.effect, "effect")
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")
        if self.start_month < 1:
            raise ValueError(f"start_month must be at least 1, got {self.start_month}")
        if self.end_month is not None and self.end_month < self.start_month:
            raise ValueError(
                f"end_month ({self.end_month}) cannot precede start_month ({self.start_month})"
            )

    @property
    def is_recurring(self) -> bool:
        return self.type is OverpaymentType.RECURRING

    @property
    def display_label(self) -> str:
        if self.label:
            return self.label
        return "Recurring" if self.is_recurring else "One-time"


# =============================================================================
# (5) SELF-BUILD
# =============================================================================

@dataclass
class DrawdownStage:
    id: str
    month: int
    amount: float                     # cents
    label: str | None = None

    def __post_init__(self) -> None:
        if self.month < 1:
            raise ValueError(f"month must be at least 1, got {self.month}")
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")


@dataclass
class SelfBuildConfig:
    """
    Staged drawdown schedule. The stage amounts are expected to sum to the
    mortgage amount; validate_drawdown_total() reports any difference.
    """
    enabled: bool = False
    drawdown_stages: list[DrawdownStage] = field(default_factory=list)
    interest_only_months: int = 0
    construction_repayment_type: ConstructionRepaymentType | str = (
        ConstructionRepaymentType.INTEREST_ONLY
    )

    def __post_init__(self) -> None:
        self.construction_repayment_type = _coerce(
            ConstructionRepaymentType, self.construction_repayment_type,
            "construction_repayment_type",
        )
        if self.interest_only_months < 0:
            raise ValueError(
                f"interest_only_months must be non-negative, got {self.interest_only_months}"
            )


# =============================================================================
# (6) SIMULATION
# =============================================================================

@dataclass
class SimulationInput:
    mortgage_amount: float            # cents
    mortgage_term_months: int
    property_value: float             # cents
    start_date: str | None = None     # "YYYY-MM-DD" or "YYYY-MM"
    ber: str | None = None

    def __post_init__(self) -> None:
        if self.ber is not None and self.ber not in BER_RATINGS:
            raise ValueError(f"ber must be one of {', '.join(BER_RATINGS)}, got {self.ber!r}")


@dataclass
class SimulationState:
    input: SimulationInput
    rate_periods: list[RatePeriod] = field(default_factory=list)
    overpayment_configs: list[OverpaymentConfig] = field(default_factory=list)
    self_build_config: SelfBuildConfig | None = None


# =============================================================================
# (7) STANDALONE SOLVER INPUTS
# =============================================================================

@dataclass
class AprcConfig:
    """Lender-specific APRC assumptions (euros)."""
    loan_amount: float
    term_years: int
    valuation_fee: float = 0.0
    security_release_fee: float = 0.0

    def __post_init__(self) -> None:
        if self.loan_amount <= 0:
            raise ValueError(f"loan_amount must be positive, got {self.loan_amount}")
        if self.term_years <= 0:
            raise ValueError(f"term_years must be positive, got {self.term_years}")


@dataclass
class CashbackConfig:
    type: CashbackType | str
    value: float
    cap: float | None = None

    def __post_init__(self) -> None:
        self.type = _coerce(CashbackType, self.type, "type")
