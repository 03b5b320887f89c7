# Requires Python 3.10+
"""
Mortgage Simulator: amortization, overpayment policy, self-build, APRC and breakeven.

Amounts in the simulator, rate and overpayment modules are cents; APRC, fees
and breakeven work in euros.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Data model
from mortgage_simulator.models import (
    RateType,
    AllowanceType,
    AllowanceBasis,
    TransactionPeriod,
    OverpaymentType,
    OverpaymentFrequency,
    OverpaymentEffect,
    ConstructionRepaymentType,
    SelfBuildPhase,
    CashbackType,
    PropertyType,
    BER_RATINGS,
    DEFAULT_BER,
    BTL_BUYER_TYPES,
    MortgageRate,
    CustomRate,
    Lender,
    OverpaymentPolicy,
    RatePeriod,
    ResolvedRatePeriod,
    OverpaymentConfig,
    DrawdownStage,
    SelfBuildConfig,
    SimulationInput,
    SimulationState,
    AprcConfig,
    CashbackConfig,
)

# Calendar helpers
from mortgage_simulator.dates import (
    parse_start_date,
    add_months,
    calendar_date_for_month,
    date_string_for_month,
    calendar_year_for_month,
    is_first_month_of_calendar_year,
)

# Payment math
from mortgage_simulator.payments import (
    monthly_payment,
    remaining_balance,
    monthly_follow_on,
    total_repayable,
    follow_on_ltv,
    cost_of_credit_percent,
    amortization_arrays,
)

# Rate eligibility and repeating cycles
from mortgage_simulator.rates import (
    BUFFER_MONTHS,
    rate_label,
    variable_buffer_label,
    is_valid_follow_on_rate,
    find_variable_rate,
    can_rate_be_repeated,
    is_rate_eligible_for_balance,
    RepeatingPeriodsConfig,
    generate_repeating_rate_periods,
)

# Self-build
from mortgage_simulator.self_build import (
    DRAWDOWN_TOLERANCE,
    get_drawdown_for_month,
    get_cumulative_drawn,
    get_final_drawdown_month,
    get_construction_end_month,
    get_interest_only_end_month,
    get_remaining_term_from_repayment,
    is_self_build_active,
    get_initial_self_build_balance,
    DrawdownValidation,
    validate_drawdown_total,
    ResolvedDrawdownStage,
    drawdown_stages_with_cumulative,
    determine_phase,
    is_interest_only_month,
    interest_only_payment,
    StandardAmortization,
    SelfBuildSchedule,
    strategy_for,
)

# Overpayment policy engine
from mortgage_simulator.overpayments import (
    max_monthly_overpayment_for_year,
    is_constant_allowance_policy,
    calculate_allowance,
    describe_policy,
    YearlyOverpaymentPlan,
    YearBoundary,
    calendar_year_boundaries,
    yearly_overpayment_plans,
    transaction_period_key,
    AppliedOverpayment,
    OverpaymentResult,
    config_applies,
    overpayment_for_month,
    overpayment_maps,
)

# Amortization simulator
from mortgage_simulator.simulation import (
    PAID_OFF_THRESHOLD,
    find_rate_period_for_month,
    resolve_rate_period,
    resolve_rate_periods,
    WarningType,
    SimulationWarning,
    AmortizationMonth,
    AmortizationResult,
    calculate_amortization,
    calculate_baseline_interest,
    AmortizationYear,
    aggregate_by_year,
    SimulationSummary,
    calculate_summary,
    MilestoneType,
    MILESTONE_LABELS,
    Milestone,
    calculate_milestones,
    SimulationCompleteness,
    calculate_simulation_completeness,
    BufferSuggestion,
    calculate_buffer_suggestions,
)

# APRC
from mortgage_simulator.aprc import (
    aprc_cash_flows,
    calculate_aprc,
    infer_follow_on_rate,
    round_half_up,
)

# Fees
from mortgage_simulator.fees import (
    ESTIMATED_LEGAL_FEES,
    ESTIMATED_REMORTGAGE_LEGAL_FEES,
    VAT_RATE_NEW_BUILD,
    VAT_RATE_NEW_APARTMENT,
    VAT_RATE_EXISTING,
    stamp_duty,
    PropertyVat,
    vat_rate_for,
    property_vat,
)

# Breakeven
from mortgage_simulator.breakeven import (
    DEFAULT_RENT_INFLATION,
    DEFAULT_HOME_APPRECIATION,
    DEFAULT_MAINTENANCE_RATE,
    DEFAULT_OPPORTUNITY_COST_RATE,
    DEFAULT_SALE_COST_RATE,
    DEFAULT_SERVICE_CHARGE,
    DEFAULT_SERVICE_CHARGE_INCREASE,
    MONTHLY_BREAKDOWN_MONTHS,
    RentVsBuyInputs,
    RentVsBuySnapshot,
    NetWorthBreakevenDetails,
    SaleBreakevenDetails,
    EquityBreakevenDetails,
    RentVsBuyResult,
    calculate_rent_vs_buy_breakeven,
    RemortgageInputs,
    RemortgageSnapshot,
    RemortgageBreakevenDetails,
    InterestSavingsDetails,
    RemortgageResult,
    calculate_remortgage_breakeven,
    calculate_cashback_amount,
    CashbackOption,
    CashbackBreakevenInputs,
    CashbackOptionResult,
    CashbackSnapshot,
    CashbackPairBreakeven,
    CashbackBreakevenResult,
    calculate_cashback_breakeven,
    format_breakeven_period,
)

__all__ = [
    "__version__",
    # Data model
    "RateType",
    "AllowanceType",
    "AllowanceBasis",
    "TransactionPeriod",
    "OverpaymentType",
    "OverpaymentFrequency",
    "OverpaymentEffect",
    "ConstructionRepaymentType",
    "SelfBuildPhase",
    "CashbackType",
    "PropertyType",
    "BER_RATINGS",
    "DEFAULT_BER",
    "BTL_BUYER_TYPES",
    "MortgageRate",
    "CustomRate",
    "Lender",
    "OverpaymentPolicy",
    "RatePeriod",
    "ResolvedRatePeriod",
    "OverpaymentConfig",
    "DrawdownStage",
    "SelfBuildConfig",
    "SimulationInput",
    "SimulationState",
    "AprcConfig",
    "CashbackConfig",
    # Calendar helpers
    "parse_start_date",
    "add_months",
    "calendar_date_for_month",
    "date_string_for_month",
    "calendar_year_for_month",
    "is_first_month_of_calendar_year",
    # Payment math
    "monthly_payment",
    "remaining_balance",
    "monthly_follow_on",
    "total_repayable",
    "follow_on_ltv",
    "cost_of_credit_percent",
    "amortization_arrays",
    # Rates
    "BUFFER_MONTHS",
    "rate_label",
    "variable_buffer_label",
    "is_valid_follow_on_rate",
    "find_variable_rate",
    "can_rate_be_repeated",
    "is_rate_eligible_for_balance",
    "RepeatingPeriodsConfig",
    "generate_repeating_rate_periods",
    # Self-build
    "DRAWDOWN_TOLERANCE",
    "get_drawdown_for_month",
    "get_cumulative_drawn",
    "get_final_drawdown_month",
    "get_construction_end_month",
    "get_interest_only_end_month",
    "get_remaining_term_from_repayment",
    "is_self_build_active",
    "get_initial_self_build_balance",
    "DrawdownValidation",
    "validate_drawdown_total",
    "ResolvedDrawdownStage",
    "drawdown_stages_with_cumulative",
    "determine_phase",
    "is_interest_only_month",
    "interest_only_payment",
    "StandardAmortization",
    "SelfBuildSchedule",
    "strategy_for",
    # Overpayments
    "max_monthly_overpayment_for_year",
    "is_constant_allowance_policy",
    "calculate_allowance",
    "describe_policy",
    "YearlyOverpaymentPlan",
    "YearBoundary",
    "calendar_year_boundaries",
    "yearly_overpayment_plans",
    "transaction_period_key",
    "AppliedOverpayment",
    "OverpaymentResult",
    "config_applies",
    "overpayment_for_month",
    "overpayment_maps",
    # Simulation
    "PAID_OFF_THRESHOLD",
    "find_rate_period_for_month",
    "resolve_rate_period",
    "resolve_rate_periods",
    "WarningType",
    "SimulationWarning",
    "AmortizationMonth",
    "AmortizationResult",
    "calculate_amortization",
    "calculate_baseline_interest",
    "AmortizationYear",
    "aggregate_by_year",
    "SimulationSummary",
    "calculate_summary",
    "MilestoneType",
    "MILESTONE_LABELS",
    "Milestone",
    "calculate_milestones",
    "SimulationCompleteness",
    "calculate_simulation_completeness",
    "BufferSuggestion",
    "calculate_buffer_suggestions",
    # APRC
    "aprc_cash_flows",
    "calculate_aprc",
    "infer_follow_on_rate",
    "round_half_up",
    # Fees
    "ESTIMATED_LEGAL_FEES",
    "ESTIMATED_REMORTGAGE_LEGAL_FEES",
    "VAT_RATE_NEW_BUILD",
    "VAT_RATE_NEW_APARTMENT",
    "VAT_RATE_EXISTING",
    "stamp_duty",
    "PropertyVat",
    "vat_rate_for",
    "property_vat",
    # Breakeven
    "DEFAULT_RENT_INFLATION",
    "DEFAULT_HOME_APPRECIATION",
    "DEFAULT_MAINTENANCE_RATE",
    "DEFAULT_OPPORTUNITY_COST_RATE",
    "DEFAULT_SALE_COST_RATE",
    "DEFAULT_SERVICE_CHARGE",
    "DEFAULT_SERVICE_CHARGE_INCREASE",
    "MONTHLY_BREAKDOWN_MONTHS",
    "RentVsBuyInputs",
    "RentVsBuySnapshot",
    "NetWorthBreakevenDetails",
    "SaleBreakevenDetails",
    "EquityBreakevenDetails",
    "RentVsBuyResult",
    "calculate_rent_vs_buy_breakeven",
    "RemortgageInputs",
    "RemortgageSnapshot",
    "RemortgageBreakevenDetails",
    "InterestSavingsDetails",
    "RemortgageResult",
    "calculate_remortgage_breakeven",
    "calculate_cashback_amount",
    "CashbackOption",
    "CashbackBreakevenInputs",
    "CashbackOptionResult",
    "CashbackSnapshot",
    "CashbackPairBreakeven",
    "CashbackBreakevenResult",
    "calculate_cashback_breakeven",
    "format_breakeven_period",
]
