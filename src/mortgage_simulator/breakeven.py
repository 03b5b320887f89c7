# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
"""
Breakeven simulators (euros).

    rent vs buy   when does owning beat renting?
    remortgage    when do lower payments repay the cost of switching?
    cashback      which rate/cashback offer is cheapest over the comparison period?

Path-independent quantities (rent, home value, mortgage balance) are built
as numpy vectors indexed by month; only the renter's side investment, whose
contributions depend on the running comparison, is accumulated in a loop.
Breakeven months are the first month a condition holds, None when it never
does within the horizon (math.inf for the remortgage breakeven).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
import numpy as np

from mortgage_simulator.fees import (
    ESTIMATED_LEGAL_FEES,
    ESTIMATED_REMORTGAGE_LEGAL_FEES,
    property_vat,
    stamp_duty,
)
from mortgage_simulator.models import CashbackConfig, CashbackType, PropertyType
from mortgage_simulator.payments import amortization_arrays, monthly_payment

__version__ = "0.1.0"

DEFAULT_RENT_INFLATION = 2              # % per year
DEFAULT_HOME_APPRECIATION = 4           # % per year
DEFAULT_MAINTENANCE_RATE = 1            # % of home value per year
DEFAULT_OPPORTUNITY_COST_RATE = 6       # % annual return on invested savings
DEFAULT_SALE_COST_RATE = 3              # % of sale price
DEFAULT_SERVICE_CHARGE = 0              # per month
DEFAULT_SERVICE_CHARGE_INCREASE = 0     # % per year

MONTHLY_BREAKDOWN_MONTHS = 48


def _first_month(condition: np.ndarray) -> int | None:
    """1-based index of the first True entry, or None."""
    hits = np.flatnonzero(condition)
    if hits.size == 0:
        return None
    return int(hits[0]) + 1


def _monthly_compound_rate(annual_percent: float) -> float:
    return (1 + annual_percent / 100) ** (1 / 12) - 1


# =============================================================================
# Rent vs Buy
# =============================================================================

@dataclass
class RentVsBuyInputs:
    property_value: float
    deposit: float
    mortgage_term_months: int
    mortgage_rate: float
    current_monthly_rent: float
    legal_fees: float = ESTIMATED_LEGAL_FEES
    property_type: PropertyType | str = PropertyType.EXISTING
    price_includes_vat: bool = True
    rent_inflation_rate: float = DEFAULT_RENT_INFLATION
    home_appreciation_rate: float = DEFAULT_HOME_APPRECIATION
    maintenance_rate: float = DEFAULT_MAINTENANCE_RATE
    opportunity_cost_rate: float = DEFAULT_OPPORTUNITY_COST_RATE
    sale_cost_rate: float = DEFAULT_SALE_COST_RATE
    service_charge: float = DEFAULT_SERVICE_CHARGE
    service_charge_increase: float = DEFAULT_SERVICE_CHARGE_INCREASE

    def __post_init__(self) -> None:
        self.property_type = PropertyType(self.property_type)
        if self.deposit < 0:
            raise ValueError(f"deposit must be non-negative, got {self.deposit}")


@dataclass
class RentVsBuySnapshot:
    """Rounded position at the end of a month (monthly breakdown) or year."""
    period: int                     # month number or year number
    cumulative_rent: float
    cumulative_ownership: float
    home_value: float
    mortgage_balance: float
    equity: float
    net_ownership_cost: float


@dataclass
class NetWorthBreakevenDetails:
    cumulative_rent: float
    net_ownership_cost: float
    cumulative_ownership: float
    equity: float


@dataclass
class SaleBreakevenDetails:
    home_value: float
    sale_costs: float
    mortgage_balance: float
    sale_proceeds: float
    upfront_costs: float


@dataclass
class EquityBreakevenDetails:
    home_value: float
    mortgage_balance: float
    equity: float
    upfront_costs: float


@dataclass
class RentVsBuyResult:
    breakeven_month: int | None
    breakeven_details: NetWorthBreakevenDetails | None
    break_even_on_sale_month: int | None
    break_even_on_sale_details: SaleBreakevenDetails | None
    equity_recovery_month: int | None
    equity_recovery_details: EquityBreakevenDetails | None
    monthly_mortgage_payment: float
    mortgage_amount: float
    deposit: float
    stamp_duty: float
    legal_fees: float
    vat_amount: float
    purchase_costs: float
    upfront_costs: float
    yearly_breakdown: list[RentVsBuySnapshot] = field(default_factory=list)
    monthly_breakdown: list[RentVsBuySnapshot] = field(default_factory=list)


def calculate_rent_vs_buy_breakeven(inputs: RentVsBuyInputs) -> RentVsBuyResult:
    """
    Compare renting with buying month by month over the mortgage term.

    Three breakevens are reported:
        net worth      cumulative ownership cost - equity < cumulative rent
        sale           home value - sale costs - balance > upfront costs
        equity         home value - balance > upfront costs

    Ownership cost each month is the mortgage payment, maintenance on the
    current home value, the service charge, and the opportunity cost: the
    growth of a side investment holding the upfront costs plus whatever
    renting saved each month.

    Rent and service charge step up at the start of each year; the home
    appreciates with monthly compounding. Stamp duty is charged on the net
    (ex-VAT) price; VAT on a VAT-exclusive price is a purchase cost.

    Args:
        inputs: RentVsBuyInputs (euros, annual rates as percentages)

    Returns:
        RentVsBuyResult with yearly snapshots and the first 48 months
    """
    n = max(0, inputs.mortgage_term_months)
    mortgage_amount = inputs.property_value - inputs.deposit

    vat = property_vat(inputs.property_value, inputs.property_type, inputs.price_includes_vat)
    duty = stamp_duty(vat.net_price)
    vat_cost = 0.0 if inputs.price_includes_vat else vat.vat_amount
    purchase_costs = duty + inputs.legal_fees + vat_cost
    upfront_costs = inputs.deposit + purchase_costs
    payment = monthly_payment(mortgage_amount, inputs.mortgage_rate, n)

    months = np.arange(1, n + 1)
    years_elapsed = (months - 1) // 12
    rent = inputs.current_monthly_rent * np.power(1 + inputs.rent_inflation_rate / 100, years_elapsed)
    service = inputs.service_charge * np.power(1 + inputs.service_charge_increase / 100, years_elapsed)
    home_value = inputs.property_value * np.power(
        1 + _monthly_compound_rate(inputs.home_appreciation_rate), months
    )
    maintenance = home_value * inputs.maintenance_rate / 100 / 12
    ownership = payment + maintenance + service
    _, balances, _, _ = amortization_arrays(mortgage_amount, inputs.mortgage_rate, n)
    balance = balances[1:]

    # Renter invests the upfront costs plus any month where renting is cheaper
    opportunity_rate = _monthly_compound_rate(inputs.opportunity_cost_rate)
    opportunity = np.zeros(n)
    invested = upfront_costs
    for i in range(n):
        growth = invested * opportunity_rate
        invested += growth
        if rent[i] < ownership[i]:
            invested += ownership[i] - rent[i]
        opportunity[i] = growth

    cumulative_rent = np.cumsum(rent)
    cumulative_ownership = upfront_costs + np.cumsum(ownership + opportunity)
    equity = home_value - balance
    sale_costs = home_value * inputs.sale_cost_rate / 100
    sale_proceeds = home_value - sale_costs - balance
    net_ownership = cumulative_ownership - equity

    breakeven = _first_month(net_ownership < cumulative_rent)
    on_sale = _first_month(sale_proceeds > upfront_costs)
    recovery = _first_month(equity > upfront_costs)

    def snapshot(i: int, period: int) -> RentVsBuySnapshot:
        return RentVsBuySnapshot(
            period=period,
            cumulative_rent=round(cumulative_rent[i]),
            cumulative_ownership=round(cumulative_ownership[i]),
            home_value=round(home_value[i]),
            mortgage_balance=round(balance[i]),
            equity=round(equity[i]),
            net_ownership_cost=round(net_ownership[i]),
        )

    result = RentVsBuyResult(
        breakeven_month=breakeven,
        breakeven_details=None,
        break_even_on_sale_month=on_sale,
        break_even_on_sale_details=None,
        equity_recovery_month=recovery,
        equity_recovery_details=None,
        monthly_mortgage_payment=round(payment, 2),
        mortgage_amount=round(mortgage_amount),
        deposit=round(inputs.deposit),
        stamp_duty=round(duty),
        legal_fees=inputs.legal_fees,
        vat_amount=round(vat_cost),
        purchase_costs=round(purchase_costs),
        upfront_costs=round(upfront_costs),
        yearly_breakdown=[snapshot(m - 1, m // 12) for m in range(12, n + 1, 12)],
        monthly_breakdown=[snapshot(i, i + 1) for i in range(min(n, MONTHLY_BREAKDOWN_MONTHS))],
    )

    if breakeven is not None:
        i = breakeven - 1
        result.breakeven_details = NetWorthBreakevenDetails(
            round(cumulative_rent[i]), round(net_ownership[i]),
            round(cumulative_ownership[i]), round(equity[i]),
        )
    if on_sale is not None:
        i = on_sale - 1
        result.break_even_on_sale_details = SaleBreakevenDetails(
            round(home_value[i]), round(sale_costs[i]), round(balance[i]),
            round(sale_proceeds[i]), round(upfront_costs),
        )
    if recovery is not None:
        i = recovery - 1
        result.equity_recovery_details = EquityBreakevenDetails(
            round(home_value[i]), round(balance[i]), round(equity[i]), round(upfront_costs),
        )
    return result


# =============================================================================
# Remortgage
# =============================================================================

@dataclass
class RemortgageInputs:
    outstanding_balance: float
    current_rate: float
    new_rate: float
    remaining_term_months: int
    legal_fees: float = ESTIMATED_REMORTGAGE_LEGAL_FEES
    cashback: float = 0.0
    erc: float = 0.0                # early repayment charge


@dataclass
class RemortgageSnapshot:
    period: int
    cumulative_savings: float
    net_savings: float
    remaining_balance_current: float
    remaining_balance_new: float
    interest_paid_current: float
    interest_paid_new: float
    interest_saved: float


@dataclass
class RemortgageBreakevenDetails:
    monthly_savings: float
    breakeven_months: int
    switching_costs: float
    cumulative_savings_at_breakeven: float


@dataclass
class InterestSavingsDetails:
    total_interest_current: float
    total_interest_new: float
    interest_saved: float
    switching_costs: float
    net_benefit: float


@dataclass
class RemortgageResult:
    breakeven_months: float         # math.inf when switching never pays off
    breakeven_details: RemortgageBreakevenDetails | None
    current_monthly_payment: float
    new_monthly_payment: float
    monthly_savings: float
    legal_fees: float
    cashback: float
    erc: float
    switching_costs: float
    year_one_savings: float
    total_savings_over_term: float
    interest_savings_details: InterestSavingsDetails
    yearly_breakdown: list[RemortgageSnapshot] = field(default_factory=list)
    monthly_breakdown: list[RemortgageSnapshot] = field(default_factory=list)


def calculate_remortgage_breakeven(inputs: RemortgageInputs) -> RemortgageResult:
    """
    Months until the savings from switching rates repay the switching costs.

        switching costs = max(0, legal fees - cashback + ERC)
        breakeven       = first month with cumulative savings >= switching costs

    Both paths amortize the outstanding balance over the remaining term.
    The breakeven is math.inf unless the new payment is lower.

    Args:
        inputs: RemortgageInputs (euros, annual rates as percentages)

    Returns:
        RemortgageResult
    """
    n = max(0, inputs.remaining_term_months)
    current_payment = monthly_payment(inputs.outstanding_balance, inputs.current_rate, n)
    new_payment = monthly_payment(inputs.outstanding_balance, inputs.new_rate, n)
    savings = current_payment - new_payment
    switching_costs = max(0.0, inputs.legal_fees - inputs.cashback + inputs.erc)

    _, bal_current, int_current, _ = amortization_arrays(inputs.outstanding_balance, inputs.current_rate, n)
    _, bal_new, int_new, _ = amortization_arrays(inputs.outstanding_balance, inputs.new_rate, n)
    cum_interest_current = np.cumsum(int_current[1:])
    cum_interest_new = np.cumsum(int_new[1:])
    cumulative_savings = savings * np.arange(1, n + 1)

    breakeven: float = math.inf
    details = None
    if savings > 0:
        month = _first_month(cumulative_savings >= switching_costs)
        if month is not None:
            breakeven = month
            details = RemortgageBreakevenDetails(
                monthly_savings=round(savings, 2),
                breakeven_months=month,
                switching_costs=switching_costs,
                cumulative_savings_at_breakeven=round(cumulative_savings[month - 1]),
            )

    def snapshot(i: int, period: int) -> RemortgageSnapshot:
        cumulative = round(cumulative_savings[i])
        return RemortgageSnapshot(
            period=period,
            cumulative_savings=cumulative,
            net_savings=cumulative - switching_costs,
            remaining_balance_current=round(bal_current[i + 1]),
            remaining_balance_new=round(bal_new[i + 1]),
            interest_paid_current=round(cum_interest_current[i]),
            interest_paid_new=round(cum_interest_new[i]),
            interest_saved=round(cum_interest_current[i] - cum_interest_new[i]),
        )

    total_current = float(cum_interest_current[-1]) if n else 0.0
    total_new = float(cum_interest_new[-1]) if n else 0.0
    interest_saved = total_current - total_new

    return RemortgageResult(
        breakeven_months=breakeven,
        breakeven_details=details,
        current_monthly_payment=round(current_payment, 2),
        new_monthly_payment=round(new_payment, 2),
        monthly_savings=round(savings, 2),
        legal_fees=inputs.legal_fees,
        cashback=inputs.cashback,
        erc=inputs.erc,
        switching_costs=switching_costs,
        year_one_savings=round(savings * min(12, n) - switching_costs),
        total_savings_over_term=round(savings * n - switching_costs),
        interest_savings_details=InterestSavingsDetails(
            total_interest_current=round(total_current),
            total_interest_new=round(total_new),
            interest_saved=round(interest_saved),
            switching_costs=switching_costs,
            net_benefit=round(interest_saved - switching_costs),
        ),
        yearly_breakdown=[snapshot(m - 1, m // 12) for m in range(12, n + 1, 12)],
        monthly_breakdown=[snapshot(i, i + 1) for i in range(min(n, MONTHLY_BREAKDOWN_MONTHS))],
    )


# =============================================================================
# Cashback Comparison
# =============================================================================

def calculate_cashback_amount(mortgage_amount: float, config: CashbackConfig) -> float:
    """Cashback in euros: flat value or a percentage of the loan, limited by the cap."""
    if config.type is CashbackType.FLAT:
        amount = config.value
    else:
        amount = mortgage_amount * config.value / 100
    if config.cap is not None and amount > config.cap:
        amount = config.cap
    return amount


@dataclass
class CashbackOption:
    label: str
    rate: float
    cashback_type: CashbackType | str
    cashback_value: float
    cashback_cap: float | None = None
    fixed_period_years: int = 0     # 0 = variable

    def __post_init__(self) -> None:
        self.cashback_type = CashbackType(self.cashback_type)


@dataclass
class CashbackBreakevenInputs:
    mortgage_amount: float
    mortgage_term_months: int
    options: list[CashbackOption]


@dataclass
class CashbackOptionResult:
    label: str
    rate: float
    fixed_period_years: int
    cashback_amount: float
    monthly_payment: float
    monthly_payment_diff: float     # vs the cheapest monthly payment
    interest_paid: float
    principal_paid: float
    balance_at_end: float
    net_cost: float                 # interest paid - cashback
    adjusted_balance: float         # balance at end - cashback


@dataclass
class CashbackSnapshot:
    """Per-option values at the end of a month or year, in option order."""
    period: int
    net_costs: list[float]
    balances: list[float]
    adjusted_balances: list[float]
    interest_paid: list[float]
    principal_paid: list[float]


@dataclass
class CashbackPairBreakeven:
    option_a_index: int
    option_b_index: int
    option_a_label: str
    option_b_label: str
    breakeven_month: int | None
    savings_at_end: float           # b's net cost - a's net cost at the end
    description: str


@dataclass
class CashbackBreakevenResult:
    options: list[CashbackOptionResult]
    cheapest_monthly_index: int
    cheapest_net_cost_index: int
    cheapest_adjusted_balance_index: int
    savings_vs_worst: float
    comparison_period_months: int
    comparison_period_years: int
    all_variable: bool
    yearly_breakdown: list[CashbackSnapshot] = field(default_factory=list)
    monthly_breakdown: list[CashbackSnapshot] = field(default_factory=list)
    projection_year: CashbackSnapshot | None = None
    breakevens: list[CashbackPairBreakeven] = field(default_factory=list)


def _pair_breakeven(
        a: int,
        b: int,
        labels: list[str],
        net_costs: np.ndarray
) -> CashbackPairBreakeven:
    """
    First month the option behind on cumulative net cost catches up.

    The option with the higher net cost in month 1 is behind; the breakeven
    is the first month its net cost is no higher than the other's.
    """
    diff = net_costs[a] - net_costs[b]
    savings = float(-diff[-1])
    if diff[0] > 0:
        behind, ahead = a, b
        month = _first_month(diff <= 0)
    else:
        behind, ahead = b, a
        month = _first_month(diff >= 0) if diff[0] < 0 else None
    description = f"{labels[behind]} becomes cheaper than {labels[ahead]}"
    return CashbackPairBreakeven(a, b, labels[a], labels[b], month, savings, description)


def calculate_cashback_breakeven(inputs: CashbackBreakevenInputs) -> CashbackBreakevenResult:
    """
    Compare rate/cashback offers over a shared comparison period.

    The comparison period is the longest fixed period among the options
    (capped at the term), or the whole term when every option is variable.
    Each option amortizes the full loan over the term at its rate; its net
    cost is the interest paid over the comparison period minus its cashback.

    Args:
        inputs: CashbackBreakevenInputs (euros)

    Returns:
        CashbackBreakevenResult with rankings, breakdowns and pairwise
        breakevens for every unordered pair of options

    Raises:
        ValueError: If no options are given
    """
    if not inputs.options:
        raise ValueError("at least one cashback option is required")

    term = inputs.mortgage_term_months
    amount = inputs.mortgage_amount
    longest_fixed = max(o.fixed_period_years or 0 for o in inputs.options)
    all_variable = longest_fixed == 0
    n = term if all_variable else min(longest_fixed * 12, term)
    horizon = min(n + 12, term)

    payments = [monthly_payment(amount, o.rate, term) for o in inputs.options]
    cashbacks = [
        calculate_cashback_amount(amount, CashbackConfig(o.cashback_type, o.cashback_value, o.cashback_cap))
        for o in inputs.options
    ]

    # Rows are options, columns months 1..horizon
    balances = np.empty((len(inputs.options), horizon))
    cum_interest = np.empty_like(balances)
    for i, option in enumerate(inputs.options):
        _, bal, interest, _ = amortization_arrays(amount, option.rate, term, horizon)
        balances[i] = bal[1:]
        cum_interest[i] = np.cumsum(interest[1:])
    cash = np.array(cashbacks)[:, None]
    net_costs = cum_interest - cash
    principal_paid = amount - balances
    adjusted = balances - cash

    min_payment = min(payments)
    option_results = []
    for i, option in enumerate(inputs.options):
        interest_paid = round(cum_interest[i, n - 1]) if n else 0
        balance_at_end = round(balances[i, n - 1]) if n else round(amount)
        option_results.append(CashbackOptionResult(
            label=option.label,
            rate=option.rate,
            fixed_period_years=option.fixed_period_years or 0,
            cashback_amount=cashbacks[i],
            monthly_payment=round(payments[i], 2),
            monthly_payment_diff=round(payments[i] - min_payment, 2),
            interest_paid=interest_paid,
            principal_paid=round(amount - balance_at_end),
            balance_at_end=balance_at_end,
            net_cost=interest_paid - cashbacks[i],
            adjusted_balance=balance_at_end - cashbacks[i],
        ))

    def snapshot(col: int, period: int) -> CashbackSnapshot:
        return CashbackSnapshot(
            period=period,
            net_costs=[round(v) for v in net_costs[:, col]],
            balances=[round(v) for v in balances[:, col]],
            adjusted_balances=[round(v) for v in adjusted[:, col]],
            interest_paid=[round(v) for v in cum_interest[:, col]],
            principal_paid=[round(v) for v in principal_paid[:, col]],
        )

    net = [r.net_cost for r in option_results]
    labels = [o.label for o in inputs.options]
    result = CashbackBreakevenResult(
        options=option_results,
        cheapest_monthly_index=int(np.argmin(payments)),
        cheapest_net_cost_index=int(np.argmin(net)),
        cheapest_adjusted_balance_index=int(np.argmin([r.adjusted_balance for r in option_results])),
        savings_vs_worst=max(net) - min(net),
        comparison_period_months=n,
        comparison_period_years=math.ceil(n / 12),
        all_variable=all_variable,
        yearly_breakdown=[
            snapshot(min(year * 12, n) - 1, year) for year in range(1, math.ceil(n / 12) + 1)
        ],
        monthly_breakdown=[snapshot(m, m + 1) for m in range(min(n, MONTHLY_BREAKDOWN_MONTHS))],
    )
    if horizon > n:
        result.projection_year = snapshot(horizon - 1, math.ceil(n / 12) + 1)
    if n:
        result.breakevens = [
            _pair_breakeven(a, b, labels, net_costs[:, :n])
            for a in range(len(labels)) for b in range(a + 1, len(labels))
        ]
    return result


def format_breakeven_period(months: float | None) -> str:
    """
    Human-readable breakeven period: "3 months", "1 year 6 months", "Never".

    Fractional months round up.
    """
    if months is None or not math.isfinite(months):
        return "Never"
    total = math.ceil(months)
    years, rest = divmod(total, 12)

    def plural(count: int, unit: str) -> str:
        return f"{count} {unit}{'' if count == 1 else 's'}"

    if years == 0:
        return plural(rest, "month")
    if rest == 0:
        return plural(years, "year")
    return f"{plural(years, 'year')} {plural(rest, 'month')}"
