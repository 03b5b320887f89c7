# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
"""
Purchase and switching costs for Irish residential property (euros).
"""

from __future__ import annotations

from dataclasses import dataclass

from mortgage_simulator.models import PropertyType

__version__ = "0.1.0"

# Solicitor, searches, registration
ESTIMATED_LEGAL_FEES = 4000
# Switching a mortgage, all outlays included
ESTIMATED_REMORTGAGE_LEGAL_FEES = 1350

VAT_RATE_NEW_BUILD = 13.5
VAT_RATE_NEW_APARTMENT = 9
VAT_RATE_EXISTING = 0

# (upper bound, marginal rate %) bands for stamp duty
STAMP_DUTY_BANDS: tuple[tuple[float, float], ...] = (
    (1_000_000, 1.0),
    (1_500_000, 2.0),
    (float("inf"), 6.0),
)


def stamp_duty(property_value: float) -> float:
    """
    Residential stamp duty, charged cumulatively by band.

        1% up to €1M, 2% from €1M to €1.5M, 6% above €1.5M

    Example:
        >>> stamp_duty(1_200_000)
        14000.0
    """
    if property_value <= 0:
        return 0.0
    duty = 0.0
    lower = 0.0
    for upper, rate in STAMP_DUTY_BANDS:
        if property_value <= lower:
            break
        duty += (min(property_value, upper) - lower) * rate / 100
        lower = upper
    return duty


@dataclass
class PropertyVat:
    vat_amount: float
    net_price: float
    gross_price: float
    vat_rate: float


def vat_rate_for(property_type: PropertyType | str) -> float:
    property_type = PropertyType(property_type)
    if property_type is PropertyType.NEW_BUILD:
        return VAT_RATE_NEW_BUILD
    if property_type is PropertyType.NEW_APARTMENT:
        return VAT_RATE_NEW_APARTMENT
    return VAT_RATE_EXISTING


def property_vat(
        property_value: float,
        property_type: PropertyType | str,
        price_includes_vat: bool
) -> PropertyVat:
    """
    Split a price into net price and VAT.

    A VAT-inclusive price has the VAT extracted; a VAT-exclusive price has
    it added on top. Existing properties carry no VAT.
    """
    vat_rate = vat_rate_for(property_type)
    if vat_rate == 0 or property_value <= 0:
        return PropertyVat(0.0, property_value, property_value, 0)

    rate = vat_rate / 100
    if price_includes_vat:
        net = property_value / (1 + rate)
        return PropertyVat(property_value - net, net, property_value, vat_rate)
    vat = property_value * rate
    return PropertyVat(vat, property_value, property_value + vat, vat_rate)
