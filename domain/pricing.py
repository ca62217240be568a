"""
Domain: submission price function.

price(service_type, card_count, shipping_method)
    = card_count * unit price of the service + one flat shipping fee per order

Prices are in EUR and are the published submission rates.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping

from .grading_record import ServiceType, ShippingMethod

CURRENCY: str = "EUR"
CENT = Decimal("0.01")

SERVICE_UNIT_PRICES: Mapping[ServiceType, Decimal] = {
    ServiceType.STANDARD: Decimal("15.00"),
    ServiceType.EXPRESS: Decimal("20.00"),
    ServiceType.PREMIUM: Decimal("25.00"),
}

SHIPPING_FEES: Mapping[ShippingMethod, Decimal] = {
    ShippingMethod.STANDARD: Decimal("10.00"),
    ShippingMethod.EXPRESS: Decimal("25.00"),
    ShippingMethod.INTERNATIONAL: Decimal("35.00"),
}


def submission_price(
    service_type: ServiceType,
    card_count: int,
    shipping_method: ShippingMethod,
) -> Decimal:
    """
    Total price of a submission.

    Example:
        submission_price(ServiceType.STANDARD, 2, ShippingMethod.STANDARD)
        # Decimal('40.00')
    """

    if card_count < 1:
        raise ValueError("card_count must be >= 1")

    total = SERVICE_UNIT_PRICES[service_type] * card_count + SHIPPING_FEES[shipping_method]
    return total.quantize(CENT)


__all__ = [
    "CURRENCY",
    "SERVICE_UNIT_PRICES",
    "SHIPPING_FEES",
    "submission_price",
]
