"""
Pricing service for calculating submission quotes.

Calculates the total cost of a grading submission from the published
per-card service rates and the flat shipping fee of the chosen method.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from domain.grading_record import ServiceType, ShippingMethod
from domain.pricing import CENT, CURRENCY, SERVICE_UNIT_PRICES, SHIPPING_FEES, submission_price


@dataclass(frozen=True, slots=True)
class IntakeQuote:
    """
    Itemised submission quote.

    Includes:
    - Per-card unit price of the service
    - Card subtotal (unit price x card count)
    - Flat shipping fee (charged once per order)
    """
    service_type: ServiceType
    shipping_method: ShippingMethod
    card_count: int
    unit_price: Decimal
    cards_subtotal: Decimal
    shipping_fee: Decimal
    total: Decimal
    currency: str


def quote_intake(
    service_type: ServiceType,
    card_count: int,
    shipping_method: ShippingMethod,
) -> IntakeQuote:
    """
    Calculate a quote for submitting card_count cards.

    Args:
        service_type: Grading service tier (standard, express, premium)
        card_count: Number of cards in the submission (>= 1)
        shipping_method: Return shipping method

    Returns:
        IntakeQuote with itemised pricing

    Raises:
        ValueError: If card_count < 1

    Example:
        quote = quote_intake(ServiceType.STANDARD, 2, ShippingMethod.STANDARD)
        print(f"Total: {quote.total} {quote.currency}")  # Total: 40.00 EUR
    """
    total = submission_price(service_type, card_count, shipping_method)

    unit_price = SERVICE_UNIT_PRICES[service_type]
    cards_subtotal = (unit_price * card_count).quantize(CENT)

    return IntakeQuote(
        service_type=service_type,
        shipping_method=shipping_method,
        card_count=card_count,
        unit_price=unit_price,
        cards_subtotal=cards_subtotal,
        shipping_fee=SHIPPING_FEES[shipping_method],
        total=total,
        currency=CURRENCY,
    )


__all__ = [
    "IntakeQuote",
    "quote_intake",
]
