"""
Domain: submission orders.

An Order groups the grading records created from a single paid checkout. It is
owned by the intake pipeline; grading records reference it by order_id only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from .grading_record import ServiceType, ShippingMethod
from .time import require_utc_timestamp


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Order:
    """
    Immutable record of a paid submission.

    needs_reconciliation is set when intake could not persist every card of the
    order; such orders are reviewed manually.
    """

    order_id: UUID
    service_type: ServiceType
    shipping_method: ShippingMethod
    card_count: int
    total_amount: Decimal
    currency: str
    payment_status: PaymentStatus
    created_at: datetime
    payment_reference: Optional[str] = None  # External payment processor session (e.g., Stripe)
    user_id: Optional[UUID] = None
    needs_reconciliation: bool = False

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.card_count < 1:
            raise ValueError("an order must contain at least one card")
        if self.total_amount < 0:
            raise ValueError("total_amount must be >= 0")

    @property
    def is_paid(self) -> bool:
        return self.payment_status is PaymentStatus.COMPLETED


__all__ = ["Order", "PaymentStatus"]
