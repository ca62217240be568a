"""
Intake service for turning a confirmed payment into grading records.

Handles:
- Validation that the submission contains at least one card
- Verification that the amount paid matches the submission price
- Creation of one order and one pending grading record per card
- Reporting of partially persisted orders (never swallowed, never retried)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import UUID, uuid4

from domain.errors import AmountMismatch, GradingValidationError, NotFound, PartialIntakeFailure
from domain.grading_record import (
    CardDetails,
    CustomerInfo,
    GradingRecord,
    GradingStatus,
    ServiceType,
    ShippingMethod,
)
from domain.order import Order, PaymentStatus
from domain.time import utc_now
from repositories.grading_store import GradingStore
from services.pricing_service import quote_intake

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IntakeRequest:
    """
    Request to register a paid submission.

    cards keeps the order in which the customer listed them.
    """
    service_type: ServiceType
    cards: Sequence[CardDetails]
    customer: CustomerInfo
    shipping_method: ShippingMethod
    amount_paid: Decimal
    payment_reference: Optional[str] = None  # External payment processor session
    user_id: Optional[UUID] = None


@dataclass(frozen=True, slots=True)
class IntakeResult:
    """
    Result of a successful intake.

    order: The stored order (payment completed)
    records: One pending grading record per submitted card, in request order
    """
    order: Order
    records: List[GradingRecord] = field(default_factory=list)

    @property
    def order_id(self) -> UUID:
        return self.order.order_id


def create_order(
    request: IntakeRequest,
    store: GradingStore,
    *,
    now: Optional[datetime] = None,
) -> IntakeResult:
    """
    Register a paid submission.

    Process:
    1. Reject an empty card list
    2. Price the submission and compare with the amount paid (exactly)
    3. Store the order
    4. Store one pending grading record per card, counting successes
    5. If any record fails, raise PartialIntakeFailure with the count stored

    Args:
        request: IntakeRequest built from the confirmed checkout
        store: Grading store to write to
        now: Creation timestamp (default: current UTC time)

    Returns:
        IntakeResult with the order and its grading records

    Raises:
        GradingValidationError: If no card was submitted
        AmountMismatch: If amount_paid differs from the submission price
        PartialIntakeFailure: If only some grading records were stored

    Example:
        result = create_order(request, store)
        print(f"Order {result.order_id}: {len(result.records)} cards pending")
    """
    card_count = len(request.cards)

    # 1. Validate cards
    if card_count == 0:
        raise GradingValidationError("A submission must contain at least one card")

    # 2. Verify payment amount
    quote = quote_intake(request.service_type, card_count, request.shipping_method)
    paid = request.amount_paid

    # Exact comparison: 40 matches 40.00, 40.004 does not.
    if not paid.is_finite() or paid != quote.total:
        logger.warning(
            "Amount paid does not match submission price",
            extra={
                "expected": str(quote.total),
                "paid": str(paid),
                "payment_reference": request.payment_reference,
            },
        )
        raise AmountMismatch(expected=quote.total, paid=paid)

    created_at = now or utc_now()

    # 3. Store order
    order = Order(
        order_id=uuid4(),
        service_type=request.service_type,
        shipping_method=request.shipping_method,
        card_count=card_count,
        total_amount=quote.total,
        currency=quote.currency,
        payment_status=PaymentStatus.COMPLETED,
        created_at=created_at,
        payment_reference=request.payment_reference,
        user_id=request.user_id,
    )
    store.insert_order(order)

    # 4. Store grading records
    records: List[GradingRecord] = []

    for card in request.cards:
        record = GradingRecord(
            record_id=uuid4(),
            order_id=order.order_id,
            card=card,
            customer=request.customer,
            service_type=request.service_type,
            shipping_method=request.shipping_method,
            status=GradingStatus.PENDING,
            created_at=created_at,
            user_id=request.user_id,
        )

        try:
            store.insert_record(record)
        except Exception as e:
            # 5. Partial intake: report, never retry
            logger.error(
                "Intake stopped after a failed grading record insert",
                extra={
                    "order_id": str(order.order_id),
                    "created_count": len(records),
                    "requested_count": card_count,
                    "error": str(e),
                    "incident": "partial_intake",
                },
            )
            raise PartialIntakeFailure(order.order_id, len(records), card_count) from e

        records.append(record)

    logger.info(
        "Order registered",
        extra={
            "order_id": str(order.order_id),
            "card_count": card_count,
            "total_amount": str(order.total_amount),
            "service_type": order.service_type.value,
        },
    )

    return IntakeResult(order=order, records=records)


def get_order(order_id: UUID, store: GradingStore) -> Order:
    """
    Fetch an order by id.

    Raises:
        NotFound: If no order has this id
    """
    order = store.get_order(order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found")
    return order


def flag_order_for_reconciliation(order_id: UUID, store: GradingStore) -> None:
    """
    Mark an order for manual reconciliation after a partial intake.

    Example:
        try:
            create_order(request, store)
        except PartialIntakeFailure as e:
            flag_order_for_reconciliation(e.order_id, store)
            raise
    """
    store.flag_order_for_reconciliation(order_id)

    logger.warning(
        "Order flagged for manual reconciliation",
        extra={"order_id": str(order_id)},
    )


__all__ = [
    "IntakeRequest",
    "IntakeResult",
    "create_order",
    "flag_order_for_reconciliation",
    "get_order",
]
