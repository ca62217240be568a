"""
Orders API Endpoints.

Endpoints for registering paid submissions and quoting submission prices.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_store, http_error, require_admin, require_intake_role, safe_error
from api.models import CreateOrderRequest, CreateOrderResponse, OrderResponse, QuoteResponse
from domain.actor import Actor
from domain.errors import GradingError, PartialIntakeFailure
from domain.grading_record import (
    CardDetails,
    CustomerInfo,
    PostalAddress,
    ServiceType,
    ShippingMethod,
)
from domain.order import Order
from repositories.grading_store import GradingStore
from services.intake_service import (
    IntakeRequest,
    create_order,
    flag_order_for_reconciliation,
    get_order,
)
from services.pricing_service import quote_intake

logger = logging.getLogger(__name__)

router = APIRouter()


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=order.order_id,
        service_type=order.service_type,
        shipping_method=order.shipping_method,
        card_count=order.card_count,
        total_amount=order.total_amount,
        currency=order.currency,
        payment_status=order.payment_status.value,
        created_at=order.created_at,
        payment_reference=order.payment_reference,
        needs_reconciliation=order.needs_reconciliation,
    )


def _intake_request(request: CreateOrderRequest) -> IntakeRequest:
    address = request.customer.address
    try:
        customer = CustomerInfo(
            name=request.customer.name,
            email=request.customer.email,
            phone=request.customer.phone,
            address=PostalAddress(
                line1=address.line1,
                city=address.city,
                state=address.state,
                postal_code=address.postal_code,
                country=address.country,
            ),
        )
        cards = [
            CardDetails(
                name=card.name,
                year=card.year,
                set_name=card.set_name,
                card_number=card.card_number,
                variant=card.variant,
                notes=card.notes,
            )
            for card in request.cards
        ]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return IntakeRequest(
        service_type=request.service_type,
        cards=cards,
        customer=customer,
        shipping_method=request.shipping_method,
        amount_paid=request.amount_paid,
        payment_reference=request.payment_reference,
        user_id=request.user_id,
    )


@router.post(
    "/orders",
    response_model=CreateOrderResponse,
    status_code=201,
    summary="Register Paid Submission",
    description="Create an order and one pending grading record per card after payment confirmation."
)
def register_order(
    request: CreateOrderRequest,
    actor: Actor = Depends(require_intake_role),
    store: GradingStore = Depends(get_store),
):
    """
    Register a paid grading submission.

    **Process:**
    1. Validates card and customer details
    2. Checks the amount paid against the submission price (422 on mismatch)
    3. Stores the order and one pending grading record per card

    **Partial intake:**
    If some grading records cannot be stored, the order is flagged for manual
    reconciliation and the request fails with 500.
    """
    try:
        result = create_order(_intake_request(request), store)

        return CreateOrderResponse(
            order=_order_response(result.order),
            grading_ids=[record.record_id for record in result.records],
        )

    except HTTPException:
        raise
    except PartialIntakeFailure as e:
        try:
            flag_order_for_reconciliation(e.order_id, store)
        except Exception:
            logger.exception(
                "Could not flag order for reconciliation",
                extra={"order_id": str(e.order_id)},
            )
        raise http_error(e)
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Order intake", e)


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    summary="Get Order",
)
def read_order(
    order_id: UUID,
    actor: Actor = Depends(require_admin),
    store: GradingStore = Depends(get_store),
):
    """Fetch a submission order (admin only)."""
    try:
        return _order_response(get_order(order_id, store))
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Order lookup", e)


@router.get(
    "/quotes",
    response_model=QuoteResponse,
    summary="Quote Submission Price",
    description="Itemised price for a submission: per-card service rate plus one flat shipping fee."
)
def quote_submission(
    service_type: ServiceType,
    shipping_method: ShippingMethod,
    card_count: int = Query(..., ge=1, description="Number of cards to submit"),
):
    """
    Calculate the price of a submission before checkout.

    **Example:** `GET /api/v1/quotes?service_type=standard&shipping_method=standard&card_count=2`
    returns a total of 40.00 EUR.
    """
    quote = quote_intake(service_type, card_count, shipping_method)

    return QuoteResponse(
        service_type=quote.service_type,
        shipping_method=quote.shipping_method,
        card_count=quote.card_count,
        unit_price=quote.unit_price,
        cards_subtotal=quote.cards_subtotal,
        shipping_fee=quote.shipping_fee,
        total=quote.total,
        currency=quote.currency,
    )
