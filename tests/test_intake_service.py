"""
Tests for `services/intake_service.py` and `services/pricing_service.py`.

Covers contract rules:
- One order and exactly one pending grading record per card are created.
- The amount paid must equal the submission price, or nothing is written.
- A failed record insert raises PartialIntakeFailure with the stored count.
- Flagged orders are marked for manual reconciliation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import CUSTOMER_ID, make_card, make_customer
from domain.errors import AmountMismatch, GradingValidationError, PartialIntakeFailure, StoreError
from domain.grading_record import GradingStatus, ServiceType, ShippingMethod
from domain.order import PaymentStatus
from repositories.memory_store import InMemoryGradingStore
from services.intake_service import (
    IntakeRequest,
    create_order,
    flag_order_for_reconciliation,
)
from services.pricing_service import quote_intake

NOW = datetime(2025, 3, 4, 15, 30, 0, tzinfo=timezone.utc)


class _FailingStore(InMemoryGradingStore):
    """Store that fails on the nth grading record insert."""

    def __init__(self, fail_on: int) -> None:
        super().__init__()
        self._fail_on = fail_on
        self._inserts = 0

    def insert_record(self, record) -> None:
        self._inserts += 1
        if self._inserts == self._fail_on:
            raise StoreError("connection reset")
        super().insert_record(record)


def _request(card_count: int = 2, amount: str = "40.00", **overrides) -> IntakeRequest:
    fields = dict(
        service_type=ServiceType.STANDARD,
        cards=[make_card(f"Card {i}") for i in range(card_count)],
        customer=make_customer(),
        shipping_method=ShippingMethod.STANDARD,
        amount_paid=Decimal(amount),
        payment_reference="cs_test_123",
        user_id=CUSTOMER_ID,
    )
    fields.update(overrides)
    return IntakeRequest(**fields)


def test_quote_itemises_price() -> None:
    """Verify unit price, subtotal and flat shipping fee."""

    quote = quote_intake(ServiceType.EXPRESS, 3, ShippingMethod.INTERNATIONAL)

    assert quote.unit_price == Decimal("20.00")
    assert quote.cards_subtotal == Decimal("60.00")
    assert quote.shipping_fee == Decimal("35.00")
    assert quote.total == Decimal("95.00")
    assert quote.currency == "EUR"


def test_quote_requires_a_card() -> None:
    """Verify zero-card quotes are refused."""

    with pytest.raises(ValueError):
        quote_intake(ServiceType.PREMIUM, 0, ShippingMethod.EXPRESS)


def test_two_card_standard_order(store) -> None:
    """Verify a 2-card standard order paid 40.00 creates two pending records."""

    result = create_order(_request(), store, now=NOW)

    order = store.get_order(result.order_id)
    assert order.total_amount == Decimal("40.00")
    assert order.payment_status is PaymentStatus.COMPLETED
    assert order.card_count == 2
    assert not order.needs_reconciliation

    records = store.list_records(order_id=result.order_id)
    assert len(records) == 2
    assert {r.record_id for r in records} == {r.record_id for r in result.records}
    assert all(r.status is GradingStatus.PENDING for r in records)
    assert all(r.certificate_code is None for r in records)
    assert all(r.created_at == NOW for r in records)
    assert [r.card.name for r in result.records] == ["Card 0", "Card 1"]
    assert store.list_history() == []


def test_amount_mismatch_writes_nothing(store) -> None:
    """Verify an underpaid order is refused before anything is stored."""

    with pytest.raises(AmountMismatch) as excinfo:
        create_order(_request(amount="35.00"), store, now=NOW)

    assert excinfo.value.expected == Decimal("40.00")
    assert excinfo.value.paid == Decimal("35.00")
    assert store.list_orders() == []
    assert store.list_records() == []


def test_amount_ignores_trailing_zeros(store) -> None:
    """Verify 40 and 40.00 are the same amount."""

    result = create_order(_request(amount="40"), store, now=NOW)

    assert len(result.records) == 2


@pytest.mark.parametrize("amount", ["40.004", "39.999", "1e30", "NaN", "sNaN"])
def test_amount_must_match_exactly(store, amount) -> None:
    """Verify sub-cent, huge and non-numeric amounts are a mismatch, not a crash."""

    with pytest.raises(AmountMismatch) as excinfo:
        create_order(_request(amount=amount), store, now=NOW)

    assert excinfo.value.expected == Decimal("40.00")
    assert store.list_orders() == []
    assert store.list_records() == []


def test_empty_submission_is_refused(store) -> None:
    """Verify a submission needs at least one card."""

    with pytest.raises(GradingValidationError):
        create_order(_request(card_count=0, amount="10.00"), store, now=NOW)

    assert store.list_orders() == []


def test_partial_intake_failure_reports_created_count() -> None:
    """Verify a failure on card 3 of 5 reports 2 created records."""

    store = _FailingStore(fail_on=3)

    with pytest.raises(PartialIntakeFailure) as excinfo:
        create_order(_request(card_count=5, amount="85.00"), store, now=NOW)

    error = excinfo.value
    assert error.created_count == 2
    assert error.requested_count == 5
    assert isinstance(error.__cause__, StoreError)
    assert len(store.list_records(order_id=error.order_id)) == 2


def test_flag_order_for_reconciliation() -> None:
    """Verify a partially stored order can be flagged for manual review."""

    store = _FailingStore(fail_on=2)

    with pytest.raises(PartialIntakeFailure) as excinfo:
        create_order(_request(), store, now=NOW)

    flag_order_for_reconciliation(excinfo.value.order_id, store)

    assert store.get_order(excinfo.value.order_id).needs_reconciliation
