"""
Tests for `services/verification_service.py` and `services/queue_service.py`.

Covers contract rules:
- Certificate lookup returns card identity and grading outcome, never PII.
- Malformed codes and bad check digits are rejected before any lookup.
- Unknown codes raise NotFound.
- The grading queue is ordered by service priority, then submission time.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import timedelta

import pytest

from conftest import CREATED_AT, make_record, make_submission
from domain import lifecycle
from domain.errors import InvalidCertificateCode, NotFound
from domain.grade import FinalGrade
from domain.grading_record import GradingStatus, ServiceType
from services.queue_service import get_next_in_queue, list_queue
from services.verification_service import verify_certificate

CODE = "12345670"
AT = CREATED_AT + timedelta(days=5)


def _graded_record():
    record = make_record()
    record = lifecycle.accept_order(record, certificate_code=CODE, at=AT).record
    record = lifecycle.start_grading(record, grader="grader-1", at=AT).record
    return lifecycle.complete_grading(
        record,
        submission=make_submission(final_grade=FinalGrade.PRISTINE_10_PLUS),
        grader="grader-1",
        at=AT,
    ).record


def test_verify_completed_certificate(store) -> None:
    """Verify a graded card is returned with its grade and images."""

    store.insert_record(_graded_record())

    certificate = verify_certificate(CODE, store)

    assert certificate.card_name == "Charizard"
    assert certificate.status is GradingStatus.COMPLETED
    assert certificate.final_grade is FinalGrade.PRISTINE_10_PLUS
    assert certificate.grade_label == "Pristine (10+)"
    assert certificate.graded_at == AT
    assert certificate.front_image_url == "https://cdn.example.com/front.jpg"


def test_certificate_never_exposes_customer_data(store) -> None:
    """Verify no name, email, phone or address appears in the result."""

    record = _graded_record()
    store.insert_record(record)

    values = {str(value) for value in asdict(verify_certificate(CODE, store)).values()}
    customer = record.customer

    for private in (customer.name, customer.email, customer.phone, customer.address.line1):
        assert not any(private in value for value in values)


def test_verify_accepts_spaced_input(store) -> None:
    """Verify whitespace typed by the visitor is ignored."""

    store.insert_record(_graded_record())

    assert verify_certificate(" 1234 5670 ", store).certificate_code == CODE


def test_queued_certificate_has_no_grade(store) -> None:
    """Verify a card awaiting grading shows its status without scores."""

    queued = lifecycle.accept_order(make_record(), certificate_code=CODE, at=AT).record
    store.insert_record(queued)

    certificate = verify_certificate(CODE, store)

    assert certificate.status is GradingStatus.QUEUED
    assert certificate.final_grade is None
    assert certificate.grade_label is None


@pytest.mark.parametrize("code", ["12345671", "1234567", "ABCDEFGH", ""])
def test_invalid_codes_are_rejected(store, code) -> None:
    """Verify malformed input and bad check digits raise InvalidCertificateCode."""

    with pytest.raises(InvalidCertificateCode):
        verify_certificate(code, store)


def test_unknown_code(store) -> None:
    """Verify a valid but unassigned code raises NotFound."""

    with pytest.raises(NotFound):
        verify_certificate("96385074", store)


def test_queue_orders_by_service_then_age(store) -> None:
    """Verify premium before express before standard, oldest first."""

    codes = iter(["12345670", "96385074", "11111115", "22222220"])

    def queued(service_type, hours):
        record = make_record(service_type=service_type, created_at=CREATED_AT + timedelta(hours=hours))
        record = lifecycle.accept_order(record, certificate_code=next(codes), at=AT).record
        store.insert_record(record)
        return record

    old_standard = queued(ServiceType.STANDARD, 0)
    new_premium = queued(ServiceType.PREMIUM, 5)
    express = queued(ServiceType.EXPRESS, 1)
    old_premium = queued(ServiceType.PREMIUM, 2)
    store.insert_record(make_record(service_type=ServiceType.PREMIUM))

    assert list_queue(store) == [old_premium, new_premium, express, old_standard]
    assert get_next_in_queue(store) == old_premium


def test_empty_queue(store) -> None:
    """Verify no record is offered when nothing is queued."""

    store.insert_record(make_record())

    assert get_next_in_queue(store) is None
