"""
Tests for `domain/grading_record.py`.

Covers contract rules:
- Timestamps are UTC; graded_at is never before created_at.
- Completion fields are all present iff status is completed.
- A certificate code is absent while pending and required once queued.
- Records are immutable.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import CREATED_AT, make_card, make_customer, make_record
from domain.grade import FinalGrade, GradingDetails, SubScores
from domain.grading_record import CardDetails, CustomerInfo, GradingStatus

CODE = "12345670"


def _details() -> GradingDetails:
    return GradingDetails(
        scores=SubScores(Decimal("9"), Decimal("9"), Decimal("9"), Decimal("9")),
        final_grade=FinalGrade.GRADE_9,
    )


def test_created_at_must_be_utc() -> None:
    """Verify naive and non-UTC timestamps are rejected."""

    with pytest.raises(ValueError):
        make_record(created_at=datetime(2025, 3, 1, 9, 0, 0))

    with pytest.raises(ValueError):
        make_record(created_at=datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone(timedelta(hours=1))))


def test_pending_record_cannot_carry_a_code() -> None:
    """Verify certificate codes are only assigned on acceptance."""

    with pytest.raises(ValueError):
        make_record(certificate_code=CODE)


def test_queued_record_requires_a_valid_code() -> None:
    """Verify queued records need a code with a correct check digit."""

    with pytest.raises(ValueError):
        make_record(status=GradingStatus.QUEUED)

    with pytest.raises(ValueError):
        make_record(status=GradingStatus.QUEUED, certificate_code="12345671")

    record = make_record(status=GradingStatus.QUEUED, certificate_code=CODE)
    assert record.certificate_code == CODE


def test_rejected_record_may_lack_a_code() -> None:
    """Verify a card rejected before acceptance has no certificate."""

    record = make_record(status=GradingStatus.REJECTED)

    assert record.certificate_code is None
    assert record.is_terminal


def test_completion_fields_are_all_or_nothing() -> None:
    """Verify grading details cannot be stored partially."""

    with pytest.raises(ValueError):
        make_record(
            status=GradingStatus.COMPLETED,
            certificate_code=CODE,
            grading=_details(),
            front_image_url="https://cdn.example.com/front.jpg",
        )


def test_completion_fields_only_when_completed() -> None:
    """Verify an in-progress record cannot carry a grading outcome."""

    with pytest.raises(ValueError):
        make_record(
            status=GradingStatus.IN_PROGRESS,
            certificate_code=CODE,
            grading=_details(),
            front_image_url="https://cdn.example.com/front.jpg",
            back_image_url="https://cdn.example.com/back.jpg",
            graded_at=CREATED_AT + timedelta(days=3),
            graded_by="grader-1",
        )


def test_completed_record_requires_grading_details() -> None:
    """Verify a completed record without an outcome is rejected."""

    with pytest.raises(ValueError):
        make_record(status=GradingStatus.COMPLETED, certificate_code=CODE)


def test_graded_at_cannot_precede_created_at() -> None:
    """Verify turnaround can never be negative."""

    with pytest.raises(ValueError):
        make_record(
            status=GradingStatus.COMPLETED,
            certificate_code=CODE,
            grading=_details(),
            front_image_url="https://cdn.example.com/front.jpg",
            back_image_url="https://cdn.example.com/back.jpg",
            graded_at=CREATED_AT - timedelta(seconds=1),
            graded_by="grader-1",
        )


def test_record_is_immutable() -> None:
    """Verify records cannot be mutated after creation (frozen entity)."""

    record = make_record()

    with pytest.raises(FrozenInstanceError):
        record.status = GradingStatus.QUEUED  # type: ignore[misc]


def test_card_and_customer_validation() -> None:
    """Verify required card and customer fields."""

    with pytest.raises(ValueError):
        CardDetails(name=" ", year="1999", set_name="Base Set")

    with pytest.raises(ValueError):
        CardDetails(name="Pikachu", year="99", set_name="Base Set")

    with pytest.raises(ValueError):
        CustomerInfo(name="Ada", email="not-an-email", phone="", address=make_customer().address)

    assert make_card("Pikachu").name == "Pikachu"
