"""
Tests for `domain/lifecycle.py`.

Covers contract rules:
- Only moves in the transition table are allowed; every other move raises
  IllegalTransition and leaves the record unchanged.
- Each successful move bumps the version and produces exactly one history event.
- Re-applying the current state is a no-op (no event, no version bump).
- Completion requires four sub-scores, a final grade and both image URLs, and
  persists the chosen grade rather than the sub-score mean.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import CREATED_AT, make_record, make_submission
from domain import lifecycle
from domain.errors import GradingValidationError, IllegalTransition
from domain.grade import FinalGrade
from domain.grading_record import GradingStatus

CODE = "12345670"
AT = CREATED_AT + timedelta(days=1)


def _queued():
    return lifecycle.accept_order(make_record(), certificate_code=CODE, at=AT).record


def _in_progress():
    return lifecycle.start_grading(_queued(), grader="grader-1", at=AT).record


def _completed():
    return lifecycle.complete_grading(
        _in_progress(), submission=make_submission(), grader="grader-1", at=AT
    ).record


def _rejected():
    return lifecycle.reject(make_record(), at=AT).record


RECORD_IN = {
    GradingStatus.PENDING: make_record,
    GradingStatus.QUEUED: _queued,
    GradingStatus.IN_PROGRESS: _in_progress,
    GradingStatus.COMPLETED: _completed,
    GradingStatus.REJECTED: _rejected,
}

MOVE_TO = {
    GradingStatus.QUEUED: lambda r: lifecycle.accept_order(r, certificate_code=CODE, at=AT),
    GradingStatus.IN_PROGRESS: lambda r: lifecycle.start_grading(r, grader="grader-1", at=AT),
    GradingStatus.COMPLETED: lambda r: lifecycle.complete_grading(
        r, submission=make_submission(), grader="grader-1", at=AT
    ),
    GradingStatus.REJECTED: lambda r: lifecycle.reject(r, at=AT),
}

ILLEGAL_MOVES = [
    (current, requested)
    for current in GradingStatus
    for requested in MOVE_TO
    if requested is not current and requested not in lifecycle.TRANSITIONS[current]
]


def test_transition_table() -> None:
    """Verify the legal next states of every status."""

    assert lifecycle.can_transition(GradingStatus.PENDING, GradingStatus.QUEUED)
    assert lifecycle.can_transition(GradingStatus.QUEUED, GradingStatus.IN_PROGRESS)
    assert lifecycle.can_transition(GradingStatus.IN_PROGRESS, GradingStatus.COMPLETED)
    for status in (GradingStatus.PENDING, GradingStatus.QUEUED, GradingStatus.IN_PROGRESS):
        assert lifecycle.can_transition(status, GradingStatus.REJECTED)

    assert not lifecycle.can_transition(GradingStatus.PENDING, GradingStatus.IN_PROGRESS)
    assert not lifecycle.can_transition(GradingStatus.QUEUED, GradingStatus.COMPLETED)
    assert not lifecycle.can_transition(GradingStatus.COMPLETED, GradingStatus.REJECTED)
    assert not lifecycle.can_transition(GradingStatus.REJECTED, GradingStatus.QUEUED)


@pytest.mark.parametrize(
    "current, requested",
    ILLEGAL_MOVES,
    ids=[f"{current.value}->{requested.value}" for current, requested in ILLEGAL_MOVES],
)
def test_every_move_outside_the_table_is_refused(current, requested) -> None:
    """Verify each illegal move raises IllegalTransition and leaves the record as it was."""

    record = RECORD_IN[current]()
    before = replace(record)
    assert record.status is current

    with pytest.raises(IllegalTransition) as excinfo:
        MOVE_TO[requested](record)

    assert excinfo.value.current == current.value
    assert excinfo.value.requested == requested.value
    assert record == before
    assert record.version == before.version


def test_illegal_moves_cover_every_terminal_state() -> None:
    """Verify completed and rejected records refuse every other operation."""

    assert len(ILLEGAL_MOVES) == 10
    for terminal in (GradingStatus.COMPLETED, GradingStatus.REJECTED):
        refused = {requested for current, requested in ILLEGAL_MOVES if current is terminal}
        assert refused == set(MOVE_TO) - {terminal}


def test_accept_assigns_code_and_emits_event() -> None:
    """Verify pending -> queued stores the code and one history event."""

    record = make_record()

    outcome = lifecycle.accept_order(record, certificate_code=CODE, at=AT, changed_by="admin-1")

    assert outcome.changed
    assert outcome.record.status is GradingStatus.QUEUED
    assert outcome.record.certificate_code == CODE
    assert outcome.record.version == record.version + 1
    assert outcome.event.status is GradingStatus.QUEUED
    assert outcome.event.record_id == record.record_id
    assert outcome.event.changed_by == "admin-1"


def test_accept_is_idempotent() -> None:
    """Verify accepting a queued record keeps its original code."""

    queued = _queued()

    outcome = lifecycle.accept_order(queued, certificate_code="96385074", at=AT)

    assert not outcome.changed
    assert outcome.event is None
    assert outcome.record is queued
    assert outcome.record.certificate_code == CODE


def test_accept_rejects_invalid_code() -> None:
    """Verify a code with a bad check digit is never stored."""

    with pytest.raises(GradingValidationError):
        lifecycle.accept_order(make_record(), certificate_code="12345671", at=AT)


def test_start_requires_grader() -> None:
    """Verify grading cannot start without an identified grader."""

    with pytest.raises(GradingValidationError):
        lifecycle.start_grading(_queued(), grader=" ", at=AT)


def test_start_from_pending_is_illegal() -> None:
    """Verify pending -> in_progress is refused and names both states."""

    with pytest.raises(IllegalTransition) as excinfo:
        lifecycle.start_grading(make_record(), grader="grader-1", at=AT)

    assert excinfo.value.current == "pending"
    assert excinfo.value.requested == "in_progress"


def test_complete_persists_chosen_grade() -> None:
    """Verify the grader's grade is stored even when the mean suggests another."""

    record = _in_progress()
    submission = make_submission(
        centering=Decimal("8"),
        surfaces=Decimal("8"),
        edges=Decimal("8"),
        corners=Decimal("8"),
        final_grade=FinalGrade.GRADE_9,
    )

    outcome = lifecycle.complete_grading(record, submission=submission, grader="grader-1", at=AT)

    completed = outcome.record
    assert completed.status is GradingStatus.COMPLETED
    assert completed.grading.final_grade is FinalGrade.GRADE_9
    assert completed.grading.scores.suggested_grade() is FinalGrade.GRADE_8
    assert completed.graded_at == AT
    assert completed.graded_by == "grader-1"
    assert completed.front_image_url == submission.front_image_url
    assert completed.version == record.version + 1


def test_complete_without_back_image_names_missing_field() -> None:
    """Verify an incomplete grading form is rejected with the missing field."""

    record = _in_progress()

    with pytest.raises(GradingValidationError) as excinfo:
        lifecycle.complete_grading(
            record,
            submission=make_submission(back_image_url=None),
            grader="grader-1",
            at=AT,
        )

    assert "back_image_url" in str(excinfo.value)


def test_complete_with_out_of_range_score() -> None:
    """Verify sub-scores above 10.5 are a validation error."""

    with pytest.raises(GradingValidationError):
        lifecycle.complete_grading(
            _in_progress(),
            submission=make_submission(corners=Decimal("11")),
            grader="grader-1",
            at=AT,
        )


def test_completed_record_cannot_be_rejected() -> None:
    """Verify terminal states accept no further moves."""

    completed = lifecycle.complete_grading(
        _in_progress(), submission=make_submission(), grader="grader-1", at=AT
    ).record

    with pytest.raises(IllegalTransition):
        lifecycle.reject(completed, at=AT)


def test_reject_from_pending_and_repeat() -> None:
    """Verify rejection works from pending and repeating it is a no-op."""

    rejected = lifecycle.reject(make_record(), at=AT, notes="Counterfeit")

    assert rejected.record.status is GradingStatus.REJECTED
    assert rejected.event.notes == "Counterfeit"
    assert rejected.record.certificate_code is None

    again = lifecycle.reject(rejected.record, at=AT)
    assert not again.changed
    assert again.record.version == rejected.record.version
