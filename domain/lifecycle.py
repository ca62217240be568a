"""
Domain: grading lifecycle state machine.

States: pending -> queued -> in_progress -> completed | rejected (terminal).

| From             | To          | Operation        | Precondition                                   |
|------------------|-------------|------------------|------------------------------------------------|
| pending          | queued      | accept_order     | none (assigns the certificate code)            |
| queued           | in_progress | start_grading    | grader identity known                          |
| in_progress      | completed   | complete_grading | four sub-scores, final grade, both image URLs  |
| any non-terminal | rejected    | reject           | none                                           |

Any other move raises IllegalTransition and leaves the record untouched.
Re-applying the state a record is already in is a no-op success (no event, no
version bump) so retried admin actions are harmless.

Pure functions only: each returns a TransitionOutcome with the new record and
the history event to persist with it. Persistence lives in the services.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, FrozenSet, List, Mapping, Optional
from uuid import uuid4

from .certificate import is_valid_certificate_code
from .errors import GradingValidationError, IllegalTransition
from .grade import FinalGrade, GradingDetails, SubScores
from .grading_record import GradingRecord, GradingStatus, HistoryEvent
from .time import require_utc_timestamp

TRANSITIONS: Mapping[GradingStatus, FrozenSet[GradingStatus]] = {
    GradingStatus.PENDING: frozenset({GradingStatus.QUEUED, GradingStatus.REJECTED}),
    GradingStatus.QUEUED: frozenset({GradingStatus.IN_PROGRESS, GradingStatus.REJECTED}),
    GradingStatus.IN_PROGRESS: frozenset({GradingStatus.COMPLETED, GradingStatus.REJECTED}),
    GradingStatus.COMPLETED: frozenset(),
    GradingStatus.REJECTED: frozenset(),
}


def can_transition(current: GradingStatus, requested: GradingStatus) -> bool:
    """True if requested is a legal next state after current."""

    return requested in TRANSITIONS[current]


def validate_transition(record: GradingRecord, requested: GradingStatus) -> None:
    if not can_transition(record.status, requested):
        raise IllegalTransition(record.status.value, requested.value, record.record_id)


@dataclass(frozen=True, slots=True)
class TransitionOutcome:
    """
    Result of applying a transition.

    event is None when the transition was an idempotent no-op.
    """

    record: GradingRecord
    event: Optional[HistoryEvent]

    @property
    def changed(self) -> bool:
        return self.event is not None


@dataclass(frozen=True, slots=True)
class GradingSubmission:
    """
    Raw grading input as entered by the grader.

    Every field is optional so an incomplete form can be represented and
    rejected with a message naming what is missing.
    """

    centering: Optional[Decimal] = None
    surfaces: Optional[Decimal] = None
    edges: Optional[Decimal] = None
    corners: Optional[Decimal] = None
    final_grade: Optional[FinalGrade] = None
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None

    def missing_fields(self) -> List[str]:
        missing: List[str] = []
        for name in ("centering", "surfaces", "edges", "corners", "final_grade"):
            if getattr(self, name) is None:
                missing.append(name)
        for name in ("front_image_url", "back_image_url"):
            value = getattr(self, name)
            if value is None or not value.strip():
                missing.append(name)
        return missing

    def to_details(self) -> GradingDetails:
        """
        Build validated GradingDetails.

        Raises:
            GradingValidationError: If any field is missing or a sub-score is out of range
        """

        missing = self.missing_fields()
        if missing:
            raise GradingValidationError(f"Grading is incomplete, missing: {', '.join(missing)}")

        try:
            scores = SubScores(
                centering=self.centering,  # type: ignore[arg-type]
                surfaces=self.surfaces,  # type: ignore[arg-type]
                edges=self.edges,  # type: ignore[arg-type]
                corners=self.corners,  # type: ignore[arg-type]
            )
        except (TypeError, ValueError) as exc:
            raise GradingValidationError(str(exc)) from exc

        return GradingDetails(scores=scores, final_grade=self.final_grade)  # type: ignore[arg-type]


def _advance(
    record: GradingRecord,
    status: GradingStatus,
    *,
    at: datetime,
    changed_by: Optional[str],
    notes: Optional[str],
    **changes: Any,
) -> TransitionOutcome:
    require_utc_timestamp("at", at)
    updated = replace(record, status=status, version=record.version + 1, **changes)
    event = HistoryEvent(
        event_id=uuid4(),
        record_id=record.record_id,
        status=status,
        changed_at=at,
        changed_by=changed_by,
        notes=notes,
    )
    return TransitionOutcome(record=updated, event=event)


def _unchanged(record: GradingRecord) -> TransitionOutcome:
    return TransitionOutcome(record=record, event=None)


def accept_order(
    record: GradingRecord,
    *,
    certificate_code: str,
    at: datetime,
    changed_by: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransitionOutcome:
    """
    pending -> queued, assigning the certificate code.

    The code is only consumed when the record actually moves; an already
    queued record keeps the code it was given.
    """

    if record.status is GradingStatus.QUEUED:
        return _unchanged(record)
    validate_transition(record, GradingStatus.QUEUED)

    if not is_valid_certificate_code(certificate_code):
        raise GradingValidationError(f"invalid certificate code: {certificate_code!r}")

    return _advance(
        record,
        GradingStatus.QUEUED,
        at=at,
        changed_by=changed_by,
        notes=notes,
        certificate_code=certificate_code,
    )


def start_grading(
    record: GradingRecord,
    *,
    grader: Optional[str],
    at: datetime,
    notes: Optional[str] = None,
) -> TransitionOutcome:
    """queued -> in_progress; the grader must be identified."""

    if record.status is GradingStatus.IN_PROGRESS:
        return _unchanged(record)
    validate_transition(record, GradingStatus.IN_PROGRESS)

    if grader is None or not grader.strip():
        raise GradingValidationError("A grader must be identified to start grading")

    return _advance(record, GradingStatus.IN_PROGRESS, at=at, changed_by=grader, notes=notes)


def complete_grading(
    record: GradingRecord,
    *,
    submission: GradingSubmission,
    grader: Optional[str],
    at: datetime,
    notes: Optional[str] = None,
) -> TransitionOutcome:
    """
    in_progress -> completed.

    Persists the grader's chosen final grade as-is; the sub-score mean is never
    substituted for it.
    """

    if record.status is GradingStatus.COMPLETED:
        return _unchanged(record)
    validate_transition(record, GradingStatus.COMPLETED)

    if grader is None or not grader.strip():
        raise GradingValidationError("A grader must be identified to complete grading")
    details = submission.to_details()

    return _advance(
        record,
        GradingStatus.COMPLETED,
        at=at,
        changed_by=grader,
        notes=notes,
        grading=details,
        front_image_url=submission.front_image_url,
        back_image_url=submission.back_image_url,
        graded_at=at,
        graded_by=grader,
    )


def reject(
    record: GradingRecord,
    *,
    at: datetime,
    changed_by: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransitionOutcome:
    """Any non-terminal state -> rejected."""

    if record.status is GradingStatus.REJECTED:
        return _unchanged(record)
    validate_transition(record, GradingStatus.REJECTED)

    return _advance(record, GradingStatus.REJECTED, at=at, changed_by=changed_by, notes=notes)


__all__ = [
    "GradingSubmission",
    "TRANSITIONS",
    "TransitionOutcome",
    "accept_order",
    "can_transition",
    "complete_grading",
    "reject",
    "start_grading",
    "validate_transition",
]
