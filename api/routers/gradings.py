"""
Gradings API Endpoints.

Endpoints for browsing grading records and moving them through the lifecycle:
pending -> queued -> in_progress -> completed, or rejected from any open state.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from api.deps import (
    get_actor,
    get_lifecycle_service,
    get_store,
    http_error,
    require_admin,
    safe_error,
)
from api.models import (
    CardModel,
    CompleteGradingRequest,
    GradingDetailsResponse,
    GradingListResponse,
    GradingResponse,
    HistoryEventResponse,
    SuggestionRequest,
    SuggestionResponse,
    TransitionRequest,
    TransitionResponse,
)
from domain.actor import Actor
from domain.errors import GradingError, GradingValidationError
from domain.grade import FinalGrade, SubScores
from domain.grading_record import GradingRecord, GradingStatus
from domain.lifecycle import GradingSubmission, TransitionOutcome
from repositories.grading_store import GradingStore
from services.lifecycle_service import LifecycleService
from services.queue_service import get_next_in_queue

router = APIRouter()


def grading_response(record: GradingRecord) -> GradingResponse:
    details = None
    if record.grading is not None:
        scores = record.grading.scores
        suggestion = scores.suggested_grade()
        details = GradingDetailsResponse(
            centering=scores.centering,
            surfaces=scores.surfaces,
            edges=scores.edges,
            corners=scores.corners,
            final_grade=record.grading.final_grade.value,
            final_grade_label=record.grading.final_grade.label,
            sub_score_mean=scores.mean(),
            suggested_grade=suggestion.value if suggestion is not None else None,
        )

    card = record.card
    return GradingResponse(
        record_id=record.record_id,
        order_id=record.order_id,
        status=record.status,
        service_type=record.service_type,
        shipping_method=record.shipping_method,
        certificate_code=record.certificate_code,
        card=CardModel(
            name=card.name,
            year=card.year,
            set_name=card.set_name,
            card_number=card.card_number,
            variant=card.variant,
            notes=card.notes,
        ),
        customer_name=record.customer.name,
        customer_email=record.customer.email,
        grading=details,
        front_image_url=record.front_image_url,
        back_image_url=record.back_image_url,
        graded_at=record.graded_at,
        graded_by=record.graded_by,
        created_at=record.created_at,
        version=record.version,
    )


def _transition_response(outcome: TransitionOutcome) -> TransitionResponse:
    return TransitionResponse(record=grading_response(outcome.record), changed=outcome.changed)


def _submission(request: CompleteGradingRequest) -> GradingSubmission:
    final_grade = None
    if request.final_grade is not None:
        try:
            final_grade = FinalGrade.parse(request.final_grade)
        except ValueError as e:
            raise GradingValidationError(str(e)) from e

    return GradingSubmission(
        centering=request.centering,
        surfaces=request.surfaces,
        edges=request.edges,
        corners=request.corners,
        final_grade=final_grade,
        front_image_url=request.front_image_url,
        back_image_url=request.back_image_url,
    )


# ============================================================================
# Queries
# ============================================================================

@router.get(
    "/gradings",
    response_model=GradingListResponse,
    summary="List Grading Records",
)
def list_gradings(
    status: Optional[GradingStatus] = None,
    actor: Actor = Depends(require_admin),
    store: GradingStore = Depends(get_store),
):
    """List grading records, oldest first, optionally filtered by status."""
    try:
        records = store.list_records(status=status)
        return GradingListResponse(
            items=[grading_response(record) for record in records],
            total_count=len(records),
        )
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Grading listing", e)


@router.get(
    "/gradings/queue/next",
    response_model=Optional[GradingResponse],
    summary="Next Card To Grade",
    description="Next queued record: premium before express before standard, then oldest first."
)
def next_grading(
    actor: Actor = Depends(require_admin),
    store: GradingStore = Depends(get_store),
):
    """Return the next queued record, or null when the queue is empty."""
    try:
        record = get_next_in_queue(store)
        return grading_response(record) if record is not None else None
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Queue lookup", e)



@router.post(
    "/gradings/suggest",
    response_model=SuggestionResponse,
    summary="Suggest Final Grade",
    description="Mean of the four sub-scores and the highest grade it supports. Nothing is stored."
)
def suggest_grade(
    request: SuggestionRequest,
    actor: Actor = Depends(require_admin),
):
    try:
        try:
            scores = SubScores(
                centering=request.centering,
                surfaces=request.surfaces,
                edges=request.edges,
                corners=request.corners,
            )
        except (TypeError, ValueError) as e:
            raise GradingValidationError(str(e)) from e

        suggestion = scores.suggested_grade()
        return SuggestionResponse(
            sub_score_mean=scores.mean(),
            suggested_grade=suggestion.value if suggestion is not None else None,
            suggested_grade_label=suggestion.label if suggestion is not None else None,
        )
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Grade suggestion", e)


@router.get(
    "/gradings/{record_id}",
    response_model=GradingResponse,
    summary="Get Grading Record",
)
def read_grading(
    record_id: UUID,
    actor: Actor = Depends(require_admin),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        return grading_response(service.get_record(record_id))
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Grading lookup", e)


@router.get(
    "/gradings/{record_id}/history",
    response_model=List[HistoryEventResponse],
    summary="Grading Record History",
)
def read_history(
    record_id: UUID,
    actor: Actor = Depends(require_admin),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Audit trail of committed status changes, oldest first."""
    try:
        return [
            HistoryEventResponse(
                event_id=event.event_id,
                status=event.status,
                changed_at=event.changed_at,
                changed_by=event.changed_by,
                notes=event.notes,
            )
            for event in service.get_history(record_id)
        ]
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("History lookup", e)


@router.get(
    "/me/gradings",
    response_model=GradingListResponse,
    summary="My Grading Records",
    description="Grading records submitted by the calling customer."
)
def list_my_gradings(
    actor: Actor = Depends(get_actor),
    store: GradingStore = Depends(get_store),
):
    try:
        user_id = UUID(actor.user_id)
    except ValueError:
        raise HTTPException(status_code=403, detail="Caller has no customer account")

    try:
        records = store.list_records(user_id=user_id)
        return GradingListResponse(
            items=[grading_response(record) for record in records],
            total_count=len(records),
        )
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Customer grading listing", e)


# ============================================================================
# Lifecycle transitions
# ============================================================================

@router.post(
    "/gradings/{record_id}/accept",
    response_model=TransitionResponse,
    summary="Accept Card",
    description="pending -> queued. Assigns the public certificate code."
)
def accept_grading(
    record_id: UUID,
    request: Optional[TransitionRequest] = None,
    actor: Actor = Depends(require_admin),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """
    Accept a received card into the grading queue.

    Repeating the request on an already queued card returns it unchanged
    (`changed: false`) with the code it was first given.
    """
    notes = request.notes if request else None
    try:
        return _transition_response(service.accept_order(record_id, actor=actor, notes=notes))
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Accept", e)


@router.post(
    "/gradings/{record_id}/start",
    response_model=TransitionResponse,
    summary="Start Grading",
    description="queued -> in_progress. The calling admin is recorded as grader."
)
def start_grading(
    record_id: UUID,
    request: Optional[TransitionRequest] = None,
    actor: Actor = Depends(require_admin),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    notes = request.notes if request else None
    try:
        return _transition_response(service.start_grading(record_id, actor=actor, notes=notes))
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Start grading", e)


@router.post(
    "/gradings/{record_id}/complete",
    response_model=TransitionResponse,
    summary="Complete Grading",
    description="in_progress -> completed with four sub-scores, final grade and both images."
)
def complete_grading(
    record_id: UUID,
    request: CompleteGradingRequest,
    actor: Actor = Depends(require_admin),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """
    Record the grading outcome.

    The final grade is persisted as chosen; the response shows the sub-score
    mean and the grade it suggests for reference. A form with missing fields
    is rejected with 422 naming them.
    """
    try:
        outcome = service.complete_grading(
            record_id,
            actor=actor,
            submission=_submission(request),
            notes=request.notes,
        )
        return _transition_response(outcome)
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Complete grading", e)


@router.post(
    "/gradings/{record_id}/reject",
    response_model=TransitionResponse,
    summary="Reject Card",
    description="Any open state -> rejected (terminal)."
)
def reject_grading(
    record_id: UUID,
    request: Optional[TransitionRequest] = None,
    actor: Actor = Depends(require_admin),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    notes = request.notes if request else None
    try:
        return _transition_response(service.reject(record_id, actor=actor, notes=notes))
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Reject", e)
