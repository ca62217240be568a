"""
Lifecycle service for moving grading records through their states.

Handles:
- Authorization of the acting admin (boolean decision from the identity layer)
- Optimistic-concurrency commits: status and history event are written as one
  unit, guarded by the record version
- Retried admin actions: a record already in the requested state is a no-op
- Certificate code assignment on accept, regenerating on a commit-time clash

Two admins racing on the same record cannot both assign a code or both append
an event: the loser's commit fails the version check, it reloads, finds the
record already moved and returns a no-op.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

from domain import lifecycle
from domain.actor import Actor, Authorizer, admin_only
from domain.certificate import generate_certificate_code
from domain.errors import (
    CertificateCodeConflict,
    ConcurrentModification,
    GenerationExhausted,
    NotAuthorized,
    NotFound,
    StoreError,
)
from domain.grading_record import GradingRecord, GradingStatus, HistoryEvent
from domain.lifecycle import GradingSubmission, TransitionOutcome
from domain.time import utc_now
from repositories.grading_store import GradingStore

logger = logging.getLogger(__name__)

# Commit attempts per operation (version conflicts and certificate clashes).
COMMIT_ATTEMPTS: int = 5

_Apply = Callable[[GradingRecord, datetime], TransitionOutcome]


class LifecycleService:
    """
    Persistence-aware front of the lifecycle state machine.

    Example:
        service = LifecycleService(store)
        outcome = service.accept_order(record_id, actor=admin)
        print(outcome.record.certificate_code)
    """

    def __init__(
        self,
        store: GradingStore,
        *,
        authorizer: Authorizer = admin_only,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._store = store
        self._authorizer = authorizer
        self._clock = clock
        self._rng = rng

    # --- queries ----------------------------------------------------------

    def get_record(self, record_id: UUID) -> GradingRecord:
        record = self._store.get_record(record_id)
        if record is None:
            raise NotFound(f"Grading record {record_id} not found")
        return record

    def get_history(self, record_id: UUID) -> List[HistoryEvent]:
        self.get_record(record_id)
        return self._store.list_history(record_id)

    # --- transitions ------------------------------------------------------

    def accept_order(self, record_id: UUID, *, actor: Actor, notes: Optional[str] = None) -> TransitionOutcome:
        """pending -> queued; assigns a fresh certificate code."""

        def apply(record: GradingRecord, at: datetime) -> TransitionOutcome:
            code = self._new_certificate_code() if record.status is GradingStatus.PENDING else ""
            return lifecycle.accept_order(
                record,
                certificate_code=code,
                at=at,
                changed_by=actor.user_id,
                notes=notes,
            )

        return self._transition(record_id, actor, GradingStatus.QUEUED, apply)

    def start_grading(self, record_id: UUID, *, actor: Actor, notes: Optional[str] = None) -> TransitionOutcome:
        """queued -> in_progress; the acting admin is the grader."""

        def apply(record: GradingRecord, at: datetime) -> TransitionOutcome:
            return lifecycle.start_grading(record, grader=actor.user_id, at=at, notes=notes)

        return self._transition(record_id, actor, GradingStatus.IN_PROGRESS, apply)

    def complete_grading(
        self,
        record_id: UUID,
        *,
        actor: Actor,
        submission: GradingSubmission,
        notes: Optional[str] = None,
    ) -> TransitionOutcome:
        """in_progress -> completed with sub-scores, final grade and both images."""

        def apply(record: GradingRecord, at: datetime) -> TransitionOutcome:
            return lifecycle.complete_grading(
                record,
                submission=submission,
                grader=actor.user_id,
                at=at,
                notes=notes,
            )

        return self._transition(record_id, actor, GradingStatus.COMPLETED, apply)

    def reject(self, record_id: UUID, *, actor: Actor, notes: Optional[str] = None) -> TransitionOutcome:
        """Any non-terminal state -> rejected."""

        def apply(record: GradingRecord, at: datetime) -> TransitionOutcome:
            return lifecycle.reject(record, at=at, changed_by=actor.user_id, notes=notes)

        return self._transition(record_id, actor, GradingStatus.REJECTED, apply)

    # --- internals --------------------------------------------------------

    def _new_certificate_code(self) -> str:
        try:
            return generate_certificate_code(self._store.list_certificate_codes(), rng=self._rng)
        except GenerationExhausted as e:
            logger.error(
                "Certificate code space exhausted",
                extra={"attempts": e.attempts, "incident": "generation_exhausted"},
            )
            raise

    def _transition(
        self,
        record_id: UUID,
        actor: Actor,
        requested: GradingStatus,
        apply: _Apply,
    ) -> TransitionOutcome:
        if not self._authorizer(actor, requested):
            raise NotAuthorized(
                f"User {actor.user_id} (role: {actor.role}) may not move records to '{requested.value}'"
            )

        last_error: Optional[StoreError] = None

        for attempt in range(1, COMMIT_ATTEMPTS + 1):
            record = self.get_record(record_id)
            outcome = apply(record, self._clock())

            if not outcome.changed:
                logger.info(
                    f"Grading record already {requested.value}; nothing to do",
                    extra={"record_id": str(record_id), "actor": actor.user_id},
                )
                return outcome

            try:
                self._store.commit_transition(record.version, outcome.record, outcome.event)
            except ConcurrentModification as e:
                last_error = e
                logger.warning(
                    "Grading record changed concurrently; retrying",
                    extra={"record_id": str(record_id), "attempt": attempt},
                )
                continue
            except CertificateCodeConflict as e:
                last_error = e
                logger.warning(
                    "Certificate code taken at commit; regenerating",
                    extra={"record_id": str(record_id), "code": e.code, "attempt": attempt},
                )
                continue

            logger.info(
                f"Grading record moved {record.status.value} -> {outcome.record.status.value}",
                extra={
                    "record_id": str(record_id),
                    "actor": actor.user_id,
                    "version": outcome.record.version,
                    "certificate_code": outcome.record.certificate_code,
                },
            )
            return outcome

        if isinstance(last_error, CertificateCodeConflict):
            logger.error(
                "Could not commit a unique certificate code",
                extra={"record_id": str(record_id), "incident": "generation_exhausted"},
            )
            raise GenerationExhausted(COMMIT_ATTEMPTS) from last_error

        logger.error(
            "Grading record kept changing concurrently; giving up",
            extra={"record_id": str(record_id), "attempts": COMMIT_ATTEMPTS},
        )
        raise ConcurrentModification(record_id, record.version) from last_error


__all__ = ["COMMIT_ATTEMPTS", "LifecycleService"]
