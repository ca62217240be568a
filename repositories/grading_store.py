"""
Grading store interface (persistence contract).

Stores provide persistence only; they enforce no lifecycle rules. They do
enforce the two persistence constraints the lifecycle relies on:

- Optimistic concurrency: commit_transition succeeds only if the stored record
  is still at expected_version; otherwise ConcurrentModification.
- Certificate uniqueness: a code already held by another record raises
  CertificateCodeConflict at commit time.

commit_transition writes the updated record and its history event as one
atomic unit: either both are stored or neither is.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Set
from uuid import UUID

from domain.grading_record import GradingRecord, GradingStatus, HistoryEvent
from domain.order import Order


class GradingStore(ABC):
    """Persistence port shared by the in-memory and Supabase adapters."""

    # --- grading records -------------------------------------------------

    @abstractmethod
    def get_record(self, record_id: UUID) -> Optional[GradingRecord]:
        ...

    @abstractmethod
    def get_record_by_certificate(self, certificate_code: str) -> Optional[GradingRecord]:
        ...

    @abstractmethod
    def list_records(
        self,
        *,
        status: Optional[GradingStatus] = None,
        order_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
    ) -> List[GradingRecord]:
        """Records matching every given filter, oldest first."""

    @abstractmethod
    def list_certificate_codes(self) -> Set[str]:
        ...

    @abstractmethod
    def insert_record(self, record: GradingRecord) -> None:
        ...

    @abstractmethod
    def commit_transition(
        self,
        expected_version: int,
        record: GradingRecord,
        event: HistoryEvent,
    ) -> None:
        """
        Atomically replace a record and append its history event.

        Raises:
            NotFound: If the record does not exist
            ConcurrentModification: If the stored version != expected_version
            CertificateCodeConflict: If record.certificate_code belongs to another record
        """

    # --- history -----------------------------------------------------------

    @abstractmethod
    def list_history(self, record_id: Optional[UUID] = None) -> List[HistoryEvent]:
        """History events ordered by changed_at (all records when record_id is None)."""

    # --- orders ------------------------------------------------------------

    @abstractmethod
    def insert_order(self, order: Order) -> None:
        ...

    @abstractmethod
    def get_order(self, order_id: UUID) -> Optional[Order]:
        ...

    @abstractmethod
    def list_orders(self) -> List[Order]:
        ...

    @abstractmethod
    def flag_order_for_reconciliation(self, order_id: UUID) -> None:
        ...


__all__ = ["GradingStore"]
