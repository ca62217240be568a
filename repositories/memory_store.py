"""
In-memory grading store.

Used by the test suite and for local runs without Supabase
(GRADING_STORE_BACKEND=memory). A single re-entrant lock makes every method
atomic, which gives commit_transition the same all-or-nothing behaviour as the
database function it stands in for.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, List, Optional, Set
from uuid import UUID

from domain.errors import CertificateCodeConflict, ConcurrentModification, NotFound
from domain.grading_record import GradingRecord, GradingStatus, HistoryEvent
from domain.order import Order
from repositories.grading_store import GradingStore


class InMemoryGradingStore(GradingStore):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: Dict[UUID, GradingRecord] = {}
        self._codes: Dict[str, UUID] = {}
        self._history: List[HistoryEvent] = []
        self._orders: Dict[UUID, Order] = {}

    # --- grading records -------------------------------------------------

    def get_record(self, record_id: UUID) -> Optional[GradingRecord]:
        with self._lock:
            return self._records.get(record_id)

    def get_record_by_certificate(self, certificate_code: str) -> Optional[GradingRecord]:
        with self._lock:
            record_id = self._codes.get(certificate_code)
            return self._records.get(record_id) if record_id is not None else None

    def list_records(
        self,
        *,
        status: Optional[GradingStatus] = None,
        order_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
    ) -> List[GradingRecord]:
        with self._lock:
            records = list(self._records.values())

        if status is not None:
            records = [r for r in records if r.status is status]
        if order_id is not None:
            records = [r for r in records if r.order_id == order_id]
        if user_id is not None:
            records = [r for r in records if r.user_id == user_id]
        return sorted(records, key=lambda r: r.created_at)

    def list_certificate_codes(self) -> Set[str]:
        with self._lock:
            return set(self._codes)

    def insert_record(self, record: GradingRecord) -> None:
        with self._lock:
            if record.record_id in self._records:
                raise ValueError(f"Grading record {record.record_id} already exists")
            if record.certificate_code is not None:
                self._claim_code(record.certificate_code, record.record_id)
            self._records[record.record_id] = record

    def commit_transition(
        self,
        expected_version: int,
        record: GradingRecord,
        event: HistoryEvent,
    ) -> None:
        with self._lock:
            current = self._records.get(record.record_id)
            if current is None:
                raise NotFound(f"Grading record {record.record_id} not found")
            if current.version != expected_version:
                raise ConcurrentModification(record.record_id, expected_version)

            code = record.certificate_code
            if code is not None and code != current.certificate_code:
                self._claim_code(code, record.record_id)

            self._records[record.record_id] = record
            self._history.append(event)

    def _claim_code(self, code: str, record_id: UUID) -> None:
        holder = self._codes.get(code)
        if holder is not None and holder != record_id:
            raise CertificateCodeConflict(code)
        self._codes[code] = record_id

    # --- history -----------------------------------------------------------

    def list_history(self, record_id: Optional[UUID] = None) -> List[HistoryEvent]:
        with self._lock:
            events = list(self._history)
        if record_id is not None:
            events = [e for e in events if e.record_id == record_id]
        return sorted(events, key=lambda e: e.changed_at)

    # --- orders ------------------------------------------------------------

    def insert_order(self, order: Order) -> None:
        with self._lock:
            if order.order_id in self._orders:
                raise ValueError(f"Order {order.order_id} already exists")
            self._orders[order.order_id] = order

    def get_order(self, order_id: UUID) -> Optional[Order]:
        with self._lock:
            return self._orders.get(order_id)

    def list_orders(self) -> List[Order]:
        with self._lock:
            return sorted(self._orders.values(), key=lambda o: o.created_at)

    def flag_order_for_reconciliation(self, order_id: UUID) -> None:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise NotFound(f"Order {order_id} not found")
            self._orders[order_id] = replace(order, needs_reconciliation=True)


__all__ = ["InMemoryGradingStore"]
