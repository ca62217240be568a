"""
Supabase grading store (persistence).

Maps the domain entities onto the grading tables:

- card_submission_orders: one row per paid checkout
- card_gradings: one row per card (unique index on ean8, version column)
- card_grading_history: append-only status changes (FK to card_gradings)

Status changes go through the `commit_grading_transition` PostgreSQL function
(see sql/grading_schema.sql), which checks the version, updates the record and
inserts the history row in a single transaction.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, List, Mapping, Optional, Set
from uuid import UUID

from postgrest.exceptions import APIError

from domain.errors import CertificateCodeConflict, ConcurrentModification, NotFound, StoreError
from domain.grade import FinalGrade, GradingDetails, SubScores
from domain.grading_record import (
    CardDetails,
    CustomerInfo,
    GradingRecord,
    GradingStatus,
    HistoryEvent,
    PostalAddress,
    ServiceType,
    ShippingMethod,
)
from domain.order import Order, PaymentStatus
from domain.time import require_utc_timestamp
from repositories.grading_store import GradingStore

# Supabase table names.
# Keep these aligned with sql/grading_schema.sql.
_ORDERS_TABLE: str = "card_submission_orders"
_GRADINGS_TABLE: str = "card_gradings"
_HISTORY_TABLE: str = "card_grading_history"
_COMMIT_TRANSITION_RPC: str = "commit_grading_transition"

# PostgreSQL unique_violation
_UNIQUE_VIOLATION: str = "23505"


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _optional_uuid(value: Any) -> Optional[UUID]:
    return UUID(str(value)) if value else None


def _grading_to_json(grading: Optional[GradingDetails]) -> Optional[dict[str, str]]:
    if grading is None:
        return None
    return {
        "centering": str(grading.scores.centering),
        "surfaces": str(grading.scores.surfaces),
        "edges": str(grading.scores.edges),
        "corners": str(grading.scores.corners),
        "finalGrade": grading.final_grade.value,
    }


def _grading_from_json(value: Any) -> Optional[GradingDetails]:
    """Parse grading_details; numbers written by older clients are accepted too."""

    if not value:
        return None
    data = json.loads(value) if isinstance(value, str) else value
    return GradingDetails(
        scores=SubScores(
            centering=Decimal(str(data["centering"])),
            surfaces=Decimal(str(data["surfaces"])),
            edges=Decimal(str(data["edges"])),
            corners=Decimal(str(data["corners"])),
        ),
        final_grade=FinalGrade.parse(data["finalGrade"]),
    )


def _record_to_row(record: GradingRecord) -> dict[str, Any]:
    """Convert a domain GradingRecord to a Supabase row payload."""

    address = record.customer.address
    return {
        "id": str(record.record_id),
        "order_id": str(record.order_id),
        "user_id": str(record.user_id) if record.user_id else None,
        "ean8": record.certificate_code,
        # Card identity
        "card_name": record.card.name,
        "year": record.card.year,
        "set_name": record.card.set_name,
        "card_number": record.card.card_number,
        "variant": record.card.variant,
        "notes": record.card.notes,
        # Customer
        "customer_name": record.customer.name,
        "customer_email": record.customer.email,
        "customer_phone": record.customer.phone,
        "customer_address": address.line1,
        "customer_city": address.city,
        "customer_state": address.state,
        "customer_zip": address.postal_code,
        "customer_country": address.country,
        # Service
        "service_type": record.service_type.value,
        "shipping_method": record.shipping_method.value,
        # Lifecycle
        "status": record.status.value,
        "grading_details": _grading_to_json(record.grading),
        "front_image_url": record.front_image_url,
        "back_image_url": record.back_image_url,
        "graded_at": _to_iso_utc(record.graded_at, name="graded_at") if record.graded_at else None,
        "graded_by": record.graded_by,
        "created_at": _to_iso_utc(record.created_at, name="created_at"),
        "version": record.version,
    }


def _row_to_record(row: Mapping[str, Any]) -> GradingRecord:
    """Convert a Supabase row into a GradingRecord."""

    return GradingRecord(
        record_id=UUID(str(row["id"])),
        order_id=UUID(str(row["order_id"])),
        card=CardDetails(
            name=str(row["card_name"]),
            year=str(row.get("year") or ""),
            set_name=str(row.get("set_name") or ""),
            card_number=row.get("card_number"),
            variant=row.get("variant"),
            notes=row.get("notes"),
        ),
        customer=CustomerInfo(
            name=str(row["customer_name"]),
            email=str(row["customer_email"]),
            phone=str(row.get("customer_phone") or ""),
            address=PostalAddress(
                line1=str(row.get("customer_address") or ""),
                city=str(row.get("customer_city") or ""),
                state=str(row.get("customer_state") or ""),
                postal_code=str(row.get("customer_zip") or ""),
                country=str(row.get("customer_country") or ""),
            ),
        ),
        service_type=ServiceType(str(row["service_type"])),
        shipping_method=ShippingMethod(str(row["shipping_method"])),
        status=GradingStatus(str(row["status"])),
        created_at=_parse_utc_datetime(row["created_at"]),
        certificate_code=row.get("ean8"),
        grading=_grading_from_json(row.get("grading_details")),
        front_image_url=row.get("front_image_url"),
        back_image_url=row.get("back_image_url"),
        graded_at=_parse_utc_datetime(row["graded_at"]) if row.get("graded_at") else None,
        graded_by=row.get("graded_by"),
        user_id=_optional_uuid(row.get("user_id")),
        version=int(row.get("version") or 1),
    )


def _row_to_event(row: Mapping[str, Any]) -> HistoryEvent:
    return HistoryEvent(
        event_id=UUID(str(row["id"])),
        record_id=UUID(str(row["card_grading_id"])),
        status=GradingStatus(str(row["status"])),
        changed_at=_parse_utc_datetime(row["changed_at"]),
        changed_by=row.get("changed_by"),
        notes=row.get("notes"),
    )


def _order_to_row(order: Order) -> dict[str, Any]:
    return {
        "id": str(order.order_id),
        "user_id": str(order.user_id) if order.user_id else None,
        "service_type": order.service_type.value,
        "shipping_method": order.shipping_method.value,
        "card_count": order.card_count,
        "total_amount": str(order.total_amount),
        "currency": order.currency,
        "payment_status": order.payment_status.value,
        "stripe_session_id": order.payment_reference,
        "created_at": _to_iso_utc(order.created_at, name="created_at"),
        "needs_reconciliation": order.needs_reconciliation,
    }


def _row_to_order(row: Mapping[str, Any]) -> Order:
    return Order(
        order_id=UUID(str(row["id"])),
        service_type=ServiceType(str(row["service_type"])),
        shipping_method=ShippingMethod(str(row["shipping_method"])),
        card_count=int(row["card_count"]),
        total_amount=Decimal(str(row["total_amount"])),
        currency=str(row.get("currency") or "EUR"),
        payment_status=PaymentStatus(str(row.get("payment_status") or "pending")),
        created_at=_parse_utc_datetime(row["created_at"]),
        payment_reference=row.get("stripe_session_id"),
        user_id=_optional_uuid(row.get("user_id")),
        needs_reconciliation=bool(row.get("needs_reconciliation", False)),
    )


def _rows(response: Any, action: str) -> List[Mapping[str, Any]]:
    error = getattr(response, "error", None)
    if error:
        raise StoreError(f"Failed to {action}: {error}")
    return getattr(response, "data", None) or []


# PostgREST caps each response (1000 rows by default).
PAGE_SIZE: int = 1000


def _fetch_all(build_query: Callable[[], Any], action: str) -> List[Mapping[str, Any]]:
    """
    Fetch every row of a query, one page at a time.

    build_query must return a fresh, ordered query for each page; the page is
    bounded with .range() and fetching stops at the first empty page.
    """

    all_rows: List[Mapping[str, Any]] = []
    offset = 0

    while True:
        response_page = build_query().range(offset, offset + PAGE_SIZE - 1).execute()
        page_rows = _rows(response_page, action)
        if not page_rows:
            break

        all_rows.extend(page_rows)
        offset += len(page_rows)

    return all_rows


class SupabaseGradingStore(GradingStore):
    """GradingStore backed by the Supabase (PostgREST) API."""

    def __init__(self, client: Any) -> None:
        self._client = client

    # --- grading records -------------------------------------------------

    def get_record(self, record_id: UUID) -> Optional[GradingRecord]:
        response = (
            self._client.table(_GRADINGS_TABLE)
            .select("*")
            .eq("id", str(record_id))
            .limit(1)
            .execute()
        )
        rows = _rows(response, "fetch grading record")
        return _row_to_record(rows[0]) if rows else None

    def get_record_by_certificate(self, certificate_code: str) -> Optional[GradingRecord]:
        response = (
            self._client.table(_GRADINGS_TABLE)
            .select("*")
            .eq("ean8", certificate_code)
            .limit(1)
            .execute()
        )
        rows = _rows(response, "fetch grading record by certificate")
        return _row_to_record(rows[0]) if rows else None

    def list_records(
        self,
        *,
        status: Optional[GradingStatus] = None,
        order_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
    ) -> List[GradingRecord]:
        def build_query():
            query = self._client.table(_GRADINGS_TABLE).select("*")
            if status is not None:
                query = query.eq("status", status.value)
            if order_id is not None:
                query = query.eq("order_id", str(order_id))
            if user_id is not None:
                query = query.eq("user_id", str(user_id))
            return query.order("created_at").order("id")

        rows = _fetch_all(build_query, "list grading records")
        return [_row_to_record(row) for row in rows]

    def list_certificate_codes(self) -> Set[str]:
        def build_query():
            return (
                self._client.table(_GRADINGS_TABLE)
                .select("ean8")
                .not_.is_("ean8", "null")
                .order("id")
            )

        rows = _fetch_all(build_query, "list certificate codes")
        return {str(row["ean8"]) for row in rows if row.get("ean8")}

    def insert_record(self, record: GradingRecord) -> None:
        try:
            response = self._client.table(_GRADINGS_TABLE).insert(_record_to_row(record)).execute()
        except APIError as e:
            if str(getattr(e, "code", "")) == _UNIQUE_VIOLATION and record.certificate_code:
                raise CertificateCodeConflict(record.certificate_code) from e
            raise StoreError(f"Failed to create grading record: {e}") from e
        _rows(response, "create grading record")

    def commit_transition(
        self,
        expected_version: int,
        record: GradingRecord,
        event: HistoryEvent,
    ) -> None:
        """
        Execute the transition atomically via PostgreSQL function.

        commit_grading_transition() locks the row, compares versions, updates the
        lifecycle columns and inserts the history row in one transaction, and
        returns {"success": bool, "error": code, "message": text}.
        """

        row = _record_to_row(record)
        params = {
            "p_record_id": str(record.record_id),
            "p_expected_version": expected_version,
            "p_status": row["status"],
            "p_ean8": row["ean8"],
            "p_grading_details": row["grading_details"],
            "p_front_image_url": row["front_image_url"],
            "p_back_image_url": row["back_image_url"],
            "p_graded_at": row["graded_at"],
            "p_graded_by": row["graded_by"],
            "p_event_id": str(event.event_id),
            "p_changed_at": _to_iso_utc(event.changed_at, name="changed_at"),
            "p_changed_by": event.changed_by,
            "p_notes": event.notes,
        }

        try:
            response = self._client.rpc(_COMMIT_TRANSITION_RPC, params).execute()
        except APIError as e:
            if str(getattr(e, "code", "")) == _UNIQUE_VIOLATION and record.certificate_code:
                raise CertificateCodeConflict(record.certificate_code) from e
            raise StoreError(f"Failed to commit transition: {e}") from e

        error = getattr(response, "error", None)
        if error:
            raise StoreError(f"Failed to commit transition: {error}")

        result = getattr(response, "data", None) or {}
        if result.get("success"):
            return

        error_code = result.get("error")
        if error_code == "VERSION_CONFLICT":
            raise ConcurrentModification(record.record_id, expected_version)
        if error_code == "CERTIFICATE_CONFLICT":
            raise CertificateCodeConflict(str(record.certificate_code))
        if error_code == "NOT_FOUND":
            raise NotFound(f"Grading record {record.record_id} not found")
        raise StoreError(f"Failed to commit transition: {result.get('message', error_code)}")

    # --- history -----------------------------------------------------------

    def list_history(self, record_id: Optional[UUID] = None) -> List[HistoryEvent]:
        def build_query():
            query = self._client.table(_HISTORY_TABLE).select("*")
            if record_id is not None:
                query = query.eq("card_grading_id", str(record_id))
            return query.order("changed_at").order("id")

        rows = _fetch_all(build_query, "list grading history")
        return [_row_to_event(row) for row in rows]

    # --- orders ------------------------------------------------------------

    def insert_order(self, order: Order) -> None:
        response = self._client.table(_ORDERS_TABLE).insert(_order_to_row(order)).execute()
        _rows(response, "create order")

    def get_order(self, order_id: UUID) -> Optional[Order]:
        response = (
            self._client.table(_ORDERS_TABLE)
            .select("*")
            .eq("id", str(order_id))
            .limit(1)
            .execute()
        )
        rows = _rows(response, "fetch order")
        return _row_to_order(rows[0]) if rows else None

    def list_orders(self) -> List[Order]:
        def build_query():
            return self._client.table(_ORDERS_TABLE).select("*").order("created_at").order("id")

        return [_row_to_order(row) for row in _fetch_all(build_query, "list orders")]

    def flag_order_for_reconciliation(self, order_id: UUID) -> None:
        response = (
            self._client.table(_ORDERS_TABLE)
            .update({"needs_reconciliation": True})
            .eq("id", str(order_id))
            .execute()
        )
        if not _rows(response, "flag order for reconciliation"):
            raise NotFound(f"Order {order_id} not found")


__all__ = ["SupabaseGradingStore"]
