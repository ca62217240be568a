"""
Domain: grading record and history events.

A GradingRecord represents one physical card's journey through the grading
service. Card identity and customer details are captured at intake and never
change. Status, grading details, images and the certificate code are owned by
the lifecycle engine.

Invariants enforced here:
- grading, front_image_url, back_image_url, graded_at and graded_by are either
  all present or all absent, and present only when status == completed.
- certificate_code is absent while pending, required once queued, in progress
  or completed, and optional when rejected (rejection from pending assigns none).
- A present certificate_code is a valid 8-digit code with a correct check digit.

This module contains only pure domain entities: no I/O, no database, no frameworks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from .certificate import is_valid_certificate_code
from .grade import GradingDetails
from .time import require_utc_timestamp


class GradingStatus(str, Enum):
    PENDING = "pending"
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (GradingStatus.COMPLETED, GradingStatus.REJECTED)


class ServiceType(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    PREMIUM = "premium"


class ShippingMethod(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    INTERNATIONAL = "international"


_STATUSES_REQUIRING_CODE = (
    GradingStatus.QUEUED,
    GradingStatus.IN_PROGRESS,
    GradingStatus.COMPLETED,
)


@dataclass(frozen=True, slots=True)
class PostalAddress:
    line1: str
    city: str
    state: str
    postal_code: str
    country: str


@dataclass(frozen=True, slots=True)
class CustomerInfo:
    """Contact and return-shipping details captured at intake (personal data)."""

    name: str
    email: str
    phone: str
    address: PostalAddress

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("customer name is required")
        if "@" not in self.email:
            raise ValueError("customer email must be a valid address")


@dataclass(frozen=True, slots=True)
class CardDetails:
    """Descriptive identity of a submitted card."""

    name: str
    year: str
    set_name: str
    card_number: Optional[str] = None
    variant: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("card name is required")
        if not self.set_name.strip():
            raise ValueError("card set is required")
        if len(self.year.strip()) != 4 or not self.year.strip().isdigit():
            raise ValueError("card year must contain 4 digits")


@dataclass(frozen=True, slots=True)
class GradingRecord:
    """
    Immutable snapshot of one card's grading journey.

    Transitions never mutate a record; the lifecycle engine returns a new
    instance with a bumped version.
    """

    record_id: UUID
    order_id: UUID
    card: CardDetails
    customer: CustomerInfo
    service_type: ServiceType
    shipping_method: ShippingMethod
    status: GradingStatus
    created_at: datetime
    certificate_code: Optional[str] = None
    grading: Optional[GradingDetails] = None
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[str] = None
    user_id: Optional[UUID] = None
    version: int = 1

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.graded_at is not None:
            require_utc_timestamp("graded_at", self.graded_at)
            if self.graded_at < self.created_at:
                raise ValueError("graded_at must be >= created_at")

        if self.version < 1:
            raise ValueError("version must be >= 1")

        completion_fields = (
            self.grading,
            self.front_image_url,
            self.back_image_url,
            self.graded_at,
            self.graded_by,
        )
        present = [value is not None for value in completion_fields]
        if any(present) and not all(present):
            raise ValueError(
                "grading details, both images, graded_at and graded_by must be set together"
            )
        if all(present) != (self.status is GradingStatus.COMPLETED):
            raise ValueError("grading details are present only when status is completed")

        if self.certificate_code is not None:
            if not is_valid_certificate_code(self.certificate_code):
                raise ValueError(f"invalid certificate code: {self.certificate_code!r}")
            if self.status is GradingStatus.PENDING:
                raise ValueError("a pending record cannot carry a certificate code")
        elif self.status in _STATUSES_REQUIRING_CODE:
            raise ValueError(f"a {self.status.value} record requires a certificate code")

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(frozen=True, slots=True)
class HistoryEvent:
    """
    Append-only record of a committed status change.

    Never mutated or deleted; ordered by changed_at for the audit trail.
    """

    event_id: UUID
    record_id: UUID
    status: GradingStatus
    changed_at: datetime
    changed_by: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("changed_at", self.changed_at)


__all__ = [
    "CardDetails",
    "CustomerInfo",
    "GradingRecord",
    "GradingStatus",
    "HistoryEvent",
    "PostalAddress",
    "ServiceType",
    "ShippingMethod",
]
