"""
Domain: error taxonomy for the grading lifecycle.

Recoverable errors (surfaced to the actor as validation messages):
- IllegalTransition, GradingValidationError, AmountMismatch, NotFound, NotAuthorized

Operational incidents (reported, never retried indefinitely):
- PartialIntakeFailure, GenerationExhausted

Store errors are raised by persistence adapters and handled by the services.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID


class GradingError(Exception):
    """Base class for every error raised by the grading core."""


class IllegalTransition(GradingError):
    """Raised when a requested status change is not in the transition table."""

    def __init__(self, current: str, requested: str, record_id: Optional[UUID] = None):
        self.current = current
        self.requested = requested
        self.record_id = record_id
        super().__init__(f"Cannot move grading record from '{current}' to '{requested}'")


class GradingValidationError(GradingError, ValueError):
    """Raised when an operation's input fails validation (e.g. missing sub-scores)."""


class InvalidCertificateCode(GradingValidationError):
    """Raised when a certificate code is malformed or fails its check digit."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"'{code}' is not a valid 8-digit certificate code")


class AmountMismatch(GradingError):
    """Raised when the amount paid does not match the price of the submission."""

    def __init__(self, expected: Decimal, paid: Decimal):
        self.expected = expected
        self.paid = paid
        super().__init__(f"Amount paid {paid} does not match expected {expected}")


class PartialIntakeFailure(GradingError):
    """
    Raised when only some grading records of an order could be persisted.

    Not locally recoverable: the order must be reconciled manually.
    """

    def __init__(self, order_id: UUID, created_count: int, requested_count: int):
        self.order_id = order_id
        self.created_count = created_count
        self.requested_count = requested_count
        super().__init__(
            f"Order {order_id}: only {created_count} of {requested_count} "
            f"grading records were persisted"
        )


class GenerationExhausted(GradingError):
    """Raised when no unused certificate code could be found within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"No unused certificate code found after {attempts} attempts; "
            f"the identifier space needs widening"
        )


class NotFound(GradingError):
    """Raised when a record, order or certificate code does not exist."""


class NotAuthorized(GradingError):
    """Raised when the identity provider's actor may not perform an operation."""


class StoreError(GradingError):
    """Raised by persistence adapters when a read or write fails."""


class ConcurrentModification(StoreError):
    """Raised when a record changed between read and commit (stale version)."""

    def __init__(self, record_id: UUID, expected_version: int):
        self.record_id = record_id
        self.expected_version = expected_version
        super().__init__(f"Grading record {record_id} is no longer at version {expected_version}")


class CertificateCodeConflict(StoreError):
    """Raised when a certificate code is already assigned to another record."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Certificate code {code} is already assigned")


__all__ = [
    "AmountMismatch",
    "CertificateCodeConflict",
    "ConcurrentModification",
    "GenerationExhausted",
    "GradingError",
    "GradingValidationError",
    "IllegalTransition",
    "InvalidCertificateCode",
    "NotAuthorized",
    "NotFound",
    "PartialIntakeFailure",
    "StoreError",
]
