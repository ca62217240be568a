"""
Verification service for the public certificate lookup.

Anyone holding a capsule can check its certificate code. The response carries
card identity and grading outcome only; customer name, email, phone and
address never leave this service.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from domain.certificate import is_valid_certificate_code, normalize_certificate_code
from domain.errors import InvalidCertificateCode, NotFound
from domain.grade import FinalGrade
from domain.grading_record import GradingStatus
from repositories.grading_store import GradingStore


@dataclass(frozen=True, slots=True)
class PublicCertificate:
    """
    Publicly verifiable view of a graded card.

    Grading fields are None until the card is completed.
    """
    certificate_code: str
    card_name: str
    year: str
    set_name: str
    card_number: Optional[str]
    variant: Optional[str]
    status: GradingStatus
    centering: Optional[Decimal] = None
    surfaces: Optional[Decimal] = None
    edges: Optional[Decimal] = None
    corners: Optional[Decimal] = None
    final_grade: Optional[FinalGrade] = None
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None
    graded_at: Optional[datetime] = None

    @property
    def grade_label(self) -> Optional[str]:
        return self.final_grade.label if self.final_grade is not None else None


def verify_certificate(code: str, store: GradingStore) -> PublicCertificate:
    """
    Look up a certificate code.

    Args:
        code: Code as typed by the visitor (whitespace is ignored)
        store: Grading store to read from

    Returns:
        PublicCertificate

    Raises:
        InvalidCertificateCode: If the code is malformed or its check digit is wrong
        NotFound: If no grading record carries the code

    Example:
        certificate = verify_certificate("1234 5670", store)
        print(certificate.card_name, certificate.grade_label)
    """
    normalized = normalize_certificate_code(code)

    if not is_valid_certificate_code(normalized):
        raise InvalidCertificateCode(code)

    record = store.get_record_by_certificate(normalized)
    if record is None:
        raise NotFound(f"No graded card carries certificate {normalized}")

    certificate = PublicCertificate(
        certificate_code=normalized,
        card_name=record.card.name,
        year=record.card.year,
        set_name=record.card.set_name,
        card_number=record.card.card_number,
        variant=record.card.variant,
        status=record.status,
    )

    if record.grading is None:
        return certificate

    scores = record.grading.scores
    return PublicCertificate(
        certificate_code=certificate.certificate_code,
        card_name=certificate.card_name,
        year=certificate.year,
        set_name=certificate.set_name,
        card_number=certificate.card_number,
        variant=certificate.variant,
        status=certificate.status,
        centering=scores.centering,
        surfaces=scores.surfaces,
        edges=scores.edges,
        corners=scores.corners,
        final_grade=record.grading.final_grade,
        front_image_url=record.front_image_url,
        back_image_url=record.back_image_url,
        graded_at=record.graded_at,
    )


__all__ = ["PublicCertificate", "verify_certificate"]
