"""
Certificates API Endpoints.

Public lookup of a certificate code printed on a graded card's capsule.
No authentication; no customer data in the response.
"""

from fastapi import APIRouter, Depends

from api.deps import get_store, http_error, safe_error
from api.models import CertificateResponse
from domain.errors import GradingError
from repositories.grading_store import GradingStore
from services.verification_service import verify_certificate

router = APIRouter()


@router.get(
    "/certificates/{code}",
    response_model=CertificateResponse,
    summary="Verify Certificate",
    description="Check an 8-digit certificate code and return the graded card."
)
def read_certificate(code: str, store: GradingStore = Depends(get_store)):
    """
    Verify a certificate code.

    Returns 422 for a malformed code or a wrong check digit, and 404 when no
    card carries the code.
    """
    try:
        certificate = verify_certificate(code, store)

        return CertificateResponse(
            certificate_code=certificate.certificate_code,
            card_name=certificate.card_name,
            year=certificate.year,
            set_name=certificate.set_name,
            card_number=certificate.card_number,
            variant=certificate.variant,
            status=certificate.status,
            centering=certificate.centering,
            surfaces=certificate.surfaces,
            edges=certificate.edges,
            corners=certificate.corners,
            final_grade=certificate.final_grade.value if certificate.final_grade else None,
            final_grade_label=certificate.grade_label,
            front_image_url=certificate.front_image_url,
            back_image_url=certificate.back_image_url,
            graded_at=certificate.graded_at,
        )
    except GradingError as e:
        raise http_error(e)
    except Exception as e:
        raise safe_error("Certificate verification", e)
