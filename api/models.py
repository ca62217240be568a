"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.grading_record import GradingStatus, ServiceType, ShippingMethod


# ============================================================================
# Intake Models
# ============================================================================

class CardModel(BaseModel):
    """Card identity as listed on the submission form."""
    name: str
    year: str = Field(..., description="4-digit release year")
    set_name: str
    card_number: Optional[str] = None
    variant: Optional[str] = None
    notes: Optional[str] = None


class AddressModel(BaseModel):
    """Return shipping address."""
    line1: str
    city: str
    state: str
    postal_code: str
    country: str


class CustomerModel(BaseModel):
    """Customer contact details."""
    name: str
    email: str
    phone: str
    address: AddressModel


class CreateOrderRequest(BaseModel):
    """Paid submission forwarded after payment confirmation."""
    service_type: ServiceType
    shipping_method: ShippingMethod
    cards: List[CardModel]
    customer: CustomerModel
    amount_paid: Decimal
    payment_reference: Optional[str] = None
    user_id: Optional[UUID] = None

    class Config:
        json_schema_extra = {
            "example": {
                "service_type": "standard",
                "shipping_method": "standard",
                "cards": [
                    {"name": "Charizard", "year": "1999", "set_name": "Base Set", "card_number": "4/102"},
                    {"name": "Blastoise", "year": "1999", "set_name": "Base Set", "card_number": "2/102"}
                ],
                "customer": {
                    "name": "Ada Collector",
                    "email": "ada@example.com",
                    "phone": "+33 6 12 34 56 78",
                    "address": {
                        "line1": "12 rue des Cartes",
                        "city": "Lyon",
                        "state": "Rhone",
                        "postal_code": "69001",
                        "country": "FR"
                    }
                },
                "amount_paid": "40.00",
                "payment_reference": "cs_test_a1b2c3"
            }
        }


class OrderResponse(BaseModel):
    """Stored submission order."""
    order_id: UUID
    service_type: ServiceType
    shipping_method: ShippingMethod
    card_count: int
    total_amount: Decimal
    currency: str
    payment_status: str
    created_at: datetime
    payment_reference: Optional[str] = None
    needs_reconciliation: bool = False


class CreateOrderResponse(BaseModel):
    """Result of a successful intake."""
    order: OrderResponse
    grading_ids: List[UUID]

    class Config:
        json_schema_extra = {
            "example": {
                "order": {
                    "order_id": "123e4567-e89b-12d3-a456-426614174000",
                    "service_type": "standard",
                    "shipping_method": "standard",
                    "card_count": 2,
                    "total_amount": "40.00",
                    "currency": "EUR",
                    "payment_status": "completed",
                    "created_at": "2025-01-01T12:00:00Z",
                    "payment_reference": "cs_test_a1b2c3",
                    "needs_reconciliation": False
                },
                "grading_ids": [
                    "123e4567-e89b-12d3-a456-426614174001",
                    "123e4567-e89b-12d3-a456-426614174002"
                ]
            }
        }


# ============================================================================
# Quote Models
# ============================================================================

class QuoteResponse(BaseModel):
    """Itemised submission quote."""
    service_type: ServiceType
    shipping_method: ShippingMethod
    card_count: int
    unit_price: Decimal
    cards_subtotal: Decimal
    shipping_fee: Decimal
    total: Decimal
    currency: str

    class Config:
        json_schema_extra = {
            "example": {
                "service_type": "express",
                "shipping_method": "international",
                "card_count": 3,
                "unit_price": "20.00",
                "cards_subtotal": "60.00",
                "shipping_fee": "35.00",
                "total": "95.00",
                "currency": "EUR"
            }
        }


# ============================================================================
# Grading Models
# ============================================================================

class GradingDetailsResponse(BaseModel):
    """Sub-scores, chosen grade and the mean-based suggestion."""
    centering: Decimal
    surfaces: Decimal
    edges: Decimal
    corners: Decimal
    final_grade: str
    final_grade_label: str
    sub_score_mean: Decimal
    suggested_grade: Optional[str] = None


class GradingResponse(BaseModel):
    """Grading record as seen by admins and by the submitting customer."""
    record_id: UUID
    order_id: UUID
    status: GradingStatus
    service_type: ServiceType
    shipping_method: ShippingMethod
    certificate_code: Optional[str] = None
    card: CardModel
    customer_name: str
    customer_email: str
    grading: Optional[GradingDetailsResponse] = None
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[str] = None
    created_at: datetime
    version: int


class GradingListResponse(BaseModel):
    """Response for grading record listings."""
    items: List[GradingResponse]
    total_count: int


class HistoryEventResponse(BaseModel):
    """One committed status change."""
    event_id: UUID
    status: GradingStatus
    changed_at: datetime
    changed_by: Optional[str] = None
    notes: Optional[str] = None


class TransitionRequest(BaseModel):
    """Optional note recorded with a status change."""
    notes: Optional[str] = None


class CompleteGradingRequest(BaseModel):
    """
    Grading form submitted by the grader.

    Fields are optional so an incomplete form is reported with the missing
    field names instead of a generic schema error.
    """
    centering: Optional[Decimal] = None
    surfaces: Optional[Decimal] = None
    edges: Optional[Decimal] = None
    corners: Optional[Decimal] = None
    final_grade: Optional[str] = Field(None, description="Grade on the scale, e.g. '9.5' or '10+'")
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "centering": "9.5",
                "surfaces": "9",
                "edges": "9.5",
                "corners": "10",
                "final_grade": "9.5",
                "front_image_url": "https://cdn.example.com/gradings/front.jpg",
                "back_image_url": "https://cdn.example.com/gradings/back.jpg"
            }
        }


class SuggestionRequest(BaseModel):
    """Sub-scores to preview before choosing a final grade."""
    centering: Decimal
    surfaces: Decimal
    edges: Decimal
    corners: Decimal

    class Config:
        json_schema_extra = {
            "example": {"centering": "9.5", "surfaces": "9", "edges": "9.5", "corners": "10"}
        }


class SuggestionResponse(BaseModel):
    """Sub-score mean and the grade it supports; null below the scale."""
    sub_score_mean: Decimal
    suggested_grade: Optional[str] = None
    suggested_grade_label: Optional[str] = None


class TransitionResponse(BaseModel):
    """Record after a transition; changed is False for a repeated request."""
    record: GradingResponse
    changed: bool


# ============================================================================
# Stats Models
# ============================================================================

class StatsResponse(BaseModel):
    """Admin dashboard figures."""
    total_orders: int
    orders_by_status: Dict[str, int]
    total_revenue: Decimal
    currency: str
    orders_this_month: int
    completed_this_month: int
    average_completion_days: Optional[float] = None

    class Config:
        json_schema_extra = {
            "example": {
                "total_orders": 4,
                "orders_by_status": {
                    "pending": 1,
                    "queued": 1,
                    "in_progress": 0,
                    "completed": 2,
                    "rejected": 0
                },
                "total_revenue": "100.00",
                "currency": "EUR",
                "orders_this_month": 3,
                "completed_this_month": 2,
                "average_completion_days": 6.5
            }
        }


class PopulationEntry(BaseModel):
    grade: str
    label: str
    count: int
    percentage: float = Field(..., description="Share of total_graded, in percent")


class PopulationResponse(BaseModel):
    """Completed cards per final grade, highest grade first."""
    grades: List[PopulationEntry]
    total_graded: int
    set_name: Optional[str] = None
    card_name: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "grades": [
                    {"grade": "10+", "label": "Pristine (10+)", "count": 1, "percentage": 25.0},
                    {"grade": "10", "label": "10", "count": 3, "percentage": 75.0}
                ],
                "total_graded": 4,
                "set_name": "Base Set",
                "card_name": "Charizard"
            }
        }


# ============================================================================
# Certificate Models
# ============================================================================

class CertificateResponse(BaseModel):
    """Public certificate lookup. Carries no customer data."""
    certificate_code: str
    card_name: str
    year: str
    set_name: str
    card_number: Optional[str] = None
    variant: Optional[str] = None
    status: GradingStatus
    centering: Optional[Decimal] = None
    surfaces: Optional[Decimal] = None
    edges: Optional[Decimal] = None
    corners: Optional[Decimal] = None
    final_grade: Optional[str] = None
    final_grade_label: Optional[str] = None
    front_image_url: Optional[str] = None
    back_image_url: Optional[str] = None
    graded_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "certificate_code": "12345670",
                "card_name": "Charizard",
                "year": "1999",
                "set_name": "Base Set",
                "card_number": "4/102",
                "variant": None,
                "status": "completed",
                "centering": "9.5",
                "surfaces": "9",
                "edges": "9.5",
                "corners": "10",
                "final_grade": "9.5",
                "final_grade_label": "9.5",
                "front_image_url": "https://cdn.example.com/gradings/front.jpg",
                "back_image_url": "https://cdn.example.com/gradings/back.jpg",
                "graded_at": "2025-01-08T09:30:00Z"
            }
        }
