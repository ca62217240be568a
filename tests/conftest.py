"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides factories for grading records
plus an in-memory store.
"""

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from uuid import UUID, uuid4

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.actor import Actor  # noqa: E402
from domain.grading_record import (  # noqa: E402
    CardDetails,
    CustomerInfo,
    GradingRecord,
    GradingStatus,
    PostalAddress,
    ServiceType,
    ShippingMethod,
)
from domain.lifecycle import GradingSubmission  # noqa: E402
from domain.grade import FinalGrade  # noqa: E402
from repositories.memory_store import InMemoryGradingStore  # noqa: E402

CREATED_AT = datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc)
ORDER_ID = UUID("00000000-0000-0000-0000-0000000000a1")
CUSTOMER_ID = UUID("00000000-0000-0000-0000-0000000000c1")


def make_card(name: str = "Charizard") -> CardDetails:
    return CardDetails(name=name, year="1999", set_name="Base Set", card_number="4/102")


def make_customer() -> CustomerInfo:
    return CustomerInfo(
        name="Ada Collector",
        email="ada@example.com",
        phone="+33 6 12 34 56 78",
        address=PostalAddress(
            line1="12 rue des Cartes",
            city="Lyon",
            state="Rhone",
            postal_code="69001",
            country="FR",
        ),
    )


def make_record(**overrides) -> GradingRecord:
    """Pending grading record; any field can be overridden."""
    fields = dict(
        record_id=uuid4(),
        order_id=ORDER_ID,
        card=make_card(),
        customer=make_customer(),
        service_type=ServiceType.STANDARD,
        shipping_method=ShippingMethod.STANDARD,
        status=GradingStatus.PENDING,
        created_at=CREATED_AT,
        user_id=CUSTOMER_ID,
    )
    fields.update(overrides)
    return GradingRecord(**fields)


def make_submission(**overrides) -> GradingSubmission:
    fields = dict(
        centering=Decimal("9.5"),
        surfaces=Decimal("9"),
        edges=Decimal("9.5"),
        corners=Decimal("10"),
        final_grade=FinalGrade.GRADE_9_5,
        front_image_url="https://cdn.example.com/front.jpg",
        back_image_url="https://cdn.example.com/back.jpg",
    )
    fields.update(overrides)
    return GradingSubmission(**fields)


@pytest.fixture
def store() -> InMemoryGradingStore:
    return InMemoryGradingStore()


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin-1", role="admin")


@pytest.fixture
def customer_actor() -> Actor:
    return Actor(user_id=str(CUSTOMER_ID), role="user")
