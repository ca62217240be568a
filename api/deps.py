"""
Shared dependencies for the API routers.

Provides the grading store (chosen by GRADING_STORE_BACKEND), the bearer-token
actor dependency, role guards, and the mapping from domain errors to HTTP
responses. Tests replace get_store and get_actor through
app.dependency_overrides.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from domain.actor import ADMIN_ROLE, SERVICE_ROLE, Actor
from domain.errors import (
    AmountMismatch,
    CertificateCodeConflict,
    ConcurrentModification,
    GenerationExhausted,
    GradingError,
    GradingValidationError,
    IllegalTransition,
    NotAuthorized,
    NotFound,
    PartialIntakeFailure,
)
from repositories.grading_store import GradingStore
from repositories.identity_repository import SupabaseIdentityProvider
from repositories.memory_store import InMemoryGradingStore
from services.lifecycle_service import LifecycleService

logger = logging.getLogger(__name__)

security = HTTPBearer()

_ERROR_STATUS = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (NotAuthorized, status.HTTP_403_FORBIDDEN),
    (IllegalTransition, status.HTTP_409_CONFLICT),
    (ConcurrentModification, status.HTTP_409_CONFLICT),
    (CertificateCodeConflict, status.HTTP_409_CONFLICT),
    (GradingValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AmountMismatch, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (GenerationExhausted, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PartialIntakeFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_store() -> GradingStore:
    """Return the process-wide grading store."""
    backend = os.getenv("GRADING_STORE_BACKEND", "memory").lower()

    if backend == "supabase":
        from repositories.client import get_supabase
        from repositories.supabase_store import SupabaseGradingStore

        return SupabaseGradingStore(get_supabase())

    if backend != "memory":
        raise RuntimeError(
            f"Unknown GRADING_STORE_BACKEND '{backend}'. Use 'memory' or 'supabase'."
        )

    logger.info("Using in-memory grading store")
    return InMemoryGradingStore()


def get_lifecycle_service(store: GradingStore = Depends(get_store)) -> LifecycleService:
    return LifecycleService(store)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_identity_provider() -> SupabaseIdentityProvider:
    from repositories.client import get_supabase

    return SupabaseIdentityProvider(get_supabase())


def get_actor(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Actor:
    """
    Resolve the calling actor from the bearer token.

    Any failure while validating the token is reported as 401 with a generic
    message; the cause is logged.
    """
    token = credentials.credentials

    try:
        actor: Optional[Actor] = get_identity_provider().resolve(token)
    except Exception:
        logger.warning("Bearer token could not be validated", exc_info=True)
        actor = None

    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    if actor.role != ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return actor


def require_intake_role(actor: Actor = Depends(get_actor)) -> Actor:
    """Intake is called by the payment webhook (service role) or an admin."""
    if actor.role not in (ADMIN_ROLE, SERVICE_ROLE):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Service or admin role required",
        )
    return actor


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def http_error(error: GradingError) -> HTTPException:
    """Translate a domain error into the HTTPException the routers raise."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))

    logger.error("Unhandled grading error", exc_info=error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Grading store failure. Please try again or contact support.",
    )


def safe_error(operation: str, e: Exception) -> HTTPException:
    """Log the full exception and return a 500 without internal details."""
    logger.exception("Error during %s", operation)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{operation} failed. Please try again or contact support.",
    )
