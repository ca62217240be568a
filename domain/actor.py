"""
Domain: actors supplied by the external identity provider.

The grading core never authenticates anyone. It receives an Actor (user id and
role) and asks an authorizer whether that actor may request a given status.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .grading_record import GradingStatus

ADMIN_ROLE: str = "admin"
SERVICE_ROLE: str = "service"


@dataclass(frozen=True, slots=True)
class Actor:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


# (actor, requested status) -> allowed?
Authorizer = Callable[[Actor, GradingStatus], bool]


def admin_only(actor: Actor, requested: GradingStatus) -> bool:
    """Default authorizer: only admins move records through the lifecycle."""

    return actor.is_admin


__all__ = ["ADMIN_ROLE", "Actor", "Authorizer", "SERVICE_ROLE", "admin_only"]
