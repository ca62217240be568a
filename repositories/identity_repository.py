"""
Identity repository.

Resolves a bearer token issued by Supabase Auth into an Actor. The role comes
from the `profiles` table (admin | user); users without a profile row are
treated as plain users.
"""

from __future__ import annotations

from typing import Any, Optional

from domain.actor import Actor

_PROFILES_TABLE: str = "profiles"
_DEFAULT_ROLE: str = "user"


class SupabaseIdentityProvider:
    def __init__(self, client: Any) -> None:
        self._client = client

    def resolve(self, token: str) -> Optional[Actor]:
        """
        Return the Actor for a bearer token, or None if no user owns it.

        Errors raised by Supabase Auth (expired or malformed tokens) propagate;
        the API dependency turns them into 401 responses.

        Example:
            actor = provider.resolve(request_token)
            if actor is None:
                # respond 401
        """

        response = self._client.auth.get_user(token)

        user = getattr(response, "user", None)
        if user is None:
            return None

        profile = (
            self._client.table(_PROFILES_TABLE)
            .select("role")
            .eq("id", str(user.id))
            .limit(1)
            .execute()
        )
        rows = getattr(profile, "data", None) or []
        role = rows[0].get("role") if rows else None

        return Actor(user_id=str(user.id), role=str(role or _DEFAULT_ROLE))


__all__ = ["SupabaseIdentityProvider"]
