"""
Supabase client initialization.

This module contains *only* the database connection setup and exposes
`get_supabase()`, which builds a single shared client on first use so the
in-memory backend can run without credentials.

Environment variables:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
- SUPABASE_TIMEOUT_SECONDS: PostgREST request timeout (default: 10)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, ClientOptions, create_client  # type: ignore[import-not-found]

# Load environment variables from the .env file at the project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_TIMEOUT_SECONDS: int = 10


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Return the shared Supabase client, creating it on first call.

    Raises:
        RuntimeError: If SUPABASE_URL or SUPABASE_KEY is missing
    """

    # Read credentials from the environment to avoid hard-coding secrets in code.
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    timeout = int(os.getenv("SUPABASE_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))
    options = ClientOptions(postgrest_client_timeout=timeout)
    return create_client(supabase_url, supabase_key, options=options)


__all__ = ["get_supabase"]
