"""
Recipe Remix - Supabase Client.

Low-level database access. All queries go through here.
"""

from supabase import Client, create_client

from recipe_remix.config import settings
from recipe_remix.errors import PersistenceFailure

# Singleton client instance
_client: Client | None = None


def get_client() -> Client:
    """
    Get the Supabase client.

    Uses singleton pattern to reuse connection.

    Raises:
        PersistenceFailure: if Supabase is not configured
    """
    global _client

    if _client is None:
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise PersistenceFailure("Saved recipes are not configured (set SUPABASE_URL and SUPABASE_ANON_KEY)")
        _client = create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
        )

    return _client


def is_configured() -> bool:
    return bool(settings.supabase_url and settings.supabase_anon_key)
