"""
Reviews - Supabase Client.

Low-level database access. All table queries go through the service client;
auth flows get a fresh anon client because sign-in stores the session on the
client instance.
"""

from supabase import Client, create_client

from reviews.config import settings

# Singleton client instance
_service_client: Client | None = None


def get_service_client() -> Client:
    """
    Get the service-role Supabase client (bypasses RLS; server only).

    Uses singleton pattern to reuse connection.
    """
    global _service_client

    if _service_client is None:
        _service_client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _service_client


def new_anon_client() -> Client:
    """Create an unshared anon client for a single auth exchange."""
    return create_client(settings.supabase_url, settings.supabase_anon_key)
