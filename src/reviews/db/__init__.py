"""
Reviews - Database access.

Supabase-backed stores for profiles, reviews and places.
"""

from reviews.db.client import get_service_client, new_anon_client

__all__ = [
    "new_anon_client",
    "get_service_client",
]
