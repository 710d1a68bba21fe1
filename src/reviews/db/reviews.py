"""
Review persistence.
"""

import logging

from supabase import Client

from reviews.models import Review

logger = logging.getLogger(__name__)

TABLE = "reviews"


class ReviewStoreError(Exception):
    """Review could not be written."""


class ReviewStore:
    """Supabase-backed review store."""

    def __init__(self, client: Client):
        self.client = client

    def create(self, user_id: str, review: Review) -> dict:
        """Insert a review and return the stored row."""
        try:
            response = self.client.table(TABLE).insert(review.to_row(user_id)).execute()
        except Exception as e:
            logger.error(f"Failed to save review for user {user_id}: {e}")
            raise ReviewStoreError("Failed to save review") from e

        if not response or not response.data:
            logger.error(f"Review insert for user {user_id} returned no row")
            raise ReviewStoreError("Failed to save review")
        return response.data[0]

    def list_for_user(self, user_id: str, limit: int = 50) -> list[dict]:
        """A user's reviews, newest first. Empty on read failure."""
        try:
            response = (
                self.client.table(TABLE)
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Failed to load reviews for user {user_id}: {e}")
            return []
        return response.data or []
