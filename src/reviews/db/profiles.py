"""
Profile persistence.

One row per user in the profiles table. Step advances are written with a
compare-and-set on (user_id, onboarding_step) so concurrent submissions of the
same step cannot both apply.
"""

import logging
from datetime import datetime, timezone

from supabase import Client

from onboarding.state import OnboardingStep, Profile

logger = logging.getLogger(__name__)

TABLE = "profiles"


class ProfileStoreError(Exception):
    """Profile could not be read or written."""


class ProfileStore:
    """Supabase-backed Profile store."""

    def __init__(self, client: Client):
        self.client = client

    def get(self, user_id: str) -> Profile | None:
        """Load a profile, or None if the user has none yet."""
        try:
            result = self.client.table(TABLE).select("*").eq("user_id", user_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Failed to load profile for user {user_id}: {e}")
            raise ProfileStoreError("Failed to load profile") from e

        if not result or not result.data:
            return None
        return Profile.from_dict(result.data[0])

    def create(self, user_id: str, display_name: str | None = None) -> Profile:
        """Create a profile at the first step. Existing rows are left untouched."""
        profile = Profile(user_id=user_id, display_name=display_name)
        try:
            self.client.table(TABLE).upsert(
                profile.to_dict(),
                on_conflict="user_id",
                ignore_duplicates=True,
            ).execute()
        except Exception as e:
            logger.error(f"Failed to create profile for user {user_id}: {e}")
            raise ProfileStoreError("Failed to create profile") from e

        # Re-read: another request may have created it first
        return self.get(user_id) or profile

    def get_or_create(self, user_id: str, display_name: str | None = None) -> Profile:
        """
        Load existing profile or create a new one.

        Called at the start of every authenticated onboarding request.
        """
        profile = self.get(user_id)
        if profile is not None:
            return profile
        logger.info(f"Creating profile for user {user_id}")
        return self.create(user_id, display_name=display_name)

    def save(self, profile: Profile, expected_step: OnboardingStep | None) -> bool:
        """
        Write the profile only if its stored step is still `expected_step`.

        Returns False when another request advanced the profile first.
        """
        row = profile.to_dict()
        row.pop("created_at", None)
        row["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            query = self.client.table(TABLE).update(row).eq("user_id", profile.user_id)
            if expected_step is None:
                query = query.is_("onboarding_step", "null")
            else:
                query = query.eq("onboarding_step", expected_step.value)
            result = query.execute()
        except Exception as e:
            logger.error(f"Failed to save profile for user {profile.user_id}: {e}")
            raise ProfileStoreError("Failed to save profile") from e

        return bool(result and result.data)
