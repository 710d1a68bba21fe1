"""
Profile page controller.
"""

import logging

from reviews.ui.api_client import ApiError, ReviewsApiClient
from reviews.ui.drafts import ONBOARDING_SCOPES, DraftPersistence

logger = logging.getLogger(__name__)

TABS = ("reviews", "collections", "liked")


class ProfileController:
    """Loads the profile, switches tabs and logs out."""

    def __init__(self, api: ReviewsApiClient, drafts: DraftPersistence | None = None):
        self.api = api
        self.drafts = drafts
        self.user: dict | None = None
        self.profile: dict | None = None
        self.stats: dict = {}
        self.reviews: list[dict] = []
        self.active_tab = TABS[0]
        self.logout_confirming = False
        self.announcement = ""
        self.error: str | None = None
        self.redirect_to: str | None = None

    @property
    def display_name(self) -> str:
        return (self.user or {}).get("displayName") or "User"

    @property
    def tab_items(self) -> list[dict]:
        """Items for the active tab. Only reviews are backed by data so far."""
        if self.active_tab == "reviews":
            return self.reviews
        return []

    async def load(self) -> bool:
        try:
            body = await self.api.get_profile()
        except ApiError as e:
            logger.warning(f"Could not load profile: {e.message}")
            self.error = "Could not load your profile. Please try again."
            if e.redirect_to:
                self.redirect_to = e.redirect_to
            return False

        self.error = None
        self.user = body.get("user")
        self.profile = body.get("profile")
        self.stats = body.get("stats") or {}
        self.reviews = body.get("reviews") or []
        return True

    def switch_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab}")
        self.active_tab = tab
        self.announcement = f"Switched to {tab} tab"

    def request_logout(self) -> None:
        self.logout_confirming = True
        self.announcement = "Logout confirmation dialog opened"

    def cancel_logout(self) -> None:
        self.logout_confirming = False
        self.announcement = "Logout dialog closed"

    async def logout(self) -> bool:
        """Sign out. Local drafts are dropped even if the server call fails."""
        self.announcement = "Logging out..."
        self.logout_confirming = False
        if self.drafts is not None:
            self.drafts.clear_all(ONBOARDING_SCOPES)

        try:
            body = await self.api.logout()
        except ApiError as e:
            logger.warning(f"Logout failed: {e.message}")
            self.error = "Could not log out. Please try again."
            return False

        self.redirect_to = body.get("redirectTo")
        return True
