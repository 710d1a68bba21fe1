"""
Onboarding page controllers.

One controller object per page, constructed with the API client and the draft
store it should use. Controllers mirror the server's selection rules so the
page can react immediately; the server remains the authority on every submit.
"""

import logging
from typing import Awaitable, Callable

from onboarding.forms import (
    DEALBREAKERS,
    DEALBREAKERS_RULE,
    INTERESTS,
    INTERESTS_RULE,
    SUB_INTEREST_CATEGORIES,
    SUB_INTERESTS_RULE,
    category_label,
    dealbreaker_label,
)
from reviews.ui.api_client import ApiError, ReviewsApiClient
from reviews.ui.drafts import (
    DEALBREAKERS_SCOPE,
    INTERESTS_SCOPE,
    ONBOARDING_SCOPES,
    SUB_INTERESTS_SCOPE,
    DraftPersistence,
    DraftScope,
)
from reviews.ui.selection import SelectionSet, ToggleResult

logger = logging.getLogger(__name__)


class StepController:
    """Shared submit handling for an onboarding step page."""

    scope: DraftScope | None = None
    error_message = "Error saving. Please try again."

    def __init__(self, api: ReviewsApiClient, drafts: DraftPersistence):
        self.api = api
        self.drafts = drafts
        self.live_message = ""
        self.error: str | None = None
        self.submitting = False
        self.redirect_to: str | None = None

    @property
    def can_continue(self) -> bool:
        raise NotImplementedError

    async def _submit(self, send: Callable[[], Awaitable[dict]]) -> bool:
        """
        Send the step once. On success the draft is cleared and redirect_to
        set; on failure a retryable message is shown. Nothing is retried.
        """
        if self.submitting or not self.can_continue:
            return False

        self.submitting = True
        self.error = None
        try:
            result = await send()
        except ApiError as e:
            logger.warning(f"{type(self).__name__} submit failed: {e.message}")
            self.error = self.error_message
            self.live_message = self.error_message
            if e.redirect_to and e.status_code in (401, 409):
                self.redirect_to = e.redirect_to
            return False
        finally:
            self.submitting = False

        if self.scope is not None:
            self.drafts.clear(self.scope)
        self.redirect_to = result.get("redirectTo")
        return True


# =============================================================================
# Interests
# =============================================================================

class InterestsController(StepController):
    """Step 1: pick 3 to 8 broad interests."""

    scope = INTERESTS_SCOPE
    error_message = "Error saving interests. Please try again."

    def __init__(self, api: ReviewsApiClient, drafts: DraftPersistence):
        super().__init__(api, drafts)
        self.selection = SelectionSet(
            INTERESTS_RULE,
            INTERESTS,
            max_message=f"Maximum of {INTERESTS_RULE.maximum} interests can be selected",
        )
        self.live_message = self.status_message

    @property
    def can_continue(self) -> bool:
        return self.selection.is_valid

    @property
    def button_label(self) -> str:
        if self.submitting:
            return "Saving..."
        if self.selection.remaining:
            return f"Select {self.selection.remaining} more"
        return "Next"

    @property
    def status_message(self) -> str:
        count = self.selection.count
        plural = "s" if count != 1 else ""
        if self.selection.remaining:
            return (
                f"{count} interest{plural} selected. "
                f"Select at least {self.selection.remaining} more to continue."
            )
        return f"{count} interest{plural} selected. You can now continue to the next step."

    def toggle(self, interest: str) -> ToggleResult:
        result = self.selection.toggle(interest)
        if result.accepted:
            self.live_message = self.status_message
            self.drafts.save(self.scope, self.selection.items)
        else:
            self.live_message = result.message or ""
        return result

    def restore(self) -> None:
        """Reselect saved interests, skipping any no longer offered."""
        saved = self.drafts.load(self.scope)
        if isinstance(saved, list):
            self.selection.restore(saved)
        self.live_message = self.status_message

    async def submit(self) -> bool:
        items = self.selection.items
        return await self._submit(lambda: self.api.submit_interests(items))


# =============================================================================
# Sub-interests
# =============================================================================

class SubInterestsController(StepController):
    """Step 2: at least one chip in every category."""

    scope = SUB_INTERESTS_SCOPE
    error_message = "Error saving selections. Please try again."

    def __init__(self, api: ReviewsApiClient, drafts: DraftPersistence):
        super().__init__(api, drafts)
        self.selections: dict[str, SelectionSet] = {
            category: SelectionSet(SUB_INTERESTS_RULE, [chip["id"] for chip in config["chips"]])
            for category, config in SUB_INTEREST_CATEGORIES.items()
        }
        self.live_message = self.status_message

    @property
    def can_continue(self) -> bool:
        return all(selection.is_valid for selection in self.selections.values())

    @property
    def missing_categories(self) -> list[str]:
        return [
            category_label(category)
            for category, selection in self.selections.items()
            if not selection.is_valid
        ]

    @property
    def status_message(self) -> str:
        counts = [
            f"{selection.count} selected in {category_label(category)}"
            for category, selection in self.selections.items()
            if selection.count
        ]
        message = ", ".join(counts) + ". " if counts else ""
        if self.can_continue:
            return message + "All categories complete. You can continue."
        return message + f"Please select at least one option in: {', '.join(self.missing_categories)}."

    def snapshot(self) -> dict[str, list[str]]:
        return {category: selection.items for category, selection in self.selections.items()}

    def toggle(self, category: str, chip_id: str) -> ToggleResult:
        if category not in self.selections:
            raise ValueError(f"Unknown category: {category}")
        result = self.selections[category].toggle(chip_id)
        if result.accepted:
            self.live_message = self.status_message
            self.drafts.save(self.scope, self.snapshot())
        else:
            self.live_message = result.message or ""
        return result

    def restore(self) -> None:
        """Restore saved chips exactly; categories with nothing saved stay empty."""
        saved = self.drafts.load(self.scope)
        if isinstance(saved, dict):
            for category, selection in self.selections.items():
                chips = saved.get(category)
                if isinstance(chips, list):
                    dropped = selection.restore(chips)
                    if dropped:
                        logger.debug(f"Dropped unknown chips in {category}: {dropped}")
        self.live_message = self.status_message

    async def submit(self) -> bool:
        payload = self.snapshot()
        return await self._submit(lambda: self.api.submit_sub_interests(payload))


# =============================================================================
# Dealbreakers
# =============================================================================

class DealbreakersController(StepController):
    """Step 3: pick 2 or 3 deal-breakers."""

    scope = DEALBREAKERS_SCOPE
    error_message = "Error saving deal-breakers. Please try again."

    def __init__(self, api: ReviewsApiClient, drafts: DraftPersistence):
        super().__init__(api, drafts)
        self.selection = SelectionSet(
            DEALBREAKERS_RULE,
            [d["id"] for d in DEALBREAKERS],
            max_message=f"You can only select up to {DEALBREAKERS_RULE.maximum} deal-breakers.",
        )
        self.hint_error: str | None = None
        self.live_message = self.status_message()

    @property
    def can_continue(self) -> bool:
        return self.selection.is_valid

    @property
    def hint(self) -> str:
        if self.hint_error:
            return self.hint_error

        rule = DEALBREAKERS_RULE
        count = self.selection.count
        if count == 0:
            return f"Select {rule.minimum}–{rule.maximum} deal-breakers to continue."
        if self.selection.remaining:
            return f"Select {self.selection.remaining} more to continue."
        return f"{count} selected. You can continue or add {rule.maximum - count} more."

    def status_message(self, result: ToggleResult | None = None) -> str:
        message = ""
        if result is not None and result.action:
            message = f"{result.action.capitalize()}: {dealbreaker_label(result.item)}. "

        count = self.selection.count
        if count == 0:
            message += "No deal-breakers selected."
        else:
            message += f"{count} of {DEALBREAKERS_RULE.maximum} selected."

        if self.can_continue:
            message += " You can continue to the next step."
        elif self.selection.remaining:
            message += f" Select {self.selection.remaining} more to continue."
        return message

    def toggle(self, dealbreaker_id: str) -> ToggleResult:
        result = self.selection.toggle(dealbreaker_id)
        if result.accepted:
            self.hint_error = None
            self.live_message = self.status_message(result)
            self.drafts.save(self.scope, self.selection.items)
        else:
            self.hint_error = result.message
            self.live_message = result.message or ""
        return result

    def restore(self) -> None:
        saved = self.drafts.load(self.scope)
        if isinstance(saved, list):
            self.selection.restore(saved)
        self.live_message = self.status_message()

    async def submit(self) -> bool:
        items = self.selection.items
        return await self._submit(lambda: self.api.submit_dealbreakers(items))


# =============================================================================
# Complete
# =============================================================================

class CompleteController(StepController):
    """Final page: confirm onboarding and drop every onboarding draft."""

    error_message = "Error completing setup. Please try again."

    def __init__(self, api: ReviewsApiClient, drafts: DraftPersistence):
        super().__init__(api, drafts)
        self.profile: dict | None = None

    @property
    def can_continue(self) -> bool:
        return True

    async def load(self) -> dict | None:
        """Fetch the onboarding summary. None if it could not be loaded."""
        try:
            state = await self.api.get_onboarding_state()
        except ApiError as e:
            logger.warning(f"Could not load onboarding state: {e.message}")
            if e.redirect_to:
                self.redirect_to = e.redirect_to
            return None
        self.profile = state.get("profile")
        return self.profile

    async def finish(self) -> bool:
        done = await self._submit(self.api.complete_onboarding)
        if done:
            self.drafts.clear_all(ONBOARDING_SCOPES)
            self.live_message = "Setup complete."
        return done

