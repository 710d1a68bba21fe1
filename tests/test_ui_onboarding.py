"""
Tests for the onboarding page controllers.

The API client is an AsyncMock; drafts live in MemoryStorage.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from onboarding.forms import INTERESTS
from reviews.ui.api_client import ApiError
from reviews.ui.drafts import (
    DEALBREAKERS_SCOPE,
    INTERESTS_SCOPE,
    ONBOARDING_SCOPES,
    SUB_INTERESTS_SCOPE,
    DraftPersistence,
    MemoryStorage,
)
from reviews.ui.onboarding import (
    CompleteController,
    DealbreakersController,
    InterestsController,
    SubInterestsController,
)


def run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


@pytest.fixture
def api():
    return AsyncMock()


@pytest.fixture
def drafts():
    return DraftPersistence(MemoryStorage())


class TestInterestsController:
    def test_three_interests_enable_next(self, api, drafts):
        page = InterestsController(api, drafts)
        assert page.button_label == "Select 3 more"

        for interest in ("Music", "Books", "Travel"):
            page.toggle(interest)

        assert page.can_continue
        assert page.button_label == "Next"
        assert page.live_message == "3 interests selected. You can now continue to the next step."

    def test_status_before_minimum(self, api, drafts):
        page = InterestsController(api, drafts)
        page.toggle("Music")
        assert page.live_message == "1 interest selected. Select at least 2 more to continue."

    def test_ninth_interest_rejected(self, api, drafts):
        page = InterestsController(api, drafts)
        for interest in INTERESTS[:8]:
            page.toggle(interest)

        result = page.toggle(INTERESTS[8])

        assert result.accepted is False
        assert page.selection.count == 8
        assert page.live_message == "Maximum of 8 interests can be selected"

    def test_each_toggle_saves_draft(self, api, drafts):
        page = InterestsController(api, drafts)
        page.toggle("Music")
        page.toggle("Books")
        assert drafts.load(INTERESTS_SCOPE) == ["Music", "Books"]

    def test_restore(self, api, drafts):
        drafts.save(INTERESTS_SCOPE, ["Travel", "Retired Topic", "Music"])
        page = InterestsController(api, drafts)

        page.restore()

        assert page.selection.items == ["Travel", "Music"]

    def test_submit_success_clears_draft(self, api, drafts):
        api.submit_interests.return_value = {"success": True, "redirectTo": "/sub-interests"}
        page = InterestsController(api, drafts)
        for interest in ("Music", "Books", "Travel"):
            page.toggle(interest)

        assert run(page.submit()) is True

        api.submit_interests.assert_awaited_once_with(["Music", "Books", "Travel"])
        assert page.redirect_to == "/sub-interests"
        assert drafts.load(INTERESTS_SCOPE) is None

    def test_submit_blocked_below_minimum(self, api, drafts):
        page = InterestsController(api, drafts)
        page.toggle("Music")
        assert run(page.submit()) is False
        api.submit_interests.assert_not_awaited()

    def test_submit_failure_keeps_draft(self, api, drafts):
        api.submit_interests.side_effect = ApiError("Server error", status_code=500)
        page = InterestsController(api, drafts)
        for interest in ("Music", "Books", "Travel"):
            page.toggle(interest)

        assert run(page.submit()) is False

        assert page.error == "Error saving interests. Please try again."
        assert page.submitting is False
        assert page.redirect_to is None
        assert drafts.load(INTERESTS_SCOPE) == ["Music", "Books", "Travel"]

    def test_out_of_order_submit_follows_server(self, api, drafts):
        api.submit_interests.side_effect = ApiError("Not yet", status_code=409, redirect_to="/dealbreakers")
        page = InterestsController(api, drafts)
        page.selection.restore(["Music", "Books", "Travel"])

        run(page.submit())

        assert page.redirect_to == "/dealbreakers"

    def test_storage_failure_does_not_block(self, api):
        page = InterestsController(api, DraftPersistence(MemoryStorage(enabled=False)))
        page.toggle("Music")
        page.restore()
        assert page.selection.items == ["Music"]
        assert page.can_continue is False
        assert page.live_message == "1 interest selected. Select at least 2 more to continue."


class TestSubInterestsController:
    def test_needs_every_category(self, api, drafts):
        page = SubInterestsController(api, drafts)
        page.toggle("food-drink", "coffee")

        assert not page.can_continue
        assert page.live_message == (
            "1 selected in Food & Drink. Please select at least one option in: Arts & Culture."
        )

        page.toggle("arts-culture", "cinema")
        assert page.can_continue
        assert page.live_message.endswith("All categories complete. You can continue.")

    def test_restore_is_exact(self, api, drafts):
        saved = {"food-drink": ["coffee", "vegan"], "arts-culture": ["museums"]}
        drafts.save(SUB_INTERESTS_SCOPE, saved)
        page = SubInterestsController(api, drafts)

        page.restore()

        assert page.snapshot() == saved

    def test_restore_leaves_missing_category_empty(self, api, drafts):
        drafts.save(SUB_INTERESTS_SCOPE, {"food-drink": ["brunch"]})
        page = SubInterestsController(api, drafts)
        page.restore()
        assert page.snapshot() == {"food-drink": ["brunch"], "arts-culture": []}

    def test_unknown_category(self, api, drafts):
        with pytest.raises(ValueError):
            SubInterestsController(api, drafts).toggle("pets", "dogs")

    def test_submit(self, api, drafts):
        api.submit_sub_interests.return_value = {"success": True, "redirectTo": "/dealbreakers"}
        page = SubInterestsController(api, drafts)
        page.toggle("food-drink", "coffee")
        page.toggle("arts-culture", "museums")

        assert run(page.submit()) is True
        api.submit_sub_interests.assert_awaited_once_with(
            {"food-drink": ["coffee"], "arts-culture": ["museums"]}
        )


class TestDealbreakersController:
    def test_hints(self, api, drafts):
        page = DealbreakersController(api, drafts)
        assert page.hint == "Select 2–3 deal-breakers to continue."

        page.toggle("trust")
        assert page.hint == "Select 1 more to continue."
        assert not page.can_continue

        page.toggle("pricing")
        assert page.hint == "2 selected. You can continue or add 1 more."
        assert page.can_continue

    def test_live_messages(self, api, drafts):
        page = DealbreakersController(api, drafts)
        page.toggle("trust")
        assert page.live_message == "Selected: Trust. 1 of 3 selected. Select 1 more to continue."
        page.toggle("trust")
        assert page.live_message == "Deselected: Trust. No deal-breakers selected. Select 2 more to continue."

    def test_fourth_is_rejected(self, api, drafts):
        page = DealbreakersController(api, drafts)
        for dealbreaker in ("trust", "pricing", "punctuality"):
            page.toggle(dealbreaker)

        result = page.toggle("friendliness")

        assert result.accepted is False
        assert page.hint == "You can only select up to 3 deal-breakers."
        assert page.selection.count == 3

        page.toggle("trust")
        assert page.hint_error is None

    def test_restore_filters_unknown(self, api, drafts):
        drafts.save(DEALBREAKERS_SCOPE, ["pricing", "parking"])
        page = DealbreakersController(api, drafts)
        page.restore()
        assert page.selection.items == ["pricing"]

    def test_restore_ignores_wrongly_shaped_entries(self, api, drafts):
        drafts.save(DEALBREAKERS_SCOPE, ["trust", ["x"], {"id": "pricing"}, 3])
        page = DealbreakersController(api, drafts)

        page.restore()

        assert page.selection.items == ["trust"]
        assert page.live_message == "1 of 3 selected. Select 1 more to continue."

    def test_double_submit_sends_once(self, api, drafts):
        async def slow_submit(items):
            await asyncio.sleep(0)
            return {"success": True, "redirectTo": "/complete"}

        api.submit_dealbreakers.side_effect = slow_submit
        page = DealbreakersController(api, drafts)
        page.toggle("trust")
        page.toggle("pricing")

        async def submit_twice():
            return await asyncio.gather(page.submit(), page.submit())

        results = run(submit_twice())

        assert sorted(results) == [False, True]
        api.submit_dealbreakers.assert_awaited_once()


class TestCompleteController:
    def test_load(self, api, drafts):
        api.get_onboarding_state.return_value = {"profile": {"interests": ["Music"]}}
        page = CompleteController(api, drafts)
        assert run(page.load()) == {"interests": ["Music"]}

    def test_load_without_session(self, api, drafts):
        api.get_onboarding_state.side_effect = ApiError("Not authenticated", status_code=401, redirect_to="/onboarding")
        page = CompleteController(api, drafts)
        assert run(page.load()) is None
        assert page.redirect_to == "/onboarding"

    def test_finish_clears_all_onboarding_drafts(self, api, drafts):
        api.complete_onboarding.return_value = {"success": True, "redirectTo": "/discover"}
        for scope in ONBOARDING_SCOPES:
            drafts.save(scope, ["x"])
        page = CompleteController(api, drafts)

        assert run(page.finish()) is True

        assert page.redirect_to == "/discover"
        assert all(drafts.load(scope) is None for scope in ONBOARDING_SCOPES)
