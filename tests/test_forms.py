"""
Tests for onboarding step forms and option catalogues.
"""

import pytest

from onboarding.forms import (
    DEALBREAKERS_RULE,
    INTERESTS_RULE,
    SUB_INTEREST_CATEGORIES,
    FormError,
    SelectionRule,
    category_label,
    dealbreaker_label,
    get_form_options,
    validate_form,
)


class TestSelectionRule:
    def test_bounds(self):
        assert not INTERESTS_RULE.is_satisfied(2)
        assert INTERESTS_RULE.is_satisfied(3)
        assert INTERESTS_RULE.is_satisfied(8)
        assert not INTERESTS_RULE.is_satisfied(9)

    def test_allows_more(self):
        assert DEALBREAKERS_RULE.allows_more(2)
        assert not DEALBREAKERS_RULE.allows_more(3)
        assert SelectionRule(minimum=1).allows_more(100)

    def test_remaining(self):
        assert INTERESTS_RULE.remaining(1) == 2
        assert INTERESTS_RULE.remaining(5) == 0


class TestInterestsForm:
    def test_valid(self):
        attribute, value = validate_form("interests", {"interests": ["Music", "Books", "Travel"]})
        assert attribute == "interests"
        assert value == ["Music", "Books", "Travel"]

    def test_duplicates_are_collapsed(self):
        with pytest.raises(FormError) as exc_info:
            validate_form("interests", {"interests": ["Music", "Music", "Books"]})
        assert exc_info.value.field == "interests"
        assert "at least 3" in exc_info.value.message

    def test_too_many(self):
        nine = ["Food & Dining", "Shopping", "Entertainment", "Travel", "Technology",
                "Sports", "Health & Fitness", "Arts & Culture", "Music"]
        with pytest.raises(FormError) as exc_info:
            validate_form("interests", {"interests": nine})
        assert "at most 8" in exc_info.value.message

    def test_unknown_interest(self):
        with pytest.raises(FormError) as exc_info:
            validate_form("interests", {"interests": ["Music", "Books", "Knitting"]})
        assert "Knitting" in exc_info.value.message

    def test_missing_field(self):
        with pytest.raises(FormError) as exc_info:
            validate_form("interests", {})
        assert exc_info.value.field == "interests"

    def test_wrong_type(self):
        with pytest.raises(FormError):
            validate_form("interests", {"interests": "Music"})


class TestSubInterestsForm:
    def test_valid(self):
        attribute, value = validate_form(
            "sub-interests",
            {"subInterests": {"food-drink": ["coffee"], "arts-culture": ["cinema", "cinema"]}},
        )
        assert attribute == "sub_interests"
        assert value == {"food-drink": ["coffee"], "arts-culture": ["cinema"]}

    def test_every_category_needs_a_chip(self):
        with pytest.raises(FormError) as exc_info:
            validate_form("sub-interests", {"subInterests": {"food-drink": ["coffee"]}})
        assert exc_info.value.field == "subInterests"
        assert "Arts & Culture" in exc_info.value.message

    def test_unknown_chip(self):
        with pytest.raises(FormError):
            validate_form(
                "sub-interests",
                {"subInterests": {"food-drink": ["sushi"], "arts-culture": ["museums"]}},
            )

    def test_unknown_category(self):
        with pytest.raises(FormError):
            validate_form(
                "sub-interests",
                {"subInterests": {"food-drink": ["coffee"], "arts-culture": ["museums"], "pets": ["dogs"]}},
            )


class TestDealbreakersForm:
    @pytest.mark.parametrize("count", [2, 3])
    def test_valid_counts(self, count):
        ids = ["trust", "punctuality", "friendliness"][:count]
        _, value = validate_form("dealbreakers", {"dealbreakers": ids})
        assert value == ids

    @pytest.mark.parametrize("ids", [["trust"], ["trust", "punctuality", "friendliness", "pricing"]])
    def test_invalid_counts(self, ids):
        with pytest.raises(FormError) as exc_info:
            validate_form("dealbreakers", {"dealbreakers": ids})
        assert exc_info.value.field == "dealbreakers"


class TestCatalogues:
    def test_labels(self):
        assert dealbreaker_label("pricing") == "Pricing"
        assert dealbreaker_label("unknown") == "unknown"
        assert category_label("food-drink") == "Food & Drink"

    def test_form_options(self):
        options = get_form_options("dealbreakers")
        assert options["rule"] == {"min": 2, "max": 3}
        assert get_form_options("sub-interests")["options"] is SUB_INTEREST_CATEGORIES
        assert get_form_options("complete") == {"options": [], "rule": None}
