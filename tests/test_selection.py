"""
Tests for bounded selection sets.
"""

from onboarding.forms import DEALBREAKERS_RULE, INTERESTS, INTERESTS_RULE, SelectionRule
from reviews.ui.selection import SelectionSet


def interests_set() -> SelectionSet:
    return SelectionSet(INTERESTS_RULE, INTERESTS, max_message="Maximum of 8 interests can be selected")


class TestToggle:
    def test_select_and_deselect(self):
        selection = interests_set()
        assert selection.toggle("Music").action == "selected"
        assert "Music" in selection
        assert selection.toggle("Music").action == "deselected"
        assert selection.count == 0

    def test_unknown_option_rejected(self):
        result = interests_set().toggle("Knitting")
        assert result.accepted is False
        assert result.action is None

    def test_maximum_is_enforced(self):
        selection = interests_set()
        for item in INTERESTS[:8]:
            selection.toggle(item)

        result = selection.toggle(INTERESTS[8])

        assert result.accepted is False
        assert result.message == "Maximum of 8 interests can be selected"
        assert selection.count == 8
        assert selection.at_maximum

    def test_deselect_at_maximum_still_works(self):
        selection = SelectionSet(DEALBREAKERS_RULE)
        for item in ("trust", "pricing", "punctuality"):
            selection.toggle(item)
        assert selection.toggle("trust").accepted is True
        assert selection.items == ["pricing", "punctuality"]

    def test_validity_and_remaining(self):
        selection = interests_set()
        selection.toggle("Music")
        assert not selection.is_valid
        assert selection.remaining == 2
        selection.toggle("Books")
        selection.toggle("Travel")
        assert selection.is_valid
        assert selection.remaining == 0

    def test_default_max_message(self):
        selection = SelectionSet(SelectionRule(minimum=0, maximum=1))
        selection.toggle("a")
        assert selection.toggle("b").message == "You can only select up to 1."


class TestRestore:
    def test_keeps_order_and_drops_bad_items(self):
        selection = interests_set()
        dropped = selection.restore(["Travel", "Music", "Travel", "Knitting", 7])
        assert selection.items == ["Travel", "Music"]
        assert dropped == ["Travel", "Knitting", 7]

    def test_over_limit_items_dropped(self):
        selection = interests_set()
        dropped = selection.restore(INTERESTS[:10])
        assert selection.items == INTERESTS[:8]
        assert dropped == INTERESTS[8:10]

    def test_restore_replaces(self):
        selection = interests_set()
        selection.toggle("Music")
        selection.restore(["Books"])
        assert selection.items == ["Books"]
