"""
Selection state for chip/bubble pickers.

One SelectionSet per selectable group, bounded by a SelectionRule from
onboarding.forms so the client and server agree on the limits.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator

from onboarding.forms import SelectionRule


@dataclass
class ToggleResult:
    """Outcome of one toggle. A rejected toggle leaves the set unchanged."""
    item: str
    accepted: bool
    selected: bool
    message: str | None = None

    @property
    def action(self) -> str | None:
        if not self.accepted:
            return None
        return "selected" if self.selected else "deselected"


class SelectionSet:
    """
    Ordered set of selected option ids.

    Selecting past the rule's maximum is rejected; deselecting always works.
    """

    def __init__(
        self,
        rule: SelectionRule,
        options: Iterable[str] | None = None,
        max_message: str | None = None,
    ):
        self.rule = rule
        self.options = list(options) if options is not None else None
        self.max_message = max_message or f"You can only select up to {rule.maximum}."
        self._items: dict[str, None] = {}

    def __contains__(self, item: str) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> list[str]:
        return list(self._items)

    @property
    def count(self) -> int:
        return len(self._items)

    @property
    def is_valid(self) -> bool:
        return self.rule.is_satisfied(self.count)

    @property
    def remaining(self) -> int:
        """Selections still needed to reach the minimum."""
        return self.rule.remaining(self.count)

    @property
    def at_maximum(self) -> bool:
        return not self.rule.allows_more(self.count)

    def is_known(self, item: str) -> bool:
        return self.options is None or item in self.options

    def toggle(self, item: str) -> ToggleResult:
        if item in self._items:
            del self._items[item]
            return ToggleResult(item, accepted=True, selected=False)

        if not self.is_known(item):
            return ToggleResult(item, accepted=False, selected=False, message=f"Unknown option: {item}")

        if self.at_maximum:
            return ToggleResult(item, accepted=False, selected=False, message=self.max_message)

        self._items[item] = None
        return ToggleResult(item, accepted=True, selected=True)

    def restore(self, items: Iterable[str]) -> list[str]:
        """
        Replace the selection with saved items.

        Unknown, duplicate and over-limit items are dropped. Returns the
        dropped items.
        """
        self._items.clear()
        dropped = []
        for item in items:
            if not isinstance(item, str) or item in self._items or not self.is_known(item):
                dropped.append(item)
            elif self.at_maximum:
                dropped.append(item)
            else:
                self._items[item] = None
        return dropped

    def clear(self) -> None:
        self._items.clear()
