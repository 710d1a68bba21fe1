"""
Onboarding Forms - option catalogues and selection rules.

The same bounds are used by the server step forms (authoritative) and by the
client page controllers (advisory mirror for responsiveness).
"""

import logging
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


# =============================================================================
# Selection Rules
# =============================================================================

@dataclass(frozen=True)
class SelectionRule:
    """Minimum/maximum number of selections for a selectable set."""
    minimum: int = 0
    maximum: int | None = None

    def allows_more(self, count: int) -> bool:
        """True if one more item may be selected on top of `count`."""
        return self.maximum is None or count < self.maximum

    def is_satisfied(self, count: int) -> bool:
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    def remaining(self, count: int) -> int:
        """Selections still required before the rule is satisfied."""
        return max(0, self.minimum - count)

    def to_dict(self) -> dict:
        return {"min": self.minimum, "max": self.maximum}


INTERESTS_RULE = SelectionRule(minimum=3, maximum=8)
SUB_INTERESTS_RULE = SelectionRule(minimum=1)  # per category, no maximum
DEALBREAKERS_RULE = SelectionRule(minimum=2, maximum=3)
REVIEW_TAGS_RULE = SelectionRule(minimum=0, maximum=4)


# =============================================================================
# Option Catalogues
# =============================================================================

INTERESTS = [
    "Food & Dining",
    "Shopping",
    "Entertainment",
    "Travel",
    "Technology",
    "Sports",
    "Health & Fitness",
    "Arts & Culture",
    "Music",
    "Books",
    "Fashion",
    "Beauty",
    "Automotive",
    "Home & Garden",
    "Photography",
    "Gaming",
    "Education",
    "Business",
    "Finance",
    "Nature",
]

SUB_INTEREST_CATEGORIES = {
    "food-drink": {
        "label": "Food & Drink",
        "chips": [
            {"id": "coffee", "label": "Coffee"},
            {"id": "brunch", "label": "Brunch"},
            {"id": "street-food", "label": "Street Food"},
            {"id": "fine-dining", "label": "Fine Dining"},
            {"id": "vegan", "label": "Vegan"},
            {"id": "bakeries", "label": "Bakeries"},
            {"id": "cocktail-bars", "label": "Cocktail Bars"},
            {"id": "wine-bars", "label": "Wine Bars"},
        ],
    },
    "arts-culture": {
        "label": "Arts & Culture",
        "chips": [
            {"id": "museums", "label": "Museums"},
            {"id": "galleries", "label": "Galleries"},
            {"id": "live-music", "label": "Live Music"},
            {"id": "theatre", "label": "Theatre"},
            {"id": "cinema", "label": "Cinema"},
            {"id": "street-art", "label": "Street Art"},
            {"id": "festivals", "label": "Festivals"},
            {"id": "bookshops", "label": "Bookshops"},
        ],
    },
}

SUB_INTEREST_CHIP_IDS = {
    category: {chip["id"] for chip in config["chips"]}
    for category, config in SUB_INTEREST_CATEGORIES.items()
}

DEALBREAKERS = [
    {"id": "trust", "label": "Trust"},
    {"id": "punctuality", "label": "Punctuality"},
    {"id": "friendliness", "label": "Friendliness"},
    {"id": "pricing", "label": "Pricing"},
]

VALID_DEALBREAKER_IDS = {d["id"] for d in DEALBREAKERS}

REVIEW_TAGS = [
    {"id": "great-service", "label": "Great Service"},
    {"id": "good-value", "label": "Good Value"},
    {"id": "cozy", "label": "Cozy"},
    {"id": "family-friendly", "label": "Family Friendly"},
    {"id": "quick", "label": "Quick"},
    {"id": "romantic", "label": "Romantic"},
    {"id": "vegan-options", "label": "Vegan Options"},
    {"id": "outdoor-seating", "label": "Outdoor Seating"},
]

VALID_REVIEW_TAG_IDS = {t["id"] for t in REVIEW_TAGS}


def dealbreaker_label(dealbreaker_id: str) -> str:
    """Display label for a dealbreaker id (falls back to the id)."""
    for dealbreaker in DEALBREAKERS:
        if dealbreaker["id"] == dealbreaker_id:
            return dealbreaker["label"]
    return dealbreaker_id


def category_label(category: str) -> str:
    config = SUB_INTEREST_CATEGORIES.get(category)
    return config["label"] if config else category


def _dedupe(values: list[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(values))


def _check_rule(values: list[str], rule: SelectionRule, noun: str) -> None:
    count = len(values)
    if count < rule.minimum:
        raise ValueError(f"Select at least {rule.minimum} {noun}")
    if rule.maximum is not None and count > rule.maximum:
        raise ValueError(f"Select at most {rule.maximum} {noun}")


# =============================================================================
# Step Forms
# =============================================================================

class InterestsForm(BaseModel):
    """Step 1: broad interests."""

    interests: list[str]

    @field_validator("interests")
    @classmethod
    def validate_interests(cls, v: list[str]) -> list[str]:
        v = _dedupe(v)
        unknown = [i for i in v if i not in INTERESTS]
        if unknown:
            raise ValueError(f"Unknown interests: {', '.join(unknown)}")
        _check_rule(v, INTERESTS_RULE, "interests")
        return v


class SubInterestsForm(BaseModel):
    """Step 2: chips within each configured category."""

    model_config = ConfigDict(populate_by_name=True)

    sub_interests: dict[str, list[str]] = Field(alias="subInterests")

    @field_validator("sub_interests")
    @classmethod
    def validate_sub_interests(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        unknown_categories = [c for c in v if c not in SUB_INTEREST_CATEGORIES]
        if unknown_categories:
            raise ValueError(f"Unknown categories: {', '.join(unknown_categories)}")

        cleaned: dict[str, list[str]] = {}
        missing = []
        for category in SUB_INTEREST_CATEGORIES:
            chips = _dedupe(v.get(category, []))
            unknown = [c for c in chips if c not in SUB_INTEREST_CHIP_IDS[category]]
            if unknown:
                raise ValueError(
                    f"Unknown options in {category_label(category)}: {', '.join(unknown)}"
                )
            if not SUB_INTERESTS_RULE.is_satisfied(len(chips)):
                missing.append(category_label(category))
            cleaned[category] = chips

        if missing:
            raise ValueError(
                f"Select at least one option in: {', '.join(missing)}"
            )
        return cleaned


class DealbreakersForm(BaseModel):
    """Step 3: hard preferences."""

    dealbreakers: list[str]

    @field_validator("dealbreakers")
    @classmethod
    def validate_dealbreakers(cls, v: list[str]) -> list[str]:
        v = _dedupe(v)
        unknown = [d for d in v if d not in VALID_DEALBREAKER_IDS]
        if unknown:
            raise ValueError(f"Unknown dealbreakers: {', '.join(unknown)}")
        _check_rule(v, DEALBREAKERS_RULE, "dealbreakers")
        return v


# Step value -> (form model, request field name, profile attribute)
STEP_FORMS: dict[str, tuple[type[BaseModel], str, str]] = {
    "interests": (InterestsForm, "interests", "interests"),
    "sub-interests": (SubInterestsForm, "subInterests", "sub_interests"),
    "dealbreakers": (DealbreakersForm, "dealbreakers", "dealbreakers"),
}


class FormError(ValueError):
    """A step form failed validation. `field` is the request field name."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def validate_form(step: str, data: dict | None) -> tuple[str, object]:
    """
    Validate step data with the step's form model.

    Returns (profile attribute, cleaned value). Raises FormError naming the
    offending request field.
    """
    form_cls, request_field, attribute = STEP_FORMS[step]
    data = data or {}

    if request_field not in data and attribute not in data:
        raise FormError(request_field, f"{request_field} is required")

    try:
        form = form_cls.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        message = first.get("msg", "Invalid value")
        # pydantic prefixes custom errors with "Value error, "
        message = message.removeprefix("Value error, ")
        logger.debug(f"Step {step} rejected: {message}")
        raise FormError(request_field, message) from e

    return attribute, getattr(form, attribute)


def get_form_options(step: str) -> dict:
    """Options and rule for a step page, for front-end rendering."""
    if step == "interests":
        return {"options": INTERESTS, "rule": INTERESTS_RULE.to_dict()}
    if step == "sub-interests":
        return {
            "options": SUB_INTEREST_CATEGORIES,
            "rule": SUB_INTERESTS_RULE.to_dict(),
        }
    if step == "dealbreakers":
        return {"options": DEALBREAKERS, "rule": DEALBREAKERS_RULE.to_dict()}
    return {"options": [], "rule": None}
