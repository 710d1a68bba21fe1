"""
Onboarding State Management.

Step-gating state machine over the user's Profile. Steps have a fixed total
order; a profile may view any step up to its current one, and only a valid
submission of the current step moves it forward.

Profiles are persisted to the profiles table (see reviews.db.profiles).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from .forms import (
    DEALBREAKERS_RULE,
    INTERESTS_RULE,
    SUB_INTEREST_CATEGORIES,
    SUB_INTERESTS_RULE,
    FormError,
    validate_form,
)


class OnboardingStep(Enum):
    """Onboarding steps, in order."""
    INTERESTS = "interests"
    SUB_INTERESTS = "sub-interests"
    DEALBREAKERS = "dealbreakers"
    COMPLETE = "complete"

    @property
    def position(self) -> int:
        return STEP_ORDER.index(self)

    @property
    def path(self) -> str:
        return f"/{self.value}"

    def next(self) -> OnboardingStep | None:
        """Following step, or None after COMPLETE."""
        idx = self.position + 1
        return STEP_ORDER[idx] if idx < len(STEP_ORDER) else None

    def __lt__(self, other: OnboardingStep) -> bool:
        if not isinstance(other, OnboardingStep):
            return NotImplemented
        return self.position < other.position

    def __le__(self, other: OnboardingStep) -> bool:
        if not isinstance(other, OnboardingStep):
            return NotImplemented
        return self.position <= other.position


STEP_ORDER: list[OnboardingStep] = list(OnboardingStep)

# Position of a finished profile (step cleared): past every step
TERMINAL_POSITION = len(STEP_ORDER)


# =============================================================================
# Errors
# =============================================================================

class OnboardingError(Exception):
    """Base class for onboarding failures."""
    status_code = 400


class StepValidationError(OnboardingError):
    """Step data failed its rule. The profile was not changed."""
    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class StepOrderError(OnboardingError):
    """Requested step is ahead of the profile's progress."""
    status_code = 409

    def __init__(self, current_step: OnboardingStep | None, message: str = ""):
        self.current_step = current_step
        self.message = message or "That step is not available yet"
        super().__init__(self.message)


# =============================================================================
# Profile
# =============================================================================

def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Profile:
    """
    Authoritative onboarding record for one user.

    Invariant: onboarding_complete is True iff onboarding_step is None and
    every collected field satisfies its bounds.
    """
    user_id: str
    onboarding_step: OnboardingStep | None = OnboardingStep.INTERESTS
    onboarding_complete: bool = False
    interests: list[str] = field(default_factory=list)
    sub_interests: dict[str, list[str]] = field(default_factory=dict)
    dealbreakers: list[str] = field(default_factory=list)
    display_name: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self):
        """Set timestamps if not provided."""
        now = _utc_now()
        if not self.created_at:
            self.created_at = now
        if not self.updated_at:
            self.updated_at = now

    @property
    def position(self) -> int:
        if self.onboarding_step is None:
            return TERMINAL_POSITION
        return self.onboarding_step.position

    def to_dict(self) -> dict:
        """Serialize to a profiles table row."""
        return {
            "user_id": self.user_id,
            "onboarding_step": self.onboarding_step.value if self.onboarding_step else None,
            "onboarding_complete": self.onboarding_complete,
            "interests": list(self.interests),
            "sub_interests": {k: list(v) for k, v in self.sub_interests.items()},
            "dealbreakers": list(self.dealbreakers),
            "display_name": self.display_name,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Profile:
        """Deserialize from a profiles table row."""
        step = data.get("onboarding_step")
        return cls(
            user_id=data["user_id"],
            onboarding_step=OnboardingStep(step) if step else None,
            onboarding_complete=bool(data.get("onboarding_complete", False)),
            interests=list(data.get("interests") or []),
            sub_interests={k: list(v) for k, v in (data.get("sub_interests") or {}).items()},
            dealbreakers=list(data.get("dealbreakers") or []),
            display_name=data.get("display_name"),
            created_at=data.get("created_at") or "",
            updated_at=data.get("updated_at") or "",
        )

    def to_public(self) -> dict:
        """camelCase view returned to clients."""
        return {
            "userId": self.user_id,
            "onboardingStep": self.onboarding_step.value if self.onboarding_step else None,
            "onboardingComplete": self.onboarding_complete,
            "interests": list(self.interests),
            "subInterests": {k: list(v) for k, v in self.sub_interests.items()},
            "dealbreakers": list(self.dealbreakers),
            "displayName": self.display_name,
        }


# =============================================================================
# Transitions
# =============================================================================

def can_access(profile: Profile, requested_step: OnboardingStep) -> bool:
    """True iff requested_step is at or before the profile's current step."""
    return requested_step.position <= profile.position


def redirect_path(profile: Profile, home_path: str = "/") -> str:
    """Where a profile belongs right now."""
    if profile.onboarding_step is None:
        return home_path
    return profile.onboarding_step.path


def get_completed_steps(profile: Profile) -> list[str]:
    """Step values strictly before the profile's current step."""
    return [step.value for step in STEP_ORDER if step.position < profile.position]


def check_profile_complete(profile: Profile) -> None:
    """
    Verify every collected field is within bounds.

    Raises StepValidationError naming the first offending field.
    """
    if not INTERESTS_RULE.is_satisfied(len(profile.interests)):
        raise StepValidationError("interests", "Interests are incomplete")

    for category in SUB_INTEREST_CATEGORIES:
        chips = profile.sub_interests.get(category, [])
        if not SUB_INTERESTS_RULE.is_satisfied(len(chips)):
            raise StepValidationError("subInterests", "Sub-interests are incomplete")

    if not DEALBREAKERS_RULE.is_satisfied(len(profile.dealbreakers)):
        raise StepValidationError("dealbreakers", "Dealbreakers are incomplete")


def advance(
    profile: Profile,
    step_data: dict | None = None,
    step: OnboardingStep | None = None,
) -> Profile:
    """
    Apply a step submission and return the updated profile.

    `step` defaults to the profile's current step. Submitting the current step
    stores its data and moves to the next step; submitting COMPLETE finishes
    onboarding. Re-submitting an earlier step replaces its data without moving
    the step. The input profile is never mutated.

    Raises:
        StepOrderError: step is ahead of the profile, or nothing left to submit
        StepValidationError: step_data fails the step's rule
    """
    current = profile.onboarding_step
    target = step or current

    if target is None:
        raise StepOrderError(None, "Onboarding is already complete")

    if not can_access(profile, target):
        raise StepOrderError(current)

    if target is OnboardingStep.COMPLETE:
        if current is None:
            return profile  # already finished
        check_profile_complete(profile)
        return replace(
            profile,
            onboarding_step=None,
            onboarding_complete=True,
            updated_at=_utc_now(),
        )

    try:
        attribute, value = validate_form(target.value, step_data)
    except FormError as e:
        raise StepValidationError(e.field, e.message) from e

    updates = {attribute: value, "updated_at": _utc_now()}
    if target is current:
        updates["onboarding_step"] = target.next()

    return replace(profile, **updates)
