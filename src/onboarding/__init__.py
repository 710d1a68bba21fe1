"""
Reviews Onboarding System.

Isolated module for new user setup. Collects preferences through a fixed,
server-gated sequence of steps:

1. Interests - broad topics (3-8)
2. Sub-interests - chips within each category (at least one per category)
3. Dealbreakers - hard preferences (2-3)
4. Complete - confirmation; marks the profile as onboarded
"""

from .state import (
    OnboardingStep,
    Profile,
    OnboardingError,
    StepOrderError,
    StepValidationError,
    advance,
    can_access,
)

__all__ = [
    "OnboardingStep",
    "Profile",
    "OnboardingError",
    "StepOrderError",
    "StepValidationError",
    "advance",
    "can_access",
]
