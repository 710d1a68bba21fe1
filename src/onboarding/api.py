"""
Onboarding API Endpoints.

Page-state and submission endpoints for each onboarding step. Every request
is gated by the profile's recorded progress: pages ahead of it redirect to the
current step, and submissions ahead of it are rejected.
"""

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from reviews.config import get_settings
from reviews.db.profiles import ProfileStore
from reviews.web.auth import AuthenticatedUser, copy_cookies, get_current_user
from reviews.web.dependencies import get_profile_store

from .forms import get_form_options
from .state import (
    STEP_ORDER,
    OnboardingError,
    OnboardingStep,
    Profile,
    advance,
    can_access,
    get_completed_steps,
    redirect_path,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["onboarding"])


# =============================================================================
# Request/Response Models
# =============================================================================


class StepResponse(BaseModel):
    """Response after a successful step submission."""
    success: bool
    redirectTo: str


class StateResponse(BaseModel):
    """Current onboarding progress."""
    currentStep: str | None
    onboardingComplete: bool
    completedSteps: list[str]
    profile: dict


class StepConflictError(OnboardingError):
    """Another request changed the profile's step first."""
    status_code = 409

    def __init__(self, current_step: OnboardingStep | None):
        self.current_step = current_step
        self.message = "Your progress changed in another window. Please try again."
        super().__init__(self.message)


# =============================================================================
# Helpers
# =============================================================================


def _load_profile(user: AuthenticatedUser, store: ProfileStore) -> Profile:
    return store.get_or_create(user.id, display_name=user.display_name)


def _step_page(step: OnboardingStep, profile: Profile) -> dict:
    """JSON page state for a step the profile may view."""
    page = {
        "step": step.value,
        "progress": {"current": step.position + 1, "total": len(STEP_ORDER)},
        "completedSteps": get_completed_steps(profile),
        **get_form_options(step.value),
    }
    if step is OnboardingStep.INTERESTS:
        page["selected"] = profile.interests
    elif step is OnboardingStep.SUB_INTERESTS:
        page["selected"] = profile.sub_interests
    elif step is OnboardingStep.DEALBREAKERS:
        page["selected"] = profile.dealbreakers
    else:
        page["summary"] = profile.to_public()
    return page


def _show_step(
    step: OnboardingStep,
    user: AuthenticatedUser,
    store: ProfileStore,
    response: Response,
):
    profile = _load_profile(user, store)
    if not can_access(profile, step):
        target = redirect_path(profile, get_settings().home_path)
        logger.info(f"User {user.id} asked for {step.value} ahead of progress; redirecting to {target}")
        return copy_cookies(response, RedirectResponse(target, status_code=303))
    return _step_page(step, profile)


def submit_step(
    store: ProfileStore,
    user: AuthenticatedUser,
    step: OnboardingStep,
    data: dict | None,
) -> Profile:
    """
    Validate and persist one step submission.

    The write only applies if the stored step is unchanged since it was read.
    """
    profile = _load_profile(user, store)
    expected = profile.onboarding_step

    updated = advance(profile, data, step=step)
    if updated is profile:
        return profile

    if not store.save(updated, expected_step=expected):
        current = store.get(user.id)
        raise StepConflictError(current.onboarding_step if current else expected)

    logger.info(
        f"User {user.id} submitted {step.value}: "
        f"{expected.value if expected else 'done'} -> "
        f"{updated.onboarding_step.value if updated.onboarding_step else 'done'}"
    )
    return updated


def _next_path(step: OnboardingStep) -> str:
    following = step.next()
    return following.path if following else get_settings().home_path


# =============================================================================
# Endpoints: State
# =============================================================================


@router.get("/onboarding/state", response_model=StateResponse)
async def get_onboarding_state(
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
) -> StateResponse:
    """Get current onboarding progress."""
    profile = _load_profile(user, store)
    return StateResponse(
        currentStep=profile.onboarding_step.value if profile.onboarding_step else None,
        onboardingComplete=profile.onboarding_complete,
        completedSteps=get_completed_steps(profile),
        profile=profile.to_public(),
    )


# =============================================================================
# Endpoints: Step Pages
# =============================================================================


@router.get("/interests")
async def interests_page(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
):
    return _show_step(OnboardingStep.INTERESTS, user, store, response)


@router.get("/sub-interests")
async def sub_interests_page(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
):
    return _show_step(OnboardingStep.SUB_INTERESTS, user, store, response)


@router.get("/dealbreakers")
async def dealbreakers_page(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
):
    return _show_step(OnboardingStep.DEALBREAKERS, user, store, response)


@router.get("/complete")
async def complete_page(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
):
    return _show_step(OnboardingStep.COMPLETE, user, store, response)


# =============================================================================
# Endpoints: Step Submissions
# =============================================================================


@router.post("/interests", response_model=StepResponse)
async def submit_interests(
    data: dict,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
) -> StepResponse:
    """Submit interests (step 1)."""
    submit_step(store, user, OnboardingStep.INTERESTS, data)
    return StepResponse(success=True, redirectTo=_next_path(OnboardingStep.INTERESTS))


@router.post("/sub-interests", response_model=StepResponse)
async def submit_sub_interests(
    data: dict,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
) -> StepResponse:
    """Submit sub-interest chips (step 2)."""
    submit_step(store, user, OnboardingStep.SUB_INTERESTS, data)
    return StepResponse(success=True, redirectTo=_next_path(OnboardingStep.SUB_INTERESTS))


@router.post("/dealbreakers", response_model=StepResponse)
async def submit_dealbreakers(
    data: dict,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
) -> StepResponse:
    """Submit dealbreakers (step 3)."""
    submit_step(store, user, OnboardingStep.DEALBREAKERS, data)
    return StepResponse(success=True, redirectTo=_next_path(OnboardingStep.DEALBREAKERS))


@router.post("/complete", response_model=StepResponse)
async def submit_complete(
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
) -> StepResponse:
    """Finish onboarding. Idempotent once complete."""
    submit_step(store, user, OnboardingStep.COMPLETE, None)
    return StepResponse(success=True, redirectTo=get_settings().home_path)
