"""
Main-app pages: discover, profile and write-review.

These are only reachable once onboarding is finished; anyone still onboarding
is sent back to their current step.
"""

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import RedirectResponse

from onboarding.forms import REVIEW_TAGS, REVIEW_TAGS_RULE
from onboarding.state import Profile, redirect_path
from reviews.config import get_settings
from reviews.db.profiles import ProfileStore
from reviews.discover import DISTANCE_OPTIONS_KM, PAGE_SIZE, PRICE_DISPLAY, SECTION_CONFIGS, SORT_OPTIONS
from reviews.models import (
    ACCEPTED_PHOTO_TYPES,
    MAX_PHOTO_BYTES,
    MAX_PHOTOS,
    MAX_TEXT_LENGTH,
    MAX_TRANSCRIPTION_LENGTH,
)
from reviews.web.auth import AuthenticatedUser, copy_cookies, get_current_user
from reviews.web.dependencies import get_profile_store

router = APIRouter(tags=["pages"])

PROFILE_TABS = ("reviews", "collections", "liked")


def _onboarded_profile(user: AuthenticatedUser, store: ProfileStore) -> Profile:
    return store.get_or_create(user.id, display_name=user.display_name)


def _back_to_onboarding(profile: Profile, response: Response) -> RedirectResponse:
    target = redirect_path(profile, get_settings().home_path)
    return copy_cookies(response, RedirectResponse(target, status_code=303))


@router.get("/discover")
async def discover_page(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
):
    profile = _onboarded_profile(user, store)
    if not profile.onboarding_complete:
        return _back_to_onboarding(profile, response)
    return {
        "page": "discover",
        "sections": SECTION_CONFIGS,
        "prices": PRICE_DISPLAY,
        "distances": list(DISTANCE_OPTIONS_KM),
        "sorts": list(SORT_OPTIONS),
        "pageSize": PAGE_SIZE,
    }


@router.get("/profile")
async def profile_page(
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
):
    profile = _onboarded_profile(user, store)
    if not profile.onboarding_complete:
        return _back_to_onboarding(profile, response)
    return {"page": "profile", "tabs": list(PROFILE_TABS), "dataPath": "/api/profile"}


@router.get("/write-review")
async def write_review_page(
    response: Response,
    place_id: str | None = Query(default=None, alias="placeId"),
    user: AuthenticatedUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
):
    profile = _onboarded_profile(user, store)
    if not profile.onboarding_complete:
        return _back_to_onboarding(profile, response)
    return {
        "page": "write-review",
        "placeId": place_id,
        "tags": REVIEW_TAGS,
        "limits": {
            "maxTags": REVIEW_TAGS_RULE.maximum,
            "maxCharacters": MAX_TEXT_LENGTH,
            "maxTranscription": MAX_TRANSCRIPTION_LENGTH,
            "maxPhotos": MAX_PHOTOS,
            "maxPhotoBytes": MAX_PHOTO_BYTES,
            "photoTypes": list(ACCEPTED_PHOTO_TYPES),
        },
    }
