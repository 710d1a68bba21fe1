"""
Discover endpoints: one page of place results for a section.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from reviews.db.places import PlaceStore
from reviews.db.profiles import ProfileStore, ProfileStoreError
from reviews.discover import DiscoverQuery, section_config
from reviews.web.auth import AuthenticatedUser, get_optional_user
from reviews.web.dependencies import get_place_store, get_profile_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["discover"])


def _parse_query(section: str, params: dict[str, str]) -> DiscoverQuery:
    try:
        return DiscoverQuery.from_params(section, params)
    except ValidationError as e:
        message = e.errors()[0].get("msg", "Invalid query").removeprefix("Value error, ")
        raise HTTPException(status_code=400, detail=message) from e
    except ValueError as e:
        # page/lat/lng that are not numbers
        raise HTTPException(status_code=400, detail=f"Invalid query: {e}") from e


@router.get("/discover/{section}")
async def discover(
    section: str,
    request: Request,
    user: AuthenticatedUser | None = Depends(get_optional_user),
    places: PlaceStore = Depends(get_place_store),
    profiles: ProfileStore = Depends(get_profile_store),
):
    """
    Search places for a section.

    Unknown sections fall back to For You. For You is personalised with the
    signed-in user's interests unless the request names them explicitly.
    """
    query = _parse_query(section, dict(request.query_params))

    if query.section == "for-you" and not query.interests and user:
        try:
            profile = profiles.get(user.id)
        except ProfileStoreError:
            profile = None
        if profile and profile.interests:
            query = query.model_copy(update={"interests": profile.interests})

    try:
        results, has_more, total = places.search(query)
    except Exception as e:
        logger.warning(f"Discover {query.section} page {query.page} failed: {e}")
        results, has_more, total = [], False, 0

    config = section_config(query.section)
    return {
        "section": query.section,
        "title": config["title"],
        "subtitle": config["subtitle"],
        "results": results,
        "page": query.page,
        "hasMore": has_more,
        "totalCount": total,
        "activeFilters": [
            {"type": filter_type, "label": label} for filter_type, label in query.active_filters()
        ],
    }
