"""
Profile page endpoint.
"""

import logging

from fastapi import APIRouter, Depends

from reviews.db.profiles import ProfileStore
from reviews.db.reviews import ReviewStore
from reviews.web.auth import AuthenticatedUser, get_current_user
from reviews.web.dependencies import get_profile_store, get_review_store
from reviews.web.review_routes import public_review

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["profile"])


@router.get("/profile")
async def get_profile(
    user: AuthenticatedUser = Depends(get_current_user),
    profiles: ProfileStore = Depends(get_profile_store),
    reviews: ReviewStore = Depends(get_review_store),
):
    """Profile header, stats and the reviews tab."""
    profile = profiles.get_or_create(user.id, display_name=user.display_name)
    rows = reviews.list_for_user(user.id)

    display_name = profile.display_name or user.display_name
    if not display_name and user.email:
        display_name = user.email.split("@")[0]

    ratings = [row["rating"] for row in rows if row.get("rating")]
    return {
        "user": {
            "id": user.id,
            "email": user.email,
            "displayName": display_name or "User",
        },
        "profile": profile.to_public(),
        "stats": {
            "reviews": len(rows),
            "averageRating": round(sum(ratings) / len(ratings), 1) if ratings else None,
            "photos": sum(len(row.get("photos") or []) for row in rows),
        },
        "reviews": [public_review(row) for row in rows],
    }
