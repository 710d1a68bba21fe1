"""
Store dependencies for route modules.

Tests replace these through app.dependency_overrides.
"""

from reviews.db.client import get_service_client
from reviews.db.places import PlaceStore
from reviews.db.profiles import ProfileStore
from reviews.db.reviews import ReviewStore


def get_profile_store() -> ProfileStore:
    return ProfileStore(get_service_client())


def get_review_store() -> ReviewStore:
    return ReviewStore(get_service_client())


def get_place_store() -> PlaceStore:
    return PlaceStore(get_service_client())
