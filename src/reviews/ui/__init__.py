"""
Reviews page controllers.

Python models of the front-end pages: each controller owns its page state,
talks to the API through ReviewsApiClient, and keeps drafts through
DraftPersistence.
"""

from reviews.ui.api_client import ApiError, ReviewsApiClient
from reviews.ui.discover import DiscoverController
from reviews.ui.drafts import DraftPersistence, DraftScope, FileStorage, MemoryStorage, StorageError
from reviews.ui.onboarding import (
    CompleteController,
    DealbreakersController,
    InterestsController,
    SubInterestsController,
)
from reviews.ui.profile import ProfileController
from reviews.ui.selection import SelectionSet, ToggleResult
from reviews.ui.write_review import WriteReviewController

__all__ = [
    "ApiError",
    "ReviewsApiClient",
    "DraftPersistence",
    "DraftScope",
    "FileStorage",
    "MemoryStorage",
    "StorageError",
    "SelectionSet",
    "ToggleResult",
    "InterestsController",
    "SubInterestsController",
    "DealbreakersController",
    "CompleteController",
    "WriteReviewController",
    "DiscoverController",
    "ProfileController",
]
