"""
Write-review page controller.

Collects a rating, tags, typed text, photos and an optional voice-note
transcription for one place. The draft is saved on every change and restored
only for the same place.
"""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from onboarding.forms import REVIEW_TAGS, REVIEW_TAGS_RULE
from reviews.models import (
    MAX_PHOTOS,
    MAX_RATING,
    MAX_TEXT_LENGTH,
    MAX_TRANSCRIPTION_LENGTH,
    MIN_RATING,
    PhotoValidationError,
    Review,
    ReviewPhoto,
    check_photo,
    combine_text,
    encode_data_url,
)
from reviews.ui.api_client import ApiError, ReviewsApiClient
from reviews.ui.drafts import DraftPersistence, review_scope
from reviews.ui.selection import SelectionSet, ToggleResult

logger = logging.getLogger(__name__)

WARNING_RATIO = 0.8

RATING_REQUIRED = "Please select a rating"
CONTENT_REQUIRED = "Please add text, a photo, or a voice note"
TAG_LIMIT = f"You can pick up to {REVIEW_TAGS_RULE.maximum} tags"
PHOTO_LIMIT = f"You can only add up to {MAX_PHOTOS} photos"
SUBMIT_FAILED = "Error submitting review. Please try again."
TRANSCRIBE_FAILED = "Could not transcribe voice note. Please try again."


@dataclass
class CharacterCount:
    count: int
    limit: int

    @property
    def label(self) -> str:
        return f"{self.count}/{self.limit}"

    @property
    def state(self) -> str:
        """ok, then warning from 80% of the limit, then error from 100%."""
        if self.count >= self.limit:
            return "error"
        if self.count >= self.limit * WARNING_RATIO:
            return "warning"
        return "ok"


class WriteReviewController:
    """State and actions for writing a review of one place."""

    def __init__(self, api: ReviewsApiClient, drafts: DraftPersistence, place_id: str):
        self.api = api
        self.drafts = drafts
        self.place_id = place_id
        self.scope = review_scope(place_id)

        self.rating = 0
        self.tags = SelectionSet(
            REVIEW_TAGS_RULE,
            [t["id"] for t in REVIEW_TAGS],
            max_message=TAG_LIMIT,
        )
        self.text = ""
        self.transcription = ""
        self.photos: list[ReviewPhoto] = []

        self.errors: dict[str, str] = {}
        self.message = ""
        self.submitting = False
        self.transcribing = False
        self.redirect_to: str | None = None
        self.submitted: dict | None = None

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def set_rating(self, rating: int) -> None:
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        self.rating = rating
        self.errors.pop("rating", None)
        self.message = f"{rating}/{MAX_RATING}"
        self.save_draft()

    def toggle_tag(self, tag: str) -> ToggleResult:
        result = self.tags.toggle(tag)
        if result.accepted:
            self.errors.pop("tags", None)
            self.save_draft()
        else:
            self.errors["tags"] = result.message or TAG_LIMIT
        return result

    def set_text(self, text: str) -> None:
        self.text = text
        if self.errors.get("experience") and len(text) <= MAX_TEXT_LENGTH:
            self.errors.pop("experience")
        self.save_draft()

    @property
    def character_count(self) -> CharacterCount:
        return CharacterCount(len(self.text), MAX_TEXT_LENGTH)

    def add_photos(self, files: list[tuple[str, str, bytes]]) -> bool:
        """
        Attach (name, content type, bytes) files.

        Too many files rejects the whole batch; an invalid file is skipped with
        a message and the rest are still attached.
        """
        if len(self.photos) + len(files) > MAX_PHOTOS:
            self.errors["photos"] = PHOTO_LIMIT
            return False

        problems = []
        for name, content_type, data in files:
            try:
                check_photo(name, content_type, len(data))
            except PhotoValidationError as e:
                problems.append(str(e))
                continue
            self.photos.append(ReviewPhoto(name=name, data_url=encode_data_url(content_type, data)))

        if problems:
            self.errors["photos"] = " ".join(problems)
        else:
            self.errors.pop("photos", None)
        self.save_draft()
        return not problems

    def add_photo(self, name: str, content_type: str, data: bytes) -> bool:
        return self.add_photos([(name, content_type, data)])

    def remove_photo(self, index: int) -> None:
        if 0 <= index < len(self.photos):
            del self.photos[index]
            self.errors.pop("photos", None)
            self.save_draft()

    async def transcribe(self, filename: str, audio: bytes, content_type: str = "audio/webm") -> bool:
        """Transcribe a recorded voice note into the review."""
        if self.transcribing:
            return False
        self.transcribing = True
        try:
            text = await self.api.transcribe(filename, audio, content_type)
        except ApiError as e:
            logger.warning(f"Transcription failed for place {self.place_id}: {e.message}")
            self.errors["voice"] = TRANSCRIBE_FAILED
            return False
        finally:
            self.transcribing = False

        self.transcription = text.strip()[:MAX_TRANSCRIPTION_LENGTH]
        self.errors.pop("voice", None)
        self.message = "Voice note added successfully"
        self.save_draft()
        return True

    def clear_transcription(self) -> None:
        self.transcription = ""
        self.save_draft()

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @property
    def combined_text(self) -> str:
        return combine_text(self.text, self.transcription)

    @property
    def has_content(self) -> bool:
        return bool(self.combined_text.strip() or self.photos)

    @property
    def can_submit(self) -> bool:
        return (
            not self.submitting
            and self.rating > 0
            and self.has_content
            and len(self.text) <= MAX_TEXT_LENGTH
        )

    def validate(self) -> dict[str, str]:
        """Field-scoped problems that block submitting."""
        errors = {}
        if self.rating == 0:
            errors["rating"] = RATING_REQUIRED
        if len(self.text) > MAX_TEXT_LENGTH:
            errors["experience"] = f"Text is too long ({len(self.text)}/{MAX_TEXT_LENGTH})"
        elif not self.has_content:
            errors["experience"] = CONTENT_REQUIRED
        return errors

    def build_review(self) -> Review:
        """The review to submit. Raises ValueError if the form is not valid."""
        errors = self.validate()
        if errors:
            raise ValueError(next(iter(errors.values())))
        try:
            return Review(
                place_id=self.place_id,
                rating=self.rating,
                tags=self.tags.items,
                text=self.combined_text,
                photos=list(self.photos),
            )
        except ValidationError as e:
            raise ValueError(e.errors()[0].get("msg", "Invalid review")) from e

    async def submit(self) -> bool:
        if self.submitting:
            return False

        self.errors = self.validate()
        if self.errors:
            self.message = next(iter(self.errors.values()))
            return False

        review = self.build_review()
        self.submitting = True
        try:
            result = await self.api.submit_review(review)
        except ApiError as e:
            logger.warning(f"Review submit failed for place {self.place_id}: {e.message}")
            self.message = SUBMIT_FAILED
            if e.field:
                self.errors[e.field] = e.message
            if e.status_code == 401 and e.redirect_to:
                self.redirect_to = e.redirect_to
            return False
        finally:
            self.submitting = False

        self.drafts.clear(self.scope)
        self.submitted = result.get("review")
        self.redirect_to = result.get("redirectTo")
        self.message = "Thanks for sharing!"
        return True

    # -------------------------------------------------------------------------
    # Drafts
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict:
        return {
            "placeId": self.place_id,
            "rating": self.rating,
            "tags": self.tags.items,
            "text": self.text,
            "transcription": self.transcription,
            "photos": [{"name": p.name, "dataUrl": p.data_url} for p in self.photos],
        }

    def save_draft(self) -> bool:
        return self.drafts.save(self.scope, self.snapshot())

    def restore(self) -> bool:
        """Load this place's draft. Returns False if there was none."""
        draft = self.drafts.load(self.scope)
        if not isinstance(draft, dict) or draft.get("placeId") != self.place_id:
            return False

        rating = draft.get("rating")
        if isinstance(rating, int) and MIN_RATING <= rating <= MAX_RATING:
            self.rating = rating
        tags = draft.get("tags")
        if isinstance(tags, list):
            self.tags.restore(tags)
        if isinstance(draft.get("text"), str):
            self.text = draft["text"]
        if isinstance(draft.get("transcription"), str):
            self.transcription = draft["transcription"][:MAX_TRANSCRIPTION_LENGTH]

        self.photos = []
        photos = draft.get("photos")
        if not isinstance(photos, list):
            photos = []
        for photo in photos[:MAX_PHOTOS]:
            try:
                self.photos.append(ReviewPhoto.model_validate(photo))
            except ValidationError as e:
                logger.warning(f"Dropping unreadable draft photo: {e.errors()[0].get('msg')}")
        return True
