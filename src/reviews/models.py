"""
Review models.

Shared by the write-review controller (which builds a Review at submit time)
and the review endpoints (which validate it again before storing).
"""

import base64
import binascii
import re
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from onboarding.forms import REVIEW_TAGS_RULE, VALID_REVIEW_TAG_IDS

MIN_RATING = 1
MAX_RATING = 5
MAX_TEXT_LENGTH = 1000
MAX_TRANSCRIPTION_LENGTH = 2000
# Combined text = typed text + " " + transcription
MAX_COMBINED_TEXT_LENGTH = MAX_TEXT_LENGTH + 1 + MAX_TRANSCRIPTION_LENGTH
MAX_PHOTOS = 5
MAX_PHOTO_BYTES = 5 * 1024 * 1024
ACCEPTED_PHOTO_TYPES = ("image/jpeg", "image/png", "image/webp")

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)


class PhotoValidationError(ValueError):
    """A photo attachment was rejected."""


def encode_data_url(content_type: str, data: bytes) -> str:
    """Inline-encode image bytes as a base64 data URL."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def check_photo(name: str, content_type: str, size: int) -> None:
    """Reject photos with a disallowed type or oversized payload."""
    if content_type not in ACCEPTED_PHOTO_TYPES:
        raise PhotoValidationError(f"{name}: Invalid file type. Please use JPG, PNG, or WebP.")
    if size > MAX_PHOTO_BYTES:
        raise PhotoValidationError(f"{name}: File too large. Maximum size is 5MB.")


def parse_data_url(data_url: str) -> tuple[str, bytes]:
    """Split a base64 data URL into (mime type, decoded bytes)."""
    match = _DATA_URL_RE.match(data_url)
    if not match:
        raise PhotoValidationError("Photo must be a base64 data URL")
    try:
        payload = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise PhotoValidationError("Photo payload is not valid base64") from e
    return match.group("mime"), payload


def combine_text(text: str, transcription: str) -> str:
    """Typed text and transcription, each kept only if non-blank."""
    return " ".join(part for part in (text, transcription) if part.strip())


class ReviewPhoto(BaseModel):
    """An inline-encoded photo attachment."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    data_url: str = Field(alias="dataUrl")

    @model_validator(mode="after")
    def validate_payload(self) -> "ReviewPhoto":
        mime, payload = parse_data_url(self.data_url)
        check_photo(self.name, mime, len(payload))
        return self


class Review(BaseModel):
    """
    A submitted review.

    `text` is the combined text (typed text plus transcription). At least one
    of text or photos must be present.
    """

    model_config = ConfigDict(populate_by_name=True)

    place_id: str = Field(alias="placeId", min_length=1)
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    tags: list[str] = Field(default_factory=list)
    text: str = Field(default="", max_length=MAX_COMBINED_TEXT_LENGTH)
    photos: list[ReviewPhoto] = Field(default_factory=list, max_length=MAX_PHOTOS)
    created_at: datetime = Field(
        alias="createdAt",
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        v = list(dict.fromkeys(v))
        unknown = [t for t in v if t not in VALID_REVIEW_TAG_IDS]
        if unknown:
            raise ValueError(f"Unknown tags: {', '.join(unknown)}")
        if not REVIEW_TAGS_RULE.is_satisfied(len(v)):
            raise ValueError(f"You can only select up to {REVIEW_TAGS_RULE.maximum} tags.")
        return v

    @model_validator(mode="after")
    def require_content(self) -> "Review":
        if not self.text.strip() and not self.photos:
            raise ValueError("Please add text, a photo, or a voice note")
        return self

    def to_payload(self) -> dict:
        """JSON body for POST /api/reviews."""
        return {
            "placeId": self.place_id,
            "rating": self.rating,
            "tags": list(self.tags),
            "text": self.text,
            "photos": [{"name": p.name, "dataUrl": p.data_url} for p in self.photos],
            "createdAt": self.created_at.isoformat(),
        }

    def to_row(self, user_id: str) -> dict:
        """reviews table row."""
        return {
            "user_id": user_id,
            "place_id": self.place_id,
            "rating": self.rating,
            "tags": list(self.tags),
            "text": self.text,
            "photos": [{"name": p.name, "data_url": p.data_url} for p in self.photos],
            "created_at": self.created_at.isoformat(),
        }
