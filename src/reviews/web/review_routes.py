"""
Review endpoints: submit a review, list your reviews, transcribe a voice note.
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from reviews.db.reviews import ReviewStore
from reviews.models import Review
from reviews.transcription import (
    MAX_AUDIO_BYTES,
    Transcriber,
    TranscriptionError,
    TranscriptionUnavailable,
    get_transcriber,
)
from reviews.web.auth import AuthenticatedUser, get_current_user
from reviews.web.dependencies import get_review_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["reviews"])


def public_review(row: dict) -> dict:
    """camelCase view of a reviews row."""
    return {
        "id": row.get("id"),
        "placeId": row.get("place_id"),
        "rating": row.get("rating"),
        "tags": row.get("tags") or [],
        "text": row.get("text") or "",
        "photos": [
            {"name": p.get("name"), "dataUrl": p.get("data_url")}
            for p in (row.get("photos") or [])
        ],
        "createdAt": row.get("created_at"),
    }


@router.post("/reviews", status_code=201)
async def create_review(
    review: Review,
    user: AuthenticatedUser = Depends(get_current_user),
    store: ReviewStore = Depends(get_review_store),
):
    """Store a review. The body is validated again here; the client check is advisory."""
    row = store.create(user.id, review)
    logger.info(f"User {user.id} reviewed place {review.place_id} ({review.rating} stars)")
    return {
        "success": True,
        "review": public_review(row),
        "redirectTo": "/profile",
    }


@router.get("/reviews")
async def list_reviews(
    user: AuthenticatedUser = Depends(get_current_user),
    store: ReviewStore = Depends(get_review_store),
):
    """The signed-in user's reviews, newest first."""
    return {"reviews": [public_review(row) for row in store.list_for_user(user.id)]}


@router.post("/transcribe")
async def transcribe_voice_note(
    audio: UploadFile = File(...),
    user: AuthenticatedUser = Depends(get_current_user),
    transcriber: Transcriber = Depends(get_transcriber),
):
    """Transcribe an uploaded voice note to text."""
    data = await audio.read()
    if not data:
        raise HTTPException(status_code=400, detail="Recording is empty")
    if len(data) > MAX_AUDIO_BYTES:
        raise HTTPException(status_code=400, detail="Recording is too long")

    try:
        text = await transcriber.transcribe(audio.filename or "voice-note.webm", data, audio.content_type)
    except TranscriptionUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except TranscriptionError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e

    logger.info(f"Transcribed {len(data)} bytes for user {user.id}")
    return {"text": text}
