"""
Voice note transcription.

Wraps the OpenAI audio transcription endpoint. Transcription is optional: with
no API key configured the endpoint reports itself unavailable.
"""

import logging

from openai import AsyncOpenAI

from reviews.config import settings
from reviews.models import MAX_TRANSCRIPTION_LENGTH

logger = logging.getLogger(__name__)

# Whisper rejects uploads over 25 MB
MAX_AUDIO_BYTES = 25 * 1024 * 1024

# Singleton client instance
_client: AsyncOpenAI | None = None


class TranscriptionUnavailable(Exception):
    """No transcription provider is configured."""


class TranscriptionError(Exception):
    """The provider failed to transcribe the audio."""


def get_openai_client() -> AsyncOpenAI:
    """
    Get the OpenAI client.

    Uses singleton pattern to reuse connection.
    """
    global _client

    if not settings.openai_api_key:
        raise TranscriptionUnavailable("Voice transcription is not configured")

    if _client is None:
        _client = AsyncOpenAI(api_key=settings.openai_api_key)

    return _client


class Transcriber:
    """Speech-to-text for review voice notes."""

    async def transcribe(self, filename: str, audio: bytes, content_type: str | None = None) -> str:
        """
        Transcribe one recording.

        The result is trimmed and capped at the transcription length limit.
        """
        client = get_openai_client()
        try:
            result = await client.audio.transcriptions.create(
                model=settings.transcription_model,
                file=(filename, audio, content_type or "application/octet-stream"),
            )
        except Exception as e:
            logger.error(f"Transcription failed for {filename}: {e}")
            raise TranscriptionError("Could not transcribe recording") from e

        text = (getattr(result, "text", "") or "").strip()
        if len(text) > MAX_TRANSCRIPTION_LENGTH:
            logger.info(f"Transcription truncated from {len(text)} characters")
            text = text[:MAX_TRANSCRIPTION_LENGTH]
        return text


def get_transcriber() -> Transcriber:
    return Transcriber()
