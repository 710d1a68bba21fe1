"""
Async HTTP client for the Reviews API.

Used by the page controllers. Session cookies set by the server are kept in
the client's cookie jar. Redirects are not followed: page endpoints answer
with 303s that the caller interprets.
"""

import logging
from typing import Any

import httpx

from reviews.models import Review

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    A request failed.

    `status_code` is None for transport failures. `field` and `redirect_to`
    are copied from the server's error body when present.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        field: str | None = None,
        redirect_to: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.field = field
        self.redirect_to = redirect_to


class ReviewsApiClient:
    """Thin wrapper over httpx.AsyncClient for the Reviews endpoints."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        transport: httpx.AsyncBaseTransport | None = None,
        cookies: dict[str, str] | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            cookies=cookies,
            follow_redirects=False,
        )

    async def __aenter__(self) -> "ReviewsApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body. Raises ApiError."""
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ApiError(f"Network error: {e}") from e

        if response.is_redirect:
            location = response.headers.get("location")
            raise ApiError("Redirected", status_code=response.status_code, redirect_to=location)

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}

        if response.is_error:
            message = "Request failed"
            if isinstance(body, dict):
                message = body.get("error") or body.get("detail") or message
            logger.info(f"{method} {path} -> {response.status_code}: {message}")
            raise ApiError(
                str(message),
                status_code=response.status_code,
                field=body.get("field") if isinstance(body, dict) else None,
                redirect_to=body.get("redirectTo") if isinstance(body, dict) else None,
            )

        return body

    async def get(self, path: str, params: dict | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, payload: dict | None = None) -> Any:
        if payload is None:
            return await self.request("POST", path)
        return await self.request("POST", path, json=payload)

    # -------------------------------------------------------------------------
    # Account
    # -------------------------------------------------------------------------

    async def login(self, email: str, password: str) -> dict:
        return await self.post("/login", {"email": email, "password": password})

    async def create_account(self, email: str, password: str, name: str | None = None) -> dict:
        payload = {"email": email, "password": password}
        if name:
            payload["name"] = name
        return await self.post("/create-account", payload)

    async def logout(self) -> dict:
        return await self.post("/logout")

    # -------------------------------------------------------------------------
    # Onboarding
    # -------------------------------------------------------------------------

    async def get_onboarding_state(self) -> dict:
        return await self.get("/onboarding/state")

    async def submit_interests(self, interests: list[str]) -> dict:
        return await self.post("/interests", {"interests": interests})

    async def submit_sub_interests(self, sub_interests: dict[str, list[str]]) -> dict:
        return await self.post("/sub-interests", {"subInterests": sub_interests})

    async def submit_dealbreakers(self, dealbreakers: list[str]) -> dict:
        return await self.post("/dealbreakers", {"dealbreakers": dealbreakers})

    async def complete_onboarding(self) -> dict:
        return await self.post("/complete")

    # -------------------------------------------------------------------------
    # Reviews, discover, profile
    # -------------------------------------------------------------------------

    async def submit_review(self, review: Review) -> dict:
        return await self.post("/api/reviews", review.to_payload())

    async def list_reviews(self) -> list[dict]:
        body = await self.get("/api/reviews")
        return body.get("reviews", [])

    async def transcribe(self, filename: str, audio: bytes, content_type: str = "audio/webm") -> str:
        body = await self.request(
            "POST",
            "/api/transcribe",
            files={"audio": (filename, audio, content_type)},
        )
        return body.get("text", "")

    async def discover(self, section: str, params: dict[str, str] | None = None) -> dict:
        return await self.get(f"/api/discover/{section}", params=params)

    async def get_profile(self) -> dict:
        return await self.get("/api/profile")
