"""
Authentication utilities for FastAPI routes.

Sessions are Supabase Auth JWTs carried in two httpOnly cookies: a short-lived
access token and a long-lived refresh token. An expired access token is
refreshed transparently when the refresh token is still valid.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Request, Response
from pydantic import BaseModel

from reviews.config import get_settings
from reviews.db.client import get_service_client, new_anon_client

logger = logging.getLogger(__name__)


class AuthenticatedUser(BaseModel):
    """Authenticated user info from Supabase JWT."""
    id: str
    email: str | None
    display_name: str | None = None
    access_token: str


@dataclass
class AuthSession:
    """Tokens issued by Supabase Auth for one sign-in."""
    access_token: str
    refresh_token: str
    expires_in: int | None
    user: AuthenticatedUser


class AuthError(Exception):
    """Sign-in or sign-up was rejected."""

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthRedirect(Exception):
    """No valid session; send the client to the onboarding entry point."""

    def __init__(self, reason: str = "Not authenticated"):
        super().__init__(reason)
        self.reason = reason


def _to_user(user, access_token: str) -> AuthenticatedUser:
    metadata = getattr(user, "user_metadata", None) or {}
    return AuthenticatedUser(
        id=user.id,
        email=user.email,
        display_name=metadata.get("name"),
        access_token=access_token,
    )


def _to_session(auth_response) -> AuthSession | None:
    session = getattr(auth_response, "session", None)
    if not session or not auth_response.user:
        return None
    return AuthSession(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=getattr(session, "expires_in", None),
        user=_to_user(auth_response.user, session.access_token),
    )


class SessionStore:
    """
    Supabase Auth proxy.

    Each exchange that creates a session uses its own anon client; token
    validation and sign-out go through the service client.
    """

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = new_anon_client().auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            logger.warning(f"Sign-in failed for {email}: {e}")
            raise AuthError("Invalid email or password") from e

        session = _to_session(response)
        if session is None:
            raise AuthError("Invalid email or password")
        return session

    def sign_up(self, email: str, password: str, name: str | None = None) -> AuthSession:
        options = {"data": {"name": name}} if name else {}
        try:
            response = new_anon_client().auth.sign_up(
                {"email": email, "password": password, "options": options}
            )
        except Exception as e:
            logger.warning(f"Sign-up failed for {email}: {e}")
            raise AuthError("Could not create account", status_code=400) from e

        session = _to_session(response)
        if session is None:
            # Project requires email confirmation before issuing a session
            raise AuthError("Check your email to confirm your account", status_code=400)
        return session

    def get_user(self, access_token: str) -> AuthenticatedUser | None:
        """Resolve an access token to a user, or None if invalid/expired."""
        try:
            response = get_service_client().auth.get_user(access_token)
        except Exception as e:
            logger.debug(f"Access token rejected: {e}")
            return None

        if not response or not response.user:
            return None
        return _to_user(response.user, access_token)

    def refresh(self, refresh_token: str) -> AuthSession | None:
        try:
            response = new_anon_client().auth.refresh_session(refresh_token)
        except Exception as e:
            logger.info(f"Session refresh failed: {e}")
            return None
        return _to_session(response)

    def sign_out(self, access_token: str) -> None:
        try:
            get_service_client().auth.admin.sign_out(access_token)
        except Exception as e:
            logger.warning(f"Sign-out failed: {e}")


def get_session_store() -> SessionStore:
    return SessionStore()


# =============================================================================
# Cookies
# =============================================================================

def set_session_cookies(response: Response, session: AuthSession) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.access_cookie_name,
        value=session.access_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=session.expires_in or settings.access_token_max_age_seconds,
    )
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=session.refresh_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.refresh_token_max_age_seconds,
    )


def clear_session_cookies(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(settings.access_cookie_name)
    response.delete_cookie(settings.refresh_cookie_name)


def copy_cookies(source: Response, target: Response) -> Response:
    """Carry Set-Cookie headers onto a response returned directly from a route."""
    for key, value in source.raw_headers:
        if key == b"set-cookie":
            target.raw_headers.append((key, value))
    return target


# =============================================================================
# Dependencies
# =============================================================================

def resolve_user(
    request: Request,
    response: Response,
    sessions: SessionStore,
) -> AuthenticatedUser | None:
    """
    Find the session user from cookies, refreshing if needed.

    Refreshed tokens are written to `response`.
    """
    settings = get_settings()

    access_token = request.cookies.get(settings.access_cookie_name)
    if access_token:
        user = sessions.get_user(access_token)
        if user:
            return user

    refresh_token = request.cookies.get(settings.refresh_cookie_name)
    if refresh_token:
        session = sessions.refresh(refresh_token)
        if session:
            set_session_cookies(response, session)
            return session.user

    return None


async def get_optional_user(
    request: Request,
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
) -> AuthenticatedUser | None:
    return resolve_user(request, response, sessions)


async def get_current_user(
    request: Request,
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
) -> AuthenticatedUser:
    """Require a valid session. Raises AuthRedirect otherwise."""
    user = resolve_user(request, response, sessions)
    if user is None:
        raise AuthRedirect()
    return user
