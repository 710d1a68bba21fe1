"""
Account endpoints: sign-in, sign-up, sign-out and the public entry pages.

Supabase Auth does the credential checks; this module only moves the issued
tokens into session cookies and decides where the client goes next.
"""

import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from onboarding.state import redirect_path
from reviews.config import get_settings
from reviews.db.profiles import ProfileStore
from reviews.web.auth import (
    AuthenticatedUser,
    SessionStore,
    clear_session_cookies,
    get_optional_user,
    get_session_store,
    set_session_cookies,
)
from reviews.web.dependencies import get_profile_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class CreateAccountRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    name: str | None = None


class AuthResponse(BaseModel):
    success: bool
    redirectTo: str


@router.get("/onboarding")
async def onboarding_page(
    user: AuthenticatedUser | None = Depends(get_optional_user),
    store: ProfileStore = Depends(get_profile_store),
):
    """Public entry page. Signed-in users are pointed at where they left off."""
    page = {"page": "onboarding", "authenticated": user is not None}
    if user:
        profile = store.get_or_create(user.id, display_name=user.display_name)
        page["redirectTo"] = redirect_path(profile, get_settings().home_path)
    return page


@router.get("/create-account")
async def create_account_page():
    return {
        "page": "create-account",
        "fields": ["name", "email", "password"],
        "loginPath": "/login",
    }


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
    store: ProfileStore = Depends(get_profile_store),
) -> AuthResponse:
    """Sign in and resume onboarding (or go home if finished)."""
    session = sessions.sign_in(body.email, body.password)
    set_session_cookies(response, session)

    profile = store.get_or_create(session.user.id, display_name=session.user.display_name)
    target = redirect_path(profile, get_settings().home_path)
    logger.info(f"User {session.user.id} signed in; redirecting to {target}")
    return AuthResponse(success=True, redirectTo=target)


@router.post("/create-account", response_model=AuthResponse)
async def create_account(
    body: CreateAccountRequest,
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
    store: ProfileStore = Depends(get_profile_store),
) -> AuthResponse:
    """Register, start a session and create the profile at the first step."""
    session = sessions.sign_up(body.email, body.password, name=body.name)
    set_session_cookies(response, session)

    profile = store.create(session.user.id, display_name=body.name or session.user.display_name)
    logger.info(f"Created account for user {session.user.id}")
    return AuthResponse(
        success=True,
        redirectTo=redirect_path(profile, get_settings().home_path),
    )


@router.post("/logout", response_model=AuthResponse)
async def logout(
    response: Response,
    user: AuthenticatedUser | None = Depends(get_optional_user),
    sessions: SessionStore = Depends(get_session_store),
) -> AuthResponse:
    """End the session. Always clears cookies, even if already signed out."""
    if user:
        sessions.sign_out(user.access_token)
        logger.info(f"User {user.id} signed out")
    clear_session_cookies(response)
    return AuthResponse(success=True, redirectTo=get_settings().onboarding_entry_path)
