"""
Reviews Web API - FastAPI application.

Uses Supabase Auth (email/password) with cookie-carried sessions. Page
endpoints return JSON page state; the front end renders it.
"""

import logging

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from onboarding.api import StepConflictError
from onboarding.api import router as onboarding_router
from onboarding.state import OnboardingError, StepOrderError, StepValidationError, redirect_path
from reviews import __version__
from reviews.config import settings
from reviews.db.profiles import ProfileStore, ProfileStoreError
from reviews.db.reviews import ReviewStoreError
from reviews.web.auth import (
    AuthenticatedUser,
    AuthError,
    AuthRedirect,
    clear_session_cookies,
    copy_cookies,
    get_optional_user,
)
from reviews.web.auth_routes import router as auth_router
from reviews.web.dependencies import get_profile_store
from reviews.web.discover_routes import router as discover_router
from reviews.web.page_routes import router as page_router
from reviews.web.profile_routes import router as profile_router
from reviews.web.review_routes import router as review_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Reviews", version=__version__)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    logger.info("Reviews starting up...")
    logger.info(f"  Environment: {settings.reviews_env}")
    logger.info(f"  Supabase: {settings.supabase_url}")
    logger.info(f"  Transcription: {'enabled' if settings.openai_api_key else 'disabled'}")


# CORS middleware for the front-end dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(AuthRedirect)
async def auth_redirect_handler(request: Request, exc: AuthRedirect):
    """No session: pages go to the entry point, API calls get a 401."""
    target = settings.onboarding_entry_path
    if request.method == "GET":
        response = RedirectResponse(target, status_code=303)
    else:
        response = JSONResponse(
            status_code=401,
            content={"error": exc.reason, "redirectTo": target},
        )
    if request.cookies:
        clear_session_cookies(response)
    return response


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(OnboardingError)
async def onboarding_error_handler(request: Request, exc: OnboardingError):
    """Map onboarding failures to {error, field} or {error, redirectTo}."""
    if isinstance(exc, StepValidationError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "field": exc.field},
        )

    if isinstance(exc, (StepOrderError, StepConflictError)):
        current = exc.current_step
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.message,
                "redirectTo": current.path if current else settings.home_path,
            },
        )

    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(ProfileStoreError)
@app.exception_handler(ReviewStoreError)
async def store_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Body/query validation failures as {error, field}."""
    first = exc.errors()[0] if exc.errors() else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    return JSONResponse(
        status_code=400,
        content={"error": message, "field": loc[0] if loc else None},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


# =============================================================================
# Routers
# =============================================================================

app.include_router(auth_router)
app.include_router(onboarding_router)
app.include_router(review_router)
app.include_router(discover_router)
app.include_router(profile_router)
app.include_router(page_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def landing(
    response: Response,
    user: AuthenticatedUser | None = Depends(get_optional_user),
    store: ProfileStore = Depends(get_profile_store),
):
    """Send visitors to the entry point, their current step, or home."""
    if user is None:
        return RedirectResponse(settings.onboarding_entry_path, status_code=303)

    profile = store.get_or_create(user.id, display_name=user.display_name)
    target = redirect_path(profile, settings.home_path)
    return copy_cookies(response, RedirectResponse(target, status_code=303))


# Registered last so every real route matches first
@app.get("/{path:path}", include_in_schema=False)
async def catch_all(path: str):
    return RedirectResponse("/", status_code=303)
