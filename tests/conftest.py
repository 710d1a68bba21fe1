"""
Pytest configuration and fixtures for Reviews tests.
"""

import os
from unittest.mock import MagicMock

import pytest

# Set test environment before importing reviews modules
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_ANON_KEY"] = "test-anon-key"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-service-key"
os.environ["REVIEWS_ENV"] = "development"
os.environ.pop("OPENAI_API_KEY", None)

from fastapi.testclient import TestClient  # noqa: E402

from onboarding.state import OnboardingStep, Profile  # noqa: E402
from reviews.db.reviews import ReviewStoreError  # noqa: E402
from reviews.models import Review  # noqa: E402
from reviews.transcription import TranscriptionUnavailable  # noqa: E402
from reviews.web.auth import AuthenticatedUser, AuthError, AuthSession  # noqa: E402

ACCESS_COOKIE = "sb-access-token"
REFRESH_COOKIE = "sb-refresh-token"


# =============================================================================
# Fakes
# =============================================================================

class FakeProfileStore:
    """In-memory ProfileStore with the same compare-and-set save."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.saves = 0

    def put(self, profile: Profile) -> None:
        self.rows[profile.user_id] = profile.to_dict()

    def get(self, user_id: str) -> Profile | None:
        row = self.rows.get(user_id)
        return Profile.from_dict(row) if row else None

    def create(self, user_id: str, display_name: str | None = None) -> Profile:
        if user_id not in self.rows:
            self.put(Profile(user_id=user_id, display_name=display_name))
        return self.get(user_id)

    def get_or_create(self, user_id: str, display_name: str | None = None) -> Profile:
        return self.get(user_id) or self.create(user_id, display_name=display_name)

    def save(self, profile: Profile, expected_step: OnboardingStep | None) -> bool:
        stored = self.get(profile.user_id)
        if stored is None or stored.onboarding_step != expected_step:
            return False
        self.put(profile)
        self.saves += 1
        return True


class FakeReviewStore:
    def __init__(self):
        self.rows: list[dict] = []
        self.fail = False

    def create(self, user_id: str, review: Review) -> dict:
        if self.fail:
            raise ReviewStoreError("Failed to save review")
        row = {"id": f"review-{len(self.rows) + 1}", **review.to_row(user_id)}
        self.rows.append(row)
        return row

    def list_for_user(self, user_id: str, limit: int = 50) -> list[dict]:
        rows = [r for r in self.rows if r["user_id"] == user_id]
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)[:limit]


class FakePlaceStore:
    def __init__(self):
        self.results: list[dict] = []
        self.has_more = False
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        return list(self.results), self.has_more, len(self.results)


class FakeSessionStore:
    """Supabase Auth stand-in. Tokens are plain strings."""

    def __init__(self):
        self.accounts: dict[str, tuple[str, AuthenticatedUser]] = {}
        self.access_tokens: dict[str, AuthenticatedUser] = {}
        self.refresh_tokens: dict[str, AuthenticatedUser] = {}
        self.signed_out: list[str] = []
        self._counter = 0

    def _issue(self, user: AuthenticatedUser) -> AuthSession:
        self._counter += 1
        access = f"access-{user.id}-{self._counter}"
        refresh = f"refresh-{user.id}-{self._counter}"
        issued = user.model_copy(update={"access_token": access})
        self.access_tokens[access] = issued
        self.refresh_tokens[refresh] = issued
        return AuthSession(access_token=access, refresh_token=refresh, expires_in=3600, user=issued)

    def add_user(self, user_id: str, email: str, password: str = "secret-pw", name: str | None = None) -> AuthSession:
        user = AuthenticatedUser(id=user_id, email=email, display_name=name, access_token="")
        self.accounts[email] = (password, user)
        return self._issue(user)

    def sign_in(self, email: str, password: str) -> AuthSession:
        account = self.accounts.get(email)
        if not account or account[0] != password:
            raise AuthError("Invalid email or password")
        return self._issue(account[1])

    def sign_up(self, email: str, password: str, name: str | None = None) -> AuthSession:
        if email in self.accounts:
            raise AuthError("Could not create account", status_code=400)
        return self.add_user(f"user-{len(self.accounts) + 1}", email, password, name)

    def get_user(self, access_token: str) -> AuthenticatedUser | None:
        return self.access_tokens.get(access_token)

    def refresh(self, refresh_token: str) -> AuthSession | None:
        user = self.refresh_tokens.pop(refresh_token, None)
        return self._issue(user) if user else None

    def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)
        self.access_tokens.pop(access_token, None)


class FakeTranscriber:
    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls = []

    async def transcribe(self, filename: str, audio: bytes, content_type: str | None = None) -> str:
        self.calls.append((filename, len(audio), content_type))
        if self.error:
            raise self.error
        return self.text


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    # Mock table operations
    mock_table = MagicMock()
    for method in ("select", "insert", "update", "upsert", "delete", "eq", "is_", "in_",
                   "gte", "order", "range", "limit"):
        getattr(mock_table, method).return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[], count=None)

    mock_client.table.return_value = mock_table

    return mock_client


@pytest.fixture
def profiles():
    return FakeProfileStore()


@pytest.fixture
def review_store():
    return FakeReviewStore()


@pytest.fixture
def places():
    return FakePlaceStore()


@pytest.fixture
def sessions():
    return FakeSessionStore()


@pytest.fixture
def transcriber():
    return FakeTranscriber(error=TranscriptionUnavailable("Voice transcription is not configured"))


@pytest.fixture
def app(profiles, review_store, places, sessions, transcriber):
    """The FastAPI app with every external collaborator replaced."""
    from reviews.transcription import get_transcriber
    from reviews.web.app import app as fastapi_app
    from reviews.web.auth import get_session_store
    from reviews.web.dependencies import get_place_store, get_profile_store, get_review_store

    fastapi_app.dependency_overrides[get_profile_store] = lambda: profiles
    fastapi_app.dependency_overrides[get_review_store] = lambda: review_store
    fastapi_app.dependency_overrides[get_place_store] = lambda: places
    fastapi_app.dependency_overrides[get_session_store] = lambda: sessions
    fastapi_app.dependency_overrides[get_transcriber] = lambda: transcriber
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Anonymous test client. Redirects are returned, not followed."""
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def user_session(sessions):
    return sessions.add_user("user-1", "jess@example.com", name="Jess")


@pytest.fixture
def auth_client(client, user_session):
    """Test client signed in as user-1."""
    client.cookies.set(ACCESS_COOKIE, user_session.access_token)
    client.cookies.set(REFRESH_COOKIE, user_session.refresh_token)
    return client


@pytest.fixture
def completed_profile():
    return Profile(
        user_id="user-1",
        onboarding_step=None,
        onboarding_complete=True,
        interests=["Food & Dining", "Music", "Travel"],
        sub_interests={"food-drink": ["coffee"], "arts-culture": ["museums"]},
        dealbreakers=["trust", "pricing"],
        display_name="Jess",
    )
