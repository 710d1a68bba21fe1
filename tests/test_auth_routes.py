"""
Tests for sign-in, sign-up, sign-out and landing redirects.
"""

from onboarding.state import OnboardingStep

ACCESS_COOKIE = "sb-access-token"
REFRESH_COOKIE = "sb-refresh-token"


class TestLogin:
    def test_login_sets_cookies_and_resumes(self, client, sessions, profiles):
        sessions.add_user("user-7", "sam@example.com", password="hunter22")
        profiles.create("user-7")

        response = client.post("/login", json={"email": "sam@example.com", "password": "hunter22"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "redirectTo": "/interests"}
        cookies = " ".join(response.headers.get_list("set-cookie"))
        assert f"{ACCESS_COOKIE}=access-user-7-2" in cookies
        assert "HttpOnly" in cookies

    def test_login_for_finished_user_goes_home(self, client, user_session, profiles, completed_profile):
        profiles.put(completed_profile)
        response = client.post("/login", json={"email": "jess@example.com", "password": "secret-pw"})
        assert response.json()["redirectTo"] == "/discover"

    def test_login_creates_missing_profile(self, client, user_session, profiles):
        client.post("/login", json={"email": "jess@example.com", "password": "secret-pw"})
        assert profiles.get("user-1").onboarding_step is OnboardingStep.INTERESTS

    def test_bad_password(self, client, user_session):
        response = client.post("/login", json={"email": "jess@example.com", "password": "wrong"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}

    def test_missing_fields(self, client):
        response = client.post("/login", json={"email": "jess@example.com"})
        assert response.status_code == 400
        assert response.json()["field"] == "password"


class TestCreateAccount:
    def test_new_account_starts_onboarding(self, client, profiles):
        response = client.post(
            "/create-account",
            json={"email": "new@example.com", "password": "longenough", "name": "Nia"},
        )

        assert response.status_code == 200
        assert response.json()["redirectTo"] == "/interests"
        profile = profiles.get("user-1")
        assert profile.display_name == "Nia"
        assert profile.onboarding_complete is False

    def test_short_password(self, client):
        response = client.post("/create-account", json={"email": "new@example.com", "password": "123"})
        assert response.status_code == 400
        assert response.json()["field"] == "password"

    def test_duplicate_email(self, client, user_session):
        response = client.post(
            "/create-account",
            json={"email": "jess@example.com", "password": "longenough"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Could not create account"}

    def test_entry_pages_are_public(self, client):
        assert client.get("/create-account").json()["page"] == "create-account"
        page = client.get("/onboarding").json()
        assert page == {"page": "onboarding", "authenticated": False}


class TestLogout:
    def test_logout_clears_cookies(self, auth_client, sessions, user_session):
        response = auth_client.post("/logout")

        assert response.status_code == 200
        assert response.json()["redirectTo"] == "/onboarding"
        assert sessions.signed_out == [user_session.access_token]
        cleared = " ".join(response.headers.get_list("set-cookie"))
        assert f'{ACCESS_COOKIE}=""' in cleared or "Max-Age=0" in cleared

    def test_logout_without_session(self, client, sessions):
        response = client.post("/logout")
        assert response.status_code == 200
        assert sessions.signed_out == []


class TestLanding:
    def test_anonymous_goes_to_entry(self, client):
        response = client.get("/")
        assert response.status_code == 303
        assert response.headers["location"] == "/onboarding"

    def test_signed_in_goes_to_current_step(self, auth_client, profiles):
        auth_client.post("/interests", json={"interests": ["Music", "Books", "Travel"]})
        response = auth_client.get("/")
        assert response.headers["location"] == "/sub-interests"

    def test_finished_user_goes_home(self, auth_client, profiles, completed_profile):
        profiles.put(completed_profile)
        assert auth_client.get("/").headers["location"] == "/discover"

    def test_entry_page_points_signed_in_user(self, auth_client):
        assert auth_client.get("/onboarding").json()["redirectTo"] == "/interests"

    def test_unknown_path_redirects_to_root(self, client):
        response = client.get("/no/such/page")
        assert response.status_code == 303
        assert response.headers["location"] == "/"


class TestMainPages:
    """Discover, profile and write-review require finished onboarding."""

    def test_unfinished_user_sent_back(self, auth_client):
        for path in ("/discover", "/profile", "/write-review"):
            response = auth_client.get(path)
            assert response.status_code == 303
            assert response.headers["location"] == "/interests"

    def test_finished_user_sees_pages(self, auth_client, profiles, completed_profile):
        profiles.put(completed_profile)
        assert auth_client.get("/discover").json()["page"] == "discover"
        assert auth_client.get("/profile").json()["tabs"] == ["reviews", "collections", "liked"]
        page = auth_client.get("/write-review", params={"placeId": "place-9"}).json()
        assert page["placeId"] == "place-9"
        assert page["limits"]["maxTags"] == 4

    def test_anonymous_sent_to_entry(self, client):
        response = client.get("/discover")
        assert response.headers["location"] == "/onboarding"
