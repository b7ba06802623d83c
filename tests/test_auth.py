"""Tests for GitHub sign-in and the /api/auth routes."""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from authlib.integrations.base_client import OAuthError
from fastapi.testclient import TestClient

from gitstack.app import create_app
from gitstack.auth import GitHubOAuth, primary_email, upsert_user
from gitstack.config import Settings
from gitstack.errors import ConfigurationError
from gitstack.models import User

PROFILE = {
    "id": 583231,
    "login": "octocat",
    "name": "The Octocat",
    "email": None,
    "avatar_url": "https://avatars.githubusercontent.com/u/583231",
    "html_url": "https://github.com/octocat",
}


def sign_in(client, github, token="gho_fresh"):
    """Run the OAuth round trip with the code exchange stubbed out."""
    login = client.get("/api/auth/github", follow_redirects=False)
    state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]
    github.get("/user").mock(return_value=httpx.Response(200, json=PROFILE))
    github.get("/user/emails").mock(
        return_value=httpx.Response(200, json=[{"email": "octo@example.com", "primary": True, "verified": True}])
    )
    with patch.object(GitHubOAuth, "exchange_code", AsyncMock(return_value=token)):
        return client.get(
            f"/api/auth/github/callback?code=abc&state={state}", follow_redirects=False
        )


class TestUpsertUser:
    def test_creates_new_user(self, store):
        user = upsert_user(store, PROFILE, "tok", email="octo@example.com")
        assert user.github_id == "583231"
        assert user.username == "octocat"
        assert user.display_name == "The Octocat"
        assert user.email == "octo@example.com"
        assert user.avatar == PROFILE["avatar_url"]
        assert store.find_one(User, github_id="583231").id == user.id

    def test_existing_user_gets_new_token_only(self, store):
        first = upsert_user(store, PROFILE, "old")
        renamed = dict(PROFILE, name="Renamed")
        second = upsert_user(store, renamed, "new")
        assert second.id == first.id
        assert second.github_token == "new"
        assert second.display_name == "The Octocat"
        assert second.last_login >= first.last_login
        assert len(store.find(User)) == 1

    def test_display_name_falls_back_to_login(self, store):
        user = upsert_user(store, dict(PROFILE, name=None), "tok")
        assert user.display_name == "octocat"


class TestPrimaryEmail:
    def test_prefers_verified_primary(self):
        emails = [
            {"email": "other@example.com", "primary": False, "verified": True},
            {"email": "main@example.com", "primary": True, "verified": True},
        ]
        assert primary_email(emails) == "main@example.com"

    def test_falls_back_to_first(self):
        assert primary_email([{"email": "a@example.com", "primary": False}]) == "a@example.com"

    def test_empty(self):
        assert primary_email([]) is None


class TestGitHubOAuth:
    def test_requires_configuration(self):
        with pytest.raises(ConfigurationError):
            GitHubOAuth(Settings(), redirect_uri="http://testserver/cb")

    @pytest.mark.asyncio
    async def test_authorize_url(self, settings):
        url, state = await GitHubOAuth(settings, redirect_uri="http://testserver/cb").authorize_url()
        query = parse_qs(urlparse(url).query)
        assert url.startswith("https://github.com/login/oauth/authorize")
        assert query["client_id"] == ["client-id"]
        assert query["scope"] == ["user repo read:org"]
        assert query["state"] == [state]
        assert query["redirect_uri"] == ["http://testserver/cb"]


class TestAuthRoutes:
    def test_login_redirects_to_github(self, anon_client):
        resp = anon_client.get("/api/auth/github", follow_redirects=False)
        assert resp.status_code == 302
        location = resp.headers["location"]
        assert location.startswith("https://github.com/login/oauth/authorize")
        assert "api%2Fauth%2Fgithub%2Fcallback" in location

    def test_login_without_oauth_config(self, tmp_path, store):
        settings = Settings(local_repos_path=tmp_path / "repos", database_path=tmp_path / "db")
        with TestClient(create_app(settings, store)) as client:
            resp = client.get("/api/auth/github", follow_redirects=False)
        assert resp.status_code == 500
        assert resp.json() == {"error": "GitHub OAuth is not configured"}

    def test_callback_signs_in(self, anon_client, github, store):
        resp = sign_in(anon_client, github)
        assert resp.status_code == 302
        assert resp.headers["location"] == "http://localhost:2020/#dashboard"

        user = store.find_one(User, github_id="583231")
        assert user.github_token == "gho_fresh"
        assert user.email == "octo@example.com"

        me = anon_client.get("/api/auth/me").json()
        assert me == {"authenticated": True, "user": user.public_profile()}

    def test_signed_in_session_reaches_proxy(self, anon_client, github):
        sign_in(anon_client, github, token="gho_session")
        route = github.get("/user/repos").mock(return_value=httpx.Response(200, json=[]))
        assert anon_client.get("/api/repos").status_code == 200
        assert route.calls.last.request.headers["Authorization"] == "Bearer gho_session"

    def test_callback_rejects_bad_state(self, anon_client):
        anon_client.get("/api/auth/github", follow_redirects=False)
        resp = anon_client.get("/api/auth/github/callback?code=abc&state=forged", follow_redirects=False)
        assert resp.headers["location"] == "http://localhost:2020/#landing"
        assert anon_client.get("/api/auth/me").json() == {"authenticated": False}

    def test_callback_with_provider_error(self, anon_client):
        resp = anon_client.get("/api/auth/github/callback?error=access_denied", follow_redirects=False)
        assert resp.headers["location"] == "http://localhost:2020/#landing"

    def test_callback_when_exchange_fails(self, anon_client):
        login = anon_client.get("/api/auth/github", follow_redirects=False)
        state = parse_qs(urlparse(login.headers["location"]).query)["state"][0]
        failing = AsyncMock(side_effect=OAuthError(error="bad_verification_code"))
        with patch.object(GitHubOAuth, "exchange_code", failing):
            resp = anon_client.get(f"/api/auth/github/callback?code=abc&state={state}", follow_redirects=False)
        assert resp.headers["location"] == "http://localhost:2020/#landing"

    def test_me_anonymous(self, anon_client):
        assert anon_client.get("/api/auth/me").json() == {"authenticated": False}

    def test_logout(self, anon_client, github):
        sign_in(anon_client, github)
        assert anon_client.get("/api/auth/logout").json() == {"message": "Logged out successfully"}
        assert anon_client.get("/api/auth/me").json() == {"authenticated": False}
        assert anon_client.get("/api/repos").status_code == 401
