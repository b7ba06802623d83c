"""GitHub OAuth sign-in and the user records it produces."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from authlib.integrations.httpx_client import AsyncOAuth2Client

from gitstack.config import Settings
from gitstack.errors import ConfigurationError
from gitstack.models import User
from gitstack.store import DocumentStore

logger = logging.getLogger(__name__)

# OAuth endpoints
GITHUB_AUTH_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"


class GitHubOAuth:
    """Authorization-code flow against github.com.

    Create one per request: the underlying client holds the redirect URI
    and is closed once the code exchange finishes.
    """

    def __init__(self, settings: Settings, redirect_uri: str) -> None:
        if not settings.oauth_configured:
            raise ConfigurationError("GitHub OAuth is not configured")
        self._settings = settings
        self._redirect_uri = redirect_uri

    def _client(self) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self._settings.github_client_id,
            client_secret=self._settings.github_client_secret,
            redirect_uri=self._redirect_uri,
            scope=self._settings.oauth_scopes,
        )

    async def authorize_url(self) -> tuple[str, str]:
        """Return ``(url, state)``; the caller keeps ``state`` for the callback."""
        async with self._client() as client:
            url, state = client.create_authorization_url(GITHUB_AUTH_URL)
        return url, state

    async def exchange_code(self, code: str) -> str:
        """Trade the callback ``code`` for an access token."""
        async with self._client() as client:
            token = await client.fetch_token(
                GITHUB_TOKEN_URL,
                code=code,
                headers={"Accept": "application/json"},
            )
        return token["access_token"]


def primary_email(emails: list[dict[str, Any]]) -> Optional[str]:
    for entry in emails:
        if entry.get("primary") and entry.get("verified"):
            return entry.get("email")
    return emails[0].get("email") if emails else None


def upsert_user(store: DocumentStore, profile: dict[str, Any], token: str, email: Optional[str] = None) -> User:
    """Create the user on first sign-in; afterwards only refresh token and ``lastLogin``."""
    github_id = str(profile["id"])
    user = store.find_one(User, github_id=github_id)
    if user is None:
        user = User(
            github_id=github_id,
            username=profile["login"],
            display_name=profile.get("name") or profile["login"],
            email=profile.get("email") or email,
            avatar=profile.get("avatar_url"),
            profile_url=profile.get("html_url"),
            github_token=token,
        )
        logger.info("New user %s signed in", user.username)
    else:
        user.github_token = token
        user.last_login = datetime.now(timezone.utc)
        logger.info("User %s signed in", user.username)
    return store.save(user)
