"""FastAPI dependencies shared by the route modules."""

import logging
from contextlib import contextmanager
from typing import AsyncIterator, Iterator

import httpx
from fastapi import Depends, Request

from gitstack.config import Settings
from gitstack.errors import AuthenticationRequiredError, UpstreamError
from gitstack.fetcher import GitHubFetcher
from gitstack.models import User
from gitstack.scanner import LocalRepoScanner
from gitstack.store import DocumentStore

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_scanner(request: Request) -> LocalRepoScanner:
    return request.app.state.scanner


def current_user(request: Request, store: DocumentStore = Depends(get_store)) -> User | None:
    """The signed-in user, or ``None`` when the session is empty or stale."""
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        return None
    return store.get(User, user_id)


def require_user(user: User | None = Depends(current_user)) -> User:
    if user is None:
        raise AuthenticationRequiredError()
    return user


async def get_fetcher(
    user: User = Depends(require_user),
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[GitHubFetcher]:
    """A GitHub client bound to the user's token, closed after the response."""
    fetcher = GitHubFetcher(token=user.github_token, base_url=settings.github_api_url)
    try:
        yield fetcher
    finally:
        await fetcher.close()


@contextmanager
def relay_errors(message: str) -> Iterator[None]:
    """Turn a failed GitHub call into ``UpstreamError(message)``, logging the cause."""
    try:
        yield
    except httpx.HTTPStatusError as exc:
        error = UpstreamError(
            message,
            extra_info={"status": str(exc.response.status_code), "url": str(exc.request.url)},
        )
        logger.error("%s: %s", error, exc.response.text or exc)
        raise error from exc
    except httpx.HTTPError as exc:
        logger.error("%s: %s", message, exc)
        raise UpstreamError(message) from exc
