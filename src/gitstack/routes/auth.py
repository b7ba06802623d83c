"""Sign-in, sign-out and session check routes."""

import logging
from typing import Optional

import httpx
from authlib.common.errors import AuthlibBaseError
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from gitstack.auth import GitHubOAuth, primary_email, upsert_user
from gitstack.config import Settings
from gitstack.deps import SESSION_USER_KEY, current_user, get_settings, get_store
from gitstack.fetcher import GitHubFetcher
from gitstack.models import User
from gitstack.store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

OAUTH_STATE_KEY = "oauth_state"


def _oauth(request: Request, settings: Settings) -> GitHubOAuth:
    return GitHubOAuth(settings, redirect_uri=str(request.url_for("github_callback")))


@router.get("/github")
async def github_login(request: Request, settings: Settings = Depends(get_settings)):
    url, state = await _oauth(request, settings).authorize_url()
    request.session[OAUTH_STATE_KEY] = state
    return RedirectResponse(url, status_code=302)


@router.get("/github/callback", name="github_callback")
async def github_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_store),
):
    landing = RedirectResponse(f"{settings.client_url}/#landing", status_code=302)
    expected_state = request.session.pop(OAUTH_STATE_KEY, None)
    if error or not code or not state or state != expected_state:
        logger.warning("GitHub sign-in rejected (error=%s, state matched=%s)", error, state == expected_state)
        return landing

    try:
        token = await _oauth(request, settings).exchange_code(code)
        fetcher = GitHubFetcher(token=token, base_url=settings.github_api_url)
        try:
            profile = await fetcher.get_authenticated_user()
            email = None
            if not profile.get("email"):
                try:
                    email = primary_email(await fetcher.list_user_emails())
                except httpx.HTTPError as exc:
                    logger.debug("Could not read email addresses: %s", exc)
        finally:
            await fetcher.close()
    except (AuthlibBaseError, httpx.HTTPError, KeyError) as exc:
        logger.warning("GitHub sign-in failed: %s", exc)
        return landing

    user = upsert_user(store, profile, token, email=email)
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    return RedirectResponse(f"{settings.client_url}/#dashboard", status_code=302)


@router.get("/me")
def me(user: Optional[User] = Depends(current_user)):
    if user is None:
        return {"authenticated": False}
    return {"authenticated": True, "user": user.public_profile()}


@router.get("/logout")
def logout(request: Request):
    request.session.clear()
    return {"message": "Logged out successfully"}
