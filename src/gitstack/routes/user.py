"""Routes about the signed-in GitHub account."""

from typing import Optional

from fastapi import APIRouter, Depends

from gitstack.deps import get_fetcher, relay_errors
from gitstack.errors import BadRequestError
from gitstack.fetcher import GitHubFetcher

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile")
async def profile(fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to fetch user profile"):
        return await fetcher.get_authenticated_user()


@router.get("/orgs")
async def organizations(fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to fetch organizations"):
        return await fetcher.list_user_orgs()


@router.get("/search")
async def search(q: Optional[str] = None, fetcher: GitHubFetcher = Depends(get_fetcher)):
    if not q:
        raise BadRequestError("Query parameter required")
    with relay_errors("Failed to search users"):
        return await fetcher.search_users(q)
