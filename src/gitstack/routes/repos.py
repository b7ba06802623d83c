"""Repository routes, forwarded to GitHub with the user's token."""

from typing import Optional

from fastapi import APIRouter, Depends

from gitstack.deps import get_fetcher, relay_errors
from gitstack.fetcher import GitHubFetcher
from gitstack.models import RepositoryCreate, RepositoryUpdate

router = APIRouter(prefix="/repos", tags=["repos"])


@router.get("")
async def list_repositories(
    page: int = 1,
    per_page: int = 30,
    sort: str = "updated",
    direction: str = "desc",
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to fetch repositories"):
        return await fetcher.list_repositories(page=page, per_page=per_page, sort=sort, direction=direction)


@router.post("", status_code=201)
async def create_repository(body: RepositoryCreate, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to create repository"):
        return await fetcher.create_repository(
            name=body.name,
            description=body.description,
            private=body.private,
            auto_init=body.auto_init,
        )


@router.get("/{owner}/{repo}")
async def get_repository(owner: str, repo: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to fetch repository"):
        return await fetcher.get_repository(owner, repo)


@router.patch("/{owner}/{repo}")
async def update_repository(
    owner: str, repo: str, body: RepositoryUpdate, fetcher: GitHubFetcher = Depends(get_fetcher)
):
    with relay_errors("Failed to update repository"):
        return await fetcher.update_repository(owner, repo, **body.model_dump())


@router.delete("/{owner}/{repo}")
async def delete_repository(owner: str, repo: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to delete repository"):
        await fetcher.delete_repository(owner, repo)
    return {"message": "Repository deleted successfully"}


@router.get("/{owner}/{repo}/contents")
@router.get("/{owner}/{repo}/contents/{path:path}")
async def get_contents(
    owner: str,
    repo: str,
    path: str = "",
    ref: Optional[str] = None,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to fetch repository contents"):
        return await fetcher.get_contents(owner, repo, path, ref=ref)


@router.get("/{owner}/{repo}/branches")
async def list_branches(owner: str, repo: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to fetch branches"):
        return await fetcher.list_branches(owner, repo)


@router.get("/{owner}/{repo}/commits")
async def list_commits(
    owner: str,
    repo: str,
    sha: Optional[str] = None,
    page: int = 1,
    per_page: int = 30,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to fetch commits"):
        return await fetcher.list_commits(owner, repo, sha=sha, page=page, per_page=per_page)


@router.get("/{owner}/{repo}/contributors")
async def list_contributors(owner: str, repo: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to fetch contributors"):
        return await fetcher.list_contributors(owner, repo)


@router.put("/{owner}/{repo}/star")
async def star_repository(owner: str, repo: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to star repository"):
        await fetcher.star_repository(owner, repo)
    return {"message": "Repository starred"}


@router.delete("/{owner}/{repo}/star")
async def unstar_repository(owner: str, repo: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to unstar repository"):
        await fetcher.unstar_repository(owner, repo)
    return {"message": "Repository unstarred"}
