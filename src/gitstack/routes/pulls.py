"""Pull request routes: GitHub pull requests plus shadow pull requests."""

import logging

import httpx
from fastapi import APIRouter, Depends

from gitstack.deps import get_fetcher, get_store, relay_errors, require_user
from gitstack.errors import UpstreamError
from gitstack.fetcher import GitHubFetcher
from gitstack.models import (
    MergeRequest,
    PullRequest,
    PullRequestCreate,
    PullRequestUpdate,
    ReviewCreate,
    ReviewersRequest,
    User,
)
from gitstack.store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pulls", tags=["pulls"])


@router.get("/{owner}/{repo}")
async def list_pulls(
    owner: str,
    repo: str,
    state: str = "open",
    page: int = 1,
    per_page: int = 30,
    fetcher: GitHubFetcher = Depends(get_fetcher),
    store: DocumentStore = Depends(get_store),
):
    with relay_errors("Failed to fetch pull requests"):
        github = await fetcher.list_pulls(owner, repo, state=state, page=page, per_page=per_page)

    filters = {"repo_owner": owner, "repo_name": repo}
    if state != "all":
        filters["status"] = state
    local = store.find(PullRequest, **filters)
    return {"github": github, "local": [pr.to_json() for pr in local]}


@router.get("/{owner}/{repo}/{number}")
async def get_pull(
    owner: str,
    repo: str,
    number: str,
    fetcher: GitHubFetcher = Depends(get_fetcher),
    store: DocumentStore = Depends(get_store),
):
    try:
        return await fetcher.get_pull(owner, repo, number)
    except httpx.HTTPError as exc:
        shadow = store.get(PullRequest, number)
        if shadow is not None:
            return shadow.to_json()
        logger.error("Failed to fetch pull request %s/%s#%s: %s", owner, repo, number, exc)
        raise UpstreamError("Failed to fetch pull request") from exc


@router.post("/{owner}/{repo}", status_code=201)
async def create_pull(
    owner: str,
    repo: str,
    body: PullRequestCreate,
    user: User = Depends(require_user),
    fetcher: GitHubFetcher = Depends(get_fetcher),
    store: DocumentStore = Depends(get_store),
):
    if body.use_github:
        with relay_errors("Failed to create pull request"):
            return await fetcher.create_pull(
                owner, repo, title=body.title, body=body.body, head=body.head, base=body.base
            )

    pr = PullRequest(
        repo_owner=owner,
        repo_name=repo,
        title=body.title,
        description=body.body,
        author=user.username,
        author_avatar=user.avatar,
        head_branch=body.head or "",
        base_branch=body.base or "",
    )
    store.save(pr)
    logger.info("Created local pull request %s on %s/%s", pr.id, owner, repo)
    return pr.to_json()


@router.patch("/{owner}/{repo}/{number}")
async def update_pull(
    owner: str,
    repo: str,
    number: str,
    body: PullRequestUpdate,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to update pull request"):
        return await fetcher.update_pull(owner, repo, number, **body.model_dump())


@router.put("/{owner}/{repo}/{number}/merge")
async def merge_pull(
    owner: str,
    repo: str,
    number: str,
    body: MergeRequest,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to merge pull request"):
        return await fetcher.merge_pull(
            owner,
            repo,
            number,
            commit_title=body.commit_title,
            commit_message=body.commit_message,
            sha=body.sha,
        )


@router.get("/{owner}/{repo}/{number}/merge")
async def check_merged(owner: str, repo: str, number: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to check merge status"):
        merged = await fetcher.is_pull_merged(owner, repo, number)
    return {"merged": merged}


@router.get("/{owner}/{repo}/{number}/files")
async def list_files(owner: str, repo: str, number: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to fetch pull request files"):
        return await fetcher.list_pull_files(owner, repo, number)


@router.get("/{owner}/{repo}/{number}/commits")
async def list_commits(owner: str, repo: str, number: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to fetch pull request commits"):
        return await fetcher.list_pull_commits(owner, repo, number)


@router.get("/{owner}/{repo}/{number}/reviews")
async def list_reviews(owner: str, repo: str, number: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to fetch reviews"):
        return await fetcher.list_pull_reviews(owner, repo, number)


@router.post("/{owner}/{repo}/{number}/reviews", status_code=201)
async def create_review(
    owner: str,
    repo: str,
    number: str,
    body: ReviewCreate,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to create review"):
        return await fetcher.create_pull_review(
            owner, repo, number, body=body.body, event=body.event, comments=body.comments
        )


@router.post("/{owner}/{repo}/{number}/requested_reviewers")
async def request_reviewers(
    owner: str,
    repo: str,
    number: str,
    body: ReviewersRequest,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to request reviewers"):
        return await fetcher.request_reviewers(owner, repo, number, body.reviewers)
