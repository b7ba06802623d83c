"""Issue routes: GitHub issues plus locally authored shadow issues."""

import logging

import httpx
from fastapi import APIRouter, Depends

from gitstack.deps import get_fetcher, get_store, relay_errors, require_user
from gitstack.errors import UpstreamError
from gitstack.fetcher import GitHubFetcher
from gitstack.models import (
    AssigneesRequest,
    CommentCreate,
    Issue,
    IssueCreate,
    IssueUpdate,
    LabelsRequest,
    User,
)
from gitstack.store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/issues", tags=["issues"])


@router.get("/{owner}/{repo}")
async def list_issues(
    owner: str,
    repo: str,
    state: str = "open",
    page: int = 1,
    per_page: int = 30,
    fetcher: GitHubFetcher = Depends(get_fetcher),
    store: DocumentStore = Depends(get_store),
):
    """GitHub issues and shadow issues side by side."""
    with relay_errors("Failed to fetch issues"):
        github = await fetcher.list_issues(owner, repo, state=state, page=page, per_page=per_page)

    filters = {"repo_owner": owner, "repo_name": repo}
    if state != "all":
        filters["status"] = state
    local = store.find(Issue, **filters)
    return {"github": github, "local": [issue.to_json() for issue in local]}


@router.get("/{owner}/{repo}/{number}")
async def get_issue(
    owner: str,
    repo: str,
    number: str,
    fetcher: GitHubFetcher = Depends(get_fetcher),
    store: DocumentStore = Depends(get_store),
):
    try:
        return await fetcher.get_issue(owner, repo, number)
    except httpx.HTTPError as exc:
        shadow = store.get(Issue, number)
        if shadow is not None:
            return shadow.to_json()
        logger.error("Failed to fetch issue %s/%s#%s: %s", owner, repo, number, exc)
        raise UpstreamError("Failed to fetch issue") from exc


@router.post("/{owner}/{repo}", status_code=201)
async def create_issue(
    owner: str,
    repo: str,
    body: IssueCreate,
    user: User = Depends(require_user),
    fetcher: GitHubFetcher = Depends(get_fetcher),
    store: DocumentStore = Depends(get_store),
):
    if body.use_github:
        with relay_errors("Failed to create issue"):
            return await fetcher.create_issue(
                owner,
                repo,
                title=body.title,
                body=body.body,
                labels=body.labels,
                assignees=body.assignees,
            )

    issue = Issue(
        repo_owner=owner,
        repo_name=repo,
        title=body.title,
        description=body.body,
        author=user.username,
        author_avatar=user.avatar,
        labels=body.labels or [],
        assignees=body.assignees or [],
    )
    store.save(issue)
    logger.info("Created local issue %s on %s/%s", issue.id, owner, repo)
    return issue.to_json()


@router.patch("/{owner}/{repo}/{number}")
async def update_issue(
    owner: str,
    repo: str,
    number: str,
    body: IssueUpdate,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to update issue"):
        return await fetcher.update_issue(owner, repo, number, **body.model_dump())


@router.patch("/{owner}/{repo}/{number}/close")
async def close_issue(owner: str, repo: str, number: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to close issue"):
        return await fetcher.update_issue(owner, repo, number, state="closed")


@router.patch("/{owner}/{repo}/{number}/reopen")
async def reopen_issue(owner: str, repo: str, number: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to reopen issue"):
        return await fetcher.update_issue(owner, repo, number, state="open")


@router.get("/{owner}/{repo}/{number}/comments")
async def list_comments(owner: str, repo: str, number: str, fetcher: GitHubFetcher = Depends(get_fetcher)):
    with relay_errors("Failed to fetch comments"):
        return await fetcher.list_issue_comments(owner, repo, number)


@router.post("/{owner}/{repo}/{number}/comments", status_code=201)
async def create_comment(
    owner: str,
    repo: str,
    number: str,
    body: CommentCreate,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to add comment"):
        return await fetcher.create_issue_comment(owner, repo, number, body.body)


@router.post("/{owner}/{repo}/{number}/assignees")
async def add_assignees(
    owner: str,
    repo: str,
    number: str,
    body: AssigneesRequest,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to assign issue"):
        return await fetcher.add_assignees(owner, repo, number, body.assignees)


@router.delete("/{owner}/{repo}/{number}/assignees")
async def remove_assignees(
    owner: str,
    repo: str,
    number: str,
    body: AssigneesRequest,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to remove assignees"):
        return await fetcher.remove_assignees(owner, repo, number, body.assignees)


@router.post("/{owner}/{repo}/{number}/labels")
async def add_labels(
    owner: str,
    repo: str,
    number: str,
    body: LabelsRequest,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to add labels"):
        return await fetcher.add_labels(owner, repo, number, body.labels)


@router.delete("/{owner}/{repo}/{number}/labels/{label}")
async def remove_label(
    owner: str,
    repo: str,
    number: str,
    label: str,
    fetcher: GitHubFetcher = Depends(get_fetcher),
):
    with relay_errors("Failed to remove label"):
        await fetcher.remove_label(owner, repo, number, label)
    return {"message": "Label removed"}
