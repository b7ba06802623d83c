"""GitHub REST API client used by the proxy routes."""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

Params = Optional[dict[str, Any]]


def _seg(value: Any) -> str:
    """One URL path segment, percent-encoded (``/``, ``?`` and ``#`` included)."""
    return quote(str(value), safe="")


class GitHubFetcher:
    """Forwards calls to the GitHub REST API with one user's access token."""

    def __init__(self, token: Optional[str] = None, base_url: str = DEFAULT_API_URL) -> None:
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._client: Optional[httpx.AsyncClient] = None

    # ── HTTP plumbing ─────────────────────────────────────────────────────

    @property
    def headers(self) -> dict[str, str]:
        h: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    async def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=30.0,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        path: str,
        params: Params = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send a request, raising a descriptive error on rate limiting."""
        client = await self._client_instance()
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        logger.debug("GitHub %s %s", method, path)
        resp = await client.request(method, path, params=params or None, json=json)
        if resp.status_code == 403 and "rate limit" in resp.text.lower():
            remaining = resp.headers.get("x-ratelimit-remaining", "0")
            raise httpx.HTTPStatusError(
                f"GitHub API rate limit exceeded (remaining: {remaining}). "
                "Wait a few minutes and retry.",
                request=resp.request,
                response=resp,
            )
        return resp

    async def _request(
        self,
        method: str,
        path: str,
        params: Params = None,
        json: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` if empty)."""
        resp = await self._send(method, path, params=params, json=json)
        resp.raise_for_status()
        if not resp.content:
            return None
        return resp.json()

    @staticmethod
    def _body(**fields: Any) -> dict[str, Any]:
        return {k: v for k, v in fields.items() if v is not None}

    # ── Repositories ──────────────────────────────────────────────────────

    async def list_repositories(
        self,
        page: int = 1,
        per_page: int = 30,
        sort: str = "updated",
        direction: str = "desc",
    ) -> list[dict]:
        """Repositories visible to the authenticated user."""
        return await self._request(
            "GET",
            "/user/repos",
            params={"page": page, "per_page": per_page, "sort": sort, "direction": direction},
        )

    async def get_repository(self, owner: str, repo: str) -> dict:
        return await self._request("GET", f"/repos/{_seg(owner)}/{_seg(repo)}")

    async def create_repository(
        self,
        name: str,
        description: Optional[str] = None,
        private: bool = False,
        auto_init: bool = False,
    ) -> dict:
        return await self._request(
            "POST",
            "/user/repos",
            json=self._body(name=name, description=description, private=private, auto_init=auto_init),
        )

    async def update_repository(self, owner: str, repo: str, **fields: Any) -> dict:
        return await self._request("PATCH", f"/repos/{_seg(owner)}/{_seg(repo)}", json=self._body(**fields))

    async def delete_repository(self, owner: str, repo: str) -> None:
        await self._request("DELETE", f"/repos/{_seg(owner)}/{_seg(repo)}")

    async def get_contents(
        self, owner: str, repo: str, path: str = "", ref: Optional[str] = None
    ) -> Any:
        """A file object or a directory listing, as GitHub returns it."""
        path = quote(path.strip("/"), safe="/")
        return await self._request(
            "GET", f"/repos/{_seg(owner)}/{_seg(repo)}/contents/{path}", params={"ref": ref}
        )

    async def list_branches(self, owner: str, repo: str) -> list[dict]:
        return await self._request("GET", f"/repos/{_seg(owner)}/{_seg(repo)}/branches")

    async def list_commits(
        self,
        owner: str,
        repo: str,
        sha: Optional[str] = None,
        page: int = 1,
        per_page: int = 30,
    ) -> list[dict]:
        return await self._request(
            "GET",
            f"/repos/{_seg(owner)}/{_seg(repo)}/commits",
            params={"sha": sha, "page": page, "per_page": per_page},
        )

    async def list_contributors(self, owner: str, repo: str) -> list[dict]:
        return await self._request("GET", f"/repos/{_seg(owner)}/{_seg(repo)}/contributors")

    async def star_repository(self, owner: str, repo: str) -> None:
        await self._request("PUT", f"/user/starred/{_seg(owner)}/{_seg(repo)}")

    async def unstar_repository(self, owner: str, repo: str) -> None:
        await self._request("DELETE", f"/user/starred/{_seg(owner)}/{_seg(repo)}")

    # ── Issues ────────────────────────────────────────────────────────────

    async def list_issues(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        page: int = 1,
        per_page: int = 30,
    ) -> list[dict]:
        return await self._request(
            "GET",
            f"/repos/{_seg(owner)}/{_seg(repo)}/issues",
            params={"state": state, "page": page, "per_page": per_page},
        )

    async def get_issue(self, owner: str, repo: str, number: int | str) -> dict:
        return await self._request("GET", f"/repos/{_seg(owner)}/{_seg(repo)}/issues/{_seg(number)}")

    async def create_issue(
        self,
        owner: str,
        repo: str,
        title: str,
        body: Optional[str] = None,
        labels: Optional[list[str]] = None,
        assignees: Optional[list[str]] = None,
    ) -> dict:
        return await self._request(
            "POST",
            f"/repos/{_seg(owner)}/{_seg(repo)}/issues",
            json=self._body(title=title, body=body, labels=labels, assignees=assignees),
        )

    async def update_issue(self, owner: str, repo: str, number: int | str, **fields: Any) -> dict:
        """Patch title, body, state, labels or assignees; ``None`` fields are left alone."""
        return await self._request(
            "PATCH", f"/repos/{_seg(owner)}/{_seg(repo)}/issues/{_seg(number)}", json=self._body(**fields)
        )

    async def list_issue_comments(self, owner: str, repo: str, number: int | str) -> list[dict]:
        return await self._request("GET", f"/repos/{_seg(owner)}/{_seg(repo)}/issues/{_seg(number)}/comments")

    async def create_issue_comment(self, owner: str, repo: str, number: int | str, body: str) -> dict:
        return await self._request(
            "POST", f"/repos/{_seg(owner)}/{_seg(repo)}/issues/{_seg(number)}/comments", json={"body": body}
        )

    async def add_assignees(
        self, owner: str, repo: str, number: int | str, assignees: list[str]
    ) -> dict:
        return await self._request(
            "POST",
            f"/repos/{_seg(owner)}/{_seg(repo)}/issues/{_seg(number)}/assignees",
            json={"assignees": assignees},
        )

    async def remove_assignees(
        self, owner: str, repo: str, number: int | str, assignees: list[str]
    ) -> dict:
        return await self._request(
            "DELETE",
            f"/repos/{_seg(owner)}/{_seg(repo)}/issues/{_seg(number)}/assignees",
            json={"assignees": assignees},
        )

    async def add_labels(
        self, owner: str, repo: str, number: int | str, labels: list[str]
    ) -> list[dict]:
        return await self._request(
            "POST", f"/repos/{_seg(owner)}/{_seg(repo)}/issues/{_seg(number)}/labels", json={"labels": labels}
        )

    async def remove_label(self, owner: str, repo: str, number: int | str, label: str) -> None:
        await self._request(
            "DELETE", f"/repos/{_seg(owner)}/{_seg(repo)}/issues/{_seg(number)}/labels/{_seg(label)}"
        )

    # ── Pull Requests ─────────────────────────────────────────────────────

    async def list_pulls(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        page: int = 1,
        per_page: int = 30,
    ) -> list[dict]:
        return await self._request(
            "GET",
            f"/repos/{_seg(owner)}/{_seg(repo)}/pulls",
            params={"state": state, "page": page, "per_page": per_page},
        )

    async def get_pull(self, owner: str, repo: str, number: int | str) -> dict:
        return await self._request("GET", f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{_seg(number)}")

    async def create_pull(
        self,
        owner: str,
        repo: str,
        title: str,
        head: Optional[str],
        base: Optional[str],
        body: Optional[str] = None,
    ) -> dict:
        return await self._request(
            "POST",
            f"/repos/{_seg(owner)}/{_seg(repo)}/pulls",
            json=self._body(title=title, body=body, head=head, base=base),
        )

    async def update_pull(self, owner: str, repo: str, number: int | str, **fields: Any) -> dict:
        return await self._request(
            "PATCH", f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{_seg(number)}", json=self._body(**fields)
        )

    async def merge_pull(
        self,
        owner: str,
        repo: str,
        number: int | str,
        commit_title: Optional[str] = None,
        commit_message: Optional[str] = None,
        sha: Optional[str] = None,
    ) -> dict:
        return await self._request(
            "PUT",
            f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{_seg(number)}/merge",
            json=self._body(commit_title=commit_title, commit_message=commit_message, sha=sha),
        )

    async def is_pull_merged(self, owner: str, repo: str, number: int | str) -> bool:
        """GitHub answers 204 for merged and 404 for not merged."""
        resp = await self._send("GET", f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{_seg(number)}/merge")
        if resp.status_code == 404:
            return False
        resp.raise_for_status()
        return resp.status_code == 204

    async def list_pull_files(self, owner: str, repo: str, number: int | str) -> list[dict]:
        return await self._request("GET", f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{_seg(number)}/files")

    async def list_pull_commits(self, owner: str, repo: str, number: int | str) -> list[dict]:
        return await self._request("GET", f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{_seg(number)}/commits")

    async def list_pull_reviews(self, owner: str, repo: str, number: int | str) -> list[dict]:
        return await self._request("GET", f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{_seg(number)}/reviews")

    async def create_pull_review(
        self,
        owner: str,
        repo: str,
        number: int | str,
        body: Optional[str] = None,
        event: Optional[str] = None,
        comments: Optional[list[dict]] = None,
    ) -> dict:
        return await self._request(
            "POST",
            f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{_seg(number)}/reviews",
            json=self._body(body=body, event=event, comments=comments),
        )

    async def request_reviewers(
        self, owner: str, repo: str, number: int | str, reviewers: list[str]
    ) -> dict:
        return await self._request(
            "POST",
            f"/repos/{_seg(owner)}/{_seg(repo)}/pulls/{_seg(number)}/requested_reviewers",
            json={"reviewers": reviewers},
        )

    # ── User ──────────────────────────────────────────────────────────────

    async def get_authenticated_user(self) -> dict:
        return await self._request("GET", "/user")

    async def list_user_emails(self) -> list[dict]:
        return await self._request("GET", "/user/emails")

    async def list_user_orgs(self) -> list[dict]:
        return await self._request("GET", "/user/orgs")

    async def search_users(self, query: str) -> dict:
        return await self._request("GET", "/search/users", params={"q": query})
