"""Data models for GitStack."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Model serialized with camelCase keys for the UI."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ── Stored documents ──────────────────────────────────────────────────────

class Document(CamelModel):
    """A record persisted in the document store."""

    collection: ClassVar[str] = "documents"

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def touch(self) -> None:
        self.updated_at = _utcnow()


class User(Document):
    """A GitHub account that signed in, with its provider access token."""

    collection: ClassVar[str] = "users"

    github_id: str
    username: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    profile_url: Optional[str] = None
    github_token: str
    last_login: datetime = Field(default_factory=_utcnow)

    def public_profile(self) -> dict[str, Any]:
        """Fields safe to hand to the browser (never the token)."""
        return {
            "id": self.id,
            "username": self.username,
            "displayName": self.display_name,
            "email": self.email,
            "avatar": self.avatar,
            "profileUrl": self.profile_url,
        }


class IssueStatus(str, Enum):
    open = "open"
    closed = "closed"


class PullRequestStatus(str, Enum):
    open = "open"
    closed = "closed"
    merged = "merged"


class ReviewState(str, Enum):
    approved = "APPROVED"
    changes_requested = "CHANGES_REQUESTED"
    commented = "COMMENTED"


class Comment(CamelModel):
    """A comment on a shadow issue."""

    author: str
    author_avatar: Optional[str] = None
    content: str
    created_at: datetime = Field(default_factory=_utcnow)


class Review(CamelModel):
    """A review left on a shadow pull request."""

    reviewer: str
    reviewer_avatar: Optional[str] = None
    state: ReviewState
    content: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class Issue(Document):
    """An issue authored locally and never pushed to GitHub."""

    collection: ClassVar[str] = "issues"

    repo_owner: str
    repo_name: str
    title: str
    description: Optional[str] = None
    author: str
    author_avatar: Optional[str] = None
    status: IssueStatus = IssueStatus.open
    labels: list[str] = Field(default_factory=list)
    assignees: list[str] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    github_issue_number: Optional[int] = None


class PullRequest(Document):
    """A pull request authored locally and never pushed to GitHub."""

    collection: ClassVar[str] = "pull_requests"

    repo_owner: str
    repo_name: str
    title: str
    description: Optional[str] = None
    author: str
    author_avatar: Optional[str] = None
    head_branch: str
    base_branch: str
    status: PullRequestStatus = PullRequestStatus.open
    reviewers: list[str] = Field(default_factory=list)
    reviews: list[Review] = Field(default_factory=list)
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    github_pr_number: Optional[int] = Field(default=None, alias="githubPRNumber")


# ── Local repositories ────────────────────────────────────────────────────

class LocalCommit(CamelModel):
    """One line of `git log` output."""

    hash: str
    author: str = ""
    email: str = ""
    timestamp: Optional[int] = None
    message: str = ""


class LocalBranch(CamelModel):
    name: str
    current: bool = False


class LocalRepo(CamelModel):
    """Metadata extracted from a git working copy on disk."""

    name: str
    path: str
    description: str = ""
    branch: str = "main"
    last_commit: Optional[LocalCommit] = None
    commits: list[LocalCommit] = Field(default_factory=list)
    branches: list[str] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list)
    is_local: bool = True


class ContentEntry(CamelModel):
    """A directory listing entry inside a local repository."""

    name: str
    path: str
    type: str  # "dir" or "file"
    size: int = 0


class FileContent(CamelModel):
    """A single file read from a local repository."""

    name: str
    path: str
    type: str = "file"
    content: str
    size: int = 0


# ── Request bodies ────────────────────────────────────────────────────────

class RepositoryCreate(BaseModel):
    name: str
    description: Optional[str] = None
    private: bool = False
    auto_init: bool = False


class RepositoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    private: Optional[bool] = None


class IssueCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    body: Optional[str] = None
    labels: Optional[list[str]] = None
    assignees: Optional[list[str]] = None
    use_github: bool = Field(default=True, alias="useGithub")


class IssueUpdate(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    state: Optional[str] = None
    labels: Optional[list[str]] = None
    assignees: Optional[list[str]] = None


class CommentCreate(BaseModel):
    body: str


class AssigneesRequest(BaseModel):
    assignees: list[str] = Field(default_factory=list)


class LabelsRequest(BaseModel):
    labels: list[str] = Field(default_factory=list)


class PullRequestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    body: Optional[str] = None
    head: Optional[str] = None
    base: Optional[str] = None
    use_github: bool = Field(default=True, alias="useGithub")


class PullRequestUpdate(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    state: Optional[str] = None


class MergeRequest(BaseModel):
    commit_title: Optional[str] = None
    commit_message: Optional[str] = None
    sha: Optional[str] = None


class ReviewCreate(BaseModel):
    body: Optional[str] = None
    event: Optional[str] = None
    comments: Optional[list[dict[str, Any]]] = None


class ReviewersRequest(BaseModel):
    reviewers: list[str] = Field(default_factory=list)


class CloneRequest(BaseModel):
    url: Optional[str] = None
    name: Optional[str] = None


class InitRequest(BaseModel):
    name: Optional[str] = None
    description: str = ""


class MarkdownRenderRequest(BaseModel):
    text: str = ""


class CodeRenderRequest(BaseModel):
    code: str = ""
    filename: str = ""
