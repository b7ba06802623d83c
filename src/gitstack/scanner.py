"""Local git repository discovery and introspection.

Working copies live as immediate subdirectories of one root directory.
Everything about a repository is learned by running git subcommands in it
(through GitPython) and parsing their plain-text output.
"""

import logging
import re
import shutil
from pathlib import Path
from typing import Optional

import git  # GitPython

from gitstack.errors import BadRequestError, GitStackError, NotFoundError
from gitstack.models import (
    ContentEntry,
    FileContent,
    LocalBranch,
    LocalCommit,
    LocalRepo,
)

logger = logging.getLogger(__name__)

COMMIT_FORMAT = "--pretty=format:%H|%an|%ae|%at|%s"
DEFAULT_BRANCH = "main"
RECENT_COMMITS = 10

_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def parse_commit_line(line: str) -> Optional[LocalCommit]:
    """Parse one ``%H|%an|%ae|%at|%s`` line. The subject may contain ``|``."""
    line = line.strip()
    if not line:
        return None
    parts = line.split("|", 4)
    parts += [""] * (5 - len(parts))
    sha, author, email, timestamp, message = parts
    try:
        ts: Optional[int] = int(timestamp)
    except ValueError:
        ts = None
    return LocalCommit(hash=sha, author=author, email=email, timestamp=ts, message=message)


def parse_commit_log(output: str) -> list[LocalCommit]:
    commits = []
    for line in output.splitlines():
        commit = parse_commit_line(line)
        if commit:
            commits.append(commit)
    return commits


def parse_branch_output(output: str) -> list[LocalBranch]:
    """Parse ``git branch -a``; the current branch is prefixed with ``* ``."""
    branches = []
    for line in output.splitlines():
        current = line.startswith("*")
        name = re.sub(r"^\*\s*", "", line).strip()
        if name:
            branches.append(LocalBranch(name=name, current=current))
    return branches


def is_valid_repo_name(name: str) -> bool:
    return bool(_NAME_RE.match(name)) and name not in (".", "..")


def _stderr_text(exc: git.exc.GitCommandError) -> str:
    # GitPython wraps stderr as "\n  stderr: '<text>'"
    text = (exc.stderr or "").strip()
    if text.startswith("stderr:"):
        text = text[len("stderr:"):].strip().strip("'").strip()
    return text or str(exc)


class LocalRepoScanner:
    """Reads git working copies found under ``root``."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    # ── Discovery ─────────────────────────────────────────────────────────

    @staticmethod
    def is_git_repo(path: Path) -> bool:
        return (path / ".git").exists()

    def scan(self) -> list[LocalRepo]:
        """Every immediate subdirectory that is a git repo, sorted by name."""
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            logger.info("Created local repositories directory %s", self.root)
            return []

        repos = []
        for entry in sorted(self.root.iterdir(), key=lambda p: p.name):
            if entry.is_dir() and self.is_git_repo(entry):
                repos.append(self.get_repo_info(entry, entry.name))
        return repos

    def repo_path(self, name: str) -> Path:
        """Path of the named repository, or ``NotFoundError``."""
        if not is_valid_repo_name(name):
            raise NotFoundError("Repository not found")
        path = self.root / name
        if not path.is_dir() or not self.is_git_repo(path):
            raise NotFoundError("Repository not found")
        return path

    # ── Introspection ─────────────────────────────────────────────────────

    def get_repo_info(self, path: Path, name: str) -> LocalRepo:
        """Collect metadata; each field falls back on its own when git fails."""
        g = git.Git(str(path))

        branch = DEFAULT_BRANCH
        try:
            branch = g.rev_parse("--abbrev-ref", "HEAD").strip() or DEFAULT_BRANCH
        except git.exc.CommandError as exc:
            logger.debug("%s: no current branch (%s)", name, exc)

        last_commit = None
        try:
            last_commit = parse_commit_line(g.log("-1", COMMIT_FORMAT))
        except git.exc.CommandError as exc:
            logger.debug("%s: no last commit (%s)", name, exc)

        description = ""
        try:
            description = (path / ".git" / "description").read_text(encoding="utf-8").strip()
        except OSError as exc:
            logger.debug("%s: no description (%s)", name, exc)

        commits: list[LocalCommit] = []
        try:
            commits = parse_commit_log(g.log(COMMIT_FORMAT, f"-{RECENT_COMMITS}"))
        except git.exc.CommandError as exc:
            logger.debug("%s: no commit log (%s)", name, exc)

        branches: list[str] = []
        try:
            branches = [b.name for b in parse_branch_output(g.branch("-a"))]
        except git.exc.CommandError as exc:
            logger.debug("%s: no branches (%s)", name, exc)

        files: list[str] = []
        try:
            output = g.ls_tree("-r", "--name-only", "HEAD")
            files = [f for f in output.splitlines() if f and not f.startswith(".git/")]
        except git.exc.CommandError as exc:
            logger.debug("%s: no tracked files (%s)", name, exc)

        return LocalRepo(
            name=name,
            path=str(path),
            description=description,
            branch=branch,
            last_commit=last_commit,
            commits=commits,
            branches=branches,
            files=files,
        )

    def info(self, name: str) -> LocalRepo:
        path = self.repo_path(name)
        try:
            return self.get_repo_info(path, name)
        except OSError as exc:
            logger.error("Error reading repository %s: %s", name, exc)
            raise GitStackError("Failed to read repository") from exc

    def commits(self, name: str, limit: int = 50) -> list[LocalCommit]:
        path = self.repo_path(name)
        g = git.Git(str(path))
        try:
            return parse_commit_log(g.log(COMMIT_FORMAT, f"-{max(limit, 1)}"))
        except git.exc.CommandError as exc:
            if not self._has_head(g):
                return []
            logger.error("git log failed in %s: %s", name, exc)
            raise GitStackError("Failed to get commits") from exc

    def branches(self, name: str) -> list[LocalBranch]:
        path = self.repo_path(name)
        try:
            return parse_branch_output(git.Git(str(path)).branch("-a"))
        except git.exc.CommandError as exc:
            logger.error("git branch failed in %s: %s", name, exc)
            raise GitStackError("Failed to get branches") from exc

    def contents(self, name: str, rel_path: str = "") -> list[ContentEntry] | FileContent:
        """List a directory (without ``.git``) or read a file inside the repo."""
        repo = self.repo_path(name).resolve()
        rel_path = rel_path.strip("/")
        target = (repo / rel_path).resolve()
        if target != repo and repo not in target.parents:
            raise BadRequestError("Invalid path")
        if not target.exists():
            raise NotFoundError("Path not found")

        try:
            if target.is_dir():
                entries = []
                for child in sorted(target.iterdir(), key=lambda p: (not p.is_dir(), p.name.lower())):
                    if child.name == ".git":
                        continue
                    entries.append(
                        ContentEntry(
                            name=child.name,
                            path=f"{rel_path}/{child.name}" if rel_path else child.name,
                            type="dir" if child.is_dir() else "file",
                            size=child.stat().st_size,
                        )
                    )
                return entries

            return FileContent(
                name=target.name,
                path=rel_path,
                content=target.read_bytes().decode("utf-8", errors="replace"),
                size=target.stat().st_size,
            )
        except OSError as exc:
            logger.error("Reading %s in %s failed: %s", rel_path or "/", name, exc)
            raise GitStackError("Failed to get contents") from exc

    # ── Creation ──────────────────────────────────────────────────────────

    def _new_repo_path(self, name: str) -> Path:
        if not is_valid_repo_name(name):
            raise BadRequestError("Invalid repository name")
        path = self.root / name
        if path.exists():
            raise BadRequestError("Repository already exists")
        self.root.mkdir(parents=True, exist_ok=True)
        return path

    def clone(self, url: Optional[str], name: Optional[str]) -> LocalRepo:
        if not url or not name:
            raise BadRequestError("URL and name are required")
        if url.startswith("-"):
            raise BadRequestError("Invalid repository URL")
        path = self._new_repo_path(name)

        env = {"GIT_TERMINAL_PROMPT": "0"}  # Never prompt for credentials
        try:
            git.Repo.clone_from(url, str(path), env=env)
        except (git.exc.UnsafeProtocolError, git.exc.UnsafeOptionError) as exc:
            shutil.rmtree(path, ignore_errors=True)
            logger.warning("Refused to clone %s: %s", url, exc)
            raise BadRequestError("Invalid repository URL") from exc
        except git.exc.GitCommandError as exc:
            shutil.rmtree(path, ignore_errors=True)
            message = _stderr_text(exc)
            logger.error("Clone of %s failed: %s", url, message)
            raise GitStackError(f"Failed to clone: {message}") from exc
        logger.info("Cloned %s into %s", url, path)
        return self.get_repo_info(path, name)

    def init(self, name: Optional[str], description: str = "") -> LocalRepo:
        if not name:
            raise BadRequestError("Name is required")
        path = self._new_repo_path(name)

        try:
            path.mkdir(parents=True)
            git.Repo.init(str(path))
            if description:
                (path / ".git" / "description").write_text(description, encoding="utf-8")
        except (git.exc.GitCommandError, OSError) as exc:
            shutil.rmtree(path, ignore_errors=True)
            logger.error("Init of %s failed: %s", path, exc)
            raise GitStackError(f"Failed to init: {exc}") from exc
        logger.info("Initialized empty repository %s", path)
        return self.get_repo_info(path, name)

    @staticmethod
    def _has_head(g: git.Git) -> bool:
        try:
            g.rev_parse("--verify", "HEAD")
        except git.exc.CommandError:
            return False
        return True
