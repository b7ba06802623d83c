"""Pytest configuration and fixtures."""

import shutil
from pathlib import Path

import git
import pytest
import respx
from fastapi.testclient import TestClient

from gitstack.app import create_app
from gitstack.config import Settings
from gitstack.deps import require_user
from gitstack.models import User
from gitstack.store import DocumentStore


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        github_client_id="client-id",
        github_client_secret="client-secret",
        local_repos_path=tmp_path / "repos",
        database_path=tmp_path / "gitstack.db",
    )


@pytest.fixture
def store(settings):
    return DocumentStore(settings.database_path)


@pytest.fixture
def user(store):
    return store.save(
        User(
            github_id="1001",
            username="octocat",
            display_name="The Octocat",
            email="octocat@example.com",
            avatar="https://avatars.example.com/octocat.png",
            profile_url="https://github.com/octocat",
            github_token="gho_testtoken",
        )
    )


@pytest.fixture
def app(settings, store):
    return create_app(settings, store)


@pytest.fixture
def anon_client(app):
    """A client with no signed-in user."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(app, user):
    """A client whose requests run as ``user``."""
    app.dependency_overrides[require_user] = lambda: user
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def _commit(repo: git.Repo, path: str, content: str, message: str) -> None:
    Path(repo.working_tree_dir, path).write_text(content, encoding="utf-8")
    repo.index.add([path])
    repo.index.commit(message)


@pytest.fixture
def repos_root(settings):
    settings.local_repos_path.mkdir(parents=True, exist_ok=True)
    return settings.local_repos_path


@pytest.fixture
def git_repo(repos_root):
    """A small repository with two commits and a feature branch."""
    if shutil.which("git") is None:
        pytest.skip("git binary not available")
    path = repos_root / "demo"
    repo = git.Repo.init(path)
    repo.git.symbolic_ref("HEAD", "refs/heads/main")
    with repo.config_writer() as cw:
        cw.set_value("user", "name", "Dev Person")
        cw.set_value("user", "email", "dev@example.com")
    (path / "src").mkdir()
    _commit(repo, "README.md", "# Demo\n", "Initial commit")
    _commit(repo, "src/app.py", "print('hi')\n", "Add app | with pipe")
    repo.create_head("feature")
    (path / ".git" / "description").write_text("Demo repository\n", encoding="utf-8")
    return path


@pytest.fixture
def github():
    """respx router standing in for api.github.com."""
    with respx.mock(base_url="https://api.github.com", assert_all_called=False) as router:
        yield router
