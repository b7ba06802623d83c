"""Routes over git working copies under the local repositories directory.

Handlers are plain functions: git shell-outs block, so FastAPI runs them in
its threadpool.
"""

from fastapi import APIRouter, Depends

from gitstack.deps import get_scanner, require_user
from gitstack.models import CloneRequest, InitRequest
from gitstack.scanner import LocalRepoScanner

router = APIRouter(prefix="/local", tags=["local"], dependencies=[Depends(require_user)])


@router.get("")
def list_local_repositories(scanner: LocalRepoScanner = Depends(get_scanner)):
    return [repo.to_json() for repo in scanner.scan()]


@router.post("/clone")
def clone_repository(body: CloneRequest, scanner: LocalRepoScanner = Depends(get_scanner)):
    return scanner.clone(body.url, body.name).to_json()


@router.post("/init")
def init_repository(body: InitRequest, scanner: LocalRepoScanner = Depends(get_scanner)):
    return scanner.init(body.name, body.description).to_json()


@router.get("/{name}")
def get_local_repository(name: str, scanner: LocalRepoScanner = Depends(get_scanner)):
    return scanner.info(name).to_json()


@router.get("/{name}/commits")
def list_local_commits(name: str, limit: int = 50, scanner: LocalRepoScanner = Depends(get_scanner)):
    return [commit.to_json() for commit in scanner.commits(name, limit=limit)]


@router.get("/{name}/branches")
def list_local_branches(name: str, scanner: LocalRepoScanner = Depends(get_scanner)):
    return [branch.to_json() for branch in scanner.branches(name)]


@router.get("/{name}/contents")
@router.get("/{name}/contents/{path:path}")
def get_local_contents(name: str, path: str = "", scanner: LocalRepoScanner = Depends(get_scanner)):
    result = scanner.contents(name, path)
    if isinstance(result, list):
        return [entry.to_json() for entry in result]
    return result.to_json()
