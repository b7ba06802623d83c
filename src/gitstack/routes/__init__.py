"""HTTP routes, mounted under ``/api``."""

from fastapi import APIRouter

from gitstack.routes import auth, issues, local, pulls, render, repos, user

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(repos.router)
api_router.include_router(issues.router)
api_router.include_router(pulls.router)
api_router.include_router(user.router)
api_router.include_router(local.router)
api_router.include_router(render.router)
