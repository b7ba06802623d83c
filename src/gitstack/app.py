"""FastAPI application: API routers, sessions, rate limiting and the web UI."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from gitstack import __version__
from gitstack.config import DEFAULT_SESSION_SECRET, Settings
from gitstack.errors import GitStackError
from gitstack.ratelimit import RateLimiter
from gitstack.routes import api_router
from gitstack.scanner import LocalRepoScanner
from gitstack.store import DocumentStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"
RATE_LIMITED_PREFIX = "/api/"


def create_app(settings: Optional[Settings] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    """Build the application; tests pass their own settings and store."""
    settings = settings or Settings.from_env()
    if settings.is_production and settings.session_secret == DEFAULT_SESSION_SECRET:
        logger.warning("SESSION_SECRET is not set; sessions use the built-in default secret")
    if not settings.oauth_configured:
        logger.warning("GITHUB_CLIENT_ID/GITHUB_CLIENT_SECRET not set; GitHub sign-in is disabled")

    app = FastAPI(title="GitStack", version=__version__)
    app.state.settings = settings
    app.state.store = store or DocumentStore(settings.database_path)
    app.state.scanner = LocalRepoScanner(settings.local_repos_path)
    app.state.rate_limiter = RateLimiter(settings.rate_limit_requests, settings.rate_limit_window)

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if not request.url.path.startswith(RATE_LIMITED_PREFIX):
            return await call_next(request)

        limiter: RateLimiter = request.app.state.rate_limiter
        client = request.client.host if request.client else "unknown"
        if limiter.hit(client):
            response = await call_next(request)
        else:
            logger.warning("Rate limit exceeded for %s", client)
            response = JSONResponse({"error": "Too many requests, please try again later."}, status_code=429)
        response.headers["X-RateLimit-Limit"] = str(limiter.limit)
        response.headers["X-RateLimit-Remaining"] = str(limiter.remaining(client))
        return response

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie="gitstack_session",
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.is_production,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app, settings)
    app.include_router(api_router)

    if STATIC_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/{full_path:path}", include_in_schema=False)
    async def spa(full_path: str):
        if full_path == "api" or full_path.startswith("api/"):
            return JSONResponse({"error": "Not found"}, status_code=404)
        return FileResponse(STATIC_DIR / "index.html")

    logger.info("GitStack %s ready (local repositories in %s)", __version__, settings.local_repos_path)
    return app


def _register_error_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(GitStackError)
    async def gitstack_error(request: Request, exc: GitStackError):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
            status_code=400,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"error": "Something went wrong!"}
        if not settings.is_production:
            body["message"] = str(exc)
        return JSONResponse(body, status_code=500)
