"""Application settings, read from the environment (``.env`` is loaded by the CLI)."""

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SESSION_SECRET = "gitstack-secret-key"


class Settings(BaseModel):
    """Strongly-typed application configuration."""

    model_config = ConfigDict(frozen=True)

    github_client_id: Optional[str] = None
    github_client_secret: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    oauth_scopes: str = "user repo read:org"

    session_secret: str = DEFAULT_SESSION_SECRET
    session_max_age: int = 24 * 60 * 60
    client_url: str = "http://localhost:2020"

    local_repos_path: Path = Path("repos")
    database_path: Path = Path("gitstack.db")

    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 2020
    log_level: str = "INFO"

    rate_limit_requests: int = Field(default=100, ge=1)
    rate_limit_window: int = Field(default=15 * 60, ge=1)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def oauth_configured(self) -> bool:
        return bool(self.github_client_id and self.github_client_secret)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from *environ* (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        mapping = {
            "github_client_id": "GITHUB_CLIENT_ID",
            "github_client_secret": "GITHUB_CLIENT_SECRET",
            "github_api_url": "GITHUB_API_URL",
            "session_secret": "SESSION_SECRET",
            "client_url": "CLIENT_URL",
            "local_repos_path": "LOCAL_REPOS_PATH",
            "database_path": "GITSTACK_DB",
            "environment": "GITSTACK_ENV",
            "host": "HOST",
            "port": "PORT",
            "log_level": "LOG_LEVEL",
            "rate_limit_requests": "RATE_LIMIT_REQUESTS",
            "rate_limit_window": "RATE_LIMIT_WINDOW",
        }
        values = {field: env[var] for field, var in mapping.items() if env.get(var)}
        return cls(**values)
