"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
application starts with no configuration at all; in a production
deployment override them via environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Reactivities API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = _env_bool("DEBUG", "false")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
    # Lifetime of email confirmation and password reset codes.
    email_token_expire_minutes: int = int(os.getenv("EMAIL_TOKEN_EXPIRE_MINUTES", str(60 * 24)))

    # Path to the SQLite database.  Relative paths are resolved against
    # the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "reactivities.db")

    cors_origins: List[str] = field(
        default_factory=lambda: _env_list("CORS_ORIGINS", "http://localhost:3000,https://localhost:3000")
    )
    # Base URL of the single page client; used to build links in emails.
    client_app_url: str = os.getenv("CLIENT_APP_URL", "http://localhost:3000")
    require_confirmed_email: bool = _env_bool("REQUIRE_CONFIRMED_EMAIL", "true")
    email_from: str = os.getenv("EMAIL_FROM", "no-reply@reactivities.local")

    photo_storage_dir: str = os.getenv("PHOTO_STORAGE_DIR", "photos")
    photo_base_url: str = os.getenv("PHOTO_BASE_URL", "/photos")

    seed_data: bool = _env_bool("SEED_DATA", "true")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before importing this module; tests patch attributes directly.
settings = Settings()
