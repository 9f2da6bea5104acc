"""YAML config loading and validation."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_SESSION_SECRET = "dev-secret-change-me-in-production"


def _normalize_database_url(url: str) -> str:
    # Hosted Postgres often hands out postgres:// but SQLAlchemy 2.x requires postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


@dataclass
class DatabaseConfig:
    url: str = "sqlite:///data/bitwork.db"
    echo: bool = False
    auto_create: bool = True


@dataclass
class WebConfig:
    session_secret: str = DEFAULT_SESSION_SECRET
    page_size: int = 12


@dataclass
class AuthConfig:
    # Headers set by the identity-aware proxy in front of the app
    user_id_header: str = "X-Forwarded-User"
    email_header: str = "X-Forwarded-Email"
    name_header: str = "X-Forwarded-Preferred-Username"


@dataclass
class AppConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    web: WebConfig = field(default_factory=WebConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    log_dir: str = "logs"
    log_level: str = "INFO"


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from a YAML file, falling back to defaults.

    Environment variables take precedence over file values for the
    database URL and the session secret.
    """
    raw: dict = {}
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                "Copy config.example.yaml to config.yaml and fill in your settings."
            )
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    config = AppConfig()

    # Database
    db_raw = raw.get("database", {})
    config.database = DatabaseConfig(
        url=_normalize_database_url(
            os.environ.get("DATABASE_URL", db_raw.get("url", "sqlite:///data/bitwork.db"))
        ),
        echo=db_raw.get("echo", False),
        auto_create=db_raw.get("auto_create", True),
    )

    # Web
    web_raw = raw.get("web", {})
    config.web = WebConfig(
        session_secret=os.environ.get(
            "BITWORK_SESSION_SECRET", web_raw.get("session_secret", DEFAULT_SESSION_SECRET)
        ),
        page_size=web_raw.get("page_size", 12),
    )

    # Identity handoff
    auth_raw = raw.get("auth", {})
    config.auth = AuthConfig(
        user_id_header=auth_raw.get("user_id_header", "X-Forwarded-User"),
        email_header=auth_raw.get("email_header", "X-Forwarded-Email"),
        name_header=auth_raw.get("name_header", "X-Forwarded-Preferred-Username"),
    )

    config.log_dir = raw.get("log_dir", "logs")
    config.log_level = str(raw.get("log_level", "INFO")).upper()

    return config


def validate_config(config: AppConfig) -> list[str]:
    """Return list of validation warnings (empty = OK)."""
    warnings = []

    if config.web.session_secret == DEFAULT_SESSION_SECRET:
        warnings.append("Session secret is the development default - set BITWORK_SESSION_SECRET")

    if config.database.url.startswith("sqlite") and not config.database.auto_create:
        warnings.append("SQLite database with auto_create disabled - run 'bitwork --init-db' first")

    if config.web.page_size <= 0:
        warnings.append("Page size must be positive - job listings will fall back to 12 per page")

    return warnings
