from __future__ import annotations

import os
from pathlib import Path


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    ENV = os.getenv("RESUME_DOCS_ENV", "development")
    JSON_SORT_KEYS = False
    LOG_LEVEL = os.getenv("RESUME_DOCS_LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("RESUME_DOCS_LOG_FILE", "")

    # Local OAuth material; production relies on Application Default Credentials
    CREDENTIALS_PATH = Path(os.getenv("RESUME_DOCS_CREDENTIALS_PATH", Path.cwd() / "credentials.json"))
    TOKEN_PATH = Path(os.getenv("RESUME_DOCS_TOKEN_PATH", Path.cwd() / "token.json"))
    GOOGLE_SCOPES = [
        "https://www.googleapis.com/auth/documents",
        "https://www.googleapis.com/auth/drive",
    ]

    TEMPLATE_DOCUMENT_ID = os.getenv("RESUME_DOCS_TEMPLATE_DOCUMENT_ID", "")
    DEFAULT_SHARE_ROLE = os.getenv("RESUME_DOCS_DEFAULT_SHARE_ROLE", "writer")

    # Pipeline pacing and safety limits
    THROTTLE_ENABLED = _env_flag("RESUME_DOCS_THROTTLE_ENABLED", "true")
    MARKER_PASS_LIMIT = int(os.getenv("RESUME_DOCS_MARKER_PASS_LIMIT", "50"))
    STYLE_CHUNK_SIZE = int(os.getenv("RESUME_DOCS_STYLE_CHUNK_SIZE", "10"))
    READ_RETRIES = int(os.getenv("RESUME_DOCS_READ_RETRIES", "3"))


class TestConfig(BaseConfig):
    TESTING = True
    ENV = "testing"
    LOG_LEVEL = "DEBUG"
    THROTTLE_ENABLED = False
    READ_RETRIES = 0
    TEMPLATE_DOCUMENT_ID = "test-template"


class DevConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(BaseConfig):
    ENV = "production"


config_by_name = {
    "development": DevConfig,
    "testing": TestConfig,
    "production": ProductionConfig,
}


def get_config(config_name: str | None = None):
    if not config_name:
        config_name = os.getenv("RESUME_DOCS_ENV", "development")
    return config_by_name.get(config_name.lower(), BaseConfig)


def config_value(config, key: str, default=None):
    """Read a setting from a Flask config mapping or a config class alike."""
    if isinstance(config, dict):
        return config.get(key, default)
    return getattr(config, key, default)


def is_production(config) -> bool:
    return str(config_value(config, "ENV", "development")).lower() == "production"
