"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "noteify.db"
DEFAULT_LLM_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_LLM_MODEL = "google/gemini-2.0-flash-001"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    enable_local_mode: bool = Field(
        default=True,
        description="Allow local-dev token bypass when running locally",
    )
    local_dev_token: Optional[str] = Field(
        default="local-dev-token",
        description="Static token accepted in local mode for development",
    )
    storage_backend: Literal["sqlite", "firestore"] = Field(
        default="sqlite", description="Note storage backend"
    )
    database_path: Path = Field(
        default=DEFAULT_DB_PATH, description="SQLite file used by the sqlite backend"
    )
    firebase_project_id: Optional[str] = Field(
        None, description="Firebase project hosting auth and Firestore"
    )
    firebase_api_key: Optional[str] = Field(
        None, description="Firebase Web API key used for Identity Toolkit calls"
    )
    llm_api_key: Optional[str] = Field(None, description="Generative API key")
    llm_base_url: str = Field(
        default=DEFAULT_LLM_BASE_URL,
        description="OpenAI-compatible chat completions base URL",
    )
    llm_model: str = Field(default=DEFAULT_LLM_MODEL, description="Model identifier")
    llm_timeout_seconds: float = Field(default=60.0, description="LLM request timeout")
    public_base_url: str = Field(
        default="http://localhost:3000",
        description="Origin used to build public share links",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )
    log_level: str = Field(default="INFO")

    @field_validator("database_path", mode="before")
    @classmethod
    def _normalize_db_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            return DEFAULT_DB_PATH
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("llm_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("LLM_TIMEOUT_SECONDS must be positive")
        return value

    @field_validator("public_base_url", "llm_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def _require_firebase_for_firestore(self) -> "AppConfig":
        if self.storage_backend == "firestore" and not self.firebase_project_id:
            raise ValueError("FIREBASE_PROJECT_ID is required when STORAGE_BACKEND=firestore")
        return self


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _read_list(key: str) -> Optional[list[str]]:
    raw = _read_env(key)
    if raw is None:
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    enable_local_mode = _read_env("ENABLE_LOCAL_MODE", "true").lower() not in {
        "0",
        "false",
        "no",
    }
    values = {
        "enable_local_mode": enable_local_mode,
        "local_dev_token": _read_env("LOCAL_DEV_TOKEN", "local-dev-token"),
        "storage_backend": _read_env("STORAGE_BACKEND", "sqlite").lower(),
        "database_path": _read_env("DATABASE_PATH"),
        "firebase_project_id": _read_env("FIREBASE_PROJECT_ID"),
        "firebase_api_key": _read_env("FIREBASE_API_KEY"),
        "llm_api_key": _read_env("LLM_API_KEY") or _read_env("OPENROUTER_API_KEY"),
        "llm_base_url": _read_env("LLM_BASE_URL", DEFAULT_LLM_BASE_URL),
        "llm_model": _read_env("LLM_MODEL", DEFAULT_LLM_MODEL),
        "llm_timeout_seconds": _read_env("LLM_TIMEOUT_SECONDS", "60"),
        "public_base_url": _read_env("PUBLIC_BASE_URL", "http://localhost:3000"),
        "log_level": _read_env("LOG_LEVEL", "INFO").upper(),
    }
    cors_origins = _read_list("CORS_ORIGINS")
    if cors_origins is not None:
        values["cors_origins"] = cors_origins
    return AppConfig(**values)


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "PROJECT_ROOT",
    "DEFAULT_DB_PATH",
]
