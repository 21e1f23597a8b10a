import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)


class SecurityConfig(BaseModel):
    jwt_secret: str = Field(min_length=16)
    jwt_issuer: str = Field(default="needled")
    access_token_minutes: int = Field(default=60, ge=5, le=24 * 60)
    refresh_token_days: int = Field(default=30, ge=1, le=90)
    cors_origins: list[str] = Field(default_factory=list)
    cron_secret: Optional[str] = Field(default=None)


class DatabaseConfig(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./needled.db")


class NotificationConfig(BaseModel):
    enabled: bool = Field(default=True)
    app_url: str = Field(default="http://localhost:3000")
    sendgrid_api_key: Optional[str] = Field(default=None)
    sendgrid_from_email: Optional[str] = Field(default=None)
    expo_push_url: str = Field(default="https://exp.host/--/api/v2/push/send")
    timeout_seconds: int = Field(default=10, ge=1)


class Settings(BaseModel):
    server: ServerConfig
    security: SecurityConfig
    database: DatabaseConfig
    notifications: NotificationConfig

    model_config = ConfigDict(arbitrary_types_allowed=True)


DEFAULT_CONFIG_PATH = Path(os.environ.get("CONFIG_PATH", "config/config.json"))


def _load_file_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid JSON configuration at {path}") from exc


def _load_env() -> dict[str, Any]:
    env_config: dict[str, Any] = {}

    host = os.environ.get("SERVER_HOST")
    if host:
        env_config.setdefault("server", {})["host"] = host

    port = os.environ.get("SERVER_PORT")
    if port:
        env_config.setdefault("server", {})["port"] = int(port)

    jwt_secret = os.environ.get("JWT_SECRET")
    if jwt_secret:
        env_config.setdefault("security", {})["jwt_secret"] = jwt_secret

    jwt_issuer = os.environ.get("JWT_ISSUER")
    if jwt_issuer:
        env_config.setdefault("security", {})["jwt_issuer"] = jwt_issuer

    cors_origins = os.environ.get("CORS_ORIGINS")
    if cors_origins:
        env_config.setdefault("security", {})["cors_origins"] = [
            origin.strip() for origin in cors_origins.split(",") if origin.strip()
        ]

    cron_secret = os.environ.get("CRON_SECRET")
    if cron_secret:
        env_config.setdefault("security", {})["cron_secret"] = cron_secret

    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        env_config.setdefault("database", {})["url"] = database_url

    enabled = os.environ.get("NOTIFICATIONS_ENABLED")
    if enabled:
        env_config.setdefault("notifications", {})["enabled"] = enabled.lower() == "true"

    app_url = os.environ.get("APP_URL")
    if app_url:
        env_config.setdefault("notifications", {})["app_url"] = app_url

    sendgrid_key = os.environ.get("SENDGRID_API_KEY")
    if sendgrid_key:
        env_config.setdefault("notifications", {})["sendgrid_api_key"] = sendgrid_key

    sendgrid_from = os.environ.get("SENDGRID_FROM_EMAIL")
    if sendgrid_from:
        env_config.setdefault("notifications", {})["sendgrid_from_email"] = sendgrid_from

    return env_config


def merge_settings(env_config: dict[str, Any], file_config: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for section in ("server", "security", "database", "notifications"):
        merged[section] = {**file_config.get(section, {}), **env_config.get(section, {})}
    return merged


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    env_config = _load_env()
    file_config = _load_file_config(DEFAULT_CONFIG_PATH)
    merged = merge_settings(env_config=env_config, file_config=file_config)
    try:
        return Settings.model_validate(merged)
    except ValidationError as exc:  # pragma: no cover
        raise RuntimeError(f"Configuration error: {exc}") from exc


__all__ = ["Settings", "get_settings"]
