"""Configuration utilities for coursesync.

This module loads client configuration with the following rules:
- Primary source: `coursesync_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("coursesync_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Unreadable override: log and fall through to the next source
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class GatewayConfig(BaseModel):
    base_url: str
    timeout_seconds: float = Field(default=10.0, gt=0)
    reorder_method: str = Field(default="POST")

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_http(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("gateway.base_url must be a non-empty string")
        if not v.startswith(("http://", "https://")):
            raise ValueError("gateway.base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("reorder_method")
    @classmethod
    def method_must_be_allowed(cls, v: str) -> str:
        allowed = {"POST", "PATCH"}
        upper = str(v).strip().upper()
        if upper not in allowed:
            raise ValueError(f"gateway.reorder_method must be one of {sorted(allowed)}")
        return upper


class NotificationConfig(BaseModel):
    ttl_seconds: float = Field(default=4.0, gt=0)


class AppConfig(BaseModel):
    gateway: GatewayConfig
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) coursesync_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    base_url = (
        _env("COURSESYNC_BASE_URL")
        or _read_config_file("gateway.base_url")
        or _base("gateway.base_url")
        or "http://localhost:8000/api/v1"
    )
    timeout_text = (
        _env("COURSESYNC_TIMEOUT_SECONDS")
        or _read_config_file("gateway.timeout_seconds")
        or _base("gateway.timeout_seconds", "10")
    )
    method = (
        _env("COURSESYNC_REORDER_METHOD")
        or _read_config_file("gateway.reorder_method")
        or _base("gateway.reorder_method", "POST")
    )
    ttl_text = (
        _env("COURSESYNC_NOTIFICATION_TTL")
        or _read_config_file("notifications.ttl_seconds")
        or _base("notifications.ttl_seconds", "4")
    )

    try:
        cfg = AppConfig(
            gateway=GatewayConfig(
                base_url=base_url,
                timeout_seconds=str(timeout_text).strip(),
                reorder_method=method,
            ),
            notifications=NotificationConfig(ttl_seconds=str(ttl_text).strip()),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid coursesync configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "GatewayConfig",
    "NotificationConfig",
    "load_config",
]
