"""Settings for tagorm.

All fields can be set through ``TAGORM_*`` environment variables or a
``.env`` file, e.g. ``TAGORM_SCHEMA_NAME=SALES`` or ``TAGORM_LOG_INSERT=1``.

Fields
──────
schema_name   : Prefix for every generated table reference (``SALES.ITEM``)
tag_key       : Dataclass field-metadata key holding the annotation
log_level     : Structlog log level
log_json      : JSON log output (None = auto-detect from tty)
log_insert .. : Per-operation statement logging switches
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OrmSettings(BaseSettings):
    """tagorm configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TAGORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Mapping ──────────────────────────────────────────────────
    schema_name: str = Field(default="", description="Table name prefix (schema)")
    tag_key: str = Field(default="db", description="Field metadata key for annotations")

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    log_insert: bool = False
    log_update: bool = False
    log_delete: bool = False
    log_select: bool = False
    log_register: bool = False

    @field_validator("tag_key")
    @classmethod
    def _tag_key_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("tag_key must not be blank")
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level


_settings_cache: dict[str, OrmSettings] = {}


def get_settings(*, _force_reload: bool = False) -> OrmSettings:
    """Load, validate and cache the process settings.

    Parameters
    ----------
    _force_reload:
        Bypass the cache and re-read the environment.
    """
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = OrmSettings()
    _settings_cache["default"] = settings
    return settings


__all__ = [
    "OrmSettings",
    "get_settings",
]
