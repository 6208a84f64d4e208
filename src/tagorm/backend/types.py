"""Backend types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tagorm.errors import ConfigError


class BackendType(str, Enum):
    """Supported reference backends."""

    SQLITE = "sqlite"
    ORACLE = "oracle"


@dataclass
class BackendConfig:
    """
    Configuration for a backend session.

    Different fields are used by different backend types.
    """

    backend_type: BackendType = BackendType.SQLITE

    # SQLite
    path: str | None = None

    # Oracle
    host: str = "localhost"
    port: int = 1521
    database: str = ""  # service name
    username: str | None = None
    password: str | None = None

    connect_timeout: int = 10

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def to_connection_string(self) -> str:
        """Generate connection string for the backend type."""
        match self.backend_type:
            case BackendType.SQLITE:
                return self.path or ":memory:"
            case BackendType.ORACLE:
                return f"{self.host}:{self.port}/{self.database}"
            case _:
                raise ConfigError(f"Connection string not supported for: {self.backend_type}")


__all__ = [
    "BackendType",
    "BackendConfig",
]
