"""Application settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Settings:
    """Runtime settings of a restforge application.

    Attributes:
        metadata_path: Directory holding models/ and resources/ YAML files
        default_limit: Page size for resources that do not set one
        max_limit: Page size bound for resources that do not set one
        log_level: Log level handed to uvicorn and the root logger
        port: Port `restforge serve` listens on
        cors_origins: Origins allowed by the CORS middleware
    """

    metadata_path: Path = Path("metadata")
    default_limit: int = 100
    max_limit: int = 500
    log_level: str = "info"
    port: int = 8000
    cors_origins: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> Settings:
        """Create settings from RESTFORGE_* environment variables."""
        origins = os.environ.get("RESTFORGE_CORS_ORIGINS", "")
        return cls(
            metadata_path=Path(os.environ.get("RESTFORGE_METADATA_PATH", "metadata")),
            default_limit=_int_env("RESTFORGE_DEFAULT_LIMIT", 100),
            max_limit=_int_env("RESTFORGE_MAX_LIMIT", 500),
            log_level=os.environ.get("RESTFORGE_LOG_LEVEL", "info").lower(),
            port=_int_env("RESTFORGE_PORT", 8000),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
