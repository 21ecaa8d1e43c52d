"""Runtime configuration for the map platform exporter."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from . import __version__

PACKAGE_ROOT = Path(__file__).resolve().parent


@dataclass(frozen=True)
class StoragePaths:
    """Collection of filesystem paths used by the application."""

    workspaces: Path
    outputs: Path
    templates: Path
    libs_cache: Path

    def ensure(self) -> None:
        """Ensure the writable directories exist."""
        self.workspaces.mkdir(parents=True, exist_ok=True)
        self.outputs.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class AppConfig:
    """High level runtime configuration values."""

    max_payload_mb: int = 2
    download_timeout: int = 30
    default_style: str = "satellite"
    default_profile: str = "driving"
    asset_base_url: str | None = None
    template_encoding: str = "utf-8"
    generator_name: str = "map-platform-export"
    generator_version: str = __version__

    @property
    def max_upload_bytes(self) -> int:
        """Maximum request payload in bytes."""
        return self.max_payload_mb * 1024 * 1024


@dataclass(frozen=True)
class QueueConfig:
    """Configuration for the Redis-backed project store and task queue."""

    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "map-platform-export"
    default_timeout: int = 60 * 10  # seconds


APP_CONFIG = AppConfig(
    download_timeout=int(os.environ.get("MAP_PLATFORM_DOWNLOAD_TIMEOUT", AppConfig.download_timeout)),
    default_style=os.environ.get("MAP_PLATFORM_DEFAULT_STYLE", AppConfig.default_style),
    default_profile=os.environ.get("MAP_PLATFORM_DEFAULT_PROFILE", AppConfig.default_profile),
    asset_base_url=os.environ.get("MAP_PLATFORM_ASSET_BASE_URL") or None,
    template_encoding=os.environ.get("MAP_PLATFORM_TEMPLATE_ENCODING", AppConfig.template_encoding),
)
STORAGE_PATHS = StoragePaths(
    workspaces=Path(os.environ.get("MAP_PLATFORM_WORKSPACES", tempfile.gettempdir())),
    outputs=Path(os.environ.get("MAP_PLATFORM_OUTPUTS", "outputs")),
    templates=Path(os.environ.get("MAP_PLATFORM_TEMPLATES", PACKAGE_ROOT / "templates")),
    libs_cache=Path(os.environ.get("MAP_PLATFORM_LIBS_CACHE", "node_modules")),
)
QUEUE_CONFIG = QueueConfig(
    redis_url=os.environ.get("MAP_PLATFORM_REDIS_URL", QueueConfig.redis_url),
    queue_name=os.environ.get("MAP_PLATFORM_QUEUE", QueueConfig.queue_name),
    default_timeout=int(
        os.environ.get("MAP_PLATFORM_QUEUE_TIMEOUT", QueueConfig.default_timeout)
    ),
)

STORAGE_PATHS.ensure()
