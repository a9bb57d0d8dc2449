"""
Configuration management for mara-sync.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Watched roots
    sync_root: Path = Path("_mara")
    watch_paths: str = ""

    # Bundled processor roots (relative to sync_root unless absolute)
    mirror_source: str = "a"
    mirror_target: str = "b"
    mirror_suffixes: str = ".txt"
    bidirectional_left: str = "a"
    bidirectional_right: str = "c"

    # Processors registered at startup, in dispatch order
    enabled_processors: str = "mirror,bidirectional"

    # Dispatch behaviour
    debounce_seconds: float = 0.25
    pending_write_ttl: float = 30.0  # seconds, 0 disables expiry
    skip_unchanged_writes: bool = True
    poll_interval: float = 1.0
    command_timeout: float = 30.0

    # Text generation (chat processor)
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4"
    openai_url: str = "https://api.openai.com/v1"
    openai_temperature: float = 1.0
    request_timeout: float = 60.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def resolve_root(self, name: str) -> Path:
        """Resolve a configured root against sync_root."""
        path = Path(name).expanduser()
        if path.is_absolute():
            return path
        return self.sync_root.expanduser() / path

    def get_watch_paths(self) -> list[Path]:
        """Parse watch paths into list of Paths, defaulting to sync_root."""
        paths = [
            Path(p.strip()).expanduser()
            for p in self.watch_paths.split(',')
            if p.strip()
        ]
        return paths or [self.sync_root.expanduser()]

    def get_mirror_suffixes(self) -> list[str]:
        """Parse mirror suffixes into list."""
        return [s.strip() for s in self.mirror_suffixes.split(',') if s.strip()]

    def get_enabled_processors(self) -> list[str]:
        """Parse enabled processor names into list."""
        return [
            p.strip().lower()
            for p in self.enabled_processors.split(',')
            if p.strip()
        ]

    def get_bundled_roots(self) -> list[Path]:
        """Roots used by the bundled mirror and bidirectional processors."""
        names = [
            self.mirror_source,
            self.mirror_target,
            self.bidirectional_left,
            self.bidirectional_right,
        ]
        roots: list[Path] = []
        for name in names:
            root = self.resolve_root(name)
            if root not in roots:
                roots.append(root)
        return roots


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
