"""
Configuration management for the GST dashboard backend.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

import shlex
from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 5050
    log_level: str = "INFO"
    api_title: str = "GST Dashboard API"
    api_version: str = "1.0.0"

    # Reverse proxies mount the API under this prefix
    proxy_prefix: str = "/admin/api/"

    # Storage Configuration
    data_dir: Path = Path(".")
    db_file: Path = Path("db.json")
    primary_file: Path = Path("gst_data.json")
    users_file: Path = Path("users.json")
    uploads_dir: Path = Path("uploads")

    # Extraction Configuration
    extraction_command: str = "python3"
    extraction_script: Optional[Path] = Path("../tools/pdf_extraction_tool.py")
    extraction_cwd: Optional[Path] = Path("..")
    extraction_timeout: float = 300.0  # seconds

    # Watcher Configuration
    watch_enabled: bool = True
    watch_interval: float = 1.0  # seconds

    # Body size limits
    max_upload_bytes: int = 50 * 1024 * 1024
    max_json_bytes: int = 10 * 1024 * 1024

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def _resolve(self, path: Path) -> Path:
        path = path.expanduser()
        if path.is_absolute():
            return path
        return self.data_dir.expanduser() / path

    @property
    def db_path(self) -> Path:
        """Fallback snapshot file."""
        return self._resolve(self.db_file)

    @property
    def primary_path(self) -> Path:
        """Snapshot file written by the extraction tool."""
        return self._resolve(self.primary_file)

    @property
    def users_path(self) -> Path:
        return self._resolve(self.users_file)

    @property
    def uploads_path(self) -> Path:
        return self._resolve(self.uploads_dir)

    def get_extraction_command(self) -> list[str]:
        """Parse the extraction command and script into an argument list."""
        command = shlex.split(self.extraction_command)
        if self.extraction_script is not None:
            command.append(str(self._resolve(self.extraction_script)))
        return command

    def get_extraction_cwd(self) -> Optional[Path]:
        if self.extraction_cwd is None:
            return None
        return self._resolve(self.extraction_cwd)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
