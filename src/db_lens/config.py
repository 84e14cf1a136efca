"""Configuration for db-lens."""

import logging
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".vscode/db-lens.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables (DB_LENS_*)."""

    model_config = SettingsConfigDict(
        env_prefix="DB_LENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Workspace
    # ==========================================================================

    workspace_root: str = Field(
        default="",
        description="Project root to inspect (empty means the current directory)",
    )

    config_file: str = Field(
        default=DEFAULT_CONFIG_FILE,
        description="Workspace-relative path of the connection list (.json, .yaml or .yml)",
    )

    # ==========================================================================
    # Engines
    # ==========================================================================

    connect_timeout: int = Field(
        default=5,
        description="Seconds passed to the server drivers as their connect timeout",
    )

    page_size: int = Field(
        default=50,
        description="Default number of rows per page when browsing a table",
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level for the CLI",
    )

    def get_workspace_root(self) -> Path:
        """Return the workspace root, defaulting to the current directory."""
        if self.workspace_root:
            return Path(self.workspace_root).expanduser()
        return Path.cwd()

    def get_config_file_path(self) -> Path:
        """Return the absolute path of the declarative connection file.

        Absolute ``config_file`` values are used as-is; relative ones are
        resolved against the workspace root.
        """
        path = Path(self.config_file).expanduser()
        if path.is_absolute():
            return path
        return self.get_workspace_root() / path


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    global _settings
    _settings = None


def load_workspace_settings(workspace: str | Path, **overrides: Any) -> Settings:
    """Settings for inspecting another project.

    The workspace's own ``.env`` is read after the current directory's, so its
    ``DB_LENS_*`` values win over local ones; the process environment and
    ``overrides`` still take precedence.
    """
    root = Path(workspace).expanduser()
    overrides["workspace_root"] = str(root)
    try:
        return Settings(_env_file=(".env", root / ".env"), **overrides)
    except (UnicodeDecodeError, SettingsError) as e:
        logger.warning("Ignoring unreadable %s: %s", root / ".env", e)
        return Settings(**overrides)
