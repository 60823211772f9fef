"""Server configuration using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PXD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "pxd"
    version: str = "0.3.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8787, description="Server port")

    # Shared secrets for the role check
    admin_key: str | None = Field(
        default=None,
        description="Secret granting the admin role (update/delete)",
    )
    agent_key: str | None = Field(
        default=None,
        description="Secret granting the agent role (create/read/link/search)",
    )

    # Paths
    data_path: Path = Field(
        default=Path("./data"),
        description="Directory holding the SQLite database",
    )

    # Database
    database_url: str | None = Field(
        default=None,
        description="Database connection URL (defaults to SQLite under data_path)",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    @property
    def db_path(self) -> Path:
        """Get the SQLite database file path."""
        return self.data_path / "pxd.db"


# Global settings instance
settings = Settings()
