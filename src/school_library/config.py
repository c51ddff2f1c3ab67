"""Configuration management for the School Library server.

Settings are loaded from the environment (``SCHOOL_LIBRARY_`` prefix) and an
optional ``.env`` file, and validated with pydantic-settings.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LibraryConfig(BaseSettings):
    """School library configuration.

    Covers server identification for the MCP handshake, the location of the
    SQLite database and the circulation defaults used by the tools layer.
    """

    model_config = SettingsConfigDict(
        # Use SCHOOL_LIBRARY_ prefix for all env vars
        env_prefix="SCHOOL_LIBRARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Server Metadata ===

    server_name: str = Field(
        default="school-library",
        description="MCP server name used in protocol handshake",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="0.1.0",
        description="Server version for capability negotiation",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    transport: str = Field(
        default="stdio",
        description="Primary transport mechanism",
        pattern=r"^stdio$",
    )

    # === Database Configuration ===

    database_path: Path = Field(
        default=Path("data/library.db"),
        description="SQLite database file path",
    )

    sqlite_busy_timeout: float = Field(
        default=5.0,
        description="Seconds a SQLite writer waits for a concurrent commit",
        gt=0,
        le=60,
    )

    # === Circulation Defaults ===

    loan_period_days: int = Field(
        default=14,
        description="Default loan period when a borrow request has no due date",
        ge=1,
        le=365,
    )

    recent_activity_limit: int = Field(
        default=10,
        description="Number of entries in the recent activity feed",
        ge=1,
        le=100,
    )

    # === Development Configuration ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, v: Path) -> Path:
        """Store the database path as an absolute path."""
        return v.absolute()

    @field_validator("server_name")
    @classmethod
    def validate_server_name(cls, v: str) -> str:
        """Keep server names readable in client listings."""
        if len(v) < 3:
            raise ValueError("Server name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Server name must not exceed 50 characters")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.log_level == "DEBUG"

    @property
    def server_info(self) -> dict[str, str]:
        """Server information sent during the MCP initialization phase."""
        return {
            "name": self.server_name,
            "version": self.server_version,
            "transport": self.transport,
        }

    def get_database_url(self) -> str:
        """Get SQLAlchemy database URL."""
        return f"sqlite:///{self.database_path}"


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: LibraryConfig | None = None


def get_config() -> LibraryConfig:
    """Get or create the process-wide configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = LibraryConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
