"""Configuration management for tasktracker."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Authentication
    api_token: str | None = Field(default=None, description="Bearer token required for task mutations")

    # Storage Configuration
    store_backend: Literal["sqlite", "memory"] = Field(
        default="sqlite", description="Task store engine ('sqlite' or 'memory')"
    )
    sqlite_db_path: str = Field(default="tasktracker.db", description="SQLite database file path")

    # Problem Details
    problem_base_url: str = Field(
        default="https://api.tasktracker.com/problems",
        description="Base URL used to build problem detail 'type' identifiers",
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_CREATED: int = 201
    HTTP_NO_CONTENT: int = 204
    HTTP_BAD_REQUEST: int = 400
    HTTP_UNAUTHORIZED: int = 401
    HTTP_NOT_FOUND: int = 404
    HTTP_CONFLICT: int = 409
    HTTP_SERVER_ERROR: int = 500

    # Task Field Bounds
    TITLE_MIN_LENGTH: int = 1
    TITLE_MAX_LENGTH: int = 120
    PRIORITY_MIN: int = 1
    PRIORITY_MAX: int = 5
    DEFAULT_PRIORITY: int = 3

    # Pagination Defaults
    DEFAULT_PAGE: int = 1
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # SQLite INTEGER range; every bound integer must fit
    SQLITE_MAX_INTEGER: int = 2**63 - 1
    MAX_PAGE: int = SQLITE_MAX_INTEGER // MAX_PAGE_SIZE


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
