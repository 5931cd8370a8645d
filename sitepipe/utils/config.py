"""
Configuration management using Pydantic Settings
Loads and validates environment variables from .env file
"""

from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Platform tokens here are only used by the CLI; the HTTP surface
    reads per-user tokens from the credential store.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # GitHub API Configuration
    github_api_base_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL"
    )
    github_token: str = Field(
        default="",
        description="GitHub personal access token (CLI only)"
    )
    github_deploy_owner: str = Field(
        default="",
        description="GitHub user or organisation that owns deploy repositories"
    )

    # Render API Configuration
    render_api_base_url: str = Field(
        default="https://api.render.com/v1",
        description="Render REST API base URL"
    )
    render_api_key: str = Field(
        default="",
        description="Render API key (CLI only)"
    )

    # Pipeline Configuration
    repo_name_prefix: str = Field(
        default="lp",
        description="Prefix for generated repository names"
    )
    publish_path: str = Field(
        default="./public",
        description="Directory the static host publishes from"
    )
    content_path: str = Field(
        default="public/index.html",
        description="Repository path the generated content is committed to"
    )
    deploy_branch: str = Field(
        default="main",
        description="Branch the static host builds from"
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for every platform HTTP call"
    )
    error_message_max_length: int = Field(
        default=500,
        gt=0,
        description="Maximum stored length of a deployment error message"
    )

    # Rate Limiting
    rate_limit_window_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Sliding window length for deployment requests"
    )
    rate_limit_max_requests: int = Field(
        default=5,
        gt=0,
        description="Deployments admitted per identity per window"
    )

    # Storage
    credential_encryption_key: str = Field(
        default="",
        description="Fernet key for stored platform tokens (generated if empty)"
    )
    deployment_store_path: str = Field(
        default="deployments.json",
        description="JSON file used by the CLI deployment store"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    @property
    def github_auth_configured(self) -> bool:
        return bool(self.github_token and self.github_deploy_owner)

    @property
    def render_auth_configured(self) -> bool:
        return bool(self.render_api_key)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("github_api_base_url", "render_api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("repo_name_prefix")
    @classmethod
    def validate_repo_prefix(cls, v: str) -> str:
        v = v.strip().lower()
        if not v or not all(c.isalnum() or c == "-" for c in v):
            raise ValueError("repo_name_prefix may only contain letters, digits and hyphens")
        return v


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get or create the settings singleton instance.
    Loads configuration from the environment and, if present, the .env file.

    Returns:
        Settings instance

    Raises:
        ValidationError: If environment variables are invalid
    """
    global _settings

    if _settings is None:
        env_file = Path(".env")
        if env_file.exists():
            _settings = Settings()
        else:
            _settings = Settings(_env_file=None)

    return _settings


def reset_settings():
    """
    Reset the settings singleton (useful for testing)
    """
    global _settings
    _settings = None
