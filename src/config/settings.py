"""Configuration and settings management using pydantic-settings."""
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://www.getdiro.com"


class Settings(BaseSettings):
    """Node pack settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="DIRO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=True, description="Emit logs as JSON lines")

    # HTTP settings
    http_timeout_s: float = Field(
        default=30,
        description="Timeout in seconds applied to every Diro API request",
    )

    # Diro API credentials (used by the CLI; nodes receive credentials from the host)
    api_key: SecretStr | None = Field(
        default=None,
        description="Diro API key (starts with 'diro_')",
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Diro API base URL, change only for self-hosted instances",
    )

    @field_validator("http_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that the HTTP timeout is positive."""
        if v <= 0:
            raise ValueError("http_timeout_s must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
