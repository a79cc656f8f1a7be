"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file without clobbering variables set by the caller
load_dotenv(override=False)


class Settings(BaseSettings):
    """Deploy settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EB_DEPLOY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Folders
    config_dir: str = "config"
    apps_dir: str = "apps"
    git_root: str = "."

    # Bundle
    template_name: str = "Dockerrun.aws.json"
    tag_placeholder: str = "{{TAG}}"

    # Source control
    git_executable: str = "git"

    # Application version readiness
    readiness_strategy: Literal["fixed", "poll"] = "fixed"
    settle_seconds: float = Field(default=10.0, ge=0)
    poll_interval_seconds: float = Field(default=5.0, gt=0)
    poll_timeout_seconds: float = Field(default=300.0, gt=0)

    # Pre-deploy hook, as "package.module:function"
    pre_hook: str | None = None

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"
    log_file: str | None = None

    @property
    def polls_for_readiness(self) -> bool:
        """Check if version readiness is polled instead of waited out."""
        return self.readiness_strategy == "poll"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
