"""Application settings using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Strapi content store
    strapi_url: str | None = Field(default=None, alias="STRAPI_URL")
    strapi_token: str | None = Field(default=None, alias="STRAPI_TOKEN")
    enable_strapi_upload: bool = Field(default=False, alias="ENABLE_STRAPI_UPLOAD")

    # Geoapify geocoding
    geoapify_api_key: str | None = Field(default=None, alias="GEOAPIFY_API_KEY")
    geocode_timeout: float = Field(default=5.0, alias="GEOCODE_TIMEOUT")

    # Crawler settings
    crawl_user_agent: str | None = Field(default=None, alias="CRAWL_USER_AGENT")
    crawl_max_requests: int = Field(default=100, alias="CRAWL_MAX_REQUESTS")
    crawl_max_concurrency: int = Field(default=2, alias="CRAWL_MAX_CONCURRENCY")
    crawl_max_retries: int = Field(default=3, alias="CRAWL_MAX_RETRIES")
    crawl_request_timeout: float = Field(default=30.0, alias="CRAWL_REQUEST_TIMEOUT")

    # Output
    storage_dir: str = Field(default="storage", alias="STORAGE_DIR")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(default="console", alias="LOG_FORMAT")
    log_file: str | None = Field(default=None, alias="LOG_FILE")

    @property
    def upload_enabled(self) -> bool:
        """Upload runs only when switched on and both remote services are configured."""
        return bool(self.enable_strapi_upload and self.strapi_url and self.geoapify_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
