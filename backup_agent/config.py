"""Application configuration management."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Agent settings loaded from environment variables."""

    # Schedules (6 fields: sec min hour day month weekday)
    backup_cron: str = "0 0 */23 * * *"
    clean_cron: str = "0 0 6 * * Sat"
    scheduler_timezone: str = "UTC"

    # Backup process
    backup_script: str = "./backup.sh"

    # Remote retention (days)
    retention_days: int = Field(4, gt=0)

    # Runtime
    heartbeat_seconds: int = Field(3600, gt=0)
    log_level: str = "info"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class UploadConfig(BaseSettings):
    """Object storage credentials and layout.

    Re-read from the environment on every upload or sweep so rotated
    credentials are picked up on the next tick without a restart.
    """

    bucket_name: str = Field(validation_alias="DIGITALOCEAN_BUCKET_NAME")
    region_name: str = Field(validation_alias="DIGITALOCEAN_REGION_NAME")
    endpoint_name: str = Field(validation_alias="DIGITALOCEAN_ENDPOINT_NAME")
    access_key: str = Field(validation_alias="DIGITALOCEAN_ACCESS_KEY")
    secret_key: str = Field(validation_alias="DIGITALOCEAN_SECRET_KEY")
    path_prefix: str = Field("Production", validation_alias="PATH_PREFIX_CONTENT")
    cdn_url: str = Field(validation_alias="DIGITALOCEAN_CDN")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        frozen = True
        populate_by_name = True

    @property
    def namespace(self) -> str:
        """Remote key prefix; only the literal ``staging`` selects staging."""
        if self.path_prefix == "staging":
            return "backup-database/staging"
        return "backup-database/production"

    def object_key(self, file_name: str) -> str:
        return f"{self.namespace}/{file_name}"


def load_upload_config() -> Optional[UploadConfig]:
    """Load upload configuration, or log and return None if incomplete."""
    try:
        return UploadConfig()
    except ValidationError as e:
        logger.error(f"Failed to load configuration: {e}")
        return None
