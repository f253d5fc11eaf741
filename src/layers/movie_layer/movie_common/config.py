"""
Runtime configuration loaded from the Lambda environment.

Each field reads the upper-cased environment variable of the same name
(`table_name` from TABLE_NAME, `allowed_origins` from ALLOWED_ORIGINS).
List settings are comma separated. An unparsable value fails validation
with the offending setting named, instead of surfacing later as a bare
conversion error.
"""

import functools
from typing import Annotated, List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from the Lambda environment."""

    table_name: str = "MovieTable"
    owner_index_name: str = "createdBy-index"
    admin_group: str = "Admins"

    default_list_limit: int = Field(default=10, gt=0)
    max_list_limit: int = Field(default=100, gt=0)
    require_publishing_year: bool = False

    poster_bucket_name: str = "movie-posters"
    poster_key_prefix: str = "posters"
    upload_url_expires_in: int = Field(default=300, gt=0)
    allowed_poster_content_types: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp"]
    )
    # Empty means no cross-origin caller is trusted.
    allowed_origins: Annotated[List[str], NoDecode] = Field(default_factory=list)

    store_max_attempts: int = Field(default=3, ge=1)
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    region_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("region_name", "AWS_REGION")
    )

    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("allowed_poster_content_types", "allowed_origins", mode="before")
    @classmethod
    def split_csv(cls, v):
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.strip().upper()


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
