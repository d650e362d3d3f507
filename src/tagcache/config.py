from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TAGCACHE_", env_file=".env", extra="ignore", populate_by_name=True
    )

    app_name: str = "tagcache"

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    # Optional replica for reads that tolerate lag; exists() never uses it
    read_redis_url: str | None = Field(default=None, validation_alias="READ_REDIS_URL")

    # Backend behaviour
    track_all_ids: bool = False
    automatic_cleaning_factor: int = Field(default=0, ge=0)
    # Seconds re-applied as TTL after a successful load; 0 disables
    read_refresh_lifetime: int = Field(default=0, ge=0)

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"
    log_json: bool = True


settings = Settings()
