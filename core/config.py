"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for schemaauth happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. mongodb_uri -> MONGODB_URI). Type coercion and validation are built in.

  @model_validator(mode="after"): Cross-field checks once every field is
      resolved. Rejects a schema service URL that is not http(s) and warns
      when no backing MongoDB connection is configured (commits will fail
      validation with missing_mongo_connection until one is).

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, cache/, registry/, or schemas/.
"""

import logging
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("schemaauth.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False

    # ------------------------------------------------------------------
    # Backing database connection. Both must be set for a commit to pass
    # validation; the engine only checks presence, never connects.
    # ------------------------------------------------------------------

    mongodb_uri: str = ""
    database_name: str = ""

    # ------------------------------------------------------------------
    # Schema persistence service (optional -- empty URL means commits
    # return the snapshot without storing it anywhere)
    # ------------------------------------------------------------------

    schema_service_url: str = ""
    schema_service_api_key: str = ""
    schema_service_timeout: float = Field(default=10.0, gt=0)

    # ------------------------------------------------------------------
    # HTTP API
    # ------------------------------------------------------------------

    session_ttl_seconds: int = Field(default=3600, ge=60)
    session_rate_limit: str = "120/minute"
    commit_rate_limit: str = "30/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    @property
    def has_mongo_connection(self) -> bool:
        return bool(self.mongodb_uri and self.database_name)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_service_settings(self) -> "Settings":
        if self.schema_service_url and not self.schema_service_url.startswith(("http://", "https://")):
            raise ValueError("SCHEMA_SERVICE_URL must start with http:// or https://")
        if not self.has_mongo_connection:
            logger.warning(
                "WARNING: MONGODB_URI and DATABASE_NAME are not both set. "
                "Auth systems cannot be committed until a connection is configured."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
