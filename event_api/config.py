"""Environment-driven settings for the event service.

Each section is a pydantic-settings model read from its own env prefix.
Import ``get_settings()`` rather than building sections directly so the
whole process shares one snapshot:

    from event_api.config import get_settings
    pool_size = get_settings().postgres.pool_max_size
"""

from functools import lru_cache

from psycopg.conninfo import make_conninfo
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_flag(v):
    if isinstance(v, str):
        return v.lower() in ("1", "true", "yes")
    return bool(v)


class PostgresSettings(BaseSettings):
    """Document store connection and pool sizing."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", extra="ignore", populate_by_name=True)

    host: str = "postgres"
    port: int = 5432
    user: str = "devuser"
    password: str = ""
    database: str = Field(default="events", validation_alias="POSTGRES_DB")
    sslmode: str = "disable"

    pool_min_size: int = 2
    pool_max_size: int = 10
    pool_timeout: int = Field(default=30, description="Seconds to wait for a free connection")
    pool_max_lifetime: int = 1800
    pool_max_idle: int = 300
    pool_reconnect_timeout: int = 300

    def get_dsn(self) -> str:
        return make_conninfo(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            dbname=self.database,
            sslmode=self.sslmode,
        )


class RedisSettings(BaseSettings):
    """Redis backing the change-notification bus."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    host: str = "redis"
    port: int = 6379
    password: str = ""
    max_connections: int = 50
    pool_timeout_sec: float = 5.0
    health_check_interval: int = 30
    retry_on_timeout: bool = True
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0


class CorsSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(default="http://localhost:3000", validation_alias="CORS_ORIGINS")
    origins_regex: str = Field(default="", validation_alias="CORS_ORIGINS_REGEX")

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        # Browsers reject credentials with a wildcard origin.
        return self.origins != ["*"] and not self.origins_regex


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    level: str = Field(default="INFO", alias="log_level")

    @field_validator("level", mode="before")
    @classmethod
    def upper(cls, v):
        return str(v).upper()


class DebugSettings(BaseSettings):
    """``REQUEST_DEBUG`` turns on per-request logging."""

    model_config = SettingsConfigDict(extra="ignore")

    request: bool = Field(default=False, alias="request_debug")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_flag(v)


class FeatureSettings(BaseSettings):
    """``ENABLE_DATABASE`` / ``ENABLE_NOTIFICATIONS`` switches."""

    model_config = SettingsConfigDict(extra="ignore")

    database: bool = Field(default=True, alias="enable_database")
    notifications: bool = Field(default=True, alias="enable_notifications")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        return _parse_flag(v)


class Settings:
    """All sections, each loaded independently with its own prefix."""

    def __init__(self) -> None:
        self.postgres = PostgresSettings()
        self.redis = RedisSettings()
        self.cors = CorsSettings()
        self.logging = LoggingSettings()
        self.debug = DebugSettings()
        self.features = FeatureSettings()


@lru_cache
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
