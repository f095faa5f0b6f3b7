import logging
from enum import StrEnum
from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bullboard import __version__
from bullboard.models import ConnectionParams, EngineVariant

logger = logging.getLogger(__name__)


class Environments(StrEnum):
    DEV = "dev"
    PROD = "prod"

    def is_production(self) -> bool:
        return self == self.PROD

    def is_development(self) -> bool:
        return self == self.DEV


class Settings(BaseSettings):
    """Board configuration.

    Variable names match the Node bull-board images (``REDIS_HOST``,
    ``BULL_PREFIX``, ...) so existing deployments keep working.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None
    redis_use_tls: bool = False
    redis_connect_timeout: float = 5.0

    # Queue discovery
    bull_prefix: str = "bull"
    bull_version: EngineVariant = EngineVariant.BULL
    scan_count: int = 1000

    # HTTP
    env: Environments = Environments.DEV
    host: str = "0.0.0.0"
    port: int = 3000
    home_page: str = "/"
    proxy_path: str = ""
    debug: bool = False
    log_format: Literal["text", "json"] = "text"

    version: str = __version__

    @field_validator("env", mode="before")
    @classmethod
    def _normalize_env_aliases(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().lower()
            aliases = {
                "development": Environments.DEV.value,
                "production": Environments.PROD.value,
            }
            return aliases.get(normalized, normalized)
        return value

    @field_validator("bull_version", mode="before")
    @classmethod
    def _normalize_bull_version(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("home_page", mode="before")
    @classmethod
    def _normalize_home_page(cls, value: object) -> object:
        """Always a leading slash and never a trailing one (except ``/``)."""
        if isinstance(value, str):
            stripped = value.strip().strip("/")
            return f"/{stripped}" if stripped else "/"
        return value

    @property
    def is_production(self) -> bool:
        return self.env.is_production()

    @property
    def is_development(self) -> bool:
        return self.env.is_development()

    @property
    def route_prefix(self) -> str:
        """Router prefix for the board (empty when mounted at ``/``)."""
        return "" if self.home_page == "/" else self.home_page

    @property
    def connection_params(self) -> ConnectionParams:
        return ConnectionParams(
            host=self.redis_host,
            port=self.redis_port,
            db=self.redis_db,
            password=self.redis_password or None,
            tls=self.redis_use_tls,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
