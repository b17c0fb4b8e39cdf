from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App configuration (env-friendly).

    Tip: create a .env file and override settings there.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Geocode Cache Proxy"
    version: str = "0.1.0"

    nominatim_base_url: AnyHttpUrl = "https://nominatim.openstreetmap.org/search"

    # Nominatim's usage policy expects a proper User-Agent.
    user_agent: str = "geocode-cache-proxy/0.1.0"

    http_timeout_s: float = 20.0

    # REDIS_URL unset => in-process store. With LOCAL=true it is a bare host name.
    redis_url: Optional[str] = None
    local: bool = False

    cache_ttl_s: float = 15.0
    cache_max_size: int = 512

    # Off: a failed write-back fails the request even if upstream succeeded.
    cache_write_best_effort: bool = False
    single_flight: bool = False

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080


@lru_cache
def get_settings() -> Settings:
    return Settings()
