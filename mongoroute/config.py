"""Settings read from ``MONGOROUTE_*`` environment variables or a ``.env`` file."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from mongoroute.core.i18n import Locale


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MONGOROUTE_", env_file=".env", extra="ignore")

    # Database
    mongo_url: str = "mongodb://localhost:27017"
    mongo_database: str = "mongoroute"

    # API
    api_prefix: str = "/api"
    default_page_size: int = 20
    locale: Locale = Locale.EN

    # Empty delete bodies and empty update conditions hit the whole collection
    allow_unfiltered_mutation: bool = True
    # False keeps every response on 200, errors included
    error_status_codes: bool = False

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
