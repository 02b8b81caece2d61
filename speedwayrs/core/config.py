from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any


class Settings(BaseSettings):
    """Application settings"""

    # Target site
    BASE_SITE: str = "https://sportowefakty.wp.pl"
    SCHEDULE_PATH: str = "/zuzel/pge-ekstraliga/terminarz"

    # Scraper settings
    SCRAPER_CONCURRENCY: int = 2
    SCRAPER_TICK_INTERVAL_MS: int = 100  # minimum gap between request starts
    SCRAPER_CONNECT_RETRY_DELAY: float = 3.0  # seconds, retried forever
    SCRAPER_TIMEOUT: float = 30.0
    SCRAPER_USER_AGENT: str = "SpeedwayrsBot/1.0"
    SCRAPER_OUTPUT_FILE_NAME: str = "scraping_result.json"

    # Loader settings
    LOADER_POSTGRES: str = ""
    LOADER_WORKERS: int = 3
    LOADER_POOL_SIZE: int = 5
    LOADER_CREATE_SCHEMA: bool = True

    # Application
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    @field_validator("LOADER_POSTGRES", mode="before")
    @classmethod
    def use_async_driver(cls, v: Any) -> Any:
        # Plain postgres URLs are accepted and routed through asyncpg
        if isinstance(v, str):
            for prefix in ("postgres://", "postgresql://"):
                if v.startswith(prefix):
                    return "postgresql+asyncpg://" + v[len(prefix):]
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.upper()
            if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
                return "INFO"
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


settings = Settings()
