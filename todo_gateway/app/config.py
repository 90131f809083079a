from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # SQLAlchemy URL; postgresql:// URLs need the "postgres" extra installed
    database_url: str = Field("sqlite:///./todo.db", validation_alias="DATABASE_URL")

    # Standalone server only
    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(3001, validation_alias="PORT")

    # Seconds between reconnect attempts while the database is unreachable
    db_retry_interval: float = Field(10.0, validation_alias="DB_RETRY_INTERVAL")

    cors_allow_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias="CORS_ALLOW_ORIGINS",
    )

    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
