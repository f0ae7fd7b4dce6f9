from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Exporter service configuration."""

    # Taipower feed
    taipower_data_url: str = Field(
        default="https://www.taipower.com.tw/d006/loadGraph/loadGraph/data/genloadareaperc.csv"
    )
    fetch_timeout_seconds: float = Field(default=5.0, gt=0)

    # HTTP listener
    listen_address: str = Field(default=":8080")
    telemetry_path: str = Field(default="/metrics")

    # Service
    shutdown_timeout_seconds: float = Field(default=15.0, ge=0)  # Wait for in-flight scrapes
    log_level: LogLevel = Field(default="INFO")

    model_config = {"env_file": "settings.env", "env_file_encoding": "utf-8"}

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


settings = Settings()
