from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class AppConfig(BaseSettings):
    """Application configuration settings."""

    # Environment
    app_env: str = Field("development")
    app_debug: bool = Field(False)
    app_host: str = Field("0.0.0.0")
    app_port: int = Field(8501)

    # Logging
    log_level: str = Field("INFO")
    log_file: Optional[str] = Field(None)

    # Remote record store
    store_type: str = Field("in_memory")
    store_base_url: Optional[str] = Field(None)
    store_api_token: Optional[str] = Field(None)
    store_timeout: float = Field(10.0)

    # Exercise and export
    exercise_file: Optional[str] = Field(None)
    export_timezone: str = Field("UTC")
    export_directory: str = Field("exports")

    @field_validator("app_env")
    def validate_app_env(cls, value: str) -> str:
        if value not in ["development", "staging", "production"]:
            raise ValueError("APP_ENV must be development, staging, or production")
        return value

    @field_validator("store_type")
    def validate_store_type(cls, value: str) -> str:
        if value not in ["in_memory", "http"]:
            raise ValueError("STORE_TYPE must be in_memory or http")
        return value

    @field_validator("store_timeout")
    def validate_store_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("STORE_TIMEOUT must be positive")
        return value

    @field_validator("log_level")
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("LOG_LEVEL must be a valid Loguru level")
        return level

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache()
def get_app_config() -> AppConfig:
    """Return a cached application configuration instance."""

    return AppConfig()
