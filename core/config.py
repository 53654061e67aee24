from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.enums import Environment


class Settings(BaseSettings):
    # App
    app_name: str = "Middleware Pipeline"
    app_version: str = "1.0.0"
    environment: str = Environment.DEVELOPMENT.value
    debug: bool = False
    log_level: Optional[str] = None  # Falls back to DEBUG/INFO based on `debug`

    # Transport security
    https_redirect: bool = False
    hsts_max_age: int = 30 * 24 * 60 * 60  # 30 days
    hsts_include_subdomains: bool = False

    # Static files (mounted at /static when the directory exists)
    static_dir: str = "static"

    # Pipeline steps
    custom_header_name: str = "Custom-Header1"
    custom_header_value: str = "Jacob-Perkins"
    context_key: str = "jacob"
    context_value: str = "perkins"
    echo_header_name: str = "Jacob-Header"

    # Request correlation
    request_id_header_name: str = "X-Correlation-ID"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, value: str) -> str:
        """Environment names are case-insensitive and must be a known Environment"""
        value = value.strip().lower()
        if value not in Environment.values():
            raise ValueError(
                f"Invalid environment '{value}'. "
                f"Must be one of: {', '.join(Environment.values())}"
            )
        return value

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT.value

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=False
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
