"""Application settings for Dreamlight.

Values come from the environment (or a local ``.env`` file) through
pydantic-settings. Use ``get_settings()`` rather than instantiating
``Settings`` directly so every module shares one cached instance.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings."""

    # Database
    database_url: str = Field(default="sqlite:///./dreamlight.db", alias="DATABASE_URL")
    echo_sql: bool = Field(default=False, alias="ECHO_SQL")

    # Auth
    jwt_secret: str = Field(default="dreamlight-dev-secret-change-me-before-deploying", alias="JWT_SECRET")
    jwt_expire: str = Field(default="7d", alias="JWT_EXPIRE")

    # Uploads
    upload_path: str = Field(default="./uploads", alias="UPLOAD_PATH")
    max_file_size: int = Field(default=52428800, alias="MAX_FILE_SIZE")  # 50MB

    # HTTP
    cors_origin: str = Field(default="http://localhost:3000", alias="CORS_ORIGIN")
    rate_limit_max: int = Field(default=100, alias="RATE_LIMIT_MAX")  # 0 disables
    rate_limit_window: int = Field(default=900, alias="RATE_LIMIT_WINDOW")  # seconds

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    env: str = Field(default="development", alias="ENV")  # development|production|test

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
