"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "ojt-monitoring-system"

    # JWT Auth
    jwt_secret_key: str = "ojt-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7            # 7 days
    jwt_refresh_expire_minutes: int = 60 * 24 * 30   # 30 days

    # One-time codes (password reset, email change)
    otp_expire_minutes: int = 10

    # SMTP (email disabled when user/password are empty)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    email_from_name: str = "OJT Monitoring System"
    frontend_url: str = "http://localhost:5173"

    # Object storage (S3 / MinIO)
    storage_bucket: str = "ojt-assets"
    storage_endpoint_url: str = ""
    storage_region: str = "us-east-1"
    storage_access_key: str = ""
    storage_secret_key: str = ""
    storage_public_url: str = ""
    storage_prefix: str = "ojt-assets"

    # Daily time record schedule
    dtr_timezone: str = "Asia/Manila"
    dtr_start_hour: int = 8
    dtr_start_minute: int = 0
    dtr_grace_minutes: int = 15
    dtr_regular_hours: float = 8.0

    # App
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    log_json: bool = False
    debug: bool = True

    @property
    def smtp_configured(self) -> bool:
        """True when SMTP credentials are present"""
        return bool(self.smtp_user and self.smtp_password)

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
