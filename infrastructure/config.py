"""
Environment configuration for the hotel booking service.
Uses Pydantic's settings management so every value can be overridden with a
HOTEL_-prefixed environment variable or a .env file.
"""
import secrets
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_prefix="HOTEL_",
        env_file=".env",
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Hotel Booking API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "standard"  # standard | json

    # Security
    SECRET_KEY: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    PASSWORD_BCRYPT_ROUNDS: int = 12

    # Booking core
    DEFAULT_PROPERTY_ID: str = "MAIN"
    OCCUPANCY_WINDOW_DAYS: int = 30
    MAX_REPORT_DAYS: int = 366
    ROOM_LOCK_TIMEOUT_SECONDS: float = 10.0
    # Plain availability check also requires room.status == available
    STRICT_ROOM_STATUS_CHECK: bool = True

    # Demo accounts and rooms loaded at startup
    SEED_DEMO_DATA: bool = True

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings, read once"""
    return Settings()
