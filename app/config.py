"""
Application configuration using Pydantic Settings
"""
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "AgendoAI API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./agendo_dev.db", description="Database connection string")
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_ECHO: bool = False

    # Redis
    REDIS_ENABLED: bool = True
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    REDIS_CACHE_DB: int = 3
    AVAILABILITY_CACHE_TTL_SECONDS: int = 60

    # JWT Configuration
    JWT_SECRET_KEY: str = Field(default="development-secret-key-please-change-in-production-min-32-characters", min_length=32, description="Secret key for JWT signing")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Security
    PASSWORD_MIN_LENGTH: int = 8
    BCRYPT_ROUNDS: int = 12
    VALIDATION_CODE_SALT: str = "agendoai_validation_salt_2024"
    VALIDATION_MAX_ATTEMPTS: int = 3

    # Scheduling
    TIMEZONE: str = "America/Sao_Paulo"
    SLOT_PAST_MARGIN_MINUTES: int = 15
    DEFAULT_SLOT_INTERVAL_MINUTES: int = 30

    # Marketplace
    SERVICE_FEE_CENTS: int = 175
    WITHDRAWAL_MIN_AMOUNT: float = 10.0
    WHATSAPP_COUNTRY_CODE: str = "55"

    # CORS Settings
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as list"""
        origins = [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
        # Handle wildcard for development
        if "*" in origins:
            return ["*"]
        return origins

    @property
    def redis_cache_url(self) -> str:
        """Get Redis URL for the availability cache database"""
        return self.REDIS_URL.rsplit("/", 1)[0] + f"/{self.REDIS_CACHE_DB}"


# Global settings instance
settings = Settings()
