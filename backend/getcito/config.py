"""
Configuration management for GetCito AI Monitor
Environment-based settings with secure defaults
"""

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "getcito"
    APP_ENV: str = "development"  # development, staging, production
    DEBUG: bool = False
    API_VERSION: str = "v1"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Database
    DATABASE_URL: str  # Required
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    ANALYTICS_CACHE_ENABLED: bool = True
    ANALYTICS_CACHE_TTL: int = 300  # 5 minutes

    # ID token verification
    JWT_SECRET_KEY: str  # Required
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    LIFETIME_REFRESH_INTERVAL: int = 3600  # seconds

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Domains hidden from citation domain views (search engine itself)
    EXCLUDED_CITATION_DOMAINS: str = "google.com"

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def excluded_citation_domains(self) -> List[str]:
        return [
            domain.strip().lower()
            for domain in self.EXCLUDED_CITATION_DOMAINS.split(",")
            if domain.strip()
        ]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings loader"""
    return Settings()


# Fixed market thresholds (percent). Not configurable.
COMPETITIVE_INTENSITY_THRESHOLDS = {
    "low": 30,      # <= 30
    "medium": 60,   # <= 60, above is "high"
}

MARKET_POSITION_THRESHOLDS = {
    "leader": 20,      # < 20
    "challenger": 50,  # < 50, otherwise "follower"
}

# Visibility delta (percentage points) needed before a trend is reported
TREND_DELTA_THRESHOLD = 1.0

# Fallback label when no provider / competitor stands out
NONE_LABEL = "none"
