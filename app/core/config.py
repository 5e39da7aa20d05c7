"""
Polarad Analytics Configuration
Load settings from environment variables
"""
from functools import lru_cache
from typing import Optional, List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ============================================
    # Application Settings
    # ============================================
    APP_NAME: str = "Polarad Analytics"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production

    # ============================================
    # Database Settings
    # ============================================
    POSTGRES_USER: str = "postgres"
    POSTGRES_PWD: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "polarad"
    DATABASE_URL: Optional[str] = None

    @property
    def database_url(self) -> str:
        """Get database URL, construct from parts if not provided"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PWD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def async_database_url(self) -> str:
        """Get async database URL for SQLAlchemy async"""
        url = self.database_url
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)

    # ============================================
    # CORS Settings
    # ============================================
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # ============================================
    # Currency Settings
    # ============================================
    # Fixed USD -> KRW rate, not date-sensitive
    USD_TO_KRW_RATE: float = 1500.0

    # ============================================
    # Fact Store Settings
    # ============================================
    # Rows per read round-trip; reads keep paging until a short page comes back
    FACT_STORE_PAGE_SIZE: int = 1000
    UPSERT_BATCH_SIZE: int = 50

    # ============================================
    # Meta (Facebook) Marketing API Settings
    # ============================================
    META_ACCESS_TOKEN: Optional[str] = None
    META_API_VERSION: str = "v22.0"
    META_API_BASE_URL: str = "https://graph.facebook.com"
    META_INSIGHTS_PAGE_LIMIT: int = 500
    META_PAGE_DELAY_SECONDS: float = 0.1
    META_CLIENT_DELAY_SECONDS: float = 2.0

    @property
    def meta_api_url(self) -> str:
        return f"{self.META_API_BASE_URL}/{self.META_API_VERSION}"

    # ============================================
    # Scheduler Settings
    # ============================================
    SCHEDULER_ENABLED: bool = False
    SCHEDULER_TIMEZONE: str = "Asia/Seoul"
    META_COLLECT_HOUR: int = 3  # daily collection, local time of SCHEDULER_TIMEZONE
    META_COLLECT_MINUTE: int = 0

    # ============================================
    # Narrative (AI summary) Settings
    # ============================================
    NARRATIVE_TOP_N: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
