"""
Application configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Event Manager API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # HTTP server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Database connection parts
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_NAME: str = "event_manager"
    # Full URL override, e.g. sqlite+aiosqlite:///./local.db
    DATABASE_URL: Optional[str] = None

    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_STATEMENT_TIMEOUT_MS: int = 10000
    # Create tables on startup instead of running Alembic (local SQLite runs)
    AUTO_CREATE_TABLES: bool = False

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_CACHE_TTL: int = 60
    REDIS_ENABLED: bool = True

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }

    def _postgres_url(self, drivername: str) -> str:
        return URL.create(
            drivername,
            username=self.DATABASE_USER,
            password=self.DATABASE_PASSWORD,
            host=self.DATABASE_HOST,
            port=self.DATABASE_PORT,
            database=self.DATABASE_NAME,
        ).render_as_string(hide_password=False)

    @property
    def database_url(self) -> str:
        """Async URL used by the application engine."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return self._postgres_url("postgresql+asyncpg")

    @property
    def database_url_sync(self) -> str:
        """Blocking-driver URL for Alembic migrations."""
        if self.DATABASE_URL:
            return (
                self.DATABASE_URL
                .replace("+asyncpg", "+psycopg2")
                .replace("+aiosqlite", "")
            )
        return self._postgres_url("postgresql+psycopg2")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
