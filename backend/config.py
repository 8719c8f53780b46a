# backend/config.py
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"


class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    RESET_TOKEN_EXPIRE_MINUTES: int = 10
    DATABASE_URL: str = "sqlite:///./shop.db"

    # Public frontend URL used to build password reset links
    FRONTEND_URL: str = "http://localhost:3000"

    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    # .env also carries values for scripts (ADMIN_EMAIL, ...)
    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

    @property
    def database_url(self) -> str:
        # SQLAlchemy needs postgresql://, hosting platforms often hand out postgres://
        url = self.DATABASE_URL
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        return url

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
