from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from userfeed.randomuser.constants import RandomUserConfig

POSTGRES_SCHEMES = ("postgres://", "postgresql://")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )
    ENVIRONMENT: str = "development"

    DATABASE_URL: str | None = None
    DATABASE_PUBLIC_URL: str | None = None
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30

    RANDOMUSER_API_URL: str = RandomUserConfig.API_BASE_URL
    UPSTREAM_TIMEOUT_SECONDS: float = 30.0
    DEFAULT_FETCH_COUNT: int = 10
    MAX_FETCH_COUNT: int = RandomUserConfig.MAX_RESULTS
    STORE_AVATAR: bool = True

    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: str = ""

    SLOW_INSERT_MS: float = 1000
    SLOW_QUERY_MS: float = 2000
    LARGE_RESULT_ROWS: int = 1000
    HIGH_USER_COUNT: int = 10000

    LOG_LEVEL: str = "INFO"
    RATE_LIMIT_API: str = "60/minute"

    @field_validator("DATABASE_URL", "DATABASE_PUBLIC_URL", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        return v

    @property
    def database_url(self) -> str:
        if self.ENVIRONMENT == "production":
            url = self.DATABASE_URL
        else:
            url = self.DATABASE_PUBLIC_URL or self.DATABASE_URL
        return normalize_database_url(url)

    @property
    def cors_origins(self) -> list[str]:
        origins = [self.FRONTEND_URL]
        if self.CORS_ORIGINS:
            origins.extend([o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()])
        return list(set(origins))

    @model_validator(mode="after")
    def validate_database_settings(self):
        if self.ENVIRONMENT == "production" and not self.DATABASE_URL:
            raise ValueError("DATABASE_URL must be set in production")
        if not (self.DATABASE_URL or self.DATABASE_PUBLIC_URL):
            raise ValueError("DATABASE_URL or DATABASE_PUBLIC_URL must be set")
        if self.DEFAULT_FETCH_COUNT < 1:
            raise ValueError("DEFAULT_FETCH_COUNT must be positive")
        if self.MAX_FETCH_COUNT < self.DEFAULT_FETCH_COUNT:
            raise ValueError("MAX_FETCH_COUNT must not be lower than DEFAULT_FETCH_COUNT")
        return self


def normalize_database_url(url: str | None) -> str:
    """Point bare PostgreSQL URLs (as handed out by hosting providers) at psycopg 3."""
    if not url:
        raise ValueError("No database URL configured")
    for scheme in POSTGRES_SCHEMES:
        if url.startswith(scheme):
            return "postgresql+psycopg://" + url[len(scheme):]
    return url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
