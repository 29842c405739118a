"""Application configuration."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "VAMPYR_Player_Link"
    ENV: str = "development"
    DEBUG: bool = True
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Database
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # Redis (rate limiting only; the linking core never depends on it)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Proxy / client IP handling
    # Only trust X-Forwarded-* headers when running behind a trusted reverse proxy (e.g. nginx).
    TRUST_PROXY_HEADERS: bool = False

    # JWT (tokens are issued by the account service; we only verify them)
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_LEEWAY_SECONDS: int = 30  # clock skew tolerance for exp validation

    # Public URL embedded in link callbacks shown by the game client.
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Player link codes
    LINK_CODE_TTL_SECONDS: int = 300
    LINK_CODE_BYTES: int = 4  # rendered as 2 * LINK_CODE_BYTES uppercase hex chars
    LINK_CODE_ISSUE_ATTEMPTS: int = 3

    # Link resolution is guessable within the TTL window without a transport-level cap.
    LINK_RESOLVE_IP_LIMIT_PER_MINUTE: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
