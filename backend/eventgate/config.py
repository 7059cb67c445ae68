"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    ENVIRONMENT: str = "development"
    VERSION: str = "0.1.0"

    DATABASE_URL: str = "sqlite:///./rsvps.db"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Token signing. An empty secret is a fatal startup condition.
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN: str = "1h"
    JWT_ISSUER: str = "events-site"
    JWT_AUDIENCE: str = "events-site-client"

    # Credentials
    BCRYPT_ROUNDS: int = 12
    FAILED_LOGIN_DELAY_SECONDS: float = 1.0

    # JSON list of events; the built-in catalog is used when unset
    EVENT_CATALOG_PATH: str = ""

    # RSVPs are public unless this is switched on
    RSVP_REQUIRE_TOKEN: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"
