"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic import RedisDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True

    # API
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Frame Opt-In API"
    version: str = "0.1.0"

    # Public base URL the frame host and subscribers reach (no trailing slash)
    public_url: str = "http://localhost:8000"
    frame_image_url: str = "http://localhost:8000/static/frame.png"

    # Redis (subscription store)
    redis_url: RedisDsn = RedisDsn("redis://localhost:6379/0")

    # Social directory (fid -> verified addresses)
    directory_api_url: str = "https://api.neynar.com/v2/farcaster"
    directory_api_key: str = ""

    # Messaging network gateway
    xmtp_gateway_url: str = "http://localhost:5555"
    xmtp_api_key: str = ""
    xmtp_env: Literal["dev", "production", "local"] = "production"
    xmtp_sender_address: str = ""

    # Security
    secret_key: str = "CHANGE-ME-IN-PRODUCTION-use-openssl-rand-hex-32"
    consent_token_ttl_days: int = 30

    # Subscription flow
    subscribe_claim_ttl_seconds: int = 30
    http_timeout_seconds: float = 15.0
    frame_rate_limit: str = "60/minute"

    # Error reporting
    sentry_dsn: str = ""

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "https://warpcast.com",
    ]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def allowed_origins(self) -> list[str]:
        """Origins allowed to call the API with credentials."""
        return [origin.rstrip("/") for origin in self.cors_origins]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def api_base_url(self) -> str:
        """Absolute URL of the versioned API root."""
        return f"{self.public_url.rstrip('/')}{self.api_v1_prefix}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
