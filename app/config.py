"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with validation.
"""
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", description="Environment: development, staging, production")
    debug: bool = Field(default=False, description="Debug mode")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./matchchat.db",
        description="Async database connection URL"
    )
    database_pool_size: int = Field(default=20, description="Connection pool size (ignored for SQLite)")

    # Redis
    redis_url: str = Field(default="", description="Redis connection URL (empty disables Redis)")
    redis_password: str = Field(default="", description="Redis password")

    # Security
    jwt_secret: str = Field(
        default="development-only-secret-change-me-0123456789",
        min_length=32,
        description="JWT secret key (min 32 chars)"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(default=60, description="Access token lifetime in minutes")
    refresh_token_expire_days: int = Field(default=30, description="Refresh token lifetime in days")
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, description="bcrypt cost factor")

    # CORS
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # Photos
    max_photo_bytes: int = Field(default=8 * 1024 * 1024, description="Max photo upload size in bytes (8 MiB)")
    max_photos_per_user: int = Field(default=6, ge=1, description="Maximum photos per user")
    photo_storage: str = Field(default="local", description="Photo storage backend: local or oss")
    photo_local_dir: str = Field(default="./media/photos", description="Directory for locally stored photos")
    photo_base_url: str = Field(default="/media/photos", description="Public URL prefix for local photos")

    # Alibaba Cloud OSS (photo_storage=oss)
    oss_access_key_id: str = Field(default="", description="Alibaba Cloud OSS Access Key ID")
    oss_access_key_secret: str = Field(default="", description="Alibaba Cloud OSS Access Key Secret")
    oss_bucket_name: str = Field(default="", description="OSS bucket name")
    oss_endpoint: str = Field(default="oss-cn-hangzhou.aliyuncs.com", description="OSS endpoint")

    # Matching
    discover_default_limit: int = Field(default=10, description="Default discovery page size")
    discover_max_limit: int = Field(default=50, description="Discovery page size ceiling (larger values are clamped)")

    # Chat
    message_page_default: int = Field(default=50, description="Default message page size")
    message_page_max: int = Field(default=100, description="Maximum message page size")

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable per-IP rate limits")

    # WebSocket
    ws_path: str = Field(default="ws", description="Socket.IO mount path")
    ws_queue_size: int = Field(default=64, ge=1, description="Outbound events buffered per session")
    ws_heartbeat_interval: int = Field(default=30, description="WebSocket heartbeat interval in seconds")
    typing_ttl_seconds: float = Field(default=6.0, description="Typing indicator expiry in seconds")

    # Moderation
    temporary_ban_days: int = Field(default=7, ge=1, description="Default temporary ban length in days")
    ban_sweep_interval_seconds: int = Field(default=300, ge=1, description="Interval of the ban expiry sweep")

    # Cache TTL (in seconds)
    cache_presence_ttl: int = Field(default=300, description="Presence cache TTL in seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    def get_allowed_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


# Global settings instance
settings = Settings()
