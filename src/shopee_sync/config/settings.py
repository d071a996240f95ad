"""Configuration management using Pydantic Settings.

Loads configuration from environment variables with .env file support.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration."""

    # Shopee API Configuration
    partner_id: Optional[int] = None
    partner_key: Optional[str] = None
    host_api: str = "https://partner.shopeemobile.com"
    redirect_uri: str = "http://localhost:8000/shopee/callback"
    request_timeout: float = 30.0

    # Token storage ("memory" lives as long as the process, "file" survives restarts)
    token_storage: str = "memory"
    token_file: str = "config/shopee_tokens.json"

    # Local product database and mapping files
    database_url: str = "sqlite:///./shopee_sync.db"
    mapping_dir: str = "config/sync"

    # Rate limiting between Shopee calls (milliseconds)
    rate_delay_ms: int = 500
    cron_delay_ms: int = 200

    # Scheduled sync
    scheduler_enabled: bool = False
    cron_shop_ids: List[int] = []
    cron_interval_minutes: int = 30
    cron_max_products: int = 20

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    environment: str = "development"

    # GlitchTip Error Monitoring
    glitchtip_dsn: Optional[str] = None

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Create a global settings instance
settings = Settings()
