"""Application configuration."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Open Broker Remover"
    debug: bool = False
    api_prefix: str = "/api"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/open-broker-remover.db"
    seed_brokers: bool = True

    # Redis (celery broker/backend)
    redis_url: str = "redis://localhost:6379/0"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # text, json

    # Automation
    automation_headless: bool = True
    automation_timeout_ms: int = 30000
    automation_user_agent: str = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
    automation_delay_scale: float = 1.0  # 0 disables simulated latency
    automation_extra_domains: list[str] = []

    # Request processing
    orchestrator_concurrency: int = 1
    match_limit: int = 15
    strict_status_transitions: bool = False

    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
