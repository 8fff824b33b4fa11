"""Configuration management using Pydantic Settings"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./satsledger.db"

    # External Services
    price_api_base: str = "https://api.upbit.com/v1"
    price_market: str = "KRW-BTC"

    # Service
    service_name: str = "satsledger"
    log_level: str = "INFO"

    # Key that unlocks the local stores; the deduction job refuses to run without it
    encryption_key: Optional[str] = None
    run_deductions_on_startup: bool = False

    # HTTP Client
    http_timeout_seconds: float = 5.0


settings = Settings()
