"""
Configuration management for Price Collector.
Handles environment variables and application settings.
"""
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Server settings
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")  # json or console

    # Request settings (page fetches and remote API calls)
    REQUEST_TIMEOUT: int = int(os.getenv("REQUEST_TIMEOUT", "30"))

    # Local key-value store; unset keeps everything in memory
    STORAGE_PATH: Optional[str] = os.getenv("STORAGE_PATH")

    # Remote product API (optional)
    # Loaded from environment variables, NEVER hardcoded
    API_ENDPOINT: Optional[str] = os.getenv("API_ENDPOINT")
    API_KEY: Optional[str] = os.getenv("API_KEY")

    # Extraction tuning
    BACKFILL_WITH_GENERIC: bool = os.getenv("BACKFILL_WITH_GENERIC", "true").lower() == "true"
    IMAGE_PLACEHOLDER_SIZE: int = int(os.getenv("IMAGE_PLACEHOLDER_SIZE", "1200"))
    PRICE_SCAN_LIMIT: int = int(os.getenv("PRICE_SCAN_LIMIT", "50"))

    @classmethod
    def is_api_configured(cls) -> bool:
        """Check if the remote product API endpoint and key are both set."""
        return bool(cls.API_ENDPOINT and cls.API_KEY)


config = Config()
