"""
Configuration loader for the career metrics engine.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    Centralized configuration for the metrics engine and its data access layer.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== MongoDB =====
    MONGODB_URI: str = os.getenv("MONGODB_URI", "")
    CAREER_DB_NAME: str = os.getenv("CAREER_DB_NAME", "craftd")

    # ===== Dashboard =====
    # Number of career events shown in the "recent events" panel
    RECENT_EVENTS_LIMIT: int = int(os.getenv("RECENT_EVENTS_LIMIT", "10"))
    # Window used by the "recent applications" view
    APPLICATION_TIMEFRAME_DAYS: int = int(os.getenv("APPLICATION_TIMEFRAME_DAYS", "30"))
    TOP_COMPANIES_LIMIT: int = int(os.getenv("TOP_COMPANIES_LIMIT", "10"))

    # ===== Logging =====
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "simple")  # "simple" or "json"
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "false").lower() == "true"

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required configuration is present.
        Raises ValueError if critical settings are missing.
        """
        required_settings = {
            "MONGODB_URI": cls.MONGODB_URI,
        }

        missing = [name for name, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Please check your .env file."
            )

        if cls.RECENT_EVENTS_LIMIT <= 0:
            raise ValueError("RECENT_EVENTS_LIMIT must be a positive integer")

    @classmethod
    def summary(cls) -> str:
        """Return a summary of the current configuration (safe for logging)."""
        return f"""
Configuration Summary:
  MongoDB: {'✓ Configured' if cls.MONGODB_URI else '✗ Missing'}
  Database: {cls.CAREER_DB_NAME}
  Recent events limit: {cls.RECENT_EVENTS_LIMIT}
  Application timeframe: {cls.APPLICATION_TIMEFRAME_DAYS} days
  Top companies limit: {cls.TOP_COMPANIES_LIMIT}
  Logging: {cls.LOG_LEVEL} ({cls.LOG_FORMAT}){' [debug]' if cls.DEBUG_MODE else ''}
        """.strip()
