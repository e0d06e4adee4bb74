"""
Application configuration and environment variables
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes", "on")"""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables"""

    # Database
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")

    # "supabase" for the hosted database, "memory" for local development
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "supabase").strip().lower()

    # Calendar day boundary used for "today"
    DAY_TIMEZONE: str = os.getenv("DAY_TIMEZONE", "UTC")

    # Remove a habit's completions when the habit is deleted
    CASCADE_DELETE_COMPLETIONS: bool = _env_flag("CASCADE_DELETE_COMPLETIONS", False)

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


# Create a global settings instance
settings = Settings()
