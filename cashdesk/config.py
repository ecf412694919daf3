"""
Configuration module for the cashdesk backend.

Loads environment variables (optionally from .env files) and validates
required settings.
"""
import os
from typing import List
from dotenv import load_dotenv

# Load .env first, then the environment-specific file (.env.development,
# .env.production, ...). Variables that are already set are never overridden.
load_dotenv()
load_dotenv(f".env.{os.getenv('ENVIRONMENT', 'development')}")


# Also the value documented in .env.example
SESSION_REFRESH_ENABLED_DEFAULT = "true"


def _first_env(*names: str, default: str = "") -> str:
    """Return the first non-empty environment variable among names."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


class Settings:
    """Application settings loaded from environment variables."""

    # Supabase Configuration
    # The VITE_ prefixed names are accepted so the same .env files used by the
    # web client keep working for the backend and the maintenance scripts.
    SUPABASE_URL: str = _first_env("SUPABASE_URL", "VITE_SUPABASE_URL")
    SUPABASE_KEY: str = _first_env(
        "SUPABASE_KEY",
        "SUPABASE_PUBLISHABLE_KEY",
        "VITE_SUPABASE_ANON_KEY",
    )

    @property
    def SUPABASE_JWKS_URL(self) -> str:
        """Get the JWKS URL for JWT verification."""
        if not self.SUPABASE_URL:
            return ""
        return f"{self.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"

    # Session refresh watchdog
    SESSION_REFRESH_ENABLED: bool = os.getenv("SESSION_REFRESH_ENABLED", SESSION_REFRESH_ENABLED_DEFAULT).lower() == "true"
    SESSION_REFRESH_INTERVAL_SECONDS: int = int(os.getenv("SESSION_REFRESH_INTERVAL_SECONDS", "600"))
    SESSION_REFRESH_THRESHOLD_SECONDS: int = int(os.getenv("SESSION_REFRESH_THRESHOLD_SECONDS", "300"))

    # Maintenance scripts
    SEED_BATCH_SIZE: int = int(os.getenv("SEED_BATCH_SIZE", "20"))

    # Application Settings
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS Settings (only used in production, see main.py)
    CORS_ALLOWED_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required settings are configured.

        Raises:
            ValueError: If any required setting is missing.
        """
        required_settings = {
            "SUPABASE_URL": cls.SUPABASE_URL,
            "SUPABASE_KEY": cls.SUPABASE_KEY,
        }

        missing = [key for key, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Please check your .env file."
            )

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment."""
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def is_development(cls) -> bool:
        """Check if running in development environment."""
        return cls.ENVIRONMENT.lower() == "development"


# Create a singleton instance
settings = Settings()

# Validate settings on module import (will fail fast if misconfigured)
# Skip validation during tests or when importing for introspection
if os.getenv("VALIDATE_CONFIG", "true").lower() == "true":
    try:
        settings.validate()
    except ValueError as e:
        # In development, warn but don't crash
        if settings.is_development():
            print(f"⚠️  Warning: {e}")
            print("   The app may not work correctly until you configure your .env file.")
        else:
            raise
