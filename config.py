"""
Configuration for Sticker Dream.

GEMINI_API_KEY is required; the app fails fast at startup without it.
The watchdog poll interval (1s) and status cadence (60 checks) are fixed
constants in services.printer_watchdog, not settings.
"""

import os
import tempfile

from dotenv import load_dotenv

# Load .env early so environment variables are available for Config class
load_dotenv(override=True)


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # prompts only
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # Image generation (Google Imagen)
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
    GEMINI_BASE_URL = os.environ.get(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com"
    )
    GEMINI_IMAGE_MODEL = os.environ.get("GEMINI_IMAGE_MODEL", "imagen-4.0-generate-001")
    IMAGE_REQUEST_TIMEOUT_SECONDS = float(
        os.environ.get("IMAGE_REQUEST_TIMEOUT_SECONDS", "120")
    )

    # Prompt validation
    MAX_PROMPT_LENGTH = 1000

    # Printing (CUPS)
    PRINT_COMMAND_TIMEOUT_SECONDS = float(
        os.environ.get("PRINT_COMMAND_TIMEOUT_SECONDS", "30")
    )
    PRINT_STAGING_DIR = os.environ.get("PRINT_STAGING_DIR", tempfile.gettempdir())
    PRINTER_WATCHDOG_ENABLED = os.environ.get("PRINTER_WATCHDOG_ENABLED", "1") == "1"


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    ENVIRONMENT = "production"


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration: no watchdog thread, no real API key."""
    DEBUG = False
    TESTING = True
    ENVIRONMENT = "testing"
    GEMINI_API_KEY = "test-api-key"
    PRINTER_WATCHDOG_ENABLED = False
