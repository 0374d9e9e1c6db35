"""
Configuration for the Printful fulfillment bridge.

All settings come from the environment (optionally a .env file). The
Printful token is read ONLY here and handed to PrintfulClient by the app
factory; no other module touches os.environ.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # webhook bodies are small JSON

    # ==========================================================================
    # Printful API
    # ==========================================================================
    # PRINTFUL_API_TOKEN: private token from the Printful developer portal.
    #   Required outside of testing; the app refuses to start without it.
    #
    # PRINTFUL_TIMEOUT_SECONDS: bound on every API call. A call that runs out
    #   the clock is reported as a network error (status 0).
    #
    # PRINTFUL_MAX_RETRIES / PRINTFUL_RETRY_BACKOFF_SECONDS: retry policy for
    #   read-only (GET) calls. Delay doubles per attempt:
    #   backoff, 2 x backoff, 4 x backoff, ...
    #   Order creation is never retried.
    # ==========================================================================
    PRINTFUL_API_TOKEN = os.environ.get("PRINTFUL_API_TOKEN", "")
    PRINTFUL_API_BASE_URL = os.environ.get("PRINTFUL_API_BASE_URL", "https://api.printful.com")
    PRINTFUL_TIMEOUT_SECONDS = float(os.environ.get("PRINTFUL_TIMEOUT_SECONDS", "30"))
    PRINTFUL_MAX_RETRIES = int(os.environ.get("PRINTFUL_MAX_RETRIES", "3"))
    PRINTFUL_RETRY_BACKOFF_SECONDS = float(
        os.environ.get("PRINTFUL_RETRY_BACKOFF_SECONDS", "0.5")
    )

    # Public URL Printful should deliver webhooks to (register_webhook.py)
    PRINTFUL_WEBHOOK_URL = os.environ.get("PRINTFUL_WEBHOOK_URL", "")

    # Order payload defaults
    DEFAULT_COUNTRY_CODE = os.environ.get("DEFAULT_COUNTRY_CODE", "US")
    DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "USD")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    PRINTFUL_API_TOKEN = "test-token"
    PRINTFUL_MAX_RETRIES = 0
    PRINTFUL_RETRY_BACKOFF_SECONDS = 0.0
