"""
Printful Fulfillment Bridge - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (fail-fast when the Printful token is missing)
2. Creates the Printful client with the configured credential
3. Creates the record store, fulfillment service and webhook reconciler
4. Registers route blueprints
5. Sets up error handlers

ARCHITECTURE:
    Request thread (one per HTTP request)
    ├── POST /orders/<id>/fulfill  -> FulfillmentService -> PrintfulClient
    └── POST /webhooks/printful    -> WebhookReconciler  -> RecordStore

Services are created once and shared; they keep no per-request state.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.exceptions import ConfigurationError
from core.printful_client import PrintfulClient
from services.record_store import InMemoryRecordStore, RecordStore
from services.fulfillment_service import FulfillmentService
from services.webhook_service import WebhookReconciler
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In a frozen bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent


def create_app(
    config_object: str = "config.Config",
    store: Optional[RecordStore] = None,
    printful_client: Optional[PrintfulClient] = None,
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the config class
        store: Record store (defaults to a new InMemoryRecordStore)
        printful_client: Printful client (defaults to one built from config)

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If PRINTFUL_API_TOKEN is missing and no client
            was injected
    """
    env_file = _get_base_path() / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=app.config.get("ENVIRONMENT") == "production",
    )
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting Printful bridge in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # CORE INITIALIZATION (FAIL-FAST)
    # =========================================================================

    if printful_client is None:
        token = app.config.get("PRINTFUL_API_TOKEN")
        if not token:
            logger.error("FATAL: PRINTFUL_API_TOKEN is not set")
            raise ConfigurationError("PRINTFUL_API_TOKEN")

        printful_client = PrintfulClient(
            api_token=token,
            base_url=app.config.get("PRINTFUL_API_BASE_URL"),
            timeout_seconds=app.config.get("PRINTFUL_TIMEOUT_SECONDS"),
            max_retries=app.config.get("PRINTFUL_MAX_RETRIES"),
            backoff_seconds=app.config.get("PRINTFUL_RETRY_BACKOFF_SECONDS"),
            logger=get_logger("core.printful_client"),
        )

    app.config["PRINTFUL_CLIENT"] = printful_client

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    if store is None:
        store = InMemoryRecordStore()
        logger.warning("Using in-memory record store; data is lost on restart")
    app.config["RECORD_STORE"] = store

    app.config["FULFILLMENT_SERVICE"] = FulfillmentService(
        store,
        printful_client,
        default_country=app.config.get("DEFAULT_COUNTRY_CODE", "US"),
        currency=app.config.get("DEFAULT_CURRENCY", "USD"),
    )
    app.config["WEBHOOK_RECONCILER"] = WebhookReconciler(store)
    logger.info("Fulfillment service and webhook reconciler initialized")

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        max_kb = app.config.get("MAX_CONTENT_LENGTH", 1024 * 1024) / 1024
        return {"error": "payload_too_large", "message": f"Request body exceeds {max_kb:.0f} KB"}, 413

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"error": "not_found", "message": "Resource not found"}, 404

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return {"error": e.name.lower().replace(" ", "_"), "message": e.description}, e.code
        logger.error(f"Unhandled error: {e}", exc_info=True)
        return {"error": "internal_error", "message": "An unexpected error occurred"}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
