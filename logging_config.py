"""
Centralized logging configuration for the Printful fulfillment bridge.

Every log line carries the worker thread and, when known, the local order
being worked on. Flask serves each request (a fulfillment call or a webhook
delivery) on its own thread; the order tag ties together the lines written
for one order across the estimate, confirm and reconciliation steps.

Features:
    - Thread name and order id in all log messages
    - Console output (always enabled)
    - Rotating file logs (optional, for production)
    - Separate error log for ERROR/CRITICAL messages
    - Helper functions for getting loggers with consistent naming

Log Format:
    2026-03-02 10:15:30 [INFO    ] [MainThread] [-] printful_bridge.app - Starting Printful bridge
    2026-03-02 10:15:31 [INFO    ] [Thread-3] [order=1042] printful_bridge.services.fulfillment_service - Estimate received
    2026-03-02 10:15:32 [WARNING ] [Thread-4] [-] printful_bridge.services.webhook_service - order not found

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    # In modules
    logger = get_logger(__name__)

    # Tag everything logged while handling one order
    with order_context("1042"):
        logger.info("Submitting to Printful")
"""

import contextvars
import logging
import sys
import threading
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator, Optional


APP_LOGGER_NAME = "printful_bridge"

_current_order: contextvars.ContextVar = contextvars.ContextVar("current_order", default=None)


# =============================================================================
# CONTEXT FILTER
# =============================================================================

class RequestContextFilter(logging.Filter):
    """
    Logging filter that adds thread and order context to all log records.

    Adds:
        - thread_name: Name of the current thread (e.g., "MainThread")
        - order_tag: "order=<id>" inside order_context(), "-" otherwise
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        order_id = _current_order.get()
        record.order_tag = f"order={order_id}" if order_id else "-"

        # Context only, never drop records
        return True


@contextmanager
def order_context(order_id: Optional[str]) -> Iterator[None]:
    """
    Tag log lines written inside the block with ``order_id``.

    Args:
        order_id: Local order id (None leaves lines untagged)
    """
    token = _current_order.set(order_id)
    try:
        yield
    finally:
        _current_order.reset(token)


# =============================================================================
# LOGGING SETUP
# =============================================================================

def _file_handler(path: Path, level: int, formatter: logging.Formatter,
                  context_filter: logging.Filter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=path,
        maxBytes=10 * 1024 * 1024,  # 10 MB per file
        backupCount=5,
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(context_filter)
    return handler


def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure application logging with thread and order context.

    This sets up:
    1. Console handler (always enabled)
    2. Rotating file handler (optional) - all levels
    3. Error file handler (optional) - ERROR/CRITICAL only

    Calling it again replaces the handlers, so tests and the app factory
    can both configure logging.

    Args:
        app_name: Name of the application logger (default: "printful_bridge")
        log_level: Minimum log level (default: INFO)
        log_dir: Directory for log files (default: ./logs relative to this file)
        enable_file_logging: Whether to write to log files (default: True)

    Returns:
        Configured application logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-8s] [%(thread_name)s] [%(order_tag)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    context_filter = RequestContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(context_filter)
    logger.addHandler(console_handler)

    if enable_file_logging:
        if log_dir is None:
            log_dir = Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        logger.addHandler(_file_handler(app_log_file, log_level, formatter, context_filter))
        logger.addHandler(
            _file_handler(log_dir / f"{app_name}_error.log", logging.ERROR, formatter, context_filter)
        )

        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


# =============================================================================
# LOGGER FACTORY
# =============================================================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger under the application namespace.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger inheriting the handlers configured by setup_logging()

    Example:
        # In services/webhook_service.py
        logger = get_logger(__name__)
        # Logger name: "printful_bridge.services.webhook_service"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
