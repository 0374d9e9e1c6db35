"""
Operator API routes.

Handles:
- /api/printful/connection - Printful connectivity diagnostic (settings screen)
- /api/webhook-events      - Webhook audit log, optionally for one order
- /health                  - Health check endpoint
"""

from flask import (
    Blueprint,
    current_app,
    request,
)

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/api/printful/connection", methods=["GET"])
def printful_connection():
    """
    Test the Printful credentials by fetching store metadata.

    Returns 200 with ``success: true`` and the store info, or 502 with the
    structured provider error.
    """
    client = current_app.config.get("PRINTFUL_CLIENT")
    if client is None:
        return {"success": False, "error": {"status": 0, "message": "Printful client not configured"}}, 503

    status = client.test_connection()
    return status.to_dict(), 200 if status.success else 502


@api_bp.route("/api/webhook-events", methods=["GET"])
def webhook_events():
    """
    List webhook audit rows in arrival order.

    Query params:
        order_id: Only rows resolved to this order
    """
    store = current_app.config.get("RECORD_STORE")
    if store is None:
        return {"error": "service_unavailable", "message": "Record store unavailable"}, 503

    events = store.list_webhook_events(request.args.get("order_id"))
    return {
        "count": len(events),
        "events": [e.to_dict() for e in events],
    }


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    checks = {
        "printful_client": "configured" if current_app.config.get("PRINTFUL_CLIENT") else "missing",
        "record_store": "configured" if current_app.config.get("RECORD_STORE") else "missing",
        "fulfillment_service": "configured" if current_app.config.get("FULFILLMENT_SERVICE") else "missing",
        "webhook_reconciler": "configured" if current_app.config.get("WEBHOOK_RECONCILER") else "missing",
    }
    healthy = all(value == "configured" for value in checks.values())

    return {
        "status": "ok" if healthy else "degraded",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": checks,
    }, 200 if healthy else 503
