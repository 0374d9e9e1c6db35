"""
Printful webhook route.

POST /webhooks/printful always answers 200 once the delivery has been
handed to the reconciler, even when the event could not be applied. The
outcome is visible in the audit log, not to Printful; a non-2xx answer
would only make Printful redeliver the same event.
"""

from flask import (
    Blueprint,
    current_app,
    request,
)
from werkzeug.exceptions import RequestEntityTooLarge

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

webhooks_bp = Blueprint("webhooks", __name__)


def _body_too_large() -> bool:
    max_length = current_app.config.get("MAX_CONTENT_LENGTH")
    return bool(max_length) and (request.content_length or 0) > max_length


@webhooks_bp.route("/webhooks/printful", methods=["POST"])
def printful_webhook():
    """Receive one Printful webhook delivery."""
    reconciler = current_app.config.get("WEBHOOK_RECONCILER")
    if reconciler is None:
        # Not acknowledged: Printful will redeliver once the service is back
        logger.error("Webhook received but reconciler is not configured")
        return {"error": "service_unavailable"}, 503

    try:
        if _body_too_large():
            raise RequestEntityTooLarge()
        payload = request.get_json(silent=True)
        if payload is None:
            # Keep the raw body for the audit row
            payload = {"type": "invalid_json", "raw_body": request.get_data(as_text=True)}
    except RequestEntityTooLarge:
        # Body is never read; a redelivery would be rejected the same way
        outcome = reconciler.record_rejected(
            "payload_too_large",
            f"Request body exceeds {current_app.config.get('MAX_CONTENT_LENGTH')} bytes",
            {"content_length": request.content_length},
        )
        return outcome.to_dict(), 200

    outcome = reconciler.handle(payload)
    return outcome.to_dict(), 200
