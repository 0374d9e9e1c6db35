"""
Fulfillment routes.

Called by the order-placement flow once a customer has paid for an order
containing Printful products.

- POST /orders/<order_id>/fulfill     - Submit to Printful (estimate + confirm)
- GET  /orders/<order_id>/fulfillment - Printful order record for an order
"""

import html

import bleach
from flask import (
    Blueprint,
    current_app,
    request,
)

from core.exceptions import (
    DuplicateSubmission,
    EstimationFailed,
    FulfillmentError,
    NoFulfillableItems,
    OrderNotFound,
    SubmissionFailed,
    UnmappedVariant,
)
from logging_config import get_logger
from models.order import FulfillmentOverrides


# Module logger
logger = get_logger(__name__)

fulfillment_bp = Blueprint("fulfillment", __name__)

MAX_FIELD_LENGTH = 200

# Error kind -> HTTP status
_STATUS_BY_ERROR = {
    OrderNotFound: 404,
    DuplicateSubmission: 409,
    NoFulfillableItems: 422,
    UnmappedVariant: 422,
    EstimationFailed: 502,
    SubmissionFailed: 502,
}

_TEXT_FIELDS = (
    "customer_name", "customerName",
    "shipping_address", "shippingAddress",
    "city", "state", "country",
    "postal_code", "postalCode",
    "phone", "email",
)


def _sanitize_text(text, max_length: int = MAX_FIELD_LENGTH):
    """
    Strip markup from a recipient field before it is sent to Printful.

    The result goes into a JSON payload, not a page, so entities bleach
    escapes (e.g. "&" -> "&amp;") are turned back into plain characters.
    Non-string values are passed through for FulfillmentOverrides to coerce.
    """
    if not isinstance(text, str):
        return text
    text = html.unescape(bleach.clean(text.strip(), tags=[], strip=True))
    return text[:max_length]


def _parse_overrides(body) -> FulfillmentOverrides:
    body = body if isinstance(body, dict) else {}
    cleaned = dict(body)
    for key in _TEXT_FIELDS:
        if key in cleaned:
            cleaned[key] = _sanitize_text(cleaned[key])
    return FulfillmentOverrides.from_dict(cleaned)


def _error_status(error: FulfillmentError) -> int:
    for error_type, status in _STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return status
    return 400


@fulfillment_bp.route("/orders/<order_id>/fulfill", methods=["POST"])
def fulfill(order_id: str):
    """
    Submit a local order to Printful.

    Body (optional JSON): recipient overrides, ``shipping_cost`` and ``tax``.

    Returns:
        201 with the saved Printful order and estimate, or an error body
        ``{"error": <kind>, "message": ..., "details": ...}``
    """
    service = current_app.config.get("FULFILLMENT_SERVICE")
    if service is None:
        return {"error": "service_unavailable", "message": "Fulfillment service unavailable"}, 503

    try:
        overrides = _parse_overrides(request.get_json(silent=True))
    except (TypeError, ValueError) as e:
        return {"error": "invalid_request", "message": f"Invalid overrides: {e}"}, 400

    logger.info(f"Fulfillment requested for order {order_id}")

    try:
        result = service.fulfill(order_id, overrides)
    except FulfillmentError as e:
        status = _error_status(e)
        logger.warning(f"Fulfillment of order {order_id} failed ({e.kind}): {e.message}")
        return e.to_dict(), status

    if not result.saved:
        logger.error(f"Order {order_id} submitted to Printful but local records are incomplete")

    return result.to_dict(), 201


@fulfillment_bp.route("/orders/<order_id>/fulfillment", methods=["GET"])
def fulfillment_status(order_id: str):
    """Printful order record for a local order."""
    service = current_app.config.get("FULFILLMENT_SERVICE")
    if service is None:
        return {"error": "service_unavailable", "message": "Fulfillment service unavailable"}, 503

    record = service.get_fulfillment(order_id)
    if record is None:
        return {
            "error": "not_found",
            "message": f"Order {order_id} has no Printful order",
        }, 404

    return record.to_dict()
