"""
Custom exceptions for the Printful fulfillment bridge.

Exception Hierarchy:
    FulfillmentBridgeError (base)
    ├── ConfigurationError       - Missing/invalid settings (startup failure)
    ├── ProviderError            - Normalized Printful API failure
    ├── PersistenceFailed        - Local write failed after remote success
    ├── WebhookResolutionFailed  - Webhook reference not found (logged only)
    └── FulfillmentError         - fulfill() failed (returned to caller)
        ├── UnmappedVariant      - Line item has no provider variant
        ├── NoFulfillableItems   - No line item is provider-fulfilled
        ├── OrderNotFound        - Local order does not exist
        ├── DuplicateSubmission  - Order already has an active provider order
        ├── EstimationFailed     - Estimate call rejected or unreachable
        └── SubmissionFailed     - Confirm call rejected or unreachable

Usage:
    Startup errors (ConfigurationError) cause the app to fail fast.
    FulfillmentError subclasses are shown to the user via to_dict().
    Webhook errors never reach the provider; they end up in the audit log.
"""

from typing import Optional, Dict, Any


class FulfillmentBridgeError(Exception):
    """
    Base exception for all fulfillment bridge errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# STARTUP ERRORS
# =============================================================================

class ConfigurationError(FulfillmentBridgeError):
    """
    A required setting is missing or invalid.

    This is a FATAL error raised by the app factory; the bridge cannot talk
    to Printful without credentials.
    """

    def __init__(self, setting: str, message: Optional[str] = None):
        message = message or f"Missing required setting: {setting}"
        details = {
            "setting": setting,
            "resolution": f"Set {setting} in the environment or .env file",
        }
        super().__init__(message, details)
        self.setting = setting


# =============================================================================
# TRANSPORT ERRORS
# =============================================================================

class ProviderError(FulfillmentBridgeError):
    """
    Structured failure from the Printful API.

    Every non-2xx response and every transport failure is normalized into
    this type by PrintfulClient. Transport failures (connection refused,
    DNS, timeout) use status 0 and the message "network error".
    """

    def __init__(
        self,
        status: int,
        message: str,
        raw_body: Any = None
    ):
        details = {"status": status}
        super().__init__(message, details)
        self.status = status
        self.raw_body = raw_body

    @property
    def is_network_error(self) -> bool:
        """True when the request never produced an HTTP response."""
        return self.status == 0

    @property
    def is_retryable(self) -> bool:
        """Network errors, rate limiting and server errors."""
        return self.status == 0 or self.status == 429 or self.status >= 500

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "message": self.message,
            "raw_body": self.raw_body,
        }


# =============================================================================
# LOCAL STORE ERRORS
# =============================================================================

class PersistenceFailed(FulfillmentBridgeError):
    """
    A local write failed.

    During fulfillment this is NON-FATAL: the Printful order already exists
    and stays the source of truth. The orchestrator logs it and reports it
    on the result instead of raising.
    """

    def __init__(self, operation: str, reason: str, order_id: Optional[str] = None):
        message = f"Failed to {operation}: {reason}"
        details = {"operation": operation}
        if order_id:
            details["order_id"] = order_id
        super().__init__(message, details)
        self.operation = operation
        self.reason = reason
        self.order_id = order_id


class WebhookResolutionFailed(FulfillmentBridgeError):
    """
    A webhook referenced an order the store does not know.

    Never thrown to the webhook caller; the reconciler records it in the
    audit log with processed=False.
    """

    def __init__(self, external_id: Optional[str]):
        super().__init__("order not found", {"external_id": external_id})
        self.external_id = external_id


# =============================================================================
# FULFILLMENT ERRORS - returned to the caller of fulfill()
# =============================================================================

class FulfillmentError(FulfillmentBridgeError):
    """
    Base class for fulfill() failures.

    Each subclass has a stable ``kind`` that API clients can switch on,
    alongside the human-readable message.
    """

    kind = "fulfillment_error"

    def __init__(
        self,
        message: str,
        order_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if order_id:
            error_details["order_id"] = order_id
        super().__init__(message, error_details)
        self.order_id = order_id

    def to_dict(self) -> Dict[str, Any]:
        """User-visible error body."""
        return {
            "error": self.kind,
            "message": self.message,
            "details": self.details,
        }


class UnmappedVariant(FulfillmentError):
    """
    The product behind a line item cannot be fulfilled by Printful.

    Raised by the variant resolver when the product is not flagged as a
    Printful product or has no configured variants. Local validation only,
    no network call is attempted.
    """

    kind = "unmapped_variant"

    def __init__(self, product_id: Optional[str], reason: str, line_item_id: Optional[str] = None):
        message = f"Product {product_id} has no Printful variant: {reason}"
        details = {"product_id": product_id, "reason": reason}
        if line_item_id:
            details["line_item_id"] = line_item_id
        super().__init__(message, details=details)
        self.product_id = product_id
        self.reason = reason
        self.line_item_id = line_item_id


class NoFulfillableItems(FulfillmentError):
    """None of the ordered products resolve to a Printful variant."""

    kind = "no_fulfillable_items"

    def __init__(self, order_id: str, skipped: Optional[list] = None):
        details = {}
        if skipped:
            details["skipped_line_items"] = list(skipped)
        super().__init__(
            "No valid Printful items found in order",
            order_id=order_id,
            details=details,
        )
        self.skipped = list(skipped or [])


class OrderNotFound(FulfillmentError):
    """The local order does not exist."""

    kind = "order_not_found"

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found", order_id=order_id)


class DuplicateSubmission(FulfillmentError):
    """
    The order already has an active Printful order.

    Submitting again would create a second provider order. A previous
    record in a terminal provider state (failed, returned, canceled) does
    not block a new submission.
    """

    kind = "duplicate_submission"

    def __init__(self, order_id: str, provider_order_id: Any, status: str):
        super().__init__(
            f"Order {order_id} was already submitted to Printful "
            f"(provider order {provider_order_id}, status {status})",
            order_id=order_id,
            details={"provider_order_id": provider_order_id, "status": status},
        )
        self.provider_order_id = provider_order_id
        self.status = status


class _ProviderStepFailed(FulfillmentError):
    """Shared shape for the two remote steps of fulfill()."""

    step = ""

    def __init__(self, order_id: str, provider_error: ProviderError):
        super().__init__(
            f"Printful {self.step} failed: {provider_error.message}",
            order_id=order_id,
            details={"provider_status": provider_error.status},
        )
        self.provider_error = provider_error


class EstimationFailed(_ProviderStepFailed):
    """Cost estimate was rejected or Printful was unreachable."""

    kind = "estimation_failed"
    step = "cost estimate"


class SubmissionFailed(_ProviderStepFailed):
    """
    Confirmed order creation was rejected or Printful was unreachable.

    The local order stays pending; nothing is persisted.
    """

    kind = "submission_failed"
    step = "order submission"
