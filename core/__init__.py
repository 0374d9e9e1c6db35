"""
Core module for the Printful fulfillment bridge.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- printful_client: Authenticated Printful REST client
"""

from .exceptions import (
    FulfillmentBridgeError,
    ConfigurationError,
    ProviderError,
    PersistenceFailed,
    WebhookResolutionFailed,
    FulfillmentError,
    UnmappedVariant,
    NoFulfillableItems,
    OrderNotFound,
    DuplicateSubmission,
    EstimationFailed,
    SubmissionFailed,
)
from .printful_client import PrintfulClient, ConnectionStatus

__all__ = [
    "FulfillmentBridgeError",
    "ConfigurationError",
    "ProviderError",
    "PersistenceFailed",
    "WebhookResolutionFailed",
    "FulfillmentError",
    "UnmappedVariant",
    "NoFulfillableItems",
    "OrderNotFound",
    "DuplicateSubmission",
    "EstimationFailed",
    "SubmissionFailed",
    "PrintfulClient",
    "ConnectionStatus",
]
