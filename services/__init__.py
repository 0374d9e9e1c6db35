"""
Services layer for the Printful fulfillment bridge.

- RecordStore / InMemoryRecordStore: Typed persistence with atomic transitions
- FulfillmentService: Estimate/confirm submission of local orders
- WebhookReconciler: Applies Printful events and writes the audit log

Each fulfill() call and each webhook delivery is a short, sequential unit
of work on the request thread; no service starts background threads.
"""

from .record_store import InMemoryRecordStore, RecordStore, TransitionResult
from .fulfillment_service import FulfillmentResult, FulfillmentService
from .webhook_service import WebhookOutcome, WebhookReconciler

__all__ = [
    "InMemoryRecordStore",
    "RecordStore",
    "TransitionResult",
    "FulfillmentResult",
    "FulfillmentService",
    "WebhookOutcome",
    "WebhookReconciler",
]
