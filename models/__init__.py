"""
Data models for the Printful fulfillment bridge.

This module contains dataclasses for:
- LocalOrder / LineItem / Customer: Marketplace orders (read, status moved forward)
- Product / ProviderVariantMapping: Printful metadata per product (read-only)
- ExternalOrderRecord: Join between a local order and its Printful order
- ProviderEvent subclasses: Typed webhook events
- WebhookEventLog: Append-only audit row per webhook delivery
"""

from .order import Customer, FulfillmentOverrides, LineItem, LocalOrder, OrderStatus
from .product import Product, ProviderVariant, ProviderVariantMapping
from .external_order import ExternalOrderRecord, ExternalStatus
from .webhook import (
    OrderFailed,
    OrderUpdated,
    PackageReturned,
    PackageShipped,
    ProviderEvent,
    Shipment,
    StateTransition,
    UnknownEvent,
    WebhookEventLog,
    parse_webhook_event,
)

__all__ = [
    # Order models
    "Customer",
    "FulfillmentOverrides",
    "LineItem",
    "LocalOrder",
    "OrderStatus",
    # Product models
    "Product",
    "ProviderVariant",
    "ProviderVariantMapping",
    # External order
    "ExternalOrderRecord",
    "ExternalStatus",
    # Webhook models
    "OrderFailed",
    "OrderUpdated",
    "PackageReturned",
    "PackageShipped",
    "ProviderEvent",
    "Shipment",
    "StateTransition",
    "UnknownEvent",
    "WebhookEventLog",
    "parse_webhook_event",
]
