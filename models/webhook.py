"""
Webhook event models.

Printful pushes order lifecycle events as JSON:

    {
        "type": "package_shipped",
        "data": {
            "order": {"external_id": "...", "status": "...", "costs": {...}},
            "shipment": {"tracking_number": "...", "tracking_url": "...",
                         "carrier": "...", "service": "..."}
        }
    }

parse_webhook_event() decodes that into one dataclass per event type.
Decoding is a tolerant reader: unknown top-level fields are ignored, missing
optional blocks become None, and an unrecognized ``type`` yields an
UnknownEvent instead of an error.

Each event knows the StateTransition it implies; the record store applies
that transition atomically.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from .external_order import ExternalStatus
from .order import OrderStatus


@dataclass(frozen=True)
class StateTransition:
    """
    Changes one event makes to an ExternalOrderRecord / LocalOrder pair.

    Applied by RecordStore.apply_transition() as a single atomic update.
    ``order_status`` is only applied when it is a forward move for the
    local order; ``order_fields`` are applied alongside it.
    """

    external_status: Optional[str] = None
    external_fields: Dict[str, Any] = field(default_factory=dict)
    order_status: Optional[OrderStatus] = None
    order_fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Shipment:
    """Tracking block of a package_shipped event."""

    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    carrier: Optional[str] = None
    service: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Shipment"]:
        if not isinstance(data, dict):
            return None
        return cls(
            tracking_number=_as_text(data.get("tracking_number")),
            tracking_url=data.get("tracking_url"),
            carrier=data.get("carrier"),
            service=data.get("service"),
            raw=dict(data),
        )


@dataclass(frozen=True)
class ProviderEvent:
    """Base for all decoded webhook events."""

    type: str
    external_id: Optional[str]
    raw: Dict[str, Any]

    handled = False

    def to_transition(self, now: datetime) -> Optional[StateTransition]:
        """No state change by default."""
        return None


@dataclass(frozen=True)
class PackageShipped(ProviderEvent):
    shipment: Optional[Shipment] = None

    handled = True

    def to_transition(self, now: datetime) -> StateTransition:
        shipment = self.shipment or Shipment()
        return StateTransition(
            external_status=ExternalStatus.FULFILLED,
            external_fields={
                "tracking_number": shipment.tracking_number,
                "tracking_url": shipment.tracking_url,
                "carrier": shipment.carrier,
                "service": shipment.service,
                "shipped_at": now,
                "shipment": shipment.raw or None,
            },
            order_status=OrderStatus.COMPLETED,
            order_fields={
                "tracking_number": shipment.tracking_number,
                "completed_at": now,
            },
        )


@dataclass(frozen=True)
class PackageReturned(ProviderEvent):
    handled = True

    def to_transition(self, now: datetime) -> StateTransition:
        return StateTransition(
            external_status=ExternalStatus.RETURNED,
            order_status=OrderStatus.CANCELLED,
        )


@dataclass(frozen=True)
class OrderFailed(ProviderEvent):
    reason: Optional[str] = None

    handled = True

    def to_transition(self, now: datetime) -> StateTransition:
        return StateTransition(
            external_status=ExternalStatus.FAILED,
            order_status=OrderStatus.CANCELLED,
        )


@dataclass(frozen=True)
class OrderUpdated(ProviderEvent):
    """Refreshes external status and costs; the local order is untouched."""

    status: Optional[str] = None
    costs: Optional[Dict[str, Any]] = None

    handled = True

    def to_transition(self, now: datetime) -> StateTransition:
        fields = {}
        if self.costs is not None:
            fields["costs"] = dict(self.costs)
        return StateTransition(external_status=self.status, external_fields=fields)


@dataclass(frozen=True)
class UnknownEvent(ProviderEvent):
    """Any type the bridge does not reconcile yet. Logged as a no-op."""


def _as_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def parse_webhook_event(payload: Any) -> ProviderEvent:
    """
    Decode a raw webhook payload into a typed event.

    Never raises for shape problems: a non-dict payload or missing blocks
    produce an event with ``external_id=None`` that the reconciler will
    record as unresolved.

    Args:
        payload: Parsed JSON body of the webhook request

    Returns:
        PackageShipped, PackageReturned, OrderFailed, OrderUpdated or
        UnknownEvent
    """
    raw = payload if isinstance(payload, dict) else {}
    event_type = _as_text(raw.get("type")) or "unknown"

    data = raw.get("data")
    data = data if isinstance(data, dict) else {}
    order = data.get("order")
    order = order if isinstance(order, dict) else {}
    external_id = _as_text(order.get("external_id"))

    if event_type == "package_shipped":
        return PackageShipped(
            type=event_type,
            external_id=external_id,
            raw=raw,
            shipment=Shipment.from_dict(data.get("shipment")),
        )
    if event_type == "package_returned":
        return PackageReturned(type=event_type, external_id=external_id, raw=raw)
    if event_type == "order_failed":
        return OrderFailed(
            type=event_type,
            external_id=external_id,
            raw=raw,
            reason=_as_text(data.get("reason")),
        )
    if event_type == "order_updated":
        costs = order.get("costs")
        return OrderUpdated(
            type=event_type,
            external_id=external_id,
            raw=raw,
            status=_as_text(order.get("status")),
            costs=costs if isinstance(costs, dict) else None,
        )
    return UnknownEvent(type=event_type, external_id=external_id, raw=raw)


@dataclass(frozen=True)
class WebhookEventLog:
    """
    Audit row for one webhook delivery.

    Append-only: written once per delivery, whatever the outcome, and never
    updated afterwards.
    """

    event_type: str
    """Webhook ``type`` as received."""

    payload: Any
    """Raw payload for replay/debugging."""

    external_reference_id: Optional[str]
    """Resolved reference id, None when the order was not found."""

    processed: bool
    """Whether the event was applied (or was a known no-op)."""

    error_message: Optional[str] = None

    local_order_id: Optional[str] = None

    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    processed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "payload": self.payload,
            "external_reference_id": self.external_reference_id,
            "local_order_id": self.local_order_id,
            "processed": self.processed,
            "error_message": self.error_message,
            "received_at": self.received_at.isoformat(),
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }
