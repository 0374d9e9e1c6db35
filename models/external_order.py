"""
External (Printful-side) order record.

The bridge's own join object between a local order and the order Printful
created for it. Exactly one record per local order; the
``external_reference_id`` equals the local order id and is the only key the
webhook reconciler trusts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional


class ExternalStatus:
    """Printful order statuses the bridge writes or compares against."""

    DRAFT = "draft"
    PENDING = "pending"
    FULFILLED = "fulfilled"
    RETURNED = "returned"
    FAILED = "failed"
    CANCELED = "canceled"

    # A record in one of these states no longer blocks resubmission
    TERMINAL = frozenset({RETURNED, FAILED, CANCELED})


@dataclass
class ExternalOrderRecord:
    """
    Printful order linked to a local order.

    Created once per successful confirmed submission, updated on every
    reconciled webhook event.
    """

    local_order_id: str
    """Local order id."""

    external_reference_id: str
    """Sent to Printful as external_id; equals local_order_id."""

    provider_order_id: Any = None
    """Printful's internal order id (never used for correlation)."""

    status: str = ExternalStatus.PENDING
    """Latest Printful status."""

    costs: Dict[str, Any] = field(default_factory=dict)
    retail_costs: Dict[str, Any] = field(default_factory=dict)
    items: List[Dict[str, Any]] = field(default_factory=list)
    recipient: Dict[str, Any] = field(default_factory=dict)

    # Tracking (set by package_shipped)
    carrier: Optional[str] = None
    service: Optional[str] = None
    tracking_number: Optional[str] = None
    tracking_url: Optional[str] = None
    shipped_at: Optional[datetime] = None
    shipment: Optional[Dict[str, Any]] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in ExternalStatus.TERMINAL

    @classmethod
    def from_provider_order(
        cls,
        local_order_id: str,
        provider_order: Dict[str, Any],
        submitted_payload: Dict[str, Any]
    ) -> "ExternalOrderRecord":
        """
        Build the record from Printful's confirmed order.

        Falls back to the submitted payload for items and recipient when
        Printful's response omits them.

        Args:
            local_order_id: Local order id (becomes the reference id)
            provider_order: ``result`` of POST /orders
            submitted_payload: Payload that was confirmed

        Returns:
            New ExternalOrderRecord
        """
        return cls(
            local_order_id=local_order_id,
            external_reference_id=local_order_id,
            provider_order_id=provider_order.get("id"),
            status=provider_order.get("status") or ExternalStatus.PENDING,
            costs=dict(provider_order.get("costs") or {}),
            retail_costs=dict(
                provider_order.get("retail_costs") or submitted_payload.get("retail_costs") or {}
            ),
            items=list(provider_order.get("items") or submitted_payload.get("items") or []),
            recipient=dict(provider_order.get("recipient") or submitted_payload.get("recipient") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "local_order_id": self.local_order_id,
            "external_reference_id": self.external_reference_id,
            "provider_order_id": self.provider_order_id,
            "status": self.status,
            "costs": self.costs,
            "retail_costs": self.retail_costs,
            "items": self.items,
            "recipient": self.recipient,
            "carrier": self.carrier,
            "service": self.service,
            "tracking_number": self.tracking_number,
            "tracking_url": self.tracking_url,
            "shipped_at": self.shipped_at.isoformat() if self.shipped_at else None,
            "shipment": self.shipment,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
