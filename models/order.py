"""
Local order data models.

These models represent a marketplace order as the fulfillment bridge sees
it. Orders are created by the order-placement flow; the bridge only reads
them and moves their status forward.

Status lifecycle (forward only):
    PENDING -> PROCESSING -> COMPLETED
    any non-terminal      -> CANCELLED
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, List, Optional


class OrderStatus(Enum):
    """
    Status of a local order.

    COMPLETED and CANCELLED are terminal: once reached, no webhook may
    change the status again.
    """

    PENDING = "pending"
    """Placed, not yet submitted to Printful."""

    PROCESSING = "processing"
    """Confirmed Printful order exists."""

    COMPLETED = "completed"
    """Package shipped."""

    CANCELLED = "cancelled"
    """Returned, failed or cancelled."""

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """
        Whether moving from this status to ``target`` is a forward move.

        Terminal statuses never move. CANCELLED is reachable from any
        non-terminal status. Otherwise the target must not be earlier in
        the PENDING -> PROCESSING -> COMPLETED chain. Same-status moves
        are allowed so repeated events stay harmless.
        """
        if self.is_terminal:
            return False
        if target is OrderStatus.CANCELLED:
            return True
        return _FORWARD_RANK[target] >= _FORWARD_RANK[self]


_FORWARD_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.PROCESSING: 1,
    OrderStatus.COMPLETED: 2,
}


def _parse_status(value: Any) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        return OrderStatus.PENDING


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Customer:
    """
    Buyer contact data used as recipient fallback.

    Read-only from the bridge's perspective.
    """

    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    city: str = ""
    country: str = ""
    postal_code: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "city": self.city,
            "country": self.country,
            "postal_code": self.postal_code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Customer":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            email=data.get("email") or "",
            phone=data.get("phone") or "",
            city=data.get("city") or "",
            country=data.get("country") or "",
            postal_code=data.get("postal_code") or "",
        )


@dataclass(frozen=True)
class LineItem:
    """
    One ordered product.

    Immutable once the order is placed. The only fulfillment-side
    annotation is ``variant_id``, set after the Printful order exists.
    """

    id: str
    """Line item identifier."""

    product_id: str
    """Local product reference."""

    quantity: int
    """Units ordered."""

    unit_price: float
    """Price charged per unit, submitted to Printful as retail_price."""

    variant_id: Optional[int] = None
    """Printful sync variant id, annotated after submission."""

    def with_variant(self, variant_id: int) -> "LineItem":
        return replace(self, variant_id=variant_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "variant_id": self.variant_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        return cls(
            id=str(data.get("id", "")),
            product_id=str(data.get("product_id", "")),
            quantity=int(data.get("quantity", 1)),
            unit_price=float(data.get("unit_price", 0.0)),
            variant_id=data.get("variant_id"),
        )


@dataclass
class LocalOrder:
    """
    A marketplace purchase record.

    Mutated by the fulfillment orchestrator (status) and the webhook
    reconciler (status, tracking number, completion timestamp). The record
    store hands out copies; mutations go back through the store.
    """

    id: str
    """Local order id, also the Printful external_id."""

    customer: Optional[Customer] = None
    """Buyer reference (recipient fallbacks)."""

    line_items: List[LineItem] = field(default_factory=list)
    """Ordered products."""

    status: OrderStatus = OrderStatus.PENDING
    """Current lifecycle status."""

    total_amount: float = 0.0
    """Order total, submitted as retail subtotal."""

    shipping_address: str = ""
    """Street address line."""

    shipping_city: str = ""
    shipping_state: str = ""
    shipping_country: str = ""
    shipping_postal_code: str = ""

    tracking_number: Optional[str] = None
    """Set when the package ships."""

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer": self.customer.to_dict() if self.customer else None,
            "line_items": [item.to_dict() for item in self.line_items],
            "status": self.status.value,
            "total_amount": self.total_amount,
            "shipping_address": self.shipping_address,
            "shipping_city": self.shipping_city,
            "shipping_state": self.shipping_state,
            "shipping_country": self.shipping_country,
            "shipping_postal_code": self.shipping_postal_code,
            "tracking_number": self.tracking_number,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "completed_at": _iso(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocalOrder":
        """Create from a record-store row or JSON body."""
        customer_data = data.get("customer")
        return cls(
            id=str(data.get("id", "")),
            customer=Customer.from_dict(customer_data) if customer_data else None,
            line_items=[LineItem.from_dict(i) for i in data.get("line_items", [])],
            status=_parse_status(data.get("status", "pending")),
            total_amount=float(data.get("total_amount", 0.0)),
            shipping_address=data.get("shipping_address") or "",
            shipping_city=data.get("shipping_city") or "",
            shipping_state=data.get("shipping_state") or "",
            shipping_country=data.get("shipping_country") or "",
            shipping_postal_code=data.get("shipping_postal_code") or "",
            tracking_number=data.get("tracking_number"),
            created_at=_parse_datetime(data.get("created_at")) or datetime.now(timezone.utc),
            updated_at=_parse_datetime(data.get("updated_at")),
            completed_at=_parse_datetime(data.get("completed_at")),
        )


@dataclass(frozen=True)
class FulfillmentOverrides:
    """
    Caller-supplied values that take precedence over stored order data.

    Captured by the order-placement flow (checkout form) and passed to
    fulfill(). Every field is optional.
    """

    customer_name: Optional[str] = None
    shipping_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    shipping_cost: float = 0.0
    tax: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FulfillmentOverrides":
        """
        Create from a JSON body.

        Accepts both snake_case and the camelCase keys the dashboard sends.
        Unknown keys are ignored.
        """
        data = data or {}

        def pick(*keys):
            for key in keys:
                value = data.get(key)
                if value not in (None, ""):
                    return value
            return None

        return cls(
            customer_name=pick("customer_name", "customerName"),
            shipping_address=pick("shipping_address", "shippingAddress"),
            city=pick("city"),
            state=pick("state"),
            country=pick("country"),
            postal_code=pick("postal_code", "postalCode"),
            phone=pick("phone"),
            email=pick("email"),
            shipping_cost=float(pick("shipping_cost", "shippingCost") or 0.0),
            tax=float(pick("tax") or 0.0),
        )
