"""
Order translator.

Builds the Printful order payload from a local order. Side-effect free: it
reads the order, its customer and its products' Printful metadata, and
returns a new payload. Both the estimate and the confirm call send the
payload unchanged.

Payload shape:
    {
        "recipient": {name, address1, city, state_code, country_code, zip,
                      phone, email},
        "items": [{"sync_variant_id", "quantity", "retail_price"}, ...],
        "retail_costs": {currency, subtotal, discount, shipping, tax},
        "external_id": <local order id>
    }

Recipient fields prefer the caller's overrides, then the stored order
shipping fields, then the customer record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from core.exceptions import NoFulfillableItems, UnmappedVariant
from logging_config import get_logger
from models.order import FulfillmentOverrides, LocalOrder
from models.product import Product
from modules.variant_resolver import ResolvedVariant, resolve_variant


# Module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class TranslatedOrder:
    """Printful payload plus how each line item was resolved."""

    payload: Dict[str, Any]
    resolved: List[ResolvedVariant] = field(default_factory=list)
    skipped: List[UnmappedVariant] = field(default_factory=list)

    @property
    def variant_ids(self) -> Dict[str, int]:
        """Line item id -> sync variant id."""
        return {r.line_item.id: r.variant_id for r in self.resolved}


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value not in (None, ""):
            return value
    return None


def build_recipient(
    order: LocalOrder,
    overrides: FulfillmentOverrides,
    default_country: str = "US"
) -> Dict[str, Any]:
    """Recipient block with override -> order -> customer fallback."""
    customer = order.customer
    return {
        "name": _first(overrides.customer_name, customer.name if customer else None),
        "address1": _first(overrides.shipping_address, order.shipping_address),
        "city": _first(overrides.city, order.shipping_city, customer.city if customer else None),
        "state_code": _first(overrides.state, order.shipping_state),
        "country_code": _first(
            overrides.country,
            order.shipping_country,
            customer.country if customer else None,
        ) or default_country,
        "zip": _first(
            overrides.postal_code,
            order.shipping_postal_code,
            customer.postal_code if customer else None,
        ),
        "phone": _first(overrides.phone, customer.phone if customer else None),
        "email": _first(overrides.email, customer.email if customer else None),
    }


def translate_order(
    order: LocalOrder,
    products: Mapping[str, Product],
    overrides: Optional[FulfillmentOverrides] = None,
    default_country: str = "US",
    currency: str = "USD",
) -> TranslatedOrder:
    """
    Build the Printful payload for a local order.

    Line items whose product cannot be mapped are skipped and reported in
    ``skipped``; the rest are submitted in line item order.

    Args:
        order: Local order with customer and line items
        products: Product id -> Product (with Printful metadata)
        overrides: Recipient/cost overrides from the caller
        default_country: Country code when none is known
        currency: Retail cost currency

    Returns:
        TranslatedOrder

    Raises:
        NoFulfillableItems: If no line item resolves to a variant
    """
    overrides = overrides or FulfillmentOverrides()

    resolved: List[ResolvedVariant] = []
    skipped: List[UnmappedVariant] = []

    for line_item in order.line_items:
        try:
            resolved.append(resolve_variant(line_item, products.get(line_item.product_id)))
        except UnmappedVariant as e:
            logger.debug(f"Order {order.id}: skipping line item {line_item.id}: {e.reason}")
            skipped.append(e)

    if not resolved:
        raise NoFulfillableItems(order.id, skipped=[e.line_item_id for e in skipped])

    payload = {
        "recipient": build_recipient(order, overrides, default_country),
        "items": [r.to_payload_item() for r in resolved],
        "retail_costs": {
            "currency": currency,
            "subtotal": float(order.total_amount),
            "discount": 0,
            "shipping": float(overrides.shipping_cost),
            "tax": float(overrides.tax),
        },
        "external_id": order.id,
    }

    return TranslatedOrder(payload=payload, resolved=resolved, skipped=skipped)
