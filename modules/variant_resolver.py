"""
Variant resolver.

Maps a local line item to the Printful sync variant that fulfills it.
Pure function: no I/O, same input always gives the same answer.

Selection policy:
    Product variants are a ranked list. The first entry is the preferred
    variant and is always the one returned; no other ranking is applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.exceptions import UnmappedVariant
from models.order import LineItem
from models.product import Product


@dataclass(frozen=True)
class ResolvedVariant:
    """A line item matched to a Printful variant."""

    line_item: LineItem
    variant_id: int
    retail_price: float
    """Price submitted to Printful (the line item's unit price)."""

    catalog_price: Optional[float] = None
    """Variant price configured in Printful, informational only."""

    def to_payload_item(self) -> dict:
        """Printful order item."""
        return {
            "sync_variant_id": self.variant_id,
            "quantity": self.line_item.quantity,
            "retail_price": f"{self.retail_price:.2f}",
        }


def resolve_variant(line_item: LineItem, product: Optional[Product]) -> ResolvedVariant:
    """
    Resolve the Printful variant for a line item.

    Args:
        line_item: Ordered product
        product: Product with its Printful metadata (None if missing)

    Returns:
        ResolvedVariant for the preferred (first) variant

    Raises:
        UnmappedVariant: Product missing, not a Printful product, or no
            variants configured
    """
    if product is None:
        raise UnmappedVariant(line_item.product_id, "product not found", line_item.id)

    mapping = product.provider
    if not mapping.is_provider_product:
        raise UnmappedVariant(product.id, "not a Printful product", line_item.id)

    variant = mapping.preferred_variant
    if variant is None:
        raise UnmappedVariant(product.id, "no variants configured", line_item.id)

    return ResolvedVariant(
        line_item=line_item,
        variant_id=variant.id,
        retail_price=float(line_item.unit_price),
        catalog_price=variant.retail_price,
    )
