"""
Product and Printful variant mapping models.

The product catalog attaches Printful metadata to each product. The bridge
only reads it: a product is fulfillable when it is flagged as a Printful
product and has at least one configured variant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple


@dataclass(frozen=True)
class ProviderVariant:
    """One Printful sync variant configured for a product."""

    id: int
    """Printful sync variant id (sent as sync_variant_id)."""

    retail_price: Optional[float] = None
    """Catalog price configured in Printful."""

    name: str = ""
    """Display name (e.g., 'Black / L')."""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "retail_price": self.retail_price, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderVariant":
        price = data.get("retail_price")
        return cls(
            id=int(data["id"]),
            retail_price=float(price) if price not in (None, "") else None,
            name=data.get("name") or "",
        )


@dataclass(frozen=True)
class ProviderVariantMapping:
    """
    Printful metadata attached to a product.

    ``variants`` is a ranked tuple: index 0 is the preferred variant and the
    one submitted for fulfillment. Ties are broken by configuration order.
    """

    is_provider_product: bool = False
    """Whether Printful fulfills this product."""

    variants: Tuple[ProviderVariant, ...] = ()
    """Ranked variants, preferred first."""

    sync_product_id: Optional[int] = None

    @property
    def preferred_variant(self) -> Optional[ProviderVariant]:
        return self.variants[0] if self.variants else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_provider_product": self.is_provider_product,
            "sync_product_id": self.sync_product_id,
            "variants": [v.to_dict() for v in self.variants],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ProviderVariantMapping":
        """
        Create from stored product metadata.

        Variant entries without an ``id`` are dropped; the rest keep their
        stored order.
        """
        data = data or {}
        variants = tuple(
            ProviderVariant.from_dict(v)
            for v in data.get("variants") or []
            if isinstance(v, dict) and v.get("id") not in (None, "")
        )
        return cls(
            is_provider_product=bool(data.get("is_provider_product", False)),
            variants=variants,
            sync_product_id=data.get("sync_product_id"),
        )


@dataclass(frozen=True)
class Product:
    """A catalog product as far as fulfillment is concerned."""

    id: str
    name: str = ""
    provider: ProviderVariantMapping = field(default_factory=ProviderVariantMapping)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "provider": self.provider.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            provider=ProviderVariantMapping.from_dict(data.get("provider")),
        )
