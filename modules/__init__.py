"""Pure helpers for building Printful orders (no I/O)."""

__all__ = [
    "order_translator",
    "variant_resolver",
]
