"""
Shared fixtures: a seeded record store and a mocked Printful client.

Order "1042" mixes a Printful product (p-shirt) with a locally fulfilled
one (p-mug). Order "2001" contains only the local product.
"""

from unittest.mock import MagicMock

import pytest

from core.printful_client import PrintfulClient
from models.order import Customer, LineItem, LocalOrder
from models.product import Product, ProviderVariant, ProviderVariantMapping
from services.record_store import InMemoryRecordStore


@pytest.fixture
def customer():
    """Buyer record used for recipient fallbacks."""
    return Customer(
        id="c-1",
        name="Jane Doe",
        email="jane@example.com",
        phone="555-0100",
        city="Portland",
        country="US",
        postal_code="97201",
    )


@pytest.fixture
def shirt():
    """Printful product with two ranked variants."""
    return Product(
        id="p-shirt",
        name="Logo Tee",
        provider=ProviderVariantMapping(
            is_provider_product=True,
            variants=(
                ProviderVariant(id=4011, retail_price=13.95, name="Black / L"),
                ProviderVariant(id=4012, retail_price=13.95, name="White / L"),
            ),
            sync_product_id=501,
        ),
    )


@pytest.fixture
def mug():
    """Product fulfilled outside Printful."""
    return Product(id="p-mug", name="Studio Mug")


@pytest.fixture
def pending_order(customer):
    return LocalOrder(
        id="1042",
        customer=customer,
        line_items=[
            LineItem(id="li-1", product_id="p-shirt", quantity=2, unit_price=12.5),
            LineItem(id="li-2", product_id="p-mug", quantity=1, unit_price=9.0),
        ],
        total_amount=34.0,
        shipping_address="1 Main St",
        shipping_city="Portland",
        shipping_state="OR",
        shipping_country="US",
        shipping_postal_code="97201",
    )


@pytest.fixture
def local_only_order(customer):
    return LocalOrder(
        id="2001",
        customer=customer,
        line_items=[LineItem(id="li-9", product_id="p-mug", quantity=1, unit_price=9.0)],
        total_amount=9.0,
    )


@pytest.fixture
def store(pending_order, local_only_order, shirt, mug):
    """In-memory store seeded with both orders and both products."""
    store = InMemoryRecordStore()
    store.put_product(shirt)
    store.put_product(mug)
    store.put_order(pending_order)
    store.put_order(local_only_order)
    return store


@pytest.fixture
def estimate_response():
    return {
        "costs": {
            "currency": "USD",
            "subtotal": 27.90,
            "shipping": 4.99,
            "tax": 0.0,
            "total": 32.89,
        },
        "retail_costs": {"currency": "USD", "subtotal": 34.0, "total": 34.0},
    }


@pytest.fixture
def provider_order_response():
    return {
        "id": 987654,
        "external_id": "1042",
        "status": "pending",
        "recipient": {"name": "Jane Doe", "country_code": "US"},
        "items": [{"sync_variant_id": 4011, "quantity": 2, "retail_price": "12.50"}],
        "costs": {"currency": "USD", "subtotal": 27.90, "shipping": 4.99, "total": 32.89},
        "retail_costs": {"currency": "USD", "subtotal": 34.0},
    }


@pytest.fixture
def printful_client(estimate_response, provider_order_response):
    """PrintfulClient mock that accepts every order."""
    client = MagicMock(spec=PrintfulClient)
    client.estimate_costs.return_value = estimate_response
    client.create_order.return_value = provider_order_response
    return client
