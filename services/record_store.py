"""
Record store used by the fulfillment bridge.

The hosted database is an external collaborator. The bridge only needs the
typed operations declared on RecordStore; InMemoryRecordStore implements
them for development, tests and single-process deployments.

ATOMICITY:
    apply_transition() is the only way webhook reconciliation writes. It
    reads the ExternalOrderRecord and the LocalOrder, checks the local
    status guard, and writes both records inside one critical section, so
    two deliveries for the same order cannot interleave their
    read-modify-write and lose an update.

Thread Safety:
    - InMemoryRecordStore guards all state with one threading.Lock
    - Reads return copies; callers never hold references into the store
    - The webhook log is append-only
"""

from __future__ import annotations

import copy
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.exceptions import PersistenceFailed
from logging_config import get_logger
from models.external_order import ExternalOrderRecord
from models.order import LocalOrder, OrderStatus
from models.product import Product
from models.webhook import StateTransition, WebhookEventLog


# Module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of RecordStore.apply_transition()."""

    record: ExternalOrderRecord
    order: Optional[LocalOrder]
    order_status_changed: bool
    """False when the local status guard blocked the move (or none requested)."""


class RecordStore(ABC):
    """Typed persistence operations consumed by the bridge."""

    # ---- orders and products (owned by other flows, read here) ------------

    @abstractmethod
    def get_order(self, order_id: str) -> Optional[LocalOrder]:
        """Order with customer and line items, or None."""

    @abstractmethod
    def get_product(self, product_id: str) -> Optional[Product]:
        """Product with its Printful metadata, or None."""

    @abstractmethod
    def update_order_status(
        self,
        order_id: str,
        status: OrderStatus,
        **fields
    ) -> bool:
        """
        Move an order forward.

        Returns:
            True if the status changed; False if the move is not forward
            (the order is left untouched)
        """

    @abstractmethod
    def annotate_line_items(self, order_id: str, variant_ids: Dict[str, int]) -> None:
        """Record the resolved Printful variant on each line item."""

    # ---- external order records ------------------------------------------

    @abstractmethod
    def get_external_order(self, reference_id: str) -> Optional[ExternalOrderRecord]:
        """Record by external reference id (== local order id)."""

    @abstractmethod
    def save_external_order(self, record: ExternalOrderRecord) -> ExternalOrderRecord:
        """Create the record for an order, replacing a terminal one."""

    @abstractmethod
    def apply_transition(
        self,
        reference_id: str,
        transition: StateTransition
    ) -> Optional[TransitionResult]:
        """
        Atomically apply one webhook transition to both records.

        Returns:
            TransitionResult, or None if no record has this reference
        """

    # ---- webhook audit log -------------------------------------------------

    @abstractmethod
    def append_webhook_event(self, entry: WebhookEventLog) -> None:
        """Append one audit row. Rows are never updated."""

    @abstractmethod
    def list_webhook_events(self, reference_id: Optional[str] = None) -> List[WebhookEventLog]:
        """Audit rows in arrival order, optionally for one reference."""


class InMemoryRecordStore(RecordStore):
    """
    Process-local RecordStore.

    Orders and products are seeded through put_order() / put_product(),
    standing in for the order-placement flow and the product catalog.
    """

    def __init__(self):
        self._orders: Dict[str, LocalOrder] = {}
        self._products: Dict[str, Product] = {}
        self._external_orders: Dict[str, ExternalOrderRecord] = {}
        self._webhook_events: List[WebhookEventLog] = []
        self._lock = threading.Lock()

    # =========================================================================
    # SEEDING (collaborator side)
    # =========================================================================

    def put_order(self, order: LocalOrder) -> None:
        with self._lock:
            self._orders[order.id] = copy.deepcopy(order)

    def put_product(self, product: Product) -> None:
        with self._lock:
            self._products[product.id] = product

    # =========================================================================
    # ORDERS / PRODUCTS
    # =========================================================================

    def get_order(self, order_id: str) -> Optional[LocalOrder]:
        with self._lock:
            order = self._orders.get(order_id)
            return copy.deepcopy(order) if order else None

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            return self._products.get(product_id)

    def update_order_status(self, order_id: str, status: OrderStatus, **fields) -> bool:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise PersistenceFailed("update order status", "order not found", order_id)
            return self._move_order(order, status, fields)

    def annotate_line_items(self, order_id: str, variant_ids: Dict[str, int]) -> None:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise PersistenceFailed("annotate line items", "order not found", order_id)
            order.line_items = [
                item.with_variant(variant_ids[item.id]) if item.id in variant_ids else item
                for item in order.line_items
            ]

    # =========================================================================
    # EXTERNAL ORDERS
    # =========================================================================

    def get_external_order(self, reference_id: str) -> Optional[ExternalOrderRecord]:
        with self._lock:
            record = self._external_orders.get(reference_id)
            return copy.deepcopy(record) if record else None

    def save_external_order(self, record: ExternalOrderRecord) -> ExternalOrderRecord:
        if not record.items:
            raise PersistenceFailed(
                "save external order", "record has no line items", record.local_order_id
            )

        with self._lock:
            existing = self._external_orders.get(record.external_reference_id)
            if existing is not None and not existing.is_terminal:
                raise PersistenceFailed(
                    "save external order",
                    f"active record already exists (status {existing.status})",
                    record.local_order_id,
                )
            self._external_orders[record.external_reference_id] = copy.deepcopy(record)
            return copy.deepcopy(record)

    def apply_transition(
        self,
        reference_id: str,
        transition: StateTransition
    ) -> Optional[TransitionResult]:
        with self._lock:
            record = self._external_orders.get(reference_id)
            if record is None:
                return None

            now = datetime.now(timezone.utc)
            if transition.external_status:
                record.status = transition.external_status
            for name, value in transition.external_fields.items():
                setattr(record, name, copy.deepcopy(value))
            record.updated_at = now

            order = self._orders.get(record.local_order_id)
            changed = False
            if order is not None and transition.order_status is not None:
                changed = self._move_order(order, transition.order_status, transition.order_fields)

            return TransitionResult(
                record=copy.deepcopy(record),
                order=copy.deepcopy(order) if order else None,
                order_status_changed=changed,
            )

    # =========================================================================
    # WEBHOOK LOG
    # =========================================================================

    def append_webhook_event(self, entry: WebhookEventLog) -> None:
        with self._lock:
            self._webhook_events.append(entry)

    def list_webhook_events(self, reference_id: Optional[str] = None) -> List[WebhookEventLog]:
        with self._lock:
            if reference_id is None:
                return list(self._webhook_events)
            return [e for e in self._webhook_events if e.external_reference_id == reference_id]

    # =========================================================================
    # INTERNALS (caller holds the lock)
    # =========================================================================

    @staticmethod
    def _move_order(order: LocalOrder, status: OrderStatus, fields: dict) -> bool:
        if not order.status.can_transition_to(status):
            logger.info(
                f"Order {order.id}: keeping status {order.status.value}, "
                f"refusing move to {status.value}"
            )
            return False

        order.status = status
        for name, value in fields.items():
            setattr(order, name, value)
        order.updated_at = datetime.now(timezone.utc)
        return True
