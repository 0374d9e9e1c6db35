"""
Fulfillment orchestrator.

Turns a pending local order into a confirmed Printful order.

Flow (strictly sequential, one request = one call to fulfill()):
    1. Load the local order, its customer and its products' Printful metadata
    2. Refuse if the order already has an active Printful order
    3. Build the payload (local validation, no network on failure)
    4. POST /orders/estimate-costs   -> EstimationFailed aborts, nothing saved
    5. POST /orders                  -> SubmissionFailed aborts, order stays pending
    6. Save the ExternalOrderRecord  -> failure is logged, NOT raised
    7. Move the local order to processing

No compensating actions: once step 5 succeeds, the Printful order stands
even if steps 6-7 fail. The Printful order is the source of truth and can be
re-read with PrintfulClient.get_order("@<local order id>").

Concurrent fulfill() calls for the same order are not coordinated here; the
calling layer must keep at most one in flight per order.

Usage:
    service = FulfillmentService(store, printful_client)

    try:
        result = service.fulfill("1042", FulfillmentOverrides(tax=1.5))
    except FulfillmentError as e:
        return e.to_dict(), 422
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.exceptions import (
    DuplicateSubmission,
    EstimationFailed,
    OrderNotFound,
    PersistenceFailed,
    ProviderError,
    SubmissionFailed,
)
from core.printful_client import PrintfulClient
from logging_config import get_logger, order_context
from models.external_order import ExternalOrderRecord
from models.order import FulfillmentOverrides, LocalOrder, OrderStatus
from models.product import Product
from modules.order_translator import translate_order
from services.record_store import RecordStore


# Module logger
logger = get_logger(__name__)


@dataclass
class FulfillmentResult:
    """
    Outcome of a successful fulfill() call.

    ``persistence_errors`` is non-empty when Printful accepted the order
    but a local write afterwards failed.
    """

    external_order: ExternalOrderRecord
    estimate: Dict[str, Any]
    provider_order: Dict[str, Any]
    skipped_line_items: List[str] = field(default_factory=list)
    persistence_errors: List[PersistenceFailed] = field(default_factory=list)

    @property
    def saved(self) -> bool:
        return not self.persistence_errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "external_order": self.external_order.to_dict(),
            "estimate": self.estimate,
            "skipped_line_items": self.skipped_line_items,
            "saved": self.saved,
            "persistence_errors": [e.message for e in self.persistence_errors],
        }


class FulfillmentService:
    """
    Drives the estimate/confirm submission of local orders to Printful.

    Holds no per-order state; safe to share across request threads.
    """

    def __init__(
        self,
        store: RecordStore,
        client: PrintfulClient,
        default_country: str = "US",
        currency: str = "USD",
    ):
        self._store = store
        self._client = client
        self._default_country = default_country
        self._currency = currency

    def fulfill(
        self,
        order_id: str,
        overrides: Optional[FulfillmentOverrides] = None
    ) -> FulfillmentResult:
        """
        Submit a local order to Printful.

        Args:
            order_id: Local order id
            overrides: Recipient/cost overrides from the checkout flow

        Returns:
            FulfillmentResult with the saved record and the cost estimate

        Raises:
            OrderNotFound: Order does not exist
            DuplicateSubmission: Order already has an active Printful order
            NoFulfillableItems: No line item maps to a Printful variant
            EstimationFailed: Estimate call failed (nothing persisted)
            SubmissionFailed: Confirm call failed (order stays pending)
        """
        with order_context(order_id):
            return self._fulfill(order_id, overrides or FulfillmentOverrides())

    def get_fulfillment(self, order_id: str) -> Optional[ExternalOrderRecord]:
        """Printful order record for a local order, if any."""
        return self._store.get_external_order(order_id)

    # =========================================================================
    # STEPS
    # =========================================================================

    def _fulfill(self, order_id: str, overrides: FulfillmentOverrides) -> FulfillmentResult:
        # STEP 1: Load order and product metadata
        order = self._store.get_order(order_id)
        if order is None:
            logger.warning(f"Fulfillment requested for unknown order {order_id}")
            raise OrderNotFound(order_id)

        # STEP 2: Duplicate guard
        existing = self._store.get_external_order(order_id)
        if existing is not None and not existing.is_terminal:
            logger.warning(
                f"Order already submitted as Printful order {existing.provider_order_id} "
                f"(status {existing.status})"
            )
            raise DuplicateSubmission(order_id, existing.provider_order_id, existing.status)

        # STEP 3: Translate (raises NoFulfillableItems before any network call)
        translated = translate_order(
            order,
            self._load_products(order),
            overrides,
            default_country=self._default_country,
            currency=self._currency,
        )
        payload = translated.payload
        skipped = [e.line_item_id for e in translated.skipped]
        if skipped:
            logger.info(f"Skipping {len(skipped)} non-Printful line items: {skipped}")
        logger.info(f"Payload built with {len(payload['items'])} Printful items")

        # STEP 4: Estimate
        try:
            estimate = self._client.estimate_costs(payload)
        except ProviderError as e:
            logger.error(f"Cost estimate failed: {e.message} (status={e.status})")
            raise EstimationFailed(order_id, e) from e
        logger.info("Estimate received")

        # STEP 5: Confirm
        try:
            provider_order = self._client.create_order(payload, confirm=True)
        except ProviderError as e:
            logger.error(f"Order submission failed: {e.message} (status={e.status})")
            raise SubmissionFailed(order_id, e) from e
        provider_order = provider_order if isinstance(provider_order, dict) else {}
        logger.info(f"Printful order created: id={provider_order.get('id')}")

        # STEP 6: Persist (non-fatal)
        record = ExternalOrderRecord.from_provider_order(order_id, provider_order, payload)
        persistence_errors: List[PersistenceFailed] = []
        try:
            record = self._store.save_external_order(record)
            self._store.annotate_line_items(order_id, translated.variant_ids)
        except PersistenceFailed as e:
            logger.error(f"Printful order {record.provider_order_id} created but not saved: {e}")
            persistence_errors.append(e)

        # STEP 7: Local status
        self._mark_processing(order, persistence_errors)

        return FulfillmentResult(
            external_order=record,
            estimate=estimate if isinstance(estimate, dict) else {"result": estimate},
            provider_order=provider_order,
            skipped_line_items=skipped,
            persistence_errors=persistence_errors,
        )

    def _load_products(self, order: LocalOrder) -> Dict[str, Product]:
        products = {}
        for item in order.line_items:
            if item.product_id in products:
                continue
            product = self._store.get_product(item.product_id)
            if product is not None:
                products[item.product_id] = product
        return products

    def _mark_processing(self, order: LocalOrder, persistence_errors: List[PersistenceFailed]) -> None:
        try:
            if self._store.update_order_status(order.id, OrderStatus.PROCESSING):
                logger.info("Local order moved to processing")
        except PersistenceFailed as e:
            logger.error(f"Could not update local order status: {e}")
            persistence_errors.append(e)
