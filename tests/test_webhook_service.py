"""
Unit tests for webhook decoding and reconciliation.
"""

from unittest.mock import patch

import pytest

from models.order import OrderStatus
from models.webhook import (
    OrderFailed,
    OrderUpdated,
    PackageReturned,
    PackageShipped,
    UnknownEvent,
    parse_webhook_event,
)
from services.fulfillment_service import FulfillmentService
from services.webhook_service import WebhookReconciler


def shipped_payload(external_id="1042", tracking_number="1Z999AA10123456784"):
    return {
        "type": "package_shipped",
        "created": 1700000000,
        "retries": 0,
        "store": 42,
        "data": {
            "order": {"id": 987654, "external_id": external_id, "status": "fulfilled"},
            "shipment": {
                "id": 10,
                "carrier": "UPS",
                "service": "UPS Ground",
                "tracking_number": tracking_number,
                "tracking_url": "https://track.example/1Z999",
            },
        },
    }


def event_payload(event_type, external_id="1042", **order_fields):
    order = {"external_id": external_id}
    order.update(order_fields)
    return {"type": event_type, "data": {"order": order}}


# Fixtures

@pytest.fixture
def submitted_store(store, printful_client):
    """Store where order 1042 has a confirmed Printful order (processing)."""
    FulfillmentService(store, printful_client).fulfill("1042")
    return store


@pytest.fixture
def reconciler(submitted_store):
    return WebhookReconciler(submitted_store)


class TestParseWebhookEvent:
    """Tolerant decoding."""

    def test_event_classes(self):
        assert isinstance(parse_webhook_event(shipped_payload()), PackageShipped)
        assert isinstance(parse_webhook_event(event_payload("package_returned")), PackageReturned)
        assert isinstance(parse_webhook_event(event_payload("order_failed")), OrderFailed)
        assert isinstance(parse_webhook_event(event_payload("order_updated")), OrderUpdated)
        assert isinstance(parse_webhook_event(event_payload("stock_updated")), UnknownEvent)

    def test_shipment_decoded(self):
        event = parse_webhook_event(shipped_payload())

        assert event.external_id == "1042"
        assert event.shipment.carrier == "UPS"
        assert event.shipment.tracking_url == "https://track.example/1Z999"

    def test_numeric_ids_become_text(self):
        event = parse_webhook_event(shipped_payload(external_id=1042, tracking_number=555))

        assert event.external_id == "1042"
        assert event.shipment.tracking_number == "555"

    def test_missing_blocks(self):
        event = parse_webhook_event({"type": "package_shipped"})

        assert event.external_id is None
        assert event.shipment is None

    def test_not_a_dict(self):
        event = parse_webhook_event(["package_shipped"])

        assert isinstance(event, UnknownEvent)
        assert event.type == "unknown"
        assert event.external_id is None


class TestPackageShipped:
    """Scenario: shipped package completes the order."""

    def test_external_record_updated(self, reconciler, submitted_store):
        outcome = reconciler.handle(shipped_payload())

        assert outcome.processed is True
        record = submitted_store.get_external_order("1042")
        assert record.status == "fulfilled"
        assert record.tracking_number == "1Z999AA10123456784"
        assert record.tracking_url == "https://track.example/1Z999"
        assert record.carrier == "UPS"
        assert record.service == "UPS Ground"
        assert record.shipped_at is not None
        assert record.shipment["id"] == 10

    def test_local_order_completed(self, reconciler, submitted_store):
        outcome = reconciler.handle(shipped_payload())

        order = submitted_store.get_order("1042")
        assert order.status is OrderStatus.COMPLETED
        assert order.tracking_number == "1Z999AA10123456784"
        assert order.completed_at is not None
        assert outcome.order_status == "completed"

    def test_tracking_number_round_trips(self, reconciler, submitted_store):
        reconciler.handle(shipped_payload(tracking_number="TRACK-42"))

        assert submitted_store.get_order("1042").tracking_number == "TRACK-42"
        assert submitted_store.get_external_order("1042").tracking_number == "TRACK-42"

    def test_audit_row(self, reconciler, submitted_store):
        payload = shipped_payload()
        reconciler.handle(payload)

        rows = submitted_store.list_webhook_events()
        assert len(rows) == 1
        assert rows[0].event_type == "package_shipped"
        assert rows[0].external_reference_id == "1042"
        assert rows[0].processed is True
        assert rows[0].error_message is None
        assert rows[0].payload == payload
        assert rows[0].processed_at is not None


class TestOrderResolution:
    """Scenario: webhook for an order the store does not know."""

    def test_unknown_external_id(self, reconciler, submitted_store):
        outcome = reconciler.handle(shipped_payload(external_id="9999"))

        assert outcome.processed is False
        assert outcome.error_message == "order not found"
        rows = submitted_store.list_webhook_events()
        assert len(rows) == 1
        assert rows[0].processed is False
        assert rows[0].external_reference_id is None
        assert rows[0].error_message == "order not found"
        assert submitted_store.get_order("1042").status is OrderStatus.PROCESSING

    def test_missing_external_id(self, reconciler, submitted_store):
        outcome = reconciler.handle({"type": "package_shipped", "data": {"order": {"id": 987654}}})

        assert outcome.processed is False
        assert outcome.error_message == "order not found"
        assert len(submitted_store.list_webhook_events()) == 1

    def test_order_never_submitted(self, store):
        # 2001 exists locally but has no Printful record
        outcome = WebhookReconciler(store).handle(shipped_payload(external_id="2001"))

        assert outcome.processed is False
        assert store.get_order("2001").status is OrderStatus.PENDING

    def test_malformed_payload(self, reconciler, submitted_store):
        outcome = reconciler.handle("not an object")

        assert outcome.processed is False
        assert outcome.event_type == "unknown"
        rows = submitted_store.list_webhook_events()
        assert rows[0].payload == "not an object"


class TestStatusMonotonicity:
    """Terminal local statuses never change."""

    def test_returned_after_completed(self, reconciler, submitted_store):
        reconciler.handle(shipped_payload())
        outcome = reconciler.handle(event_payload("package_returned"))

        assert outcome.processed is True
        assert outcome.order_status == "completed"
        assert submitted_store.get_external_order("1042").status == "returned"
        assert submitted_store.get_order("1042").status is OrderStatus.COMPLETED

    def test_failed_cancels_processing_order(self, reconciler, submitted_store):
        outcome = reconciler.handle(event_payload("order_failed"))

        assert outcome.order_status == "cancelled"
        assert submitted_store.get_external_order("1042").status == "failed"
        assert submitted_store.get_order("1042").status is OrderStatus.CANCELLED

    def test_shipped_after_cancelled(self, reconciler, submitted_store):
        reconciler.handle(event_payload("order_failed"))
        reconciler.handle(shipped_payload())

        order = submitted_store.get_order("1042")
        assert order.status is OrderStatus.CANCELLED
        assert order.tracking_number is None
        assert order.completed_at is None
        # The Printful-side record still reflects the event
        assert submitted_store.get_external_order("1042").status == "fulfilled"

    def test_repeated_delivery(self, reconciler, submitted_store):
        reconciler.handle(shipped_payload())
        reconciler.handle(shipped_payload())

        assert submitted_store.get_order("1042").status is OrderStatus.COMPLETED
        assert len(submitted_store.list_webhook_events("1042")) == 2


class TestOtherEvents:

    def test_order_updated_refreshes_record_only(self, reconciler, submitted_store):
        costs = {"currency": "USD", "total": 35.10}
        outcome = reconciler.handle(event_payload("order_updated", status="inprocess", costs=costs))

        assert outcome.processed is True
        record = submitted_store.get_external_order("1042")
        assert record.status == "inprocess"
        assert record.costs == costs
        assert submitted_store.get_order("1042").status is OrderStatus.PROCESSING

    def test_update_then_ship(self, reconciler, submitted_store):
        reconciler.handle(event_payload("order_updated", status="inprocess", costs={"total": 32.89}))
        outcome = reconciler.handle(shipped_payload())

        assert outcome.order_status == "completed"
        assert submitted_store.get_order("1042").status is OrderStatus.COMPLETED
        assert submitted_store.get_external_order("1042").status == "fulfilled"
        rows = submitted_store.list_webhook_events("1042")
        assert [r.event_type for r in rows] == ["order_updated", "package_shipped"]
        assert all(r.processed for r in rows)

    def test_unknown_type_is_recorded_no_op(self, reconciler, submitted_store):
        before = submitted_store.get_external_order("1042")

        outcome = reconciler.handle(event_payload("product_synced"))

        assert outcome.processed is True
        assert outcome.external_reference_id == "1042"
        after = submitted_store.get_external_order("1042")
        assert after.status == before.status
        assert after.updated_at == before.updated_at
        rows = submitted_store.list_webhook_events()
        assert rows[0].event_type == "product_synced"


class TestFailureHandling:
    """handle() never raises."""

    def test_store_failure_recorded(self, reconciler, submitted_store):
        with patch.object(submitted_store, "apply_transition", side_effect=RuntimeError("db down")):
            outcome = reconciler.handle(shipped_payload())

        assert outcome.processed is False
        assert outcome.error_message == "db down"
        rows = submitted_store.list_webhook_events()
        assert len(rows) == 1
        assert rows[0].error_message == "db down"

    def test_rejected_delivery_recorded(self, reconciler, submitted_store):
        outcome = reconciler.record_rejected(
            "payload_too_large", "Request body exceeds 1048576 bytes", {"content_length": 2000000}
        )

        assert outcome.processed is False
        assert outcome.logged is True
        rows = submitted_store.list_webhook_events()
        assert len(rows) == 1
        assert rows[0].event_type == "payload_too_large"
        assert rows[0].external_reference_id is None
        assert rows[0].error_message == "Request body exceeds 1048576 bytes"
        assert submitted_store.get_order("1042").status is OrderStatus.PROCESSING

    def test_audit_write_failure(self, reconciler, submitted_store):
        with patch.object(submitted_store, "append_webhook_event", side_effect=RuntimeError("disk full")):
            outcome = reconciler.handle(shipped_payload())

        assert outcome.logged is False
        assert outcome.processed is True
        assert submitted_store.get_order("1042").status is OrderStatus.COMPLETED
