"""
Unit tests for InMemoryRecordStore.
"""

import pytest

from core.exceptions import PersistenceFailed
from models.external_order import ExternalOrderRecord, ExternalStatus
from models.order import OrderStatus
from models.webhook import StateTransition, WebhookEventLog


def make_record(order_id="1042", status=ExternalStatus.PENDING, provider_order_id=1):
    return ExternalOrderRecord(
        local_order_id=order_id,
        external_reference_id=order_id,
        provider_order_id=provider_order_id,
        status=status,
        items=[{"sync_variant_id": 4011, "quantity": 2, "retail_price": "12.50"}],
    )


class TestOrders:

    def test_reads_are_copies(self, store):
        order = store.get_order("1042")
        order.status = OrderStatus.CANCELLED

        assert store.get_order("1042").status is OrderStatus.PENDING

    def test_unknown_order(self, store):
        assert store.get_order("missing") is None
        assert store.get_product("missing") is None

    @pytest.mark.parametrize("start,target,allowed", [
        (OrderStatus.PENDING, OrderStatus.PROCESSING, True),
        (OrderStatus.PENDING, OrderStatus.CANCELLED, True),
        (OrderStatus.PROCESSING, OrderStatus.COMPLETED, True),
        (OrderStatus.PROCESSING, OrderStatus.PENDING, False),
        (OrderStatus.COMPLETED, OrderStatus.CANCELLED, False),
        (OrderStatus.CANCELLED, OrderStatus.COMPLETED, False),
    ])
    def test_status_moves(self, store, pending_order, start, target, allowed):
        pending_order.status = start
        store.put_order(pending_order)

        assert store.update_order_status("1042", target) is allowed
        expected = target if allowed else start
        assert store.get_order("1042").status is expected

    def test_fields_applied_with_status(self, store):
        store.update_order_status("1042", OrderStatus.PROCESSING)
        store.update_order_status("1042", OrderStatus.COMPLETED, tracking_number="T1")

        order = store.get_order("1042")
        assert order.tracking_number == "T1"
        assert order.updated_at is not None

    def test_fields_ignored_when_move_refused(self, store):
        store.update_order_status("1042", OrderStatus.CANCELLED)
        store.update_order_status("1042", OrderStatus.COMPLETED, tracking_number="T1")

        assert store.get_order("1042").tracking_number is None

    def test_update_missing_order(self, store):
        with pytest.raises(PersistenceFailed):
            store.update_order_status("missing", OrderStatus.PROCESSING)


class TestExternalOrders:

    def test_save_and_read(self, store):
        store.save_external_order(make_record())

        record = store.get_external_order("1042")
        assert record.provider_order_id == 1

    def test_record_without_items_rejected(self, store):
        record = make_record()
        record.items = []

        with pytest.raises(PersistenceFailed):
            store.save_external_order(record)

    def test_active_record_not_replaced(self, store):
        store.save_external_order(make_record())

        with pytest.raises(PersistenceFailed):
            store.save_external_order(make_record(provider_order_id=2))

        assert store.get_external_order("1042").provider_order_id == 1

    def test_terminal_record_replaced(self, store):
        store.save_external_order(make_record(status=ExternalStatus.FAILED))
        store.save_external_order(make_record(provider_order_id=2))

        assert store.get_external_order("1042").provider_order_id == 2


class TestApplyTransition:

    def test_unknown_reference(self, store):
        assert store.apply_transition("missing", StateTransition(external_status="fulfilled")) is None

    def test_both_records_updated(self, store):
        store.save_external_order(make_record())
        store.update_order_status("1042", OrderStatus.PROCESSING)

        result = store.apply_transition("1042", StateTransition(
            external_status=ExternalStatus.FULFILLED,
            external_fields={"tracking_number": "T9"},
            order_status=OrderStatus.COMPLETED,
            order_fields={"tracking_number": "T9"},
        ))

        assert result.order_status_changed is True
        assert result.record.status == "fulfilled"
        assert result.record.updated_at is not None
        assert store.get_external_order("1042").tracking_number == "T9"
        assert store.get_order("1042").status is OrderStatus.COMPLETED

    def test_external_only(self, store):
        store.save_external_order(make_record())

        result = store.apply_transition("1042", StateTransition(external_fields={"costs": {"total": 1}}))

        assert result.order_status_changed is False
        assert result.record.status == "pending"
        assert result.record.costs == {"total": 1}


class TestWebhookLog:

    def test_filter_by_reference(self, store):
        store.append_webhook_event(WebhookEventLog("package_shipped", {}, "1042", True))
        store.append_webhook_event(WebhookEventLog("package_shipped", {}, None, False, "order not found"))

        assert len(store.list_webhook_events()) == 2
        assert [e.processed for e in store.list_webhook_events("1042")] == [True]
