"""
Webhook reconciler.

Applies Printful order lifecycle events to the ExternalOrderRecord and the
local order, and writes exactly one audit row per delivery.

Transition table:

    type              ExternalOrderRecord            LocalOrder
    ----------------  -----------------------------  ---------------------------
    package_shipped   fulfilled + tracking fields    completed + tracking number
    package_returned  returned                       cancelled
    order_failed      failed                         cancelled
    order_updated     status + costs from payload    unchanged
    anything else     unchanged                      unchanged

Rules:
    - Correlation uses data.order.external_id only (== local order id)
    - Deliveries are not ordered; each event is applied on its own payload
    - A completed/cancelled local order never changes status again
    - handle() never raises: Printful must always get its acknowledgment,
      otherwise it keeps redelivering the same event
    - The audit row is written last, after any failure has been caught
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.exceptions import WebhookResolutionFailed
from logging_config import get_logger, order_context
from models.webhook import ProviderEvent, WebhookEventLog, parse_webhook_event
from services.record_store import RecordStore


# Module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class WebhookOutcome:
    """What happened to one delivery (also returned to the HTTP caller)."""

    event_type: str
    processed: bool
    external_reference_id: Optional[str] = None
    order_status: Optional[str] = None
    error_message: Optional[str] = None
    logged: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "processed": self.processed,
            "external_reference_id": self.external_reference_id,
            "order_status": self.order_status,
            "error_message": self.error_message,
            "logged": self.logged,
        }


class WebhookReconciler:
    """Reconciles Printful webhook deliveries against the record store."""

    def __init__(self, store: RecordStore):
        self._store = store

    def handle(self, payload: Any) -> WebhookOutcome:
        """
        Process one webhook delivery.

        Args:
            payload: Parsed JSON body (any shape is accepted)

        Returns:
            WebhookOutcome; never raises
        """
        received_at = datetime.now(timezone.utc)
        event_type = payload.get("type") if isinstance(payload, dict) else None
        event_type = str(event_type) if event_type else "unknown"

        reference_id: Optional[str] = None
        local_order_id: Optional[str] = None
        order_status: Optional[str] = None
        processed = False
        error_message: Optional[str] = None

        try:
            event = parse_webhook_event(payload)
            event_type = event.type
            with order_context(event.external_id):
                reference_id, local_order_id, order_status = self._apply(event, received_at)
            processed = True
        except WebhookResolutionFailed as e:
            logger.warning(f"Webhook {event_type}: {e.message} (external_id={e.external_id})")
            error_message = e.message
        except Exception as e:
            # Any failure becomes an audit row; the delivery is still acknowledged
            logger.error(f"Webhook {event_type} processing failed: {e}", exc_info=True)
            error_message = str(e) or e.__class__.__name__

        entry = WebhookEventLog(
            event_type=event_type,
            payload=payload,
            external_reference_id=reference_id,
            local_order_id=local_order_id,
            processed=processed,
            error_message=error_message,
            received_at=received_at,
            processed_at=datetime.now(timezone.utc) if processed else None,
        )
        logged = self._append_log(entry)

        return WebhookOutcome(
            event_type=event_type,
            processed=processed,
            external_reference_id=reference_id,
            order_status=order_status,
            error_message=error_message,
            logged=logged,
        )

    def record_rejected(self, event_type: str, reason: str, payload: Any = None) -> WebhookOutcome:
        """
        Log a delivery whose body could not be read at all.

        Still one audit row per delivery; nothing is applied.
        """
        logger.warning(f"Webhook delivery rejected ({event_type}): {reason}")
        entry = WebhookEventLog(
            event_type=event_type,
            payload=payload,
            external_reference_id=None,
            processed=False,
            error_message=reason,
        )
        return WebhookOutcome(
            event_type=event_type,
            processed=False,
            error_message=reason,
            logged=self._append_log(entry),
        )

    def _apply(self, event: ProviderEvent, now: datetime):
        """
        Resolve the event's order and apply its transition.

        Returns:
            (reference_id, local_order_id, local order status after the event)

        Raises:
            WebhookResolutionFailed: No record for the event's external_id
        """
        if not event.external_id:
            raise WebhookResolutionFailed(None)

        transition = event.to_transition(now)

        if transition is None:
            # Tolerant reader: resolve for the audit row, change nothing
            record = self._store.get_external_order(event.external_id)
            if record is None:
                raise WebhookResolutionFailed(event.external_id)
            logger.info(f"Unhandled webhook type '{event.type}', recorded without changes")
            order = self._store.get_order(record.local_order_id)
            return (
                record.external_reference_id,
                record.local_order_id,
                order.status.value if order else None,
            )

        result = self._store.apply_transition(event.external_id, transition)
        if result is None:
            raise WebhookResolutionFailed(event.external_id)

        order_status = result.order.status.value if result.order else None
        if transition.order_status is not None and not result.order_status_changed:
            logger.info(
                f"{event.type}: local order stays {order_status} "
                f"(ignored move to {transition.order_status.value})"
            )
        logger.info(
            f"{event.type} applied: printful status={result.record.status}, "
            f"local status={order_status}"
        )
        return result.record.external_reference_id, result.record.local_order_id, order_status

    def _append_log(self, entry: WebhookEventLog) -> bool:
        try:
            self._store.append_webhook_event(entry)
            return True
        except Exception as e:
            logger.critical(
                f"Could not write webhook audit row ({entry.event_type}, "
                f"ref={entry.external_reference_id}): {e}",
                exc_info=True
            )
            return False
