"""Telemetry service — records billing events in telemetry_events.

Each event is stored with a stable name and a flat dict of string
properties (ids only, never payloads or secrets) so dashboards can chart
webhook traffic by type, customer, and subscription.
"""

import logging
from datetime import datetime, timezone

from authorpage.extensions import db
from authorpage.models.telemetry import TelemetryEvent

logger = logging.getLogger(__name__)

WEBHOOK_EVENT_RECEIVED = "StripeWebhookEvent"


class TelemetryService:
    """Writes TelemetryEvent rows through the Flask-SQLAlchemy session."""

    def track_event(self, name, properties):
        """Persist one telemetry event.

        Rolls back and re-raises on database errors; callers decide whether
        a telemetry failure matters.
        """
        properties = dict(properties)
        properties["Timestamp"] = datetime.now(timezone.utc).isoformat()
        try:
            db.session.add(TelemetryEvent(name=name, properties=properties))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def track_webhook_event(self, event_type, object_id, customer_id=None,
                            subscription_id=None, invoice_id=None,
                            payment_intent_id=None, price_id=None):
        """Track a verified Stripe webhook. Optional ids are only stored when non-empty."""
        properties = {
            "EventType": event_type or "",
            "ObjectId": object_id or "",
        }
        optional = {
            "CustomerId": customer_id,
            "SubscriptionId": subscription_id,
            "InvoiceId": invoice_id,
            "PaymentIntentId": payment_intent_id,
            "PriceId": price_id,
        }
        properties.update({k: v for k, v in optional.items() if v})

        self.track_event(WEBHOOK_EVENT_RECEIVED, properties)
        logger.debug(
            f"Tracked {WEBHOOK_EVENT_RECEIVED} of type {event_type} for object {object_id}"
        )
