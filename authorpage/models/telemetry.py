"""Telemetry event model.

One row per tracked event (e.g. a verified Stripe webhook). Properties hold
only identifiers and a timestamp, never the raw webhook payload.
"""

import uuid

from authorpage.extensions import db


class TelemetryEvent(db.Model):
    __tablename__ = "telemetry_events"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name = db.Column(db.String(255), nullable=False)  # e.g. "StripeWebhookEvent"
    properties = db.Column(db.JSON, default=dict)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<TelemetryEvent {self.name}>"
