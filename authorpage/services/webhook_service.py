"""Stripe webhook service — the single entry point for inbound callbacks.

Pipeline (forward-only, stops at the first failure):
    verify signature -> parse envelope -> extract ids -> route -> telemetry

Nothing in the payload is read until the signature checks out. Every
outcome, good or bad, comes back as a WebhookResult; the HTTP layer maps
success to 200 and failure to 400. Bad signatures and stale timestamps
share the message "Invalid signature".

No idempotency tracking here: Stripe may redeliver the same event, and
consumers of the result dedupe by object id if they need to.
"""

import logging
import time
from dataclasses import dataclass, field

from authorpage.services.webhook_events import (
    extract_customer_id,
    extract_invoice_id,
    extract_payment_intent_id,
    extract_price_id,
    extract_subscription_id,
    parse_event,
    route_event,
)
from authorpage.services.webhook_signature import (
    DEFAULT_TOLERANCE,
    SignatureError,
    verify_signature,
)

logger = logging.getLogger(__name__)

MSG_EMPTY_PAYLOAD = "Empty payload"
MSG_MISSING_SIGNATURE = "Missing Stripe-Signature header"
MSG_SECRET_NOT_CONFIGURED = "Webhook secret not configured"
MSG_INVALID_SIGNATURE = "Invalid signature"
MSG_INVALID_PAYLOAD = "Invalid payload"
MSG_UNEXPECTED_ERROR = "Exception while processing webhook"

_SIGNATURE_MESSAGES = {
    SignatureError.EMPTY_PAYLOAD: MSG_EMPTY_PAYLOAD,
    SignatureError.MISSING_SIGNATURE: MSG_MISSING_SIGNATURE,
    SignatureError.INVALID_SIGNATURE: MSG_INVALID_SIGNATURE,
}


@dataclass(frozen=True)
class WebhookEvent:
    """A verified, parsed webhook event. Lives for one request."""

    type: str
    object_id: str
    customer_id: str
    raw_object: dict = field(default_factory=dict)
    subscription_id: str = ""
    invoice_id: str = ""
    payment_intent_id: str = ""
    price_id: str = ""


@dataclass(frozen=True)
class WebhookResult:
    success: bool
    message: str
    customer_id: str = ""
    event_type: str = ""
    object_id: str = ""
    price_id: str = ""

    def to_dict(self):
        return {
            "success": self.success,
            "message": self.message,
            "customer_id": self.customer_id,
            "event_type": self.event_type,
            "object_id": self.object_id,
            "price_id": self.price_id,
        }


def _failure(message):
    return WebhookResult(success=False, message=message)


class ConfigSecretProvider:
    """Reads the webhook signing secret from a Flask config mapping."""

    def __init__(self, config, key="STRIPE_WEBHOOK_SECRET"):
        self.config = config
        self.key = key

    def get_webhook_secret(self):
        return self.config.get(self.key) or ""


class StripeWebhookHandler:
    """Authenticate, parse, and route one Stripe webhook delivery.

    Args:
        secret_provider: object with get_webhook_secret() -> str.
        telemetry:       optional object with track_webhook_event(...).
                         Best-effort: its failures are logged, never returned.
        tolerance:       max seconds between the signed timestamp and now.
        clock:           returns the current unix time (injectable for tests).
    """

    def __init__(self, secret_provider, telemetry=None,
                 tolerance=DEFAULT_TOLERANCE, clock=time.time):
        self.secret_provider = secret_provider
        self.telemetry = telemetry
        self.tolerance = tolerance
        self.clock = clock

    def handle(self, payload, sig_header) -> WebhookResult:
        """Process a raw webhook body and its Stripe-Signature header."""
        if payload is None or not payload.strip():
            return _failure(MSG_EMPTY_PAYLOAD)
        if sig_header is None or not sig_header.strip():
            return _failure(MSG_MISSING_SIGNATURE)

        try:
            return self._handle_verified_request(payload, sig_header)
        except Exception as e:
            logger.error(f"Error processing webhook payload: {e}", exc_info=True)
            return _failure(MSG_UNEXPECTED_ERROR)

    def _handle_verified_request(self, payload, sig_header):
        secret = self.secret_provider.get_webhook_secret()
        if not secret:
            logger.warning("Stripe webhook secret is not configured.")
            return _failure(MSG_SECRET_NOT_CONFIGURED)

        verification = verify_signature(
            secret, payload, sig_header,
            now=self.clock(), tolerance=self.tolerance,
        )
        if not verification.ok:
            logger.warning(f"Webhook signature verification failed: {verification.reason}")
            return _failure(_SIGNATURE_MESSAGES[verification.error])

        event = self.parse(payload)
        if event is None:
            logger.warning("Verified webhook payload is not a JSON object")
            return _failure(MSG_INVALID_PAYLOAD)

        routed = route_event(event.type, event.object_id)
        self._track(event)

        return WebhookResult(
            success=True,
            message=routed.message,
            customer_id=event.customer_id,
            event_type=event.type,
            object_id=event.object_id,
            price_id=event.price_id,
        )

    @staticmethod
    def parse(payload):
        """Build a WebhookEvent from a verified payload, or None if unparseable."""
        envelope = parse_event(payload)
        if envelope is None:
            return None

        obj = envelope.raw_object
        return WebhookEvent(
            type=envelope.type,
            object_id=envelope.object_id,
            customer_id=extract_customer_id(obj),
            raw_object=obj,
            subscription_id=extract_subscription_id(
                obj, envelope.type, envelope.object_id
            ),
            invoice_id=extract_invoice_id(envelope.type, envelope.object_id),
            payment_intent_id=extract_payment_intent_id(obj),
            price_id=extract_price_id(obj),
        )

    def _track(self, event):
        """Emit telemetry for a routed event. Never lets a failure escape."""
        if self.telemetry is None:
            return
        try:
            self.telemetry.track_webhook_event(
                event.type,
                event.object_id,
                customer_id=event.customer_id,
                subscription_id=event.subscription_id,
                invoice_id=event.invoice_id,
                payment_intent_id=event.payment_intent_id,
                price_id=event.price_id,
            )
        except Exception as e:
            # Telemetry must never change the webhook outcome
            logger.error(f"Failed to track webhook event {event.type}: {e}", exc_info=True)
