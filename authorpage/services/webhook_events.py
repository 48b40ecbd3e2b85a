"""Webhook event envelope parsing and routing.

Everything here assumes the payload already passed signature verification.

- parse_event: raw JSON -> ParsedEnvelope (type, data.object, object id)
- extract_*: pull cross-referenced ids out of data.object. Stripe sends
  expandable references either as a bare id string or as an expanded object
  with an "id" field; we branch on the decoded JSON kind.
- route_event: known event type -> outcome message. Unknown types are
  acknowledged, not rejected, so Stripe doesn't keep redelivering them.
"""

import json
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedEnvelope:
    type: str
    object_id: str
    raw_object: dict = field(default_factory=dict)


@dataclass(frozen=True)
class RoutedEvent:
    message: str
    handled: bool


def _string_or_empty(value):
    return value if isinstance(value, str) else ""


def parse_event(payload):
    """Decode a verified webhook payload into a ParsedEnvelope.

    Missing `type` becomes "" and missing `data.object` becomes {} so that
    authentic but unexpected payloads are still acknowledged. Returns None
    if the payload is not JSON or its top level is not an object.
    """
    try:
        root = json.loads(payload)
    except (TypeError, ValueError):
        return None

    if not isinstance(root, dict):
        return None

    data = root.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    if not isinstance(obj, dict):
        obj = {}

    return ParsedEnvelope(
        type=_string_or_empty(root.get("type")),
        object_id=_string_or_empty(obj.get("id")),
        raw_object=obj,
    )


def extract_expandable_id(obj, field_name):
    """Resolve an expandable reference (string id or expanded object) to an id."""
    value = obj.get(field_name)
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return _string_or_empty(value.get("id"))
    return ""


def extract_customer_id(obj):
    return extract_expandable_id(obj, "customer")


def extract_subscription_id(obj, event_type, object_id):
    # On customer.subscription.* events the object *is* the subscription
    if event_type.startswith("customer.subscription"):
        return object_id
    return extract_expandable_id(obj, "subscription")


def extract_invoice_id(event_type, object_id):
    if event_type.startswith("invoice."):
        return object_id
    return ""


def extract_payment_intent_id(obj):
    return extract_expandable_id(obj, "payment_intent")


def extract_price_id(obj):
    """Price id of the first invoice line item that carries one."""
    lines = obj.get("lines")
    if not isinstance(lines, dict):
        return ""
    items = lines.get("data")
    if not isinstance(items, list):
        return ""
    for item in items:
        if not isinstance(item, dict):
            continue
        price = item.get("price")
        if isinstance(price, dict) and isinstance(price.get("id"), str):
            return price["id"]
    return ""


# ──────────────────────────────────────────────
# Routing
# ──────────────────────────────────────────────

# event type -> (log level, log description)
HANDLED_EVENTS = {
    "invoice.paid": (logging.INFO, "invoice paid"),
    "invoice.payment_failed": (logging.WARNING, "invoice payment failed"),
    "invoice.finalized": (logging.INFO, "invoice finalized"),
    "customer.subscription.deleted": (logging.INFO, "subscription deleted"),
    "customer.subscription.trial_will_end": (
        logging.INFO, "subscription trial will end"
    ),
}


def route_event(event_type, object_id):
    """Map an event type to its outcome message.

    Known types -> "<type>: <object_id>". Anything else -> "Unhandled: <type>",
    which is still a successful acknowledgment. A verified payload with no
    type at all is reported as "Processed".
    """
    known = HANDLED_EVENTS.get(event_type)
    if known:
        level, description = known
        logger.log(level, f"Stripe webhook: {description} {object_id}")
        return RoutedEvent(message=f"{event_type}: {object_id}", handled=True)

    logger.info(f"Stripe webhook: unhandled event {event_type!r} for object {object_id!r}")
    if not event_type:
        return RoutedEvent(message="Processed", handled=False)
    return RoutedEvent(message=f"Unhandled: {event_type}", handled=False)
