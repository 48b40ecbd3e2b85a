"""Webhooks blueprint — /stripe/webhook

Receives Stripe webhook events. CSRF-exempt.
Raw body is required for signature verification.

Routes:
- POST /stripe/webhook         — verify, parse, route a Stripe event
- GET  /stripe/webhook/health  — liveness + whether a secret is configured
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from authorpage.extensions import limiter
from authorpage.services.telemetry_service import TelemetryService
from authorpage.services.webhook_service import ConfigSecretProvider, StripeWebhookHandler

logger = logging.getLogger(__name__)

webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/stripe")


def _webhook_rate_limit():
    return current_app.config.get("WEBHOOK_RATE_LIMIT", "120 per minute")


def build_webhook_handler(app_config):
    """Wire a StripeWebhookHandler from app config."""
    telemetry = TelemetryService() if app_config.get("TELEMETRY_ENABLED", True) else None
    return StripeWebhookHandler(
        secret_provider=ConfigSecretProvider(app_config),
        telemetry=telemetry,
        tolerance=app_config.get("STRIPE_WEBHOOK_TOLERANCE", 300),
    )


@webhooks_bp.route("/webhook", methods=["POST"])
@limiter.limit(_webhook_rate_limit)
def stripe_webhook():
    """Receive and process a Stripe webhook event.

    1. Get raw body bytes (HMAC is computed over the exact bytes received)
    2. Hand body + Stripe-Signature header to StripeWebhookHandler
    3. 200 on success (including unhandled event types), 400 otherwise

    CSRF is exempted for this blueprint in create_app().
    """
    payload = request.get_data()
    sig_header = request.headers.get("Stripe-Signature")

    handler = build_webhook_handler(current_app.config)
    result = handler.handle(payload, sig_header)

    if result.success:
        return jsonify(result.to_dict()), 200

    logger.warning(f"Webhook rejected: {result.message}")
    return jsonify(result.to_dict()), 400


@webhooks_bp.route("/webhook/health", methods=["GET"])
def webhook_health():
    """Report whether the webhook endpoint can verify signatures.

    Never reveals the secret itself, only whether one is set.
    """
    secret = ConfigSecretProvider(current_app.config).get_webhook_secret()
    return jsonify({"status": "ok", "secret_configured": bool(secret)}), 200
