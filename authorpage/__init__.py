import os
import logging
from pathlib import Path

import click
from flask import Flask, jsonify

from authorpage.config import config_by_name
from authorpage.extensions import db, migrate, csrf, limiter


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from authorpage import models  # noqa: F401

    # --- Register blueprints ---
    from authorpage.blueprints.webhooks import webhooks_bp

    app.register_blueprint(webhooks_bp)

    # Exempt webhooks from CSRF — Stripe authenticates by signature, not session
    csrf.exempt(webhooks_bp)

    # --- Error handlers ---
    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({"success": False, "message": "Bad request"}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"success": False, "message": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"success": False, "message": "Method not allowed"}), 405

    @app.errorhandler(429)
    def too_many_requests(e):
        return jsonify({"success": False, "message": "Too many requests"}), 429

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({"success": False, "message": "Internal server error"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("sign-webhook")
    @click.argument("payload_file", type=click.Path(exists=True, dir_okay=False))
    @click.option("--secret", default=None, help="Signing secret (defaults to STRIPE_WEBHOOK_SECRET).")
    @click.option("--timestamp", type=int, default=None, help="Unix timestamp to sign with (defaults to now).")
    def sign_webhook(payload_file, secret, timestamp):
        """Print a Stripe-Signature header for a stored webhook payload.

        Handy for replaying a payload against a local server:

            curl -X POST http://localhost:5001/stripe/webhook \\
                -H "Stripe-Signature: $(flask sign-webhook event.json)" \\
                --data-binary @event.json
        """
        from authorpage.services.webhook_signature import generate_signature_header

        secret = secret or app.config.get("STRIPE_WEBHOOK_SECRET")
        if not secret:
            raise click.ClickException("STRIPE_WEBHOOK_SECRET is not set.")

        payload = Path(payload_file).read_bytes()
        click.echo(generate_signature_header(secret, payload, timestamp))

    @app.cli.command("verify-webhook")
    @click.argument("payload_file", type=click.Path(exists=True, dir_okay=False))
    @click.argument("signature")
    def verify_webhook(payload_file, signature):
        """Run a stored payload + Stripe-Signature header through the handler.

        Telemetry is not recorded. Exits non-zero if the webhook would be rejected.
        """
        from authorpage.services.webhook_service import (
            ConfigSecretProvider,
            StripeWebhookHandler,
        )

        handler = StripeWebhookHandler(
            secret_provider=ConfigSecretProvider(app.config),
            tolerance=app.config.get("STRIPE_WEBHOOK_TOLERANCE", 300),
        )
        result = handler.handle(Path(payload_file).read_bytes(), signature)

        click.echo(f"  Success:     {result.success}")
        click.echo(f"  Message:     {result.message}")
        click.echo(f"  Event type:  {result.event_type or '(none)'}")
        click.echo(f"  Object:      {result.object_id or '(none)'}")
        click.echo(f"  Customer:    {result.customer_id or '(none)'}")
        if not result.success:
            raise SystemExit(1)
