"""Tests for the telemetry service and config-backed secret provider."""

from unittest.mock import patch

import pytest

from authorpage.extensions import db
from authorpage.models.telemetry import TelemetryEvent
from authorpage.services.telemetry_service import TelemetryService
from authorpage.services.webhook_service import ConfigSecretProvider


class TestTelemetryService:

    def test_only_non_empty_ids_are_stored(self, app):
        with app.app_context():
            TelemetryService().track_webhook_event(
                "invoice.paid", "in_1", customer_id="cus_1", subscription_id="",
                invoice_id="in_1", payment_intent_id=None, price_id="price_1",
            )

            event = TelemetryEvent.query.one()
            assert event.name == "StripeWebhookEvent"
            assert set(event.properties) == {
                "EventType", "ObjectId", "CustomerId", "InvoiceId", "PriceId", "Timestamp",
            }

    def test_rolls_back_and_reraises_on_commit_failure(self, app):
        with app.app_context():
            with patch.object(db.session, "commit", side_effect=RuntimeError("boom")):
                with pytest.raises(RuntimeError):
                    TelemetryService().track_event("StripeWebhookEvent", {"EventType": "x"})

            assert TelemetryEvent.query.count() == 0


class TestConfigSecretProvider:

    def test_reads_secret(self):
        provider = ConfigSecretProvider({"STRIPE_WEBHOOK_SECRET": "whsec_abc"})
        assert provider.get_webhook_secret() == "whsec_abc"

    def test_missing_secret_is_empty_string(self):
        assert ConfigSecretProvider({"STRIPE_WEBHOOK_SECRET": None}).get_webhook_secret() == ""
        assert ConfigSecretProvider({}).get_webhook_secret() == ""

    def test_custom_key(self):
        provider = ConfigSecretProvider({"ALT_SECRET": "whsec_alt"}, key="ALT_SECRET")
        assert provider.get_webhook_secret() == "whsec_alt"
