"""Tests for the Flask CLI commands.

Covers:
- flask sign-webhook (configured secret, explicit secret, fixed timestamp)
- flask verify-webhook (accepted and rejected payloads)
"""

from authorpage.services.webhook_signature import compute_signature, verify_signature

PAYLOAD = '{"type":"invoice.paid","data":{"object":{"id":"in_1","customer":"cus_abc"}}}'


def _write_payload(tmp_path, payload=PAYLOAD):
    path = tmp_path / "event.json"
    path.write_text(payload)
    return str(path)


class TestSignWebhook:

    def test_prints_verifiable_header(self, app, tmp_path):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["sign-webhook", _write_payload(tmp_path)])

        assert result.exit_code == 0
        header = result.output.strip()
        assert header.startswith("t=")
        assert verify_signature("whsec_test", PAYLOAD, header).ok is True

    def test_fixed_timestamp_and_secret(self, app, tmp_path):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "sign-webhook", _write_payload(tmp_path),
            "--secret", "whsec_other", "--timestamp", "1700000000",
        ])

        expected = compute_signature("whsec_other", PAYLOAD, 1700000000)
        assert result.output.strip() == f"t=1700000000,v1={expected}"


class TestVerifyWebhook:

    def test_accepted(self, app, tmp_path, sign):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "verify-webhook", _write_payload(tmp_path), sign(PAYLOAD),
        ])

        assert result.exit_code == 0
        assert "Success:     True" in result.output
        assert "invoice.paid: in_1" in result.output
        assert "cus_abc" in result.output

    def test_rejected_exits_non_zero(self, app, tmp_path):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "verify-webhook", _write_payload(tmp_path), "t=100,v1=deadbeef",
        ])

        assert result.exit_code == 1
        assert "Invalid signature" in result.output
