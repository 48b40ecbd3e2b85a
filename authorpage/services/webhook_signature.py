"""Stripe webhook signature verification.

Responsible for:
- Parsing the Stripe-Signature header (t=<seconds>,v1=<hex>[,v1=<hex>...])
- Computing HMAC-SHA256 over "<t>.<raw payload>" with the webhook secret
- Matching against every v1 candidate (secret rotation sends several)
- Enforcing the timestamp tolerance window

Failures are returned as a VerificationResult, never raised. A malformed
header, a digest mismatch, and a stale timestamp all surface as
INVALID_SIGNATURE; only the internal `reason` (for logs) tells them apart.
"""

import enum
import hashlib
import hmac
import time
from dataclasses import dataclass

DEFAULT_TOLERANCE = 300  # 5 minutes
SIGNATURE_SCHEME = "v1"


class SignatureError(enum.Enum):
    EMPTY_PAYLOAD = "empty_payload"
    MISSING_SIGNATURE = "missing_signature"
    INVALID_SIGNATURE = "invalid_signature"


@dataclass(frozen=True)
class SignatureHeader:
    timestamp: int
    signatures: tuple


@dataclass(frozen=True)
class VerificationResult:
    ok: bool
    timestamp: int | None = None
    error: SignatureError | None = None
    reason: str = ""

    @classmethod
    def failure(cls, error, reason=""):
        return cls(ok=False, error=error, reason=reason or error.value)


def _to_bytes(payload):
    if isinstance(payload, bytes):
        return payload
    return payload.encode("utf-8")


def _is_blank(value):
    return value is None or not value.strip()


def parse_signature_header(sig_header):
    """Parse a Stripe-Signature header into a SignatureHeader.

    Returns None when the header is malformed: no `t`, more than one `t`,
    a non-numeric `t`, or no v1 entries. Segments without "=" and unknown
    schemes (e.g. v0) are ignored.
    """
    timestamps = []
    signatures = []

    for segment in sig_header.split(","):
        key, sep, value = segment.strip().partition("=")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()
        if key == "t":
            timestamps.append(value)
        elif key == SIGNATURE_SCHEME and value:
            signatures.append(value)

    if len(timestamps) != 1 or not signatures:
        return None
    if not timestamps[0].isascii() or not timestamps[0].isdigit():
        return None

    return SignatureHeader(timestamp=int(timestamps[0]), signatures=tuple(signatures))


def compute_signature(secret, payload, timestamp):
    """Lowercase hex HMAC-SHA256 of "<timestamp>.<payload>" keyed by secret."""
    signed_payload = f"{timestamp}.".encode("utf-8") + _to_bytes(payload)
    return hmac.new(
        secret.encode("utf-8"), signed_payload, hashlib.sha256
    ).hexdigest()


def generate_signature_header(secret, payload, timestamp=None):
    """Build a Stripe-Signature header value for a payload.

    Used by the `flask sign-webhook` command and the test suite.
    """
    if timestamp is None:
        timestamp = int(time.time())
    signature = compute_signature(secret, payload, timestamp)
    return f"t={timestamp},{SIGNATURE_SCHEME}={signature}"


def verify_signature(secret, payload, sig_header, now=None,
                     tolerance=DEFAULT_TOLERANCE) -> VerificationResult:
    """Authenticate a webhook payload against its Stripe-Signature header.

    `payload` must be the raw request body exactly as received (str or
    bytes); re-serialized JSON will not verify. `now` defaults to the
    current unix time.
    """
    if _is_blank(payload):
        return VerificationResult.failure(SignatureError.EMPTY_PAYLOAD)
    if _is_blank(sig_header):
        return VerificationResult.failure(SignatureError.MISSING_SIGNATURE)

    header = parse_signature_header(sig_header)
    if header is None:
        return VerificationResult.failure(
            SignatureError.INVALID_SIGNATURE, "malformed_header"
        )

    expected = compute_signature(secret, payload, header.timestamp).encode("ascii")
    matched = False
    for candidate in header.signatures:
        # compare_digest rejects non-ASCII str, so compare as bytes
        if hmac.compare_digest(expected, candidate.encode("utf-8")):
            matched = True
            break

    if not matched:
        return VerificationResult.failure(
            SignatureError.INVALID_SIGNATURE, "signature_mismatch"
        )

    if now is None:
        now = time.time()
    if abs(int(now) - header.timestamp) > tolerance:
        return VerificationResult.failure(
            SignatureError.INVALID_SIGNATURE, "timestamp_outside_tolerance"
        )

    return VerificationResult(ok=True, timestamp=header.timestamp)
