"""Verification of Slack request signatures.

Slack signs every request with HMAC-SHA256 over ``v0:{timestamp}:{body}``
using the app's signing secret and sends the result as ``v0=<hex>`` in the
``X-Slack-Signature`` header. Requests older (or newer) than five minutes
are refused so that captured requests cannot be replayed.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional, Union

from app.errors import AuthenticationError

_LOGGER = logging.getLogger(__name__)

TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
SIGNATURE_HEADER = "X-Slack-Signature"
REPLAY_WINDOW_SECONDS = 300
SIGNATURE_VERSION = "v0"

_TIMESTAMP_RE = re.compile(r"-?[0-9]+")


@dataclass(frozen=True, slots=True)
class SlackRequestHeaders:
    request_timestamp: int
    request_signature: str
    # Header value exactly as received; the signature is computed over it.
    raw_timestamp: str


def validate_request_headers(
    timestamp: Optional[str],
    signature: Optional[str],
    *,
    now: Optional[float] = None,
) -> SlackRequestHeaders:
    """Check that both headers are present and the timestamp is fresh."""

    if timestamp is None:
        raise AuthenticationError(f"Missing {TIMESTAMP_HEADER} in request")
    if not _TIMESTAMP_RE.fullmatch(timestamp):
        _LOGGER.warning("Could not parse timestamp=%r", timestamp)
        raise AuthenticationError(f"Invalid {TIMESTAMP_HEADER} in request")
    request_time = int(timestamp)

    local_time = int(time.time() if now is None else now)
    drift = abs(local_time - request_time)
    if drift > REPLAY_WINDOW_SECONDS:
        _LOGGER.warning(
            "Expired timestamp request_time=%s local_time=%s drift=%s",
            request_time,
            local_time,
            drift,
        )
        raise AuthenticationError(f"Expired {TIMESTAMP_HEADER} in request")

    if not signature:
        _LOGGER.warning("Missing slack signature header")
        raise AuthenticationError(f"Missing {SIGNATURE_HEADER} in request")

    return SlackRequestHeaders(
        request_timestamp=request_time,
        request_signature=signature,
        raw_timestamp=timestamp,
    )


def compute_signature(secret: str, timestamp: Union[int, str], body: Union[str, bytes]) -> str:
    if isinstance(body, str):
        body = body.encode("utf-8")
    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + body
    digest = hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def validate_slack_signature(
    secret: str, signature: str, body: Union[str, bytes], timestamp: Union[int, str]
) -> None:
    """Raise ``AuthenticationError`` unless ``signature`` matches the body."""

    if not secret:
        raise AuthenticationError("Signing secret is not configured")
    expected = compute_signature(secret, timestamp, body)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        _LOGGER.warning("Unable to verify signature for incoming request timestamp=%s", timestamp)
        raise AuthenticationError("Could not verify slack request signature")


def verify_slack_request(
    timestamp: Optional[str],
    signature: Optional[str],
    body: Union[str, bytes],
    secret: str,
    *,
    now: Optional[float] = None,
) -> SlackRequestHeaders:
    """Run both checks; the request is authentic only if this returns."""

    headers = validate_request_headers(timestamp, signature, now=now)
    validate_slack_signature(secret, headers.request_signature, body, headers.raw_timestamp)
    return headers


__all__ = [
    "REPLAY_WINDOW_SECONDS",
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "SlackRequestHeaders",
    "compute_signature",
    "validate_request_headers",
    "validate_slack_signature",
    "verify_slack_request",
]
