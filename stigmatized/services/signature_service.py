"""Authentication of inbound webhook deliveries.

The platform signs every POST body with the app secret and sends the digest
in ``X-Hub-Signature`` (sha1) and ``X-Hub-Signature-256`` (sha256) as
``"<algo>=<hex-digest>"``. The digest must be computed over the raw request
bytes, never over re-serialized JSON.
"""

import hashlib
import hmac
from typing import Optional

from stigmatized.logging_config import get_logger

logger = get_logger("signature_service")

SUPPORTED_ALGORITHMS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
}


class AuthenticationError(Exception):
    def __init__(self, message: str, missing: bool = False):
        self.message = message
        self.missing = missing
        super().__init__(message)


def sign_body(body: bytes, secret: str, algorithm: str = "sha1") -> str:
    """Build a signature header value for body."""
    digestmod = SUPPORTED_ALGORITHMS[algorithm]
    digest = hmac.new(secret.encode("utf-8"), body, digestmod).hexdigest()
    return f"{algorithm}={digest}"


def _parse_header(header: str) -> Optional[tuple[str, str]]:
    algorithm, sep, digest = header.partition("=")
    if not sep or not digest or not digest.isascii():
        return None
    return algorithm, digest


def verify_signature(body: bytes, header: Optional[str], secret: str) -> bool:
    """Check that header carries the HMAC of body under secret."""
    if not header or not secret:
        return False

    parsed = _parse_header(header)
    if parsed is None:
        return False

    algorithm, digest = parsed
    digestmod = SUPPORTED_ALGORITHMS.get(algorithm)
    if digestmod is None:
        logger.warning(f"Unsupported signature algorithm: {algorithm}")
        return False

    expected = hmac.new(secret.encode("utf-8"), body, digestmod).hexdigest()
    return hmac.compare_digest(expected, digest)


def select_signature_header(headers) -> Optional[str]:
    """Prefer the sha256 header when the platform sends both."""
    return headers.get("x-hub-signature-256") or headers.get("x-hub-signature")


def require_valid_signature(body: bytes, header: Optional[str], secret: str) -> None:
    """Raise AuthenticationError unless body is signed with secret."""
    if not header:
        raise AuthenticationError("Missing request signature", missing=True)
    if not verify_signature(body, header, secret):
        raise AuthenticationError("Couldn't validate the request signature")


def verify_subscription(
    mode: Optional[str],
    token: Optional[str],
    challenge: Optional[str],
    expected_token: str,
) -> Optional[str]:
    """Return the challenge to echo back, or None if the handshake is invalid."""
    if mode != "subscribe" or not token or not expected_token:
        return None
    if not hmac.compare_digest(token.encode("utf-8"), expected_token.encode("utf-8")):
        return None
    return challenge or ""
