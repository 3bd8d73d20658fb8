"""Stripe-Signature header parsing and HMAC signature utilities."""

import binascii
import hmac
import hashlib
import re
import time
from typing import List, Optional, Sequence, Tuple, Union

from ..errors import InvalidHeader
from ..types import (
    MAX_TIMESTAMP,
    MIN_TIMESTAMP,
    SIGNATURE_SCHEME,
    Secret,
    SignatureHeader,
    as_secrets
)

# Length cap keeps int() cheap; the range check below bounds the value.
_TIMESTAMP = re.compile(r"[+-]?[0-9]{1,32}")


def parse_header(header: Optional[str]) -> SignatureHeader:
    """
    Parse a Stripe-Signature header.

    The header is a comma-separated list of ``key=value`` elements: one
    ``t=<unix seconds>`` timestamp and one or more signatures, each prefixed
    by its scheme::

        t=1492774577,v1=5257a869...,v0=6ffbb59b...

    Only ``v1`` signatures are kept. Other schemes (Stripe sends a fake
    ``v0`` for test-mode events) are skipped, as are ``v1`` values that are
    not valid hex. Several ``v1`` entries appear while an endpoint secret is
    being rolled: Stripe signs once per active secret.

    Args:
        header: Raw header value; None counts as empty

    Returns:
        Parsed header

    Raises:
        InvalidHeader: Header is empty, an element has no ``=``, the
            timestamp is missing, not an integer or outside the
            signed 64-bit range, or no v1 signature is left
    """
    if not header:
        raise InvalidHeader("empty Stripe-Signature header")

    timestamp: Optional[int] = None
    signatures: List[Tuple[str, bytes]] = []

    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if not sep:
            raise InvalidHeader("malformed element in Stripe-Signature header")

        if key == "t":
            if not _TIMESTAMP.fullmatch(value):
                raise InvalidHeader("invalid timestamp in Stripe-Signature header")
            timestamp = int(value)
            if not MIN_TIMESTAMP <= timestamp <= MAX_TIMESTAMP:
                raise InvalidHeader("timestamp out of range in Stripe-Signature header")

        elif key == SIGNATURE_SCHEME:
            try:
                signatures.append((key, binascii.unhexlify(value)))
            except (binascii.Error, ValueError):
                continue

    if timestamp is None:
        raise InvalidHeader("no timestamp in Stripe-Signature header")
    if not signatures:
        raise InvalidHeader(f"no {SIGNATURE_SCHEME} signature in Stripe-Signature header")

    return SignatureHeader(timestamp=timestamp, signatures=tuple(signatures))


def compute_signature(timestamp: int, payload: bytes, secret: Secret) -> bytes:
    """
    Compute the HMAC-SHA256 Stripe signs a delivery with.

    The signed message is ``"<timestamp>.<payload>"``, where payload is the
    request body exactly as sent.
    """
    if isinstance(secret, str):
        secret = secret.encode("utf-8")

    mac = hmac.new(secret, str(int(timestamp)).encode("ascii"), hashlib.sha256)
    mac.update(b".")
    mac.update(payload)
    return mac.digest()


def secure_compare(a: bytes, b: bytes) -> bool:
    """Compare two digests in time independent of where they differ."""
    return hmac.compare_digest(a, b)


def verify_signature(
    payload: bytes,
    header: SignatureHeader,
    secrets: Union[Secret, Sequence[Secret]]
) -> bool:
    """
    Check a parsed header's signatures against the payload.

    Every delivered signature is compared with the expected digest of every
    secret, without stopping at the first match.

    Args:
        payload: Raw request body
        header: Parsed Stripe-Signature header
        secrets: Signing secret, or several during secret rotation

    Returns:
        True if any signature matches any secret
    """
    expected = [
        compute_signature(header.timestamp, payload, secret)
        for secret in as_secrets(secrets)
    ]

    found = False
    for candidate in header.digests:
        for digest in expected:
            if secure_compare(candidate, digest):
                found = True
    return found


def generate_header(
    payload: bytes,
    secret: Secret,
    timestamp: Optional[int] = None,
    scheme: str = SIGNATURE_SCHEME
) -> str:
    """
    Build a Stripe-Signature header value for a payload.

    Useful for tests and local tooling that needs to send deliveries.
    """
    if timestamp is None:
        timestamp = int(time.time())

    digest = compute_signature(timestamp, payload, secret)
    return f"t={timestamp},{scheme}={binascii.hexlify(digest).decode('ascii')}"
