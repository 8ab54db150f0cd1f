"""HMAC-SHA256 webhook signatures: parsing, freshness, and comparison.

Header format::

    x-ricqchet-signature: t=<unix seconds>,v1=<hex HMAC-SHA256>

The MAC covers ``<timestamp>.<raw body>`` keyed with the signing secret.
Every function here is pure and raises nothing on bad input -- failures
come back as :class:`~ricqchet.protocol.types.ErrorKind` values so the
caller can map them to a transport response.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import time

from ricqchet.protocol.types import (
    DIGEST_HEX_LENGTH,
    MAX_TIMESTAMP,
    SIGNATURE_VERSION,
    ErrorKind,
    ParsedSignature,
)

# Anchored on both ends, ASCII only (``\d`` would also match non-ASCII digits)
_HEADER_RE = re.compile(
    r"t=([0-9]+),"
    + re.escape(SIGNATURE_VERSION)
    + r"=([0-9a-fA-F]{%d})" % DIGEST_HEX_LENGTH
)

_MAX_TIMESTAMP_DIGITS = len(str(MAX_TIMESTAMP))


def _to_bytes(value: bytes | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def parse_signature_header(header: str) -> ParsedSignature | ErrorKind:
    """Parse a raw signature header value.

    Returns a :class:`ParsedSignature` (digest lowercased) or
    ``ErrorKind.INVALID_FORMAT`` for anything outside the grammar,
    including timestamps that do not fit in an unsigned 64-bit integer.
    """
    if not isinstance(header, str):
        return ErrorKind.INVALID_FORMAT

    match = _HEADER_RE.fullmatch(header)
    if match is None:
        return ErrorKind.INVALID_FORMAT

    # Length check first: int() refuses very long digit strings
    digits = match.group(1).lstrip("0") or "0"
    if len(digits) > _MAX_TIMESTAMP_DIGITS:
        return ErrorKind.INVALID_FORMAT
    timestamp = int(digits)
    if timestamp > MAX_TIMESTAMP:
        return ErrorKind.INVALID_FORMAT

    return ParsedSignature(timestamp=timestamp, digest=match.group(2).lower())


def check_freshness(timestamp: int, max_age: int | None) -> ErrorKind | None:
    """Return ``ErrorKind.SIGNATURE_EXPIRED`` if *timestamp* is too old.

    ``max_age=None`` disables the check.  Timestamps in the future are
    accepted (negative age is never "expired").
    """
    if max_age is None:
        return None
    now = int(time.time())
    if now - timestamp <= max_age:
        return None
    return ErrorKind.SIGNATURE_EXPIRED


def signed_message(timestamp: int, payload: bytes | str) -> bytes:
    """Build the exact byte string covered by the MAC."""
    return str(timestamp).encode("ascii") + b"." + _to_bytes(payload)


def compute_signature(
    payload: bytes | str,
    signing_secret: bytes | str,
    timestamp: int,
) -> str:
    """Compute the lowercase hex HMAC-SHA256 digest for a delivery."""
    mac = hmac.new(
        _to_bytes(signing_secret),
        signed_message(timestamp, payload),
        hashlib.sha256,
    )
    return mac.hexdigest()


def secure_compare(a: bytes | str, b: bytes | str) -> bool:
    """Compare two digests without leaking where they differ.

    Unequal lengths are rejected at once; the digest length is fixed by
    the algorithm, so this reveals nothing secret.
    """
    a_bytes = _to_bytes(a)
    b_bytes = _to_bytes(b)
    if len(a_bytes) != len(b_bytes):
        return False
    return hmac.compare_digest(a_bytes, b_bytes)


def verify_hmac(
    payload: bytes | str,
    signing_secret: bytes | str,
    timestamp: int,
    digest: str,
) -> ErrorKind | None:
    """Return ``ErrorKind.INVALID_SIGNATURE`` unless *digest* matches."""
    expected = compute_signature(payload, signing_secret, timestamp)
    if secure_compare(expected, digest.lower()):
        return None
    return ErrorKind.INVALID_SIGNATURE


def format_signature_header(timestamp: int, digest: str) -> str:
    """Render ``t=<timestamp>,v1=<digest>``."""
    return f"t={timestamp},{SIGNATURE_VERSION}={digest}"


def sign_payload(
    payload: bytes | str,
    signing_secret: bytes | str,
    timestamp: int | None = None,
) -> str:
    """Produce a signature header value the way the Ricqchet server does.

    Intended for tests and local tooling.  *timestamp* defaults to now.
    """
    if timestamp is None:
        timestamp = int(time.time())
    digest = compute_signature(payload, signing_secret, timestamp)
    return format_signature_header(timestamp, digest)
