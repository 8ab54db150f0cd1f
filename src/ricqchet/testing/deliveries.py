"""Build signed webhook deliveries for exercising receiver code."""

from __future__ import annotations

from ricqchet.protocol.signature import sign_payload
from ricqchet.protocol.types import (
    ATTEMPT_HEADER,
    BATCH_ID_HEADER,
    MESSAGE_ID_HEADER,
    SIGNATURE_HEADER,
)


def signed_headers(
    payload: bytes | str,
    signing_secret: bytes | str,
    *,
    timestamp: int | None = None,
    message_id: str | None = None,
    batch_id: str | None = None,
    attempt: int | None = None,
) -> dict[str, str]:
    """Return the headers Ricqchet would send with *payload*.

    Example::

        body = b'{"event":"order.created"}'
        resp = client.post("/webhook", content=body, headers=signed_headers(body, secret))
    """
    headers = {SIGNATURE_HEADER: sign_payload(payload, signing_secret, timestamp)}
    if message_id is not None:
        headers[MESSAGE_ID_HEADER] = message_id
    if batch_id is not None:
        headers[BATCH_ID_HEADER] = batch_id
    if attempt is not None:
        headers[ATTEMPT_HEADER] = str(attempt)
    return headers
