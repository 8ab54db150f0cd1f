"""FastAPI/Starlette integration for Ricqchet webhook verification.

Reads the raw request bytes before any body parsing, then runs the
synchronous verifier::

    from fastapi import Depends, FastAPI, Request
    from ricqchet.protocol import Verified
    from ricqchet.sdk.webhook import RicqchetWebhook

    app = FastAPI()
    ricqchet_webhook = RicqchetWebhook()  # RICQCHET_SIGNING_SECRET

    @app.post("/webhooks/ricqchet")
    async def receive(request: Request, delivery: Verified = Depends(ricqchet_webhook)):
        payload = request.state.raw_body
        ...

A rejected delivery raises ``HTTPException(401)`` with the rejection
kind as ``detail``.  Requires the ``fastapi`` extra.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from starlette.requests import ClientDisconnect

from ricqchet.protocol.errors import BodyAcquisitionError, BodyReadError, BodyTooLargeError
from ricqchet.protocol.types import (
    SIGNATURE_HEADER,
    ErrorKind,
    Rejected,
    VerificationOutcome,
    Verified,
)
from ricqchet.sdk.config import VerifierConfig
from ricqchet.sdk.verification import Verifier, header_values

logger = logging.getLogger(__name__)

# 8 MB, a common reverse-proxy default
DEFAULT_MAX_BODY_SIZE = 8_000_000


async def read_raw_body(request: Request, max_size: int = DEFAULT_MAX_BODY_SIZE) -> bytes:
    """Return the exact request bytes, caching them on ``request.state.raw_body``.

    Raises:
        BodyTooLargeError: Declared or streamed size exceeds *max_size*.
        BodyReadError: The client disconnected, the stream was already
            consumed elsewhere, or ``Content-Length`` is malformed.
    """
    cached = getattr(request.state, "raw_body", None)
    if cached is not None:
        return cached

    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            declared_size = int(declared)
        except ValueError:
            raise BodyReadError("Malformed Content-Length header") from None
        if declared_size > max_size:
            raise BodyTooLargeError(f"Declared body size {declared_size} exceeds {max_size}")

    chunks: list[bytes] = []
    size = 0
    try:
        async for chunk in request.stream():
            size += len(chunk)
            if size > max_size:
                raise BodyTooLargeError(f"Body exceeds {max_size} bytes")
            chunks.append(chunk)
    except ClientDisconnect as exc:
        raise BodyReadError("Client disconnected while sending body") from exc
    except RuntimeError as exc:
        # Starlette: "Stream consumed" when something read it without caching
        raise BodyReadError(str(exc)) from exc

    body = b"".join(chunks)
    request.state.raw_body = body
    return body


class RicqchetWebhook:
    """FastAPI dependency that verifies Ricqchet deliveries.

    Pass a :class:`VerifierConfig` or a ready :class:`Verifier`.  With
    neither, the config is built from the environment on first use so the
    dependency can be declared at import time.
    """

    def __init__(
        self,
        config: VerifierConfig | None = None,
        *,
        verifier: Verifier | None = None,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
    ) -> None:
        if verifier is None and config is not None:
            verifier = Verifier(config)
        self._verifier = verifier
        self._max_body_size = max_body_size

    @property
    def verifier(self) -> Verifier:
        if self._verifier is None:
            self._verifier = Verifier(VerifierConfig())
        return self._verifier

    async def verify(self, request: Request) -> VerificationOutcome:
        """Run the full pipeline against a Starlette request."""
        verifier = self.verifier

        signatures = header_values(request.headers, SIGNATURE_HEADER)
        if not signatures:
            return Rejected(ErrorKind.MISSING_SIGNATURE)
        if len(signatures) > 1:
            return Rejected(ErrorKind.INVALID_FORMAT)

        try:
            body = await read_raw_body(request, self._max_body_size)
        except BodyAcquisitionError as exc:
            logger.debug("Could not read webhook body: %s", exc)
            return Rejected(exc.kind)

        return verifier.verify(request.headers, body)

    async def __call__(self, request: Request) -> Verified:
        outcome = await self.verify(request)
        if isinstance(outcome, Rejected):
            logger.info(
                "Rejected Ricqchet delivery on %s: %s",
                request.url.path,
                outcome.kind.value,
            )
            raise HTTPException(status_code=401, detail=outcome.kind.value)
        return outcome
