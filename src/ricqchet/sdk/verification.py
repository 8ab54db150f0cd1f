"""Receiver-side webhook verification for Ricqchet deliveries.

Pipeline (first failure wins)::

    header lookup -> body acquisition -> parse -> freshness -> HMAC -> metadata

Nothing here raises for a bad delivery: every failure is returned as a
:class:`~ricqchet.protocol.types.Rejected` outcome.  Map it to a 401 (or
similar) in your handler.

Usage::

    from ricqchet.sdk.verification import Verifier
    from ricqchet.sdk.config import EnvVar, VerifierConfig

    verifier = Verifier(VerifierConfig(signing_secret=EnvVar("RICQCHET_SIGNING_SECRET")))

    outcome = verifier.verify(request.headers, raw_body)
    if not outcome:
        return Response(status_code=401)
    handle(outcome.metadata.message_id)

The pipeline keeps no state between calls and is safe to run from any
number of threads at once.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable, Mapping, Union

from ricqchet.protocol.errors import BodyAcquisitionError, ConfigurationError
from ricqchet.protocol.signature import (
    check_freshness,
    parse_signature_header,
    verify_hmac,
)
from ricqchet.protocol.types import (
    ATTEMPT_HEADER,
    BATCH_ID_HEADER,
    MESSAGE_ID_HEADER,
    SIGNATURE_HEADER,
    DeliveryMetadata,
    ErrorKind,
    Rejected,
    VerificationOutcome,
    VerificationPolicy,
    Verified,
)
from ricqchet.sdk.config import VerifierConfig

logger = logging.getLogger(__name__)

Headers = Union[Mapping[str, Any], Iterable[tuple[str, str]]]
BodySource = Union[bytes, bytearray, memoryview, str, Callable[[], bytes]]

_DEFAULT_POLICY = VerificationPolicy()

# Same ASCII-only digit rule as the signature timestamp
_ATTEMPT_RE = re.compile(r"[0-9]+")


def header_values(headers: Headers, name: str) -> list[str]:
    """Return every value of header *name*, matched case-insensitively.

    Understands multi-value containers (Starlette/Werkzeug ``getlist``,
    httpx ``get_list``), plain mappings and lists of ``(name, value)``
    pairs.
    """
    getlist = getattr(headers, "getlist", None) or getattr(headers, "get_list", None)
    if callable(getlist):
        return list(getlist(name))

    items = headers.items() if isinstance(headers, Mapping) else headers
    wanted = name.lower()
    values: list[str] = []
    for key, value in items:
        if key.lower() != wanted:
            continue
        if isinstance(value, (list, tuple)):
            values.extend(value)
        else:
            values.append(value)
    return values


def _single_header(headers: Headers, name: str) -> str | None:
    values = header_values(headers, name)
    if len(values) == 1:
        return values[0]
    return None


def _parse_attempt(raw: str | None) -> int | None:
    if raw is None:
        return None
    raw = raw.strip()
    if _ATTEMPT_RE.fullmatch(raw) is None:
        logger.debug("Ignoring malformed %s header", ATTEMPT_HEADER)
        return None
    return int(raw)


def extract_metadata(headers: Headers) -> DeliveryMetadata:
    """Read the unsigned delivery headers.

    Absent or repeated headers map to ``None``; a non-integer attempt
    count is ignored rather than treated as an error.
    """
    return DeliveryMetadata(
        message_id=_single_header(headers, MESSAGE_ID_HEADER),
        batch_id=_single_header(headers, BATCH_ID_HEADER),
        attempt=_parse_attempt(_single_header(headers, ATTEMPT_HEADER)),
    )


def _acquire_body(body: BodySource) -> bytes | ErrorKind:
    if callable(body):
        try:
            body = body()
        except BodyAcquisitionError as exc:
            return exc.kind
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def _require_secret(signing_secret: bytes | str | None) -> None:
    if signing_secret is None:
        raise ConfigurationError("signing_secret is required")


def _reject(kind: ErrorKind) -> Rejected:
    logger.debug("Webhook delivery rejected: %s", kind.value)
    return Rejected(kind)


def _verify_signature(
    signature_header: str,
    payload: bytes,
    signing_secret: bytes | str,
    policy: VerificationPolicy,
) -> int | ErrorKind:
    parsed = parse_signature_header(signature_header)
    if isinstance(parsed, ErrorKind):
        return parsed

    failure = check_freshness(parsed.timestamp, policy.max_age)
    if failure is not None:
        return failure

    failure = verify_hmac(payload, signing_secret, parsed.timestamp, parsed.digest)
    if failure is not None:
        return failure

    return parsed.timestamp


def verify_request(
    headers: Headers,
    body: BodySource,
    signing_secret: bytes | str,
    policy: VerificationPolicy | None = None,
) -> VerificationOutcome:
    """Verify a full webhook request.

    Args:
        headers: Request headers (any container :func:`header_values`
            understands).
        body: Raw request bytes, or a zero-argument callable returning
            them.  The callable may raise ``BodyTooLargeError`` or
            ``BodyReadError``; those become the matching rejection kind.
        signing_secret: The resolved signing secret.
        policy: Freshness policy (default: 300 second window).

    Returns:
        ``Verified`` with the signed timestamp and delivery metadata, or
        ``Rejected`` with the first failing reason.

    Raises:
        ConfigurationError: *signing_secret* is ``None``.  A missing
            secret is a deployment error, never a rejected delivery.
    """
    _require_secret(signing_secret)
    policy = policy or _DEFAULT_POLICY

    signatures = header_values(headers, SIGNATURE_HEADER)
    if not signatures:
        return _reject(ErrorKind.MISSING_SIGNATURE)
    if len(signatures) > 1:
        return _reject(ErrorKind.INVALID_FORMAT)

    payload = _acquire_body(body)
    if isinstance(payload, ErrorKind):
        return _reject(payload)

    result = _verify_signature(signatures[0], payload, signing_secret, policy)
    if isinstance(result, ErrorKind):
        return _reject(result)

    return Verified(timestamp=result, metadata=extract_metadata(headers))


def verify_payload(
    signature_header: str,
    payload: bytes | str,
    signing_secret: bytes | str,
    policy: VerificationPolicy | None = None,
) -> VerificationOutcome:
    """Verify a signature header against a raw payload.

    Useful outside a request handler (queues, archived deliveries).  No
    headers are available here, so a successful outcome carries empty
    metadata.
    """
    _require_secret(signing_secret)
    policy = policy or _DEFAULT_POLICY
    if isinstance(payload, str):
        payload = payload.encode("utf-8")

    result = _verify_signature(signature_header, payload, signing_secret, policy)
    if isinstance(result, ErrorKind):
        return _reject(result)
    return Verified(timestamp=result)


class Verifier:
    """Webhook verifier bound to one :class:`VerifierConfig`.

    Usage::

        verifier = Verifier(VerifierConfig(signing_secret=EnvVar("RICQCHET_SIGNING_SECRET")))
        outcome = verifier.verify(headers, body)
    """

    def __init__(self, config: VerifierConfig | None = None) -> None:
        self._config = config if config is not None else VerifierConfig()

    @property
    def config(self) -> VerifierConfig:
        """The resolved verification configuration."""
        return self._config

    @property
    def policy(self) -> VerificationPolicy:
        return self._config.policy

    def verify(self, headers: Headers, body: BodySource) -> VerificationOutcome:
        """Verify a webhook request.  See :func:`verify_request`."""
        return verify_request(
            headers, body, self._config.signing_secret, self._config.policy
        )

    def verify_payload(self, signature_header: str, payload: bytes | str) -> VerificationOutcome:
        """Verify a raw payload.  See :func:`verify_payload`."""
        return verify_payload(
            signature_header, payload, self._config.signing_secret, self._config.policy
        )
