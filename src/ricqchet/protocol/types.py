"""Core types and wire constants for Ricqchet webhook deliveries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


# Header carrying ``t=<timestamp>,v1=<hex digest>``
SIGNATURE_HEADER = "x-ricqchet-signature"

# Unsigned, informational delivery headers
MESSAGE_ID_HEADER = "x-ricqchet-message-id"
BATCH_ID_HEADER = "x-ricqchet-batch-id"
ATTEMPT_HEADER = "x-ricqchet-attempt"

# Signature scheme version tag inside the header
SIGNATURE_VERSION = "v1"

# HMAC-SHA256 produces 32 bytes -> 64 hex characters
DIGEST_HEX_LENGTH = 64

# Default freshness window in seconds
DEFAULT_MAX_AGE = 300

# Largest timestamp accepted in a signature header (unsigned 64-bit)
MAX_TIMESTAMP = 2**64 - 1


class ErrorKind(str, Enum):
    """Reasons a webhook delivery can be rejected.

    Using ``str, Enum`` so that ``ErrorKind.INVALID_FORMAT == "invalid_format"``
    is True.
    """

    MISSING_SIGNATURE = "missing_signature"
    BODY_TOO_LARGE = "body_too_large"
    BODY_READ_ERROR = "body_read_error"
    INVALID_FORMAT = "invalid_format"
    SIGNATURE_EXPIRED = "signature_expired"
    INVALID_SIGNATURE = "invalid_signature"


@dataclass(frozen=True)
class ParsedSignature:
    """A structurally valid signature header.

    ``digest`` is always lowercase hex of :data:`DIGEST_HEX_LENGTH` characters.
    """

    timestamp: int
    digest: str


@dataclass(frozen=True)
class VerificationPolicy:
    """Freshness policy applied during verification.

    ``max_age=None`` switches the freshness check off entirely (for
    re-verifying archived deliveries).  It has to be passed explicitly;
    the default window is :data:`DEFAULT_MAX_AGE` seconds.
    """

    max_age: int | None = DEFAULT_MAX_AGE

    def __post_init__(self) -> None:
        if self.max_age is None:
            return
        if isinstance(self.max_age, bool) or not isinstance(self.max_age, int):
            raise ValueError(f"max_age must be an integer or None, got {self.max_age!r}")
        if self.max_age < 0:
            raise ValueError(f"max_age must be non-negative, got {self.max_age}")


@dataclass(frozen=True)
class DeliveryMetadata:
    """Delivery details read from unsigned headers.

    These values are NOT covered by the HMAC.  A proxy can rewrite them
    without invalidating the signature, so treat them as informational.
    """

    message_id: str | None = None
    batch_id: str | None = None
    attempt: int | None = None


@dataclass(frozen=True)
class Verified:
    """Successful verification outcome."""

    timestamp: int
    metadata: DeliveryMetadata = field(default_factory=DeliveryMetadata)

    @property
    def ok(self) -> bool:
        return True

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """Failed verification outcome with the first failing reason."""

    kind: ErrorKind

    @property
    def ok(self) -> bool:
        return False

    def __bool__(self) -> bool:
        return False


VerificationOutcome = Union[Verified, Rejected]
