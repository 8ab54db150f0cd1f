"""Ricqchet Protocol -- webhook signature wire format and primitives.

Public API re-exports for ``ricqchet.protocol``.
"""

from ricqchet.protocol.types import (
    SIGNATURE_HEADER,
    MESSAGE_ID_HEADER,
    BATCH_ID_HEADER,
    ATTEMPT_HEADER,
    SIGNATURE_VERSION,
    DIGEST_HEX_LENGTH,
    DEFAULT_MAX_AGE,
    MAX_TIMESTAMP,
    ErrorKind,
    ParsedSignature,
    VerificationPolicy,
    DeliveryMetadata,
    Verified,
    Rejected,
    VerificationOutcome,
)

from ricqchet.protocol.errors import (
    RicqchetError,
    ConfigurationError,
    APIError,
    MessageNotFoundError,
    AlreadyDispatchedError,
    RicqchetConnectionError,
    BodyAcquisitionError,
    BodyTooLargeError,
    BodyReadError,
)

from ricqchet.protocol.signature import (
    parse_signature_header,
    check_freshness,
    signed_message,
    compute_signature,
    secure_compare,
    verify_hmac,
    format_signature_header,
    sign_payload,
)

__all__ = [
    # Types
    "SIGNATURE_HEADER",
    "MESSAGE_ID_HEADER",
    "BATCH_ID_HEADER",
    "ATTEMPT_HEADER",
    "SIGNATURE_VERSION",
    "DIGEST_HEX_LENGTH",
    "DEFAULT_MAX_AGE",
    "MAX_TIMESTAMP",
    "ErrorKind",
    "ParsedSignature",
    "VerificationPolicy",
    "DeliveryMetadata",
    "Verified",
    "Rejected",
    "VerificationOutcome",
    # Errors
    "RicqchetError",
    "ConfigurationError",
    "APIError",
    "MessageNotFoundError",
    "AlreadyDispatchedError",
    "RicqchetConnectionError",
    "BodyAcquisitionError",
    "BodyTooLargeError",
    "BodyReadError",
    # Signature
    "parse_signature_header",
    "check_freshness",
    "signed_message",
    "compute_signature",
    "secure_compare",
    "verify_hmac",
    "format_signature_header",
    "sign_payload",
]
