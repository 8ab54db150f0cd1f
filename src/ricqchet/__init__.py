"""Ricqchet -- Python SDK for the Ricqchet HTTP message queue.

Top-level convenience re-exports::

    from ricqchet import Client, Verifier, VerifierConfig, EnvVar
    from ricqchet.protocol import ErrorKind, sign_payload  # protocol functions
"""

__version__ = "0.1.0"

from ricqchet.protocol import (
    DeliveryMetadata,
    ErrorKind,
    Rejected,
    RicqchetError,
    VerificationPolicy,
    Verified,
)
from ricqchet.sdk import (
    Client,
    ClientConfig,
    EnvVar,
    Verifier,
    VerifierConfig,
    verify_payload,
    verify_request,
)

__all__ = [
    "__version__",
    "Client",
    "ClientConfig",
    "DeliveryMetadata",
    "EnvVar",
    "ErrorKind",
    "Rejected",
    "RicqchetError",
    "VerificationPolicy",
    "Verified",
    "Verifier",
    "VerifierConfig",
    "verify_payload",
    "verify_request",
]
