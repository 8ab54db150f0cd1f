"""Ricqchet SDK -- API client and webhook verification."""

from ricqchet.sdk.client import Client
from ricqchet.sdk.config import ClientConfig, EnvVar, VerifierConfig
from ricqchet.sdk.verification import Verifier, verify_payload, verify_request

__all__ = [
    "Client",
    "ClientConfig",
    "EnvVar",
    "Verifier",
    "VerifierConfig",
    "verify_payload",
    "verify_request",
]
