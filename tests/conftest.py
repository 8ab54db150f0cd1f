"""Shared test fixtures for Ricqchet protocol and SDK tests."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

# Fixed "current time" for freshness tests (2023-11-14T22:13:20Z)
NOW = 1_700_000_000

_ENV_VARS = (
    "RICQCHET_URL",
    "RICQCHET_API_KEY",
    "RICQCHET_SIGNING_SECRET",
    "RICQCHET_DESTINATION",
    "RICQCHET_TIMEOUT",
    "RICQCHET_MAX_AGE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's RICQCHET_* settings out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def signing_secret() -> bytes:
    """Return a random 32-byte signing secret."""
    return os.urandom(32)


@pytest.fixture()
def frozen_now():
    """Pin the verifier's wall clock to ``NOW``."""
    with patch("ricqchet.protocol.signature.time.time", return_value=float(NOW)):
        yield NOW


@pytest.fixture()
def sample_body() -> bytes:
    return b'{"event":"order.created","id":123}'
