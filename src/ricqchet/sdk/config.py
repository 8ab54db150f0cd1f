"""SDK configuration via dataclass (no pydantic -- instant construction).

Secrets and keys can be given as literals or as an :class:`EnvVar`
reference.  References are resolved exactly once, when the config object
is built, so downstream code only ever sees concrete values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Union

from ricqchet.protocol.errors import ConfigurationError
from ricqchet.protocol.types import DEFAULT_MAX_AGE, VerificationPolicy

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30.0

# Marks "not passed" for fields where None is a meaningful value
_UNSET: Any = object()


@dataclass(frozen=True)
class EnvVar:
    """Reference to a value held in an environment variable."""

    name: str


ConfigValue = Union[str, bytes, EnvVar, None]


def resolve(value: ConfigValue) -> str | bytes | None:
    """Resolve a configuration value that may reference an environment variable.

    Literals are returned unchanged; ``EnvVar("NAME")`` returns the
    variable's value or ``None`` when it is unset.
    """
    if isinstance(value, EnvVar):
        return os.getenv(value.name)
    if value is None or isinstance(value, (str, bytes)):
        return value
    raise TypeError(f"Unsupported configuration value type: {type(value).__name__}")


def resolve_secret(value: ConfigValue) -> bytes | None:
    """Resolve *value* and return it as bytes (UTF-8 for text)."""
    resolved = resolve(value)
    if isinstance(resolved, str):
        return resolved.encode("utf-8")
    return resolved


def _describe(value: ConfigValue) -> str:
    if isinstance(value, EnvVar):
        return f"environment variable {value.name}"
    return "value"


def _parse_max_age(raw: str) -> int | None:
    if raw.strip().lower() in ("", "none", "off"):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"RICQCHET_MAX_AGE must be an integer or 'none', got {raw!r}"
        ) from None


@dataclass
class ClientConfig:
    """Configuration for the Ricqchet API client.

    Priority (highest wins): constructor arg > env var > default.
    ``api_key`` defaults to ``EnvVar("RICQCHET_API_KEY")`` and is stored
    resolved.
    """

    base_url: str | None = None
    api_key: str | EnvVar | None = field(default=None, repr=False)
    destination: str | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.base_url is None:
            self.base_url = os.getenv("RICQCHET_URL")
        if not self.base_url:
            raise ConfigurationError(
                "base_url is required (pass it or set RICQCHET_URL)"
            )
        self.base_url = self.base_url.rstrip("/")

        source = self.api_key if self.api_key is not None else EnvVar("RICQCHET_API_KEY")
        api_key = resolve(source)
        if isinstance(api_key, bytes):
            api_key = api_key.decode("utf-8")
        if not api_key:
            raise ConfigurationError(f"api_key is required (got no {_describe(source)})")
        self.api_key = api_key

        if self.destination is None:
            self.destination = os.getenv("RICQCHET_DESTINATION") or None

        if self.timeout is None:
            raw_timeout = os.getenv("RICQCHET_TIMEOUT")
            try:
                self.timeout = float(raw_timeout) if raw_timeout else _DEFAULT_TIMEOUT
            except ValueError:
                raise ConfigurationError(
                    f"RICQCHET_TIMEOUT must be a number, got {raw_timeout!r}"
                ) from None


@dataclass
class VerifierConfig:
    """Configuration for webhook signature verification.

    ``signing_secret`` defaults to ``EnvVar("RICQCHET_SIGNING_SECRET")``
    and is stored resolved as bytes.  A secret that resolves to nothing is
    a configuration error, raised here rather than on each request.

    ``max_age`` defaults to ``RICQCHET_MAX_AGE`` or 300 seconds; pass
    ``None`` to disable the freshness check.
    """

    signing_secret: str | bytes | EnvVar | None = field(default=None, repr=False)
    max_age: int | None = _UNSET
    policy: VerificationPolicy = field(init=False)

    def __post_init__(self) -> None:
        source = (
            self.signing_secret
            if self.signing_secret is not None
            else EnvVar("RICQCHET_SIGNING_SECRET")
        )
        secret = resolve_secret(source)
        if not secret:
            raise ConfigurationError(
                f"signing_secret is required (got no {_describe(source)})"
            )
        self.signing_secret = secret

        if self.max_age is _UNSET:
            raw = os.getenv("RICQCHET_MAX_AGE")
            self.max_age = DEFAULT_MAX_AGE if raw is None else _parse_max_age(raw)

        try:
            self.policy = VerificationPolicy(max_age=self.max_age)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        if self.max_age is None:
            logger.info("Webhook freshness check disabled (max_age=None)")
