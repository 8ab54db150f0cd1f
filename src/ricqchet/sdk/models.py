"""Request options and response models for the Ricqchet REST API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class PublishOptions:
    """Per-message delivery options, sent as ``ricqchet-*`` request headers."""

    delay: str | None = None
    dedup_key: str | None = None
    dedup_ttl: int | None = None
    retries: int | None = None
    batch_key: str | None = None
    batch_size: int | None = None
    batch_timeout: str | int | None = None
    content_type: str | None = None
    forward_headers: dict[str, str] | None = None

    def to_headers(self) -> list[tuple[str, str]]:
        """Render the options as request headers, skipping unset ones."""
        headers: list[tuple[str, str]] = []
        for name, value in (
            ("ricqchet-delay", self.delay),
            ("ricqchet-dedup-key", self.dedup_key),
            ("ricqchet-dedup-ttl", self.dedup_ttl),
            ("ricqchet-retries", self.retries),
            ("ricqchet-batch-key", self.batch_key),
            ("ricqchet-batch-size", self.batch_size),
            ("ricqchet-batch-timeout", self.batch_timeout),
            ("content-type", self.content_type),
        ):
            if value is not None:
                headers.append((name, str(value)))
        for key, value in (self.forward_headers or {}).items():
            headers.append((f"ricqchet-forward-{key}", str(value)))
        return headers


class PublishResult(BaseModel):
    message_id: str


class FanOutResult(BaseModel):
    message_ids: list[str]


class CancelResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    cancelled: bool


class SigningSecretResponse(BaseModel):
    signing_secret: str  # base64


Message = dict[str, Any]
