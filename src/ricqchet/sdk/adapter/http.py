"""HTTP adapter via httpx with connection pooling."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ricqchet.protocol.errors import (
    AlreadyDispatchedError,
    APIError,
    MessageNotFoundError,
    RicqchetConnectionError,
)
from ricqchet.sdk.adapter.base import AdapterBase
from ricqchet.sdk.config import ClientConfig
from ricqchet.sdk.models import (
    CancelResult,
    FanOutResult,
    Message,
    PublishOptions,
    PublishResult,
    SigningSecretResponse,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def encode_payload(payload: Any) -> bytes:
    """Bytes and text go out verbatim; anything else is JSON-encoded."""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload).encode("utf-8")


def _json_or_none(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


class HTTPAdapter(AdapterBase):
    """Adapter that talks to a Ricqchet server over HTTP.

    A single ``httpx.AsyncClient`` is created in ``connect()`` and reused
    for all requests (connection pooling).  Call ``close()`` to release
    it.  Requests are never retried here; the server owns retry policy.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the shared httpx AsyncClient."""
        if self._client is not None:
            return
        from ricqchet import __version__

        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            headers={
                "Authorization": f"Bearer {self._config.api_key}",
                "Content-Type": "application/json",
                "User-Agent": f"ricqchet-python/{__version__}",
            },
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # -- Operations ----------------------------------------------------------

    async def publish(
        self, destination: str, payload: Any, options: PublishOptions
    ) -> PublishResult:
        headers = [("ricqchet-destination", destination), *options.to_headers()]
        resp = await self._request(
            "POST", "/v1/publish", headers=headers, content=encode_payload(payload)
        )
        if not resp.is_success:
            raise self._error(resp)
        return self._parse(PublishResult, resp)

    async def publish_fan_out(
        self, destinations: list[str], payload: Any, options: PublishOptions
    ) -> FanOutResult:
        headers = [("ricqchet-fan-out", ", ".join(destinations)), *options.to_headers()]
        resp = await self._request(
            "POST", "/v1/publish", headers=headers, content=encode_payload(payload)
        )
        if not resp.is_success:
            raise self._error(resp)
        return self._parse(FanOutResult, resp)

    async def get_message(self, message_id: str) -> Message:
        resp = await self._request("GET", f"/v1/messages/{message_id}")
        if resp.status_code == 404:
            raise self._error(resp, MessageNotFoundError)
        if resp.status_code != 200:
            raise self._error(resp)
        body = _json_or_none(resp)
        if not isinstance(body, dict):
            raise APIError("Malformed message response", type="invalid_response", status=200)
        return body

    async def cancel_message(self, message_id: str) -> CancelResult:
        resp = await self._request("DELETE", f"/v1/messages/{message_id}")
        if resp.status_code == 404:
            raise self._error(resp, MessageNotFoundError)
        if resp.status_code == 409:
            raise self._error(resp, AlreadyDispatchedError)
        if resp.status_code != 200:
            raise self._error(resp)
        return self._parse(CancelResult, resp)

    async def get_signing_secret(self) -> bytes:
        resp = await self._request("GET", "/v1/signing-secret")
        if resp.status_code != 200:
            raise self._error(resp)
        encoded = self._parse(SigningSecretResponse, resp).signing_secret
        try:
            return base64.b64decode(encoded, validate=True)
        except binascii.Error as exc:
            raise APIError(
                "Signing secret is not valid base64", type="invalid_response", status=200
            ) from exc

    # -- Helpers -------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        headers: list[tuple[str, str]] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("HTTPAdapter not connected. Call connect() first.")
        logger.debug("Ricqchet %s %s", method, path)
        try:
            return await self._client.request(method, path, headers=headers, content=content)
        except httpx.HTTPError as exc:
            logger.warning(
                "Ricqchet %s %s failed: %s", method, path, type(exc).__name__
            )
            raise RicqchetConnectionError(f"Connection failed: {exc!r}") from exc

    @staticmethod
    def _error(resp: httpx.Response, error_cls: type[APIError] = APIError) -> APIError:
        logger.warning(
            "Ricqchet %s %s returned HTTP %d",
            resp.request.method,
            resp.request.url.path,
            resp.status_code,
        )
        return error_cls.from_response(resp.status_code, _json_or_none(resp))

    @staticmethod
    def _parse(model: type[ModelT], resp: httpx.Response) -> ModelT:
        try:
            return model.model_validate(_json_or_none(resp))
        except ValidationError as exc:
            raise APIError(
                f"Unexpected response shape from {resp.request.url.path}",
                type="invalid_response",
                status=resp.status_code,
                details=_json_or_none(resp),
            ) from exc
