"""Client class -- the publishing side of the SDK.

Wraps the Ricqchet REST API: publish, fan-out, message status,
cancellation, and signing-secret retrieval, with sync wrappers.
"""

from __future__ import annotations

import logging
from typing import Any

from ricqchet.protocol.errors import ConfigurationError
from ricqchet.sdk._sync import _run_sync
from ricqchet.sdk.adapter import AdapterBase, HTTPAdapter
from ricqchet.sdk.config import ClientConfig, EnvVar
from ricqchet.sdk.models import (
    CancelResult,
    FanOutResult,
    Message,
    PublishOptions,
    PublishResult,
)

logger = logging.getLogger(__name__)


class Client:
    """A Ricqchet API client.

    Usage::

        client = Client(
            base_url="https://your-ricqchet.fly.dev",
            api_key=EnvVar("RICQCHET_API_KEY"),
            destination="https://myapp.com/webhook",
        )
        result = await client.publish({"event": "order.created"}, delay="5m")

    Async context manager::

        async with Client(...) as client:
            await client.publish_to("https://other.example.com/hook", b"raw")

    Sync usage::

        client = Client(...)
        client.publish_sync({"event": "order.created"})
        client.close_sync()

    For tests, pass ``adapter=TestAdapter(recorder)`` from
    :mod:`ricqchet.testing`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        api_key: str | EnvVar | None = None,
        destination: str | None = None,
        timeout: float | None = None,
        config: ClientConfig | None = None,
        adapter: AdapterBase | None = None,
    ) -> None:
        """Create a Client.  No I/O happens here."""
        if config is None:
            config = ClientConfig(
                base_url=base_url,
                api_key=api_key,
                destination=destination,
                timeout=timeout,
            )
        self._config = config
        self._adapter = adapter if adapter is not None else HTTPAdapter(config)
        self._connected = False

    # -- Properties ----------------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        """The resolved client configuration."""
        return self._config

    @property
    def adapter(self) -> AdapterBase:
        return self._adapter

    # -- Lifecycle -----------------------------------------------------------

    async def connect(self) -> None:
        """Open the adapter.  Idempotent -- calling twice is safe."""
        if self._connected:
            return
        await self._adapter.connect()
        self._connected = True

    async def close(self) -> None:
        """Release adapter resources."""
        if self._connected:
            await self._adapter.close()
        self._connected = False

    async def __aenter__(self) -> Client:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_connected(self) -> None:
        if not self._connected:
            await self.connect()

    # -- Publishing ----------------------------------------------------------

    async def publish(
        self,
        payload: Any,
        *,
        destination: str | None = None,
        **options: Any,
    ) -> PublishResult:
        """Publish *payload* to the configured default destination.

        ``destination`` overrides the default for this call.  Remaining
        keyword arguments become :class:`PublishOptions` (``delay``,
        ``dedup_key``, ``dedup_ttl``, ``retries``, ``batch_key``,
        ``batch_size``, ``batch_timeout``, ``content_type``,
        ``forward_headers``).

        Raises:
            ConfigurationError: No destination given and none configured.
        """
        target = destination or self._config.destination
        if not target:
            raise ConfigurationError(
                "No destination configured; pass destination= or use publish_to()"
            )
        return await self.publish_to(target, payload, **options)

    async def publish_to(self, destination: str, payload: Any, **options: Any) -> PublishResult:
        """Publish *payload* to an explicit destination URL."""
        await self._ensure_connected()
        result = await self._adapter.publish(destination, payload, PublishOptions(**options))
        logger.debug("Published message %s", result.message_id)
        return result

    async def publish_fan_out(
        self, destinations: list[str], payload: Any, **options: Any
    ) -> FanOutResult:
        """Publish *payload* to several destinations in one request."""
        if not destinations:
            raise ValueError("publish_fan_out() needs at least one destination")
        await self._ensure_connected()
        result = await self._adapter.publish_fan_out(
            list(destinations), payload, PublishOptions(**options)
        )
        logger.debug("Fan-out published %d messages", len(result.message_ids))
        return result

    # -- Message management --------------------------------------------------

    async def get_message(self, message_id: str) -> Message:
        """Return status and details for *message_id*."""
        await self._ensure_connected()
        return await self._adapter.get_message(message_id)

    async def cancel_message(self, message_id: str) -> CancelResult:
        """Cancel a message that has not been dispatched yet."""
        await self._ensure_connected()
        return await self._adapter.cancel_message(message_id)

    async def get_signing_secret(self) -> bytes:
        """Fetch the webhook signing secret (raw bytes)."""
        await self._ensure_connected()
        return await self._adapter.get_signing_secret()

    # -- Sync wrappers -------------------------------------------------------

    def publish_sync(self, payload: Any, **kwargs: Any) -> PublishResult:
        """Synchronous wrapper for :meth:`publish`."""
        return _run_sync(self.publish(payload, **kwargs))

    def publish_to_sync(self, destination: str, payload: Any, **options: Any) -> PublishResult:
        """Synchronous wrapper for :meth:`publish_to`."""
        return _run_sync(self.publish_to(destination, payload, **options))

    def publish_fan_out_sync(
        self, destinations: list[str], payload: Any, **options: Any
    ) -> FanOutResult:
        """Synchronous wrapper for :meth:`publish_fan_out`."""
        return _run_sync(self.publish_fan_out(destinations, payload, **options))

    def get_message_sync(self, message_id: str) -> Message:
        """Synchronous wrapper for :meth:`get_message`."""
        return _run_sync(self.get_message(message_id))

    def cancel_message_sync(self, message_id: str) -> CancelResult:
        """Synchronous wrapper for :meth:`cancel_message`."""
        return _run_sync(self.cancel_message(message_id))

    def get_signing_secret_sync(self) -> bytes:
        """Synchronous wrapper for :meth:`get_signing_secret`."""
        return _run_sync(self.get_signing_secret())

    def close_sync(self) -> None:
        """Synchronous wrapper for :meth:`close`."""
        _run_sync(self.close())
