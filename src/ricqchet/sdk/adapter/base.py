"""Abstract adapter interface for Ricqchet API operations."""

from __future__ import annotations

import abc
from typing import Any

from ricqchet.sdk.models import (
    CancelResult,
    FanOutResult,
    Message,
    PublishOptions,
    PublishResult,
)


class AdapterBase(abc.ABC):
    """Contract between :class:`~ricqchet.sdk.client.Client` and the API.

    Two implementations:
    - ``HTTPAdapter``: real HTTP calls via httpx
    - ``TestAdapter`` (``ricqchet.testing``): records calls, returns stubs

    Write your own (e.g. to add logging or metrics) by subclassing this
    and passing an instance as ``Client(adapter=...)``.
    """

    async def connect(self) -> None:
        """Acquire resources.  Default: nothing to do."""

    async def close(self) -> None:
        """Release resources.  Default: nothing to do."""

    @abc.abstractmethod
    async def publish(
        self, destination: str, payload: Any, options: PublishOptions
    ) -> PublishResult:
        """Publish *payload* for delivery to *destination*."""

    @abc.abstractmethod
    async def publish_fan_out(
        self, destinations: list[str], payload: Any, options: PublishOptions
    ) -> FanOutResult:
        """Publish *payload* once per destination."""

    @abc.abstractmethod
    async def get_message(self, message_id: str) -> Message:
        """Return the status and details of a message.

        Raises ``MessageNotFoundError`` for unknown IDs.
        """

    @abc.abstractmethod
    async def cancel_message(self, message_id: str) -> CancelResult:
        """Cancel a pending message.

        Raises ``MessageNotFoundError`` or ``AlreadyDispatchedError``.
        """

    @abc.abstractmethod
    async def get_signing_secret(self) -> bytes:
        """Return the raw webhook signing secret."""
