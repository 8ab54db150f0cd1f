"""Test helpers for code that uses Ricqchet.

Usage::

    from ricqchet.testing import CallRecorder, TestAdapter, assert_published

    async def test_publishes_order_event():
        recorder = CallRecorder()
        client = Client("http://ricqchet.test", api_key="test", adapter=TestAdapter(recorder))

        await client.publish_to("https://myapp.com/webhook", {"event": "order.created"})

        assert_published(recorder, destination="https://myapp.com/webhook")
"""

from ricqchet.testing.adapter import TestAdapter, generate_message_id
from ricqchet.testing.assertions import (
    assert_cancel_message,
    assert_fan_out,
    assert_get_message,
    assert_published,
    refute_published,
    stub_response,
)
from ricqchet.testing.deliveries import signed_headers
from ricqchet.testing.recorder import ANY, CallRecorder, RecordedCall

__all__ = [
    "ANY",
    "CallRecorder",
    "RecordedCall",
    "TestAdapter",
    "assert_cancel_message",
    "assert_fan_out",
    "assert_get_message",
    "assert_published",
    "generate_message_id",
    "refute_published",
    "signed_headers",
    "stub_response",
]
