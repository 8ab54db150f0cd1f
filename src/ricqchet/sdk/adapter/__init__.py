"""Ricqchet SDK adapter layer."""

from ricqchet.sdk.adapter.base import AdapterBase
from ricqchet.sdk.adapter.http import HTTPAdapter, encode_payload

__all__ = [
    "AdapterBase",
    "HTTPAdapter",
    "encode_payload",
]
