"""Shared fixtures for Ricqchet SDK tests.

``fake_server`` is a tiny FastAPI stand-in for the Ricqchet REST API.
``http_adapter`` is a connected HTTPAdapter whose httpx client is routed
to it in-process via ``httpx.ASGITransport``.
"""

from __future__ import annotations

import base64

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ricqchet.sdk.adapter import HTTPAdapter
from ricqchet.sdk.config import ClientConfig

API_KEY = "test-key"
BASE_URL = "http://ricqchet.test"
SERVER_SECRET = bytes(range(32))


def create_fake_server() -> FastAPI:
    """Build an app implementing the subset of the Ricqchet API the SDK calls.

    Every request is appended to ``app.state.requests`` as
    ``(method, path, headers, body)``.
    """
    app = FastAPI()
    app.state.requests = []

    async def reject(request: Request) -> JSONResponse | None:
        """Record the request; return a 401 response when the key is wrong."""
        body = await request.body()
        app.state.requests.append(
            (request.method, request.url.path, request.headers, body)
        )
        if request.headers.get("authorization") != f"Bearer {API_KEY}":
            return JSONResponse({"error": "Unauthorized"}, status_code=401)
        return None

    @app.post("/v1/publish")
    async def publish(request: Request):
        if (denied := await reject(request)) is not None:
            return denied
        fan_out = request.headers.get("ricqchet-fan-out")
        if fan_out is not None:
            targets = [t.strip() for t in fan_out.split(",") if t.strip()]
            return {"message_ids": [f"msg-{i}" for i, _ in enumerate(targets, 1)]}

        destination = request.headers.get("ricqchet-destination")
        if destination is None:
            return JSONResponse({"error": "Missing destination"}, status_code=400)
        if destination.endswith("/explode"):
            return JSONResponse({"message": "internal failure"}, status_code=500)
        if destination.endswith("/limited"):
            return JSONResponse({"error": "Rate limit exceeded"}, status_code=429)
        if destination.endswith("/garbled"):
            return {"id": "not-the-right-shape"}
        return {"message_id": "msg-1"}

    @app.get("/v1/messages/{message_id}")
    async def get_message(message_id: str, request: Request):
        if (denied := await reject(request)) is not None:
            return denied
        if message_id == "missing":
            return JSONResponse({"error": "Message not found"}, status_code=404)
        if message_id == "garbled":
            return ["not", "an", "object"]
        return {"id": message_id, "status": "pending", "attempts": 0}

    @app.delete("/v1/messages/{message_id}")
    async def cancel_message(message_id: str, request: Request):
        if (denied := await reject(request)) is not None:
            return denied
        if message_id == "missing":
            return JSONResponse({"error": "Message not found"}, status_code=404)
        if message_id == "sent":
            return JSONResponse({"error": "Message already dispatched"}, status_code=409)
        return {"cancelled": True, "id": message_id}

    @app.get("/v1/signing-secret")
    async def signing_secret(request: Request):
        if (denied := await reject(request)) is not None:
            return denied
        return {"signing_secret": base64.b64encode(SERVER_SECRET).decode("ascii")}

    return app


@pytest.fixture()
def fake_server() -> FastAPI:
    return create_fake_server()


@pytest.fixture()
def client_config() -> ClientConfig:
    return ClientConfig(base_url=BASE_URL, api_key=API_KEY)


def route_to(adapter: HTTPAdapter, app: FastAPI) -> None:
    """Swap a connected adapter's httpx client for one bound to *app*."""
    assert adapter._client is not None
    adapter._client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url=adapter._client.base_url,
        headers=adapter._client.headers,
    )


@pytest.fixture()
async def http_adapter(fake_server, client_config):
    """Connected HTTPAdapter talking to ``fake_server`` in-process."""
    adapter = HTTPAdapter(client_config)
    await adapter.connect()
    real_client = adapter._client
    route_to(adapter, fake_server)
    await real_client.aclose()
    yield adapter
    await adapter.close()
