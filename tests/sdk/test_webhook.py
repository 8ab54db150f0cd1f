"""Tests for the FastAPI webhook dependency (RicqchetWebhook).

Requests are signed with the real clock, so no time patching is needed
inside the ASGI app.
"""

from __future__ import annotations

import json
import time

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from ricqchet.protocol.types import Verified
from ricqchet.sdk.config import VerifierConfig
from ricqchet.sdk.verification import Verifier
from ricqchet.sdk.webhook import RicqchetWebhook, read_raw_body
from ricqchet.testing import signed_headers

SECRET = b"webhook-test-secret"
BODY = b'{"event":"order.created","id":123}'


def make_app(dependency: RicqchetWebhook) -> FastAPI:
    app = FastAPI()

    @app.post("/webhooks/ricqchet")
    async def receive(request: Request, delivery: Verified = Depends(dependency)):
        return {
            "timestamp": delivery.timestamp,
            "message_id": delivery.metadata.message_id,
            "attempt": delivery.metadata.attempt,
            "payload": json.loads(request.state.raw_body),
        }

    @app.post("/webhooks/twice")
    async def twice(request: Request, delivery: Verified = Depends(dependency)):
        # Second read comes from the cache on request.state
        again = await read_raw_body(request)
        return {"same": again == request.state.raw_body}

    return app


@pytest.fixture()
def client():
    hook = RicqchetWebhook(VerifierConfig(signing_secret=SECRET))
    with TestClient(make_app(hook)) as c:
        yield c


class TestRicqchetWebhook:
    """RicqchetWebhook accepts signed deliveries and 401s everything else."""

    def test_valid_delivery(self, client):
        headers = signed_headers(BODY, SECRET, message_id="msg-1", attempt=2)
        resp = client.post("/webhooks/ricqchet", content=BODY, headers=headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["message_id"] == "msg-1"
        assert data["attempt"] == 2
        assert data["payload"] == {"event": "order.created", "id": 123}

    def test_missing_signature(self, client):
        resp = client.post("/webhooks/ricqchet", content=BODY)
        assert resp.status_code == 401
        assert resp.json() == {"detail": "missing_signature"}

    def test_duplicate_signature_header(self, client):
        value = signed_headers(BODY, SECRET)["x-ricqchet-signature"]
        resp = client.post(
            "/webhooks/ricqchet",
            content=BODY,
            headers=[("x-ricqchet-signature", value), ("x-ricqchet-signature", value)],
        )
        assert resp.status_code == 401
        assert resp.json()["detail"] == "invalid_format"

    def test_tampered_body(self, client):
        headers = signed_headers(BODY, SECRET)
        resp = client.post("/webhooks/ricqchet", content=BODY + b"\n", headers=headers)
        assert resp.status_code == 401
        assert resp.json()["detail"] == "invalid_signature"

    def test_expired(self, client):
        headers = signed_headers(BODY, SECRET, timestamp=int(time.time()) - 3600)
        resp = client.post("/webhooks/ricqchet", content=BODY, headers=headers)
        assert resp.status_code == 401
        assert resp.json()["detail"] == "signature_expired"

    def test_malformed_header(self, client):
        resp = client.post(
            "/webhooks/ricqchet",
            content=BODY,
            headers={"x-ricqchet-signature": "t=123"},
        )
        assert resp.status_code == 401
        assert resp.json()["detail"] == "invalid_format"

    def test_body_cached(self, client):
        resp = client.post("/webhooks/twice", content=BODY, headers=signed_headers(BODY, SECRET))
        assert resp.status_code == 200
        assert resp.json() == {"same": True}


class TestBodyLimits:
    """max_body_size handling."""

    def test_declared_too_large(self):
        hook = RicqchetWebhook(verifier=Verifier(VerifierConfig(signing_secret=SECRET)), max_body_size=10)
        with TestClient(make_app(hook)) as c:
            resp = c.post("/webhooks/ricqchet", content=BODY, headers=signed_headers(BODY, SECRET))
        assert resp.status_code == 401
        assert resp.json()["detail"] == "body_too_large"

    def test_exact_limit_allowed(self):
        hook = RicqchetWebhook(VerifierConfig(signing_secret=SECRET), max_body_size=len(BODY))
        with TestClient(make_app(hook)) as c:
            resp = c.post("/webhooks/ricqchet", content=BODY, headers=signed_headers(BODY, SECRET))
        assert resp.status_code == 200

    def test_streamed_too_large(self):
        def chunks():
            yield BODY
            yield BODY

        hook = RicqchetWebhook(VerifierConfig(signing_secret=SECRET), max_body_size=len(BODY) + 1)
        with TestClient(make_app(hook)) as c:
            resp = c.post(
                "/webhooks/ricqchet",
                content=chunks(),
                headers=signed_headers(BODY + BODY, SECRET),
            )
        assert resp.status_code == 401
        assert resp.json()["detail"] == "body_too_large"


class TestLazyConfig:
    def test_secret_from_environment(self, monkeypatch):
        monkeypatch.setenv("RICQCHET_SIGNING_SECRET", "env-secret")
        hook = RicqchetWebhook()
        with TestClient(make_app(hook)) as c:
            resp = c.post(
                "/webhooks/ricqchet",
                content=BODY,
                headers=signed_headers(BODY, "env-secret"),
            )
        assert resp.status_code == 200
        assert hook.verifier.config.signing_secret == b"env-secret"
