"""Ricqchet CLI -- sign/verify webhook payloads and drive the API.

Thin wrapper around the Python SDK using click.
API commands use the client's sync wrappers.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import click

from ricqchet.protocol import ErrorKind, RicqchetError, VerificationPolicy, Verified
from ricqchet.protocol.signature import sign_payload
from ricqchet.sdk.client import Client
from ricqchet.sdk.config import ClientConfig
from ricqchet.sdk.verification import verify_payload


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error(msg: str) -> None:
    """Print an error message to stderr and exit 1."""
    click.echo(msg, err=True)
    raise SystemExit(1)


def _secret_bytes(secret: str, is_base64: bool) -> bytes:
    if not is_base64:
        return secret.encode("utf-8")
    try:
        return base64.b64decode(secret, validate=True)
    except ValueError:
        _error("Secret is not valid base64")


_secret_options = [
    click.option(
        "--secret",
        "-s",
        envvar="RICQCHET_SIGNING_SECRET",
        required=True,
        help="Signing secret (default: $RICQCHET_SIGNING_SECRET).",
    ),
    click.option(
        "--base64",
        "secret_base64",
        is_flag=True,
        help="Decode the secret as base64 (as printed by `ricqchet signing-secret`).",
    ),
]


def _apply(decorators):
    def wrap(func):
        for decorator in reversed(decorators):
            func = decorator(func)
        return func

    return wrap


def _make_client(ctx: click.Context) -> Client:
    """Build a client from the group-level options (and env fallbacks)."""
    return Client(
        config=ClientConfig(
            base_url=ctx.obj.get("url"),
            api_key=ctx.obj.get("api_key"),
        )
    )


def _read_payload(data: bytes, as_json: bool) -> Any:
    if not as_json:
        return data
    try:
        return json.loads(data)
    except ValueError as exc:
        _error(f"Payload is not valid JSON: {exc}")


def _run_client(ctx: click.Context, operation) -> Any:
    """Create a client, run *operation* on it, and always close it."""
    try:
        client = _make_client(ctx)
    except RicqchetError as exc:
        _error(f"Configuration error: {exc}")
    try:
        return operation(client)
    except RicqchetError as exc:
        _error(f"Error: {exc}")
    finally:
        client.close_sync()


def _publish_options(
    delay: str | None,
    dedup_key: str | None,
    dedup_ttl: int | None,
    retries: int | None,
) -> dict[str, Any]:
    options = {
        "delay": delay,
        "dedup_key": dedup_key,
        "dedup_ttl": dedup_ttl,
        "retries": retries,
    }
    return {k: v for k, v in options.items() if v is not None}


_publish_option_decorators = [
    click.option("--delay", default=None, help='Delay delivery (e.g. "30s", "5m", "1h").'),
    click.option("--dedup-key", default=None, help="Deduplication key."),
    click.option("--dedup-ttl", type=int, default=None, help="Deduplication TTL in seconds."),
    click.option("--retries", type=int, default=None, help="Max retry attempts."),
    click.option(
        "--json/--raw",
        "as_json",
        default=True,
        help="Send the payload as parsed JSON (default) or raw bytes.",
    ),
]


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="ricqchet")
@click.option("--url", default=None, help="Ricqchet server URL (default: $RICQCHET_URL).")
@click.option("--api-key", default=None, help="API key (default: $RICQCHET_API_KEY).")
@click.pass_context
def cli(ctx: click.Context, url: str | None, api_key: str | None) -> None:
    """Ricqchet -- HTTP message queue client."""
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["api_key"] = api_key


# ---------------------------------------------------------------------------
# ricqchet sign / verify (offline)
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("body", type=click.File("rb"))
@_apply(_secret_options)
@click.option(
    "--timestamp", "-t", type=click.IntRange(min=0), default=None, help="Unix timestamp (default: now)."
)
def sign(body, secret: str, secret_base64: bool, timestamp: int | None) -> None:
    """Print the signature header for BODY ("-" for stdin)."""
    key = _secret_bytes(secret, secret_base64)
    click.echo(sign_payload(body.read(), key, timestamp))


@cli.command()
@click.argument("body", type=click.File("rb"))
@click.option("--signature", "-S", required=True, help="x-ricqchet-signature header value.")
@_apply(_secret_options)
@click.option(
    "--max-age",
    type=click.IntRange(min=0),
    default=300,
    show_default=True,
    help="Maximum signature age in seconds.",
)
@click.option("--no-max-age", is_flag=True, help="Skip the freshness check.")
def verify(
    body,
    signature: str,
    secret: str,
    secret_base64: bool,
    max_age: int,
    no_max_age: bool,
) -> None:
    """Verify SIGNATURE against BODY ("-" for stdin)."""
    key = _secret_bytes(secret, secret_base64)
    policy = VerificationPolicy(max_age=None if no_max_age else max_age)
    outcome = verify_payload(signature, body.read(), key, policy)
    if isinstance(outcome, Verified):
        click.echo(f"Verified (timestamp {outcome.timestamp})")
        return
    hints = {
        ErrorKind.INVALID_FORMAT: "header must look like t=<unix>,v1=<64 hex chars>",
        ErrorKind.SIGNATURE_EXPIRED: "use --max-age or --no-max-age for old deliveries",
        ErrorKind.INVALID_SIGNATURE: "body or secret does not match",
    }
    _error(f"Rejected: {outcome.kind.value} ({hints.get(outcome.kind, '')})")


# ---------------------------------------------------------------------------
# ricqchet publish / fan-out
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("destination")
@click.argument("payload", type=click.File("rb"))
@_apply(_publish_option_decorators)
@click.pass_context
def publish(
    ctx: click.Context,
    destination: str,
    payload,
    delay: str | None,
    dedup_key: str | None,
    dedup_ttl: int | None,
    retries: int | None,
    as_json: bool,
) -> None:
    """Publish PAYLOAD ("-" for stdin) for delivery to DESTINATION."""
    data = _read_payload(payload.read(), as_json)
    options = _publish_options(delay, dedup_key, dedup_ttl, retries)
    result = _run_client(ctx, lambda c: c.publish_to_sync(destination, data, **options))
    click.echo(result.message_id)


@cli.command("fan-out")
@click.argument("payload", type=click.File("rb"))
@click.option(
    "--destination",
    "-d",
    "destinations",
    multiple=True,
    required=True,
    help="Destination URL (repeat for each destination).",
)
@_apply(_publish_option_decorators)
@click.pass_context
def fan_out(
    ctx: click.Context,
    payload,
    destinations: tuple[str, ...],
    delay: str | None,
    dedup_key: str | None,
    dedup_ttl: int | None,
    retries: int | None,
    as_json: bool,
) -> None:
    """Publish PAYLOAD to every --destination in one request."""
    data = _read_payload(payload.read(), as_json)
    options = _publish_options(delay, dedup_key, dedup_ttl, retries)
    result = _run_client(
        ctx, lambda c: c.publish_fan_out_sync(list(destinations), data, **options)
    )
    for message_id in result.message_ids:
        click.echo(message_id)


# ---------------------------------------------------------------------------
# ricqchet message get / cancel
# ---------------------------------------------------------------------------


@cli.group()
def message() -> None:
    """Inspect or cancel published messages."""


@message.command("get")
@click.argument("message_id")
@click.pass_context
def message_get(ctx: click.Context, message_id: str) -> None:
    """Show status and details of MESSAGE_ID as JSON."""
    details = _run_client(ctx, lambda c: c.get_message_sync(message_id))
    click.echo(json.dumps(details, indent=2, sort_keys=True))


@message.command("cancel")
@click.argument("message_id")
@click.pass_context
def message_cancel(ctx: click.Context, message_id: str) -> None:
    """Cancel MESSAGE_ID if it has not been dispatched."""
    _run_client(ctx, lambda c: c.cancel_message_sync(message_id))
    click.echo(f"Cancelled {message_id}")


# ---------------------------------------------------------------------------
# ricqchet signing-secret
# ---------------------------------------------------------------------------


@cli.command("signing-secret")
@click.pass_context
def signing_secret(ctx: click.Context) -> None:
    """Print the webhook signing secret (base64)."""
    secret = _run_client(ctx, lambda c: c.get_signing_secret_sync())
    click.echo(base64.b64encode(secret).decode("ascii"))


if __name__ == "__main__":
    cli()
