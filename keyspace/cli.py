"""Command line interface for managing namespaces and tokens."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import typer
from pydantic import ValidationError

from keyspace import KeyspaceError, NamespaceOptions, get_keystore, load_config
from keyspace.algorithms import family_for
from keyspace.models import HmacKeyState, NamespaceRecord

app = typer.Typer(help="CLI for keyspace namespaces and tokens")


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _describe(record: NamespaceRecord) -> dict[str, Any]:
    """Summarize ``record`` without exposing key material."""
    info: dict[str, Any] = {
        "id": record.id,
        "algorithm": record.algorithm,
        "token_ttl_in_secs": record.token_ttl_in_secs,
        "clock_tolerance_in_secs": record.clock_tolerance_in_secs,
    }
    if family_for(record.algorithm).symmetric:
        state = HmacKeyState.model_validate(record.state)
        info["key"] = {"id": state.key.id, "expires": state.key.expires}
        if state.previous_key is not None:
            info["previous_key"] = {
                "id": state.previous_key.id,
                "expires": state.previous_key.expires,
            }
    else:
        info["key"] = record.state.get("key")
    return info


@app.callback()
def main() -> None:
    """Keyspace CLI entry point."""
    pass


@app.command("provision")
def provision(
    namespace: str,
    algorithm: str = typer.Option("HS256", help="JWS signing algorithm"),
    ttl: Optional[int] = typer.Option(None, help="Token TTL in seconds"),
    tolerance: Optional[int] = typer.Option(None, help="Clock tolerance in seconds"),
    key: Optional[str] = typer.Option(
        None, help="External key reference for asymmetric algorithms"
    ),
) -> None:
    """
    Provision a namespace.

    Provisioning an existing namespace leaves the stored record in place.

    Example:
        keyspace provision wallet-1 --algorithm HS256 --ttl 300 --tolerance 30
    """
    config = load_config()
    try:
        options = NamespaceOptions(
            id=namespace,
            algorithm=algorithm,
            token_ttl_in_secs=ttl if ttl is not None else config.defaults.token_ttl_in_secs,
            clock_tolerance_in_secs=(
                tolerance
                if tolerance is not None
                else config.defaults.clock_tolerance_in_secs
            ),
            key=key,
        )
        record = asyncio.run(get_keystore(config).provision(options))
    except (KeyspaceError, ValidationError) as exc:
        _fail(str(exc))
    typer.echo(json.dumps(_describe(record), indent=2))


@app.command("show")
def show(namespace: str) -> None:
    """Show a namespace's policy and key ids (never key material)."""
    try:
        record = asyncio.run(get_keystore().get_namespace(namespace))
    except KeyspaceError as exc:
        _fail(str(exc))
    typer.echo(json.dumps(_describe(record), indent=2))


@app.command("list")
def list_namespaces() -> None:
    """List provisioned namespaces."""
    keystore = get_keystore()
    records = asyncio.run(keystore.store.list_namespaces())
    if not records:
        typer.echo("No namespaces found")
        return
    for record in records:
        typer.echo(f"{record.id}\t{record.algorithm}")


@app.command("sign")
def sign(
    namespace: str,
    claims: str = typer.Option("{}", help="JSON object of claims to sign"),
) -> None:
    """
    Issue a token for a namespace.

    Example:
        keyspace sign wallet-1 --claims '{"sub": "alice"}'
    """
    try:
        payload = json.loads(claims)
    except json.JSONDecodeError as exc:
        _fail(f"Invalid claims JSON: {exc}")
    if not isinstance(payload, dict):
        _fail("Claims must be a JSON object")
    try:
        token = asyncio.run(get_keystore().sign(namespace, payload))
    except KeyspaceError as exc:
        _fail(str(exc))
    typer.echo(token)


@app.command("verify")
def verify(
    token: str,
    namespace: Optional[str] = typer.Option(
        None, help="Namespace for asymmetric tokens"
    ),
) -> None:
    """Verify a token and print its payload."""
    try:
        payload = asyncio.run(get_keystore().verify(token, namespace=namespace))
    except KeyspaceError as exc:
        _fail(str(exc))
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
