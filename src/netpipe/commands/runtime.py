"""Plumbing shared by the request and transfer commands.

Commands describe a call as an async function of a
:class:`~netpipe.client.dispatcher.Dispatcher`; :func:`run_call` resolves
configuration from the root callback's options, builds a
:class:`~netpipe.context.NetworkContext`, runs the call on a fresh event loop,
and turns the outcome into either a payload or a :class:`typer.Exit` with the
matching exit code.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from typing import Any, Callable, Optional

import httpx
import typer

from netpipe.client.dispatcher import Dispatcher
from netpipe.client.outcome import BusinessError, Failure, Outcome, Success, TransportError
from netpipe.config import resolve_config
from netpipe.context import NetworkContext
from netpipe.exceptions import (
    BusinessErrorResult,
    NetpipeError,
    NetworkFailure,
    TransportErrorResult,
)
from netpipe.output import error

Operation = Callable[[Dispatcher], Awaitable[Outcome[Any]]]


def build_context(obj: dict[str, Any]) -> NetworkContext:
    """Resolve configuration from the root options in *obj* and initialise a context.

    ``obj["transport"]``, when present, replaces the network transport. Tests
    use it to inject :class:`httpx.MockTransport`.

    Raises:
        ConfigError: If the configuration cannot be resolved.
    """
    config, registry = resolve_config(
        cli_base_url=obj.get("base_url"),
        cli_debug=True if obj.get("verbose") else None,
        cli_unsafe_tls=True if obj.get("insecure") else None,
        cli_headers=obj.get("headers"),
        cli_params=obj.get("params"),
        config_file=obj.get("config_file"),
    )
    transport: Optional[httpx.AsyncBaseTransport] = obj.get("transport")
    return NetworkContext(registry).init(config, transport=transport)


def outcome_to_error(outcome: Outcome[Any]) -> Optional[NetpipeError]:
    """Map a non-success outcome to the exception that carries its exit code."""
    if isinstance(outcome, Success):
        return None
    if isinstance(outcome, BusinessError):
        return BusinessErrorResult(outcome.code, outcome.message)
    if isinstance(outcome, TransportError):
        return TransportErrorResult(outcome.code, outcome.message)
    assert isinstance(outcome, Failure)
    if isinstance(outcome.cause, NetpipeError):
        return outcome.cause
    return NetworkFailure(f"Request failed: {outcome.cause}")


def run_call(
    ctx: typer.Context,
    operation: Operation,
    fields: Optional[Mapping[str, Any]] = None,
) -> Any:
    """Run *operation* against a context built from *ctx* and return the payload.

    *fields* are added to the accumulated request parameters before the call.

    Raises:
        typer.Exit: With the mapped exit code when the call does not succeed
            or the configuration is invalid.
    """
    obj = ctx.obj or {}

    async def _run() -> Outcome[Any]:
        async with build_context(obj) as context:
            context.request_config.with_params(fields or {})
            return await operation(Dispatcher(context))

    try:
        outcome = asyncio.run(_run())
        failure = outcome_to_error(outcome)
        if failure is not None:
            raise failure
    except NetpipeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    assert isinstance(outcome, Success)
    return outcome.payload


def parse_pairs(values: Optional[list[str]], separator: str, label: str) -> dict[str, str]:
    """Parse ``KEY<separator>VALUE`` strings into a dict.

    Raises:
        typer.BadParameter: If an entry lacks the separator or a key.
    """
    pairs: dict[str, str] = {}
    for raw in values or []:
        key, sep, value = raw.partition(separator)
        key = key.strip()
        if not sep or not key:
            raise typer.BadParameter(f"Expected {label} as KEY{separator}VALUE, got '{raw}'")
        pairs[key] = value.strip()
    return pairs
