"""Request commands -- ``get``, ``post``, ``put`` and ``delete``.

Each command sends one generic call through the dispatcher, decodes the
response envelope, and prints the ``result`` payload in the active output
format. Business errors, transport errors and failures are reported on
stderr and mapped to exit codes (see :mod:`netpipe.exit_codes`).
"""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from netpipe.commands.runtime import parse_pairs, run_call
from netpipe.output import format_response

_FIELD_HELP = "Request parameter as KEY=VALUE (query string for GET/DELETE, JSON body otherwise)."


def _parse_body(data: Optional[str]) -> Any:
    if data is None:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--data must be valid JSON: {exc}") from None


def _send(
    ctx: typer.Context,
    method: str,
    path: str,
    fields: Optional[list[str]],
    body: Any = None,
) -> None:
    params = parse_pairs(fields, "=", "field")
    payload = run_call(
        ctx,
        lambda dispatcher: dispatcher.request(method, path, body=body),
        fields=params,
    )
    format_response(payload)


def get_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the base URL, or an absolute URL."),
    field: Optional[list[str]] = typer.Option(None, "--field", "-F", help=_FIELD_HELP),
) -> None:
    """Send a GET request and print the decoded result.

    Example::

        netpipe get users -F page=2
    """
    _send(ctx, "GET", path, field)


def delete_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the base URL, or an absolute URL."),
    field: Optional[list[str]] = typer.Option(None, "--field", "-F", help=_FIELD_HELP),
) -> None:
    """Send a DELETE request and print the decoded result."""
    _send(ctx, "DELETE", path, field)


def post_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the base URL, or an absolute URL."),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="JSON request body. Overrides --field."
    ),
    field: Optional[list[str]] = typer.Option(None, "--field", "-F", help=_FIELD_HELP),
) -> None:
    """Send a POST request with a JSON body and print the decoded result.

    Without ``--data`` the ``--field`` values are sent as the JSON body.

    Example::

        netpipe post users -d '{"name": "Ada"}'
        netpipe post users -F name=Ada
    """
    _send(ctx, "POST", path, field, _parse_body(data))


def put_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the base URL, or an absolute URL."),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="JSON request body. Overrides --field."
    ),
    field: Optional[list[str]] = typer.Option(None, "--field", "-F", help=_FIELD_HELP),
) -> None:
    """Send a PUT request with a JSON body and print the decoded result."""
    _send(ctx, "PUT", path, field, _parse_body(data))
