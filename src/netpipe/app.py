"""Typer application and CLI entry point for netpipe.

This module wires together the top-level Typer application: the root
callback holding the global options, the request commands (``get``,
``post``, ``put``, ``delete``), the transfer commands (``upload``,
``download``), and the ``config`` and ``errors`` groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`netpipe.config`: Configuration resolution behind the global options.
    :mod:`netpipe.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from netpipe import __version__
from netpipe.commands.config import config_app
from netpipe.commands.errors import errors_app
from netpipe.commands.request import delete_command, get_command, post_command, put_command
from netpipe.commands.runtime import parse_pairs
from netpipe.commands.transfer import download_command, upload_command
from netpipe.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="netpipe",
    help="Call JSON envelope APIs, upload and download files.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("get")(get_command)
app.command("post")(post_command)
app.command("put")(put_command)
app.command("delete")(delete_command)
app.command("upload")(upload_command)
app.command("download")(download_command)
app.add_typer(config_app, name="config", help="Configuration management.")
app.add_typer(errors_app, name="errors", help="Business error code messages.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"netpipe {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-b", help="Base URL (overrides env and config files)."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="Read settings from this file instead of the user config."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and exchange logging."
    ),
    insecure: bool = typer.Option(
        False, "--insecure", "-k", help="Skip TLS certificate and hostname checks."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Header sent with every request, as 'Name: value'."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter sent with every request, as KEY=VALUE."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~netpipe.output.OutputManager` from the
    output flags and stores the connection options in ``ctx.obj`` so that
    sub-commands can resolve configuration from them.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        base_url: Base URL override (highest precedence).
        config_file: Alternate user config file.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug diagnostics; also turns on exchange logging.
        insecure: Trust any server certificate.
        header: Common headers, ``Name: value``.
        param: Common query parameters, ``KEY=VALUE``.
    """
    from netpipe.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["config_file"] = config_file
    ctx.obj["verbose"] = verbose
    ctx.obj["insecure"] = insecure
    ctx.obj["headers"] = parse_pairs(header, ":", "header")
    ctx.obj["params"] = parse_pairs(param, "=", "param")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from netpipe.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``netpipe`` console script.

    Unhandled :class:`~netpipe.exceptions.NetpipeError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from netpipe.exceptions import NetpipeError
        from netpipe.output import error

        if isinstance(exc, NetpipeError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
