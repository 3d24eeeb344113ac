"""Output and diagnostics with strict stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- decoded payloads only. This is what downstream tools pipe
  and parse.
* **stderr** -- every diagnostic: exchange logs from the logging
  interceptor, call lifecycle messages from the dispatcher, warnings such as
  the unsafe-TLS notice, errors, and transfer progress bars.
* **TTY detection** -- Rich formatting when stdout is an interactive
  terminal, plain text when piped to another process.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and the
  ``--no-color`` CLI flag.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding format preferences,
   Rich consoles, and quiet/verbose flags. The CLI creates one in
   :func:`~netpipe.app.main_callback` and installs it via :func:`set_output`;
   library users get a lazily created default.
2. Module-level convenience functions (:func:`info`, :func:`error`,
   :func:`debug`, etc.) that delegate to the global ``OutputManager``.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress as RichProgress,
    TextColumn,
    TransferSpeedColumn,
)
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Enumeration of supported output formats.

    ``AUTO`` resolves to ``RICH`` when stdout is an interactive TTY and colour
    is not disabled, or to ``PLAIN`` otherwise.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Central manager for payload output and diagnostics.

    Maintains two Rich :class:`~rich.console.Console` instances -- one for
    stdout (payloads) and one for stderr (diagnostics) -- and routes every
    call to the correct stream.

    Args:
        format: Desired output format. ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress informational messages and progress bars on stderr.
        verbose: Enable debug-level messages on stderr.
        output_file: If set, write payloads to this file path instead of
            stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    def enable_debug(self) -> None:
        """Turn on debug messages, as requested by ``NetworkConfig.debug``."""
        self._verbose = True

    def disable_debug(self) -> None:
        self._verbose = False

    # ------------------------------------------------------------------ #
    # Payload output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Render a decoded payload to stdout in the active format.

        Args:
            data: Payload -- typically a dict, list, or string. Pydantic
                models are dumped to JSON-compatible data first.
        """
        if hasattr(data, "model_dump"):
            data = data.model_dump(mode="json")

        if self._output_file:
            self._write_to_file(data)
            return

        if self._format == OutputFormat.JSON:
            self._print_json(data)
        elif self._format == OutputFormat.PLAIN:
            self._print_plain(data)
        else:
            self._print_rich(data)

    def print_data(self, text: str) -> None:
        """Print raw text to stdout (or append it to the configured output file)."""
        if self._output_file:
            with open(self._output_file, "a", encoding="utf-8") as f:
                f.write(text)
                if not text.endswith("\n"):
                    f.write("\n")
        else:
            print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print tabular data to stdout in the active format.

        * **Rich mode** -- styled :class:`~rich.table.Table`.
        * **JSON mode** -- array of objects keyed by header names.
        * **Plain mode** -- tab-separated values, one row per line.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))
        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message to stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            if self._no_color:
                print(message, file=sys.stderr, flush=True)
            else:
                self._stderr.print(message, markup=False, highlight=False)

    def success(self, message: str) -> None:
        """Print a green success message to stderr. Suppressed by ``--quiet``."""
        if not self._quiet:
            if self._no_color:
                print(message, file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[green]{_escape(message)}[/green]")

    def warning(self, message: str) -> None:
        """Print a yellow warning to stderr. NOT suppressed by ``--quiet``."""
        if self._no_color:
            print(f"Warning: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {_escape(message)}")

    def error(self, message: str) -> None:
        """Print a bold-red error to stderr. Never suppressed."""
        if self._no_color:
            print(f"Error: {message}", file=sys.stderr, flush=True)
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {_escape(message)}")

    def debug(self, message: str) -> None:
        """Print a debug message to stderr. Only shown in verbose/debug mode."""
        if self._verbose:
            if self._no_color:
                print(f"[debug] {message}", file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[dim]\\[debug] {_escape(message)}[/dim]")

    def transfer_progress(self) -> RichProgress:
        """Return a Rich progress display for uploads and downloads on stderr.

        The display is disabled when ``--quiet`` is active or stderr is not
        interactive, so it is always safe to use as a context manager.
        """
        return RichProgress(
            TextColumn("{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=self._stderr,
            disable=self._quiet or not self._stderr.is_terminal,
            transient=True,
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _print_json(self, data: Any) -> None:
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except (json.JSONDecodeError, TypeError):
                self.print_data(data)
                return
        self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def _print_plain(self, data: Any) -> None:
        if isinstance(data, dict):
            for key, value in data.items():
                self.print_data(f"{key}\t{value}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, dict):
                    self.print_data("\t".join(str(v) for v in item.values()))
                else:
                    self.print_data(str(item))
        else:
            self.print_data(str(data))

    def _print_rich(self, data: Any) -> None:
        if isinstance(data, (dict, list)):
            json_str = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(json_str, "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data), markup=False)

    def _write_to_file(self, data: Any) -> None:
        assert self._output_file is not None
        if isinstance(data, (dict, list)):
            content = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        else:
            content = str(data)

        with open(self._output_file, "w", encoding="utf-8") as f:
            f.write(content)
            if not content.endswith("\n"):
                f.write("\n")


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when NO_COLOR is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


def _escape(message: str) -> str:
    return escape(message)


# ------------------------------------------------------------------ #
# Global output instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def format_response(data: Any) -> None:
    """Render a payload to stdout via the global :class:`OutputManager`."""
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    """Print info message to stderr via the global OutputManager."""
    get_output().info(message)


def error(message: str) -> None:
    """Print error to stderr via the global OutputManager."""
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    """Print warning to stderr via the global OutputManager."""
    get_output().warning(message)


def debug(message: str) -> None:
    """Print debug message to stderr via the global OutputManager."""
    get_output().debug(message)
