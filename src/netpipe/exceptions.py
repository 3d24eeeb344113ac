"""Exception hierarchy for netpipe.

All exceptions inherit from :class:`NetpipeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`netpipe.exit_codes`.
Library code raises only the configuration errors synchronously; everything
that happens once a call is in flight is reported as an outcome instead.
The command-line front end turns outcomes back into the ``*Result``
exceptions below so that :func:`netpipe.app.main` can exit with the right
code.

Subclass hierarchy::

    NetpipeError (exit 1)
    +-- ConfigError             (exit 2)
    |   +-- NotInitializedError (exit 2)
    +-- UnsupportedMethodError  (exit 2)
    +-- BusinessErrorResult     (exit 3)
    +-- TransportErrorResult    (exit 4)
    +-- NetworkFailure          (exit 5)
    +-- RequestCancelledError   (exit 6)
"""

from __future__ import annotations

from netpipe.exit_codes import (
    EXIT_BUSINESS_ERROR,
    EXIT_CANCELLED,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NETWORK_FAILURE,
    EXIT_TRANSPORT_ERROR,
)


class NetpipeError(Exception):
    """Base exception for all netpipe errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(NetpipeError):
    """Raised for configuration problems (missing base URL, invalid JSON, bad values)."""

    exit_code = EXIT_INVALID_USAGE


class NotInitializedError(ConfigError):
    """Raised when a call is dispatched through a context that was never initialised."""


class UnsupportedMethodError(NetpipeError):
    """Raised when a generic call names an HTTP method outside GET/POST/PUT/DELETE."""

    exit_code = EXIT_INVALID_USAGE


class RequestCancelledError(NetpipeError):
    """Raised into the exception channel of calls aborted by ``cancel_all``."""

    exit_code = EXIT_CANCELLED


class BusinessErrorResult(NetpipeError):
    """A business error outcome surfaced as an exception by the CLI.

    Args:
        code: The envelope's ``error_code``.
        message: The message resolved from the error code registry.
    """

    exit_code = EXIT_BUSINESS_ERROR

    def __init__(self, code: int, message: str):
        super().__init__(f"{message} (code: {code})")
        self.code = code


class TransportErrorResult(NetpipeError):
    """A transport or structural error outcome surfaced as an exception by the CLI."""

    exit_code = EXIT_TRANSPORT_ERROR

    def __init__(self, code: int, message: str):
        super().__init__(f"{message} (code: {code})")
        self.code = code


class NetworkFailure(NetpipeError):
    """Raised by the CLI when a call failed at the network or I/O level."""

    exit_code = EXIT_NETWORK_FAILURE
