"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~netpipe.exceptions.NetpipeError` subclass. Shell
wrappers can inspect the exit code of the ``netpipe`` command to tell a
business error apart from a transport error without parsing stderr.

Example::

    $ netpipe get /profile
    $ echo $?
    3   # EXIT_BUSINESS_ERROR -- the envelope carried a non-success error_code
"""

EXIT_SUCCESS = 0
"""The call completed and the envelope reported success."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command or configuration was invalid (missing base URL, bad method)."""

EXIT_BUSINESS_ERROR = 3
"""The server answered with an envelope whose ``error_code`` is not the success code."""

EXIT_TRANSPORT_ERROR = 4
"""The server answered with a non-2xx status or an unparsable envelope."""

EXIT_NETWORK_FAILURE = 5
"""The exchange itself failed (connection refused, timeout, I/O error)."""

EXIT_CANCELLED = 6
"""The call was aborted before it completed."""
