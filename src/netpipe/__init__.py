"""netpipe -- an asynchronous HTTP client core with envelope decoding and transfers.

This package wraps :mod:`httpx` with an interceptor chain (common headers,
common query parameters, transport logging, byte-progress tracking), decodes
the uniform ``{error_code, reason, result}`` response envelope, and streams
uploads and downloads while reporting progress. Every call resolves to exactly
one outcome: success, business error, transport error, or exception.

Typical usage::

    from netpipe import NetworkConfig, NetworkContext, Dispatcher

    context = NetworkContext().init(NetworkConfig(base_url="https://api.test"))
    dispatcher = Dispatcher(context)
    outcome = await dispatcher.get("/users", decode=list)

Modules:
    context: The explicit network context built once at startup.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration loading and precedence resolution.
    error_codes: Business error code to message registry.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes used by the command-line front end.
    output: stdout/stderr output system with Rich support.
"""

__version__ = "0.3.0"

from netpipe.client.dispatcher import Dispatcher  # noqa: E402
from netpipe.client.outcome import (  # noqa: E402
    BusinessError,
    CallState,
    Failure,
    NetworkCallback,
    Success,
    TransferCallback,
    TransportError,
)
from netpipe.context import NetworkContext  # noqa: E402
from netpipe.error_codes import ErrorCodeRegistry  # noqa: E402
from netpipe.models import NetworkConfig, Progress, ResponseEnvelope  # noqa: E402

__all__ = [
    "__version__",
    "BusinessError",
    "CallState",
    "Dispatcher",
    "ErrorCodeRegistry",
    "Failure",
    "NetworkCallback",
    "NetworkConfig",
    "NetworkContext",
    "Progress",
    "ResponseEnvelope",
    "Success",
    "TransferCallback",
    "TransportError",
]
