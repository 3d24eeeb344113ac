"""HTTP client layer for netpipe.

Builds on :mod:`httpx`: a pooled :class:`TransportClient` with an
interceptor chain, an envelope decoder, and the :class:`Dispatcher` that
ties them together and reports every call as one tagged outcome.

Classes:
    :class:`Dispatcher` -- issues generic, typed, upload and download calls.
    :class:`TransportClient` -- pooled :class:`httpx.AsyncClient` wrapper.
    :class:`Endpoint` -- declarative endpoint that produces prepared calls.

Example::

    from netpipe.client import Dispatcher, Success

    outcome = await Dispatcher(context).get("users")
    if isinstance(outcome, Success):
        print(outcome.payload)
"""

from netpipe.client.dispatcher import Dispatcher
from netpipe.client.endpoint import Binding, Endpoint, PreparedCall
from netpipe.client.envelope import decode_response, decoder_for, identity
from netpipe.client.interceptors import (
    CommonHeadersInterceptor,
    CommonParamsInterceptor,
    HttpLoggingInterceptor,
    Interceptor,
    ProgressInterceptor,
    TransferDirection,
)
from netpipe.client.outcome import (
    BusinessError,
    CallState,
    Failure,
    NetworkCallback,
    Outcome,
    Success,
    TransferCallback,
    TransportError,
)
from netpipe.client.request_config import RequestConfiguration
from netpipe.client.transport import TransportClient

__all__ = [
    "Binding",
    "BusinessError",
    "CallState",
    "CommonHeadersInterceptor",
    "CommonParamsInterceptor",
    "Dispatcher",
    "Endpoint",
    "Failure",
    "HttpLoggingInterceptor",
    "Interceptor",
    "NetworkCallback",
    "Outcome",
    "PreparedCall",
    "ProgressInterceptor",
    "RequestConfiguration",
    "Success",
    "TransferCallback",
    "TransferDirection",
    "TransportClient",
    "TransportError",
    "decode_response",
    "decoder_for",
    "identity",
]
