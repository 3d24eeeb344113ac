"""Interceptor chain applied around every request sent by a transport client.

An :class:`Interceptor` receives a :class:`Chain`, may rewrite
``chain.request`` before calling :meth:`Chain.proceed`, and may rewrite the
response it gets back. The chain follows a pipeline pattern: each interceptor
wraps the next one, and the last link is the real network transport.

Built-in interceptors, in the order a transport client installs them
(outermost first):

* :class:`CommonParamsInterceptor` -- appends common query parameters.
* :class:`CommonHeadersInterceptor` -- appends common headers.
* :class:`HttpLoggingInterceptor` -- logs each exchange (when enabled).
* :class:`ProgressInterceptor` -- wraps a body in a
  :class:`~netpipe.client.progress.ProgressByteStream`; only installed on
  per-call clients derived for uploads and downloads.

Interceptors never mutate the request they are given; they build a new one
with :func:`rebuild_request`, so the same request run through the same chain
always produces the same rewritten request.
"""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import httpx

from netpipe.client.progress import ProgressByteStream, ProgressListener, declared_length
from netpipe.output import get_output

SendFn = Callable[[httpx.Request], Awaitable[httpx.Response]]

SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "x-auth-token",
        "proxy-authorization",
    }
)

SENSITIVE_PARAMS = frozenset(
    {"key", "api_key", "apikey", "token", "access_token", "password", "secret"}
)

REDACTED_VALUE = "[REDACTED]"


class Chain:
    """One link of an interceptor chain.

    Args:
        interceptors: The full, ordered interceptor list.
        index: Position of the interceptor that :meth:`proceed` will call next.
        request: The request as seen by the current interceptor.
        send: The terminal send function (the network transport).
    """

    def __init__(
        self,
        interceptors: Sequence[Interceptor],
        index: int,
        request: httpx.Request,
        send: SendFn,
    ) -> None:
        self._interceptors = interceptors
        self._index = index
        self._request = request
        self._send = send

    @property
    def request(self) -> httpx.Request:
        return self._request

    async def proceed(self, request: httpx.Request) -> httpx.Response:
        """Hand *request* to the next interceptor, or to the transport after the last one."""
        if self._index >= len(self._interceptors):
            return await self._send(request)
        next_chain = Chain(self._interceptors, self._index + 1, request, self._send)
        return await self._interceptors[self._index].intercept(next_chain)


async def run_chain(
    interceptors: Sequence[Interceptor],
    request: httpx.Request,
    send: SendFn,
) -> httpx.Response:
    """Run *request* through every interceptor and finally through *send*."""
    return await Chain(interceptors, 0, request, send).proceed(request)


class Interceptor(ABC):
    """Base class for request/response transforms.

    Subclasses implement :meth:`intercept` and must call
    ``chain.proceed(...)`` exactly once. Exceptions raised here propagate to
    the dispatcher and end the call in its exception channel.

    Example::

        class TraceIdInterceptor(Interceptor):
            async def intercept(self, chain):
                headers = httpx.Headers(chain.request.headers)
                headers["X-Trace-Id"] = new_trace_id()
                return await chain.proceed(rebuild_request(chain.request, headers=headers))
    """

    @abstractmethod
    async def intercept(self, chain: Chain) -> httpx.Response:
        ...


# ------------------------------------------------------------------ #
# Built-in interceptors
# ------------------------------------------------------------------ #


class CommonParamsInterceptor(Interceptor):
    """Append a fixed set of query parameters to every request URL."""

    def __init__(self, params: Mapping[str, Any]) -> None:
        self._params = dict(params)

    async def intercept(self, chain: Chain) -> httpx.Response:
        request = chain.request
        if not self._params:
            return await chain.proceed(request)

        url = request.url
        for key, value in self._params.items():
            url = url.copy_add_param(key, stringify(value))
        return await chain.proceed(rebuild_request(request, url=url))


class CommonHeadersInterceptor(Interceptor):
    """Append a fixed set of headers to every request.

    Headers are appended rather than replaced, so a header the caller already
    set is sent twice when it also appears in the common set.
    """

    def __init__(self, headers: Mapping[str, str]) -> None:
        self._headers = dict(headers)

    async def intercept(self, chain: Chain) -> httpx.Response:
        request = chain.request
        if not self._headers:
            return await chain.proceed(request)

        headers = httpx.Headers([*request.headers.raw, *self._headers.items()])
        return await chain.proceed(rebuild_request(request, headers=headers))


class HttpLoggingInterceptor(Interceptor):
    """Log each exchange through the global output manager.

    Logs the request line and its headers, then the status line, the
    declared response length, and the elapsed time. Bodies are never read,
    so streamed uploads and downloads are unaffected. Credentials in headers
    and query parameters are redacted.
    """

    def __init__(self, log_headers: bool = True) -> None:
        self._log_headers = log_headers

    async def intercept(self, chain: Chain) -> httpx.Response:
        request = chain.request
        output = get_output()
        url = redact_url(request.url)

        output.info(f"--> {request.method} {url}")
        if self._log_headers:
            for key, value in redact_headers(request.headers).items():
                output.info(f"{key}: {value}")
        output.info(f"--> END {request.method}")

        start_ns = time.perf_counter_ns()
        try:
            response = await chain.proceed(request)
        except Exception as exc:
            output.info(f"<-- HTTP FAILED: {type(exc).__name__}: {exc}")
            raise
        elapsed_ms = (time.perf_counter_ns() - start_ns) // 1_000_000

        length = response.headers.get("content-length", "unknown-length")
        output.info(
            f"<-- {response.status_code} {response.reason_phrase} {url} "
            f"({elapsed_ms}ms, {length} body)"
        )
        if self._log_headers:
            for key, value in redact_headers(response.headers).items():
                output.info(f"{key}: {value}")
        return response


class TransferDirection(str, Enum):
    """Which body a :class:`ProgressInterceptor` observes."""

    UPLOAD = "upload"
    DOWNLOAD = "download"


class ProgressInterceptor(Interceptor):
    """Attach a :class:`~netpipe.client.progress.ProgressByteStream` to one body.

    For :attr:`TransferDirection.DOWNLOAD` the response body is wrapped after
    the exchange; for :attr:`TransferDirection.UPLOAD` the request body is
    wrapped before it is sent. The declared total comes from the matching
    ``Content-Length`` header.
    """

    def __init__(
        self,
        listener: Optional[ProgressListener],
        direction: TransferDirection = TransferDirection.DOWNLOAD,
    ) -> None:
        self._listener = listener
        self._direction = direction

    async def intercept(self, chain: Chain) -> httpx.Response:
        request = chain.request
        if self._listener is None:
            return await chain.proceed(request)

        if self._direction is TransferDirection.UPLOAD:
            stream = ProgressByteStream(
                request.stream,  # type: ignore[arg-type]
                declared_length(request.headers),
                self._listener,
            )
            return await chain.proceed(rebuild_request(request, stream=stream))

        response = await chain.proceed(request)
        return httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            stream=ProgressByteStream(
                response.stream,  # type: ignore[arg-type]
                declared_length(response.headers),
                self._listener,
            ),
            extensions=response.extensions,
        )


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def rebuild_request(
    request: httpx.Request,
    *,
    url: Optional[httpx.URL] = None,
    headers: Optional[httpx.Headers] = None,
    stream: Optional[httpx.AsyncByteStream] = None,
) -> httpx.Request:
    """Return a copy of *request* with the given parts replaced."""
    return httpx.Request(
        request.method,
        url if url is not None else request.url,
        headers=headers if headers is not None else request.headers,
        stream=stream if stream is not None else request.stream,
        extensions=request.extensions,
    )


def stringify(value: Any) -> str:
    """Render a parameter value the way it is sent on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def redact_headers(headers: httpx.Headers) -> dict[str, str]:
    """Return *headers* as a dict with sensitive values replaced."""
    result: dict[str, str] = {}
    for key, value in headers.multi_items():
        result[key] = REDACTED_VALUE if key.lower() in SENSITIVE_HEADERS else value
    return result


def redact_url(url: httpx.URL) -> str:
    """Render *url* with user-info and credential-like query parameters redacted."""
    if url.params:
        params = [
            (key, REDACTED_VALUE if key.lower() in SENSITIVE_PARAMS else value)
            for key, value in url.params.multi_items()
        ]
        url = url.copy_with(params=params)
    rendered = str(url)
    return re.sub(r"(https?://)([^:/@]+):([^@/]+)@", r"\1[REDACTED]:[REDACTED]@", rendered)
