"""Connection-pooled transport client with an interceptor chain.

:class:`TransportClient` owns one :class:`httpx.AsyncHTTPTransport` (the
connection pool and TLS trust policy) and an :class:`httpx.AsyncClient`
whose transport is an :class:`InterceptingTransport`: every request the
client sends passes through the configured interceptors before it reaches
the pool.

Per-call variants are built with :meth:`TransportClient.with_interceptors`.
A derived client shares the parent's pool, interceptors, and in-flight task
registry, adds its own interceptors innermost, and never changes the parent.
Uploads and downloads use this to attach a progress interceptor to a single
call.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import Coroutine, Sequence
from typing import Any, Optional, TypeVar

import httpx

from netpipe.client.interceptors import (
    CommonHeadersInterceptor,
    CommonParamsInterceptor,
    HttpLoggingInterceptor,
    Interceptor,
    run_chain,
)
from netpipe.models import NetworkConfig
from netpipe.output import get_output
from netpipe.tls import ssl_context_for

T = TypeVar("T")


class InterceptingTransport(httpx.AsyncBaseTransport):
    """Run every request through an interceptor chain before the wrapped transport.

    Args:
        inner: The transport that performs the actual exchange.
        interceptors: Ordered interceptors, outermost first.
        owns_inner: Whether :meth:`aclose` also closes *inner*. Derived
            transports share the pool and must leave it open.
    """

    def __init__(
        self,
        inner: httpx.AsyncBaseTransport,
        interceptors: Sequence[Interceptor],
        owns_inner: bool = True,
    ) -> None:
        self._inner = inner
        self._interceptors = tuple(interceptors)
        self._owns_inner = owns_inner

    @property
    def interceptors(self) -> tuple[Interceptor, ...]:
        return self._interceptors

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await run_chain(self._interceptors, request, self._inner.handle_async_request)

    async def aclose(self) -> None:
        if self._owns_inner:
            await self._inner.aclose()


def default_interceptors(config: NetworkConfig) -> list[Interceptor]:
    """Build the standard chain for *config*: params, headers, then logging."""
    interceptors: list[Interceptor] = [
        CommonParamsInterceptor(config.common_params),
        CommonHeadersInterceptor(config.common_headers),
    ]
    if config.logging_enabled:
        interceptors.append(HttpLoggingInterceptor())
    return interceptors


class TransportClient:
    """The pooled HTTP client every dispatcher call goes through.

    Args:
        config: Transport settings. Timeouts, base URL, common headers and
            parameters, logging, and TLS policy are fixed at construction.
        transport: Optional transport to send through instead of a new
            :class:`httpx.AsyncHTTPTransport`. Tests pass an
            :class:`httpx.MockTransport` here.

    Example::

        client = TransportClient(NetworkConfig(base_url="https://api.test"))
        response = await client.send(client.build_request("GET", "/users"))
        await client.aclose()
    """

    def __init__(
        self,
        config: NetworkConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        *,
        interceptors: Optional[Sequence[Interceptor]] = None,
        in_flight: Optional[set[asyncio.Task[Any]]] = None,
        aborted: Optional[weakref.WeakSet[asyncio.Task[Any]]] = None,
        owns_transport: bool = True,
    ) -> None:
        self._config = config
        self._inner = transport or httpx.AsyncHTTPTransport(
            verify=ssl_context_for(config.unsafe_tls),
            retries=0,
        )
        self._interceptors = list(
            default_interceptors(config) if interceptors is None else interceptors
        )
        self._in_flight: set[asyncio.Task[Any]] = set() if in_flight is None else in_flight
        self._aborted: weakref.WeakSet[asyncio.Task[Any]] = (
            weakref.WeakSet() if aborted is None else aborted
        )
        self._owns_transport = owns_transport
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(
                config.read_timeout,
                connect=config.connect_timeout,
                read=config.read_timeout,
                write=config.write_timeout,
            ),
            transport=InterceptingTransport(self._inner, self._interceptors, owns_transport),
            follow_redirects=True,
        )

    @property
    def config(self) -> NetworkConfig:
        return self._config

    @property
    def interceptors(self) -> tuple[Interceptor, ...]:
        return tuple(self._interceptors)

    @property
    def in_flight_count(self) -> int:
        """Number of calls currently registered and not yet finished."""
        return len(self._in_flight)

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def build_request(self, method: str, url: str, **kwargs: Any) -> httpx.Request:
        """Build a request resolved against the base URL."""
        return self._client.build_request(method, url, **kwargs)

    async def send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        """Send *request* through the interceptor chain.

        With ``stream=True`` the body is left unread; the caller must read
        and close the response.
        """
        return await self._client.send(request, stream=stream)

    def with_interceptors(self, *extra: Interceptor) -> TransportClient:
        """Return a client that adds *extra* innermost and shares this client's pool.

        The derived client must be closed with :meth:`aclose` when the call
        is done; closing it leaves the shared pool open.
        """
        return TransportClient(
            self._config,
            self._inner,
            interceptors=[*self._interceptors, *extra],
            in_flight=self._in_flight,
            aborted=self._aborted,
            owns_transport=False,
        )

    # ------------------------------------------------------------------ #
    # In-flight tracking
    # ------------------------------------------------------------------ #

    def spawn(self, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        """Schedule *coro* as a task that :meth:`cancel_all` can abort."""
        return self.track(asyncio.create_task(coro))

    def track(self, task: asyncio.Task[T]) -> asyncio.Task[T]:
        """Register an existing task so that :meth:`cancel_all` aborts it too."""
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    def cancel_all(self) -> int:
        """Abort every in-flight call and return how many were cancelled.

        Tasks that already finished keep their result. Aborted tasks are
        remembered so that :meth:`was_aborted` can tell them apart from tasks
        cancelled by anything else.
        """
        pending = [task for task in self._in_flight if not task.done()]
        for task in pending:
            self._aborted.add(task)
            task.cancel()
        get_output().debug(f"Cancelled {len(pending)} in-flight request(s)")
        return len(pending)

    def was_aborted(self, task: asyncio.Task[Any]) -> bool:
        """Whether *task* was cancelled by :meth:`cancel_all`."""
        return task in self._aborted

    async def aclose(self) -> None:
        """Close the client; the pool is closed only by the client that owns it."""
        await self._client.aclose()
