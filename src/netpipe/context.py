"""The network context: everything a dispatcher needs, built once at startup.

A :class:`NetworkContext` bundles the three pieces of shared state:

* the :class:`~netpipe.client.transport.TransportClient` (connection pool,
  interceptors, TLS policy),
* the :class:`~netpipe.client.request_config.RequestConfiguration`
  accumulator,
* the :class:`~netpipe.error_codes.ErrorCodeRegistry`.

It is created empty, initialised exactly once with :meth:`NetworkContext.init`,
and handed to every :class:`~netpipe.client.dispatcher.Dispatcher` that
should share it. Reconfiguring means building a new context.
"""

from __future__ import annotations

from typing import Optional

import httpx

from netpipe.client.request_config import RequestConfiguration
from netpipe.client.transport import TransportClient
from netpipe.error_codes import ErrorCodeRegistry
from netpipe.exceptions import ConfigError, NotInitializedError
from netpipe.models import NetworkConfig
from netpipe.output import OutputManager, get_output


class NetworkContext:
    """Shared state for one configured API target.

    Args:
        registry: Error code registry to use. Defaults to a registry seeded
            with the built-in messages.

    Example::

        context = NetworkContext().init(NetworkConfig(base_url="https://api.test"))
        try:
            ...
        finally:
            await context.aclose()
    """

    def __init__(self, registry: Optional[ErrorCodeRegistry] = None) -> None:
        self._config: Optional[NetworkConfig] = None
        self._transport: Optional[TransportClient] = None
        self._debug_output: Optional[OutputManager] = None
        self.request_config = RequestConfiguration()
        self.registry = registry if registry is not None else ErrorCodeRegistry()

    def init(
        self,
        config: NetworkConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> NetworkContext:
        """Build the transport client from *config*.

        Args:
            config: Transport settings.
            transport: Optional transport to send through (tests use
                :class:`httpx.MockTransport`).

        Returns:
            ``self``, for chaining.

        Raises:
            ConfigError: If the context was already initialised.
        """
        if self._transport is not None:
            raise ConfigError(
                "Network context is already initialised; build a new one to reconfigure"
            )

        output = get_output()
        if config.debug and not output.is_verbose:
            output.enable_debug()
            self._debug_output = output

        self._config = config
        self._transport = TransportClient(config, transport)
        output.debug(f"Network context initialised with base_url: {config.base_url}")
        return self

    @property
    def is_initialized(self) -> bool:
        return self._transport is not None

    @property
    def config(self) -> NetworkConfig:
        if self._config is None:
            raise NotInitializedError("Network context not initialised. Call init() first.")
        return self._config

    @property
    def transport(self) -> TransportClient:
        """The shared transport client.

        Raises:
            NotInitializedError: If :meth:`init` has not been called, or the
                context has been closed.
        """
        if self._transport is None:
            raise NotInitializedError("Network context not initialised. Call init() first.")
        if self._transport.is_closed:
            raise NotInitializedError("Network context has been closed.")
        return self._transport

    async def aclose(self) -> None:
        """Close the connection pool. Calls issued afterwards are rejected.

        Debug output switched on by :meth:`init` is switched off again, so a
        later context built without ``debug`` stays quiet.
        """
        if self._transport is not None:
            await self._transport.aclose()
        if self._debug_output is not None:
            self._debug_output.disable_debug()
            self._debug_output = None

    async def __aenter__(self) -> NetworkContext:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
