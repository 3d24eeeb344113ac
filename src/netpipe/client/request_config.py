"""Accumulated per-context request headers and parameters.

:class:`RequestConfiguration` collects headers and parameters that the
dispatcher adds to generic calls, uploads, and downloads. It is shared by
every call issued through one :class:`~netpipe.context.NetworkContext` and
is only emptied by :meth:`RequestConfiguration.clear`, so values added for one
call are still present for the next.

Concurrent callers appending at the same time are not coordinated; whichever
write lands last is what the next call sees.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class RequestConfiguration:
    """Mutable accumulator of headers and parameters with a fluent API.

    Example::

        context.request_config.with_header("X-Trace", "abc").with_param("page", 2)
        await dispatcher.get("/items", decode=list)
        context.request_config.clear()
    """

    def __init__(self) -> None:
        self._headers: dict[str, str] = {}
        self._params: dict[str, Any] = {}

    def with_header(self, key: str, value: str) -> RequestConfiguration:
        self._headers[key] = value
        return self

    def with_headers(self, headers: Mapping[str, str]) -> RequestConfiguration:
        self._headers.update(headers)
        return self

    def with_param(self, key: str, value: Any) -> RequestConfiguration:
        self._params[key] = value
        return self

    def with_params(self, params: Mapping[str, Any]) -> RequestConfiguration:
        self._params.update(params)
        return self

    def headers(self) -> dict[str, str]:
        """Return a snapshot of the accumulated headers."""
        return dict(self._headers)

    def params(self) -> dict[str, Any]:
        """Return a snapshot of the accumulated parameters."""
        return dict(self._params)

    def clear(self) -> None:
        """Forget every header and parameter. Calls already built are unaffected."""
        self._headers.clear()
        self._params.clear()

    @property
    def is_empty(self) -> bool:
        return not (self._headers or self._params)
