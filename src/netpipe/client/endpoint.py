"""Typed endpoints and prepared calls.

A :class:`PreparedCall` is what the dispatcher's typed ``execute`` consumes:
a ready-to-send :class:`httpx.Request` plus the decoder for its payload. How
the request was produced does not matter to the dispatcher.

:class:`Endpoint` is a small declarative way to produce prepared calls. It
names an HTTP method, a path template, where non-path arguments are bound,
and the payload decoder::

    GET_NEWS = Endpoint("GET", "toutiao/content", decode=decoder_for(News))
    call = GET_NEWS.prepare(context.transport, uniquekey="abc", key=api_key)
    outcome = await dispatcher.execute(call)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from urllib.parse import quote

import httpx

from netpipe.client.envelope import PayloadDecoder, identity
from netpipe.client.interceptors import stringify

if TYPE_CHECKING:
    from netpipe.client.transport import TransportClient

T = TypeVar("T")


class Binding(str, Enum):
    """Where an endpoint sends arguments that are not path placeholders."""

    QUERY = "query"
    FORM = "form"
    BODY = "body"


@dataclass(frozen=True)
class PreparedCall(Generic[T]):
    """A resolved request bound to its payload decoder."""

    request: httpx.Request
    decode: PayloadDecoder[T]


@dataclass(frozen=True)
class Endpoint(Generic[T]):
    """Declarative description of one API endpoint.

    Attributes:
        method: HTTP method.
        path: Path template relative to the base URL; ``{name}`` placeholders
            are filled from the arguments passed to :meth:`prepare`.
        decode: Decoder for the envelope's ``result``.
        binding: Where the remaining arguments go.
    """

    method: str
    path: str
    decode: PayloadDecoder[T] = identity
    binding: Binding = Binding.QUERY

    def prepare(self, client: TransportClient, **arguments: Any) -> PreparedCall[T]:
        """Bind *arguments* and build the request against *client*'s base URL."""
        path = self.path
        remaining: dict[str, Any] = {}
        for key, value in arguments.items():
            placeholder = "{" + key + "}"
            if placeholder in path:
                path = path.replace(placeholder, quote(stringify(value), safe=""))
            elif value is not None:
                remaining[key] = value

        kwargs: dict[str, Any] = {}
        if remaining:
            if self.binding is Binding.QUERY:
                kwargs["params"] = {k: stringify(v) for k, v in remaining.items()}
            elif self.binding is Binding.FORM:
                kwargs["data"] = {k: stringify(v) for k, v in remaining.items()}
            else:
                kwargs["json"] = remaining

        request = client.build_request(self.method.upper(), path, **kwargs)
        return PreparedCall(request=request, decode=self.decode)
