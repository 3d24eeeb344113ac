"""Call outcomes and the callback contract.

Every dispatcher call resolves to exactly one outcome:

* :class:`Success` -- the envelope reported success and the payload decoded.
* :class:`BusinessError` -- the envelope carried a non-success ``error_code``.
* :class:`TransportError` -- non-2xx HTTP status, unparsable envelope, or a
  successful envelope without a result.
* :class:`Failure` -- the exchange itself failed (network, I/O,
  cancellation, invalid request).

Code that prefers callbacks implements :class:`NetworkCallback` (or
:class:`TransferCallback` for uploads and downloads) and routes an outcome
with :meth:`dispatch`. Business and transport errors both land in
``on_error``; the ``code`` value tells them apart.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from netpipe.models import Progress

T = TypeVar("T")


class CallState(str, enum.Enum):
    """Lifecycle of one call. The last four states are terminal and exclusive."""

    CREATED = "created"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    BUSINESS_ERROR = "business_error"
    TRANSPORT_ERROR = "transport_error"
    EXCEPTION = "exception"

    @property
    def is_terminal(self) -> bool:
        return self not in (CallState.CREATED, CallState.IN_FLIGHT)


class NetworkCallback(Generic[T]):
    """Receiver for the outcome of one call.

    All methods are no-ops by default, so subclasses only override the ones
    they care about. Exactly one of them is invoked per call.
    """

    def on_success(self, payload: T) -> None:
        """Called with the decoded payload."""

    def on_error(self, code: int, message: str) -> None:
        """Called for business errors and transport/structural errors."""

    def on_exception(self, cause: BaseException) -> None:
        """Called when the exchange could not be completed."""


class TransferCallback(NetworkCallback[T]):
    """Callback for uploads and downloads.

    ``on_progress`` may fire any number of times, always before the
    terminal method.
    """

    def on_progress(self, progress: Progress) -> None:
        """Called with each progress snapshot."""


@dataclass(frozen=True)
class Success(Generic[T]):
    payload: T
    state: CallState = field(default=CallState.SUCCEEDED, init=False)

    def dispatch(self, callback: NetworkCallback[T]) -> None:
        callback.on_success(self.payload)


@dataclass(frozen=True)
class BusinessError:
    """A structurally valid response whose envelope reports a failure.

    Attributes:
        code: The envelope's ``error_code``.
        message: Display message resolved from the error code registry.
        reason: The envelope's own ``reason`` text, kept as metadata.
    """

    code: int
    message: str
    reason: str = ""
    state: CallState = field(default=CallState.BUSINESS_ERROR, init=False)

    def dispatch(self, callback: NetworkCallback[Any]) -> None:
        callback.on_error(self.code, self.message)


@dataclass(frozen=True)
class TransportError:
    """A failure at the HTTP or parsing layer.

    ``code`` is the HTTP status, or ``LOCAL_ERROR_CODE`` (-1) when the
    problem was detected while reading the envelope.
    """

    code: int
    message: str
    state: CallState = field(default=CallState.TRANSPORT_ERROR, init=False)

    def dispatch(self, callback: NetworkCallback[Any]) -> None:
        callback.on_error(self.code, self.message)


@dataclass(frozen=True)
class Failure:
    """The exchange could not be completed; ``cause`` is the original exception."""

    cause: BaseException
    state: CallState = field(default=CallState.EXCEPTION, init=False)

    def dispatch(self, callback: NetworkCallback[Any]) -> None:
        callback.on_exception(self.cause)


Outcome = Union[Success[T], BusinessError, TransportError, Failure]
