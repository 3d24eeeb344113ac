"""Byte-counting stream wrapper used for upload and download progress.

:class:`ProgressByteStream` sits between an :class:`httpx.AsyncByteStream`
and whoever consumes it. Each chunk the wrapped stream yields counts as one
read: the running total grows by the chunk length and the listener is called
synchronously with a fresh :class:`~netpipe.models.Progress`. When the wrapped
stream is exhausted one last notification is sent with a zero increment, so
consumers always see the final byte count even for streams of unknown length.

Chunks are yielded untouched; the wrapper never buffers or re-chunks.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Callable, Optional

import httpx

from netpipe.constants import UNKNOWN_LENGTH
from netpipe.models import Progress

ProgressListener = Callable[[Progress], None]


class ProgressByteStream(httpx.AsyncByteStream):
    """Observe an async byte stream and report cumulative progress.

    Args:
        stream: The stream to wrap (a response or request body).
        total_bytes: Declared length of the stream. Zero or negative means
            unknown, in which case every notification reports ``percent == 0``.
        listener: Called once per chunk and once at end of stream. ``None``
            turns the wrapper into a pure byte counter.
    """

    def __init__(
        self,
        stream: httpx.AsyncByteStream,
        total_bytes: int = UNKNOWN_LENGTH,
        listener: Optional[ProgressListener] = None,
    ) -> None:
        self._stream = stream
        self._total_bytes = total_bytes
        self._listener = listener
        self._bytes_read = 0

    @property
    def bytes_read(self) -> int:
        """Bytes observed so far."""
        return self._bytes_read

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            self._advance(len(chunk))
            yield chunk
        # End of stream counts as a zero-byte read.
        self._advance(0)

    async def aclose(self) -> None:
        await self._stream.aclose()

    def _advance(self, count: int) -> None:
        self._bytes_read += count
        if self._listener is not None:
            self._listener(Progress.of(self._bytes_read, self._total_bytes))


def declared_length(headers: httpx.Headers) -> int:
    """Return the ``Content-Length`` from *headers*, or ``UNKNOWN_LENGTH``."""
    value = headers.get("content-length")
    if value is None:
        return UNKNOWN_LENGTH
    try:
        length = int(value)
    except ValueError:
        return UNKNOWN_LENGTH
    return length if length >= 0 else UNKNOWN_LENGTH
