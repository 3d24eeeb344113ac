"""Request dispatcher -- the single entry point for issuing calls.

:class:`Dispatcher` turns a call description into exactly one
:class:`~netpipe.client.outcome.Outcome`. It never raises for anything that
happens during the exchange: network errors, I/O errors, invalid requests and
cancellation all come back as :class:`~netpipe.client.outcome.Failure`.

Calls run as tasks registered with the context's transport so that
:meth:`Dispatcher.cancel_all` can abort them. Awaiting a dispatcher method
returns the outcome; :meth:`Dispatcher.enqueue` instead routes it to a
:class:`~netpipe.client.outcome.NetworkCallback`.

Example::

    async with NetworkContext().init(NetworkConfig(base_url=url)) as context:
        dispatcher = Dispatcher(context)
        outcome = await dispatcher.get("users/1", decode=decoder_for(User))
        match outcome:
            case Success(payload=user):
                ...
            case BusinessError(code=code, message=message):
                ...
"""

from __future__ import annotations

import asyncio
import mimetypes
import os
from collections.abc import Coroutine, Mapping, Sequence
from contextlib import ExitStack
from functools import partial
from pathlib import Path
from typing import Any, Optional, TypeVar, Union

import httpx

from netpipe.client.endpoint import Endpoint, PreparedCall
from netpipe.client.envelope import PayloadDecoder, decode_response, identity
from netpipe.client.interceptors import ProgressInterceptor, TransferDirection, stringify
from netpipe.client.outcome import (
    Failure,
    NetworkCallback,
    Outcome,
    Success,
    TransferCallback,
    TransportError,
)
from netpipe.client.progress import ProgressListener
from netpipe.client.transport import TransportClient
from netpipe.constants import DEFAULT_FILE_FIELD, DEFAULT_FILES_FIELD
from netpipe.context import NetworkContext
from netpipe.exceptions import RequestCancelledError, UnsupportedMethodError
from netpipe.output import get_output

T = TypeVar("T")

PathLike = Union[str, os.PathLike]

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE")
QUERY_METHODS = ("GET", "DELETE")
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class Dispatcher:
    """Issue calls through a :class:`~netpipe.context.NetworkContext`.

    Every public call method needs an initialised context and raises
    :class:`~netpipe.exceptions.NotInitializedError` otherwise; that is the
    only exception a call method raises.

    Args:
        context: The context whose transport, accumulated request
            configuration and error code registry this dispatcher uses.
    """

    def __init__(self, context: NetworkContext) -> None:
        self._context = context

    @property
    def context(self) -> NetworkContext:
        return self._context

    # ------------------------------------------------------------------ #
    # Typed calls
    # ------------------------------------------------------------------ #

    def prepare(self, endpoint: Endpoint[T], **arguments: Any) -> PreparedCall[T]:
        """Bind *arguments* to *endpoint* against this context's transport."""
        return endpoint.prepare(self._context.transport, **arguments)

    async def execute(self, call: PreparedCall[T]) -> Outcome[T]:
        """Send a prepared call and decode its envelope."""
        transport = self._context.transport
        return await self._submit(transport, self._exchange(transport, call.request, call.decode))

    # ------------------------------------------------------------------ #
    # Generic calls
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        url: str,
        decode: PayloadDecoder[T] = identity,
        body: Any = None,
    ) -> Outcome[T]:
        """Send a generic call carrying the accumulated headers and parameters.

        ``GET`` and ``DELETE`` put the accumulated parameters on the query
        string. ``POST`` and ``PUT`` send *body* as JSON, or the accumulated
        parameters when no body is given.

        Args:
            method: One of ``GET``, ``POST``, ``PUT``, ``DELETE`` (any case).
            url: Path relative to the base URL, or an absolute URL.
            decode: Decoder for the envelope's ``result``.
            body: JSON body for ``POST``/``PUT``. Pydantic models are dumped.

        Returns:
            The call outcome. An unsupported method yields :class:`Failure`
            with :class:`~netpipe.exceptions.UnsupportedMethodError`.
        """
        transport = self._context.transport
        verb = method.upper()
        if verb not in SUPPORTED_METHODS:
            get_output().debug(f"Unsupported method: {method}")
            return Failure(UnsupportedMethodError(f"Unsupported method: {method}"))

        config = self._context.request_config
        try:
            if verb in QUERY_METHODS:
                request = transport.build_request(
                    verb, url, params=_query_params(config.params()), headers=config.headers()
                )
            else:
                payload = config.params() if body is None else _json_body(body)
                request = transport.build_request(
                    verb, url, json=payload, headers=config.headers()
                )
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            get_output().debug(f"Could not build {verb} {url}: {exc}")
            return Failure(exc)

        return await self._submit(transport, self._exchange(transport, request, decode))

    async def get(self, url: str, decode: PayloadDecoder[T] = identity) -> Outcome[T]:
        return await self.request("GET", url, decode)

    async def post(
        self, url: str, decode: PayloadDecoder[T] = identity, body: Any = None
    ) -> Outcome[T]:
        return await self.request("POST", url, decode, body)

    async def put(
        self, url: str, decode: PayloadDecoder[T] = identity, body: Any = None
    ) -> Outcome[T]:
        return await self.request("PUT", url, decode, body)

    async def delete(self, url: str, decode: PayloadDecoder[T] = identity) -> Outcome[T]:
        return await self.request("DELETE", url, decode)

    # ------------------------------------------------------------------ #
    # Transfers
    # ------------------------------------------------------------------ #

    async def upload(
        self,
        url: str,
        file: PathLike,
        field_name: str = DEFAULT_FILE_FIELD,
        params: Optional[Mapping[str, Any]] = None,
        on_progress: Optional[ProgressListener] = None,
    ) -> Outcome[str]:
        """Upload one file as a multipart ``POST``.

        The file goes in the part named *field_name* with a content type
        guessed from its name. *params* become additional text parts.

        Returns:
            :class:`Success` with the raw response body text on a 2xx
            response. The body is not decoded as an envelope.
        """
        transport = self._context.transport
        return await self._upload(transport, url, [Path(file)], field_name, params, on_progress)

    async def upload_files(
        self,
        url: str,
        files: Sequence[PathLike],
        field_name: str = DEFAULT_FILES_FIELD,
        params: Optional[Mapping[str, Any]] = None,
        on_progress: Optional[ProgressListener] = None,
    ) -> Outcome[str]:
        """Upload several files, all under *field_name*, in one multipart ``POST``."""
        transport = self._context.transport
        if not files:
            return Failure(ValueError("No files to upload"))
        return await self._upload(
            transport, url, [Path(f) for f in files], field_name, params, on_progress
        )

    async def download(
        self,
        url: str,
        destination: PathLike,
        on_progress: Optional[ProgressListener] = None,
    ) -> Outcome[Path]:
        """Stream a ``GET`` response body to *destination*.

        Parent directories are created as needed and an existing file is
        overwritten. Progress reaches 100 percent before the outcome is
        returned when the server declares a length.

        Returns:
            :class:`Success` with the destination path once the whole body
            has been written and flushed.
        """
        transport = self._context.transport
        return await self._submit(
            transport, self._send_download(transport, url, Path(destination), on_progress)
        )

    # ------------------------------------------------------------------ #
    # Callback style
    # ------------------------------------------------------------------ #

    def enqueue(
        self,
        call: Coroutine[Any, Any, Outcome[T]],
        callback: NetworkCallback[T],
    ) -> asyncio.Task[Outcome[T]]:
        """Run *call* in the background and route its outcome to *callback*.

        *call* is an un-awaited dispatcher coroutine, for example
        ``dispatcher.get("users")``. Exactly one callback method fires, even
        when the call is cancelled before it starts. Must be called from a
        running event loop.
        """
        try:
            transport = self._context.transport
        except Exception:
            call.close()
            raise
        task = transport.track(asyncio.create_task(call))
        task.add_done_callback(partial(_deliver, callback=callback))
        return task

    def enqueue_upload(
        self,
        url: str,
        file: PathLike,
        callback: TransferCallback[str],
        field_name: str = DEFAULT_FILE_FIELD,
        params: Optional[Mapping[str, Any]] = None,
    ) -> asyncio.Task[Outcome[str]]:
        return self.enqueue(
            self.upload(url, file, field_name, params, on_progress=callback.on_progress),
            callback,
        )

    def enqueue_download(
        self,
        url: str,
        destination: PathLike,
        callback: TransferCallback[Path],
    ) -> asyncio.Task[Outcome[Path]]:
        return self.enqueue(
            self.download(url, destination, on_progress=callback.on_progress),
            callback,
        )

    # ------------------------------------------------------------------ #
    # Housekeeping
    # ------------------------------------------------------------------ #

    def cancel_all(self) -> int:
        """Abort every in-flight call; each resolves as a cancelled :class:`Failure`."""
        return self._context.transport.cancel_all()

    def clear_request(self) -> None:
        """Forget the accumulated headers and parameters."""
        self._context.request_config.clear()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _submit(
        self,
        transport: TransportClient,
        coro: Coroutine[Any, Any, Outcome[T]],
    ) -> Outcome[T]:
        task = transport.spawn(coro)
        try:
            return await task
        except asyncio.CancelledError:
            if not transport.was_aborted(task):
                raise
            get_output().debug("Request cancelled")
            return Failure(RequestCancelledError("Request cancelled"))

    async def _exchange(
        self,
        transport: TransportClient,
        request: httpx.Request,
        decode: PayloadDecoder[T],
    ) -> Outcome[T]:
        output = get_output()
        output.debug(f"Executing request: {request.method} {request.url}")
        try:
            response = await transport.send(request)
        except Exception as exc:
            output.debug(f"Request exception: {exc!r}")
            return Failure(exc)

        outcome = decode_response(response, decode, self._context.registry)
        if isinstance(outcome, Success):
            output.debug(f"Request succeeded: {request.method} {request.url}")
        elif isinstance(outcome, TransportError):
            output.debug(f"Request failed: code={outcome.code}, message={outcome.message}")
        return outcome

    async def _upload(
        self,
        transport: TransportClient,
        url: str,
        files: list[Path],
        field_name: str,
        params: Optional[Mapping[str, Any]],
        on_progress: Optional[ProgressListener],
    ) -> Outcome[str]:
        return await self._submit(
            transport,
            self._send_upload(transport, url, files, field_name, dict(params or {}), on_progress),
        )

    async def _send_upload(
        self,
        transport: TransportClient,
        url: str,
        files: list[Path],
        field_name: str,
        params: dict[str, Any],
        on_progress: Optional[ProgressListener],
    ) -> Outcome[str]:
        output = get_output()
        client = transport.with_interceptors(
            ProgressInterceptor(on_progress, TransferDirection.UPLOAD)
        )
        try:
            with ExitStack() as stack:
                parts = [
                    (
                        field_name,
                        (path.name, stack.enter_context(path.open("rb")), guess_content_type(path)),
                    )
                    for path in files
                ]
                request = client.build_request(
                    "POST",
                    url,
                    data={key: stringify(value) for key, value in params.items()},
                    files=parts,
                    headers=self._context.request_config.headers(),
                )
                output.debug(f"Uploading {len(files)} file(s) to {request.url}")
                response = await client.send(request)
        except Exception as exc:
            output.debug(f"Upload exception: {exc!r}")
            return Failure(exc)
        finally:
            await client.aclose()

        if not response.is_success:
            message = f"upload failed: {response.status_code} {response.reason_phrase}".rstrip()
            output.debug(message)
            return TransportError(response.status_code, message)
        return Success(response.text)

    async def _send_download(
        self,
        transport: TransportClient,
        url: str,
        destination: Path,
        on_progress: Optional[ProgressListener],
    ) -> Outcome[Path]:
        output = get_output()
        client = transport.with_interceptors(
            ProgressInterceptor(on_progress, TransferDirection.DOWNLOAD)
        )
        try:
            request = client.build_request(
                "GET", url, headers=self._context.request_config.headers()
            )
            output.debug(f"Downloading {request.url} to {destination}")
            response = await client.send(request, stream=True)
            try:
                if not response.is_success:
                    message = (
                        f"download failed: {response.status_code} {response.reason_phrase}"
                    ).rstrip()
                    output.debug(message)
                    return TransportError(response.status_code, message)

                destination.parent.mkdir(parents=True, exist_ok=True)
                with destination.open("wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)
                    fh.flush()
                    os.fsync(fh.fileno())
            finally:
                await response.aclose()
        except Exception as exc:
            output.debug(f"Download exception: {exc!r}")
            return Failure(exc)
        finally:
            await client.aclose()

        output.debug(f"Download complete: {destination}")
        return Success(destination)


def guess_content_type(path: Path) -> str:
    """Content type for *path* from its extension, or ``application/octet-stream``."""
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or DEFAULT_CONTENT_TYPE


def _query_params(params: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            result[key] = [stringify(item) for item in value]
        else:
            result[key] = stringify(value)
    return result


def _json_body(body: Any) -> Any:
    if hasattr(body, "model_dump"):
        return body.model_dump(mode="json")
    return body


def _deliver(task: asyncio.Task[Outcome[Any]], callback: NetworkCallback[Any]) -> None:
    if task.cancelled():
        outcome: Outcome[Any] = Failure(RequestCancelledError("Request cancelled"))
    elif task.exception() is not None:
        outcome = Failure(task.exception())  # type: ignore[arg-type]
    else:
        outcome = task.result()
    outcome.dispatch(callback)
