"""Response envelope decoding and classification.

:func:`decode_response` turns a fully read :class:`httpx.Response` into an
:class:`~netpipe.client.outcome.Outcome` in two stages: first the uniform
``{error_code, reason, result}`` envelope, then the ``result`` payload via a
caller-supplied decoder.

Payload decoders are plain callables taking the JSON-decoded ``result``.
:func:`decoder_for` builds one from a type using a pydantic
:class:`~pydantic.TypeAdapter`, once, at setup time::

    decode_user = decoder_for(User)
    outcome = decode_response(response, decode_user, registry)
"""

from __future__ import annotations

import json
from typing import Any, Callable, TypeVar

import httpx
from pydantic import TypeAdapter

from netpipe.client.outcome import BusinessError, Outcome, Success, TransportError
from netpipe.constants import LOCAL_ERROR_CODE
from netpipe.error_codes import ErrorCodeRegistry
from netpipe.models import ResponseEnvelope
from netpipe.output import get_output

T = TypeVar("T")

PayloadDecoder = Callable[[Any], T]

NULL_RESULT_MESSAGE = "data is null in successful response"


def decoder_for(payload_type: Any) -> PayloadDecoder[Any]:
    """Build a decoder validating ``result`` against *payload_type*.

    Accepts anything :class:`pydantic.TypeAdapter` accepts: pydantic models,
    dataclasses, ``TypedDict``s, and generic aliases such as ``list[User]``.
    """
    adapter = TypeAdapter(payload_type)
    return adapter.validate_python


def identity(result: Any) -> Any:
    """Decoder that returns ``result`` unchanged."""
    return result


def parse_envelope(content: bytes) -> ResponseEnvelope:
    """Parse raw body bytes into a :class:`ResponseEnvelope`.

    Raises:
        ValueError: If the body is not JSON or lacks a valid envelope.
            (:class:`pydantic.ValidationError` is a ``ValueError`` subclass.)
    """
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return ResponseEnvelope.model_validate(data)


def classify_envelope(
    envelope: ResponseEnvelope,
    decode: PayloadDecoder[T],
    registry: ErrorCodeRegistry,
) -> Outcome[T]:
    """Classify an already parsed envelope (steps 3 and 4 of decoding)."""
    if envelope.is_success:
        if envelope.result is None:
            get_output().debug(NULL_RESULT_MESSAGE)
            return TransportError(LOCAL_ERROR_CODE, NULL_RESULT_MESSAGE)
        try:
            payload = decode(envelope.result)
        except Exception as exc:
            # Caller-supplied decoders may raise anything; it still ends the call.
            return TransportError(LOCAL_ERROR_CODE, f"failed to decode result: {exc!r}")
        return Success(payload)

    message = registry.resolve(envelope.error_code)
    get_output().debug(f"Business error: code={envelope.error_code}, message={message}")
    return BusinessError(envelope.error_code, message, envelope.reason)


def decode_response(
    response: httpx.Response,
    decode: PayloadDecoder[T],
    registry: ErrorCodeRegistry,
) -> Outcome[T]:
    """Classify *response* into exactly one outcome.

    1. Non-2xx status: :class:`TransportError` with the status code and
       reason phrase. The body is not inspected.
    2. Unparsable body: :class:`TransportError` with ``-1``.
    3. Success code: :class:`Success` with the decoded ``result``, or
       :class:`TransportError` with ``-1`` when ``result`` is null or fails
       to decode.
    4. Any other code: :class:`BusinessError` with the registry's message.

    The response body must already be read.
    """
    if not response.is_success:
        status = response.status_code
        return TransportError(status, response.reason_phrase or f"HTTP {status}")

    try:
        envelope = parse_envelope(response.content)
    except ValueError as exc:
        return TransportError(LOCAL_ERROR_CODE, f"failed to parse response envelope: {exc}")

    return classify_envelope(envelope, decode, registry)
