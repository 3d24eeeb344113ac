"""Tests for response envelope decoding and classification."""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from pydantic import BaseModel

from netpipe.client.envelope import (
    NULL_RESULT_MESSAGE,
    decode_response,
    decoder_for,
    identity,
    parse_envelope,
)
from netpipe.client.outcome import BusinessError, CallState, Success, TransportError
from netpipe.constants import LOCAL_ERROR_CODE
from netpipe.error_codes import ErrorCodeRegistry


class User(BaseModel):
    id: int
    name: str


def _response(body: Any, status_code: int = 200) -> httpx.Response:
    if isinstance(body, (bytes, str)):
        return httpx.Response(status_code, content=body)
    return httpx.Response(status_code, json=body)


@pytest.fixture
def registry() -> ErrorCodeRegistry:
    return ErrorCodeRegistry()


class TestParseEnvelope:
    def test_parses_fields(self) -> None:
        envelope = parse_envelope(b'{"error_code": 0, "reason": "ok", "result": [1]}')
        assert envelope.error_code == 0
        assert envelope.reason == "ok"
        assert envelope.result == [1]

    def test_ignores_unknown_fields(self) -> None:
        envelope = parse_envelope(b'{"error_code": 7, "extra": true}')
        assert envelope.error_code == 7
        assert envelope.reason == ""
        assert envelope.result is None

    def test_null_reason_becomes_empty(self) -> None:
        assert parse_envelope(b'{"error_code": 1, "reason": null}').reason == ""

    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"reason": "x"}'])
    def test_rejects_invalid_bodies(self, body: bytes) -> None:
        with pytest.raises(ValueError):
            parse_envelope(body)


class TestDecodeResponse:
    def test_success_decodes_result(self, registry: ErrorCodeRegistry) -> None:
        response = _response({"error_code": 0, "reason": "ok", "result": {"id": 1, "name": "Ada"}})
        outcome = decode_response(response, decoder_for(User), registry)

        assert isinstance(outcome, Success)
        assert outcome.payload == User(id=1, name="Ada")
        assert outcome.state is CallState.SUCCEEDED

    def test_generic_alias_decoder(self, registry: ErrorCodeRegistry) -> None:
        response = _response({"error_code": 0, "result": [{"id": 1, "name": "a"}]})
        outcome = decode_response(response, decoder_for(list[User]), registry)
        assert isinstance(outcome, Success)
        assert outcome.payload[0].name == "a"

    def test_registered_business_error(self, registry: ErrorCodeRegistry) -> None:
        response = _response({"error_code": 401, "reason": "token expired", "result": None})
        outcome = decode_response(response, identity, registry)

        assert outcome == BusinessError(401, "未授权，请重新登录", "token expired")
        assert outcome.state is CallState.BUSINESS_ERROR

    def test_unregistered_business_error_uses_fallback(self, registry: ErrorCodeRegistry) -> None:
        outcome = decode_response(_response({"error_code": 9999}), identity, registry)
        assert isinstance(outcome, BusinessError)
        assert outcome.message == "unknown error (code: 9999)"

    def test_non_2xx_ignores_envelope(self, registry: ErrorCodeRegistry) -> None:
        response = _response({"error_code": 0, "result": {"id": 1}}, status_code=500)
        outcome = decode_response(response, identity, registry)

        assert outcome == TransportError(500, "Internal Server Error")
        assert outcome.state is CallState.TRANSPORT_ERROR

    def test_null_result_is_transport_error(self, registry: ErrorCodeRegistry) -> None:
        outcome = decode_response(_response({"error_code": 0, "result": None}), identity, registry)
        assert outcome == TransportError(LOCAL_ERROR_CODE, NULL_RESULT_MESSAGE)

    def test_unparsable_body_is_transport_error(self, registry: ErrorCodeRegistry) -> None:
        outcome = decode_response(_response(b"<html>oops</html>"), identity, registry)
        assert isinstance(outcome, TransportError)
        assert outcome.code == LOCAL_ERROR_CODE
        assert outcome.message.startswith("failed to parse response envelope")

    def test_decode_failure_is_transport_error(self, registry: ErrorCodeRegistry) -> None:
        response = _response({"error_code": 0, "result": {"id": "not-a-number"}})
        outcome = decode_response(response, decoder_for(User), registry)
        assert isinstance(outcome, TransportError)
        assert outcome.code == LOCAL_ERROR_CODE
        assert outcome.message.startswith("failed to decode result")

    @pytest.mark.parametrize(
        "decode",
        [lambda r: r["id"], lambda r: r.missing_attribute, lambda r: 1 // 0],
    )
    def test_any_decoder_exception_is_transport_error(
        self, registry: ErrorCodeRegistry, decode
    ) -> None:
        outcome = decode_response(_response({"error_code": 0, "result": {"name": "x"}}), decode, registry)
        assert isinstance(outcome, TransportError)
        assert outcome.code == LOCAL_ERROR_CODE
        assert outcome.message.startswith("failed to decode result")

    def test_falsy_result_is_still_success(self, registry: ErrorCodeRegistry) -> None:
        for result in (0, "", [], {}, False):
            outcome = decode_response(_response({"error_code": 0, "result": result}), identity, registry)
            assert outcome == Success(result)
