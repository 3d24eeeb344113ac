"""Tests for netpipe.error_codes -- the business error code registry."""

from __future__ import annotations

import threading

import pytest

from netpipe.constants import SUCCESS_CODE
from netpipe.error_codes import DEFAULT_ERROR_MESSAGES, ErrorCodeRegistry


class TestDefaults:
    def test_seeded_with_defaults(self) -> None:
        registry = ErrorCodeRegistry()
        for code, message in DEFAULT_ERROR_MESSAGES.items():
            assert registry.resolve(code) == message

    def test_known_default_messages(self) -> None:
        registry = ErrorCodeRegistry()
        assert registry.resolve(401) == "未授权，请重新登录"
        assert registry.resolve(503) == "服务不可用"

    def test_empty_registry(self) -> None:
        registry = ErrorCodeRegistry({})
        assert len(registry) == 0
        assert registry.resolve(404) == "unknown error (code: 404)"


class TestResolve:
    def test_unknown_code_fallback(self) -> None:
        assert ErrorCodeRegistry().resolve(9999) == "unknown error (code: 9999)"

    def test_negative_code_fallback(self) -> None:
        assert ErrorCodeRegistry().resolve(-7) == "unknown error (code: -7)"

    def test_lookup_is_idempotent(self) -> None:
        registry = ErrorCodeRegistry()
        assert registry.resolve(500) == registry.resolve(500)
        assert registry.resolve(12345) == registry.resolve(12345)


class TestRegister:
    def test_register_new_code(self) -> None:
        registry = ErrorCodeRegistry()
        registry.register(10012, "quota exhausted")
        assert registry.resolve(10012) == "quota exhausted"
        assert 10012 in registry

    def test_register_replaces_default(self) -> None:
        registry = ErrorCodeRegistry()
        registry.register(401, "please sign in again")
        assert registry.resolve(401) == "please sign in again"

    def test_success_code_rejected(self) -> None:
        registry = ErrorCodeRegistry()
        with pytest.raises(ValueError):
            registry.register(SUCCESS_CODE, "ok")
        with pytest.raises(ValueError):
            registry.register_many({1: "a", SUCCESS_CODE: "ok"})
        assert 1 not in registry

    def test_register_many(self) -> None:
        registry = ErrorCodeRegistry({})
        registry.register_many({2: "b", 1: "a"})
        assert list(registry) == [1, 2]

    def test_snapshot_is_a_sorted_copy(self) -> None:
        registry = ErrorCodeRegistry({500: "x", 400: "y"})
        snapshot = registry.snapshot()
        snapshot[600] = "z"
        assert list(snapshot)[:2] == [400, 500]
        assert 600 not in registry

    def test_concurrent_registration(self) -> None:
        registry = ErrorCodeRegistry({})

        def worker(offset: int) -> None:
            for i in range(200):
                registry.register(offset * 1000 + i + 1, f"m{offset}-{i}")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 8 * 200
        assert registry.resolve(3 * 1000 + 5 + 1) == "m3-5"
