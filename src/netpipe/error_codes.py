"""Business error code registry.

Maps numeric ``error_code`` values from the response envelope to the
human-readable messages shown to users. One registry is owned by each
:class:`~netpipe.context.NetworkContext`; it starts from
:data:`DEFAULT_ERROR_MESSAGES` and can be extended at runtime, e.g. from the
``error_codes`` section of the config file.

Writers are serialised with a lock so concurrent :meth:`ErrorCodeRegistry.register`
calls cannot corrupt the map. Ordering between concurrent writers is not
defined; the last one to take the lock wins.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping

from netpipe.constants import SUCCESS_CODE

DEFAULT_ERROR_MESSAGES: dict[int, str] = {
    400: "请求参数错误",
    401: "未授权，请重新登录",
    403: "访问被禁止",
    404: "请求的资源不存在",
    500: "服务器内部错误",
    503: "服务不可用",
}

UNKNOWN_ERROR_TEMPLATE = "unknown error (code: {code})"


class ErrorCodeRegistry:
    """Thread-safe mapping from business error codes to display messages.

    Args:
        defaults: Initial mapping. ``None`` seeds the registry with
            :data:`DEFAULT_ERROR_MESSAGES`; pass ``{}`` for an empty registry.
    """

    def __init__(self, defaults: Mapping[int, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._messages: dict[int, str] = dict(
            DEFAULT_ERROR_MESSAGES if defaults is None else defaults
        )

    def register(self, code: int, message: str) -> None:
        """Insert or replace the message for *code*.

        Any code except the success code is accepted. The decoder only consults
        the registry for non-success envelopes, so a message stored under the
        success code could never be shown; rejecting it surfaces the mistake.

        Raises:
            ValueError: If *code* is the success code, which never denotes an error.
        """
        if code == SUCCESS_CODE:
            raise ValueError(f"{SUCCESS_CODE} is the success code and cannot be registered")
        with self._lock:
            self._messages[code] = message

    def register_many(self, messages: Mapping[int, str]) -> None:
        """Register every entry of *messages* under a single lock acquisition."""
        if SUCCESS_CODE in messages:
            raise ValueError(f"{SUCCESS_CODE} is the success code and cannot be registered")
        with self._lock:
            self._messages.update(messages)

    def resolve(self, code: int) -> str:
        """Return the registered message for *code* or a synthesised fallback. Never raises."""
        message = self._messages.get(code)
        if message is None:
            return UNKNOWN_ERROR_TEMPLATE.format(code=code)
        return message

    def snapshot(self) -> dict[int, str]:
        """Return a copy of the current mapping, sorted by code."""
        with self._lock:
            return dict(sorted(self._messages.items()))

    def __contains__(self, code: object) -> bool:
        return code in self._messages

    def __iter__(self) -> Iterator[int]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._messages)
