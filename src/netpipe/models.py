"""Canonical Pydantic models shared across all netpipe modules.

The models fall into three groups:

**Transport configuration** -- :class:`NetworkConfig`, the immutable
settings a :class:`~netpipe.context.NetworkContext` is initialised with, and
:class:`StoredConfig`, the partial form persisted as JSON in the user's
config directory.

**Wire models** -- :class:`ResponseEnvelope`, the uniform
``{error_code, reason, result}`` wrapper around every endpoint's payload.

**Transfer models** -- :class:`Progress`, the snapshot emitted by the
byte-progress stream during uploads and downloads.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from netpipe.constants import DEFAULT_TIMEOUT_SECONDS, SUCCESS_CODE


# --- Transport configuration ---


class NetworkConfig(BaseModel):
    """Settings applied once when the transport client is built.

    Instances are frozen: reconfiguring requires building a new
    :class:`~netpipe.context.NetworkContext`.

    ``log_enable`` follows ``debug`` unless set explicitly. ``unsafe_tls``
    is never implied by ``debug`` and must be switched on by hand.

    Example::

        NetworkConfig(
            base_url="https://api.test",
            common_headers={"X-App": "v1"},
            debug=True,
        )
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(description="Base URL every relative request path is joined to")
    connect_timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Connect timeout in seconds"
    )
    read_timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Read timeout in seconds"
    )
    write_timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS, gt=0, description="Write timeout in seconds"
    )
    common_params: dict[str, Any] = Field(
        default_factory=dict, description="Query parameters appended to every request"
    )
    common_headers: dict[str, str] = Field(
        default_factory=dict, description="Headers appended to every request"
    )
    debug: bool = Field(default=False, description="Emit debug diagnostics")
    unsafe_tls: bool = Field(
        default=False,
        description="Accept any server certificate and hostname (debugging only)",
    )
    log_enable: Optional[bool] = Field(
        default=None, description="Log every exchange; defaults to the value of debug"
    )

    @field_validator("base_url")
    @classmethod
    def _require_base_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("base_url must not be empty")
        return value

    @model_validator(mode="after")
    def _default_log_enable(self) -> NetworkConfig:
        if self.log_enable is None:
            # Frozen model: bypass __setattr__ for the derived default.
            object.__setattr__(self, "log_enable", self.debug)
        return self

    @property
    def logging_enabled(self) -> bool:
        """Whether the transport logging interceptor is installed."""
        return bool(self.log_enable)


class StoredConfig(BaseModel):
    """Partial network configuration persisted at ``~/.config/netpipe/config.json``.

    Every field is optional so that project files and environment variables
    can fill the gaps. :func:`~netpipe.config.resolve_config` merges the
    layers and produces the final :class:`NetworkConfig`. ``error_codes``
    extends the default error code registry.
    """

    base_url: Optional[str] = None
    connect_timeout: Optional[float] = None
    read_timeout: Optional[float] = None
    write_timeout: Optional[float] = None
    common_params: dict[str, Any] = Field(default_factory=dict)
    common_headers: dict[str, str] = Field(default_factory=dict)
    debug: Optional[bool] = None
    unsafe_tls: Optional[bool] = None
    log_enable: Optional[bool] = None
    error_codes: dict[int, str] = Field(
        default_factory=dict, description="Extra business error code messages"
    )

    def merged_with(self, other: StoredConfig) -> StoredConfig:
        """Return a copy where every field set on *other* overrides this one.

        Dict fields are merged key by key, with *other* winning.
        """
        data = self.model_dump()
        for key, value in other.model_dump(exclude_unset=True).items():
            if isinstance(value, dict):
                data[key] = {**data.get(key, {}), **value}
            elif value is not None:
                data[key] = value
        return StoredConfig.model_validate(data)


# --- Wire models ---


class ResponseEnvelope(BaseModel):
    """The uniform wire wrapper around every endpoint's payload.

    Attributes:
        error_code: ``SUCCESS_CODE`` for success, anything else is a business
            error.
        reason: Server-provided message, kept as metadata.
        result: Endpoint-specific payload; must be present on success.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    error_code: int
    reason: str = ""
    result: Any = None

    @field_validator("reason", mode="before")
    @classmethod
    def _reason_or_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def is_success(self) -> bool:
        return self.error_code == SUCCESS_CODE


# --- Transfer models ---


class Progress(BaseModel):
    """Snapshot of one transfer's bytes so far versus its declared total.

    ``percent`` is ``current_bytes * 100 // total_bytes`` when the total is
    known, otherwise ``0``. Build instances through :meth:`of`.
    """

    model_config = ConfigDict(frozen=True)

    current_bytes: int
    total_bytes: int
    percent: int = Field(ge=0, le=100)

    @classmethod
    def of(cls, current_bytes: int, total_bytes: int) -> Progress:
        """Compute a snapshot from a running byte count and a declared total."""
        if total_bytes > 0:
            percent = min(current_bytes * 100 // total_bytes, 100)
        else:
            percent = 0
        return cls(current_bytes=current_bytes, total_bytes=total_bytes, percent=percent)

    @property
    def is_complete(self) -> bool:
        return self.total_bytes > 0 and self.current_bytes >= self.total_bytes
