"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for netpipe:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.netpipe/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **User config** -- A single :class:`~netpipe.models.StoredConfig` JSON
  file with the default base URL, timeouts, common headers and parameters,
  and extra error code messages.
* **Project config** -- ``./netpipe.json`` in the working directory, same
  shape as the user config.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project config, and user config into the final
  :class:`~netpipe.models.NetworkConfig` and error code registry.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from netpipe.error_codes import ErrorCodeRegistry
from netpipe.exceptions import ConfigError
from netpipe.models import NetworkConfig, StoredConfig

_APP_NAME = "netpipe"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "netpipe.json"

ENV_BASE_URL = "NETPIPE_BASE_URL"
ENV_DEBUG = "NETPIPE_DEBUG"
ENV_UNSAFE_TLS = "NETPIPE_UNSAFE_TLS"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/netpipe/`` (default ``~/.config/netpipe/``).
    On macOS/Windows: ``~/.netpipe/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/netpipe/`` (default ``~/.local/share/netpipe/``).
    On macOS/Windows: ``~/.netpipe/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* through a temp file in the same directory and a rename.

    On any failure the temp file is removed and *path* is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- User and project config ---


def config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


def project_config_path() -> Path:
    """Path to the project config file in the current working directory."""
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


def _read_stored(path: Path, label: str) -> Optional[StoredConfig]:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return StoredConfig.model_validate(data)
    except (json.JSONDecodeError, ValidationError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} config at {path}: {exc}") from exc


def load_config(path: Optional[Path] = None) -> StoredConfig:
    """Load the user configuration.

    Args:
        path: Alternate file to read instead of the user config file.

    Returns:
        The stored configuration, or an empty one if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not valid JSON or fails
            validation.
    """
    return _read_stored(path or config_path(), "user") or StoredConfig()


def save_config(config: StoredConfig, path: Optional[Path] = None) -> Path:
    """Persist *config* atomically and return the path written."""
    target = path or config_path()
    data = config.model_dump(mode="json", exclude_none=True)
    _atomic_write(target, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    return target


def load_project_config() -> Optional[StoredConfig]:
    """Load ``./netpipe.json`` if present.

    Raises:
        ConfigError: If the file exists but is not valid JSON or fails
            validation.
    """
    return _read_stored(project_config_path(), "project")


# --- Environment ---


def _env_flag(name: str) -> Optional[bool]:
    raw = os.environ.get(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"Environment variable {name} must be a boolean, got '{raw}'")


def load_env_config() -> StoredConfig:
    """Read the ``NETPIPE_*`` environment variables into a partial config."""
    values: dict[str, Any] = {}
    base_url = os.environ.get(ENV_BASE_URL)
    if base_url:
        values["base_url"] = base_url
    debug = _env_flag(ENV_DEBUG)
    if debug is not None:
        values["debug"] = debug
    unsafe_tls = _env_flag(ENV_UNSAFE_TLS)
    if unsafe_tls is not None:
        values["unsafe_tls"] = unsafe_tls
    return StoredConfig(**values)


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_debug: Optional[bool] = None,
    cli_unsafe_tls: Optional[bool] = None,
    cli_headers: Optional[Mapping[str, str]] = None,
    cli_params: Optional[Mapping[str, str]] = None,
    config_file: Optional[Path] = None,
) -> tuple[NetworkConfig, ErrorCodeRegistry]:
    """Resolve the effective configuration through the full precedence chain.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``NETPIPE_BASE_URL``, ``NETPIPE_DEBUG``,
           ``NETPIPE_UNSAFE_TLS``)
        3. Project config (``./netpipe.json``)
        4. User config (``~/.config/netpipe/config.json`` or *config_file*)
        5. Defaults

    Header, parameter, and error code maps are merged key by key.

    Returns:
        A tuple of ``(network_config, error_code_registry)``.

    Raises:
        ConfigError: If any layer is invalid or no base URL is configured.
    """
    # 5 + 4. Defaults and user config
    stored = load_config(config_file)

    # 3. Project config
    project = load_project_config()
    if project is not None:
        stored = stored.merged_with(project)

    # 2. Environment
    stored = stored.merged_with(load_env_config())

    # 1. CLI flags
    cli: dict[str, Any] = {}
    if cli_base_url is not None:
        cli["base_url"] = cli_base_url
    if cli_debug is not None:
        cli["debug"] = cli_debug
    if cli_unsafe_tls is not None:
        cli["unsafe_tls"] = cli_unsafe_tls
    if cli_headers:
        cli["common_headers"] = dict(cli_headers)
    if cli_params:
        cli["common_params"] = dict(cli_params)
    stored = stored.merged_with(StoredConfig(**cli))

    return build_network_config(stored), build_registry(stored.error_codes)


def build_network_config(stored: StoredConfig) -> NetworkConfig:
    """Turn a merged :class:`StoredConfig` into a :class:`NetworkConfig`.

    Raises:
        ConfigError: If no base URL is set or a value fails validation.
    """
    if not stored.base_url:
        raise ConfigError(
            f"No base URL configured. Pass --base-url, set {ENV_BASE_URL}, "
            "or run 'netpipe config set-base-url'."
        )
    values = stored.model_dump(exclude={"error_codes"}, exclude_none=True)
    try:
        return NetworkConfig(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid network configuration: {exc}") from exc


def build_registry(extra: Mapping[int, str]) -> ErrorCodeRegistry:
    """Default error code registry extended with *extra* messages.

    Raises:
        ConfigError: If *extra* tries to register the success code.
    """
    registry = ErrorCodeRegistry()
    try:
        registry.register_many(extra)
    except ValueError as exc:
        raise ConfigError(f"Invalid error code configuration: {exc}") from exc
    return registry
