"""Tests for netpipe.models -- network configuration and wire models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from netpipe.models import NetworkConfig, ResponseEnvelope, StoredConfig


class TestNetworkConfig:
    def test_defaults(self) -> None:
        config = NetworkConfig(base_url="https://api.test/")
        assert config.connect_timeout == 15
        assert config.read_timeout == 15
        assert config.write_timeout == 15
        assert config.common_headers == {}
        assert config.common_params == {}
        assert config.debug is False
        assert config.unsafe_tls is False
        assert config.logging_enabled is False

    def test_log_enable_follows_debug(self) -> None:
        assert NetworkConfig(base_url="https://a.test", debug=True).logging_enabled

    def test_explicit_log_enable_wins(self) -> None:
        config = NetworkConfig(base_url="https://a.test", debug=True, log_enable=False)
        assert not config.logging_enabled
        assert NetworkConfig(base_url="https://a.test", log_enable=True).logging_enabled

    def test_debug_does_not_imply_unsafe_tls(self) -> None:
        assert NetworkConfig(base_url="https://a.test", debug=True).unsafe_tls is False

    @pytest.mark.parametrize("base_url", ["", "   "])
    def test_base_url_required(self, base_url: str) -> None:
        with pytest.raises(ValidationError):
            NetworkConfig(base_url=base_url)

    def test_timeouts_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            NetworkConfig(base_url="https://a.test", read_timeout=0)

    def test_frozen(self) -> None:
        config = NetworkConfig(base_url="https://a.test")
        with pytest.raises(ValidationError):
            config.debug = True  # type: ignore[misc]


class TestStoredConfig:
    def test_merge_overrides_scalars_and_merges_dicts(self) -> None:
        base = StoredConfig(
            base_url="https://user.test",
            read_timeout=30,
            common_headers={"X-App": "v1", "X-Env": "prod"},
            error_codes={1001: "a"},
        )
        top = StoredConfig(
            base_url="https://project.test",
            common_headers={"X-Env": "dev"},
            error_codes={"1002": "b"},
        )
        merged = base.merged_with(top)

        assert merged.base_url == "https://project.test"
        assert merged.read_timeout == 30
        assert merged.common_headers == {"X-App": "v1", "X-Env": "dev"}
        assert merged.error_codes == {1001: "a", 1002: "b"}

    def test_merge_ignores_unset_fields(self) -> None:
        base = StoredConfig(base_url="https://user.test", debug=True)
        assert base.merged_with(StoredConfig()).debug is True


class TestResponseEnvelope:
    def test_success_flag(self) -> None:
        assert ResponseEnvelope(error_code=0).is_success
        assert not ResponseEnvelope(error_code=401).is_success

    def test_error_code_required(self) -> None:
        with pytest.raises(ValidationError):
            ResponseEnvelope.model_validate({"reason": "x"})
