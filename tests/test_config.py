"""Tests for config.py — EndpointConfig, ResolverConfig, env overrides."""

import pytest

from tonaccess.config import (
    DEFAULT_MANAGER_URL,
    EndpointConfig,
    Network,
    ProtocolFormat,
    ResolverConfig,
    endpoint_config,
)


class TestEndpointConfig:
    def test_defaults(self) -> None:
        cfg = EndpointConfig()
        assert cfg.network is Network.MAINNET
        assert cfg.host == "ton.access.orbs.network"
        assert cfg.access_version == 1
        assert cfg.protocol_format is ProtocolFormat.DEFAULT

    def test_strings_coerced_to_enums(self) -> None:
        cfg = EndpointConfig(network="testnet", protocol_format="rest")  # type: ignore[arg-type]
        assert cfg.network is Network.TESTNET
        assert cfg.protocol_format is ProtocolFormat.REST

    def test_unknown_network_rejected(self) -> None:
        with pytest.raises(ValueError):
            EndpointConfig(network="devnet")  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("host", ""),
            ("host", "bad/host"),
            ("access_version", 0),
            ("access_version", -2),
            ("access_version", True),
        ],
    )
    def test_validate_rejects(self, field: str, value: object) -> None:
        cfg = EndpointConfig(**{field: value})  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            cfg.validate()

    def test_endpoint_config_factory_applies_defaults(self) -> None:
        cfg = endpoint_config(network="testnet")
        assert cfg == EndpointConfig(network=Network.TESTNET)

    def test_endpoint_config_factory_overrides(self) -> None:
        cfg = endpoint_config(host="edge.example.org", access_version=2, protocol_format="json-rpc")
        assert cfg.host == "edge.example.org"
        assert cfg.access_version == 2
        assert cfg.protocol_format is ProtocolFormat.JSON_RPC


class TestResolverConfig:
    def test_defaults(self) -> None:
        cfg = ResolverConfig()
        assert cfg.manager_url == DEFAULT_MANAGER_URL
        assert cfg.stale_after == 600.0
        assert cfg.fan_out == 3
        cfg.validate()

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("manager_url", "ftp://manager"),
            ("fetch_timeout", 0.0),
            ("fetch_timeout", 500.0),
            ("refresh_interval", 0.5),
            ("stale_after", 10.0),
            ("fan_out", 0),
            ("fan_out", 101),
        ],
    )
    def test_validate_out_of_range(self, field: str, value: object) -> None:
        cfg = ResolverConfig(**{field: value})  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            cfg.validate()

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TONACCESS_MANAGER_URL", "http://manager.local/nodes")
        monkeypatch.setenv("TONACCESS_FETCH_TIMEOUT", "2.5")
        monkeypatch.setenv("TONACCESS_REFRESH_INTERVAL", "30")
        monkeypatch.setenv("TONACCESS_STALE_AFTER", "300")
        monkeypatch.setenv("TONACCESS_FAN_OUT", "5")

        cfg = ResolverConfig.from_env()

        assert cfg.manager_url == "http://manager.local/nodes"
        assert cfg.fetch_timeout == 2.5
        assert cfg.refresh_interval == 30.0
        assert cfg.stale_after == 300.0
        assert cfg.fan_out == 5

    def test_from_env_without_variables_keeps_base(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "TONACCESS_MANAGER_URL",
            "TONACCESS_FETCH_TIMEOUT",
            "TONACCESS_REFRESH_INTERVAL",
            "TONACCESS_STALE_AFTER",
            "TONACCESS_FAN_OUT",
        ):
            monkeypatch.delenv(name, raising=False)
        base = ResolverConfig(fan_out=7)
        assert ResolverConfig.from_env(base) == base

    def test_from_env_invalid_number(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TONACCESS_FAN_OUT", "three")
        with pytest.raises(ValueError, match="TONACCESS_FAN_OUT"):
            ResolverConfig.from_env()

    def test_from_env_validates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TONACCESS_STALE_AFTER", "1")
        with pytest.raises(ValueError, match="stale_after"):
            ResolverConfig.from_env()
