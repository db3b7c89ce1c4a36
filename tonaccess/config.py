"""Core enums and configuration: Network, EdgeProtocol, EndpointConfig, ResolverConfig."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import StrEnum


class Network(StrEnum):
    """TON network."""

    MAINNET = "mainnet"
    TESTNET = "testnet"


class EdgeProtocol(StrEnum):
    """RPC API shape served by the edge nodes."""

    TONCENTER_API_V2 = "toncenter-api-v2"
    TON_API_V4 = "ton-api-v4"
    ADNL_PROXY = "adnl-proxy"


class ProtocolFormat(StrEnum):
    """Requested URL format."""

    DEFAULT = "default"
    JSON_RPC = "json-rpc"
    REST = "rest"


DEFAULT_HOST = "ton.access.orbs.network"
DEFAULT_ACCESS_VERSION = 1
DEFAULT_MANAGER_URL = f"https://{DEFAULT_HOST}/mngr/nodes"

DEFAULT_FETCH_TIMEOUT: float = 5.0
DEFAULT_REFRESH_INTERVAL: float = 60.0
DEFAULT_STALE_AFTER: float = 600.0
DEFAULT_FAN_OUT: int = 3
DEFAULT_USER_AGENT = "tonaccess/0.1.0"

# Validation boundaries.
MIN_FETCH_TIMEOUT: float = 0.1
MAX_FETCH_TIMEOUT: float = 120.0
MIN_REFRESH_INTERVAL: float = 1.0
MIN_FAN_OUT: int = 1
MAX_FAN_OUT: int = 100


@dataclass(frozen=True)
class EndpointConfig:
    """Per-call endpoint options."""

    network: Network = Network.MAINNET
    host: str = DEFAULT_HOST
    access_version: int = DEFAULT_ACCESS_VERSION
    protocol_format: ProtocolFormat = ProtocolFormat.DEFAULT

    def __post_init__(self) -> None:
        object.__setattr__(self, "network", Network(self.network))
        object.__setattr__(self, "protocol_format", ProtocolFormat(self.protocol_format))

    def validate(self) -> None:
        """Validate the configuration values."""
        if not self.host:
            msg = "host must not be empty"
            raise ValueError(msg)
        if "/" in self.host:
            msg = f"invalid host {self.host!r}: must not contain '/'"
            raise ValueError(msg)
        if isinstance(self.access_version, bool) or not isinstance(self.access_version, int):
            msg = f"access_version must be an integer, got {self.access_version!r}"
            raise ValueError(msg)
        if self.access_version < 1:
            msg = "access_version must be a positive integer"
            raise ValueError(msg)


def endpoint_config(
    network: str | Network | None = None,
    host: str | None = None,
    access_version: int | None = None,
    protocol_format: str | ProtocolFormat | None = None,
) -> EndpointConfig:
    """Build an EndpointConfig, applying defaults for every omitted option."""
    cfg = EndpointConfig(
        network=Network(network) if network else Network.MAINNET,
        host=host or DEFAULT_HOST,
        access_version=access_version if access_version is not None else DEFAULT_ACCESS_VERSION,
        protocol_format=ProtocolFormat(protocol_format) if protocol_format else ProtocolFormat.DEFAULT,
    )
    cfg.validate()
    return cfg


@dataclass(frozen=True)
class ResolverConfig:
    """Resolver-wide configuration: manager location, refresh and staleness policy."""

    manager_url: str = DEFAULT_MANAGER_URL
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    stale_after: float = DEFAULT_STALE_AFTER
    fan_out: int = DEFAULT_FAN_OUT
    user_agent: str = DEFAULT_USER_AGENT

    def validate(self) -> None:
        """Validate the configuration values."""
        if not self.manager_url.startswith(("http://", "https://")):
            msg = f"invalid manager_url {self.manager_url!r}: must be an http(s) URL"
            raise ValueError(msg)
        if not MIN_FETCH_TIMEOUT <= self.fetch_timeout <= MAX_FETCH_TIMEOUT:
            msg = f"fetch_timeout must be between {MIN_FETCH_TIMEOUT} and {MAX_FETCH_TIMEOUT}"
            raise ValueError(msg)
        if self.refresh_interval < MIN_REFRESH_INTERVAL:
            msg = f"refresh_interval must be at least {MIN_REFRESH_INTERVAL}"
            raise ValueError(msg)
        if self.stale_after < self.refresh_interval:
            msg = "stale_after must not be shorter than refresh_interval"
            raise ValueError(msg)
        if not MIN_FAN_OUT <= self.fan_out <= MAX_FAN_OUT:
            msg = f"fan_out must be between {MIN_FAN_OUT} and {MAX_FAN_OUT}"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, base: ResolverConfig | None = None) -> ResolverConfig:
        """Apply TONACCESS_* environment variables on top of ``base``."""
        cfg = base or cls()
        overrides: dict[str, object] = {}

        manager_url = os.environ.get("TONACCESS_MANAGER_URL")
        if manager_url:
            overrides["manager_url"] = manager_url
        for env_name, field_name in (
            ("TONACCESS_FETCH_TIMEOUT", "fetch_timeout"),
            ("TONACCESS_REFRESH_INTERVAL", "refresh_interval"),
            ("TONACCESS_STALE_AFTER", "stale_after"),
        ):
            raw = os.environ.get(env_name)
            if raw is not None:
                overrides[field_name] = _parse_env_number(env_name, raw, float)
        fan_out = os.environ.get("TONACCESS_FAN_OUT")
        if fan_out is not None:
            overrides["fan_out"] = _parse_env_number("TONACCESS_FAN_OUT", fan_out, int)

        result = replace(cfg, **overrides)  # type: ignore[arg-type]
        result.validate()
        return result


def _parse_env_number(name: str, raw: str, kind: type[float] | type[int]) -> float | int:
    try:
        return kind(raw)
    except ValueError:
        msg = f"invalid value for {name}: {raw!r}, expected {kind.__name__}"
        raise ValueError(msg) from None


__all__ = [
    "DEFAULT_ACCESS_VERSION",
    "DEFAULT_FAN_OUT",
    "DEFAULT_HOST",
    "DEFAULT_MANAGER_URL",
    "DEFAULT_REFRESH_INTERVAL",
    "DEFAULT_STALE_AFTER",
    "EdgeProtocol",
    "EndpointConfig",
    "Network",
    "ProtocolFormat",
    "ResolverConfig",
    "endpoint_config",
]
