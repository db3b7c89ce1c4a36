"""tonaccess — resolve healthy TON RPC endpoints from a decentralized node fleet."""

from __future__ import annotations

from tonaccess.config import (
    DEFAULT_ACCESS_VERSION,
    DEFAULT_HOST,
    DEFAULT_MANAGER_URL,
    EdgeProtocol,
    EndpointConfig,
    Network,
    ProtocolFormat,
    ResolverConfig,
    endpoint_config,
)
from tonaccess.errors import (
    AllNodesStaleError,
    FetchError,
    NoHealthyNodesError,
    TonAccessError,
    UnsupportedProtocolError,
)
from tonaccess.fetcher import FleetCache, FleetSource, ManagerFetcher
from tonaccess.fleet_status import NodeStatus
from tonaccess.metrics import MetricsExporter
from tonaccess.node import FleetSnapshot, NodeRecord, parse_fleet, parse_node
from tonaccess.resolver import (
    TonAccess,
    get_adnl_proxy_endpoint,
    get_adnl_proxy_endpoints,
    get_http_endpoint,
    get_http_endpoints,
    get_http_v4_endpoint,
    get_http_v4_endpoints,
)
from tonaccess.selector import WeightedSelector
from tonaccess.urls import AdnlProxyEndpoint, build_url

__all__ = [
    "DEFAULT_ACCESS_VERSION",
    "DEFAULT_HOST",
    "DEFAULT_MANAGER_URL",
    "AdnlProxyEndpoint",
    "AllNodesStaleError",
    "EdgeProtocol",
    "EndpointConfig",
    "FetchError",
    "FleetCache",
    "FleetSnapshot",
    "FleetSource",
    "ManagerFetcher",
    "MetricsExporter",
    "Network",
    "NoHealthyNodesError",
    "NodeRecord",
    "NodeStatus",
    "ProtocolFormat",
    "ResolverConfig",
    "TonAccess",
    "TonAccessError",
    "UnsupportedProtocolError",
    "WeightedSelector",
    "build_url",
    "endpoint_config",
    "get_adnl_proxy_endpoint",
    "get_adnl_proxy_endpoints",
    "get_http_endpoint",
    "get_http_endpoints",
    "get_http_v4_endpoint",
    "get_http_v4_endpoints",
    "parse_fleet",
    "parse_node",
]
