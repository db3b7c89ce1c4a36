"""Public API: TonAccess resolver and module-level convenience functions."""

from __future__ import annotations

import logging
import random
from types import TracebackType

from tonaccess.config import EdgeProtocol, EndpointConfig, ResolverConfig
from tonaccess.errors import (
    AllNodesStaleError,
    FetchError,
    NoHealthyNodesError,
    TonAccessError,
    UnsupportedProtocolError,
)
from tonaccess.fetcher import Clock, FleetCache, FleetSource, ManagerFetcher, utc_now
from tonaccess.fleet_status import NodeStatus, fleet_status
from tonaccess.health import fresh_nodes, healthy_nodes
from tonaccess.metrics import (
    RESULT_FETCH_ERROR,
    RESULT_NO_HEALTHY,
    RESULT_OK,
    RESULT_STALE,
    RESULT_UNSUPPORTED,
    MetricsExporter,
)
from tonaccess.node import NodeRecord
from tonaccess.selector import WeightedSelector
from tonaccess.urls import (
    AdnlProxyEndpoint,
    build_adnl_endpoint,
    build_url,
    check_protocol_format,
    url_suffix,
)

logger = logging.getLogger("tonaccess")


def _result_label(exc: TonAccessError) -> str:
    if isinstance(exc, AllNodesStaleError):
        return RESULT_STALE
    if isinstance(exc, NoHealthyNodesError):
        return RESULT_NO_HEALTHY
    if isinstance(exc, UnsupportedProtocolError):
        return RESULT_UNSUPPORTED
    return RESULT_FETCH_ERROR


class TonAccess:
    """Resolve healthy TON RPC endpoints from the edge fleet.

    Example::

        async with TonAccess() as access:
            endpoint = await access.get_http_endpoint()
            v4 = await access.get_http_v4_endpoint(EndpointConfig(network=Network.TESTNET))

    Selection is weighted-random, so repeated calls may return different
    nodes. Pass a seeded ``rng`` for reproducible picks.
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        *,
        source: FleetSource | None = None,
        cache: FleetCache | None = None,
        rng: random.Random | None = None,
        metrics: MetricsExporter | None = None,
        clock: Clock | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._config = config or ResolverConfig()
        self._config.validate()
        self._clock = clock or utc_now
        self._metrics = metrics
        self._log = log or logger

        if cache is None:
            if source is None:
                source = ManagerFetcher(
                    url=self._config.manager_url,
                    timeout=self._config.fetch_timeout,
                    user_agent=self._config.user_agent,
                    clock=self._clock,
                )
            cache = FleetCache(
                source,
                refresh_interval=self._config.refresh_interval,
                stale_after=self._config.stale_after,
                clock=self._clock,
                metrics=metrics,
            )
        self._cache = cache
        self._selector = WeightedSelector(rng)

    @property
    def config(self) -> ResolverConfig:
        """Return the resolver configuration."""
        return self._config

    @property
    def cache(self) -> FleetCache:
        """Return the shared fleet cache."""
        return self._cache

    async def start(self) -> None:
        """Start refreshing the fleet in the background."""
        await self._cache.start()

    async def stop(self) -> None:
        """Stop the background refresh."""
        await self._cache.stop()

    async def __aenter__(self) -> TonAccess:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def refresh(self, timeout: float | None = None) -> None:
        """Force a fleet refresh now."""
        await self._cache.refresh(timeout=timeout)

    def observe_snapshot_age(self) -> float | None:
        """Publish the current snapshot age to metrics and return it (None before the first fetch)."""
        snapshot = self._cache.snapshot
        if snapshot is None:
            return None
        age = snapshot.age(self._clock())
        if self._metrics is not None:
            self._metrics.set_snapshot_age(age)
        return age

    def fleet_status(self) -> dict[str, NodeStatus]:
        """Status of every node in the cached snapshot (no network call)."""
        snapshot = self._cache.snapshot
        if snapshot is None:
            return {}
        return fleet_status(snapshot, self._clock(), self._cache.stale_after)

    # --- TonCenter API v2 ---

    async def get_http_endpoint(
        self, config: EndpointConfig | None = None, *, timeout: float | None = None
    ) -> str:
        """Return one TonCenter API v2 endpoint URL."""
        urls = await self._http_endpoints(EdgeProtocol.TONCENTER_API_V2, config, 1, timeout)
        return urls[0]

    async def get_http_endpoints(
        self,
        config: EndpointConfig | None = None,
        single: bool = False,
        *,
        timeout: float | None = None,
    ) -> list[str]:
        """Return TonCenter API v2 endpoint URLs on distinct nodes, for client-side balancing."""
        if single:
            return [await self.get_http_endpoint(config, timeout=timeout)]
        return await self._http_endpoints(
            EdgeProtocol.TONCENTER_API_V2, config, self._config.fan_out, timeout
        )

    # --- TonHub API v4 ---

    async def get_http_v4_endpoint(
        self, config: EndpointConfig | None = None, *, timeout: float | None = None
    ) -> str:
        """Return one TonHub API v4 endpoint URL.

        Raises UnsupportedProtocolError up front for the json-rpc format.
        """
        urls = await self._http_endpoints(EdgeProtocol.TON_API_V4, config, 1, timeout)
        return urls[0]

    async def get_http_v4_endpoints(
        self,
        config: EndpointConfig | None = None,
        single: bool = False,
        *,
        timeout: float | None = None,
    ) -> list[str]:
        """Return TonHub API v4 endpoint URLs on distinct nodes."""
        if single:
            return [await self.get_http_v4_endpoint(config, timeout=timeout)]
        return await self._http_endpoints(
            EdgeProtocol.TON_API_V4, config, self._config.fan_out, timeout
        )

    # --- ADNL proxy ---

    async def get_adnl_proxy_endpoint(
        self, config: EndpointConfig | None = None, *, timeout: float | None = None
    ) -> AdnlProxyEndpoint:
        """Return the connection info of one ADNL proxy."""
        nodes = await self._resolve(EdgeProtocol.ADNL_PROXY, self._endpoint_config(config), 1, timeout)
        return build_adnl_endpoint(nodes[0])

    async def get_adnl_proxy_endpoints(
        self,
        config: EndpointConfig | None = None,
        single: bool = False,
        *,
        timeout: float | None = None,
    ) -> list[AdnlProxyEndpoint]:
        """Return the connection info of ADNL proxies on distinct nodes."""
        if single:
            return [await self.get_adnl_proxy_endpoint(config, timeout=timeout)]
        nodes = await self._resolve(
            EdgeProtocol.ADNL_PROXY, self._endpoint_config(config), self._config.fan_out, timeout
        )
        return [build_adnl_endpoint(node) for node in nodes]

    # --- internals ---

    @staticmethod
    def _endpoint_config(config: EndpointConfig | None) -> EndpointConfig:
        cfg = config or EndpointConfig()
        cfg.validate()
        return cfg

    async def _http_endpoints(
        self,
        protocol: EdgeProtocol,
        config: EndpointConfig | None,
        count: int,
        timeout: float | None,
    ) -> list[str]:
        cfg = self._endpoint_config(config)
        # Format check comes before any network activity.
        try:
            check_protocol_format(protocol, cfg.protocol_format)
        except UnsupportedProtocolError:
            if self._metrics is not None:
                self._metrics.record_resolution(str(protocol), str(cfg.network), RESULT_UNSUPPORTED)
            raise
        suffix = url_suffix(protocol, cfg.protocol_format)

        nodes = await self._resolve(protocol, cfg, count, timeout)
        return [
            build_url(cfg.host, node.node_id, cfg.access_version, str(cfg.network), str(protocol), suffix)
            for node in nodes
        ]

    async def _resolve(
        self,
        protocol: EdgeProtocol,
        cfg: EndpointConfig,
        count: int,
        timeout: float | None,
    ) -> list[NodeRecord]:
        """Fetch (if due), filter and select ``count`` nodes for the protocol and network."""
        network = str(cfg.network)
        try:
            snapshot = await self._cache.get_snapshot(timeout=timeout)
            now = self._clock()
            if self._metrics is not None:
                self._metrics.set_snapshot_age(snapshot.age(now))

            stale_after = self._cache.stale_after
            if snapshot.nodes and not fresh_nodes(snapshot.nodes.values(), now, stale_after):
                raise AllNodesStaleError

            candidates = fresh_nodes(healthy_nodes(snapshot, str(protocol), network), now, stale_after)
            if not candidates:
                raise NoHealthyNodesError(str(protocol), network)
        except (FetchError, AllNodesStaleError, NoHealthyNodesError) as exc:
            self._log.debug("Resolution of %s:%s failed: %s", protocol, network, exc)
            if self._metrics is not None:
                self._metrics.record_resolution(str(protocol), network, _result_label(exc))
            raise

        nodes = self._selector.pick(candidates, count, distinct=count > 1)
        if self._metrics is not None:
            self._metrics.record_resolution(str(protocol), network, RESULT_OK)
        self._log.debug(
            "Resolved %s:%s to %s (%d candidates)",
            protocol,
            network,
            ", ".join(node.node_id for node in nodes),
            len(candidates),
        )
        return nodes


# --- Module-level functions: a fresh resolver per call ---


def _default_access() -> TonAccess:
    return TonAccess(ResolverConfig.from_env())


async def get_http_endpoint(config: EndpointConfig | None = None) -> str:
    """Return one TonCenter API v2 endpoint URL."""
    return await _default_access().get_http_endpoint(config)


async def get_http_endpoints(config: EndpointConfig | None = None, single: bool = False) -> list[str]:
    """Return TonCenter API v2 endpoint URLs for client-side balancing."""
    return await _default_access().get_http_endpoints(config, single)


async def get_http_v4_endpoint(config: EndpointConfig | None = None) -> str:
    """Return one TonHub API v4 endpoint URL."""
    return await _default_access().get_http_v4_endpoint(config)


async def get_http_v4_endpoints(config: EndpointConfig | None = None, single: bool = False) -> list[str]:
    """Return TonHub API v4 endpoint URLs for client-side balancing."""
    return await _default_access().get_http_v4_endpoints(config, single)


async def get_adnl_proxy_endpoint(config: EndpointConfig | None = None) -> AdnlProxyEndpoint:
    """Return the connection info of one ADNL proxy."""
    return await _default_access().get_adnl_proxy_endpoint(config)


async def get_adnl_proxy_endpoints(
    config: EndpointConfig | None = None, single: bool = False
) -> list[AdnlProxyEndpoint]:
    """Return the connection info of several ADNL proxies."""
    return await _default_access().get_adnl_proxy_endpoints(config, single)


__all__ = [
    "TonAccess",
    "get_adnl_proxy_endpoint",
    "get_adnl_proxy_endpoints",
    "get_http_endpoint",
    "get_http_endpoints",
    "get_http_v4_endpoint",
    "get_http_v4_endpoints",
]
