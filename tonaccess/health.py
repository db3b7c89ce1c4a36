"""Health filter: narrow a fleet snapshot to nodes usable for a protocol and network."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from tonaccess.node import FleetSnapshot, NodeRecord


def healthy_nodes(snapshot: FleetSnapshot, protocol: str, network: str) -> list[NodeRecord]:
    """Return the nodes that are healthy overall and for ``protocol:network``.

    A node without a health entry for the pair counts as unhealthy for it.
    The order of the result carries no meaning.
    """
    return [node for node in snapshot.nodes.values() if node.is_healthy_for(protocol, network)]


def fresh_nodes(nodes: Iterable[NodeRecord], now: datetime, stale_after: float) -> list[NodeRecord]:
    """Drop nodes whose last manager report is older than ``stale_after`` seconds."""
    return [node for node in nodes if (now - node.last_updated).total_seconds() <= stale_after]


__all__ = [
    "fresh_nodes",
    "healthy_nodes",
]
