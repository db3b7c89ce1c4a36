"""NodeStatus: diagnostic view of a single node in the cached snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from tonaccess.node import FleetSnapshot, NodeRecord


@dataclass(frozen=True)
class NodeStatus:
    """Diagnostic state of a single node.

    Returned by ``TonAccess.fleet_status()``. ``stale`` is computed against the
    staleness threshold at the time the view was built.
    """

    node_id: str
    backend_name: str
    ip: str
    weight: float
    healthy: bool
    stale: bool
    last_updated: datetime
    last_success_ts: datetime | None
    status_code: int
    status_text: str
    health: dict[str, bool] = field(default_factory=dict)
    errors: tuple[str, ...] = ()

    @classmethod
    def from_record(cls, node: NodeRecord, now: datetime, stale_after: float) -> NodeStatus:
        """Build the view for ``node`` as of ``now``."""
        return cls(
            node_id=node.node_id,
            backend_name=node.backend_name,
            ip=node.ip,
            weight=node.weight,
            healthy=node.healthy,
            stale=(now - node.last_updated).total_seconds() > stale_after,
            last_updated=node.last_updated,
            last_success_ts=node.last_success_ts,
            status_code=node.status_code,
            status_text=node.status_text,
            health=dict(node.health),
            errors=node.errors,
        )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a JSON-compatible dictionary.

        Timestamps are serialized as ISO 8601 strings or None.
        """
        return {
            "node_id": self.node_id,
            "backend_name": self.backend_name,
            "ip": self.ip,
            "weight": self.weight,
            "healthy": self.healthy,
            "stale": self.stale,
            "last_updated": self.last_updated.isoformat(),
            "last_success_ts": (self.last_success_ts.isoformat() if self.last_success_ts else None),
            "status_code": self.status_code,
            "status_text": self.status_text,
            "health": dict(self.health),
            "errors": list(self.errors),
        }


def fleet_status(snapshot: FleetSnapshot, now: datetime, stale_after: float) -> dict[str, NodeStatus]:
    """Return the status of every node in ``snapshot`` keyed by node id."""
    return {
        node_id: NodeStatus.from_record(node, now, stale_after)
        for node_id, node in snapshot.nodes.items()
    }


__all__ = [
    "NodeStatus",
    "fleet_status",
]
