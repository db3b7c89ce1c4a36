"""Node records and fleet snapshots parsed from the manager payload."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from tonaccess.errors import FetchError

DEFAULT_ADNL_PORT = 30001

# Epoch values above this are milliseconds.
_MILLIS_THRESHOLD = 1e11


def health_key(protocol: str, network: str) -> str:
    """Return the lowercase ``protocol:network`` health key."""
    return f"{protocol}:{network}".lower()


@dataclass(frozen=True)
class NodeRecord:
    """One backend node and its health state as reported by the manager."""

    node_id: str
    backend_name: str
    ip: str
    weight: float
    healthy: bool
    last_updated: datetime
    health: Mapping[str, bool] = field(default_factory=dict)
    last_success_ts: datetime | None = None
    errors: tuple[str, ...] = ()
    status_code: int = 0
    status_text: str = ""
    adnl_port: int = DEFAULT_ADNL_PORT
    adnl_public_key: str = ""

    def __post_init__(self) -> None:
        if self.weight < 0:
            msg = f"node {self.node_id!r}: weight must be non-negative, got {self.weight}"
            raise ValueError(msg)
        if self.last_updated.tzinfo is None:
            msg = f"node {self.node_id!r}: last_updated must be timezone-aware"
            raise ValueError(msg)
        normalized = {key.lower(): _parse_flag(value) for key, value in self.health.items()}
        object.__setattr__(self, "health", MappingProxyType(normalized))

    def is_healthy_for(self, protocol: str, network: str) -> bool:
        """Report whether the node serves ``protocol`` on ``network``."""
        return self.healthy and self.health.get(health_key(protocol, network), False) is True


@dataclass(frozen=True)
class FleetSnapshot:
    """Immutable view of the fleet at the moment it was fetched."""

    nodes: Mapping[str, NodeRecord]
    fetched_at: datetime

    @classmethod
    def from_records(cls, records: Iterable[NodeRecord], fetched_at: datetime) -> FleetSnapshot:
        """Build a snapshot keyed by node id; a repeated id keeps the last record."""
        by_id = {record.node_id: record for record in records}
        return cls(nodes=MappingProxyType(by_id), fetched_at=fetched_at)

    def age(self, now: datetime) -> float:
        """Seconds elapsed since the snapshot was fetched."""
        return (now - self.fetched_at).total_seconds()

    def __len__(self) -> int:
        return len(self.nodes)


def parse_timestamp(value: Any) -> datetime | None:  # noqa: ANN401
    """Parse an ISO-8601 string or epoch seconds/milliseconds into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        msg = f"invalid timestamp {value!r}"
        raise ValueError(msg)
    if isinstance(value, int | float):
        return _from_epoch(float(value))
    if isinstance(value, str):
        text = value.strip()
        try:
            return _from_epoch(float(text))
        except ValueError:
            pass
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed
    msg = f"invalid timestamp {value!r}"
    raise ValueError(msg)


def _from_epoch(value: float) -> datetime:
    if value > _MILLIS_THRESHOLD:
        value /= 1000.0
    return datetime.fromtimestamp(value, tz=UTC)


def _parse_flag(value: Any) -> bool:  # noqa: ANN401
    """Read a manager flag: a real bool, or 1 / "1" / "true" for set."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true")
    return False


def parse_node(raw: Mapping[str, Any]) -> NodeRecord:
    """Parse one manager record. Raises FetchError on malformed input."""
    if not isinstance(raw, Mapping):
        msg = f"node record must be an object, got {type(raw).__name__}"
        raise FetchError(msg)
    node_id = raw.get("NodeId")
    if not node_id or not isinstance(node_id, str):
        msg = "node record without NodeId"
        raise FetchError(msg)

    mngr = raw.get("Mngr") or {}
    if not isinstance(mngr, Mapping):
        msg = f"node {node_id!r}: Mngr must be an object"
        raise FetchError(msg)

    try:
        last_updated = parse_timestamp(mngr.get("updated"))
        if last_updated is None:
            msg = f"node {node_id!r}: missing Mngr.updated"
            raise FetchError(msg)
        health = mngr.get("health") or {}
        if not isinstance(health, Mapping):
            msg = f"node {node_id!r}: Mngr.health must be an object"
            raise FetchError(msg)
        return NodeRecord(
            node_id=node_id,
            backend_name=str(raw.get("BackendName", "")),
            ip=str(raw.get("Ip", "")),
            weight=float(raw.get("Weight", 0)),
            healthy=_parse_flag(raw.get("Healthy", "0")),
            last_updated=last_updated,
            health=health,
            last_success_ts=parse_timestamp(mngr.get("successTS")),
            errors=tuple(str(e) for e in mngr.get("errors") or ()),
            status_code=int(mngr.get("code", 0) or 0),
            status_text=str(mngr.get("text", "") or ""),
            adnl_port=int(raw.get("AdnlPort", DEFAULT_ADNL_PORT) or DEFAULT_ADNL_PORT),
            adnl_public_key=str(raw.get("AdnlPublicKey", "") or ""),
        )
    except FetchError:
        raise
    except (TypeError, ValueError) as exc:
        msg = f"node {node_id!r}: malformed record: {exc}"
        raise FetchError(msg) from exc


def parse_fleet(payload: Any, fetched_at: datetime) -> FleetSnapshot:  # noqa: ANN401
    """Parse the manager payload: a list of node records or ``{"nodes": [...]}``."""
    if isinstance(payload, Mapping):
        payload = payload.get("nodes")
    if not isinstance(payload, list):
        msg = "manager payload must be a list of node records"
        raise FetchError(msg)
    return FleetSnapshot.from_records((parse_node(item) for item in payload), fetched_at)


__all__ = [
    "DEFAULT_ADNL_PORT",
    "FleetSnapshot",
    "NodeRecord",
    "health_key",
    "parse_fleet",
    "parse_node",
    "parse_timestamp",
]
