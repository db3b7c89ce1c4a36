"""Shared fixtures: a controllable clock and an in-memory fleet source."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from tonaccess.errors import FetchError
from tonaccess.node import FleetSnapshot, NodeRecord

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

ALL_PAIRS = {
    f"{protocol}:{network}": True
    for protocol in ("toncenter-api-v2", "ton-api-v4", "adnl-proxy")
    for network in ("mainnet", "testnet")
}


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeSource:
    """In-memory FleetSource with a call counter, failure switch and optional gate."""

    def __init__(self, clock: Callable[[], datetime], nodes: list[NodeRecord]) -> None:
        self.clock = clock
        self.nodes = nodes
        self.calls = 0
        self.fail = False
        self.gate: asyncio.Event | None = None

    async def fetch(self) -> FleetSnapshot:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            msg = "manager unreachable"
            raise FetchError(msg)
        return FleetSnapshot.from_records(self.nodes, self.clock())


def make_node(
    node_id: str,
    *,
    weight: float = 1,
    healthy: bool = True,
    health: dict[str, bool] | None = None,
    updated: datetime = T0,
    ip: str = "10.0.0.1",
) -> NodeRecord:
    return NodeRecord(
        node_id=node_id,
        backend_name=f"be-{node_id}",
        ip=ip,
        weight=weight,
        healthy=healthy,
        last_updated=updated,
        health=ALL_PAIRS if health is None else health,
        adnl_public_key=f"pk-{node_id}",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def source(clock: FakeClock) -> FakeSource:
    """Three healthy nodes serving every protocol on both networks."""
    return FakeSource(
        clock,
        [
            make_node("node-a", ip="1.1.1.1"),
            make_node("node-b", ip="2.2.2.2"),
            make_node("node-c", ip="3.3.3.3"),
        ],
    )
