"""Tests for node.py — manager payload parsing, NodeRecord, FleetSnapshot."""

from datetime import UTC, datetime, timedelta

import pytest

from tonaccess.errors import FetchError
from tonaccess.node import (
    DEFAULT_ADNL_PORT,
    FleetSnapshot,
    NodeRecord,
    health_key,
    parse_fleet,
    parse_node,
    parse_timestamp,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _raw_node(node_id: str = "19e116699fd6c7ad", **overrides: object) -> dict[str, object]:
    raw: dict[str, object] = {
        "NodeId": node_id,
        "BackendName": "be-1",
        "Ip": "3.3.3.3",
        "Weight": 10,
        "Healthy": "1",
        "Mngr": {
            "updated": "2024-05-01T11:59:00Z",
            "health": {"toncenter-api-v2:mainnet": True, "TON-API-V4:Mainnet": False},
            "successTS": 1714564740000,
            "errors": ["timeout on probe"],
            "code": 200,
            "text": "OK",
        },
    }
    raw.update(overrides)
    return raw


class TestParseNode:
    def test_full_record(self) -> None:
        node = parse_node(_raw_node())
        assert node.node_id == "19e116699fd6c7ad"
        assert node.backend_name == "be-1"
        assert node.ip == "3.3.3.3"
        assert node.weight == 10.0
        assert node.healthy is True
        assert node.last_updated == datetime(2024, 5, 1, 11, 59, tzinfo=UTC)
        assert node.last_success_ts == datetime(2024, 5, 1, 11, 59, tzinfo=UTC)
        assert node.errors == ("timeout on probe",)
        assert node.status_code == 200
        assert node.status_text == "OK"
        assert node.adnl_port == DEFAULT_ADNL_PORT
        assert node.adnl_public_key == ""

    def test_health_keys_lowercased(self) -> None:
        node = parse_node(_raw_node())
        assert dict(node.health) == {
            "toncenter-api-v2:mainnet": True,
            "ton-api-v4:mainnet": False,
        }

    @pytest.mark.parametrize(
        ("flag", "expected"), [("1", True), ("0", False), ("", False), ("true", True), (True, True), (1, True)]
    )
    def test_healthy_flag_normalized(self, flag: object, expected: bool) -> None:
        assert parse_node(_raw_node(Healthy=flag)).healthy is expected

    @pytest.mark.parametrize(
        ("flag", "expected"),
        [("false", False), ("0", False), ("", False), ("1", True), ("True", True), (0, False), (None, False)],
    )
    def test_string_health_entries_normalized(self, flag: object, expected: bool) -> None:
        mngr = {"updated": "2024-05-01T11:59:00Z", "health": {"toncenter-api-v2:mainnet": flag}}
        node = parse_node(_raw_node(Mngr=mngr))
        assert node.health["toncenter-api-v2:mainnet"] is expected
        assert node.is_healthy_for("toncenter-api-v2", "mainnet") is expected

    def test_adnl_fields(self) -> None:
        node = parse_node(_raw_node(AdnlPort=30310, AdnlPublicKey="pubkey=="))
        assert node.adnl_port == 30310
        assert node.adnl_public_key == "pubkey=="

    def test_missing_node_id(self) -> None:
        raw = _raw_node()
        del raw["NodeId"]
        with pytest.raises(FetchError, match="NodeId"):
            parse_node(raw)

    def test_missing_updated(self) -> None:
        raw = _raw_node(Mngr={"health": {}})
        with pytest.raises(FetchError, match="updated"):
            parse_node(raw)

    def test_negative_weight(self) -> None:
        with pytest.raises(FetchError, match="weight"):
            parse_node(_raw_node(Weight=-1))

    def test_non_numeric_weight(self) -> None:
        with pytest.raises(FetchError):
            parse_node(_raw_node(Weight="heavy"))

    def test_not_an_object(self) -> None:
        with pytest.raises(FetchError):
            parse_node(["NodeId"])  # type: ignore[arg-type]


class TestParseTimestamp:
    def test_iso_with_z(self) -> None:
        assert parse_timestamp("2024-05-01T12:00:00Z") == NOW

    def test_naive_iso_is_utc(self) -> None:
        assert parse_timestamp("2024-05-01T12:00:00") == NOW

    def test_epoch_seconds_and_millis(self) -> None:
        seconds = NOW.timestamp()
        assert parse_timestamp(seconds) == NOW
        assert parse_timestamp(seconds * 1000) == NOW
        assert parse_timestamp(str(int(seconds))) == NOW

    def test_empty(self) -> None:
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_garbage(self) -> None:
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestParseFleet:
    def test_list_payload(self) -> None:
        snapshot = parse_fleet([_raw_node("a"), _raw_node("b")], NOW)
        assert set(snapshot.nodes) == {"a", "b"}
        assert snapshot.fetched_at == NOW
        assert len(snapshot) == 2

    def test_wrapped_payload(self) -> None:
        snapshot = parse_fleet({"nodes": [_raw_node("a")]}, NOW)
        assert list(snapshot.nodes) == ["a"]

    def test_duplicate_ids_keep_last(self) -> None:
        snapshot = parse_fleet([_raw_node("a", Weight=1), _raw_node("a", Weight=5)], NOW)
        assert len(snapshot) == 1
        assert snapshot.nodes["a"].weight == 5.0

    @pytest.mark.parametrize("payload", [None, "nodes", 42, {"items": []}])
    def test_malformed_payload(self, payload: object) -> None:
        with pytest.raises(FetchError):
            parse_fleet(payload, NOW)

    def test_empty_list(self) -> None:
        assert len(parse_fleet([], NOW)) == 0


class TestNodeRecord:
    def test_is_healthy_for(self) -> None:
        node = parse_node(_raw_node())
        assert node.is_healthy_for("toncenter-api-v2", "mainnet")
        assert not node.is_healthy_for("ton-api-v4", "mainnet")
        assert not node.is_healthy_for("toncenter-api-v2", "testnet")

    def test_unhealthy_overall_wins(self) -> None:
        node = parse_node(_raw_node(Healthy="0"))
        assert not node.is_healthy_for("toncenter-api-v2", "mainnet")

    def test_naive_last_updated_rejected(self) -> None:
        with pytest.raises(ValueError):
            NodeRecord(
                node_id="a",
                backend_name="",
                ip="",
                weight=1,
                healthy=True,
                last_updated=datetime(2024, 1, 1),  # noqa: DTZ001
            )

    def test_string_false_health_is_unhealthy(self) -> None:
        node = NodeRecord(
            node_id="a",
            backend_name="",
            ip="",
            weight=1,
            healthy=True,
            last_updated=NOW,
            health={"toncenter-api-v2:mainnet": "false", "ton-api-v4:mainnet": "1"},
        )
        assert not node.is_healthy_for("toncenter-api-v2", "mainnet")
        assert node.is_healthy_for("ton-api-v4", "mainnet")

    def test_health_is_read_only(self) -> None:
        node = parse_node(_raw_node())
        with pytest.raises(TypeError):
            node.health["adnl-proxy:mainnet"] = True  # type: ignore[index]

    def test_health_key(self) -> None:
        assert health_key("Ton-API-V4", "TESTNET") == "ton-api-v4:testnet"


class TestFleetSnapshot:
    def test_age(self) -> None:
        snapshot = FleetSnapshot.from_records([], NOW)
        assert snapshot.age(NOW + timedelta(minutes=9)) == 540.0

    def test_nodes_read_only(self) -> None:
        snapshot = parse_fleet([_raw_node("a")], NOW)
        with pytest.raises(TypeError):
            snapshot.nodes["b"] = snapshot.nodes["a"]  # type: ignore[index]
