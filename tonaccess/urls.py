"""Endpoint URL construction."""

from __future__ import annotations

from dataclasses import dataclass

from tonaccess.config import EdgeProtocol, ProtocolFormat
from tonaccess.errors import UnsupportedProtocolError
from tonaccess.node import NodeRecord

JSON_RPC_SUFFIX = "jsonRPC"


@dataclass(frozen=True)
class AdnlProxyEndpoint:
    """Connection info for an ADNL proxy: endpoint plus server public key."""

    endpoint: str
    public_key: str

    def to_dict(self) -> dict[str, str]:
        """Serialize to a JSON-compatible dictionary."""
        return {"endpoint": self.endpoint, "publicKey": self.public_key}


def check_protocol_format(protocol: EdgeProtocol, protocol_format: ProtocolFormat) -> None:
    """Reject protocol/format combinations that have no URL shape."""
    if protocol == EdgeProtocol.TON_API_V4 and protocol_format == ProtocolFormat.JSON_RPC:
        msg = "config.protocol json-rpc is not supported for ton-api-v4 endpoints"
        raise UnsupportedProtocolError(msg)


def url_suffix(protocol: EdgeProtocol, protocol_format: ProtocolFormat) -> str:
    """Return the path segment that follows the protocol in the URL."""
    check_protocol_format(protocol, protocol_format)
    if protocol == EdgeProtocol.TONCENTER_API_V2:
        return "" if protocol_format == ProtocolFormat.REST else JSON_RPC_SUFFIX
    if protocol == EdgeProtocol.TON_API_V4:
        return ""
    msg = f"protocol {protocol} has no HTTP URL form"
    raise UnsupportedProtocolError(msg)


def build_url(
    host: str,
    node_id: str,
    version: int,
    network: str,
    protocol: str,
    suffix: str = "",
) -> str:
    """Build ``https://{host}/{node_id}/{version}/{network}/{protocol}/{suffix}``.

    An empty suffix drops the trailing slash.
    """
    url = f"https://{host}/{node_id}/{version}/{network}/{protocol}"
    if suffix:
        url = f"{url}/{suffix}"
    return url


def build_adnl_endpoint(node: NodeRecord) -> AdnlProxyEndpoint:
    """Build the ADNL proxy connection info straight from the node record."""
    return AdnlProxyEndpoint(
        endpoint=f"ws://{node.ip}:{node.adnl_port}",
        public_key=node.adnl_public_key,
    )


__all__ = [
    "JSON_RPC_SUFFIX",
    "AdnlProxyEndpoint",
    "build_adnl_endpoint",
    "build_url",
    "check_protocol_format",
    "url_suffix",
]
