"""Resolution error types."""

from __future__ import annotations


class TonAccessError(Exception):
    """Base error for a failed endpoint resolution."""


class FetchError(TonAccessError):
    """Manager unreachable or returned a malformed payload."""


class AllNodesStaleError(TonAccessError):
    """Cached fleet data is too old and could not be refreshed."""

    def __init__(self, *args: object) -> None:
        super().__init__(*(args or ("all nodes manager's data are stale",)))


class NoHealthyNodesError(TonAccessError):
    """No node is healthy for the requested protocol and network."""

    def __init__(self, protocol: str, network: str) -> None:
        self.protocol = protocol
        self.network = network
        super().__init__(f"no healthy nodes for {protocol}:{network}")


class UnsupportedProtocolError(TonAccessError, ValueError):
    """Invalid protocol/format combination."""


__all__ = [
    "AllNodesStaleError",
    "FetchError",
    "NoHealthyNodesError",
    "TonAccessError",
    "UnsupportedProtocolError",
]
