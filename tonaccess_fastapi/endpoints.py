"""Routes: /health/fleet with node status and /endpoints/{protocol} for resolution."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tonaccess.config import (
    DEFAULT_ACCESS_VERSION,
    DEFAULT_HOST,
    EdgeProtocol,
    EndpointConfig,
    Network,
    ProtocolFormat,
)
from tonaccess.errors import TonAccessError, UnsupportedProtocolError
from tonaccess.resolver import TonAccess

fleet_router = APIRouter()


def _access(request: Request) -> TonAccess | None:
    return getattr(request.app.state, "tonaccess", None)


@fleet_router.get("/health/fleet")
async def health_fleet(request: Request) -> JSONResponse:
    """Return JSON with the status of every node in the cached snapshot.

    Response format::

        {
            "status": "healthy",
            "nodes": {
                "node-a": {"healthy": true, "stale": false, ...}
            }
        }

    The status is ``healthy`` while at least one node is healthy and fresh.
    """
    access = _access(request)
    if access is None:
        return JSONResponse(content={"status": "unknown", "nodes": {}}, status_code=503)

    statuses = access.fleet_status()
    if not statuses:
        return JSONResponse(content={"status": "unknown", "nodes": {}}, status_code=503)

    usable = any(s.healthy and not s.stale for s in statuses.values())
    return JSONResponse(
        content={
            "status": "healthy" if usable else "degraded",
            "nodes": {node_id: s.to_dict() for node_id, s in statuses.items()},
        },
        status_code=200 if usable else 503,
    )


@fleet_router.get("/endpoints/{protocol}")
async def resolve_endpoints(
    request: Request,
    protocol: EdgeProtocol,
    network: Network = Network.MAINNET,
    protocol_format: ProtocolFormat = ProtocolFormat.DEFAULT,
    host: str = DEFAULT_HOST,
    access_version: int = DEFAULT_ACCESS_VERSION,
    single: bool = False,
) -> JSONResponse:
    """Resolve endpoints for ``protocol``.

    Invalid options map to 400; resolution failures (no healthy nodes, stale
    data, unreachable manager) map to 503.
    """
    access = _access(request)
    if access is None:
        return JSONResponse(content={"error": "resolver not initialized"}, status_code=503)

    try:
        config = EndpointConfig(
            network=network,
            host=host,
            access_version=access_version,
            protocol_format=protocol_format,
        )
        config.validate()
        endpoints: list[object]
        if protocol == EdgeProtocol.TONCENTER_API_V2:
            endpoints = list(await access.get_http_endpoints(config, single))
        elif protocol == EdgeProtocol.TON_API_V4:
            endpoints = list(await access.get_http_v4_endpoints(config, single))
        else:
            adnl = await access.get_adnl_proxy_endpoints(config, single)
            endpoints = [ep.to_dict() for ep in adnl]
    except UnsupportedProtocolError as exc:
        return JSONResponse(content={"error": str(exc)}, status_code=400)
    except TonAccessError as exc:
        return JSONResponse(content={"error": str(exc)}, status_code=503)
    except ValueError as exc:
        return JSONResponse(content={"error": str(exc)}, status_code=400)

    return JSONResponse(
        content={"protocol": str(protocol), "network": str(network), "endpoints": endpoints},
    )
