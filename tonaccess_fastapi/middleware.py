"""Metrics endpoint for apps that run a TonAccess resolver."""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

DEFAULT_METRICS_PATH = "/metrics"


class TonAccessMetricsMiddleware(BaseHTTPMiddleware):
    """Serve Prometheus metrics at ``metrics_path``.

    The snapshot age gauge otherwise only moves when an endpoint is resolved.
    On each scrape the middleware refreshes it from the resolver stored on
    ``app.state.tonaccess``, so an idle app still reports how old its fleet
    data is. Requests to any other path go to the app unchanged.

    Example::

        app = FastAPI(lifespan=tonaccess_lifespan())
        app.add_middleware(TonAccessMetricsMiddleware)
    """

    def __init__(
        self,
        app: ASGIApp,
        registry: CollectorRegistry | None = None,
        metrics_path: str = DEFAULT_METRICS_PATH,
    ) -> None:
        super().__init__(app)
        self._registry = registry if registry is not None else REGISTRY
        self._metrics_path = metrics_path

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path != self._metrics_path:
            return await call_next(request)

        access = getattr(request.app.state, "tonaccess", None)
        if access is not None:
            access.observe_snapshot_age()
        return Response(content=generate_latest(self._registry), media_type=CONTENT_TYPE_LATEST)
