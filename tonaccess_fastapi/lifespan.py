"""Lifespan manager: run a TonAccess resolver alongside a FastAPI app."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from prometheus_client import CollectorRegistry

from tonaccess.config import ResolverConfig
from tonaccess.metrics import MetricsExporter
from tonaccess.resolver import TonAccess


def tonaccess_lifespan(
    config: ResolverConfig | None = None,
    *,
    registry: CollectorRegistry | None = None,
    **kwargs: Any,  # noqa: ANN401
) -> object:
    """Lifespan factory for FastAPI.

    Returns a callable accepted by ``FastAPI(lifespan=...)``. The resolver is
    stored on ``app.state.tonaccess`` and refreshes the fleet in the
    background while the app runs.

    Example::

        app = FastAPI(lifespan=tonaccess_lifespan(ResolverConfig.from_env()))
    """

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[dict[str, Any]]:
        access = TonAccess(config, metrics=MetricsExporter(registry=registry), **kwargs)
        app.state.tonaccess = access
        await access.start()
        try:
            yield {"tonaccess": access}
        finally:
            await access.stop()

    return _lifespan
