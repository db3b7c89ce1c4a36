"""tonaccess-fastapi — FastAPI integration for the tonaccess resolver."""

from tonaccess_fastapi.endpoints import fleet_router
from tonaccess_fastapi.lifespan import tonaccess_lifespan
from tonaccess_fastapi.middleware import TonAccessMetricsMiddleware

__all__ = [
    "TonAccessMetricsMiddleware",
    "fleet_router",
    "tonaccess_lifespan",
]
