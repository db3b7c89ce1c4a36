# Example: FastAPI service handing out healthy TON endpoints.
# Refreshes the fleet in the background and exposes Prometheus metrics.
#
# Install:
#   pip install tonaccess[fastapi] uvicorn
#
# Run:
#   uvicorn main:app --host 0.0.0.0 --port 8080

from fastapi import FastAPI, Request

from tonaccess import ResolverConfig
from tonaccess_fastapi import TonAccessMetricsMiddleware, fleet_router, tonaccess_lifespan

# TonAccess starts on startup and stops on shutdown automatically.
# TONACCESS_* environment variables override the defaults.
app = FastAPI(
    title="tonaccess example",
    lifespan=tonaccess_lifespan(ResolverConfig.from_env()),
)

# Expose Prometheus metrics on GET /metrics.
app.add_middleware(TonAccessMetricsMiddleware)

# GET /health/fleet and GET /endpoints/{protocol}.
app.include_router(fleet_router)


@app.get("/")
async def root(request: Request) -> dict[str, str]:
    endpoint = await request.app.state.tonaccess.get_http_endpoint()
    return {"endpoint": endpoint}
