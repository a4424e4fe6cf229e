from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.adapters.backend_client import BackendClient
from app.api.deps import get_backend
from app.core.executors import run_guarded
from app.core.settings import settings

router = APIRouter()

HEALTH_PROBE_TIMEOUT = 2.0


@router.get("/health")
async def health_check(backend: BackendClient = Depends(get_backend)):
    """
    Liveness plus a probe of the trading backend.

    Returns:
        {
            "status": "healthy" | "degraded",
            "timestamp": ISO timestamp,
            "backend": {"url": ..., "reachable": bool, "error": str | None}
        }
    """
    probe = await run_guarded("health", backend.call("GET", "/api/health"), HEALTH_PROBE_TIMEOUT)

    return {
        "status": "healthy" if probe.ok else "degraded",
        "app": settings.APP_NAME,
        "env": settings.ENV,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": {
            "url": backend.base_url,
            "reachable": probe.ok,
            "error": probe.error,
        },
    }
