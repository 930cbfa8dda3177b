"""
Health Check Endpoints

- /health       - liveness, `{status, timestamp}`
- /health/ready - remote store and local cache checks
"""

import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from hostelpay.core.clock import utcnow, isoformat
from hostelpay.core.logging_config import logger
from hostelpay.modules.auth.dependencies import get_services
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_remote_store(services: HostelServices) -> Dict[str, Any]:
    """Ping one remote collection"""
    if not services.remote_stores:
        return {"status": "not_configured", "message": "Running on the local cache only"}

    start = time.time()
    store = services.remote_stores.get("settings")
    try:
        await store.ping()
        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "backend": services.config.remote_backend(),
        }
    except Exception as e:
        logger.error(f"[HealthCheck] Remote store check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": str(e),
            "message": "Remote store unreachable - changes are kept in the local cache",
        }


def check_local_cache(services: HostelServices) -> Dict[str, Any]:
    cache = services.data.cache
    try:
        cache.save("health-check", isoformat(utcnow()))
        cache.remove("health-check")
        return {"status": "healthy", "path": str(cache.directory)}
    except OSError as e:
        logger.error(f"[HealthCheck] Local cache check failed: {e}")
        return {"status": "unhealthy", "path": str(cache.directory), "error": str(e)}


@router.get("")
async def health_check():
    """Simple health check"""
    return {"status": "healthy", "timestamp": isoformat(utcnow())}


@router.get("/ready")
async def readiness_check(services: HostelServices = Depends(get_services)):
    """
    Readiness check.

    The service stays ready while the remote store is down (it degrades to
    the local cache); it is not ready when the local cache is unwritable.
    """
    remote = await check_remote_store(services)
    local = check_local_cache(services)
    ready = local["status"] == "healthy"
    body = {
        "status": "ready" if ready else "not_ready",
        "degraded": remote["status"] == "unhealthy",
        "timestamp": isoformat(utcnow()),
        "checks": {"remote_store": remote, "local_cache": local},
    }
    if not ready:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
