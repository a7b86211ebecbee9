"""
Health Routes - Health check endpoints
"""
import time
from typing import Any, Callable, Dict

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.dependencies import get_supabase_client
from app.utils.timezone import get_ist_now

router = APIRouter(tags=["health"])

START_TIME = time.monotonic()


def _run_check(check: Callable[[], None]) -> Dict[str, Any]:
    started = time.monotonic()
    try:
        check()
    except Exception as e:
        return {
            "status": "fail",
            "latency": round((time.monotonic() - started) * 1000),
            "message": str(e)
        }
    return {"status": "pass", "latency": round((time.monotonic() - started) * 1000)}


def _check_database():
    get_supabase_client().table("user_rewards").select("user_id").limit(1).execute()


def _check_auth():
    get_supabase_client().auth.get_session()


def get_health() -> Dict[str, Any]:
    """
    Run the database and auth checks

    Returns:
        Dict with status (healthy/degraded/unhealthy), timestamp, version,
        uptime in ms and the individual checks
    """
    checks = {
        "database": _run_check(_check_database),
        "auth": _run_check(_check_auth)
    }

    failing = [name for name, result in checks.items() if result["status"] == "fail"]
    if not failing:
        status = "healthy"
    elif len(failing) == len(checks):
        status = "unhealthy"
    else:
        status = "degraded"

    return {
        "status": status,
        "timestamp": get_ist_now().isoformat(),
        "version": settings.APP_VERSION,
        "uptime": round((time.monotonic() - START_TIME) * 1000),
        "checks": checks
    }


@router.get("/health")
async def health_check():
    """Health check endpoint; 503 only when every check fails"""
    health = get_health()
    status_code = 503 if health["status"] == "unhealthy" else 200
    return JSONResponse(content=health, status_code=status_code)


@router.head("/health")
async def health_check_head():
    """Quick health check without a body"""
    result = _run_check(_check_database)
    return Response(status_code=200 if result["status"] == "pass" else 503)
