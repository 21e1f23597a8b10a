from fastapi import APIRouter, Depends, Request, Response

from needled import __version__, jobs_state
from needled.core.clock import utcnow
from needled.core.db import check_db_health
from needled.core.settings import Settings, get_settings

router = APIRouter()

_start_time = utcnow()


def _uptime_seconds() -> float:
    return (utcnow() - _start_time).total_seconds()


@router.api_route("/", methods=["GET", "HEAD"], summary="Liveness check", response_model=None)
async def health(request: Request):
    if request.method == "HEAD":
        return Response(status_code=200)
    return {"ok": True}


@router.get("/full", summary="Full health check")
async def full_health(settings: Settings = Depends(get_settings)) -> dict:
    database = await check_db_health()
    return {
        "ok": bool(database.get("ok")),
        "uptime_seconds": _uptime_seconds(),
        "version": __version__,
        "database": database,
        "jobs": jobs_state.get_all_states(),
        "notifications_enabled": settings.notifications.enabled,
        "server": {"host": settings.server.host, "port": settings.server.port},
    }
