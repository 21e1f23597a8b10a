from fastapi import APIRouter

from .auth import router as auth_router
from .calendar import router as calendar_router
from .cron import router as cron_router
from .dashboard import router as dashboard_router
from .habits import router as habits_router
from .health import router as health_router
from .injections import router as injections_router
from .medications import router as medications_router
from .notifications import router as notifications_router
from .settings import router as settings_router
from .users import router as users_router
from .weigh_ins import router as weigh_ins_router

api_router = APIRouter()
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(users_router, prefix="/users", tags=["users"])
api_router.include_router(weigh_ins_router, prefix="/weigh-ins", tags=["weigh-ins"])
api_router.include_router(injections_router, prefix="/injections", tags=["injections"])
api_router.include_router(habits_router, prefix="/habits", tags=["habits"])
api_router.include_router(calendar_router, prefix="/calendar", tags=["calendar"])
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(medications_router, prefix="/medications", tags=["medications"])
api_router.include_router(settings_router, prefix="/settings", tags=["settings"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
api_router.include_router(cron_router, prefix="/cron", tags=["cron"])

__all__ = ["api_router"]
