import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from needled import __version__
from needled.api import api_router
from needled.core.db import create_tables, dispose_engine, init_db
from needled.core.logging import configure_logging
from needled.core.scheduler import init_scheduler, shutdown_scheduler
from needled.core.settings import get_settings

configure_logging()
settings = get_settings()
logger = logging.getLogger(__name__)

app = FastAPI(title="Needled", version=__version__)


def _collect_cors_origins() -> list[str]:
    default_origins = [
        "http://localhost:3000",
        "http://localhost:8081",
    ]

    collected: list[str] = []
    for origin in (*default_origins, settings.notifications.app_url, *settings.security.cors_origins):
        if origin and origin not in collected:
            collected.append(origin)
    return collected


app.add_middleware(
    CORSMiddleware,
    allow_origins=_collect_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def startup_event() -> None:
    init_db()
    await create_tables()

    current = get_settings()
    if current.notifications.enabled:
        from needled.jobs import setup_periodic_tasks

        init_scheduler()
        setup_periodic_tasks()
    else:
        logger.info("Notifications disabled, reminder scheduler not started")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    shutdown_scheduler()
    await dispose_engine()


@app.get("/", include_in_schema=False)
def root():
    return {"message": "Needled API running"}
