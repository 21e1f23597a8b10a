import logging
import os
from logging.config import dictConfig
from typing import Optional


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes")


def build_logging_config(level: str, access_log: bool = True, sql_echo: bool = False) -> dict:
    """dictConfig for the API process.

    Reminder delivery (``needled.services``) and job bookkeeping always log at
    ``level`` or finer so a cron run can be traced; third-party chatter stays at
    WARNING unless ``sql_echo`` asks for SQLAlchemy statements.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "level": level,
            }
        },
        "loggers": {
            "needled": {"level": level},
            "uvicorn": {"handlers": ["console"], "level": level, "propagate": False},
            "uvicorn.access": {
                "handlers": ["console"] if access_log else [],
                "level": level if access_log else "WARNING",
                "propagate": False,
            },
            "apscheduler": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "INFO" if sql_echo else "WARNING"},
        },
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(
    level: Optional[str] = None,
    access_log: Optional[bool] = None,
    sql_echo: Optional[bool] = None,
) -> None:
    # Arguments win over LOG_LEVEL / LOG_ACCESS / LOG_SQL
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if access_log is None:
        access_log = _env_flag("LOG_ACCESS", True)
    if sql_echo is None:
        sql_echo = _env_flag("LOG_SQL", False)

    dictConfig(build_logging_config(level, access_log=access_log, sql_echo=sql_echo))
    logging.getLogger(__name__).debug("Logging configured at %s", level)


__all__ = ["build_logging_config", "configure_logging"]
