"""
core/logging.py
---------------
Structured logging using structlog.

Every event carries the app name and environment. Values under credential
keys (passwords, hashes, cookies, session ids) are masked before rendering,
so a careless `logger.info(..., password=...)` never reaches the output.

DEBUG=true  → console renderer, SQL and botocore chatter left on
DEBUG=false → JSON lines, noisy library loggers raised to WARNING
"""

import logging
import sys
from typing import Any, MutableMapping

import structlog

from docportal.core.config import Settings

REDACTED = "***"

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "senha",
        "password_hash",
        "hashed_password",
        "secret_key",
        "cookie",
        "session_id",
        "token",
    }
)

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "botocore", "aiobotocore")


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(settings: Settings) -> None:
    log_level = logging.DEBUG if settings.DEBUG else logging.INFO
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    if not settings.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    def add_app_context(logger, method_name, event_dict):
        event_dict.setdefault("app", settings.APP_NAME)
        event_dict.setdefault("env", settings.APP_ENV)
        return event_dict

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.DEBUG
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_app_context,
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
