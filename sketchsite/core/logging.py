"""structlog setup with a stdlib bridge.

JSON lines in production, ConsoleRenderer in debug. Records from uvicorn,
SQLAlchemy, httpx and the anthropic SDK go through the same processor chain,
so every line carries the service name, level, timestamp and (inside a
request) the correlation id.

Model replies can be tens of kilobytes; string values are capped at
MAX_VALUE_CHARS before rendering.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

SERVICE_NAME = "sketchsite"
MAX_VALUE_CHARS = 500

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "anthropic", "sqlalchemy.engine", "aiosqlite")


def add_correlation_id(logger, method, event_dict):
    """Inject correlation_id from the asgi-correlation-id context."""
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def add_service(logger, method, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def truncate_long_values(logger, method, event_dict):
    """Cap long string values (raw model output, stylesheets) at MAX_VALUE_CHARS."""
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > MAX_VALUE_CHARS:
            event_dict[key] = value[:MAX_VALUE_CHARS] + f"...[{len(value) - MAX_VALUE_CHARS} more chars]"
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service,
        add_correlation_id,
        truncate_long_values,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Route structlog and stdlib logging through one formatter.

    Must run before other sketchsite modules log anything: structlog caches
    the processor chain on first use.

    Args:
        log_level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
        json_logs: JSON lines when True, ConsoleRenderer otherwise
    """
    shared = _shared_processors()
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
                "foreign_pre_chain": shared,
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["default"], "level": log_level},
        "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
    })

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
