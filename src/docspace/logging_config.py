"""structlog on top of stdlib logging.

Modules log through ``logging.getLogger(__name__)``; their records run through
the structlog chain below, so every line carries the trace id and caller
bound by the trace-id middleware.
"""

import logging
import sys

import structlog

# Libraries that log every request or statement at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "aiosqlite", "alembic")

_PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.ExtraAdder(),
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def configure_logging(log_level: str = "info", json_output: bool = False) -> None:
    """Install a single stdout handler on the root logger.

    JSON lines in deployments, coloured console output in local mode.
    """
    if json_output:
        tail = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        tail = [structlog.dev.ConsoleRenderer()]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *tail],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level.upper())
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def bind_request_context(trace_id: str, user_id: str | None = None, org_id: str | None = None) -> None:
    context = {"trace_id": trace_id, "user_id": user_id, "org_id": org_id}
    structlog.contextvars.bind_contextvars(**{key: value for key, value in context.items() if value})


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
