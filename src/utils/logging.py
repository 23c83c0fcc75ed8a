"""structlog setup for the ingestion worker and the operator CLI.

Every log line goes to stderr so CLI command output on stdout stays
clean.  Lines are rendered as JSON in production (one object per line,
ready for a log shipper) and with the coloured console renderer
everywhere else.

While a job runs the worker binds ``job_id``, ``job_name``,
``document_id`` and ``source`` with :func:`bind_job_context`.  The
bindings live in a contextvar, so each consumer loop's task carries its
own values and every pipeline, crawler and provider line emitted for that
job is tagged without passing identifiers down the call chain.

Records from libraries that log through the stdlib (httpx, chromadb,
botocore, redis) are rendered by the same processor chain.  The chattiest
of them are held at WARNING: a crawl would otherwise log one httpx line
per page.
"""

import logging
import os
import sys

import structlog

# Libraries whose INFO output drowns the job events.
_QUIET_LOGGERS = ("httpx", "httpcore", "chromadb", "botocore", "urllib3")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Route structlog and stdlib logging to stderr through one renderer.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Render JSON lines.  ``APP_ENV=production`` forces it.

    Returns:
        The root structlog logger.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    if os.environ.get("APP_ENV") == "production":
        json_output = True

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[*_shared_processors(), renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Named logger; configures defaults first if nothing has yet."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


def bind_job_context(**values: object) -> None:
    """Tag every line the current task logs with *values*."""
    structlog.contextvars.bind_contextvars(**values)


def clear_job_context() -> None:
    """Drop the current task's job tags."""
    structlog.contextvars.clear_contextvars()
