"""Logging setup for the API process and Celery workers.

Services log through the stdlib under the ``badboys`` logger; tasks log
through structlog. Both end up as one JSON object per line on stdout
unless ``LOG_JSON`` is off, in which case structlog renders for a console.
"""

import logging
import sys
import time
import uuid

import structlog
from celery.signals import task_postrun, task_prerun
from flask import g, request
from pythonjsonlogger import jsonlogger

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = frozenset({"/health"})

# Loggers that get the JSON handler, with the minimum level they emit at
_ROUTED_LOGGERS = {
    "badboys": None,
    "werkzeug": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "celery": logging.INFO,
}


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_structlog(level: int, as_json: bool = True) -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if as_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def _json_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
            static_fields={"service": "badboys-inventory"},
        )
    )
    return handler


def _incoming_request_id() -> str:
    # The game server plugin forwards its own correlation id
    supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
    return supplied[:64] if supplied else uuid.uuid4().hex[:12]


@task_prerun.connect
def _bind_task_context(task_id=None, task=None, **kwargs):
    # Eager tasks share the request's context, so bind without clearing
    structlog.contextvars.bind_contextvars(task_id=task_id, task=task.name)


@task_postrun.connect
def _unbind_task_context(**kwargs):
    structlog.contextvars.unbind_contextvars("task_id", "task")


def setup_logging(app):
    """Route app, service and worker logs and tag every request with an id."""
    level = _resolve_level(app.config.get("LOG_LEVEL", "INFO"))
    as_json = app.config.get("LOG_JSON", True)

    configure_structlog(level, as_json=as_json)

    if as_json:
        handler = _json_handler(level)
        app.logger.handlers = [handler]
        app.logger.setLevel(level)
        for name, floor in _ROUTED_LOGGERS.items():
            routed = logging.getLogger(name)
            routed.handlers = [handler]
            routed.setLevel(floor if floor is not None else level)
            routed.propagate = False

    @app.before_request
    def bind_request_context():
        g.request_id = _incoming_request_id()
        g.request_started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=g.request_id,
            method=request.method,
            path=request.path,
        )

    @app.after_request
    def log_request(response):
        request_id = g.get("request_id")
        if request_id is None:
            return response
        response.headers[REQUEST_ID_HEADER] = request_id

        if request.path in QUIET_PATHS:
            return response

        elapsed_ms = round((time.perf_counter() - g.request_started) * 1000, 2)
        log = structlog.get_logger("badboys.http")
        emit = log.warning if response.status_code >= 500 else log.info
        emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=elapsed_ms,
            remote_addr=request.remote_addr,
        )
        return response

    return app
