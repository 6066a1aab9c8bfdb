"""
Logging configuration for LingoPal Backend

Structured logging through structlog. Every HTTP request gets a request id
(taken from an incoming `x-request-id` header or generated) and, once the
bearer token is verified, the caller's user id. Both are bound as structlog
context variables, so ledger and recommendation events logged during the
request carry them without passing them around.
"""

import logging
import sys
import time
import uuid
from typing import Any, Optional

import structlog
from pythonjsonlogger import jsonlogger

from lingopal.core.config import settings

REQUEST_ID_HEADER = b"x-request-id"
MAX_REQUEST_ID_LENGTH = 64


def setup_logging() -> None:
    """Configure structured logging for the application"""

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Stdlib records from uvicorn / sqlalchemy use the same shape as structlog output
    if settings.is_production:
        formatter = jsonlogger.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
            if settings.is_production
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance"""
    return structlog.get_logger(name)


def bind_user(scope, user_id: str) -> None:
    """Attach the authenticated caller to the current request's log context"""
    structlog.contextvars.bind_contextvars(user_id=user_id)
    scope.setdefault("state", {})["user_id"] = user_id


def _incoming_request_id(scope) -> Optional[str]:
    for name, value in scope.get("headers", []):
        if name == REQUEST_ID_HEADER:
            request_id = value.decode("latin-1").strip()
            if 0 < len(request_id) <= MAX_REQUEST_ID_LENGTH:
                return request_id
    return None


class RequestContextMiddleware:
    """
    Binds request_id to the log context, echoes it as `x-request-id`, and
    writes one `request.completed` (or `request.failed`) line per request
    with the status, the duration and the authenticated user, if any.
    """

    def __init__(self, app):
        self.app = app
        self.logger = get_logger("lingopal.request")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope) or str(uuid.uuid4())
        state = scope.setdefault("state", {})
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        status_code = None
        start_time = time.perf_counter()

        async def send_with_request_id(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status")
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER, request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        fields = {"method": scope.get("method"), "path": scope.get("path")}
        try:
            await self.app(scope, receive, send_with_request_id)
        except Exception as exc:
            self.logger.exception(
                "request.failed",
                request_id=request_id,
                user_id=state.get("user_id"),
                error=str(exc),
                **fields,
            )
            raise
        else:
            self.logger.info(
                "request.completed",
                request_id=request_id,
                user_id=state.get("user_id"),
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                **fields,
            )
        finally:
            structlog.contextvars.clear_contextvars()


class LatencyLogger:
    """Context manager logging `event` with the elapsed time of its block"""

    def __init__(self, event: str, logger: structlog.stdlib.BoundLogger, **context: Any):
        self.event = event
        self.logger = logger
        self.context = context
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.info(
            self.event,
            latency_ms=round((time.perf_counter() - self.start_time) * 1000, 2),
            success=exc_type is None,
            **self.context,
        )
