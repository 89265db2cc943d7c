"""
Structured JSON logging for DotPrint.

Provides a JSON formatter, request logging middleware with request IDs,
and helpers for configuring and fetching loggers.

Example usage:
    >>> from core.logging import get_logger, setup_logging
    >>> setup_logging()
    >>> logger = get_logger(__name__)
    >>> logger.info("Pattern stored", extra={"submission_id": 42})
"""

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'taskName', 'exc_info',
    'exc_text', 'stack_info', 'message',
])


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON objects.

    Every entry carries time, level, logger and msg; fields passed via
    ``extra`` are copied in as top-level keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every request with its status and timing.

    A short request ID is stored on ``request.state`` and echoed back in the
    ``X-Request-ID`` response header for correlation.
    """

    def __init__(self, app, logger_name: str = "dotprint.requests"):
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            self.logger.error(
                f"Request failed: {request.method} {request.url.path}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status": 500,
                    "duration_ms": duration_ms,
                    "error": str(e)
                },
                exc_info=True
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        self.logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": duration_ms,
            }
        )
        response.headers["X-Request-ID"] = request_id
        return response


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    logger_name: Optional[str] = None
) -> None:
    """
    Configure logging with JSON or plain-text output on stdout.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" or "text"
        logger_name: Specific logger to configure (None for root)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if format_type.lower() == "json":
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(numeric_level)

    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(numeric_level)

    if logger_name:
        logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module (typically ``__name__``)."""
    return logging.getLogger(name)
