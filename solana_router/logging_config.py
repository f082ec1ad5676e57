"""Logging configuration for the Solana query router."""

import logging
import sys
import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Default log format
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging(log_level: str = "INFO", log_format: Optional[str] = None):
    """Configure global logging settings.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format string
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if log_format is None:
        log_format = DEFAULT_LOG_FORMAT

    # Configure root logger
    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        stream=sys.stdout
    )

    # Set third-party loggers to a higher level to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger
    """
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger,
                     level: str,
                     message: str,
                     **context) -> None:
    """Log a message with additional context information.

    The context is appended to the message as ``key=value`` pairs and also
    attached to the record as ``context`` for structured handlers.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        context: Additional context information as keyword arguments
    """
    context_str = ", ".join(f"{k}={v!r}" for k, v in context.items())
    log_method = getattr(logger, level.lower(), logger.info)
    if context_str:
        log_method(f"{message} [{context_str}]", extra={"context": context})
    else:
        log_method(message, extra={"context": context})


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that stamps each request with an ID and logs its timing."""

    def __init__(self, app):
        super().__init__(app)
        self.logger = get_logger("solana_router.middleware")

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        log_with_context(
            self.logger,
            "info",
            f"Request received: {request.method} {request.url.path}",
            request_id=request_id
        )
        start_time = time.perf_counter()

        response = await call_next(request)

        duration = (time.perf_counter() - start_time) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        log_with_context(
            self.logger,
            "info",
            f"Response: {response.status_code} - {duration:.2f}ms",
            request_id=request_id,
            path=request.url.path
        )
        return response
