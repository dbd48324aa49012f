"""
Observability helpers.

Adds correlation IDs and request logging, and configures the root logger
shared by the API and the services.
"""

import sys
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that are too chatty at INFO
NOISY_LOGGERS = ["aiosqlite", "httpcore", "httpx", "asyncio"]

logger = logging.getLogger("giftbook")


def configure_logging(level: str = "INFO") -> None:
    """Install a single console handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Avoid stacking handlers when the app module is imported twice (reload, tests)
    for handler in root.handlers:
        if getattr(handler, "_giftbook", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler._giftbook = True
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # 1. Generate or extract Correlation ID
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))

        # 2. Start Timer
        start_time = time.time()

        # 3. Process Request
        response = await call_next(request)

        # 4. Calculate Duration
        process_time = (time.time() - start_time) * 1000  # ms

        # 5. Add Header to Response
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = str(process_time)

        # 6. Structured Log
        log_data = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(process_time, 2),
            "ip": request.client.host if request.client else "unknown"
        }

        # Log level based on status
        message = "%(method)s %(path)s -> %(status_code)s (%(duration_ms)sms) [%(correlation_id)s]"
        if response.status_code >= 500:
            logger.error(message, log_data)
        elif response.status_code >= 400:
            logger.warning(message, log_data)
        else:
            logger.info(message, log_data)

        return response
