"""
Request Logging Middleware
Logs every request with its status and timing
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import time
import logging

logger = logging.getLogger(__name__)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status code and duration of each request"""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(f"{request.method} {request.url.path} failed after {duration_ms:.1f}ms: {e}")
            raise

        duration_ms = (time.time() - start_time) * 1000
        log = logger.warning if response.status_code >= 500 else logger.info
        log(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)")

        response.headers["X-Response-Time"] = f"{duration_ms:.1f}ms"
        return response
