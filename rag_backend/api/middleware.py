"""
Request logging middleware.

Logs one line per request with its status and wall time, and reports the
time back to the client in ``X-Process-Time``.
"""

import time
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from rag_backend.utils.logging import get_logger

logger = get_logger(__name__)

PROCESS_TIME_HEADER = "X-Process-Time"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        try:
            response: Response = await call_next(request)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"❌ {method} {path} raised after {elapsed_ms:.1f}ms: {str(e)}")
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed_ms:.1f}ms"
        logger.info(f"🌐 {method} {path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response
