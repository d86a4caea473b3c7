"""Per-request id, server span and access log."""

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from opentelemetry.trace import SpanKind
from starlette.middleware.base import BaseHTTPMiddleware

from petstore.tracing import set_attribute, set_error_status, traced

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Paths served without a span or access log line
UNTRACED_PATHS = {"/healthcheck"}

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Get the current request ID from context."""
    return request_id_var.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        try:
            if request.url.path in UNTRACED_PATHS:
                response = await call_next(request)
            else:
                response = await self._traced_call(request, call_next, request_id)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)

    async def _traced_call(self, request: Request, call_next: Callable, request_id: str) -> Response:
        path = request.url.path
        started = time.perf_counter()

        with traced(path, {
            "http.method": request.method,
            "http.url": str(request.url),
            "http.target": path,
            "http.host": request.url.hostname,
            "http.scheme": request.url.scheme,
            "http.user_agent": request.headers.get("user-agent"),
            "http.request_id": request_id,
        }, SpanKind.SERVER) as span:
            try:
                response = await call_next(request)
            except Exception as e:
                latency_ms = (time.perf_counter() - started) * 1000
                logger.error(
                    f"{request.method} {path} failed after {latency_ms:.1f}ms "
                    f"request_id={request_id}: {e}"
                )
                raise

            set_attribute(span, "http.status_code", response.status_code)
            if response.status_code >= 500:
                set_error_status(span, f"HTTP {response.status_code}")

        latency_ms = (time.perf_counter() - started) * 1000
        level = logging.INFO
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        logger.log(
            level,
            f"{request.method} {path} {response.status_code} {latency_ms:.1f}ms request_id={request_id}",
        )
        return response
