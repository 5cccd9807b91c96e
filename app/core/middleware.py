"""
HTTP middleware.

CorrelationIdMiddleware binds the request id (taken from the incoming
X-Request-ID header, or generated) and the acting employee id to the logging
context vars so every log line of a request can be correlated.
"""
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.core.config import settings
from app.core.logging import request_id_var, actor_id_var

logger = logging.getLogger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or str(uuid.uuid4())
        request_token = request_id_var.set(request_id)
        actor_token = actor_id_var.set(request.headers.get(settings.actor_header, ""))
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(request_token)
            actor_id_var.reset(actor_token)

        elapsed = time.perf_counter() - started
        logger.debug(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.4f}s")
        response.headers[settings.request_id_header] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        return response
