import time
import uuid

import structlog
from fastapi import Request

from ...infrastructure.metrics import http_request_duration_seconds, http_requests_total

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


async def observe_requests(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    started = time.perf_counter()

    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"
    response.headers[REQUEST_ID_HEADER] = request_id

    # route template, not the raw path, keeps ids out of label values
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    elapsed = time.perf_counter() - started
    http_requests_total.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
    http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(elapsed)

    logger.info("http_request", method=request.method, path=request.url.path,
                status_code=response.status_code, duration_ms=round(elapsed * 1000, 2))
    return response
