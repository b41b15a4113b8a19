import time
import uuid

import structlog

logger = structlog.get_logger(__name__)


class RequestLogMiddleware:
    """Bind a request id into the log context and log each finished request."""
    HEADER = 'HTTP_X_REQUEST_ID'
    SKIP_PREFIXES = ('/static/', '/metrics', '/healthz')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.META.get(self.HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.path,
        )
        started = time.perf_counter()
        response = self.get_response(request)
        response['X-Request-ID'] = request_id
        path = request.path or ''
        if not any(path.startswith(p) for p in self.SKIP_PREFIXES):
            logger.info(
                "request_finished",
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        return response
