"""HTTP middleware for request logging and tracing."""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ..core.logging import generate_request_id, get_logger, request_id_var

logger = get_logger("api.requests")

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware для логирования HTTP запросов.

    - Берёт X-Request-ID из запроса (или генерирует новый) и кладёт
      его в request_id_var: все логи запроса получают request_id
    - Возвращает X-Request-ID в ответе
    - Логирует метод, путь, статус и время выполнения
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        token = request_id_var.set(request_id)
        try:
            return await self._dispatch(request, call_next, request_id)
        finally:
            request_id_var.reset(token)

    async def _dispatch(
        self, request: Request, call_next: RequestResponseEndpoint, request_id: str
    ) -> Response:
        start_time = time.perf_counter()
        fields = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        }

        try:
            response = await call_next(request)
        except Exception as e:
            fields["duration_ms"] = int((time.perf_counter() - start_time) * 1000)
            logger.error("Request failed", extra={**fields, "error": str(e)}, exc_info=True)
            raise

        response.headers[REQUEST_ID_HEADER] = request_id

        if request.url.path not in QUIET_PATHS:
            fields["status"] = response.status_code
            fields["duration_ms"] = int((time.perf_counter() - start_time) * 1000)
            level = "info" if response.status_code < 400 else "warning"
            getattr(logger, level)("Request completed", extra=fields)

        return response
