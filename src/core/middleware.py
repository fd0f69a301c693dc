import time

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

SLOW_THRESHOLD_MS = 500


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """모든 HTTP 요청을 로깅하고 처리시간을 X-Process-Time 헤더로 돌려준다.

    업로드는 재시도 대기 때문에 수 초가 걸릴 수 있어 500ms 초과는 WARNING으로 남긴다.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start) * 1000
        client_ip = request.client.host if request.client else "unknown"
        line = f"{request.method} {request.url.path} | {client_ip} | {response.status_code} | {elapsed_ms:.0f}ms"

        if elapsed_ms > SLOW_THRESHOLD_MS:
            logger.warning(f"{line} (slow)")
        else:
            logger.info(line)

        response.headers["X-Process-Time"] = f"{elapsed_ms:.0f}ms"
        return response
