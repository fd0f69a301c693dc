"""전역 예외 핸들러.

AppException 계열 예외를 잡아 {"error_code", "message"} JSON으로 바꾼다.
업로드/조회 서비스는 실패를 None으로 돌려주므로, 라우터가 None을
AppException으로 바꿔 올리면 여기서 응답이 만들어진다.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import AppException


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}: {exc.message}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
        },
    )
