import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from services.exceptions import BulletinError

logger = logging.getLogger(__name__)


def add_error_handlers(app: FastAPI):
    # ✅ 도메인 예외 (없는 학생/학급 등) → 예외에 정의된 상태 코드
    @app.exception_handler(BulletinError)
    async def bulletin_error_handler(request: Request, exc: BulletinError):
        logger.info("요청 처리 실패 %s %s: %s", request.method, request.url.path, exc)
        body = ErrorResponse(error=ErrorDetail(code=exc.code, message=str(exc)))
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("처리되지 않은 예외 %s %s", request.method, request.url.path)
        body = ErrorResponse(
            error=ErrorDetail(code="INTERNAL_ERROR", message=str(exc)),
            trace_id=request.headers.get("X-Request-ID"),
        )
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))
