# wallet_ledger/api/errors.py
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import logging

from wallet_ledger.exceptions import WalletError, InternalError

logger = logging.getLogger(__name__)

def error_response(status_code: int, error: str, message) -> JSONResponse:
    """{"error": CODE, "message": ...} 형식의 오류 응답"""
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})

def _field_name(loc) -> str:
    # ('body', 'amount') -> 'amount'
    parts = [str(p) for p in loc if p != "body"]
    return ".".join(parts) or "body"

async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 검증 오류 - 필드별 메시지 목록으로 400 반환"""
    errors = [f"{_field_name(err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()]
    logger.info(f"Request validation failed for {request.url.path}: {errors}")
    return error_response(status.HTTP_400_BAD_REQUEST, "BAD_REQUEST", errors)

async def handle_wallet_error(request: Request, exc: WalletError) -> JSONResponse:
    """도메인 오류 - 오류 종류별 고정 상태 코드로 변환 (비즈니스 해석 없음)"""
    if isinstance(exc, InternalError):
        return error_response(exc.status_code, exc.error_code, InternalError().message)
    return error_response(exc.status_code, exc.error_code, exc.message)

async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """
    예상하지 못한 오류 - 내부 정보 없이 500 반환.

    DB 오류(잠금 대기 시간 초과 포함)는 작업 단위가 이미 롤백된 상태로 여기에 도달한다.
    """
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.error_code, InternalError().message)

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(WalletError, handle_wallet_error)
    app.add_exception_handler(SQLAlchemyError, handle_unexpected_error)
    # 그 외 예외 - Starlette가 응답 후 서버 로그를 위해 다시 raise 한다
    app.add_exception_handler(Exception, handle_unexpected_error)
