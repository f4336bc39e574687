from fastapi import FastAPI
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.middleware.httpsredirect import HTTPSRedirectMiddleware
from wallet_ledger.api import wallet as wallet_api_router # Alias for wallet API router
from wallet_ledger.api.errors import register_exception_handlers
from wallet_ledger.database import engine, Base
# create_all 전에 모든 테이블을 Base에 등록
from wallet_ledger.models import player, wallet # noqa: F401
import logging
from wallet_ledger.config.settings import settings
import uvicorn
import os
from contextlib import asynccontextmanager

# 로깅 설정
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# --- Lifespan 관리자 ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # 스키마 마이그레이션은 범위 밖 - 테이블이 없을 때만 생성
    logger.info("DB 테이블 생성 시도 (Lifespan)...")
    Base.metadata.create_all(bind=engine)
    logger.info("DB 테이블 생성 완료 (또는 이미 존재).")
    yield # 애플리케이션 실행
    logger.info("애플리케이션 종료 - DB 연결 풀 정리")
    engine.dispose()

# --- App ---
app = FastAPI(
    title=settings.APP_NAME,
    description="Transactional ledger for player wallets: idempotent debit and credit with an immutable audit trail.",
    version="1.0.0",
    lifespan=lifespan
)

# HTTPS 리다이렉션 미들웨어 추가 (프로덕션 환경에서만 활성화)
if settings.ENVIRONMENT.lower() == "production":
    app.add_middleware(HTTPSRedirectMiddleware)
    logger.info("HTTPS 리다이렉션 미들웨어 활성화됨")

# ALLOWED_HOSTS (쉼표 구분)
app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.ALLOWED_HOSTS.split(",")
)

register_exception_handlers(app)

# 라우터 포함
app.include_router(wallet_api_router.router)

@app.get("/", tags=["Root"])
async def read_root():
    """헬스 체크 - DB에 접근하지 않는다."""
    return {"message": f"{settings.APP_NAME} is running"}

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("wallet_ledger.main:app", host="0.0.0.0", port=port, reload=settings.ENVIRONMENT == "development")
