from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    # 일반 설정
    APP_NAME: str = "Player Wallet Ledger"
    ENVIRONMENT: str = "development"  # development, production
    LOG_LEVEL: str = "INFO"

    # 데이터베이스 설정
    DATABASE_URL: str = "sqlite:///./wallet.db"
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    # 행 잠금 대기 상한 (PostgreSQL lock_timeout, 밀리초)
    LOCK_TIMEOUT_MS: int = Field(default=5000, ge=0)
    # SQLite 쓰기 잠금 대기 시간 (초)
    SQLITE_BUSY_TIMEOUT: float = 30.0

    # 보안 설정
    ALLOWED_HOSTS: str = "*"  # 허용된 호스트 목록 (쉼표로 구분)

    # 캐싱 설정
    REDIS_URL: str = "redis://localhost:6379/0"
    HISTORY_CACHE_TTL: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

@lru_cache()
def get_settings() -> Settings:
    """
    애플리케이션 설정을 가져옵니다. lru_cache는 환경 변수가 바뀌지 않는 한
    설정을 한 번만 로드하도록 보장합니다.
    """
    return Settings()

# 앱 전체에서 사용할 설정 인스턴스
settings = get_settings()
