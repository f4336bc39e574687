import os
import sys
import tempfile
import threading
import uuid
from contextlib import contextmanager
from decimal import Decimal

import pytest

# --- Database Setup for Testing ---
# 실제 DB 대신 임시 SQLite 파일 사용 (TEST_DATABASE_URL로 PostgreSQL 지정 가능)
# 설정 모듈이 로드되기 전에 환경 변수를 지정해야 함
_TEST_DB_DIR = tempfile.mkdtemp(prefix="wallet_ledger_test_")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
)
# 테스트 중에는 Redis 대신 메모리 캐시만 사용 (연결 불가 포트)
os.environ["REDIS_URL"] = os.environ.get("TEST_REDIS_URL", "redis://localhost:6399/15")

# 테스트 실행 전에 프로젝트 루트 경로를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from fastapi.testclient import TestClient

from wallet_ledger.cache import get_history_cache
from wallet_ledger.database import Base, SessionLocal, engine, unit_of_work
from wallet_ledger.models.player import Player
from wallet_ledger.models.wallet import WalletTransaction
from wallet_ledger.repositories.wallet_repository import PlayerRepository
from wallet_ledger.services.wallet_service import WalletService

print(f"\nUsing Test Database URL: {os.environ['DATABASE_URL']}")

# 테스트용 DB 테이블 생성 (세션 시작 시 한번)
@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()

# 테스트 함수 실행 전 DB 테이블과 캐시 초기화
@pytest.fixture(scope="function", autouse=True)
def clean_db_tables():
    db = SessionLocal()
    try:
        # 외래 키 순서: 거래 기록 -> 플레이어
        for table in (WalletTransaction.__table__, Player.__table__):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    get_history_cache().memory.clear()
    yield

@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture
def create_player():
    """플레이어를 생성하고 ID를 반환하는 팩토리"""
    def _create(balance: str = "100.00", name: str = "Test Player", player_id: uuid.UUID = None) -> uuid.UUID:
        player_id = player_id or uuid.uuid4()
        with SessionLocal() as db:
            db.add(Player(id=player_id, name=name, balance=Decimal(balance)))
            db.commit()
        return player_id
    return _create

@pytest.fixture
def get_balance():
    def _get(player_id: uuid.UUID) -> Decimal:
        with SessionLocal() as db:
            return db.get(Player, player_id).balance
    return _get

@pytest.fixture
def count_transactions():
    def _count(player_id: uuid.UUID = None) -> int:
        with SessionLocal() as db:
            query = db.query(WalletTransaction)
            if player_id is not None:
                query = query.filter(WalletTransaction.player_id == player_id)
            return query.count()
    return _count

@pytest.fixture
def hold_player_lock():
    """다른 작업 단위가 플레이어 행 잠금을 잡고 있는 상황을 만든다 (with 블록 동안 유지)"""
    @contextmanager
    def _hold(player_id: uuid.UUID):
        acquired = threading.Event()
        release = threading.Event()

        def _run():
            with unit_of_work() as session:
                PlayerRepository(session).get_for_update(player_id)
                acquired.set()
                release.wait(timeout=30)

        holder = threading.Thread(target=_run, daemon=True)
        holder.start()
        assert acquired.wait(timeout=10), "lock holder did not start"
        try:
            yield
        finally:
            release.set()
            holder.join(timeout=30)
    return _hold

@pytest.fixture
def wallet_service() -> WalletService:
    return WalletService(SessionLocal)

@pytest.fixture(scope="session")
def client(setup_test_database):
    """세션 스코프 TestClient"""
    from wallet_ledger.main import app
    with TestClient(app) as c:
        yield c
