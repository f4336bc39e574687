import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from wallet_ledger.config.settings import settings

logger = logging.getLogger(__name__)

def _engine_kwargs() -> dict:
    if settings.is_sqlite:
        # 요청 스레드풀에서 공유되므로 check_same_thread 해제
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
    }

# Create the SQLAlchemy engine using the DATABASE_URL from settings
engine = create_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, **_engine_kwargs())

# unit_of_work 세션의 연결에만 붙는 실행 옵션
WRITE_LOCK_OPTION = "wallet_write_lock"

if settings.is_sqlite:
    # pysqlite는 BEGIN을 늦게 보내고 FOR UPDATE를 무시하므로, 쓰기 작업 단위는
    # BEGIN IMMEDIATE로 DB 쓰기 잠금을 잡아 잔액 갱신을 직렬화한다.
    # 읽기 세션(멱등성 확인, 조회)은 일반 BEGIN으로 잠금 없이 읽는다.
    @event.listens_for(engine, "connect")
    def _sqlite_on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_on_begin(conn):
        # 잠금 대기 상한은 트랜잭션마다 현재 설정값으로 적용
        conn.exec_driver_sql(f"PRAGMA busy_timeout = {int(settings.SQLITE_BUSY_TIMEOUT * 1000)}")
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

# Create a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# Create a Base class for declarative class definitions
Base = declarative_base()

@contextmanager
def unit_of_work(session_factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    """
    하나의 원자적 작업 단위를 여는 컨텍스트 매니저.

    블록이 정상 종료되면 커밋하고, 어떤 예외로 빠져나가더라도 롤백한 뒤
    세션을 닫는다. 블록 안에서 잡은 행 잠금은 커밋/롤백 시점에 해제된다.
    """
    session = session_factory()
    try:
        # 트랜잭션을 쓰기 모드로 시작 (SQLite: BEGIN IMMEDIATE)
        session.connection(execution_options={WRITE_LOCK_OPTION: True})
        yield session
        session.commit()
        logger.debug("Unit of work committed")
    except Exception as e:
        session.rollback()
        logger.debug(f"Unit of work rolled back: {e!r}")
        raise
    finally:
        session.close()

def apply_lock_timeout(session: Session) -> None:
    """현재 트랜잭션의 행 잠금 대기 시간을 제한합니다 (PostgreSQL 전용)."""
    if session.get_bind().dialect.name == "postgresql" and settings.LOCK_TIMEOUT_MS:
        # SET LOCAL은 바인드 파라미터를 받지 않으므로 정수로만 구성한다
        session.execute(text(f"SET LOCAL lock_timeout = '{int(settings.LOCK_TIMEOUT_MS)}ms'"))
