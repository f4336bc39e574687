# wallet_ledger/scripts/initialize_db.py
import uuid
from decimal import Decimal

from wallet_ledger.database import SessionLocal, engine, Base
from wallet_ledger.models.player import Player
from wallet_ledger.models import wallet # noqa: F401  (wallet_transaction 테이블 등록)
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# 문서/수동 테스트용 기본 플레이어 (잔액 100.00)
DEFAULT_PLAYERS = [
    (uuid.UUID("123e4567-e89b-12d3-a456-426614174000"), "Test Player", Decimal("100.00")),
    (uuid.UUID("e0e0e0e0-e0e0-e0e0-e0e0-e0e0e0e0e0e0"), "Docs Player", Decimal("100.00")),
]

def initialize_database() -> int:
    """
    테이블을 생성하고 기본 플레이어를 추가합니다. 이미 있는 플레이어는 건너뜁니다.

    Returns:
        새로 추가한 플레이어 수
    """
    logger.info("Creating database tables if they don't exist...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables checked/created.")

    db = SessionLocal()
    try:
        added = 0
        for player_id, name, balance in DEFAULT_PLAYERS:
            if db.get(Player, player_id) is not None:
                logger.info(f"Player {player_id} already exists. Skipping.")
                continue
            db.add(Player(id=player_id, name=name, balance=balance))
            added += 1
        db.commit()
        logger.info(f"{added} players initialized successfully.")
        return added
    except Exception as e:
        db.rollback()
        logger.error(f"Error initializing players: {e}", exc_info=True)
        raise
    finally:
        db.close()

if __name__ == "__main__":
    initialize_database()
