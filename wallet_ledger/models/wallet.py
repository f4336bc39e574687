import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Enum, ForeignKey, Index, TIMESTAMP, CheckConstraint, Uuid, func
)
from sqlalchemy.orm import relationship
from wallet_ledger.database import Base
from wallet_ledger.models.types import Money

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class TransactionType(str, enum.Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

class WalletTransaction(Base):
    """
    잔액 변경 1건에 대한 불변 감사 기록.

    transaction_id는 호출자가 정한 멱등성 키이자 기본 키이다. 한 번 저장된 행은
    수정/삭제하지 않는다.
    """
    __tablename__ = "wallet_transaction"

    transaction_id = Column(Uuid, primary_key=True)
    player_id = Column(Uuid, ForeignKey("player.id", ondelete="RESTRICT"), nullable=False)
    # native_enum=False: DB에는 VARCHAR + CHECK (type IN ('DEBIT', 'CREDIT'))로 생성
    type = Column(
        Enum(TransactionType, name="transaction_type", native_enum=False,
             create_constraint=True, length=20),
        nullable=False,
    )
    amount = Column(Money(), nullable=False)
    balance_after = Column(Money(), nullable=False)
    # 삽입 시점에 애플리케이션에서 부여 (마이크로초 단위로 최신순 정렬 보장)
    created_at = Column(TIMESTAMP(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)

    player = relationship("Player", back_populates="transactions")

    __table_args__ = (
        CheckConstraint("CAST(amount AS NUMERIC) > 0", name="ck_wallet_transaction_amount_positive"),
        # 플레이어별 최신순 조회 최적화
        Index("idx_transaction_player_time", player_id, created_at.desc()),
    )

    def to_dict(self) -> dict:
        return {
            "transaction_id": str(self.transaction_id),
            "player_id": str(self.player_id),
            "type": self.type.value,
            "amount": str(self.amount),
            "balance_after": str(self.balance_after),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
