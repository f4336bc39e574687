from sqlalchemy import Column, String, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from wallet_ledger.database import Base
from wallet_ledger.models.types import Money
import logging
from decimal import Decimal

logger = logging.getLogger(__name__)

class Player(Base):
    __tablename__ = "player"

    id = Column(Uuid, primary_key=True)
    name = Column(String(255), nullable=False)
    # 잔액은 엔진의 사전 검사와 DB CHECK 제약으로 이중 보호
    balance = Column(Money(), nullable=False, default=Decimal("0.00"), server_default="0.00")

    # 거래 기록은 삭제 제한(RESTRICT) - passive_deletes로 ORM이 자식 행을 건드리지 않도록 함
    transactions = relationship(
        "WalletTransaction",
        back_populates="player",
        passive_deletes="all",
        order_by="WalletTransaction.created_at.desc()",
    )

    # SQLite에서는 문자열로 저장되므로 숫자로 변환해 비교
    __table_args__ = (
        CheckConstraint("CAST(balance AS NUMERIC) >= 0", name="ck_player_balance_non_negative"),
    )

    def to_dict(self) -> dict:
        """객체를 딕셔너리로 변환"""
        return {
            "id": str(self.id),
            "name": self.name,
            "balance": str(self.balance),
        }

    def __repr__(self) -> str:
        return f"<Player id={self.id} balance={self.balance}>"
