import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wallet_ledger.models.player import Player
from wallet_ledger.models.wallet import WalletTransaction

logger = logging.getLogger(__name__)

class PlayerRepository:
    """
    플레이어 원장 리포지토리 - 잔액 행에 대한 조회/잠금/저장

    비즈니스 로직은 없으며, 잠금은 세션(작업 단위)이 끝날 때 해제된다.
    """

    def __init__(self, session: Session):
        """
        Args:
            session: 현재 작업 단위의 데이터베이스 세션
        """
        self.session = session

    def get(self, player_id: uuid.UUID) -> Optional[Player]:
        """플레이어를 잠금 없이 조회합니다."""
        return self.session.get(Player, player_id)

    def get_for_update(self, player_id: uuid.UUID) -> Optional[Player]:
        """
        플레이어 행을 배타 잠금(SELECT ... FOR UPDATE)으로 조회합니다.

        다른 작업 단위가 같은 행을 잠그고 있으면 해제될 때까지 대기한다.
        populate_existing으로 세션에 캐시된 값 대신 DB의 최신 잔액을 읽는다.

        Args:
            player_id: 플레이어 ID

        Returns:
            Optional[Player]: 플레이어, 없으면 None
        """
        stmt = (
            select(Player)
            .where(Player.id == player_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalars().first()

    def save(self, player: Player) -> Player:
        """변경된 잔액을 현재 작업 단위 안에서 DB로 내보냅니다."""
        self.session.add(player)
        self.session.flush()
        return player

class TransactionRepository:
    """
    거래 감사 로그 리포지토리 - 추가 전용(append-only)
    """

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, transaction_id: uuid.UUID) -> Optional[WalletTransaction]:
        """거래 ID로 감사 기록을 조회합니다. 불변 데이터이므로 잠금 없음."""
        stmt = select(WalletTransaction).where(WalletTransaction.transaction_id == transaction_id)
        return self.session.execute(stmt).scalars().first()

    def insert(self, transaction: WalletTransaction) -> WalletTransaction:
        """
        감사 기록을 추가합니다.

        기본 키가 이미 있으면 flush 시점에 sqlalchemy.exc.IntegrityError가 발생한다.
        """
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def list_by_player(self, player_id: uuid.UUID) -> List[WalletTransaction]:
        """플레이어의 거래 기록을 최신순으로 반환합니다."""
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.player_id == player_id)
            .order_by(WalletTransaction.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars().all())
