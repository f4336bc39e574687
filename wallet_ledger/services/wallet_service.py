import logging
import uuid
from decimal import Decimal
from typing import Callable, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from wallet_ledger.database import SessionLocal, unit_of_work, apply_lock_timeout
from wallet_ledger.exceptions import (
    IdempotencyConflictError, InsufficientFundsError, PlayerNotFoundError, ValidationError
)
from wallet_ledger.models.player import Player
from wallet_ledger.models.wallet import TransactionType, WalletTransaction
from wallet_ledger.repositories.wallet_repository import PlayerRepository, TransactionRepository
from wallet_ledger.schemas.wallet import BalanceResponse, TransactionRequest
from wallet_ledger.utils.amount import to_money

logger = logging.getLogger(__name__)

BalanceCalculator = Callable[[Decimal, Decimal], Decimal]

def debit_balance(current: Decimal, amount: Decimal) -> Decimal:
    """출금: 잔액이 부족하면 아무것도 바꾸지 않고 실패"""
    if current < amount:
        raise InsufficientFundsError(required=amount, available=current)
    return current - amount

def credit_balance(current: Decimal, amount: Decimal) -> Decimal:
    """입금: 상한 없이 항상 성공"""
    return current + amount

# 거래 유형별 잔액 계산 함수 - process() 안에서 한 번만 분기한다
BALANCE_CALCULATORS: Dict[TransactionType, BalanceCalculator] = {
    TransactionType.DEBIT: debit_balance,
    TransactionType.CREDIT: credit_balance,
}

class WalletService:
    """
    플레이어 지갑 거래 엔진.

    하나의 출금/입금 요청을 멱등성 확인, 플레이어 행 배타 잠금, 잔액 계산,
    잔액 저장, 감사 기록 추가까지 하나의 원자적 작업 단위로 처리한다.
    같은 transaction_id로 몇 번을 재시도해도 잔액 변경은 최대 한 번이다.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        """
        Args:
            session_factory: 작업 단위마다 새 세션을 만드는 팩토리
        """
        self.session_factory = session_factory

    def debit(self, request: TransactionRequest) -> BalanceResponse:
        """출금(구매) 처리"""
        logger.info(
            f"Processing DEBIT [txnId={request.transaction_id}, playerId={request.player_id}, amount={request.amount}]"
        )
        return self.process(request, TransactionType.DEBIT)

    def credit(self, request: TransactionRequest) -> BalanceResponse:
        """입금(당첨금) 처리"""
        logger.info(
            f"Processing CREDIT [txnId={request.transaction_id}, playerId={request.player_id}, amount={request.amount}]"
        )
        return self.process(request, TransactionType.CREDIT)

    def process(self, request: TransactionRequest, kind: TransactionType) -> BalanceResponse:
        """
        거래 하나를 처리합니다.

        1. 멱등성 확인 (잠금 없이, 별도 읽기 세션)
        2. 플레이어 행 배타 잠금 (SELECT ... FOR UPDATE)
        3. 잠금 후 멱등성 재확인
        4. 잔액 계산 (BALANCE_CALCULATORS)
        5. 잔액 저장
        6. 감사 기록 추가 (기본 키 중복이면 충돌)

        2~6은 하나의 작업 단위 안에서 실행되며, 어느 단계에서든 실패하면 전부 롤백된다.

        Args:
            request: 거래 요청 (transaction_id, player_id, amount)
            kind: DEBIT 또는 CREDIT

        Returns:
            BalanceResponse: 이 거래 직후의 잔액 (재시도면 원래 거래 직후의 잔액)

        Raises:
            ValidationError: 금액이 0 이하이거나 소수점 2자리를 넘는 경우
            PlayerNotFoundError: 플레이어가 없는 경우
            InsufficientFundsError: 출금액이 잔액보다 큰 경우
            IdempotencyConflictError: 같은 거래 ID가 다른 파라미터로 이미 처리된 경우
        """
        amount = to_money(request.amount)
        if amount <= 0:
            raise ValidationError("Amount must be positive")

        # 1. 멱등성 확인 - 잠금 없는 빠른 경로
        with self.session_factory() as session:
            existing = TransactionRepository(session).find_by_id(request.transaction_id)
        if existing is not None:
            return self._replay(existing, request, amount, kind)

        with unit_of_work(self.session_factory) as session:
            players = PlayerRepository(session)
            transactions = TransactionRepository(session)
            apply_lock_timeout(session)

            # 2. 플레이어 잠금 - 다른 작업 단위가 잡고 있으면 여기서 대기
            player = players.get_for_update(request.player_id)
            if player is None:
                logger.warning(f"Player {request.player_id} not found during transaction {request.transaction_id}")
                raise PlayerNotFoundError(request.player_id)

            # 3. 잠금을 기다리는 동안 같은 거래가 먼저 확정되었을 수 있음
            settled = transactions.find_by_id(request.transaction_id)
            if settled is not None:
                return self._replay(settled, request, amount, kind)

            # 4. 잔액 계산
            try:
                new_balance = BALANCE_CALCULATORS[kind](player.balance, amount)
            except InsufficientFundsError:
                logger.warning(
                    f"Insufficient funds for player {player.id} (Balance: {player.balance}, Req: {amount})"
                )
                raise

            # 5. 잔액 저장 (잠금 유지 중)
            player.balance = new_balance
            players.save(player)

            # 6. 감사 기록
            txn = WalletTransaction(
                transaction_id=request.transaction_id,
                player_id=player.id,
                type=kind,
                amount=amount,
                balance_after=new_balance,
            )
            try:
                transactions.insert(txn)
            except IntegrityError as e:
                logger.warning(f"Duplicate transaction id {request.transaction_id} on insert: {e.orig}")
                raise IdempotencyConflictError(request.transaction_id) from e

            response = BalanceResponse(
                transaction_id=txn.transaction_id,
                player_id=player.id,
                balance=new_balance,
            )

        logger.info(f"Transaction completed. New Balance for player {response.player_id}: {response.balance}")
        return response

    def _replay(self, existing: WalletTransaction, request: TransactionRequest,
                amount: Decimal, kind: TransactionType) -> BalanceResponse:
        """이미 확정된 거래를 재요청한 경우 - 파라미터가 같으면 저장된 결과를 반환"""
        if (
            existing.player_id != request.player_id
            or existing.amount != amount
            or existing.type != kind
        ):
            logger.warning(f"Idempotency conflict for txnId={request.transaction_id}. Params mismatch.")
            raise IdempotencyConflictError(request.transaction_id)

        logger.info(f"Idempotent replay detected for txnId={request.transaction_id}")
        return BalanceResponse(
            transaction_id=existing.transaction_id,
            player_id=existing.player_id,
            balance=existing.balance_after,
        )

    # ==================== 조회 ====================

    def get_player(self, player_id: uuid.UUID) -> Player:
        """플레이어 현재 잔액 조회 (잠금 없음)"""
        with self.session_factory() as session:
            player = PlayerRepository(session).get(player_id)
        if player is None:
            raise PlayerNotFoundError(player_id)
        return player

    def get_history(self, player_id: uuid.UUID) -> List[WalletTransaction]:
        """플레이어 거래 기록 (최신순)"""
        with self.session_factory() as session:
            if PlayerRepository(session).get(player_id) is None:
                raise PlayerNotFoundError(player_id)
            return TransactionRepository(session).list_by_player(player_id)
