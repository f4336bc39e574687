# wallet_ledger/api/wallet.py
from fastapi import APIRouter, BackgroundTasks, Depends, Path
from uuid import UUID
import logging

from wallet_ledger.api.deps import get_cache, get_wallet_service
from wallet_ledger.cache import HistoryCache
from wallet_ledger.schemas.wallet import (
    BalanceResponse, ErrorResponse, PlayerResponse, TransactionHistoryResponse,
    TransactionRecord, TransactionRequest,
)
from wallet_ledger.services.wallet_service import WalletService

# 로깅 설정
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/wallet",
    tags=["Wallet"]
)

TRANSACTION_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request (e.g. non-positive amount)"},
    402: {"model": ErrorResponse, "description": "Insufficient funds"},
    404: {"model": ErrorResponse, "description": "Player not found"},
    409: {"model": ErrorResponse, "description": "Idempotency conflict (transaction ID reused with different params)"},
    500: {"model": ErrorResponse, "description": "Unexpected error"},
}

# ==================== 캐시 관리 ====================
def invalidate_history_cache(cache: HistoryCache, player_id: UUID, background_tasks: BackgroundTasks) -> None:
    """거래 기록 캐시를 무효화합니다. (커밋 후 백그라운드 작업)"""
    def _invalidate_task():
        version = cache.invalidate(player_id)
        logger.debug(f"History cache for player {player_id} invalidated (version={version})")

    background_tasks.add_task(_invalidate_task)

# ==================== API 엔드포인트 ====================
# 엔진은 행 잠금에서 블로킹하므로 동기 함수로 선언해 스레드풀에서 실행한다

@router.post("/debit", response_model=BalanceResponse, responses=TRANSACTION_RESPONSES)
def debit_funds(
    request: TransactionRequest,
    background_tasks: BackgroundTasks,
    service: WalletService = Depends(get_wallet_service),
    cache: HistoryCache = Depends(get_cache),
):
    """
    플레이어 지갑에서 자금을 차감합니다 (게임 구매).
    같은 transactionId로 재요청하면 원래 결과를 반환합니다.
    """
    response = service.debit(request)
    invalidate_history_cache(cache, request.player_id, background_tasks)
    return response

@router.post("/credit", response_model=BalanceResponse, responses=TRANSACTION_RESPONSES)
def credit_funds(
    request: TransactionRequest,
    background_tasks: BackgroundTasks,
    service: WalletService = Depends(get_wallet_service),
    cache: HistoryCache = Depends(get_cache),
):
    """
    플레이어 지갑에 자금을 추가합니다 (당첨금).
    같은 transactionId로 재요청하면 원래 결과를 반환합니다.
    """
    response = service.credit(request)
    invalidate_history_cache(cache, request.player_id, background_tasks)
    return response

@router.get("/players/{player_id}", response_model=PlayerResponse,
            responses={404: {"model": ErrorResponse, "description": "Player not found"}})
def get_player_balance(
    player_id: UUID = Path(..., description="플레이어 ID"),
    service: WalletService = Depends(get_wallet_service),
):
    """플레이어의 현재 잔액을 조회합니다. 항상 DB에서 읽습니다."""
    player = service.get_player(player_id)
    return PlayerResponse(player_id=player.id, name=player.name, balance=player.balance)

@router.get("/players/{player_id}/transactions", response_model=TransactionHistoryResponse,
            responses={404: {"model": ErrorResponse, "description": "Player not found"}})
def get_transaction_history(
    player_id: UUID = Path(..., description="플레이어 ID"),
    service: WalletService = Depends(get_wallet_service),
    cache: HistoryCache = Depends(get_cache),
):
    """플레이어의 거래 기록을 최신순으로 조회합니다."""
    # DB를 읽기 전의 버전 - 읽는 도중 무효화되면 아래 put은 지난 버전에 기록된다
    version = cache.version(player_id)
    cached_data = cache.get(player_id, version)
    if cached_data:
        logger.debug(f"Cache hit for player {player_id}'s transaction history")
        return TransactionHistoryResponse.model_validate(cached_data)

    transactions = service.get_history(player_id)
    response = TransactionHistoryResponse(
        player_id=player_id,
        transactions=[TransactionRecord.model_validate(t) for t in transactions],
    )
    cache.put(player_id, version, response.model_dump(mode="json", by_alias=True))
    return response
