# wallet_ledger/api/deps.py
from wallet_ledger.cache import HistoryCache, get_history_cache
from wallet_ledger.database import SessionLocal
from wallet_ledger.services.wallet_service import WalletService

def get_wallet_service() -> WalletService:
    """
    요청마다 거래 엔진을 생성합니다.

    엔진은 process() 호출마다 자체 작업 단위(세션)를 열고 닫으므로
    요청 스코프 세션을 주입하지 않는다.
    """
    return WalletService(SessionLocal)

def get_cache() -> HistoryCache:
    """거래 기록 조회용 캐시"""
    return get_history_cache()
