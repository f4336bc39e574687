from pydantic import BaseModel, Field, condecimal, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Union
from datetime import datetime
from decimal import Decimal # Use Decimal for financial values
from uuid import UUID

from wallet_ledger.models.wallet import TransactionType

# 모든 API 스키마는 JSON에서 camelCase 필드명을 사용
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ==== Request Models ====

# Debit / Credit 공통 요청 스키마
class TransactionRequest(CamelModel):
    transaction_id: UUID = Field(..., description="거래 고유 식별자 (멱등성 키)")
    player_id: UUID = Field(..., description="플레이어 ID")
    amount: condecimal(gt=Decimal("0.00"), max_digits=20, decimal_places=2) = Field(
        ..., description="거래 금액 (양수, 소수점 2자리까지)"
    )

# ==== Response Models ====

# Debit, Credit API 응답 스키마 (공통)
class BalanceResponse(CamelModel):
    transaction_id: UUID
    player_id: UUID
    balance: Decimal

# 플레이어 잔액 조회 응답
class PlayerResponse(CamelModel):
    player_id: UUID
    name: str
    balance: Decimal

# 거래 기록 속성
class TransactionRecord(CamelModel):
    transaction_id: UUID
    player_id: UUID
    type: TransactionType
    amount: Decimal
    balance_after: Decimal
    created_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class TransactionHistoryResponse(CamelModel):
    player_id: UUID
    transactions: List[TransactionRecord]

# 오류 응답 (검증 오류는 필드별 메시지 목록)
class ErrorResponse(BaseModel):
    error: str
    message: Union[str, List[str]]
