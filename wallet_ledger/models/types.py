from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator

from wallet_ledger.utils.amount import CENT

class Money(TypeDecorator):
    """
    소수점 2자리 금액 컬럼.

    PostgreSQL에서는 NUMERIC(20, 2). SQLite의 NUMERIC은 REAL(부동소수점)로
    저장되어 18자리 정수부 금액이 손실되므로, SQLite에서는 문자열로 저장한다.
    어느 쪽이든 읽은 값은 scale 2 Decimal이다.
    """
    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(32))
        return dialect.type_descriptor(Numeric(20, 2, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = Decimal(value).quantize(CENT)
        if dialect.name == "sqlite":
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value).quantize(CENT)
