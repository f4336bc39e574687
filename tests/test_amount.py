"""
금액 변환 유틸리티 테스트
"""
from decimal import Decimal

import pytest

from wallet_ledger.exceptions import ValidationError
from wallet_ledger.utils.amount import to_money


@pytest.mark.parametrize("value, expected", [
    ("10", Decimal("10.00")),
    ("0.5", Decimal("0.50")),
    (Decimal("99.99"), Decimal("99.99")),
    (7, Decimal("7.00")),
    ("10.000", Decimal("10.00")),
])
def test_to_money_normalizes_scale(value, expected):
    result = to_money(value)
    assert result == expected
    assert result.as_tuple().exponent == -2


@pytest.mark.parametrize("value", ["10.001", "0.005", Decimal("1.234")])
def test_to_money_never_rounds(value):
    with pytest.raises(ValidationError):
        to_money(value)


@pytest.mark.parametrize("value", [0.1, "abc", "NaN", "Infinity", None])
def test_to_money_rejects_non_decimal_input(value):
    with pytest.raises(ValidationError):
        to_money(value)


def test_to_money_error_is_bad_request():
    with pytest.raises(ValidationError) as exc_info:
        to_money("1.999")
    assert exc_info.value.status_code == 400
    assert exc_info.value.error_code == "BAD_REQUEST"
