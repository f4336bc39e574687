"""Wallet ledger - typed domain errors.

The engine raises these; the HTTP layer maps each kind to a fixed status code.
"""

from decimal import Decimal
from typing import Any, Dict, Optional


class WalletError(Exception):
    """Base exception for all wallet ledger errors."""

    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(WalletError):
    """Request rejected before any state was touched (e.g. non-positive amount)."""

    status_code = 400
    error_code = "BAD_REQUEST"


class PlayerNotFoundError(WalletError):
    """Referenced player does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, player_id: Any) -> None:
        super().__init__(f"Player {player_id} not found", {"player_id": str(player_id)})


class InsufficientFundsError(WalletError):
    """Debit larger than the player's current balance."""

    status_code = 402
    error_code = "INSUFFICIENT_FUNDS"

    def __init__(
        self,
        required: Optional[Decimal] = None,
        available: Optional[Decimal] = None,
        message: str = "Insufficient funds",
    ) -> None:
        details = {}
        if required is not None:
            details["required"] = str(required)
        if available is not None:
            details["available"] = str(available)
        super().__init__(message, details)


class IdempotencyConflictError(WalletError):
    """Transaction id reused for a different player, amount or type."""

    status_code = 409
    error_code = "CONFLICT"

    def __init__(self, transaction_id: Any) -> None:
        super().__init__(
            f"Transaction ID {transaction_id} exists with different parameters",
            {"transaction_id": str(transaction_id)},
        )


class InternalError(WalletError):
    """Anything not otherwise classified. Message is always generic."""

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message)

