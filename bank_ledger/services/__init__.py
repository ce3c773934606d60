"""Business logic services."""

from bank_ledger.services.account_service import AccountService
from bank_ledger.services.auth_service import AuthService
from bank_ledger.services.transaction_service import TransactionService
from bank_ledger.services.user_service import UserService

__all__ = ["AccountService", "AuthService", "TransactionService", "UserService"]
