"""
Pydantic schemas for account operations.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from bank_ledger.models.enums import AccountType, AccountStatus


class AccountCreationRequest(BaseModel):
    """Request (from staff) to open an account for a user."""
    account_type: AccountType


class AccountDetailsResponse(BaseModel):
    id: int
    account_number: str
    balance: Decimal
    account_type: AccountType
    status: AccountStatus
    approved_by_staff: bool
    user_id: int
    username: str


class AccountActionResponse(BaseModel):
    """Acknowledgement for approve/freeze/unfreeze."""
    message: str
    account: AccountDetailsResponse


# --- Money movement ---

class DepositRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=19, decimal_places=4)


class WithdrawRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=19, decimal_places=4)


class TransferRequest(BaseModel):
    destination_account_number: str = Field(pattern=r"^\d{10}$")
    amount: Decimal = Field(gt=0, max_digits=19, decimal_places=4)
