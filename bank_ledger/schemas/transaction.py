"""
Pydantic schemas for transaction history.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from bank_ledger.models.enums import TransactionType


class TransactionResponse(BaseModel):
    id: int
    transaction_type: TransactionType
    amount: Decimal
    timestamp: datetime
    reference_id: str
    source_account_number: str | None   # None for deposits
    destination_account_number: str | None   # None for withdrawals
