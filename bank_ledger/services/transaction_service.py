"""
Transaction service: the append-only ledger of balance changes.

AccountService is the only writer. It calls record() inside the
same session as the balance update, so a balance change and its
ledger rows commit or roll back together.

Everything else here is read-only: per-account history,
system-wide audit, and reconciliation of a stored balance against
the ledger.
"""

import re
from datetime import datetime, date, time
from decimal import Decimal

from sqlalchemy.orm import Session

from bank_ledger.exceptions import InvalidArgumentError, NotFoundError
from bank_ledger.models.enums import TransactionType
from bank_ledger.models.transaction import Transaction
from bank_ledger.repositories import AccountRepository, TransactionRepository
from bank_ledger.schemas.transaction import TransactionResponse


DATE_FORMAT = "%Y-%m-%d"
DATE_SHAPE = re.compile(r"\d{4}-\d{2}-\d{2}")
END_OF_DAY = time(23, 59, 59)


def parse_date_bound(value: str | None, label: str, end_of_day: bool = False) -> datetime | None:
    """
    Turn a YYYY-MM-DD string into an inclusive range bound.

    The start bound is 00:00:00; the end bound is 23:59:59 of that
    day. None or an empty string means "no bound". Digits must be
    zero-padded; strptime alone would accept "2025-1-5".
    """
    if not value:
        return None
    try:
        if not DATE_SHAPE.fullmatch(value):
            raise ValueError(value)
        day: date = datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidArgumentError(
            f"Invalid {label} date format '{value}'. Use YYYY-MM-DD."
        )
    return datetime.combine(day, END_OF_DAY if end_of_day else time.min)


class TransactionService:

    def __init__(self, db: Session):
        self.db = db
        self.transactions = TransactionRepository(db)
        self.accounts = AccountRepository(db)

    def record(self, transaction: Transaction) -> Transaction:
        """
        Append one ledger row.

        No business validation happens here. Callers supply the
        reference_id: fresh per deposit or withdrawal, shared by the
        two legs of a transfer.
        """
        return self.transactions.add(transaction)

    def query(
        self,
        account_id: int,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[Transaction]:
        """
        All rows touching an account, newest first.

        Optionally restricted to [start_date 00:00:00, end_date 23:59:59].
        """
        start = parse_date_bound(start_date, "start")
        end = parse_date_bound(end_date, "end", end_of_day=True)
        rows = self.transactions.for_account(account_id, start, end)
        return _unique_by_id(rows)

    def history_for_user(
        self,
        username: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[Transaction]:
        account = self.accounts.find_primary_for_username(username)
        if not account:
            raise NotFoundError(f"Account not found for user: {username}")
        return self.query(account.id, start_date, end_date)

    def audit(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[Transaction]:
        """System-wide history for administrators."""
        start = parse_date_bound(start_date, "start")
        end = parse_date_bound(end_date, "end", end_of_day=True)
        return _unique_by_id(self.transactions.all_between(start, end))

    def find_by_reference_id(self, reference_id: str) -> list[Transaction]:
        return self.transactions.find_by_reference_id(reference_id)

    def ledger_balance(self, account_id: int) -> Decimal:
        """
        Recompute an account's balance from its ledger rows.

        Each row contributes its signed effect on this account:
        deposits credit the destination, withdrawals debit the
        source, and each transfer leg applies to one side only
        (debit leg to the source, credit leg to the destination).
        """
        total = Decimal("0")
        for txn in self.transactions.for_account(account_id):
            total += _signed_effect(txn, account_id)
        return total

    def to_responses(self, transactions: list[Transaction]) -> list[TransactionResponse]:
        account_ids = {
            account_id
            for txn in transactions
            for account_id in (txn.source_account_id, txn.destination_account_id)
            if account_id is not None
        }
        numbers = self.accounts.numbers_for(account_ids)

        return [
            TransactionResponse(
                id=txn.id,
                transaction_type=txn.transaction_type,
                amount=txn.amount,
                timestamp=txn.timestamp,
                reference_id=txn.reference_id,
                source_account_number=numbers.get(txn.source_account_id),
                destination_account_number=numbers.get(txn.destination_account_id),
            )
            for txn in transactions
        ]


def _signed_effect(txn: Transaction, account_id: int) -> Decimal:
    amount = Decimal(txn.amount)
    if txn.transaction_type == TransactionType.DEPOSIT:
        return amount if txn.destination_account_id == account_id else Decimal("0")
    if txn.transaction_type == TransactionType.WITHDRAWAL:
        return -amount if txn.source_account_id == account_id else Decimal("0")
    # Transfer legs: the sign tells which side the leg belongs to
    if amount < 0 and txn.source_account_id == account_id:
        return amount
    if amount > 0 and txn.destination_account_id == account_id:
        return amount
    return Decimal("0")


def _unique_by_id(rows: list[Transaction]) -> list[Transaction]:
    seen: set[int] = set()
    unique = []
    for row in rows:
        if row.id not in seen:
            seen.add(row.id)
            unique.append(row)
    return unique
