"""
Account service: account lifecycle and balance movements.

This service owns two things:
1. The account state machine (approve, freeze, unfreeze)
2. Every balance change (deposit, withdraw, transfer)

Each balance change is written together with its ledger rows
through TransactionService in the caller's session. Nothing is
committed here; the caller controls the transaction boundary.
"""

import logging
import secrets
import uuid
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bank_ledger.clock import Clock, utc_now
from bank_ledger.exceptions import (
    AccountFrozenError,
    AccountNotApprovedError,
    AccountNumberGenerationError,
    InsufficientFundsError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    StoreConflictError,
)
from bank_ledger.models.account import Account, ACCOUNT_NUMBER_LENGTH
from bank_ledger.models.enums import AccountStatus, AccountType, TransactionType
from bank_ledger.models.transaction import Transaction
from bank_ledger.repositories import AccountRepository, UserRepository
from bank_ledger.schemas.account import AccountDetailsResponse
from bank_ledger.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

ACCOUNT_NUMBER_MAX_ATTEMPTS = 10
AMOUNT_DECIMAL_PLACES = 4


def to_amount(value) -> Decimal:
    """
    Coerce an amount to Decimal and reject anything not strictly positive.

    Request schemas already enforce this; the engine checks again
    because it is also called from outside the HTTP layer.
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidArgumentError(f"Invalid amount: {value!r}")
    if not amount.is_finite() or amount <= 0:
        raise InvalidArgumentError("Amount must be greater than zero.")
    if amount.as_tuple().exponent < -AMOUNT_DECIMAL_PLACES:
        raise InvalidArgumentError(
            f"Amount supports at most {AMOUNT_DECIMAL_PLACES} decimal places."
        )
    return amount


class AccountService:

    def __init__(self, db: Session, clock: Clock = utc_now):
        self.db = db
        self.clock = clock
        self.accounts = AccountRepository(db)
        self.users = UserRepository(db)
        self.transaction_service = TransactionService(db)

    # --- Lifecycle ---

    def create_account(self, user_id: int, account_type: AccountType) -> Account:
        """
        Open a new account for an existing user.

        The account starts in PENDING_APPROVAL with a zero balance
        and stays unusable until staff approve it.
        """
        user = self.users.get(user_id)
        if not user:
            raise NotFoundError(f"User not found with ID: {user_id}")

        account = Account(
            user_id=user.id,
            account_number=self._generate_account_number(),
            account_type=account_type,
            balance=Decimal("0"),
            status=AccountStatus.PENDING_APPROVAL,
            approved_by_staff=False,
        )
        try:
            self.accounts.add(account)
        except IntegrityError as e:
            # Lost a race for the number after the existence check
            raise StoreConflictError(
                f"Account number {account.account_number} was taken concurrently"
            ) from e

        logger.info(
            "Opened %s account %s for user %s",
            account_type.value, account.account_number, user.username,
        )
        return account

    def approve_account(self, account_id: int) -> Account:
        account = self._get_for_update(account_id)
        if account.status != AccountStatus.PENDING_APPROVAL:
            raise InvalidStateError(
                f"Account {account_id} is not in PENDING_APPROVAL status."
            )

        account.approved_by_staff = True
        self._transition(account, AccountStatus.ACTIVE)
        return account

    def freeze_account(self, account_id: int) -> Account:
        account = self._get_for_update(account_id)
        if account.status == AccountStatus.FROZEN:
            raise InvalidStateError(f"Account {account_id} is already frozen.")
        if account.status == AccountStatus.CLOSED:
            raise InvalidStateError(
                f"Account {account_id} is closed and cannot be frozen."
            )
        if account.status == AccountStatus.PENDING_APPROVAL:
            raise InvalidStateError(
                f"Account {account_id} is pending approval and cannot be frozen."
            )

        self._transition(account, AccountStatus.FROZEN)
        return account

    def unfreeze_account(self, account_id: int) -> Account:
        account = self._get_for_update(account_id)
        if account.status != AccountStatus.FROZEN:
            raise InvalidStateError(f"Account {account_id} is not frozen.")

        self._transition(account, AccountStatus.ACTIVE)
        return account

    # --- Money movement ---

    def deposit(self, username: str, amount) -> Transaction:
        """Credit the user's account and record a DEPOSIT row."""
        amount = to_amount(amount)
        account = self._primary_for_update(username)
        self._ensure_usable(account, "deposit funds")

        account.balance = account.balance + amount
        txn = self.transaction_service.record(Transaction(
            transaction_type=TransactionType.DEPOSIT,
            amount=amount,
            timestamp=self.clock(),
            reference_id=_new_reference(),
            source_account_id=None,
            destination_account_id=account.id,
        ))

        logger.info("Deposit of %s into account %s", amount, account.account_number)
        return txn

    def withdraw(self, username: str, amount) -> Transaction:
        """Debit the user's account and record a WITHDRAWAL row."""
        amount = to_amount(amount)
        account = self._primary_for_update(username)
        self._ensure_usable(account, "withdraw funds")

        if account.balance < amount:
            raise InsufficientFundsError(
                f"Insufficient funds in account {account.account_number}"
            )

        account.balance = account.balance - amount
        txn = self.transaction_service.record(Transaction(
            transaction_type=TransactionType.WITHDRAWAL,
            amount=amount,
            timestamp=self.clock(),
            reference_id=_new_reference(),
            source_account_id=account.id,
            destination_account_id=None,
        ))

        logger.info("Withdrawal of %s from account %s", amount, account.account_number)
        return txn

    def transfer(
        self,
        source_username: str,
        destination_account_number: str,
        amount,
    ) -> tuple[Transaction, Transaction]:
        """
        Move money between two accounts.

        Writes two TRANSFER rows sharing one reference_id: a debit
        leg (-amount) and a credit leg (+amount). Both legs carry
        both account ids. Returns (debit, credit).
        """
        amount = to_amount(amount)

        source = self.accounts.find_primary_for_username(source_username)
        if not source:
            raise NotFoundError(
                f"Source account not found for user: {source_username}"
            )
        destination = self.accounts.find_by_account_number(destination_account_number)
        if not destination:
            raise NotFoundError(
                f"Destination account not found with number: "
                f"{destination_account_number}"
            )
        if source.id == destination.id:
            raise InvalidArgumentError("Cannot transfer funds to the same account.")

        # Re-read both rows under lock before deciding anything
        locked = self.accounts.lock_many([source.id, destination.id])
        source, destination = locked[source.id], locked[destination.id]

        self._ensure_usable(source, "transfer funds", side="Source")
        self._ensure_usable(destination, "transfer funds", side="Destination")

        if source.balance < amount:
            raise InsufficientFundsError(
                f"Insufficient funds in source account {source.account_number}"
            )

        source.balance = source.balance - amount
        destination.balance = destination.balance + amount

        reference_id = _new_reference()
        now = self.clock()
        debit = self.transaction_service.record(Transaction(
            transaction_type=TransactionType.TRANSFER,
            amount=-amount,
            timestamp=now,
            reference_id=reference_id,
            source_account_id=source.id,
            destination_account_id=destination.id,
        ))
        credit = self.transaction_service.record(Transaction(
            transaction_type=TransactionType.TRANSFER,
            amount=amount,
            timestamp=now,
            reference_id=reference_id,
            source_account_id=source.id,
            destination_account_id=destination.id,
        ))

        logger.info(
            "Transfer %s of %s from %s to %s",
            reference_id, amount, source.account_number, destination.account_number,
        )
        return debit, credit

    # --- Reads ---

    def get_account(self, account_id: int) -> Account:
        account = self.accounts.get(account_id)
        if not account:
            raise NotFoundError(f"Account not found with ID: {account_id}")
        return account

    def get_account_details_by_username(self, username: str) -> Account:
        account = self.accounts.find_primary_for_username(username)
        if not account:
            raise NotFoundError(f"Account not found for user: {username}")
        return account

    def list_all_accounts(self) -> list[Account]:
        return self.accounts.list_all()

    def list_accounts_for_user(self, user_id: int) -> list[Account]:
        return self.accounts.list_for_user(user_id)

    def to_details(self, account: Account) -> AccountDetailsResponse:
        owner = self.users.get(account.user_id)
        return AccountDetailsResponse(
            id=account.id,
            account_number=account.account_number,
            balance=account.balance,
            account_type=account.account_type,
            status=account.status,
            approved_by_staff=account.approved_by_staff,
            user_id=account.user_id,
            username=owner.username if owner else "",
        )

    # --- Helpers ---

    def _get_for_update(self, account_id: int) -> Account:
        account = self.accounts.get_for_update(account_id)
        if not account:
            raise NotFoundError(f"Account not found with ID: {account_id}")
        return account

    def _primary_for_update(self, username: str) -> Account:
        account = self.accounts.find_primary_for_username(username, for_update=True)
        if not account:
            raise NotFoundError(f"Account not found for user: {username}")
        return account

    @staticmethod
    def _ensure_usable(account: Account, action: str, side: str = "") -> None:
        """Only ACTIVE accounts may move money."""
        label = f"{side} account" if side else "Account"
        if account.status == AccountStatus.FROZEN:
            raise AccountFrozenError(f"{label} is frozen. Cannot {action}.")
        if account.status == AccountStatus.PENDING_APPROVAL:
            raise AccountNotApprovedError(
                f"{label} is not yet approved. Cannot {action}."
            )
        if account.status != AccountStatus.ACTIVE:
            raise InvalidStateError(
                f"{label} is {account.status.value.lower()}. Cannot {action}."
            )

    def _transition(self, account: Account, new_status: AccountStatus) -> None:
        if not account.can_transition_to(new_status):
            raise InvalidStateError(
                f"Cannot transition from {account.status.value} "
                f"to {new_status.value}"
            )
        old_status = account.status
        account.status = new_status
        self.db.flush()
        logger.info(
            "Account %s: %s -> %s",
            account.account_number, old_status.value, new_status.value,
        )

    def _generate_account_number(self) -> str:
        """
        Draw random 10-digit numbers until one is free.

        The unique constraint on account_number is the real
        guarantee; this check just makes a collision unlikely to
        reach it.
        """
        for _ in range(ACCOUNT_NUMBER_MAX_ATTEMPTS):
            candidate = f"{secrets.randbelow(10 ** ACCOUNT_NUMBER_LENGTH):0{ACCOUNT_NUMBER_LENGTH}d}"
            if not self.accounts.account_number_exists(candidate):
                return candidate
            logger.warning("Account number collision on %s, retrying", candidate)
        raise AccountNumberGenerationError(
            f"No free account number after {ACCOUNT_NUMBER_MAX_ATTEMPTS} attempts"
        )


def _new_reference() -> str:
    return str(uuid.uuid4())
