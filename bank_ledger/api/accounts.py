"""
Customer self-service endpoints, plus account opening for staff.

Customers always act on their own primary account; the account is
resolved from the authenticated username, never from the request.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bank_ledger.api.deps import allow_customer, allow_staff
from bank_ledger.models.base import get_db, unit_of_work
from bank_ledger.schemas.account import (
    AccountCreationRequest,
    AccountDetailsResponse,
    DepositRequest,
    TransferRequest,
    WithdrawRequest,
)
from bank_ledger.schemas.transaction import TransactionResponse
from bank_ledger.security.permissions import Principal
from bank_ledger.services.account_service import AccountService
from bank_ledger.services.transaction_service import TransactionService

router = APIRouter(prefix="/account", tags=["Accounts"])


@router.get("/me", response_model=AccountDetailsResponse)
def get_my_account(
    principal: Principal = Depends(allow_customer),
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    account = service.get_account_details_by_username(principal.username)
    return service.to_details(account)


@router.post("/deposit", response_model=TransactionResponse)
def deposit(
    request: DepositRequest,
    principal: Principal = Depends(allow_customer),
    db: Session = Depends(get_db),
):
    """Deposit money into the caller's account."""
    service = AccountService(db)
    with unit_of_work(db):
        txn = service.deposit(principal.username, request.amount)
        return service.transaction_service.to_responses([txn])[0]


@router.post("/withdraw", response_model=TransactionResponse)
def withdraw(
    request: WithdrawRequest,
    principal: Principal = Depends(allow_customer),
    db: Session = Depends(get_db),
):
    """Withdraw money from the caller's account."""
    service = AccountService(db)
    with unit_of_work(db):
        txn = service.withdraw(principal.username, request.amount)
        return service.transaction_service.to_responses([txn])[0]


@router.post("/transfer", response_model=list[TransactionResponse])
def transfer(
    request: TransferRequest,
    principal: Principal = Depends(allow_customer),
    db: Session = Depends(get_db),
):
    """
    Transfer from the caller's account to another account by number.

    Returns both legs: the debit first, then the credit.
    """
    service = AccountService(db)
    with unit_of_work(db):
        debit, credit = service.transfer(
            principal.username,
            request.destination_account_number,
            request.amount,
        )
        return service.transaction_service.to_responses([debit, credit])


@router.get("/transactions", response_model=list[TransactionResponse])
def get_my_transactions(
    start_date: str | None = None,
    end_date: str | None = None,
    principal: Principal = Depends(allow_customer),
    db: Session = Depends(get_db),
):
    """Transaction history, newest first. Dates are YYYY-MM-DD, inclusive."""
    service = TransactionService(db)
    transactions = service.history_for_user(principal.username, start_date, end_date)
    return service.to_responses(transactions)


@router.post(
    "/create/{user_id}",
    response_model=AccountDetailsResponse,
    status_code=201,
    dependencies=[Depends(allow_staff)],
)
def create_account(
    user_id: int,
    request: AccountCreationRequest,
    db: Session = Depends(get_db),
):
    """Open an account for a user. It starts in PENDING_APPROVAL."""
    service = AccountService(db)
    with unit_of_work(db):
        account = service.create_account(user_id, request.account_type)
        return service.to_details(account)
