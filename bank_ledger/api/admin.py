"""
Admin endpoints: user administration and the transaction audit.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bank_ledger.api.deps import allow_admin, get_password_hasher
from bank_ledger.models.base import get_db, unit_of_work
from bank_ledger.schemas.account import AccountActionResponse
from bank_ledger.schemas.transaction import TransactionResponse
from bank_ledger.schemas.user import MessageResponse, PasswordResetRequest, UserResponse
from bank_ledger.security.hashing import PasswordHasher
from bank_ledger.services.account_service import AccountService
from bank_ledger.services.transaction_service import TransactionService
from bank_ledger.services.user_service import UserService

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(allow_admin)],
)


def get_user_service(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserService:
    return UserService(db, hasher)


# --- Users ---

@router.get("/users", response_model=list[UserResponse])
def list_users(service: UserService = Depends(get_user_service)):
    return [service.to_response(u) for u in service.list_users()]


@router.put("/user/{user_id}/reset-password", response_model=MessageResponse)
def reset_password(
    user_id: int,
    request: PasswordResetRequest,
    db: Session = Depends(get_db),
    service: UserService = Depends(get_user_service),
):
    with unit_of_work(db):
        service.reset_password(user_id, request.new_password)
    return MessageResponse(message=f"Password reset successfully for user ID: {user_id}")


@router.put("/user/{user_id}/enable", response_model=MessageResponse)
def enable_user(
    user_id: int,
    db: Session = Depends(get_db),
    service: UserService = Depends(get_user_service),
):
    with unit_of_work(db):
        service.enable_user(user_id)
    return MessageResponse(message=f"User {user_id} enabled successfully.")


@router.put("/user/{user_id}/disable", response_model=MessageResponse)
def disable_user(
    user_id: int,
    db: Session = Depends(get_db),
    service: UserService = Depends(get_user_service),
):
    with unit_of_work(db):
        service.disable_user(user_id)
    return MessageResponse(message=f"User {user_id} disabled successfully.")


# --- Accounts ---

@router.put("/account/{account_id}/freeze", response_model=AccountActionResponse)
def freeze_account(account_id: int, db: Session = Depends(get_db)):
    service = AccountService(db)
    with unit_of_work(db):
        account = service.freeze_account(account_id)
        return AccountActionResponse(
            message=f"Account {account_id} frozen successfully.",
            account=service.to_details(account),
        )


@router.put("/account/{account_id}/unfreeze", response_model=AccountActionResponse)
def unfreeze_account(account_id: int, db: Session = Depends(get_db)):
    service = AccountService(db)
    with unit_of_work(db):
        account = service.unfreeze_account(account_id)
        return AccountActionResponse(
            message=f"Account {account_id} unfrozen successfully.",
            account=service.to_details(account),
        )


# --- Audit ---

@router.get("/transactions/audit", response_model=list[TransactionResponse])
def audit_transactions(
    start_date: str | None = None,
    end_date: str | None = None,
    db: Session = Depends(get_db),
):
    """Every transaction in the system, newest first."""
    service = TransactionService(db)
    return service.to_responses(service.audit(start_date, end_date))
