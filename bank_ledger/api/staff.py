"""
Staff endpoints: approving, freezing, and reviewing accounts.

Admins may call all of these too.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bank_ledger.api.deps import allow_staff, get_password_hasher
from bank_ledger.models.base import get_db, unit_of_work
from bank_ledger.schemas.account import AccountActionResponse, AccountDetailsResponse
from bank_ledger.schemas.user import UserResponse
from bank_ledger.security.hashing import PasswordHasher
from bank_ledger.services.account_service import AccountService
from bank_ledger.services.user_service import UserService

router = APIRouter(
    prefix="/staff",
    tags=["Staff"],
    dependencies=[Depends(allow_staff)],
)


@router.get("/users/pending-accounts", response_model=list[UserResponse])
def get_users_with_pending_accounts(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    service = UserService(db, hasher)
    return [service.to_response(u) for u in service.users_with_pending_accounts()]


@router.put("/account/{account_id}/approve", response_model=AccountActionResponse)
def approve_account(account_id: int, db: Session = Depends(get_db)):
    service = AccountService(db)
    with unit_of_work(db):
        account = service.approve_account(account_id)
        return AccountActionResponse(
            message=f"Account {account_id} approved successfully.",
            account=service.to_details(account),
        )


@router.get("/accounts/all", response_model=list[AccountDetailsResponse])
def get_all_accounts(db: Session = Depends(get_db)):
    service = AccountService(db)
    return [service.to_details(a) for a in service.list_all_accounts()]


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
