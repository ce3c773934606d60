"""
Pydantic schemas for the user directory (staff and admin views).
"""

from pydantic import BaseModel, Field

from bank_ledger.models.enums import AccountStatus


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    enabled: bool
    account_non_locked: bool
    roles: list[str]
    # Primary (oldest non-closed) account, if the user has one
    account_id: int | None = None
    account_number: str | None = None
    account_status: AccountStatus | None = None


class PasswordResetRequest(BaseModel):
    new_password: str = Field(min_length=6, max_length=72)


class MessageResponse(BaseModel):
    message: str
