"""
Registration and login endpoints. Both are public.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bank_ledger.api.deps import get_auth_service
from bank_ledger.models.base import get_db, unit_of_work
from bank_ledger.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
)
from bank_ledger.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """Create a customer user. Staff open accounts for them later."""
    with unit_of_work(db):
        user = service.register(request.username, request.email, request.password)
        return RegisterResponse(
            message="User registered successfully!",
            user_id=user.id,
            username=user.username,
        )


@router.post("/login", response_model=AuthResponse)
def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """
    Exchange username and password for a bearer token.

    Wrong passwords count toward the lockout threshold; a locked
    user gets 423 until the lockout window has passed.
    """
    with unit_of_work(db):
        result = service.login(request.username, request.password)
    return AuthResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        username=result.username,
        roles=result.roles,
    )
