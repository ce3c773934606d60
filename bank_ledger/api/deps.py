"""
Shared FastAPI dependencies: security helpers, the current
caller, and role gating.
"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from bank_ledger.config import get_settings
from bank_ledger.exceptions import AuthenticationRequiredError
from bank_ledger.models.base import get_db
from bank_ledger.models.enums import RoleName
from bank_ledger.security.hashing import PasswordHasher
from bank_ledger.security.permissions import Principal, require_roles
from bank_ledger.security.tokens import TokenIssuer
from bank_ledger.services.auth_service import AuthService

bearer_scheme = HTTPBearer(auto_error=False)


def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)


def get_token_issuer() -> TokenIssuer:
    settings = get_settings()
    return TokenIssuer(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        ttl_minutes=settings.JWT_EXPIRATION_MINUTES,
    )


def get_auth_service(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthService:
    return AuthService(db, hasher, token_issuer)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Principal:
    """Resolve the bearer token on the request, or refuse with 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationRequiredError("Full authentication is required.")
    return auth_service.authenticate_token(credentials.credentials)


class RoleChecker:
    """
    Endpoint dependency that only lets the listed roles through.

        @router.get("/x", dependencies=[Depends(RoleChecker(RoleName.ADMIN))])
    """

    def __init__(self, *allowed: RoleName):
        self.allowed = allowed

    def __call__(
        self, principal: Principal = Depends(get_current_principal)
    ) -> Principal:
        require_roles(principal, self.allowed)
        return principal


allow_customer = RoleChecker(RoleName.CUSTOMER)
allow_staff = RoleChecker(RoleName.STAFF, RoleName.ADMIN)
allow_admin = RoleChecker(RoleName.ADMIN)
