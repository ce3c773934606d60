"""Password hashing, token issuing, and role checks."""

from bank_ledger.security.hashing import PasswordHasher
from bank_ledger.security.tokens import TokenClaims, TokenIssuer
from bank_ledger.security.permissions import Principal, require_roles

__all__ = [
    "PasswordHasher",
    "TokenClaims",
    "TokenIssuer",
    "Principal",
    "require_roles",
]
