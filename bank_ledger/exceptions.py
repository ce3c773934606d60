"""
Domain exceptions.

Every failure a caller can act on is a BankingError subclass
carrying the HTTP status it maps to. The API layer turns these
into error responses in one place (see main.py).

Infrastructure faults (misconfiguration, store conflicts) are
not BankingErrors. They surface as a generic server error and
are logged in full.
"""

from datetime import datetime


class BankingError(Exception):
    """Base class for all user-facing domain errors."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BankingError):
    """A user, account or role does not exist."""
    status_code = 404


class InvalidStateError(BankingError):
    """The requested lifecycle transition is not allowed."""
    status_code = 409


class AccountFrozenError(BankingError):
    status_code = 400


class AccountNotApprovedError(BankingError):
    status_code = 403


class InsufficientFundsError(BankingError):
    status_code = 400


class InvalidArgumentError(BankingError):
    """Bad amount, same-account transfer, malformed date."""
    status_code = 400


class UsernameTakenError(BankingError):
    status_code = 409


class EmailTakenError(BankingError):
    status_code = 409


class InvalidCredentialsError(BankingError):
    status_code = 401


class UserDisabledError(InvalidCredentialsError):
    """Credentials belong to a user an admin has disabled."""


class AccountLockedError(BankingError):
    """
    Login refused because the lockout window is still open.

    unlock_at is None for a lock that has no timer attached.
    """
    status_code = 423

    def __init__(self, message: str, unlock_at: datetime | None = None,
                 remaining_minutes: int | None = None):
        super().__init__(message)
        self.unlock_at = unlock_at
        self.remaining_minutes = remaining_minutes


class AuthenticationRequiredError(BankingError):
    """No valid token, or the token's user can no longer log in."""
    status_code = 401


class PermissionDeniedError(BankingError):
    status_code = 403


# --- Infrastructure faults ---

class ConfigurationError(Exception):
    """Required reference data or settings are missing."""


class StoreConflictError(Exception):
    """The store rejected a write on a unique constraint."""


class AccountNumberGenerationError(Exception):
    """No free account number was found within the retry budget."""


class InvalidTokenError(Exception):
    """A bearer token failed signature, shape, or expiry checks."""
