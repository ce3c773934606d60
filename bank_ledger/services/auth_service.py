"""
Auth service: registration, login, and account lockout.

Lockout rules:
- Each wrong password increments failed_login_attempts
- Reaching the configured maximum locks the user (lock_time = now)
- While now < lock_time + duration, every login is refused
- The first login attempt after the window reopens the user
  (unlocking is lazy; nothing runs in the background)

Failed-attempt bookkeeping is committed here, before the error
propagates. The request boundary rolls back on any error, and
that rollback must not undo the counter.
"""

import logging
import math
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bank_ledger.clock import Clock, utc_now
from bank_ledger.config import get_settings
from bank_ledger.exceptions import (
    AccountLockedError,
    AuthenticationRequiredError,
    ConfigurationError,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserDisabledError,
    UsernameTakenError,
)
from bank_ledger.models.enums import RoleName
from bank_ledger.models.user import User
from bank_ledger.repositories import RoleRepository, UserRepository
from bank_ledger.security.hashing import PasswordHasher
from bank_ledger.security.permissions import Principal
from bank_ledger.security.tokens import TokenIssuer

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password."


@dataclass(frozen=True)
class AuthResult:
    access_token: str
    username: str
    roles: list[str]
    token_type: str = "Bearer"


class AuthService:

    def __init__(
        self,
        db: Session,
        hasher: PasswordHasher,
        token_issuer: TokenIssuer,
        clock: Clock = utc_now,
        max_attempts: int | None = None,
        lockout_minutes: int | None = None,
    ):
        settings = get_settings()
        self.db = db
        self.hasher = hasher
        self.token_issuer = token_issuer
        self.clock = clock
        self.max_attempts = (
            max_attempts if max_attempts is not None
            else settings.LOCKOUT_MAX_ATTEMPTS
        )
        self.lockout_duration = timedelta(
            minutes=lockout_minutes if lockout_minutes is not None
            else settings.LOCKOUT_DURATION_MINUTES
        )
        self.users = UserRepository(db)
        self.roles = RoleRepository(db)

    def register(self, username: str, email: str, password: str) -> User:
        """Create a CUSTOMER user. The caller commits."""
        logger.info("Registering user: %s", username)
        if self.users.exists_by_username(username):
            logger.warning("Registration failed: username %s already taken", username)
            raise UsernameTakenError("Username is already taken!")
        if self.users.exists_by_email(email):
            logger.warning("Registration failed: email already registered for %s", username)
            raise EmailTakenError("Email is already registered!")

        customer_role = self.roles.find_by_name(RoleName.CUSTOMER)
        if customer_role is None:
            raise ConfigurationError("CUSTOMER role not found. Seed roles first.")

        user = User(
            username=username,
            email=email,
            password_hash=self.hasher.hash(password),
            enabled=True,
            account_non_locked=True,
            failed_login_attempts=0,
        )
        user.roles.add(customer_role)
        try:
            self.users.add(user)
        except IntegrityError as e:
            # A concurrent registration won between the checks and the insert
            self.db.rollback()
            if self.users.exists_by_username(username):
                raise UsernameTakenError("Username is already taken!") from e
            if self.users.exists_by_email(email):
                raise EmailTakenError("Email is already registered!") from e
            raise

        logger.info("User %s registered", username)
        return user

    def login(self, username: str, password: str) -> AuthResult:
        logger.info("Login attempt for user: %s", username)
        user = self.users.find_by_username(username, for_update=True)
        if user is None:
            logger.warning("Login failed: unknown user %s", username)
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        now = self.clock()

        if not user.account_non_locked:
            if user.lock_time is None:
                raise AccountLockedError(f"Account for user '{username}' is locked.")

            unlock_at = user.lock_time + self.lockout_duration
            if unlock_at > now:
                remaining = math.ceil((unlock_at - now).total_seconds() / 60)
                logger.warning("Login refused: user %s is locked until %s", username, unlock_at)
                raise AccountLockedError(
                    f"Account for user '{username}' is locked. "
                    f"Please try again in {remaining} minute(s).",
                    unlock_at=unlock_at,
                    remaining_minutes=remaining,
                )

            self._unlock(user)
            logger.info("Lockout for user %s expired; account unlocked", username)

        if not user.enabled:
            self.db.commit()
            logger.warning("Login refused: user %s is disabled", username)
            raise UserDisabledError(f"User account '{username}' is disabled.")

        if not self.hasher.verify(password, user.password_hash):
            self._register_failed_attempt(user, now)
            self.db.commit()
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        if user.failed_login_attempts > 0:
            user.failed_login_attempts = 0
        self.db.flush()

        roles = user.role_names
        token = self.token_issuer.issue(user.username, roles)
        logger.info("User %s logged in. Roles: %s", username, roles)
        return AuthResult(access_token=token, username=user.username, roles=roles)

    def authenticate_token(self, token: str) -> Principal:
        """Resolve a bearer token to the user behind it."""
        try:
            claims = self.token_issuer.validate(token)
        except InvalidTokenError as e:
            raise AuthenticationRequiredError(str(e)) from e

        user = self.users.find_by_username(claims.subject)
        if user is None or not user.enabled:
            raise AuthenticationRequiredError("User is no longer allowed to log in.")

        return Principal(
            user_id=user.id,
            username=user.username,
            roles=frozenset(user.role_names),
        )

    def _register_failed_attempt(self, user: User, now) -> None:
        user.failed_login_attempts += 1
        logger.warning(
            "Login failed for user %s: bad credentials (attempt %d of %d)",
            user.username, user.failed_login_attempts, self.max_attempts,
        )
        if user.failed_login_attempts >= self.max_attempts:
            user.account_non_locked = False
            user.lock_time = now
            logger.warning(
                "User %s locked after %d failed attempts",
                user.username, user.failed_login_attempts,
            )

    @staticmethod
    def _unlock(user: User) -> None:
        user.account_non_locked = True
        user.failed_login_attempts = 0
        user.lock_time = None
