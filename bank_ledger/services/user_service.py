"""
User directory: roles, user administration, and the views
staff and admins see of users.
"""

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from bank_ledger.exceptions import ConfigurationError, NotFoundError
from bank_ledger.models.enums import RoleName
from bank_ledger.models.user import Role, User
from bank_ledger.repositories import AccountRepository, RoleRepository, UserRepository
from bank_ledger.schemas.user import UserResponse
from bank_ledger.security.hashing import PasswordHasher

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, db: Session, hasher: PasswordHasher):
        self.db = db
        self.hasher = hasher
        self.users = UserRepository(db)
        self.roles = RoleRepository(db)
        self.accounts = AccountRepository(db)

    def seed_roles(self) -> list[Role]:
        """Create any missing role rows. Safe to call on every startup."""
        seeded = []
        for name in RoleName:
            role = self.roles.find_by_name(name)
            if role is None:
                role = self.roles.add(Role(name=name))
                logger.info("Seeded role %s", name.value)
            seeded.append(role)
        return seeded

    def create_user(
        self,
        username: str,
        email: str,
        password: str,
        roles: Iterable[RoleName],
    ) -> User:
        """Create a user with explicit roles (used for staff and admins)."""
        user = User(
            username=username,
            email=email,
            password_hash=self.hasher.hash(password),
            enabled=True,
            account_non_locked=True,
            failed_login_attempts=0,
        )
        for name in roles:
            role = self.roles.find_by_name(name)
            if role is None:
                raise ConfigurationError(
                    f"{RoleName(name).value} role not found. Seed roles first."
                )
            user.roles.add(role)

        self.users.add(user)
        logger.info("Created user %s with roles %s", username, user.role_names)
        return user

    def bootstrap_admin(self, username: str, email: str, password: str) -> User | None:
        """Create the initial admin unless a user by that name exists."""
        if self.users.exists_by_username(username):
            logger.info("Bootstrap admin %s already exists", username)
            return None
        return self.create_user(username, email, password, [RoleName.ADMIN])

    def get_user(self, user_id: int) -> User:
        user = self.users.get(user_id)
        if not user:
            raise NotFoundError(f"User not found with ID: {user_id}")
        return user

    def list_users(self) -> list[User]:
        return self.users.list_all()

    def enable_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        user.enabled = True
        self.db.flush()
        logger.info("User %s enabled", user.username)
        return user

    def disable_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        user.enabled = False
        self.db.flush()
        logger.info("User %s disabled", user.username)
        return user

    def reset_password(self, user_id: int, new_password: str) -> User:
        user = self.get_user(user_id)
        user.password_hash = self.hasher.hash(new_password)
        self.db.flush()
        logger.info("Password reset for user %s", user.username)
        return user

    def users_with_pending_accounts(self) -> list[User]:
        owner_ids = sorted({a.user_id for a in self.accounts.list_pending()})
        return self.users.list_by_ids(owner_ids)

    def to_response(self, user: User) -> UserResponse:
        account = self.accounts.find_primary_for_user_id(user.id)
        return UserResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            enabled=user.enabled,
            account_non_locked=user.account_non_locked,
            roles=user.role_names,
            account_id=account.id if account else None,
            account_number=account.account_number if account else None,
            account_status=account.status if account else None,
        )
