"""
Repositories: the store interface the services consume.

Each repository wraps the caller's Session and exposes the
lookups the business layer needs. Nothing here commits; the
caller owns the transaction boundary.

Methods that feed a read-modify-write take the row lock
(SELECT ... FOR UPDATE) and refresh any already-loaded instance
so the service always decides on current data.
"""

from datetime import datetime

from sqlalchemy import select, or_, exists
from sqlalchemy.orm import Session

from bank_ledger.models.account import Account
from bank_ledger.models.enums import AccountStatus, RoleName
from bank_ledger.models.transaction import Transaction
from bank_ledger.models.user import Role, User


class AccountRepository:

    def __init__(self, db: Session):
        self.db = db

    def get(self, account_id: int) -> Account | None:
        return self.db.get(Account, account_id)

    def get_for_update(self, account_id: int) -> Account | None:
        return self.db.execute(
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def lock_many(self, account_ids: list[int]) -> dict[int, Account]:
        """
        Lock several accounts at once, always in ascending id order.

        Two transfers running in opposite directions between the
        same pair of accounts then queue on the same first row
        instead of deadlocking.
        """
        accounts = self.db.execute(
            select(Account)
            .where(Account.id.in_(account_ids))
            .order_by(Account.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        return {a.id: a for a in accounts}

    def find_by_account_number(self, account_number: str) -> Account | None:
        return self.db.execute(
            select(Account).where(Account.account_number == account_number)
        ).scalar_one_or_none()

    def account_number_exists(self, account_number: str) -> bool:
        return self.db.execute(
            select(exists().where(Account.account_number == account_number))
        ).scalar()

    def find_primary_for_username(
        self, username: str, for_update: bool = False
    ) -> Account | None:
        """
        The account a username resolves to for self-service operations.

        A user may own several accounts; the primary one is the
        oldest account that is not closed.
        """
        stmt = (
            select(Account)
            .join(User, Account.user_id == User.id)
            .where(
                User.username == username,
                Account.status != AccountStatus.CLOSED,
            )
            .order_by(Account.id)
            .limit(1)
        )
        if for_update:
            stmt = stmt.with_for_update(of=Account).execution_options(
                populate_existing=True
            )
        return self.db.execute(stmt).scalar_one_or_none()

    def find_primary_for_user_id(self, user_id: int) -> Account | None:
        return self.db.execute(
            select(Account)
            .where(
                Account.user_id == user_id,
                Account.status != AccountStatus.CLOSED,
            )
            .order_by(Account.id)
            .limit(1)
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int) -> list[Account]:
        return list(self.db.execute(
            select(Account)
            .where(Account.user_id == user_id)
            .order_by(Account.id)
        ).scalars().all())

    def list_all(self) -> list[Account]:
        return list(self.db.execute(
            select(Account).order_by(Account.id)
        ).scalars().all())

    def list_pending(self) -> list[Account]:
        """Accounts staff have not approved yet."""
        return list(self.db.execute(
            select(Account)
            .where(Account.approved_by_staff.is_(False))
            .order_by(Account.id)
        ).scalars().all())

    def numbers_for(self, account_ids: set[int]) -> dict[int, str]:
        if not account_ids:
            return {}
        rows = self.db.execute(
            select(Account.id, Account.account_number)
            .where(Account.id.in_(account_ids))
        ).all()
        return {account_id: number for account_id, number in rows}

    def add(self, account: Account) -> Account:
        self.db.add(account)
        self.db.flush()
        return account


class TransactionRepository:

    def __init__(self, db: Session):
        self.db = db

    def add(self, transaction: Transaction) -> Transaction:
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def find_by_reference_id(self, reference_id: str) -> list[Transaction]:
        return list(self.db.execute(
            select(Transaction)
            .where(Transaction.reference_id == reference_id)
            .order_by(Transaction.id)
        ).scalars().all())

    def for_account(
        self,
        account_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Transaction]:
        """Rows where the account is source or destination, newest first."""
        stmt = select(Transaction).where(
            or_(
                Transaction.source_account_id == account_id,
                Transaction.destination_account_id == account_id,
            )
        )
        stmt = self._between(stmt, start, end)
        return list(self.db.execute(stmt).scalars().all())

    def all_between(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Transaction]:
        stmt = self._between(select(Transaction), start, end)
        return list(self.db.execute(stmt).scalars().all())

    @staticmethod
    def _between(stmt, start, end):
        if start is not None:
            stmt = stmt.where(Transaction.timestamp >= start)
        if end is not None:
            stmt = stmt.where(Transaction.timestamp <= end)
        return stmt.order_by(
            Transaction.timestamp.desc(), Transaction.id.desc()
        )


class UserRepository:

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def find_by_username(
        self, username: str, for_update: bool = False
    ) -> User | None:
        stmt = select(User).where(User.username == username)
        if for_update:
            stmt = stmt.with_for_update().execution_options(
                populate_existing=True
            )
        return self.db.execute(stmt).scalar_one_or_none()

    def find_by_email(self, email: str) -> User | None:
        return self.db.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()

    def exists_by_username(self, username: str) -> bool:
        return self.db.execute(
            select(exists().where(User.username == username))
        ).scalar()

    def exists_by_email(self, email: str) -> bool:
        return self.db.execute(
            select(exists().where(User.email == email))
        ).scalar()

    def list_by_ids(self, user_ids: list[int]) -> list[User]:
        if not user_ids:
            return []
        return list(self.db.execute(
            select(User).where(User.id.in_(user_ids)).order_by(User.id)
        ).scalars().all())

    def list_all(self) -> list[User]:
        return list(self.db.execute(
            select(User).order_by(User.id)
        ).scalars().all())

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user


class RoleRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_by_name(self, name: RoleName) -> Role | None:
        return self.db.execute(
            select(Role).where(Role.name == name)
        ).scalar_one_or_none()

    def add(self, role: Role) -> Role:
        self.db.add(role)
        self.db.flush()
        return role
