"""
User and role models.

A user logs in with username and password and holds one or
more roles. Lockout bookkeeping (failed attempts, lock time)
lives on the user row itself.
"""

from datetime import datetime

from sqlalchemy import (
    Column, Table, String, Boolean, Integer, DateTime, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bank_ledger.clock import utc_now
from bank_ledger.models.base import Base
from bank_ledger.models.enums import RoleName


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", ForeignKey("users.id"), primary_key=True),
    Column("role_id", ForeignKey("roles.id"), primary_key=True),
)


class Role(Base):
    """Static reference data, seeded at startup."""

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[RoleName] = mapped_column(
        SAEnum(RoleName, name="role_name_enum", create_constraint=True),
        unique=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Role {self.name.value}>"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    account_non_locked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    failed_login_attempts: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    lock_time: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now
    )

    # Roles are needed on every login and every authenticated
    # request, so load them together with the user.
    roles: Mapped[set[Role]] = relationship(
        secondary=user_roles, lazy="selectin", collection_class=set
    )

    @property
    def role_names(self) -> list[str]:
        return sorted(role.name.value for role in self.roles)

    def __repr__(self) -> str:
        return f"<User {self.username}>"
