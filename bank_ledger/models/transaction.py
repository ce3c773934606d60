"""
Transaction model.

One row per balance change. A deposit or withdrawal writes a
single row; a transfer writes two rows (debit and credit legs)
sharing the same reference_id.

Rows are append-only: created once, never updated or deleted.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from bank_ledger.clock import utc_now
from bank_ledger.models.base import Base
from bank_ledger.models.enums import TransactionType


class Transaction(Base):
    """
    An immutable ledger entry.

    amount sign convention:
    - DEPOSIT and WITHDRAWAL carry the positive magnitude
    - TRANSFER debit leg is negative, credit leg positive

    reference_id is not unique at the schema level because the two
    legs of a transfer share it.
    """

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="transaction_type_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, index=True
    )
    reference_id: Mapped[str] = mapped_column(
        String(36), nullable=False, index=True
    )
    source_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    destination_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.transaction_type.value} "
            f"{self.amount} ref={self.reference_id}>"
        )
