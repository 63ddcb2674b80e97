"""Points ledger models.

Ledger rows are append-only: amount, type and parties are written once.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kudos_engine.models.base import Base, TimestampMixin, check_in
from kudos_engine.models.enums import TransactionSource, TransactionType


class LedgerTransaction(Base, TimestampMixin):
    """One point movement.

    from_employee_id is the debited party (giver, redeemer, or the target of
    a negative adjustment); to_employee_id is the credited party and is null
    for grouped gives, whose recipients live in allocations.
    """

    __tablename__ = "ledger_transaction"

    transaction_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    type: Mapped[str] = mapped_column(String, nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False)
    from_employee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    to_employee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    category_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("reward_category.category_id", ondelete="RESTRICT"),
        nullable=True,
    )
    reward_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("reward.reward_id", ondelete="RESTRICT"),
        nullable=True,
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    group_type: Mapped[str | None] = mapped_column(String, nullable=True)
    group_value: Mapped[str | None] = mapped_column(String, nullable=True)
    reverses_transaction_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("ledger_transaction.transaction_id", ondelete="RESTRICT"),
        nullable=True,
        unique=True,
    )
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ledger_transaction_amount_positive"),
        CheckConstraint(check_in("type", TransactionType), name="ledger_transaction_type_check"),
        CheckConstraint(
            check_in("source", TransactionSource), name="ledger_transaction_source_check"
        ),
    )

    allocations: Mapped[list[TransactionAllocation]] = relationship(
        back_populates="transaction",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="TransactionAllocation.allocation_id",
    )


class TransactionAllocation(Base):
    """Per-employee share of a transaction."""

    __tablename__ = "transaction_allocation"

    allocation_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_id: Mapped[UUID] = mapped_column(
        ForeignKey("ledger_transaction.transaction_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("amount > 0", name="transaction_allocation_amount_positive"),
    )

    transaction: Mapped[LedgerTransaction] = relationship(back_populates="allocations")
