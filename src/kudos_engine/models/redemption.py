"""Redemption request model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kudos_engine.models.base import Base, TimestampMixin, UpdatedAtMixin, check_in
from kudos_engine.models.enums import RedemptionStatus, ShippingStatus, ShippingType


class RedemptionRequest(Base, TimestampMixin, UpdatedAtMixin):
    """Workflow record for one REDEEM ledger entry."""

    __tablename__ = "redemption_request"

    request_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    reward_id: Mapped[UUID] = mapped_column(
        ForeignKey("reward.reward_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    transaction_id: Mapped[UUID] = mapped_column(
        ForeignKey("ledger_transaction.transaction_id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    reversal_transaction_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("ledger_transaction.transaction_id", ondelete="RESTRICT"),
        nullable=True,
    )
    points_used: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=RedemptionStatus.PENDING.value, index=True
    )
    shipping_type: Mapped[str] = mapped_column(String, nullable=False)
    shipping_status: Mapped[str] = mapped_column(String, nullable=False)

    shipping_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String, nullable=True)
    carrier: Mapped[str | None] = mapped_column(String, nullable=True)
    tracking_number: Mapped[str | None] = mapped_column(String, nullable=True)
    shipped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    returned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    digital_code: Mapped[str | None] = mapped_column(String, nullable=True)

    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    return_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_by: Mapped[str | None] = mapped_column(String, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("points_used > 0", name="redemption_points_positive"),
        CheckConstraint(check_in("status", RedemptionStatus), name="redemption_status_check"),
        CheckConstraint(
            check_in("shipping_type", ShippingType), name="redemption_shipping_type_check"
        ),
        CheckConstraint(
            check_in("shipping_status", ShippingStatus), name="redemption_shipping_status_check"
        ),
    )
