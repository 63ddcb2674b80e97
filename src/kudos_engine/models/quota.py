"""Quota distribution log models."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kudos_engine.models.base import Base, TimestampMixin


class QuotaDistribution(Base, TimestampMixin):
    """One bulk quota adjustment applied to every member of a role."""

    __tablename__ = "quota_distribution"

    distribution_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    role: Mapped[str] = mapped_column(String, nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    affected_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_actual_change: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    distributed_by: Mapped[str | None] = mapped_column(String, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)


class QuotaChangeLog(Base, TimestampMixin):
    """Effect of a distribution on a single employee."""

    __tablename__ = "quota_change_log"

    change_log_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    distribution_id: Mapped[UUID] = mapped_column(
        ForeignKey("quota_distribution.distribution_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    employee_code: Mapped[str] = mapped_column(String, nullable=False)
    quota_before: Mapped[int] = mapped_column(Integer, nullable=False)
    requested_change: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_change: Mapped[int] = mapped_column(Integer, nullable=False)
    quota_after: Mapped[int] = mapped_column(Integer, nullable=False)
