"""Reward catalog and give-category models."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from kudos_engine.models.base import Base, TimestampMixin, UpdatedAtMixin, check_in
from kudos_engine.models.enums import RewardStatus


class RewardCategory(Base, TimestampMixin, UpdatedAtMixin):
    """Reason a point was given (teamwork, innovation, ...)."""

    __tablename__ = "reward_category"

    category_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str] = mapped_column(String, nullable=False, default="#6B7280")
    icon: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)


class Reward(Base, TimestampMixin, UpdatedAtMixin):
    """Catalog item redeemable for points."""

    __tablename__ = "reward"

    reward_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    category: Mapped[str | None] = mapped_column(String, nullable=True)
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_physical: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default=RewardStatus.ACTIVE.value)
    min_level_required: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("points_cost > 0", name="reward_cost_positive"),
        CheckConstraint("stock >= 0", name="reward_stock_non_negative"),
        CheckConstraint(check_in("status", RewardStatus), name="reward_status_check"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == RewardStatus.ACTIVE.value
