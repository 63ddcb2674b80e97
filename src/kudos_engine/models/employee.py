"""Employee and role allowance models."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kudos_engine.models.base import Base, TimestampMixin, UpdatedAtMixin, check_in
from kudos_engine.models.enums import EmployeeRole, EmployeeStatus


class Employee(Base, TimestampMixin, UpdatedAtMixin):
    """Employee record holding both point counters.

    quota_remaining is what the employee may still give this period;
    points_balance is what they have received and may spend.
    """

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_code: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    fullname: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    position: Mapped[str | None] = mapped_column(String, nullable=True)
    business_unit: Mapped[str | None] = mapped_column(String, nullable=True)
    department: Mapped[str | None] = mapped_column(String, nullable=True)
    branch: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default=EmployeeRole.STAFF.value)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=EmployeeStatus.ACTIVE.value
    )
    quota_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("quota_remaining >= 0", name="employee_quota_non_negative"),
        CheckConstraint("points_balance >= 0", name="employee_balance_non_negative"),
        CheckConstraint(check_in("role", EmployeeRole), name="employee_role_check"),
        CheckConstraint(check_in("status", EmployeeStatus), name="employee_status_check"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE.value


class RoleAllowance(Base, UpdatedAtMixin):
    """Default per-period giving quota for a role."""

    __tablename__ = "role_allowance"

    role_allowance_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    role: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    default_quota: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("default_quota >= 0", name="role_allowance_quota_non_negative"),
        CheckConstraint(check_in("role", EmployeeRole), name="role_allowance_role_check"),
    )
