"""Role allowances and bulk quota distribution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_engine.models import Employee, QuotaChangeLog, QuotaDistribution, RoleAllowance
from kudos_engine.models.enums import EmployeeRole, EmployeeStatus
from kudos_engine.services.audit_service import AuditService
from kudos_engine.services.errors import DistributionNotFoundError, ValidationError
from kudos_engine.services.ledger_service import coerce_enum

logger = logging.getLogger(__name__)

DEFAULT_QUOTAS: dict[str, int] = {
    EmployeeRole.ADMIN.value: 10000,
    EmployeeRole.EXECUTIVE.value: 5000,
    EmployeeRole.MIDDLE_MANAGEMENT.value: 2000,
    EmployeeRole.STAFF.value: 500,
}


@dataclass(frozen=True)
class AllowanceSummary:
    role: str
    default_quota: int
    employee_count: int


class QuotaService:
    """Per-role giving quotas."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def get_allowance(self, role: EmployeeRole | str) -> RoleAllowance:
        """Allowance row for a role, created from the defaults on first use."""
        role_value = coerce_enum(EmployeeRole, role, "role").value
        allowance = await self.session.scalar(
            select(RoleAllowance).where(RoleAllowance.role == role_value)
        )
        if allowance is None:
            allowance = RoleAllowance(role=role_value, default_quota=DEFAULT_QUOTAS[role_value])
            self.session.add(allowance)
            await self.session.flush()
        return allowance

    async def default_quota_for(self, role: EmployeeRole | str) -> int:
        return (await self.get_allowance(role)).default_quota

    async def list_allowances(self) -> list[AllowanceSummary]:
        counts = dict(
            (
                await self.session.execute(
                    select(Employee.role, func.count()).group_by(Employee.role)
                )
            ).all()
        )
        summaries = []
        for role in EmployeeRole:
            allowance = await self.get_allowance(role)
            summaries.append(
                AllowanceSummary(role.value, allowance.default_quota, counts.get(role.value, 0))
            )
        return summaries

    async def set_role_quota(
        self, role: EmployeeRole | str, default_quota: int, admin_id: UUID | str
    ) -> RoleAllowance:
        """Change a role's per-period allowance. Current quotas are untouched."""
        if isinstance(default_quota, bool) or not isinstance(default_quota, int) or default_quota < 0:
            raise ValidationError("default_quota must be a non-negative integer")
        allowance = await self.get_allowance(role)
        previous = allowance.default_quota
        allowance.default_quota = default_quota
        self.audit.record(
            "UPDATE_ROLE_QUOTA",
            "RoleAllowance",
            allowance.role,
            admin_id,
            {"before": previous, "after": default_quota},
        )
        await self.session.flush()
        logger.info("role %s allowance %d -> %d", allowance.role, previous, default_quota)
        return allowance

    async def adjust_quota(
        self,
        role: EmployeeRole | str,
        amount: int,
        admin_id: UUID | str,
        note: str | None = None,
    ) -> QuotaDistribution:
        """Add (or deduct) `amount` to every active employee of a role.

        Deductions clamp at zero per employee, so the actual change can be
        smaller than requested; both are kept in the change log.
        """
        role_value = coerce_enum(EmployeeRole, role, "role").value
        if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
            raise ValidationError("amount must be a non-zero integer")

        result = await self.session.execute(
            select(Employee)
            .where(Employee.role == role_value, Employee.status == EmployeeStatus.ACTIVE.value)
            .order_by(Employee.employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        employees = list(result.scalars().all())

        distribution = QuotaDistribution(
            distribution_id=uuid4(),
            role=role_value,
            amount=amount,
            distributed_by=str(admin_id),
            note=note,
        )
        self.session.add(distribution)
        await self.session.flush()

        total_actual = 0
        for employee in employees:
            before = employee.quota_remaining
            after = max(0, before + amount)
            employee.quota_remaining = after
            total_actual += after - before
            self.session.add(
                QuotaChangeLog(
                    distribution_id=distribution.distribution_id,
                    employee_id=employee.employee_id,
                    employee_code=employee.employee_code,
                    quota_before=before,
                    requested_change=amount,
                    actual_change=after - before,
                    quota_after=after,
                )
            )

        distribution.affected_count = len(employees)
        distribution.total_actual_change = total_actual
        self.audit.record(
            "DISTRIBUTE_QUOTA",
            "QuotaDistribution",
            distribution.distribution_id,
            admin_id,
            {"role": role_value, "amount": amount, "affected": len(employees)},
        )
        await self.session.flush()

        logger.info(
            "quota distribution %s: %s %+d to %d employees (actual %+d)",
            distribution.distribution_id,
            role_value,
            amount,
            len(employees),
            total_actual,
        )
        return distribution

    async def reset_period(
        self, admin_id: UUID | str, role: EmployeeRole | str | None = None
    ) -> int:
        """Set every active employee's quota (optionally one role's) to its allowance.

        Returns the number of employees reset.
        """
        roles = [coerce_enum(EmployeeRole, role, "role")] if role else list(EmployeeRole)
        allowances = {r.value: await self.default_quota_for(r) for r in roles}

        result = await self.session.execute(
            select(Employee)
            .where(
                Employee.role.in_(list(allowances)),
                Employee.status == EmployeeStatus.ACTIVE.value,
            )
            .order_by(Employee.employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        employees = list(result.scalars().all())
        for employee in employees:
            employee.quota_remaining = allowances[employee.role]

        self.audit.record(
            "RESET_QUOTA_PERIOD",
            "RoleAllowance",
            roles[0].value if role else "*",
            admin_id,
            {"employees": len(employees)},
        )
        await self.session.flush()
        logger.info(
            "quota period reset for %d employees (%s)",
            len(employees),
            roles[0].value if role else "all roles",
        )
        return len(employees)

    async def list_distributions(
        self,
        *,
        role: EmployeeRole | str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[QuotaDistribution], int]:
        query = select(QuotaDistribution)
        if role:
            query = query.where(
                QuotaDistribution.role == coerce_enum(EmployeeRole, role, "role").value
            )
        total = await self.session.scalar(select(func.count()).select_from(query.subquery())) or 0
        result = await self.session.execute(
            query.order_by(QuotaDistribution.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_change_logs(self, distribution_id: UUID) -> list[QuotaChangeLog]:
        if await self.session.get(QuotaDistribution, distribution_id) is None:
            raise DistributionNotFoundError(distribution_id)
        result = await self.session.execute(
            select(QuotaChangeLog)
            .where(QuotaChangeLog.distribution_id == distribution_id)
            .order_by(QuotaChangeLog.employee_code)
        )
        return list(result.scalars().all())
