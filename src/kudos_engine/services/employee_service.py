"""Employee directory management."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_engine.models import (
    Employee,
    LedgerTransaction,
    QuotaChangeLog,
    RedemptionRequest,
    TransactionAllocation,
)
from kudos_engine.models.enums import EmployeeRole, EmployeeStatus
from kudos_engine.services.audit_service import AuditService
from kudos_engine.services.errors import (
    DuplicateEntityError,
    EmployeeNotFoundError,
    EntityInUseError,
    ValidationError,
)
from kudos_engine.services.ledger_service import LedgerService, coerce_enum
from kudos_engine.services.level_service import LevelProgress, level_progress
from kudos_engine.services.quota_service import QuotaService

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("fullname", "email", "position", "business_unit", "department", "branch")


@dataclass
class ImportResult:
    created: list[Employee] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class EmployeeService:
    """Create, look up, update and retire employees."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)
        self.quotas = QuotaService(session)

    async def get(self, employee_id: UUID) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return employee

    async def lookup(self, employee_code: str) -> Employee:
        """Resolve an employee code (case-insensitive, trimmed)."""
        code = (employee_code or "").strip()
        employee = await self.session.scalar(
            select(Employee).where(func.upper(Employee.employee_code) == code.upper())
        )
        if employee is None:
            raise EmployeeNotFoundError(code)
        return employee

    async def search(
        self,
        *,
        query: str | None = None,
        role: EmployeeRole | str | None = None,
        status: EmployeeStatus | str | None = None,
        department: str | None = None,
        business_unit: str | None = None,
        branch: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Employee], int]:
        stmt = select(Employee)
        if query:
            pattern = f"%{query.strip()}%"
            stmt = stmt.where(
                or_(
                    Employee.employee_code.ilike(pattern),
                    Employee.fullname.ilike(pattern),
                    Employee.email.ilike(pattern),
                )
            )
        if role:
            stmt = stmt.where(Employee.role == coerce_enum(EmployeeRole, role, "role").value)
        if status:
            stmt = stmt.where(
                Employee.status == coerce_enum(EmployeeStatus, status, "status").value
            )
        if department:
            stmt = stmt.where(Employee.department == department)
        if business_unit:
            stmt = stmt.where(Employee.business_unit == business_unit)
        if branch:
            stmt = stmt.where(Employee.branch == branch)

        total = await self.session.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        result = await self.session.execute(
            stmt.order_by(Employee.employee_code).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def create(
        self,
        *,
        employee_code: str,
        fullname: str,
        role: EmployeeRole | str = EmployeeRole.STAFF,
        quota_remaining: int | None = None,
        points_balance: int = 0,
        actor_id: UUID | str | None = None,
        **profile: Any,
    ) -> Employee:
        """Add an employee. Quota defaults to the role's allowance."""
        code = (employee_code or "").strip()
        if not code or not (fullname or "").strip():
            raise ValidationError("employee_code and fullname are required")
        role_value = coerce_enum(EmployeeRole, role, "role").value
        for counter, value in (("quota_remaining", quota_remaining), ("points_balance", points_balance)):
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
                raise ValidationError(f"{counter} must be a non-negative integer")
        if await self._code_taken(code):
            raise DuplicateEntityError(f"Employee code {code} already exists")

        if quota_remaining is None:
            quota_remaining = await self.quotas.default_quota_for(role_value)

        employee = Employee(
            employee_code=code,
            fullname=fullname.strip(),
            role=role_value,
            status=EmployeeStatus.ACTIVE.value,
            quota_remaining=quota_remaining,
            points_balance=points_balance,
            **{k: v for k, v in profile.items() if k in PROFILE_FIELDS},
        )
        self.session.add(employee)
        await self.session.flush()
        self.audit.record(
            "CREATE_EMPLOYEE", "Employee", employee.employee_id, actor_id, {"code": code}
        )
        await self.session.flush()
        logger.info("employee %s created (%s)", code, role_value)
        return employee

    async def update(
        self,
        employee_id: UUID,
        changes: Mapping[str, Any],
        actor_id: UUID | str | None = None,
    ) -> Employee:
        """Apply profile, role and status changes. Counters move only through the ledger."""
        employee = await self.get(employee_id)
        applied: dict[str, Any] = {}

        for name in PROFILE_FIELDS:
            if name in changes and changes[name] is not None:
                applied[name] = changes[name]
        if changes.get("employee_code"):
            code = changes["employee_code"].strip()
            if code != employee.employee_code and await self._code_taken(code):
                raise DuplicateEntityError(f"Employee code {code} already exists")
            applied["employee_code"] = code
        if changes.get("role"):
            applied["role"] = coerce_enum(EmployeeRole, changes["role"], "role").value
        if changes.get("status"):
            applied["status"] = coerce_enum(EmployeeStatus, changes["status"], "status").value

        for name, value in applied.items():
            setattr(employee, name, value)
        if applied:
            self.audit.record(
                "UPDATE_EMPLOYEE", "Employee", employee.employee_id, actor_id, applied
            )
        await self.session.flush()
        return employee

    async def delete(self, employee_id: UUID, actor_id: UUID | str | None = None) -> None:
        """Hard delete; refused once any history references the employee."""
        employee = await self.get(employee_id)
        if await self._has_history(employee_id):
            raise EntityInUseError(
                f"Employee {employee.employee_code} has transaction history; deactivate instead"
            )
        code = employee.employee_code
        await self.session.delete(employee)
        self.audit.record("DELETE_EMPLOYEE", "Employee", employee_id, actor_id, {"code": code})
        await self.session.flush()
        logger.info("employee %s deleted", code)

    async def import_rows(
        self,
        rows: Iterable[Mapping[str, Any]],
        actor_id: UUID | str | None = None,
    ) -> ImportResult:
        """Bulk create; existing codes are skipped, invalid rows reported."""
        result = ImportResult()
        seen: set[str] = set()
        for index, row in enumerate(rows, start=1):
            code = str(row.get("employee_code") or "").strip()
            if not code:
                result.errors.append(f"row {index}: employee_code is required")
                continue
            if code.upper() in seen or await self._code_taken(code):
                result.skipped.append(code)
                continue
            seen.add(code.upper())
            fields = {k: v for k, v in row.items() if k not in ("employee_code", "fullname", "actor_id")}
            try:
                employee = await self.create(
                    employee_code=code,
                    fullname=str(row.get("fullname") or ""),
                    actor_id=actor_id,
                    **fields,
                )
            except ValidationError as exc:
                result.errors.append(f"row {index}: {exc}")
                continue
            result.created.append(employee)

        logger.info(
            "employee import: %d created, %d skipped, %d errors",
            len(result.created),
            len(result.skipped),
            len(result.errors),
        )
        return result

    async def level(self, employee_id: UUID) -> LevelProgress:
        await self.get(employee_id)
        points = await LedgerService(self.session).lifetime_points_received(employee_id)
        return level_progress(points)

    async def _code_taken(self, code: str) -> bool:
        found = await self.session.scalar(
            select(Employee.employee_id).where(func.upper(Employee.employee_code) == code.upper())
        )
        return found is not None

    async def _has_history(self, employee_id: UUID) -> bool:
        checks = (
            select(LedgerTransaction.transaction_id).where(
                or_(
                    LedgerTransaction.from_employee_id == employee_id,
                    LedgerTransaction.to_employee_id == employee_id,
                )
            ),
            select(TransactionAllocation.allocation_id).where(
                TransactionAllocation.employee_id == employee_id
            ),
            select(RedemptionRequest.request_id).where(RedemptionRequest.employee_id == employee_id),
            select(QuotaChangeLog.change_log_id).where(QuotaChangeLog.employee_id == employee_id),
        )
        for check in checks:
            if await self.session.scalar(check.limit(1)) is not None:
                return True
        return False
