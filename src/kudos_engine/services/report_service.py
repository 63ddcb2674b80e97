"""Read-side aggregates over the ledger and the catalog.

All figures are computed from ledger records rather than employee
counters, so they can be bounded to any period. Reversed redemptions are
excluded from redeemed totals.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from kudos_engine.models import (
    Employee,
    LedgerTransaction,
    QuotaDistribution,
    RedemptionRequest,
    Reward,
    TransactionAllocation,
)
from kudos_engine.models.enums import EmployeeStatus, RedemptionStatus, TransactionType
from kudos_engine.services.ledger_service import coerce_enum


class LeaderboardKind(str, Enum):
    RECEIVERS = "receivers"
    GIVERS = "givers"


@dataclass(frozen=True)
class DepartmentActivity:
    department: str
    given: int
    received: int
    redeemed: int
    active_employees: int


@dataclass(frozen=True)
class DashboardStats:
    points_issued: int
    points_given: int
    points_redeemed: int
    pending_requests: int
    active_employees: int
    active_departments: int
    departments: list[DepartmentActivity]


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    employee_id: UUID
    employee_code: str
    fullname: str
    department: str | None
    points: int


@dataclass(frozen=True)
class EmployeePointsRow:
    employee_id: UUID
    employee_code: str
    fullname: str
    department: str | None
    role: str
    quota_remaining: int
    points_received: int
    points_given: int
    points_redeemed: int
    points_balance: int


@dataclass(frozen=True)
class CatalogRow:
    reward_id: UUID
    name: str
    category: str | None
    points_cost: int
    stock: int
    status: str
    redeemed_count: int


def _between(query, column, start: datetime | None, end: datetime | None):
    if start:
        query = query.where(column >= start)
    if end:
        query = query.where(column <= end)
    return query


def _not_reversed():
    reversal = aliased(LedgerTransaction)
    return ~exists().where(reversal.reverses_transaction_id == LedgerTransaction.transaction_id)


class ReportService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _received_by_employee(self, start, end) -> dict[UUID, int]:
        query = (
            select(TransactionAllocation.employee_id, func.sum(TransactionAllocation.amount))
            .join(LedgerTransaction)
            .where(LedgerTransaction.type == TransactionType.GIVE.value)
            .group_by(TransactionAllocation.employee_id)
        )
        result = await self.session.execute(_between(query, LedgerTransaction.created_at, start, end))
        return {employee_id: int(total) for employee_id, total in result.all()}

    async def _debits_by_employee(self, tx_type: TransactionType, start, end) -> dict[UUID, int]:
        query = (
            select(LedgerTransaction.from_employee_id, func.sum(LedgerTransaction.amount))
            .where(LedgerTransaction.type == tx_type.value)
            .group_by(LedgerTransaction.from_employee_id)
        )
        if tx_type == TransactionType.REDEEM:
            query = query.where(_not_reversed())
        result = await self.session.execute(_between(query, LedgerTransaction.created_at, start, end))
        return {employee_id: int(total) for employee_id, total in result.all()}

    async def dashboard(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> DashboardStats:
        issued = await self.session.scalar(
            _between(
                select(func.coalesce(func.sum(QuotaDistribution.total_actual_change), 0)).where(
                    QuotaDistribution.total_actual_change > 0
                ),
                QuotaDistribution.created_at,
                start,
                end,
            )
        )
        pending = await self.session.scalar(
            select(func.count()).where(RedemptionRequest.status == RedemptionStatus.PENDING.value)
        )

        received = await self._received_by_employee(start, end)
        given = await self._debits_by_employee(TransactionType.GIVE, start, end)
        redeemed = await self._debits_by_employee(TransactionType.REDEEM, start, end)

        active_ids = set(received) | set(given) | set(redeemed)
        departments: dict[UUID, str | None] = {}
        if active_ids:
            result = await self.session.execute(
                select(Employee.employee_id, Employee.department).where(
                    Employee.employee_id.in_(active_ids)
                )
            )
            departments = dict(result.all())

        per_dept: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        members: dict[str, set[UUID]] = defaultdict(set)
        for employee_id in active_ids:
            dept = departments.get(employee_id)
            if not dept:
                continue
            per_dept[dept]["given"] += given.get(employee_id, 0)
            per_dept[dept]["received"] += received.get(employee_id, 0)
            per_dept[dept]["redeemed"] += redeemed.get(employee_id, 0)
            members[dept].add(employee_id)

        activity = sorted(
            (
                DepartmentActivity(
                    dept, stats["given"], stats["received"], stats["redeemed"], len(members[dept])
                )
                for dept, stats in per_dept.items()
            ),
            key=lambda d: (-(d.given + d.received + d.redeemed), d.department),
        )

        return DashboardStats(
            points_issued=int(issued or 0),
            points_given=sum(given.values()),
            points_redeemed=sum(redeemed.values()),
            pending_requests=int(pending or 0),
            active_employees=len(active_ids),
            active_departments=len(per_dept),
            departments=activity,
        )

    async def leaderboard(
        self,
        kind: LeaderboardKind | str = LeaderboardKind.RECEIVERS,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 10,
    ) -> list[LeaderboardEntry]:
        """Top receivers or givers of GIVE points; ties broken by employee code."""
        kind = coerce_enum(LeaderboardKind, kind, "kind")
        if kind == LeaderboardKind.RECEIVERS:
            totals = await self._received_by_employee(start, end)
        else:
            totals = await self._debits_by_employee(TransactionType.GIVE, start, end)
        if not totals:
            return []

        result = await self.session.execute(select(Employee).where(Employee.employee_id.in_(totals)))
        employees = sorted(
            result.scalars().all(),
            key=lambda e: (-totals[e.employee_id], e.employee_code),
        )[:limit]
        return [
            LeaderboardEntry(
                rank,
                e.employee_id,
                e.employee_code,
                e.fullname,
                e.department,
                totals[e.employee_id],
            )
            for rank, e in enumerate(employees, start=1)
        ]

    async def employee_points_report(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        include_inactive: bool = False,
    ) -> list[EmployeePointsRow]:
        received = await self._received_by_employee(start, end)
        given = await self._debits_by_employee(TransactionType.GIVE, start, end)
        redeemed = await self._debits_by_employee(TransactionType.REDEEM, start, end)

        query = select(Employee).order_by(Employee.employee_code)
        if not include_inactive:
            query = query.where(Employee.status == EmployeeStatus.ACTIVE.value)
        result = await self.session.execute(query)
        return [
            EmployeePointsRow(
                employee_id=e.employee_id,
                employee_code=e.employee_code,
                fullname=e.fullname,
                department=e.department,
                role=e.role,
                quota_remaining=e.quota_remaining,
                points_received=received.get(e.employee_id, 0),
                points_given=given.get(e.employee_id, 0),
                points_redeemed=redeemed.get(e.employee_id, 0),
                points_balance=e.points_balance,
            )
            for e in result.scalars().all()
        ]

    async def catalog_report(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[CatalogRow]:
        """Rewards by non-reversed redemption count, most redeemed first."""
        query = (
            select(LedgerTransaction.reward_id, func.count())
            .where(LedgerTransaction.type == TransactionType.REDEEM.value, _not_reversed())
            .group_by(LedgerTransaction.reward_id)
        )
        counts = dict(
            (await self.session.execute(_between(query, LedgerTransaction.created_at, start, end))).all()
        )
        result = await self.session.execute(select(Reward))
        rows = [
            CatalogRow(
                r.reward_id,
                r.name,
                r.category,
                r.points_cost,
                r.stock,
                r.status,
                int(counts.get(r.reward_id, 0)),
            )
            for r in result.scalars().all()
        ]
        return sorted(rows, key=lambda row: (-row.redeemed_count, row.name))
