"""Points ledger - give, redeem, adjust, reverse.

Every operation:
- locks the rows it reads for a read-modify-write (SELECT ... FOR UPDATE)
- validates every precondition before touching any counter
- writes the balance mutation and its immutable ledger record in the same
  unit of work, then flushes

Committing is the caller's job (one commit per request), so a failure at
any point leaves nothing applied.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TypeVar
from uuid import UUID, uuid4

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_engine.models import (
    Employee,
    LedgerTransaction,
    RedemptionRequest,
    Reward,
    RewardCategory,
    TransactionAllocation,
)
from kudos_engine.models.enums import (
    EmployeeRole,
    EmployeeStatus,
    GroupType,
    RedemptionStatus,
    ShippingStatus,
    ShippingType,
    TransactionSource,
    TransactionType,
)
from kudos_engine.services.level_service import can_access, level_for_points
from kudos_engine.services.audit_service import AuditService
from kudos_engine.services.errors import (
    CategoryNotFoundError,
    EmployeeNotFoundError,
    InsufficientPointsError,
    InsufficientQuotaError,
    InvalidStateTransitionError,
    LevelRequirementError,
    OutOfStockError,
    RewardInactiveError,
    RewardNotFoundError,
    TransactionNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

GROUP_COLUMNS = {
    GroupType.DEPARTMENT.value: Employee.department,
    GroupType.BUSINESS_UNIT.value: Employee.business_unit,
    GroupType.BRANCH.value: Employee.branch,
}


@dataclass(frozen=True)
class Allocation:
    """Points destined for one recipient of a group give."""

    employee_id: UUID
    amount: int


@dataclass(frozen=True)
class HistoryRow:
    """Flattened, display-ready ledger line."""

    transaction_id: UUID
    date: datetime
    type: str
    source: str
    from_name: str | None
    to_name: str | None
    amount: int
    message: str | None
    category: str | None


def coerce_enum(enum_cls: type[E], value: object, field: str) -> E:
    """Enum member for `value`, or ValidationError naming the bad field."""
    try:
        return enum_cls(getattr(value, "value", value))
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}") from None


def require_positive_int(value: object, field: str = "amount") -> int:
    """Reject booleans, non-integers and values below one."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return value


class LedgerService:
    """Applies point movements to balances, quotas and stock."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    # ------------------------------------------------------------------
    # GIVE
    # ------------------------------------------------------------------

    async def apply_give(
        self,
        *,
        from_employee_id: UUID,
        to_employee_id: UUID,
        amount: int,
        category_id: UUID | None = None,
        message: str | None = None,
        source: TransactionSource | str = TransactionSource.MANUAL,
    ) -> LedgerTransaction:
        """Move `amount` from the giver's quota into the recipient's balance."""
        amount = require_positive_int(amount)
        source = coerce_enum(TransactionSource, source, "source")
        if source not in (TransactionSource.MANUAL, TransactionSource.QR):
            raise ValidationError(f"Source '{source.value}' is not valid for a single give")
        if from_employee_id == to_employee_id:
            raise ValidationError("Cannot give points to yourself")
        await self._require_category(category_id)

        locked = await self._lock_employees([from_employee_id, to_employee_id])
        giver = locked[from_employee_id]
        recipient = locked[to_employee_id]
        _require_active(giver)
        _require_active(recipient)

        if giver.quota_remaining < amount:
            raise InsufficientQuotaError(giver.quota_remaining, amount)

        giver.quota_remaining -= amount
        recipient.points_balance += amount

        transaction = LedgerTransaction(
            transaction_id=uuid4(),
            type=TransactionType.GIVE.value,
            source=source.value,
            from_employee_id=giver.employee_id,
            to_employee_id=recipient.employee_id,
            amount=amount,
            category_id=category_id,
            message=message,
            created_by=str(giver.employee_id),
            allocations=[TransactionAllocation(employee_id=recipient.employee_id, amount=amount)],
        )
        self.session.add(transaction)
        self.audit.record(
            "GIVE_POINTS",
            "LedgerTransaction",
            transaction.transaction_id,
            giver.employee_id,
            {"recipient": recipient.employee_code, "amount": amount, "source": source.value},
        )
        await self.session.flush()

        logger.info(
            "give %s: %s -> %s (%d pts)",
            transaction.transaction_id,
            giver.employee_code,
            recipient.employee_code,
            amount,
        )
        return transaction

    async def eligible_group_members(
        self,
        *,
        from_employee_id: UUID,
        group_type: GroupType | str,
        group_value: str,
    ) -> list[Employee]:
        """Active members of an org group who can receive a group give.

        The giver and Executives are never recipients of a group give.
        """
        column = GROUP_COLUMNS[coerce_enum(GroupType, group_type, "group_type").value]
        if not group_value:
            raise ValidationError("group_value is required")

        result = await self.session.execute(
            select(Employee)
            .where(
                column == group_value,
                Employee.employee_id != from_employee_id,
                Employee.role != EmployeeRole.EXECUTIVE.value,
                Employee.status == EmployeeStatus.ACTIVE.value,
            )
            .order_by(Employee.employee_code)
        )
        return list(result.scalars().all())

    async def resolve_group_allocations(
        self,
        *,
        from_employee_id: UUID,
        group_type: GroupType | str,
        group_value: str,
        points_per_member: int,
    ) -> list[Allocation]:
        """Equal allocations for every eligible member of an org group."""
        points_per_member = require_positive_int(points_per_member, "points_per_member")
        members = await self.eligible_group_members(
            from_employee_id=from_employee_id, group_type=group_type, group_value=group_value
        )
        if not members:
            raise ValidationError("No eligible members found in the selected group")
        return [Allocation(employee_id=m.employee_id, amount=points_per_member) for m in members]

    async def apply_group_give(
        self,
        *,
        from_employee_id: UUID,
        allocations: Sequence[Allocation],
        category_id: UUID | None = None,
        message: str | None = None,
        group_type: GroupType | str | None = None,
        group_value: str | None = None,
    ) -> LedgerTransaction:
        """Give to many recipients as one all-or-nothing ledger record.

        The giver's quota is checked against the sum of all allocations
        before any recipient balance is touched.
        """
        if not allocations:
            raise ValidationError("At least one allocation is required")
        seen: set[UUID] = set()
        for allocation in allocations:
            require_positive_int(allocation.amount, "allocation amount")
            if allocation.employee_id == from_employee_id:
                raise ValidationError("Cannot give points to yourself")
            if allocation.employee_id in seen:
                raise ValidationError(f"Duplicate recipient {allocation.employee_id}")
            seen.add(allocation.employee_id)
        group = coerce_enum(GroupType, group_type, "group_type") if group_type else None
        await self._require_category(category_id)

        total = sum(a.amount for a in allocations)
        locked = await self._lock_employees([from_employee_id, *seen])
        giver = locked[from_employee_id]
        _require_active(giver)
        for employee_id in seen:
            _require_active(locked[employee_id])

        if giver.quota_remaining < total:
            raise InsufficientQuotaError(giver.quota_remaining, total)

        giver.quota_remaining -= total
        for allocation in allocations:
            locked[allocation.employee_id].points_balance += allocation.amount

        transaction = LedgerTransaction(
            transaction_id=uuid4(),
            type=TransactionType.GIVE.value,
            source=TransactionSource.GROUP.value,
            from_employee_id=giver.employee_id,
            to_employee_id=None,
            amount=total,
            category_id=category_id,
            message=message,
            group_type=group.value if group else None,
            group_value=group_value,
            created_by=str(giver.employee_id),
            allocations=[
                TransactionAllocation(employee_id=a.employee_id, amount=a.amount)
                for a in allocations
            ],
        )
        self.session.add(transaction)
        self.audit.record(
            "GIVE_POINTS_GROUP",
            "LedgerTransaction",
            transaction.transaction_id,
            giver.employee_id,
            {
                "total": total,
                "recipient_count": len(allocations),
                "group_type": transaction.group_type,
                "group_value": group_value,
            },
        )
        await self.session.flush()

        logger.info(
            "group give %s: %s -> %d recipients (%d pts)",
            transaction.transaction_id,
            giver.employee_code,
            len(allocations),
            total,
        )
        return transaction

    # ------------------------------------------------------------------
    # REDEEM
    # ------------------------------------------------------------------

    async def apply_redeem(
        self,
        *,
        employee_id: UUID,
        reward_id: UUID,
        shipping_type: ShippingType | str | None = None,
        shipping_address: str | None = None,
        contact_phone: str | None = None,
        note: str | None = None,
    ) -> RedemptionRequest:
        """Spend points on a reward and open a PENDING redemption request.

        Points and one unit of stock are taken now; rejection, cancellation
        or return hands them back through reverse_ledger_effect.
        """
        employee = (await self._lock_employees([employee_id]))[employee_id]
        reward = await self._lock_reward(reward_id)
        _require_active(employee)

        if not reward.is_active:
            raise RewardInactiveError(reward.reward_id)
        if reward.stock <= 0:
            raise OutOfStockError(reward.reward_id)
        if employee.points_balance < reward.points_cost:
            raise InsufficientPointsError(employee.points_balance, reward.points_cost)
        if reward.min_level_required:
            points = await self.lifetime_points_received(employee.employee_id)
            level = level_for_points(points)
            if not can_access(level.level, reward.min_level_required):
                raise LevelRequirementError(level.level.value, reward.min_level_required)

        resolved_type = _resolve_shipping_type(reward, shipping_type)
        if resolved_type == ShippingType.DELIVERY and not (shipping_address and contact_phone):
            raise ValidationError("Shipping address and contact phone are required for delivery")

        employee.points_balance -= reward.points_cost
        reward.stock -= 1

        transaction = LedgerTransaction(
            transaction_id=uuid4(),
            type=TransactionType.REDEEM.value,
            source=TransactionSource.REDEMPTION.value,
            from_employee_id=employee.employee_id,
            to_employee_id=None,
            amount=reward.points_cost,
            reward_id=reward.reward_id,
            message=reward.name,
            created_by=str(employee.employee_id),
            allocations=[
                TransactionAllocation(employee_id=employee.employee_id, amount=reward.points_cost)
            ],
        )
        request = RedemptionRequest(
            request_id=uuid4(),
            employee_id=employee.employee_id,
            reward_id=reward.reward_id,
            transaction_id=transaction.transaction_id,
            points_used=reward.points_cost,
            status=RedemptionStatus.PENDING.value,
            shipping_type=resolved_type.value,
            shipping_status=(
                ShippingStatus.PENDING.value
                if reward.is_physical
                else ShippingStatus.NOT_REQUIRED.value
            ),
            shipping_address=shipping_address,
            contact_phone=contact_phone,
            note=note,
        )
        self.session.add(transaction)
        # Ledger row must exist before the request that references it.
        await self.session.flush()
        self.session.add(request)
        self.audit.record(
            "CREATE_REDEEM_REQUEST",
            "RedemptionRequest",
            request.request_id,
            employee.employee_id,
            {"reward_name": reward.name, "points_used": reward.points_cost},
        )
        await self.session.flush()

        logger.info(
            "redeem %s: %s spent %d pts on %s",
            request.request_id,
            employee.employee_code,
            reward.points_cost,
            reward.name,
        )
        return request

    # ------------------------------------------------------------------
    # ADJUSTMENT
    # ------------------------------------------------------------------

    async def apply_adjustment(
        self,
        *,
        employee_id: UUID,
        amount: int,
        admin_id: UUID | str,
        reason: str,
    ) -> LedgerTransaction:
        """Manual signed correction to an employee's points balance."""
        if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
            raise ValidationError("amount must be a non-zero integer")
        if not reason or not reason.strip():
            raise ValidationError("reason is required for an adjustment")

        employee = (await self._lock_employees([employee_id]))[employee_id]
        if amount < 0 and employee.points_balance < -amount:
            raise InsufficientPointsError(employee.points_balance, -amount)

        employee.points_balance += amount
        transaction = LedgerTransaction(
            transaction_id=uuid4(),
            type=TransactionType.ADJUSTMENT.value,
            source=TransactionSource.ADMIN.value,
            from_employee_id=employee.employee_id if amount < 0 else None,
            to_employee_id=employee.employee_id if amount > 0 else None,
            amount=abs(amount),
            message=reason,
            created_by=str(admin_id),
            allocations=[TransactionAllocation(employee_id=employee.employee_id, amount=abs(amount))],
        )
        self.session.add(transaction)
        self.audit.record(
            "ADJUST_POINTS",
            "LedgerTransaction",
            transaction.transaction_id,
            admin_id,
            {"employee": employee.employee_code, "amount": amount, "reason": reason},
        )
        await self.session.flush()

        logger.info(
            "adjustment %s: %s %+d pts by %s",
            transaction.transaction_id,
            employee.employee_code,
            amount,
            admin_id,
        )
        return transaction

    # ------------------------------------------------------------------
    # Reversal
    # ------------------------------------------------------------------

    async def reverse_ledger_effect(
        self,
        transaction_id: UUID,
        *,
        actor_id: UUID | str | None = None,
        reason: str | None = None,
    ) -> LedgerTransaction:
        """Undo a REDEEM: refund its points and restore one unit of stock.

        This is the only refund path; rejection, cancellation and return
        all go through it. A transaction can be reversed once.
        """
        result = await self.session.execute(
            select(LedgerTransaction)
            .where(LedgerTransaction.transaction_id == transaction_id)
            .with_for_update()
        )
        original = result.scalar_one_or_none()
        if original is None:
            raise TransactionNotFoundError(transaction_id)
        if original.type != TransactionType.REDEEM.value:
            raise ValidationError(f"Only REDEEM transactions can be reversed (got {original.type})")

        already = await self.session.scalar(
            select(LedgerTransaction.transaction_id).where(
                LedgerTransaction.reverses_transaction_id == transaction_id
            )
        )
        if already is not None:
            raise InvalidStateTransitionError(
                TransactionType.REDEEM.value, "REVERSED", f"already reversed by {already}"
            )

        employee_id = original.from_employee_id
        employee = (await self._lock_employees([employee_id]))[employee_id]
        reward = await self._lock_reward(original.reward_id)

        employee.points_balance += original.amount
        reward.stock += 1

        reversal = LedgerTransaction(
            transaction_id=uuid4(),
            type=TransactionType.ADJUSTMENT.value,
            source=TransactionSource.REVERSAL.value,
            from_employee_id=None,
            to_employee_id=employee.employee_id,
            amount=original.amount,
            reward_id=reward.reward_id,
            message=reason,
            reverses_transaction_id=original.transaction_id,
            created_by=str(actor_id) if actor_id is not None else None,
            allocations=[TransactionAllocation(employee_id=employee.employee_id, amount=original.amount)],
        )
        self.session.add(reversal)
        await self.session.flush()

        logger.info(
            "reversal %s of %s: refunded %d pts to %s, %s stock now %d",
            reversal.transaction_id,
            original.transaction_id,
            original.amount,
            employee.employee_code,
            reward.name,
            reward.stock,
        )
        return reversal

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    async def get_transaction(self, transaction_id: UUID) -> LedgerTransaction:
        transaction = await self.session.get(LedgerTransaction, transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    def _filtered(
        self,
        employee_id: UUID | None,
        transaction_type: TransactionType | str | None,
        start: datetime | None,
        end: datetime | None,
    ):
        query = select(LedgerTransaction)
        if employee_id is not None:
            query = query.where(
                or_(
                    LedgerTransaction.from_employee_id == employee_id,
                    LedgerTransaction.to_employee_id == employee_id,
                    LedgerTransaction.transaction_id.in_(
                        select(TransactionAllocation.transaction_id).where(
                            TransactionAllocation.employee_id == employee_id
                        )
                    ),
                )
            )
        if transaction_type:
            query = query.where(
                LedgerTransaction.type == coerce_enum(TransactionType, transaction_type, "type").value
            )
        if start:
            query = query.where(LedgerTransaction.created_at >= start)
        if end:
            query = query.where(LedgerTransaction.created_at <= end)
        return query

    async def list_transactions(
        self,
        *,
        employee_id: UUID | None = None,
        transaction_type: TransactionType | str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[LedgerTransaction], int]:
        """Newest first, with total count for pagination."""
        query = self._filtered(employee_id, transaction_type, start, end)
        total = await self.session.scalar(select(func.count()).select_from(query.subquery())) or 0
        result = await self.session.execute(
            query.order_by(LedgerTransaction.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def history_rows(
        self,
        *,
        employee_id: UUID | None = None,
        transaction_type: TransactionType | str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[HistoryRow]:
        """One row per credited/debited party, ready for tabular export."""
        result = await self.session.execute(
            self._filtered(employee_id, transaction_type, start, end).order_by(
                LedgerTransaction.created_at.desc()
            )
        )
        transactions = list(result.scalars().all())

        employee_ids: set[UUID] = set()
        reward_ids: set[UUID] = set()
        category_ids: set[UUID] = set()
        for tx in transactions:
            employee_ids.update(a.employee_id for a in tx.allocations)
            if tx.from_employee_id:
                employee_ids.add(tx.from_employee_id)
            if tx.reward_id:
                reward_ids.add(tx.reward_id)
            if tx.category_id:
                category_ids.add(tx.category_id)

        names = await self._names(Employee, Employee.employee_id, Employee.fullname, employee_ids)
        rewards = await self._names(Reward, Reward.reward_id, Reward.name, reward_ids)
        categories = await self._names(
            RewardCategory, RewardCategory.category_id, RewardCategory.name, category_ids
        )

        rows: list[HistoryRow] = []
        for tx in transactions:
            category = categories.get(tx.category_id) if tx.category_id else None
            if tx.type == TransactionType.GIVE.value:
                for allocation in tx.allocations:
                    rows.append(
                        HistoryRow(
                            tx.transaction_id, tx.created_at, tx.type, tx.source,
                            names.get(tx.from_employee_id), names.get(allocation.employee_id),
                            allocation.amount, tx.message, category,
                        )
                    )
            elif tx.type == TransactionType.REDEEM.value:
                rows.append(
                    HistoryRow(
                        tx.transaction_id, tx.created_at, tx.type, tx.source,
                        names.get(tx.from_employee_id), rewards.get(tx.reward_id),
                        tx.amount, tx.message, category,
                    )
                )
            else:
                rows.append(
                    HistoryRow(
                        tx.transaction_id, tx.created_at, tx.type, tx.source,
                        names.get(tx.from_employee_id) if tx.from_employee_id else None,
                        names.get(tx.to_employee_id) if tx.to_employee_id else None,
                        tx.amount, tx.message, category,
                    )
                )
        return rows

    async def lifetime_points_received(self, employee_id: UUID) -> int:
        """Total points ever given to this employee by colleagues."""
        total = await self.session.scalar(
            select(func.coalesce(func.sum(TransactionAllocation.amount), 0))
            .join(LedgerTransaction)
            .where(
                TransactionAllocation.employee_id == employee_id,
                LedgerTransaction.type == TransactionType.GIVE.value,
            )
        )
        return int(total or 0)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _lock_employees(self, employee_ids: Sequence[UUID]) -> dict[UUID, Employee]:
        """Lock employee rows in ascending id order so concurrent writers cannot deadlock."""
        wanted = sorted(set(employee_ids), key=str)
        result = await self.session.execute(
            select(Employee)
            .where(Employee.employee_id.in_(wanted))
            .order_by(Employee.employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        found = {e.employee_id: e for e in result.scalars().all()}
        for employee_id in wanted:
            if employee_id not in found:
                raise EmployeeNotFoundError(employee_id)
        return found

    async def _lock_reward(self, reward_id: UUID | None) -> Reward:
        result = await self.session.execute(
            select(Reward)
            .where(Reward.reward_id == reward_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        reward = result.scalar_one_or_none()
        if reward is None:
            raise RewardNotFoundError(reward_id)
        return reward

    async def _require_category(self, category_id: UUID | None) -> None:
        if category_id is None:
            return
        category = await self.session.get(RewardCategory, category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        if not category.is_active:
            raise ValidationError(f"Category {category.name} is inactive")

    async def _names(self, model, key_col, name_col, ids: set[UUID]) -> dict[UUID, str]:
        if not ids:
            return {}
        result = await self.session.execute(select(key_col, name_col).where(key_col.in_(ids)))
        return {key: name for key, name in result.all()}


def _require_active(employee: Employee) -> None:
    if not employee.is_active:
        raise ValidationError(f"Employee {employee.employee_code} is inactive")


def _resolve_shipping_type(reward: Reward, requested: ShippingType | str | None) -> ShippingType:
    if requested is None:
        return ShippingType.PICKUP if reward.is_physical else ShippingType.DIGITAL
    shipping_type = coerce_enum(ShippingType, requested, "shipping_type")
    if reward.is_physical and shipping_type == ShippingType.DIGITAL:
        raise ValidationError("Physical rewards must be picked up or delivered")
    if not reward.is_physical and shipping_type != ShippingType.DIGITAL:
        raise ValidationError("Digital rewards cannot be picked up or delivered")
    return shipping_type
