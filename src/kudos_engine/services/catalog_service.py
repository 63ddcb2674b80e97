"""Reward catalog and give-category management."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_engine.models import LedgerTransaction, RedemptionRequest, Reward, RewardCategory
from kudos_engine.models.enums import EmployeeLevel, RewardStatus
from kudos_engine.services.audit_service import AuditService
from kudos_engine.services.errors import (
    CategoryNotFoundError,
    DuplicateEntityError,
    EntityInUseError,
    RewardNotFoundError,
    ValidationError,
)
from kudos_engine.services.ledger_service import coerce_enum, require_positive_int

logger = logging.getLogger(__name__)

REWARD_FIELDS = ("name", "description", "image_url", "category", "is_physical")
CATEGORY_FIELDS = ("name", "description", "color", "icon", "is_active")


class CatalogService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    # ------------------------------------------------------------------
    # Rewards
    # ------------------------------------------------------------------

    async def get_reward(self, reward_id: UUID) -> Reward:
        reward = await self.session.get(Reward, reward_id)
        if reward is None:
            raise RewardNotFoundError(reward_id)
        return reward

    async def list_rewards(
        self,
        *,
        status: RewardStatus | str | None = None,
        category: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Reward], int]:
        query = select(Reward)
        if status:
            query = query.where(Reward.status == coerce_enum(RewardStatus, status, "status").value)
        if category:
            query = query.where(Reward.category == category)
        total = await self.session.scalar(select(func.count()).select_from(query.subquery())) or 0
        result = await self.session.execute(
            query.order_by(Reward.points_cost, Reward.name).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def create_reward(
        self,
        *,
        name: str,
        points_cost: int,
        stock: int = 0,
        is_physical: bool = True,
        status: RewardStatus | str = RewardStatus.ACTIVE,
        min_level_required: EmployeeLevel | str | None = None,
        actor_id: UUID | str | None = None,
        **details: Any,
    ) -> Reward:
        if not (name or "").strip():
            raise ValidationError("name is required")
        reward = Reward(
            name=name.strip(),
            points_cost=require_positive_int(points_cost, "points_cost"),
            stock=_non_negative(stock, "stock"),
            is_physical=bool(is_physical),
            status=coerce_enum(RewardStatus, status, "status").value,
            min_level_required=(
                coerce_enum(EmployeeLevel, min_level_required, "min_level_required").value
                if min_level_required
                else None
            ),
            **{k: v for k, v in details.items() if k in REWARD_FIELDS},
        )
        self.session.add(reward)
        await self.session.flush()
        self.audit.record(
            "CREATE_REWARD", "Reward", reward.reward_id, actor_id, {"name": reward.name}
        )
        await self.session.flush()
        logger.info("reward %s created (%d pts, stock %d)", reward.name, reward.points_cost, reward.stock)
        return reward

    async def update_reward(
        self,
        reward_id: UUID,
        changes: Mapping[str, Any],
        actor_id: UUID | str | None = None,
    ) -> Reward:
        """Edit a reward. Stock set here is an absolute restock, not a delta."""
        reward = await self.get_reward(reward_id)
        applied: dict[str, Any] = {
            name: changes[name]
            for name in REWARD_FIELDS
            if name in changes and changes[name] is not None
        }
        if changes.get("points_cost") is not None:
            applied["points_cost"] = require_positive_int(changes["points_cost"], "points_cost")
        if changes.get("stock") is not None:
            applied["stock"] = _non_negative(changes["stock"], "stock")
        if changes.get("status"):
            applied["status"] = coerce_enum(RewardStatus, changes["status"], "status").value
        if "min_level_required" in changes:
            level = changes["min_level_required"]
            applied["min_level_required"] = (
                coerce_enum(EmployeeLevel, level, "min_level_required").value if level else None
            )

        for name, value in applied.items():
            setattr(reward, name, value)
        if applied:
            self.audit.record("UPDATE_REWARD", "Reward", reward_id, actor_id, applied)
        await self.session.flush()
        return reward

    async def delete_reward(self, reward_id: UUID, actor_id: UUID | str | None = None) -> None:
        """Hard delete; refused once redemptions reference the reward."""
        reward = await self.get_reward(reward_id)
        referenced = await self.session.scalar(
            select(RedemptionRequest.request_id)
            .where(RedemptionRequest.reward_id == reward_id)
            .limit(1)
        ) or await self.session.scalar(
            select(LedgerTransaction.transaction_id)
            .where(LedgerTransaction.reward_id == reward_id)
            .limit(1)
        )
        if referenced is not None:
            raise EntityInUseError(f"Reward {reward.name} has redemptions; deactivate instead")
        name = reward.name
        await self.session.delete(reward)
        self.audit.record("DELETE_REWARD", "Reward", reward_id, actor_id, {"name": name})
        await self.session.flush()
        logger.info("reward %s deleted", name)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self, *, include_inactive: bool = False) -> list[RewardCategory]:
        query = select(RewardCategory)
        if not include_inactive:
            query = query.where(RewardCategory.is_active.is_(True))
        result = await self.session.execute(query.order_by(RewardCategory.name))
        return list(result.scalars().all())

    async def create_category(
        self,
        *,
        name: str,
        actor_id: UUID | str | None = None,
        **details: Any,
    ) -> RewardCategory:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name is required")
        if await self._category_name_taken(name):
            raise DuplicateEntityError(f"Category {name} already exists")
        category = RewardCategory(
            name=name,
            created_by=str(actor_id) if actor_id is not None else None,
            **{k: v for k, v in details.items() if k in CATEGORY_FIELDS and v is not None},
        )
        self.session.add(category)
        await self.session.flush()
        self.audit.record("CREATE_CATEGORY", "RewardCategory", category.category_id, actor_id)
        await self.session.flush()
        return category

    async def update_category(
        self,
        category_id: UUID,
        changes: Mapping[str, Any],
        actor_id: UUID | str | None = None,
    ) -> RewardCategory:
        category = await self.session.get(RewardCategory, category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        applied = {
            name: changes[name]
            for name in CATEGORY_FIELDS
            if name in changes and changes[name] is not None
        }
        if "name" in applied:
            applied["name"] = applied["name"].strip()
            if applied["name"] != category.name and await self._category_name_taken(applied["name"]):
                raise DuplicateEntityError(f"Category {applied['name']} already exists")
        for name, value in applied.items():
            setattr(category, name, value)
        if applied:
            self.audit.record("UPDATE_CATEGORY", "RewardCategory", category_id, actor_id, applied)
        await self.session.flush()
        return category

    async def _category_name_taken(self, name: str) -> bool:
        found = await self.session.scalar(
            select(RewardCategory.category_id).where(
                func.lower(RewardCategory.name) == name.lower()
            )
        )
        return found is not None


def _non_negative(value: object, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be a non-negative integer")
    return value
