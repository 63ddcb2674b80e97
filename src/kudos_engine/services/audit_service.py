"""Audit trail recorded in the same transaction as the action it describes."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_engine.models import AuditEvent


class AuditService:
    """Append and query audit events."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: UUID | str,
        actor_id: UUID | str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditEvent:
        """Stage an audit event; it is flushed with the surrounding unit of work."""
        event = AuditEvent(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_id=str(actor_id) if actor_id is not None else None,
            details=_jsonable(details) if details else None,
        )
        self.session.add(event)
        return event

    async def list_events(
        self,
        *,
        action: str | None = None,
        entity_type: str | None = None,
        entity_id: str | None = None,
        actor_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AuditEvent], int]:
        """Newest first, with total count for pagination."""
        query = select(AuditEvent)
        if action:
            query = query.where(AuditEvent.action == action)
        if entity_type:
            query = query.where(AuditEvent.entity_type == entity_type)
        if entity_id:
            query = query.where(AuditEvent.entity_id == entity_id)
        if actor_id:
            query = query.where(AuditEvent.actor_id == actor_id)
        if start:
            query = query.where(AuditEvent.created_at >= start)
        if end:
            query = query.where(AuditEvent.created_at <= end)

        total = await self.session.scalar(select(func.count()).select_from(query.subquery())) or 0
        result = await self.session.execute(
            query.order_by(AuditEvent.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total


def _jsonable(details: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in details.items():
        if isinstance(value, (UUID, datetime)):
            out[key] = str(value)
        elif hasattr(value, "value"):
            out[key] = value.value
        else:
            out[key] = value
    return out
