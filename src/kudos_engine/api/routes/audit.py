"""Audit log endpoint."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query

from kudos_engine.api.dependencies import AdminActor, DbSession
from kudos_engine.api.schemas import AuditEventListResponse, AuditEventResponse
from kudos_engine.services.audit_service import AuditService

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("", response_model=AuditEventListResponse)
async def list_audit_events(
    db: DbSession,
    admin: AdminActor,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 50,
    action: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    actor_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> AuditEventListResponse:
    """Audit trail, newest first."""
    events, total = await AuditService(db).list_events(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_id=actor_id,
        start=start,
        end=end,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return AuditEventListResponse(
        items=[AuditEventResponse.model_validate(e) for e in events],
        total=total,
        page=page,
        page_size=page_size,
    )
