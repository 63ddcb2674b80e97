"""Role allowance and quota distribution endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from kudos_engine.api.dependencies import AdminActor, DbSession
from kudos_engine.api.schemas import (
    AllowanceResponse,
    AllowanceUpdate,
    ChangeLogResponse,
    DistributeRequest,
    DistributionListResponse,
    DistributionResponse,
    ErrorResponse,
    ResetRequest,
    ResetResponse,
)
from kudos_engine.models.enums import EmployeeRole
from kudos_engine.services.quota_service import QuotaService

router = APIRouter(prefix="/quotas", tags=["quotas"])


@router.get("", response_model=list[AllowanceResponse])
async def list_allowances(db: DbSession, admin: AdminActor) -> list[AllowanceResponse]:
    """Per-role default quota with current employee counts."""
    summaries = await QuotaService(db).list_allowances()
    # Missing roles are created on first listing
    await db.commit()
    return [AllowanceResponse.model_validate(s) for s in summaries]


@router.put(
    "/{role}",
    response_model=AllowanceResponse,
    responses={422: {"model": ErrorResponse}},
)
async def set_role_quota(
    db: DbSession,
    admin: AdminActor,
    role: Annotated[EmployeeRole, Path()],
    payload: AllowanceUpdate,
) -> AllowanceResponse:
    allowance = await QuotaService(db).set_role_quota(
        role, payload.default_quota, admin.employee_id
    )
    await db.commit()
    return AllowanceResponse(role=allowance.role, default_quota=allowance.default_quota)


@router.post(
    "/distribute",
    response_model=DistributionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def distribute_quota(
    db: DbSession,
    admin: AdminActor,
    payload: DistributeRequest,
) -> DistributionResponse:
    """Add or deduct quota for every active employee of a role."""
    distribution = await QuotaService(db).adjust_quota(
        payload.role, payload.amount, admin.employee_id, payload.note
    )
    await db.commit()
    return DistributionResponse.model_validate(distribution)


@router.post("/reset", response_model=ResetResponse)
async def reset_quotas(
    db: DbSession,
    admin: AdminActor,
    payload: ResetRequest | None = None,
) -> ResetResponse:
    """Start a new period: quotas go back to the role allowance."""
    count = await QuotaService(db).reset_period(
        admin.employee_id, payload.role if payload else None
    )
    await db.commit()
    return ResetResponse(employees_reset=count)


@router.get("/distributions", response_model=DistributionListResponse)
async def list_distributions(
    db: DbSession,
    admin: AdminActor,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
    role: EmployeeRole | None = None,
) -> DistributionListResponse:
    distributions, total = await QuotaService(db).list_distributions(
        role=role, limit=page_size, offset=(page - 1) * page_size
    )
    return DistributionListResponse(
        items=[DistributionResponse.model_validate(d) for d in distributions],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/distributions/{distribution_id}/logs",
    response_model=list[ChangeLogResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_change_logs(
    db: DbSession,
    admin: AdminActor,
    distribution_id: Annotated[UUID, Path()],
) -> list[ChangeLogResponse]:
    """Per-employee before/after for one distribution."""
    logs = await QuotaService(db).get_change_logs(distribution_id)
    return [ChangeLogResponse.model_validate(log) for log in logs]
