"""Employee API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from kudos_engine.api.dependencies import Actor, AdminActor, DbSession
from kudos_engine.api.schemas import (
    EmployeeCreate,
    EmployeeImportRequest,
    EmployeeImportResponse,
    EmployeeListResponse,
    EmployeeResponse,
    EmployeeUpdate,
    ErrorResponse,
    LevelResponse,
)
from kudos_engine.models.enums import EmployeeRole, EmployeeStatus, GroupType
from kudos_engine.services.employee_service import EmployeeService
from kudos_engine.services.ledger_service import LedgerService

router = APIRouter(prefix="/employees", tags=["employees"])


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_employee(
    db: DbSession,
    admin: AdminActor,
    payload: EmployeeCreate,
) -> EmployeeResponse:
    """Create an employee; quota defaults to the role allowance."""
    employee = await EmployeeService(db).create(
        **payload.model_dump(), actor_id=admin.employee_id
    )
    await db.commit()
    return EmployeeResponse.model_validate(employee)


@router.get("", response_model=EmployeeListResponse)
async def list_employees(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
    q: str | None = None,
    role: EmployeeRole | None = None,
    status_filter: Annotated[EmployeeStatus | None, Query(alias="status")] = None,
    department: str | None = None,
    business_unit: str | None = None,
    branch: str | None = None,
) -> EmployeeListResponse:
    """Search employees by code, name or email, with optional org filters."""
    employees, total = await EmployeeService(db).search(
        query=q,
        role=role,
        status=status_filter,
        department=department,
        business_unit=business_unit,
        branch=branch,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return EmployeeListResponse(
        items=[EmployeeResponse.model_validate(e) for e in employees],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/lookup",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def lookup_employee(
    db: DbSession,
    code: Annotated[str, Query(min_length=1)],
) -> EmployeeResponse:
    """Resolve an employee code, as used at sign-in and for QR gives."""
    employee = await EmployeeService(db).lookup(code)
    return EmployeeResponse.model_validate(employee)


@router.get(
    "/group",
    response_model=list[EmployeeResponse],
)
async def list_group_members(
    db: DbSession,
    actor: Actor,
    group_type: GroupType,
    group_value: Annotated[str, Query(min_length=1)],
) -> list[EmployeeResponse]:
    """Who would receive a group give from the caller."""
    members = await LedgerService(db).eligible_group_members(
        from_employee_id=actor.employee_id, group_type=group_type, group_value=group_value
    )
    return [EmployeeResponse.model_validate(m) for m in members]


@router.post(
    "/import",
    response_model=EmployeeImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def import_employees(
    db: DbSession,
    admin: AdminActor,
    payload: EmployeeImportRequest,
) -> EmployeeImportResponse:
    """Bulk-create employees; existing codes are skipped."""
    result = await EmployeeService(db).import_rows(payload.rows, actor_id=admin.employee_id)
    await db.commit()
    return EmployeeImportResponse(
        created=[EmployeeResponse.model_validate(e) for e in result.created],
        skipped=result.skipped,
        errors=result.errors,
    )


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_employee(
    db: DbSession,
    employee_id: Annotated[UUID, Path()],
) -> EmployeeResponse:
    employee = await EmployeeService(db).get(employee_id)
    return EmployeeResponse.model_validate(employee)


@router.put(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_employee(
    db: DbSession,
    admin: AdminActor,
    employee_id: Annotated[UUID, Path()],
    payload: EmployeeUpdate,
) -> EmployeeResponse:
    employee = await EmployeeService(db).update(
        employee_id, payload.model_dump(exclude_unset=True), actor_id=admin.employee_id
    )
    await db.commit()
    return EmployeeResponse.model_validate(employee)


@router.delete(
    "/{employee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_employee(
    db: DbSession,
    admin: AdminActor,
    employee_id: Annotated[UUID, Path()],
) -> Response:
    """Delete an employee with no history. Deactivate everyone else."""
    await EmployeeService(db).delete(employee_id, actor_id=admin.employee_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{employee_id}/level",
    response_model=LevelResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_employee_level(
    db: DbSession,
    employee_id: Annotated[UUID, Path()],
) -> LevelResponse:
    """Recognition level from lifetime points received."""
    progress = await EmployeeService(db).level(employee_id)
    return LevelResponse(
        level=progress.current.level,
        name=progress.current.name,
        points=progress.points,
        next_level=progress.next.level if progress.next else None,
        points_to_next=progress.points_to_next,
        progress_percent=progress.progress_percent,
        is_max_level=progress.is_max_level,
    )
