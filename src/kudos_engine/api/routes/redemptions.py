"""Redemption request endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from kudos_engine.api.dependencies import Actor, AdminActor, DbSession
from kudos_engine.api.schemas import (
    ApproveRequest,
    ErrorResponse,
    ReasonRequest,
    RedeemRequest,
    RedemptionListResponse,
    RedemptionResponse,
    ReturnRequest,
    ShipRequest,
)
from kudos_engine.models import Employee
from kudos_engine.models.enums import EmployeeRole, RedemptionStatus, ShippingStatus
from kudos_engine.services.errors import PermissionDeniedError
from kudos_engine.services.redemption_service import RedemptionService

router = APIRouter(prefix="/redemptions", tags=["redemptions"])

_TRANSITION_ERRORS = {
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


# ============================================================================
# Request creation and listing
# ============================================================================


@router.post(
    "",
    response_model=RedemptionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_redemption(
    db: DbSession,
    actor: Actor,
    payload: RedeemRequest,
) -> RedemptionResponse:
    """Redeem a reward. Points and stock are reserved until the request is decided."""
    request = await RedemptionService(db).redeem(
        employee_id=actor.employee_id,
        reward_id=payload.reward_id,
        shipping_type=payload.shipping_type,
        shipping_address=payload.shipping_address,
        contact_phone=payload.contact_phone,
        note=payload.note,
    )
    await db.commit()
    return RedemptionResponse.model_validate(request)


def _is_admin(actor: Employee) -> bool:
    return actor.role == EmployeeRole.ADMIN.value


@router.get("", response_model=RedemptionListResponse)
async def list_redemptions(
    db: DbSession,
    actor: Actor,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
    employee_id: UUID | None = None,
    status_filter: Annotated[RedemptionStatus | None, Query(alias="status")] = None,
    shipping_status: ShippingStatus | None = None,
) -> RedemptionListResponse:
    """Admins see every request; other employees only their own."""
    if not _is_admin(actor):
        if employee_id is not None and employee_id != actor.employee_id:
            raise PermissionDeniedError("Only administrators can list other employees' requests")
        employee_id = actor.employee_id
    requests, total = await RedemptionService(db).list_requests(
        employee_id=employee_id,
        status=status_filter,
        shipping_status=shipping_status,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return RedemptionListResponse(
        items=[RedemptionResponse.model_validate(r) for r in requests],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{request_id}",
    response_model=RedemptionResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_redemption(
    db: DbSession,
    actor: Actor,
    request_id: Annotated[UUID, Path()],
) -> RedemptionResponse:
    request = await RedemptionService(db).get_request(request_id)
    if not _is_admin(actor) and request.employee_id != actor.employee_id:
        raise PermissionDeniedError("Redemption request belongs to another employee")
    return RedemptionResponse.model_validate(request)


# ============================================================================
# Decision
# ============================================================================


@router.post(
    "/{request_id}/approve",
    response_model=RedemptionResponse,
    responses=_TRANSITION_ERRORS,
)
async def approve_redemption(
    db: DbSession,
    admin: AdminActor,
    request_id: Annotated[UUID, Path()],
    payload: ApproveRequest | None = None,
) -> RedemptionResponse:
    """Approve a pending request; digital rewards need a code."""
    request = await RedemptionService(db).approve(
        request_id, admin.employee_id, payload.digital_code if payload else None
    )
    await db.commit()
    return RedemptionResponse.model_validate(request)


@router.post(
    "/{request_id}/reject",
    response_model=RedemptionResponse,
    responses=_TRANSITION_ERRORS,
)
async def reject_redemption(
    db: DbSession,
    admin: AdminActor,
    request_id: Annotated[UUID, Path()],
    payload: ReasonRequest | None = None,
) -> RedemptionResponse:
    """Reject a pending request and refund its points and stock."""
    request = await RedemptionService(db).reject(
        request_id, admin.employee_id, payload.reason if payload else None
    )
    await db.commit()
    return RedemptionResponse.model_validate(request)


@router.post(
    "/{request_id}/cancel",
    response_model=RedemptionResponse,
    responses=_TRANSITION_ERRORS,
)
async def cancel_redemption(
    db: DbSession,
    actor: Actor,
    request_id: Annotated[UUID, Path()],
) -> RedemptionResponse:
    """Withdraw one's own pending request."""
    request = await RedemptionService(db).cancel(request_id, actor.employee_id)
    await db.commit()
    return RedemptionResponse.model_validate(request)


# ============================================================================
# Fulfilment
# ============================================================================


@router.post(
    "/{request_id}/processing",
    response_model=RedemptionResponse,
    responses=_TRANSITION_ERRORS,
)
async def mark_processing(
    db: DbSession,
    admin: AdminActor,
    request_id: Annotated[UUID, Path()],
) -> RedemptionResponse:
    request = await RedemptionService(db).mark_processing(request_id, admin.employee_id)
    await db.commit()
    return RedemptionResponse.model_validate(request)


@router.post(
    "/{request_id}/ship",
    response_model=RedemptionResponse,
    responses=_TRANSITION_ERRORS,
)
async def mark_shipped(
    db: DbSession,
    admin: AdminActor,
    request_id: Annotated[UUID, Path()],
    payload: ShipRequest,
) -> RedemptionResponse:
    request = await RedemptionService(db).mark_shipped(
        request_id, admin.employee_id, payload.tracking_number, payload.carrier
    )
    await db.commit()
    return RedemptionResponse.model_validate(request)


@router.post(
    "/{request_id}/ready-for-pickup",
    response_model=RedemptionResponse,
    responses=_TRANSITION_ERRORS,
)
async def mark_ready_for_pickup(
    db: DbSession,
    admin: AdminActor,
    request_id: Annotated[UUID, Path()],
) -> RedemptionResponse:
    request = await RedemptionService(db).mark_ready_for_pickup(request_id, admin.employee_id)
    await db.commit()
    return RedemptionResponse.model_validate(request)


@router.post(
    "/{request_id}/confirm-delivery",
    response_model=RedemptionResponse,
    responses=_TRANSITION_ERRORS,
)
async def confirm_delivery(
    db: DbSession,
    actor: Actor,
    request_id: Annotated[UUID, Path()],
) -> RedemptionResponse:
    """Recipient (or an admin) confirms the reward was received."""
    request = await RedemptionService(db).confirm_delivery(request_id, actor.employee_id)
    await db.commit()
    return RedemptionResponse.model_validate(request)


@router.post(
    "/{request_id}/return",
    response_model=RedemptionResponse,
    responses=_TRANSITION_ERRORS,
)
async def mark_returned(
    db: DbSession,
    admin: AdminActor,
    request_id: Annotated[UUID, Path()],
    payload: ReturnRequest,
) -> RedemptionResponse:
    """Take back a shipped or delivered reward and refund its points and stock."""
    request = await RedemptionService(db).mark_returned(
        request_id, admin.employee_id, payload.reason
    )
    await db.commit()
    return RedemptionResponse.model_validate(request)
