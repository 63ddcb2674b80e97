"""Point movement endpoints: give, group give, admin adjustment."""

from fastapi import APIRouter, status

from kudos_engine.api.dependencies import Actor, AdminActor, DbSession
from kudos_engine.api.schemas import (
    AdjustmentRequest,
    ErrorResponse,
    GiveRequest,
    GroupGiveRequest,
    TransactionResponse,
)
from kudos_engine.services.errors import ValidationError
from kudos_engine.services.ledger_service import Allocation, LedgerService

router = APIRouter(prefix="/points", tags=["points"])

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.post(
    "/give",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def give_points(
    db: DbSession,
    actor: Actor,
    payload: GiveRequest,
) -> TransactionResponse:
    """Give points from the caller's quota to a colleague."""
    transaction = await LedgerService(db).apply_give(
        from_employee_id=actor.employee_id,
        to_employee_id=payload.to_employee_id,
        amount=payload.amount,
        category_id=payload.category_id,
        message=payload.message,
        source=payload.source,
    )
    await db.commit()
    return TransactionResponse.model_validate(transaction)


@router.post(
    "/give/group",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def give_points_group(
    db: DbSession,
    actor: Actor,
    payload: GroupGiveRequest,
) -> TransactionResponse:
    """Give to several colleagues at once; all recipients are credited or none."""
    ledger = LedgerService(db)
    if payload.allocations:
        allocations = [Allocation(a.employee_id, a.amount) for a in payload.allocations]
    elif payload.group_type and payload.group_value and payload.points_per_member:
        allocations = await ledger.resolve_group_allocations(
            from_employee_id=actor.employee_id,
            group_type=payload.group_type,
            group_value=payload.group_value,
            points_per_member=payload.points_per_member,
        )
    else:
        raise ValidationError(
            "Provide allocations, or group_type, group_value and points_per_member"
        )

    transaction = await ledger.apply_group_give(
        from_employee_id=actor.employee_id,
        allocations=allocations,
        category_id=payload.category_id,
        message=payload.message,
        group_type=payload.group_type,
        group_value=payload.group_value,
    )
    await db.commit()
    return TransactionResponse.model_validate(transaction)


@router.post(
    "/adjust",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ERRORS,
)
async def adjust_points(
    db: DbSession,
    admin: AdminActor,
    payload: AdjustmentRequest,
) -> TransactionResponse:
    """Manual correction of an employee's points balance."""
    transaction = await LedgerService(db).apply_adjustment(
        employee_id=payload.employee_id,
        amount=payload.amount,
        admin_id=admin.employee_id,
        reason=payload.reason,
    )
    await db.commit()
    return TransactionResponse.model_validate(transaction)
