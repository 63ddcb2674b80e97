"""Ledger read endpoints."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query

from kudos_engine.api.dependencies import DbSession
from kudos_engine.api.schemas import (
    ErrorResponse,
    HistoryRowResponse,
    TransactionListResponse,
    TransactionResponse,
)
from kudos_engine.models.enums import TransactionType
from kudos_engine.services.ledger_service import LedgerService

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
    employee_id: UUID | None = None,
    type_filter: Annotated[TransactionType | None, Query(alias="type")] = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> TransactionListResponse:
    """List ledger entries, newest first."""
    transactions, total = await LedgerService(db).list_transactions(
        employee_id=employee_id,
        transaction_type=type_filter,
        start=start,
        end=end,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/history", response_model=list[HistoryRowResponse])
async def transaction_history(
    db: DbSession,
    employee_id: UUID | None = None,
    type_filter: Annotated[TransactionType | None, Query(alias="type")] = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[HistoryRowResponse]:
    """Flattened rows with party names, one per credited recipient."""
    rows = await LedgerService(db).history_rows(
        employee_id=employee_id,
        transaction_type=type_filter,
        start=start,
        end=end,
    )
    return [HistoryRowResponse.model_validate(row) for row in rows]


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_transaction(
    db: DbSession,
    transaction_id: Annotated[UUID, Path()],
) -> TransactionResponse:
    transaction = await LedgerService(db).get_transaction(transaction_id)
    return TransactionResponse.model_validate(transaction)
