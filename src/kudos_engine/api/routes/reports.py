"""Reporting endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query

from kudos_engine.api.dependencies import AdminActor, DbSession
from kudos_engine.api.schemas import (
    CatalogReportResponse,
    DashboardResponse,
    EmployeePointsResponse,
    LeaderboardEntryResponse,
)
from kudos_engine.services.report_service import LeaderboardKind, ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    db: DbSession,
    admin: AdminActor,
    start: datetime | None = None,
    end: datetime | None = None,
) -> DashboardResponse:
    """KPI totals and per-department activity for a period."""
    stats = await ReportService(db).dashboard(start, end)
    return DashboardResponse.model_validate(stats)


@router.get("/leaderboard", response_model=list[LeaderboardEntryResponse])
async def leaderboard(
    db: DbSession,
    kind: LeaderboardKind = LeaderboardKind.RECEIVERS,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[LeaderboardEntryResponse]:
    entries = await ReportService(db).leaderboard(kind, start, end, limit)
    return [LeaderboardEntryResponse.model_validate(e) for e in entries]


@router.get("/employee-points", response_model=list[EmployeePointsResponse])
async def employee_points(
    db: DbSession,
    admin: AdminActor,
    start: datetime | None = None,
    end: datetime | None = None,
    include_inactive: bool = False,
) -> list[EmployeePointsResponse]:
    rows = await ReportService(db).employee_points_report(
        start, end, include_inactive=include_inactive
    )
    return [EmployeePointsResponse.model_validate(r) for r in rows]


@router.get("/catalog", response_model=list[CatalogReportResponse])
async def catalog(
    db: DbSession,
    admin: AdminActor,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[CatalogReportResponse]:
    rows = await ReportService(db).catalog_report(start, end)
    return [CatalogReportResponse.model_validate(r) for r in rows]
