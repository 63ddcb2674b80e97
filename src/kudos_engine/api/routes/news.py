"""News endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from kudos_engine.api.dependencies import AdminActor, DbSession
from kudos_engine.api.schemas import (
    ErrorResponse,
    NewsCreate,
    NewsListResponse,
    NewsResponse,
    NewsUpdate,
)
from kudos_engine.services.news_service import NewsService

router = APIRouter(prefix="/news", tags=["news"])


@router.post("", response_model=NewsResponse, status_code=status.HTTP_201_CREATED)
async def create_news(
    db: DbSession,
    admin: AdminActor,
    payload: NewsCreate,
) -> NewsResponse:
    """Create a draft post."""
    news = await NewsService(db).create(**payload.model_dump(), actor_id=admin.employee_id)
    await db.commit()
    return NewsResponse.model_validate(news)


@router.get("", response_model=NewsListResponse)
async def list_news(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
    include_drafts: bool = False,
) -> NewsListResponse:
    news, total = await NewsService(db).list(
        include_drafts=include_drafts, limit=page_size, offset=(page - 1) * page_size
    )
    return NewsListResponse(
        items=[NewsResponse.model_validate(n) for n in news],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{news_id}",
    response_model=NewsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_news(
    db: DbSession,
    news_id: Annotated[UUID, Path()],
) -> NewsResponse:
    news = await NewsService(db).get(news_id)
    return NewsResponse.model_validate(news)


@router.put(
    "/{news_id}",
    response_model=NewsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_news(
    db: DbSession,
    admin: AdminActor,
    news_id: Annotated[UUID, Path()],
    payload: NewsUpdate,
) -> NewsResponse:
    news = await NewsService(db).update(
        news_id, payload.model_dump(exclude_unset=True), actor_id=admin.employee_id
    )
    await db.commit()
    return NewsResponse.model_validate(news)


@router.delete(
    "/{news_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_news(
    db: DbSession,
    admin: AdminActor,
    news_id: Annotated[UUID, Path()],
) -> Response:
    await NewsService(db).delete(news_id, actor_id=admin.employee_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{news_id}/publish",
    response_model=NewsResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def publish_news(
    db: DbSession,
    admin: AdminActor,
    news_id: Annotated[UUID, Path()],
) -> NewsResponse:
    news = await NewsService(db).publish(news_id, actor_id=admin.employee_id)
    await db.commit()
    return NewsResponse.model_validate(news)


@router.post(
    "/{news_id}/unpublish",
    response_model=NewsResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def unpublish_news(
    db: DbSession,
    admin: AdminActor,
    news_id: Annotated[UUID, Path()],
) -> NewsResponse:
    news = await NewsService(db).unpublish(news_id, actor_id=admin.employee_id)
    await db.commit()
    return NewsResponse.model_validate(news)
