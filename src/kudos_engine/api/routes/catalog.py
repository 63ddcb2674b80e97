"""Reward catalog and category endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from kudos_engine.api.dependencies import AdminActor, DbSession
from kudos_engine.api.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ErrorResponse,
    RewardCreate,
    RewardListResponse,
    RewardResponse,
    RewardUpdate,
)
from kudos_engine.models.enums import RewardStatus
from kudos_engine.services.catalog_service import CatalogService

router = APIRouter(tags=["catalog"])


# ============================================================================
# Rewards
# ============================================================================


@router.post(
    "/rewards",
    response_model=RewardResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reward(
    db: DbSession,
    admin: AdminActor,
    payload: RewardCreate,
) -> RewardResponse:
    reward = await CatalogService(db).create_reward(
        **payload.model_dump(), actor_id=admin.employee_id
    )
    await db.commit()
    return RewardResponse.model_validate(reward)


@router.get("/rewards", response_model=RewardListResponse)
async def list_rewards(
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[RewardStatus | None, Query(alias="status")] = None,
    category: str | None = None,
) -> RewardListResponse:
    rewards, total = await CatalogService(db).list_rewards(
        status=status_filter,
        category=category,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return RewardListResponse(
        items=[RewardResponse.model_validate(r) for r in rewards],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/rewards/{reward_id}",
    response_model=RewardResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_reward(
    db: DbSession,
    reward_id: Annotated[UUID, Path()],
) -> RewardResponse:
    reward = await CatalogService(db).get_reward(reward_id)
    return RewardResponse.model_validate(reward)


@router.put(
    "/rewards/{reward_id}",
    response_model=RewardResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_reward(
    db: DbSession,
    admin: AdminActor,
    reward_id: Annotated[UUID, Path()],
    payload: RewardUpdate,
) -> RewardResponse:
    reward = await CatalogService(db).update_reward(
        reward_id, payload.model_dump(exclude_unset=True), actor_id=admin.employee_id
    )
    await db.commit()
    return RewardResponse.model_validate(reward)


@router.delete(
    "/rewards/{reward_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_reward(
    db: DbSession,
    admin: AdminActor,
    reward_id: Annotated[UUID, Path()],
) -> Response:
    """Delete a reward nobody has redeemed. Deactivate the others."""
    await CatalogService(db).delete_reward(reward_id, actor_id=admin.employee_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Categories
# ============================================================================


@router.post(
    "/reward-categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_category(
    db: DbSession,
    admin: AdminActor,
    payload: CategoryCreate,
) -> CategoryResponse:
    category = await CatalogService(db).create_category(
        **payload.model_dump(), actor_id=admin.employee_id
    )
    await db.commit()
    return CategoryResponse.model_validate(category)


@router.get("/reward-categories", response_model=list[CategoryResponse])
async def list_categories(
    db: DbSession,
    include_inactive: bool = False,
) -> list[CategoryResponse]:
    categories = await CatalogService(db).list_categories(include_inactive=include_inactive)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.put(
    "/reward-categories/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_category(
    db: DbSession,
    admin: AdminActor,
    category_id: Annotated[UUID, Path()],
    payload: CategoryUpdate,
) -> CategoryResponse:
    category = await CatalogService(db).update_category(
        category_id, payload.model_dump(exclude_unset=True), actor_id=admin.employee_id
    )
    await db.commit()
    return CategoryResponse.model_validate(category)
