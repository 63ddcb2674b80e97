"""Pytest fixtures for kudos engine tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from kudos_engine.models import Base, Employee, Reward, RewardCategory
from kudos_engine.models.enums import EmployeeRole, EmployeeStatus, RewardStatus


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so API requests and the test see the same data."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'kudos.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


class Factory:
    """Insert rows directly, bypassing the services, so counters are explicit."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def employee(
        self,
        code: str,
        *,
        quota: int = 0,
        balance: int = 0,
        role: EmployeeRole = EmployeeRole.STAFF,
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        **profile: Any,
    ) -> Employee:
        employee = Employee(
            employee_code=code,
            fullname=profile.pop("fullname", f"Employee {code}"),
            role=role.value,
            status=status.value,
            quota_remaining=quota,
            points_balance=balance,
            **profile,
        )
        self.session.add(employee)
        await self.session.flush()
        return employee

    async def reward(
        self,
        name: str = "Coffee Mug",
        *,
        cost: int = 50,
        stock: int = 10,
        physical: bool = True,
        status: RewardStatus = RewardStatus.ACTIVE,
        min_level: str | None = None,
    ) -> Reward:
        reward = Reward(
            name=name,
            points_cost=cost,
            stock=stock,
            is_physical=physical,
            status=status.value,
            min_level_required=min_level,
        )
        self.session.add(reward)
        await self.session.flush()
        return reward

    async def category(self, name: str = "Teamwork", *, active: bool = True) -> RewardCategory:
        category = RewardCategory(name=name, is_active=active)
        self.session.add(category)
        await self.session.flush()
        return category


@pytest.fixture
def factory(session) -> Factory:
    return Factory(session)
