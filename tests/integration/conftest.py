"""Integration test fixtures: the real app over a per-test SQLite file."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from kudos_engine.api.app import create_app
from kudos_engine.api.dependencies import get_db_session
from kudos_engine.models.enums import EmployeeRole


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app()

    async def override_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def seeded(session, factory):
    """An admin, a giver with quota, a recipient and a stocked reward, committed."""
    admin = await factory.employee("ADM", role=EmployeeRole.ADMIN, fullname="Ada Admin")
    giver = await factory.employee("A", quota=100, department="Ops", fullname="Alice")
    recipient = await factory.employee("B", balance=50, department="Ops", fullname="Bob")
    reward = await factory.reward("Hoodie", cost=50, stock=1)
    await session.commit()
    return {"admin": admin, "giver": giver, "recipient": recipient, "reward": reward}
