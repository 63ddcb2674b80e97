"""Tests for the employee directory, reward catalog and news."""

from uuid import uuid4

import pytest

from kudos_engine.models.enums import EmployeeRole, NewsStatus, RewardStatus
from kudos_engine.services.catalog_service import CatalogService
from kudos_engine.services.employee_service import EmployeeService
from kudos_engine.services.errors import (
    DuplicateEntityError,
    EmployeeNotFoundError,
    EntityInUseError,
    InvalidStateTransitionError,
    NewsNotFoundError,
    RewardNotFoundError,
    ValidationError,
)
from kudos_engine.services.ledger_service import LedgerService
from kudos_engine.services.news_service import NewsService
from kudos_engine.services.quota_service import DEFAULT_QUOTAS

pytestmark = pytest.mark.asyncio


class TestEmployees:
    async def test_create_defaults_quota_to_role_allowance(self, session):
        employee = await EmployeeService(session).create(
            employee_code="E100",
            fullname="Dana Lee",
            role="MiddleManagement",
            department="Ops",
            unknown_field="ignored",
        )
        assert employee.quota_remaining == DEFAULT_QUOTAS["MiddleManagement"]
        assert employee.points_balance == 0
        assert employee.status == "active"
        assert employee.department == "Ops"

    async def test_duplicate_code_is_case_insensitive(self, session, factory):
        await factory.employee("E100")
        with pytest.raises(DuplicateEntityError):
            await EmployeeService(session).create(employee_code="e100", fullname="Someone")

    async def test_create_validates_input(self, session):
        service = EmployeeService(session)
        with pytest.raises(ValidationError):
            await service.create(employee_code=" ", fullname="No Code")
        with pytest.raises(ValidationError):
            await service.create(employee_code="E1", fullname="X", role="Intern")
        with pytest.raises(ValidationError):
            await service.create(employee_code="E1", fullname="X", points_balance=-1)

    async def test_lookup_trims_and_ignores_case(self, session, factory):
        employee = await factory.employee("E0042")
        found = await EmployeeService(session).lookup("  e0042 ")
        assert found.employee_id == employee.employee_id

        with pytest.raises(EmployeeNotFoundError):
            await EmployeeService(session).lookup("E9999")

    async def test_search(self, session, factory):
        await factory.employee("E1", fullname="Alice Ng", department="Ops")
        await factory.employee("E2", fullname="Bob Alison", department="Sales")
        await factory.employee("E3", fullname="Carl", role=EmployeeRole.EXECUTIVE)
        service = EmployeeService(session)

        items, total = await service.search(query="ali")
        assert total == 2
        assert [e.employee_code for e in items] == ["E1", "E2"]
        _, total = await service.search(department="Ops")
        assert total == 1
        _, total = await service.search(role="Executive")
        assert total == 1

    async def test_update_ignores_counters(self, session, factory):
        employee = await factory.employee("E1", quota=10, balance=5)
        updated = await EmployeeService(session).update(
            employee.employee_id,
            {"fullname": "New Name", "status": "inactive", "points_balance": 9999},
        )
        assert updated.fullname == "New Name"
        assert updated.status == "inactive"
        assert updated.points_balance == 5

    async def test_update_to_taken_code(self, session, factory):
        await factory.employee("E1")
        other = await factory.employee("E2")
        with pytest.raises(DuplicateEntityError):
            await EmployeeService(session).update(other.employee_id, {"employee_code": "E1"})

    async def test_delete_without_history(self, session, factory):
        employee = await factory.employee("E1")
        service = EmployeeService(session)
        await service.delete(employee.employee_id)
        with pytest.raises(EmployeeNotFoundError):
            await service.get(employee.employee_id)

    async def test_delete_with_history_refused(self, session, factory):
        giver = await factory.employee("G", quota=50)
        recipient = await factory.employee("R")
        await LedgerService(session).apply_give(
            from_employee_id=giver.employee_id, to_employee_id=recipient.employee_id, amount=5
        )
        with pytest.raises(EntityInUseError):
            await EmployeeService(session).delete(recipient.employee_id)

    async def test_import_rows(self, session, factory):
        await factory.employee("E1")
        result = await EmployeeService(session).import_rows(
            [
                {"employee_code": "E1", "fullname": "Existing"},
                {"employee_code": "E2", "fullname": "New Person", "role": "Staff"},
                {"employee_code": "e2", "fullname": "Repeat"},
                {"employee_code": "", "fullname": "No Code"},
                {"employee_code": "E3", "fullname": "Bad Role", "role": "Intern"},
            ]
        )
        assert [e.employee_code for e in result.created] == ["E2"]
        assert result.skipped == ["E1", "e2"]
        assert len(result.errors) == 2

    async def test_level(self, session, factory):
        giver = await factory.employee("G", quota=1000)
        recipient = await factory.employee("R")
        await LedgerService(session).apply_give(
            from_employee_id=giver.employee_id, to_employee_id=recipient.employee_id, amount=600
        )
        progress = await EmployeeService(session).level(recipient.employee_id)
        assert progress.current.name == "Achiever"
        assert progress.points == 600


class TestCatalog:
    async def test_create_and_list_rewards(self, session):
        service = CatalogService(session)
        await service.create_reward(name="Mug", points_cost=50, stock=3, category="Merch")
        await service.create_reward(
            name="Voucher", points_cost=20, stock=0, is_physical=False, status="INACTIVE"
        )

        items, total = await service.list_rewards()
        assert total == 2
        assert [r.name for r in items] == ["Voucher", "Mug"]
        items, _ = await service.list_rewards(status=RewardStatus.ACTIVE)
        assert [r.name for r in items] == ["Mug"]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": "", "points_cost": 10},
            {"name": "Free", "points_cost": 0},
            {"name": "Neg", "points_cost": 10, "stock": -1},
            {"name": "Gated", "points_cost": 10, "min_level_required": "LEGEND"},
        ],
    )
    async def test_create_reward_validation(self, session, kwargs):
        with pytest.raises(ValidationError):
            await CatalogService(session).create_reward(**kwargs)

    async def test_restock_is_absolute(self, session, factory):
        reward = await factory.reward(stock=2)
        updated = await CatalogService(session).update_reward(
            reward.reward_id, {"stock": 25, "min_level_required": "ACHIEVER"}
        )
        assert updated.stock == 25
        assert updated.min_level_required == "ACHIEVER"

    async def test_delete_redeemed_reward_refused(self, session, factory):
        reward = await factory.reward(cost=10)
        employee = await factory.employee("E", balance=10)
        await LedgerService(session).apply_redeem(
            employee_id=employee.employee_id, reward_id=reward.reward_id
        )
        with pytest.raises(EntityInUseError):
            await CatalogService(session).delete_reward(reward.reward_id)

    async def test_delete_unused_reward(self, session, factory):
        reward = await factory.reward()
        service = CatalogService(session)
        await service.delete_reward(reward.reward_id)
        with pytest.raises(RewardNotFoundError):
            await service.get_reward(reward.reward_id)

    async def test_categories(self, session, factory):
        await factory.category("Retired", active=False)
        service = CatalogService(session)
        teamwork = await service.create_category(name="Teamwork", color="#123456")

        with pytest.raises(DuplicateEntityError):
            await service.create_category(name="teamwork")

        assert [c.name for c in await service.list_categories()] == ["Teamwork"]
        assert len(await service.list_categories(include_inactive=True)) == 2

        updated = await service.update_category(teamwork.category_id, {"is_active": False})
        assert updated.is_active is False
        assert await service.list_categories() == []


class TestNews:
    async def test_publish_lifecycle(self, session):
        service = NewsService(session)
        news = await service.create(title="Q3 winners", content="Congrats to all")
        assert news.status == NewsStatus.DRAFT.value

        with pytest.raises(NewsNotFoundError):
            await service.get(news.news_id, published_only=True)
        _, total = await service.list()
        assert total == 0

        await service.publish(news.news_id)
        assert news.published_at is not None
        with pytest.raises(InvalidStateTransitionError):
            await service.publish(news.news_id)
        _, total = await service.list()
        assert total == 1

        await service.unpublish(news.news_id)
        assert news.status == NewsStatus.DRAFT.value
        assert news.published_at is None
        with pytest.raises(InvalidStateTransitionError):
            await service.unpublish(news.news_id)

    async def test_create_requires_title_and_content(self, session):
        with pytest.raises(ValidationError):
            await NewsService(session).create(title=" ", content="x")

    async def test_update_and_delete(self, session):
        service = NewsService(session)
        news = await service.create(title="Old", content="Body")
        await service.update(news.news_id, {"title": "New", "description": "Short"})
        assert news.title == "New"

        await service.delete(news.news_id)
        with pytest.raises(NewsNotFoundError):
            await service.get(news.news_id)

    async def test_unknown_news(self, session):
        with pytest.raises(NewsNotFoundError):
            await NewsService(session).publish(uuid4())
