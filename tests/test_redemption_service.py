"""Tests for the redemption request workflow."""

import pytest
from sqlalchemy import select

from kudos_engine.models import AuditEvent, LedgerTransaction
from kudos_engine.models.enums import (
    EmployeeRole,
    RedemptionStatus,
    ShippingStatus,
    TransactionSource,
)
from kudos_engine.services.errors import (
    InvalidStateTransitionError,
    PermissionDeniedError,
    RedemptionNotFoundError,
    ValidationError,
)
from kudos_engine.services.redemption_service import RedemptionService

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def admin(factory):
    return await factory.employee("ADM", role=EmployeeRole.ADMIN)


async def redeem(session, employee, reward, **kwargs):
    return await RedemptionService(session).redeem(
        employee_id=employee.employee_id, reward_id=reward.reward_id, **kwargs
    )


async def delivery_request(session, factory):
    reward = await factory.reward("Headphones", cost=100, stock=2)
    employee = await factory.employee("C", balance=300)
    request = await redeem(
        session,
        employee,
        reward,
        shipping_type="DELIVERY",
        shipping_address="1 Main St",
        contact_phone="555-0100",
    )
    return employee, reward, request


class TestDecision:
    """PENDING -> APPROVED | REJECTED | CANCELLED."""

    async def test_reject_restores_points_and_stock(self, session, factory, admin):
        reward = await factory.reward(cost=50, stock=1)
        c = await factory.employee("C", balance=50)
        request = await redeem(session, c, reward)

        rejected = await RedemptionService(session).reject(
            request.request_id, admin.employee_id, reason="Discontinued"
        )

        assert rejected.status == RedemptionStatus.REJECTED.value
        assert rejected.rejection_reason == "Discontinued"
        assert c.points_balance == 50
        assert reward.stock == 1

        reversal = await session.get(LedgerTransaction, rejected.reversal_transaction_id)
        assert reversal.source == TransactionSource.REVERSAL.value
        assert reversal.reverses_transaction_id == request.transaction_id

    async def test_approve_keeps_points_taken(self, session, factory, admin):
        reward = await factory.reward(cost=50, stock=2)
        c = await factory.employee("C", balance=80)
        request = await redeem(session, c, reward)

        approved = await RedemptionService(session).approve(request.request_id, admin.employee_id)

        assert approved.status == RedemptionStatus.APPROVED.value
        assert approved.shipping_status == ShippingStatus.PENDING.value
        assert approved.decided_by == str(admin.employee_id)
        assert approved.decided_at is not None
        assert c.points_balance == 30
        assert reward.stock == 1

    async def test_digital_approval_needs_code(self, session, factory, admin):
        reward = await factory.reward("Gift Card", cost=10, physical=False)
        c = await factory.employee("C", balance=10)
        request = await redeem(session, c, reward)
        service = RedemptionService(session)

        with pytest.raises(ValidationError):
            await service.approve(request.request_id, admin.employee_id)
        assert request.status == RedemptionStatus.PENDING.value

        approved = await service.approve(request.request_id, admin.employee_id, "ABC-123")
        assert approved.digital_code == "ABC-123"
        assert approved.shipping_status == ShippingStatus.NOT_REQUIRED.value

    async def test_cancel_by_redeemer(self, session, factory):
        reward = await factory.reward(cost=20, stock=5)
        c = await factory.employee("C", balance=20)
        request = await redeem(session, c, reward)

        cancelled = await RedemptionService(session).cancel(request.request_id, c.employee_id)

        assert cancelled.status == RedemptionStatus.CANCELLED.value
        assert c.points_balance == 20
        assert reward.stock == 5

    async def test_cancel_by_someone_else_denied(self, session, factory):
        reward = await factory.reward(cost=20)
        c = await factory.employee("C", balance=20)
        other = await factory.employee("D")
        request = await redeem(session, c, reward)

        with pytest.raises(PermissionDeniedError):
            await RedemptionService(session).cancel(request.request_id, other.employee_id)
        assert request.status == RedemptionStatus.PENDING.value
        assert c.points_balance == 0

    async def test_decided_request_is_terminal(self, session, factory, admin):
        """A rejected request can be neither approved nor rejected again."""
        reward = await factory.reward(cost=50, stock=1)
        c = await factory.employee("C", balance=50)
        request = await redeem(session, c, reward)
        service = RedemptionService(session)
        await service.reject(request.request_id, admin.employee_id)

        with pytest.raises(InvalidStateTransitionError):
            await service.approve(request.request_id, admin.employee_id)
        with pytest.raises(InvalidStateTransitionError):
            await service.reject(request.request_id, admin.employee_id)

        assert request.status == RedemptionStatus.REJECTED.value
        assert c.points_balance == 50
        assert reward.stock == 1

    async def test_unknown_request(self, session):
        from uuid import uuid4

        with pytest.raises(RedemptionNotFoundError):
            await RedemptionService(session).approve(uuid4(), "admin")

    async def test_decisions_are_audited(self, session, factory, admin):
        reward = await factory.reward(cost=10)
        c = await factory.employee("C", balance=10)
        request = await redeem(session, c, reward)
        await RedemptionService(session).approve(request.request_id, admin.employee_id)

        result = await session.execute(
            select(AuditEvent.action).where(AuditEvent.entity_id == str(request.request_id))
        )
        assert "APPROVE_REDEEM_REQUEST" in result.scalars().all()


class TestFulfilment:
    """Shipping status moves only for APPROVED physical rewards."""

    async def test_delivery_flow(self, session, factory, admin):
        employee, _, request = await delivery_request(session, factory)
        service = RedemptionService(session)
        await service.approve(request.request_id, admin.employee_id)

        await service.mark_processing(request.request_id, admin.employee_id)
        assert request.shipping_status == ShippingStatus.PROCESSING.value

        await service.mark_shipped(request.request_id, admin.employee_id, "TRK1", carrier="UPS")
        assert request.shipping_status == ShippingStatus.SHIPPED.value
        assert request.tracking_number == "TRK1"
        assert request.shipped_at is not None

        await service.confirm_delivery(request.request_id, employee.employee_id)
        assert request.shipping_status == ShippingStatus.DELIVERED.value
        assert request.delivered_at is not None

    async def test_ship_requires_approval(self, session, factory, admin):
        _, _, request = await delivery_request(session, factory)
        with pytest.raises(InvalidStateTransitionError):
            await RedemptionService(session).mark_shipped(
                request.request_id, admin.employee_id, "TRK1"
            )
        assert request.shipping_status == ShippingStatus.PENDING.value

    async def test_ship_requires_tracking_number(self, session, factory, admin):
        _, _, request = await delivery_request(session, factory)
        service = RedemptionService(session)
        await service.approve(request.request_id, admin.employee_id)

        with pytest.raises(ValidationError):
            await service.mark_shipped(request.request_id, admin.employee_id, " ")
        assert request.shipping_status == ShippingStatus.PENDING.value

    async def test_pickup_uses_ready_for_pickup(self, session, factory, admin):
        reward = await factory.reward(cost=10)
        c = await factory.employee("C", balance=10)
        request = await redeem(session, c, reward)
        service = RedemptionService(session)
        await service.approve(request.request_id, admin.employee_id)

        with pytest.raises(InvalidStateTransitionError):
            await service.mark_shipped(request.request_id, admin.employee_id, "TRK1")

        await service.mark_ready_for_pickup(request.request_id, admin.employee_id)
        assert request.shipping_status == ShippingStatus.SHIPPED.value

    async def test_delivery_cannot_be_marked_ready_for_pickup(self, session, factory, admin):
        _, _, request = await delivery_request(session, factory)
        service = RedemptionService(session)
        await service.approve(request.request_id, admin.employee_id)

        with pytest.raises(InvalidStateTransitionError):
            await service.mark_ready_for_pickup(request.request_id, admin.employee_id)

    async def test_digital_is_never_shipped(self, session, factory, admin):
        reward = await factory.reward("Gift Card", cost=10, physical=False)
        c = await factory.employee("C", balance=10)
        request = await redeem(session, c, reward)
        service = RedemptionService(session)
        await service.approve(request.request_id, admin.employee_id, "CODE")

        with pytest.raises(InvalidStateTransitionError):
            await service.mark_processing(request.request_id, admin.employee_id)
        assert request.shipping_status == ShippingStatus.NOT_REQUIRED.value

    async def test_confirm_delivery_by_stranger_denied(self, session, factory, admin):
        _, _, request = await delivery_request(session, factory)
        stranger = await factory.employee("S")
        service = RedemptionService(session)
        await service.approve(request.request_id, admin.employee_id)
        await service.mark_shipped(request.request_id, admin.employee_id, "TRK1")

        with pytest.raises(PermissionDeniedError):
            await service.confirm_delivery(request.request_id, stranger.employee_id)

        await service.confirm_delivery(request.request_id, admin.employee_id)
        assert request.shipping_status == ShippingStatus.DELIVERED.value

    async def test_return_refunds(self, session, factory, admin):
        employee, reward, request = await delivery_request(session, factory)
        service = RedemptionService(session)
        await service.approve(request.request_id, admin.employee_id)
        await service.mark_shipped(request.request_id, admin.employee_id, "TRK1")
        await service.confirm_delivery(request.request_id, employee.employee_id)

        with pytest.raises(ValidationError):
            await service.mark_returned(request.request_id, admin.employee_id, "")

        returned = await service.mark_returned(request.request_id, admin.employee_id, "Damaged")

        assert returned.shipping_status == ShippingStatus.RETURNED.value
        assert returned.return_reason == "Damaged"
        assert returned.reversal_transaction_id is not None
        assert employee.points_balance == 300
        assert reward.stock == 2

    async def test_returned_is_terminal(self, session, factory, admin):
        employee, _, request = await delivery_request(session, factory)
        service = RedemptionService(session)
        await service.approve(request.request_id, admin.employee_id)
        await service.mark_shipped(request.request_id, admin.employee_id, "TRK1")
        await service.mark_returned(request.request_id, admin.employee_id, "Refused")

        with pytest.raises(InvalidStateTransitionError):
            await service.mark_returned(request.request_id, admin.employee_id, "Again")
        with pytest.raises(InvalidStateTransitionError):
            await service.confirm_delivery(request.request_id, employee.employee_id)
        assert employee.points_balance == 300


class TestListing:
    async def test_filters(self, session, factory, admin):
        reward = await factory.reward(cost=10, stock=10)
        c = await factory.employee("C", balance=100)
        d = await factory.employee("D", balance=100)
        first = await redeem(session, c, reward)
        await redeem(session, c, reward)
        await redeem(session, d, reward)
        service = RedemptionService(session)
        await service.approve(first.request_id, admin.employee_id)

        _, total = await service.list_requests()
        assert total == 3
        items, total = await service.list_requests(employee_id=c.employee_id)
        assert total == 2
        assert all(r.employee_id == c.employee_id for r in items)
        items, total = await service.list_requests(status="APPROVED")
        assert [r.request_id for r in items] == [first.request_id]

        with pytest.raises(ValidationError):
            await service.list_requests(status="SHIPPED")
