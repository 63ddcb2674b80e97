"""Redemption request workflow.

Drives a request through approval and, for physical rewards, through
fulfilment. Rejection, cancellation and return refund through
LedgerService.reverse_ledger_effect so there is a single refund path.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kudos_engine.models import Employee, RedemptionRequest
from kudos_engine.models.base import utcnow
from kudos_engine.models.enums import (
    EmployeeRole,
    RedemptionStatus,
    ShippingStatus,
    ShippingType,
)
from kudos_engine.services.audit_service import AuditService
from kudos_engine.services.errors import (
    EmployeeNotFoundError,
    InvalidStateTransitionError,
    PermissionDeniedError,
    RedemptionNotFoundError,
    ValidationError,
)
from kudos_engine.services.ledger_service import LedgerService, coerce_enum
from kudos_engine.services.state_machine import RedemptionStateMachine

logger = logging.getLogger(__name__)


class RedemptionService:
    """Service for redemption request lifecycle operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.ledger = LedgerService(session)
        self.audit = AuditService(session)

    async def redeem(self, **kwargs) -> RedemptionRequest:
        """Create a request; see LedgerService.apply_redeem for arguments."""
        return await self.ledger.apply_redeem(**kwargs)

    async def get_request(self, request_id: UUID, *, for_update: bool = False) -> RedemptionRequest:
        query = select(RedemptionRequest).where(RedemptionRequest.request_id == request_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        request = result.scalar_one_or_none()
        if request is None:
            raise RedemptionNotFoundError(request_id)
        return request

    async def list_requests(
        self,
        *,
        employee_id: UUID | None = None,
        status: RedemptionStatus | str | None = None,
        shipping_status: ShippingStatus | str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[RedemptionRequest], int]:
        query = select(RedemptionRequest)
        if employee_id:
            query = query.where(RedemptionRequest.employee_id == employee_id)
        if status:
            query = query.where(
                RedemptionRequest.status == coerce_enum(RedemptionStatus, status, "status").value
            )
        if shipping_status:
            query = query.where(
                RedemptionRequest.shipping_status
                == coerce_enum(ShippingStatus, shipping_status, "shipping_status").value
            )

        total = await self.session.scalar(select(func.count()).select_from(query.subquery())) or 0
        result = await self.session.execute(
            query.order_by(RedemptionRequest.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    async def approve(
        self,
        request_id: UUID,
        admin_id: UUID | str,
        digital_code: str | None = None,
    ) -> RedemptionRequest:
        """Approve a PENDING request. Points and stock were already taken."""
        request = await self.get_request(request_id, for_update=True)
        RedemptionStateMachine.validate_transition(request.status, RedemptionStatus.APPROVED)

        if request.shipping_type == ShippingType.DIGITAL.value:
            if not digital_code or not digital_code.strip():
                raise ValidationError("A digital code is required to approve a digital reward")
            request.digital_code = digital_code.strip()
            request.shipping_status = ShippingStatus.NOT_REQUIRED.value
        else:
            request.shipping_status = ShippingStatus.PENDING.value

        request.status = RedemptionStatus.APPROVED.value
        request.decided_by = str(admin_id)
        request.decided_at = utcnow()
        self.audit.record("APPROVE_REDEEM_REQUEST", "RedemptionRequest", request_id, admin_id)
        await self.session.flush()

        logger.info("redemption %s approved by %s", request_id, admin_id)
        return request

    async def reject(
        self,
        request_id: UUID,
        admin_id: UUID | str,
        reason: str | None = None,
    ) -> RedemptionRequest:
        """Reject a PENDING request, refunding its points and stock."""
        request = await self.get_request(request_id, for_update=True)
        RedemptionStateMachine.validate_transition(request.status, RedemptionStatus.REJECTED)

        reversal = await self.ledger.reverse_ledger_effect(
            request.transaction_id, actor_id=admin_id, reason=reason or "Redemption rejected"
        )
        request.status = RedemptionStatus.REJECTED.value
        request.rejection_reason = reason
        request.reversal_transaction_id = reversal.transaction_id
        request.decided_by = str(admin_id)
        request.decided_at = utcnow()
        self.audit.record(
            "REJECT_REDEEM_REQUEST",
            "RedemptionRequest",
            request_id,
            admin_id,
            {"reason": reason, "refunded": request.points_used},
        )
        await self.session.flush()

        logger.info("redemption %s rejected by %s", request_id, admin_id)
        return request

    async def cancel(self, request_id: UUID, employee_id: UUID) -> RedemptionRequest:
        """Redeemer withdraws their own PENDING request."""
        request = await self.get_request(request_id, for_update=True)
        if request.employee_id != employee_id:
            raise PermissionDeniedError("Only the redeemer can cancel a redemption request")
        RedemptionStateMachine.validate_transition(request.status, RedemptionStatus.CANCELLED)

        reversal = await self.ledger.reverse_ledger_effect(
            request.transaction_id, actor_id=employee_id, reason="Redemption cancelled"
        )
        request.status = RedemptionStatus.CANCELLED.value
        request.reversal_transaction_id = reversal.transaction_id
        request.decided_by = str(employee_id)
        request.decided_at = utcnow()
        self.audit.record("CANCEL_REDEEM_REQUEST", "RedemptionRequest", request_id, employee_id)
        await self.session.flush()

        logger.info("redemption %s cancelled by redeemer", request_id)
        return request

    # ------------------------------------------------------------------
    # Fulfilment
    # ------------------------------------------------------------------

    async def mark_processing(self, request_id: UUID, admin_id: UUID | str) -> RedemptionRequest:
        request = await self.get_request(request_id, for_update=True)
        RedemptionStateMachine.validate_shipping_transition(request, ShippingStatus.PROCESSING)

        request.shipping_status = ShippingStatus.PROCESSING.value
        self._record_shipping(request, admin_id)
        await self.session.flush()
        return request

    async def mark_shipped(
        self,
        request_id: UUID,
        admin_id: UUID | str,
        tracking_number: str,
        carrier: str | None = None,
    ) -> RedemptionRequest:
        """Hand a DELIVERY request to a carrier."""
        request = await self.get_request(request_id, for_update=True)
        RedemptionStateMachine.validate_shipping_transition(request, ShippingStatus.SHIPPED)
        if request.shipping_type != ShippingType.DELIVERY.value:
            raise InvalidStateTransitionError(
                request.shipping_status,
                ShippingStatus.SHIPPED.value,
                "only delivery requests are shipped; use ready-for-pickup",
            )
        if not tracking_number or not tracking_number.strip():
            raise ValidationError("tracking_number is required to mark a request shipped")

        request.shipping_status = ShippingStatus.SHIPPED.value
        request.tracking_number = tracking_number.strip()
        request.carrier = carrier
        request.shipped_at = utcnow()
        self._record_shipping(request, admin_id, {"tracking_number": request.tracking_number})
        await self.session.flush()
        return request

    async def mark_ready_for_pickup(
        self, request_id: UUID, admin_id: UUID | str
    ) -> RedemptionRequest:
        """Pickup equivalent of mark_shipped: SHIPPED means ready at the desk."""
        request = await self.get_request(request_id, for_update=True)
        RedemptionStateMachine.validate_shipping_transition(request, ShippingStatus.SHIPPED)
        if request.shipping_type != ShippingType.PICKUP.value:
            raise InvalidStateTransitionError(
                request.shipping_status,
                ShippingStatus.SHIPPED.value,
                "only pickup requests can be marked ready for pickup",
            )

        request.shipping_status = ShippingStatus.SHIPPED.value
        request.shipped_at = utcnow()
        self._record_shipping(request, admin_id)
        await self.session.flush()
        return request

    async def confirm_delivery(self, request_id: UUID, actor_id: UUID) -> RedemptionRequest:
        """Recipient (or an Admin) confirms the reward arrived."""
        request = await self.get_request(request_id, for_update=True)
        if actor_id != request.employee_id:
            actor = await self.session.get(Employee, actor_id)
            if actor is None:
                raise EmployeeNotFoundError(actor_id)
            if actor.role != EmployeeRole.ADMIN.value:
                raise PermissionDeniedError(
                    "Only the recipient or an admin can confirm delivery"
                )
        RedemptionStateMachine.validate_shipping_transition(request, ShippingStatus.DELIVERED)

        request.shipping_status = ShippingStatus.DELIVERED.value
        request.delivered_at = utcnow()
        self._record_shipping(request, actor_id)
        await self.session.flush()
        return request

    async def mark_returned(
        self, request_id: UUID, admin_id: UUID | str, reason: str
    ) -> RedemptionRequest:
        """Take a shipped or delivered reward back, refunding points and stock."""
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to mark a reward returned")
        request = await self.get_request(request_id, for_update=True)
        RedemptionStateMachine.validate_shipping_transition(request, ShippingStatus.RETURNED)

        reversal = await self.ledger.reverse_ledger_effect(
            request.transaction_id, actor_id=admin_id, reason=reason
        )
        request.shipping_status = ShippingStatus.RETURNED.value
        request.return_reason = reason.strip()
        request.returned_at = utcnow()
        request.reversal_transaction_id = reversal.transaction_id
        self._record_shipping(request, admin_id, {"reason": request.return_reason})
        await self.session.flush()
        return request

    def _record_shipping(
        self,
        request: RedemptionRequest,
        actor_id: UUID | str,
        details: dict | None = None,
    ) -> None:
        self.audit.record(
            "UPDATE_SHIPPING_STATUS",
            "RedemptionRequest",
            request.request_id,
            actor_id,
            {"shipping_status": request.shipping_status, **(details or {})},
        )
        logger.info(
            "redemption %s shipping -> %s by %s",
            request.request_id,
            request.shipping_status,
            actor_id,
        )

