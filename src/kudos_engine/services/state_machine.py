"""Redemption request state machine with transition validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from kudos_engine.models.enums import RedemptionStatus, ShippingStatus, ShippingType
from kudos_engine.services.errors import InvalidStateTransitionError

if TYPE_CHECKING:
    from kudos_engine.models import RedemptionRequest


class RedemptionStateMachine:
    """State machine for redemption status and its nested shipping status.

    Request status:
    - PENDING → APPROVED | REJECTED | CANCELLED
    - everything else is terminal

    Shipping status (APPROVED physical rewards only):
    - PENDING → PROCESSING | SHIPPED
    - PROCESSING → SHIPPED
    - SHIPPED → DELIVERED | RETURNED
    - DELIVERED → RETURNED
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        RedemptionStatus.PENDING.value: [
            RedemptionStatus.APPROVED.value,
            RedemptionStatus.REJECTED.value,
            RedemptionStatus.CANCELLED.value,
        ],
        RedemptionStatus.APPROVED.value: [],
        RedemptionStatus.REJECTED.value: [],
        RedemptionStatus.CANCELLED.value: [],
    }

    VALID_SHIPPING_TRANSITIONS: dict[str, list[str]] = {
        ShippingStatus.NOT_REQUIRED.value: [],
        ShippingStatus.PENDING.value: [ShippingStatus.PROCESSING.value, ShippingStatus.SHIPPED.value],
        ShippingStatus.PROCESSING.value: [ShippingStatus.SHIPPED.value],
        ShippingStatus.SHIPPED.value: [ShippingStatus.DELIVERED.value, ShippingStatus.RETURNED.value],
        ShippingStatus.DELIVERED.value: [ShippingStatus.RETURNED.value],
        ShippingStatus.RETURNED.value: [],
    }

    # Transitions that hand points and stock back
    REFUNDING_STATUSES = {RedemptionStatus.REJECTED.value, RedemptionStatus.CANCELLED.value}
    REFUNDING_SHIPPING_STATUSES = {ShippingStatus.RETURNED.value}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a request status transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(_label(from_status), [])
        return _label(to_status) in allowed

    @classmethod
    def can_transition_shipping(cls, from_status: str, to_status: str) -> bool:
        """Check if a shipping status transition is valid."""
        allowed = cls.VALID_SHIPPING_TRANSITIONS.get(_label(from_status), [])
        return _label(to_status) in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a status transition, raising InvalidStateTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(_label(from_status), _label(to_status))

    @classmethod
    def validate_shipping_transition(
        cls, request: RedemptionRequest, to_status: str
    ) -> None:
        """Validate a shipping transition for a request.

        Shipping only moves once the request is APPROVED and the reward
        is physical.
        """
        if request.status != RedemptionStatus.APPROVED:
            raise InvalidStateTransitionError(
                _label(request.shipping_status),
                _label(to_status),
                f"request must be APPROVED (current: {_label(request.status)})",
            )
        if request.shipping_type == ShippingType.DIGITAL:
            raise InvalidStateTransitionError(
                _label(request.shipping_status),
                _label(to_status),
                "digital rewards are not shipped",
            )
        if not cls.can_transition_shipping(request.shipping_status, to_status):
            raise InvalidStateTransitionError(
                _label(request.shipping_status), _label(to_status)
            )

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next request statuses."""
        return cls.VALID_TRANSITIONS.get(_label(current_status), [])

    @classmethod
    def get_next_shipping_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next shipping statuses."""
        return cls.VALID_SHIPPING_TRANSITIONS.get(_label(current_status), [])

    @classmethod
    def is_terminal(cls, request: RedemptionRequest) -> bool:
        """True when no further transition of any kind is possible."""
        if cls.get_next_statuses(request.status):
            return False
        if request.status != RedemptionStatus.APPROVED:
            return True
        return not cls.get_next_shipping_statuses(request.shipping_status)

    @classmethod
    def is_refunding(cls, to_status: str) -> bool:
        """Whether moving into this status reverses the ledger effect."""
        status = _label(to_status)
        return status in cls.REFUNDING_STATUSES or status in cls.REFUNDING_SHIPPING_STATUSES


def _label(status: object) -> str:
    """Plain string for a status that may be an enum member or a raw value."""
    return getattr(status, "value", status)  # type: ignore[return-value]
