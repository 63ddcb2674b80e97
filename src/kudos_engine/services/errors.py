"""Request-rejection errors raised by the ledger and workflow services.

Every error is raised before any mutation is flushed, so callers can
surface the message and let the user retry.
"""

from __future__ import annotations

from uuid import UUID


class KudosError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400
    code: str = "KUDOS_ERROR"


class ValidationError(KudosError):
    """Request is missing fields or carries values that can never succeed."""

    status_code = 422
    code = "VALIDATION_ERROR"


class InsufficientQuotaError(KudosError):
    status_code = 400
    code = "INSUFFICIENT_QUOTA"

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient quota. Available: {available}, Requested: {requested}")


class InsufficientPointsError(KudosError):
    status_code = 400
    code = "INSUFFICIENT_POINTS"

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient points. Available: {available}, Requested: {requested}")


class OutOfStockError(KudosError):
    status_code = 409
    code = "OUT_OF_STOCK"

    def __init__(self, reward_id: UUID):
        self.reward_id = reward_id
        super().__init__(f"Reward {reward_id} is out of stock")


class RewardInactiveError(KudosError):
    status_code = 400
    code = "REWARD_INACTIVE"

    def __init__(self, reward_id: UUID):
        self.reward_id = reward_id
        super().__init__(f"Reward {reward_id} is not available")


class LevelRequirementError(KudosError):
    status_code = 403
    code = "LEVEL_REQUIRED"

    def __init__(self, current_level: str, required_level: str):
        self.current_level = current_level
        self.required_level = required_level
        super().__init__(
            f"Reward requires level {required_level} (current level: {current_level})"
        )


class InvalidStateTransitionError(KudosError):
    """Raised when a workflow transition is not allowed from the current state."""

    status_code = 409
    code = "INVALID_STATE_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PermissionDeniedError(KudosError):
    status_code = 403
    code = "PERMISSION_DENIED"


class EntityInUseError(KudosError):
    """Delete refused because ledger or workflow history references the row."""

    status_code = 409
    code = "ENTITY_IN_USE"


class DuplicateEntityError(KudosError):
    status_code = 409
    code = "DUPLICATE"


class NotFoundError(KudosError):
    status_code = 404
    code = "NOT_FOUND"
    entity = "Entity"

    def __init__(self, entity_id: object):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} {entity_id} not found")


class EmployeeNotFoundError(NotFoundError):
    code = "EMPLOYEE_NOT_FOUND"
    entity = "Employee"


class RewardNotFoundError(NotFoundError):
    code = "REWARD_NOT_FOUND"
    entity = "Reward"


class CategoryNotFoundError(NotFoundError):
    code = "CATEGORY_NOT_FOUND"
    entity = "Category"


class TransactionNotFoundError(NotFoundError):
    code = "TRANSACTION_NOT_FOUND"
    entity = "Transaction"


class RedemptionNotFoundError(NotFoundError):
    code = "REDEMPTION_NOT_FOUND"
    entity = "Redemption request"


class NewsNotFoundError(NotFoundError):
    code = "NEWS_NOT_FOUND"
    entity = "News"


class DistributionNotFoundError(NotFoundError):
    code = "DISTRIBUTION_NOT_FOUND"
    entity = "Quota distribution"
