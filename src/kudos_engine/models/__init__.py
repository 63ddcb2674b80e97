"""ORM models."""

from kudos_engine.models.base import Base, TimestampMixin, UpdatedAtMixin
from kudos_engine.models.catalog import Reward, RewardCategory
from kudos_engine.models.content import AuditEvent, News
from kudos_engine.models.employee import Employee, RoleAllowance
from kudos_engine.models.ledger import LedgerTransaction, TransactionAllocation
from kudos_engine.models.quota import QuotaChangeLog, QuotaDistribution
from kudos_engine.models.redemption import RedemptionRequest

__all__ = [
    "AuditEvent",
    "Base",
    "Employee",
    "LedgerTransaction",
    "News",
    "QuotaChangeLog",
    "QuotaDistribution",
    "RedemptionRequest",
    "Reward",
    "RewardCategory",
    "RoleAllowance",
    "TimestampMixin",
    "TransactionAllocation",
    "UpdatedAtMixin",
]
