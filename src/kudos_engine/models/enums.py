"""Closed value sets shared by models, services and API schemas."""

from __future__ import annotations

from enum import Enum


class EmployeeRole(str, Enum):
    """Organisational role; drives default quota and group eligibility."""

    ADMIN = "Admin"
    EXECUTIVE = "Executive"
    MIDDLE_MANAGEMENT = "MiddleManagement"
    STAFF = "Staff"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class EmployeeLevel(str, Enum):
    """Recognition tiers, lowest first."""

    RISING_STAR = "RISING_STAR"
    ACHIEVER = "ACHIEVER"
    OUTSTANDING = "OUTSTANDING"
    EXCELLENT_PERFORMER = "EXCELLENT_PERFORMER"
    EMPLOYEE_OF_THE_YEAR = "EMPLOYEE_OF_THE_YEAR"
    HALL_OF_FAME = "HALL_OF_FAME"


class RewardStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class TransactionType(str, Enum):
    GIVE = "GIVE"
    REDEEM = "REDEEM"
    ADJUSTMENT = "ADJUSTMENT"


class TransactionSource(str, Enum):
    MANUAL = "manual"
    QR = "qr"
    GROUP = "group"
    REDEMPTION = "redemption"
    REVERSAL = "reversal"
    ADMIN = "admin"


class GroupType(str, Enum):
    DEPARTMENT = "department"
    BUSINESS_UNIT = "business_unit"
    BRANCH = "branch"


class RedemptionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class ShippingType(str, Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"
    DIGITAL = "DIGITAL"


class ShippingStatus(str, Enum):
    NOT_REQUIRED = "NOT_REQUIRED"
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"


class NewsStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
