"""Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from kudos_engine.models.enums import (
    EmployeeLevel,
    EmployeeRole,
    EmployeeStatus,
    GroupType,
    RewardStatus,
    ShippingType,
    TransactionSource,
)


# ============================================================================
# Employee schemas
# ============================================================================


class EmployeeCreate(BaseModel):
    """Schema for creating an employee."""

    employee_code: str = Field(min_length=1)
    fullname: str = Field(min_length=1)
    email: str | None = None
    position: str | None = None
    business_unit: str | None = None
    department: str | None = None
    branch: str | None = None
    role: EmployeeRole = EmployeeRole.STAFF
    quota_remaining: int | None = Field(default=None, ge=0)
    points_balance: int = Field(default=0, ge=0)


class EmployeeUpdate(BaseModel):
    """Partial update; counters are not editable here."""

    employee_code: str | None = None
    fullname: str | None = None
    email: str | None = None
    position: str | None = None
    business_unit: str | None = None
    department: str | None = None
    branch: str | None = None
    role: EmployeeRole | None = None
    status: EmployeeStatus | None = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    employee_code: str
    fullname: str
    email: str | None = None
    position: str | None = None
    business_unit: str | None = None
    department: str | None = None
    branch: str | None = None
    role: str
    status: str
    quota_remaining: int
    points_balance: int
    created_at: datetime
    updated_at: datetime


class EmployeeListResponse(BaseModel):
    items: list[EmployeeResponse]
    total: int
    page: int
    page_size: int


class EmployeeImportRequest(BaseModel):
    """Rows as parsed from a spreadsheet, one dict per employee."""

    rows: list[dict[str, Any]] = Field(min_length=1)


class EmployeeImportResponse(BaseModel):
    created: list[EmployeeResponse]
    skipped: list[str]
    errors: list[str]


class LevelResponse(BaseModel):
    level: EmployeeLevel
    name: str
    points: int
    next_level: EmployeeLevel | None = None
    points_to_next: int
    progress_percent: float
    is_max_level: bool


# ============================================================================
# Points schemas
# ============================================================================


class GiveRequest(BaseModel):
    """Give points from the caller to one colleague."""

    to_employee_id: UUID
    amount: int = Field(gt=0)
    category_id: UUID | None = None
    message: str | None = Field(default=None, max_length=500)
    source: TransactionSource = TransactionSource.MANUAL


class AllocationItem(BaseModel):
    employee_id: UUID
    amount: int = Field(gt=0)


class GroupGiveRequest(BaseModel):
    """Either explicit allocations, or an org group with points per member."""

    allocations: list[AllocationItem] | None = None
    group_type: GroupType | None = None
    group_value: str | None = None
    points_per_member: int | None = Field(default=None, gt=0)
    category_id: UUID | None = None
    message: str | None = Field(default=None, max_length=500)


class AdjustmentRequest(BaseModel):
    employee_id: UUID
    amount: int
    reason: str = Field(min_length=1)


# ============================================================================
# Transaction schemas
# ============================================================================


class AllocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    amount: int


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_id: UUID
    type: str
    source: str
    from_employee_id: UUID | None = None
    to_employee_id: UUID | None = None
    amount: int
    category_id: UUID | None = None
    reward_id: UUID | None = None
    message: str | None = None
    group_type: str | None = None
    group_value: str | None = None
    reverses_transaction_id: UUID | None = None
    created_by: str | None = None
    created_at: datetime
    allocations: list[AllocationResponse] = []


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    total: int
    page: int
    page_size: int


class HistoryRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_id: UUID
    date: datetime
    type: str
    source: str
    from_name: str | None = None
    to_name: str | None = None
    amount: int
    message: str | None = None
    category: str | None = None


# ============================================================================
# Redemption schemas
# ============================================================================


class RedeemRequest(BaseModel):
    reward_id: UUID
    shipping_type: ShippingType | None = None
    shipping_address: str | None = None
    contact_phone: str | None = None
    note: str | None = Field(default=None, max_length=500)


class RedemptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    request_id: UUID
    employee_id: UUID
    reward_id: UUID
    transaction_id: UUID
    reversal_transaction_id: UUID | None = None
    points_used: int
    status: str
    shipping_type: str
    shipping_status: str
    shipping_address: str | None = None
    contact_phone: str | None = None
    carrier: str | None = None
    tracking_number: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    returned_at: datetime | None = None
    digital_code: str | None = None
    note: str | None = None
    rejection_reason: str | None = None
    return_reason: str | None = None
    decided_by: str | None = None
    decided_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class RedemptionListResponse(BaseModel):
    items: list[RedemptionResponse]
    total: int
    page: int
    page_size: int


class ApproveRequest(BaseModel):
    digital_code: str | None = None


class ReasonRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class ReturnRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class ShipRequest(BaseModel):
    tracking_number: str = Field(min_length=1)
    carrier: str | None = None


# ============================================================================
# Catalog schemas
# ============================================================================


class RewardCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    image_url: str | None = None
    category: str | None = None
    points_cost: int = Field(gt=0)
    stock: int = Field(default=0, ge=0)
    is_physical: bool = True
    status: RewardStatus = RewardStatus.ACTIVE
    min_level_required: EmployeeLevel | None = None


class RewardUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    image_url: str | None = None
    category: str | None = None
    points_cost: int | None = Field(default=None, gt=0)
    stock: int | None = Field(default=None, ge=0)
    is_physical: bool | None = None
    status: RewardStatus | None = None
    min_level_required: EmployeeLevel | None = None


class RewardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reward_id: UUID
    name: str
    description: str | None = None
    image_url: str | None = None
    category: str | None = None
    points_cost: int
    stock: int
    is_physical: bool
    status: str
    min_level_required: str | None = None
    created_at: datetime
    updated_at: datetime


class RewardListResponse(BaseModel):
    items: list[RewardResponse]
    total: int
    page: int
    page_size: int


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    color: str | None = None
    icon: str | None = None


class CategoryUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    color: str | None = None
    icon: str | None = None
    is_active: bool | None = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: UUID
    name: str
    description: str | None = None
    color: str
    icon: str | None = None
    is_active: bool


# ============================================================================
# Quota schemas
# ============================================================================


class AllowanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    role: str
    default_quota: int
    employee_count: int = 0


class AllowanceUpdate(BaseModel):
    default_quota: int = Field(ge=0)


class DistributeRequest(BaseModel):
    role: EmployeeRole
    amount: int
    note: str | None = None


class ResetRequest(BaseModel):
    role: EmployeeRole | None = None


class ResetResponse(BaseModel):
    employees_reset: int


class DistributionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    distribution_id: UUID
    role: str
    amount: int
    affected_count: int
    total_actual_change: int
    distributed_by: str | None = None
    note: str | None = None
    created_at: datetime


class DistributionListResponse(BaseModel):
    items: list[DistributionResponse]
    total: int
    page: int
    page_size: int


class ChangeLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    employee_code: str
    quota_before: int
    requested_change: int
    actual_change: int
    quota_after: int


# ============================================================================
# News schemas
# ============================================================================


class NewsCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    description: str | None = None
    cover_image: str | None = None


class NewsUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    content: str | None = None
    description: str | None = None
    cover_image: str | None = None


class NewsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    news_id: UUID
    title: str
    content: str
    description: str | None = None
    cover_image: str | None = None
    status: str
    published_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class NewsListResponse(BaseModel):
    items: list[NewsResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Report schemas
# ============================================================================


class DepartmentActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    department: str
    given: int
    received: int
    redeemed: int
    active_employees: int


class DashboardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    points_issued: int
    points_given: int
    points_redeemed: int
    pending_requests: int
    active_employees: int
    active_departments: int
    departments: list[DepartmentActivityResponse]


class LeaderboardEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rank: int
    employee_id: UUID
    employee_code: str
    fullname: str
    department: str | None = None
    points: int


class EmployeePointsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    employee_code: str
    fullname: str
    department: str | None = None
    role: str
    quota_remaining: int
    points_received: int
    points_given: int
    points_redeemed: int
    points_balance: int


class CatalogReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reward_id: UUID
    name: str
    category: str | None = None
    points_cost: int
    stock: int
    status: str
    redeemed_count: int


# ============================================================================
# Audit schemas
# ============================================================================


class AuditEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    audit_event_id: UUID
    action: str
    entity_type: str
    entity_id: str
    actor_id: str | None = None
    details: dict[str, Any] | None = None
    created_at: datetime


class AuditEventListResponse(BaseModel):
    items: list[AuditEventResponse]
    total: int
    page: int
    page_size: int


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None
