"""Kudos engine services."""

from kudos_engine.services.audit_service import AuditService
from kudos_engine.services.catalog_service import CatalogService
from kudos_engine.services.employee_service import EmployeeService
from kudos_engine.services.ledger_service import Allocation, LedgerService
from kudos_engine.services.news_service import NewsService
from kudos_engine.services.quota_service import QuotaService
from kudos_engine.services.redemption_service import RedemptionService
from kudos_engine.services.report_service import ReportService
from kudos_engine.services.state_machine import RedemptionStateMachine

__all__ = [
    "Allocation",
    "AuditService",
    "CatalogService",
    "EmployeeService",
    "LedgerService",
    "NewsService",
    "QuotaService",
    "RedemptionService",
    "RedemptionStateMachine",
    "ReportService",
]
