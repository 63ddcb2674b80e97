"""API routes."""

from kudos_engine.api.routes.audit import router as audit_router
from kudos_engine.api.routes.catalog import router as catalog_router
from kudos_engine.api.routes.employees import router as employees_router
from kudos_engine.api.routes.health import router as health_router
from kudos_engine.api.routes.news import router as news_router
from kudos_engine.api.routes.points import router as points_router
from kudos_engine.api.routes.quotas import router as quotas_router
from kudos_engine.api.routes.redemptions import router as redemptions_router
from kudos_engine.api.routes.reports import router as reports_router
from kudos_engine.api.routes.transactions import router as transactions_router

__all__ = [
    "audit_router",
    "catalog_router",
    "employees_router",
    "health_router",
    "news_router",
    "points_router",
    "quotas_router",
    "redemptions_router",
    "reports_router",
    "transactions_router",
]
