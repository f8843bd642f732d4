"""Pydantic request/response schemas."""

from app.schemas.catalog import Metafield, Product
from app.schemas.compliance import (
    AiAnalysis,
    AiRewrite,
    ComplianceFinding,
    ComplianceViolation,
    MarketLawReference,
    PolicyMatch,
    PolicyRule,
    SeverityLevel,
)
from app.schemas.health import HealthResponse
from app.schemas.scan import (
    DashboardNotification,
    DashboardResponse,
    HistoryPoint,
    ScanRecord,
    ScheduleOut,
)

__all__ = [
    "AiAnalysis",
    "AiRewrite",
    "ComplianceFinding",
    "ComplianceViolation",
    "DashboardNotification",
    "DashboardResponse",
    "HealthResponse",
    "HistoryPoint",
    "MarketLawReference",
    "Metafield",
    "PolicyMatch",
    "PolicyRule",
    "Product",
    "ScanRecord",
    "ScheduleOut",
    "SeverityLevel",
]
