"""Pydantic schemas for scans, rescans, schedules, history points, and the dashboard payload."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.compliance import ComplianceFinding

ScanStatus = Literal["running", "complete", "failed"]
ScheduleFrequency = Literal["daily", "weekly", "monthly"]

MARKET_MAX_LENGTH = 16


def _validate_market(value: str) -> str:
    """Markets are short region codes; stored lower-case."""
    if not value or not value.strip():
        raise ValueError("market must be non-empty")
    normalized = value.strip().lower()
    if len(normalized) > MARKET_MAX_LENGTH:
        raise ValueError(f"market must be at most {MARKET_MAX_LENGTH} characters")
    return normalized


class ScanRecord(BaseModel):
    """A scan snapshot with its typed per-product results."""

    id: str
    shop_domain: str
    market: str
    compliance_score: int = Field(default=0, ge=0, le=100)
    violations: int = Field(default=0, ge=0)
    products_scanned: int = Field(default=0, ge=0)
    status: ScanStatus
    started_at: datetime
    completed_at: datetime | None = None
    results: list[ComplianceFinding] = Field(default_factory=list)
    # Stored entries that could not be migrated and are missing from results.
    unreadable_results: int = Field(default=0, ge=0, exclude=True)


class ScanSummary(BaseModel):
    """Scan without results, for listings."""

    id: str
    market: str
    compliance_score: int
    violations: int
    products_scanned: int
    status: ScanStatus
    started_at: datetime
    completed_at: datetime | None = None


class ScanRequest(BaseModel):
    """Request body for POST /api/v1/scans."""

    market: str = Field(default="default", description="Market code (e.g. uk, us, eu).")

    @field_validator("market")
    @classmethod
    def validate_market(cls, v: str) -> str:
        return _validate_market(v)


class RescanRequest(BaseModel):
    """Request body for POST /api/v1/scans/{scan_id}/rescan."""

    product_id: str = Field(..., min_length=1, max_length=255, description="Product GID to rescan.")


class ScansListResponse(BaseModel):
    """Response for GET /api/v1/scans."""

    scans: list[ScanSummary]


class ScheduleRequest(BaseModel):
    """Request body for POST /api/v1/schedules."""

    product_id: str = Field(..., min_length=1, max_length=255)
    market: str = Field(default="default")
    frequency: ScheduleFrequency = "weekly"

    @field_validator("market")
    @classmethod
    def validate_market(cls, v: str) -> str:
        return _validate_market(v)


class ScheduleOut(BaseModel):
    """A stored rescan schedule for one product."""

    model_config = {"from_attributes": True}

    shop_domain: str
    product_id: str
    market: str
    frequency: ScheduleFrequency
    next_run: datetime | None = None
    last_run: datetime | None = None


class HistoryPoint(BaseModel):
    """One point of a product's compliance trend."""

    model_config = {"from_attributes": True}

    scan_id: str
    product_id: str
    market: str
    compliance_score: float
    violations: int
    scanned_at: datetime


class DashboardNotification(BaseModel):
    """Alert derived from a high-risk violation."""

    id: str
    title: str
    detail: str
    severity: Literal["critical", "warning", "info"]
    created_at: datetime


class DashboardResponse(BaseModel):
    """Response for GET /api/v1/dashboard."""

    scans: list[ScanRecord]
    schedules: list[ScheduleOut]
    history: list[HistoryPoint]
    notifications: list[DashboardNotification]
    ai_connected: bool
