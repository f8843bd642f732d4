"""ORM model for per-violation scan result rows."""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, func

from app.models.base import Base


class ScanResult(Base):
    """One violation found on one product during a scan."""

    __tablename__ = "scan_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scan_id = Column(String(36), ForeignKey("scans.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(255), nullable=False, index=True)
    product_title = Column(String(1024), nullable=False, default="")
    issue = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False)
    risk_score = Column(Float, nullable=False)
    policy = Column(String(512), nullable=False, default="")
    law = Column(String(512), nullable=False, default="")
    suggestion = Column(Text, nullable=False, default="")
    rule_ref = Column(String(255), nullable=False, default="general")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
