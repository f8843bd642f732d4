"""ORM model for per-product compliance trend points."""

from sqlalchemy import Column, DateTime, Float, Integer, String, func

from app.models.base import Base


class ProductScanHistory(Base):
    """Score and violation count of one product at one scan or rescan."""

    __tablename__ = "product_scan_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scan_id = Column(String(36), nullable=False, index=True)
    shop_domain = Column(String(255), nullable=False, index=True)
    product_id = Column(String(255), nullable=False)
    market = Column(String(16), nullable=False)
    compliance_score = Column(Float, nullable=False)
    violations = Column(Integer, nullable=False, default=0)
    scanned_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
