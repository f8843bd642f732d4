"""ORM model for catalog scans (aggregates plus the per-product results snapshot)."""

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import JSONB

from app.models.base import Base


class Scan(Base):
    """
    One scan of a shop's catalog for one market.

    results holds the serialized findings (one per product, tagged with
    schema_version); compliance_score and violations are aggregates over them.
    """

    __tablename__ = "scans"

    id = Column(String(36), primary_key=True)
    shop_domain = Column(String(255), nullable=False, index=True)
    market = Column(String(16), nullable=False, default="default")
    compliance_score = Column(Integer, nullable=False, default=0)
    violations = Column(Integer, nullable=False, default=0)
    products_scanned = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default="running")
    started_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)
    results = Column(JSONB, nullable=True)
