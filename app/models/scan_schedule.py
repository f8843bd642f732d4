"""ORM model for per-product rescan schedules."""

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from app.models.base import Base


class ScanSchedule(Base):
    """
    Requested rescan cadence for one product of a shop.

    frequency: 'daily', 'weekly' or 'monthly'. Unique per (shop_domain, product_id).
    """

    __tablename__ = "scan_schedules"
    __table_args__ = (UniqueConstraint("shop_domain", "product_id", name="uq_scan_schedules_shop_product"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    shop_domain = Column(String(255), nullable=False, index=True)
    product_id = Column(String(255), nullable=False)
    market = Column(String(16), nullable=False, default="default")
    frequency = Column(String(16), nullable=False, default="weekly")
    next_run = Column(DateTime(timezone=True), nullable=True)
    last_run = Column(DateTime(timezone=True), nullable=True)
