"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.product_scan_history import ProductScanHistory
from app.models.scan import Scan
from app.models.scan_result import ScanResult
from app.models.scan_schedule import ScanSchedule
from app.models.shop import Shop

__all__ = ["Base", "ProductScanHistory", "Scan", "ScanResult", "ScanSchedule", "Shop"]
