"""Relational persistence for scans, per-violation rows, history points, schedules and shops."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.models import ProductScanHistory, Scan, ScanResult, ScanSchedule, Shop
from app.schemas.compliance import ComplianceFinding
from app.schemas.scan import HistoryPoint, ScanRecord, ScanStatus, ScheduleFrequency, ScheduleOut
from app.services.normalize import migrate_stored_results

logger = logging.getLogger(__name__)

RECENT_SCANS_LIMIT = 5
HISTORY_LIMIT = 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_record(row: Scan) -> ScanRecord:
    """ORM row -> ScanRecord; stored results are migrated to the current finding shape on read."""
    stored = row.results or []
    results = migrate_stored_results(stored, row.market)
    return ScanRecord(
        id=row.id,
        shop_domain=row.shop_domain,
        market=row.market,
        compliance_score=int(row.compliance_score or 0),
        violations=row.violations or 0,
        products_scanned=row.products_scanned or 0,
        status=row.status,
        started_at=row.started_at,
        completed_at=row.completed_at,
        results=results,
        unreadable_results=len(stored) - len(results),
    )


class ScanStore:
    """Scan persistence over one SQLAlchemy session. Each write commits."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create_scan(self, shop_domain: str, market: str) -> ScanRecord:
        row = Scan(
            id=str(uuid.uuid4()),
            shop_domain=shop_domain,
            market=market,
            compliance_score=0,
            violations=0,
            products_scanned=0,
            status="running",
            started_at=_utcnow(),
            results=[],
        )
        self.session.add(row)
        self.session.commit()
        return _to_record(row)

    def get_scan(self, scan_id: str) -> ScanRecord | None:
        row = self.session.get(Scan, scan_id)
        return _to_record(row) if row is not None else None

    def save_scan_results(
        self,
        scan_id: str,
        results: list[ComplianceFinding],
        compliance_score: int,
        violations: int,
        status: ScanStatus = "complete",
    ) -> ScanRecord:
        """Replace the results snapshot and aggregates, mark the scan finished."""
        row = self.session.get(Scan, scan_id)
        if row is None:
            raise LookupError(f"Scan {scan_id} does not exist")
        row.results = [finding.model_dump(mode="json") for finding in results]
        row.compliance_score = compliance_score
        row.violations = violations
        row.products_scanned = len(results)
        row.status = status
        row.completed_at = _utcnow()
        self.session.commit()
        return _to_record(row)

    def mark_scan_failed(self, scan_id: str) -> None:
        row = self.session.get(Scan, scan_id)
        if row is None:
            return
        row.status = "failed"
        row.completed_at = _utcnow()
        self.session.commit()

    def list_recent_scans(self, shop_domain: str, limit: int = RECENT_SCANS_LIMIT) -> list[ScanRecord]:
        rows = (
            self.session.query(Scan)
            .filter(Scan.shop_domain == shop_domain)
            .order_by(Scan.started_at.desc())
            .limit(limit)
            .all()
        )
        return [_to_record(row) for row in rows]

    def replace_scan_results(
        self,
        scan_id: str,
        findings: list[ComplianceFinding],
        product_id: str | None = None,
    ) -> int:
        """
        Rewrite the per-violation rows of a scan, or of one product in it.

        Existing rows in scope are deleted first so a rescan never duplicates
        them. Returns the number of rows inserted.
        """
        query = self.session.query(ScanResult).filter(ScanResult.scan_id == scan_id)
        if product_id is not None:
            query = query.filter(ScanResult.product_id == product_id)
        query.delete(synchronize_session=False)

        inserted = 0
        for finding in findings:
            for violation in finding.violations:
                self.session.add(
                    ScanResult(
                        scan_id=scan_id,
                        product_id=finding.product_id,
                        product_title=finding.product_title,
                        issue=violation.issue,
                        severity=violation.severity,
                        risk_score=violation.risk_score,
                        policy=violation.policy,
                        law=violation.law,
                        suggestion=violation.suggestion,
                        rule_ref=violation.rule_ref,
                    )
                )
                inserted += 1
        self.session.commit()
        return inserted

    def record_history(
        self,
        scan_id: str,
        shop_domain: str,
        market: str,
        findings: list[ComplianceFinding],
    ) -> None:
        """Append one trend point per finding."""
        scanned_at = _utcnow()
        for finding in findings:
            self.session.add(
                ProductScanHistory(
                    scan_id=scan_id,
                    shop_domain=shop_domain,
                    product_id=finding.product_id,
                    market=market,
                    compliance_score=float(finding.compliance_score),
                    violations=len(finding.violations),
                    scanned_at=scanned_at,
                )
            )
        self.session.commit()

    def list_history(self, shop_domain: str, limit: int = HISTORY_LIMIT) -> list[HistoryPoint]:
        rows = (
            self.session.query(ProductScanHistory)
            .filter(ProductScanHistory.shop_domain == shop_domain)
            .order_by(ProductScanHistory.scanned_at.asc())
            .limit(limit)
            .all()
        )
        return [HistoryPoint.model_validate(row) for row in rows]

    def upsert_schedule(
        self,
        shop_domain: str,
        product_id: str,
        market: str,
        frequency: ScheduleFrequency,
        next_run: datetime,
        last_run: datetime,
    ) -> ScheduleOut:
        row = (
            self.session.query(ScanSchedule)
            .filter(ScanSchedule.shop_domain == shop_domain, ScanSchedule.product_id == product_id)
            .one_or_none()
        )
        if row is None:
            row = ScanSchedule(shop_domain=shop_domain, product_id=product_id)
            self.session.add(row)
        row.market = market
        row.frequency = frequency
        row.next_run = next_run
        row.last_run = last_run
        self.session.commit()
        return ScheduleOut.model_validate(row)

    def list_schedules(self, shop_domain: str) -> list[ScheduleOut]:
        rows = (
            self.session.query(ScanSchedule)
            .filter(ScanSchedule.shop_domain == shop_domain)
            .order_by(ScanSchedule.next_run.asc())
            .all()
        )
        return [ScheduleOut.model_validate(row) for row in rows]

    def get_shop(self, domain: str) -> Shop | None:
        return self.session.get(Shop, domain)

    def upsert_shop(
        self,
        domain: str,
        access_token: str,
        plan: str | None = None,
        country: str | None = None,
        currency: str | None = None,
    ) -> Shop:
        """Insert or update a shop's Admin API token; other fields are only overwritten when given."""
        row = self.session.get(Shop, domain)
        if row is None:
            row = Shop(domain=domain, access_token=access_token)
            self.session.add(row)
            logger.info("Registered new shop", extra={"shop_domain": domain})
        else:
            row.access_token = access_token
        if plan is not None:
            row.plan = plan
        if country is not None:
            row.country = country
        if currency is not None:
            row.currency = currency
        self.session.commit()
        return row
