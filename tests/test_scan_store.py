"""Unit tests for app.services.scan_store with a mocked SQLAlchemy session."""

import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from app.models import ProductScanHistory, Scan, ScanResult, ScanSchedule, Shop
from app.schemas.compliance import ComplianceFinding, ComplianceViolation
from app.services.scan_store import ScanStore

T0 = datetime(2025, 3, 1, tzinfo=timezone.utc)


def _finding(product_id: str = "gid://shopify/Product/1", violations: int = 1) -> ComplianceFinding:
    """Build a ComplianceFinding with n Medium violations for tests."""
    items = [
        ComplianceViolation(issue=f"Issue {i}", policy="P", law="L", severity="Medium", risk_score=0.6)
        for i in range(violations)
    ]
    return ComplianceFinding(
        product_id=product_id,
        product_title="Balm",
        market="us",
        violations=items,
        compliance_score=100 - 21 * violations,
        status="flagged" if items else "clean",
    )


def _scan_row(**kwargs: object) -> Scan:
    defaults: dict[str, object] = {
        "id": "scan-1",
        "shop_domain": "example.myshopify.com",
        "market": "us",
        "compliance_score": 0,
        "violations": 0,
        "products_scanned": 0,
        "status": "running",
        "started_at": T0,
        "completed_at": None,
        "results": [],
    }
    defaults.update(kwargs)
    return Scan(**defaults)


class TestScanLifecycle(unittest.TestCase):
    def test_create_scan_adds_running_row(self) -> None:
        session = MagicMock()
        record = ScanStore(session).create_scan("example.myshopify.com", "uk")
        row = session.add.call_args[0][0]
        self.assertIsInstance(row, Scan)
        self.assertEqual(row.status, "running")
        self.assertEqual(record.id, row.id)
        self.assertEqual(len(record.id), 36)
        self.assertEqual(record.market, "uk")
        session.commit.assert_called_once()

    def test_save_scan_results_serializes_findings(self) -> None:
        session = MagicMock()
        row = _scan_row()
        session.get.return_value = row
        record = ScanStore(session).save_scan_results("scan-1", [_finding()], 79, 1)

        self.assertEqual(row.status, "complete")
        self.assertEqual(row.products_scanned, 1)
        self.assertEqual(row.results[0]["schema_version"], 2)
        self.assertEqual(row.results[0]["violations"][0]["risk_score"], 0.6)
        self.assertIsNotNone(row.completed_at)
        self.assertEqual(record.results[0].product_id, "gid://shopify/Product/1")
        self.assertEqual(record.results[0].violations[0].issue, "Issue 0")
        self.assertEqual(record.compliance_score, 79)

    def test_save_unknown_scan_raises(self) -> None:
        session = MagicMock()
        session.get.return_value = None
        with self.assertRaises(LookupError):
            ScanStore(session).save_scan_results("missing", [], 0, 0)

    def test_mark_failed(self) -> None:
        session = MagicMock()
        row = _scan_row()
        session.get.return_value = row
        ScanStore(session).mark_scan_failed("scan-1")
        self.assertEqual(row.status, "failed")
        session.commit.assert_called_once()

    def test_get_scan_migrates_legacy_results(self) -> None:
        session = MagicMock()
        session.get.return_value = _scan_row(
            status="complete",
            results=[{"product_id": "gid://shopify/Product/1", "product_title": "Tea", "issues": ["Detox claim"]}],
        )
        record = ScanStore(session).get_scan("scan-1")
        self.assertEqual(record.results[0].violations[0].issue, "Detox claim")
        self.assertEqual(record.results[0].market, "us")

    def test_get_scan_counts_unreadable_results(self) -> None:
        session = MagicMock()
        session.get.return_value = _scan_row(
            status="complete",
            results=[
                {"productId": "gid://shopify/Product/2", "productTitle": "Detox tea", "issues": ["Detox claim"]},
                {"schema_version": 9},
                "junk",
            ],
        )
        record = ScanStore(session).get_scan("scan-1")
        self.assertEqual([f.product_id for f in record.results], ["gid://shopify/Product/2"])
        self.assertEqual(record.unreadable_results, 2)
        self.assertNotIn("unreadable_results", record.model_dump())

    def test_get_missing_scan(self) -> None:
        session = MagicMock()
        session.get.return_value = None
        self.assertIsNone(ScanStore(session).get_scan("nope"))


class TestResultRowsAndHistory(unittest.TestCase):
    def test_replace_scan_results_for_product_deletes_then_inserts(self) -> None:
        session = MagicMock()
        query = session.query.return_value
        filtered = query.filter.return_value
        inserted = ScanStore(session).replace_scan_results(
            "scan-1", [_finding(violations=2)], product_id="gid://shopify/Product/1"
        )
        self.assertEqual(inserted, 2)
        session.query.assert_called_once_with(ScanResult)
        filtered.filter.return_value.delete.assert_called_once_with(synchronize_session=False)
        rows = [c[0][0] for c in session.add.call_args_list]
        self.assertTrue(all(isinstance(r, ScanResult) for r in rows))
        self.assertEqual([r.issue for r in rows], ["Issue 0", "Issue 1"])

    def test_replace_all_results_of_scan(self) -> None:
        session = MagicMock()
        inserted = ScanStore(session).replace_scan_results("scan-1", [_finding(violations=0)])
        self.assertEqual(inserted, 0)
        session.query.return_value.filter.return_value.delete.assert_called_once_with(synchronize_session=False)
        session.add.assert_not_called()

    def test_record_history_one_point_per_finding(self) -> None:
        session = MagicMock()
        ScanStore(session).record_history(
            "scan-1", "example.myshopify.com", "us", [_finding("a"), _finding("b", violations=0)]
        )
        rows = [c[0][0] for c in session.add.call_args_list]
        self.assertTrue(all(isinstance(r, ProductScanHistory) for r in rows))
        self.assertEqual([(r.product_id, r.violations, r.compliance_score) for r in rows], [("a", 1, 79.0), ("b", 0, 100.0)])


class TestSchedulesAndShops(unittest.TestCase):
    def test_upsert_schedule_inserts_when_missing(self) -> None:
        session = MagicMock()
        session.query.return_value.filter.return_value.one_or_none.return_value = None
        out = ScanStore(session).upsert_schedule(
            "example.myshopify.com", "gid://shopify/Product/1", "uk", "daily", T0, T0
        )
        row = session.add.call_args[0][0]
        self.assertIsInstance(row, ScanSchedule)
        self.assertEqual(out.frequency, "daily")
        self.assertEqual(out.next_run, T0)

    def test_upsert_schedule_updates_existing(self) -> None:
        session = MagicMock()
        existing = ScanSchedule(
            shop_domain="example.myshopify.com", product_id="gid://shopify/Product/1", market="us", frequency="weekly"
        )
        session.query.return_value.filter.return_value.one_or_none.return_value = existing
        ScanStore(session).upsert_schedule("example.myshopify.com", "gid://shopify/Product/1", "uk", "monthly", T0, T0)
        session.add.assert_not_called()
        self.assertEqual((existing.market, existing.frequency), ("uk", "monthly"))

    def test_upsert_shop_updates_token_only_when_other_fields_omitted(self) -> None:
        session = MagicMock()
        shop = Shop(domain="example.myshopify.com", access_token="old", country="GB")
        session.get.return_value = shop
        ScanStore(session).upsert_shop("example.myshopify.com", "new")
        self.assertEqual(shop.access_token, "new")
        self.assertEqual(shop.country, "GB")

    def test_upsert_shop_inserts(self) -> None:
        session = MagicMock()
        session.get.return_value = None
        row = ScanStore(session).upsert_shop("example.myshopify.com", "tok", currency="GBP")
        session.add.assert_called_once_with(row)
        self.assertEqual(row.currency, "GBP")


if __name__ == "__main__":
    unittest.main()
